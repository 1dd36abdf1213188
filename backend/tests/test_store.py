"""Tests for the in-memory MessageStore."""
import asyncio

import pytest

from roomrelay.chat.schemas import Message
from roomrelay.chat.store import MessageStore


def make_message(text: str, user: str = "anon-c1") -> Message:
    return Message(text=text, user=user)


class TestMessageStore:
    """Tests for MessageStore get/insert semantics."""

    @pytest.mark.asyncio
    async def test_unknown_room_is_empty(self, store):
        """get() on a room that was never written returns an empty list."""
        assert await store.get("never-used") == []

    @pytest.mark.asyncio
    async def test_insert_creates_room(self, store):
        msg = make_message("hi")
        returned = await store.insert("lobby", msg)

        assert returned is msg
        assert await store.get("lobby") == [msg]
        assert await store.get("other") == []

    @pytest.mark.asyncio
    async def test_insert_order_preserved_across_rooms(self, store):
        """Per-room order follows insert order, interleaved rooms don't matter."""
        a1, a2, a3 = make_message("a1"), make_message("a2"), make_message("a3")
        b1, b2 = make_message("b1"), make_message("b2")

        await store.insert("a", a1)
        await store.insert("b", b1)
        await store.insert("a", a2)
        await store.insert("b", b2)
        await store.insert("a", a3)

        assert await store.get("a") == [a1, a2, a3]
        assert await store.get("b") == [b1, b2]

    @pytest.mark.asyncio
    async def test_get_returns_snapshot(self, store):
        """A returned history is not affected by later inserts."""
        await store.insert("lobby", make_message("first"))
        snapshot = await store.get("lobby")

        await store.insert("lobby", make_message("second"))
        snapshot.append(make_message("local only"))

        assert len(snapshot) == 2
        assert [m.text for m in await store.get("lobby")] == ["first", "second"]

    @pytest.mark.asyncio
    async def test_concurrent_inserts_lose_nothing(self, store):
        """N concurrent inserts into one room produce exactly N messages."""
        messages = [make_message(f"m{i}", user=f"anon-c{i}") for i in range(200)]

        await asyncio.gather(*[store.insert("busy", m) for m in messages])

        history = await store.get("busy")
        assert len(history) == len(messages)
        assert sorted(m.text for m in history) == sorted(m.text for m in messages)
        assert len({id(m) for m in history}) == len(messages)

    @pytest.mark.asyncio
    async def test_concurrent_reads_see_whole_history(self, store):
        """Readers racing writers only ever see a prefix of the final order."""
        messages = [make_message(f"m{i}") for i in range(50)]

        async def writer():
            for m in messages:
                await store.insert("lobby", m)
                await asyncio.sleep(0)

        async def reader():
            seen = []
            for _ in range(50):
                seen.append(await store.get("lobby"))
                await asyncio.sleep(0)
            return seen

        _, snapshots = await asyncio.gather(writer(), reader())
        for snap in snapshots:
            assert snap == messages[:len(snap)]

    @pytest.mark.asyncio
    async def test_stores_are_independent(self):
        """Two store instances share no state."""
        first, second = MessageStore(), MessageStore()
        await first.insert("lobby", make_message("hi"))

        assert await second.get("lobby") == []


class TestMessage:
    def test_message_is_immutable(self):
        msg = make_message("hi")
        with pytest.raises(Exception):
            msg.text = "changed"

    def test_date_serialises_as_utc_iso(self):
        data = make_message("hi").model_dump(mode="json")
        assert set(data) == {"text", "user", "date"}
        assert data["date"].endswith("Z")
        assert "T" in data["date"]
