"""Room relay core: message store, relay protocol and Socket.IO transport."""
