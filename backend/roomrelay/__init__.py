"""Room Relay: real-time room-based message relay over Socket.IO."""

__version__ = "0.1.0"
