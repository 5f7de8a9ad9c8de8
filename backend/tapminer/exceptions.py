"""Exceptions raised at the edges of the game server.

The round logic itself never raises for well-typed input; these cover the
transport side (bad inbound records, failed sends).
"""


class TapMinerError(Exception):
    """Base class for all game server errors"""
    pass


class MalformedMessage(TapMinerError):
    """Inbound record could not be decoded or is missing a required field"""
    def __init__(self, reason, payload=None):
        self.reason = reason
        self.payload = payload
        super().__init__(f"Malformed message: {reason}")


class TransportError(TapMinerError):
    """Delivery to a single connection failed"""
    def __init__(self, handle, cause=None):
        self.handle = handle
        self.cause = cause
        super().__init__(f"Transport failure for connection {handle}: {cause}")
