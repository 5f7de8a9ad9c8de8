from typing import Any, Dict

from tapminer.exceptions import TransportError


class SocketIOTransport:
    """Delivers records to Socket.IO sessions.

    Each record goes out as an event named after its ``type`` field, with the
    whole record as payload.
    """

    def __init__(self, socketio, namespace: str = '/ws'):
        self.socketio = socketio
        self.namespace = namespace

    def send(self, handle: str, event: Dict[str, Any]) -> None:
        try:
            self.socketio.emit(event['type'], event, to=handle, namespace=self.namespace)
        except Exception as exc:
            raise TransportError(handle, exc) from exc

    def close(self, handle: str) -> None:
        try:
            self.socketio.server.disconnect(handle, namespace=self.namespace)
        except Exception as exc:
            raise TransportError(handle, exc) from exc

    def is_connected(self, handle: str) -> bool:
        """Whether Engine.IO still holds the session, i.e. it keeps answering pings."""
        return bool(self.socketio.server.manager.is_connected(handle, self.namespace))
