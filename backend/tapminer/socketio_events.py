from flask import current_app, request

from tapminer import get_game, socketio
from tapminer import messages


def _game():
    return get_game(current_app)


def _identity():
    # request.sid exists in Socket.IO handler context
    return _game().registry.identity_for(request.sid)  # type: ignore


def handle_connect(auth=None):
    _game().handle_connect(request.sid)  # type: ignore


def handle_disconnect(reason=None):
    identity = _identity()
    if identity is None:
        # already cleaned up by the heartbeat sweep
        return
    _game().handle_close(identity)


def _dispatch(data, expected_type=None):
    identity = _identity()
    if identity is None:
        return
    _game().handle_message(identity, data, expected_type)


def handle_join(data=None):
    _dispatch(data, messages.JOIN)


def handle_tap(data=None):
    _dispatch(data, messages.TAP)


def handle_message(data=None):
    """Generic typed record: ``{"type": "join" | "tap", ...}``."""
    _dispatch(data)


def register_socketio_handlers(namespace: str = '/ws') -> None:
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('join', handle_join, namespace=namespace)
    socketio.on_event('tap', handle_tap, namespace=namespace)
    socketio.on_event('message', handle_message, namespace=namespace)
