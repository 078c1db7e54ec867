from flask import current_app, request

from quizlive import socketio
from quizlive.transport import Connection


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _coordinator():
    return current_app.extensions['quizlive']


def handle_connect(auth=None):
    namespace = current_app.config.get('SOCKETIO_NAMESPACE', '/ws')
    _coordinator().connect(Connection(_get_sid(), namespace, socketio.send))


def handle_disconnect(reason=None):
    _coordinator().disconnect(_get_sid())


def handle_message(data):
    _coordinator().handle_message(_get_sid(), data)


def register_socketio_handlers(namespace: str = '/ws') -> None:
    """Register Socket.IO event handlers.

    Clients speak plain ``message`` frames whose ``type`` field selects the
    action, so only the connection lifecycle and ``message`` are bound.
    """
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('message', handle_message, namespace=namespace)
