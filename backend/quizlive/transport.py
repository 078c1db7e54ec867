"""Thin adapter between Socket.IO clients and the room layer.

Rooms never talk to Socket.IO directly: they hold ``Connection`` objects and
only ever check ``open`` before calling ``send``.
"""

import json
from typing import Any, Callable, Dict

from .errors import ProtocolError


class Connection:
    """A borrowed handle on one connected client."""

    def __init__(self, sid: str, namespace: str, send_fn: Callable[..., Any]):
        self.sid = sid
        self.namespace = namespace
        self._send_fn = send_fn
        self.open = True

    def send(self, message: Dict[str, Any]) -> None:
        self._send_fn(message, to=self.sid, namespace=self.namespace)

    def close(self) -> None:
        self.open = False

    def __repr__(self):
        state = 'open' if self.open else 'closed'
        return f"<Connection {self.sid} {state}>"


def decode_message(raw: Any) -> Dict[str, Any]:
    """Parse an inbound frame into a dict carrying a string ``type``."""
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode('utf-8')
        except UnicodeDecodeError:
            raise ProtocolError('Invalid message format')
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            raise ProtocolError('Invalid message format')
    if not isinstance(raw, dict):
        raise ProtocolError('Invalid message format')
    message_type = raw.get('type')
    if not isinstance(message_type, str) or not message_type:
        raise ProtocolError('Invalid message format')
    return raw


def make_message(message_type: str, data: Dict[str, Any] = None) -> Dict[str, Any]:
    """Build an outbound message with ``type`` merged at the top level."""
    return {'type': message_type, **(data or {})}
