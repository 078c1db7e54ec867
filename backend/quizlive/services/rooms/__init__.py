"""Room services: the in-memory directory, matchmaking and timers.

Transport concerns stay in ``quizlive.socketio_events``; this package only
knows about rooms, players and scheduled work.
"""

from .directory import RoomDirectory, generate_room_code
from .timers import BackgroundScheduler, TimerHandle

__all__ = ['RoomDirectory', 'generate_room_code', 'BackgroundScheduler', 'TimerHandle']
