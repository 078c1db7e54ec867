import logging
import random
import string
from typing import Callable, Dict, List, Optional

from quizlive.errors import RoomCodeExhaustedError
from quizlive.models import LOBBY, Room


logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_room_code(length: int = 6) -> str:
    """Generate a short base-36 room code."""
    return ''.join(random.choices(CODE_ALPHABET, k=length))


class RoomDirectory:
    """Process-wide mapping from room code to Room.

    The directory owns room lifetimes. Callers must ``close`` a room (or use
    ``discard``) before dropping it so no timer outlives its room.
    """

    def __init__(self, scheduler, duration: int = 300, tick: float = 1, finish_grace: float = 2,
                 code_length: int = 6, max_attempts: int = 20,
                 code_factory: Callable[[int], str] = generate_room_code):
        self._rooms: Dict[str, Room] = {}
        self._scheduler = scheduler
        self._room_settings = {'duration': duration, 'tick': tick, 'finish_grace': finish_grace}
        self._code_length = code_length
        self._max_attempts = max_attempts
        self._code_factory = code_factory

    def __len__(self):
        return len(self._rooms)

    def __contains__(self, code):
        return code in self._rooms

    def create(self) -> Room:
        for _ in range(self._max_attempts):
            code = self._code_factory(self._code_length)
            if code in self._rooms:
                logger.info(f"[code-collision] code={code}")
                continue
            room = Room(code, self._scheduler, **self._room_settings)
            self._rooms[code] = room
            return room
        raise RoomCodeExhaustedError('Could not allocate a room code')

    def get(self, code) -> Optional[Room]:
        return self._rooms.get(code)

    def find_open(self, exclude: Optional[Room] = None) -> Optional[Room]:
        """Return a room still in the lobby, oldest first, or None.

        Matchmaking is not keyed by code: with several open rooms the
        joiner lands in whichever was created first. ``exclude`` skips one
        room, e.g. the one the joiner currently hosts.
        """
        return next((room for room in self._rooms.values()
                     if room.phase == LOBBY and room is not exclude), None)

    def open_rooms(self) -> List[Room]:
        return [room for room in self._rooms.values() if room.phase == LOBBY]

    def remove(self, code) -> Optional[Room]:
        return self._rooms.pop(code, None)

    def discard(self, code) -> None:
        room = self.remove(code)
        if room is not None:
            room.close()

    def clear(self) -> None:
        for code in list(self._rooms):
            self.discard(code)
