"""Errors raised by the session layer and turned into ``error`` replies."""


class QuizLiveError(Exception):
    """Base class for errors that are reported back to the offending connection."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ProtocolError(QuizLiveError):
    """Inbound payload could not be parsed or lacks a required field."""


class NoCapacityError(QuizLiveError):
    """No room is available to take a new player."""


class RoomCodeExhaustedError(QuizLiveError):
    """Every generated room code collided with an existing room."""


class DuplicatePlayerError(QuizLiveError):
    """A player with the same id is already a member of the room."""
