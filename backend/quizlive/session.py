import logging
from typing import Any, Callable, Dict, Optional

from .errors import DuplicatePlayerError, NoCapacityError, ProtocolError, QuizLiveError
from .models import Player
from .transport import Connection, decode_message, make_message


logger = logging.getLogger(__name__)


class ConnectionContext:
    """What the coordinator knows about one connection."""

    def __init__(self, connection: Connection):
        self.connection = connection
        self.room = None
        self.is_host = False
        self.player_id = None

    def clear(self) -> None:
        self.room = None
        self.is_host = False
        self.player_id = None


def _require_int(data: Dict[str, Any], field: str) -> int:
    value = data.get(field)
    # bool is an int subclass but never a valid score
    if isinstance(value, bool) or not isinstance(value, int):
        raise ProtocolError(f'{field} must be an integer')
    return value


def _require_present(data: Dict[str, Any], field: str) -> Any:
    value = data.get(field)
    if value is None:
        raise ProtocolError(f'{field} is required')
    return value


def _player_from_payload(payload: Any) -> Player:
    if not isinstance(payload, dict):
        raise ProtocolError('player is required')
    player_id = _require_present(payload, 'id')
    score = payload.get('score', 0)
    if isinstance(score, bool) or not isinstance(score, int):
        score = 0
    return Player(
        player_id,
        name=payload.get('name'),
        school=payload.get('school'),
        city=payload.get('city'),
        score=score,
    )


class SessionCoordinator:
    """Interprets inbound messages, mutates rooms and cleans up on close.

    Every entry point runs under the scheduler's lock, which timer callbacks
    share, so one event is fully handled before the next one starts.
    """

    def __init__(self, directory, scheduler):
        self.directory = directory
        self.scheduler = scheduler
        self._contexts: Dict[str, ConnectionContext] = {}
        self._handlers: Dict[str, Callable[[ConnectionContext, Dict[str, Any]], None]] = {
            'create_room': self._create_room,
            'join_game': self._join_game,
            'start_game': self._start_game,
            'answer_submitted': self._answer_submitted,
            'player_finished': self._player_finished,
            'restart_game': self._restart_game,
        }

    def context_for(self, sid: str) -> Optional[ConnectionContext]:
        return self._contexts.get(sid)

    # ---- connection lifecycle ----

    def connect(self, connection: Connection) -> ConnectionContext:
        with self.scheduler.lock:
            ctx = ConnectionContext(connection)
            self._contexts[connection.sid] = ctx
            return ctx

    def disconnect(self, sid: str) -> None:
        with self.scheduler.lock:
            ctx = self._contexts.pop(sid, None)
            if ctx is None:
                return
            ctx.connection.close()
            self._release(ctx)

    def _release(self, ctx: ConnectionContext) -> None:
        room = ctx.room
        if room is None:
            return
        if ctx.is_host:
            # Timers stop before the room leaves the directory
            room.close()
            if self.directory.get(room.code) is room:
                self.directory.remove(room.code)
            logger.info(f"[room-deleted] room={room.code} host disconnected")
        elif ctx.player_id is not None and self.directory.get(room.code) is room:
            room.remove_member(ctx.player_id)
            logger.info(f"[player-left] room={room.code} player={ctx.player_id!r}")
        ctx.clear()

    # ---- dispatch ----

    def handle_message(self, sid: str, raw: Any) -> None:
        with self.scheduler.lock:
            ctx = self._contexts.get(sid)
            if ctx is None:
                return
            try:
                data = decode_message(raw)
                handler = self._handlers.get(data['type'])
                if handler is None:
                    logger.debug(f"[ignored] sid={sid} type={data['type']}")
                    return
                logger.debug(f"[received] sid={sid} type={data['type']}")
                handler(ctx, data)
            except QuizLiveError as exc:
                logger.info(f"[request-failed] sid={sid} kind={type(exc).__name__} error={exc.message}")
                self._reply_error(ctx, exc.message)

    def _reply(self, ctx: ConnectionContext, message_type: str, data: Dict[str, Any] = None) -> None:
        if not ctx.connection.open:
            return
        ctx.connection.send(make_message(message_type, data))

    def _reply_error(self, ctx: ConnectionContext, message: str) -> None:
        self._reply(ctx, 'error', {'message': message})

    def _current_room(self, ctx: ConnectionContext, host_only: bool = False):
        """Resolve the connection's live room, or None if there is nothing to act on."""
        room = ctx.room
        if room is None:
            return None
        if self.directory.get(room.code) is not room:
            # The host left and the room is gone
            ctx.clear()
            return None
        if host_only and not ctx.is_host:
            return None
        return room

    # ---- handlers ----

    def _create_room(self, ctx: ConnectionContext, data: Dict[str, Any]) -> None:
        self._release(ctx)
        room = self.directory.create()
        room.set_host(ctx.connection)
        ctx.room = room
        ctx.is_host = True
        logger.info(f"[room-created] room={room.code} host={ctx.connection.sid}")
        self._reply(ctx, 'room_created', {'roomCode': room.code})

    def _join_game(self, ctx: ConnectionContext, data: Dict[str, Any]) -> None:
        player = _player_from_payload(data.get('player'))
        # A rejected join must leave every room untouched
        hosted = ctx.room if ctx.is_host else None
        room = self.directory.find_open(exclude=hosted)
        if room is None:
            raise NoCapacityError('No available rooms found')
        rejoining = room is ctx.room and not ctx.is_host and ctx.player_id == player.id
        if room.has_member(player.id) and not rejoining:
            raise DuplicatePlayerError('Player id already in room')
        self._release(ctx)
        ctx.room = room
        ctx.player_id = player.id
        room.add_member(player, ctx.connection)
        logger.info(f"[room-joined] room={room.code} player={player.id!r} name={player.name!r}")

    def _start_game(self, ctx: ConnectionContext, data: Dict[str, Any]) -> None:
        room = self._current_room(ctx, host_only=True)
        if room is None:
            logger.debug(f"[no-target] sid={ctx.connection.sid} type=start_game")
            return
        room.start_game()

    def _answer_submitted(self, ctx: ConnectionContext, data: Dict[str, Any]) -> None:
        player_id = _require_present(data, 'playerId')
        is_correct = data.get('isCorrect', False)
        if not isinstance(is_correct, bool):
            raise ProtocolError('isCorrect must be a boolean')
        new_score = _require_int(data, 'newScore') if is_correct else None
        room = self._current_room(ctx)
        if room is None or not is_correct:
            return
        room.update_score(player_id, new_score)

    def _player_finished(self, ctx: ConnectionContext, data: Dict[str, Any]) -> None:
        player_id = _require_present(data, 'playerId')
        final_score = _require_int(data, 'finalScore')
        room = self._current_room(ctx)
        if room is None:
            logger.debug(f"[no-target] sid={ctx.connection.sid} type=player_finished")
            return
        room.mark_finished(player_id, final_score)

    def _restart_game(self, ctx: ConnectionContext, data: Dict[str, Any]) -> None:
        room = self._current_room(ctx, host_only=True)
        if room is None:
            logger.debug(f"[no-target] sid={ctx.connection.sid} type=restart_game")
            return
        room.restart_game()

    def shutdown(self) -> None:
        """Stop every room's timers and forget all rooms."""
        with self.scheduler.lock:
            self.directory.clear()
            self._contexts.clear()
