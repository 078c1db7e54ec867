import logging
from typing import Any, Dict, List, Optional

from .questions import QUESTION_BANK
from .transport import make_message


logger = logging.getLogger(__name__)

# Room phases
LOBBY = 'lobby'
RUNNING = 'running'
ENDED = 'ended'


class Player:
    def __init__(self, id, name=None, school=None, city=None, score=0,
                 answered_questions=0, finished=False, connection=None):
        self.id = id
        self.name = name
        self.school = school
        self.city = city
        self.score = score
        self.answered_questions = answered_questions
        self.finished = finished
        self.connection = connection

    def reset(self) -> None:
        self.score = 0
        self.answered_questions = 0
        self.finished = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'school': self.school,
            'city': self.city,
            'score': self.score,
            'answeredQuestions': self.answered_questions,
            'finished': self.finished,
        }

    def __repr__(self):
        return f"<Player {self.id!r} score={self.score} finished={self.finished}>"


class Room:
    """One quiz session: a host, its players, the countdown and the fan-out.

    Phases move lobby -> running -> ended -> lobby (restart). The room owns
    two deferred resources, the per-tick countdown and the delayed end that
    follows the last player finishing; both are released through
    ``_release_timers`` on every exit from ``running`` and on ``close``.
    """

    def __init__(self, code: str, scheduler, duration: int = 300, tick: float = 1,
                 finish_grace: float = 2, questions=QUESTION_BANK):
        self.code = code
        self.host = None
        self.members: List[Player] = []
        self.phase = LOBBY
        self.duration = duration
        self.time_remaining = duration
        self.questions = questions
        self.final_standings: List[Player] = []
        self._scheduler = scheduler
        self._tick_interval = tick
        self._finish_grace = finish_grace
        self._timer = None
        self._end_timer = None
        # Bumped on every start so a delayed end from an earlier game is stale
        self._round = 0

    @property
    def timer_active(self) -> bool:
        return self._timer is not None and self._timer.active

    @property
    def end_pending(self) -> bool:
        return self._end_timer is not None and self._end_timer.active

    # ---- membership ----

    def set_host(self, connection) -> None:
        self.host = connection

    def find_member(self, player_id) -> Optional[Player]:
        return next((p for p in self.members if p.id == player_id), None)

    def has_member(self, player_id) -> bool:
        return self.find_member(player_id) is not None

    def add_member(self, player: Player, connection) -> None:
        player.connection = connection
        self.members.append(player)
        self.broadcast_to_all('player_joined', {'players': self.players_data()})

    def remove_member(self, player_id) -> None:
        self.members = [p for p in self.members if p.id != player_id]
        self.broadcast_to_all('player_joined', {'players': self.players_data()})

    # ---- game flow ----

    def start_game(self) -> bool:
        if self.phase != LOBBY:
            logger.info(f"[game-start-skip] room={self.code} phase={self.phase}")
            return False
        self.phase = RUNNING
        self._round += 1
        self.time_remaining = self.duration
        self._timer = self._scheduler.call_every(self._tick_interval, self._tick)
        logger.info(f"[game-start] room={self.code} players={len(self.members)} duration={self.duration}s")
        self.broadcast_to_all('game_started', {})
        return True

    def _tick(self) -> None:
        if self.phase != RUNNING:
            return
        self.time_remaining -= 1
        self.broadcast_to_host('timer_update', {'timeLeft': self.time_remaining})
        if self.time_remaining <= 0:
            logger.info(f"[timer-fire] room={self.code} countdown expired")
            self.end_game()

    def update_score(self, player_id, new_score: int) -> bool:
        if self.phase != RUNNING:
            return False
        player = self.find_member(player_id)
        if player is None:
            return False
        player.score = new_score
        self.broadcast_to_host('leaderboard_update', {'players': self.players_data()})
        return True

    def mark_finished(self, player_id, final_score: int) -> bool:
        """Record a player's final score; returns True if this scheduled the end."""
        if self.phase != RUNNING:
            return False
        player = self.find_member(player_id)
        if player is None:
            return False
        player.finished = True
        player.score = final_score

        # An empty roster is never "all finished"
        if not self.members or not all(p.finished for p in self.members):
            return False
        if self.end_pending:
            return False
        self._end_timer = self._scheduler.call_later(self._finish_grace, self._end_if_current, self._round)
        logger.info(f"[game-end-scheduled] room={self.code} delay={self._finish_grace}s")
        return True

    def _end_if_current(self, round_id: int) -> None:
        if self.phase != RUNNING or round_id != self._round:
            logger.info(f"[timer-abort] room={self.code} stale end phase={self.phase}")
            return
        self.end_game()

    def end_game(self) -> bool:
        if self.phase != RUNNING:
            return False
        self.phase = ENDED
        self._release_timers()
        self.final_standings = self.standings()
        logger.info(f"[game-end] room={self.code} players={len(self.members)}")
        self.broadcast_to_all('game_ended', {
            'finalResults': {
                'players': [p.to_dict() for p in self.final_standings],
            }
        })
        return True

    def restart_game(self) -> bool:
        if self.phase == LOBBY:
            return False
        self._release_timers()
        self.phase = LOBBY
        self.time_remaining = self.duration
        self.final_standings = []
        for player in self.members:
            player.reset()
        logger.info(f"[game-restart] room={self.code}")
        return True

    def close(self) -> None:
        """Release every deferred resource; called before the room is dropped."""
        self._release_timers()

    def _release_timers(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._end_timer is not None:
            self._end_timer.cancel()
            self._end_timer = None

    # ---- views ----

    def standings(self) -> List[Player]:
        # sorted() is stable, so ties keep join order
        return sorted(self.members, key=lambda p: p.score, reverse=True)

    def players_data(self) -> List[Dict[str, Any]]:
        return [p.to_dict() for p in self.members]

    # ---- fan-out ----

    def broadcast_to_all(self, message_type: str, data: Dict[str, Any] = None) -> None:
        message = make_message(message_type, data)
        self._deliver(self.host, message)
        for player in self.members:
            self._deliver(player.connection, message)

    def broadcast_to_host(self, message_type: str, data: Dict[str, Any] = None) -> None:
        self._deliver(self.host, make_message(message_type, data))

    def broadcast_to_members(self, message_type: str, data: Dict[str, Any] = None) -> None:
        message = make_message(message_type, data)
        for player in self.members:
            self._deliver(player.connection, message)

    def _deliver(self, connection, message: Dict[str, Any]) -> None:
        if connection is None or not connection.open:
            return
        try:
            connection.send(message)
        except Exception as exc:
            logger.warning(f"[send-failed] room={self.code} to={connection!r} type={message['type']} error={exc}")

    def __repr__(self):
        return f"<Room {self.code} phase={self.phase} players={len(self.members)}>"
