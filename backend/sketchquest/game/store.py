from __future__ import annotations

import logging
import time
from threading import RLock

from .errors import GameError
from .models import Player, Room


logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class SessionStore:
    """In-memory registry of rooms and their players, keyed by room code.

    Pure data operations: no I/O, no timers. ``get_room`` and friends hand
    out the live records; the round coordinator is their only writer.
    Use ``roster``/``standings`` for copies that are safe to send out.
    Operations on an unknown room are no-ops.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._rooms: dict[str, Room] = {}

    def create_room(
        self,
        code: str,
        host_id: str,
        name: str = "",
        max_rounds: int = 3,
        max_players: int = 5,
    ) -> Room:
        with self._lock:
            if code in self._rooms:
                raise GameError("Room already exists")
            room = Room(
                code=code,
                host_id=host_id,
                name=name,
                max_rounds=max_rounds,
                max_players=max_players,
                created_at_ms=now_ms(),
            )
            self._rooms[code] = room
            logger.info("room created room=%s host=%s rounds=%d players=%d", code, host_id or "-", max_rounds, max_players)
            return room

    def get_room(self, code: str) -> Room | None:
        with self._lock:
            return self._rooms.get(code)

    def has_room(self, code: str) -> bool:
        with self._lock:
            return code in self._rooms

    def delete_room(self, code: str) -> bool:
        with self._lock:
            if code in self._rooms:
                del self._rooms[code]
                logger.info("room deleted room=%s", code)
                return True
            return False

    def list_rooms(self) -> list[Room]:
        with self._lock:
            return list(self._rooms.values())

    def rooms_for_player(self, player_id: str) -> list[str]:
        with self._lock:
            return [code for code, room in self._rooms.items() if room.find_player(player_id) is not None]

    def add_player(self, code: str, player: Player) -> bool:
        """Returns False when the room is missing or full."""
        with self._lock:
            room = self._rooms.get(code)
            if room is None:
                return False
            if room.find_player(player.id) is not None:
                return True
            if len(room.players) >= room.max_players:
                return False

            room.players.append(player)
            if not room.host_id:
                room.host_id = player.id
            return True

    def remove_player(self, code: str, player_id: str) -> bool:
        """Returns True when the room was deleted because it became empty."""
        with self._lock:
            room = self._rooms.get(code)
            if room is None:
                return False

            room.players = [p for p in room.players if p.id != player_id]
            room.guessed_players.discard(player_id)

            if not room.players:
                return self.delete_room(code)
            return False

    def select_drawer(self, code: str) -> Player | None:
        with self._lock:
            room = self._rooms.get(code)
            if room is None or not room.players:
                return None

            index = room.round % len(room.players)
            self._apply_drawer(room, index)
            return room.players[index]

    def advance_round(self, code: str, word: str, duration_sec: int) -> Room | None:
        with self._lock:
            room = self._rooms.get(code)
            if room is None or not room.players:
                return None

            room.round += 1
            room.current_word = word
            room.round_ends_at_ms = now_ms() + duration_sec * 1000
            room.guessed_players = set()

            self._apply_drawer(room, (room.round - 1) % len(room.players))
            return room

    @staticmethod
    def _apply_drawer(room: Room, index: int) -> None:
        for i, p in enumerate(room.players):
            p.is_drawer = i == index
            p.has_guessed = False

    def clear_drawer(self, code: str) -> None:
        with self._lock:
            room = self._rooms.get(code)
            if room is None:
                return
            for p in room.players:
                p.is_drawer = False

    def award_points(self, code: str, player_id: str, points: int) -> bool:
        """Credit a correct guess. At most once per player per round."""
        with self._lock:
            room = self._rooms.get(code)
            if room is None:
                return False

            player = room.find_player(player_id)
            if player is None or player.has_guessed:
                return False

            player.score += points
            player.has_guessed = True
            room.guessed_players.add(player_id)
            return True

    def add_bonus(self, code: str, player_id: str, points: int) -> bool:
        with self._lock:
            room = self._rooms.get(code)
            if room is None:
                return False
            player = room.find_player(player_id)
            if player is None:
                return False
            player.score += points
            return True

    def all_non_drawers_guessed(self, code: str) -> bool:
        with self._lock:
            room = self._rooms.get(code)
            if room is None:
                return False
            return all(p.has_guessed for p in room.players if not p.is_drawer)

    def non_drawer_count(self, code: str) -> int:
        with self._lock:
            room = self._rooms.get(code)
            if room is None:
                return 0
            return sum(1 for p in room.players if not p.is_drawer)

    def is_host(self, code: str, player_id: str) -> bool:
        with self._lock:
            room = self._rooms.get(code)
            return room is not None and bool(player_id) and room.host_id == player_id

    def drawer(self, code: str) -> Player | None:
        with self._lock:
            room = self._rooms.get(code)
            if room is None:
                return None
            return next((p for p in room.players if p.is_drawer), None)

    def roster(self, code: str) -> list[dict]:
        with self._lock:
            room = self._rooms.get(code)
            if room is None:
                return []
            return [p.to_dict() for p in room.players]

    def standings(self, code: str) -> list[dict]:
        # sorted() is stable, so equal scores keep join order.
        return sorted(self.roster(code), key=lambda p: p["score"], reverse=True)
