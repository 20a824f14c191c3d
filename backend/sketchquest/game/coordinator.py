from __future__ import annotations

import itertools
import logging
import re
import secrets
import string
from threading import RLock

from ..config import Config
from ..realtime import events
from .errors import GameError
from .models import Player, Room
from .store import SessionStore, now_ms
from .words import WordSupplier, pick_words


logger = logging.getLogger(__name__)


GUESS_POINTS = 10
DRAWER_BONUS_POINTS = 5

ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits


def normalize_room_code(raw) -> str:
    return str(raw or "").strip().upper()


def _validate_name(name: str) -> bool:
    n = (name or "").strip()
    if not n:
        return False
    if len(n) > 16:
        return False
    if "<" in n or ">" in n:
        return False
    for ch in n:
        if ord(ch) < 32:
            return False
    return True


def _normalize_guess(text: str) -> str:
    return text.strip().lower()


class RoundCoordinator:
    """Drives each room through lobby -> word_offer -> round_active -> round_end.

    Every mutation of a room happens under that room's lock. Deadline and
    grace-period workers run as Socket.IO background tasks and carry the
    room token that was current when they were scheduled; any transition
    that ends a round or drops a room issues a new token, which turns the
    outstanding workers into no-ops.
    """

    def __init__(
        self,
        store: SessionStore,
        socketio,
        words: WordSupplier,
        config=Config,
    ) -> None:
        self.store = store
        self.socketio = socketio
        self.words = words
        self.config = config

        self._locks_guard = RLock()
        self._locks: dict[str, RLock] = {}
        self._tokens: dict[str, int] = {}
        self._token_counter = itertools.count(1)

    # -- plumbing ---------------------------------------------------------

    def _cfg(self, key: str):
        return getattr(self.config, key, getattr(Config, key))

    def _room_lock(self, code: str) -> RLock:
        if not self.store.has_room(code):
            # No lock entries for codes that were never (or are no longer) live.
            raise GameError("Room not found")
        return self._lock_entry(code)

    def _lock_entry(self, code: str) -> RLock:
        with self._locks_guard:
            lock = self._locks.get(code)
            if lock is None:
                lock = self._locks[code] = RLock()
            return lock

    def _renew_token(self, code: str) -> int:
        with self._locks_guard:
            token = next(self._token_counter)
            self._tokens[code] = token
            return token

    def _token_is_current(self, code: str, token: int) -> bool:
        with self._locks_guard:
            return self._tokens.get(code) == token

    def _forget(self, code: str) -> None:
        with self._locks_guard:
            self._tokens.pop(code, None)
            self._locks.pop(code, None)

    def _forget_if_gone(self, code: str) -> None:
        with self._locks_guard:
            if not self.store.has_room(code):
                self._tokens.pop(code, None)
                self._locks.pop(code, None)

    def _emit(self, event: str, data, to: str, **kwargs) -> None:
        self.socketio.emit(event, data, to=to, **kwargs)

    def _broadcast_players(self, code: str) -> None:
        if self.store.has_room(code):
            self._emit(events.PLAYERS, self.store.roster(code), to=code)

    def _require_room(self, code: str) -> Room:
        room = self.store.get_room(code)
        if room is None:
            raise GameError("Room not found")
        return room

    def _fetch_words(self) -> list[str]:
        try:
            words = self.words.list_words()
        except Exception as exc:
            logger.warning("word supplier failed: %s", exc)
            raise GameError("No words available") from exc

        options = pick_words(list(words or []), self._cfg("WORD_CHOICES_COUNT"))
        if not options:
            raise GameError("No words available")
        return options

    def _bounded(self, raw, default: int, limit: int) -> int:
        if raw is None or raw == "":
            return default
        try:
            value = int(raw)
        except (TypeError, ValueError) as exc:
            raise GameError("Invalid settings") from exc
        if value < 1 or value > limit:
            raise GameError("Invalid settings")
        return value

    def generate_room_code(self) -> str:
        length = self._cfg("ROOM_CODE_LENGTH")
        while True:
            code = "".join(secrets.choice(ROOM_CODE_ALPHABET) for _ in range(length))
            if not self.store.has_room(code):
                return code

    # -- membership -------------------------------------------------------

    def create_room(
        self,
        player_id: str,
        name: str,
        max_players=None,
        num_rounds=None,
        avatar: str = "",
    ) -> dict:
        name = (name or "").strip()
        if not _validate_name(name):
            raise GameError("Invalid name")

        max_players = self._bounded(max_players, self._cfg("DEFAULT_MAX_PLAYERS"), self._cfg("MAX_PLAYERS_LIMIT"))
        max_rounds = self._bounded(num_rounds, self._cfg("DEFAULT_MAX_ROUNDS"), self._cfg("MAX_ROUNDS_LIMIT"))

        while True:
            code = self.generate_room_code()
            with self._lock_entry(code):
                try:
                    self.store.create_room(code, player_id, name, max_rounds, max_players)
                except GameError:
                    # Lost a race for the code; draw another.
                    continue
                self.store.add_player(code, Player(id=player_id, name=name, avatar=avatar))
                return {"room": code, "playerId": player_id}

    def join_room(self, code: str, player_id: str, name: str, avatar: str = "") -> dict:
        code = normalize_room_code(code)
        if not self.store.has_room(code) and not (
            self._cfg("AUTO_CREATE_ROOMS_ON_JOIN") and re.fullmatch(r"[A-Z0-9]{1,16}", code)
        ):
            raise GameError("Room not found")

        with self._lock_entry(code):
            room = self.store.get_room(code)
            if room is None and not self._cfg("AUTO_CREATE_ROOMS_ON_JOIN"):
                # Emptied after the check above.
                self._forget_if_gone(code)
                raise GameError("Room not found")
            if room is not None and room.find_player(player_id) is not None:
                self._broadcast_players(code)
                return {"ok": True, "room": code, "hostId": room.host_id}

            name = (name or "").strip()
            if not _validate_name(name):
                raise GameError("Invalid name")

            if room is None:
                # Auto-create: the joiner becomes host.
                room = self.store.create_room(
                    code,
                    player_id,
                    name,
                    self._cfg("DEFAULT_MAX_ROUNDS"),
                    self._cfg("DEFAULT_MAX_PLAYERS"),
                )

            if not self.store.add_player(code, Player(id=player_id, name=name, avatar=avatar)):
                raise GameError("Room full")

            logger.debug("player joined room=%s player=%s", code, player_id)
            self._broadcast_players(code)
            if room.state == "word_offer":
                self._refresh_offer(code)
            return {"ok": True, "room": code, "hostId": room.host_id}

    def leave_room(self, code: str, player_id: str) -> bool:
        code = normalize_room_code(code)
        if not self.store.has_room(code):
            return False
        with self._lock_entry(code):
            room = self.store.get_room(code)
            if room is None:
                self._forget_if_gone(code)
                return False
            player = room.find_player(player_id)
            if player is None:
                return False

            was_drawer = player.is_drawer
            if self.store.remove_player(code, player_id):
                # Room is gone: pending timers must not fire into it.
                self._forget(code)
                logger.info("room emptied room=%s", code)
                return True

            if room.state == "lobby" and room.host_id == player_id:
                room.host_id = room.players[0].id

            self._broadcast_players(code)

            if room.state == "round_active":
                if was_drawer:
                    logger.info("drawer left room=%s round=%d", code, room.round)
                    self._end_round(code)
                elif self._round_is_complete(code):
                    self._end_round(code)
            elif room.state == "word_offer":
                self._refresh_offer(code)
            return True

    def disconnect(self, player_id: str) -> list[str]:
        codes = self.store.rooms_for_player(player_id)
        for code in codes:
            self.leave_room(code, player_id)
        return codes

    # -- round lifecycle --------------------------------------------------

    def _check_can_start(self, code: str, player_id: str) -> Room:
        room = self._require_room(code)
        if not self.store.is_host(code, player_id):
            raise GameError("Only host can start")
        if room.state == "game_over" or room.round >= room.max_rounds:
            raise GameError("Game already finished")
        if room.state == "round_active":
            raise GameError("Round in progress")
        return room

    def start_round(self, code: str, player_id: str) -> dict:
        code = normalize_room_code(code)
        self._check_can_start(code, player_id)
        # Fetched outside the room lock.
        options = self._fetch_words()

        with self._room_lock(code):
            self._check_can_start(code, player_id)
            # Supersedes a pending grace-period offer.
            self._renew_token(code)
            self._offer_words(code, options)
        return {"ok": True}

    def _offer_words(self, code: str, options: list[str]) -> Player:
        room = self._require_room(code)
        drawer = self.store.select_drawer(code)
        if drawer is None:
            raise GameError("No players")

        room.state = "word_offer"
        room.word_choices = list(options)
        room.pending_drawer_id = drawer.id
        room.current_word = None
        room.round_ends_at_ms = None

        logger.info("word offer room=%s next_round=%d drawer=%s", code, room.round + 1, drawer.id)
        self._broadcast_players(code)
        self._emit(events.CHOOSE_WORD, {"options": list(options)}, to=drawer.id)
        return drawer

    def _refresh_offer(self, code: str) -> None:
        """Re-preview the drawer after the roster changed during a word offer."""
        room = self.store.get_room(code)
        if room is None or room.state != "word_offer":
            return

        drawer = self.store.select_drawer(code)
        if drawer is not None and drawer.id == room.pending_drawer_id:
            return

        try:
            self._offer_words(code, self._fetch_words())
        except GameError as exc:
            logger.error("could not re-offer words room=%s: %s", code, exc)
            self._return_to_lobby(code)

    def _return_to_lobby(self, code: str) -> None:
        room = self.store.get_room(code)
        if room is None:
            return
        room.state = "lobby"
        room.word_choices = []
        room.pending_drawer_id = None
        if room.find_player(room.host_id) is None and room.players:
            # The host left mid-game; back in the lobby the usual handover applies.
            room.host_id = room.players[0].id
        self.store.clear_drawer(code)
        self._broadcast_players(code)

    def choose_word(self, code: str, player_id: str, word: str) -> dict:
        code = normalize_room_code(code)
        with self._room_lock(code):
            room = self._require_room(code)
            if room.state != "word_offer":
                raise GameError("No word to choose")
            if player_id != room.pending_drawer_id:
                raise GameError("Not your turn to choose")

            chosen = str(word or "").strip()
            if chosen not in room.word_choices:
                raise GameError("Word was not offered")

            self.store.advance_round(code, chosen, self._cfg("ROUND_DURATION_SEC"))
            room.state = "round_active"
            room.word_choices = []
            room.pending_drawer_id = None

            drawer = self.store.drawer(code)
            drawer_id = drawer.id if drawer else None
            if drawer_id != player_id:
                logger.warning("drawer mismatch room=%s chooser=%s drawer=%s", code, player_id, drawer_id)

            logger.info("round started room=%s round=%d/%d drawer=%s", code, room.round, room.max_rounds, drawer_id)
            self._emit(
                events.ROUND_STARTED,
                {"round": room.round, "roundEndsAt": room.round_ends_at_ms, "drawerId": drawer_id},
                to=code,
            )
            self._broadcast_players(code)
            if drawer_id:
                self._emit(events.DRAWER_WORD, {"word": chosen}, to=drawer_id)

            self._arm_deadline(code, room)

            if self.store.non_drawer_count(code) == 0 and self._cfg("END_ROUND_WITHOUT_GUESSERS"):
                self._end_round(code)
        return {"ok": True}

    def guess(self, code: str, player_id: str, text) -> dict:
        code = normalize_room_code(code)
        text = str(text or "")
        with self._room_lock(code):
            room = self._require_room(code)
            player = room.find_player(player_id)
            if player is None:
                raise GameError("Not in room")
            if not text.strip():
                return {"correct": False}

            if room.state == "round_active" and room.current_word and _normalize_guess(text) == _normalize_guess(room.current_word):
                if player.is_drawer:
                    # Never echo the answer from the drawer.
                    return {"correct": False}

                if not self.store.award_points(code, player_id, GUESS_POINTS):
                    return {"correct": True}

                drawer = self.store.drawer(code)
                if drawer is not None:
                    self.store.add_bonus(code, drawer.id, DRAWER_BONUS_POINTS)

                logger.debug("correct guess room=%s round=%d player=%s", code, room.round, player_id)
                self._emit(events.CORRECT_GUESS, {"name": player.name, "word": room.current_word}, to=code)
                self._broadcast_players(code)

                if self._round_is_complete(code):
                    self._end_round(code)
                return {"correct": True}

            self._emit(events.CHAT_MESSAGE, {"name": player.name, "text": text}, to=code)
            return {"correct": False}

    def relay_drawing(self, code: str, player_id: str, data) -> bool:
        code = normalize_room_code(code)
        room = self.store.get_room(code)
        if room is None or room.state != "round_active":
            return False
        drawer = self.store.drawer(code)
        if drawer is None or drawer.id != player_id:
            return False
        self._emit(events.DRAWING_DATA, data, to=code, skip_sid=player_id)
        return True

    def _round_is_complete(self, code: str) -> bool:
        if self.store.non_drawer_count(code) == 0:
            return bool(self._cfg("END_ROUND_WITHOUT_GUESSERS"))
        return self.store.all_non_drawers_guessed(code)

    def _end_round(self, code: str) -> None:
        room = self.store.get_room(code)
        if room is None or room.state != "round_active":
            return

        token = self._renew_token(code)
        room.state = "round_end"
        room.round_ends_at_ms = None
        self.store.clear_drawer(code)
        self._broadcast_players(code)

        logger.info("round ended room=%s round=%d", code, room.round)
        self._emit(events.ROUND_END, {"round": room.round, "word": room.current_word}, to=code)

        if room.round >= room.max_rounds:
            room.state = "game_over"
            standings = self.store.standings(code)
            winner = standings[0] if standings else None
            logger.info("game over room=%s winner=%s", code, winner["id"] if winner else "-")
            self._emit(events.GAME_OVER, {"players": standings, "winner": winner}, to=code)
            return

        self._emit(events.NEXT_ROUND_STARTING, {"nextRound": room.round + 1}, to=code)
        self.socketio.start_background_task(
            self._next_round_worker, code, token, self._cfg("NEXT_ROUND_DELAY_SEC")
        )

    # -- timers -----------------------------------------------------------

    def _arm_deadline(self, code: str, room: Room) -> None:
        token = self._renew_token(code)
        ends_at = room.round_ends_at_ms
        delay_ms = max(0, (ends_at or 0) - now_ms())
        logger.debug("deadline armed room=%s round=%d in=%dms", code, room.round, delay_ms)
        self.socketio.start_background_task(self._deadline_worker, code, token, ends_at, delay_ms / 1000)

    def _run_if_current(self, code: str, token: int, action) -> None:
        """Run ``action(room)`` under the room lock unless ``token`` went stale."""
        if not self._token_is_current(code, token):
            logger.debug("stale timer ignored room=%s", code)
            return
        try:
            with self._room_lock(code):
                room = self.store.get_room(code)
                if room is None or not self._token_is_current(code, token):
                    logger.debug("stale timer ignored room=%s", code)
                    return
                action(room)
        except GameError:
            # Room deleted between the token check and the lock.
            logger.debug("timer fired for a deleted room room=%s", code)
        except Exception:
            logger.exception("timer handling failed room=%s", code)

    def _deadline_worker(self, code: str, token: int, ends_at: int | None, delay: float) -> None:
        self.socketio.sleep(delay)

        def expire(room: Room) -> None:
            if room.state != "round_active" or room.round_ends_at_ms != ends_at:
                return
            logger.info("deadline reached room=%s round=%d", code, room.round)
            self._end_round(code)

        self._run_if_current(code, token, expire)

    def _next_round_worker(self, code: str, token: int, delay: float) -> None:
        self.socketio.sleep(delay)
        if not self._token_is_current(code, token):
            return
        try:
            options = self._fetch_words()
        except GameError as exc:
            logger.error("next round aborted room=%s: %s", code, exc)
            self._run_if_current(code, token, lambda room: self._return_to_lobby(code))
            return

        def offer(room: Room) -> None:
            if room.state == "round_end":
                self._offer_words(code, options)

        self._run_if_current(code, token, offer)

    # -- views ------------------------------------------------------------

    def public_state(self, code: str) -> dict | None:
        code = normalize_room_code(code)
        room = self.store.get_room(code)
        if room is None:
            return None
        drawer = self.store.drawer(code)
        return {
            "code": room.code,
            "name": room.name,
            "hostId": room.host_id,
            "state": room.state,
            "round": room.round,
            "maxRounds": room.max_rounds,
            "maxPlayers": room.max_players,
            "drawerId": drawer.id if drawer else None,
            "roundEndsAt": room.round_ends_at_ms,
            "players": self.store.roster(code),
        }

    def list_public_states(self) -> list[dict]:
        states = [self.public_state(room.code) for room in self.store.list_rooms()]
        return [s for s in states if s is not None]
