from __future__ import annotations

import logging

from flask import request
from flask_socketio import SocketIO, join_room, leave_room

from ..game.coordinator import RoundCoordinator, normalize_room_code
from ..game.errors import GameError
from . import events


logger = logging.getLogger(__name__)


def _payload(data) -> dict:
    return data if isinstance(data, dict) else {}


def _avatar(raw) -> str:
    return str(raw or "").strip()[:512]


def register_socketio_handlers(socketio: SocketIO, coordinator: RoundCoordinator) -> None:
    @socketio.on(events.CREATE_GAME)
    def create_game(data):
        payload = _payload(data)
        try:
            ack = coordinator.create_room(
                request.sid,
                name=str(payload.get("name", "")),
                max_players=payload.get("maxPlayers"),
                num_rounds=payload.get("numRounds"),
                avatar=_avatar(payload.get("avatar")),
            )
        except GameError as exc:
            logger.debug("create_game rejected sid=%s: %s", request.sid, exc)
            return {"error": str(exc)}

        join_room(ack["room"])
        return ack

    @socketio.on(events.JOIN_GAME)
    def join_game(data):
        payload = _payload(data)
        room_code = normalize_room_code(payload.get("room"))
        if not room_code:
            return {"error": "Room not found"}

        # Join the Socket.IO room first so the joiner receives the roster broadcast.
        join_room(room_code)
        try:
            return coordinator.join_room(
                room_code,
                request.sid,
                name=str(payload.get("name", "")),
                avatar=_avatar(payload.get("avatar")),
            )
        except GameError as exc:
            leave_room(room_code)
            logger.debug("join_game rejected room=%s sid=%s: %s", room_code, request.sid, exc)
            return {"error": str(exc)}

    @socketio.on(events.LEAVE_GAME)
    def leave_game(data):
        room_code = normalize_room_code(_payload(data).get("room"))
        if not room_code:
            return {"ok": False}
        left = coordinator.leave_room(room_code, request.sid)
        leave_room(room_code)
        return {"ok": left}

    @socketio.on(events.START_ROUND)
    def start_round(data):
        room_code = normalize_room_code(_payload(data).get("room"))
        try:
            return coordinator.start_round(room_code, request.sid)
        except GameError as exc:
            logger.debug("start_round rejected room=%s sid=%s: %s", room_code, request.sid, exc)
            return {"error": str(exc)}

    @socketio.on(events.WORD_CHOSEN)
    def word_chosen(data):
        payload = _payload(data)
        room_code = normalize_room_code(payload.get("room"))
        try:
            return coordinator.choose_word(room_code, request.sid, payload.get("word"))
        except GameError as exc:
            logger.debug("word_chosen rejected room=%s sid=%s: %s", room_code, request.sid, exc)
            return {"ok": False, "error": str(exc)}

    @socketio.on(events.GUESS)
    def guess(data):
        payload = _payload(data)
        room_code = normalize_room_code(payload.get("room"))
        try:
            return coordinator.guess(room_code, request.sid, payload.get("text", ""))
        except GameError as exc:
            return {"correct": False, "error": str(exc)}

    @socketio.on(events.DRAWING_DATA)
    def drawing_data(data):
        payload = _payload(data)
        room_code = normalize_room_code(payload.get("room"))
        if not room_code:
            return
        coordinator.relay_drawing(room_code, request.sid, payload.get("data"))

    @socketio.on("disconnect")
    def on_disconnect(reason=None):
        codes = coordinator.disconnect(request.sid)
        if codes:
            logger.debug("disconnect sid=%s rooms=%s reason=%s", request.sid, ",".join(codes), reason)
