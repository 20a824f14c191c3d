from __future__ import annotations

from flask import Blueprint, current_app, jsonify

bp = Blueprint("rooms", __name__)


def _coordinator():
    return current_app.extensions["sketchquest"]


@bp.get("/rooms")
def list_rooms():
    return jsonify({"rooms": _coordinator().list_public_states()})


@bp.get("/rooms/<code>")
def get_room(code: str):
    state = _coordinator().public_state(code)
    if state is None:
        return jsonify({"error": "room_not_found"}), 404
    return jsonify(state)
