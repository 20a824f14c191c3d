from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from ..game.words import pick_words

bp = Blueprint("words", __name__)


@bp.get("/words")
def get_words():
    default_count = current_app.config.get("WORD_CHOICES_COUNT", 3)
    try:
        count = int(request.args.get("count", default_count))
    except ValueError:
        count = default_count
    count = max(1, min(count, 50))

    try:
        words = current_app.extensions["sketchquest"].words.list_words()
    except OSError:
        current_app.logger.exception("word supplier failed")
        return jsonify({"error": "words_unavailable"}), 503

    return jsonify({"words": pick_words(list(words or []), count)})
