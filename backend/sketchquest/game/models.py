from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


RoomState = Literal["lobby", "word_offer", "round_active", "round_end", "game_over"]


@dataclass
class Player:
    id: str
    name: str
    avatar: str = ""
    score: int = 0
    is_drawer: bool = False
    has_guessed: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "avatar": self.avatar,
            "score": self.score,
            "isDrawer": self.is_drawer,
            "hasGuessed": self.has_guessed,
        }


@dataclass
class Room:
    code: str
    host_id: str
    name: str = ""
    max_rounds: int = 3
    max_players: int = 5
    state: RoomState = "lobby"
    round: int = 0
    current_word: str | None = None
    round_ends_at_ms: int | None = None
    guessed_players: set[str] = field(default_factory=set)
    # Insertion order is drawer rotation order.
    players: list[Player] = field(default_factory=list)
    # Last word offer
    word_choices: list[str] = field(default_factory=list)
    pending_drawer_id: str | None = None
    created_at_ms: int = 0

    def find_player(self, player_id: str) -> Player | None:
        for p in self.players:
            if p.id == player_id:
                return p
        return None
