"""Data models for the tournament engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from spikers.constants import DEFAULT_BEST_OF


class SessionStatus(str, Enum):
    """Lifecycle of a play session, owned by the session service."""

    UPCOMING = "UPCOMING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class TournamentStatus(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    ENDED = "ENDED"


class TeamMode(str, Enum):
    RANDOM = "RANDOM"
    FAIR = "FAIR"


class TournamentStage(str, Enum):
    """Stage of the whole tournament."""

    ROUND_ROBIN = "ROUND_ROBIN"
    BRACKET = "BRACKET"
    FINALS = "FINALS"
    COMPLETED = "COMPLETED"
    ENDED = "ENDED"


class MatchStage(str, Enum):
    """Stage a single match belongs to."""

    ROUND_ROBIN = "ROUND_ROBIN"
    BRACKET = "BRACKET"
    WINNERS_FINAL = "WINNERS_FINAL"
    LOSERS_FINAL = "LOSERS_FINAL"


class Side(str, Enum):
    A = "A"
    B = "B"


# Match stages that make up each playable tournament stage
STAGE_MATCH_STAGES: dict[TournamentStage, tuple[MatchStage, ...]] = {
    TournamentStage.ROUND_ROBIN: (MatchStage.ROUND_ROBIN,),
    TournamentStage.BRACKET: (MatchStage.BRACKET,),
    TournamentStage.FINALS: (MatchStage.LOSERS_FINAL, MatchStage.WINNERS_FINAL),
}


@dataclass(frozen=True)
class Player:
    """An attending player as supplied by the session service."""

    id: str
    name: str
    rating: int
    emoji: str = ""

    @property
    def display_name(self) -> str:
        return f"{self.emoji}{self.name}" if self.emoji else self.name


@dataclass(frozen=True)
class Team:
    """A tournament team of one or two players.

    ``wins`` and ``losses`` are recomputed from completed matches whenever the
    tournament advances; they are never edited directly.
    """

    id: str
    name: str
    seed: int
    player_a_id: str
    player_b_id: Optional[str] = None
    wins: int = 0
    losses: int = 0
    is_eliminated: bool = False

    @property
    def player_ids(self) -> list[str]:
        return [pid for pid in (self.player_a_id, self.player_b_id) if pid]


@dataclass(frozen=True)
class GameRecord:
    """A single game within a series."""

    game_number: int
    score_a: int
    score_b: int

    @property
    def winner(self) -> Side:
        return Side.A if self.score_a > self.score_b else Side.B


@dataclass(frozen=True)
class Match:
    """A best-of-N series between two teams.

    Either side may be unresolved (``None``) until the bracket match feeding it
    completes.
    """

    id: str
    stage: MatchStage
    round: int
    slot: int
    best_of: int = DEFAULT_BEST_OF
    team_a_id: Optional[str] = None
    team_b_id: Optional[str] = None
    wins_a: int = 0
    wins_b: int = 0
    is_complete: bool = False
    winner_team_id: Optional[str] = None
    loser_team_id: Optional[str] = None
    games: tuple[GameRecord, ...] = ()

    @property
    def wins_needed(self) -> int:
        """Series wins required to take the match, ``ceil(best_of / 2)``."""
        return self.best_of // 2 + 1

    @property
    def is_ready(self) -> bool:
        return self.team_a_id is not None and self.team_b_id is not None

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.round, self.slot)

    def team_id_for(self, side: Side) -> Optional[str]:
        return self.team_a_id if side is Side.A else self.team_b_id


@dataclass(frozen=True)
class Tournament:
    """Snapshot of a whole tournament.

    Teams and matches are stored by id; every cross reference is an id
    resolved through these maps. ``version`` and the ISO-8601 timestamps are
    set by the persistence layer on every write; ``version`` is used for
    optimistic concurrency.
    """

    id: str
    session_id: str
    status: TournamentStatus
    team_mode: TeamMode
    stage: TournamentStage
    teams: dict[str, Team] = field(default_factory=dict)
    matches: dict[str, Match] = field(default_factory=dict)
    winner_team_id: Optional[str] = None
    version: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    ended_at: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status is TournamentStatus.ACTIVE

    def matches_in(self, *stages: MatchStage) -> list[Match]:
        """Return the matches of the given match stages ordered by (round, slot)."""
        return sorted(
            (m for m in self.matches.values() if m.stage in stages),
            key=lambda m: m.sort_key,
        )

    def current_stage_matches(self) -> list[Match]:
        return self.matches_in(*STAGE_MATCH_STAGES.get(self.stage, ()))

    def team_name(self, team_id: Optional[str]) -> Optional[str]:
        team = self.teams.get(team_id) if team_id else None
        return team.name if team else None
