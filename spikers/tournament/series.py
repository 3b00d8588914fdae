"""Best-of-N series tracking for a single match."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Optional

from spikers.errors import (
    InvalidScoreError,
    MatchNotReadyError,
    SeriesAlreadyDecidedError,
)

from .models import GameRecord, Match, Side


@dataclass(frozen=True)
class SeriesOutcome:
    """Result of recording one game."""

    match: Match
    just_completed: bool
    winner: Optional[Side] = None


def validate_scores(score_a: Any, score_b: Any) -> None:
    """Reject ties, negative and non-integer scores."""
    for score in (score_a, score_b):
        if isinstance(score, bool) or not isinstance(score, int):
            raise InvalidScoreError("Scores must be whole numbers.")
        if score < 0:
            raise InvalidScoreError("Scores cannot be negative.")
    if score_a == score_b:
        raise InvalidScoreError()


def record_game(match: Match, score_a: int, score_b: int) -> SeriesOutcome:
    """Append a game to the series and re-evaluate completion.

    The input match is left untouched; the updated match is returned on the
    outcome. A failed call never changes anything.
    """
    validate_scores(score_a, score_b)
    if match.is_complete:
        raise SeriesAlreadyDecidedError()
    if not match.is_ready:
        raise MatchNotReadyError()

    game = GameRecord(
        game_number=len(match.games) + 1, score_a=score_a, score_b=score_b
    )
    wins_a = match.wins_a + (1 if game.winner is Side.A else 0)
    wins_b = match.wins_b + (1 if game.winner is Side.B else 0)

    updated = dataclasses.replace(
        match, wins_a=wins_a, wins_b=wins_b, games=match.games + (game,)
    )

    winner: Optional[Side] = None
    if wins_a >= match.wins_needed:
        winner = Side.A
    elif wins_b >= match.wins_needed:
        winner = Side.B

    if winner is None:
        return SeriesOutcome(match=updated, just_completed=False)

    loser = Side.B if winner is Side.A else Side.A
    updated = dataclasses.replace(
        updated,
        is_complete=True,
        winner_team_id=match.team_id_for(winner),
        loser_team_id=match.team_id_for(loser),
    )
    return SeriesOutcome(match=updated, just_completed=True, winner=winner)


def replay_games(match: Match, scores: Iterable[tuple[int, int]]) -> Match:
    """Rebuild a match from scratch from an ordered list of game scores.

    Used when a game is removed or corrected outside the engine: the series
    is recomputed in full rather than patched.
    """
    rebuilt = dataclasses.replace(
        match,
        wins_a=0,
        wins_b=0,
        is_complete=False,
        winner_team_id=None,
        loser_team_id=None,
        games=(),
    )
    for score_a, score_b in scores:
        rebuilt = record_game(rebuilt, score_a, score_b).match
    return rebuilt
