"""Team formation for tournaments.

Both strategies are pure functions of the roster they are given. Random
formation draws from an injectable ``random.Random`` so results can be
reproduced with a fixed seed.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from typing import Optional

from spikers.constants import (
    MIN_SOLO_ENTRANT_PLAYERS,
    MIN_TOURNAMENT_PLAYERS,
    TEAM_SIZE,
)
from spikers.errors import InsufficientMiddleRangeError, InsufficientPlayersError

from .models import Player, Team

logger = logging.getLogger(__name__)


def team_name(player_a: Player, player_b: Optional[Player]) -> str:
    """Build the display name for a team, e.g. ``"Ana & Ben"``."""
    if player_b is None:
        return player_a.name
    return f"{player_a.name} & {player_b.name}"


def build_teams(pairs: Sequence[tuple[Player, Optional[Player]]]) -> list[Team]:
    """Turn ordered player pairs into seeded teams (seed = position, 1-indexed)."""
    teams = []
    for seed, (player_a, player_b) in enumerate(pairs, start=1):
        teams.append(
            Team(
                id=f"team-{seed}",
                name=team_name(player_a, player_b),
                seed=seed,
                player_a_id=player_a.id,
                player_b_id=player_b.id if player_b else None,
            )
        )
    return teams


def _check_roster(players: Sequence[Player]) -> None:
    if len(players) < MIN_TOURNAMENT_PLAYERS:
        raise InsufficientPlayersError(
            f"Need at least {MIN_TOURNAMENT_PLAYERS} attending players "
            f"to form teams (have {len(players)})."
        )
    if len({p.id for p in players}) != len(players):
        raise InsufficientPlayersError("Each player can only be entered once.")


def form_random_teams(
    players: Sequence[Player], rng: Optional[random.Random] = None
) -> list[Team]:
    """Shuffle the roster and slice it into consecutive pairs."""
    _check_roster(players)
    if len(players) % TEAM_SIZE:
        raise InsufficientPlayersError(
            "Random teams need an even number of players."
        )

    rng = rng or random.Random()
    shuffled = list(players)
    rng.shuffle(shuffled)

    pairs = [(shuffled[i], shuffled[i + 1]) for i in range(0, len(shuffled), 2)]
    logger.debug("Formed %d random teams", len(pairs))
    return build_teams(pairs)


def form_fair_teams(players: Sequence[Player]) -> list[Team]:
    """Pair the strongest player with the weakest and work inward.

    Players are ordered by rating, highest first; ties keep roster order.
    The first team is the top-rated player with the lowest-rated one, the
    second pairs the runners-up from each end, and so on. In an odd roster
    the median-rated player enters solo as the last seed.
    """
    _check_roster(players)

    ranked = sorted(players, key=lambda p: p.rating, reverse=True)

    solo = None
    if len(ranked) % TEAM_SIZE:
        if len(ranked) < MIN_SOLO_ENTRANT_PLAYERS:
            raise InsufficientMiddleRangeError(
                f"{len(ranked) - 2} mid-rated players cannot complete fair teams."
            )
        solo = ranked.pop(len(ranked) // 2)

    # Everything between the top and bottom player has to pair up on its own.
    middle_range = ranked[1:-1]
    if len(middle_range) < TEAM_SIZE:
        raise InsufficientMiddleRangeError(
            f"{len(middle_range)} mid-rated players cannot complete fair teams."
        )

    pairs: list[tuple[Player, Optional[Player]]] = []
    low, high = 0, len(ranked) - 1
    while low < high:
        pairs.append((ranked[low], ranked[high]))
        low += 1
        high -= 1
    if solo is not None:
        pairs.append((solo, None))

    logger.debug("Formed %d fair teams", len(pairs))
    return build_teams(pairs)
