"""Round-robin standings."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from .models import Match, Team


def aggregate_match_data(
    matches: Iterable[Match], teams: Iterable[Team]
) -> dict[str, dict[str, Any]]:
    """Iterate once through complete matches to build wins, losses and point_diff."""
    standings: dict[str, dict[str, Any]] = {
        team.id: {
            "id": team.id,
            "name": team.name,
            "seed": team.seed,
            "wins": 0,
            "losses": 0,
            "point_diff": 0,
        }
        for team in teams
    }

    for match in matches:
        if not match.is_complete:
            continue
        id_a, id_b = match.team_a_id, match.team_b_id
        if id_a not in standings or id_b not in standings:
            continue

        standings[match.winner_team_id]["wins"] += 1
        standings[match.loser_team_id]["losses"] += 1

        for game in match.games:
            standings[id_a]["point_diff"] += game.score_a - game.score_b
            standings[id_b]["point_diff"] += game.score_b - game.score_a

    return standings


def sort_standings(raw_standings: dict[str, dict[str, Any]]) -> list[dict[str, Any]]:
    """Sort by wins (desc), point_diff (desc), then original seed (asc)."""
    standings_list = list(raw_standings.values())
    standings_list.sort(key=lambda x: (-x["wins"], -x["point_diff"], x["seed"]))
    for rank, row in enumerate(standings_list, start=1):
        row["rank"] = rank
    return standings_list


def get_standings(matches: Iterable[Match], teams: Iterable[Team]) -> list[dict[str, Any]]:
    """Orchestrate the calculation of round-robin standings."""
    return sort_standings(aggregate_match_data(matches, teams))
