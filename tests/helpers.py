"""Builders shared by the tournament tests."""

from __future__ import annotations

from typing import Optional

from spikers.tournament import engine
from spikers.tournament.facade import TournamentFacade
from spikers.tournament.models import Player, Side, TeamMode, Tournament
from spikers.tournament.teams import form_fair_teams

NAMES = ["Ana", "Ben", "Cal", "Dee", "Eve", "Fin", "Gus", "Hal", "Ivy", "Jo"]


def make_players(count: int, ratings: Optional[list[int]] = None) -> list[Player]:
    """Players p1..pN; ratings default to 1000, 990, 980, ..."""
    if ratings is None:
        ratings = [1000 - 10 * i for i in range(count)]
    return [
        Player(id=f"p{i + 1}", name=NAMES[i % len(NAMES)], rating=ratings[i])
        for i in range(count)
    ]


def start_fair(player_count: int, session_id: str = "session1") -> Tournament:
    teams = form_fair_teams(make_players(player_count))
    return engine.start(
        teams,
        session_id=session_id,
        team_mode=TeamMode.FAIR,
        tournament_id="t1",
    )


def win_series(
    tournament: Tournament,
    match_id: str,
    winner: Side = Side.A,
    score: tuple[int, int] = (11, 5),
) -> Tournament:
    """Record straight-games wins for one side until its series is decided."""
    high, low = score
    while not tournament.matches[match_id].is_complete:
        if winner is Side.A:
            tournament = TournamentFacade.submit_game(tournament, match_id, high, low)
        else:
            tournament = TournamentFacade.submit_game(tournament, match_id, low, high)
    return tournament


def win_by_seed(tournament: Tournament, match_id: str) -> Tournament:
    """Let the better (lower) seed take the match."""
    match = tournament.matches[match_id]
    seed_a = tournament.teams[match.team_a_id].seed
    seed_b = tournament.teams[match.team_b_id].seed
    return win_series(tournament, match_id, Side.A if seed_a < seed_b else Side.B)


def play_current_stage(tournament: Tournament) -> Tournament:
    """Play every match of the current stage, better seed winning."""
    stage = tournament.stage
    while tournament.stage is stage and tournament.is_active:
        match = TournamentFacade.active_match(tournament)
        if match is None:
            break
        tournament = win_by_seed(tournament, match.id)
    return tournament
