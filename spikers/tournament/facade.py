"""Query and command surface used by the rest of the application.

The facade never keeps tournament state of its own: every command takes the
current snapshot and returns the next one for the caller to persist.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from typing import Any, Optional

from spikers.constants import DEFAULT_BEST_OF, UNRESOLVED_TEAM_NAME
from spikers.errors import (
    MatchNotFoundError,
    NoActiveTournamentError,
    SessionNotInProgressError,
    TournamentAlreadyActiveError,
)

from . import engine
from .bracket import get_round_name
from .models import (
    Match,
    MatchStage,
    Player,
    SessionStatus,
    TeamMode,
    Tournament,
    TournamentStage,
    TournamentStatus,
)
from .series import record_game
from .standings import get_standings
from .teams import form_fair_teams, form_random_teams

logger = logging.getLogger(__name__)

STAGE_DISPLAY_ORDER = (
    MatchStage.ROUND_ROBIN,
    MatchStage.BRACKET,
    MatchStage.WINNERS_FINAL,
    MatchStage.LOSERS_FINAL,
)

STAGE_TITLES = {
    MatchStage.ROUND_ROBIN: "Round Robin",
    MatchStage.BRACKET: "Bracket",
    MatchStage.WINNERS_FINAL: "Winners Final",
    MatchStage.LOSERS_FINAL: "Losers Final (3rd Place)",
}

TOURNAMENT_STAGE_LABELS = {
    TournamentStage.ROUND_ROBIN: "Round Robin",
    TournamentStage.BRACKET: "Bracket",
    TournamentStage.FINALS: "Finals",
    TournamentStage.COMPLETED: "Completed",
    TournamentStage.ENDED: "Ended",
}

STATUS_TEXT = {
    TournamentStatus.ACTIVE: "Tournament in progress",
    TournamentStatus.COMPLETED: "Tournament complete",
    TournamentStatus.ENDED: "Tournament ended early",
}


class TournamentFacade:
    """Commands and read-only projections over tournament snapshots."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        best_of: int = DEFAULT_BEST_OF,
    ) -> None:
        """Initialize the facade with its random source and series length."""
        self.rng = rng or random.Random()
        self.best_of = best_of

    # Queries

    @staticmethod
    def can_start(
        session_status: SessionStatus, existing: Optional[Tournament]
    ) -> bool:
        """True when the session is in progress and no tournament is active."""
        if session_status is not SessionStatus.IN_PROGRESS:
            return False
        return existing is None or existing.status is not TournamentStatus.ACTIVE

    @staticmethod
    def active_match(tournament: Optional[Tournament]) -> Optional[Match]:
        """The earliest incomplete match of the current stage, if any."""
        if tournament is None or not tournament.is_active:
            return None
        for match in tournament.current_stage_matches():
            if not match.is_complete:
                return match
        return None

    @staticmethod
    def stage_groups(tournament: Tournament) -> list[tuple[MatchStage, list[Match]]]:
        """Matches grouped by stage in display order, each sorted by (round, slot)."""
        groups = []
        for stage in STAGE_DISPLAY_ORDER:
            matches = tournament.matches_in(stage)
            if matches:
                groups.append((stage, matches))
        return groups

    @staticmethod
    def standings(tournament: Tournament) -> list[dict[str, Any]]:
        return get_standings(
            tournament.matches_in(MatchStage.ROUND_ROBIN), tournament.teams.values()
        )

    # Commands

    def start(
        self,
        session_id: str,
        session_status: SessionStatus,
        players: Sequence[Player],
        team_mode: TeamMode,
        existing: Optional[Tournament] = None,
    ) -> Tournament:
        """Form teams from the attending players and start a tournament."""
        if session_status is not SessionStatus.IN_PROGRESS:
            raise SessionNotInProgressError()
        if existing is not None and existing.is_active:
            raise TournamentAlreadyActiveError()

        if team_mode is TeamMode.FAIR:
            teams = form_fair_teams(players)
        else:
            teams = form_random_teams(players, rng=self.rng)

        return engine.start(
            teams,
            session_id=session_id,
            team_mode=team_mode,
            existing=existing,
            best_of=self.best_of,
        )

    @staticmethod
    def submit_game(
        tournament: Optional[Tournament], match_id: str, score_a: int, score_b: int
    ) -> Tournament:
        """Record a game on a match and advance the tournament if the series ended."""
        if tournament is None or not tournament.is_active:
            raise NoActiveTournamentError()
        match = tournament.matches.get(match_id)
        if match is None:
            raise MatchNotFoundError(f"Match {match_id} not found.")

        outcome = record_game(match, score_a, score_b)
        tournament = engine.replace_match(tournament, outcome.match)
        if outcome.just_completed:
            logger.info(
                "Match %s won by %s %d-%d",
                match_id,
                outcome.match.winner_team_id,
                outcome.match.wins_a,
                outcome.match.wins_b,
            )
            tournament = engine.advance(tournament)
        return tournament

    @staticmethod
    def end_early(tournament: Optional[Tournament]) -> Tournament:
        if tournament is None:
            raise NoActiveTournamentError()
        return engine.end_early(tournament)

    # Display projection

    @classmethod
    def bracket_view(cls, tournament: Tournament) -> dict[str, Any]:
        """JSON-ready projection of a tournament for the bracket screen."""
        active = cls.active_match(tournament)
        bracket_rounds = max(
            (m.round for m in tournament.matches_in(MatchStage.BRACKET)), default=0
        )

        stages = []
        for stage, matches in cls.stage_groups(tournament):
            stages.append(
                {
                    "stage": stage.value,
                    "title": STAGE_TITLES[stage],
                    "matches": [
                        cls._match_view(tournament, m, bracket_rounds)
                        for m in matches
                    ],
                }
            )

        return {
            "id": tournament.id,
            "status": tournament.status.value,
            "statusText": STATUS_TEXT[tournament.status],
            "stage": tournament.stage.value,
            "stageLabel": TOURNAMENT_STAGE_LABELS[tournament.stage],
            "teamMode": tournament.team_mode.value,
            "winnerTeamId": tournament.winner_team_id,
            "winnerName": tournament.team_name(tournament.winner_team_id),
            "activeMatchId": active.id if active else None,
            "standings": cls.standings(tournament),
            "stages": stages,
        }

    @staticmethod
    def _match_view(
        tournament: Tournament, match: Match, bracket_rounds: int
    ) -> dict[str, Any]:
        view = {
            "id": match.id,
            "round": match.round,
            "slot": match.slot,
            "label": " vs ".join(
                tournament.team_name(team_id) or UNRESOLVED_TEAM_NAME
                for team_id in (match.team_a_id, match.team_b_id)
            ),
            "series": f"{match.wins_a}-{match.wins_b}",
            "bestOf": match.best_of,
            "isComplete": match.is_complete,
            "winnerTeamId": match.winner_team_id,
        }
        if match.stage is MatchStage.BRACKET:
            teams_in_round = 2 ** (bracket_rounds - match.round + 2)
            view["roundName"] = get_round_name(teams_in_round)
        return view
