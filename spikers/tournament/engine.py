"""Tournament state machine.

A tournament moves through ``ROUND_ROBIN -> BRACKET -> FINALS -> COMPLETED``
and can be ended early from any of the playable stages. Every function here
takes a :class:`Tournament` snapshot and returns a new one; nothing is
mutated in place and nothing touches storage.
"""

from __future__ import annotations

import dataclasses
import logging
import uuid
from collections.abc import Iterable, Sequence
from typing import Optional

from spikers.constants import DEFAULT_BEST_OF, MIN_TOURNAMENT_TEAMS
from spikers.errors import (
    InsufficientPlayersError,
    NoActiveTournamentError,
    TournamentAlreadyActiveError,
)

from .bracket import (
    get_bracket_rounds,
    get_bracket_size,
    get_feeder_slots,
    get_first_round_pairings,
    get_matches_in_round,
)
from .models import (
    Match,
    MatchStage,
    Side,
    Team,
    TeamMode,
    Tournament,
    TournamentStage,
    TournamentStatus,
)
from .standings import get_standings

logger = logging.getLogger(__name__)


def make_match_id(stage: MatchStage, round_number: int, slot: int) -> str:
    """Deterministic match id, unique within a tournament."""
    return f"{stage.value.lower()}-r{round_number}-s{slot}"


def generate_round_robin(team_ids: Sequence[str]) -> list[tuple[str, str]]:
    """Generate round robin pairings using the circle method.

    Every unordered pair appears exactly once. Pairings are listed round by
    round so that consecutive matches rarely share a team.
    """
    ids: list[Optional[str]] = list(team_ids)
    if len(ids) % 2 != 0:
        ids.append(None)  # bye

    num_participants = len(ids)
    pairings = []
    for _ in range(num_participants - 1):
        for i in range(num_participants // 2):
            team_a = ids[i]
            team_b = ids[num_participants - 1 - i]
            if team_a is not None and team_b is not None:
                pairings.append((team_a, team_b))
        # Rotate ids: keep the first element fixed, rotate others
        ids = [ids[0], ids[-1]] + ids[1:-1]

    return pairings


def replace_match(tournament: Tournament, match: Match) -> Tournament:
    """Return a snapshot with ``match`` stored under its id."""
    return dataclasses.replace(
        tournament, matches={**tournament.matches, match.id: match}
    )


def start(
    teams: Sequence[Team],
    *,
    session_id: str,
    team_mode: TeamMode,
    existing: Optional[Tournament] = None,
    best_of: int = DEFAULT_BEST_OF,
    tournament_id: Optional[str] = None,
) -> Tournament:
    """Create a tournament and its round-robin schedule.

    Teams are seeded in the order given (1-indexed). All round-robin matches
    share round 1; slots follow pairing order.
    """
    if existing is not None and existing.is_active:
        raise TournamentAlreadyActiveError()
    if len(teams) < MIN_TOURNAMENT_TEAMS:
        raise InsufficientPlayersError(
            f"Need at least {MIN_TOURNAMENT_TEAMS} teams for a tournament."
        )
    if best_of < 1 or best_of % 2 == 0:
        raise ValueError(f"best_of must be a positive odd number, got {best_of}")
    if len({team.id for team in teams}) != len(teams):
        raise ValueError("Team ids must be unique")

    seeded = [
        dataclasses.replace(team, seed=seed, wins=0, losses=0, is_eliminated=False)
        for seed, team in enumerate(teams, start=1)
    ]

    matches = {}
    pairings = generate_round_robin([team.id for team in seeded])
    for slot, (team_a_id, team_b_id) in enumerate(pairings, start=1):
        match = Match(
            id=make_match_id(MatchStage.ROUND_ROBIN, 1, slot),
            stage=MatchStage.ROUND_ROBIN,
            round=1,
            slot=slot,
            best_of=best_of,
            team_a_id=team_a_id,
            team_b_id=team_b_id,
        )
        matches[match.id] = match

    tournament = Tournament(
        id=tournament_id or uuid.uuid4().hex,
        session_id=session_id,
        status=TournamentStatus.ACTIVE,
        team_mode=team_mode,
        stage=TournamentStage.ROUND_ROBIN,
        teams={team.id: team for team in seeded},
        matches=matches,
    )
    logger.info(
        "Started tournament %s with %d teams and %d round-robin matches",
        tournament.id,
        len(seeded),
        len(matches),
    )
    return tournament


def advance(tournament: Tournament) -> Tournament:
    """Apply every transition that is due.

    Safe to call at any time: when nothing is due the returned snapshot is
    equal to the input.
    """
    if not tournament.is_active:
        return tournament

    tournament = _propagate_bracket_winners(tournament)

    if tournament.stage is TournamentStage.ROUND_ROBIN and _stage_complete(tournament):
        tournament = _seed_bracket(tournament)
    if tournament.stage is TournamentStage.BRACKET and _stage_complete(tournament):
        tournament = _schedule_finals(tournament)
    if tournament.stage is TournamentStage.FINALS and _stage_complete(tournament):
        tournament = _complete(tournament)

    tournament = _apply_eliminations(tournament)
    return _refresh_team_records(tournament)


def end_early(tournament: Tournament) -> Tournament:
    """Stop an active tournament, keeping every match as it stands."""
    if not tournament.is_active:
        raise NoActiveTournamentError("Only an active tournament can be ended.")
    logger.info("Tournament %s ended early in %s", tournament.id, tournament.stage.value)
    return dataclasses.replace(
        tournament, status=TournamentStatus.ENDED, stage=TournamentStage.ENDED
    )


def _stage_complete(tournament: Tournament) -> bool:
    return all(match.is_complete for match in tournament.current_stage_matches())


def _best_of(tournament: Tournament) -> int:
    first = next(iter(tournament.matches.values()), None)
    return first.best_of if first else DEFAULT_BEST_OF


def _eliminate(teams: dict[str, Team], team_ids: Iterable[str]) -> dict[str, Team]:
    updated = dict(teams)
    for team_id in team_ids:
        team = updated.get(team_id)
        if team is not None and not team.is_eliminated:
            updated[team_id] = dataclasses.replace(team, is_eliminated=True)
    return updated


def _seed_bracket(tournament: Tournament) -> Tournament:
    """Seed the bracket from round-robin standings and build its skeleton.

    Round 1 is filled from the standings; later rounds start unresolved and
    are filled as their feeder matches complete.
    """
    standings = get_standings(
        tournament.matches_in(MatchStage.ROUND_ROBIN), tournament.teams.values()
    )
    ranked_ids = [row["id"] for row in standings]
    bracket_size = get_bracket_size(len(ranked_ids))
    qualified, cut = ranked_ids[:bracket_size], ranked_ids[bracket_size:]

    best_of = _best_of(tournament)
    matches = dict(tournament.matches)
    for round_number in range(1, get_bracket_rounds(bracket_size) + 1):
        pairings = get_first_round_pairings(bracket_size) if round_number == 1 else []
        for slot in range(1, get_matches_in_round(bracket_size, round_number) + 1):
            team_a_id = team_b_id = None
            if pairings:
                seed_a, seed_b = pairings[slot - 1]
                team_a_id, team_b_id = qualified[seed_a - 1], qualified[seed_b - 1]
            match = Match(
                id=make_match_id(MatchStage.BRACKET, round_number, slot),
                stage=MatchStage.BRACKET,
                round=round_number,
                slot=slot,
                best_of=best_of,
                team_a_id=team_a_id,
                team_b_id=team_b_id,
            )
            matches[match.id] = match

    logger.info(
        "Tournament %s: round robin complete, %d teams seeded into the bracket",
        tournament.id,
        len(qualified),
    )
    return dataclasses.replace(
        tournament,
        stage=TournamentStage.BRACKET,
        teams=_eliminate(tournament.teams, cut),
        matches=matches,
    )


def _propagate_bracket_winners(tournament: Tournament) -> Tournament:
    """Move finished bracket winners into the unresolved slots they feed."""
    by_position = {
        match.sort_key: match for match in tournament.matches_in(MatchStage.BRACKET)
    }
    changed = False
    for (round_number, slot), match in sorted(by_position.items()):
        if round_number == 1:
            continue
        updates = {}
        for side, feeder_slot in zip((Side.A, Side.B), get_feeder_slots(slot)):
            feeder = by_position.get((round_number - 1, feeder_slot))
            if feeder is None or not feeder.is_complete:
                continue
            if match.team_id_for(side) is None:
                field_name = "team_a_id" if side is Side.A else "team_b_id"
                updates[field_name] = feeder.winner_team_id
        if updates:
            by_position[(round_number, slot)] = dataclasses.replace(match, **updates)
            changed = True

    if not changed:
        return tournament
    matches = dict(tournament.matches)
    for match in by_position.values():
        matches[match.id] = match
    return dataclasses.replace(tournament, matches=matches)


def _schedule_finals(tournament: Tournament) -> Tournament:
    """Create the winners final and, when semifinals were played, the losers final."""
    bracket_matches = tournament.matches_in(MatchStage.BRACKET)
    if bracket_matches:
        last_round = max(match.round for match in bracket_matches)
        semifinals = [m for m in bracket_matches if m.round == last_round]
        finalists = [m.winner_team_id for m in semifinals]
        third_place = [m.loser_team_id for m in semifinals]
    else:
        # Two-team bracket: the top two of the standings go straight to the final.
        standings = get_standings(
            tournament.matches_in(MatchStage.ROUND_ROBIN),
            [t for t in tournament.teams.values() if not t.is_eliminated],
        )
        finalists = [row["id"] for row in standings[:2]]
        third_place = []

    best_of = _best_of(tournament)
    matches = dict(tournament.matches)
    if len(third_place) == 2:
        losers_final = Match(
            id=make_match_id(MatchStage.LOSERS_FINAL, 1, 1),
            stage=MatchStage.LOSERS_FINAL,
            round=1,
            slot=1,
            best_of=best_of,
            team_a_id=third_place[0],
            team_b_id=third_place[1],
        )
        matches[losers_final.id] = losers_final
    winners_final = Match(
        id=make_match_id(MatchStage.WINNERS_FINAL, 1, 2),
        stage=MatchStage.WINNERS_FINAL,
        round=1,
        slot=2,
        best_of=best_of,
        team_a_id=finalists[0],
        team_b_id=finalists[1],
    )
    matches[winners_final.id] = winners_final

    logger.info("Tournament %s: finals scheduled", tournament.id)
    return dataclasses.replace(
        tournament, stage=TournamentStage.FINALS, matches=matches
    )


def _complete(tournament: Tournament) -> Tournament:
    final = tournament.matches_in(MatchStage.WINNERS_FINAL)[0]
    champion = final.winner_team_id
    logger.info("Tournament %s completed, winner %s", tournament.id, champion)
    return dataclasses.replace(
        tournament,
        status=TournamentStatus.COMPLETED,
        stage=TournamentStage.COMPLETED,
        winner_team_id=champion,
        teams=_eliminate(
            tournament.teams, [tid for tid in tournament.teams if tid != champion]
        ),
    )


def _apply_eliminations(tournament: Tournament) -> Tournament:
    """Eliminate losers of every decided match except the semifinals.

    Semifinal losers still play the losers final.
    """
    bracket_matches = tournament.matches_in(MatchStage.BRACKET)
    last_round = max((m.round for m in bracket_matches), default=0)

    losers = [
        m.loser_team_id
        for m in bracket_matches
        if m.is_complete and m.round < last_round
    ]
    losers += [
        m.loser_team_id
        for m in tournament.matches_in(
            MatchStage.WINNERS_FINAL, MatchStage.LOSERS_FINAL
        )
        if m.is_complete
    ]
    teams = _eliminate(tournament.teams, losers)
    if teams == tournament.teams:
        return tournament
    return dataclasses.replace(tournament, teams=teams)


def _refresh_team_records(tournament: Tournament) -> Tournament:
    """Recount every team's wins and losses from complete matches."""
    wins = dict.fromkeys(tournament.teams, 0)
    losses = dict.fromkeys(tournament.teams, 0)
    for match in tournament.matches.values():
        if not match.is_complete:
            continue
        if match.winner_team_id in wins:
            wins[match.winner_team_id] += 1
        if match.loser_team_id in losses:
            losses[match.loser_team_id] += 1

    teams = {
        team_id: team
        if (team.wins, team.losses) == (wins[team_id], losses[team_id])
        else dataclasses.replace(team, wins=wins[team_id], losses=losses[team_id])
        for team_id, team in tournament.teams.items()
    }
    if teams == tournament.teams:
        return tournament
    return dataclasses.replace(tournament, teams=teams)
