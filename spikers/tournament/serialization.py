"""Conversion between tournament snapshots and Firestore/JSON documents.

Field names follow the existing backend contract (``stage``, ``round``,
``slot``, ``bestOf``, ``winsA``/``winsB``, ``isComplete``,
``teamAId``/``teamBId``, ``winnerTeamId``/``loserTeamId``).
"""

from __future__ import annotations

from typing import Any, Optional

from spikers.constants import DEFAULT_BEST_OF

from .models import (
    GameRecord,
    Match,
    MatchStage,
    Player,
    Team,
    TeamMode,
    Tournament,
    TournamentStage,
    TournamentStatus,
)


def _timestamp(value: Any) -> Optional[str]:
    """ISO-8601 text for a stored timestamp; older documents hold datetimes."""
    if value is None or isinstance(value, str):
        return value
    return value.isoformat()


def player_from_dict(data: dict[str, Any]) -> Player:
    """Build a Player from a session attendance entry."""
    return Player(
        id=str(data["id"]),
        name=data.get("name") or "Unknown Player",
        rating=int(data.get("rating") or 0),
        emoji=data.get("emoji") or "",
    )


def team_to_dict(team: Team, tournament_id: str) -> dict[str, Any]:
    return {
        "id": team.id,
        "tournamentId": tournament_id,
        "name": team.name,
        "seed": team.seed,
        "wins": team.wins,
        "losses": team.losses,
        "isEliminated": team.is_eliminated,
        "playerAId": team.player_a_id,
        "playerBId": team.player_b_id,
    }


def team_from_dict(data: dict[str, Any]) -> Team:
    return Team(
        id=data["id"],
        name=data.get("name", "Unknown Team"),
        seed=int(data["seed"]),
        player_a_id=data["playerAId"],
        player_b_id=data.get("playerBId"),
        wins=int(data.get("wins", 0)),
        losses=int(data.get("losses", 0)),
        is_eliminated=bool(data.get("isEliminated", False)),
    )


def match_to_dict(match: Match, tournament: Tournament) -> dict[str, Any]:
    """Serialize a match, denormalizing player ids for display clients."""

    def player_ids(team_id: str | None) -> list[str]:
        team = tournament.teams.get(team_id) if team_id else None
        return team.player_ids if team else []

    return {
        "id": match.id,
        "tournamentId": tournament.id,
        "stage": match.stage.value,
        "round": match.round,
        "slot": match.slot,
        "bestOf": match.best_of,
        "winsA": match.wins_a,
        "winsB": match.wins_b,
        "isComplete": match.is_complete,
        "teamAId": match.team_a_id,
        "teamBId": match.team_b_id,
        "winnerTeamId": match.winner_team_id,
        "loserTeamId": match.loser_team_id,
        "teamAPlayerIds": player_ids(match.team_a_id),
        "teamBPlayerIds": player_ids(match.team_b_id),
        "games": [
            {
                "gameNumber": game.game_number,
                "scoreA": game.score_a,
                "scoreB": game.score_b,
            }
            for game in match.games
        ],
    }


def match_from_dict(data: dict[str, Any]) -> Match:
    games = sorted(data.get("games", []), key=lambda g: g["gameNumber"])
    return Match(
        id=data["id"],
        stage=MatchStage(data["stage"]),
        round=int(data["round"]),
        slot=int(data["slot"]),
        best_of=int(data.get("bestOf", DEFAULT_BEST_OF)),
        team_a_id=data.get("teamAId"),
        team_b_id=data.get("teamBId"),
        wins_a=int(data.get("winsA", 0)),
        wins_b=int(data.get("winsB", 0)),
        is_complete=bool(data.get("isComplete", False)),
        winner_team_id=data.get("winnerTeamId"),
        loser_team_id=data.get("loserTeamId"),
        games=tuple(
            GameRecord(
                game_number=int(g["gameNumber"]),
                score_a=int(g["scoreA"]),
                score_b=int(g["scoreB"]),
            )
            for g in games
        ),
    )


def tournament_to_dict(tournament: Tournament) -> dict[str, Any]:
    """Serialize a tournament; teams by seed, matches by stage then (round, slot)."""
    stage_order = list(MatchStage)
    matches = sorted(
        tournament.matches.values(),
        key=lambda m: (stage_order.index(m.stage), m.round, m.slot),
    )
    return {
        "id": tournament.id,
        "sessionId": tournament.session_id,
        "status": tournament.status.value,
        "teamMode": tournament.team_mode.value,
        "stage": tournament.stage.value,
        "winnerTeamId": tournament.winner_team_id,
        "version": tournament.version,
        "createdAt": tournament.created_at,
        "updatedAt": tournament.updated_at,
        "endedAt": tournament.ended_at,
        "teams": [
            team_to_dict(team, tournament.id)
            for team in sorted(tournament.teams.values(), key=lambda t: t.seed)
        ],
        "matches": [match_to_dict(match, tournament) for match in matches],
    }


def tournament_from_dict(data: dict[str, Any]) -> Tournament:
    teams = [team_from_dict(t) for t in data.get("teams", [])]
    matches = [match_from_dict(m) for m in data.get("matches", [])]
    return Tournament(
        id=data["id"],
        session_id=data["sessionId"],
        status=TournamentStatus(data["status"]),
        team_mode=TeamMode(data["teamMode"]),
        stage=TournamentStage(data["stage"]),
        teams={team.id: team for team in teams},
        matches={match.id: match for match in matches},
        winner_team_id=data.get("winnerTeamId"),
        version=int(data.get("version", 0)),
        created_at=_timestamp(data.get("createdAt")),
        updated_at=_timestamp(data.get("updatedAt")),
        ended_at=_timestamp(data.get("endedAt")),
    )
