"""Routes for the tournament blueprint."""

from __future__ import annotations

from typing import Any

from flask import current_app, jsonify

from spikers.constants import DEFAULT_BEST_OF
from spikers.errors import ValidationError

from . import bp
from .facade import TournamentFacade
from .forms import GameScoreForm, StartTournamentForm
from .models import TeamMode, Tournament
from .serialization import match_to_dict, tournament_to_dict
from .services import TournamentService


def _form_error(form: Any) -> ValidationError:
    """Collapse a form's errors into one validation error."""
    for field_name, messages in form.errors.items():
        if messages:
            return ValidationError(f"{field_name}: {messages[0]}")
    return ValidationError()


def _tournament_payload(tournament: Tournament) -> dict[str, Any]:
    active = TournamentFacade.active_match(tournament)
    return {
        "tournament": tournament_to_dict(tournament),
        "bracket": TournamentFacade.bracket_view(tournament),
        "activeMatch": match_to_dict(active, tournament) if active else None,
    }


@bp.route("", methods=["GET"])
def view_tournament(session_id: str) -> Any:
    """Show the session's tournament and whether a new one can be started."""
    status, _, _ = TournamentService.get_session(session_id)
    tournament = TournamentService.get_tournament(session_id)

    payload: dict[str, Any] = {
        "sessionId": session_id,
        "sessionStatus": status.value,
        "canStart": TournamentFacade.can_start(status, tournament),
        "tournament": None,
        "bracket": None,
        "activeMatch": None,
    }
    if tournament is not None:
        payload.update(_tournament_payload(tournament))
    return jsonify(payload)


@bp.route("/start", methods=["POST"])
def start_tournament(session_id: str) -> Any:
    """Start a tournament from the session's attendance."""
    form = StartTournamentForm()
    if not form.validate_on_submit():
        raise _form_error(form)

    tournament = TournamentService.start_tournament(
        session_id,
        TeamMode(form.team_mode.data),
        best_of=current_app.config.get("TOURNAMENT_BEST_OF", DEFAULT_BEST_OF),
    )
    return jsonify(_tournament_payload(tournament)), 201


@bp.route("/games", methods=["POST"])
def submit_game(session_id: str) -> Any:
    """Record one game of a tournament match."""
    form = GameScoreForm()
    if not form.validate_on_submit():
        raise _form_error(form)

    tournament = TournamentService.submit_game(
        session_id, form.match_id.data, form.score_a.data, form.score_b.data
    )
    return jsonify(_tournament_payload(tournament))


@bp.route("/end", methods=["POST"])
def end_tournament(session_id: str) -> Any:
    """End the session's tournament early."""
    tournament = TournamentService.end_tournament(session_id)
    return jsonify(_tournament_payload(tournament))
