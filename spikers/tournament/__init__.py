"""Tournament blueprint."""

from flask import Blueprint

bp = Blueprint(
    "tournament", __name__, url_prefix="/sessions/<session_id>/tournament"
)

from . import routes  # noqa: E402, F401
from .facade import TournamentFacade  # noqa: E402
from .models import Match, Team, Tournament  # noqa: E402
from .services import TournamentService  # noqa: E402

__all__ = ["Match", "Team", "Tournament", "TournamentFacade", "TournamentService", "routes"]
