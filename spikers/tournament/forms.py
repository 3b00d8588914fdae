"""Forms for the tournament blueprint."""

from flask_wtf import FlaskForm
from wtforms import IntegerField, SelectField, StringField, ValidationError
from wtforms.validators import DataRequired

from .models import TeamMode


def _check_score(field):
    # 0 is a valid score
    if field.data is None:
        raise ValidationError("This field is required.")
    if field.data < 0:
        raise ValidationError("Scores cannot be negative.")


class StartTournamentForm(FlaskForm):
    """Form for starting a tournament from the session's attendees."""

    class Meta:
        csrf = False

    team_mode = SelectField(
        "Team Mode",
        choices=[
            (TeamMode.RANDOM.value, "Random Teams"),
            (TeamMode.FAIR.value, "Fair Teams (ELO)"),
        ],
        default=TeamMode.RANDOM.value,
        validators=[DataRequired()],
    )


class GameScoreForm(FlaskForm):
    """Form for recording one game of the active match."""

    class Meta:
        csrf = False

    match_id = StringField("Match", validators=[DataRequired()])
    score_a = IntegerField("Team A")
    score_b = IntegerField("Team B")

    def validate_score_a(self, field):
        """Validate that team A's score is present and not negative."""
        _check_score(field)

    def validate_score_b(self, field):
        """Validate that team B's score is present and not negative."""
        _check_score(field)
