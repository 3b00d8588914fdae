"""Custom exception classes for the application."""


class AppError(Exception):
    """Base application error class."""

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ValidationError(AppError):
    """Raised when user input fails validation."""

    def __init__(self, message="Validation failed."):
        """Initialize the error."""
        super().__init__(message, 400)


class DuplicateResourceError(AppError):
    """Raised when trying to create a resource that already exists."""

    def __init__(self, message="Resource already exists."):
        """Initialize the error."""
        super().__init__(message, 409)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class ConflictError(AppError):
    """Raised when a request conflicts with the current state of a resource."""

    def __init__(self, message="The request conflicts with the current state."):
        """Initialize the error."""
        super().__init__(message, 409)


# Tournament errors


class InsufficientPlayersError(ValidationError):
    """Raised when a roster cannot be split into teams."""

    def __init__(self, message="Need at least 4 attending players to form teams."):
        """Initialize the error."""
        super().__init__(message)


class InsufficientMiddleRangeError(ValidationError):
    """Raised when fair pairing leaves a player without a partner."""

    def __init__(
        self, message="Not enough mid-rated players to complete fair teams."
    ):
        """Initialize the error."""
        super().__init__(message)


class InvalidScoreError(ValidationError):
    """Raised for tied, negative or malformed game scores."""

    def __init__(self, message="Games cannot end in a tie."):
        """Initialize the error."""
        super().__init__(message)


class SeriesAlreadyDecidedError(ConflictError):
    """Raised when a game is recorded against a finished series."""

    def __init__(self, message="This match has already been decided."):
        """Initialize the error."""
        super().__init__(message)


class MatchNotReadyError(ConflictError):
    """Raised when a game is recorded before both teams are known."""

    def __init__(self, message="Both teams must be decided before this match."):
        """Initialize the error."""
        super().__init__(message)


class SessionNotInProgressError(ConflictError):
    """Raised when a tournament is started outside an in-progress session."""

    def __init__(self, message="Start the session before starting a tournament."):
        """Initialize the error."""
        super().__init__(message)


class StaleTournamentError(ConflictError):
    """Raised when a tournament changed since it was read."""

    def __init__(self, message="The tournament was updated. Refresh and try again."):
        """Initialize the error."""
        super().__init__(message)


class TournamentAlreadyActiveError(DuplicateResourceError):
    """Raised when a session already has an active tournament."""

    def __init__(self, message="A tournament is already in progress."):
        """Initialize the error."""
        super().__init__(message)


class NoActiveTournamentError(NotFoundError):
    """Raised when a command needs an active tournament and there is none."""

    def __init__(self, message="There is no active tournament."):
        """Initialize the error."""
        super().__init__(message)


class MatchNotFoundError(NotFoundError):
    """Raised when a match id does not belong to the tournament."""

    def __init__(self, message="Match not found."):
        """Initialize the error."""
        super().__init__(message)


class SessionNotFoundError(NotFoundError):
    """Raised when a session document does not exist."""

    def __init__(self, message="Session not found."):
        """Initialize the error."""
        super().__init__(message)
