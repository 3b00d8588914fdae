"""Global constants for the spikers application."""

# Firestore collections
SESSIONS_COLLECTION = "sessions"
TOURNAMENTS_COLLECTION = "tournaments"

# Team formation
MIN_TOURNAMENT_PLAYERS = 4
MIN_TOURNAMENT_TEAMS = 2
TEAM_SIZE = 2
# Smallest odd roster whose median player may enter fair mode solo
MIN_SOLO_ENTRANT_PLAYERS = 7

# Series
DEFAULT_BEST_OF = 3

# Display
UNRESOLVED_TEAM_NAME = "TBD"
