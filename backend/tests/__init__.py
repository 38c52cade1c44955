# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from playoffs.models.league import League, Roster  # noqa: F401
from playoffs.models.matchup import Matchup  # noqa: F401
from playoffs.models.playoff_bracket import PlayoffBracket  # noqa: F401
from playoffs.models.playoff_seed import PlayoffSeed  # noqa: F401
