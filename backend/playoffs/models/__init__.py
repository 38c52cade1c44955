from playoffs.models.league import League, Roster
from playoffs.models.matchup import Matchup
from playoffs.models.playoff_bracket import PlayoffBracket
from playoffs.models.playoff_seed import PlayoffSeed

__all__ = [
    "League",
    "Roster",
    "PlayoffBracket",
    "PlayoffSeed",
    "Matchup",
]
