"""
Playoff engine exceptions.

Routes map these to HTTP status codes; services never raise HTTPException.
"""


class PlayoffError(Exception):
    """Base class for playoff engine failures"""

    pass


class PlayoffConfigError(PlayoffError):
    """Invalid bracket configuration (team counts, weeks_by_round, consolation size)"""

    pass


class PlayoffConflictError(PlayoffError):
    """Bracket already exists, playoff weeks overlap the schedule, or play has started"""

    pass


class PlayoffInvariantError(PlayoffError):
    """Data-integrity or programmer error detected during advancement. Never guessed around."""

    pass


class PlayoffNotFoundError(PlayoffError):
    """League or bracket does not exist"""

    pass
