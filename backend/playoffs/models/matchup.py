from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel


class Matchup(SQLModel, table=True):
    __table_args__ = (
        # Idempotency key for playoff matchup creation. Regular-season rows carry
        # NULL bracket_type/playoff_round and never collide.
        SAUniqueConstraint(
            "league_id",
            "season",
            "bracket_type",
            "playoff_round",
            "bracket_position",
            "series_game",
            name="uq_playoff_matchup_slot",
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    league_id: int = Field(foreign_key="league.id", index=True)
    season: int
    week: int = Field(index=True)
    roster1_id: int = Field(foreign_key="roster.id")
    roster2_id: int = Field(foreign_key="roster.id")

    # Scores are owned by the scoring collaborator; is_final flips once both are recorded.
    # DECIMAL(6,2): series totals are summed and compared as Decimal
    roster1_points: Optional[Decimal] = Field(default=None, max_digits=6, decimal_places=2)
    roster2_points: Optional[Decimal] = Field(default=None, max_digits=6, decimal_places=2)
    is_final: bool = Field(default=False)

    # Playoff metadata (NULL on regular-season games)
    is_playoff: bool = Field(default=False)
    bracket_type: Optional[str] = Field(default=None)  # "WINNERS" | "THIRD_PLACE" | "CONSOLATION"
    playoff_round: Optional[int] = Field(default=None)
    playoff_seed1: Optional[int] = Field(default=None)
    playoff_seed2: Optional[int] = Field(default=None)
    bracket_position: Optional[int] = Field(default=None)

    # Multi-week series linkage; series_id is NULL for one-game rounds
    series_id: Optional[str] = Field(default=None, index=True)
    series_game: Optional[int] = Field(default=None)  # 1 | 2
    series_length: Optional[int] = Field(default=None)  # 1 | 2

    created_at: datetime = Field(default_factory=datetime.utcnow)
