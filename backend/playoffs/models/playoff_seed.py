from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from playoffs.models.playoff_bracket import PlayoffBracket


class PlayoffSeed(SQLModel, table=True):
    __table_args__ = (
        # Same seed number may exist once per sub-bracket
        SAUniqueConstraint("bracket_id", "bracket_type", "seed", name="uq_seed_bracket_type_seed"),
        # A roster appears at most once per sub-bracket
        SAUniqueConstraint("bracket_id", "bracket_type", "roster_id", name="uq_seed_bracket_type_roster"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    bracket_id: int = Field(foreign_key="playoffbracket.id", index=True)
    roster_id: int = Field(foreign_key="roster.id")
    bracket_type: str = Field(default="WINNERS")  # "WINNERS" | "CONSOLATION"
    seed: int  # 1-based, 1 = best regular-season finish within the sub-bracket
    regular_season_record: str = Field(default="")
    points_for: float = Field(default=0.0)
    has_bye: bool = Field(default=False)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    bracket: "PlayoffBracket" = Relationship(back_populates="seeds")
