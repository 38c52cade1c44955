from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from playoffs.models.playoff_bracket import PlayoffBracket


class League(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    season: int
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    rosters: List["Roster"] = Relationship(back_populates="league")
    brackets: List["PlayoffBracket"] = Relationship(back_populates="league")


class Roster(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    league_id: int = Field(foreign_key="league.id", index=True)
    team_name: str

    # Regular-season record, maintained by the standings owner (read-only here)
    wins: int = Field(default=0)
    losses: int = Field(default=0)
    ties: int = Field(default=0)
    points_for: float = Field(default=0.0)

    # Relationships
    league: "League" = Relationship(back_populates="rosters")
