from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from playoffs.models.league import League
    from playoffs.models.playoff_seed import PlayoffSeed

STATUS_PENDING = "pending"
STATUS_ACTIVE = "active"
STATUS_COMPLETED = "completed"

CONSOLATION_NONE = "NONE"
CONSOLATION_ENABLED = "CONSOLATION"


class PlayoffBracket(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("league_id", "season", name="uq_bracket_league_season"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    league_id: int = Field(foreign_key="league.id", index=True)
    season: int
    playoff_teams: int  # 4 | 6 | 8
    total_rounds: int
    start_week: int
    championship_week: int
    weeks_by_round: Optional[List[int]] = Field(default=None, sa_column=Column(JSON))  # e.g. [1, 2, 2]
    status: str = Field(default=STATUS_PENDING)  # "pending" | "active" | "completed"

    enable_third_place: bool = Field(default=False)
    consolation_type: str = Field(default=CONSOLATION_NONE)  # "NONE" | "CONSOLATION"
    consolation_teams: Optional[int] = Field(default=None)  # 4 | 6 | 8 when consolation is enabled

    # Terminal results, each written once by its bracket-type engine
    champion_roster_id: Optional[int] = Field(default=None, foreign_key="roster.id")
    third_place_roster_id: Optional[int] = Field(default=None, foreign_key="roster.id")
    consolation_winner_roster_id: Optional[int] = Field(default=None, foreign_key="roster.id")

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    league: "League" = Relationship(back_populates="brackets")
    seeds: List["PlayoffSeed"] = Relationship(
        back_populates="bracket", sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )

    @property
    def consolation_enabled(self) -> bool:
        return self.consolation_type == CONSOLATION_ENABLED and bool(self.consolation_teams)
