"""Standings collaborator: reads roster records for seeding. Computing them is owned elsewhere."""
from typing import List

from sqlmodel import Session, select

from playoffs.models.league import Roster
from playoffs.services.seeding import StandingRow, sort_standings_for_seeding


def get_standings(session: Session, league_id: int) -> List[StandingRow]:
    rosters = session.exec(select(Roster).where(Roster.league_id == league_id)).all()
    rows = [
        StandingRow(
            roster_id=r.id,
            team_name=r.team_name,
            wins=r.wins,
            losses=r.losses,
            ties=r.ties,
            points_for=float(r.points_for or 0),
        )
        for r in rosters
    ]
    return sort_standings_for_seeding(rows)
