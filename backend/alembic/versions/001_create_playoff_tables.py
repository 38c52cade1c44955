"""Create league, roster, matchup and playoff bracket tables

Revision ID: 001_playoffs
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_playoffs"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "league",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("season", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "roster",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("league_id", sa.Integer(), nullable=False),
        sa.Column("team_name", sa.String(), nullable=False),
        sa.Column("wins", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("losses", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("ties", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("points_for", sa.Float(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["league_id"], ["league.id"]),
    )
    op.create_index("ix_roster_league_id", "roster", ["league_id"])

    op.create_table(
        "playoffbracket",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("league_id", sa.Integer(), nullable=False),
        sa.Column("season", sa.Integer(), nullable=False),
        sa.Column("playoff_teams", sa.Integer(), nullable=False),
        sa.Column("total_rounds", sa.Integer(), nullable=False),
        sa.Column("start_week", sa.Integer(), nullable=False),
        sa.Column("championship_week", sa.Integer(), nullable=False),
        sa.Column("weeks_by_round", sa.JSON(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("enable_third_place", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("consolation_type", sa.String(), nullable=False, server_default="NONE"),
        sa.Column("consolation_teams", sa.Integer(), nullable=True),
        sa.Column("champion_roster_id", sa.Integer(), nullable=True),
        sa.Column("third_place_roster_id", sa.Integer(), nullable=True),
        sa.Column("consolation_winner_roster_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["league_id"], ["league.id"]),
        sa.ForeignKeyConstraint(["champion_roster_id"], ["roster.id"]),
        sa.ForeignKeyConstraint(["third_place_roster_id"], ["roster.id"]),
        sa.ForeignKeyConstraint(["consolation_winner_roster_id"], ["roster.id"]),
        sa.UniqueConstraint("league_id", "season", name="uq_bracket_league_season"),
    )
    op.create_index("ix_playoffbracket_league_id", "playoffbracket", ["league_id"])

    op.create_table(
        "playoffseed",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("bracket_id", sa.Integer(), nullable=False),
        sa.Column("roster_id", sa.Integer(), nullable=False),
        sa.Column("bracket_type", sa.String(), nullable=False, server_default="WINNERS"),
        sa.Column("seed", sa.Integer(), nullable=False),
        sa.Column("regular_season_record", sa.String(), nullable=False, server_default=""),
        sa.Column("points_for", sa.Float(), nullable=False, server_default="0"),
        sa.Column("has_bye", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["bracket_id"], ["playoffbracket.id"]),
        sa.ForeignKeyConstraint(["roster_id"], ["roster.id"]),
        sa.UniqueConstraint("bracket_id", "bracket_type", "seed", name="uq_seed_bracket_type_seed"),
        sa.UniqueConstraint("bracket_id", "bracket_type", "roster_id", name="uq_seed_bracket_type_roster"),
    )
    op.create_index("ix_playoffseed_bracket_id", "playoffseed", ["bracket_id"])

    op.create_table(
        "matchup",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("league_id", sa.Integer(), nullable=False),
        sa.Column("season", sa.Integer(), nullable=False),
        sa.Column("week", sa.Integer(), nullable=False),
        sa.Column("roster1_id", sa.Integer(), nullable=False),
        sa.Column("roster2_id", sa.Integer(), nullable=False),
        sa.Column("roster1_points", sa.Numeric(6, 2), nullable=True),
        sa.Column("roster2_points", sa.Numeric(6, 2), nullable=True),
        sa.Column("is_final", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_playoff", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("bracket_type", sa.String(), nullable=True),
        sa.Column("playoff_round", sa.Integer(), nullable=True),
        sa.Column("playoff_seed1", sa.Integer(), nullable=True),
        sa.Column("playoff_seed2", sa.Integer(), nullable=True),
        sa.Column("bracket_position", sa.Integer(), nullable=True),
        sa.Column("series_id", sa.String(), nullable=True),
        sa.Column("series_game", sa.Integer(), nullable=True),
        sa.Column("series_length", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["league_id"], ["league.id"]),
        sa.ForeignKeyConstraint(["roster1_id"], ["roster.id"]),
        sa.ForeignKeyConstraint(["roster2_id"], ["roster.id"]),
        # Idempotency key for playoff matchup creation
        sa.UniqueConstraint(
            "league_id",
            "season",
            "bracket_type",
            "playoff_round",
            "bracket_position",
            "series_game",
            name="uq_playoff_matchup_slot",
        ),
    )
    op.create_index("ix_matchup_league_id", "matchup", ["league_id"])
    op.create_index("ix_matchup_week", "matchup", ["week"])
    op.create_index("ix_matchup_series_id", "matchup", ["series_id"])


def downgrade() -> None:
    op.drop_index("ix_matchup_series_id", table_name="matchup")
    op.drop_index("ix_matchup_week", table_name="matchup")
    op.drop_index("ix_matchup_league_id", table_name="matchup")
    op.drop_table("matchup")
    op.drop_index("ix_playoffseed_bracket_id", table_name="playoffseed")
    op.drop_table("playoffseed")
    op.drop_index("ix_playoffbracket_league_id", table_name="playoffbracket")
    op.drop_table("playoffbracket")
    op.drop_index("ix_roster_league_id", table_name="roster")
    op.drop_table("roster")
    op.drop_table("league")
