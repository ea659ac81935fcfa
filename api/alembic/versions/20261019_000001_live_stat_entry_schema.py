"""Live stat-entry schema: games, players, game_events."""

from __future__ import annotations

from alembic import op

from scorebook.db.base import Base
import scorebook.db.live  # noqa: F401

# revision identifiers, used by Alembic.
revision = "20261019_000001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create the schema from SQLAlchemy metadata."""
    bind = op.get_bind()
    Base.metadata.create_all(bind=bind)


def downgrade() -> None:
    """Drop all tables from SQLAlchemy metadata."""
    bind = op.get_bind()
    Base.metadata.drop_all(bind=bind)
