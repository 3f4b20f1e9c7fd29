"""Initial marketplace schema.

Notes:
- UUID primary keys are generated in the application layer.
- Enums use VARCHAR + CHECK constraints (native_enum=False).
- Nested documents (schedules, addresses, bank details, fee configuration)
  are stored as JSON.
"""

from __future__ import annotations

from typing import Optional

from alembic import op

from academy_api.db.base import Base

# Revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision: Optional[str] = None
branch_labels: Optional[str] = None
depends_on: Optional[str] = None


def upgrade() -> None:
    # Import models so Base.metadata is populated.
    import academy_api.models  # noqa: F401

    Base.metadata.create_all(bind=op.get_bind())


def downgrade() -> None:  # pragma: no cover
    raise NotImplementedError("Downgrades are not supported.")
