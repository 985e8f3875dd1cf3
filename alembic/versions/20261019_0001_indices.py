"""indices for meal pagination and favorites lookups

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00

"""
from alembic import op

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    # Nota: SQLModel usa nombres de tabla "meal" y "favorite"
    # listado: ORDER BY created_at DESC, id DESC
    op.create_index("ix_meal_created_id", "meal", ["created_at", "id"], unique=False, if_not_exists=True)
    op.create_index("ix_meal_user_created", "meal", ["user_id", "created_at"], unique=False, if_not_exists=True)
    op.create_index("ix_favorite_user_created", "favorite", ["user_id", "created_at"], unique=False, if_not_exists=True)

def downgrade():
    op.drop_index("ix_favorite_user_created", table_name="favorite", if_exists=True)
    op.drop_index("ix_meal_user_created", table_name="meal", if_exists=True)
    op.drop_index("ix_meal_created_id", table_name="meal", if_exists=True)
