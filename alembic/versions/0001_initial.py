"""Create the Kennedy CRM tables."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels: tuple[str, ...] | None = None
depends_on: tuple[str, ...] | None = None


def upgrade() -> None:
    # Hosted databases may already hold tables created by the dashboard
    existing = set(inspect(op.get_bind()).get_table_names())

    if "careers" not in existing:
        op.create_table(
            "careers",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.Text(), nullable=False),
            sa.Column("fees", sa.Text(), nullable=True),
            sa.Column("modality", sa.Text(), nullable=True),
        )

    if "students" not in existing:
        op.create_table(
            "students",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("full_name", sa.Text(), nullable=False),
            sa.Column("dni", sa.Text(), nullable=True, unique=True),
            sa.Column("legajo", sa.Text(), nullable=True, unique=True),
            sa.Column("career_id", sa.Integer(), sa.ForeignKey("careers.id"), nullable=True),
            sa.Column("contact_phone", sa.Text(), nullable=True),
            sa.Column("contact_email", sa.Text(), nullable=True),
            sa.Column("career_interest", sa.Text(), nullable=True),
            sa.Column("location", sa.Text(), nullable=True),
            sa.Column("status", sa.Text(), nullable=True),
            sa.Column("general_notes", sa.Text(), nullable=True),
            sa.Column("is_student_the_contact", sa.Boolean(), nullable=True),
            sa.Column("contact_person_name", sa.Text(), nullable=True),
            sa.Column("bot_students", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("secretaria", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("last_interaction_at", sa.DateTime(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        )

    if "student_documents" not in existing:
        op.create_table(
            "student_documents",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column(
                "student_id",
                sa.Integer(),
                sa.ForeignKey("students.id", ondelete="SET NULL"),
                nullable=True,
            ),
            sa.Column("owner_phone", sa.Text(), nullable=True),
            sa.Column("document_type", sa.Text(), nullable=False),
            sa.Column("drive_file_id", sa.Text(), nullable=False),
            sa.Column("file_name", sa.Text(), nullable=False),
            sa.Column("mime_type", sa.Text(), nullable=True),
            sa.Column("uploaded_at", sa.DateTime(), nullable=True),
        )

    if "n8n_chat_histories" not in existing:
        op.create_table(
            "n8n_chat_histories",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("session_id", sa.Text(), nullable=False),
            sa.Column("message", sa.JSON(), nullable=True),
        )
        op.create_index("ix_n8n_chat_histories_session_id", "n8n_chat_histories", ["session_id"])

    if "bot_settings" not in existing:
        op.create_table(
            "bot_settings",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("is_active", sa.Boolean(), nullable=True),
            sa.Column("welcome_message", sa.Text(), nullable=True),
            sa.Column("away_message", sa.Text(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        )


def downgrade() -> None:
    op.drop_table("bot_settings")
    op.drop_index("ix_n8n_chat_histories_session_id", table_name="n8n_chat_histories")
    op.drop_table("n8n_chat_histories")
    op.drop_table("student_documents")
    op.drop_table("students")
    op.drop_table("careers")
