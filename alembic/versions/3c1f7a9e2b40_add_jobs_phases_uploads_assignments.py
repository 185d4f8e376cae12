"""add jobs phases csv uploads and job assignments

Revision ID: 3c1f7a9e2b40
Revises:
Create Date: 2026-03-02 09:14:27.118402

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f7a9e2b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "csv_uploads",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("filename", sa.String(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("content_hash", sa.String(length=64), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("jobs_created", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_csv_uploads_id", "csv_uploads", ["id"], unique=False)
    op.create_index("ix_csv_uploads_company_id", "csv_uploads", ["company_id"], unique=False)
    op.create_index("ix_csv_uploads_content_hash", "csv_uploads", ["content_hash"], unique=False)
    op.create_index("ix_csv_uploads_created_at", "csv_uploads", ["created_at"], unique=False)

    op.create_table(
        "jobs",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("upload_id", sa.Integer(), nullable=True),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("post_code", sa.String(), nullable=True),
        sa.Column("project_type", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_jobs_id", "jobs", ["id"], unique=False)
    op.create_index("ix_jobs_company_id", "jobs", ["company_id"], unique=False)
    op.create_index("ix_jobs_upload_id", "jobs", ["upload_id"], unique=False)

    op.create_table(
        "phases",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("job_id", sa.Integer(), nullable=False),
        sa.Column("phase_name", sa.String(), nullable=False),
        sa.Column("phase_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("required_labour_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("labour_cost_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("material_cost_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(), nullable=False, server_default="not_started"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["job_id"], ["jobs.id"]),
        sa.UniqueConstraint("job_id", "phase_name", name="uq_phases_job_id_phase_name"),
        sa.CheckConstraint("required_labour_days >= 0", name="ck_phases_required_labour_days_nonnegative"),
        sa.CheckConstraint("labour_cost_cents >= 0", name="ck_phases_labour_cost_cents_nonnegative"),
        sa.CheckConstraint("material_cost_cents >= 0", name="ck_phases_material_cost_cents_nonnegative"),
    )
    op.create_index("ix_phases_id", "phases", ["id"], unique=False)
    op.create_index("ix_phases_company_id", "phases", ["company_id"], unique=False)
    op.create_index("ix_phases_job_id", "phases", ["job_id"], unique=False)

    op.create_table(
        "job_assignments",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("job_id", sa.Integer(), nullable=False),
        sa.Column("contractor_id", sa.Integer(), nullable=False),
        sa.Column("selected_phases", sa.JSON(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("special_instructions", sa.Text(), nullable=True),
        sa.Column("team_assignment", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["job_id"], ["jobs.id"]),
        sa.CheckConstraint("end_date >= start_date", name="ck_job_assignments_date_range"),
    )
    op.create_index("ix_job_assignments_id", "job_assignments", ["id"], unique=False)
    op.create_index("ix_job_assignments_company_id", "job_assignments", ["company_id"], unique=False)
    op.create_index("ix_job_assignments_job_id", "job_assignments", ["job_id"], unique=False)
    op.create_index("ix_job_assignments_contractor_id", "job_assignments", ["contractor_id"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_job_assignments_contractor_id", table_name="job_assignments")
    op.drop_index("ix_job_assignments_job_id", table_name="job_assignments")
    op.drop_index("ix_job_assignments_company_id", table_name="job_assignments")
    op.drop_index("ix_job_assignments_id", table_name="job_assignments")
    op.drop_table("job_assignments")

    op.drop_index("ix_phases_job_id", table_name="phases")
    op.drop_index("ix_phases_company_id", table_name="phases")
    op.drop_index("ix_phases_id", table_name="phases")
    op.drop_table("phases")

    op.drop_index("ix_jobs_upload_id", table_name="jobs")
    op.drop_index("ix_jobs_company_id", table_name="jobs")
    op.drop_index("ix_jobs_id", table_name="jobs")
    op.drop_table("jobs")

    op.drop_index("ix_csv_uploads_created_at", table_name="csv_uploads")
    op.drop_index("ix_csv_uploads_content_hash", table_name="csv_uploads")
    op.drop_index("ix_csv_uploads_company_id", table_name="csv_uploads")
    op.drop_index("ix_csv_uploads_id", table_name="csv_uploads")
    op.drop_table("csv_uploads")
