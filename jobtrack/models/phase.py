from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint

from jobtrack.database import Base


class Phase(Base):
    __tablename__ = "phases"

    __table_args__ = (
        UniqueConstraint("job_id", "phase_name", name="uq_phases_job_id_phase_name"),
        CheckConstraint("required_labour_days >= 0", name="ck_phases_required_labour_days_nonnegative"),
        CheckConstraint("labour_cost_cents >= 0", name="ck_phases_labour_cost_cents_nonnegative"),
        CheckConstraint("material_cost_cents >= 0", name="ck_phases_material_cost_cents_nonnegative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, nullable=False, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)

    phase_name = Column(String, nullable=False)
    phase_order = Column(Integer, nullable=False, default=0)

    required_labour_days = Column(Integer, nullable=False, default=0)
    labour_cost_cents = Column(Integer, nullable=False, default=0)
    material_cost_cents = Column(Integer, nullable=False, default=0)

    status = Column(String, nullable=False, default="not_started")  # not_started|in_progress|completed
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
