from datetime import datetime

from sqlalchemy import JSON, Boolean, CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, Text

from jobtrack.database import Base


class JobAssignment(Base):
    __tablename__ = "job_assignments"

    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="ck_job_assignments_date_range"),
    )

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, nullable=False, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    contractor_id = Column(Integer, nullable=False, index=True)

    # empty list means every phase of the job
    selected_phases = Column(JSON, nullable=False, default=list)

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    special_instructions = Column(Text, nullable=True)
    team_assignment = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
