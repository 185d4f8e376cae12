from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text

from jobtrack.database import Base


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, nullable=False, index=True)

    # provenance only; the upload ledger row can be deleted independently
    upload_id = Column(Integer, nullable=True, index=True)

    title = Column(String, nullable=False)
    address = Column(Text, nullable=True)
    post_code = Column(String, nullable=True)
    project_type = Column(String, nullable=True)

    status = Column(String, nullable=False, default="pending")  # pending|in_progress|completed|cancelled
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
