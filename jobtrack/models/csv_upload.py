from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text

from jobtrack.database import Base


class CsvUpload(Base):
    __tablename__ = "csv_uploads"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, nullable=False, index=True)

    filename = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    content_hash = Column(String(64), nullable=False, index=True)

    status = Column(String, nullable=False, default="pending")  # pending|completed|failed
    jobs_created = Column(Integer, nullable=False, default=0)
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
