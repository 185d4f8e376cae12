from __future__ import annotations

import hashlib
import logging
import math
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import PurePath
from typing import List, Optional

from sqlalchemy.orm import Session

from jobtrack.database import SessionLocal
from jobtrack.models.csv_upload import CsvUpload
from jobtrack.services import csv_detector, job_store
from jobtrack.services.cost_table import calculate_day_blocks, load_cost_table
from jobtrack.services.csv_detector import DetectedJob, DetectionResult, PhaseSummary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadResult:
    upload_id: int
    jobs_created: int
    status: str
    error_message: Optional[str] = None


def content_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def _fallback_name(filename: str) -> str:
    return PurePath(filename or "").stem.strip()


@lru_cache(maxsize=32)
def _detect_cached(content: str, fallback_name: str) -> DetectionResult:
    return csv_detector.detect(content, fallback_name=fallback_name, cost_table=load_cost_table())


def detect_jobs(content: str, filename: str = "") -> DetectionResult:
    """
    Detection shared by the review step and the upload step; identical content
    reuses the result reviewed by the operator.
    """
    return _detect_cached(content, _fallback_name(filename))


def required_labour_days(summary: PhaseSummary) -> int:
    return int(math.ceil(summary.labour_days)) + calculate_day_blocks(summary.labour_hours)


def _persist_job(db: Session, company_id: int, upload_id: int, detected: DetectedJob) -> None:
    job = job_store.create_job(
        db,
        company_id=company_id,
        title=detected.name,
        address=detected.address,
        post_code=detected.post_code,
        project_type=detected.project_type,
        upload_id=upload_id,
    )
    for order, summary in enumerate(detected.phase_breakdown):
        job_store.create_phase(
            db,
            job.id,
            company_id=company_id,
            phase_name=summary.name,
            phase_order=order,
            required_labour_days=required_labour_days(summary),
            labour_cost_cents=summary.labour_cost,
            material_cost_cents=summary.material_cost,
        )


def upload(
    company_id: int,
    filename: str,
    content: str,
    *,
    db: Optional[Session] = None,
) -> UploadResult:
    """
    Persist every named detected job and record the upload ledger row.

    Each job commits on its own, so this commits even when the caller passes
    a session. A failure part-way marks the ledger row failed with the number
    of jobs actually created; those jobs are kept, not rolled back.
    Raises CsvNoDataError before anything is written when content is not text.
    """
    detection = detect_jobs(content, filename)

    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        record = job_store.create_upload_record(
            db,
            company_id=company_id,
            filename=filename,
            content=content,
            content_hash=content_hash(content),
        )
        db.commit()
        upload_id = int(record.id)

        jobs_created = 0
        try:
            for detected in detection.jobs:
                if not detected.name.strip():
                    continue
                _persist_job(db, company_id, upload_id, detected)
                db.commit()
                jobs_created += 1
        except Exception as exc:
            db.rollback()
            error_message = str(exc) or exc.__class__.__name__
            logger.exception(
                "CSV upload failed part-way",
                extra={"upload_id": upload_id, "jobs_created": jobs_created},
            )
            job_store.update_upload_record(
                db,
                upload_id,
                status="failed",
                jobs_created=jobs_created,
                error_message=error_message,
            )
            db.commit()
            return UploadResult(
                upload_id=upload_id,
                jobs_created=jobs_created,
                status="failed",
                error_message=error_message,
            )

        job_store.update_upload_record(db, upload_id, status="completed", jobs_created=jobs_created)
        db.commit()

        logger.info(
            "CSV upload completed",
            extra={"upload_id": upload_id, "jobs_created": jobs_created, "upload_filename": filename},
        )
        return UploadResult(upload_id=upload_id, jobs_created=jobs_created, status="completed")
    except Exception:
        db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def _recent_uploads_limit() -> int:
    try:
        return max(1, int(os.getenv("RECENT_UPLOADS_LIMIT", "10")))
    except ValueError:
        return 10


def recent_uploads(
    company_id: int,
    *,
    limit: Optional[int] = None,
    db: Optional[Session] = None,
) -> List[CsvUpload]:
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        return job_store.list_uploads(
            db,
            company_id,
            limit=limit if limit is not None else _recent_uploads_limit(),
        )
    finally:
        if owns_db:
            db.close()


def delete_upload(company_id: int, upload_id: int, *, db: Optional[Session] = None) -> bool:
    """
    Remove the ledger row only. Jobs created from the upload stay.
    Unknown ids are a no-op; returns whether a row was removed.
    """
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        deleted = job_store.delete_upload_record(db, company_id, upload_id)
        if owns_db:
            db.commit()
        if deleted:
            logger.info("CSV upload ledger row deleted", extra={"upload_id": int(upload_id)})
        return deleted
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()
