from jobtrack.models.csv_upload import CsvUpload
from jobtrack.models.job import Job
from jobtrack.models.job_assignment import JobAssignment
from jobtrack.models.phase import Phase

__all__ = [
    "CsvUpload",
    "Job",
    "JobAssignment",
    "Phase",
]
