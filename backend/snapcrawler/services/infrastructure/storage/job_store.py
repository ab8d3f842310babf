"""
Job persistence.

JobStore is the interface the pipeline depends on; FileJobStore keeps one JSON
document per job on disk. Updates are optimistic: a save only succeeds when
the caller read the version that is currently stored, and every write goes
to a temp file that replaces the old document in one rename, so a crash or a
cancelled task never leaves a half-written job behind.
"""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from threading import RLock
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from snapcrawler.core import (
    ConcurrentUpdateError,
    DuplicateJobError,
    JobNotFoundError,
    get_logger,
)
from snapcrawler.models.job import JobRecord
from snapcrawler.models.status import JobStatus

logger = get_logger(__name__, component="job_store")


class JobStore(ABC):
    """Abstract job repository used by stages, discovery and review."""

    @abstractmethod
    def create(self, job: JobRecord) -> JobRecord:
        """Persist a new job; DuplicateJobError if its source video already has an active job."""
        pass

    @abstractmethod
    def get(self, job_id: str) -> Optional[JobRecord]:
        pass

    @abstractmethod
    def save(self, job: JobRecord) -> JobRecord:
        """Write `job` if its version matches the stored one; returns the stored copy."""
        pass

    @abstractmethod
    def find_by_status(self, status: JobStatus, limit: Optional[int] = None) -> List[JobRecord]:
        """Jobs in `status`, oldest first."""
        pass

    @abstractmethod
    def find_by_source_id(self, source_video_id: str) -> List[JobRecord]:
        pass

    @abstractmethod
    def list_jobs(self, statuses: Optional[Iterable[JobStatus]] = None) -> List[JobRecord]:
        pass

    def require(self, job_id: str) -> JobRecord:
        job = self.get(job_id)
        if job is None:
            raise JobNotFoundError(f"Job {job_id} not found")
        return job

    def find_active_by_source_id(self, source_video_id: str) -> Optional[JobRecord]:
        for job in self.find_by_source_id(source_video_id):
            if job.is_active:
                return job
        return None

    def count_by_status(self) -> Dict[JobStatus, int]:
        counts = {status: 0 for status in JobStatus}
        for job in self.list_jobs():
            counts[job.status] += 1
        return counts


class FileJobStore(JobStore):
    """One `<job_id>.json` file per job with an in-memory status index."""

    def __init__(self, storage_dir: Path):
        self._storage_dir = Path(storage_dir)
        self._storage_dir.mkdir(parents=True, exist_ok=True)
        self._lock = RLock()
        # job_id -> (status, source_video_id)
        self._index: Dict[str, Tuple[JobStatus, str]] = {}
        self._index_jobs()

    @property
    def storage_dir(self) -> Path:
        return self._storage_dir

    def _job_file(self, job_id: str) -> Path:
        return self._storage_dir / f"{job_id}.json"

    def _index_jobs(self) -> None:
        with self._lock:
            self._index.clear()
            for job_file in self._storage_dir.glob("*.json"):
                job = self._load(job_file)
                if job is not None:
                    self._index[job.id] = (job.status, job.source_video_id)
        logger.info("Job store indexed", extra={"job_count": len(self._index), "path": str(self._storage_dir)})

    def _load(self, job_file: Path) -> Optional[JobRecord]:
        if not job_file.exists():
            return None
        try:
            with open(job_file, "r", encoding="utf-8") as f:
                return JobRecord.model_validate(json.load(f))
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            logger.error("Unreadable job file skipped", extra={"path": str(job_file), "error": str(exc)})
            return None

    def _write(self, job: JobRecord) -> None:
        payload = job.model_dump(mode="json")
        fd, tmp_path = tempfile.mkstemp(dir=self._storage_dir, prefix=f".{job.id}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self._job_file(job.id))
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise
        self._index[job.id] = (job.status, job.source_video_id)

    def create(self, job: JobRecord) -> JobRecord:
        with self._lock:
            if job.id in self._index:
                raise DuplicateJobError(f"Job {job.id} already exists")
            active = self.find_active_by_source_id(job.source_video_id)
            if active is not None:
                raise DuplicateJobError(
                    f"Source video {job.source_video_id} already has active job {active.id}"
                )
            self._write(job)
        logger.info(
            "Job created",
            extra={"job_id": job.id, "source_video_id": job.source_video_id, "status": job.status.value},
        )
        return job

    def get(self, job_id: str) -> Optional[JobRecord]:
        with self._lock:
            if job_id not in self._index:
                return None
            return self._load(self._job_file(job_id))

    def save(self, job: JobRecord) -> JobRecord:
        with self._lock:
            stored = self.get(job.id)
            if stored is None:
                raise JobNotFoundError(f"Job {job.id} not found")
            if stored.version != job.version:
                raise ConcurrentUpdateError(
                    f"Job {job.id} changed since it was read "
                    f"(stored version {stored.version}, given {job.version})"
                )
            saved = job.model_copy(update={"version": job.version + 1})
            self._write(saved)
            return saved

    def find_by_status(self, status: JobStatus, limit: Optional[int] = None) -> List[JobRecord]:
        with self._lock:
            ids = [job_id for job_id, (job_status, _) in self._index.items() if job_status == status]
            jobs = [job for job in (self._load(self._job_file(job_id)) for job_id in ids) if job]
        jobs.sort(key=lambda job: job.created_at)
        return jobs[:limit] if limit is not None else jobs

    def find_by_source_id(self, source_video_id: str) -> List[JobRecord]:
        with self._lock:
            ids = [job_id for job_id, (_, source) in self._index.items() if source == source_video_id]
            return [job for job in (self._load(self._job_file(job_id)) for job_id in ids) if job]

    def list_jobs(self, statuses: Optional[Iterable[JobStatus]] = None) -> List[JobRecord]:
        wanted = set(statuses) if statuses is not None else None
        with self._lock:
            ids = [
                job_id
                for job_id, (status, _) in self._index.items()
                if wanted is None or status in wanted
            ]
            jobs = [job for job in (self._load(self._job_file(job_id)) for job_id in ids) if job]
        jobs.sort(key=lambda job: job.created_at)
        return jobs

    def count_by_status(self) -> Dict[JobStatus, int]:
        counts = {status: 0 for status in JobStatus}
        with self._lock:
            for status, _ in self._index.values():
                counts[status] += 1
        return counts
