"""
Storage Collaborator
====================

Persistence interface the core calls at every status checkpoint. The core never
embeds persistence logic; production deployments implement ``Storage`` over
their relational store.

``InMemoryStorage`` keeps copies of saved entities, so callers hold values, not
shared references, exactly as they would with a database.
"""

import copy
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

from document_reader.models import BatchJob, Document

JOB_EXPIRY_HOURS = 24


class Storage(ABC):
    """Abstract document and batch-job storage."""

    @abstractmethod
    def load_document(self, document_id: str) -> Document | None: ...

    @abstractmethod
    def save_document(self, document: Document) -> None: ...

    @abstractmethod
    def load_batch_job(self, job_id: str) -> BatchJob | None: ...

    @abstractmethod
    def save_batch_job(self, job: BatchJob) -> None: ...

    @abstractmethod
    def delete_batch_job(self, job_id: str) -> bool: ...

    def load_documents(self, job: BatchJob) -> list[Document]:
        """Documents owned by a job, in job order, skipping missing ones."""
        documents = (self.load_document(doc_id) for doc_id in job.document_ids)
        return [doc for doc in documents if doc is not None]


class InMemoryStorage(Storage):
    """Thread-safe in-memory storage for development and tests."""

    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}
        self._jobs: dict[str, BatchJob] = {}
        self._lock = threading.Lock()

    def load_document(self, document_id: str) -> Document | None:
        with self._lock:
            document = self._documents.get(document_id)
            return copy.deepcopy(document) if document else None

    def save_document(self, document: Document) -> None:
        with self._lock:
            self._documents[document.id] = copy.deepcopy(document)

    def load_batch_job(self, job_id: str) -> BatchJob | None:
        with self._lock:
            job = self._jobs.get(job_id)
            return copy.deepcopy(job) if job else None

    def save_batch_job(self, job: BatchJob) -> None:
        with self._lock:
            self._jobs[job.id] = copy.deepcopy(job)

    def list_batch_jobs(self) -> list[BatchJob]:
        """All jobs, newest first."""
        with self._lock:
            jobs = [copy.deepcopy(job) for job in self._jobs.values()]
        return sorted(jobs, key=lambda job: job.created_at, reverse=True)

    def delete_batch_job(self, job_id: str) -> bool:
        """Delete a job and cascade to its documents."""
        with self._lock:
            job = self._jobs.pop(job_id, None)
            if job is None:
                return False
            for document_id in job.document_ids:
                self._documents.pop(document_id, None)
            return True

    def cleanup_expired(self, max_age: timedelta = timedelta(hours=JOB_EXPIRY_HOURS)) -> int:
        """Remove terminal jobs older than ``max_age``. Returns the count removed."""
        cutoff = datetime.now(timezone.utc) - max_age
        with self._lock:
            expired = [
                job_id
                for job_id, job in self._jobs.items()
                if job.is_terminal and job.created_at < cutoff
            ]
        return sum(1 for job_id in expired if self.delete_batch_job(job_id))
