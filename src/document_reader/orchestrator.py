"""
Batch Orchestrator
==================

Runs the extraction (and optional analysis) pipeline over a batch of up to
1000 documents on a fixed-size worker pool.

Job lifecycle:
    PENDING -> RUNNING -> COMPLETED | FAILED | CANCELLED

- Per-document failures are counted, never propagated: a batch with failed
  documents still finishes COMPLETED.
- Cancellation is cooperative: documents already started finish, nothing new is
  scheduled, and the job ends CANCELLED with processed < total. A cancel that
  arrives after the last document was taken still ends COMPLETED.
- A collaborator failure while loading a document fails that document only;
  the worker moves on to the next one.
- Job counters change only through ProgressTracker, one update per finished
  document, under a single lock.
- Each document is loaded, mutated and saved by exactly one worker.
"""

import logging
import queue
import threading
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from document_reader.analysis import DocumentAnalyzer
from document_reader.config import DEFAULT_MAX_WORKERS
from document_reader.errors import BatchError, RouteError
from document_reader.extractor import ExtractionEngine
from document_reader.models import BatchJob, BatchStatus, Document, DocumentStatus
from document_reader.storage import Storage

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 1000
EXTRACTION_INFO_MARKER = "=== EXTRACTION INFO ==="


def read_document_file(document: Document) -> bytes:
    return Path(document.file_path).read_bytes()


class ProgressTracker:
    """Serializes every mutation of one batch job's status and counters."""

    def __init__(self, storage: Storage, job_id: str):
        self.storage = storage
        self.job_id = job_id
        self._lock = threading.Lock()

    def _load(self) -> BatchJob:
        job = self.storage.load_batch_job(self.job_id)
        if job is None:
            raise BatchError(f"Batch job not found: {self.job_id}")
        return job

    def start(self) -> BatchJob:
        with self._lock:
            job = self._load()
            job.status = BatchStatus.RUNNING
            job.started_at = datetime.now(timezone.utc)
            self.storage.save_batch_job(job)
            return job

    def record(self, success: bool) -> BatchJob:
        """Count one finished document. Called exactly once per document."""
        with self._lock:
            job = self._load()
            if job.processed_count >= job.total_documents:
                raise BatchError(
                    f"Progress overflow on job {job.id}: "
                    f"{job.processed_count}/{job.total_documents} already processed"
                )
            job.processed_count += 1
            if success:
                job.success_count += 1
            else:
                job.failure_count += 1
            self.storage.save_batch_job(job)

        logger.info(
            "Batch progress: %d/%d (%d%% complete)",
            job.processed_count,
            job.total_documents,
            int(job.progress_percentage),
        )
        return job

    def current(self) -> BatchJob:
        with self._lock:
            return self._load()

    def finish(self, status: BatchStatus) -> BatchJob:
        with self._lock:
            job = self._load()
            job.status = status
            job.completed_at = datetime.now(timezone.utc)
            self.storage.save_batch_job(job)
            return job


class BatchOrchestrator:
    """
    Creates, runs and cancels batch jobs.

    Attributes:
        storage: Persistence collaborator, called after each status transition
        engine: Extraction engine shared by all workers
        analyzer: Runs the analysis template; required only for templated jobs
        max_workers: Pool size, the hard bound on concurrent documents
    """

    def __init__(
        self,
        storage: Storage,
        engine: ExtractionEngine,
        analyzer: DocumentAnalyzer | None = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        load_bytes: Callable[[Document], bytes] = read_document_file,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.storage = storage
        self.engine = engine
        self.analyzer = analyzer
        self.max_workers = max_workers
        self.load_bytes = load_bytes
        self._cancel_events: dict[str, threading.Event] = {}
        self._runs_lock = threading.Lock()

    def create_batch_job(
        self,
        name: str,
        documents: Sequence[Document],
        analysis_template: str | None = None,
        description: str | None = None,
    ) -> BatchJob:
        """
        Register a new PENDING job owning ``documents``.

        Raises:
            BatchError: If there are no documents, more than MAX_BATCH_SIZE, or
                a document is not a PDF
        """
        if not documents:
            raise BatchError("No documents provided")
        if len(documents) > MAX_BATCH_SIZE:
            raise BatchError(f"Maximum {MAX_BATCH_SIZE} documents allowed per batch")
        for document in documents:
            if not document.filename.lower().endswith(".pdf"):
                raise BatchError(f"Only PDF files allowed: {document.filename}")

        job = BatchJob(
            name=name,
            description=description,
            analysis_template=analysis_template or None,
            total_documents=len(documents),
            document_ids=[document.id for document in documents],
        )
        for document in documents:
            document.batch_job_id = job.id
            document.transition(DocumentStatus.UPLOADED)
            self.storage.save_document(document)
        self.storage.save_batch_job(job)

        logger.info("Batch job '%s' created with %d documents", name, len(documents))
        return job

    def run_batch(self, job_id: str) -> BatchJob:
        """
        Process every document of a job and return the final job state.

        Blocks until all started documents finish.

        Raises:
            BatchError: If the job cannot be loaded, is already running, or the
                worker pool cannot start
        """
        with self._runs_lock:
            job = self.storage.load_batch_job(job_id)
            if job is None:
                raise BatchError(f"Batch job not found: {job_id}")
            if job.is_terminal:
                logger.info("Batch job %s already %s", job_id, job.status.value)
                return job
            if job_id in self._cancel_events:
                raise BatchError(f"Batch job already running: {job_id}")
            if job.analysis_template and self.analyzer is None:
                raise BatchError("Job has an analysis template but no analyzer is configured")
            cancel_event = threading.Event()
            self._cancel_events[job_id] = cancel_event

        try:
            return self._run(job, cancel_event)
        finally:
            with self._runs_lock:
                self._cancel_events.pop(job_id, None)

    def start_batch(self, job_id: str) -> threading.Thread:
        """Run a batch on a background thread; join the thread to wait."""
        thread = threading.Thread(
            target=self.run_batch, args=(job_id,), name=f"batch-{job_id[:8]}", daemon=True
        )
        thread.start()
        return thread

    def cancel(self, job_id: str) -> BatchJob:
        """
        Request cancellation.

        A running job stops scheduling new documents and becomes CANCELLED once
        in-flight documents finish. A pending job is cancelled immediately.
        Terminal jobs are returned unchanged.
        """
        with self._runs_lock:
            event = self._cancel_events.get(job_id)
            if event is not None:
                event.set()
                logger.info("Cancellation requested for batch job %s", job_id)
            else:
                job = self.storage.load_batch_job(job_id)
                if job is None:
                    raise BatchError(f"Batch job not found: {job_id}")
                if not job.is_terminal:
                    job = ProgressTracker(self.storage, job_id).finish(BatchStatus.CANCELLED)
                    logger.info("Batch job cancelled: %s", job_id)
                return job

        job = self.storage.load_batch_job(job_id)
        if job is None:
            raise BatchError(f"Batch job not found: {job_id}")
        return job

    def summary(self, job_id: str) -> dict[str, Any]:
        """Counts, progress, timing and per-document status of a job."""
        job = self.storage.load_batch_job(job_id)
        if job is None:
            raise BatchError(f"Batch job not found: {job_id}")
        return {
            "job_name": job.name,
            "status": job.status.value,
            "total_documents": job.total_documents,
            "processed_count": job.processed_count,
            "success_count": job.success_count,
            "failure_count": job.failure_count,
            "progress_percentage": job.progress_percentage,
            "estimated_time_remaining": job.estimated_time_remaining(),
            "started_at": job.started_at.isoformat() if job.started_at else None,
            "completed_at": job.completed_at.isoformat() if job.completed_at else None,
            "documents": [
                {
                    "id": document.id,
                    "filename": document.filename,
                    "status": document.status.value,
                    "pages": document.total_pages or 0,
                    "file_size": document.file_size,
                }
                for document in self.storage.load_documents(job)
            ],
        }

    def _run(self, job: BatchJob, cancel_event: threading.Event) -> BatchJob:
        tracker = ProgressTracker(self.storage, job.id)
        job = tracker.start()

        tasks: queue.Queue[str] = queue.Queue()
        for document_id in job.document_ids:
            tasks.put(document_id)

        worker_count = min(self.max_workers, len(job.document_ids)) or 1
        logger.info(
            "=== BATCH PROCESSING STARTED: %s (%d documents, %d workers) ===",
            job.id,
            job.total_documents,
            worker_count,
        )

        workers = [
            threading.Thread(
                target=self._worker,
                args=(tasks, job, tracker, cancel_event),
                name=f"batch-{job.id[:8]}-worker-{index}",
                daemon=True,
            )
            for index in range(worker_count)
        ]
        started = []
        try:
            for worker in workers:
                worker.start()
                started.append(worker)
        except RuntimeError as e:
            cancel_event.set()
            for worker in started:
                worker.join()
            tracker.finish(BatchStatus.FAILED)
            raise BatchError(f"Could not start worker pool: {e}") from e

        for worker in workers:
            worker.join()

        job = tracker.finish(self._final_status(tracker.current(), cancel_event))
        final_status = job.status
        logger.info(
            "=== BATCH PROCESSING %s: %s === Success: %d, Failed: %d, Processed: %s",
            final_status.value.upper(),
            job.id,
            job.success_count,
            job.failure_count,
            job.progress_text,
        )
        return job

    @staticmethod
    def _final_status(job: BatchJob, cancel_event: threading.Event) -> BatchStatus:
        """
        COMPLETED once every document is counted, even if a cancel arrived
        while the last ones were in flight. CANCELLED only when documents were
        left unscheduled.
        """
        if job.processed_count == job.total_documents:
            return BatchStatus.COMPLETED
        if cancel_event.is_set():
            return BatchStatus.CANCELLED
        logger.error(
            "Batch job %s ended with uncounted documents (%s)", job.id, job.progress_text
        )
        return BatchStatus.FAILED

    def _worker(
        self,
        tasks: "queue.Queue[str]",
        job: BatchJob,
        tracker: ProgressTracker,
        cancel_event: threading.Event,
    ) -> None:
        while not cancel_event.is_set():
            try:
                document_id = tasks.get_nowait()
            except queue.Empty:
                return
            try:
                self._process_document(document_id, job, tracker)
            except Exception:
                # The document was not counted; _final_status sees the gap
                logger.exception("Could not record progress for document %s", document_id)

    def _process_document(self, document_id: str, job: BatchJob, tracker: ProgressTracker) -> None:
        """Run one document's pipeline and count it exactly once."""
        success = False
        document = None
        try:
            document = self.storage.load_document(document_id)
            if document is None:
                logger.error("Document %s not found, counting as failed", document_id)
            else:
                self._run_pipeline(document, job)
                success = True
        except Exception as e:  # per-document failures never abort the batch
            if document is None:
                logger.exception("Could not load document %s", document_id)
            else:
                logger.exception("Failed: %s", document.filename)
                self._mark_failed(document, e)
        finally:
            tracker.record(success)

    def _run_pipeline(self, document: Document, job: BatchJob) -> None:
        logger.info("Processing: %s", document.filename)

        document.transition(DocumentStatus.EXTRACTING)
        self.storage.save_document(document)

        result = self.engine.extract(self.load_bytes(document))
        document.extracted_text = f"{result.text}\n\n{EXTRACTION_INFO_MARKER}\n\n{result.summary()}"
        document.total_pages = result.page_count
        document.transition(DocumentStatus.READY)
        self.storage.save_document(document)
        logger.info(
            "Text extracted: %s (Method: %s, %dms)",
            document.filename,
            "OCR" if result.used_ocr else "Native",
            result.processing_time_ms,
        )

        if job.analysis_template:
            document.transition(DocumentStatus.ANALYZING)
            self.storage.save_document(document)

            document.analysis = self.analyzer.analyze(
                result.text, job.analysis_template, image_based=result.used_ocr
            )
            document.transition(DocumentStatus.ANALYZED)
            self.storage.save_document(document)
            logger.info("AI analysis complete: %s", document.filename)

        logger.info("Completed: %s", document.filename)

    def _mark_failed(self, document: Document, error: Exception) -> None:
        if isinstance(error, RouteError):
            document.analysis = error.user_message
        else:
            document.analysis = f"Error: {error}"
        document.transition(DocumentStatus.FAILED)
        try:
            self.storage.save_document(document)
        except Exception:
            logger.exception("Could not save failed state for %s", document.filename)
