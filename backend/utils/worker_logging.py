"""
Worker logging utilities with Protocol + Mixin pattern.

Provides trait-like logging functionality for the pipeline workers.
Each worker defines its type and context format, the mixin provides
consistent log_info/log_warning/log_error methods.

Usage:
    class EnrichmentLogContext(WorkerLoggerMixin):
        worker_type = WorkerType.ENRICHMENT

        def __init__(self, batch_id: str, job_id: int):
            self.batch_id = batch_id
            self.job_id = job_id

        def _log_context(self) -> str:
            return f"batch={self.batch_id}:job={self.job_id}"

    ctx = EnrichmentLogContext("a1b2c3", 42)
    ctx.log_info("Enriching")  # [EnrichmentWorker:batch=a1b2c3:job=42] Enriching
"""

import logging
from enum import Enum
from typing import Optional, Protocol

logger = logging.getLogger()
logger.setLevel(logging.INFO)


class WorkerType(Enum):
    """Worker type enum for log prefix identification."""
    SCRAPE = "ScrapeWorker"
    ENRICHMENT = "EnrichmentWorker"


class WorkerLoggerProtocol(Protocol):
    """
    Protocol defining what classes using WorkerLoggerMixin must provide.

    This enables type checking - mypy will error if a class uses the mixin
    but doesn't define worker_type or _log_context().
    """
    worker_type: WorkerType

    def _log_context(self) -> str:
        """Return context string like 'run=20240101' or 'batch=a1b2:job=42'."""
        ...


class WorkerLoggerMixin:
    """
    Mixin providing log_info/log_warning/log_error methods.

    Classes using this mixin must satisfy WorkerLoggerProtocol:
    - Define worker_type: WorkerType class attribute
    - Implement _log_context() -> str method

    Log format: [WorkerType:context] message
    With test DB: [TEST][WorkerType:context] message

    Examples:
    - [ScrapeWorker:run=cron-1718000000] Running 9 adapters
    - [TEST][EnrichmentWorker:batch=a1b2c3:job=42] Enriched
    """

    # Set by subclass __init__ to add [TEST] prefix
    use_test_db: bool = False

    def _log_prefix(self: WorkerLoggerProtocol) -> str:
        """Build log prefix from worker type and context."""
        test_prefix = "[TEST]" if getattr(self, 'use_test_db', False) else ""
        return f"{test_prefix}[{self.worker_type.value}:{self._log_context()}]"

    def log_info(self: WorkerLoggerProtocol, message: str) -> None:
        """Log info message with worker prefix."""
        logger.info(f"{self._log_prefix()} {message}")

    def log_warning(self: WorkerLoggerProtocol, message: str) -> None:
        """Log warning message with worker prefix."""
        logger.warning(f"{self._log_prefix()} {message}")

    def log_error(self: WorkerLoggerProtocol, message: str) -> None:
        """Log error message with worker prefix."""
        logger.error(f"{self._log_prefix()} {message}")


# =============================================================================
# Concrete Context Classes
# =============================================================================

class ScrapeLogContext(WorkerLoggerMixin):
    """
    Logging context for the scrape worker.

    Log format: [ScrapeWorker:run=<label>] message
    """
    worker_type = WorkerType.SCRAPE

    def __init__(self, run_label: str, use_test_db: bool = False):
        self.run_label = run_label
        self.use_test_db = use_test_db

    def _log_context(self) -> str:
        return f"run={self.run_label}"


class EnrichmentLogContext(WorkerLoggerMixin):
    """
    Logging context for the enrichment batch worker.

    Log format: [EnrichmentWorker:batch=X] or [EnrichmentWorker:batch=X:job=Y]
    """
    worker_type = WorkerType.ENRICHMENT

    def __init__(self, batch_id: str, job_id: Optional[int] = None, use_test_db: bool = False):
        self.batch_id = batch_id
        self.job_id = job_id
        self.use_test_db = use_test_db

    def for_job(self, job_id: int) -> "EnrichmentLogContext":
        """Child context scoped to one job of this batch."""
        return EnrichmentLogContext(self.batch_id, job_id, use_test_db=self.use_test_db)

    def _log_context(self) -> str:
        if self.job_id is None:
            return f"batch={self.batch_id}"
        return f"batch={self.batch_id}:job={self.job_id}"
