"""
Error Taxonomy

This module defines the exception hierarchy shared by every stage of an index
synchronization run, and the single place where a failure is turned into a
process exit status.

Categories
----------
- Configuration errors: missing settings or content roots. Fatal, raised
  before any network call.
- Per-document errors: a missing HTML artifact or a failed extraction.
  Fatal or skipped depending on the skip-on-error policy.
- Index errors: transport or API failures talking to the search service.
  Always fatal, never retried.
"""

from __future__ import annotations

import logging
from typing import Optional

logger = logging.getLogger("docsync.errors")


EXIT_OK = 0
EXIT_FAILURE = 1


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class SyncError(RuntimeError):
    """Base error for index synchronization failures."""


class ConfigurationError(SyncError):
    """Raised when required configuration is absent or invalid."""


class FrontMatterError(SyncError):
    """Raised when a document's front matter cannot be parsed."""


class RecordExtractionError(SyncError):
    """Raised when a page's HTML cannot be turned into search records."""


class RecordGenerationError(SyncError):
    """Raised when a single document fails to produce its records."""

    def __init__(self, slug: str, message: str) -> None:
        super().__init__(message)
        self.slug = slug


class IndexClientError(SyncError):
    """Base error for search index API failures."""


class IndexRequestError(IndexClientError):
    """Raised when a request to the search index fails in transport or status."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class IndexResponseError(IndexClientError):
    """Raised when the search index returns an unexpected payload."""


# ---------------------------------------------------------------------
# Fatal Error Reporting
# ---------------------------------------------------------------------

def report_fatal(exc: BaseException) -> int:
    """
    Log a run-terminating failure and map it to an exit status.

    Known synchronization errors are logged with their message and cause.
    Anything else is unexpected and gets a full traceback.

    Parameters
    ----------
    exc : BaseException
        The exception that ended the run.

    Returns
    -------
    int
        Non-zero process exit status.
    """
    if isinstance(exc, SyncError):
        cause = exc.__cause__
        if cause is not None:
            logger.error("%s (caused by %s: %s)", exc, type(cause).__name__, cause)
        else:
            logger.error("%s", exc)
    else:
        logger.exception("Unhandled error during index sync", exc_info=exc)

    return EXIT_FAILURE
