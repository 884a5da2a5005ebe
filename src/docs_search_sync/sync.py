"""
Index Synchronization

Brings the hosted search index in line with the current set of documentation
pages: records are generated for every indexable page, uploaded in bulk, and
every remote record that was not part of this upload is deleted.

After a successful run the index holds exactly the records produced from the
current pages. Running it again with unchanged pages deletes nothing new.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Set

from .content.models import FrontMatter
from .core.errors import RecordGenerationError
from .records.extract import RecordGenerator
from .records.models import PageMeta, SearchRecord

logger = logging.getLogger("docsync.sync")


class SearchIndex(Protocol):
    index_name: str

    async def save_objects(
        self,
        records: Sequence[SearchRecord],
        batch_size: Optional[int] = None,
        auto_generate_object_id: bool = True,
    ) -> List[str]:
        ...

    async def browse_object_ids(self, page_size: Optional[int] = None) -> Set[str]:
        ...

    async def delete_objects(
        self,
        object_ids: Sequence[str],
        batch_size: Optional[int] = None,
    ) -> List[str]:
        ...


@dataclass(frozen=True)
class DocumentResult:
    slug: str
    records: List[SearchRecord] = field(default_factory=list)
    error: Optional[RecordGenerationError] = None


@dataclass
class SyncReport:
    documents_total: int = 0
    documents_indexed: int = 0
    failed_slugs: List[str] = field(default_factory=list)
    records_saved: List[str] = field(default_factory=list)
    existing_ids: Set[str] = field(default_factory=set)
    deleted_ids: List[str] = field(default_factory=list)


def select_indexable(docs: Sequence[FrontMatter]) -> List[FrontMatter]:
    """Drop draft, noindex and untitled documents."""
    return [doc for doc in docs if doc.is_indexable]


class IndexSynchronizer:
    """
    Reconciles a search index with a set of rendered documentation pages.
    """

    def __init__(
        self,
        index: SearchIndex,
        generator: RecordGenerator,
        static_html_path: str | Path,
        skip_on_error: bool = False,
        save_batch_size: Optional[int] = None,
        delete_batch_size: Optional[int] = None,
        browse_page_size: Optional[int] = None,
    ) -> None:
        """
        Parameters
        ----------
        index : SearchIndex
            Client for the target index.

        generator : RecordGenerator
            Turns a page's HTML into records.

        static_html_path : str | Path
            Directory holding one ``<slug>.html`` file per page.

        skip_on_error : bool
            If set, a page that fails to produce records is logged and left
            out of the index instead of aborting the run.
        """
        self._index = index
        self._generator = generator
        self._static_html_path = Path(static_html_path)
        self._skip_on_error = skip_on_error
        self._save_batch_size = save_batch_size
        self._delete_batch_size = delete_batch_size
        self._browse_page_size = browse_page_size

    # ------------------------------------------------------------------
    # Record generation
    # ------------------------------------------------------------------

    def html_path_for(self, doc: FrontMatter) -> Path:
        return self._static_html_path / f"{doc.slug or 'index'}.html"

    async def _records_for(self, doc: FrontMatter) -> DocumentResult:
        logger.info("processing: %s", doc.slug or "/")

        try:
            html = self.html_path_for(doc).read_text(encoding="utf-8")
            records = await self._generator(html, PageMeta.from_front_matter(doc))
        except Exception as exc:
            error = RecordGenerationError(
                doc.slug, f"Error processing {doc.slug or '/'}: {exc}"
            )
            if not self._skip_on_error:
                raise error from exc
            logger.error("%s", error, exc_info=exc)
            return DocumentResult(slug=doc.slug, error=error)

        return DocumentResult(slug=doc.slug, records=list(records))

    async def generate_records(
        self,
        docs: Sequence[FrontMatter],
    ) -> List[DocumentResult]:
        """
        Generate records for every indexable document concurrently.

        Raises
        ------
        RecordGenerationError
            If a document fails and skip-on-error is off.
        """
        return list(
            await asyncio.gather(
                *(self._records_for(doc) for doc in select_indexable(docs))
            )
        )

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    async def run(self, docs: Sequence[FrontMatter]) -> SyncReport:
        """
        Upload records for ``docs`` and delete every stale record.

        Index errors are not caught: a failed save, browse or delete ends
        the run.
        """
        report = SyncReport(documents_total=len(docs))
        index_name = self._index.index_name

        results = await self.generate_records(docs)
        records = [record for result in results for record in result.records]
        report.failed_slugs = [r.slug for r in results if r.error is not None]
        report.documents_indexed = len(results) - len(report.failed_slugs)
        logger.info("Generated %d new records.", len(records))

        logger.info("Saving new records to `%s`...", index_name)
        report.records_saved = await self._index.save_objects(
            records,
            batch_size=self._save_batch_size,
            auto_generate_object_id=True,
        )
        saved_ids = set(report.records_saved)
        logger.info("Saved %d records", len(saved_ids))

        logger.info("Fetching existing record ids...")
        report.existing_ids = await self._index.browse_object_ids(
            page_size=self._browse_page_size,
        )
        logger.info(
            "Found %d existing records in `%s`",
            len(report.existing_ids),
            index_name,
        )

        stale = sorted(report.existing_ids - saved_ids)
        if not stale:
            logger.info("No stale records to delete")
            return report

        logger.info("Deleting old (stale) records...")
        report.deleted_ids = await self._index.delete_objects(
            stale,
            batch_size=self._delete_batch_size,
        )
        logger.info(
            "Deleted %d stale records from `%s`",
            len(report.deleted_ids),
            index_name,
        )
        return report
