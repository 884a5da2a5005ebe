"""
Command Line Entry Point

Runs one index synchronization against the configured Algolia index. Meant
to be run after a production build of the docs site, typically from CI.

When running locally, point ``DOCS_INDEX_NAME`` at a scratch index: stale
record deletion will otherwise remove production records.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv

from .config import Settings, load_settings
from .content.frontmatter import load_front_matter
from .core.errors import EXIT_OK, report_fatal
from .index import AlgoliaIndexClient
from .records.extract import HtmlRecordGenerator
from .sync import IndexSynchronizer, SyncReport

logger = logging.getLogger("docsync.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docs-search-sync",
        description="Index pre-rendered docs pages into Algolia and remove stale records.",
    )
    parser.add_argument(
        "--static-html-path",
        help="Directory of pre-rendered <slug>.html pages (default: .next/server/app)",
    )
    parser.add_argument(
        "--content-dir",
        help="Directory of Markdown/MDX pages to read front matter from",
    )
    parser.add_argument(
        "--developer-docs",
        action="store_true",
        default=None,
        help="Read front matter from the developer docs directory",
    )
    parser.add_argument(
        "--skip-on-error",
        action="store_true",
        default=None,
        help="Skip pages that fail to index instead of aborting",
    )
    parser.add_argument(
        "--index-name",
        help="Override DOCS_INDEX_NAME",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser


def resolve_settings(args: argparse.Namespace, base: Optional[Settings] = None) -> Settings:
    """Apply command line overrides on top of environment settings."""
    base = base or load_settings()
    overrides = {
        "static_html_path": args.static_html_path,
        "algolia_skip_on_error": args.skip_on_error,
        "developer_docs": args.developer_docs,
        "docs_index_name": args.index_name,
    }
    if args.content_dir is not None:
        # An explicit directory wins over the developer docs switch.
        overrides["content_dir"] = args.content_dir
        overrides["developer_docs"] = False

    return base.model_copy(
        update={k: v for k, v in overrides.items() if v is not None}
    )


async def run_sync(cfg: Settings) -> SyncReport:
    """
    Load front matter, then reconcile the index with it.
    """
    # The front matter is the source of truth for the static routes, the
    # same list the site build generates pages from.
    docs = load_front_matter(cfg.front_matter_dir)

    index = AlgoliaIndexClient(
        app_id=cfg.algolia_app_id,
        api_key=cfg.algolia_api_key.get_secret_value(),
        index_name=cfg.docs_index_name,
        timeout=cfg.request_timeout,
    )
    generator = HtmlRecordGenerator(
        root_selector=cfg.root_selector,
        max_text_length=cfg.max_record_text_length,
    )
    synchronizer = IndexSynchronizer(
        index=index,
        generator=generator,
        static_html_path=cfg.static_html_path,
        skip_on_error=cfg.algolia_skip_on_error,
        save_batch_size=cfg.save_batch_size,
        delete_batch_size=cfg.delete_batch_size,
        browse_page_size=cfg.browse_page_size,
    )
    return await synchronizer.run(docs)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    load_dotenv(find_dotenv(usecwd=True))

    try:
        cfg = resolve_settings(args)
        cfg.validate_required()
        report = asyncio.run(run_sync(cfg))
    except Exception as exc:
        return report_fatal(exc)

    if report.failed_slugs:
        logger.warning(
            "Skipped %d page(s) that failed to index: %s",
            len(report.failed_slugs),
            ", ".join(report.failed_slugs),
        )
    logger.info(
        "Index sync complete: %d pages, %d records saved, %d stale records deleted",
        report.documents_indexed,
        len(report.records_saved),
        len(report.deleted_ids),
    )
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
