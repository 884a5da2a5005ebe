"""
Front Matter Loader

Reads document descriptors from a directory of Markdown / MDX content files.
These descriptors are the source of truth for which static routes exist, so
they also decide which pre-rendered pages get indexed.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Tuple

import yaml
from pydantic import ValidationError

from .models import FrontMatter
from ..core.errors import ConfigurationError, FrontMatterError

logger = logging.getLogger("docsync.content")

CONTENT_SUFFIXES = (".md", ".mdx")
FRONT_MATTER_DELIMITER = "---"


def parse_front_matter(text: str) -> Tuple[Dict[str, Any], str]:
    """
    Split a leading YAML front matter block from a content file.

    Returns
    -------
    Tuple[Dict[str, Any], str]
        The parsed front matter (empty if the file has none) and the body.

    Raises
    ------
    yaml.YAMLError
        If the block is present but is not valid YAML.
    ValueError
        If the block does not parse to a mapping.
    """
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != FRONT_MATTER_DELIMITER:
        return {}, text

    for end, line in enumerate(lines[1:], start=1):
        if line.strip() == FRONT_MATTER_DELIMITER:
            break
    else:
        return {}, text

    data = yaml.safe_load("".join(lines[1:end]))
    body = "".join(lines[end + 1 :])

    if data is None:
        return {}, body
    if not isinstance(data, dict):
        raise ValueError("front matter must be a mapping")
    return data, body


def slug_for(path: Path, root: Path) -> str:
    """
    Derive a page slug from its content file location.

    ``guides/setup.mdx`` -> ``guides/setup``, ``guides/index.md`` -> ``guides``,
    and the top-level ``index.mdx`` -> ``""``.
    """
    parts = list(path.relative_to(root).with_suffix("").parts)
    if parts and parts[-1] == "index":
        parts = parts[:-1]
    return "/".join(parts)


def _is_partial(path: Path, root: Path) -> bool:
    return any(part.startswith("_") for part in path.relative_to(root).parts)


def load_front_matter(root: str | Path) -> List[FrontMatter]:
    """
    Load the front matter of every content page under ``root``.

    Files (or directories) whose name starts with an underscore are includes,
    not pages, and are skipped.

    Raises
    ------
    ConfigurationError
        If the content directory does not exist.
    FrontMatterError
        If any page carries unreadable front matter.
    """
    root = Path(root)
    if not root.is_dir():
        raise ConfigurationError(f"Content directory not found: {root}")

    descriptors: List[FrontMatter] = []

    for path in sorted(root.rglob("*")):
        if not path.is_file() or path.suffix not in CONTENT_SUFFIXES:
            continue
        if _is_partial(path, root):
            continue

        try:
            data, _ = parse_front_matter(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, ValueError) as exc:
            raise FrontMatterError(
                f"Invalid front matter in {path}: {exc}"
            ) from exc

        data["slug"] = slug_for(path, root)
        data["source_path"] = str(path)

        try:
            descriptors.append(FrontMatter.model_validate(data))
        except ValidationError as exc:
            fields = ", ".join(
                sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
            )
            raise FrontMatterError(
                f"Invalid front matter in {path}: invalid field(s) {fields}"
            ) from exc

    logger.info("Loaded front matter for %d pages from %s", len(descriptors), root)
    return descriptors
