"""
Document Descriptor Model

This module defines the front matter of a single documentation page, as read
from the site's content sources. Descriptors decide which pages are indexed
and carry the metadata attached to every record of a page.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def extrapolate(value: str, separator: str = "/") -> List[str]:
    """
    Return the cumulative prefixes of a separated path.

    ``extrapolate("a/b/c")`` gives ``["a", "a/b", "a/b/c"]``.
    """
    parts = [p for p in value.split(separator) if p]
    return [separator.join(parts[: i + 1]) for i in range(len(parts))]


class FrontMatter(BaseModel):
    """
    Front matter of one documentation page.

    The slug is the page's route relative to the site root, without leading
    or trailing slashes. The root page has an empty slug.
    """

    slug: str = Field(
        ...,
        description="Route of the page relative to the site root.",
    )

    title: Optional[str] = Field(
        default=None,
        description="Page title. Untitled pages are never indexed.",
    )

    keywords: List[str] = Field(
        default_factory=list,
        description="Extra search keywords attached to every record of the page.",
    )

    draft: bool = False
    noindex: bool = False

    source_path: Optional[str] = Field(
        default=None,
        description="Content file the descriptor was read from.",
    )

    model_config = ConfigDict(
        extra="ignore",
        frozen=True,
    )

    @field_validator("slug", mode="before")
    @classmethod
    def normalize_slug(cls, v: str) -> str:
        return str(v).strip().strip("/")

    @field_validator("title", mode="before")
    @classmethod
    def scalar_title(cls, v):
        # YAML reads titles like `2024`, `1.0` or `2024-01-01` as non-strings.
        if isinstance(v, (int, float, date)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("keywords", mode="before")
    @classmethod
    def split_keywords(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [k.strip() for k in v.split(",") if k.strip()]
        return [str(k) for k in v]

    @field_validator("draft", "noindex", mode="before")
    @classmethod
    def null_flag(cls, v):
        return False if v is None else v

    @property
    def is_indexable(self) -> bool:
        return not self.draft and not self.noindex and bool(self.title)

    @property
    def url(self) -> str:
        return f"/{self.slug}/" if self.slug else "/"

    @property
    def path_segments(self) -> List[str]:
        return [f"/{prefix}/" for prefix in extrapolate(self.slug, "/")]
