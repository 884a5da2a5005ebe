"""
Search Record Models

This module defines the page metadata handed to a record generator and the
search record it produces. A record is the unit stored in the hosted index;
one page yields zero or more records, one per content section.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..content.models import FrontMatter


class PageMeta(BaseModel):
    """
    Page-level metadata copied onto every record of a page.
    """

    title: str = Field(..., min_length=1)
    url: str
    path_segments: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_front_matter(cls, fm: FrontMatter) -> "PageMeta":
        return cls(
            title=fm.title,
            url=fm.url,
            path_segments=fm.path_segments,
            keywords=list(fm.keywords),
        )


class SearchRecord(BaseModel):
    """
    A single search index entry.

    Field names follow Python conventions; the wire format uses the index's
    camelCase names (``objectID``, ``pathSegments``).
    """

    object_id: Optional[str] = Field(
        default=None,
        alias="objectID",
        description="Index identifier. Assigned by the index when absent.",
    )

    title: str = Field(..., min_length=1)
    url: str

    path_segments: List[str] = Field(default_factory=list, alias="pathSegments")
    keywords: List[str] = Field(default_factory=list)

    section: Optional[str] = Field(
        default=None,
        description="Heading text of the section this record was cut from.",
    )

    anchor: Optional[str] = Field(
        default=None,
        description="Fragment id of the section heading, if it has one.",
    )

    text: str = ""

    position: int = Field(
        default=0,
        ge=0,
        description="Order of this record within its page.",
    )

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        populate_by_name=True,
    )

    def to_index_object(self) -> Dict[str, Any]:
        """Serialize to the index's wire format, omitting unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)
