"""Domain records produced by the parser and consumed by the aggregation operators."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Tuple

from wikipedia_stats.wiki_utils.datetime_utils import TimeZoneLike, format_as_iso, year_in_zone

MISSING_ID = -1


@dataclass(frozen=True)
class Revision:
    """
    One edit of a page, extracted from ``<revision>...</revision>``.

    Attributes:
        id: revision id from ``<id>``, ``-1`` when absent
        contributor: ``<username>`` text, else ``<ip>`` text, else empty string
        timestamp: timezone-aware UTC instant from ``<timestamp>``
    """
    id: int
    contributor: str
    timestamp: datetime

    def year(self, tz: TimeZoneLike = None) -> int:
        """Year in which this revision was made, in the reference time zone."""
        return year_in_zone(self.timestamp, tz)

    def to_text(self) -> str:
        return f"\t{self.id},{self.contributor},{format_as_iso(self.timestamp)}\n"


@dataclass(frozen=True)
class Article:
    """
    A page extracted from ``<page>...</page>``.

    Revisions keep document order, so the first one is the creation edit.
    """
    id: int
    title: str
    revisions: Tuple[Revision, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not isinstance(self.revisions, tuple):
            object.__setattr__(self, 'revisions', tuple(self.revisions))

    @property
    def revision_count(self) -> int:
        return len(self.revisions)

    @property
    def contributors(self) -> Tuple[str, ...]:
        return tuple(revision.contributor for revision in self.revisions)

    @property
    def distinct_contributor_count(self) -> int:
        return len(set(self.contributors))

    def creation_year(self, tz: TimeZoneLike = None) -> int:
        """Year of the first revision; raises IndexError on an article without revisions."""
        return self.revisions[0].year(tz)

    def revision_years(self, tz: TimeZoneLike = None) -> List[int]:
        return [revision.year(tz) for revision in self.revisions]

    def contributor_revisions(self) -> List[Tuple[str, Revision]]:
        return [(revision.contributor, revision) for revision in self.revisions]

    def to_text(self) -> str:
        return f"{self.id},{self.title}\n" + "".join(r.to_text() for r in self.revisions)
