"""
Aggregation operators over sequences of Articles.

Every shard-capable operator is an :class:`Aggregation`: ``local`` computes a
partial result for one shard, ``merge`` combines two partials (associative and
commutative, except that ties in rankings keep shard order) and ``finish``
turns the merged partial into the final value. Running the three steps over a
single shard gives the sequential answer; :mod:`.sharding` runs them over many.

None of the operators mutate their inputs.
"""
import heapq
from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass
from typing import (
    Callable, Dict, Generic, Iterable, Iterator, List, Optional, Protocol, Sequence, Set, Tuple, TypeVar,
)

from wikipedia_stats.domain.models import Article, Revision
from wikipedia_stats.wiki_utils.datetime_utils import TimeZoneLike

P = TypeVar('P')
R = TypeVar('R')

YearGroups = Dict[int, List[Revision]]
CoGroup = Dict[str, Tuple[List[Revision], List[Revision]]]
RevisionPredicate = Callable[[Sequence[Revision]], bool]


class RevisionBagReducer(Protocol):
    """Reduces one year's bag of revisions to an integer."""

    def __call__(self, revisions: Sequence[Revision]) -> int:
        ...


class Aggregation(ABC, Generic[P, R]):
    """Map (per shard) + merge + finish."""

    @abstractmethod
    def local(self, articles: Iterable[Article]) -> P:
        raise NotImplementedError

    @abstractmethod
    def merge(self, left: P, right: P) -> P:
        """Combine two partials. ``left`` is an accumulator and may be updated in place."""
        raise NotImplementedError

    def finish(self, partial: P) -> R:
        return partial


def aggregate(aggregation: Aggregation[P, R], articles: Iterable[Article]) -> R:
    """Run an aggregation sequentially, treating ``articles`` as one shard."""
    return aggregation.finish(aggregation.local(articles))


# --- Totals and counts -------------------------------------------------------

class TotalRevisionsAndArticles(Aggregation[Tuple[int, int], Tuple[int, int]]):
    def local(self, articles):
        revisions = 0
        count = 0
        for article in articles:
            revisions += article.revision_count
            count += 1
        return revisions, count

    def merge(self, left, right):
        return left[0] + right[0], left[1] + right[1]


class UniqueContributorCount(Aggregation[int, int]):
    """Sum over articles of the distinct contributors within each article."""

    def local(self, articles):
        return sum(article.distinct_contributor_count for article in articles)

    def merge(self, left, right):
        return left + right


@dataclass(frozen=True)
class CreationYears(Aggregation[Set[int], Set[int]]):
    tz: TimeZoneLike = None

    def local(self, articles):
        return {article.creation_year(self.tz) for article in articles}

    def merge(self, left, right):
        return left | right


@dataclass(frozen=True)
class CountWithMinRevisionsAndContributors(Aggregation[int, int]):
    min_revisions: int
    min_contributors: int

    def local(self, articles):
        return sum(
            1 for article in articles
            if article.revision_count >= self.min_revisions
            and article.distinct_contributor_count >= self.min_contributors
        )

    def merge(self, left, right):
        return left + right


# --- Rankings ----------------------------------------------------------------

def _rank(pairs: Iterable[Tuple[str, int]], limit: Optional[int]) -> List[Tuple[str, int]]:
    # heapq.nlargest and sorted are both stable, so equal counts keep input order
    if limit is None:
        return sorted(pairs, key=lambda pair: pair[1], reverse=True)
    return heapq.nlargest(limit, pairs, key=lambda pair: pair[1])


@dataclass(frozen=True)
class TopArticlesByRevisionCount(Aggregation[List[Tuple[str, int]], List[Tuple[str, int]]]):
    """(title, revision count) pairs, largest first; ``limit`` keeps a partial top-K per shard."""
    limit: Optional[int] = None

    def local(self, articles):
        return _rank(((article.title, article.revision_count) for article in articles), self.limit)

    def merge(self, left, right):
        return _rank(left + right, self.limit)

    def finish(self, partial):
        return _rank(partial, self.limit)


@dataclass(frozen=True)
class TopContributorsByRevisionCount(Aggregation[Counter, List[Tuple[str, int]]]):
    """
    (contributor, revision count) pairs, largest first.

    Shard counters are summed before ranking, so no per-shard trimming happens.
    """
    limit: Optional[int] = None

    def local(self, articles):
        counts = Counter()
        for article in articles:
            counts.update(article.contributors)
        return counts

    def merge(self, left, right):
        left.update(right)
        return left

    def finish(self, partial):
        return _rank(partial.items(), self.limit)


# --- Year grouping -----------------------------------------------------------

@dataclass(frozen=True)
class GroupRevisionsByYear(Aggregation[YearGroups, YearGroups]):
    tz: TimeZoneLike = None

    def local(self, articles):
        groups: YearGroups = {}
        for article in articles:
            for revision in article.revisions:
                groups.setdefault(revision.year(self.tz), []).append(revision)
        return groups

    def merge(self, left, right):
        for year, bag in right.items():
            left.setdefault(year, []).extend(bag)
        return left


def lookup_per_year(year_groups: YearGroups, fn: RevisionBagReducer) -> Dict[int, int]:
    """
    Apply ``fn`` to every year's bag of revisions.

    Args:
        year_groups: output of :func:`group_revisions_by_year`
        fn: reducer taking a bag of revisions and returning an integer

    Returns:
        year -> fn(bag)
    """
    return {year: fn(bag) for year, bag in year_groups.items()}


def contributor_counts_per_year(year_groups: YearGroups) -> Dict[int, Dict[str, int]]:
    """year -> {contributor: number of revisions that contributor made that year}"""
    return {
        year: dict(Counter(revision.contributor for revision in bag))
        for year, bag in year_groups.items()
    }


def revision_count(revisions: Sequence[Revision]) -> int:
    return len(revisions)


def distinct_contributor_count(revisions: Sequence[Revision]) -> int:
    return len({revision.contributor for revision in revisions})


# --- Contributor co-grouping -------------------------------------------------

def partition_by_contributor(articles: Iterable[Article]) -> Iterator[Tuple[str, Revision]]:
    """Flatten articles into (contributor, revision) pairs, unsorted."""
    for article in articles:
        yield from article.contributor_revisions()


@dataclass(frozen=True)
class ContributorBags(Aggregation[CoGroup, CoGroup]):
    """
    One side of a co-group: contributor -> (bag, empty) or (empty, bag).

    ``side`` is 0 for the first dataset and 1 for the second, so partials from
    both datasets merge into the full outer join.
    """
    side: int = 0

    def local(self, articles):
        cogroup: CoGroup = {}
        for contributor, revision in partition_by_contributor(articles):
            if contributor not in cogroup:
                cogroup[contributor] = ([], [])
            cogroup[contributor][self.side].append(revision)
        return cogroup

    def merge(self, left, right):
        return merge_cogroups(left, right)


def merge_cogroups(left: CoGroup, right: CoGroup) -> CoGroup:
    """Union two co-group partials per contributor, extending ``left`` in place."""
    for key, (a, b) in right.items():
        if key in left:
            left[key][0].extend(a)
            left[key][1].extend(b)
        else:
            left[key] = (a, b)
    return left


def cogroup_by_contributor(articles_a: Iterable[Article], articles_b: Iterable[Article]) -> CoGroup:
    """
    Full outer join of the two datasets' revisions on exact contributor string.

    Returns:
        contributor -> (revisions from ``articles_a``, revisions from ``articles_b``)
    """
    return merge_cogroups(
        aggregate(ContributorBags(side=0), articles_a),
        aggregate(ContributorBags(side=1), articles_b),
    )


def filter_cogroup(cogroup: CoGroup, predicate: RevisionPredicate) -> CoGroup:
    """Keep entries whose two bags BOTH satisfy ``predicate``."""
    return {
        key: bags for key, bags in cogroup.items()
        if predicate(bags[0]) and predicate(bags[1])
    }


def not_empty(revisions: Sequence[Revision]) -> bool:
    return len(revisions) > 0


@dataclass(frozen=True)
class HasRevisionInYear:
    """Predicate: the bag holds at least one revision made in ``year``."""
    year: int
    tz: TimeZoneLike = None

    def __call__(self, revisions: Sequence[Revision]) -> bool:
        return any(revision.year(self.tz) == self.year for revision in revisions)


def has_revision_in_year(year: int, tz: TimeZoneLike = None) -> HasRevisionInYear:
    return HasRevisionInYear(year, tz)


# --- Sequential entry points -------------------------------------------------

def total_revisions_and_articles(articles: Iterable[Article]) -> Tuple[int, int]:
    """(total number of revisions, number of articles)"""
    return aggregate(TotalRevisionsAndArticles(), articles)


def unique_contributor_count(articles: Iterable[Article]) -> int:
    """
    Per-article distinct contributor counts, summed over all articles.

    A contributor active on two articles is counted twice; this is not a
    corpus-wide distinct count.
    """
    return aggregate(UniqueContributorCount(), articles)


def creation_years(articles: Iterable[Article], tz: TimeZoneLike = None) -> Set[int]:
    return aggregate(CreationYears(tz), articles)


def count_with_min_revisions_and_contributors(
    articles: Iterable[Article], min_revisions: int, min_contributors: int
) -> int:
    """Articles with at least ``min_revisions`` revisions and ``min_contributors`` distinct contributors (both inclusive)."""
    return aggregate(CountWithMinRevisionsAndContributors(min_revisions, min_contributors), articles)


def top_articles_by_revision_count(articles: Iterable[Article], limit: Optional[int] = None) -> List[Tuple[str, int]]:
    """
    (title, revision count) sorted by count, descending.

    Ties are broken arbitrarily but deterministically: equal counts keep input order.
    """
    return aggregate(TopArticlesByRevisionCount(limit), articles)


def top_contributors_by_revision_count(articles: Iterable[Article], limit: Optional[int] = None) -> List[Tuple[str, int]]:
    return aggregate(TopContributorsByRevisionCount(limit), articles)


def group_revisions_by_year(articles: Iterable[Article], tz: TimeZoneLike = None) -> YearGroups:
    return aggregate(GroupRevisionsByYear(tz), articles)
