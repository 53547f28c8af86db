"""The fixed battery of questions asked of one or two parsed corpora."""
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from wikipedia_stats.config.settings import QUERY_DEFAULTS
from wikipedia_stats.domain.models import Article
from wikipedia_stats.processing.aggregation.operators import (
    CountWithMinRevisionsAndContributors, CreationYears, GroupRevisionsByYear,
    TopArticlesByRevisionCount, TopContributorsByRevisionCount, TotalRevisionsAndArticles,
    UniqueContributorCount, contributor_counts_per_year, filter_cogroup, has_revision_in_year,
    lookup_per_year, not_empty, revision_count,
)
from wikipedia_stats.processing.aggregation.sharding import ShardedExecutor
from wikipedia_stats.wiki_utils.timing import Timing, timed

logger = logging.getLogger(__name__)


@dataclass
class QueryConfig:
    min_revisions: int = QUERY_DEFAULTS['min_revisions']
    min_contributors: int = QUERY_DEFAULTS['min_contributors']
    target_year: int = QUERY_DEFAULTS['target_year']
    focus_year: int = QUERY_DEFAULTS['focus_year']
    contributor: str = QUERY_DEFAULTS['contributor']
    top_k: int = QUERY_DEFAULTS['top_k']
    timezone: Optional[str] = None


@dataclass
class QueryResult:
    key: str
    question: str
    value: Any


@dataclass
class Report:
    results: List[QueryResult] = field(default_factory=list)
    timings: List[Timing] = field(default_factory=list)

    def __getitem__(self, key: str) -> QueryResult:
        for result in self.results:
            if result.key == key:
                return result
        raise KeyError(key)


def format_result(result: QueryResult) -> str:
    """Render a result as console text."""
    header = f"********** {result.key}: {result.question}"
    value = result.value
    if isinstance(value, list):
        return "\n".join([header] + [f"  {item}" for item in value])
    if isinstance(value, dict):
        return "\n".join([header] + [f"  {k} -> {v}" for k, v in sorted(value.items())])
    if isinstance(value, (set, frozenset)):
        return f"{header} {sorted(value)}"
    return f"{header} {value}"


def run_report(
    articles_a: Sequence[Article],
    articles_b: Sequence[Article],
    config: Optional[QueryConfig] = None,
    executor: Optional[ShardedExecutor] = None
) -> Report:
    """
    Answer Q1-Q11 over two corpora.

    Q1-Q9 look at ``articles_a`` only; Q10-Q11 join both corpora by contributor.
    Both sequences are iterated several times, so pass lists (or other
    re-iterable sequences), not one-shot iterators.

    Args:
        articles_a: first corpus
        articles_b: second corpus
        config: query tunables
        executor: shard executor; defaults to a sequential one

    Returns:
        Report with results in question order, timings for each question
        and for the shared year grouping and co-group
    """
    config = config or QueryConfig()
    executor = executor or ShardedExecutor(max_workers=1)
    tz = config.timezone
    report = Report()

    def ask(key: str, question: str, func, *args) -> Any:
        value, timing = timed(key, func, *args)
        report.results.append(QueryResult(key, question, value))
        report.timings.append(timing)
        logger.info(f"{key} answered in {timing.duration_ms:.1f} ms")
        return value

    ask("Q1", "(revision num, article num)", executor.run, TotalRevisionsAndArticles(), articles_a)
    ask("Q2", "the number of unique contributors (summed per article)",
        executor.run, UniqueContributorCount(), articles_a)
    ask("Q3", "the years when articles were created", executor.run, CreationYears(tz), articles_a)
    ask("Q4", f"articles with at least {config.min_revisions} revisions and "
              f"{config.min_contributors} unique contributors",
        executor.run, CountWithMinRevisionsAndContributors(config.min_revisions, config.min_contributors),
        articles_a)
    ask("Q5", f"top {config.top_k} articles having the largest number of revisions",
        executor.run, TopArticlesByRevisionCount(config.top_k), articles_a)
    ask("Q6", f"top {config.top_k} contributors having the largest number of revisions",
        executor.run, TopContributorsByRevisionCount(config.top_k), articles_a)

    year_groups, timing = timed("group_revisions_by_year", executor.run, GroupRevisionsByYear(tz), articles_a)
    report.timings.append(timing)
    per_year_counts = contributor_counts_per_year(year_groups)

    ask("Q7", "number of revisions per year", lookup_per_year, year_groups, revision_count)
    ask("Q8", f"number of unique contributors who made revisions in {config.target_year}",
        lambda: len(per_year_counts.get(config.target_year, {})))
    ask("Q9", f"number of revisions made by {config.contributor} in {config.focus_year}",
        lambda: per_year_counts.get(config.focus_year, {}).get(config.contributor, 0))

    cogroup, timing = timed("cogroup_by_contributor", executor.cogroup, articles_a, articles_b)
    report.timings.append(timing)

    ask("Q10", "number of contributors who contributed to both datasets",
        lambda: len(filter_cogroup(cogroup, not_empty)))
    ask("Q11", f"number of contributors who contributed to both datasets in {config.focus_year}",
        lambda: len(filter_cogroup(cogroup, has_revision_in_year(config.focus_year, tz))))

    return report
