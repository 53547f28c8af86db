from typing import List, Sequence, Tuple

import pytest

from wikipedia_stats.domain.models import Article, Revision
from wikipedia_stats.wiki_utils.datetime_utils import parse_instant

SCENARIO_PAGE = (
    "<page><title>T</title><id>5</id>"
    "<revision><id>1</id><contributor><username>Alice</username></contributor>"
    "<timestamp>2013-05-01T00:00:00Z</timestamp></revision>"
    "<revision><id>2</id><contributor><ip>1.2.3.4</ip></contributor>"
    "<timestamp>2014-01-01T00:00:00Z</timestamp></revision></page>"
)

DUMP_TEMPLATE = """<mediawiki xmlns="http://www.mediawiki.org/xml/export-0.10/" xml:lang="en">
  <siteinfo>
    <sitename>Wikipedia</sitename>
  </siteinfo>
{pages}
</mediawiki>
"""


def make_article(article_id: int, title: str, revisions: Sequence[Tuple[int, str, str]]) -> Article:
    return Article(
        article_id,
        title,
        tuple(Revision(rid, contributor, parse_instant(ts)) for rid, contributor, ts in revisions),
    )


def page_xml(article_id: int, title: str, revisions: Sequence[Tuple[int, str, str]]) -> str:
    parts = [f"  <page>\n    <title>{title}</title>\n    <ns>0</ns>\n    <id>{article_id}</id>"]
    for rid, contributor, ts in revisions:
        who = f"<ip>{contributor}</ip>" if contributor[:1].isdigit() else f"<username>{contributor}</username>"
        parts.append(
            "    <revision>\n"
            f"      <id>{rid}</id>\n"
            f"      <timestamp>{ts}</timestamp>\n"
            f"      <contributor>\n        {who}\n        <id>99</id>\n      </contributor>\n"
            "      <text xml:space=\"preserve\">some\nmulti-line text</text>\n"
            "    </revision>"
        )
    parts.append("  </page>")
    return "\n".join(parts)


def dump_xml(pages: List[str]) -> str:
    return DUMP_TEMPLATE.format(pages="\n".join(pages))


@pytest.fixture
def scenario_block() -> str:
    return SCENARIO_PAGE


@pytest.fixture
def corpus_a() -> List[Article]:
    return [
        make_article(10, "Einstein", [
            (100, "Alice", "2012-03-01T10:00:00Z"),
            (101, "Bob", "2013-06-01T10:00:00Z"),
            (102, "Alice", "2014-02-01T10:00:00Z"),
            (103, "Magioladitis", "2013-07-01T10:00:00Z"),
        ]),
        make_article(11, "Newton", [
            (110, "Bob", "2013-01-05T00:00:00Z"),
            (111, "10.0.0.1", "2014-08-09T12:00:00Z"),
        ]),
        make_article(12, "Curie", [
            (120, "Magioladitis", "2014-11-11T11:11:11Z"),
        ]),
    ]


@pytest.fixture
def corpus_b() -> List[Article]:
    return [
        make_article(20, "Bohr", [
            (200, "Bob", "2013-09-01T00:00:00Z"),
            (201, "Carol", "2015-01-01T00:00:00Z"),
        ]),
        make_article(21, "Planck", [
            (210, "Alice", "2011-01-01T00:00:00Z"),
            (211, "Dave", "2013-04-04T00:00:00Z"),
        ]),
    ]
