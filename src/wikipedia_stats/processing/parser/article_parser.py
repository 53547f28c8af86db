import logging
from typing import Iterator, Optional

from wikipedia_stats.config.settings import RECORD_DELIMITER
from wikipedia_stats.domain.models import MISSING_ID, Article, Revision
from wikipedia_stats.processing.parser.base_parser import BaseParser
from wikipedia_stats.processing.parser.tag_extractor import extract_all, extract_text, strip_elements
from wikipedia_stats.processing.shared.error_handling import ErrorHandler, ParseError
from wikipedia_stats.processing.shared.file_utils import Source
from wikipedia_stats.wiki_utils.datetime_utils import parse_instant

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


class ArticleParser(BaseParser[Article]):
    """Parser for ``<page>`` blocks carrying nested ``<revision>`` history."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        super().__init__(logger or logging.getLogger(__name__))
        self.stats.update({'pages': 0, 'revisions': 0})

    def parse(self, block: str) -> Article:
        """
        Parse ``<page>....</page>`` into an Article.

        Title and id are read at the page level, outside any revision. Absent
        fields fall back to ``""`` / ``-1``; present but malformed fields raise.

        Args:
            block: the text of one page block

        Returns:
            Article, possibly without revisions

        Raises:
            ParseError: naming the offending field and carrying the block
        """
        header = strip_elements(block, 'revision')
        title = extract_text(header, 'title').strip()
        article_id = self._parse_id(extract_text(header, 'id'), block)

        revisions = [self._parse_revision(elem, block) for elem in extract_all(block, 'revision')]

        self.stats['pages'] += 1
        self.stats['revisions'] += len(revisions)
        return Article(article_id, title, tuple(revisions))

    def parse_stream(
        self,
        stream: Source,
        file_name: Optional[str] = None,
        sample_limit: Optional[int] = None,
        error_handler: Optional[ErrorHandler] = None,
        delimiter: str = RECORD_DELIMITER
    ) -> Iterator[Article]:
        """
        Split a stream (or path) into page blocks and parse each one.

        Unlike :meth:`CorpusReader.to_articles`, articles without revisions are kept.
        """
        # corpus_reader depends on this module
        from wikipedia_stats.wiki_io.corpus_reader import CorpusReader

        reader = CorpusReader(delimiter=delimiter, logger=self.logger)
        return self.parse_blocks(reader.read_blocks(stream, file_name), error_handler, sample_limit)

    def _parse_revision(self, revision_xml: str, block: str) -> Revision:
        own_fields = strip_elements(revision_xml, 'contributor')
        revision_id = self._parse_id(extract_text(own_fields, 'id'), block)

        contributor_xml = extract_text(revision_xml, 'contributor') or revision_xml
        contributor = extract_text(contributor_xml, 'username').strip()
        if not contributor:
            contributor = extract_text(contributor_xml, 'ip').strip()

        raw_ts = extract_text(own_fields, 'timestamp').strip()
        if not raw_ts:
            raise ParseError('timestamp', block, raw_ts, 'revision has no timestamp')
        try:
            timestamp = parse_instant(raw_ts)
        except (ValueError, OverflowError) as e:
            raise ParseError('timestamp', block, raw_ts, str(e)) from e

        return Revision(revision_id, contributor, timestamp)

    @staticmethod
    def _parse_id(text: str, block: str) -> int:
        text = text.strip()
        if not text:
            return MISSING_ID
        try:
            if "_" in text:
                raise ValueError(text)
            value = int(text)
        except ValueError as e:
            raise ParseError('id', block, text, 'not an integer') from e
        if not INT64_MIN <= value <= INT64_MAX:
            raise ParseError('id', block, text, 'out of 64-bit range')
        return value


def parse_article(block: str) -> Article:
    """Parse a single page block; see :meth:`ArticleParser.parse`."""
    return ArticleParser().parse(block)

