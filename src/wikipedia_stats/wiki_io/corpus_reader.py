"""Delimiter-based splitting of raw corpus sources into page blocks."""
import logging
from typing import Iterator, Optional, TextIO

from wikipedia_stats.config.settings import READ_CHUNK_SIZE, RECORD_DELIMITER, SOURCE_ENCODING
from wikipedia_stats.domain.models import Article
from wikipedia_stats.processing.parser.article_parser import ArticleParser
from wikipedia_stats.processing.shared.error_handling import ErrorHandler
from wikipedia_stats.processing.shared.file_utils import Source, open_text_source


class CorpusReader:
    """
    Pull-based record reader.

    The source is consumed ``chunk_size`` characters at a time, so at most the
    current block plus one chunk is held in memory regardless of corpus size.
    """

    def __init__(
        self,
        delimiter: str = RECORD_DELIMITER,
        chunk_size: int = READ_CHUNK_SIZE,
        encoding: str = SOURCE_ENCODING,
        logger: Optional[logging.Logger] = None
    ):
        if not delimiter:
            raise ValueError("Record delimiter must be a non-empty string")
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.delimiter = delimiter
        self.chunk_size = chunk_size
        self.encoding = encoding
        self.logger = logger or logging.getLogger(__name__)
        self.stats = {'blocks': 0, 'discarded_blocks': 0}

    def read_blocks(self, source: Source, file_name: Optional[str] = None) -> Iterator[str]:
        """
        Lazily split ``source`` into blocks ending with the delimiter.

        Args:
            source: text or binary stream, local path or http(s) URL
                (``.bz2``/``.gz`` are decompressed by extension)
            file_name: Name used to detect compression when ``source`` is a stream

        Returns:
            Iterator of block strings, each with the delimiter re-appended
        """
        with open_text_source(source, file_name, self.encoding) as stream:
            yield from self._split(stream)

    def _split(self, stream: TextIO) -> Iterator[str]:
        delimiter = self.delimiter
        buffer = ""
        search_from = 0
        while True:
            chunk = stream.read(self.chunk_size)
            if not chunk:
                break
            buffer += chunk
            start = 0
            while True:
                idx = buffer.find(delimiter, max(start, search_from))
                if idx == -1:
                    break
                block = buffer[start:idx]
                start = idx + len(delimiter)
                if self._keep(block):
                    yield block + delimiter
            buffer = buffer[start:]
            # the delimiter may straddle this chunk and the next
            search_from = max(0, len(buffer) - len(delimiter) + 1)

        if self._keep(buffer):
            yield buffer + delimiter

    def _keep(self, block: str) -> bool:
        if block.strip():
            self.stats['blocks'] += 1
            return True
        if block:
            self.stats['discarded_blocks'] += 1
        return False

    def to_articles(
        self,
        source: Source,
        file_name: Optional[str] = None,
        parser: Optional[ArticleParser] = None,
        skip_malformed: bool = False,
        error_handler: Optional[ErrorHandler] = None
    ) -> Iterator[Article]:
        """
        Read, parse and keep articles that have at least one revision.

        Args:
            source: see :meth:`read_blocks`
            file_name: Name used to detect compression when ``source`` is a stream
            parser: ArticleParser to use (and collect stats on)
            skip_malformed: log and skip blocks raising ParseError instead of aborting
            error_handler: handler receiving skipped blocks; created on demand

        Returns:
            Iterator of Articles with ``revision_count >= 1``
        """
        parser = parser or ArticleParser(logger=self.logger)
        if skip_malformed and error_handler is None:
            error_handler = ErrorHandler(self.logger)
        handler = error_handler if skip_malformed else None

        for article in parser.parse_blocks(self.read_blocks(source, file_name), error_handler=handler):
            if article.revision_count >= 1:
                yield article
            else:
                self.logger.debug(f"Dropping article {article.id} ({article.title!r}) without revisions")


def read_blocks(source: Source, delimiter: str = RECORD_DELIMITER, chunk_size: int = READ_CHUNK_SIZE) -> Iterator[str]:
    return CorpusReader(delimiter, chunk_size).read_blocks(source)


def to_articles(
    source: Source,
    delimiter: str = RECORD_DELIMITER,
    chunk_size: int = READ_CHUNK_SIZE,
    skip_malformed: bool = False
) -> Iterator[Article]:
    return CorpusReader(delimiter, chunk_size).to_articles(source, skip_malformed=skip_malformed)
