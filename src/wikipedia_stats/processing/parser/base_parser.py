# processing/parser/base_parser.py
from abc import ABC, abstractmethod
from typing import Generic, Iterable, Iterator, Optional, TypeVar
import logging

from wikipedia_stats.processing.shared.error_handling import ErrorHandler, ParseError

RecordT = TypeVar('RecordT')


class BaseParser(ABC, Generic[RecordT]):
    """Abstract base class for parsers that turn raw record blocks into records."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """Initialize parser with optional logger."""
        self.logger = logger or logging.getLogger(__name__)
        self.stats = {"processed": 0, "skipped": 0, "errors": 0}

    @abstractmethod
    def parse(self, block: str) -> RecordT:
        """
        Parse one raw block into a record.

        Raises:
            ParseError: if a field present in the block cannot be converted
        """
        raise NotImplementedError

    def parse_blocks(
        self,
        blocks: Iterable[str],
        error_handler: Optional[ErrorHandler] = None,
        sample_limit: Optional[int] = None
    ) -> Iterator[RecordT]:
        """
        Parse a stream of blocks lazily.

        Args:
            blocks: Iterable of raw record blocks
            error_handler: When given, malformed blocks are reported to it and
                skipped; otherwise the first ParseError propagates
            sample_limit: Optional maximum number of records to yield

        Returns:
            Iterator of parsed records
        """
        count = 0
        for block in blocks:
            try:
                record = self.parse(block)
            except ParseError as e:
                self.stats["errors"] += 1
                if error_handler is None:
                    self.logger.error(f"Aborting on malformed <{e.field}> in block: {e.block_preview}")
                    raise
                error_handler.handle(e, ErrorHandler.create_context(
                    component=type(self).__name__,
                    metadata={"field": e.field},
                ))
                self.stats["skipped"] += 1
                continue

            self.stats["processed"] += 1
            yield record
            count += 1
            if sample_limit and count >= sample_limit:
                return
