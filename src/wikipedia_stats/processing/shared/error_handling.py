"""
Exceptions and standardized error reporting for the parsing pipeline
"""

import logging
import traceback
from datetime import datetime, timezone
from typing import Dict, Any, Optional

BLOCK_PREVIEW_CHARS = 200


class WikiStatsError(Exception):
    """Base class for errors raised by this package."""


class ParseError(WikiStatsError):
    """
    A field is present in a page block but its text cannot be converted.

    Attributes:
        field: name of the offending tag, e.g. ``timestamp`` or ``id``
        block: raw text of the page block being parsed
        value: the text that failed to convert
    """

    def __init__(self, field: str, block: str, value: Optional[str] = None, reason: Optional[str] = None):
        self.field = field
        self.block = block
        self.value = value
        self.reason = reason
        message = f"Invalid <{field}> value {value!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)

    @property
    def block_preview(self) -> str:
        preview = self.block.strip().replace('\n', ' ')
        if len(preview) > BLOCK_PREVIEW_CHARS:
            preview = preview[:BLOCK_PREVIEW_CHARS] + '...'
        return preview


class AggregationCancelled(WikiStatsError):
    """Raised when a sharded aggregation is cancelled between shards."""


class ErrorHandler:
    """
    Centralized error handling with stats tracking and context logging
    """

    def __init__(
        self,
        logger: logging.Logger,
        stats: Optional[Dict[str, Any]] = None,
        debug: bool = False
    ):
        """
        Args:
            logger: Configured logger instance
            stats: Optional stats dictionary to update
            debug: Enable detailed error reporting
        """
        self.logger = logger
        self.stats = stats if stats is not None else {}
        self.debug = debug

        self.stats.setdefault('error_count', 0)
        self.stats.setdefault('error_types', {})
        self.stats.setdefault('last_error', None)

    def handle(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        increment_stats: bool = True
    ) -> Dict[str, Any]:
        """
        Process an exception and return updated stats

        Args:
            error: Exception to handle
            context: Additional context about the error
            increment_stats: Whether to update error counters

        Returns:
            Updated stats dictionary
        """
        error_type = type(error).__name__
        error_details = self._build_error_details(error, context, error_type)

        if increment_stats:
            self._update_stats(error_type, error_details)

        self._log_error(error, error_details)
        return self.stats

    def _build_error_details(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]],
        error_type: str
    ) -> Dict[str, Any]:
        """Construct detailed error information dictionary"""
        details = {
            'type': error_type,
            'message': str(error),
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'context': context,
            'traceback': traceback.format_exc() if self.debug else None
        }
        if isinstance(error, ParseError):
            details['field'] = error.field
            details['block_preview'] = error.block_preview
        return details

    def _update_stats(self, error_type: str, error_details: Dict[str, Any]) -> None:
        self.stats['error_count'] += 1
        self.stats['error_types'][error_type] = self.stats['error_types'].get(error_type, 0) + 1
        self.stats['last_error'] = error_details

    def _log_error(self, error: Exception, details: Dict[str, Any]) -> None:
        """Log error with appropriate level"""
        if isinstance(error, ParseError):
            self.logger.warning("Skipping malformed block: %s", details)
        else:
            log_method = self.logger.error if not self.debug else self.logger.exception
            log_method("Error occurred: %s", details)

    @classmethod
    def create_context(
        cls,
        component: str,
        item_id: Optional[str] = None,
        metadata: Optional[Dict] = None
    ) -> Dict[str, Any]:
        """
        Create standardized error context

        Args:
            component: Which component failed
            item_id: ID of item being processed
            metadata: Additional context

        Returns:
            Context dictionary
        """
        return {
            'component': component,
            'item_id': item_id,
            'metadata': metadata or {}
        }
