# processing/shared/file_utils.py
"""Utilities for opening corpus sources as text streams."""

import bz2
import gzip
import logging
from contextlib import ExitStack, contextmanager
from io import TextIOWrapper
from pathlib import Path
from typing import Any, BinaryIO, Iterator, Optional, TextIO, Union

import requests

from wikipedia_stats.config.settings import SOURCE_ENCODING

logger = logging.getLogger(__name__)

Source = Union[str, Path, TextIO, BinaryIO]


def is_url(value: Any) -> bool:
    return isinstance(value, str) and (value.startswith("http://") or value.startswith("https://"))


def is_binary_stream(stream: Any) -> bool:
    """
    Check if a stream is binary.

    Args:
        stream: Stream to check

    Returns:
        True if stream is binary, False otherwise
    """
    return hasattr(stream, 'read') and not hasattr(stream, 'encoding')


def wrap_compression(file_obj: BinaryIO, file_name: str) -> BinaryIO:
    """Wrap a binary file object in a decompressor chosen by file extension."""
    lowered = file_name.lower()
    if lowered.endswith(".bz2"):
        logger.debug("File extension indicates bz2 compression, wrapping file object accordingly.")
        return bz2.BZ2File(file_obj, "rb")
    if lowered.endswith(".gz"):
        logger.debug("File extension indicates gzip compression, wrapping file object accordingly.")
        return gzip.GzipFile(fileobj=file_obj, mode="rb")
    return file_obj


def get_binary_stream(stream_or_path: Source, file_name: Optional[str] = None) -> BinaryIO:
    """
    Get appropriate binary stream based on file type and compression.

    Args:
        stream_or_path: Binary file-like object or local path
        file_name: Name of the file for determining compression

    Returns:
        Binary stream suitable for reading
    """
    name = file_name or str(getattr(stream_or_path, 'name', stream_or_path))

    if is_url(stream_or_path):
        raise ValueError(f"URL sources are opened with open_text_source, not as a raw stream: {stream_or_path}")

    if isinstance(stream_or_path, (str, Path)):
        logger.debug(f"Input is a local file path: {stream_or_path}, opening file in binary mode.")
        lowered = name.lower()
        # the decompressors only close file objects they opened themselves
        if lowered.endswith(".bz2"):
            return bz2.open(stream_or_path, "rb")
        if lowered.endswith(".gz"):
            return gzip.open(stream_or_path, "rb")
        return open(stream_or_path, "rb")

    if is_binary_stream(stream_or_path):
        return wrap_compression(stream_or_path, name)

    raise TypeError(f"Unsupported source type: {type(stream_or_path)}")


def get_text_stream(stream_or_path: Source, file_name: Optional[str] = None, encoding: str = SOURCE_ENCODING) -> TextIO:
    """
    Get text stream from a path or stream with proper encoding.

    Args:
        stream_or_path: File-like object or local path
        file_name: Name of the file for determining compression
        encoding: Text encoding to use

    Returns:
        Text stream for reading
    """
    if hasattr(stream_or_path, 'read') and hasattr(stream_or_path, 'encoding'):
        return stream_or_path

    binary = get_binary_stream(stream_or_path, file_name)
    return TextIOWrapper(binary, encoding=encoding, errors="replace")


def fetch_url(url: str, timeout: float = 30) -> requests.Response:
    """
    Issue a streaming GET for ``url``.

    The body is read through ``response.raw``, which stays open at the end of
    the body so reads there return ``b""``. The caller closes the response.

    Raises:
        requests.RequestException: on connection failures and HTTP error statuses
    """
    logger.debug(f"Input is a URL: {url}, fetching content.")
    response = None
    try:
        response = requests.get(url, stream=True, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"Error fetching URL {url}: {str(e)}", exc_info=True)
        if response is not None:
            response.close()
        raise
    response.raw.decode_content = True
    response.raw.auto_close = False
    return response


@contextmanager
def open_text_source(source: Source, file_name: Optional[str] = None, encoding: str = SOURCE_ENCODING) -> Iterator[TextIO]:
    """
    Open ``source`` as text for the duration of a ``with`` block.

    ``source`` may be a text or binary stream, a local path or an http(s) URL.
    Streams handed in by the caller stay open; anything opened here is closed,
    including the HTTP response behind a URL source.
    """
    with ExitStack() as stack:
        if is_url(source):
            response = stack.enter_context(fetch_url(source))
            binary = wrap_compression(response.raw, file_name or source)
            # callbacks run in reverse: text stream, then raw body, then the response
            if binary is not response.raw:
                stack.callback(safe_close, response.raw)
            stream = TextIOWrapper(binary, encoding=encoding, errors="replace")
            stack.callback(safe_close, stream)
        elif hasattr(source, 'read'):
            stream = get_text_stream(source, file_name, encoding)
            if stream is not source:
                # leave the caller's binary stream open
                stack.callback(stream.detach)
        else:
            stream = get_text_stream(source, file_name, encoding)
            stack.callback(safe_close, stream)
        yield stream


def safe_close(stream: Optional[Union[BinaryIO, TextIO]]) -> None:
    """
    Safely close a stream, logging failures.

    Args:
        stream: Stream to close
    """
    if stream:
        try:
            stream.close()
        except (OSError, ValueError) as e:
            logger.warning(f"Error closing stream: {e}")
