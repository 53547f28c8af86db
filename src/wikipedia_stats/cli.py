#!/usr/bin/env python3
import argparse
import logging
import sys
from typing import List, Optional

from tqdm import tqdm

from wikipedia_stats.config.settings import (
    CORPUS_PATHS, EXECUTION_CONFIG, LOG_DIR, QUERY_DEFAULTS, READ_CHUNK_SIZE, RECORD_DELIMITER,
)
from wikipedia_stats.domain.models import Article
from wikipedia_stats.processing.aggregation.sharding import ShardedExecutor
from wikipedia_stats.processing.parser.article_parser import ArticleParser
from wikipedia_stats.processing.shared.error_handling import ErrorHandler, ParseError
from wikipedia_stats.reporting.queries import QueryConfig, format_result, run_report
from wikipedia_stats.wiki_io.corpus_reader import CorpusReader
from wikipedia_stats.wiki_utils.logging_utils import ApplicationLogger
from wikipedia_stats.wiki_utils.timing import timed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wiki-stats",
        description=(
            "Compute revision statistics over two Wikipedia meta-history dumps.\n\n"
            "Each corpus is split into <page> blocks, parsed into articles with "
            "their revisions, and a fixed set of questions (Q1-Q11) is answered."
        ),
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # Input
    parser.add_argument("corpus_a", nargs="?", default=CORPUS_PATHS['primary'],
                        help="Path or URL of the first corpus (.xml, .bz2 or .gz)")
    parser.add_argument("corpus_b", nargs="?", default=CORPUS_PATHS['secondary'],
                        help="Path or URL of the second corpus, joined with the first in Q10-Q11")
    parser.add_argument("--delimiter", default=RECORD_DELIMITER,
                        help="Closing tag that ends each record")
    parser.add_argument("--chunk-size", type=int, default=READ_CHUNK_SIZE,
                        help="Characters read from a source per pull")
    parser.add_argument("--skip-malformed", action="store_true",
                        help="Log and skip pages with malformed fields instead of aborting")

    # Queries
    parser.add_argument("--min-revisions", type=int, default=QUERY_DEFAULTS['min_revisions'])
    parser.add_argument("--min-contributors", type=int, default=QUERY_DEFAULTS['min_contributors'])
    parser.add_argument("--target-year", type=int, default=QUERY_DEFAULTS['target_year'],
                        help="Year inspected by Q8")
    parser.add_argument("--focus-year", type=int, default=QUERY_DEFAULTS['focus_year'],
                        help="Year inspected by Q9 and Q11")
    parser.add_argument("--contributor", default=QUERY_DEFAULTS['contributor'],
                        help="Contributor inspected by Q9")
    parser.add_argument("--top-k", type=int, default=QUERY_DEFAULTS['top_k'])
    parser.add_argument("--timezone", default=None,
                        help="Zone used to compute revision years (default: configured reference zone)")
    parser.add_argument("--show-first", type=int, default=1,
                        help="Print the first N parsed articles of the first corpus")

    # Execution
    parser.add_argument("-j", "--workers", type=int, default=EXECUTION_CONFIG['workers'])
    parser.add_argument("--shard-size", type=int, default=EXECUTION_CONFIG['shard_size'])
    parser.add_argument("--processes", action="store_true",
                        help="Use a process pool instead of threads when --workers > 1")

    # Logging
    parser.add_argument("--log-dir", default=LOG_DIR, help="Directory for rotating log files")
    parser.add_argument("--debug", action="store_true")
    parser.add_argument("-q", "--quiet", action="store_true",
                        help="Only log warnings to the console and hide progress bars")
    return parser


def load_corpus(
    source: str,
    reader: CorpusReader,
    error_handler: Optional[ErrorHandler],
    logger: logging.Logger,
    show_progress: bool = True
) -> List[Article]:
    """Parse a whole corpus once; the list is reused by every query."""
    parser = ArticleParser(logger=logger)
    articles = reader.to_articles(
        source,
        parser=parser,
        skip_malformed=error_handler is not None,
        error_handler=error_handler,
    )
    loaded = list(tqdm(articles, desc=str(source), unit=" pages", disable=not show_progress))
    logger.info(
        f"Loaded {source}: articles={len(loaded):,} | pages={parser.stats['pages']:,} | "
        f"revisions={parser.stats['revisions']:,} | skipped={parser.stats['skipped']:,}"
    )
    return loaded


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    app_logger = ApplicationLogger(log_dir=args.log_dir, debug=args.debug, verbose=not args.quiet)
    try:
        return run(args, app_logger.get_logger("cli"))
    finally:
        app_logger.close()


def run(args: argparse.Namespace, logger: logging.Logger) -> int:
    reader = CorpusReader(delimiter=args.delimiter, chunk_size=args.chunk_size, logger=logger)
    error_handler = ErrorHandler(logger, debug=args.debug) if args.skip_malformed else None
    executor = ShardedExecutor(
        max_workers=args.workers,
        shard_size=args.shard_size,
        use_processes=args.processes,
        logger=logger,
    )
    config = QueryConfig(
        min_revisions=args.min_revisions,
        min_contributors=args.min_contributors,
        target_year=args.target_year,
        focus_year=args.focus_year,
        contributor=args.contributor,
        top_k=args.top_k,
        timezone=args.timezone,
    )

    try:
        articles_a, load_a = timed("generate articles (corpus A)", load_corpus,
                                   args.corpus_a, reader, error_handler, logger, not args.quiet)
        articles_b, load_b = timed("generate articles (corpus B)", load_corpus,
                                   args.corpus_b, reader, error_handler, logger, not args.quiet)
    except ParseError as e:
        logger.error(f"Malformed <{e.field}> value {e.value!r}; rerun with --skip-malformed to ignore such pages")
        return 2
    except OSError as e:
        logger.error(f"Cannot read corpus: {e}")
        return 1

    for article in articles_a[:args.show_first]:
        print(article.to_text(), end="")

    report = run_report(articles_a, articles_b, config, executor)
    for result in report.results:
        print(format_result(result))

    for timing in [load_a, load_b] + report.timings:
        print(timing)

    if error_handler is not None and error_handler.stats['error_count']:
        logger.warning(f"Skipped {error_handler.stats['error_count']} malformed page(s)")

    return 0


if __name__ == "__main__":
    sys.exit(main())
