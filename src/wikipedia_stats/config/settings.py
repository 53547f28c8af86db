# Standard library imports
import os
from pathlib import Path

# Closing tag of the record element; the corpus reader splits raw input on it
RECORD_DELIMITER = os.environ.get('WIKI_STATS_DELIMITER', '</page>')

# Number of characters pulled from the source per read while scanning for the delimiter
READ_CHUNK_SIZE = int(os.environ.get('WIKI_STATS_READ_CHUNK_SIZE', 64 * 1024))

# Encoding used when a binary or compressed source has to be decoded
SOURCE_ENCODING = os.environ.get('WIKI_STATS_ENCODING', 'utf-8')

# Zone in which revision years are computed. Timestamps are stored in UTC.
REFERENCE_TIMEZONE = os.environ.get('WIKI_STATS_TIMEZONE', 'UTC')

# Location of rotating log files written by the CLI
LOG_DIR = os.environ.get('WIKI_STATS_LOG_DIR', str(Path.cwd() / 'logs'))

# Default input corpora for the two-dataset report
CORPUS_PATHS = {
    'primary': os.environ.get('WIKI_STATS_CORPUS_A', 'wikipedia_meta_history1/wiki_1.xml'),
    'secondary': os.environ.get('WIKI_STATS_CORPUS_B', 'wikipedia_meta_history2/wiki_2.xml'),
}

# Tunables of the fixed query battery
QUERY_DEFAULTS = {
    'min_revisions': 100,
    'min_contributors': 10,
    'target_year': 2014,
    'focus_year': 2013,
    'contributor': 'Magioladitis',
    'top_k': 3,
}

# Shard-parallel execution; a single worker runs everything in the calling thread
EXECUTION_CONFIG = {
    'workers': int(os.environ.get('WIKI_STATS_WORKERS', 1)),
    'shard_size': int(os.environ.get('WIKI_STATS_SHARD_SIZE', 1000)),
}
