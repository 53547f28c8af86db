import bz2
import functools
import gzip
import io
import threading
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer

import pytest
import requests

from wikipedia_stats.processing.shared.error_handling import ParseError
from wikipedia_stats.wiki_io.corpus_reader import CorpusReader, read_blocks, to_articles

from tests.conftest import dump_xml, page_xml

PAGES = [
    page_xml(1, "Alpha", [(11, "Ann", "2012-01-01T00:00:00Z")]),
    page_xml(2, "Beta", [(21, "Ben", "2013-01-01T00:00:00Z"), (22, "Ann", "2013-02-01T00:00:00Z")]),
    page_xml(3, "Gamma", [(31, "10.1.1.1", "2014-01-01T00:00:00Z")]),
]


@pytest.mark.parametrize("chunk_size", [1, 3, 7, 64, 1 << 16])
def test_blocks_end_with_delimiter_regardless_of_chunking(chunk_size):
    text = "<page>a</page><page>b</page>\n<page>c</page>"
    blocks = list(read_blocks(io.StringIO(text), chunk_size=chunk_size))
    assert blocks == ["<page>a</page>", "<page>b</page>", "\n<page>c</page>"]


def test_empty_and_whitespace_blocks_are_discarded():
    reader = CorpusReader(chunk_size=5)
    blocks = list(reader.read_blocks(io.StringIO("</page></page>  \n </page><page>x</page>\n")))
    assert blocks == ["<page>x</page>"]
    assert reader.stats == {"blocks": 1, "discarded_blocks": 2}


def test_trailing_remainder_gets_delimiter_appended():
    blocks = list(read_blocks(io.StringIO("<page>a</page>\n</mediawiki>")))
    assert blocks == ["<page>a</page>", "\n</mediawiki></page>"]


def test_custom_delimiter():
    blocks = list(read_blocks(io.StringIO("<doc>1</doc><doc>2</doc>"), delimiter="</doc>", chunk_size=2))
    assert blocks == ["<doc>1</doc>", "<doc>2</doc>"]


def test_empty_delimiter_rejected():
    with pytest.raises(ValueError):
        CorpusReader(delimiter="")


def test_to_articles_over_full_dump_drops_wrapper_remainder():
    articles = list(to_articles(io.StringIO(dump_xml(PAGES)), chunk_size=10))
    assert [a.title for a in articles] == ["Alpha", "Beta", "Gamma"]
    assert [a.revision_count for a in articles] == [1, 2, 1]


def test_to_articles_drops_zero_revision_pages():
    text = "<page><title>Empty</title><id>9</id></page>" + PAGES[0]
    articles = list(to_articles(io.StringIO(text)))
    assert [a.id for a in articles] == [1]


def test_malformed_page_aborts_by_default():
    text = PAGES[0] + "<page><revision><timestamp>nope</timestamp></revision></page>" + PAGES[1]
    with pytest.raises(ParseError):
        list(to_articles(io.StringIO(text)))


def test_malformed_page_skipped_on_request():
    text = PAGES[0] + "<page><revision><timestamp>nope</timestamp></revision></page>" + PAGES[1]
    articles = list(to_articles(io.StringIO(text), skip_malformed=True))
    assert [a.title for a in articles] == ["Alpha", "Beta"]


def test_reads_plain_bz2_and_gz_files(tmp_path):
    content = dump_xml(PAGES)
    plain = tmp_path / "wiki.xml"
    plain.write_text(content, encoding="utf-8")
    packed_bz2 = tmp_path / "wiki.xml.bz2"
    packed_bz2.write_bytes(bz2.compress(content.encode("utf-8")))
    packed_gz = tmp_path / "wiki.xml.gz"
    packed_gz.write_bytes(gzip.compress(content.encode("utf-8")))

    for path in (plain, packed_bz2, str(packed_gz)):
        titles = [a.title for a in CorpusReader(chunk_size=32).to_articles(path)]
        assert titles == ["Alpha", "Beta", "Gamma"]


def test_binary_stream_is_decoded_and_left_open():
    raw = io.BytesIO(("<page><title>Zoë</title><revision><timestamp>2012-01-01T00:00:00Z"
                      "</timestamp></revision></page>").encode("utf-8"))
    articles = list(CorpusReader(chunk_size=4).to_articles(raw))
    assert articles[0].title == "Zoë"
    assert not raw.closed


def test_reading_is_lazy():
    class CountingStream(io.StringIO):
        reads = 0

        def read(self, size=-1):
            CountingStream.reads += 1
            return super().read(size)

    stream = CountingStream("<page>a</page>" * 1000)
    blocks = CorpusReader(chunk_size=14).read_blocks(stream)
    assert next(blocks) == "<page>a</page>"
    assert CountingStream.reads <= 2


def test_missing_file_propagates(tmp_path):
    with pytest.raises(OSError):
        list(read_blocks(tmp_path / "absent.xml"))


class QuietHandler(SimpleHTTPRequestHandler):
    def log_message(self, format, *args):
        pass


@pytest.fixture
def dump_server(tmp_path, monkeypatch):
    monkeypatch.setenv("NO_PROXY", "127.0.0.1")
    monkeypatch.setenv("no_proxy", "127.0.0.1")
    content = dump_xml(PAGES).encode("utf-8")
    (tmp_path / "wiki.xml").write_bytes(content)
    (tmp_path / "wiki.xml.bz2").write_bytes(bz2.compress(content))

    server = ThreadingHTTPServer(("127.0.0.1", 0), functools.partial(QuietHandler, directory=str(tmp_path)))
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}"
    server.shutdown()
    server.server_close()


@pytest.mark.parametrize("name", ["wiki.xml", "wiki.xml.bz2"])
def test_reads_url_sources(dump_server, name):
    articles = list(CorpusReader(chunk_size=16).to_articles(f"{dump_server}/{name}"))
    assert [a.title for a in articles] == ["Alpha", "Beta", "Gamma"]
    assert articles[1].contributors == ("Ben", "Ann")


def test_missing_url_raises_http_error(dump_server):
    with pytest.raises(requests.HTTPError):
        list(read_blocks(f"{dump_server}/absent.xml"))
