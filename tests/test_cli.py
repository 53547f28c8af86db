import pytest

from wikipedia_stats.cli import build_parser, main

from tests.conftest import dump_xml, page_xml

CORPUS_A = dump_xml([
    page_xml(10, "Einstein", [
        (100, "Alice", "2012-03-01T10:00:00Z"),
        (101, "Bob", "2013-06-01T10:00:00Z"),
        (102, "Magioladitis", "2013-07-01T10:00:00Z"),
    ]),
    page_xml(11, "Newton", [(110, "Bob", "2014-01-05T00:00:00Z")]),
])

CORPUS_B = dump_xml([
    page_xml(20, "Bohr", [(200, "Bob", "2013-09-01T00:00:00Z")]),
])

BROKEN_PAGE = "  <page>\n    <title>Broken</title>\n    <id>oops</id>\n  </page>"


@pytest.fixture
def corpus_files(tmp_path):
    a = tmp_path / "wiki_1.xml"
    b = tmp_path / "wiki_2.xml"
    a.write_text(CORPUS_A, encoding="utf-8")
    b.write_text(CORPUS_B, encoding="utf-8")
    return a, b


def run_cli(tmp_path, *args):
    return main([*map(str, args), "--log-dir", str(tmp_path / "logs"), "-q"])


def test_defaults_follow_settings():
    args = build_parser().parse_args([])
    assert args.delimiter == "</page>"
    assert args.top_k == 3
    assert args.contributor == "Magioladitis"
    assert args.workers >= 1


def test_end_to_end(tmp_path, corpus_files, capsys):
    a, b = corpus_files
    code = run_cli(tmp_path, a, b, "--min-revisions", 2, "--min-contributors", 2, "--chunk-size", 50)
    out = capsys.readouterr().out

    assert code == 0
    assert out.startswith("10,Einstein\n\t100,Alice,2012-03-01T10:00:00Z\n")
    assert "********** Q1: (revision num, article num) (4, 2)" in out
    assert "********** Q4:" in out and "unique contributors 1" in out
    assert "********** Q7: number of revisions per year\n  2012 -> 1\n  2013 -> 2\n  2014 -> 1\n" in out
    assert "********** Q9: number of revisions made by Magioladitis in 2013 1" in out
    assert "********** Q10: number of contributors who contributed to both datasets 1" in out
    assert "Processing generate articles (corpus A) took" in out
    assert (tmp_path / "logs" / "wikipedia_stats.log").exists()


def test_sharded_run_prints_same_answers(tmp_path, corpus_files, capsys):
    a, b = corpus_files
    run_cli(tmp_path, a, b)
    sequential = [line for line in capsys.readouterr().out.splitlines() if line.startswith("*")]
    run_cli(tmp_path, a, b, "-j", 2, "--shard-size", 1)
    sharded = [line for line in capsys.readouterr().out.splitlines() if line.startswith("*")]
    assert sharded == sequential
    assert len(sequential) == 11


def test_malformed_page_aborts(tmp_path, capsys):
    bad = tmp_path / "bad.xml"
    bad.write_text(dump_xml([BROKEN_PAGE]), encoding="utf-8")
    assert run_cli(tmp_path, bad, bad) == 2
    assert "Q1" not in capsys.readouterr().out


def test_malformed_page_skipped_on_request(tmp_path, corpus_files, capsys):
    a, b = corpus_files
    mixed = tmp_path / "mixed.xml"
    mixed.write_text(CORPUS_A.replace("</siteinfo>", "</siteinfo>\n" + BROKEN_PAGE), encoding="utf-8")
    assert run_cli(tmp_path, mixed, b, "--skip-malformed") == 0
    assert "(4, 2)" in capsys.readouterr().out


def test_missing_corpus_returns_error(tmp_path):
    assert run_cli(tmp_path, tmp_path / "absent.xml", tmp_path / "absent.xml") == 1
