"""Tests for the uniscope CLI.

The CLI opens the on-disk DB under ``settings.workspace_dir``, which the
autouse fixture in ``conftest.py`` points at ``tmp_path``.  Network-bound
pipeline functions are monkeypatched on ``cli.main``.
"""

import json

import pytest
from typer.testing import CliRunner

from cli.main import app
from uniscope.db import SQLiteStore, get_connection, init_db
from uniscope.pipeline import DiscoveryResult, ExtractionReport, SearchReport
from uniscope.scraper.crawler import CrawlReport
from uniscope.scraper.domains import DomainScan
from uniscope.scraper.models import FetchFailure, FetchResult, PageMetadata, StructuredContent

runner = CliRunner()

_TEXT = "Gebze Teknik Üniversitesi yeni araştırma merkezinin açılışını bu hafta gerçekleştirdi"


@pytest.fixture
def seeded():
    """Write one extracted news page to the workspace DB and return its id."""
    conn = get_connection()
    init_db(conn)
    store = SQLiteStore(conn)
    page = store.upsert_page("https://example.edu/haber/1", title="Açılış", source="example.edu")
    store.upsert_structured_content(
        page.id, StructuredContent(clean_text=_TEXT, word_count=len(_TEXT.split()))
    )
    conn.close()
    return page.id


class _Engine:
    def __init__(self, result):
        self.result = result

    async def fetch(self, url):
        return self.result


def test_db_init():
    result = runner.invoke(app, ["db", "init"])
    assert result.exit_code == 0
    assert "Database ready" in result.stdout
    assert "schema v1" in result.stdout


def test_fetch_prints_summary(monkeypatch):
    fetched = FetchResult(
        url="https://example.edu/a",
        title="Robot yarışması",
        content="Öğrenciler birincilik kazandı.",
        source="example.edu",
        metadata=PageMetadata(description="Kısa özet"),
    )
    monkeypatch.setattr("cli.main.FetchEngine", lambda: _Engine(fetched))

    result = runner.invoke(app, ["fetch", "https://example.edu/a"])

    assert result.exit_code == 0
    assert "Robot yarışması" in result.stdout
    assert "Kısa özet" in result.stdout
    assert "Öğrenciler birincilik kazandı." in result.stdout


def test_fetch_failure_exits_nonzero(monkeypatch):
    failure = FetchFailure(url="https://example.edu/a", reason="HTTP 404", permanent=True)
    monkeypatch.setattr("cli.main.FetchEngine", lambda: _Engine(failure))

    result = runner.invoke(app, ["fetch", "https://example.edu/a"])

    assert result.exit_code == 1
    assert "HTTP 404" in result.stdout


def test_domains(monkeypatch):
    async def fake_scan(url):
        return DomainScan(url=url, urls=[url], domains={"example.edu"}, subdomains={"www.example.edu"})

    monkeypatch.setattr("cli.main.scan_page", fake_scan)
    result = runner.invoke(app, ["domains", "https://www.example.edu/"])

    assert result.exit_code == 0
    assert "www.example.edu" in result.stdout


def test_discover_without_saving(monkeypatch):
    calls = []

    async def fake_discover(store, crawler, start_url, max_depth, max_pages):
        calls.append((store, start_url, max_depth, max_pages))
        report = CrawlReport(start_url=start_url, visited_pages=[start_url], discovered_urls=["https://example.edu/x"])
        return DiscoveryResult(crawl=report)

    monkeypatch.setattr("cli.main.discover_and_save", fake_discover)
    result = runner.invoke(
        app, ["discover", "--start-url", "https://example.edu/", "--max-depth", "1", "--max-pages", "3", "--no-save"]
    )

    assert result.exit_code == 0
    assert calls == [(None, "https://example.edu/", 1, 3)]
    assert "https://example.edu/x" in result.stdout


def test_search(monkeypatch):
    async def fake_collect(store, **kwargs):
        assert kwargs["category"] == "haberler"
        return SearchReport(
            results=[FetchResult(url="https://example.edu/a", title="A", content="x" * 60, source="example.edu")]
        )

    monkeypatch.setattr("cli.main.collect_from_search", fake_collect)
    result = runner.invoke(app, ["search", "--category", "haberler", "--no-save"])

    assert result.exit_code == 0
    assert "1 page(s) collected" in result.stdout


def test_extract(monkeypatch):
    async def fake_extract(store, limit, save_to_db):
        return ExtractionReport(processed=2, success=1, failed=1, purged=1)

    monkeypatch.setattr("cli.main.extract_pending", fake_extract)
    result = runner.invoke(app, ["extract", "--limit", "2"])

    assert result.exit_code == 0
    assert "processed=2" in result.stdout
    assert "purged=1" in result.stdout


def test_train_without_data():
    result = runner.invoke(app, ["train"])
    assert result.exit_code == 0
    assert "no_source_data" in result.stdout


def test_classify_requires_target():
    result = runner.invoke(app, ["classify"])
    assert result.exit_code == 1


def test_classify_page(seeded):
    result = runner.invoke(app, ["classify", seeded])

    assert result.exit_code == 0
    assert "Haberler" in result.stdout
    assert "url_pattern" in result.stdout


def test_classify_unknown_page(seeded):
    result = runner.invoke(app, ["classify", "no-such-page"])
    assert result.exit_code == 1


def test_classify_batch_then_stats(seeded):
    batch = runner.invoke(app, ["classify", "--batch"])
    assert batch.exit_code == 0
    assert "ok=1" in batch.stdout

    stats = runner.invoke(app, ["stats", "--json"])
    data = json.loads(stats.stdout)
    assert data["total_classified"] == 1
    assert data["total_unclassified"] == 0


def test_categories():
    result = runner.invoke(app, ["categories"])
    assert result.exit_code == 0
    assert result.stdout.splitlines()[0] == "Haberler"


def test_history_lists_and_shows_runs():
    conn = get_connection()
    init_db(conn)
    store = SQLiteStore(conn)
    run = store.create_search("GTU haberler")
    store.fail_search(run.id, "rate limited")
    conn.close()

    listing = runner.invoke(app, ["history"])
    assert listing.exit_code == 0
    assert run.id in listing.stdout
    assert "GTU haberler" in listing.stdout

    detail = runner.invoke(app, ["history", run.id])
    assert detail.exit_code == 0
    assert "failed" in detail.stdout
    assert "rate limited" in detail.stdout


def test_history_unknown_run():
    result = runner.invoke(app, ["history", "no-such-run"])
    assert result.exit_code == 1
