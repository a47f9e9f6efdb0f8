"""Tests for the modsandbox command-line entry point."""

import json
from unittest.mock import MagicMock, patch

import pytest

import modsandbox
from bundler.cache import CacheEntry
from bundler.errors import FetchServerError
from common.http_client import HttpClientError
from constants import ExitCodes


class _FakeFetcher:
    """Stands in for RemoteFetcher inside the CLI."""

    result = {}
    exc = None
    calls = []

    def __init__(self, cdn, timeout=None):
        self.cdn = cdn
        self.timeout = timeout

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    async def fetch(self, dependencies):
        type(self).calls.append(dict(dependencies))
        if type(self).exc is not None:
            raise type(self).exc
        return {k: CacheEntry.from_dict(v) for k, v in type(self).result.items()}


@pytest.fixture
def fake_fetcher():
    _FakeFetcher.result = {}
    _FakeFetcher.exc = None
    _FakeFetcher.calls = []
    with patch("modsandbox.RemoteFetcher", _FakeFetcher):
        yield _FakeFetcher


def _run_main(argv):
    with pytest.raises(SystemExit) as excinfo:
        modsandbox.main(argv)
    return excinfo.value.code


class TestLoadEntry:
    """Tests for entry script loading."""

    def test_reads_file(self, tmp_path):
        path = tmp_path / "entry.js"
        path.write_text("go()", encoding="utf-8")
        assert modsandbox.load_entry(str(path)) == "go()"

    @patch("modsandbox.safe_get")
    def test_fetches_url(self, mock_safe_get):
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.text = "require('lodash')"
        mock_safe_get.return_value = mock_response

        assert modsandbox.load_entry("https://example.com/entry.js") == "require('lodash')"
        mock_safe_get.assert_called_once_with("https://example.com/entry.js", context="entry")

    @patch("modsandbox.safe_get")
    def test_url_non_200_raises(self, mock_safe_get):
        mock_response = MagicMock()
        mock_response.status_code = 404
        mock_safe_get.return_value = mock_response
        with pytest.raises(HttpClientError):
            modsandbox.load_entry("https://example.com/missing.js")


class TestMain:
    """End-to-end CLI runs with a fake bundling service."""

    def test_json_output_and_cache_file(self, tmp_path, fake_fetcher):
        entry = tmp_path / "entry.js"
        entry.write_text("require('lodash')", encoding="utf-8")
        out = tmp_path / "out.json"
        cache = tmp_path / "cache.json"
        fake_fetcher.result = {"lodash": {"bundle": "L;", "package": {"name": "lodash", "version": "4.17.0"}}}

        code = _run_main([
            str(entry), "-f", "json", "-o", str(out), "--cache-file", str(cache),
            "--cdn", "https://cdn.example.com",
        ])

        assert code == ExitCodes.SUCCESS.value
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["packages"] == [{"name": "lodash", "version": "4.17.0"}]
        assert data["payload"]["script"].startswith("setTimeout(function(){\n;L;")
        assert "lodash@4.17.0" in json.loads(cache.read_text(encoding="utf-8"))
        assert fake_fetcher.calls == [{"lodash": "latest"}]

    def test_html_output_to_file(self, tmp_path, fake_fetcher):
        entry = tmp_path / "entry.js"
        entry.write_text("go()", encoding="utf-8")
        out = tmp_path / "out.html"

        code = _run_main([str(entry), "-o", str(out), "--no-cache"])

        assert code == ExitCodes.SUCCESS.value
        html = out.read_text(encoding="utf-8")
        assert html.startswith("<!DOCTYPE html>")
        assert "go()" in html

    def test_html_to_stdout(self, tmp_path, fake_fetcher, capsys):
        entry = tmp_path / "entry.js"
        entry.write_text("go()", encoding="utf-8")

        code = _run_main([str(entry), "--no-cache"])

        assert code == ExitCodes.SUCCESS.value
        assert "<body><script" in capsys.readouterr().out

    def test_bundle_error_exit_code(self, tmp_path, fake_fetcher, capsys):
        entry = tmp_path / "entry.js"
        entry.write_text("require('lodash')", encoding="utf-8")
        fake_fetcher.exc = FetchServerError("500", text="cdn down", status_code=500)

        code = _run_main([str(entry), "--no-cache"])

        assert code == ExitCodes.BUNDLE_ERROR.value
        assert "cdn down" in capsys.readouterr().err

    @pytest.mark.parametrize("output_format", ["html", "json"])
    def test_unwritable_output_path(self, tmp_path, fake_fetcher, output_format):
        entry = tmp_path / "entry.js"
        entry.write_text("go()", encoding="utf-8")
        out = tmp_path / "missing" / "out.html"

        code = _run_main([str(entry), "--no-cache", "-f", output_format, "-o", str(out)])

        assert code == ExitCodes.FILE_ERROR.value
        assert not out.exists()

    def test_missing_entry_file(self, tmp_path, fake_fetcher):
        code = _run_main([str(tmp_path / "nope.js"), "--no-cache"])
        assert code == ExitCodes.FILE_ERROR.value

    def test_corrupt_cache_file(self, tmp_path, fake_fetcher):
        entry = tmp_path / "entry.js"
        entry.write_text("require('lodash')", encoding="utf-8")
        cache = tmp_path / "cache.json"
        cache.write_text("not json", encoding="utf-8")

        code = _run_main([str(entry), "--cache-file", str(cache)])

        assert code == ExitCodes.FILE_ERROR.value
        assert fake_fetcher.calls == []

    def test_bad_timeout_in_config_file(self, tmp_path, fake_fetcher):
        entry = tmp_path / "entry.js"
        entry.write_text("go()", encoding="utf-8")
        cfg = tmp_path / "config.yml"
        cfg.write_text("sandbox:\n  timeout: abc\n", encoding="utf-8")

        code = _run_main([str(entry), "--no-cache", "-c", str(cfg)])

        assert code == ExitCodes.FILE_ERROR.value

    def test_bad_prefer_value(self, tmp_path, fake_fetcher):
        entry = tmp_path / "entry.js"
        entry.write_text("go()", encoding="utf-8")
        code = _run_main([str(entry), "-p", "lodash"])
        assert code == ExitCodes.FILE_ERROR.value
