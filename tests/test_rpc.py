"""Tests for method dispatch and the error envelope."""

import json
from datetime import datetime, timezone

import pytest

from fathom_search_mcp import rpc
from fathom_search_mcp.config import Config
from fathom_search_mcp.errors import SourceAuthError

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


@pytest.fixture
def config() -> Config:
    return Config(api_key="test-key")


class TestHandleCall:
    def test_success_envelope(self, fake_source, config):
        envelope = rpc.handle_call(
            7, "search", {"search_term": "legalstart.fr"}, fake_source, config, now=NOW
        )
        assert envelope["id"] == 7
        assert "error" not in envelope
        result = envelope["result"]
        assert result["search_term"] == "legalstart.fr"
        assert result["total_found"] == 2
        assert result["showing"] == 2
        assert result["has_more"] is False
        assert set(result["filters_applied"]) >= {
            "exclude_teams",
            "days_back",
            "include_summary",
            "include_action_items",
            "include_transcript",
        }
        assert result["meetings"][0]["url"] == "https://fathom.video/share/101"
        assert result["meetings"][0]["date"].startswith("2024-01-10T09:30:00")

    def test_tool_name_alias(self, fake_source, config):
        envelope = rpc.handle_call(
            "a", "search_meetings", {"search_term": "pricing"}, fake_source, config
        )
        assert "result" in envelope

    def test_unknown_method(self, fake_source, config):
        envelope = rpc.handle_call(1, "delete", {}, fake_source, config)
        assert envelope == {
            "id": 1,
            "error": {"code": "unknown_capability", "message": "Unknown method: delete"},
        }
        assert fake_source.calls == []

    def test_invalid_request_before_fetch(self, fake_source, config):
        envelope = rpc.handle_call(2, "search", {"limit": 3}, fake_source, config)
        assert envelope["error"]["code"] == "invalid_request"
        assert "result" not in envelope
        assert fake_source.calls == []

    def test_source_error(self, config):
        class Denied:
            def fetch(self, filters, cursor=None):
                raise SourceAuthError("Invalid API key", status_code=401)

        envelope = rpc.handle_call(3, "search", {"search_term": "x"}, Denied(), config)
        assert envelope == {
            "id": 3,
            "error": {"code": "source_auth_error", "message": "Invalid API key"},
        }

    def test_internal_error(self, config):
        class Broken:
            def fetch(self, filters, cursor=None):
                raise RuntimeError("boom")

        envelope = rpc.handle_call(4, "search", {"search_term": "x"}, Broken(), config)
        assert envelope == {
            "id": 4,
            "error": {"code": "internal_error", "message": "boom"},
        }


class TestMain:
    def test_prints_envelope(self, monkeypatch, capsys, fake_source):
        monkeypatch.setenv("FATHOM_API_KEY", "test-key")
        monkeypatch.setattr(rpc, "create_source", lambda config: _Closing(fake_source))
        call = {"id": 9, "method": "search", "params": {"search_term": "pricing"}}
        monkeypatch.setattr("sys.argv", ["fathom-search-call", json.dumps(call)])

        rpc.main()

        envelope = json.loads(capsys.readouterr().out)
        assert envelope["id"] == 9
        assert envelope["result"]["search_term"] == "pricing"

    def test_error_exit_code(self, monkeypatch, capsys, fake_source):
        monkeypatch.setenv("FATHOM_API_KEY", "test-key")
        monkeypatch.setattr(rpc, "create_source", lambda config: _Closing(fake_source))
        call = {"id": 1, "method": "nope"}
        monkeypatch.setattr("sys.argv", ["fathom-search-call", json.dumps(call)])

        with pytest.raises(SystemExit) as exc_info:
            rpc.main()

        assert exc_info.value.code == 1
        assert json.loads(capsys.readouterr().out)["error"]["code"] == "unknown_capability"


class _Closing:
    """Context-manager wrapper so a fake source can stand in for the client."""

    def __init__(self, source):
        self.source = source

    def __enter__(self):
        return self.source

    def __exit__(self, *exc_info):
        return None
