"""Tests for scripts/check_schema.py and scripts/serve.py."""

import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "scripts"))

import check_schema
import serve
from fish_order.errors import StoreError

ENV = {
    "NOTION_API_KEY": "secret_x",
    "NOTION_DATABASE_ID": "db-1",
    "LINE_CHANNEL_ACCESS_TOKEN": "line-token",
}


@pytest.fixture
def env(monkeypatch):
    for name, value in ENV.items():
        monkeypatch.setenv(name, value)
    monkeypatch.delenv("FISH_ORDER_FIELD_MAP", raising=False)
    monkeypatch.delenv("PORT", raising=False)


def _repository(schema=None, error=None):
    repo = MagicMock()
    repo.__enter__.return_value = repo
    if error is not None:
        repo.fetch_schema.side_effect = error
    else:
        repo.fetch_schema.return_value = schema or {"properties": {}}
    return repo


# ------------------------------------------------------------------ #
#  check_schema                                                        #
# ------------------------------------------------------------------ #


class TestCheckSchema:
    def test_parse_args_default(self):
        assert check_schema.parse_args([]).env_file is None

    def test_ok(self, env, capsys):
        repo = _repository()
        with patch("check_schema.load_dotenv"), \
             patch("check_schema.NotionOrderRepository", return_value=repo), \
             patch("check_schema.find_schema_problems", return_value=[]):
            assert check_schema.main([]) == 0
        assert "OK" in capsys.readouterr().out
        repo.__exit__.assert_called_once()

    def test_problems_reported(self, env, capsys):
        problems = ["payment_status: option '已付款' missing"]
        with patch("check_schema.load_dotenv"), \
             patch("check_schema.NotionOrderRepository", return_value=_repository()), \
             patch("check_schema.find_schema_problems", return_value=problems):
            assert check_schema.main([]) == 1
        out = capsys.readouterr().out
        assert "1 problem" in out
        assert "option '已付款' missing" in out

    def test_store_failure(self, env, capsys):
        repo = _repository(error=StoreError("Notion API error 401: unauthorized"))
        with patch("check_schema.load_dotenv"), \
             patch("check_schema.NotionOrderRepository", return_value=repo):
            assert check_schema.main([]) == 1
        assert "unauthorized" in capsys.readouterr().err

    def test_missing_settings(self, monkeypatch, capsys):
        monkeypatch.delenv("NOTION_API_KEY", raising=False)
        with patch("check_schema.load_dotenv"):
            assert check_schema.main([]) == 1
        assert "NOTION_API_KEY" in capsys.readouterr().err

    def test_env_file_passed_to_dotenv(self, env):
        with patch("check_schema.load_dotenv") as mock_load, \
             patch("check_schema.NotionOrderRepository", return_value=_repository()), \
             patch("check_schema.find_schema_problems", return_value=[]):
            check_schema.main(["--env-file", "prod.env"])
        mock_load.assert_called_once_with("prod.env")


# ------------------------------------------------------------------ #
#  serve                                                               #
# ------------------------------------------------------------------ #


class TestServe:
    def test_parse_args_defaults(self):
        args = serve.parse_args([])
        assert args.host == "0.0.0.0"
        assert args.port is None
        assert args.log_level is None

    def test_runs_uvicorn_with_settings_port(self, env):
        with patch("serve.load_dotenv"), \
             patch("serve.create_dispatcher") as mock_create, \
             patch("serve.logging.basicConfig"), \
             patch("serve.uvicorn.run") as mock_run:
            assert serve.main([]) == 0
        mock_create.assert_called_once()
        assert mock_run.call_args.kwargs["port"] == 3000
        assert mock_run.call_args.kwargs["host"] == "0.0.0.0"

    def test_cli_overrides(self, env):
        with patch("serve.load_dotenv"), \
             patch("serve.create_dispatcher"), \
             patch("serve.logging.basicConfig") as mock_logging, \
             patch("serve.uvicorn.run") as mock_run:
            serve.main(["--port", "8000", "--log-level", "debug"])
        assert mock_run.call_args.kwargs["port"] == 8000
        assert mock_run.call_args.kwargs["log_level"] == "debug"
        assert mock_logging.call_args.kwargs["level"] == "DEBUG"

    def test_bad_config_exits_nonzero(self, env, monkeypatch, capsys):
        monkeypatch.setenv("FISH_ORDER_FIELD_MAP", '{"nonsense": "X"}')
        with patch("serve.load_dotenv"), patch("serve.uvicorn.run") as mock_run:
            assert serve.main([]) == 1
        mock_run.assert_not_called()
        assert "Unknown order field" in capsys.readouterr().err
