"""Tests for the run command."""

import json
import logging
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from conftest import FakeProvider
from dso.cli.commands.run import _display_summary
from dso.cli.main import app
from dso.config.constants import SAMPLE_DATASET
from dso.config.settings import PipelineConfig
from dso.core.engine import PipelineEngine
from dso.core.state import ItemStatus, WorkItem
from dso.exceptions import RateLimitError

runner = CliRunner()


class _FlakyProvider(FakeProvider):
    """Fails the first ``failures`` attempts of every text listed in ``flaky``."""

    def __init__(self, flaky: set[str], failures: int = 1) -> None:
        super().__init__()
        self.flaky = flaky
        self.failures = failures
        self.attempts: dict[str, int] = {}

    async def _generate(self, prompt, config):
        text = self._original_of(prompt, config)
        self.attempts[text] = self.attempts.get(text, 0) + 1
        if text in self.flaky and self.attempts[text] <= self.failures:
            raise RateLimitError()
        return await super()._generate(prompt, config)


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers bound to the runner's captured streams."""
    yield
    logging.getLogger().handlers.clear()


@pytest.fixture
def dataset(isolated_settings):
    path = isolated_settings / "data.json"
    path.write_text(json.dumps(SAMPLE_DATASET), encoding="utf-8")
    return path


class TestRunCommand:
    """Tests for dso run."""

    def test_run_with_mock_provider(self, dataset, isolated_settings):
        output = isolated_settings / "out.json"

        result = runner.invoke(
            app, ["run", str(dataset), "-p", "mock", "-c", "5", "--delay-ms", "0", "-o", str(output)]
        )

        assert result.exit_code == 0, result.output
        rows = json.loads(output.read_text(encoding="utf-8"))
        assert [row["id"] for row in rows] == ["1", "2", "3", "4", "5"]
        assert all(row["status"] == "COMPLETED" for row in rows)
        assert rows[0]["rewritten"]
        assert "Run Summary" in result.output

    def test_run_writes_task_log(self, dataset, isolated_settings):
        runner.invoke(app, ["run", str(dataset), "-p", "mock", "-c", "5", "--delay-ms", "0"])

        assert list((isolated_settings / ".logs").glob("run_*.log"))
        assert (isolated_settings / "DSO_Export.json").exists()

    def test_run_invalid_dataset(self, isolated_settings):
        bad = isolated_settings / "bad.json"
        bad.write_text("{not json", encoding="utf-8")

        result = runner.invoke(app, ["run", str(bad), "-p", "mock"])

        assert result.exit_code == 1
        assert "JSON syntax error" in result.output

    def test_run_duplicate_ids(self, isolated_settings):
        """An explicit id colliding with a synthesized one is reported, not raised."""
        data = isolated_settings / "dupes.json"
        data.write_text(json.dumps([{"text": "a"}, {"id": "ID-00001", "text": "b"}]), encoding="utf-8")

        result = runner.invoke(app, ["run", str(data), "-p", "mock", "--delay-ms", "0"])

        assert result.exit_code == 1
        assert "Duplicate item id: ID-00001" in result.output
        assert isinstance(result.exception, SystemExit)
        assert not (isolated_settings / "DSO_Export.json").exists()

    def test_run_missing_file(self, isolated_settings):
        result = runner.invoke(app, ["run", str(isolated_settings / "missing.json")])

        assert result.exit_code == 2

    def test_run_invalid_provider(self, dataset):
        result = runner.invoke(app, ["run", str(dataset), "-p", "ollama"])

        assert result.exit_code == 2

    def test_run_concurrency_out_of_range(self, dataset):
        result = runner.invoke(app, ["run", str(dataset), "-p", "mock", "-c", "99"])

        assert result.exit_code == 1
        assert "Invalid pipeline configuration" in result.output

    def test_run_without_api_key(self, dataset, isolated_settings):
        """A provider without credentials is reported before anything is sent."""
        result = runner.invoke(app, ["run", str(dataset), "-p", "openai", "--delay-ms", "0"])

        assert result.exit_code == 1
        assert "Configuration error" in result.output
        assert not (isolated_settings / "DSO_Export.json").exists()

    def test_run_with_failures_exits_2(self, dataset, isolated_settings):
        provider = FakeProvider(responses={SAMPLE_DATASET[1]["original"]: RateLimitError()})

        with patch("dso.cli.commands.run.create_provider", return_value=provider):
            result = runner.invoke(app, ["run", str(dataset), "--delay-ms", "0"])

        assert result.exit_code == 2
        rows = json.loads((isolated_settings / "DSO_Export.json").read_text(encoding="utf-8"))
        failed = [row for row in rows if row["status"] == "FAILED"]
        assert [row["id"] for row in failed] == ["2"]
        assert failed[0]["retryCount"] == 1
        assert "Failed Items" in result.output

    def test_retry_failed_recovers(self, dataset, isolated_settings):
        provider = _FlakyProvider(flaky={SAMPLE_DATASET[0]["original"]})

        with patch("dso.cli.commands.run.create_provider", return_value=provider):
            result = runner.invoke(app, ["run", str(dataset), "--delay-ms", "0", "--retry-failed"])

        assert result.exit_code == 0, result.output
        rows = json.loads((isolated_settings / "DSO_Export.json").read_text(encoding="utf-8"))
        assert rows[0]["status"] == "COMPLETED"
        assert rows[0]["retryCount"] == 1

    def test_retry_failed_stops_at_max_retries(self, dataset):
        text = SAMPLE_DATASET[2]["original"]
        provider = _FlakyProvider(flaky={text}, failures=100)

        with patch("dso.cli.commands.run.create_provider", return_value=provider):
            result = runner.invoke(
                app,
                ["run", str(dataset), "--delay-ms", "0", "--retry-failed", "--max-retries", "2"],
            )

        assert result.exit_code == 2
        assert provider.attempts[text] == 2


class TestDisplaySummary:
    """Tests for _display_summary."""

    def test_lists_failed_items(self, capsys):
        items = [
            WorkItem(id=str(i), original_text="x", status=ItemStatus.FAILED, error_message="boom")
            for i in range(12)
        ]
        engine = PipelineEngine(FakeProvider(), PipelineConfig(), items)

        _display_summary(engine, engine.statistics())

        captured = capsys.readouterr()
        assert "... and 2 more" in captured.err
