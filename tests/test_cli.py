# tests/test_cli.py
"""Tests for the CLI."""

from unittest.mock import patch

import pytest

pytest.importorskip("typer", reason="Tests require typer package")

from typer.testing import CliRunner

from thoughtrag.cli import app
from thoughtrag.config import get_store
from thoughtrag.models import EmbeddingStatus, Thought


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_cwd(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)


class TestCliBasics:
    def test_help(self, runner):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "thoughtrag" in result.output.lower()

    def test_version(self, runner):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    @pytest.mark.parametrize("command", ["add", "ingest", "retry", "ask", "search", "status"])
    def test_command_help(self, runner, command):
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0


class TestStatusCommand:
    def test_status_empty(self, runner, tmp_path):
        result = runner.invoke(app, ["status", "--data-dir", str(tmp_path / "data")])
        assert result.exit_code == 0
        assert "No thoughts found" in result.output

    def test_status_plain(self, runner, tmp_path):
        store = get_store(tmp_path)
        store.put(Thought(user_id="u1", team_id="team-a"))
        store.put(
            Thought(
                id="broken",
                user_id="u1",
                team_id="team-a",
                embedding_status=EmbeddingStatus.FAILED,
                embedding_error="vision down",
            )
        )

        result = runner.invoke(app, ["status", "--data-dir", str(tmp_path), "--plain"])

        assert result.exit_code == 0
        assert "pending: 1" in result.output
        assert "total: 2" in result.output
        assert "broken" in result.output


class TestAddCommand:
    def test_add_requires_team(self, runner):
        result = runner.invoke(app, ["add", "--user", "u1"])
        assert result.exit_code != 0

    def test_add_config_error(self, runner, tmp_path):
        config = tmp_path / "thoughtrag.yaml"
        config.write_text("provider: magic\n", encoding="utf-8")

        result = runner.invoke(app, ["add", "-u", "u1", "-t", "team-a", "-c", str(config)])

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_add_plain(self, runner, rag):
        with patch("thoughtrag.commands.add.create_thoughtrag", return_value=rag):
            result = runner.invoke(
                app,
                ["add", "-u", "u1", "-t", "team-a", "-i", "https://img.example/bike.png", "--plain"],
            )

        assert result.exit_code == 0
        assert "pending" in result.output


class TestIngestCommand:
    def test_nothing_to_do(self, runner, rag):
        with patch("thoughtrag.commands.ingest.create_thoughtrag", return_value=rag):
            result = runner.invoke(app, ["ingest", "--plain"])

        assert result.exit_code == 0
        assert "Nothing to do." in result.output

    def test_ingest_pending(self, runner, rag, make_thought):
        make_thought()
        with patch("thoughtrag.commands.ingest.create_thoughtrag", return_value=rag):
            result = runner.invoke(app, ["ingest", "--plain"])

        assert result.exit_code == 0
        assert "Embedded 1 of 1 thoughts" in result.output

    def test_ingest_failure_exits_nonzero(self, runner, rag, make_thought):
        make_thought(image_url=None)
        with patch("thoughtrag.commands.ingest.create_thoughtrag", return_value=rag):
            result = runner.invoke(app, ["ingest", "--plain"])

        assert result.exit_code == 1
        assert "Failed" in result.output


class TestAskCommand:
    def test_ask_requires_team(self, runner):
        result = runner.invoke(app, ["ask", "Where is the bike?"])
        assert result.exit_code != 0

    def test_ask_streams_answer(self, runner, rag, make_thought):
        make_thought(embedding=[1.0, 0.0, 0.0], ai_description="a red bicycle")
        with patch("thoughtrag.commands.ask.create_thoughtrag", return_value=rag):
            result = runner.invoke(app, ["ask", "Where is the bike?", "-t", "team-a"])

        assert result.exit_code == 0
        assert "The bicycle is in the shed." in result.output

    def test_ask_no_stream_plain(self, runner, rag, make_thought):
        make_thought(title="Bike", embedding=[1.0, 0.0, 0.0], ai_description="a red bicycle")
        with patch("thoughtrag.commands.ask.create_thoughtrag", return_value=rag):
            result = runner.invoke(
                app,
                ["ask", "Where is the bike?", "-t", "team-a", "--no-stream", "--plain", "-s"],
            )

        assert result.exit_code == 0
        assert "Answer: The bicycle is in the shed." in result.output
        assert "Sources:" in result.output
        assert "Bike" in result.output

    def test_ask_without_matches_notes_it(self, runner, rag):
        with patch("thoughtrag.commands.ask.create_thoughtrag", return_value=rag):
            result = runner.invoke(app, ["ask", "What is 2 + 2?", "-t", "team-a", "--plain"])

        assert result.exit_code == 0
        assert "No matching thoughts found" in result.output

    def test_ask_upstream_error(self, runner, rag, embedding_service):
        embedding_service.error = RuntimeError("quota exceeded")
        with patch("thoughtrag.commands.ask.create_thoughtrag", return_value=rag):
            result = runner.invoke(app, ["ask", "q", "-t", "team-a"])

        assert result.exit_code == 1
        assert "Query failed" in result.output


class TestSearchCommand:
    def test_search_no_results(self, runner, rag):
        with patch("thoughtrag.commands.search.create_thoughtrag", return_value=rag):
            result = runner.invoke(app, ["search", "bike", "-t", "team-a", "--plain"])

        assert result.exit_code == 0
        assert "No results found." in result.output

    def test_search_results(self, runner, rag, make_thought):
        make_thought(title="Bike", embedding=[1.0, 0.0, 0.0], ai_description="a red bicycle")
        with patch("thoughtrag.commands.search.create_thoughtrag", return_value=rag):
            result = runner.invoke(app, ["search", "bike", "-t", "team-a", "--plain"])

        assert result.exit_code == 0
        assert "Results (1)" in result.output
        assert "a red bicycle" in result.output
