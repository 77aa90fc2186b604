"""Tests for ``ghmcp tools`` CLI commands."""

from __future__ import annotations

from click.testing import CliRunner

from ghmcp.cli import main


class TestToolsList:
    def test_list_table(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["tools", "list"])

        assert result.exit_code == 0
        assert "GitHub Tools" in result.output
        assert "Endpoint" in result.output

    def test_list_json(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["tools", "list", "--json"])

        assert result.exit_code == 0
        assert '"github_get_repository"' in result.output
        assert '"inputSchema"' in result.output


class TestToolsShow:
    def test_show_tool(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["tools", "show", "github_get_repository"])

        assert result.exit_code == 0
        assert "github_get_repository" in result.output
        assert "GET /api/repos/{owner}/{repo}" in result.output
        assert "* owner: string" in result.output

    def test_show_stream_tool(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["tools", "show", "github_live_events"])

        assert result.exit_code == 0
        assert "SSE /sse/github/{owner}/{repo}" in result.output

    def test_show_enum_and_default(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["tools", "show", "github_merge_pull_request"])

        assert result.exit_code == 0
        assert "merge_method: string one of merge, squash, rebase (default merge)" in result.output

    def test_show_json_includes_route(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["tools", "show", "github_create_branch", "--json"])

        assert result.exit_code == 0
        assert '"route"' in result.output
        assert '"POST"' in result.output

    def test_show_unknown(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["tools", "show", "github_fly"])

        assert result.exit_code == 1
        assert "Unknown tool" in result.output


class TestToolsVerify:
    def test_verify_default_table(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["tools", "verify"])

        assert result.exit_code == 0
        assert "All 28 tools are routed consistently." in result.output

    def test_verify_reports_problems(self, monkeypatch) -> None:
        monkeypatch.setattr(
            "ghmcp.cli_commands.tools.verify_routes",
            lambda registry: ["tool without route: github_fly"],
        )
        runner = CliRunner()
        result = runner.invoke(main, ["tools", "verify"])

        assert result.exit_code == 1
        assert "tool without route: github_fly" in result.output


class TestVersion:
    def test_version(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert "0.1.0" in result.output
