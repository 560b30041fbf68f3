"""Tests for the postrev command line."""

import json
import sys

import pytest
from click.testing import CliRunner
from conftest import post

from postrev.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def project(blog, monkeypatch):
    posts = blog / "_posts"
    (posts / "2020-01-01-hello.md").write_text(post("Hello", "hi"))
    (posts / "2020-03-01-math.md").write_text(post("Math", "$$x$$ v1"))
    (posts / "archive").mkdir()
    (posts / "archive" / "2020-03-01-math.md").write_text(post("Math", "$$x$$ v2"))
    monkeypatch.chdir(blog)
    return blog


class TestInit:
    def test_creates_config(self, runner, tmp_path):
        result = runner.invoke(cli, ["init", "notes", "--dir", str(tmp_path)])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "postrev.toml").exists()
        assert 'name = "notes"' in (tmp_path / "postrev.toml").read_text()

    def test_existing_config_is_kept(self, runner, blog):
        result = runner.invoke(cli, ["init", "--dir", str(blog)])
        assert result.exit_code == 0
        assert "already exists" in result.output
        assert (blog / "postrev.toml").read_text() == '[site]\nname = "test-blog"\n'


class TestCheck:
    def test_clean_run_reports_history(self, runner, project):
        result = runner.invoke(cli, ["check"])
        assert result.exit_code == 0, result.output
        assert "duplicate_revision [2020-03-01-math]" in result.output
        assert "2 documents, 3 revisions, 0 duplicates, 0 skipped" in result.output

    def test_parse_error_fails(self, runner, project):
        (project / "_posts" / "2020-05-01-broken.md").write_text("---\ntitle: oops\n")
        result = runner.invoke(cli, ["check"])
        assert result.exit_code == 1
        assert "parse_error" in result.output
        assert "2020-05-01-broken.md" in result.output

    def test_fail_on_duplicate_revision(self, runner, project):
        (project / "postrev.toml").write_text('[diagnostics]\nfail_on = ["duplicate_revision"]\n')
        result = runner.invoke(cli, ["check"])
        assert result.exit_code == 1

    def test_bad_config_is_a_click_error(self, runner, project):
        (project / "postrev.toml").write_text("[ingest]\nworkers = 0\n")
        result = runner.invoke(cli, ["check"])
        assert result.exit_code == 1
        assert "workers" in result.output

    def test_non_integer_workers_is_a_click_error(self, runner, project):
        (project / "postrev.toml").write_text('[ingest]\nworkers = "many"\n')
        result = runner.invoke(cli, ["check"])
        assert result.exit_code == 1
        assert "must be an integer" in result.output


class TestShow:
    def test_history_lines(self, runner, project):
        result = runner.invoke(cli, ["show", "2020-03-01-math"])
        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert lines[0].startswith("  #0  2020-03-01-math.md  Math")
        assert lines[1].startswith("* #1  archive/2020-03-01-math.md  Math")

    def test_json(self, runner, project):
        result = runner.invoke(cli, ["show", "2020-03-01-math", "--json"])
        assert result.exit_code == 0, result.output
        history = json.loads(result.output)
        assert [r["sequence"] for r in history] == [0, 1]
        assert history[1]["body"] == "$$x$$ v2"

    def test_unknown_identity(self, runner, project):
        result = runner.invoke(cli, ["show", "nope"])
        assert result.exit_code == 1
        assert "no such post" in result.output


class TestPublish:
    def test_exports_latest(self, runner, project):
        result = runner.invoke(cli, ["publish"])
        assert result.exit_code == 0, result.output
        out = project / "_build" / "_posts"
        assert sorted(p.name for p in out.iterdir()) == ["2020-01-01-hello.md", "2020-03-01-math.md"]
        assert (out / "2020-03-01-math.md").read_text(encoding="utf-8").endswith("$$x$$ v2")

    def test_dest_option(self, runner, project):
        result = runner.invoke(cli, ["publish", "--dest", "site/_posts"])
        assert result.exit_code == 0, result.output
        assert (project / "site" / "_posts" / "2020-01-01-hello.md").exists()

    def test_refuses_on_fatal_diagnostics(self, runner, project):
        (project / "_posts" / "bad.md").write_text("no front matter")
        result = runner.invoke(cli, ["publish"])
        assert result.exit_code == 1
        assert "Not publishing" in result.output
        assert not (project / "_build").exists()

    def test_build_step(self, runner, project):
        cmd = f'["{sys.executable}", "-c", "raise SystemExit(0)"]'
        (project / "postrev.toml").write_text(f"[publish]\nbuild_command = {cmd}\n")
        result = runner.invoke(cli, ["publish", "--build"])
        assert result.exit_code == 0, result.output

    def test_failed_build_exit_code(self, runner, project):
        cmd = f'["{sys.executable}", "-c", "raise SystemExit(2)"]'
        (project / "postrev.toml").write_text(f"[publish]\nbuild_command = {cmd}\n")
        result = runner.invoke(cli, ["publish", "--build"])
        assert result.exit_code == 2

    def test_build_without_command(self, runner, project):
        result = runner.invoke(cli, ["publish", "--build"])
        assert result.exit_code == 1
        assert "build_command" in result.output
