"""Tests for the marksync CLI."""

import sys

import pytest
from loguru import logger

from marksync.cli import main
from marksync.gitrepo import GitBookmarkRepository
from marksync.path import Path


@pytest.fixture(autouse=True)
def _restore_logging():
    yield
    # the CLI points loguru at the runner's stderr, which is closed afterwards
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def initialized_repo(runner, repo_path):
    result = runner.invoke(main, ["init", "--repo", repo_path])
    assert result.exit_code == 0, result.output
    return repo_path


@pytest.fixture
def synced_repo(runner, initialized_repo, export_file):
    result = runner.invoke(main, ["sync", "-r", initialized_repo,
                                  "--source", str(export_file), "--into", "/Raindrop"])
    assert result.exit_code == 0, result.output
    return initialized_repo


class TestInit:
    def test_creates_repo(self, runner, repo_path):
        result = runner.invoke(main, ["init", "--repo", repo_path])
        assert result.exit_code == 0, result.output
        with GitBookmarkRepository.open(repo_path, create=False) as repo:
            assert repo.list_nodes() == []

    def test_existing_repo(self, runner, initialized_repo):
        result = runner.invoke(main, ["init", "--repo", initialized_repo])
        assert result.exit_code != 0
        assert "already exists" in result.output

    def test_repo_from_env(self, runner, repo_path):
        result = runner.invoke(main, ["init"], env={"MARKSYNC_REPO": repo_path})
        assert result.exit_code == 0, result.output

    def test_no_repo(self, runner):
        result = runner.invoke(main, ["init"], env={"MARKSYNC_REPO": ""})
        assert result.exit_code != 0
        assert "No repository specified" in result.output


class TestMkdirLs:
    def test_mkdir_and_ls(self, runner, initialized_repo):
        result = runner.invoke(main, ["mkdir", "-r", initialized_repo, "/A/B"])
        assert result.exit_code == 0, result.output
        result = runner.invoke(main, ["ls", "-r", initialized_repo])
        assert result.exit_code == 0, result.output
        assert "/A/\n" in result.output
        assert "/A/B/\n" in result.output

    def test_ls_missing_folder(self, runner, initialized_repo):
        result = runner.invoke(main, ["ls", "-r", initialized_repo, "/nope"])
        assert result.exit_code == 1
        assert "Folder not found" in result.output

    def test_ls_missing_repo(self, runner, repo_path):
        result = runner.invoke(main, ["ls", "-r", repo_path])
        assert result.exit_code == 1
        assert "Repository not found" in result.output


class TestSync:
    def test_sync_creates_target_and_bookmarks(self, runner, synced_repo):
        result = runner.invoke(main, ["ls", "-r", synced_repo, "/Raindrop"])
        assert result.exit_code == 0, result.output
        assert "/Raindrop/Work/Tools/Linter\thttps://lint.example.com" in result.output
        assert "/Raindrop/Loose\thttps://loose.example.com" in result.output

    def test_sync_prints_operations(self, runner, initialized_repo, export_file):
        result = runner.invoke(main, ["sync", "-r", initialized_repo,
                                      "--source", str(export_file), "--into", "/Raindrop"])
        assert result.exit_code == 0, result.output
        assert "+ /Raindrop/Work/Docs" in result.output

    def test_second_sync_in_sync(self, runner, synced_repo, export_file):
        result = runner.invoke(main, ["sync", "-r", synced_repo, "--force",
                                      "--source", str(export_file), "--into", "/Raindrop"])
        assert result.exit_code == 0, result.output
        assert "+ " not in result.output
        assert "No changes" in result.output

    def test_removed_source_item_deleted(self, runner, synced_repo, tmp_path, export_data):
        import json

        export_data["raindrops"] = export_data["raindrops"][1:]
        p = tmp_path / "smaller.json"
        p.write_text(json.dumps(export_data))
        result = runner.invoke(main, ["sync", "-r", synced_repo, "--force",
                                      "--source", str(p), "--into", "/Raindrop"])
        assert result.exit_code == 0, result.output
        assert "- /Raindrop/Work/Docs" in result.output
        with GitBookmarkRepository.open(synced_repo, create=False) as repo:
            assert repo.find_bookmark_by_path(Path.from_string("/Raindrop/Work/Docs")) is None

    def test_dry_run_writes_nothing(self, runner, initialized_repo, export_file):
        runner.invoke(main, ["mkdir", "-r", initialized_repo, "/Raindrop"])
        result = runner.invoke(main, ["sync", "-r", initialized_repo, "-n",
                                      "--source", str(export_file), "--into", "/Raindrop"])
        assert result.exit_code == 0, result.output
        assert "+ /Raindrop/Reading/Blog" in result.output
        with GitBookmarkRepository.open(initialized_repo, create=False) as repo:
            assert [str(n.path) for n in repo.list_nodes()] == ["/Raindrop"]

    def test_dry_run_missing_target(self, runner, initialized_repo, export_file):
        result = runner.invoke(main, ["sync", "-r", initialized_repo, "-n",
                                      "--source", str(export_file), "--into", "/Raindrop"])
        assert result.exit_code == 1
        assert "Folder not found" in result.output

    def test_missing_source_file(self, runner, initialized_repo, tmp_path):
        result = runner.invoke(main, ["sync", "-r", initialized_repo,
                                      "--source", str(tmp_path / "nope.json"),
                                      "--into", "/Raindrop"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_no_source(self, runner, initialized_repo):
        result = runner.invoke(main, ["sync", "-r", initialized_repo, "--into", "/R"],
                               env={"MARKSYNC_ACCESS_TOKEN": ""})
        assert result.exit_code == 2
        assert "No source given" in result.output

    def test_no_target(self, runner, initialized_repo, export_file):
        result = runner.invoke(main, ["sync", "-r", initialized_repo,
                                      "--source", str(export_file)],
                               env={"MARKSYNC_SYNC_LOCATION": ""})
        assert result.exit_code == 2
        assert "No target folder" in result.output

    def test_target_from_config(self, runner, initialized_repo, export_file, tmp_path):
        config = tmp_path / "marksync.toml"
        config.write_text('[marksync]\nsync_location = "/FromConfig"\n')
        result = runner.invoke(main, ["--config", str(config), "sync", "-r", initialized_repo,
                                      "--source", str(export_file)],
                               env={"MARKSYNC_SYNC_LOCATION": None})
        assert result.exit_code == 0, result.output
        assert "+ /FromConfig/Work/Docs" in result.output


class TestDiff:
    def test_diff_after_sync_is_clean(self, runner, synced_repo, export_file):
        result = runner.invoke(main, ["diff", "-r", synced_repo,
                                      "--source", str(export_file), "--into", "/Raindrop"])
        assert result.exit_code == 0, result.output
        assert "+ " not in result.output
        assert "- " not in result.output

    def test_diff_all_shows_unchanged(self, runner, synced_repo, export_file):
        result = runner.invoke(main, ["diff", "-r", synced_repo, "-a",
                                      "--source", str(export_file), "--into", "/Raindrop"])
        assert "= /Raindrop/Reading/Blog" in result.output

    def test_diff_reports_changes(self, runner, initialized_repo, export_file):
        runner.invoke(main, ["mkdir", "-r", initialized_repo, "/Raindrop"])
        with GitBookmarkRepository.open(initialized_repo, create=False) as repo:
            repo.create_bookmark(Path.from_string("/Raindrop/Old"), title="Old", url="http://old")
        result = runner.invoke(main, ["diff", "-r", initialized_repo,
                                      "--source", str(export_file), "--into", "/Raindrop"])
        assert result.exit_code == 0, result.output
        assert "+ /Work/Docs" in result.output
        assert "- /Raindrop/Old" in result.output


class TestEntryPoint:
    def test_missing_click_prints_install_hint(self, monkeypatch, capsys):
        from marksync import _cli_entry

        for name in ("marksync.cli", "marksync.cli._helpers",
                     "marksync.cli._basic", "marksync.cli._sync"):
            monkeypatch.delitem(sys.modules, name, raising=False)
        monkeypatch.setitem(sys.modules, "click", None)
        with pytest.raises(SystemExit) as exc_info:
            _cli_entry.main()
        assert exc_info.value.code == 1
        assert "marksync[cli]" in capsys.readouterr().err

    def test_runs_click_group(self, monkeypatch, capsys):
        from marksync import _cli_entry

        monkeypatch.setattr(sys, "argv", ["marksync", "--help"])
        with pytest.raises(SystemExit) as exc_info:
            _cli_entry.main()
        assert exc_info.value.code == 0
        assert "Usage: marksync" in capsys.readouterr().out
