"""Tests for git operations against throwaway local repositories."""

import shutil
import tempfile
from pathlib import Path

import pytest
from git import Repo

from appsync.errors import GitOperationError, PublishError, UpstreamFetchError
from appsync.sync.runner import publish
from appsync.utils.git_ops import GitClient
from tests.fakes import write_app


def _init_repo(path: Path) -> Repo:
    path.mkdir(parents=True, exist_ok=True)
    repo = Repo.init(path)
    with repo.config_writer() as cw:
        cw.set_value("user", "name", "appsync-test")
        cw.set_value("user", "email", "appsync@example.com")
    return repo


def _commit_all(repo: Repo, message: str = "init") -> None:
    repo.git.add("-A")
    repo.git.commit("-m", message)


def test_clone_local_upstream():
    with tempfile.TemporaryDirectory() as tmpdir:
        upstream_path = Path(tmpdir) / "upstream"
        upstream = _init_repo(upstream_path)
        write_app(upstream_path / "apps", "adguard")
        _commit_all(upstream)
        branch = upstream.active_branch.name

        client = GitClient(Path(tmpdir) / "fork")
        dest = Path(tmpdir) / "fork" / ".runtipi-sync" / "temp" / "upstream"
        with client.clone(upstream_path.as_uri(), branch, dest) as clone:
            assert (clone.apps_dir / "adguard" / "config.json").exists()
            assert clone.branch == branch
        assert not dest.exists()


def test_clone_failure_raises_fetch_error():
    with tempfile.TemporaryDirectory() as tmpdir:
        client = GitClient(tmpdir)
        missing = (Path(tmpdir) / "nope").as_uri()
        with pytest.raises(UpstreamFetchError):
            client.clone(missing, "master", Path(tmpdir) / "dest")
        assert not (Path(tmpdir) / "dest").exists()


def test_checkout_creates_missing_branch():
    with tempfile.TemporaryDirectory() as tmpdir:
        repo = _init_repo(Path(tmpdir))
        (Path(tmpdir) / "README.md").write_text("fork")
        _commit_all(repo)
        client = GitClient(tmpdir)

        assert client.checkout("upstream") is True
        assert client.current_branch() == "upstream"
        assert client.checkout("upstream") is False

        with pytest.raises(GitOperationError):
            client.checkout("does-not-exist", create=False)


def test_commit_only_when_dirty():
    with tempfile.TemporaryDirectory() as tmpdir:
        repo = _init_repo(Path(tmpdir))
        (Path(tmpdir) / "README.md").write_text("fork")
        _commit_all(repo)
        client = GitClient(tmpdir)

        assert client.commit("chore: nothing") is False

        write_app(Path(tmpdir) / "apps", "gitea")
        assert client.has_changes()
        assert client.commit("chore: sync apps", ["apps/"]) is True
        assert repo.head.commit.message.strip() == "chore: sync apps"
        assert not client.has_changes()


def test_push_without_remote_raises_publish_error():
    with tempfile.TemporaryDirectory() as tmpdir:
        repo = _init_repo(Path(tmpdir))
        (Path(tmpdir) / "README.md").write_text("fork")
        _commit_all(repo)
        client = GitClient(tmpdir)

        with pytest.raises(PublishError) as exc_info:
            client.push(client.current_branch())
        assert exc_info.value.branch == client.current_branch()


def test_not_a_repository():
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(GitOperationError):
            GitClient(tmpdir).checkout("main")


def test_commit_ignores_changes_outside_paths():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        repo = _init_repo(root)
        write_app(root / "apps", "gitea")
        _commit_all(repo)
        changelog = root / ".runtipi-sync" / "SYNC_CHANGELOG.md"
        changelog.parent.mkdir()
        changelog.write_text("# Upstream Sync Changes\n")
        client = GitClient(root)

        assert client.has_changes()
        assert not client.has_changes(["apps/"])
        assert client.commit("chore: sync apps", ["apps/"]) is False

        result = publish(client, client.current_branch(), "chore: sync", paths=["apps/"], push=False)
        assert not result.failed
        assert not result.committed
        assert changelog.exists()
        assert ".runtipi-sync/" in repo.git.status("--porcelain")


def test_commit_with_missing_path_is_noop():
    with tempfile.TemporaryDirectory() as tmpdir:
        repo = _init_repo(Path(tmpdir))
        (Path(tmpdir) / "README.md").write_text("fork")
        _commit_all(repo)

        assert GitClient(tmpdir).commit("chore: sync apps", ["apps/"]) is False


def test_commit_stages_removed_packages():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        repo = _init_repo(root)
        write_app(root / "apps", "gitea")
        write_app(root / "apps", "plex")
        _commit_all(repo)
        shutil.rmtree(root / "apps" / "plex")

        assert GitClient(root).commit("chore: drop plex", ["apps/"]) is True
        assert "apps/plex/config.json" not in repo.git.ls_files().splitlines()
