"""Shared fixtures for marksync tests."""

from __future__ import annotations

import json
from dataclasses import dataclass

import pytest
from click.testing import CliRunner
from loguru import logger

from marksync._url import content_hash
from marksync.gitrepo import GitBookmarkRepository
from marksync.memory import MemoryBookmarkRepository


@dataclass(frozen=True)
class Rec:
    """Plain NodeData record for building trees by hand."""
    id: str
    parent_id: str | None
    name: str
    url: str | None = None

    @property
    def is_folder(self) -> bool:
        return self.url is None

    @property
    def hash(self) -> str:
        return content_hash(self.is_folder, self.name, self.url, f"nonce-{self.id}")


def folder(id, parent, name):
    return Rec(str(id), None if parent is None else str(parent), name)


def link(id, parent, name, url):
    return Rec(str(id), None if parent is None else str(parent), name, url)


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

@pytest.fixture
def log_records():
    """Capture loguru records emitted during the test."""
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------

@pytest.fixture
def memory_repo():
    return MemoryBookmarkRepository()


@pytest.fixture
def git_repo(tmp_path):
    repo = GitBookmarkRepository.open(tmp_path / "bookmarks.git")
    yield repo
    repo.close()


@pytest.fixture(params=["memory", "git"])
def any_repo(request, tmp_path):
    """Each repository implementation in turn."""
    if request.param == "memory":
        yield MemoryBookmarkRepository()
    else:
        repo = GitBookmarkRepository.open(tmp_path / "bookmarks.git")
        yield repo
        repo.close()


# ---------------------------------------------------------------------------
# Source data
# ---------------------------------------------------------------------------

EXPORT = {
    "collections": [
        {"_id": 10, "title": "Work"},
        {"_id": 20, "title": "Reading"},
    ],
    "childCollections": [
        {"_id": 11, "title": "Tools", "parent": {"$id": 10}},
    ],
    "raindrops": [
        {"_id": 100, "title": "Docs", "link": "https://docs.example.com/",
         "collection": {"$id": 10}},
        {"_id": 101, "title": "Linter", "link": "https://lint.example.com",
         "collection": {"$id": 11}},
        {"_id": 102, "title": "Blog", "link": "https://blog.example.com",
         "collection": {"$id": 20}},
        {"_id": 103, "title": "Loose", "link": "https://loose.example.com",
         "collection": {"$id": -1}},
    ],
}


@pytest.fixture
def export_data():
    return json.loads(json.dumps(EXPORT))


@pytest.fixture
def export_file(tmp_path, export_data):
    p = tmp_path / "export.json"
    p.write_text(json.dumps(export_data))
    return p


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def repo_path(tmp_path):
    """Return a path to a not-yet-created repo."""
    return str(tmp_path / "test.git")
