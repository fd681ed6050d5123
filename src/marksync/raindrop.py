"""Raindrop.io as the source of truth.

See the API reference at https://developer.raindrop.io/.  Collections
become folders and raindrops become bookmarks; both are adapted to
:class:`~marksync.tree.NodeData` by :class:`RaindropNodeData`.
"""

from __future__ import annotations

import json
import os
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path as FsPath
from typing import Any

import httpx
from loguru import logger

from ._url import content_hash
from .exceptions import SourceError
from .tree import TreeNode

__all__ = [
    "RaindropNodeData", "RaindropClient", "RaindropSource", "JsonFileSource",
    "create_tree_from_raindrops",
]

DEFAULT_BASE_URL = "https://api.raindrop.io/rest/v1"
PER_PAGE = 50

# Raindrops outside any collection live in "Unsorted".
UNSORTED_COLLECTION_ID = "-1"


@dataclass(frozen=True)
class RaindropNodeData:
    """:class:`~marksync.tree.NodeData` view of a raw collection or raindrop."""
    raw: dict[str, Any]
    _nonce: str = field(default_factory=lambda: uuid.uuid4().hex, repr=False, compare=False)

    @property
    def id(self) -> str:
        return str(self.raw["_id"])

    @property
    def parent_id(self) -> str | None:
        parent = self.raw.get("parent") or {}
        collection = self.raw.get("collection") or {}
        ref = parent.get("$id") or collection.get("$id")
        if ref is None:
            return None
        parent_id = str(ref)
        if parent_id == UNSORTED_COLLECTION_ID:
            return None
        return parent_id

    @property
    def name(self) -> str:
        return self.raw.get("title") or ""

    @property
    def url(self) -> str | None:
        return self.raw.get("link") or None

    @property
    def is_folder(self) -> bool:
        return "link" not in self.raw

    @property
    def hash(self) -> str:
        return content_hash(self.is_folder, self.name, self.url, self._nonce)


def _parse_time(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class RaindropClient:
    """Minimal synchronous client for the endpoints marksync reads."""

    def __init__(
        self,
        token: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self._client = httpx.Client(
            base_url=base_url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    def __repr__(self) -> str:
        return f"RaindropClient({str(self._client.base_url)!r})"

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def _get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            response = self._client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise SourceError(
                f"GET {path} failed with status {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise SourceError(f"GET {path} failed: {exc}") from exc
        data = response.json()
        if data.get("result") is False:
            raise SourceError(f"GET {path} failed: {data.get('errorMessage', 'unknown error')}")
        return data

    def get_current_user(self) -> dict[str, Any]:
        return self._get("/user")["user"]

    def get_root_collections(self) -> list[dict[str, Any]]:
        return self._get("/collections")["items"]

    def get_child_collections(self) -> list[dict[str, Any]]:
        return self._get("/collections/childrens")["items"]

    def get_all_raindrops(self, collection_id: int = 0) -> list[dict[str, Any]]:
        """All raindrops in a collection (``0`` means every collection).

        Pages are requested until a short page comes back.
        """
        items: list[dict[str, Any]] = []
        page = 0
        while True:
            batch = self._get(
                f"/raindrops/{collection_id}", params={"page": page, "perpage": PER_PAGE},
            )["items"]
            items.extend(batch)
            if len(batch) < PER_PAGE:
                return items
            page += 1


def _tree_from_items(*groups: Iterable[dict[str, Any]]) -> TreeNode[RaindropNodeData]:
    # the API can return a collection in both the root and child listings
    seen: set[str] = set()
    records: list[RaindropNodeData] = []
    for items in groups:
        for item in items:
            record = RaindropNodeData(item)
            if record.id in seen:
                continue
            seen.add(record.id)
            records.append(record)
    return TreeNode.build(None, records)


def create_tree_from_raindrops(client: RaindropClient) -> TreeNode[RaindropNodeData]:
    """Fetch every collection and raindrop and build the source tree."""
    return _tree_from_items(
        client.get_root_collections(),
        client.get_child_collections(),
        client.get_all_raindrops(0),
    )


class RaindropSource:
    """Collection source backed by the Raindrop.io API."""

    requires_token = True

    def __init__(self, client: RaindropClient):
        self.client = client

    def check(self) -> None:
        user = self.client.get_current_user()
        logger.debug("Verified access token for user: {}", user.get("email", "<unknown>"))

    def last_update(self) -> datetime | None:
        return _parse_time(self.client.get_current_user().get("lastUpdate"))

    def fetch_tree(self) -> TreeNode[RaindropNodeData]:
        return create_tree_from_raindrops(self.client)


class JsonFileSource:
    """Collection source read from a JSON export.

    The file holds the raw API items::

        {"collections": [...], "childCollections": [...], "raindrops": [...]}
    """

    requires_token = False

    def __init__(self, path: str | os.PathLike[str]):
        self.path = FsPath(path)

    def __repr__(self) -> str:
        return f"JsonFileSource({str(self.path)!r})"

    def check(self) -> None:
        if not self.path.is_file():
            raise SourceError(f"Source file not found: {self.path}")

    def last_update(self) -> datetime | None:
        self.check()
        return datetime.fromtimestamp(self.path.stat().st_mtime, tz=timezone.utc)

    def fetch_tree(self) -> TreeNode[RaindropNodeData]:
        self.check()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise SourceError(f"Invalid source file {self.path}: {exc}") from exc
        return _tree_from_items(
            data.get("collections", []),
            data.get("childCollections", []),
            data.get("raindrops", []),
        )
