"""Escaped, slash-delimited paths for bookmark hierarchies.

A :class:`Path` is a sequence of *escaped* segments.  Its canonical string
form is ``/seg1/seg2``; a literal ``/`` inside a name is written ``\\/``
and a literal ``\\`` is written ``\\\\``.  The canonical string is what
:class:`PathMap` uses as its key, so two paths are the same location iff
their strings are equal.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, MutableMapping
from typing import Generic, TypeVar

__all__ = ["Path", "PathMap", "escape_segment", "unescape_segment"]

SEPARATOR = "/"
ESCAPE = "\\"

V = TypeVar("V")


def escape_segment(name: str) -> str:
    """Escape a display name for use as a path segment."""
    return name.replace(ESCAPE, ESCAPE * 2).replace(SEPARATOR, ESCAPE + SEPARATOR)


def unescape_segment(segment: str) -> str:
    """Reverse :func:`escape_segment`."""
    out: list[str] = []
    chars = iter(segment)
    for ch in chars:
        if ch == ESCAPE:
            out.append(next(chars, ESCAPE))
        else:
            out.append(ch)
    return "".join(out)


def _split(text: str) -> list[str]:
    """Split on unescaped separators, keeping escapes inside segments."""
    segments: list[str] = []
    current: list[str] = []
    chars = iter(text)
    for ch in chars:
        if ch == ESCAPE:
            current.append(ch)
            nxt = next(chars, None)
            if nxt is not None:
                current.append(nxt)
        elif ch == SEPARATOR:
            segments.append("".join(current))
            current = []
        else:
            current.append(ch)
    segments.append("".join(current))
    return segments


class Path:
    """Immutable location in a bookmark hierarchy.

    ``Path(segments)`` takes segments that are already escaped (as produced
    by :meth:`from_string` or :func:`escape_segment`).  Use
    :meth:`from_names` or the ``/`` operator to build paths from raw
    display names.
    """

    __slots__ = ("_segments",)

    def __init__(self, segments: Iterable[str] = ()):
        segments = tuple(segments)
        # a lone empty segment serializes as "/", so it is the root
        if segments == ("",):
            segments = ()
        self._segments = segments

    @classmethod
    def root(cls) -> Path:
        return cls()

    @classmethod
    def from_string(cls, text: str) -> Path:
        """Parse a canonical path string (``/a/b\\/c``)."""
        if text.startswith(SEPARATOR):
            text = text[1:]
        if not text:
            return cls()
        return cls(_split(text))

    @classmethod
    def from_names(cls, *names: str) -> Path:
        """Build a path from unescaped display names."""
        return cls(escape_segment(n) for n in names)

    @property
    def segments(self) -> tuple[str, ...]:
        """The escaped segments, root to leaf."""
        return self._segments

    @property
    def names(self) -> list[str]:
        """The unescaped display names, root to leaf."""
        return [unescape_segment(s) for s in self._segments]

    @property
    def name(self) -> str:
        """Unescaped display name of the last segment (``""`` for root)."""
        if not self._segments:
            return ""
        return unescape_segment(self._segments[-1])

    @property
    def parent(self) -> Path:
        """The parent path; the root is its own parent."""
        return Path(self._segments[:-1])

    @property
    def is_root(self) -> bool:
        return not self._segments

    def join(self, *segments: str) -> Path:
        """Return a new path with escaped *segments* appended."""
        return Path(self._segments + tuple(segments))

    def __truediv__(self, name: str) -> Path:
        return self.join(escape_segment(name))

    def __str__(self) -> str:
        return SEPARATOR + SEPARATOR.join(self._segments)

    def __repr__(self) -> str:
        return f"Path({str(self)!r})"

    def __eq__(self, other):
        if isinstance(other, Path):
            return str(self) == str(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(str(self))


class PathMap(MutableMapping, Generic[V]):
    """Mapping keyed by a path's canonical string, in insertion order."""

    def __init__(self, items: Iterable[tuple[Path, V]] = ()):
        self._map: dict[str, tuple[Path, V]] = {}
        for path, value in items:
            self[path] = value

    def __getitem__(self, path: Path) -> V:
        return self._map[str(path)][1]

    def __setitem__(self, path: Path, value: V) -> None:
        self._map[str(path)] = (path, value)

    def __delitem__(self, path: Path) -> None:
        del self._map[str(path)]

    def __contains__(self, path) -> bool:
        if not isinstance(path, Path):
            return False
        return str(path) in self._map

    def __iter__(self) -> Iterator[Path]:
        for path, _value in self._map.values():
            yield path

    def __len__(self) -> int:
        return len(self._map)

    def __repr__(self) -> str:
        items = {key: value for key, (_path, value) in self._map.items()}
        return f"PathMap({items!r})"
