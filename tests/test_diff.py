"""Tests for calculate_diff."""

import pytest

from conftest import folder, link
from marksync._url import normalize_url
from marksync.diff import NodePair, SyncDiff, calculate_diff
from marksync.exceptions import PathConflictError
from marksync.tree import TreeNode


def _paths(nodes):
    return sorted(str(n.full_path()) for n in nodes)


def _pair_paths(pairs):
    return sorted(str(p.left.full_path()) for p in pairs)


class TestNormalizeUrl:
    def test_trailing_slash_dropped_once(self):
        assert normalize_url("http://a/") == normalize_url("http://a")
        assert normalize_url("http://a//").endswith("\\/")

    def test_whitespace_stripped(self):
        assert normalize_url("  http://a  ") == normalize_url("http://a")

    def test_escapes(self):
        assert normalize_url("a/b\\c") == "a\\/b\\\\c"


class TestCalculateDiff:
    def test_four_way_partition(self):
        left = TreeNode.build(None, [
            link(1, None, "X", "http://x"),
            link(2, None, "Y", "http://y"),
        ])
        right = TreeNode.build(None, [
            link(10, None, "X", "http://x"),
            link(11, None, "Z", "http://z"),
        ])
        diff = calculate_diff(left, right)
        assert _pair_paths(diff.unchanged) == ["/X"]
        assert _paths(diff.only_in_left) == ["/Y"]
        assert _paths(diff.only_in_right) == ["/Z"]
        assert diff.in_both_but_different == []
        assert not diff.in_sync
        assert diff.total == 2

    def test_changed_url(self):
        left = TreeNode.build(None, [link(1, None, "X", "http://new")])
        right = TreeNode.build(None, [link(2, None, "X", "http://old")])
        diff = calculate_diff(left, right)
        assert len(diff.in_both_but_different) == 1
        pair = diff.in_both_but_different[0]
        assert isinstance(pair, NodePair)
        assert pair.left.url == "http://new"
        assert pair.right.url == "http://old"

    def test_trailing_slash_is_not_a_change(self):
        left = TreeNode.build(None, [link(1, None, "X", "http://a/")])
        right = TreeNode.build(None, [link(2, None, "X", "http://a")])
        assert calculate_diff(left, right).in_sync

    def test_identical_trees_in_sync(self):
        records = [folder(1, None, "F"), link(2, 1, "L", "http://l")]
        diff = calculate_diff(TreeNode.build(None, records), TreeNode.build(None, records))
        assert diff.in_sync
        assert diff.total == 0
        assert len(diff.unchanged) == 1

    def test_empty_trees(self):
        diff = calculate_diff(TreeNode.build(None, []), TreeNode.build(None, []))
        assert diff == SyncDiff()
        assert diff.in_sync

    def test_leaves_without_url_never_match(self):
        left = TreeNode.build(None, [link(1, None, "X", "")])
        right = TreeNode.build(None, [link(2, None, "X", "")])
        diff = calculate_diff(left, right)
        assert diff.unchanged == []
        assert len(diff.in_both_but_different) == 1

    def test_right_subtree_compared_relative(self):
        left = TreeNode.build(None, [
            folder(1, None, "Work"),
            link(2, 1, "Docs", "http://docs"),
        ])
        full = TreeNode.build(None, [
            folder("s", None, "Sync"),
            folder("w", "s", "Work"),
            link("d", "w", "Docs", "http://docs"),
            link("o", None, "Outside", "http://outside"),
        ])
        right = full.find("s")
        diff = calculate_diff(left, right)
        assert diff.in_sync
        assert str(diff.unchanged[0].right.full_path()) == "/Sync/Work/Docs"

    def test_partition_is_complete(self):
        left = TreeNode.build(None, [
            folder(1, None, "A"),
            link(2, 1, "a1", "http://1"),
            link(3, 1, "a2", "http://2"),
            link(4, None, "top", "http://t"),
        ])
        right = TreeNode.build(None, [
            folder(1, None, "A"),
            link(2, 1, "a1", "http://1"),
            link(3, 1, "a2", "http://changed"),
            link(5, None, "gone", "http://g"),
            link(6, None, "gone2", "http://g2"),
        ])
        diff = calculate_diff(left, right)
        left_terminal = len(left.to_map(only_terminal=True))
        right_terminal = len(right.to_map(only_terminal=True))
        both = len(diff.unchanged) + len(diff.in_both_but_different)
        assert len(diff.only_in_left) + both == left_terminal
        assert len(diff.only_in_right) + both == right_terminal

    def test_conflict_propagates(self):
        left = TreeNode.build(None, [
            link(1, None, "Same", "http://a"),
            link(2, None, "Same", "http://b"),
        ])
        with pytest.raises(PathConflictError):
            calculate_diff(left, TreeNode.build(None, []))

    def test_folder_names_matter(self):
        left = TreeNode.build(None, [folder(1, None, "A"), link(2, 1, "L", "http://l")])
        right = TreeNode.build(None, [folder(1, None, "B"), link(2, 1, "L", "http://l")])
        diff = calculate_diff(left, right)
        assert _paths(diff.only_in_left) == ["/A/L"]
        assert _paths(diff.only_in_right) == ["/B/L"]
