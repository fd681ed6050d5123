from .path import Path, PathMap
from .tree import NodeData, TreeNode, build_tree
from .diff import SyncDiff, NodePair, calculate_diff
from .plan import SyncOpKind, AddOp, UpdateOp, DeleteOp, NoopOp, SyncPlan
from .executor import execute
from .repository import Folder, Bookmark, BookmarkNodeData, BookmarkRepository, create_tree_from_repository
from .memory import MemoryBookmarkRepository
from .gitrepo import GitBookmarkRepository
from .raindrop import RaindropClient, RaindropSource, JsonFileSource, create_tree_from_raindrops
from .events import (
    SyncEventProgressKind, SyncEventStart, SyncEventProgress, SyncEventComplete, SyncEventError,
)
from .settings import Settings
from .manager import SyncManager
from .exceptions import (
    MarksyncError, PathConflictError, NotFoundError, FolderNotFoundError,
    BookmarkNotFoundError, SyncValidationError, SourceError,
)

__all__ = [
    "Path", "PathMap", "NodeData", "TreeNode", "build_tree",
    "SyncDiff", "NodePair", "calculate_diff",
    "SyncOpKind", "AddOp", "UpdateOp", "DeleteOp", "NoopOp", "SyncPlan", "execute",
    "Folder", "Bookmark", "BookmarkNodeData", "BookmarkRepository", "create_tree_from_repository",
    "MemoryBookmarkRepository", "GitBookmarkRepository",
    "RaindropClient", "RaindropSource", "JsonFileSource", "create_tree_from_raindrops",
    "SyncEventProgressKind", "SyncEventStart", "SyncEventProgress", "SyncEventComplete",
    "SyncEventError", "Settings", "SyncManager",
    "MarksyncError", "PathConflictError", "NotFoundError", "FolderNotFoundError",
    "BookmarkNotFoundError", "SyncValidationError", "SourceError",
]
