"""branchdocs: a five-level documentation tree with a validating BFF."""

from branchdocs.api_client import BranchApi
from branchdocs.context_menu import ContextMenu
from branchdocs.editor import EditorMode, EditorSession, extract_title
from branchdocs.exceptions import ApiRequestError, BranchdocsError, EditorStateError, InvalidLevelError
from branchdocs.levels import LEVELS, MAX_LEVEL
from branchdocs.query_cache import MutationResult, QueryClient, query_keys
from branchdocs.schemas import Branch, BranchState, ErrorCode
from branchdocs.store import BranchDataStore
from branchdocs.sync import BranchSync
from branchdocs.tree import TreeInteraction, TreeNode, build_tree, render_text
from branchdocs.validation import ValidationResult, validate

__all__ = [
    "LEVELS",
    "MAX_LEVEL",
    "ApiRequestError",
    "Branch",
    "BranchApi",
    "BranchDataStore",
    "BranchState",
    "BranchSync",
    "BranchdocsError",
    "ContextMenu",
    "EditorMode",
    "EditorSession",
    "EditorStateError",
    "ErrorCode",
    "InvalidLevelError",
    "MutationResult",
    "QueryClient",
    "TreeInteraction",
    "TreeNode",
    "ValidationResult",
    "build_tree",
    "extract_title",
    "query_keys",
    "render_text",
    "validate",
]
