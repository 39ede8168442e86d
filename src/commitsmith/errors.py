"""Error taxonomy for commitsmith.

Codes follow JSON-RPC so they can be handed to an MCP host unchanged.
"""

from __future__ import annotations

from mcp.types import INTERNAL_ERROR, INVALID_PARAMS

from commitsmith.models import ErrorInfo


class CommitSmithError(Exception):
    """Base class for structured failures surfaced to the caller."""

    code: int = INTERNAL_ERROR

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_info(self) -> ErrorInfo:
        return ErrorInfo(code=self.code, message=self.message)


class InvalidRequestError(CommitSmithError):
    """Malformed tool arguments."""

    code = INVALID_PARAMS


class NotARepositoryError(CommitSmithError):
    code = INVALID_PARAMS

    def __init__(self, message: str = "Not in a git repository"):
        super().__init__(message)


class NothingToCommitError(CommitSmithError):
    code = INVALID_PARAMS

    def __init__(self, message: str = "No staged or unstaged changes found"):
        super().__init__(message)


class GenerationError(CommitSmithError):
    """The generation peer failed, timed out or replied with an unusable shape."""


class ValidatorNotInitializedError(CommitSmithError):
    def __init__(self, message: str = "Configuration not loaded. Call load_config() first."):
        super().__init__(message)


class PersistenceError(CommitSmithError):
    """Writing the pending commit message failed."""


class CommitFailedError(CommitSmithError):
    """The underlying commit operation was rejected."""


class OperationFailedError(CommitSmithError):
    """Wraps an unexpected fault into a single reportable condition."""
