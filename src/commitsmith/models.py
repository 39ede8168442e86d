"""Data models for commitsmith."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class Style(str, Enum):
    """Message styles understood by the preset catalog."""

    DEFAULT = "default"
    STRICT = "strict"
    MINIMAL = "minimal"
    DESCRIPTIVE = "descriptive"


class CommitRequest(BaseModel):
    """Arguments of the propose-and-apply workflow."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    request: str = Field(min_length=1, description="The user's own words describing the commit")
    style: Style = Field(default=Style.DEFAULT, description="Message style preset")
    auto_commit: bool = Field(default=True, description="Commit once the message is validated")
    auto_stage: bool = Field(default=True, description="Stage unstaged files without asking")


class ValidateRequest(BaseModel):
    """Arguments of the validate-and-apply workflow."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    message: str = Field(min_length=1, description="An already-authored commit message")
    auto_commit: bool = Field(default=True, description="Commit once the message is validated")


class RepositoryState(BaseModel):
    """Snapshot of the working tree taken at the start of a run."""

    is_repository: bool
    has_staged_changes: bool = False
    staged_files: list[str] = Field(default_factory=list)
    unstaged_files: list[str] = Field(default_factory=list)


class ValidationIssue(BaseModel):
    """A single rule violation or warning."""

    rule: str = Field(description="Name of the rule, e.g. header-max-length")
    message: str = Field(description="Human readable explanation")
    line: int | None = None
    column: int | None = None


class ValidationOutcome(BaseModel):
    """Result of running a message through a validator."""

    valid: bool
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)


class CommitOutcome(BaseModel):
    """Result of the repository commit operation."""

    success: bool
    commit_sha: str | None = None
    message: str | None = None
    error: str | None = None


class SamplingContent(BaseModel):
    type: str
    text: str


class SamplingReply(BaseModel):
    """The single reply of a generation request."""

    role: str
    content: SamplingContent
    model: str | None = None
    stop_reason: str | None = None


class ErrorInfo(BaseModel):
    code: int
    message: str


# Workflow outcomes. Every run of the orchestrator ends in exactly one of these.


class Committed(BaseModel):
    """The message passed validation and was prepared (and possibly committed)."""

    status: Literal["completed"] = "completed"
    message: str
    commit_message: str
    validation: ValidationOutcome
    files_staged: int | None = None
    auto_committed: bool
    commit_sha: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": True,
            "message": self.message,
            "commit_message": self.commit_message,
            "validation": {
                "valid": self.validation.valid,
                "warnings": [w.model_dump(exclude_none=True) for w in self.validation.warnings],
            },
        }
        if self.files_staged is not None:
            payload["files_staged"] = self.files_staged
        payload["auto_committed"] = self.auto_committed
        if self.commit_sha is not None:
            payload["commit_sha"] = self.commit_sha
        payload["next_step"] = (
            "Commit completed successfully"
            if self.auto_committed
            else "Please review the commit message in your editor and commit manually"
        )
        return payload


class ConfirmationRequired(BaseModel):
    """Unstaged files were found and auto-staging was declined."""

    status: Literal["needs_confirmation"] = "needs_confirmation"
    unstaged_files: list[str]

    def to_payload(self) -> dict[str, Any]:
        return {
            "success": True,
            "needs_confirmation": True,
            "message": (
                f"Found {len(self.unstaged_files)} unstaged files. "
                "Please confirm if you want to stage them:"
            ),
            "unstaged_files": list(self.unstaged_files),
            "suggestion": (
                "You can call the commit tool again with auto_stage: true "
                "to automatically stage these files."
            ),
        }


class ValidationRejected(BaseModel):
    """The candidate message failed validation. Nothing was persisted."""

    status: Literal["rejected"] = "rejected"
    candidate: str
    generated: bool = True
    errors: list[ValidationIssue]
    formatted_errors: str

    def to_payload(self) -> dict[str, Any]:
        key = "generated_message" if self.generated else "commit_message"
        suggestion = (
            "The generated commit message doesn't meet the validation requirements. "
            "Please try again with different parameters."
            if self.generated
            else "The commit message doesn't meet the validation requirements. "
            "Please fix the message and try again."
        )
        return {
            "success": False,
            key: self.candidate,
            "validation_errors": [e.model_dump(exclude_none=True) for e in self.errors],
            "formatted_errors": self.formatted_errors,
            "suggestion": suggestion,
        }


class Failed(BaseModel):
    """The run hit a precondition, generation or commit failure."""

    status: Literal["failed"] = "failed"
    error: ErrorInfo

    def to_payload(self) -> dict[str, Any]:
        return {
            "success": False,
            "error": self.error.model_dump(),
        }


Outcome = Annotated[
    Union[Committed, ConfirmationRequired, ValidationRejected, Failed],
    Field(discriminator="status"),
]
