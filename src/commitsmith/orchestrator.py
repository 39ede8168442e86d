"""Commit orchestration: from a request in plain words to a validated commit.

Both entry points return exactly one outcome. Precondition, generation and
commit failures are raised inside the workflow and converted to ``Failed`` by a
single handler; a validation rejection is an ordinary ``ValidationRejected``
result, since the caller only needs to try again with different input.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Protocol, TypeVar

import structlog
from pydantic import ValidationError

from commitsmith.errors import (
    CommitFailedError,
    CommitSmithError,
    GenerationError,
    InvalidRequestError,
    NotARepositoryError,
    NothingToCommitError,
    OperationFailedError,
    PersistenceError,
)
from commitsmith.models import (
    CommitOutcome,
    CommitRequest,
    Committed,
    ConfirmationRequired,
    Failed,
    Outcome,
    RepositoryState,
    SamplingReply,
    ValidateRequest,
    ValidationOutcome,
    ValidationRejected,
)
from commitsmith.presets import Preset, PresetCatalog
from commitsmith.prompts import build_system_prompt, build_user_message
from commitsmith.sampling import GenerationRequester, SamplingParams, parse_reply
from commitsmith.validation import ValidationAdapterRegistry

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class RepositoryAdapter(Protocol):
    def is_repository(self) -> bool: ...
    def has_staged_changes(self) -> bool: ...
    def list_staged_files(self) -> list[str]: ...
    def list_unstaged_files(self) -> list[str]: ...
    def stage(self, files: list[str]) -> None: ...
    def get_staged_diff_text(self) -> str: ...
    def persist_pending_message(self, text: str) -> None: ...
    def commit(self, text: str) -> CommitOutcome: ...


def _parse(model: type[T], args: Any) -> T:
    if isinstance(args, model):
        return args
    try:
        return model.model_validate(args)  # type: ignore[attr-defined]
    except ValidationError as e:
        details = ", ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'arguments'}: {err['msg']}" for err in e.errors()
        )
        raise InvalidRequestError(f"Invalid parameters: {details}")


class CommitOrchestrator:
    """Runs the commit workflow against injected collaborators."""

    def __init__(
        self,
        repository: RepositoryAdapter,
        presets: PresetCatalog,
        registry: ValidationAdapterRegistry,
        requester: GenerationRequester,
        *,
        validator_name: str = "commitlint",
        params: SamplingParams | None = None,
        generation_timeout: float | None = 60.0,
    ):
        self.repository = repository
        self.presets = presets
        self.registry = registry
        self.requester = requester
        self.validator_name = validator_name
        self.params = params or SamplingParams()
        self.generation_timeout = generation_timeout

    async def _call(self, fn: Callable[..., T], *args: Any) -> T:
        return await asyncio.to_thread(fn, *args)

    # Entry points

    async def propose_commit(self, args: CommitRequest | dict[str, Any]) -> Outcome:
        """Stage, generate, validate, persist and (optionally) commit."""
        try:
            request = _parse(CommitRequest, args)
            return await self._propose(request)
        except CommitSmithError as e:
            return self._failed(e)
        except Exception as e:
            logger.exception("commit_unexpected_error")
            return self._failed(OperationFailedError(f"Commit operation failed: {e}"))

    async def apply_message(self, args: ValidateRequest | dict[str, Any]) -> Outcome:
        """Validate an already-authored message, then persist and (optionally) commit."""
        try:
            request = _parse(ValidateRequest, args)
            await self._require_repository()
            return await self._validate_and_apply(
                request.message,
                auto_commit=request.auto_commit,
                generated=False,
                files_staged=None,
                success_message="Commit message validated and prepared successfully",
            )
        except CommitSmithError as e:
            return self._failed(e)
        except Exception as e:
            logger.exception("validate_and_commit_unexpected_error")
            return self._failed(OperationFailedError(f"Validate and commit operation failed: {e}"))

    # Workflow steps

    async def _propose(self, request: CommitRequest) -> Outcome:
        log = logger.bind(style=request.style.value, auto_commit=request.auto_commit, auto_stage=request.auto_stage)

        state = await self.inspect_repository(request.auto_stage)

        files_staged = 0
        if state.unstaged_files:
            if request.auto_stage:
                await self._call(self.repository.stage, list(state.unstaged_files))
                files_staged = len(state.unstaged_files)
                log.info("auto_staged", count=files_staged)
            elif not state.has_staged_changes:
                log.info("confirmation_required", unstaged=len(state.unstaged_files))
                return ConfirmationRequired(unstaged_files=list(state.unstaged_files))

        diff = await self._call(self.repository.get_staged_diff_text)
        if not diff or not diff.strip():
            raise NothingToCommitError()

        preset = self.presets.resolve(request.style)
        candidate = await self.generate_message(diff, request.request, preset)
        log.info("message_generated", length=len(candidate))

        return await self._validate_and_apply(
            candidate,
            auto_commit=request.auto_commit,
            generated=True,
            files_staged=files_staged,
            success_message="Commit process completed successfully",
        )

    async def _require_repository(self) -> None:
        if not await self._call(self.repository.is_repository):
            raise NotARepositoryError()

    async def inspect_repository(self, auto_stage: bool) -> RepositoryState:
        """Fresh snapshot of the working tree. Raises on precondition failures."""
        await self._require_repository()

        has_staged = await self._call(self.repository.has_staged_changes)
        staged_files = await self._call(self.repository.list_staged_files) if has_staged else []

        unstaged_files: list[str] = []
        if auto_stage or not has_staged:
            unstaged_files = await self._call(self.repository.list_unstaged_files)

        if not has_staged and not unstaged_files:
            raise NothingToCommitError()

        return RepositoryState(
            is_repository=True,
            has_staged_changes=has_staged,
            staged_files=staged_files,
            unstaged_files=unstaged_files,
        )

    async def generate_message(self, diff: str, user_request: str, preset: Preset) -> str:
        """Send one generation request and return the trimmed candidate text."""
        system_prompt = build_system_prompt(preset)
        user_prompt = build_user_message(diff, user_request, preset)

        try:
            reply = await asyncio.wait_for(
                self.requester.request(system_prompt, user_prompt, self.params),
                timeout=self.generation_timeout,
            )
            if not isinstance(reply, SamplingReply):
                reply = parse_reply(reply)
            text = reply.content.text.strip()
        except asyncio.TimeoutError:
            raise GenerationError(
                f"Failed to generate commit message using sampling: "
                f"no reply within {self.generation_timeout} seconds"
            )
        except GenerationError as e:
            raise GenerationError(f"Failed to generate commit message using sampling: {e.message}")
        except Exception as e:
            raise GenerationError(f"Failed to generate commit message using sampling: {e}")

        if not text:
            raise GenerationError(
                "Failed to generate commit message using sampling: Invalid response from sampling request"
            )
        return text

    async def validate_message(self, message: str) -> ValidationOutcome:
        adapter = self.registry.get(self.validator_name)
        if adapter is None:
            logger.warning("validator_missing", name=self.validator_name)
            return ValidationOutcome(valid=True)
        return await adapter.validate(message)

    async def _validate_and_apply(
        self,
        message: str,
        *,
        auto_commit: bool,
        generated: bool,
        files_staged: int | None,
        success_message: str,
    ) -> Outcome:
        validation = await self.validate_message(message)
        if not validation.valid:
            logger.info("message_rejected", errors=len(validation.errors))
            return ValidationRejected(
                candidate=message,
                generated=generated,
                errors=validation.errors,
                formatted_errors=self.registry.format_errors(self.validator_name, validation.errors),
            )

        try:
            await self._call(self.repository.persist_pending_message, message)
        except CommitSmithError as e:
            raise PersistenceError(e.message)
        except OSError as e:
            raise PersistenceError(f"Failed to prepare commit message: {e}")

        commit_sha = None
        if auto_commit:
            result = await self._call(self.repository.commit, message)
            if not result.success:
                raise CommitFailedError(result.error or "Failed to commit")
            commit_sha = result.commit_sha
            logger.info("committed", sha=commit_sha)

        return Committed(
            message=success_message,
            commit_message=message,
            validation=validation,
            files_staged=files_staged,
            auto_committed=auto_commit,
            commit_sha=commit_sha,
        )

    def _failed(self, error: CommitSmithError) -> Failed:
        logger.warning("workflow_failed", error_type=type(error).__name__, error=error.message)
        return Failed(error=error.to_info())
