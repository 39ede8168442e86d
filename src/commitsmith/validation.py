"""Commit message validator contract and registry."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any

import structlog
from pydantic import BaseModel, Field

from commitsmith.models import ValidationIssue, ValidationOutcome

logger = structlog.get_logger(__name__)


class ConfigSnapshot(BaseModel):
    """The rule set a validator loaded."""

    rules: dict[str, Any]
    extends: list[str] = Field(default_factory=list)
    help_url: str | None = None


class ValidationAdapter(ABC):
    """A named validator.

    ``load_config`` must complete before the first ``validate`` call.
    ``validate`` must not touch the repository or any other external state.
    """

    name: str

    @abstractmethod
    async def load_config(self) -> ConfigSnapshot:
        ...

    @abstractmethod
    async def validate(self, message: str) -> ValidationOutcome:
        ...

    def format_errors(self, errors: list[ValidationIssue]) -> str:
        return dump_errors(errors)


def dump_errors(errors: list[ValidationIssue]) -> str:
    """Raw structured rendering, used when a validator has no formatter of its own."""
    return json.dumps([e.model_dump(exclude_none=True) for e in errors], indent=2)


class ValidationAdapterRegistry:
    """Holds validators by name.

    Instances are created and passed around explicitly; there is no module-level registry.
    """

    def __init__(self) -> None:
        self._adapters: dict[str, ValidationAdapter] = {}

    def register(self, adapter: ValidationAdapter) -> None:
        if adapter.name in self._adapters:
            logger.warning("validator_overwritten", name=adapter.name)
        self._adapters[adapter.name] = adapter

    def get(self, name: str) -> ValidationAdapter | None:
        return self._adapters.get(name)

    def list(self) -> list[str]:
        return list(self._adapters)

    def format_errors(self, name: str, errors: list[ValidationIssue]) -> str:
        """Best-effort human rendering; falls back to a JSON dump."""
        adapter = self.get(name)
        if adapter is None:
            return dump_errors(errors)
        try:
            return adapter.format_errors(errors)
        except Exception as e:
            logger.warning("format_errors_failed", name=name, error=str(e))
            return dump_errors(errors)
