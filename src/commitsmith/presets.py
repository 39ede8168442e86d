"""Preset catalog: formatting rules and generation instructions per style."""

from __future__ import annotations

from enum import Enum
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field

from commitsmith.models import Style


class BodyPolicy(str, Enum):
    OPTIONAL = "optional"
    REQUIRED = "required"
    FORBIDDEN = "forbidden"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class AgentProfile(_Frozen):
    name: str
    mission: str
    founding_principle: str


class FormatRules(_Frozen):
    language: str = Field(description="Language policy for commit messages")
    structure: str
    subject_max_length: int
    body_policy: BodyPolicy = BodyPolicy.OPTIONAL
    body_required_if: str | None = None
    body_format: str | None = None
    body_limit: str | None = None


class Instructions(_Frozen):
    behavior: str
    golden_rule: str | None = None
    verbosity: str | None = None
    language_enforcement: str | None = None
    requirements: tuple[str, ...] = ()


class Preset(_Frozen):
    """One entry of the catalog."""

    style: Style
    agent: AgentProfile
    rules: FormatRules
    instructions: Instructions
    output_requirements: tuple[str, ...]
    style_hint: str


_ENGLISH_OUTPUT = "ALWAYS write commit message in English"

PRESETS: Mapping[Style, Preset] = {
    Style.DEFAULT: Preset(
        style=Style.DEFAULT,
        agent=AgentProfile(
            name="CommitSmith",
            mission="Generate ONE valid Conventional Commit message, MAX 5 lines total, ALWAYS IN ENGLISH",
            founding_principle="If it takes more than 5 lines, it belongs in a PR description, not a commit.",
        ),
        rules=FormatRules(
            language="ALWAYS English, regardless of user input language",
            structure="<type>(<scope>): <subject>\n\n<body>",
            subject_max_length=72,
            body_required_if="significant business impact",
            body_format="- Short business action (max 72 chars)",
            body_limit="MAX 4 bullet points (1 line each)",
        ),
        instructions=Instructions(
            behavior="ACT LIKE A SCALPEL - MAX 5 lines, NO explanations.",
            golden_rule="If you must choose between two points, keep the one impacting the end user.",
            verbosity="MINIMAL OUTPUT - Only the commit message, NO explanations",
            language_enforcement=(
                "CRITICAL: All commit messages must be in English, "
                "even if user communicates in another language"
            ),
        ),
        output_requirements=(
            "Return ONLY the commit message, no code blocks or explanations",
            "MUST include blank line between subject and body if body exists",
            "Each body line should start with '- '",
            _ENGLISH_OUTPUT,
        ),
        style_hint="Follow standard conventional commit format.",
    ),
    Style.STRICT: Preset(
        style=Style.STRICT,
        agent=AgentProfile(
            name="CommitSmith-Strict",
            mission="Generate PERFECT Conventional Commit messages with rigorous validation, ALWAYS IN ENGLISH",
            founding_principle="Every commit must be enterprise-grade and audit-ready.",
        ),
        rules=FormatRules(
            language="ALWAYS English, mandatory for professional standards",
            structure="<type>(<scope>): <subject>\n\n<body>",
            subject_max_length=50,
            body_policy=BodyPolicy.REQUIRED,
            body_format="- Action taken (imperative mood, max 60 chars)",
            body_limit="EXACTLY 2-3 bullet points",
        ),
        instructions=Instructions(
            behavior="PERFECTIONIST MODE - Every word matters.",
            requirements=(
                "Subject MUST be under 50 characters",
                "Body is MANDATORY for all commits",
                "Use imperative mood throughout",
                "ALWAYS write in English regardless of user language",
            ),
        ),
        output_requirements=(
            "Return ONLY the commit message, no code blocks or explanations",
            "MUST include blank line between subject and body",
            "Each body line should start with '- '",
            _ENGLISH_OUTPUT,
        ),
        style_hint="Follow the conventional commit format precisely.",
    ),
    Style.MINIMAL: Preset(
        style=Style.MINIMAL,
        agent=AgentProfile(
            name="CommitSmith-Minimal",
            mission="Generate concise, single-line commit messages IN ENGLISH",
            founding_principle="One line to rule them all.",
        ),
        rules=FormatRules(
            language="ALWAYS English for consistency",
            structure="<type>: <subject>",
            subject_max_length=72,
            body_policy=BodyPolicy.FORBIDDEN,
        ),
        instructions=Instructions(
            behavior="ULTRA CONCISE - One line only, no body, unless critical.",
            requirements=(
                "Single line commit message only",
                "No body, no explanations",
                "Scope only if absolutely necessary",
                "ALWAYS in English",
            ),
        ),
        output_requirements=(
            "Return ONLY the commit message, no code blocks or explanations",
            "Return a single line",
            _ENGLISH_OUTPUT,
        ),
        style_hint="Keep it concise and brief.",
    ),
    Style.DESCRIPTIVE: Preset(
        style=Style.DESCRIPTIVE,
        agent=AgentProfile(
            name="CommitSmith-Descriptive",
            mission="Generate detailed but structured commit messages with context IN ENGLISH",
            founding_principle="Clarity through detail, but still structured.",
        ),
        rules=FormatRules(
            language="ALWAYS English for professional documentation",
            structure="<type>(<scope>): <subject>\n\n<body>",
            subject_max_length=72,
            body_required_if="any change",
            body_format="- Detailed action with context (max 80 chars)",
            body_limit="MAX 5 bullet points",
        ),
        instructions=Instructions(
            behavior="DETAILED BUT STRUCTURED - Provide context while maintaining format.",
            requirements=(
                "Include scope whenever possible",
                "Body should explain the 'why' when not obvious",
                "Use full bullet point allowance when helpful",
                "ALWAYS write in English",
            ),
        ),
        output_requirements=(
            "Return ONLY the commit message, no code blocks or explanations",
            "MUST include blank line between subject and body if body exists",
            "Each body line should start with '- '",
            _ENGLISH_OUTPUT,
        ),
        style_hint="Provide context and details when appropriate.",
    ),
}


class PresetCatalog:
    """Resolves style names to presets, falling back to the default entry."""

    def __init__(self, presets: Mapping[Style, Preset] = PRESETS, default: Style = Style.DEFAULT):
        if default not in presets:
            raise ValueError(f"Default style {default.value!r} has no preset")
        self._presets = dict(presets)
        self.default = default

    def resolve(self, style: Style | str | None) -> Preset:
        try:
            return self._presets[Style(style)]
        except (KeyError, ValueError):
            return self._presets[self.default]

    def names(self) -> list[str]:
        return [style.value for style in self._presets]

    def all(self) -> list[Preset]:
        return list(self._presets.values())
