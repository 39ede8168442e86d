"""Conventional Commit linting.

Rules use the commitlint configuration format ``[level, applicability, value]``:
level 0 disables a rule, 1 reports a warning, 2 reports an error; applicability
is ``"always"`` or ``"never"``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Mapping

import structlog

from commitsmith.errors import ValidatorNotInitializedError
from commitsmith.models import ValidationIssue, ValidationOutcome
from commitsmith.validation import ConfigSnapshot, ValidationAdapter

logger = structlog.get_logger(__name__)

COMMIT_TYPES = [
    "feat",
    "fix",
    "docs",
    "style",
    "refactor",
    "perf",
    "test",
    "chore",
    "ci",
    "build",
    "revert",
    "wip",
]

DEFAULT_RULES: dict[str, list[Any]] = {
    "type-enum": [2, "always", COMMIT_TYPES],
    "type-case": [2, "always", "lower-case"],
    "type-empty": [2, "never"],
    "scope-case": [2, "always", "lower-case"],
    "subject-case": [2, "never", ["sentence-case", "start-case", "pascal-case", "upper-case"]],
    "subject-empty": [2, "never"],
    "subject-full-stop": [2, "never", "."],
    "header-max-length": [2, "always", 72],
    "body-leading-blank": [1, "always"],
    "body-max-line-length": [2, "always", 100],
    "footer-leading-blank": [1, "always"],
    "footer-max-line-length": [2, "always", 100],
}

HELP_URL = "https://www.conventionalcommits.org/en/v1.0.0/"

HEADER_PATTERN = re.compile(r"^(?P<type>\w*)(?:\((?P<scope>.*)\))?!?: (?P<subject>.*)$")
FOOTER_PATTERN = re.compile(
    r"^(?:BREAKING[ -]CHANGE|[A-Za-z]+(?:-[A-Za-z]+)+|Closes|Fixes|Resolves|Refs)(?::\s| #)"
)
_QUOTED = re.compile(r"`.*?`|\".*?\"|'.*?'")
_WORDS = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|\d+")


@dataclass(frozen=True)
class ParsedCommit:
    raw: str
    header: str
    type: str | None
    scope: str | None
    subject: str | None
    body_lines: list[str]
    footer_lines: list[str]
    body_has_leading_blank: bool
    footer_has_leading_blank: bool

    @property
    def body(self) -> str:
        return "\n".join(self.body_lines).strip()

    @property
    def footer(self) -> str:
        return "\n".join(self.footer_lines).strip()


def parse_commit(message: str) -> ParsedCommit:
    """Split a message into header fields, body and footer."""
    lines = [line for line in message.strip("\n").split("\n") if not line.startswith("#")]
    while lines and not lines[-1].strip():
        lines.pop()
    header = lines[0].strip() if lines else ""

    match = HEADER_PATTERN.match(header)
    type_ = scope = subject = None
    if match:
        type_ = match.group("type") or None
        scope = match.group("scope") or None
        subject = match.group("subject").strip() or None

    footer_start = len(lines)
    for index in range(1, len(lines)):
        if FOOTER_PATTERN.match(lines[index]):
            footer_start = index
            break

    body_lines = lines[1:footer_start]
    footer_lines = lines[footer_start:]
    return ParsedCommit(
        raw=message,
        header=header,
        type=type_,
        scope=scope,
        subject=subject,
        body_lines=body_lines,
        footer_lines=footer_lines,
        body_has_leading_blank=bool(body_lines) and not body_lines[0].strip(),
        footer_has_leading_blank=bool(footer_lines) and not lines[footer_start - 1].strip(),
    )


def _to_case(text: str, target: str) -> str:
    words = _WORDS.findall(text)
    if target in ("lower-case", "lowercase"):
        return text.lower()
    if target in ("upper-case", "uppercase"):
        return text.upper()
    if target in ("sentence-case", "sentencecase"):
        return text[:1].upper() + text[1:]
    if target == "start-case":
        return " ".join(w[:1].upper() + w[1:] for w in words)
    if target == "pascal-case":
        return "".join(w[:1].upper() + w[1:].lower() for w in words)
    if target == "camel-case":
        pascal = "".join(w[:1].upper() + w[1:].lower() for w in words)
        return pascal[:1].lower() + pascal[1:]
    if target == "kebab-case":
        return "-".join(w.lower() for w in words)
    if target == "snake-case":
        return "_".join(w.lower() for w in words)
    raise ValueError(f"Unknown case: {target}")


def ensure_case(text: str, target: str) -> bool:
    """True when ``text`` is already written in ``target`` case.

    Quoted segments are ignored; text starting with a digit matches any case.
    """
    stripped = _QUOTED.sub("", text).strip()
    transformed = _to_case(stripped, target)
    if not transformed or transformed[0].isdigit():
        return True
    return transformed == stripped


def _cases(value: Any) -> list[str]:
    return [value] if isinstance(value, str) else list(value)


# A rule check returns (passed, message). ``negated`` is True for "never".
RuleCheck = Callable[[ParsedCommit, bool, Any], tuple[bool, str]]


def _must(negated: bool) -> str:
    return "must not" if negated else "must"


def _empty_check(field: str) -> RuleCheck:
    def check(commit: ParsedCommit, negated: bool, value: Any) -> tuple[bool, str]:
        empty = not getattr(commit, field)
        if negated:
            return not empty, f"{field} may not be empty"
        return empty, f"{field} must be empty"

    return check


def _case_check(field: str) -> RuleCheck:
    def check(commit: ParsedCommit, negated: bool, value: Any) -> tuple[bool, str]:
        text = getattr(commit, field)
        cases = _cases(value)
        message = f"{field} {_must(negated)} be {', '.join(cases)}"
        if not text:
            return True, message
        parts = re.split(r"[/\\,]", text) if field == "scope" else [text]
        for part in parts:
            matches = any(ensure_case(part, case) for case in cases)
            if matches == negated:
                return False, message
        return True, message

    return check


def _max_length_check(field: str) -> RuleCheck:
    def check(commit: ParsedCommit, negated: bool, value: Any) -> tuple[bool, str]:
        text = getattr(commit, field) or ""
        return (
            len(text) <= int(value),
            f"{field} must not be longer than {value} characters, current length is {len(text)}",
        )

    return check


def _line_length_check(field: str) -> RuleCheck:
    def check(commit: ParsedCommit, negated: bool, value: Any) -> tuple[bool, str]:
        lines = getattr(commit, f"{field}_lines")
        return (
            all(len(line) <= int(value) for line in lines),
            f"{field}'s lines must not be longer than {value} characters",
        )

    return check


def _leading_blank_check(field: str) -> RuleCheck:
    def check(commit: ParsedCommit, negated: bool, value: Any) -> tuple[bool, str]:
        if not getattr(commit, field):
            return True, ""
        has_blank = getattr(commit, f"{field}_has_leading_blank")
        return has_blank != negated, f"{field} {_must(negated)} have leading blank line"

    return check


def _type_enum(commit: ParsedCommit, negated: bool, value: Any) -> tuple[bool, str]:
    message = f"type {_must(negated)} be one of [{', '.join(value)}]"
    if not commit.type:
        return True, message
    return (commit.type in value) != negated, message


def _subject_full_stop(commit: ParsedCommit, negated: bool, value: Any) -> tuple[bool, str]:
    if not commit.subject:
        return True, ""
    ends = commit.subject.endswith(value)
    if negated:
        return not ends, "subject may not end with full stop"
    return ends, "subject must end with full stop"


RULES: Mapping[str, RuleCheck] = {
    "type-enum": _type_enum,
    "type-case": _case_check("type"),
    "type-empty": _empty_check("type"),
    "scope-case": _case_check("scope"),
    "scope-empty": _empty_check("scope"),
    "subject-case": _case_check("subject"),
    "subject-empty": _empty_check("subject"),
    "subject-full-stop": _subject_full_stop,
    "subject-max-length": _max_length_check("subject"),
    "header-max-length": _max_length_check("header"),
    "body-empty": _empty_check("body"),
    "body-leading-blank": _leading_blank_check("body"),
    "body-max-line-length": _line_length_check("body"),
    "footer-leading-blank": _leading_blank_check("footer"),
    "footer-max-line-length": _line_length_check("footer"),
}


def normalize_rules(rules: Mapping[str, Any]) -> dict[str, list[Any]]:
    """Check rule entries against the commitlint format, dropping unknown rules."""
    normalized: dict[str, list[Any]] = {}
    for name, entry in rules.items():
        if name not in RULES:
            logger.warning("lint_rule_unknown", rule=name)
            continue
        if not isinstance(entry, (list, tuple)) or not entry:
            raise ValueError(f"Rule {name} must be a list like [level, applicability, value]")
        level = entry[0]
        if level not in (0, 1, 2):
            raise ValueError(f"Rule {name} has invalid level {level!r}")
        if level and (len(entry) < 2 or entry[1] not in ("always", "never")):
            raise ValueError(f"Rule {name} must say 'always' or 'never'")
        normalized[name] = list(entry)
    return normalized


def lint(message: str, rules: Mapping[str, list[Any]]) -> ValidationOutcome:
    """Run every enabled rule against ``message``."""
    commit = parse_commit(message)
    errors: list[ValidationIssue] = []
    warnings: list[ValidationIssue] = []

    for name, entry in rules.items():
        level = entry[0]
        if level == 0:
            continue
        negated = entry[1] == "never"
        value = entry[2] if len(entry) > 2 else None
        passed, text = RULES[name](commit, negated, value)
        if passed:
            continue
        issue = ValidationIssue(rule=name, message=text)
        (errors if level == 2 else warnings).append(issue)

    return ValidationOutcome(valid=not errors, errors=errors, warnings=warnings)


class ConventionalLintAdapter(ValidationAdapter):
    """Validator enforcing the Conventional Commits rule set."""

    name = "commitlint"

    def __init__(self, overrides: Mapping[str, Any] | None = None):
        self._overrides = dict(overrides or {})
        self._rules: dict[str, list[Any]] | None = None

    async def load_config(self) -> ConfigSnapshot:
        rules = {**DEFAULT_RULES, **normalize_rules(self._overrides)}
        self._rules = rules
        logger.debug("lint_config_loaded", rules=len(rules), overrides=len(self._overrides))
        return ConfigSnapshot(
            rules=rules,
            extends=["@commitlint/config-conventional"],
            help_url=HELP_URL,
        )

    async def validate(self, message: str) -> ValidationOutcome:
        if self._rules is None:
            raise ValidatorNotInitializedError()
        return lint(message, self._rules)

    def format_errors(self, errors: list[ValidationIssue]) -> str:
        lines = [f"✖   {error.message} [{error.rule}]" for error in errors]
        lines.append(f"✖   found {len(errors)} problems")
        lines.append(f"ⓘ   Get help: {HELP_URL}")
        return "\n".join(lines)
