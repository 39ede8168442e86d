"""Prompt construction for commit message generation."""

from __future__ import annotations

from commitsmith.presets import BodyPolicy, Preset


def _body_format(preset: Preset) -> str:
    rules = preset.rules
    if rules.body_policy is BodyPolicy.FORBIDDEN:
        return "Forbidden, subject line only"
    return rules.body_format or "Not required"


def _body_limit(preset: Preset) -> str:
    rules = preset.rules
    if rules.body_policy is BodyPolicy.FORBIDDEN:
        return "No body"
    limit = rules.body_limit or "Not required"
    if rules.body_policy is BodyPolicy.REQUIRED:
        return f"{limit} (body is mandatory)"
    if rules.body_required_if:
        return f"{limit} (required if {rules.body_required_if})"
    return limit


def build_system_prompt(preset: Preset) -> str:
    """Render the preset's identity, rules and instructions for the generating model."""
    agent = preset.agent
    rules = preset.rules
    instructions = preset.instructions

    lines = [
        f"You are {agent.name}. {agent.mission}.",
        "",
        agent.founding_principle,
        "",
        "RULES:",
        f"- Language: {rules.language}",
        f"- Format: {rules.structure}",
        f"- Subject max length: {rules.subject_max_length} characters",
        f"- Body format: {_body_format(preset)}",
        f"- Body limit: {_body_limit(preset)}",
        "",
        "INSTRUCTIONS:",
        instructions.behavior,
    ]
    for extra in (instructions.golden_rule, instructions.verbosity, instructions.language_enforcement):
        if extra:
            lines.append(f"- {extra}")
    lines.extend(f"- {requirement}" for requirement in instructions.requirements)

    lines.append("")
    lines.append("OUTPUT REQUIREMENTS:")
    lines.extend(f"- {requirement}" for requirement in preset.output_requirements)
    return "\n".join(lines)


def build_user_message(diff: str, user_request: str, preset: Preset) -> str:
    """Combine the user's words, the style hint and the raw staged diff."""
    return f"""User request: "{user_request}"

Style guidance: {preset.style_hint}

Git diff:
```
{diff}
```

Please generate a commit message based on the above diff and user request, following the specified format and rules."""
