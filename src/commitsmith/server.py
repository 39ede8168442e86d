"""MCP server exposing the commit workflow as tools.

Tools:
- commit: stage, generate (via client sampling), validate and commit
- validate_and_commit: validate an already-written message and commit it

Resources:
- commit://presets
- commit://agent-definition
"""

import json
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Literal, Optional

import structlog
from mcp.server.fastmcp import Context, FastMCP
from mcp.types import CallToolResult, TextContent

from commitsmith.config import Config, load_config
from commitsmith.git_ops import GitRepository
from commitsmith.lint import ConventionalLintAdapter
from commitsmith.log_config import configure_logging
from commitsmith.models import Failed, Outcome
from commitsmith.orchestrator import CommitOrchestrator, RepositoryAdapter
from commitsmith.presets import PresetCatalog
from commitsmith.sampling import GenerationRequester, McpSamplingRequester, SamplingParams
from commitsmith.validation import ValidationAdapterRegistry

logger = structlog.get_logger(__name__)

StyleName = Literal["default", "minimal", "descriptive", "strict"]

COMMIT_TOOL_DESCRIPTION = """Analyze staged (and, with auto_stage, unstaged) git changes, have the client
generate a Conventional Commit message from the diff, validate it and commit.

Pass the user's own words as `request`; do not rephrase them.

auto_commit: true unless the user explicitly asks not to commit
("don't commit", "just generate", "show me first", "without committing").

style, chosen from the wording of the request:
- minimal: quick, brief, short, simple, one-liner
- descriptive: detailed, explain, context, thorough
- strict: professional, formal, corporate, rigorous
- default: anything else

auto_stage: true unless the user raises staging concerns. When false and
nothing is staged, the tool returns the unstaged files and asks for confirmation."""

VALIDATE_TOOL_DESCRIPTION = """Validate a commit message against the Conventional Commit rules and,
when auto_commit is true (default), commit it. With auto_commit false the
message is only written to .git/COMMIT_EDITMSG for manual review.
The message must be in English."""


def build_registry(config: Config) -> ValidationAdapterRegistry:
    registry = ValidationAdapterRegistry()
    registry.register(ConventionalLintAdapter(overrides=config.rules))
    return registry


async def load_validators(registry: ValidationAdapterRegistry) -> None:
    """Load every registered validator's rule set. Must run before the first validation."""
    for name in registry.list():
        adapter = registry.get(name)
        if adapter is not None:
            await adapter.load_config()
            logger.info("validator_loaded", name=name)


def build_orchestrator(
    config: Config,
    repository: RepositoryAdapter,
    registry: ValidationAdapterRegistry,
    requester: GenerationRequester,
) -> CommitOrchestrator:
    return CommitOrchestrator(
        repository,
        PresetCatalog(),
        registry,
        requester,
        validator_name=config.validator,
        params=SamplingParams(
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            model_hints=config.model_hints,
        ),
        generation_timeout=config.generation_timeout,
    )


def render(outcome: Outcome) -> CallToolResult:
    """Tool result carrying the outcome's JSON payload.

    Failed runs are flagged with ``isError``; their payload keeps the JSON-RPC
    code so the host can tell precondition failures from internal ones.
    """
    return CallToolResult(
        content=[TextContent(type="text", text=json.dumps(outcome.to_payload(), indent=2))],
        isError=isinstance(outcome, Failed),
    )


async def handle_commit(orchestrator: CommitOrchestrator, args: dict) -> CallToolResult:
    return render(await orchestrator.propose_commit(args))


async def handle_validate_and_commit(orchestrator: CommitOrchestrator, args: dict) -> CallToolResult:
    return render(await orchestrator.apply_message(args))


def preset_catalog_document(presets: PresetCatalog) -> dict:
    return {
        "available_presets": presets.names(),
        "presets": {preset.style.value: preset.model_dump(mode="json") for preset in presets.all()},
    }


def create_server(
    config: Optional[Config] = None,
    repository: Optional[RepositoryAdapter] = None,
    registry: Optional[ValidationAdapterRegistry] = None,
) -> FastMCP:
    """Build the MCP server with its collaborators wired in."""
    config = config or load_config()
    repository = repository or GitRepository(Path.cwd())
    registry = registry or build_registry(config)
    presets = PresetCatalog()

    @asynccontextmanager
    async def lifespan(server: FastMCP) -> AsyncIterator[None]:
        await load_validators(registry)
        yield

    mcp = FastMCP("commit-smith", lifespan=lifespan)

    @mcp.tool(description=COMMIT_TOOL_DESCRIPTION)
    async def commit(
        request: str,
        ctx: Context,
        style: Optional[StyleName] = None,
        auto_commit: bool = True,
        auto_stage: bool = True,
    ) -> CallToolResult:
        orchestrator = build_orchestrator(config, repository, registry, McpSamplingRequester(ctx.session))
        return await handle_commit(
            orchestrator,
            {
                "request": request,
                "style": style or config.preset.value,
                "auto_commit": auto_commit,
                "auto_stage": auto_stage,
            },
        )

    @mcp.tool(description=VALIDATE_TOOL_DESCRIPTION)
    async def validate_and_commit(message: str, ctx: Context, auto_commit: bool = True) -> CallToolResult:
        orchestrator = build_orchestrator(config, repository, registry, McpSamplingRequester(ctx.session))
        return await handle_validate_and_commit(
            orchestrator, {"message": message, "auto_commit": auto_commit}
        )

    @mcp.resource(
        "commit://presets",
        name="Available Agent Presets",
        description="Message style presets and their rules",
        mime_type="application/json",
    )
    def presets_resource() -> str:
        return json.dumps(preset_catalog_document(presets), indent=2)

    @mcp.resource(
        "commit://agent-definition",
        name="CommitSmith Agent Definition",
        description="The preset used when a request names no style",
        mime_type="application/json",
    )
    def agent_definition_resource() -> str:
        return json.dumps(presets.resolve(config.preset).model_dump(mode="json"), indent=2)

    return mcp


def main() -> None:
    """Run the MCP server over stdio."""
    # Logging first: structlog's default logger prints to stdout, the MCP transport.
    configure_logging()
    config = load_config()
    configure_logging(config.log_level)
    logger.info("server_starting", validator=config.validator, preset=config.preset.value)
    create_server(config).run()


if __name__ == "__main__":
    main()
