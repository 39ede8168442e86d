"""Tests for the MCP server surface."""

import json

import pytest
from mcp import types
from mcp.shared.memory import create_connected_server_and_client_session
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS

from commitsmith.config import Config
from commitsmith.models import (
    CommitOutcome,
    Committed,
    ConfirmationRequired,
    ErrorInfo,
    Failed,
    Style,
    ValidationOutcome,
)
from commitsmith.orchestrator import CommitOrchestrator
from commitsmith.presets import PresetCatalog
from commitsmith.server import (
    build_orchestrator,
    build_registry,
    create_server,
    handle_validate_and_commit,
    load_validators,
    preset_catalog_document,
    render,
)


class StubRepository:
    def __init__(self, *, is_repository=True, unstaged=()):
        self._is_repository = is_repository
        self.staged = []
        self.unstaged = list(unstaged)
        self.persisted = []
        self.committed = []

    def is_repository(self):
        return self._is_repository

    def has_staged_changes(self):
        return bool(self.staged)

    def list_staged_files(self):
        return list(self.staged)

    def list_unstaged_files(self):
        return list(self.unstaged)

    def stage(self, files):
        self.staged.extend(files)
        self.unstaged = []

    def get_staged_diff_text(self):
        return "--- app.py\n+++ app.py\n@@ -1 +1 @@\n-a\n+b\n" if self.staged else ""

    def persist_pending_message(self, text):
        self.persisted.append(text)

    def commit(self, text):
        self.committed.append(text)
        return CommitOutcome(success=True, commit_sha="abc1234")


def payload_of(result):
    return json.loads(result.content[0].text)


class TestRender:
    def test_failed_is_flagged_as_error(self):
        outcome = Failed(error=ErrorInfo(code=INVALID_PARAMS, message="Not in a git repository"))

        result = render(outcome)

        assert result.isError is True
        assert payload_of(result) == {
            "success": False,
            "error": {"code": INVALID_PARAMS, "message": "Not in a git repository"},
        }

    def test_committed_payload(self):
        outcome = Committed(
            message="Commit process completed successfully",
            commit_message="feat: add x",
            validation=ValidationOutcome(valid=True),
            files_staged=2,
            auto_committed=True,
            commit_sha="abc1234",
        )

        result = render(outcome)

        assert result.isError is False
        assert payload_of(result) == {
            "success": True,
            "message": "Commit process completed successfully",
            "commit_message": "feat: add x",
            "validation": {"valid": True, "warnings": []},
            "files_staged": 2,
            "auto_committed": True,
            "commit_sha": "abc1234",
            "next_step": "Commit completed successfully",
        }

    def test_confirmation_payload(self):
        result = render(ConfirmationRequired(unstaged_files=["a.py"]))

        assert result.isError is False
        assert payload_of(result)["needs_confirmation"] is True
        assert payload_of(result)["message"].startswith("Found 1 unstaged files.")


class TestWiring:
    def test_registry_holds_lint_adapter(self):
        assert build_registry(Config()).list() == ["commitlint"]

    def test_orchestrator_takes_config(self):
        config = Config(max_tokens=64, temperature=0.1, generation_timeout=5, validator="other")

        orchestrator = build_orchestrator(config, StubRepository(), build_registry(config), requester=None)

        assert isinstance(orchestrator, CommitOrchestrator)
        assert orchestrator.params.max_tokens == 64
        assert orchestrator.params.temperature == 0.1
        assert orchestrator.generation_timeout == 5
        assert orchestrator.validator_name == "other"

    @pytest.mark.asyncio
    async def test_validate_and_commit_handler(self):
        config = Config()
        registry = build_registry(config)
        await load_validators(registry)
        repository = StubRepository()
        orchestrator = build_orchestrator(config, repository, registry, requester=None)

        result = await handle_validate_and_commit(orchestrator, {"message": "feat: add x", "auto_commit": False})

        assert result.isError is False
        assert payload_of(result)["auto_committed"] is False
        assert repository.persisted == ["feat: add x"]

    @pytest.mark.asyncio
    async def test_handler_reports_failure(self):
        config = Config()
        registry = build_registry(config)
        orchestrator = build_orchestrator(config, StubRepository(), registry, requester=None)

        result = await handle_validate_and_commit(orchestrator, {"message": "feat: add x"})

        assert result.isError is True
        assert payload_of(result)["error"]["code"] == INTERNAL_ERROR
        assert "Configuration not loaded" in payload_of(result)["error"]["message"]


class TestPresetDocument:
    def test_lists_all_presets(self):
        document = preset_catalog_document(PresetCatalog())

        assert document["available_presets"] == ["default", "strict", "minimal", "descriptive"]
        assert document["presets"]["strict"]["rules"]["subject_max_length"] == 50
        json.dumps(document)


class TestCreateServer:
    @pytest.mark.asyncio
    async def test_tools_registered(self):
        server = create_server(Config(preset=Style.MINIMAL), repository=StubRepository())

        tools = {tool.name: tool for tool in await server.list_tools()}

        assert set(tools) == {"commit", "validate_and_commit"}
        commit_schema = tools["commit"].inputSchema
        assert commit_schema["required"] == ["request"]
        assert "ctx" not in commit_schema["properties"]
        assert "auto_stage" in commit_schema["properties"]

    @pytest.mark.asyncio
    async def test_resources_registered(self):
        server = create_server(Config(), repository=StubRepository())

        uris = {str(resource.uri) for resource in await server.list_resources()}

        assert uris == {"commit://presets", "commit://agent-definition"}


class TestClientSession:
    """Calls go through a connected client, the way an MCP host makes them."""

    @pytest.mark.asyncio
    async def test_failure_keeps_error_code(self):
        repository = StubRepository(is_repository=False)
        server = create_server(Config(), repository=repository)

        async with create_connected_server_and_client_session(server._mcp_server) as client:
            result = await client.call_tool("validate_and_commit", {"message": "feat: add x"})

        assert result.isError is True
        assert payload_of(result) == {
            "success": False,
            "error": {"code": INVALID_PARAMS, "message": "Not in a git repository"},
        }
        assert repository.persisted == []

    @pytest.mark.asyncio
    async def test_rejection_is_not_an_error(self):
        server = create_server(Config(), repository=StubRepository())

        async with create_connected_server_and_client_session(server._mcp_server) as client:
            result = await client.call_tool("validate_and_commit", {"message": "Added things."})

        assert result.isError is False
        payload = payload_of(result)
        assert payload["success"] is False
        assert payload["commit_message"] == "Added things."
        assert payload["validation_errors"]

    @pytest.mark.asyncio
    async def test_commit_round_trip_through_sampling(self):
        repository = StubRepository(unstaged=["src/app.py", "README.md"])
        server = create_server(Config(), repository=repository)
        sampled = []

        async def sampling_callback(context, params):
            sampled.append(params)
            return types.CreateMessageResult(
                role="assistant",
                content=types.TextContent(type="text", text="fix(app): handle empty config"),
                model="claude-3-sonnet",
                stopReason="endTurn",
            )

        async with create_connected_server_and_client_session(
            server._mcp_server, sampling_callback=sampling_callback
        ) as client:
            result = await client.call_tool("commit", {"request": "quick commit", "style": "minimal"})

        assert result.isError is False
        payload = payload_of(result)
        assert payload["files_staged"] == 2
        assert payload["commit_sha"] == "abc1234"
        assert payload["auto_committed"] is True
        assert repository.committed == ["fix(app): handle empty config"]
        assert len(sampled) == 1
        assert sampled[0].maxTokens == 200
