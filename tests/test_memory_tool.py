"""MemoryTool Integration Tests"""

import os
import tempfile

import pytest

from agentmem_sdk import (
    CreateCommand,
    DeleteCommand,
    InsertCommand,
    InvalidCommandError,
    MemoryTool,
    MemoryToolOptions,
    RenameCommand,
    StrReplaceCommand,
    ToolResult,
    ViewCommand,
    parse_command,
)

from conftest import RecordingStore


class TestParseCommand:
    """Tool input parsing"""

    def test_parses_every_command(self):
        assert parse_command({"command": "view", "path": "/memories"}) == ViewCommand(path="/memories")
        assert parse_command({"command": "create", "path": "/memories/a", "file_text": "t"}) == CreateCommand(
            path="/memories/a", file_text="t"
        )
        assert parse_command(
            {"command": "str_replace", "path": "/memories/a", "old_str": "o", "new_str": "n"}
        ) == StrReplaceCommand(path="/memories/a", old_str="o", new_str="n")
        assert parse_command(
            {"command": "insert", "path": "/memories/a", "insert_line": 2, "insert_text": "t"}
        ) == InsertCommand(path="/memories/a", insert_line=2, insert_text="t")
        assert parse_command({"command": "delete", "path": "/memories/a"}) == DeleteCommand(path="/memories/a")
        assert parse_command(
            {"command": "rename", "old_path": "/memories/a", "new_path": "/memories/b"}
        ) == RenameCommand(old_path="/memories/a", new_path="/memories/b")

    def test_view_range(self):
        command = parse_command({"command": "view", "path": "/memories/a", "view_range": [3, -1]})
        assert command.view_range == (3, -1)

    def test_view_range_defaults_for_nulls(self):
        command = parse_command({"command": "view", "path": "/memories/a", "view_range": [None, None]})
        assert command.view_range == (1, -1)

    def test_rejects_bad_view_range(self):
        with pytest.raises(InvalidCommandError, match="view_range"):
            parse_command({"command": "view", "path": "/memories/a", "view_range": [1]})
        with pytest.raises(InvalidCommandError, match="view_range"):
            parse_command({"command": "view", "path": "/memories/a", "view_range": ["1", 2]})

    def test_rejects_unknown_command(self):
        with pytest.raises(InvalidCommandError, match="Unknown memory command: 'chmod'"):
            parse_command({"command": "chmod", "path": "/memories/a"})

    def test_rejects_missing_field(self):
        with pytest.raises(InvalidCommandError, match="Missing required field 'file_text' for create"):
            parse_command({"command": "create", "path": "/memories/a"})

    def test_rejects_wrong_type(self):
        with pytest.raises(InvalidCommandError, match="'insert_line' for insert must be of type int"):
            parse_command({"command": "insert", "path": "/memories/a", "insert_line": "1", "insert_text": "t"})
        with pytest.raises(InvalidCommandError):
            parse_command({"command": "insert", "path": "/memories/a", "insert_line": True, "insert_text": "t"})


@pytest.mark.asyncio
class TestHandle:
    """Raw tool-call handling"""

    async def test_success(self, tool):
        """Should return the handler output"""
        result = await tool.handle({"command": "create", "path": "/memories/a.md", "file_text": "hi"})
        assert result == ToolResult(output="File created successfully at /memories/a.md")
        assert result.is_error is False
        assert result.content == "File created successfully at /memories/a.md"

    async def test_error_keeps_message(self, tool):
        """Should capture the error message and code"""
        result = await tool.handle({"command": "view", "path": "/memories/missing"})
        assert result.is_error is True
        assert result.error == "Path not found: /memories/missing"
        assert result.error_code == "ENOENT"
        assert result.content == "Path not found: /memories/missing"

    async def test_invalid_path(self, tool):
        """Should report paths outside the root"""
        result = await tool.handle({"command": "view", "path": "/etc"})
        assert result.error == "Path must start with /memories, got: /etc"
        assert result.error_code == "EINVALPATH"

    async def test_invalid_payload(self, tool):
        """Should report malformed tool input"""
        result = await tool.handle({"command": "delete"})
        assert result.error_code == "EINVAL"

    async def test_full_session(self, tool):
        """Should run a realistic sequence of commands"""
        steps = [
            {"command": "view", "path": "/memories"},
            {"command": "create", "path": "/memories/progress.md", "file_text": "# Progress\n- started"},
            {"command": "insert", "path": "/memories/progress.md", "insert_line": 2, "insert_text": "- step 1\n"},
            {"command": "str_replace", "path": "/memories/progress.md", "old_str": "started", "new_str": "began"},
            {"command": "rename", "old_path": "/memories/progress.md", "new_path": "/memories/task/progress.md"},
            {"command": "view", "path": "/memories/task/progress.md"},
        ]
        results = [await tool.handle(step) for step in steps]
        assert all(not result.is_error for result in results)
        assert results[0].output == "Directory: /memories\n(empty)"
        assert results[-1].output == "   1: # Progress\n   2: - began\n   3: - step 1"


@pytest.mark.asyncio
class TestExecute:
    """Command dispatch"""

    async def test_execute_dispatches(self, tool):
        """Should route each command type to its handler"""
        assert await tool.execute(CreateCommand(path="/memories/a", file_text="x")) == (
            "File created successfully at /memories/a"
        )
        assert await tool.execute(ViewCommand(path="/memories/a")) == "   1: x"
        assert await tool.execute(DeleteCommand(path="/memories/a")) == "File deleted: /memories/a"

    async def test_execute_rejects_unknown(self, tool):
        """Should reject objects that are not commands"""
        with pytest.raises(InvalidCommandError):
            await tool.execute({"command": "view", "path": "/memories"})


@pytest.mark.asyncio
class TestUtilityOperations:
    """clear_all and get_all_paths"""

    async def test_get_all_paths_sorted(self, tool):
        """Should list every file path in order"""
        for path in ("/memories/z.md", "/memories/a/b.md", "/memories/m.md"):
            await tool.create(CreateCommand(path=path, file_text="x"))
        assert await tool.get_all_paths() == ["/memories/a/b.md", "/memories/m.md", "/memories/z.md"]

    async def test_clear_all(self, tool):
        """Should delete every memory and report the count"""
        for path in ("/memories/a.md", "/memories/b/c.md"):
            await tool.create(CreateCommand(path=path, file_text="x"))
        assert await tool.clear_all() == 2
        assert await tool.get_all_paths() == []
        assert await tool.view(ViewCommand(path="/memories")) == "Directory: /memories\n(empty)"

    async def test_clear_all_empty(self, tool):
        """Should be a no-op on an empty namespace"""
        assert await tool.clear_all() == 0


@pytest.mark.asyncio
class TestAgentContextIsolation:
    """Multi-tenant key prefixes"""

    async def test_contexts_do_not_share_memories(self, store):
        """Should keep each agent context separate"""
        alice = MemoryTool(store, MemoryToolOptions(agent_context="alice"))
        bob = MemoryTool(store, MemoryToolOptions(agent_context="bob"))
        shared = MemoryTool(store)

        await alice.create(CreateCommand(path="/memories/a.md", file_text="alice"))
        await bob.create(CreateCommand(path="/memories/a.md", file_text="bob"))

        assert await alice.view(ViewCommand(path="/memories/a.md")) == "   1: alice"
        assert await bob.view(ViewCommand(path="/memories/a.md")) == "   1: bob"
        assert await shared.get_all_paths() == []

        await alice.clear_all()
        assert await bob.get_all_paths() == ["/memories/a.md"]

    async def test_key_layout(self, store):
        """Should store keys as prefix:context:path"""
        tool = MemoryTool(store, MemoryToolOptions(key_prefix="agents", agent_context="a1"))
        await tool.create(CreateCommand(path="/memories/x.md", file_text="x"))
        assert await store.get("agents:a1:/memories/x.md") == "x"


@pytest.mark.asyncio
class TestExpiry:
    """Sliding-window TTL"""

    async def test_writes_apply_ttl(self, ttl_tool, recording_store):
        """Should write with expiry on create, edit and insert"""
        await ttl_tool.create(CreateCommand(path="/memories/a.md", file_text="one"))
        await ttl_tool.str_replace(StrReplaceCommand(path="/memories/a.md", old_str="one", new_str="two"))
        await ttl_tool.insert(InsertCommand(path="/memories/a.md", insert_line=0, insert_text="zero"))

        writes = [args for name, args in recording_store.calls if name == "set_with_expiry"]
        assert writes == [("memory:/memories/a.md", 60)] * 3
        assert "set" not in recording_store.names()

        remaining = await recording_store.ttl("memory:/memories/a.md")
        assert remaining is not None and 0 < remaining <= 60

    async def test_rename_destination_gets_ttl(self, ttl_tool, recording_store):
        """Should write moved content with expiry"""
        await ttl_tool.create(CreateCommand(path="/memories/d/a.md", file_text="x"))
        recording_store.reset()
        await ttl_tool.rename(RenameCommand(old_path="/memories/d", new_path="/memories/e"))
        assert ("set_with_expiry", ("memory:/memories/e/a.md", 60)) in recording_store.calls

    async def test_view_file_refreshes_ttl(self, ttl_tool, recording_store):
        """Should slide the expiry when file content is read"""
        await ttl_tool.create(CreateCommand(path="/memories/a.md", file_text="x"))
        recording_store.reset()
        await ttl_tool.view(ViewCommand(path="/memories/a.md"))
        assert ("refresh_expiry", ("memory:/memories/a.md", 60)) in recording_store.calls

    async def test_listing_does_not_refresh_ttl(self, ttl_tool, recording_store):
        """Should not touch expiry while listing or classifying"""
        await ttl_tool.create(CreateCommand(path="/memories/d/a.md", file_text="x"))
        await ttl_tool.create(CreateCommand(path="/memories/b.md", file_text="x"))
        recording_store.reset()

        await ttl_tool.view(ViewCommand(path="/memories"))
        await ttl_tool.view(ViewCommand(path="/memories/d"))
        await ttl_tool.resolver.classify("/memories/b.md")
        await ttl_tool.get_all_paths()

        assert "refresh_expiry" not in recording_store.names()
        assert "set_with_expiry" not in recording_store.names()

    async def test_no_ttl_writes_persistent_keys(self, store):
        """Should write without expiry when no TTL is configured"""
        tool = MemoryTool(store)
        await tool.create(CreateCommand(path="/memories/a.md", file_text="x"))
        assert await store.ttl("memory:/memories/a.md") is None


class TestMemoryToolOptions:
    """Option validation"""

    def test_rejects_context_with_separator(self):
        with pytest.raises(ValueError, match="Agent context"):
            MemoryToolOptions(agent_context="a:b").validate()

    def test_rejects_non_positive_ttl(self):
        with pytest.raises(ValueError, match="TTL"):
            MemoryToolOptions(ttl=0).validate()
        with pytest.raises(ValueError, match="TTL"):
            MemoryToolOptions(ttl=-5).validate()

    def test_rejects_bad_root(self):
        for root in ("memories", "/memories/", "/mem:ories"):
            with pytest.raises(ValueError, match="Invalid namespace root"):
                MemoryToolOptions(root=root).validate()

    def test_rejects_key_prefix_with_separator(self):
        """Should keep a prefix from colliding with a prefix plus context"""
        for key_prefix in ("memory:a", ""):
            with pytest.raises(ValueError, match="Invalid key prefix"):
                MemoryToolOptions(key_prefix=key_prefix).validate()
        MemoryToolOptions(key_prefix="memory", agent_context="a").validate()

    def test_defaults_are_valid(self):
        MemoryToolOptions().validate()


@pytest.mark.asyncio
class TestMemoryToolLifecycle:
    """Opening and closing"""

    async def test_open_with_path(self):
        """Should open a SQLite-backed tool that persists"""
        with tempfile.TemporaryDirectory() as tmpdir:
            db_path = os.path.join(tmpdir, "memory.db")
            async with await MemoryTool.open(MemoryToolOptions(path=db_path)) as tool:
                await tool.create(CreateCommand(path="/memories/a.md", file_text="kept"))
            assert os.path.exists(db_path)

            async with await MemoryTool.open(MemoryToolOptions(path=db_path)) as tool:
                assert await tool.view(ViewCommand(path="/memories/a.md")) == "   1: kept"

    async def test_open_requires_exactly_one_backend(self):
        """Should require one of path or redis_url"""
        with pytest.raises(ValueError, match="exactly one of 'path' or 'redis_url'"):
            await MemoryTool.open(MemoryToolOptions())
        with pytest.raises(ValueError, match="exactly one of 'path' or 'redis_url'"):
            await MemoryTool.open(MemoryToolOptions(path="x.db", redis_url="redis://localhost"))

    async def test_open_with_does_not_close_store(self, redis_store, fake_redis):
        """Should leave an injected store open"""
        tool = await MemoryTool.open_with(redis_store)
        await tool.create(CreateCommand(path="/memories/a.md", file_text="x"))
        await tool.close()
        assert await fake_redis.get("memory:/memories/a.md") == "x"
        assert tool.get_store() is redis_store

    async def test_owned_store_is_closed(self, store):
        """Should close a store it owns"""

        class ClosingStore(RecordingStore):
            closed = False

            async def close(self):
                self.closed = True

        tool = MemoryTool(ClosingStore(store), owns_store=True)
        await tool.close()
        assert tool.get_store().closed is True
