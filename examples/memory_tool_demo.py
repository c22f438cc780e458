"""Memory tool example for AgentMem Python SDK"""

import asyncio

from agentmem_sdk import (
    CreateCommand,
    InsertCommand,
    MemoryTool,
    MemoryToolOptions,
    RenameCommand,
    StrReplaceCommand,
    ViewCommand,
)


async def main():
    # Open a memory tool on a local SQLite file, scoped to one agent
    tool = await MemoryTool.open(
        MemoryToolOptions(path="memory-demo.db", agent_context="demo-agent", ttl=3600)
    )

    print("=== Memory Tool Example ===\n")

    print("1. Start from a clean namespace:")
    await tool.clear_all()
    print(await tool.view(ViewCommand(path="/memories")), "\n")

    print("2. Create files (directories are implicit):")
    print(await tool.create(CreateCommand(path="/memories/user/preferences.md", file_text="- likes Python\n- terse answers")))
    print(await tool.create(CreateCommand(path="/memories/tasks/current.md", file_text="# Current task\nRefactor parser")))
    print(await tool.view(ViewCommand(path="/memories")), "\n")

    print("3. Edit a file:")
    print(await tool.str_replace(StrReplaceCommand(path="/memories/tasks/current.md", old_str="parser", new_str="lexer")))
    print(await tool.insert(InsertCommand(path="/memories/tasks/current.md", insert_line=2, insert_text="Status: started")))
    print(await tool.view(ViewCommand(path="/memories/tasks/current.md")), "\n")

    print("4. Move a directory:")
    print(await tool.rename(RenameCommand(old_path="/memories/tasks", new_path="/memories/archive/tasks")))
    print(await tool.get_all_paths(), "\n")

    print("5. Raw tool calls report errors as results:")
    result = await tool.handle({"command": "str_replace", "path": "/memories/user/preferences.md", "old_str": "-", "new_str": "*"})
    print(f"  error={result.error!r} code={result.error_code}\n")

    print("=== Example Complete ===")

    await tool.close()


if __name__ == "__main__":
    asyncio.run(main())
