"""
Runs a complete filter command against an in-memory editor host.

The source is an unsaved document, so the result is streamed into a new
buffer and no file is left behind.
"""
import asyncio

from filterline import (
    Document,
    FilterCommand,
    MemoryEditorHost,
    PatternHistory,
    Polarity,
    Settings,
    Workspace,
)


async def main():
    workspace = Workspace()
    document = workspace.open(
        Document(uri="untitled:Untitled-1", text="apple\nbanana\ngrape\nmango\n")
    )
    host = MemoryEditorHost(workspace, active=document)

    command = FilterCommand(
        Polarity.NOT_CONTAINS,
        settings=Settings(),
        history=PatternHistory(),
        host=host,
    )
    result = await command.filter("an")

    print(f"--- Result: {result.placement.decision.value} ---")
    print(host.buffers[0].text, end="")
    print("--- Messages ---")
    for message in command.notifier.messages:
        print(f"{message.level}: {message.text}")


if __name__ == "__main__":
    asyncio.run(main())
