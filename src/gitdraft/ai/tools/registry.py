"""Tool registry: declarations advertised to the model and dispatch by name."""

from __future__ import annotations

from gitdraft.ai.tools.base import Tool, ToolCallRequest, ToolDeclaration, ToolResult
from gitdraft.core.errors import GitCommandError, InvalidArgument
from gitdraft.git.repository import RepositoryContext
from gitdraft.log import get_logger

logger = get_logger(__name__)

UNKNOWN_TOOL = "unknown tool"


class ToolRegistry:
    """Registry of all available tools."""

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        self._tools[tool.name] = tool
        logger.debug("tool_registered", tool_name=tool.name)

    def declarations(self) -> tuple[ToolDeclaration, ...]:
        return tuple(tool.declaration() for tool in self._tools.values())

    def dispatch(self, call: ToolCallRequest) -> ToolResult:
        """Run one requested tool call and wrap its output.

        An unknown tool name or a tool error the model can fix (bad or missing
        argument, unknown commit) becomes the result content; anything else
        propagates.
        """
        tool = self._tools.get(call.name)
        if tool is None:
            logger.warning("unknown_tool", tool=call.name, tool_call_id=call.id)
            return ToolResult(tool_call_id=call.id, name=call.name, content=UNKNOWN_TOOL)

        logger.info("tool_dispatch", tool=call.name, tool_call_id=call.id)
        try:
            content = tool.execute(**call.arguments)
        except (InvalidArgument, GitCommandError, TypeError) as e:
            logger.warning("tool_execution_error", tool=call.name, error=str(e))
            content = f"error: {e}"
        return ToolResult(tool_call_id=call.id, name=call.name, content=content)

    @classmethod
    def for_repository(cls, repo: RepositoryContext) -> ToolRegistry:
        """Registry holding the built-in commit tools."""
        from gitdraft.ai.tools.commits import GetCommitMessageTool, ListCommitsTool

        registry = cls()
        registry.register(ListCommitsTool(repo))
        registry.register(GetCommitMessageTool(repo))
        return registry
