"""Iterative tool execution loop for chat backends that request tool calls."""

from __future__ import annotations

from typing import Any

from gitdraft.ai.client import (
    BackendAdapter,
    ErrorReply,
    FinalTextReply,
    MalformedReply,
    ToolCallsReply,
)
from gitdraft.ai.tools.registry import ToolRegistry
from gitdraft.core.errors import BackendError, LoopExceeded, MalformedResponse
from gitdraft.core.types import LoopState
from gitdraft.document import Document
from gitdraft.log import get_logger

logger = get_logger(__name__)

MAX_TOOL_ROUNDS = 8


class ConversationLoop:
    """Runs one drafting conversation until the model answers with plain text.

    Each round sends the whole transcript, then either writes the final text
    into the document, or executes the requested tools in order, appends the
    assistant message and one result per call, and sends again. Backend
    errors and malformed replies end the run; nothing is retried. A model
    that still asks for tools after ``max_tool_rounds`` rounds raises
    ``LoopExceeded``.
    """

    def __init__(
        self,
        adapter: BackendAdapter,
        tool_registry: ToolRegistry,
        max_tool_rounds: int = MAX_TOOL_ROUNDS,
    ):
        self._adapter = adapter
        self._tool_registry = tool_registry
        self._max_tool_rounds = max_tool_rounds
        self.state = LoopState.AWAITING_RESPONSE
        self.round_trips = 0

    def run(self, system_prompt: str, content: str, document: Document) -> list[str]:
        """Draft into *document* and return the lines written."""
        transcript: list[dict[str, Any]] = [
            self._adapter.system_message(system_prompt),
            self._adapter.user_message(content),
        ]
        self.state = LoopState.AWAITING_RESPONSE
        self.round_trips = 0

        try:
            lines = self._converse(transcript)
        except Exception as e:
            self.state = LoopState.FAILED
            logger.error("conversation_failed", error=str(e), round_trips=self.round_trips)
            raise

        document.replace_lines(lines)
        self.state = LoopState.DONE
        logger.info("conversation_done", round_trips=self.round_trips, lines=len(lines))
        return lines

    def _converse(self, transcript: list[dict[str, Any]]) -> list[str]:
        declarations = self._tool_registry.declarations()
        tool_rounds = 0

        while True:
            self.state = LoopState.AWAITING_RESPONSE
            body = self._adapter.build_request(transcript, declarations)
            raw = self._adapter.send(body)
            self.round_trips += 1
            reply = self._adapter.normalize_reply(raw)

            match reply:
                case ErrorReply(message=message):
                    raise BackendError(message)
                case MalformedReply(reason=reason):
                    raise MalformedResponse(f"malformed {self._adapter.dialect} reply: {reason}")
                case FinalTextReply(text=text):
                    return text.splitlines()
                case ToolCallsReply(calls=calls, message=message):
                    if tool_rounds >= self._max_tool_rounds:
                        raise LoopExceeded(
                            f"model still requested tools after {self._max_tool_rounds} rounds"
                        )
                    tool_rounds += 1
                    self.state = LoopState.DISPATCHING_TOOLS
                    transcript.append(message)
                    for call in calls:
                        result = self._tool_registry.dispatch(call)
                        transcript.append(self._adapter.shape_tool_result(result))
                    logger.debug("tool_round_done", round=tool_rounds, calls=len(calls))
