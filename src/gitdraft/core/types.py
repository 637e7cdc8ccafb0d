"""Shared types and enumerations."""

from __future__ import annotations

from enum import StrEnum


class DraftIntent(StrEnum):
    COMMIT_MESSAGE = "commit_message"
    USER_STORY = "user_story"
    PULL_REQUEST = "pull_request"
    CODE_REVIEW = "code_review"
    TODO_LIST = "todo_list"


class Dialect(StrEnum):
    OPENAI = "openai"
    OLLAMA = "ollama"


class LoopState(StrEnum):
    AWAITING_RESPONSE = "awaiting_response"
    DISPATCHING_TOOLS = "dispatching_tools"
    DONE = "done"
    FAILED = "failed"
