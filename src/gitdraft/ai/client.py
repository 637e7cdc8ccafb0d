"""Chat backend abstraction with OpenAI-style and Ollama-style dialects."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional, Union

import httpx

from gitdraft.ai.tools.base import ToolCallRequest, ToolDeclaration, ToolResult
from gitdraft.config import AppConfig
from gitdraft.core.errors import MissingCredential, ProtocolError, TransportError
from gitdraft.core.types import Dialect
from gitdraft.log import get_logger

logger = get_logger(__name__)

OPENAI_API_KEY_ENV = "OPENAI_API_KEY"
OPENAI_BASE_URL_ENV = "OPENAI_BASE_URL"
OPENAI_MODEL_ENV = "OPENAI_MODEL"
OLLAMA_BASE_URL_ENV = "OLLAMA_BASE_URL"
OLLAMA_MODEL_ENV = "OLLAMA_MODEL"


@dataclass(frozen=True)
class BackendSession:
    dialect: Dialect
    base_url: str
    endpoint_path: str
    model_name: str
    api_key: Optional[str] = None

    @property
    def url(self) -> str:
        return self.base_url.rstrip("/") + self.endpoint_path


def resolve_session(config: AppConfig, environ: Mapping[str, str]) -> BackendSession:
    """Pick the dialect and endpoint for one drafting run.

    An OpenAI API key in the environment selects the OpenAI dialect; without
    one the Ollama dialect is used. Environment overrides win over configured
    defaults.
    """
    api_key = environ.get(OPENAI_API_KEY_ENV) or None
    backend = config.ai.backend

    if backend == "openai" and api_key is None:
        raise MissingCredential(f"backend 'openai' is configured but {OPENAI_API_KEY_ENV} is not set")

    if backend == "openai" or (backend == "auto" and api_key is not None):
        return BackendSession(
            dialect=Dialect.OPENAI,
            base_url=environ.get(OPENAI_BASE_URL_ENV) or config.openai.base_url,
            endpoint_path="/chat/completions",
            model_name=environ.get(OPENAI_MODEL_ENV) or config.openai.model,
            api_key=api_key,
        )

    return BackendSession(
        dialect=Dialect.OLLAMA,
        base_url=environ.get(OLLAMA_BASE_URL_ENV) or config.ollama.base_url,
        endpoint_path="/chat",
        model_name=environ.get(OLLAMA_MODEL_ENV) or config.ollama.model,
    )


@dataclass(frozen=True)
class ErrorReply:
    message: str


@dataclass(frozen=True)
class ToolCallsReply:
    calls: list[ToolCallRequest]
    message: dict[str, Any]  # assistant message to append, in dialect shape


@dataclass(frozen=True)
class FinalTextReply:
    text: str


@dataclass(frozen=True)
class MalformedReply:
    reason: str


NormalizedReply = Union[ErrorReply, ToolCallsReply, FinalTextReply, MalformedReply]


def _error_message(raw: dict[str, Any]) -> str | None:
    """Extract a backend error payload: {"error": "..."} or {"error": {"message": ...}}."""
    error = raw.get("error")
    if not error:
        return None
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(error)


class BackendAdapter(ABC):
    """One chat-completion dialect: message shapes, request body, reply parsing."""

    def __init__(
        self,
        session: BackendSession,
        http_client: httpx.Client | None = None,
        timeout: float | None = None,
    ):
        self.session = session
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout)

    @property
    def dialect(self) -> Dialect:
        return self.session.dialect

    @abstractmethod
    def system_message(self, text: str) -> dict[str, Any]:
        ...

    @abstractmethod
    def user_message(self, text: str) -> dict[str, Any]:
        ...

    @abstractmethod
    def shape_tool_result(self, result: ToolResult) -> dict[str, Any]:
        """Transcript message carrying one tool result back to the model."""
        ...

    @abstractmethod
    def normalize_reply(self, raw: Any) -> NormalizedReply:
        ...

    def headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    def build_request(
        self,
        transcript: list[dict[str, Any]],
        tools: tuple[ToolDeclaration, ...] | list[ToolDeclaration],
    ) -> dict[str, Any]:
        return {
            "model": self.session.model_name,
            "messages": list(transcript),
            "tools": [t.to_api_dict() for t in tools],
            "tool_choice": "auto",
            "stream": False,
        }

    def send(self, body: dict[str, Any]) -> Any:
        """POST one request and return the decoded JSON reply."""
        url = self.session.url
        logger.debug("backend_request", url=url, model=body.get("model"), message_count=len(body.get("messages", [])))
        try:
            response = self._http.post(url, json=body, headers=self.headers())
        except httpx.HTTPError as e:
            raise TransportError(f"request to {url} failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise ProtocolError(
                f"backend replied with status {response.status_code} and a non-JSON body"
            ) from e

        logger.debug("backend_response", status=response.status_code)
        if response.is_error and not (isinstance(data, dict) and _error_message(data)):
            raise ProtocolError(f"backend replied with status {response.status_code}")
        return data

    def close(self) -> None:
        if self._owns_http:
            self._http.close()


class OpenAIAdapter(BackendAdapter):
    """OpenAI chat completions: block content, tool results correlated by id."""

    def system_message(self, text: str) -> dict[str, Any]:
        return {"role": "system", "content": [{"type": "text", "text": text}]}

    def user_message(self, text: str) -> dict[str, Any]:
        return {"role": "user", "content": [{"type": "text", "text": text}]}

    def shape_tool_result(self, result: ToolResult) -> dict[str, Any]:
        return {
            "role": "tool",
            "tool_call_id": result.tool_call_id,
            "content": [{"type": "text", "text": result.content}],
        }

    def headers(self) -> dict[str, str]:
        headers = super().headers()
        if self.session.api_key:
            headers["Authorization"] = f"Bearer {self.session.api_key}"
        return headers

    def normalize_reply(self, raw: Any) -> NormalizedReply:
        if not isinstance(raw, dict):
            return MalformedReply("reply is not a JSON object")
        error = _error_message(raw)
        if error:
            return ErrorReply(error)

        choices = raw.get("choices")
        if not isinstance(choices, list) or not choices:
            return MalformedReply("reply has no 'choices'")
        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        if not isinstance(message, dict):
            return MalformedReply("first choice has no 'message'")

        raw_calls = message.get("tool_calls")
        if raw_calls:
            return self._tool_calls(message, raw_calls)

        text = self._text(message.get("content"))
        if text is None:
            return MalformedReply("message has neither content nor tool calls")
        return FinalTextReply(text)

    @staticmethod
    def _text(content: Any) -> str | None:
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            return "".join(
                block.get("text", "") for block in content if isinstance(block, dict) and block.get("type") == "text"
            )
        return None

    def _tool_calls(self, message: dict[str, Any], raw_calls: Any) -> NormalizedReply:
        if not isinstance(raw_calls, list):
            return MalformedReply("'tool_calls' is not a list")

        calls: list[ToolCallRequest] = []
        for raw_call in raw_calls:
            function = raw_call.get("function") if isinstance(raw_call, dict) else None
            if not isinstance(function, dict) or not function.get("name"):
                return MalformedReply("tool call without a function name")
            arguments = function.get("arguments") or "{}"
            if isinstance(arguments, str):
                try:
                    arguments = json.loads(arguments)
                except json.JSONDecodeError:
                    return MalformedReply(f"arguments of '{function['name']}' are not valid JSON")
            if not isinstance(arguments, dict):
                return MalformedReply(f"arguments of '{function['name']}' are not an object")
            calls.append(ToolCallRequest(id=str(raw_call.get("id", "")), name=function["name"], arguments=arguments))

        assistant: dict[str, Any] = {"role": "assistant", "tool_calls": raw_calls}
        text = self._text(message.get("content"))
        if text:
            assistant["content"] = [{"type": "text", "text": text}]
        return ToolCallsReply(calls=calls, message=assistant)


class OllamaAdapter(BackendAdapter):
    """Ollama chat API: string content, tool results correlated by tool name."""

    def system_message(self, text: str) -> dict[str, Any]:
        return {"role": "system", "content": text}

    def user_message(self, text: str) -> dict[str, Any]:
        return {"role": "user", "content": text}

    def shape_tool_result(self, result: ToolResult) -> dict[str, Any]:
        return {"role": "assistant", "tool_name": result.name, "content": result.content}

    def normalize_reply(self, raw: Any) -> NormalizedReply:
        if not isinstance(raw, dict):
            return MalformedReply("reply is not a JSON object")
        error = _error_message(raw)
        if error:
            return ErrorReply(error)

        message = raw.get("message")
        if not isinstance(message, dict):
            return MalformedReply("reply has no 'message'")

        raw_calls = message.get("tool_calls")
        if raw_calls:
            if not isinstance(raw_calls, list):
                return MalformedReply("'tool_calls' is not a list")
            calls: list[ToolCallRequest] = []
            for index, raw_call in enumerate(raw_calls):
                function = raw_call.get("function") if isinstance(raw_call, dict) else None
                if not isinstance(function, dict) or not function.get("name"):
                    return MalformedReply("tool call without a function name")
                arguments = function.get("arguments") or {}
                if not isinstance(arguments, dict):
                    return MalformedReply(f"arguments of '{function['name']}' are not an object")
                calls.append(ToolCallRequest(id=f"call_{index}", name=function["name"], arguments=arguments))

            content = message.get("content")
            assistant = {
                "role": "assistant",
                "content": content if isinstance(content, str) else "",
                "tool_calls": raw_calls,
            }
            return ToolCallsReply(calls=calls, message=assistant)

        content = message.get("content")
        if not isinstance(content, str):
            return MalformedReply("message has neither content nor tool calls")
        return FinalTextReply(content)


def create_adapter(
    session: BackendSession,
    http_client: httpx.Client | None = None,
    timeout: float | None = None,
) -> BackendAdapter:
    """Create the adapter for the session's dialect."""
    match session.dialect:
        case Dialect.OPENAI:
            return OpenAIAdapter(session, http_client=http_client, timeout=timeout)
        case Dialect.OLLAMA:
            return OllamaAdapter(session, http_client=http_client, timeout=timeout)
        case _:
            raise ValueError(f"Unknown dialect: {session.dialect}")
