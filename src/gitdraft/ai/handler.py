"""Drafting facade: intent -> system prompt -> conversation loop -> document."""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping, Sequence

from gitdraft.ai.client import BackendAdapter, BackendSession, create_adapter, resolve_session
from gitdraft.ai.tool_runner import ConversationLoop
from gitdraft.ai.tools.registry import ToolRegistry
from gitdraft.config import AppConfig
from gitdraft.core.types import DraftIntent
from gitdraft.document import Document
from gitdraft.log import get_logger

logger = get_logger(__name__)

AdapterFactory = Callable[[BackendSession], BackendAdapter]


class DraftHandler:
    """Drafts one artifact per call into the caller's document."""

    def __init__(
        self,
        config: AppConfig,
        tool_registry: ToolRegistry,
        environ: Mapping[str, str] | None = None,
        adapter_factory: AdapterFactory | None = None,
    ):
        self._config = config
        self._tool_registry = tool_registry
        self._environ = environ if environ is not None else os.environ
        self._adapter_factory = adapter_factory or self._default_adapter

    def _default_adapter(self, session: BackendSession) -> BackendAdapter:
        return create_adapter(session, timeout=self._config.ai.http_timeout)

    def draft(self, intent: DraftIntent, content: str | Sequence[str], document: Document) -> list[str]:
        """Replace *document* with the model's draft for *intent*.

        Code reviews are seeded with empty content; the model collects the
        branch history through its tools.
        """
        if intent == DraftIntent.CODE_REVIEW:
            text = ""
        elif isinstance(content, str):
            text = content
        else:
            text = "\n".join(content)

        session = resolve_session(self._config, self._environ)
        logger.info("draft_started", intent=intent.value, dialect=session.dialect.value, model=session.model_name)

        adapter = self._adapter_factory(session)
        try:
            loop = ConversationLoop(adapter, self._tool_registry, self._config.ai.max_tool_rounds)
            return loop.run(self._config.prompts.for_intent(intent), text, document)
        finally:
            adapter.close()
