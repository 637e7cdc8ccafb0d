"""Application wiring - builds every component from one configuration value."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from gitdraft.ai.handler import AdapterFactory, DraftHandler
from gitdraft.ai.tools.registry import ToolRegistry
from gitdraft.config import AppConfig
from gitdraft.core.types import DraftIntent
from gitdraft.document import BootstrapHook, DocumentLifecycle, FileDocument, scratch_path
from gitdraft.git.branching import FeatureBranchBootstrapper
from gitdraft.git.repository import RepositoryContext
from gitdraft.log import get_logger

logger = get_logger(__name__)


class GitDraftApp:
    """Top-level object the host talks to."""

    def __init__(
        self,
        config: AppConfig,
        cwd: str | Path | None = None,
        environ: Mapping[str, str] | None = None,
        adapter_factory: AdapterFactory | None = None,
    ):
        self.config = config
        self.repo = RepositoryContext(config.git, cwd)
        self.tool_registry = ToolRegistry.for_repository(self.repo)
        self.handler = DraftHandler(config, self.tool_registry, environ=environ, adapter_factory=adapter_factory)
        self.bootstrapper = FeatureBranchBootstrapper(self.repo)
        self.bootstrap_hook = BootstrapHook(self.bootstrapper)
        self.lifecycle_hooks: list[DocumentLifecycle] = [self.bootstrap_hook]

    def scratch_document(self, kind: DraftIntent) -> FileDocument:
        return FileDocument(scratch_path(self.repo.git_dir(), kind))

    def open_scratch(self, kind: DraftIntent) -> FileDocument:
        """Return the scratch document of *kind*, creating and seeding it if needed."""
        document = self.scratch_document(kind)
        if not document.path.exists():
            document.replace_lines(self._seed_lines(kind))
            logger.info("scratch_created", kind=kind.value, path=str(document.path))
        return document

    def _seed_lines(self, kind: DraftIntent) -> list[str]:
        if kind != DraftIntent.COMMIT_MESSAGE:
            return []
        story_id = self.repo.story_id()
        return [f"[{story_id}] "] if story_id else []

    def close_document(self, kind: DraftIntent, text: str) -> None:
        for hook in self.lifecycle_hooks:
            hook.on_close(kind, text)
