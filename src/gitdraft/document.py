"""Documents exchanged with the host, and the hooks fired when they close."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from gitdraft.core.types import DraftIntent
from gitdraft.git.branching import BootstrapReport, FeatureBranchBootstrapper
from gitdraft.log import get_logger

logger = get_logger(__name__)


class Document(Protocol):
    """The unit of text the host hands to the core and gets back."""

    def read_text(self) -> str: ...

    def read_lines(self) -> list[str]: ...

    def replace_lines(self, lines: list[str]) -> None: ...


class MemoryDocument:
    def __init__(self, text: str = ""):
        self.lines: list[str] = text.split("\n") if text else []

    def read_text(self) -> str:
        return "\n".join(self.lines)

    def read_lines(self) -> list[str]:
        return list(self.lines)

    def replace_lines(self, lines: list[str]) -> None:
        self.lines = list(lines)


class FileDocument:
    """A document backed by a file on disk. A missing file reads as empty."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def read_text(self) -> str:
        if not self.path.exists():
            return ""
        return self.path.read_text(encoding="utf-8")

    def read_lines(self) -> list[str]:
        return self.read_text().splitlines()

    def replace_lines(self, lines: list[str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("\n".join(lines) + "\n" if lines else "", encoding="utf-8")


class DocumentLifecycle(Protocol):
    """Hook the host calls with a document's final text when it closes."""

    def on_close(self, kind: DraftIntent, text: str) -> None: ...


class BootstrapHook:
    """Starts a feature branch when a user story document is closed."""

    def __init__(self, bootstrapper: FeatureBranchBootstrapper):
        self._bootstrapper = bootstrapper
        self.last_report: BootstrapReport | None = None

    def on_close(self, kind: DraftIntent, text: str) -> None:
        if kind != DraftIntent.USER_STORY:
            return
        logger.info("user_story_closed", length=len(text))
        self.last_report = self._bootstrapper.bootstrap(text)


def scratch_path(git_dir: Path, kind: DraftIntent) -> Path:
    """Location of the scratch document of *kind* inside the repository's git dir."""
    return git_dir / "gitdraft" / f"{kind.value.upper()}.md"
