"""Read-only git queries that feed branch context to the model."""

from __future__ import annotations

import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from gitdraft.config import GitConfig
from gitdraft.core.errors import GitCommandError, InvalidArgument, MissingExecutable
from gitdraft.git.text import extract_story_id
from gitdraft.log import get_logger

logger = get_logger(__name__)

BUSINESS_CONTEXT_LABEL = "Business context:"
IMPLEMENTATION_CONTEXT_LABEL = "Implementation context:"


@dataclass(frozen=True)
class CommitRecord:
    hash: str
    message: str
    diff_or_filenames: str
    is_business_context: bool

    def render(self) -> str:
        """Labeled text handed to the model for one commit."""
        label = BUSINESS_CONTEXT_LABEL if self.is_business_context else IMPLEMENTATION_CONTEXT_LABEL
        parts = [label, f"commit {self.hash}", self.message]
        if self.diff_or_filenames:
            parts.append(self.diff_or_filenames)
        return "\n\n".join(p.strip() for p in parts if p.strip()).strip()


class RepositoryContext:
    """Wraps the git queries used by the tools and the bootstrapper."""

    def __init__(self, config: GitConfig, cwd: str | Path | None = None):
        self._config = config
        self._cwd = Path(cwd) if cwd is not None else Path.cwd()
        self._git = self._resolve_git_path(config.git_exec)

    @staticmethod
    def _resolve_git_path(git_exec: str) -> str:
        if os.path.isabs(git_exec) and os.path.exists(git_exec):
            return git_exec
        found = shutil.which(git_exec)
        if found:
            return found
        raise MissingExecutable(f"git executable not found: '{git_exec}'")

    @property
    def cwd(self) -> Path:
        return self._cwd

    def run(
        self,
        args: list[str],
        input: str | None = None,
        check: bool = True,
    ) -> subprocess.CompletedProcess[str]:
        """Run one git command in the repository and return the completed process."""
        try:
            proc = subprocess.run(
                [self._git, *args],
                cwd=self._cwd,
                input=input,
                text=True,
                capture_output=True,
            )
        except FileNotFoundError as e:
            raise MissingExecutable(f"git executable not found: '{self._git}'") from e

        if proc.returncode != 0:
            detail = proc.stderr.strip() or proc.stdout.strip() or "command failed"
            logger.debug("git_command_failed", args=args, returncode=proc.returncode, detail=detail)
            if check:
                raise GitCommandError(args, proc.returncode, detail)
        return proc

    def _output(self, args: list[str]) -> str:
        return self.run(args).stdout.strip()

    def default_branch(self) -> str:
        try:
            configured = self._output(["config", "--get", "core.default"])
        except GitCommandError:
            configured = ""
        return configured or self._config.default_branch

    def current_branch(self) -> str:
        return self._output(["rev-parse", "--abbrev-ref", "HEAD"])

    def git_dir(self) -> Path:
        path = Path(self._output(["rev-parse", "--git-dir"]))
        return path if path.is_absolute() else self._cwd / path

    def branch_off_point(self) -> str:
        """Merge-base of the default branch and HEAD, or "" when there is none."""
        try:
            return self._output(["merge-base", self.default_branch(), "HEAD"])
        except GitCommandError:
            return ""

    def commits_since_branch_off(self) -> list[str]:
        base = self.branch_off_point()
        if not base:
            return []
        output = self._output(["log", "--format=%H", f"{base}..HEAD"])
        return [line for line in output.splitlines() if line.strip()]

    def commit_detail(self, commit_hash: str) -> CommitRecord:
        commit_hash = (commit_hash or "").strip()
        if not commit_hash:
            raise InvalidArgument("a commit hash is required")
        if commit_hash.startswith("-"):
            raise InvalidArgument(f"not a commit hash: '{commit_hash}'")
        # Only a resolved SHA ever reaches `git show`.
        commit_hash = self._output(["rev-parse", "--verify", "--quiet", f"{commit_hash}^{{commit}}"])

        message = self._output(["show", "--no-patch", "--pretty=format:%B", commit_hash])
        files = self._output(["show", "--pretty=format:", "--name-only", commit_hash])
        is_business = not files

        if self._config.include_diff and not is_business:
            details = self._output(["show", "--pretty=format:", "--patch", commit_hash])
        else:
            details = files

        return CommitRecord(
            hash=commit_hash,
            message=message,
            diff_or_filenames=details,
            is_business_context=is_business,
        )

    def story_id(self) -> str:
        """First bracketed identifier in the branch's business-context commits."""
        for commit_hash in self.commits_since_branch_off():
            record = self.commit_detail(commit_hash)
            if not record.is_business_context:
                continue
            story_id = extract_story_id(record.message, self._config.story_id_pattern)
            if story_id:
                return story_id
        return ""
