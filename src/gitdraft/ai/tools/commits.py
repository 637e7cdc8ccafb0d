"""Commit history tools backed by the repository context."""

from __future__ import annotations

import json
from typing import Any

from gitdraft.ai.tools.base import Tool
from gitdraft.core.errors import InvalidArgument
from gitdraft.git.repository import RepositoryContext


class ListCommitsTool(Tool):
    """Lists the commits made on the current branch since it left the default branch."""

    def __init__(self, repo: RepositoryContext):
        self._repo = repo

    @property
    def name(self) -> str:
        return "list_commits"

    @property
    def description(self) -> str:
        return (
            "List the hashes of the commits on the current branch since it diverged "
            "from the default branch. Returns a JSON array of commit hashes."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {"type": "object", "properties": {}, "required": []}

    def execute(self, **kwargs: Any) -> str:
        return json.dumps(self._repo.commits_since_branch_off())


class GetCommitMessageTool(Tool):
    """Reads one commit: its message plus changed files (or diff)."""

    def __init__(self, repo: RepositoryContext):
        self._repo = repo

    @property
    def name(self) -> str:
        return "get_commit_message"

    @property
    def description(self) -> str:
        return (
            "Get the full message of a commit together with the files it changed. "
            "Commits that change no files are labeled 'Business context' and describe "
            "the intent of the work; the others are labeled 'Implementation context'."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "hash": {
                    "type": "string",
                    "description": "The commit hash, as returned by list_commits",
                },
            },
            "required": ["hash"],
        }

    def execute(self, **kwargs: Any) -> str:
        commit_hash = kwargs.get("hash")
        if not isinstance(commit_hash, str) or not commit_hash.strip():
            raise InvalidArgument("get_commit_message requires a 'hash' argument")
        return self._repo.commit_detail(commit_hash).render()
