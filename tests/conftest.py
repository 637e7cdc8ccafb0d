from __future__ import annotations

import json
import shutil
import subprocess
from pathlib import Path
from typing import Any

import httpx
import pytest
import structlog

from gitdraft.config import GitConfig
from gitdraft.git.repository import RepositoryContext


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    structlog.reset_defaults()


def git(repo: Path, *args: str, input: str | None = None) -> str:
    proc = subprocess.run(
        ["git", *args], cwd=repo, input=input, text=True, capture_output=True, check=True
    )
    return proc.stdout.strip()


@pytest.fixture
def git_env(monkeypatch):
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test Author")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "author@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test Author")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "author@example.com")
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("HOME", "/nonexistent-gitdraft-home")


@pytest.fixture
def repo_dir(tmp_path, git_env) -> Path:
    """A repository on 'main' with one commit and a 'feature' branch checked out."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "--quiet")
    git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    (repo / "README.md").write_text("hello\n")
    git(repo, "add", ".")
    git(repo, "commit", "--quiet", "-m", "Initial commit")
    git(repo, "checkout", "--quiet", "-b", "feature")
    return repo


@pytest.fixture
def repo(repo_dir) -> RepositoryContext:
    return RepositoryContext(GitConfig(), repo_dir)


class ScriptedBackend:
    """httpx transport that answers with queued JSON bodies and records requests."""

    def __init__(self, replies: list[Any]):
        self.replies = list(replies)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.replies.pop(0)
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, json=reply)

    @property
    def bodies(self) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


def openai_text(text: str) -> dict[str, Any]:
    return {"choices": [{"message": {"role": "assistant", "content": text}}]}


def openai_tool_calls(*calls: tuple[str, str, dict[str, Any]]) -> dict[str, Any]:
    return {
        "choices": [
            {
                "message": {
                    "role": "assistant",
                    "content": None,
                    "tool_calls": [
                        {
                            "id": call_id,
                            "type": "function",
                            "function": {"name": name, "arguments": json.dumps(arguments)},
                        }
                        for call_id, name, arguments in calls
                    ],
                }
            }
        ]
    }


def ollama_text(text: str) -> dict[str, Any]:
    return {"message": {"role": "assistant", "content": text}, "done": True}


def ollama_tool_calls(*calls: tuple[str, dict[str, Any]]) -> dict[str, Any]:
    return {
        "message": {
            "role": "assistant",
            "content": "",
            "tool_calls": [{"function": {"name": name, "arguments": arguments}} for name, arguments in calls],
        },
        "done": True,
    }
