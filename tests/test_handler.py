import pytest

from conftest import ScriptedBackend, git, ollama_text, ollama_tool_calls, openai_text
from gitdraft.ai.client import create_adapter
from gitdraft.ai.handler import DraftHandler
from gitdraft.ai.tools.registry import ToolRegistry
from gitdraft.app import GitDraftApp
from gitdraft.config import AIConfig, AppConfig
from gitdraft.core.errors import MissingCredential
from gitdraft.core.types import DraftIntent
from gitdraft.document import MemoryDocument


class EmptyRepo:
    def commits_since_branch_off(self):
        return []

    def commit_detail(self, commit_hash):
        raise AssertionError("not expected")


def make_handler(replies, environ=None, config=None):
    backend = ScriptedBackend(replies)
    sessions = []

    def factory(session):
        sessions.append(session)
        return create_adapter(session, http_client=backend.client())

    handler = DraftHandler(
        config or AppConfig(),
        ToolRegistry.for_repository(EmptyRepo()),
        environ=environ if environ is not None else {},
        adapter_factory=factory,
    )
    return handler, backend, sessions


def test_line_content_is_joined_with_newlines():
    handler, backend, sessions = make_handler([ollama_text("feat: add login")])
    document = MemoryDocument()

    handler.draft(DraftIntent.COMMIT_MESSAGE, ["add login", "", "uses oauth"], document)

    messages = backend.bodies[0]["messages"]
    assert messages[0] == {"role": "system", "content": AppConfig().prompts.commit_message}
    assert messages[1] == {"role": "user", "content": "add login\n\nuses oauth"}
    assert document.read_lines() == ["feat: add login"]
    assert sessions[0].model_name == "llama3.1"


def test_each_intent_uses_its_prompt():
    prompts = AppConfig().prompts
    for intent in DraftIntent:
        handler, backend, _ = make_handler([ollama_text("ok")])
        handler.draft(intent, "notes", MemoryDocument())
        assert backend.bodies[0]["messages"][0]["content"] == getattr(prompts, intent.value)


def test_code_review_is_seeded_with_empty_content():
    handler, backend, _ = make_handler([ollama_tool_calls(("list_commits", {})), ollama_text("LGTM")])

    handler.draft(DraftIntent.CODE_REVIEW, "ignored text", MemoryDocument())

    assert backend.bodies[0]["messages"][1] == {"role": "user", "content": ""}


def test_openai_key_selects_openai_dialect():
    handler, backend, sessions = make_handler([openai_text("Story")], environ={"OPENAI_API_KEY": "sk-1"})

    handler.draft(DraftIntent.USER_STORY, "notes", MemoryDocument())

    assert str(backend.requests[0].url) == "https://api.openai.com/v1/chat/completions"
    assert backend.bodies[0]["messages"][1]["content"] == [{"type": "text", "text": "notes"}]


def test_missing_credential_aborts_before_network():
    config = AppConfig(ai=AIConfig(backend="openai"))
    handler, backend, sessions = make_handler([], config=config)

    with pytest.raises(MissingCredential):
        handler.draft(DraftIntent.PULL_REQUEST, "notes", MemoryDocument())

    assert backend.requests == []
    assert sessions == []


def test_app_drafts_pull_request_from_branch_history(repo_dir):
    git(repo_dir, "commit", "--quiet", "--allow-empty", "-m", "Add OAuth login [PROJ-42]")
    story_hash = git(repo_dir, "rev-parse", "HEAD")
    backend = ScriptedBackend(
        [
            ollama_tool_calls(("list_commits", {})),
            ollama_tool_calls(("get_commit_message", {"hash": story_hash})),
            ollama_text("# Add OAuth login\n\nImplements PROJ-42."),
        ]
    )
    app = GitDraftApp(
        AppConfig(),
        cwd=repo_dir,
        environ={},
        adapter_factory=lambda session: create_adapter(session, http_client=backend.client()),
    )
    document = app.open_scratch(DraftIntent.PULL_REQUEST)

    app.handler.draft(DraftIntent.PULL_REQUEST, document.read_lines(), document)

    assert document.path == repo_dir / ".git" / "gitdraft" / "PULL_REQUEST.md"
    assert document.read_lines() == ["# Add OAuth login", "", "Implements PROJ-42."]
    tool_messages = [m for m in backend.bodies[2]["messages"] if m.get("tool_name")]
    assert tool_messages[0]["content"] == f'["{story_hash}"]'
    assert tool_messages[1]["content"].startswith("Business context:")


def test_commit_message_scratch_is_seeded_with_story_id(repo_dir):
    git(repo_dir, "commit", "--quiet", "--allow-empty", "-m", "Add OAuth login [PROJ-42]")
    app = GitDraftApp(AppConfig(), cwd=repo_dir, environ={})

    document = app.open_scratch(DraftIntent.COMMIT_MESSAGE)

    assert document.read_lines() == ["[PROJ-42] "]


def test_closing_user_story_bootstraps_branch(repo_dir):
    app = GitDraftApp(AppConfig(), cwd=repo_dir, environ={})

    app.close_document(DraftIntent.TODO_LIST, "Not a story")
    assert app.bootstrap_hook.last_report is None

    app.close_document(DraftIntent.USER_STORY, "Speed up search\n\nAs a user...")
    assert app.bootstrap_hook.last_report.branch == "speed-up-search"
    assert app.repo.current_branch() == "speed-up-search"
