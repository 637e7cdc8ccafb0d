import json

from gitdraft.ai.tools.base import ToolCallRequest
from gitdraft.ai.tools.registry import UNKNOWN_TOOL, ToolRegistry
from gitdraft.core.errors import GitCommandError
from gitdraft.git.repository import CommitRecord


class FakeRepo:
    def __init__(self):
        self.detail_calls = []

    def commits_since_branch_off(self):
        return ["bbb", "aaa"]

    def commit_detail(self, commit_hash):
        self.detail_calls.append(commit_hash)
        if commit_hash == "bad":
            raise GitCommandError(["show", commit_hash], 128, "bad object bad")
        return CommitRecord(hash=commit_hash, message="Story", diff_or_filenames="", is_business_context=True)


def test_declarations_are_advertised():
    registry = ToolRegistry.for_repository(FakeRepo())
    declarations = registry.declarations()

    assert [d.name for d in declarations] == ["list_commits", "get_commit_message"]
    api = declarations[1].to_api_dict()
    assert api["type"] == "function"
    assert api["function"]["parameters"]["required"] == ["hash"]


def test_list_commits_returns_json_list():
    registry = ToolRegistry.for_repository(FakeRepo())

    result = registry.dispatch(ToolCallRequest(id="call_1", name="list_commits", arguments={}))

    assert result.tool_call_id == "call_1"
    assert result.name == "list_commits"
    assert json.loads(result.content) == ["bbb", "aaa"]


def test_get_commit_message_renders_record():
    repo = FakeRepo()
    registry = ToolRegistry.for_repository(repo)

    result = registry.dispatch(ToolCallRequest(id="c", name="get_commit_message", arguments={"hash": "aaa"}))

    assert result.content == "Business context:\n\ncommit aaa\n\nStory"
    assert repo.detail_calls == ["aaa"]


def test_repeated_calls_query_again():
    repo = FakeRepo()
    registry = ToolRegistry.for_repository(repo)
    call = ToolCallRequest(id="c", name="get_commit_message", arguments={"hash": "aaa"})

    registry.dispatch(call)
    registry.dispatch(call)

    assert repo.detail_calls == ["aaa", "aaa"]


def test_missing_hash_is_reported_to_model():
    repo = FakeRepo()
    registry = ToolRegistry.for_repository(repo)

    result = registry.dispatch(ToolCallRequest(id="c", name="get_commit_message", arguments={}))

    assert result.content.startswith("error:")
    assert "hash" in result.content
    assert repo.detail_calls == []


def test_git_failure_is_reported_to_model():
    registry = ToolRegistry.for_repository(FakeRepo())

    result = registry.dispatch(ToolCallRequest(id="c", name="get_commit_message", arguments={"hash": "bad"}))

    assert result.content.startswith("error:")


def test_unknown_tool_returns_marker():
    registry = ToolRegistry.for_repository(FakeRepo())

    result = registry.dispatch(ToolCallRequest(id="c9", name="rm_rf", arguments={}))

    assert result.content == UNKNOWN_TOOL
    assert result.tool_call_id == "c9"


def test_option_like_hash_never_reaches_git(repo, tmp_path):
    target = tmp_path / "written.txt"
    registry = ToolRegistry.for_repository(repo)

    result = registry.dispatch(ToolCallRequest(id="c", name="get_commit_message", arguments={"hash": f"--output={target}"}))

    assert result.content.startswith("error:")
    assert not target.exists()


def test_unexpected_argument_names_are_reported_to_model():
    repo = FakeRepo()
    registry = ToolRegistry.for_repository(repo)

    result = registry.dispatch(ToolCallRequest(id="c", name="get_commit_message", arguments={"hash": "aaa", "self": 1}))

    assert result.content.startswith("error:")
    assert repo.detail_calls == []
