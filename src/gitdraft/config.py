"""Configuration loader with YAML parsing, env-var interpolation, and Pydantic validation."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from gitdraft.core.errors import ConfigError
from gitdraft.core.types import DraftIntent


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class GitConfig(_Frozen):
    git_exec: str = "git"
    default_branch: str = "main"  # used when the repository has no core.default
    include_diff: bool = False  # full patch instead of file names for get_commit_message
    story_id_pattern: str = r"\[([A-Z][A-Z0-9]+-\d+)\]"


class AIConfig(_Frozen):
    backend: Literal["auto", "openai", "ollama"] = "auto"
    max_tool_rounds: int = Field(default=8, ge=1)
    http_timeout: Optional[float] = None


class OpenAIConfig(_Frozen):
    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4o-mini"


class OllamaConfig(_Frozen):
    base_url: str = "http://localhost:11434/api"
    model: str = "llama3.1"


_TOOLS_HINT = (
    "Use the list_commits tool to list the commits on the current branch and "
    "get_commit_message to read each of them. Commits labeled 'Business context' "
    "carry the rationale for the work, the others carry its implementation."
)


class PromptsConfig(_Frozen):
    commit_message: str = (
        "You write git commit messages. The user gives you a draft or notes; reply "
        "with a commit message only: a summary line of at most 72 characters, a blank "
        "line, then a short body wrapped at 72 columns explaining what changed and why. "
        "Keep any bracketed ticket identifier from the draft at the start of the summary."
    )
    user_story: str = (
        "You write user stories. Turn the user's notes into a story whose first line is "
        "a short title, followed by 'As a <role>, I want <goal>, so that <benefit>.' and "
        "a bulleted list of acceptance criteria. Reply with the story only."
    )
    pull_request: str = (
        "You write pull request descriptions. " + _TOOLS_HINT + " Reply in Markdown "
        "with a title line, a summary section and a list of notable changes."
    )
    code_review: str = (
        "You review code. " + _TOOLS_HINT + " Reply in Markdown with findings grouped "
        "by commit: bugs first, then risks, then style remarks. Be concrete."
    )
    todo_list: str = (
        "You plan work. " + _TOOLS_HINT + " Turn the user's notes and the branch "
        "history into a Markdown checklist ('- [ ] ...') of the remaining tasks."
    )

    def for_intent(self, intent: DraftIntent) -> str:
        return getattr(self, intent.value)


class AppConfig(_Frozen):
    log_level: str = "WARNING"
    git: GitConfig = Field(default_factory=GitConfig)
    ai: AIConfig = Field(default_factory=AIConfig)
    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)
    ollama: OllamaConfig = Field(default_factory=OllamaConfig)
    prompts: PromptsConfig = Field(default_factory=PromptsConfig)


_ENV_VAR_PATTERN = re.compile(r"\$\{(\w+)\}")


def _interpolate_env_vars(text: str) -> str:
    """Replace ${VAR_NAME} patterns with environment variable values."""

    def _replace(match: re.Match) -> str:
        value = os.environ.get(match.group(1))
        if value is None:
            return match.group(0)
        return value

    return _ENV_VAR_PATTERN.sub(_replace, text)


def load_config(config_path: str | Path = "gitdraft.yaml", env_path: str | Path = ".env") -> AppConfig:
    """Load and validate configuration. A missing config file yields the defaults."""
    env_file = Path(env_path)
    if env_file.exists():
        load_dotenv(env_file)

    config_file = Path(config_path)
    if not config_file.exists():
        return AppConfig()

    raw_text = config_file.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(_interpolate_env_vars(raw_text))
    except yaml.YAMLError as e:
        raise ConfigError(f"{config_file}: {e}") from e

    if data is None:
        return AppConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file}: expected a mapping at the top level")

    try:
        return AppConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"{config_file}: {e}") from e
