"""Exception hierarchy. Every error reaches the user as a message."""

from __future__ import annotations


class GitDraftError(Exception):
    """Base class for all gitdraft errors."""


class ConfigError(GitDraftError):
    """Configuration file could not be loaded or validated."""


class MissingExecutable(GitDraftError):
    """A required external binary was not found."""


class MissingCredential(GitDraftError):
    """No usable backend credential could be resolved."""


class TransportError(GitDraftError):
    """The call to the chat backend did not complete."""


class ProtocolError(GitDraftError):
    """The backend replied with something that is not the expected structure."""


class MalformedResponse(ProtocolError):
    """The reply parsed but lacks the fields required by the active dialect."""


class BackendError(GitDraftError):
    """The backend replied with an explicit error payload."""


class InvalidArgument(GitDraftError):
    """An operation was invoked without a required argument."""


class GitCommandError(GitDraftError):
    """A git command exited with a non-zero status."""

    def __init__(self, args: list[str], returncode: int, detail: str):
        self.command = args
        self.returncode = returncode
        self.detail = detail
        super().__init__(f"git {' '.join(args)}: {detail}")


class LoopExceeded(GitDraftError):
    """The model kept requesting tools past the configured round ceiling."""
