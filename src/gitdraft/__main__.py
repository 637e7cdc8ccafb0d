"""CLI entry point for gitdraft."""

from __future__ import annotations

import argparse
import os
import shlex
import subprocess
import sys
from pathlib import Path

from gitdraft.ai.client import resolve_session
from gitdraft.app import GitDraftApp
from gitdraft.config import AppConfig, load_config
from gitdraft.core.errors import GitDraftError, MissingExecutable
from gitdraft.core.types import DraftIntent
from gitdraft.document import FileDocument
from gitdraft.git.branching import BootstrapReport
from gitdraft.log import setup_logging

_KINDS = [intent.value for intent in DraftIntent]


def _add_config_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-c", "--config", default="gitdraft.yaml", help="Path to config file")
    parser.add_argument("-e", "--env", default=".env", help="Path to .env file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gitdraft",
        description="Draft commit messages, user stories and pull requests from git history",
    )
    subparsers = parser.add_subparsers(dest="command", required=True, help="Available commands")

    draft_parser = subparsers.add_parser("draft", help="Draft an artifact into a document")
    draft_parser.add_argument("intent", choices=_KINDS)
    draft_parser.add_argument("file", nargs="?", help="Document to read and overwrite (default: scratch document)")
    _add_config_args(draft_parser)

    edit_parser = subparsers.add_parser("edit", help="Edit a scratch document, then run its close hook")
    edit_parser.add_argument("kind", choices=_KINDS)
    _add_config_args(edit_parser)

    bootstrap_parser = subparsers.add_parser("bootstrap", help="Start a feature branch from a user story file")
    bootstrap_parser.add_argument("file")
    _add_config_args(bootstrap_parser)

    check_parser = subparsers.add_parser("config-check", help="Validate configuration")
    _add_config_args(check_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config, args.env)
        setup_logging(config.log_level, verbose=args.verbose)

        if args.command == "config-check":
            _check_config(config, args.config)
            return

        app = GitDraftApp(config)
        match args.command:
            case "draft":
                _draft(app, DraftIntent(args.intent), args.file)
            case "edit":
                _edit(app, DraftIntent(args.kind))
            case "bootstrap":
                _bootstrap(app, Path(args.file))
    except GitDraftError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def _check_config(config: AppConfig, config_path: str) -> None:
    session = resolve_session(config, os.environ)
    print(f"Configuration valid: {config_path}")
    print(f"  Backend : {session.dialect.value}")
    print(f"  URL     : {session.url}")
    print(f"  Model   : {session.model_name}")
    print(f"  Git     : {config.git.git_exec} (default branch fallback: {config.git.default_branch})")
    print(f"  Rounds  : {config.ai.max_tool_rounds}")


def _draft(app: GitDraftApp, intent: DraftIntent, file: str | None) -> None:
    document = FileDocument(file) if file else app.open_scratch(intent)
    lines = app.handler.draft(intent, document.read_lines(), document)
    print(f"Wrote {len(lines)} lines to {document.path}")


def _edit(app: GitDraftApp, kind: DraftIntent) -> None:
    document = app.open_scratch(kind)
    editor = os.environ.get("VISUAL") or os.environ.get("EDITOR") or "vi"
    command = [*shlex.split(editor), str(document.path)]
    try:
        subprocess.run(command, check=False)
    except FileNotFoundError as e:
        raise MissingExecutable(f"editor not found: '{editor}'") from e

    app.close_document(kind, document.read_text())
    report = app.bootstrap_hook.last_report
    if kind == DraftIntent.USER_STORY and report is not None:
        _print_report(report)


def _bootstrap(app: GitDraftApp, path: Path) -> None:
    text = FileDocument(path).read_text()
    _print_report(app.bootstrapper.bootstrap(text))


def _print_report(report: BootstrapReport) -> None:
    if report.skipped:
        print("Nothing to do: the story is empty.")
        return
    print(f"Branch: {report.branch}")
    for step in report.steps:
        status = "ok" if step.ok else f"failed ({step.returncode})"
        print(f"  git {' '.join(step.args)}: {status}")
        if not step.ok and step.detail:
            print(f"    {step.detail}")
    if report.failures:
        sys.exit(1)


if __name__ == "__main__":
    main()
