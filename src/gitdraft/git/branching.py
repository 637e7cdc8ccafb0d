"""Feature-branch bootstrap from a drafted user story."""

from __future__ import annotations

from dataclasses import dataclass, field

from gitdraft.git.repository import RepositoryContext
from gitdraft.git.text import branch_name, is_blank_or_comment
from gitdraft.log import get_logger

logger = get_logger(__name__)


@dataclass
class StepResult:
    args: list[str]
    returncode: int
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass
class BootstrapReport:
    branch: str = ""
    steps: list[StepResult] = field(default_factory=list)

    @property
    def skipped(self) -> bool:
        return not self.steps

    @property
    def failures(self) -> list[StepResult]:
        return [s for s in self.steps if not s.ok]


class FeatureBranchBootstrapper:
    """Stash pending work and start a feature branch seeded with the story text.

    The steps run in order and a failing step does not undo the ones before it,
    nor stop the ones after it. Each failure is logged and recorded in the
    returned report so the user can finish the job by hand.
    """

    def __init__(self, repo: RepositoryContext):
        self._repo = repo

    def bootstrap(self, text: str) -> BootstrapReport:
        if is_blank_or_comment(text):
            logger.info("bootstrap_skipped", reason="empty_story")
            return BootstrapReport()

        branch = branch_name(text)
        if not branch:
            logger.warning("bootstrap_skipped", reason="empty_branch_name")
            return BootstrapReport()

        default = self._repo.default_branch()
        report = BootstrapReport(branch=branch)
        sequence: list[tuple[list[str], str | None]] = [
            (["add", "."], None),
            (["stash"], None),
            (["fetch", "--all"], None),
            (["checkout", default], None),
            (["checkout", "-B", branch], None),
            (["commit", "--no-verify", "--allow-empty", "--file", "-"], text),
        ]

        for args, stdin in sequence:
            proc = self._repo.run(args, input=stdin, check=False)
            detail = proc.stderr.strip() or proc.stdout.strip()
            step = StepResult(args=args, returncode=proc.returncode, detail=detail)
            report.steps.append(step)
            if not step.ok:
                logger.error("bootstrap_step_failed", args=args, returncode=proc.returncode, detail=detail)

        logger.info("bootstrap_done", branch=branch, failures=len(report.failures))
        return report
