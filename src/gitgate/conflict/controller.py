"""Conflict lifecycle for one repository binding.

Phases:
    clean       no conflict reported
    conflicted  the latest status reports a conflict
    aborting    an abort has been dispatched and not yet settled

Leaving conflicted happens only through a refresh that no longer
reports a conflict, or through a successful abort.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum

from pydantic import BaseModel, Field

from gitgate.core.config import ConflictDisplayConfig
from gitgate.core.log import logger
from gitgate.model import BranchStatus, ConflictOp
from gitgate.service.base import GitOperationsService, GitServiceError


class ConflictPhase(str, Enum):
    CLEAN = "clean"
    CONFLICTED = "conflicted"
    ABORTING = "aborting"


class ConflictFileList(BaseModel):
    """Display-capped view of the conflicted files."""

    visible: list[str] = Field(default_factory=list)
    total: int = 0
    heading: str = ""

    @property
    def has_more(self) -> bool:
        return self.total > len(self.visible)


class ConflictSnapshot(BaseModel):
    """Immutable view of a controller's state for rendering."""

    repo_id: str
    phase: ConflictPhase
    op: ConflictOp | None = None
    op_label: str
    heading: str
    files: list[str] = Field(default_factory=list)
    file_list: ConflictFileList
    can_abort: bool = False
    can_resolve: bool = False
    resolution_instructions: str | None = None
    error: str | None = None


def cap_files(
    files: Sequence[str], display: ConflictDisplayConfig
) -> ConflictFileList:
    """Cap the list at display.max_visible_files with an overflow count.

    Examples:
        3 files  -> "Conflicted files (3):"
        10 files -> "Conflicted files (8 of 10):"
    """
    visible = list(files[: display.max_visible_files])
    total = len(files)
    overflow = (
        display.files_overflow.format(total=total)
        if total > len(visible) else ""
    )
    heading = display.files_heading.format(
        visible=len(visible), overflow=overflow, total=total
    )
    return ConflictFileList(visible=visible, total=total, heading=heading)


def op_label(
    op: ConflictOp | None, display: ConflictDisplayConfig
) -> str:
    if op is None:
        return display.fallback_op_label
    return display.op_labels.get(op.value, display.fallback_op_label)


def banner_heading(
    op: ConflictOp | None,
    attempt_branch: str | None,
    base_branch: str | None,
    display: ConflictDisplayConfig,
) -> str:
    if not attempt_branch:
        return display.heading_unknown_branch
    return display.heading.format(
        op=op_label(op, display),
        branch=attempt_branch,
        base=base_branch or "",
    )


def build_resolve_conflicts_instructions(
    attempt_branch: str | None,
    base_branch: str | None,
    conflicted_files: Sequence[str],
    op: ConflictOp | None = None,
    repo_name: str | None = None,
    display: ConflictDisplayConfig | None = None,
) -> str | None:
    """Render the follow-up message asking the agent to resolve conflicts.

    Returns:
        Instruction text, or None when no files are conflicted
    """
    if not conflicted_files:
        return None
    display = display or ConflictDisplayConfig()

    label = op_label(op, display)
    branch = attempt_branch or "the attempt branch"
    base = base_branch or "the target branch"
    where = f" in repository '{repo_name}'" if repo_name else ""

    lines = [
        f"{label} of '{base}' into '{branch}'{where} stopped with "
        f"conflicts in {len(conflicted_files)} file(s):",
        "",
    ]
    lines += [f"- {path}" for path in conflicted_files]
    lines += [
        "",
        "Resolve every conflict marker in these files, keeping the "
        "intent of both sides, then stage the files and continue the "
        f"{label.lower()}. Do not abort the operation.",
    ]
    return "\n".join(lines)


class ConflictLifecycleController:
    """Tracks the conflict phase of one repository and guards abort."""

    def __init__(
        self,
        workspace_id: str,
        repo_id: str,
        service: GitOperationsService,
        display: ConflictDisplayConfig | None = None,
        attempt_branch: str | None = None,
    ):
        self.workspace_id = workspace_id
        self.repo_id = repo_id
        self.service = service
        self.display = display or ConflictDisplayConfig()
        self.attempt_branch = attempt_branch

        self.phase = ConflictPhase.CLEAN
        self.status: BranchStatus | None = None
        self.error: str | None = None
        # Message of the last failed abort, kept even after a clean refresh
        self.abort_failure: str | None = None
        # Read synchronously before every dispatch; reactive phase
        # alone does not stop a second call racing the first.
        self._aborting = False

    @property
    def aborting(self) -> bool:
        return self._aborting

    @property
    def files(self) -> list[str]:
        return list(self.status.conflicted_files) if self.status else []

    @property
    def op(self) -> ConflictOp | None:
        return self.status.conflict_op if self.status else None

    def refresh(self, status: BranchStatus | None) -> ConflictPhase:
        """Adopt the latest status as the truth and recompute the phase."""
        previous = self.phase
        self.status = status

        if self._aborting:
            self.phase = ConflictPhase.ABORTING
        elif status is not None and status.in_conflict:
            self.phase = ConflictPhase.CONFLICTED
        else:
            self.phase = ConflictPhase.CLEAN
            self.error = None

        if self.phase != previous:
            logger.debug(
                "Conflict phase changed",
                repo_id=self.repo_id,
                previous=previous.value,
                phase=self.phase.value,
            )
        return self.phase

    def op_label(self) -> str:
        return op_label(self.op, self.display)

    def banner_heading(self) -> str:
        base = self.status.target_branch_name if self.status else None
        return banner_heading(
            self.op, self.attempt_branch, base, self.display
        )

    def resolution_instructions(self) -> str | None:
        """Instructions for the current conflict, if any files conflict."""
        if self.status is None:
            return None
        return build_resolve_conflicts_instructions(
            self.attempt_branch,
            self.status.target_branch_name,
            self.status.conflicted_files,
            self.status.conflict_op,
            self.status.repo_name,
            self.display,
        )

    def snapshot(
        self,
        resolution_instructions: str | None = None,
        enable_abort: bool = True,
        enable_resolve: bool = True,
    ) -> ConflictSnapshot:
        conflicted = self.phase is ConflictPhase.CONFLICTED
        files = self.files
        return ConflictSnapshot(
            repo_id=self.repo_id,
            phase=self.phase,
            op=self.op,
            op_label=self.op_label(),
            heading=self.banner_heading(),
            files=files,
            file_list=cap_files(files, self.display),
            can_abort=conflicted and enable_abort and not self._aborting,
            can_resolve=(
                conflicted
                and resolution_instructions is not None
                and enable_resolve
                and not self._aborting
            ),
            resolution_instructions=resolution_instructions,
            error=self.error,
        )

    async def abort(self) -> bool:
        """Abort the in-progress operation.

        Returns:
            True when the service aborted the operation, False when the
            call was rejected or the service failed (see self.error)
        """
        if self._aborting:
            logger.warn("Abort already pending", repo_id=self.repo_id)
            return False
        if self.phase is not ConflictPhase.CONFLICTED:
            logger.warn(
                "Abort rejected outside a conflict",
                repo_id=self.repo_id,
                phase=self.phase.value,
            )
            return False

        self._aborting = True
        self.phase = ConflictPhase.ABORTING
        self.error = None
        self.abort_failure = None
        logger.info("Aborting conflicted operation", repo_id=self.repo_id)
        aborted = False
        try:
            await self.service.abort_conflicts(self.workspace_id, self.repo_id)
            aborted = True
        except GitServiceError as e:
            logger.error(
                "Abort failed", repo_id=self.repo_id, error=e.message
            )
            self.error = e.message
            self.abort_failure = e.message
            return False
        finally:
            self._aborting = False
            if not aborted:
                # A refresh may have landed while the call was in flight;
                # it decides whether the conflict (and the error) remain.
                self.refresh(self.status)

        self.phase = ConflictPhase.CLEAN
        logger.info("Conflict aborted", repo_id=self.repo_id)
        return True
