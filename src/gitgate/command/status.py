"""Status command - report aggregated status, gates and conflicts."""

from __future__ import annotations

import json

from pydantic import BaseModel, Field

from gitgate.core.config import State
from gitgate.core.log import logger
from gitgate.model import Workspace
from gitgate.orchestrator import GitActionOrchestrator
from gitgate.service import CommandGitService, GitServiceError


def build_report(orchestrator: GitActionOrchestrator) -> dict:
    """Per-repository summary, gate and conflict snapshot."""
    repos = []
    for status in orchestrator.statuses:
        summary = orchestrator.summary(status.repo_id)
        gate = orchestrator.gate_for(status.repo_id)
        snapshot = (
            orchestrator.conflict_snapshot(status.repo_id)
            if status.in_conflict else None
        )
        repos.append({
            "repo_id": status.repo_id,
            "repo_name": status.display_name,
            "target_branch": status.target_branch_name,
            "chip": summary.chip.value,
            "commits_ahead": summary.commits_ahead,
            "commits_behind": summary.commits_behind,
            "remote_commits_ahead": summary.remote_commits_ahead,
            "merge_info": summary.merge_info.model_dump(mode="json"),
            "gate": gate.model_dump(mode="json"),
            "conflict": (
                snapshot.model_dump(mode="json") if snapshot else None
            ),
        })
    return {
        "workspace_id": orchestrator.workspace.id,
        "selected_repo_id": orchestrator.repo_id(),
        "attempt_running": orchestrator.is_attempt_running,
        "repos": repos,
    }


class StatusCommand(BaseModel):
    """Show branch status, enabled actions and conflicts.

    Reads branch status from the configured service and prints one JSON
    report per repository: headline chip, merge/PR facts, the gate for
    every action and, for conflicted repositories, the conflict banner.
    """

    workspace_id: str = Field(description="Workspace (attempt) id")
    repo_id: str | None = Field(
        default=None, description="Repository the view is scoped to"
    )
    branch: str | None = Field(
        default=None, description="Attempt branch, used in headings"
    )
    attempt_running: bool = Field(
        default=False, description="Treat the attempt as running"
    )

    async def run_workflow(self, state: State) -> int:
        """Returns:
            Exit code (0=success, 1=service failure)
        """
        service = CommandGitService(state.config.service)
        orchestrator = GitActionOrchestrator(
            Workspace(id=self.workspace_id, branch=self.branch or ""),
            service,
            status_source=service,
            labels=state.config.labels,
            display=state.config.conflicts,
            timing=state.config.timing,
            selected_repo_id=self.repo_id,
        )
        with orchestrator:
            try:
                statuses = await service.fetch_branch_status(
                    self.workspace_id
                )
            except GitServiceError as e:
                logger.error(f"Failed to read branch status: {e}")
                return 1
            orchestrator.refresh(statuses)
            await orchestrator.set_attempt_running(self.attempt_running)

            report = build_report(orchestrator)
            state.runtime.status.statuses = orchestrator.statuses
            state.runtime.status.report = report

        print(json.dumps(report, indent=2))
        return 0
