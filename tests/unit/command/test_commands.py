"""Tests for the CLI subcommands against a fake service."""

import json

import pytest

from gitgate.command import AbortCommand, RestoreCommand, StatusCommand
from gitgate.model import (
    BranchStatus,
    ExecutionProcess,
    ExecutionProcessRepoState,
)


@pytest.fixture
def patched(monkeypatch, fake_service):
    """Every command talks to the fake service."""
    for module in ("status", "restore", "abort"):
        monkeypatch.setattr(
            f"gitgate.command.{module}.CommandGitService",
            lambda config, runner=None: fake_service,
        )
    return fake_service


def conflicted():
    return BranchStatus(
        repo_id="r1",
        target_branch_name="main",
        conflicted_files=["a.py"],
        conflict_op="merge",
    )


@pytest.mark.asyncio
async def test_status_report(state, patched, capsys):
    patched.statuses = [
        BranchStatus(repo_id="r1", commits_ahead=2, target_branch_name="main"),
        conflicted().model_copy(update={"repo_id": "r2"}),
    ]
    command = StatusCommand(workspace_id="w1", branch="vk/feature")
    assert await command.run_workflow(state) == 0

    report = json.loads(capsys.readouterr().out)
    assert report["workspace_id"] == "w1"
    first, second = report["repos"]
    assert first["chip"] == "diverged"
    assert first["gate"]["merge"]["enabled"]
    assert first["conflict"] is None
    assert second["chip"] == "conflicts"
    assert second["conflict"]["heading"] == (
        "Merge in progress: 'vk/feature' → 'main'."
    )
    assert state.runtime.status.report == report
    assert [s.repo_id for s in state.runtime.status.statuses] == ["r1", "r2"]


@pytest.mark.asyncio
async def test_status_service_failure(state, patched):
    patched.failures["fetch_branch_status"] = "offline"
    assert await StatusCommand(workspace_id="w1").run_workflow(state) == 1


@pytest.mark.asyncio
async def test_restore_confirmed(state, patched, capsys):
    patched.processes = [ExecutionProcess(id="p1", run_reason="codingagent")]
    patched.repo_states["p1"] = [ExecutionProcessRepoState(
        execution_process_id="p1", repo_id="r1", before_head_commit="aaa",
    )]
    patched.statuses = [BranchStatus(repo_id="r1", head_oid="bbb")]

    command = RestoreCommand(
        workspace_id="w1", process_id="p1", worktree_reset=True,
    )
    assert await command.run_workflow(state) == 0

    output = json.loads(capsys.readouterr().out)
    assert output["status"] == "confirmed"
    assert output["summary"]["can_git_reset"]
    assert output["result"]["perform_git_reset"]


@pytest.mark.asyncio
async def test_restore_blocked(state, patched, capsys):
    patched.processes = [ExecutionProcess(id="p1", run_reason="codingagent")]
    patched.statuses = [BranchStatus(
        repo_id="r1", head_oid="bbb", has_uncommitted_changes=True,
    )]
    patched.repo_states["p1"] = [ExecutionProcessRepoState(
        execution_process_id="p1", repo_id="r1", before_head_commit="aaa",
    )]

    command = RestoreCommand(workspace_id="w1", process_id="p1")
    assert await command.run_workflow(state) == 2
    assert json.loads(capsys.readouterr().out)["result"] is None


@pytest.mark.asyncio
async def test_restore_service_failure(state, patched):
    patched.failures["list_processes"] = "offline"
    command = RestoreCommand(workspace_id="w1", process_id="p1")
    assert await command.run_workflow(state) == 1


@pytest.mark.asyncio
async def test_abort(state, patched):
    patched.statuses = [conflicted()]
    assert await AbortCommand(workspace_id="w1").run_workflow(state) == 0
    assert patched.called("abort_conflicts") == [("abort_conflicts", "w1", "r1")]


@pytest.mark.asyncio
async def test_abort_nothing_conflicted(state, patched):
    patched.statuses = [BranchStatus(repo_id="r1")]
    assert await AbortCommand(workspace_id="w1").run_workflow(state) == 2


@pytest.mark.asyncio
async def test_abort_failure(state, patched):
    patched.statuses = [conflicted()]
    patched.failures["abort_conflicts"] = "cannot abort"
    assert await AbortCommand(workspace_id="w1").run_workflow(state) == 1
