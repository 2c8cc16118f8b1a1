"""Tests for branch status and merge records."""

from pydantic import TypeAdapter

from gitgate.model import (
    BranchStatus,
    ConflictOp,
    DirectMerge,
    ExecutionProcess,
    PrMerge,
    PrStatus,
    RunReason,
    Workspace,
)


def test_backend_nulls_become_defaults():
    status = BranchStatus.model_validate({
        "repo_id": "r1",
        "commits_ahead": None,
        "conflicted_files": None,
        "merges": None,
        "conflict_op": None,
    })
    assert status.commits_ahead == 0
    assert status.conflicted_files == []
    assert status.merges == []
    assert status.conflict_op is None


def test_merges_parse_by_type():
    status = BranchStatus.model_validate({
        "repo_id": "r1",
        "merges": [
            {
                "type": "pr",
                "pr_info": {
                    "number": 12,
                    "url": "https://example.com/pull/12",
                    "status": "open",
                },
            },
            {"type": "direct", "merge_commit": "abc123"},
        ],
    })
    assert isinstance(status.merges[0], PrMerge)
    assert status.merges[0].pr_info.status is PrStatus.OPEN
    assert isinstance(status.merges[1], DirectMerge)
    assert status.merges[1].merge_commit == "abc123"


def test_in_conflict_markers():
    assert not BranchStatus(repo_id="r").in_conflict
    assert BranchStatus(
        repo_id="r", conflict_op=ConflictOp.MERGE, conflicted_files=["a"]
    ).in_conflict
    assert BranchStatus(
        repo_id="r", conflict_op=ConflictOp.REBASE,
        is_rebase_in_progress=True,
    ).in_conflict


def test_inconsistent_conflict_state_is_accepted():
    """External status is authoritative even when it contradicts itself."""
    status = BranchStatus(repo_id="r", conflicted_files=["a.py"])
    assert status.conflict_op is None
    assert status.in_conflict


def test_display_name_falls_back_to_id():
    assert BranchStatus(repo_id="r1").display_name == "r1"
    assert BranchStatus(repo_id="r1", repo_name="app").display_name == "app"


def test_dev_server_not_shown_in_logs():
    assert RunReason.CODING_AGENT.shown_in_logs
    assert RunReason.SETUP_SCRIPT.shown_in_logs
    assert RunReason.CLEANUP_SCRIPT.shown_in_logs
    assert not RunReason.DEV_SERVER.shown_in_logs


def test_process_list_parses():
    procs = TypeAdapter(list[ExecutionProcess]).validate_python([
        {"id": "p1", "run_reason": "codingagent"},
        {"id": "p2", "run_reason": "devserver", "dropped": True},
    ])
    assert procs[0].run_reason is RunReason.CODING_AGENT
    assert procs[1].dropped


def test_workspace_binding_lookup():
    ws = Workspace.model_validate({
        "id": "w1",
        "branch": "vk/feature",
        "repos": [{"repo_id": "r1", "target_branch": "main"}],
    })
    assert ws.binding("r1").target_branch == "main"
    assert ws.binding("missing") is None
