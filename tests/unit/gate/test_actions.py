"""Tests for action gating and labels."""

import pytest

from gitgate.core.config import LabelConfig, LabelsConfig
from gitgate.gate import ActionFlags, ActionKind, GitActionGate, Phase, PushMode
from gitgate.model import BranchStatus
from gitgate.status import summarize


def pr(status):
    return {
        "type": "pr",
        "pr_info": {"number": 1, "url": "https://example.com/1", "status": status},
    }


def summary_of(**kwargs):
    return summarize([BranchStatus.model_validate({"repo_id": "r1", **kwargs})])


@pytest.fixture
def gate():
    return GitActionGate()


def test_merge_enabled_with_commits_ahead(gate):
    result = gate.evaluate(summary_of(commits_ahead=2), False)
    assert result.merge.enabled
    assert result.merge.label == "Merge"
    assert result.merge.phase is Phase.IDLE


@pytest.mark.parametrize("ahead,open_pr", [(0, False), (0, True), (3, True)])
def test_merge_disabled_without_commits_or_with_open_pr(gate, ahead, open_pr):
    merges = [pr("open")] if open_pr else []
    result = gate.evaluate(summary_of(commits_ahead=ahead, merges=merges), False)
    assert not result.merge.enabled


def test_merge_zero_ahead_no_pulse_is_disabled(gate):
    result = gate.evaluate(summary_of(commits_ahead=0), False, ActionFlags())
    assert not result.merge.enabled


def test_success_pulse_keeps_merge_label(gate):
    flags = ActionFlags(merge_success=True)
    result = gate.evaluate(summary_of(commits_ahead=0), False, flags)
    assert result.merge.enabled
    assert result.merge.label == "Merged!"
    assert result.merge.phase is Phase.SUCCESS


@pytest.mark.parametrize("kwargs,running,flags", [
    ({"merges": [pr("merged")]}, False, ActionFlags()),
    ({"conflicted_files": ["a"], "conflict_op": "merge"}, False, ActionFlags()),
    ({}, True, ActionFlags()),
    ({}, False, ActionFlags(merging=True)),
])
def test_merge_blockers(gate, kwargs, running, flags):
    result = gate.evaluate(summary_of(commits_ahead=1, **kwargs), running, flags)
    assert not result.merge.enabled


def test_merging_label(gate):
    result = gate.evaluate(
        summary_of(commits_ahead=1), False, ActionFlags(merging=True)
    )
    assert result.merge.label == "Merging..."
    assert result.merge.phase is Phase.PENDING


def test_success_wins_over_pending(gate):
    flags = ActionFlags(merging=True, merge_success=True)
    result = gate.evaluate(summary_of(commits_ahead=1), False, flags)
    assert result.merge.phase is Phase.SUCCESS


def test_push_to_open_pr(gate):
    result = gate.evaluate(
        summary_of(merges=[pr("open")], remote_commits_ahead=2), False
    )
    assert result.push_mode is PushMode.PUSH_TO_PR
    assert result.push.kind is ActionKind.PUSH
    assert result.push.enabled
    assert result.push.label == "Push"


def test_push_to_open_pr_disabled_when_remote_in_sync(gate):
    result = gate.evaluate(
        summary_of(merges=[pr("open")], commits_ahead=4), False
    )
    assert not result.push.enabled


def test_push_labels(gate):
    summary = summary_of(merges=[pr("open")], remote_commits_ahead=1)
    pushing = gate.evaluate(summary, False, ActionFlags(pushing=True))
    assert pushing.push.label == "Pushing..."
    assert not pushing.push.enabled
    pushed = gate.evaluate(summary, False, ActionFlags(push_success=True))
    assert pushed.push.label == "Pushed!"


def test_create_pr_mode(gate):
    result = gate.evaluate(summary_of(commits_ahead=1), False)
    assert result.push_mode is PushMode.CREATE_PR
    assert result.push.kind is ActionKind.CREATE_PR
    assert result.push.enabled
    assert result.push.label == "Create PR"


def test_create_pr_needs_local_or_remote_commits(gate):
    assert not gate.evaluate(summary_of(), False).push.enabled
    assert gate.evaluate(summary_of(remote_commits_ahead=1), False).push.enabled


def test_create_pr_label_is_static(gate):
    result = gate.evaluate(
        summary_of(commits_ahead=1), False, ActionFlags(pushing=True)
    )
    assert result.push.label == "Create PR"
    assert not result.push.enabled


def test_rebase_and_change_target(gate):
    summary = summary_of()
    result = gate.evaluate(summary, False)
    assert result.rebase.enabled
    assert result.change_target.enabled
    assert result.force_push.enabled

    running = gate.evaluate(summary, True)
    assert not running.rebase.enabled
    assert not running.change_target.enabled
    assert not running.force_push.enabled

    rebasing = gate.evaluate(summary, False, ActionFlags(rebasing=True))
    assert not rebasing.rebase.enabled
    assert rebasing.rebase.label == "Rebasing..."
    assert rebasing.change_target.enabled

    changing = gate.evaluate(summary, False, ActionFlags(changing_target=True))
    assert not changing.change_target.enabled


def test_conflicts_disable_everything(gate):
    result = gate.evaluate(
        summary_of(
            commits_ahead=1, conflicted_files=["a"], conflict_op="rebase",
        ),
        False,
    )
    for state in (result.merge, result.push, result.force_push,
                  result.rebase, result.change_target):
        assert not state.enabled


def test_no_summary_disables_all(gate):
    result = gate.evaluate(None, False)
    assert not result.merge.enabled
    assert not result.push.enabled
    assert not result.rebase.enabled
    assert not result.change_target.enabled
    assert result.merge.label == "Merge"


def test_labels_from_config():
    labels = LabelsConfig(merge=LabelConfig(idle="Land", pending="Landing"))
    result = GitActionGate(labels).evaluate(
        summary_of(commits_ahead=1), False, ActionFlags(merging=True)
    )
    assert result.merge.label == "Landing"


def test_for_kind(gate):
    result = gate.evaluate(summary_of(commits_ahead=1), False)
    assert result.for_kind(ActionKind.CREATE_PR) is result.push
    assert result.for_kind(ActionKind.REBASE) is result.rebase
