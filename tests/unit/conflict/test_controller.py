"""Tests for the conflict lifecycle controller."""

import asyncio

import pytest

from gitgate.conflict import (
    ConflictLifecycleController,
    ConflictPhase,
    build_resolve_conflicts_instructions,
    cap_files,
)
from gitgate.core.config import ConflictDisplayConfig
from gitgate.model import BranchStatus, ConflictOp


def conflicted(files=("a.py", "b.py"), op="merge", **kwargs):
    return BranchStatus.model_validate({
        "repo_id": "r1",
        "repo_name": "app",
        "target_branch_name": "main",
        "conflicted_files": list(files),
        "conflict_op": op,
        **kwargs,
    })


CLEAN = BranchStatus(repo_id="r1", target_branch_name="main")


@pytest.fixture
def controller(fake_service):
    return ConflictLifecycleController(
        "w1", "r1", fake_service, attempt_branch="vk/feature"
    )


def test_refresh_phases(controller):
    assert controller.phase is ConflictPhase.CLEAN
    assert controller.refresh(conflicted()) is ConflictPhase.CONFLICTED
    assert controller.refresh(CLEAN) is ConflictPhase.CLEAN
    assert controller.refresh(None) is ConflictPhase.CLEAN


def test_rebase_in_progress_without_files_is_conflicted(controller):
    status = conflicted(files=(), op="rebase", is_rebase_in_progress=True)
    assert controller.refresh(status) is ConflictPhase.CONFLICTED


def test_snapshot_while_conflicted(controller):
    controller.refresh(conflicted())
    snap = controller.snapshot(resolution_instructions="fix it")
    assert snap.phase is ConflictPhase.CONFLICTED
    assert snap.op is ConflictOp.MERGE
    assert snap.op_label == "Merge"
    assert snap.heading == "Merge in progress: 'vk/feature' → 'main'."
    assert snap.files == ["a.py", "b.py"]
    assert snap.file_list.heading == "Conflicted files (2):"
    assert snap.can_abort
    assert snap.can_resolve


def test_resolve_requires_instructions(controller):
    controller.refresh(conflicted())
    snap = controller.snapshot()
    assert snap.can_abort
    assert not snap.can_resolve


def test_snapshot_respects_enable_flags(controller):
    controller.refresh(conflicted())
    snap = controller.snapshot("fix", enable_abort=False, enable_resolve=False)
    assert not snap.can_abort
    assert not snap.can_resolve


def test_clean_snapshot(controller):
    controller.refresh(CLEAN)
    snap = controller.snapshot("fix")
    assert not snap.can_abort
    assert not snap.can_resolve
    assert snap.files == []


def test_unknown_branch_heading(fake_service):
    ctl = ConflictLifecycleController("w1", "r1", fake_service)
    ctl.refresh(conflicted(op="cherry_pick"))
    assert ctl.banner_heading() == (
        "A Git operation with merge conflicts is in progress."
    )
    assert ctl.op_label() == "Cherry-pick"


def test_unknown_op_label(controller):
    controller.refresh(conflicted(op=None))
    assert controller.op_label() == "Operation"


def test_file_cap_and_overflow():
    files = [f"f{i}.py" for i in range(10)]
    listing = cap_files(files, ConflictDisplayConfig())
    assert len(listing.visible) == 8
    assert listing.total == 10
    assert listing.has_more
    assert listing.heading == "Conflicted files (8 of 10):"

    exact = cap_files(files[:8], ConflictDisplayConfig())
    assert exact.heading == "Conflicted files (8):"
    assert not exact.has_more


def test_file_cap_is_configurable():
    display = ConflictDisplayConfig(max_visible_files=2, files_overflow="/{total}")
    listing = cap_files(["a", "b", "c"], display)
    assert listing.visible == ["a", "b"]
    assert listing.heading == "Conflicted files (2/3):"


def test_instructions():
    text = build_resolve_conflicts_instructions(
        "vk/feature", "main", ["a.py", "b.py"], ConflictOp.REBASE, "app"
    )
    assert "Rebase of 'main' into 'vk/feature' in repository 'app'" in text
    assert "- a.py" in text
    assert "- b.py" in text
    assert build_resolve_conflicts_instructions("b", "main", []) is None


def test_controller_instructions(controller):
    controller.refresh(conflicted())
    assert "- a.py" in controller.resolution_instructions()
    controller.refresh(CLEAN)
    assert controller.resolution_instructions() is None


@pytest.mark.asyncio
async def test_abort_success(controller, fake_service):
    controller.refresh(conflicted())
    assert await controller.abort()
    assert controller.phase is ConflictPhase.CLEAN
    assert fake_service.called("abort_conflicts") == [
        ("abort_conflicts", "w1", "r1")
    ]
    assert not controller.aborting


@pytest.mark.asyncio
async def test_abort_failure_keeps_files(controller, fake_service):
    controller.refresh(conflicted())
    fake_service.failures["abort_conflicts"] = "index.lock exists"

    assert not await controller.abort()
    assert controller.phase is ConflictPhase.CONFLICTED
    snap = controller.snapshot()
    assert snap.error == "index.lock exists"
    assert snap.files == ["a.py", "b.py"]
    assert snap.can_abort


@pytest.mark.asyncio
async def test_double_abort_is_rejected(controller, fake_service):
    controller.refresh(conflicted())
    release = asyncio.Event()
    fake_service.blockers["abort_conflicts"] = release

    first = asyncio.create_task(controller.abort())
    await asyncio.sleep(0)
    assert controller.aborting
    assert controller.phase is ConflictPhase.ABORTING
    assert not controller.snapshot("fix").can_abort
    assert not controller.snapshot("fix").can_resolve

    # Second click before the first settles
    assert not await controller.abort()

    release.set()
    assert await first
    assert len(fake_service.called("abort_conflicts")) == 1


@pytest.mark.asyncio
async def test_refresh_during_abort_stays_aborting(controller, fake_service):
    controller.refresh(conflicted())
    release = asyncio.Event()
    fake_service.blockers["abort_conflicts"] = release

    task = asyncio.create_task(controller.abort())
    await asyncio.sleep(0)
    assert controller.refresh(conflicted()) is ConflictPhase.ABORTING

    release.set()
    await task
    assert controller.refresh(CLEAN) is ConflictPhase.CLEAN


@pytest.mark.asyncio
async def test_failed_abort_follows_refresh_during_call(controller, fake_service):
    controller.refresh(conflicted())
    release = asyncio.Event()
    fake_service.blockers["abort_conflicts"] = release
    fake_service.failures["abort_conflicts"] = "index.lock exists"

    task = asyncio.create_task(controller.abort())
    await asyncio.sleep(0)
    # The conflict went away on its own while the abort was pending
    controller.refresh(CLEAN)

    release.set()
    assert not await task
    assert controller.phase is ConflictPhase.CLEAN
    snap = controller.snapshot("fix")
    assert snap.files == []
    assert not snap.can_abort
    assert snap.error is None


@pytest.mark.asyncio
async def test_unexpected_abort_error_settles_phase(controller, fake_service):
    controller.refresh(conflicted())

    async def broken(workspace_id, repo_id):
        raise KeyError("bug")

    fake_service.abort_conflicts = broken
    with pytest.raises(KeyError):
        await controller.abort()
    assert not controller.aborting
    assert controller.phase is ConflictPhase.CONFLICTED


@pytest.mark.asyncio
async def test_abort_outside_conflict_is_rejected(controller, fake_service):
    controller.refresh(CLEAN)
    assert not await controller.abort()
    assert fake_service.calls == []


@pytest.mark.asyncio
async def test_clean_refresh_clears_error(controller, fake_service):
    controller.refresh(conflicted())
    fake_service.failures["abort_conflicts"] = "boom"
    await controller.abort()
    assert controller.error == "boom"
    controller.refresh(CLEAN)
    assert controller.error is None
