"""Pytest configuration and fixtures for gitgate tests."""

import asyncio
import sys
import tempfile
from pathlib import Path

import pytest

from gitgate.core.log import ConsoleSink, setup_logger
from gitgate.service.base import GitServiceError


@pytest.fixture(autouse=True, scope="session")
def configure_logging():
    """Console-only logging at debug for the whole test session."""
    test_log_root = Path(tempfile.gettempdir()) / "gitgate-tests"
    setup_logger(
        log_root=test_log_root,
        run_name="test",
        console=ConsoleSink(level="debug"),
    )


@pytest.fixture
def state(monkeypatch):
    """Fully loaded State without pytest's argv leaking into the CLI
    include scan."""
    from gitgate.core.config import State

    monkeypatch.setattr(sys, "argv", ["gitgate"])
    return State()


class FakeGitService:
    """In-memory stand-in for every service protocol.

    failures maps an operation name to the error message it raises;
    blockers maps an operation name to an Event the call waits on.
    """

    def __init__(self):
        self.calls: list[tuple] = []
        self.failures: dict[str, str] = {}
        self.blockers: dict[str, asyncio.Event] = {}
        self.statuses = []
        self.processes = []
        self.repo_states = {}
        self.pr_url = "https://github.com/acme/app/pull/7"

    async def _op(self, name, *args):
        self.calls.append((name, *args))
        if name in self.blockers:
            await self.blockers[name].wait()
        if name in self.failures:
            raise GitServiceError(self.failures[name], name)

    def called(self, name) -> list[tuple]:
        return [c for c in self.calls if c[0] == name]

    async def merge(self, workspace_id, repo_id):
        await self._op("merge", workspace_id, repo_id)

    async def push(self, workspace_id, repo_id):
        await self._op("push", workspace_id, repo_id)

    async def force_push(self, workspace_id, repo_id):
        await self._op("force_push", workspace_id, repo_id)

    async def create_pr(self, workspace_id, repo_id, target_branch, title, body):
        await self._op(
            "create_pr", workspace_id, repo_id, target_branch, title, body
        )
        return self.pr_url

    async def rebase(self, workspace_id, repo_id, new_base, old_base):
        await self._op("rebase", workspace_id, repo_id, new_base, old_base)

    async def change_target_branch(self, workspace_id, repo_id, new_target):
        await self._op(
            "change_target_branch", workspace_id, repo_id, new_target
        )

    async def abort_conflicts(self, workspace_id, repo_id):
        await self._op("abort_conflicts", workspace_id, repo_id)

    async def fetch_branch_status(self, workspace_id):
        await self._op("fetch_branch_status", workspace_id)
        return list(self.statuses)

    async def list_processes(self, workspace_id):
        await self._op("list_processes", workspace_id)
        return list(self.processes)

    async def get_repo_states(self, process_id):
        await self._op("get_repo_states", process_id)
        return list(self.repo_states.get(process_id, []))


@pytest.fixture
def fake_service():
    return FakeGitService()
