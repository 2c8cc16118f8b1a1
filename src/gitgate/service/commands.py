"""Git-operations service backed by configured command templates.

Each operation maps to a template in config.service.commands. The
default templates call the backend HTTP API with curl; any command that
prints the backend's JSON reply works.
"""

from __future__ import annotations

import asyncio
import functools
import json
import shlex
from typing import Any

from pydantic import TypeAdapter, ValidationError

from gitgate.core.config import ServiceConfig
from gitgate.core.log import logger
from gitgate.core.runner import Runner
from gitgate.model import BranchStatus, ExecutionProcess, ExecutionProcessRepoState
from gitgate.service.base import GitServiceError

_statuses = TypeAdapter(list[BranchStatus])
_processes = TypeAdapter(list[ExecutionProcess])
_repo_states = TypeAdapter(list[ExecutionProcessRepoState])


def validate_reply(operation: str, adapter: TypeAdapter, data: Any) -> Any:
    """Validate a decoded reply against its model.

    Raises:
        GitServiceError: If the reply does not match the model
    """
    try:
        return adapter.validate_python(data or [])
    except ValidationError as e:
        logger.error(
            "Malformed git service reply",
            operation=operation,
            errors=e.error_count(),
        )
        raise GitServiceError(
            f"Malformed reply: {e.error_count()} validation error(s)",
            operation,
        ) from e


def unwrap_response(operation: str, stdout: str) -> Any:
    """Decode a reply, unwrapping {"success", "data", "message"}.

    Raises:
        GitServiceError: If the reply reports success: false or is not
            valid JSON
    """
    text = stdout.strip()
    if not text:
        return None
    try:
        body = json.loads(text)
    except json.JSONDecodeError as e:
        raise GitServiceError(
            f"Invalid JSON reply: {text[:200]}", operation
        ) from e

    if isinstance(body, dict) and "success" in body:
        if not body["success"]:
            raise GitServiceError(
                body.get("message") or "Request failed", operation
            )
        return body.get("data")
    return body


def error_message(stdout: str, stderr: str, exited: int) -> str:
    """Best human-readable message from a failed command."""
    try:
        body = json.loads(stdout)
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
    except (json.JSONDecodeError, TypeError):
        pass
    return stderr.strip() or stdout.strip() or f"Command exited with {exited}"


class CommandGitService:
    """Implements GitOperationsService, BranchStatusSource and
    ProcessLogSource by running command templates."""

    def __init__(self, config: ServiceConfig, runner: Runner | None = None):
        self.config = config
        self.runner = runner or Runner()

    def render(self, operation: str, **values: Any) -> str:
        """Fill an operation's template; every value is shell-quoted.

        Raises:
            GitServiceError: If no template is configured
        """
        template = self.config.commands.get(operation)
        if not template:
            raise GitServiceError(
                "No command configured for operation", operation
            )

        payload = values.pop("payload", None)
        fields = {
            "api_base": self.config.api_base,
            "workspace_id": "",
            "repo_id": "",
            "process_id": "",
            **{k: str(v) for k, v in values.items()},
        }
        quoted = {k: shlex.quote(v) for k, v in fields.items()}
        quoted["api_base"] = self.config.api_base.rstrip("/")
        quoted["payload"] = shlex.quote(
            json.dumps(payload if payload is not None else {})
        )
        return template.format(**quoted)

    async def _call(self, operation: str, **values: Any) -> Any:
        command = self.render(operation, **values)
        logger.debug("Calling git service", operation=operation)

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(
            None,
            functools.partial(
                self.runner.execute, command, timeout=self.config.timeout
            ),
        )
        if result.exited != 0:
            message = error_message(
                result.stdout, result.stderr, result.exited
            )
            logger.error(
                "Git service call failed",
                operation=operation,
                exited=result.exited,
                message=message,
            )
            raise GitServiceError(message, operation)
        return unwrap_response(operation, result.stdout)

    # Operations

    async def merge(self, workspace_id: str, repo_id: str) -> None:
        await self._call(
            "merge", workspace_id=workspace_id,
            payload={"repo_id": repo_id},
        )

    async def push(self, workspace_id: str, repo_id: str) -> None:
        await self._call(
            "push", workspace_id=workspace_id,
            payload={"repo_id": repo_id},
        )

    async def force_push(self, workspace_id: str, repo_id: str) -> None:
        await self._call(
            "force_push", workspace_id=workspace_id,
            payload={"repo_id": repo_id},
        )

    async def create_pr(
        self,
        workspace_id: str,
        repo_id: str,
        target_branch: str | None,
        title: str,
        body: str | None,
    ) -> str | None:
        """Open a pull request; returns its URL when the backend
        reports one."""
        data = await self._call(
            "create_pr", workspace_id=workspace_id,
            payload={
                "repo_id": repo_id,
                "target_branch": target_branch,
                "title": title,
                "body": body,
            },
        )
        return data if isinstance(data, str) else None

    async def rebase(
        self,
        workspace_id: str,
        repo_id: str,
        new_base_branch: str,
        old_base_branch: str,
    ) -> None:
        await self._call(
            "rebase", workspace_id=workspace_id,
            payload={
                "repo_id": repo_id,
                "new_base_branch": new_base_branch,
                "old_base_branch": old_base_branch,
            },
        )

    async def change_target_branch(
        self, workspace_id: str, repo_id: str, new_target_branch: str
    ) -> None:
        await self._call(
            "change_target_branch", workspace_id=workspace_id,
            payload={
                "repo_id": repo_id,
                "new_target_branch": new_target_branch,
            },
        )

    async def abort_conflicts(self, workspace_id: str, repo_id: str) -> None:
        await self._call(
            "abort_conflicts", workspace_id=workspace_id,
            payload={"repo_id": repo_id},
        )

    # Reads

    async def fetch_branch_status(
        self, workspace_id: str
    ) -> list[BranchStatus]:
        data = await self._call("branch_status", workspace_id=workspace_id)
        return validate_reply("branch_status", _statuses, data)

    async def list_processes(
        self, workspace_id: str
    ) -> list[ExecutionProcess]:
        data = await self._call("processes", workspace_id=workspace_id)
        return validate_reply("processes", _processes, data)

    async def get_repo_states(
        self, process_id: str
    ) -> list[ExecutionProcessRepoState]:
        data = await self._call("repo_states", process_id=process_id)
        return validate_reply("repo_states", _repo_states, data)
