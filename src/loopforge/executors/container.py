"""Container-isolated Python executor backed by the Docker SDK."""

from __future__ import annotations

import io
import tarfile
import time
from typing import Any

import docker
from docker.errors import DockerException
from requests.exceptions import ConnectionError as RequestsConnectionError
from requests.exceptions import ReadTimeout

from loopforge.errors import CodeExecutionError, ExecutionTimeoutError
from loopforge.executors.base import (
    CodeExecutor,
    ExecutionResult,
    build_wrapper,
    parse_execution_logs,
)
from loopforge.util.logging import get_logger

logger = get_logger(__name__)

PROGRAM_DIR = "/tmp"
PROGRAM_NAME = "loopforge_program.py"


class DockerExecutor(CodeExecutor):
    """Run each snippet in a throwaway container.

    Containers get no network, a memory cap and a CPU quota, and are removed
    after every call, including calls that time out. The program is copied
    into the container as a file before it starts, so large state does not
    hit the command-line argument limit.
    """

    def __init__(
        self,
        image: str = "python:3.11-slim",
        timeout_seconds: float = 30,
        memory_limit: str = "256m",
        cpus: float = 0.5,
        client: docker.DockerClient | None = None,
    ) -> None:
        self.image = image or "python:3.11-slim"
        self.timeout_seconds = timeout_seconds
        self.memory_limit = memory_limit
        self.cpus = cpus
        self._client = client

    @property
    def client(self) -> docker.DockerClient:
        if self._client is None:
            self._client = docker.from_env()
        return self._client

    def execute(self, code: str, state: dict[str, Any]) -> ExecutionResult:
        program = build_wrapper(code, state)
        try:
            container = self.client.containers.create(
                self.image,
                ["python3", f"{PROGRAM_DIR}/{PROGRAM_NAME}"],
                network_disabled=True,
                mem_limit=self.memory_limit,
                nano_cpus=int(self.cpus * 1_000_000_000),
            )
        except DockerException as exc:
            return ExecutionResult(error=CodeExecutionError("failed to start container", exc))

        try:
            try:
                container.put_archive(PROGRAM_DIR, _program_archive(program))
                container.start()
            except DockerException as exc:
                return ExecutionResult(error=CodeExecutionError("failed to start container", exc))
            try:
                status = container.wait(timeout=self.timeout_seconds)
            except (ReadTimeout, RequestsConnectionError):
                logger.warning(
                    "Container %s timed out after %ss; killing.", container.id, self.timeout_seconds
                )
                self._kill(container)
                return ExecutionResult(
                    error=ExecutionTimeoutError(f"docker execution timeout after {self.timeout_seconds}s")
                )
            stdout = container.logs(stdout=True, stderr=False).decode("utf-8", errors="replace")
            stderr = container.logs(stdout=False, stderr=True).decode("utf-8", errors="replace")
        finally:
            self._remove(container)

        result = parse_execution_logs(stdout)
        state.update(result.state)
        exit_code = status.get("StatusCode", 0)
        if exit_code != 0:
            result.error = CodeExecutionError(f"exit status {exit_code}: {stderr.strip()}")
            result.output = None
            result.has_output = False
        return result

    def _kill(self, container: Any) -> None:
        try:
            container.kill()
        except DockerException as exc:
            logger.warning("Failed to kill container %s: %s", container.id, exc)

    def _remove(self, container: Any) -> None:
        try:
            container.remove(force=True)
        except DockerException as exc:
            logger.warning("Failed to remove container %s: %s", container.id, exc)


def _program_archive(program: str) -> bytes:
    data = program.encode("utf-8")
    info = tarfile.TarInfo(name=PROGRAM_NAME)
    info.size = len(data)
    info.mtime = int(time.time())
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w") as archive:
        archive.addfile(info, io.BytesIO(data))
    return buffer.getvalue()
