"""Sandbox helpers for running subprocesses."""

from __future__ import annotations

import os
import signal
import subprocess
from dataclasses import dataclass
from pathlib import Path


@dataclass
class SandboxCommandResult:
    stdout: str
    stderr: str
    exit_code: int


def run_command(
    command: list[str],
    cwd: Path | None,
    env: dict[str, str],
    timeout_seconds: float = 20,
    input_text: str | None = None,
) -> SandboxCommandResult:
    """Run a command in a subprocess with a sanitized environment.

    ``input_text`` is written to the child's stdin. Output is decoded as UTF-8
    with undecodable bytes replaced. On timeout the whole process group is
    killed and reaped before ``subprocess.TimeoutExpired`` is re-raised; its
    output is discarded.
    """
    safe_env = sanitize_env(env)
    process = subprocess.Popen(
        command,
        stdin=subprocess.PIPE if input_text is not None else subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        encoding="utf-8",
        errors="replace",
        cwd=cwd,
        env=safe_env,
        start_new_session=True,
    )
    try:
        stdout, stderr = process.communicate(input=input_text, timeout=timeout_seconds)
    except subprocess.TimeoutExpired:
        _kill(process)
        process.communicate()
        raise
    return SandboxCommandResult(
        stdout=stdout or "",
        stderr=stderr or "",
        exit_code=process.returncode,
    )


def _kill(process: subprocess.Popen) -> None:
    if hasattr(os, "killpg"):
        try:
            os.killpg(process.pid, signal.SIGKILL)
            return
        except ProcessLookupError:
            return
    process.kill()


def sanitize_env(env: dict[str, str]) -> dict[str, str]:
    """Return a sanitized environment for sandboxed subprocesses."""
    allowlist = {"PATH", "PYTHONPATH", "HOME", "TMPDIR", "USER", "LANG", "SYSTEMROOT"}
    passthrough = _parse_passthrough_env()
    allowlist.update(passthrough)
    filtered: dict[str, str] = {}
    for key, value in env.items():
        if _is_sensitive_key(key):
            continue
        if key in allowlist:
            filtered[key] = value
    return filtered


def _parse_passthrough_env() -> set[str]:
    raw = os.environ.get("SANDBOX_PASSTHROUGH_ENV", "")
    if not raw:
        return set()
    return {item.strip() for item in raw.split(",") if item.strip()}


def _is_sensitive_key(key: str) -> bool:
    upper = key.upper()
    return upper.startswith(("OPENAI_", "API_KEY", "TOKEN", "SECRET"))
