"""Code executor contract and the result-line protocol shared by executors.

Every executor runs the same wrapper script. The script loads the caller's
state into its globals, defines ``final_answer``, runs the code, and then
prints up to two sentinel lines at the very end of stdout::

    __STATE__:{"x": 1}
    __RESULT__:42

The result line is only printed when ``final_answer`` was called and is
always the last line. :func:`parse_execution_logs` strips both lines and
returns the remaining output as logs.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from loopforge.util.logging import get_logger

RESULT_PREFIX = "__RESULT__:"
STATE_PREFIX = "__STATE__:"
FINAL_ANSWER_FUNCTION = "final_answer"

logger = get_logger(__name__)

_WRAPPER_TEMPLATE = '''\
import json as __json
import sys as __sys
import types as __types

globals().update(__json.loads({state_json!r}))

__final_answer_called__ = False
__final_answer__ = None


def {final_answer}(answer):
    global __final_answer_called__, __final_answer__
    __final_answer_called__ = True
    __final_answer__ = answer
    return answer


try:
    exec(compile({code!r}, "<code>", "exec"), globals())
finally:
    __state_out__ = {{}}
    for __name, __value in list(globals().items()):
        if __name.startswith("_") or isinstance(__value, (__types.ModuleType, __types.FunctionType, type)):
            continue
        try:
            __json.dumps(__value)
        except (TypeError, ValueError):
            continue
        __state_out__[__name] = __value
    __sys.stdout.flush()
    print()
    print("{state_prefix}" + __json.dumps(__state_out__))

if __final_answer_called__:
    try:
        print("{result_prefix}" + __json.dumps(__final_answer__))
    except (TypeError, ValueError):
        print("{result_prefix}" + __json.dumps(str(__final_answer__)))
'''


@dataclass
class ExecutionResult:
    output: Any = None
    logs: str = ""
    error: Exception | None = None
    has_output: bool = False
    state: dict[str, Any] = field(default_factory=dict)


class CodeExecutor(ABC):
    """Run a code string against a mutable state mapping."""

    @abstractmethod
    def execute(self, code: str, state: dict[str, Any]) -> ExecutionResult:
        """Run ``code`` to completion or timeout.

        Implementations merge the state the code leaves behind back into
        ``state``. Failures are returned on the result, never raised.
        """
        raise NotImplementedError


def build_wrapper(code: str, state: dict[str, Any]) -> str:
    """Return the Python program that runs ``code`` under the result protocol."""
    return _WRAPPER_TEMPLATE.format(
        state_json=json.dumps(serializable_state(state)),
        code=code,
        final_answer=FINAL_ANSWER_FUNCTION,
        state_prefix=STATE_PREFIX,
        result_prefix=RESULT_PREFIX,
    )


def serializable_state(state: dict[str, Any]) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for key, value in state.items():
        try:
            json.dumps(value)
        except (TypeError, ValueError):
            logger.warning("Dropping non-JSON state entry %s from code execution.", key)
            continue
        payload[key] = value
    return payload


def parse_execution_logs(stdout: str) -> ExecutionResult:
    """Split wrapper stdout into logs, the final answer, and updated state."""
    lines = stdout.splitlines()
    result = ExecutionResult()
    _drop_trailing_blank(lines)
    if lines and lines[-1].startswith(RESULT_PREFIX):
        payload = lines.pop()[len(RESULT_PREFIX) :]
        result.output = _decode(payload)
        result.has_output = True
        _drop_trailing_blank(lines)
    if lines and lines[-1].startswith(STATE_PREFIX):
        payload = lines.pop()[len(STATE_PREFIX) :]
        state = _decode(payload)
        if isinstance(state, dict):
            result.state = state
        _drop_trailing_blank(lines)
    result.logs = "\n".join(lines)
    return result


def _decode(payload: str) -> Any:
    try:
        return json.loads(payload)
    except json.JSONDecodeError:
        return payload


def _drop_trailing_blank(lines: list[str]) -> None:
    while lines and not lines[-1].strip():
        lines.pop()
