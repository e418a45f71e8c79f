"""System prompts and fixed instructions."""

from __future__ import annotations

from typing import Any

TOOL_CALLING_SYSTEM_PROMPT = """You are an expert assistant. Use tools to solve tasks.

Available tools:
{tools}
Always use tools when needed. Call final_answer when done."""

CODE_AGENT_SYSTEM_PROMPT = """You are an expert assistant who solves tasks using code.

Write Python code in <code></code> blocks. Use print() for intermediate results.
Variables you define are kept between code blocks.
Call final_answer(result) when done.

Available functions:
{tools}
Example:
Thought: I need to compute the answer.
<code>
result = 15 * 23 + 100
print(result)
</code>"""

PLANNING_PROMPT = (
    "Before taking the next action, write a short numbered plan for solving the task "
    "from here. Do not call any tools and do not write code yet."
)


def extra_args_note(extra_args: dict[str, Any]) -> str:
    names = ", ".join(sorted(extra_args))
    return f"\n\nYou have been provided with these additional arguments: {names}."
