"""Built-in final answer tool."""

from __future__ import annotations

from typing import Any

from loopforge.tools.base import Tool, ToolInput

FINAL_ANSWER_TOOL = "final_answer"


class FinalAnswerTool(Tool):
    name = FINAL_ANSWER_TOOL
    description = "Provides a final answer to the given problem."
    inputs = {
        "answer": ToolInput(type="string", description="The final answer to the problem", required=True)
    }
    output_type = "string"

    def execute(self, arguments: dict[str, Any]) -> Any:
        if "answer" not in arguments:
            raise ValueError("missing required argument: answer")
        return arguments["answer"]
