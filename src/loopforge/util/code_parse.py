"""Extract code actions from model output."""

from __future__ import annotations

import re

# A stop sequence may cut the closing tag, so end-of-text also closes a block.
_CODE_TAG_RE = re.compile(r"<code>(.*?)(?:</code>|$)", re.DOTALL)
_FENCE_RE = re.compile(r"```(?:python|py)?\n?(.*?)(?:```|$)", re.DOTALL)
_FINAL_ANSWER_CALL_RE = re.compile(r"\bfinal_answer\s*\(")


def parse_code_block(text: str) -> str | None:
    """Return the first non-empty code block, or ``None``."""
    for pattern in (_CODE_TAG_RE, _FENCE_RE):
        match = pattern.search(text)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return None


def calls_final_answer(code: str) -> bool:
    return _FINAL_ANSWER_CALL_RE.search(code) is not None
