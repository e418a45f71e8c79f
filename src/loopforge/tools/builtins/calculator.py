"""Calculator tool for exact arithmetic."""

from __future__ import annotations

import ast
from fractions import Fraction
from typing import Any

from pydantic import BaseModel

from loopforge.tools.base import Tool, ToolInput


class CalculatorInput(BaseModel):
    expression: str


class CalculatorTool(Tool):
    name = "calculator"
    description = "Evaluates mathematical expressions with exact fractions."
    inputs = {
        "expression": ToolInput(type="string", description="Math expression to evaluate", required=True)
    }
    output_type = "number"

    def execute(self, arguments: dict[str, Any]) -> Any:
        payload = CalculatorInput.model_validate(arguments)
        if not payload.expression.strip():
            raise ValueError("expression is required")
        value = _evaluate_expression(payload.expression)
        if value.denominator == 1:
            return value.numerator
        return float(value)


def _evaluate_expression(expression: str) -> Fraction:
    normalized = expression.replace("^", "**")
    tree = ast.parse(normalized, mode="eval")
    return _eval_node(tree.body)


def _eval_node(node: ast.AST) -> Fraction:
    if isinstance(node, ast.Constant):
        if isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
            return Fraction(str(node.value))
        raise ValueError("Only numeric constants are allowed")
    if isinstance(node, ast.UnaryOp) and isinstance(node.op, (ast.UAdd, ast.USub)):
        operand = _eval_node(node.operand)
        return operand if isinstance(node.op, ast.UAdd) else -operand
    if isinstance(node, ast.BinOp):
        left = _eval_node(node.left)
        right = _eval_node(node.right)
        return _apply_operator(node.op, left, right)
    raise ValueError("Unsupported expression")


def _apply_operator(op: ast.AST, left: Fraction, right: Fraction) -> Fraction:
    if isinstance(op, ast.Add):
        return left + right
    if isinstance(op, ast.Sub):
        return left - right
    if isinstance(op, ast.Mult):
        return left * right
    if isinstance(op, (ast.Div, ast.FloorDiv, ast.Mod)) and right == 0:
        raise ValueError("division by zero")
    if isinstance(op, ast.Div):
        return left / right
    if isinstance(op, ast.FloorDiv):
        return Fraction(left // right)
    if isinstance(op, ast.Mod):
        return left % right
    if isinstance(op, ast.Pow):
        if right.denominator != 1:
            raise ValueError("Exponent must be integer")
        return left**int(right)
    raise ValueError("Unsupported operator")
