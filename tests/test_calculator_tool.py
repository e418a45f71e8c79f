import pytest
from pydantic import ValidationError

from loopforge.tools.builtins.calculator import CalculatorTool


def test_calculator_exact_fraction():
    tool = CalculatorTool()
    assert tool.execute({"expression": "1/3 + 1/6"}) == 0.5
    assert tool.execute({"expression": "0.1 + 0.2"}) == 0.3


def test_calculator_integral_results_are_ints():
    result = CalculatorTool().execute({"expression": "15 * 23 + 100"})
    assert result == 445
    assert isinstance(result, int)


def test_calculator_caret_exponent_precedence():
    assert CalculatorTool().execute({"expression": "2^3*4"}) == 32


@pytest.mark.parametrize(
    ("expression", "message"),
    [
        ("1/0", "division by zero"),
        ("   ", "expression is required"),
        ("__import__('os')", "Unsupported expression"),
        ("2 ** 0.5", "Exponent must be integer"),
    ],
)
def test_calculator_rejects_bad_input(expression, message):
    with pytest.raises(ValueError, match=message):
        CalculatorTool().execute({"expression": expression})


def test_calculator_requires_expression_argument():
    with pytest.raises(ValidationError):
        CalculatorTool().execute({})
