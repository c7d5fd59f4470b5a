"""
Condition evaluation for IF, IFDEF and IFNDEF directives.
"""

from typing import Union

from ..variables.expansion import Expander
from .parser import If, IfDef, IfNDef


class ConditionEvaluator:
    """
    Computes the verdict of a conditional directive.

    Supports:
    - IF A == B: both sides expanded independently, compared after trimming
    - IFDEF expr: true if the expanded expr has non-whitespace content
    - IFNDEF expr: negation of IFDEF
    """

    def __init__(self, expander: Expander):
        self.expander = expander

    def evaluate(self, directive: Union[If, IfDef, IfNDef]) -> bool:
        """
        Evaluate a conditional directive.

        Raises:
            ExpansionError: If expanding either side fails
            TypeError: If the directive is not conditional
        """
        if isinstance(directive, If):
            return self.evaluate_equals(directive.left, directive.right)
        elif isinstance(directive, IfDef):
            return self.is_truish(directive.expr)
        elif isinstance(directive, IfNDef):
            return not self.is_truish(directive.expr)

        raise TypeError(f"Not a conditional directive: {directive!r}")

    def evaluate_equals(self, left: str, right: str) -> bool:
        left_value = self.expander.expand(left).strip()
        right_value = self.expander.expand(right).strip()
        return left_value == right_value

    def is_truish(self, expr: str) -> bool:
        """True if expr expands to something other than whitespace."""
        return bool(self.expander.expand(expr).strip())
