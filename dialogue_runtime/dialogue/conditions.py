"""
Condition evaluator - gates dialogue options against game state.

Supported syntax:
- ``""``                   always true
- ``$flag`` / ``flag``     truthiness of a variable in the store
- ``a == b``, ``a != b``   numeric equality if both sides are numbers,
                           plain string equality otherwise
- ``a > b``, ``a < b``, ``a >= b``, ``a <= b``
                           numeric only; false for non-numeric operands

Operands starting with ``$`` are variable references resolved through the
store's ``get_value`` when it has one.

Evaluation fails open: a malformed expression or a store error logs and
evaluates to True, so a bad condition can never strand a conversation.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

# Two-character operators first: ">=" contains ">" and "<=" contains "<"
OPERATORS = ("==", "!=", ">=", "<=", ">", "<")

VARIABLE_PREFIX = "$"


@runtime_checkable
class VariableStore(Protocol):
    """Read side of the host's game-state variables."""

    def get_bool(self, name: str) -> bool:
        ...


class DictVariableStore:
    """
    In-memory variable store.

    Missing names read as False / None. Truthiness follows the 0/1
    convention: any nonzero number is true, and strings are true unless
    empty, "0" or "false".
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values: dict[str, Any] = dict(values or {})

    def get_bool(self, name: str) -> bool:
        return _truthy(self._values.get(name))

    def get_value(self, name: str) -> Any:
        return self._values.get(name)

    def get_int(self, name: str, default: int = 0) -> int:
        value = self._values.get(name, default)
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def set(self, name: str, value: Any) -> None:
        self._values[name] = value

    def set_flag(self, name: str, on: bool = True) -> None:
        self._values[name] = 1 if on else 0

    def unset(self, name: str) -> None:
        self._values.pop(name, None)

    def __contains__(self, name: str) -> bool:
        return name in self._values

    def as_dict(self) -> dict[str, Any]:
        return dict(self._values)


def _truthy(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip().lower() not in ("", "0", "false")
    return bool(value)


def _to_number(text: str) -> Optional[float]:
    try:
        return float(text)
    except (TypeError, ValueError):
        return None


def split_condition(expression: str) -> Optional[tuple[str, str, str]]:
    """
    Split ``expression`` on its operator.

    Returns:
        (left, op, right) with trimmed operands, or None if the expression
        has no operator
    """
    for op in OPERATORS:
        if op in expression:
            left, right = expression.split(op, 1)
            return left.strip(), op, right.strip()
    return None


class ConditionEvaluator:
    """Evaluates condition expressions against a VariableStore."""

    def __init__(self, store: Optional[VariableStore] = None):
        self.store = store if store is not None else DictVariableStore()

    def evaluate(self, expression: Optional[str]) -> bool:
        """Evaluate ``expression``; never raises."""
        if expression is None or not expression.strip():
            return True

        expression = expression.strip()
        try:
            parts = split_condition(expression)
            if parts is None:
                return self._lookup_flag(expression)
            left, op, right = parts
            return self._compare(self._resolve(left), op, self._resolve(right))
        except Exception as e:
            logger.error(f"Condition evaluation failed for {expression!r}: {e}")
            return True

    def _lookup_flag(self, name: str) -> bool:
        return bool(self.store.get_bool(_strip_prefix(name)))

    def _resolve(self, operand: str) -> str:
        """Replace a ``$name`` reference with the store's value."""
        if not operand.startswith(VARIABLE_PREFIX):
            return operand
        get_value = getattr(self.store, 'get_value', None)
        if get_value is None:
            return operand
        value = get_value(_strip_prefix(operand))
        if value is None:
            return ""
        if isinstance(value, bool):
            return "1" if value else "0"
        return str(value).strip()

    @staticmethod
    def _compare(left: str, op: str, right: str) -> bool:
        left_num = _to_number(left)
        right_num = _to_number(right)

        if left_num is not None and right_num is not None:
            if op == "==":
                return left_num == right_num
            if op == "!=":
                return left_num != right_num
            if op == ">":
                return left_num > right_num
            if op == "<":
                return left_num < right_num
            if op == ">=":
                return left_num >= right_num
            if op == "<=":
                return left_num <= right_num

        if op == "==":
            return left == right
        if op == "!=":
            return left != right

        # Relational operators are only defined for numbers
        return False


def _strip_prefix(name: str) -> str:
    name = name.strip()
    if name.startswith(VARIABLE_PREFIX):
        return name[len(VARIABLE_PREFIX):].strip()
    return name
