"""
Node filter algebra.

A filter is a triple ``(field, operator, value)``. Fields may be dotted to
reach into nested records (``properties.invoice:amount``). A list of
filters is a conjunction.
"""
from typing import Any, Callable, Dict, List, Sequence, Tuple, Union
import re

NodeFilter = Union[Tuple[str, str, Any], List[Any]]

_MISSING = object()


def _compare(op: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def compare(actual: Any, expected: Any) -> bool:
        if actual is _MISSING or actual is None:
            return False
        try:
            return op(actual, expected)
        except TypeError:
            return False
    return compare


def _in(actual: Any, expected: Any) -> bool:
    return actual is not _MISSING and actual in (expected or [])


def _not_in(actual: Any, expected: Any) -> bool:
    return actual is _MISSING or actual not in (expected or [])


def _contains(actual: Any, expected: Any) -> bool:
    if not isinstance(actual, (list, tuple, set)):
        return False
    return expected in actual


def _contains_all(actual: Any, expected: Any) -> bool:
    if not isinstance(actual, (list, tuple, set)):
        return False
    return all(item in actual for item in (expected or []))


def _match(actual: Any, expected: Any) -> bool:
    if not isinstance(actual, str):
        return False
    return re.search(str(expected), actual) is not None


OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": lambda actual, expected: actual is not _MISSING and actual == expected,
    "!=": lambda actual, expected: actual is _MISSING or actual != expected,
    "<": _compare(lambda a, e: a < e),
    "<=": _compare(lambda a, e: a <= e),
    ">": _compare(lambda a, e: a > e),
    ">=": _compare(lambda a, e: a >= e),
    "in": _in,
    "not-in": _not_in,
    "contains": _contains,
    "contains-all": _contains_all,
    "match": _match,
}


def is_valid_filter(node_filter: Any) -> bool:
    """Checks the triple shape and operator of a single filter."""
    if not isinstance(node_filter, (list, tuple)) or len(node_filter) != 3:
        return False
    field_name, operator, _ = node_filter
    return isinstance(field_name, str) and bool(field_name) and operator in OPERATORS


def get_field(record: Dict[str, Any], path: str, default: Any = _MISSING) -> Any:
    """
    Resolve a dotted path inside a node record.

    A full key match wins over splitting, so property keys containing
    dots or colons still resolve.
    """
    if path in record:
        return record[path]

    current: Any = record
    parts = path.split('.')
    for idx, part in enumerate(parts):
        if not isinstance(current, dict):
            return default
        rest = '.'.join(parts[idx:])
        if rest in current:
            return current[rest]
        if part not in current:
            return default
        current = current[part]
    return current


def matches(record: Dict[str, Any], filters: Sequence[NodeFilter]) -> bool:
    """Return True when record satisfies every filter."""
    for field_name, operator, expected in filters:
        predicate = OPERATORS.get(operator)
        if predicate is None:
            raise ValueError(f"Unknown filter operator: {operator}")
        if not predicate(get_field(record, field_name), expected):
            return False
    return True
