"""Evaluation of query expressions against credentials.

Evaluation is total: lookup failures, type mismatches and misbehaving
candidates make the affected node fail to match instead of aborting the
query.
"""

from collections.abc import Iterable, Mapping
from typing import Any, TypeVar

from credcore.core.logging import LogContext, get_logger
from credcore.matchers.ast import (
    And,
    Always,
    BooleanLiteral,
    Expression,
    InstanceOf,
    Literal,
    Never,
    Not,
    NumberLiteral,
    Or,
    PropertyEquals,
    ScopeIn,
    StringLiteral,
    chain_operands,
    strip_negations,
)
from credcore.matchers.exceptions import PropertyLookupFailure
from credcore.matchers.view import ABSENT, CredentialView, as_view

logger = get_logger(__name__)

C = TypeVar("C")
K = TypeVar("K")
V = TypeVar("V")


def evaluate(node: Expression, candidate: Any) -> bool:
    """Decide whether a candidate matches an expression.

    Args:
        node: Root of the expression tree
        candidate: A CredentialView, or any object to wrap in a BeanCredentialView

    Returns:
        True if the candidate matches
    """
    return _evaluate(node, as_view(candidate))


def _evaluate(node: Expression, view: CredentialView) -> bool:
    match node:
        case Always():
            return True
        case Never():
            return False
        case Not():
            count, operand = strip_negations(node)
            return _evaluate(operand, view) == (count % 2 == 0)
        case And():
            return all(_evaluate(operand, view) for operand in chain_operands(node))
        case Or():
            return any(_evaluate(operand, view) for operand in chain_operands(node))
        case InstanceOf(type_name):
            return _matches_type(type_name, view)
        case PropertyEquals(name, value):
            return _matches_property(name, value, view)
        case ScopeIn(scopes):
            return _matches_scope(scopes, view)
    raise TypeError(f"Unknown expression node: {type(node).__name__}")


def _matches_type(type_name: str, view: CredentialView) -> bool:
    try:
        return type_name in view.type_names()
    except Exception as e:
        logger.debug("cql_type_lookup_failed", error_type=type(e).__name__)
        return False


def _matches_scope(scopes: frozenset, view: CredentialView) -> bool:
    try:
        scope = view.scope
    except Exception as e:
        logger.debug("cql_scope_lookup_failed", error_type=type(e).__name__)
        return False
    return any(scope is member for member in scopes)


def _matches_property(name: str, expected: Literal, view: CredentialView) -> bool:
    try:
        actual = _read_property(name, view)
    except PropertyLookupFailure as e:
        cause = type(e.cause).__name__ if e.cause else None
        logger.debug("cql_property_lookup_failed", property=name, cause=cause)
        return False
    except Exception as e:
        logger.debug("cql_property_lookup_failed", property=name, cause=type(e).__name__)
        return False

    if actual is ABSENT:
        return False
    return literal_equals(expected, actual)


def _read_property(name: str, view: CredentialView) -> Any:
    if name == "id":
        return view.id
    if name == "scope":
        return view.scope
    return view.get_property(name)


def literal_equals(expected: Literal, actual: Any) -> bool:
    """Compare a property value with a literal of the same kind.

    Strings compare with strings, numbers with numbers (bool is not a number
    here) and booleans with booleans. Any other combination is a mismatch.
    """
    match expected:
        case StringLiteral(value):
            return isinstance(actual, str) and actual == value
        case BooleanLiteral(value):
            return isinstance(actual, bool) and actual is value
        case NumberLiteral(value):
            return (
                isinstance(actual, int | float)
                and not isinstance(actual, bool)
                and actual == value
            )
    return False


# =============================================================================
# Collection helpers
# =============================================================================


def filter_credentials(candidates: Iterable[C | None], node: Expression) -> list[C]:
    """Return the matching candidates in their original order.

    None entries are skipped. Lookup failures logged while filtering carry
    ``operation="filter_credentials"``.
    """
    with LogContext(operation="filter_credentials"):
        return [c for c in candidates if c is not None and evaluate(node, c)]


def filter_keys(credentials: Mapping[C, V], node: Expression) -> dict[C, V]:
    """Keep the entries whose key is a matching credential."""
    with LogContext(operation="filter_keys"):
        return {
            key: value
            for key, value in credentials.items()
            if key is not None and evaluate(node, key)
        }


def filter_values(credentials: Mapping[K, C], node: Expression) -> dict[K, C]:
    """Keep the entries whose value is a matching credential."""
    with LogContext(operation="filter_values"):
        return {
            key: value
            for key, value in credentials.items()
            if value is not None and evaluate(node, value)
        }


def first_or_default(
    candidates: Iterable[C | None],
    node: Expression,
    default: C | None,
) -> C | None:
    """Return the first matching candidate, or default if none match."""
    with LogContext(operation="first_match"):
        for candidate in candidates:
            if candidate is not None and evaluate(node, candidate):
                return candidate
    return default


def first_or_none(candidates: Iterable[C | None], node: Expression) -> C | None:
    """Return the first matching candidate, or None."""
    return first_or_default(candidates, node, None)
