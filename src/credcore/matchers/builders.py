"""Programmatic construction of query expressions.

Example:
    from credcore.matchers import builders as m

    query = m.all_of(
        m.any_of(m.instance_of(UsernamePassword), m.with_scopes(GLOBAL, USER)),
        m.not_(m.with_username("bob")),
    )
"""

from collections.abc import Iterable
from functools import reduce

from credcore.matchers.ast import (
    ALWAYS,
    NEVER,
    And,
    BooleanLiteral,
    Expression,
    InstanceOf,
    Literal,
    Not,
    NumberLiteral,
    Or,
    PropertyEquals,
    ScopeIn,
    StringLiteral,
)
from credcore.matchers.scope import CredentialsScope
from credcore.matchers.view import qualified_name


def always() -> Expression:
    """Match every credential."""
    return ALWAYS


def never() -> Expression:
    """Match no credential."""
    return NEVER


def not_(expression: Expression) -> Expression:
    """Invert an expression."""
    return Not(expression)


def instance_of(type_or_name: type | str) -> Expression:
    """Match credentials that are instances of a type.

    Args:
        type_or_name: A class, or its fully qualified name
    """
    if isinstance(type_or_name, type):
        return InstanceOf(qualified_name(type_or_name))
    return InstanceOf(type_or_name)


def to_literal(value: str | float | bool) -> Literal:
    """Wrap a Python value in the literal of the matching kind.

    Raises:
        TypeError: If the value is not a str, int, float or bool
    """
    # bool first, it is a subclass of int
    if isinstance(value, bool):
        return BooleanLiteral(value)
    if isinstance(value, str):
        return StringLiteral(value)
    if isinstance(value, int | float):
        return NumberLiteral(float(value))
    raise TypeError(f"Unsupported literal type: {type(value).__name__}")


def with_property(name: str, value: str | float | bool) -> Expression:
    """Match credentials whose property equals value."""
    return PropertyEquals(name, to_literal(value))


def with_id(credential_id: str) -> Expression:
    """Match credentials with the given id."""
    return PropertyEquals("id", StringLiteral(credential_id))


def with_username(username: str) -> Expression:
    """Match credentials with the given username."""
    return PropertyEquals("username", StringLiteral(username))


def with_scope(scope: CredentialsScope) -> Expression:
    """Match credentials in a single scope."""
    return ScopeIn(frozenset({scope}))


def with_scopes(*scopes: CredentialsScope | Iterable[CredentialsScope]) -> Expression:
    """Match credentials in any of the given scopes.

    Accepts scopes as positional arguments or as a single iterable.
    """
    members: set[CredentialsScope] = set()
    for item in scopes:
        if isinstance(item, CredentialsScope):
            members.add(item)
        else:
            members.update(item)
    return ScopeIn(frozenset(members))


def all_of(*expressions: Expression) -> Expression:
    """Match when every expression matches. No expressions matches everything."""
    if not expressions:
        return ALWAYS
    return reduce(And, expressions)


def any_of(*expressions: Expression) -> Expression:
    """Match when any expression matches. No expressions matches nothing."""
    if not expressions:
        return NEVER
    return reduce(Or, expressions)


def both(first: Expression, second: Expression) -> Expression:
    """Match when both expressions match."""
    return And(first, second)


def either(first: Expression, second: Expression) -> Expression:
    """Match when either expression matches."""
    return Or(first, second)


def none_of(*expressions: Expression) -> Expression:
    """Match when no expression matches."""
    return Not(any_of(*expressions))
