"""Abstract syntax tree for credentials query expressions.

The node set is closed. Every node is an immutable, hashable dataclass, so
trees can be shared freely between threads and compared structurally.
"""

import math
import re
from dataclasses import dataclass

from credcore.matchers.scope import CredentialsScope

_NAME = re.compile(r"[A-Za-z_\$][A-Za-z0-9_\$]*(?:\.[A-Za-z_\$][A-Za-z0-9_\$]*)*")
RESERVED_WORDS = frozenset({"instanceof", "true", "false"})


def is_valid_name(name: str) -> bool:
    """Whether name can appear as a property or type name in query text."""
    return bool(_NAME.fullmatch(name)) and name not in RESERVED_WORDS


@dataclass(frozen=True, slots=True)
class StringLiteral:
    """A string comparison value."""

    value: str


@dataclass(frozen=True, slots=True)
class NumberLiteral:
    """A numeric comparison value (always held as a float)."""

    value: float

    def __post_init__(self) -> None:
        if not math.isfinite(self.value):
            raise ValueError(f"Number literal must be finite, got {self.value!r}")


@dataclass(frozen=True, slots=True)
class BooleanLiteral:
    """A boolean comparison value."""

    value: bool


Literal = StringLiteral | NumberLiteral | BooleanLiteral


class Expression:
    """Base class for all expression nodes."""

    __slots__ = ()


@dataclass(frozen=True, slots=True)
class Always(Expression):
    """Matches every candidate."""


@dataclass(frozen=True, slots=True)
class Never(Expression):
    """Matches no candidate."""


@dataclass(frozen=True, slots=True)
class Not(Expression):
    """Negates its operand."""

    operand: Expression


@dataclass(frozen=True, slots=True)
class And(Expression):
    """Matches when both sides match. Evaluated left to right."""

    left: Expression
    right: Expression


@dataclass(frozen=True, slots=True)
class Or(Expression):
    """Matches when either side matches. Evaluated left to right."""

    left: Expression
    right: Expression


@dataclass(frozen=True, slots=True)
class InstanceOf(Expression):
    """Matches candidates whose type, or any supertype, has this qualified name."""

    type_name: str

    def __post_init__(self) -> None:
        if not is_valid_name(self.type_name):
            raise ValueError(f"Invalid type name: {self.type_name!r}")


@dataclass(frozen=True, slots=True)
class PropertyEquals(Expression):
    """Matches candidates whose named property equals the literal."""

    name: str
    value: Literal

    def __post_init__(self) -> None:
        if not is_valid_name(self.name):
            raise ValueError(f"Invalid property name: {self.name!r}")


@dataclass(frozen=True, slots=True)
class ScopeIn(Expression):
    """Matches candidates whose scope is one of the given scopes."""

    scopes: frozenset[CredentialsScope]


ALWAYS = Always()
NEVER = Never()


def chain_operands(node: And | Or) -> list[Expression]:
    """Operands of a left-nested chain of one operator, left to right.

    ``Or(Or(a, b), c)`` gives ``[a, b, c]``. The left spine is walked in a
    loop, so chains built by ``any_of``/``all_of`` or by parsing ``a || b ||
    ...`` can be arbitrarily long.
    """
    kind = type(node)
    rights: list[Expression] = []
    while type(node) is kind:
        rights.append(node.right)
        node = node.left
    rights.append(node)
    rights.reverse()
    return rights


def strip_negations(node: Expression) -> tuple[int, Expression]:
    """Count the leading Not nodes and return the first non-Not operand."""
    count = 0
    while isinstance(node, Not):
        count += 1
        node = node.operand
    return count, node
