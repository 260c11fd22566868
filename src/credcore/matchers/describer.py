"""Canonical text form of query expressions.

The rendered text is exactly what the parser accepts. Composite nodes are
always parenthesized, so parsing a description gives back an equivalent tree
regardless of how the original query was formatted.
"""

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
from credcore.matchers.scope import CredentialsScope

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\t": "\\t",
    "\n": "\\n",
    "\r": "\\r",
    "\b": "\\b",
    "\f": "\\f",
}


def escape_string(value: str) -> str:
    """Escape a string for use inside a double-quoted literal."""
    parts: list[str] = []
    for ch in value:
        if ch in _ESCAPES:
            parts.append(_ESCAPES[ch])
        elif not ch.isprintable() and ord(ch) <= 0xFFFF:
            parts.append(f"\\u{ord(ch):04x}")
        else:
            parts.append(ch)
    return "".join(parts)


def describe_literal(literal: Literal) -> str:
    """Render a literal value."""
    match literal:
        case StringLiteral(value):
            return f'"{escape_string(value)}"'
        case BooleanLiteral(value):
            return "true" if value else "false"
        case NumberLiteral(value):
            return repr(float(value))
    raise TypeError(f"Unknown literal: {type(literal).__name__}")


def describe(node: Expression) -> str:
    """Render an expression in canonical query syntax.

    Args:
        node: Root of the expression tree

    Returns:
        Query text that parses back to an equivalent expression
    """
    match node:
        case Always():
            return "true"
        case Never():
            return "false"
        case Not():
            count, operand = strip_negations(node)
            return "!" * count + describe(operand)
        case And() | Or():
            operator = " && " if isinstance(node, And) else " || "
            first, *rest = chain_operands(node)
            # ((a || b) || c): one opening paren per operator
            text = "(" * len(rest) + describe(first)
            return text + "".join(f"{operator}{describe(operand)})" for operand in rest)
        case InstanceOf(type_name):
            return f"(instanceof {type_name})"
        case PropertyEquals(name, value):
            return f"({name} == {describe_literal(value)})"
        case ScopeIn(scopes):
            if not scopes:
                return "false"
            names = ", ".join(s.name for s in CredentialsScope if s in scopes)
            return f"(scope in ({names}))"
    raise TypeError(f"Unknown expression node: {type(node).__name__}")
