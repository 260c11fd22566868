"""Credentials query language (CQL).

This module provides:
- A tokenizer and recursive descent parser for query text
- An immutable expression tree with structural equality
- A total evaluator and order-preserving collection filters
- A canonical describer whose output parses back to an equivalent tree

Example:
    from credcore.matchers import describe_query, filter_credentials, parse_query

    query = parse_query('(username == "bob") && scope in (GLOBAL, USER)')
    matching = filter_credentials(credentials, query)
    describe_query(query)
    # '((username == "bob") && (scope in (GLOBAL, USER)))'
"""

from credcore.matchers.ast import (
    ALWAYS,
    NEVER,
    Always,
    And,
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
)
from credcore.matchers.describer import describe, describe_literal, escape_string
from credcore.matchers.evaluator import (
    evaluate,
    filter_credentials,
    filter_keys,
    filter_values,
    first_or_default,
    first_or_none,
)
from credcore.matchers.exceptions import CQLLexError, CQLSyntaxError, PropertyLookupFailure
from credcore.matchers.lexer import Token, TokenType, tokenize
from credcore.matchers.parser import parse, parse_query
from credcore.matchers.scope import CredentialsScope
from credcore.matchers.view import ABSENT, BeanCredentialView, CredentialView, as_view

describe_query = describe

__all__ = [
    # AST
    "Expression",
    "Always",
    "Never",
    "Not",
    "And",
    "Or",
    "InstanceOf",
    "PropertyEquals",
    "ScopeIn",
    "Literal",
    "StringLiteral",
    "NumberLiteral",
    "BooleanLiteral",
    "ALWAYS",
    "NEVER",
    # Lexing and parsing
    "Token",
    "TokenType",
    "tokenize",
    "parse",
    "parse_query",
    # Evaluation
    "evaluate",
    "filter_credentials",
    "filter_keys",
    "filter_values",
    "first_or_default",
    "first_or_none",
    # Description
    "describe",
    "describe_query",
    "describe_literal",
    "escape_string",
    # Candidates
    "CredentialsScope",
    "CredentialView",
    "BeanCredentialView",
    "ABSENT",
    "as_view",
    # Errors
    "CQLSyntaxError",
    "CQLLexError",
    "PropertyLookupFailure",
]
