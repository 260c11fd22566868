"""Recursive descent parser for the credentials query language.

Grammar, lowest precedence first::

    or      := and ('||' and)*
    and     := unary ('&&' unary)*
    unary   := '!' unary | primary
    primary := '(' or ')'
             | 'instanceof' QualifiedName
             | 'scope' 'in' '(' ScopeName (',' ScopeName)* ')'
             | 'scope' '==' ScopeName
             | Identifier '==' Literal
             | 'true' | 'false'

Comparisons always have the property on the left; a literal can never start
a primary.
"""

from credcore.core.logging import get_logger
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
from credcore.matchers.exceptions import CQLSyntaxError, annotate_query
from credcore.matchers.lexer import Token, TokenType, tokenize
from credcore.matchers.scope import CredentialsScope

logger = get_logger(__name__)

INSTANCEOF = "instanceof"
SCOPE = "scope"
IN = "in"


class _Parser:
    """Parser over a token list terminated by EOF."""

    def __init__(self, tokens: list[Token], query: str):
        if not tokens or tokens[-1].type != TokenType.EOF:
            tokens = [*tokens, Token(TokenType.EOF, "", len(query))]
        self.tokens = tokens
        self.query = query
        self.pos = 0

    def _current(self) -> Token:
        return self.tokens[self.pos]

    def _peek(self, distance: int = 1) -> Token:
        index = min(self.pos + distance, len(self.tokens) - 1)
        return self.tokens[index]

    def _advance(self) -> Token:
        token = self.tokens[self.pos]
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return token

    def _error(self, token: Token, expected: str) -> CQLSyntaxError:
        detail = f"expected {expected}, found {token.describe()}"
        return CQLSyntaxError(
            f"{detail}\n{annotate_query(self.query, token.offset, detail)}",
            offset=token.offset,
            expected=expected,
            found=token.text or None,
        )

    def _at_operator(self, text: str) -> bool:
        token = self._current()
        return token.type == TokenType.OPERATOR and token.text == text

    def _at_keyword(self, keyword: str) -> bool:
        token = self._current()
        return token.type == TokenType.IDENTIFIER and token.text == keyword

    def _expect(self, token_type: TokenType, expected: str) -> Token:
        if self._current().type != token_type:
            raise self._error(self._current(), expected)
        return self._advance()

    def _expect_operator(self, text: str) -> Token:
        if not self._at_operator(text):
            raise self._error(self._current(), f"'{text}'")
        return self._advance()

    def parse(self) -> Expression:
        expression = self._parse_or()
        if self._current().type != TokenType.EOF:
            raise self._error(self._current(), "'&&', '||' or end of input")
        return expression

    def _parse_or(self) -> Expression:
        left = self._parse_and()
        while self._at_operator("||"):
            self._advance()
            left = Or(left, self._parse_and())
        return left

    def _parse_and(self) -> Expression:
        left = self._parse_unary()
        while self._at_operator("&&"):
            self._advance()
            left = And(left, self._parse_unary())
        return left

    def _parse_unary(self) -> Expression:
        if self._at_operator("!"):
            self._advance()
            return Not(self._parse_unary())
        return self._parse_primary()

    def _parse_primary(self) -> Expression:
        token = self._current()

        if token.type == TokenType.LPAREN:
            self._advance()
            expression = self._parse_or()
            self._expect(TokenType.RPAREN, "')'")
            return expression

        if token.type == TokenType.BOOLEAN:
            self._advance()
            return ALWAYS if token.value else NEVER

        if token.type != TokenType.IDENTIFIER:
            raise self._error(token, "property name, 'instanceof', '!' or '('")

        if token.text == INSTANCEOF:
            self._advance()
            type_name = self._expect(TokenType.IDENTIFIER, "type name")
            if type_name.text == INSTANCEOF:
                raise self._error(type_name, "type name")
            return InstanceOf(type_name.text)

        if token.text == SCOPE and self._peek().type == TokenType.IDENTIFIER:
            return self._parse_scope_in()

        if token.text == SCOPE and self._peek(2).type == TokenType.IDENTIFIER:
            # scope == pkg.CredentialsScope.GLOBAL
            self._advance()
            self._expect_operator("==")
            return ScopeIn(frozenset({self._parse_scope_name()}))

        return self._parse_comparison()

    def _parse_scope_in(self) -> Expression:
        self._advance()  # scope
        if not self._at_keyword(IN):
            raise self._error(self._current(), "'in' or '=='")
        self._advance()
        self._expect(TokenType.LPAREN, "'('")

        scopes = {self._parse_scope_name()}
        while self._current().type == TokenType.COMMA:
            self._advance()
            scopes.add(self._parse_scope_name())

        self._expect(TokenType.RPAREN, "',' or ')'")
        return ScopeIn(frozenset(scopes))

    def _parse_scope_name(self) -> CredentialsScope:
        token = self._expect(TokenType.IDENTIFIER, "scope name")
        try:
            return CredentialsScope.from_name(token.text)
        except KeyError:
            names = ", ".join(scope.name for scope in CredentialsScope)
            raise self._error(token, f"one of {names}") from None

    def _parse_comparison(self) -> Expression:
        name = self._advance()
        self._expect_operator("==")
        return PropertyEquals(name.text, self._parse_literal())

    def _parse_literal(self) -> Literal:
        token = self._current()
        match token.type:
            case TokenType.STRING:
                self._advance()
                return StringLiteral(token.value)
            case TokenType.NUMBER:
                self._advance()
                return NumberLiteral(token.value)
            case TokenType.BOOLEAN:
                self._advance()
                return BooleanLiteral(token.value)
        raise self._error(token, "string, number or boolean literal")


def parse(tokens: list[Token], query: str = "") -> Expression:
    """Build an expression tree from tokens.

    Args:
        tokens: Tokens produced by tokenize()
        query: The source text, used to annotate error messages

    Returns:
        The root expression node

    Raises:
        CQLSyntaxError: If the tokens do not form a valid expression
    """
    return _Parser(tokens, query).parse()


def parse_query(text: str | None) -> Expression:
    """Parse query text into an expression tree.

    Empty (or whitespace only) text matches everything.

    Args:
        text: The query text

    Returns:
        The root expression node

    Raises:
        CQLSyntaxError: If the text is not a valid query
    """
    if text is None or not text.strip():
        return ALWAYS

    try:
        return parse(tokenize(text), text)
    except CQLSyntaxError as e:
        logger.debug(
            "cql_parse_failed",
            offset=e.offset,
            expected=e.expected,
            error_type=type(e).__name__,
        )
        raise
