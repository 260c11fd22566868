"""Exceptions raised by the credentials query language."""

from credcore.utils.exceptions import CredcoreError


class CQLSyntaxError(CredcoreError):
    """Raised when query text is not a well-formed CQL expression.

    Covers both lexical and grammatical failures so callers only need to
    catch one type.

    Attributes:
        offset: Character offset into the query where the problem was found
        expected: Description of what the parser expected, if known
        found: The offending text, if any
    """

    def __init__(
        self,
        message: str,
        offset: int,
        expected: str | None = None,
        found: str | None = None,
    ):
        super().__init__(message)
        self.offset = offset
        self.expected = expected
        self.found = found

    def __str__(self) -> str:
        return f"CQL syntax error at offset {self.offset}: {self.args[0]}"


class CQLLexError(CQLSyntaxError):
    """Raised when query text cannot be split into tokens.

    Attributes:
        reason: Short description of the lexical problem
    """

    def __init__(self, message: str, offset: int, reason: str):
        super().__init__(message, offset, found=None)
        self.reason = reason


class PropertyLookupFailure(CredcoreError):
    """Raised internally when a candidate property cannot be read.

    Never escapes the evaluator; the enclosing node simply does not match.

    Attributes:
        name: The property that was being read
    """

    def __init__(self, name: str, cause: Exception | None = None):
        super().__init__(f"Unable to read property {name!r}")
        self.name = name
        self.cause = cause


def annotate_query(query: str, offset: int, detail: str) -> str:
    """Render the query with a caret under the offending position.

    Multi-line queries are rendered line by line with the caret placed
    under the line that contains the offset.

    Args:
        query: The original query text
        offset: Character offset of the problem
        detail: Message printed after the caret

    Returns:
        Indented, caret-annotated rendering of the query
    """
    lines = query.split("\n")
    rendered: list[str] = []
    position = 0
    placed = False
    for index, line in enumerate(lines):
        rendered.append(f"    {line}")
        line_end = position + len(line)
        last_line = index == len(lines) - 1
        if not placed and (offset <= line_end or last_line):
            column = max(0, offset - position)
            rendered.append(f"    {' ' * column}^ {detail}")
            placed = True
        position = line_end + 1
    return "\n".join(rendered)
