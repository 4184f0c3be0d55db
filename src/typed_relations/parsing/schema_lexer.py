"""Lexer for the schema definition DSL."""

import ply.lex as lex


class SchemaLexer:
    """Lexer for tokenizing relation definitions.

    Handles both ``create table`` statements and the bare whitespace
    separated name lists accepted by ``Table.create``.
    """

    # Reserved keywords (matched case-insensitively)
    reserved = {
        "create": "CREATE",
        "table": "TABLE",
        "key": "KEY",
    }

    # Token list
    tokens = [
        "IDENTIFIER",
        "LPAREN",
        "RPAREN",
        "COMMA",
        "SEMICOLON",
    ] + list(reserved.values())

    # Simple tokens
    t_LPAREN = r"\("
    t_RPAREN = r"\)"
    t_COMMA = r","
    t_SEMICOLON = r";"

    # Ignored characters (spaces and tabs)
    t_ignore = " \t\r"

    # Comments
    t_ignore_COMMENT = r"\#[^\n]*"

    def __init__(self) -> None:
        self.lexer: lex.Lexer = None  # type: ignore

    def t_IDENTIFIER(self, t: lex.LexToken) -> lex.LexToken:
        r"[a-zA-Z_][a-zA-Z0-9_]*"
        t.type = self.reserved.get(t.value.lower(), "IDENTIFIER")
        return t

    def t_NEWLINE(self, t: lex.LexToken) -> None:
        r"\n+"
        t.lexer.lineno += len(t.value)

    def t_error(self, t: lex.LexToken) -> None:
        raise SyntaxError(f"Illegal character '{t.value[0]}' at line {t.lineno}")

    def build(self, **kwargs) -> None:  # type: ignore
        """Build the lexer."""
        self.lexer = lex.lex(module=self, **kwargs)

    def input(self, data: str) -> None:
        """Set the input string to tokenize."""
        self.lexer.input(data)

    def token(self) -> lex.LexToken | None:
        """Return the next token."""
        return self.lexer.token()

    def tokenize(self, data: str) -> list[lex.LexToken]:
        """Tokenize the input and return all tokens."""
        self.input(data)
        tokens = []
        while True:
            tok = self.token()
            if tok is None:
                break
            tokens.append(tok)
        return tokens

    def words(self, data: str) -> list[str]:
        """Split a whitespace separated name list into names.

        Keywords are allowed here, since a list holds names only.

        Raises:
            SyntaxError: If the list holds anything other than names.
        """
        names = []
        for tok in self.tokenize(data):
            if tok.type == "IDENTIFIER" or tok.type in self.reserved.values():
                names.append(tok.value)
            else:
                raise SyntaxError(f"Unexpected '{tok.value}' in name list {data!r}")
        return names
