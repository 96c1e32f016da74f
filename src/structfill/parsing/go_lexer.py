"""Lexer for Go source text."""

import ply.lex as lex


class GoLexer:
    """Lexer for tokenizing Go source.

    Token values keep their raw source text so that callers can slice the
    original document by ``lexpos``. Newlines are turned into SEMICOLON
    tokens following Go's automatic semicolon insertion rule; inserted
    semicolons carry an empty value.
    """

    # Reserved keywords
    reserved = {
        "break": "BREAK",
        "case": "CASE",
        "chan": "CHAN",
        "const": "CONST",
        "continue": "CONTINUE",
        "default": "DEFAULT",
        "defer": "DEFER",
        "else": "ELSE",
        "fallthrough": "FALLTHROUGH",
        "for": "FOR",
        "func": "FUNC",
        "go": "GO",
        "goto": "GOTO",
        "if": "IF",
        "import": "IMPORT",
        "interface": "INTERFACE",
        "map": "MAP",
        "package": "PACKAGE",
        "range": "RANGE",
        "return": "RETURN",
        "select": "SELECT",
        "struct": "STRUCT",
        "switch": "SWITCH",
        "type": "TYPE",
        "var": "VAR",
    }

    # Token list
    tokens = [
        "IDENTIFIER",
        "INT",
        "FLOAT",
        "IMAG",
        "STRING",
        "RAW_STRING",
        "RUNE",
        "LBRACE",
        "RBRACE",
        "LBRACKET",
        "RBRACKET",
        "LPAREN",
        "RPAREN",
        "COLON",
        "COMMA",
        "SEMICOLON",
        "DOT",
        "ELLIPSIS",
        "AMP",
        "STAR",
        "ASSIGN",
        "DEFINE",
        "ARROW",
        "OP",
        "NEWLINE",
    ] + list(reserved.values())

    # Tokens after which a newline ends the statement
    SEMICOLON_TRIGGERS = frozenset({
        "IDENTIFIER", "INT", "FLOAT", "IMAG", "STRING", "RAW_STRING", "RUNE",
        "BREAK", "CONTINUE", "FALLTHROUGH", "RETURN",
        "RPAREN", "RBRACKET", "RBRACE",
    })

    # Simple tokens
    t_LBRACE = r"\{"
    t_RBRACE = r"\}"
    t_LBRACKET = r"\["
    t_RBRACKET = r"\]"
    t_LPAREN = r"\("
    t_RPAREN = r"\)"
    t_COLON = r":"
    t_COMMA = r","
    t_SEMICOLON = r";"
    t_DOT = r"\."
    t_AMP = r"&"
    t_STAR = r"\*"
    t_ASSIGN = r"="

    # Ignored characters (spaces, tabs, carriage returns)
    t_ignore = " \t\r"

    def __init__(self) -> None:
        self.lexer: lex.Lexer = None  # type: ignore
        self._last: lex.LexToken | None = None
        self._eof = False

    def t_ignore_BLOCK_COMMENT(self, t: lex.LexToken) -> lex.LexToken | None:
        r"/\*(.|\n)*?\*/"
        newlines = t.value.count("\n")
        if not newlines:
            return None
        # A multi-line comment acts like a newline
        t.lexer.lineno += newlines
        t.type = "NEWLINE"
        t.value = ""
        return t

    def t_ignore_LINE_COMMENT(self, t: lex.LexToken) -> None:
        r"//[^\n]*"
        # The newline ending the comment is still seen

    def t_RAW_STRING(self, t: lex.LexToken) -> lex.LexToken:
        r"`[^`]*`"
        t.lexer.lineno += t.value.count("\n")
        return t

    def t_STRING(self, t: lex.LexToken) -> lex.LexToken:
        r'"([^"\\\n]|\\.)*"'
        return t

    def t_RUNE(self, t: lex.LexToken) -> lex.LexToken:
        r"'([^'\\\n]|\\.)+'"
        return t

    def t_IMAG(self, t: lex.LexToken) -> lex.LexToken:
        r"(\d[\d_]*(\.[\d_]*)?([eE][+-]?\d+)?|\.\d[\d_]*([eE][+-]?\d+)?)i"
        return t

    def t_FLOAT(self, t: lex.LexToken) -> lex.LexToken:
        r"\d[\d_]*\.[\d_]*([eE][+-]?\d+)?|\d[\d_]*[eE][+-]?\d+|\.\d[\d_]*([eE][+-]?\d+)?"
        return t

    def t_INT(self, t: lex.LexToken) -> lex.LexToken:
        r"0[xX][0-9a-fA-F_]+|0[bB][01_]+|0[oO]?[0-7_]+|\d[\d_]*"
        return t

    def t_ELLIPSIS(self, t: lex.LexToken) -> lex.LexToken:
        r"\.\.\."
        return t

    def t_DEFINE(self, t: lex.LexToken) -> lex.LexToken:
        r":="
        return t

    def t_ARROW(self, t: lex.LexToken) -> lex.LexToken:
        r"<-"
        return t

    def t_OP(self, t: lex.LexToken) -> lex.LexToken:
        r"&\^=|<<=|>>=|&&|\|\||<<|>>|&\^|\+\+|--|==|!=|<=|>=|\+=|-=|\*=|/=|%=|&=|\|=|\^=|[+\-/%|^<>!~]"
        return t

    def t_IDENTIFIER(self, t: lex.LexToken) -> lex.LexToken:
        r"[^\W\d]\w*"
        # Check if it's a reserved word
        t.type = self.reserved.get(t.value, "IDENTIFIER")
        return t

    def t_NEWLINE(self, t: lex.LexToken) -> lex.LexToken:
        r"\n+"
        t.lexer.lineno += len(t.value)
        t.value = ""
        return t

    def t_error(self, t: lex.LexToken) -> None:
        raise SyntaxError(f"Illegal character '{t.value[0]}' at position {t.lexpos}")

    def build(self, **kwargs) -> None:  # type: ignore
        """Build the lexer."""
        self.lexer = lex.lex(module=self, **kwargs)

    def input(self, data: str) -> None:
        """Set the input string to tokenize."""
        self.lexer.input(data)
        self.lexer.lineno = 1
        self._last = None
        self._eof = False

    def token(self) -> lex.LexToken | None:
        """Return the next token, inserting semicolons at line ends."""
        while True:
            tok = self.lexer.token()
            if tok is None:
                if not self._eof and self._ends_statement():
                    self._eof = True
                    return self._semicolon(len(self.lexer.lexdata), self.lexer.lineno)
                self._eof = True
                return None
            if tok.type == "NEWLINE":
                if self._ends_statement():
                    return self._semicolon(tok.lexpos, tok.lineno)
                continue
            self._last = tok
            return tok

    def _ends_statement(self) -> bool:
        last = self._last
        if last is None:
            return False
        if last.type == "OP":
            return last.value in ("++", "--")
        return last.type in self.SEMICOLON_TRIGGERS

    def _semicolon(self, lexpos: int, lineno: int) -> lex.LexToken:
        tok = lex.LexToken()
        tok.type = "SEMICOLON"
        tok.value = ""
        tok.lexpos = lexpos
        tok.lineno = lineno
        self._last = tok
        return tok

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


def token_end(tok: lex.LexToken) -> int:
    """Return the offset just past *tok* in the source it was read from."""
    return tok.lexpos + len(tok.value)
