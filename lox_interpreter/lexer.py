from typing import List, Any

from .tokens import Token, TokenType, keywords
from .errors import StaticError

SINGLE_CHAR_TOKENS = {
    '(': TokenType.LEFT_PAREN,
    ')': TokenType.RIGHT_PAREN,
    '{': TokenType.LEFT_BRACE,
    '}': TokenType.RIGHT_BRACE,
    ',': TokenType.COMMA,
    '.': TokenType.DOT,
    '-': TokenType.MINUS,
    '+': TokenType.PLUS,
    ';': TokenType.SEMICOLON,
    '*': TokenType.STAR,
}

# char -> (type when followed by '=', type otherwise)
EQUALS_PAIRS = {
    '!': (TokenType.BANG_EQUAL, TokenType.BANG),
    '=': (TokenType.EQUAL_EQUAL, TokenType.EQUAL),
    '<': (TokenType.LESS_EQUAL, TokenType.LESS),
    '>': (TokenType.GREATER_EQUAL, TokenType.GREATER),
}

WHITESPACE = ' \r\t'


class Lexer:
    """
    Turns Lox source text into a list of tokens ending with EOF.

    Bad input never stops the scan: an unexpected character or an unclosed
    string or comment is recorded in `errors`, reported, and skipped.
    """
    def __init__(self, source: str):
        self.source: str = source
        self.tokens: List[Token] = []
        self.errors: List[StaticError] = []
        self.start: int = 0
        self.current: int = 0
        self.line: int = 1

    @property
    def had_error(self) -> bool:
        return bool(self.errors)

    def scan_tokens(self) -> List[Token]:
        while not self._is_at_end():
            self.start = self.current
            self._scan_token()

        self.tokens.append(Token(TokenType.EOF, "", None, self.line))
        return self.tokens

    def _scan_token(self):
        char = self._advance()

        if char in SINGLE_CHAR_TOKENS:
            self._add_token(SINGLE_CHAR_TOKENS[char])
        elif char in EQUALS_PAIRS:
            with_equals, alone = EQUALS_PAIRS[char]
            self._add_token(with_equals if self._match('=') else alone)
        elif char == '/':
            self._slash()
        elif char == '\n':
            self.line += 1
        elif char in WHITESPACE:
            pass
        elif char == '"':
            self._string()
        elif self._is_digit(char):
            self._number()
        elif self._starts_identifier(char):
            self._identifier()
        else:
            self._error("Unexpected character.")

    # --- Lexemes longer than one character ---

    def _slash(self):
        if self._match('/'):
            self._skip_while(lambda: self._peek() != '\n')
        elif self._match('*'):
            self._block_comment()
        else:
            self._add_token(TokenType.SLASH)

    def _block_comment(self):
        """/* ... */, possibly spanning lines. Comments do not nest."""
        while not self._is_at_end() and not (self._peek() == '*' and self._peek_next() == '/'):
            if self._advance() == '\n':
                self.line += 1

        if self._is_at_end():
            self._error("Unterminated block comment.")
            return
        self.current += 2

    def _string(self):
        """A double-quoted string. It may span lines; there are no escapes."""
        while not self._is_at_end() and self._peek() != '"':
            if self._advance() == '\n':
                self.line += 1

        if self._is_at_end():
            self._error("Unterminated string.")
            return

        self._advance()
        self._add_token(TokenType.STRING, self.source[self.start + 1:self.current - 1])

    def _number(self):
        """Digits with an optional fraction. A trailing '.' is left for the next token."""
        self._skip_while(lambda: self._is_digit(self._peek()))
        if self._peek() == '.' and self._is_digit(self._peek_next()):
            self._advance()
            self._skip_while(lambda: self._is_digit(self._peek()))

        self._add_token(TokenType.NUMBER, float(self.source[self.start:self.current]))

    def _identifier(self):
        self._skip_while(lambda: self._continues_identifier(self._peek()))
        text = self.source[self.start:self.current]
        self._add_token(keywords.get(text, TokenType.IDENTIFIER))

    # --- Cursor ---

    def _is_at_end(self) -> bool:
        return self.current >= len(self.source)

    def _advance(self) -> str:
        self.current += 1
        return self.source[self.current - 1]

    def _match(self, expected: str) -> bool:
        if self._peek() != expected:
            return False
        self.current += 1
        return True

    def _peek(self) -> str:
        return self.source[self.current] if self.current < len(self.source) else '\0'

    def _peek_next(self) -> str:
        return self.source[self.current + 1] if self.current + 1 < len(self.source) else '\0'

    def _skip_while(self, condition):
        while not self._is_at_end() and condition():
            self.current += 1

    def _add_token(self, token_type: TokenType, literal: Any = None):
        lexeme = self.source[self.start:self.current]
        self.tokens.append(Token(token_type, lexeme, literal, self.line))

    def _error(self, message: str):
        error = StaticError(self.line, "", message)
        self.errors.append(error)
        error.report()

    # --- Character classes ---

    @staticmethod
    def _is_digit(char: str) -> bool:
        return '0' <= char <= '9'

    @staticmethod
    def _starts_identifier(char: str) -> bool:
        return char == '_' or ('a' <= char <= 'z') or ('A' <= char <= 'Z')

    def _continues_identifier(self, char: str) -> bool:
        return self._starts_identifier(char) or self._is_digit(char)
