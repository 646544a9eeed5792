# Lexer, AST and Pratt parser for the canonical expression form produced by
# scicalc.normalizer. Nothing here evaluates anything; the AST is walked by
# scicalc.evaluator. Input text is never compiled or executed as code.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .errors import LexerError, ParseError

# --------------------------
# Tokenizer / Lexer
# --------------------------


@dataclass
class Token:
    """Represents a token with type, value, and character position."""
    type: str
    value: Any
    pos: int

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value!r}, pos={self.pos})"


_MULTI_OPS = {'**'}
_SINGLE_OP_CHARS = set('+-*/')
_DIGITS = set('0123456789')


class Lexer:
    """Tokenizer for canonical expressions.

    Produces tokens: NUMBER, IDENT, OP, LPAREN, RPAREN, EOF.
    '-' is always an operator; negative literals are parsed as unary minus.
    """

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.len = len(text)

    def _peek(self, n: int = 0) -> str:
        i = self.pos + n
        return self.text[i] if i < self.len else ''

    def _advance(self, n: int = 1) -> None:
        self.pos += n

    def _skip_whitespace(self) -> None:
        while self._peek() and self._peek().isspace():
            self._advance()

    def _read_number(self) -> Token:
        start = self.pos
        has_dot = False
        while True:
            ch = self._peek()
            if ch in _DIGITS:
                self._advance()
            elif ch == '.':
                if has_dot:
                    raise LexerError(f"Unexpected second decimal point at pos {self.pos}")
                has_dot = True
                self._advance()
            else:
                break
        raw = self.text[start:self.pos]
        if raw == '.':
            raise LexerError(f"Invalid numeric literal at pos {start}")
        return Token('NUMBER', float(raw), start)

    def _read_ident(self) -> Token:
        start = self.pos
        while True:
            ch = self._peek()
            if ch.isascii() and (ch.isalnum() or ch == '_'):
                self._advance()
            else:
                break
        return Token('IDENT', self.text[start:self.pos], start)

    def _match_op(self) -> Optional[str]:
        if self.pos + 2 <= self.len:
            two = self.text[self.pos:self.pos + 2]
            if two in _MULTI_OPS:
                return two
        ch = self._peek()
        if ch in _SINGLE_OP_CHARS:
            return ch
        return None

    def tokenize(self) -> List[Token]:
        tokens: List[Token] = []
        while True:
            self._skip_whitespace()
            ch = self._peek()
            if ch == '':
                break
            if ch in _DIGITS or ch == '.':
                tokens.append(self._read_number())
            elif ch.isascii() and (ch.isalpha() or ch == '_'):
                tokens.append(self._read_ident())
            elif ch == '(':
                tokens.append(Token('LPAREN', ch, self.pos))
                self._advance()
            elif ch == ')':
                tokens.append(Token('RPAREN', ch, self.pos))
                self._advance()
            else:
                op = self._match_op()
                if not op:
                    raise LexerError(f"Unknown character at pos {self.pos}: {ch!r}")
                tokens.append(Token('OP', op, self.pos))
                self._advance(len(op))
        tokens.append(Token('EOF', None, self.pos))
        return tokens

# --------------------------
# AST Nodes
# --------------------------


@dataclass
class ASTNode:
    """Base AST node."""
    pass


@dataclass
class Number(ASTNode):
    value: float


@dataclass
class Name(ASTNode):
    name: str


@dataclass
class UnaryOp(ASTNode):
    op: str
    operand: ASTNode


@dataclass
class BinaryOp(ASTNode):
    op: str
    left: ASTNode
    right: ASTNode


@dataclass
class Call(ASTNode):
    """Any operand followed by a parenthesised argument; ``arg`` is None for ``f()``."""
    callee: ASTNode
    arg: Optional[ASTNode]

# --------------------------
# Parser (Pratt/top-down precedence)
# --------------------------

# Prefix operators bind as tightly as **. A signed base such as -2**2 is
# rejected in nud(); 2**-1 is still accepted.
PREFIX_BP: Dict[str, int] = {
    '+': 70,
    '-': 70,
}

# Infix operators: map to (binding_power, right_assoc)
INFIX_BP: Dict[str, Tuple[int, bool]] = {
    '**': (70, True),
    '*': (60, False),
    '/': (60, False),
    '+': (50, False),
    '-': (50, False),
}


class Parser:
    """Pratt parser producing an AST for canonical expressions."""

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0

    def _current(self) -> Token:
        return self.tokens[self.pos]

    def _advance(self) -> Token:
        tok = self.tokens[self.pos]
        if tok.type != 'EOF':
            self.pos += 1
        return tok

    def _expect(self, typ: str) -> Token:
        tok = self._current()
        if tok.type != typ:
            raise ParseError(f"Expected {typ} at pos {tok.pos}; got {tok.type} {tok.value!r}")
        return self._advance()

    def parse(self) -> ASTNode:
        node = self.parse_expression(0)
        if self._current().type != 'EOF':
            tok = self._current()
            raise ParseError(f"Unexpected token {tok.value!r} at pos {tok.pos}")
        return node

    def parse_expression(self, rbp: int = 0) -> ASTNode:
        tok = self._advance()
        left = self.nud(tok)
        while True:
            cur = self._current()
            if cur.type == 'LPAREN':
                # 2(3) is a call, not multiplication; the evaluator rejects
                # callees that are not functions.
                self._advance()
                if self._current().type == 'RPAREN':
                    arg = None
                else:
                    arg = self.parse_expression(0)
                self._expect('RPAREN')
                left = Call(left, arg)
                continue
            if cur.type == 'OP' and cur.value in INFIX_BP:
                bp, right_assoc = INFIX_BP[cur.value]
                if bp <= rbp:
                    break
                op_tok = self._advance()
                rhs_rbp = bp - 1 if right_assoc else bp
                right = self.parse_expression(rhs_rbp)
                left = BinaryOp(op_tok.value, left, right)
                continue
            break
        return left

    def nud(self, tok: Token) -> ASTNode:
        """Null denotation (prefix/primary)."""
        if tok.type == 'NUMBER':
            return Number(tok.value)
        if tok.type == 'IDENT':
            return Name(tok.value)
        if tok.type == 'LPAREN':
            expr = self.parse_expression(0)
            self._expect('RPAREN')
            return expr
        if tok.type == 'OP' and tok.value in PREFIX_BP:
            operand = self.parse_expression(PREFIX_BP[tok.value])
            cur = self._current()
            if cur.type == 'OP' and cur.value == '**':
                raise ParseError(f"Signed base before '**' at pos {cur.pos}; use parentheses")
            return UnaryOp(tok.value, operand)
        if tok.type == 'EOF':
            raise ParseError("Unexpected end of expression")
        raise ParseError(f"Unexpected token {tok.type} {tok.value!r} at pos {tok.pos}")


def parse(text: str) -> ASTNode:
    """Tokenize and parse ``text`` into an AST."""
    return Parser(Lexer(text).tokenize()).parse()
