"""
Recursive-descent parser from tokens to a Term tree.

Grammar, lowest precedence first:

    expression     := additive ('±' additive)*
    additive       := multiplicative (('+' | '-') multiplicative)*
    multiplicative := unary (('*' | '/') unary | <implicit> unary)*
    unary          := ('-' | '+' | '±') unary | power
    power          := postfix ('^' unary)?
    postfix        := atom ('!' | '%')*
    atom           := NUMBER | IDENT | IDENT '(' [args] ')' | '(' expression ')'

`^` is right-associative through its `unary` operand, so `2^3^2` is
`2^(3^2)` and `-2^2` is `-(2^2)`.

The only Context queries are the implicit multiplication flag and
function-name lookup, used to decide whether `name(` starts a call or a
variable times a parenthesised group.
"""

import os
import sys
from typing import List, Optional, TYPE_CHECKING

from mexpr.mexpr_errors import ParseError
from mexpr.mexpr_lexer import COMMA, IDENT, LPAREN, NUMBER, OPERATOR, RPAREN, Token, tokenize
from mexpr.mexpr_terms import FunctionCall, Number, Op, Operation, Term, Variable

if TYPE_CHECKING:
    from mexpr.mexpr_context import Context

END = 'end'

BINARY_OPS = {
    '+': Op.ADD,
    '-': Op.SUB,
    '*': Op.MUL,
    '/': Op.DIV,
    '^': Op.POW,
    '±': Op.PLUS_MINUS,
}

POSTFIX_OPS = {
    '!': Op.FACTORIAL,
    '%': Op.PERCENT,
}


def _dbg(*parts):
    if os.environ.get("MEXPR_DEBUG"):
        print("[DBG]", *parts, file=sys.stderr)


def _describe(tok: Token) -> str:
    if tok.kind == END:
        return "end of input"
    return repr(tok.text)


class Parser:
    def __init__(self, tokens: List[Token], ctx: 'Context'):
        self.tokens = tokens
        self.ctx = ctx
        self.pos = 0
        self.end = self._end_token(tokens)

    @staticmethod
    def _end_token(tokens: List[Token]) -> Token:
        if not tokens:
            return Token(END, '', 0)
        last = tokens[-1]
        return Token(END, '', last.pos + len(last.text), last.line, last.col + len(last.text))

    # --- Token access ---
    def peek(self) -> Token:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return self.end

    def previous(self) -> Optional[Token]:
        return self.tokens[self.pos - 1] if self.pos > 0 else None

    def advance(self) -> Token:
        tok = self.peek()
        if tok.kind != END:
            self.pos += 1
        return tok

    def expect_close(self, opener: Token) -> Token:
        tok = self.peek()
        if tok.kind == RPAREN:
            return self.advance()
        if tok.kind == END:
            raise ParseError("unbalanced parentheses: '(' is never closed", opener)
        raise self._unexpected(tok)

    # --- Entry point ---
    def parse(self) -> Term:
        if self.peek().kind == END:
            raise ParseError("expected an expression", self.end)
        term = self.expression()
        tok = self.peek()
        if tok.kind != END:
            raise self._unexpected(tok)
        return term

    # --- Grammar ---
    def expression(self) -> Term:
        left = self.additive()
        while self.peek().is_op('±'):
            op_tok = self.advance()
            left = Operation(Op.PLUS_MINUS, (left, self.additive()), op_tok.loc)
        return left

    def additive(self) -> Term:
        left = self.multiplicative()
        while self.peek().is_op('+', '-'):
            op_tok = self.advance()
            left = Operation(BINARY_OPS[op_tok.text], (left, self.multiplicative()), op_tok.loc)
        return left

    def multiplicative(self) -> Term:
        left = self.unary()
        while True:
            tok = self.peek()
            if tok.is_op('*', '/'):
                self.advance()
                left = Operation(BINARY_OPS[tok.text], (left, self.unary()), tok.loc)
            elif self._implicit_multiplication_follows():
                _dbg("PARSE implicit *", "before", tok.text)
                left = Operation(Op.MUL, (left, self.unary()), tok.loc)
            else:
                return left

    def unary(self) -> Term:
        tok = self.peek()
        if tok.is_op('-'):
            self.advance()
            return Operation(Op.NEG, (self.unary(),), tok.loc)
        if tok.is_op('±'):
            self.advance()
            return Operation(Op.PLUS_MINUS, (self.unary(),), tok.loc)
        if tok.is_op('+'):
            self.advance()
            return self.unary()
        return self.power()

    def power(self) -> Term:
        base = self.postfix()
        if self.peek().is_op('^'):
            op_tok = self.advance()
            return Operation(Op.POW, (base, self.unary()), op_tok.loc)
        return base

    def postfix(self) -> Term:
        term = self.atom()
        while self.peek().is_op(*POSTFIX_OPS):
            op_tok = self.advance()
            term = Operation(POSTFIX_OPS[op_tok.text], (term,), op_tok.loc)
        return term

    def atom(self) -> Term:
        tok = self.peek()
        if tok.kind == NUMBER:
            self.advance()
            return Number(tok.text, tok.loc)
        if tok.kind == IDENT:
            self.advance()
            if self.peek().kind == LPAREN and self._is_call(tok.text):
                return self.call(tok)
            return Variable(tok.text, tok.loc)
        if tok.kind == LPAREN:
            self.advance()
            if self.peek().kind == RPAREN:
                raise ParseError("empty parentheses", self.peek())
            inner = self.expression()
            self.expect_close(tok)
            return inner
        if tok.kind == END:
            raise ParseError("unexpected end of input", tok)
        raise self._unexpected(tok)

    def call(self, name_tok: Token) -> FunctionCall:
        opener = self.advance()
        args: List[Term] = []
        if self.peek().kind == RPAREN:
            self.advance()
            return FunctionCall(name_tok.text, args, name_tok.loc)
        while True:
            tok = self.peek()
            if tok.kind in (COMMA, RPAREN):
                raise ParseError(f"empty argument in call to {name_tok.text!r}", tok)
            args.append(self.expression())
            tok = self.peek()
            if tok.kind == COMMA:
                self.advance()
                continue
            self.expect_close(opener)
            return FunctionCall(name_tok.text, args, name_tok.loc)

    # --- Ambiguity rules ---
    def _is_call(self, name: str) -> bool:
        implicit = self.ctx.implicit_multiplication
        known = self.ctx.is_function(name)
        _dbg("PARSE name(", name, "implicit", implicit, "known", known)
        return not implicit or known

    def _implicit_multiplication_follows(self) -> bool:
        if not self.ctx.implicit_multiplication:
            return False
        prev, nxt = self.previous(), self.peek()
        if prev is None:
            return False
        if prev.kind == NUMBER:
            return nxt.kind in (IDENT, LPAREN)
        if prev.kind == RPAREN:
            return nxt.kind in (IDENT, NUMBER, LPAREN)
        if prev.kind == IDENT:
            return nxt.kind == LPAREN
        return False

    def _unexpected(self, tok: Token) -> ParseError:
        if tok.kind == RPAREN:
            return ParseError("unbalanced parentheses: unexpected ')'", tok)
        if tok.kind in (NUMBER, IDENT, LPAREN):
            hint = "" if self.ctx.implicit_multiplication else " (implicit multiplication is disabled)"
            return ParseError(f"missing operator before {_describe(tok)}{hint}", tok)
        if tok.kind == OPERATOR:
            return ParseError(f"unexpected operator {_describe(tok)}", tok)
        return ParseError(f"unexpected {_describe(tok)}", tok)


def parse_term(source: str, ctx: 'Context') -> Term:
    """Tokenizes and parses source against ctx."""
    return Parser(tokenize(source), ctx).parse()


__all__ = ["Parser", "parse_term"]
