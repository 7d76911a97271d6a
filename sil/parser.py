from __future__ import annotations

from typing import Dict, List, Sequence

from . import ast
from .errors import ParseError, UnknownTypeName
from .lexer import tokenize
from .tokens import Token, TokenKind

_INFIX_OPS: Dict[TokenKind, ast.BinaryOp] = {
    TokenKind.PLUS: ast.BinaryOp.ADD,
    TokenKind.MINUS: ast.BinaryOp.SUB,
    TokenKind.STAR: ast.BinaryOp.MUL,
    TokenKind.SLASH: ast.BinaryOp.DIV,
}

PRECEDENCE: Dict[ast.BinaryOp, int] = {
    ast.BinaryOp.ADD: 1,
    ast.BinaryOp.SUB: 1,
    ast.BinaryOp.MUL: 2,
    ast.BinaryOp.DIV: 2,
}


def parse(source: str, tokens: Sequence[Token]) -> ast.Root:
    """Parse a complete translation unit.

    `tokens` must end with an EOF token; `source` is the buffer the token
    spans index into.
    """
    if not tokens or tokens[-1].kind is not TokenKind.EOF:
        raise ValueError("token stream must be terminated by an EOF token")
    return Parser(source, tokens).parse_root()


def parse_source(source: str) -> ast.Root:
    return parse(source, tokenize(source))


class Parser:
    def __init__(self, source: str, tokens: Sequence[Token]) -> None:
        self.source = source
        self.tokens = tokens
        self.index = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def advance(self) -> Token:
        tok = self.current
        if tok.kind is not TokenKind.EOF:
            self.index += 1
        return tok

    def expect(self, kind: TokenKind) -> Token:
        tok = self.current
        if tok.kind is not kind:
            raise ParseError(str(kind), str(tok.kind), tok.loc)
        return self.advance()

    def text(self, tok: Token) -> str:
        return tok.text(self.source)

    def parse_root(self) -> ast.Root:
        functions: List[ast.Decl] = []
        loc = self.current.loc
        while True:
            kind = self.current.kind
            if kind is TokenKind.KEYWORD_FN:
                functions.append(self.parse_fn())
            elif kind is TokenKind.KEYWORD_EXTERN:
                functions.append(self.parse_extern_fn())
            elif kind is TokenKind.EOF:
                return ast.Root(functions=functions, loc=loc)
            else:
                raise ParseError("function declaration", str(kind), self.current.loc)

    def parse_fn(self) -> ast.Fn:
        loc = self.current.loc
        proto = self.parse_fn_proto()
        body = self.parse_block()
        return ast.Fn(proto=proto, body=body, loc=loc)

    def parse_extern_fn(self) -> ast.ExternFn:
        loc = self.expect(TokenKind.KEYWORD_EXTERN).loc
        proto = self.parse_fn_proto()
        self.expect(TokenKind.SEMICOLON)
        return ast.ExternFn(proto=proto, loc=loc)

    def parse_fn_proto(self) -> ast.FnProto:
        loc = self.expect(TokenKind.KEYWORD_FN).loc
        name = self.text(self.expect(TokenKind.SYMBOL))
        self.expect(TokenKind.LPAREN)
        params: List[ast.Pattern] = []
        if self.current.kind is not TokenKind.RPAREN:
            params.append(self.parse_pattern())
            while self.current.kind is TokenKind.COMMA:
                self.advance()
                params.append(self.parse_pattern())
        self.expect(TokenKind.RPAREN)
        if self.current.kind is TokenKind.ARROW:
            self.advance()
            return_type = self.parse_type_name()
        else:
            return_type = ast.void_type(self.current.loc)
        return ast.FnProto(name=name, params=params, return_type=return_type, loc=loc)

    def parse_pattern(self) -> ast.Pattern:
        name_tok = self.expect(TokenKind.SYMBOL)
        self.expect(TokenKind.COLON)
        type_name = self.parse_type_name()
        return ast.Pattern(name=self.text(name_tok), type=type_name, loc=name_tok.loc)

    def parse_type_name(self) -> ast.TypeName:
        stars: List[Token] = []
        while self.current.kind is TokenKind.STAR:
            stars.append(self.advance())
        tok = self.expect(TokenKind.SYMBOL)
        name = self.text(tok)
        primitive = ast.PRIMITIVES_BY_NAME.get(name)
        if primitive is None:
            raise UnknownTypeName(name, tok.loc)
        type_name: ast.TypeName = ast.PrimitiveType(kind=primitive, loc=tok.loc)
        # Innermost star wraps the primitive first.
        for star in reversed(stars):
            type_name = ast.PointerType(child=type_name, loc=star.loc)
        return type_name

    def parse_block(self) -> ast.Block:
        loc = self.expect(TokenKind.LBRACE).loc
        statements: List[ast.Stmt] = []
        while self.current.kind is not TokenKind.RBRACE:
            statements.append(self.parse_statement())
        self.advance()
        return ast.Block(statements=statements, loc=loc)

    def parse_statement(self) -> ast.Stmt:
        loc = self.current.loc
        if self.current.kind is TokenKind.KEYWORD_RET:
            self.advance()
            value = self.parse_expression()
            self.expect(TokenKind.SEMICOLON)
            return ast.ReturnStmt(value=value, loc=loc)
        value = self.parse_expression()
        self.expect(TokenKind.SEMICOLON)
        return ast.ExprStmt(value=value, loc=loc)

    def parse_expression(self, min_precedence: int = 1) -> ast.Expr:
        # Precedence climbing; a right operand only absorbs strictly tighter
        # operators, which makes every level left-associative.
        left = self.parse_primary()
        while True:
            op = _INFIX_OPS.get(self.current.kind)
            if op is None or PRECEDENCE[op] < min_precedence:
                return left
            self.advance()
            right = self.parse_expression(PRECEDENCE[op] + 1)
            left = ast.Infix(op=op, left=left, right=right, loc=left.loc)

    def parse_primary(self) -> ast.Expr:
        tok = self.current
        if tok.kind is TokenKind.NUMBER:
            self.advance()
            return ast.NumberLiteral(text=self.text(tok), loc=tok.loc)
        if tok.kind is TokenKind.STRING:
            self.advance()
            return ast.StringLiteral(text=self.text(tok)[1:-1], loc=tok.loc)
        if tok.kind is TokenKind.SYMBOL:
            return self.parse_call()
        if tok.kind is TokenKind.LPAREN:
            self.advance()
            inner = self.parse_expression()
            self.expect(TokenKind.RPAREN)
            return inner
        raise ParseError("expression", str(tok.kind), tok.loc)

    def parse_call(self) -> ast.FunctionCall:
        name_tok = self.expect(TokenKind.SYMBOL)
        self.expect(TokenKind.LPAREN)
        args: List[ast.Expr] = []
        if self.current.kind is not TokenKind.RPAREN:
            args.append(self.parse_expression())
            while self.current.kind is TokenKind.COMMA:
                self.advance()
                args.append(self.parse_expression())
        self.expect(TokenKind.RPAREN)
        return ast.FunctionCall(name=self.text(name_tok), args=args, loc=name_tok.loc)
