"""Text templates using the `{{ ... }}` action language.

Release configuration files are written against a small, well-known template
dialect (field chains like `{{ .Env.FOO }}`, function calls like
`{{ dir .ArtifactPath }}`, pipelines and `if`/`else`). This module lexes,
parses and executes that dialect against a plain mapping.

Error messages follow the dialect's canonical shapes because downstream
tooling matches on them:

- parse errors: ``template: tmpl:1: unexpected "}" in operand``
- execution errors:
  ``template: tmpl:1:6: executing "tmpl" at <.Env.NOPE>: map has no entry for key "NOPE"``

This module is intentionally app-agnostic and must not import `releaser.*`.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Callable, Union

DEFAULT_TEMPLATE_NAME = "tmpl"

_LEFT = "{{"
_RIGHT = "}}"
_COMMENT_OPEN = "/*"
_COMMENT_CLOSE = "*/"
_SPACE_CHARS = " \t\r\n"
_KEYWORDS = {"if", "else", "end"}


class TemplateError(ValueError):
    """Raised for malformed templates and for failures while rendering them."""


# ---------------------------------------------------------------------------
# Lexer
# ---------------------------------------------------------------------------

T_TEXT = "text"
T_LEFT = "left"
T_RIGHT = "right"
T_SPACE = "space"
T_FIELD = "field"
T_DOT = "dot"
T_IDENT = "identifier"
T_KEYWORD = "keyword"
T_STRING = "string"
T_RAW_STRING = "raw_string"
T_NUMBER = "number"
T_BOOL = "bool"
T_NIL = "nil"
T_PIPE = "pipe"
T_LPAREN = "lparen"
T_RPAREN = "rparen"
T_CHAR = "char"
T_ERROR = "error"
T_EOF = "eof"


@dataclass(frozen=True)
class Token:
    typ: str
    val: str
    pos: int
    line: int

    def describe(self) -> str:
        if self.typ == T_EOF:
            return "EOF"
        if self.typ == T_KEYWORD:
            return f"<{self.val}>"
        if self.typ == T_SPACE:
            return "space"
        return json.dumps(self.val)


def _is_ident_char(ch: str) -> bool:
    return ch == "_" or ch.isalnum()


class _Lexer:
    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.tokens: list[Token] = []
        self.paren_depth = 0

    def _line_at(self, pos: int) -> int:
        return 1 + self.text.count("\n", 0, pos)

    def _emit(self, typ: str, val: str, pos: int) -> None:
        self.tokens.append(Token(typ, val, pos, self._line_at(pos)))

    def _error(self, message: str, pos: int) -> None:
        self._emit(T_ERROR, message, pos)

    def run(self) -> list[Token]:
        text = self.text
        while self.pos < len(text):
            start = text.find(_LEFT, self.pos)
            if start < 0:
                self._emit(T_TEXT, text[self.pos :], self.pos)
                self.pos = len(text)
                break

            trim_left = text.startswith("-", start + 2) and (
                start + 3 < len(text) and text[start + 3] in _SPACE_CHARS
            )
            chunk = text[self.pos : start]
            if trim_left:
                chunk = chunk.rstrip(_SPACE_CHARS)
            if chunk:
                self._emit(T_TEXT, chunk, self.pos)

            inner = start + (4 if trim_left else 2)
            if text.startswith(_COMMENT_OPEN, inner):
                if not self._lex_comment(start, inner):
                    return self.tokens
                continue

            self._emit(T_LEFT, _LEFT, start)
            self.pos = inner
            if not self._lex_inside_action():
                return self.tokens

        self._emit(T_EOF, "", len(text))
        return self.tokens

    def _lex_comment(self, start: int, inner: int) -> bool:
        text = self.text
        close = text.find(_COMMENT_CLOSE, inner + 2)
        if close < 0:
            self._error("unclosed comment", start)
            return False
        after = close + 2
        trim_right = False
        if text.startswith(" -" + _RIGHT, after) or text.startswith("\t-" + _RIGHT, after):
            trim_right = True
            after += 1
        if not text.startswith(_RIGHT if not trim_right else "-" + _RIGHT, after):
            self._error("comment ends before closing delimiter", start)
            return False
        self.pos = after + (3 if trim_right else 2)
        if trim_right:
            self._skip_leading_space()
        return True

    def _skip_leading_space(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos] in _SPACE_CHARS:
            self.pos += 1

    def _lex_inside_action(self) -> bool:
        text = self.text
        while True:
            if self.pos >= len(text):
                self._error("unclosed action", self.pos)
                return False

            ch = text[self.pos]

            if ch in _SPACE_CHARS:
                start = self.pos
                while self.pos < len(text) and text[self.pos] in _SPACE_CHARS:
                    self.pos += 1
                if text.startswith("-" + _RIGHT, self.pos) and self.paren_depth == 0:
                    self._emit(T_RIGHT, _RIGHT, self.pos + 1)
                    self.pos += 3
                    self._skip_leading_space()
                    return True
                self._emit(T_SPACE, text[start : self.pos], start)
                continue

            if text.startswith(_RIGHT, self.pos):
                if self.paren_depth > 0:
                    self._error("unclosed left paren", self.pos)
                    return False
                self._emit(T_RIGHT, _RIGHT, self.pos)
                self.pos += 2
                return True

            if ch == "|":
                self._emit(T_PIPE, ch, self.pos)
                self.pos += 1
            elif ch == "(":
                self.paren_depth += 1
                self._emit(T_LPAREN, ch, self.pos)
                self.pos += 1
            elif ch == ")":
                self.paren_depth -= 1
                if self.paren_depth < 0:
                    self._error("unexpected right paren", self.pos)
                    return False
                self._emit(T_RPAREN, ch, self.pos)
                self.pos += 1
            elif ch == '"':
                if not self._lex_quote():
                    return False
            elif ch == "`":
                end = text.find("`", self.pos + 1)
                if end < 0:
                    self._error("unterminated raw quoted string", self.pos)
                    return False
                self._emit(T_RAW_STRING, text[self.pos : end + 1], self.pos)
                self.pos = end + 1
            elif ch == ".":
                nxt = text[self.pos + 1] if self.pos + 1 < len(text) else ""
                if nxt and (nxt.isalpha() or nxt == "_"):
                    start = self.pos
                    self.pos += 1
                    while self.pos < len(text) and _is_ident_char(text[self.pos]):
                        self.pos += 1
                    self._emit(T_FIELD, text[start : self.pos], start)
                else:
                    self._emit(T_DOT, ch, self.pos)
                    self.pos += 1
            elif ch.isdigit() or (
                ch in "+-" and self.pos + 1 < len(text) and text[self.pos + 1].isdigit()
            ):
                start = self.pos
                self.pos += 1
                while self.pos < len(text) and (text[self.pos].isalnum() or text[self.pos] in "._"):
                    self.pos += 1
                self._emit(T_NUMBER, text[start : self.pos], start)
            elif ch.isalpha() or ch == "_":
                start = self.pos
                while self.pos < len(text) and _is_ident_char(text[self.pos]):
                    self.pos += 1
                word = text[start : self.pos]
                if word in _KEYWORDS:
                    self._emit(T_KEYWORD, word, start)
                elif word in ("true", "false"):
                    self._emit(T_BOOL, word, start)
                elif word == "nil":
                    self._emit(T_NIL, word, start)
                else:
                    self._emit(T_IDENT, word, start)
            else:
                self._emit(T_CHAR, ch, self.pos)
                self.pos += 1

    def _lex_quote(self) -> bool:
        text = self.text
        start = self.pos
        i = start + 1
        while i < len(text):
            ch = text[i]
            if ch == "\\":
                i += 2
                continue
            if ch == "\n":
                break
            if ch == '"':
                self._emit(T_STRING, text[start : i + 1], start)
                self.pos = i + 1
                return True
            i += 1
        self._error("unterminated quoted string", start)
        return False


# ---------------------------------------------------------------------------
# Parse tree
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TextNode:
    pos: int
    text: str


@dataclass(frozen=True)
class FieldNode:
    pos: int
    idents: tuple[str, ...]

    def __str__(self) -> str:
        return "".join("." + ident for ident in self.idents)


@dataclass(frozen=True)
class DotNode:
    pos: int

    def __str__(self) -> str:
        return "."


@dataclass(frozen=True)
class IdentifierNode:
    pos: int
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class StringNode:
    pos: int
    quoted: str
    text: str

    def __str__(self) -> str:
        return self.quoted


@dataclass(frozen=True)
class NumberNode:
    pos: int
    literal: str
    value: int | float

    def __str__(self) -> str:
        return self.literal


@dataclass(frozen=True)
class BoolNode:
    pos: int
    value: bool

    def __str__(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class NilNode:
    pos: int

    def __str__(self) -> str:
        return "nil"


@dataclass(frozen=True)
class CommandNode:
    pos: int
    args: tuple["ArgNode", ...]

    def __str__(self) -> str:
        parts = []
        for arg in self.args:
            if isinstance(arg, PipeNode):
                parts.append(f"({arg})")
            else:
                parts.append(str(arg))
        return " ".join(parts)


@dataclass(frozen=True)
class PipeNode:
    pos: int
    line: int
    cmds: tuple[CommandNode, ...]

    def __str__(self) -> str:
        return " | ".join(str(cmd) for cmd in self.cmds)


@dataclass(frozen=True)
class ActionNode:
    pos: int
    pipe: PipeNode


@dataclass(frozen=True)
class IfNode:
    pos: int
    pipe: PipeNode
    body: tuple["Node", ...]
    else_body: tuple["Node", ...] = ()


ArgNode = Union[FieldNode, DotNode, IdentifierNode, StringNode, NumberNode, BoolNode, NilNode, PipeNode]
Node = Union[TextNode, ActionNode, IfNode]


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class _Parser:
    def __init__(self, name: str, tokens: list[Token], funcs: Mapping[str, Any]):
        self.name = name
        self.tokens = tokens
        self.index = 0
        self.funcs = funcs

    def error(self, message: str, line: int) -> TemplateError:
        return TemplateError(f"template: {self.name}:{line}: {message}")

    def next(self) -> Token:
        token = self.tokens[self.index]
        if token.typ == T_ERROR:
            raise self.error(token.val, token.line)
        if token.typ != T_EOF:
            self.index += 1
        return token

    def backup(self) -> None:
        self.index -= 1

    def peek(self) -> Token:
        token = self.tokens[self.index]
        if token.typ == T_ERROR:
            raise self.error(token.val, token.line)
        return token

    def next_non_space(self) -> Token:
        token = self.next()
        while token.typ == T_SPACE:
            token = self.next()
        return token

    def peek_non_space(self) -> Token:
        token = self.next_non_space()
        if token.typ != T_EOF:
            self.backup()
        return token

    def unexpected(self, token: Token, context: str) -> TemplateError:
        return self.error(f"unexpected {token.describe()} in {context}", token.line)

    def parse(self) -> tuple[Node, ...]:
        nodes, stop = self.item_list()
        if stop is not None:
            raise self.error(f"unexpected {{{{{stop.val}}}}}", stop.line)
        return nodes

    def item_list(self) -> tuple[tuple[Node, ...], Token | None]:
        """Parse nodes until EOF (returns None) or an `else`/`end` keyword (returned)."""

        nodes: list[Node] = []
        while True:
            token = self.next()
            if token.typ == T_EOF:
                return tuple(nodes), None
            if token.typ == T_TEXT:
                nodes.append(TextNode(token.pos, token.val))
                continue
            if token.typ != T_LEFT:
                raise self.unexpected(token, "input")

            head = self.peek_non_space()
            if head.typ == T_KEYWORD:
                self.next_non_space()
                if head.val == "if":
                    nodes.append(self.parse_if(head))
                    continue
                return tuple(nodes), head

            pipe = self.pipeline("command", T_RIGHT)
            nodes.append(ActionNode(pipe.pos, pipe))

    def expect_right(self, context: str) -> None:
        token = self.next_non_space()
        if token.typ != T_RIGHT:
            raise self.unexpected(token, context)

    def parse_if(self, keyword: Token) -> IfNode:
        pipe = self.pipeline("if", T_RIGHT)
        body, stop = self.item_list()
        if stop is None:
            raise self.error("unexpected EOF", self.tokens[-1].line)

        else_body: tuple[Node, ...] = ()
        if stop.val == "else":
            after = self.peek_non_space()
            if after.typ == T_KEYWORD and after.val == "if":
                self.next_non_space()
                else_body = (self.parse_if(after),)
                return IfNode(keyword.pos, pipe, body, else_body)

            self.expect_right("else")
            else_body, stop = self.item_list()
            if stop is None:
                raise self.error("unexpected EOF", self.tokens[-1].line)
            if stop.val != "end":
                raise self.error("expected end; found {{else}}", stop.line)

        self.expect_right("end")
        return IfNode(keyword.pos, pipe, body, else_body)

    def pipeline(self, context: str, end: str) -> PipeNode:
        start = self.peek_non_space()
        cmds: list[CommandNode] = []
        while True:
            token = self.next_non_space()
            if token.typ == end:
                if not cmds:
                    raise self.error(f"missing value for {context}", token.line)
                return PipeNode(start.pos, start.line, tuple(cmds))
            if token.typ in (
                T_FIELD,
                T_DOT,
                T_IDENT,
                T_STRING,
                T_RAW_STRING,
                T_NUMBER,
                T_BOOL,
                T_NIL,
                T_LPAREN,
            ):
                self.backup()
                cmds.append(self.command())
                continue
            raise self.unexpected(token, context)

    def command(self) -> CommandNode:
        args: list[ArgNode] = []
        start = self.peek_non_space()
        while True:
            self.peek_non_space()
            operand = self.operand()
            if operand is not None:
                args.append(operand)
            token = self.next()
            if token.typ == T_SPACE:
                continue
            if token.typ in (T_RIGHT, T_RPAREN):
                self.backup()
            elif token.typ == T_PIPE:
                pass
            else:
                raise self.unexpected(token, "operand")
            break
        if not args:
            raise self.error("empty command", start.line)
        return CommandNode(start.pos, tuple(args))

    def operand(self) -> ArgNode | None:
        token = self.next_non_space()
        if token.typ == T_FIELD:
            idents = [token.val[1:]]
            pos = token.pos
            if self.peek().typ == T_FIELD:
                pos = self.peek().pos
                while self.peek().typ == T_FIELD:
                    idents.append(self.next().val[1:])
            return FieldNode(pos, tuple(idents))
        if token.typ == T_DOT:
            return DotNode(token.pos)
        if token.typ == T_IDENT:
            if token.val not in self.funcs:
                raise self.error(f'function "{token.val}" not defined', token.line)
            return IdentifierNode(token.pos, token.val)
        if token.typ == T_STRING:
            try:
                text = json.loads(token.val)
            except ValueError as exc:
                raise self.error(f"invalid syntax: {token.val}", token.line) from exc
            return StringNode(token.pos, token.val, text)
        if token.typ == T_RAW_STRING:
            return StringNode(token.pos, token.val, token.val[1:-1])
        if token.typ == T_NUMBER:
            return NumberNode(token.pos, token.val, self._number(token))
        if token.typ == T_BOOL:
            return BoolNode(token.pos, token.val == "true")
        if token.typ == T_NIL:
            return NilNode(token.pos)
        if token.typ == T_LPAREN:
            return self.pipeline("parenthesized pipeline", T_RPAREN)
        if token.typ != T_EOF:
            self.backup()
        return None

    def _number(self, token: Token) -> int | float:
        try:
            return int(token.val, 0)
        except ValueError:
            pass
        try:
            return float(token.val)
        except ValueError:
            raise self.error(f"bad number syntax: {token.describe()}", token.line) from None


# ---------------------------------------------------------------------------
# Built-in functions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TemplateFunc:
    fn: Callable[..., Any]
    min_args: int
    max_args: int | None = None

    @classmethod
    def fixed(cls, fn: Callable[..., Any], nargs: int) -> "TemplateFunc":
        return cls(fn, nargs, nargs)

    @classmethod
    def variadic(cls, fn: Callable[..., Any], min_args: int = 0) -> "TemplateFunc":
        return cls(fn, min_args, None)


def truthy(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, (bool, int, float, str, bytes)):
        return bool(value)
    if isinstance(value, (Mapping, Sequence)):
        return len(value) > 0
    return True


def stringify(value: Any) -> str:
    if value is None:
        return "<no value>"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        items = " ".join(f"{stringify(k)}:{stringify(value[k])}" for k in sorted(value, key=str))
        return f"map[{items}]"
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(stringify(item) for item in value) + "]"
    return str(value)


def _compare(op: str, left: Any, right: Any) -> bool:
    try:
        if op == "lt":
            return left < right
        if op == "le":
            return left <= right
        if op == "gt":
            return left > right
        return left >= right
    except TypeError:
        raise ValueError("incompatible types for comparison") from None


def _eq(arg1: Any, *others: Any) -> bool:
    if not others:
        raise ValueError("missing argument for comparison")
    return any(arg1 == other for other in others)


def _and(*args: Any) -> Any:
    for arg in args:
        if not truthy(arg):
            return arg
    return args[-1]


def _or(*args: Any) -> Any:
    for arg in args:
        if truthy(arg):
            return arg
    return args[-1]


def _index(item: Any, *keys: Any) -> Any:
    current = item
    for key in keys:
        if isinstance(current, Mapping):
            current = current.get(key)
        elif isinstance(current, (list, tuple, str)):
            if not isinstance(key, int) or isinstance(key, bool):
                raise ValueError(f"cannot index slice/array with type {type(key).__name__}")
            if key < 0 or key >= len(current):
                raise ValueError(f"index out of range: {key}")
            current = current[key]
        else:
            raise ValueError(f"can't index item of type {type(current).__name__}")
    return current


def _length(item: Any) -> int:
    if isinstance(item, (str, Mapping, list, tuple)):
        return len(item)
    raise ValueError(f"len of type {type(item).__name__}")


def _dir(path: str) -> str:
    """Lexical parent directory, `.` when the path has no directory part."""
    if not path:
        return "."
    parent = os.path.dirname(os.path.normpath(path))
    return parent or "."


def _base(path: str) -> str:
    if not path:
        return "."
    stripped = path.rstrip("/")
    if not stripped:
        return "/"
    return os.path.basename(stripped)


def _title(text: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in text.split(" "))


BUILTIN_FUNCS: dict[str, TemplateFunc] = {
    "eq": TemplateFunc.variadic(_eq, 1),
    "ne": TemplateFunc.fixed(lambda a, b: a != b, 2),
    "lt": TemplateFunc.fixed(lambda a, b: _compare("lt", a, b), 2),
    "le": TemplateFunc.fixed(lambda a, b: _compare("le", a, b), 2),
    "gt": TemplateFunc.fixed(lambda a, b: _compare("gt", a, b), 2),
    "ge": TemplateFunc.fixed(lambda a, b: _compare("ge", a, b), 2),
    "not": TemplateFunc.fixed(lambda a: not truthy(a), 1),
    "and": TemplateFunc.variadic(_and, 1),
    "or": TemplateFunc.variadic(_or, 1),
    "len": TemplateFunc.fixed(_length, 1),
    "index": TemplateFunc.variadic(_index, 1),
    "tolower": TemplateFunc.fixed(lambda s: str(s).lower(), 1),
    "toupper": TemplateFunc.fixed(lambda s: str(s).upper(), 1),
    "title": TemplateFunc.fixed(lambda s: _title(str(s)), 1),
    "trim": TemplateFunc.fixed(lambda s: str(s).strip(), 1),
    "trimprefix": TemplateFunc.fixed(lambda s, p: str(s).removeprefix(str(p)), 2),
    "trimsuffix": TemplateFunc.fixed(lambda s, p: str(s).removesuffix(str(p)), 2),
    "replace": TemplateFunc.fixed(lambda s, old, new: str(s).replace(str(old), str(new)), 3),
    "split": TemplateFunc.fixed(lambda s, sep: str(s).split(str(sep)), 2),
    "contains": TemplateFunc.fixed(lambda s, sub: str(sub) in str(s), 2),
    "dir": TemplateFunc.fixed(lambda p: _dir(str(p)), 1),
    "base": TemplateFunc.fixed(lambda p: _base(str(p)), 1),
    "abs": TemplateFunc.fixed(lambda p: os.path.abspath(str(p)), 1),
}


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------

_NO_FINAL = object()


@dataclass
class _State:
    name: str
    text: str
    funcs: Mapping[str, TemplateFunc]
    out: list[str] = field(default_factory=list)

    def error_at(self, node: Any, message: str) -> TemplateError:
        pos = int(getattr(node, "pos", 0))
        before = self.text[:pos]
        line = 1 + before.count("\n")
        last_newline = before.rfind("\n")
        col = len(before[last_newline + 1 :].encode("utf-8"))
        context = str(node)
        if len(context) > 20:
            context = context[:20] + "..."
        return TemplateError(
            f'template: {self.name}:{line}:{col}: executing "{self.name}" at <{context}>: {message}'
        )


class Template:
    """A parsed template, ready to render against any number of data mappings."""

    def __init__(
        self,
        text: str,
        *,
        name: str = DEFAULT_TEMPLATE_NAME,
        funcs: Mapping[str, TemplateFunc] | None = None,
    ):
        self.name = name
        self.text = text
        self.funcs: dict[str, TemplateFunc] = dict(BUILTIN_FUNCS)
        if funcs:
            self.funcs.update(funcs)
        tokens = _Lexer(text).run()
        self.nodes = _Parser(name, tokens, self.funcs).parse()

    def render(self, data: Mapping[str, Any]) -> str:
        state = _State(self.name, self.text, self.funcs)
        self._walk(state, data, self.nodes)
        return "".join(state.out)

    def _walk(self, state: _State, dot: Any, nodes: Sequence[Node]) -> None:
        for node in nodes:
            if isinstance(node, TextNode):
                state.out.append(node.text)
            elif isinstance(node, ActionNode):
                state.out.append(stringify(self._eval_pipe(state, dot, node.pipe)))
            elif isinstance(node, IfNode):
                if truthy(self._eval_pipe(state, dot, node.pipe)):
                    self._walk(state, dot, node.body)
                else:
                    self._walk(state, dot, node.else_body)

    def _eval_pipe(self, state: _State, dot: Any, pipe: PipeNode) -> Any:
        value: Any = _NO_FINAL
        for cmd in pipe.cmds:
            value = self._eval_command(state, dot, cmd, value)
        return value

    def _eval_command(self, state: _State, dot: Any, cmd: CommandNode, final: Any) -> Any:
        first = cmd.args[0]
        if isinstance(first, IdentifierNode):
            args = [self._eval_arg(state, dot, arg) for arg in cmd.args[1:]]
            if final is not _NO_FINAL:
                args.append(final)
            return self._call(state, first, args, cmd)

        if len(cmd.args) > 1 or final is not _NO_FINAL:
            raise state.error_at(first, f"can't give argument to non-function {first}")
        if isinstance(first, NilNode):
            raise state.error_at(first, "nil is not a command")
        return self._eval_arg(state, dot, first)

    def _call(
        self, state: _State, ident: IdentifierNode, args: list[Any], cmd: CommandNode | None = None
    ) -> Any:
        """Argument-count errors point at the function name, call failures at the whole command."""

        func = state.funcs[ident.name]
        count = len(args)
        if count < func.min_args or (func.max_args is not None and count > func.max_args):
            if func.max_args is None:
                want = f"at least {func.min_args}"
            else:
                want = str(func.max_args)
            raise state.error_at(
                ident, f"wrong number of args for {ident.name}: want {want} got {count}"
            )
        try:
            return func.fn(*args)
        except (ValueError, TypeError, KeyError, OSError) as exc:
            raise state.error_at(cmd or ident, f"error calling {ident.name}: {exc}") from exc

    def _eval_arg(self, state: _State, dot: Any, node: ArgNode) -> Any:
        if isinstance(node, FieldNode):
            return self._eval_field(state, dot, node)
        if isinstance(node, DotNode):
            return dot
        if isinstance(node, IdentifierNode):
            return self._call(state, node, [])
        if isinstance(node, PipeNode):
            return self._eval_pipe(state, dot, node)
        if isinstance(node, StringNode):
            return node.text
        if isinstance(node, (NumberNode, BoolNode)):
            return node.value
        return None

    def _eval_field(self, state: _State, dot: Any, node: FieldNode) -> Any:
        current = dot
        for ident in node.idents:
            if isinstance(current, Mapping):
                if ident not in current:
                    raise state.error_at(node, f'map has no entry for key "{ident}"')
                current = current[ident]
                continue
            if current is None:
                raise state.error_at(node, f"nil pointer evaluating {ident}")
            raise state.error_at(
                node, f"can't evaluate field {ident} in type {type(current).__name__}"
            )
        return current


def render(
    text: str,
    data: Mapping[str, Any],
    *,
    funcs: Mapping[str, TemplateFunc] | None = None,
    name: str = DEFAULT_TEMPLATE_NAME,
) -> str:
    """Parse and render `text` against `data` in one call."""

    return Template(text, name=name, funcs=funcs).render(data)
