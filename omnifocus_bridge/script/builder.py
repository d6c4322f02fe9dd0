"""A small syntax tree for AppleScript and its single serialization step.

Commands are assembled from these nodes and turned into script text by
:func:`render`. Untrusted values only ever enter a script through :class:`Lit`,
which is the one place string escaping happens.
"""

from dataclasses import dataclass, field

from omnifocus_bridge.script.escape import quote

INDENT = "  "


class Expr:
    """An AppleScript expression."""

    def render(self) -> str:
        raise NotImplementedError


@dataclass
class Lit(Expr):
    """A literal value: text, boolean, integer or ``missing value``."""

    value: str | bool | int | float | None

    def render(self) -> str:
        if self.value is None:
            return "missing value"
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        if isinstance(self.value, (int, float)):
            return repr(self.value)
        return quote(self.value)


@dataclass
class Ref(Expr):
    """Trusted script source: variable names, property paths, keywords."""

    code: str

    def render(self) -> str:
        return self.code


@dataclass
class Application(Expr):
    name: str

    def render(self) -> str:
        return f"application {quote(self.name)}"


@dataclass
class Cat(Expr):
    """Text concatenation with ``&``."""

    parts: list[Expr]

    def __init__(self, *parts: Expr) -> None:
        self.parts = list(parts)

    def render(self) -> str:
        return " & ".join(part.render() for part in self.parts)


@dataclass
class Call(Expr):
    """Call of a script-level handler (``my handler(...)``)."""

    handler: str
    args: list[Expr]

    def __init__(self, handler: str, *args: Expr) -> None:
        self.handler = handler
        self.args = list(args)

    def render(self) -> str:
        return f"my {self.handler}({', '.join(arg.render() for arg in self.args)})"


@dataclass
class Op(Expr):
    """Binary operation, always parenthesized."""

    left: Expr
    op: str
    right: Expr

    def render(self) -> str:
        return f"({self.left.render()} {self.op} {self.right.render()})"


@dataclass
class Not(Expr):
    operand: Expr

    def render(self) -> str:
        return f"(not {self.operand.render()})"


@dataclass
class AllOf(Expr):
    """Conjunction of conditions; empty means true."""

    operands: list[Expr]

    def render(self) -> str:
        if not self.operands:
            return "true"
        if len(self.operands) == 1:
            return self.operands[0].render()
        return "(" + " and ".join(operand.render() for operand in self.operands) + ")"


@dataclass
class AnyOf(Expr):
    """Disjunction of conditions; empty means false."""

    operands: list[Expr]

    def render(self) -> str:
        if not self.operands:
            return "false"
        if len(self.operands) == 1:
            return self.operands[0].render()
        return "(" + " or ".join(operand.render() for operand in self.operands) + ")"


@dataclass
class FirstWhose(Expr):
    """``first <element> whose <attribute> is <value>``."""

    element: str
    attribute: str
    value: Expr

    def render(self) -> str:
        return f"first {self.element} whose {self.attribute} is {self.value.render()}"


@dataclass
class ListOf(Expr):
    items: list[Expr]

    def render(self) -> str:
        return "{" + ", ".join(item.render() for item in self.items) + "}"


class Statement:
    """An AppleScript statement; renders to one or more source lines."""

    def lines(self, depth: int) -> list[str]:
        raise NotImplementedError


def _block(body: list[Statement], depth: int) -> list[str]:
    out: list[str] = []
    for statement in body:
        out.extend(statement.lines(depth))
    return out


@dataclass
class Set(Statement):
    target: str
    value: Expr

    def lines(self, depth: int) -> list[str]:
        return [f"{INDENT * depth}set {self.target} to {self.value.render()}"]


@dataclass
class AppendTo(Statement):
    """``set end of <list> to <value>``."""

    target: str
    value: Expr

    def lines(self, depth: int) -> list[str]:
        return [f"{INDENT * depth}set end of {self.target} to {self.value.render()}"]


@dataclass
class Command(Statement):
    """A bare command such as ``move`` or ``delete`` over trusted references."""

    code: str

    def lines(self, depth: int) -> list[str]:
        return [f"{INDENT * depth}{self.code}"]


@dataclass
class Make(Statement):
    """``set <var> to make new <cls> with properties {...} [at <location>]``."""

    var: str
    cls: str
    properties: dict[str, Expr]
    at: str | None = None

    def lines(self, depth: int) -> list[str]:
        props = ", ".join(f"{key}:{value.render()}" for key, value in self.properties.items())
        code = f"set {self.var} to make new {self.cls} with properties {{{props}}}"
        if self.at:
            code += f" at {self.at}"
        return [f"{INDENT * depth}{code}"]


@dataclass
class Return(Statement):
    value: Expr

    def lines(self, depth: int) -> list[str]:
        return [f"{INDENT * depth}return {self.value.render()}"]


@dataclass
class ExitRepeat(Statement):
    def lines(self, depth: int) -> list[str]:
        return [f"{INDENT * depth}exit repeat"]


@dataclass
class If(Statement):
    condition: Expr
    body: list[Statement]
    orelse: list[Statement] = field(default_factory=list)

    def lines(self, depth: int) -> list[str]:
        pad = INDENT * depth
        out = [f"{pad}if {self.condition.render()} then"]
        out.extend(_block(self.body, depth + 1))
        if self.orelse:
            out.append(f"{pad}else")
            out.extend(_block(self.orelse, depth + 1))
        out.append(f"{pad}end if")
        return out


@dataclass
class Try(Statement):
    """``try`` block; without ``handler`` errors are silently absorbed."""

    body: list[Statement]
    handler: list[Statement] | None = None
    error_var: str = "errMsg"

    def lines(self, depth: int) -> list[str]:
        pad = INDENT * depth
        out = [f"{pad}try"]
        out.extend(_block(self.body, depth + 1))
        if self.handler is not None:
            out.append(f"{pad}on error {self.error_var}")
            out.extend(_block(self.handler, depth + 1))
        out.append(f"{pad}end try")
        return out


@dataclass
class Tell(Statement):
    target: Expr
    body: list[Statement]

    def lines(self, depth: int) -> list[str]:
        pad = INDENT * depth
        return [f"{pad}tell {self.target.render()}", *_block(self.body, depth + 1), f"{pad}end tell"]


@dataclass
class Considering(Statement):
    attribute: str
    body: list[Statement]

    def lines(self, depth: int) -> list[str]:
        pad = INDENT * depth
        return [f"{pad}considering {self.attribute}", *_block(self.body, depth + 1), f"{pad}end considering"]


@dataclass
class Repeat(Statement):
    """``repeat with <var> in <collection>``; ``var`` is dereferenced first."""

    var: str
    collection: Expr
    body: list[Statement]

    def lines(self, depth: int) -> list[str]:
        pad = INDENT * depth
        out = [f"{pad}repeat with {self.var} in {self.collection.render()}"]
        out.append(f"{INDENT * (depth + 1)}set {self.var} to contents of {self.var}")
        out.extend(_block(self.body, depth + 1))
        out.append(f"{pad}end repeat")
        return out


@dataclass
class RepeatWhile(Statement):
    condition: Expr
    body: list[Statement]

    def lines(self, depth: int) -> list[str]:
        pad = INDENT * depth
        return [f"{pad}repeat while {self.condition.render()}", *_block(self.body, depth + 1), f"{pad}end repeat"]


@dataclass
class Handler:
    name: str
    params: list[str]
    body: list[Statement]

    def lines(self) -> list[str]:
        return [
            f"on {self.name}({', '.join(self.params)})",
            *_block(self.body, 1),
            f"end {self.name}",
        ]


@dataclass
class Script:
    handlers: list[Handler]
    body: list[Statement]


def render(script: Script) -> str:
    """Serialize a script tree to AppleScript source."""
    out: list[str] = []
    for handler in script.handlers:
        out.extend(handler.lines())
        out.append("")
    out.extend(_block(script.body, 0))
    return "\n".join(out) + "\n"
