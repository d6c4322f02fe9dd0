"""Handler prelude shared by every generated script, and envelope builders.

Scripts report back through a single JSON text value. The handlers below
encode AppleScript values as JSON at run time so that names containing quotes
or backslashes survive the trip; the envelope builders assemble that text.
"""

import json

from omnifocus_bridge.script.builder import (
    AppendTo,
    Application,
    Call,
    Cat,
    Expr,
    Handler,
    If,
    Lit,
    Op,
    Ref,
    Repeat,
    RepeatWhile,
    Return,
    Script,
    Set,
    Statement,
    Tell,
    Try,
)

MISSING = Lit(None)

# Field value kind -> encoding handler.
ENCODERS = {
    "text": "jsonString",
    "bool": "jsonBool",
    "number": "jsonNumber",
    "date": "jsonDate",
    "list": "jsonList",
}


def _is_missing(var: str) -> Expr:
    return Op(Ref(var), "is", MISSING)


def _text_handlers() -> list[Handler]:
    delimiters = "AppleScript's text item delimiters"
    return [
        Handler(
            "replaceText",
            ["src", "search", "replacement"],
            [
                Set("prevDelims", Ref(delimiters)),
                Set(delimiters, Ref("search")),
                Set("parts", Ref("text items of src")),
                Set(delimiters, Ref("replacement")),
                Set("src", Ref("parts as text")),
                Set(delimiters, Ref("prevDelims")),
                Return(Ref("src")),
            ],
        ),
        Handler(
            "joinText",
            ["parts", "separator"],
            [
                Set("prevDelims", Ref(delimiters)),
                Set(delimiters, Ref("separator")),
                Set("joined", Ref("parts as text")),
                Set(delimiters, Ref("prevDelims")),
                Return(Ref("joined")),
            ],
        ),
        Handler(
            "pad2",
            ["n"],
            [Return(Ref('text -2 thru -1 of ("0" & ((n as integer) as text))'))],
        ),
        Handler("textOf", ["v"], [If(_is_missing("v"), [Return(Lit(""))]), Return(Ref("v as text"))]),
    ]


def _json_handlers() -> list[Handler]:
    replacements = [
        (Lit("\\"), Lit("\\\\")),
        (Lit('"'), Lit('\\"')),
        (Ref("(character id 10)"), Lit("\\n")),
        (Ref("(character id 13)"), Lit("\\r")),
        (Ref("(character id 9)"), Lit("\\t")),
    ]
    escape_steps: list[Statement] = [
        Set("s", Call("replaceText", Ref("s"), search, replacement)) for search, replacement in replacements
    ]
    null = Return(Lit("null"))
    return [
        Handler(
            "jsonString",
            ["v"],
            [If(_is_missing("v"), [null]), Set("s", Ref("v as text")), *escape_steps, Return(Cat(Lit('"'), Ref("s"), Lit('"')))],
        ),
        Handler(
            "jsonBool",
            ["b"],
            [If(_is_missing("b"), [null]), If(Ref("b"), [Return(Lit("true"))]), Return(Lit("false"))],
        ),
        Handler("jsonNumber", ["n"], [If(_is_missing("n"), [null]), Return(Ref("n as text"))]),
        Handler(
            "jsonDate",
            ["d"],
            [
                If(_is_missing("d"), [null]),
                Set(
                    "iso",
                    Cat(
                        Ref("((year of d) as integer) as text"),
                        Lit("-"),
                        Call("pad2", Ref("month of d")),
                        Lit("-"),
                        Call("pad2", Ref("day of d")),
                        Lit("T"),
                        Call("pad2", Ref("hours of d")),
                        Lit(":"),
                        Call("pad2", Ref("minutes of d")),
                        Lit(":"),
                        Call("pad2", Ref("seconds of d")),
                    ),
                ),
                Return(Cat(Lit('"'), Ref("iso"), Lit('"'))),
            ],
        ),
        Handler(
            "jsonList",
            ["lst"],
            [
                If(_is_missing("lst"), [Return(Lit("[]"))]),
                Set("encoded", Ref("{}")),
                Repeat("anElement", Ref("lst"), [AppendTo("encoded", Call("jsonString", Ref("anElement")))]),
                Return(Cat(Lit("["), Call("joinText", Ref("encoded"), Lit(",")), Lit("]"))),
            ],
        ),
    ]


def _ancestor_handler(name: str, parent_handler: str) -> Handler:
    """True when an entity with id ``ancestorId`` sits above ``x``."""
    return Handler(
        name,
        ["x", "ancestorId"],
        [
            Set("p", Call(parent_handler, Ref("x"))),
            RepeatWhile(
                Op(Ref("p"), "is not", MISSING),
                [
                    If(Op(Call("idOf", Ref("p")), "is", Ref("ancestorId")), [Return(Lit(True))]),
                    Set("p", Call(parent_handler, Ref("p"))),
                ],
            ),
            Return(Lit(False)),
        ],
    )


def _app_handlers(app: Expr) -> list[Handler]:
    """Relationship helpers; these need the application's terminology."""

    def guarded(param: str, body: list[Statement]) -> list[Statement]:
        return [If(_is_missing(param), [Return(MISSING)]), Tell(app, body)]

    return [
        Handler("idOf", ["x"], guarded("x", [Return(Ref("id of x"))])),
        Handler("nameOf", ["x"], guarded("x", [Return(Ref("name of x"))])),
        Handler(
            "parentTagOf",
            ["t"],
            [
                Tell(
                    app,
                    [
                        Try([Set("c", Ref("container of t")), If(Op(Ref("class of c"), "is", Ref("tag")), [Return(Ref("c"))])]),
                    ],
                ),
                Return(MISSING),
            ],
        ),
        Handler(
            "projectOf",
            ["t"],
            [Tell(app, [Try([Return(Ref("containing project of t"))])]), Return(MISSING)],
        ),
        Handler(
            "parentTaskOf",
            ["t"],
            [
                Tell(
                    app,
                    [
                        Try(
                            [
                                Set("p", Ref("parent task of t")),
                                If(_is_missing("p"), [Return(MISSING)]),
                                Set("proj", Ref("containing project of t")),
                                # A project's root task shares the project's id.
                                If(
                                    Op(Ref("proj"), "is not", MISSING),
                                    [If(Op(Ref("id of p"), "is", Ref("id of proj")), [Return(MISSING)])],
                                ),
                                Return(Ref("p")),
                            ]
                        ),
                    ],
                ),
                Return(MISSING),
            ],
        ),
        Handler(
            "folderOf",
            ["p"],
            [
                Tell(
                    app,
                    [Try([Set("f", Ref("folder of p")), If(Op(Ref("class of f"), "is", Ref("folder")), [Return(Ref("f"))])])],
                ),
                Return(MISSING),
            ],
        ),
        Handler(
            "projectStatus",
            ["p"],
            [
                Tell(
                    app,
                    [
                        Set("s", Ref("status of p")),
                        If(Op(Ref("s"), "is", Ref("active status")), [Return(Lit("active"))]),
                        If(Op(Ref("s"), "is", Ref("on hold status")), [Return(Lit("onHold"))]),
                        If(Op(Ref("s"), "is", Ref("done status")), [Return(Lit("done"))]),
                        If(Op(Ref("s"), "is", Ref("dropped status")), [Return(Lit("dropped"))]),
                    ],
                ),
                Return(MISSING),
            ],
        ),
        _ancestor_handler("tagHasAncestor", "parentTagOf"),
        _ancestor_handler("taskHasAncestor", "parentTaskOf"),
        Handler("tagNamesOf", ["t"], [Tell(app, [Return(Ref("name of every tag of t"))])]),
        Handler(
            "makeDate",
            ["y", "m", "d", "secs"],
            [
                Set("newDate", Ref("current date")),
                # Day first so that shorter months never overflow.
                Set("day of newDate", Lit(1)),
                Set("year of newDate", Ref("y")),
                Set("month of newDate", Ref("m")),
                Set("day of newDate", Ref("d")),
                Set("time of newDate", Ref("secs")),
                Return(Ref("newDate")),
            ],
        ),
    ]


def prelude(app_name: str) -> list[Handler]:
    return _text_handlers() + _json_handlers() + _app_handlers(Application(app_name))


def encode(value: Expr, kind: str) -> Expr:
    """Expression yielding ``value`` as JSON text at run time.

    Kind ``raw`` marks an expression that already evaluates to JSON text.
    """
    if kind == "raw":
        return value
    return Call(ENCODERS[kind], value)


def _merge_literals(parts: list[Expr]) -> list[Expr]:
    merged: list[Expr] = []
    for part in parts:
        if merged and isinstance(part, Lit) and isinstance(merged[-1], Lit):
            merged[-1] = Lit(str(merged[-1].value) + str(part.value))
        else:
            merged.append(part)
    return merged


def json_object(fields: list[tuple[str, Expr, str]], prefix: str = "") -> Expr:
    """JSON object text from ``(key, expression, kind)`` triples.

    ``prefix`` is raw JSON placed before the first field (e.g. the success flag).
    """
    parts: list[Expr] = [Lit("{" + prefix)]
    for index, (key, value, kind) in enumerate(fields):
        separator = "," if prefix or index else ""
        parts.append(Lit(f"{separator}{json.dumps(key)}:"))
        parts.append(encode(value, kind))
    parts.append(Lit("}"))
    return Cat(*_merge_literals(parts))


def success(*fields: tuple[str, Expr, str]) -> Expr:
    return json_object(list(fields), prefix='"success":true')


def failure(message: Expr) -> Expr:
    return json_object([("error", message, "text")], prefix='"success":false')


def fail(message: Expr) -> Statement:
    return Return(failure(message))


def wrap(app_name: str, body: list[Statement]) -> Script:
    """Complete script: prelude, then ``body`` inside the document with a
    top-level handler turning any run-time error into a failure envelope."""
    document = Tell(Application(app_name), [Tell(Ref("front document"), body)])
    return Script(prelude(app_name), [Try([document], handler=[fail(Ref("errMsg"))])])

