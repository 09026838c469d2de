"""Pytest configuration and fixtures."""

import json
import re
import subprocess
from pathlib import Path
from typing import Any, Optional

import pytest

from webpack_unpack.core import scope

_ASTRAL_CHAR = re.compile("[\U00010000-\U0010FFFF]")


class Estree:
    """Builds acorn-style ESTree dicts whose offsets point into ``source``.

    Snippets are located by text; identifier-like snippets only match whole
    words. ``within`` narrows the search to the region of another (unique)
    snippet and ``nth`` picks among several matches.
    """

    def __init__(self, source: str):
        self.source = source

    def _units(self, index: int) -> int:
        """Convert a string index to a UTF-16 offset like acorn reports."""
        return index + len(_ASTRAL_CHAR.findall(self.source[:index]))

    def _find(self, snippet: str, within: Optional[str] = None, nth: int = 0) -> tuple[int, int]:
        region_start, region_end = (0, len(self.source)) if within is None else self._find(within)
        region = self.source[region_start:region_end]
        pattern = re.escape(snippet)
        if re.fullmatch(r"[\w$]+", snippet):
            pattern = rf"(?<![\w$]){pattern}(?![\w$])"
        match = list(re.finditer(pattern, region))[nth]
        return region_start + match.start(), region_start + match.end()

    def span(self, snippet: str, within: Optional[str] = None, nth: int = 0) -> tuple[int, int]:
        start, end = self._find(snippet, within, nth)
        return self._units(start), self._units(end)

    def node(self, type: str, snippet: str, within: Optional[str] = None, nth: int = 0, **fields: Any) -> dict:
        start, end = self.span(snippet, within, nth)
        return {"type": type, "start": start, "end": end, **fields}

    def program(self, *statements: dict) -> dict:
        return {
            "type": "Program",
            "start": 0,
            "end": self._units(len(self.source)),
            "body": list(statements),
            "sourceType": "script",
        }

    def ident(self, name: str, within: Optional[str] = None, nth: int = 0) -> dict:
        return self.node("Identifier", name, within, nth, name=name)

    def literal(self, value: Any, raw: Optional[str] = None, within: Optional[str] = None, nth: int = 0) -> dict:
        raw = raw if raw is not None else json.dumps(value, ensure_ascii=False)
        return self.node("Literal", raw, within, nth, value=value, raw=raw)

    def statement(self, expression: dict, semicolon: bool = False) -> dict:
        end = expression["end"] + (1 if semicolon else 0)
        return {"type": "ExpressionStatement", "start": expression["start"], "end": end, "expression": expression}

    def call(self, snippet: str, callee: dict, arguments: list, within: Optional[str] = None, nth: int = 0) -> dict:
        return self.node("CallExpression", snippet, within, nth, callee=callee, arguments=arguments, optional=False)

    def member(
        self, snippet: str, obj: dict, prop: dict,
        computed: bool = False, within: Optional[str] = None, nth: int = 0,
    ) -> dict:
        return self.node(
            "MemberExpression", snippet, within, nth,
            object=obj, property=prop, computed=computed, optional=False,
        )

    def assign(self, snippet: str, left: dict, right: dict, within: Optional[str] = None) -> dict:
        return self.node("AssignmentExpression", snippet, within, operator="=", left=left, right=right)

    def function(self, snippet: str, params: list, statements: list, within: Optional[str] = None, nth: int = 0) -> dict:
        start, end = self._find(snippet, within, nth)
        text = self.source[start:end]
        body_start = start + text.index("{", text.index(")"))
        return {
            "type": "FunctionExpression",
            "start": self._units(start),
            "end": self._units(end),
            "id": None,
            "expression": False,
            "generator": False,
            "async": False,
            "params": params,
            "body": {
                "type": "BlockStatement",
                "start": self._units(body_start),
                "end": self._units(end),
                "body": statements,
            },
        }

    def runtime_bundle(self, loader: dict, table: dict) -> dict:
        """``!loader(table)`` where the call spans everything after the ``!``."""
        call = {
            "type": "CallExpression",
            "start": loader["start"],
            "end": self._units(len(self.source)),
            "callee": loader,
            "arguments": [table],
            "optional": False,
        }
        unary = {
            "type": "UnaryExpression",
            "start": 0,
            "end": call["end"],
            "operator": "!",
            "prefix": True,
            "argument": call,
        }
        return self.program(self.statement(unary))


@pytest.fixture
def estree():
    """Return the ESTree builder class."""
    return Estree


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def webpack_bundle(fixtures_dir: Path) -> str:
    """Load minified webpack bundle sample."""
    return (fixtures_dir / "webpack_bundle.min.js").read_text(encoding="utf-8")


RUNTIME_SOURCE = (
    '!function(r){r(r.s=1)}([function(a,b,c){a.exports = c(1)},'
    'function(module,exports){exports.x = 2},,function(){}])'
)


@pytest.fixture
def runtime_bundle() -> tuple[str, dict]:
    """Array-table runtime bundle with an entry call, a hole and an empty factory."""
    e = Estree(RUNTIME_SOURCE)

    loader_src = "function(r){r(r.s=1)}"
    loader = e.function(loader_src, [e.ident("r", loader_src)], [
        e.statement(e.call(
            "r(r.s=1)",
            e.ident("r", loader_src, nth=1),
            [e.assign(
                "r.s=1",
                e.member("r.s", e.ident("r", loader_src, nth=2), e.ident("s", loader_src)),
                e.literal(1, within="r.s=1"),
            )],
        )),
    ])

    first_src = "function(a,b,c){a.exports = c(1)}"
    first = e.function(
        first_src,
        [e.ident("a", first_src), e.ident("b", first_src), e.ident("c", first_src)],
        [e.statement(e.assign(
            "a.exports = c(1)",
            e.member("a.exports", e.ident("a", first_src, nth=1), e.ident("exports", first_src)),
            e.call("c(1)", e.ident("c", first_src, nth=1), [e.literal(1, within="c(1)")]),
        ))],
    )

    second_src = "function(module,exports){exports.x = 2}"
    second = e.function(
        second_src,
        [e.ident("module", second_src), e.ident("exports", second_src)],
        [e.statement(e.assign(
            "exports.x = 2",
            e.member("exports.x", e.ident("exports", second_src, nth=1), e.ident("x", second_src)),
            e.literal(2, within="exports.x = 2"),
        ))],
    )

    empty = e.function("function(){}", [], [])

    table_src = "[" + first_src + "," + second_src + ",," + "function(){}" + "]"
    table = e.node("ArrayExpression", table_src, elements=[first, second, None, empty])
    return RUNTIME_SOURCE, e.runtime_bundle(loader, table)


JSONP_SOURCE = (
    '(window.webpackJsonp=window.webpackJsonp||[]).push('
    '[[0],[function(module,exports,require){require("a")}]])'
)


@pytest.fixture
def jsonp_bundle() -> tuple[str, dict]:
    """Jsonp chunk with a single factory requiring "a"."""
    e = Estree(JSONP_SOURCE)

    factory_src = 'function(module,exports,require){require("a")}'
    factory = e.function(
        factory_src,
        [e.ident("module", factory_src), e.ident("exports", factory_src), e.ident("require", factory_src)],
        [e.statement(e.call(
            'require("a")',
            e.ident("require", factory_src, nth=1),
            [e.literal("a", within='require("a")')],
        ))],
    )

    queue = e.assign(
        "window.webpackJsonp=window.webpackJsonp||[]",
        e.member("window.webpackJsonp", e.ident("window"), e.ident("webpackJsonp")),
        e.node(
            "LogicalExpression",
            "window.webpackJsonp||[]",
            operator="||",
            left=e.member(
                "window.webpackJsonp",
                e.ident("window", nth=1),
                e.ident("webpackJsonp", nth=1),
                nth=1,
            ),
            right=e.node("ArrayExpression", "[]", elements=[]),
        ),
    )
    chunk = e.node(
        "ArrayExpression",
        "[[0],[" + factory_src + "]]",
        elements=[
            e.node("ArrayExpression", "[0]", elements=[e.literal(0, within="[0]")]),
            e.node("ArrayExpression", "[" + factory_src + "]", elements=[factory]),
        ],
    )

    callee = {
        "type": "MemberExpression",
        "start": 0,
        "end": e.span("push")[1],
        "object": queue,
        "property": e.ident("push"),
        "computed": False,
        "optional": False,
    }
    call = {
        "type": "CallExpression",
        "start": 0,
        "end": len(JSONP_SOURCE),
        "callee": callee,
        "arguments": [chunk],
        "optional": False,
    }
    return JSONP_SOURCE, e.program(e.statement(call))


KEYED_SOURCE = (
    '!function(e){e(e.s="b")}({"./a.js":function(m,x,r){var d=function(r){return r(2)};x.y={r};r("b")},'
    'b:function(m){m.exports=1},[k]:function(){}})'
)


@pytest.fixture
def keyed_bundle() -> tuple[str, dict]:
    """Object-table runtime bundle with shadowing, a shorthand property and a computed key."""
    e = Estree(KEYED_SOURCE)

    loader_src = 'function(e){e(e.s="b")}'
    loader = e.function(loader_src, [e.ident("e", loader_src)], [
        e.statement(e.call(
            'e(e.s="b")',
            e.ident("e", loader_src, nth=1),
            [e.assign(
                'e.s="b"',
                e.member("e.s", e.ident("e", "e.s"), e.ident("s", "e.s")),
                e.literal("b", within='e.s="b"'),
            )],
        )),
    ])

    a_src = 'function(m,x,r){var d=function(r){return r(2)};x.y={r};r("b")}'
    inner_src = "function(r){return r(2)}"
    inner = e.function(inner_src, [e.ident("r", inner_src)], [
        e.node(
            "ReturnStatement",
            "return r(2)",
            argument=e.call("r(2)", e.ident("r", inner_src, nth=1), [e.literal(2, within="r(2)")]),
        ),
    ])
    declaration = e.node(
        "VariableDeclaration",
        "var d=" + inner_src + ";",
        kind="var",
        declarations=[
            e.node("VariableDeclarator", "d=" + inner_src, id=e.ident("d", a_src), init=inner),
        ],
    )
    shorthand = e.node(
        "Property",
        "r",
        within="{r}",
        method=False,
        shorthand=True,
        computed=False,
        key=e.ident("r", "{r}"),
        kind="init",
        value=e.ident("r", "{r}"),
    )
    exports_assignment = e.statement(e.assign(
        "x.y={r}",
        e.member("x.y", e.ident("x", "x.y"), e.ident("y", "x.y")),
        e.node("ObjectExpression", "{r}", properties=[shorthand]),
    ), semicolon=True)
    require_call = e.statement(e.call(
        'r("b")',
        e.ident("r", 'r("b")'),
        [e.literal("b", within='r("b")')],
    ))
    a_factory = e.function(
        a_src,
        [e.ident("m", a_src), e.ident("x", a_src), e.ident("r", a_src)],
        [declaration, exports_assignment, require_call],
    )

    b_src = "function(m){m.exports=1}"
    b_factory = e.function(b_src, [e.ident("m", b_src)], [
        e.statement(e.assign(
            "m.exports=1",
            e.member("m.exports", e.ident("m", b_src, nth=1), e.ident("exports", b_src)),
            e.literal(1, within="m.exports=1"),
        )),
    ])

    c_src = "function(){}"
    c_factory = e.function(c_src, [], [])

    def prop(snippet, key, value, computed=False):
        return e.node(
            "Property", snippet,
            method=False, shorthand=False, computed=computed, key=key, kind="init", value=value,
        )

    table = e.node(
        "ObjectExpression",
        '{"./a.js":' + a_src + ",b:" + b_src + ",[k]:" + c_src + "}",
        properties=[
            prop('"./a.js":' + a_src, e.literal("./a.js"), a_factory),
            prop("b:" + b_src, e.ident("b", "b:" + b_src), b_factory),
            prop("[k]:" + c_src, e.ident("k"), c_factory, computed=True),
        ],
    )
    return KEYED_SOURCE, e.runtime_bundle(loader, table)


# eslint-scope output for the present factories of each bundle above, keyed by
# the factories' parameter names. Each path leads from a factory to one
# identifier bound to a parameter.
SCOPE_OUTPUTS = {
    (("a", "b", "c"), ("module", "exports"), ()): [
        [
            [["params", 0], ["body", "body", 0, "expression", "left", "object"]],
            [["params", 1]],
            [["params", 2], ["body", "body", 0, "expression", "right", "callee"]],
        ],
        [
            [["params", 0]],
            [["params", 1], ["body", "body", 0, "expression", "left", "object"]],
        ],
        [],
    ],
    (("module", "exports", "require"),): [
        [
            [["params", 0]],
            [["params", 1]],
            [["params", 2], ["body", "body", 0, "expression", "callee"]],
        ],
    ],
    (("m", "x", "r"), ("m",)): [
        [
            [["params", 0]],
            [["params", 1], ["body", "body", 1, "expression", "left", "object"]],
            [
                ["params", 2],
                ["body", "body", 1, "expression", "right", "properties", 0, "value"],
                ["body", "body", 2, "expression", "callee"],
            ],
        ],
        [
            [["params", 0], ["body", "body", 0, "expression", "left", "object"]],
        ],
    ],
}


@pytest.fixture
def scope_requests(monkeypatch) -> list:
    """Answer scope analysis of the bundle fixtures' factories with recorded eslint-scope output.

    Returns the list of requests made, each with the script name and options.
    """
    requests = []

    def fake_run(script, payload, args=(), **options):
        request = json.loads(payload)
        requests.append({"script": script, **request, **options})
        key = tuple(
            tuple(param["name"] for param in function["params"])
            for function in request["functions"]
        )
        return subprocess.CompletedProcess(
            args=["node", script], returncode=0, stdout=json.dumps(SCOPE_OUTPUTS[key]), stderr="",
        )

    monkeypatch.setattr(scope, "run_node_script", fake_run)
    return requests
