"""
IR Debug Display

Rust Pattern: walrus::module::functions::local_function::display

Renders a function body as an indented s-expression where every node is
prefixed with its arena index, e.g.

            (func
    (;  0;)   (i32.add
    (;  1;)     (i32.const 1)
    (;  2;)     (i32.const 2)
              )
            )

Pass error messages that mention expression ids can be matched against the
"(;nnn;)" column directly. The layout bookkeeping (index header, indentation,
line breaks, aligned closers) is owned here; what goes between a node's
parentheses is decided by a per-kind renderer (see display_kinds).
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from ..shared.arena import ExprId, Id
from ..utils.config import (
    CLOSER_FILLER, EXPR_ID_CLOSE, EXPR_ID_OPEN, EXPR_INDEX_WIDTH,
    FUNC_FOOTER, FUNC_HEADER, IMPORT_PLACEHOLDER, INDENT_LEAD, INDENT_STEP,
)
from .display_kinds import ExprDisplay
from .function import Function, ImportedFunction, LocalFunction, Module, UninitializedFunction
from .nodes import ExprVisitor

logger = logging.getLogger(__name__)

RendererFactory = Callable[["DisplayExpr"], ExprVisitor[None]]


def fmt_id(id: Id) -> str:
    """Reference to any arena entity: a space, then its bare index."""
    return f" {id.index}"


class Layout:
    """
    Output buffer plus the two counters layout depends on: nesting depth
    and the number of line breaks emitted so far.
    """
    __slots__ = ('f', 'depth', 'lines')

    def __init__(self, f: List[str], depth: int = 0):
        self.f = f
        self.depth = depth
        self.lines = 0

    def push(self, text: str) -> None:
        self.f.append(text)

    def indent(self) -> None:
        self.f.append(INDENT_LEAD + INDENT_STEP * self.depth)

    def line(self) -> None:
        self.lines += 1
        self.f.append("\n")


class DisplayExpr:
    """
    Recursive expression printer for one local function.

    Renderers call back into expr_id() for expression operands, id() for
    references to other entities and text() for anything else.
    """

    def __init__(self, func: LocalFunction, f: List[str], indent: int,
                 renderer: Optional[RendererFactory] = None):
        self.func = func
        self.layout = Layout(f, indent)
        self.first_arg = False
        self.visited = 0
        self.renderer = (renderer or ExprDisplay)(self)

    @property
    def f(self) -> List[str]:
        return self.layout.f

    def text(self, text: str) -> None:
        self.layout.push(text)

    def id(self, id: Id) -> None:
        """Print the index of ids such as locals, globals, memories, etc."""
        self.layout.push(fmt_id(id))

    def expr_id(self, id: ExprId) -> None:
        layout = self.layout
        self.visited += 1

        # The first argument of a previous expression starts on a new line;
        # anything else is already at the start of one.
        first_arg, self.first_arg = self.first_arg, True
        if first_arg:
            layout.line()

        layout.push(f"{EXPR_ID_OPEN}{id.index:{EXPR_INDEX_WIDTH}}{EXPR_ID_CLOSE}")

        layout.depth += 1
        layout.indent()
        layout.push("(")
        start = layout.lines
        self.func.exprs[id].accept(self.renderer)
        # Every printed operand ends with a line break, so a moved counter
        # means this node had children and its ")" goes on its own line.
        if start != layout.lines:
            layout.push(CLOSER_FILLER)
            layout.indent()
        layout.depth -= 1
        layout.push(")")
        layout.line()
        self.first_arg = False


# ---------------------------------------------------------------------------
# Top-level dispatch
# ---------------------------------------------------------------------------

def _assert_top_level(indent: int) -> None:
    if indent != 0:
        raise AssertionError(f"function display must start at nesting depth 0, not {indent}")


def _display_function(func: Function, f: List[str], indent: int,
                      renderer: Optional[RendererFactory]) -> None:
    _assert_top_level(indent)
    logger.debug(f"Displaying function {func.id.index} ({type(func.kind).__name__})")
    display_ir(func.kind, f, indent, renderer)


def _display_imported(func: ImportedFunction, f: List[str], indent: int,
                      renderer: Optional[RendererFactory]) -> None:
    _assert_top_level(indent)
    f.append(IMPORT_PLACEHOLDER)


def _display_local(func: LocalFunction, f: List[str], indent: int,
                   renderer: Optional[RendererFactory]) -> None:
    _assert_top_level(indent)
    visitor = DisplayExpr(func, f, indent, renderer)
    visitor.text(FUNC_HEADER)
    visitor.expr_id(func.entry_block())
    visitor.text(FUNC_FOOTER)
    logger.debug(f"Displayed {visitor.visited} expressions over {visitor.layout.lines} lines")


def _display_uninitialized(func: UninitializedFunction, f: List[str], indent: int,
                           renderer: Optional[RendererFactory]) -> None:
    raise AssertionError("uninitialized function reached display")


_DISPLAY_IR: Dict[type, Callable[..., None]] = {
    Function: _display_function,
    ImportedFunction: _display_imported,
    LocalFunction: _display_local,
    UninitializedFunction: _display_uninitialized,
}


def display_ir(item: Any, f: List[str], indent: int = 0,
               renderer: Optional[RendererFactory] = None) -> None:
    """
    Append the debug display of `item` to `f`.

    `item` is a Function or one of its kinds. `indent` must be 0: functions
    are only ever printed at the top level. `renderer` builds the per-kind
    renderer from the DisplayExpr driving the traversal; defaults to
    ExprDisplay.
    """
    handler = _DISPLAY_IR.get(type(item))
    if handler is None:
        raise TypeError(f"no IR display for {type(item).__name__}")
    handler(item, f, indent, renderer)


def display(func: Any, renderer: Optional[RendererFactory] = None) -> str:
    """Debug display of one function as a string."""
    f: List[str] = []
    display_ir(func, f, 0, renderer)
    return "".join(f)


def display_module(module: Module, renderer: Optional[RendererFactory] = None) -> str:
    """Every function of `module`, in id order, separated by blank lines."""
    return "\n\n".join(display(func, renderer) for _, func in module.funcs)
