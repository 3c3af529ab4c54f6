"""
InstrumentationPlanner: decide where trace statements go.

Walks a tree-sitter syntax tree in pre-order over named children, runs every
function definition through the eligibility pipeline and emits one Edit per
function that should receive a trace statement. Rejected functions produce a
diagnostic instead; functions that already start with the trace marker are
skipped silently.

The planner never touches the buffer. Edits carry offsets into the original
source and are applied by the applier.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Union

from tree_sitter import Node

from tracemark.logging_config import logger
from tracemark.parser.config import (
    COMPOUND_STATEMENT,
    DECLARATOR_FIELD,
    ERROR_NODE,
    FUNCTION_DECLARATOR,
    FUNCTION_DEFINITION,
    NAME_NODE_TYPES,
    PARAMETER_LIST,
    TYPE_QUALIFIER,
)
from .config import COMPILE_TIME_QUALIFIERS, DEFAULT_MARKER, EmptyBodyPolicy
from .diagnostics import Diagnostic, DiagnosticsSink, Reason


@dataclass(frozen=True)
class Edit:
    """Insert `text` at byte `offset` of the original buffer."""
    offset: int
    text: str


@dataclass
class Candidate:
    """A function definition that passed the structural checks."""
    declarator_name: str
    body_node: Node
    insertion_offset: int
    leading_whitespace: str
    already_instrumented: bool = False


@dataclass(frozen=True)
class Rejection:
    label: str
    reason: Reason
    node: Node
    snippet: Optional[str] = None


@dataclass
class Plan:
    """Result of planning one buffer."""
    edits: List[Edit] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    instrumented: List[str] = field(default_factory=list)
    already_instrumented: List[str] = field(default_factory=list)


def first_named_child_of_type(node: Node, node_type: str) -> Optional[Node]:
    """First-level named child of the given kind."""
    for child in node.named_children:
        if child.type == node_type:
            return child
    return None


def child_of_type(node: Node, node_type: str) -> Optional[Node]:
    """First direct child (named or anonymous) of the given kind."""
    for child in node.children:
        if child.type == node_type:
            return child
    return None


class InstrumentationPlanner:
    """
    Plan trace insertions for one source buffer.

    Args:
        source: The original file bytes the tree was parsed from
        sink: Diagnostics sink to record rejections into (a fresh one if None)
        marker: Trace macro name; also the token used to detect prior runs
        empty_body_policy: Whether functions with no statements get a trace
        compile_time_qualifiers: Qualifier texts that exclude a function
        report_syntax_errors: Record a diagnostic for every ERROR node visited
    """

    def __init__(
        self,
        source: bytes,
        sink: Optional[DiagnosticsSink] = None,
        marker: str = DEFAULT_MARKER,
        empty_body_policy: EmptyBodyPolicy = EmptyBodyPolicy.INSTRUMENT,
        compile_time_qualifiers: Iterable[str] = COMPILE_TIME_QUALIFIERS,
        report_syntax_errors: bool = True,
    ):
        self.source = source
        self.sink = sink if sink is not None else DiagnosticsSink()
        self.marker = marker
        self.empty_body_policy = EmptyBodyPolicy(empty_body_policy)
        self.compile_time_qualifiers = frozenset(compile_time_qualifiers)
        self.report_syntax_errors = report_syntax_errors

    def plan(self, root: Node) -> Plan:
        """
        Walk the tree below `root` and collect edits in source order.

        Uses an explicit work-list instead of recursion: after a node is
        visited its next sibling is queued, then its first named child on
        top, which keeps the walk pre-order.
        """
        result = Plan()
        recorded_before = len(self.sink)

        if root is not None:
            self._visit(root, result)
            pending: List[Node] = []
            self._push_first_child(root, pending)

            while pending:
                node = pending.pop()
                self._visit(node, result)

                sibling = node.next_named_sibling
                if sibling is not None:
                    pending.append(sibling)
                self._push_first_child(node, pending)

        result.diagnostics = self.sink.entries[recorded_before:]
        return result

    def _push_first_child(self, node: Node, pending: List[Node]) -> None:
        if node.named_child_count > 0:
            child = node.named_child(0)
            if child is not None:
                pending.append(child)

    def _visit(self, node: Node, result: Plan) -> None:
        if node.type == ERROR_NODE:
            if self.report_syntax_errors:
                self._record(Rejection(ERROR_NODE, Reason.SYNTAX_ERROR, node))
            return

        if node.type != FUNCTION_DEFINITION:
            return

        outcome = self.evaluate(node)
        if isinstance(outcome, Rejection):
            self._record(outcome)
            return

        if outcome.already_instrumented:
            result.already_instrumented.append(outcome.declarator_name)
            logger.debug(f"'{outcome.declarator_name}' already traced, skipping")
            return

        edit = Edit(
            offset=outcome.insertion_offset,
            text=self.trace_statement(outcome.declarator_name) + outcome.leading_whitespace,
        )
        result.edits.append(edit)
        result.instrumented.append(outcome.declarator_name)
        logger.debug(f"Planned trace for '{outcome.declarator_name}' at byte {edit.offset}")

    def evaluate(self, node: Node) -> Union[Candidate, Rejection]:
        """
        Run one function_definition through the eligibility pipeline.

        Checks run in a fixed order and the first failure wins.
        """
        for child in node.named_children:
            if child.type == TYPE_QUALIFIER and self._text(child) in self.compile_time_qualifiers:
                return Rejection(TYPE_QUALIFIER, Reason.CONSTEXPR, node)

        declarator = first_named_child_of_type(node, FUNCTION_DECLARATOR)
        if declarator is None:
            return Rejection(FUNCTION_DECLARATOR, Reason.NO_DECLARATOR, node)

        if not any(first_named_child_of_type(declarator, t) is not None for t in NAME_NODE_TYPES):
            return Rejection(NAME_NODE_TYPES[0], Reason.NO_NAME, node)

        if first_named_child_of_type(declarator, PARAMETER_LIST) is None:
            return Rejection(PARAMETER_LIST, Reason.NO_PARAMS, node)

        if declarator.has_error:
            return Rejection(FUNCTION_DECLARATOR, Reason.SYNTAX_ERROR, node)

        body = child_of_type(node, COMPOUND_STATEMENT)
        if body is None:
            return Rejection(COMPOUND_STATEMENT, Reason.NO_BODY, node)

        name_node = declarator.child_by_field_name(DECLARATOR_FIELD)
        if name_node is None:
            return Rejection(DECLARATOR_FIELD, Reason.NO_NAME, node)

        name = self._text(name_node)
        if "\n" in name or "\r" in name:
            return Rejection(DECLARATOR_FIELD, Reason.MULTILINE_NAME, node, snippet=name)

        children = body.children
        if len(children) <= 1:
            return Rejection(COMPOUND_STATEMENT, Reason.EMPTY_BODY, node)

        opening, first = children[0], children[1]
        is_empty = first.type == "}"
        if is_empty and self.empty_body_policy is EmptyBodyPolicy.SKIP:
            return Rejection(COMPOUND_STATEMENT, Reason.EMPTY_BODY, node)

        already = not is_empty and self.marker in self._text(first)
        leading = self.source[opening.end_byte:first.start_byte].decode("utf-8", errors="replace")

        return Candidate(
            declarator_name=name,
            body_node=body,
            insertion_offset=first.start_byte,
            leading_whitespace=leading,
            already_instrumented=already,
        )

    def trace_statement(self, name: str) -> str:
        return f"{self.marker}({name});"

    def _record(self, rejection: Rejection) -> None:
        node = rejection.node
        snippet = rejection.snippet if rejection.snippet is not None else self._text(node)
        self.sink.record(
            rejection.label,
            rejection.reason,
            snippet,
            line=node.start_point[0] + 1,
        )

    def _text(self, node: Node) -> str:
        return self.source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


def plan(tree_root: Node, source: bytes, sink: Optional[DiagnosticsSink] = None, **options) -> Plan:
    """Plan trace insertions for `source`; see InstrumentationPlanner for options."""
    return InstrumentationPlanner(source, sink=sink, **options).plan(tree_root)
