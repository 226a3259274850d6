"""SourceModel: the query surface over one parsed syntax tree.

Analyzers and heuristics never touch tree-sitter nodes directly; they hold
opaque refs taken from the structural model and ask the SourceModel about
them (text, span, enclosing scopes, declarations, small classifications).
"""

from __future__ import annotations

import re
from collections import defaultdict
from typing import Any, Iterator, Optional

from .syntax import Span

# Nodes whose full text is one token for comparison purposes.
_ATOMIC_TYPES = frozenset({"string", "template_string", "regex", "number"})

_WRAPPER_TYPES = frozenset(
    {"parenthesized_expression", "as_expression", "satisfies_expression", "non_null_expression"}
)

FUNCTION_TYPES = frozenset(
    {
        "function_declaration",
        "generator_function_declaration",
        "function_expression",
        "function",
        "generator_function",
        "arrow_function",
        "method_definition",
    }
)

SCOPE_TYPES = FUNCTION_TYPES | {"program", "statement_block", "class_body"}

_WORDISH = re.compile(r"[\w$]")


def _node_key(node: Any) -> tuple[int, int, str]:
    return (node.start_byte, node.end_byte, node.type)


class SourceModel:
    """Capability object over one tree-sitter tree and its source bytes."""

    def __init__(self, text: str, tree: Any = None) -> None:
        self.source_text = text
        self._data = text.encode("utf-8")
        self._lines = self._data.split(b"\n")
        self._tree = tree
        self._declarators: Optional[dict[str, list[Any]]] = None

    @property
    def root(self) -> Any:
        return self._tree.root_node if self._tree is not None else None

    # ── text ──────────────────────────────────────────────────────

    def text(self, ref: Any) -> str:
        """Raw source text of ``ref``."""
        if ref is None:
            return ""
        return self._data[ref.start_byte : ref.end_byte].decode("utf-8", errors="replace")

    def normalized_text(self, ref: Any) -> str:
        """Token text of ``ref`` without comments or layout.

        Tokens are joined directly, with a single space only where two
        word-like tokens meet, so any two spellings differing only in
        whitespace or comments produce the same string.
        """
        if ref is None:
            return ""
        parts: list[str] = []
        for leaf in self._tokens(ref):
            token = self.text(leaf)
            if leaf.type == "jsx_text":
                token = " ".join(token.split())
            if not token:
                continue
            if parts and _WORDISH.match(parts[-1][-1]) and _WORDISH.match(token[0]):
                parts.append(" ")
            parts.append(token)
        return "".join(parts)

    def _tokens(self, ref: Any) -> Iterator[Any]:
        stack = [ref]
        while stack:
            node = stack.pop()
            if node.type == "comment":
                continue
            if node.type in _ATOMIC_TYPES or node.child_count == 0:
                yield node
                continue
            stack.extend(reversed(node.children))

    # ── location ──────────────────────────────────────────────────

    def _column(self, row: int, byte_column: int) -> int:
        if row >= len(self._lines):
            return byte_column
        return len(self._lines[row][:byte_column].decode("utf-8", errors="replace"))

    def span(self, ref: Any) -> Span:
        start_row, start_col = ref.start_point
        end_row, end_col = ref.end_point
        return Span(
            start_row + 1,
            self._column(start_row, start_col),
            end_row + 1,
            self._column(end_row, end_col),
        )

    def offset(self, ref: Any) -> int:
        return ref.start_byte

    def contains(self, outer: Any, inner: Any) -> bool:
        return outer.start_byte <= inner.start_byte and inner.end_byte <= outer.end_byte

    def same(self, a: Any, b: Any) -> bool:
        if a is None or b is None:
            return a is b
        return _node_key(a) == _node_key(b)

    # ── scopes ────────────────────────────────────────────────────

    def enclosing_scope(self, ref: Any) -> Any:
        """Nearest ancestor block, function or the program itself."""
        node = ref.parent
        while node is not None:
            if node.type in SCOPE_TYPES:
                return node
            node = node.parent
        return self.root

    def scope_chain(self, ref: Any) -> list[Any]:
        """Enclosing scopes from innermost outward, ending at the program."""
        chain: list[Any] = []
        node = ref.parent
        while node is not None:
            if node.type in SCOPE_TYPES:
                chain.append(node)
            node = node.parent
        if not chain or chain[-1].type != "program":
            if self.root is not None:
                chain.append(self.root)
        return chain

    def declarators_named(self, name: str) -> list[Any]:
        """Every ``variable_declarator`` binding ``name`` as a plain identifier."""
        if self._declarators is None:
            self._declarators = self._index_declarators()
        return list(self._declarators.get(name, ()))

    def _index_declarators(self) -> dict[str, list[Any]]:
        index: dict[str, list[Any]] = defaultdict(list)
        if self.root is None:
            return index
        for node in self.walk():
            if node.type == "variable_declarator":
                name = node.child_by_field_name("name")
                if name is not None and name.type == "identifier":
                    index[self.text(name)].append(node)
        return index

    def walk(self, ref: Any = None) -> Iterator[Any]:
        """Pre-order traversal of named and anonymous nodes."""
        start = ref if ref is not None else self.root
        if start is None:
            return
        stack = [start]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    # ── classification ───────────────────────────────────────────

    def unwrap(self, ref: Any) -> Any:
        """Strip parentheses, ``as``, ``satisfies`` and non-null wrappers."""
        node = ref
        while node is not None and node.type in _WRAPPER_TYPES:
            inner = [c for c in node.named_children if c.type != "comment"]
            if not inner:
                break
            node = inner[0]
        return node

    def array_elements(self, ref: Any) -> Optional[list[Any]]:
        if ref is None or ref.type != "array":
            return None
        return [c for c in ref.named_children if c.type != "comment"]

    def spread_argument(self, ref: Any) -> Any:
        if ref is None or ref.type != "spread_element":
            return None
        inner = [c for c in ref.named_children if c.type != "comment"]
        return inner[0] if inner else None

    def identifier_name(self, ref: Any) -> Optional[str]:
        if ref is not None and ref.type == "identifier":
            return self.text(ref)
        return None

    def initializer(self, ref: Any) -> Any:
        if ref is None or ref.type != "variable_declarator":
            return None
        return ref.child_by_field_name("value")
