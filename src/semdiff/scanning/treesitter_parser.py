"""Tree-sitter parser wrapper for the TypeScript family of grammars.

Two dialects are supported, both bundled with tree-sitter-typescript:
    - "typescript" for .ts / .mts / .cts
    - "tsx" for .tsx and for plain JavaScript (.js / .jsx / .mjs / .cjs),
      which may carry markup and never uses ``<T>expr`` assertions

Usage:
    parser = get_parser()
    tree = parser.parse(source.encode("utf-8"), dialect_for_path("a.tsx"))
"""

from __future__ import annotations

import functools
import logging
from pathlib import PurePosixPath
from typing import Any, Optional

import tree_sitter
import tree_sitter_typescript

logger = logging.getLogger(__name__)

DIALECTS = ("typescript", "tsx")

_TYPESCRIPT_SUFFIXES = frozenset({".ts", ".mts", ".cts"})


def dialect_for_path(path: str) -> str:
    """Pick the grammar for a file path (markup-capable unless plain TS)."""
    suffix = PurePosixPath(path).suffix.lower()
    if suffix in _TYPESCRIPT_SUFFIXES:
        return "typescript"
    return "tsx"


class TreeSitterParser:
    """Lazily builds one ``tree_sitter.Parser`` per dialect."""

    def __init__(self) -> None:
        self._parsers: dict[str, Any] = {}

    def _parser_for(self, dialect: str) -> Any:
        parser = self._parsers.get(dialect)
        if parser is None:
            if dialect not in DIALECTS:
                raise ValueError(f"unsupported dialect '{dialect}'")
            lang_fn = getattr(tree_sitter_typescript, f"language_{dialect}")
            # tree-sitter >= 0.23 returns PyCapsule; wrap in Language()
            language = tree_sitter.Language(lang_fn())
            parser = tree_sitter.Parser(language)
            self._parsers[dialect] = parser
        return parser

    def parse(self, code: bytes, dialect: str) -> Optional[Any]:
        """Parse code and return the syntax tree, or None on failure.

        Syntax errors do not fail the parse: tree-sitter recovers and marks
        the damaged region with ERROR nodes.
        """
        try:
            return self._parser_for(dialect).parse(code)
        except Exception as e:
            logger.debug(f"tree-sitter parse failed ({dialect}): {e}")
            return None


@functools.lru_cache(maxsize=1)
def get_parser() -> TreeSitterParser:
    return TreeSitterParser()
