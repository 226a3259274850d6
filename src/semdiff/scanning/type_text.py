"""Type and signature text normalization.

Two spellings of the same type must compare equal after normalization:

    normalize_type_text("Array< string >")          -> "string[]"
    normalize_type_text("Partial<Pick<User, 'id'>>") -> "Pick<Partial<User>,'id'>"
    canonical_type_text("'b' | 'a'")                 -> "'a'|'b'"
"""

from __future__ import annotations

import re

_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.S)
_LINE_COMMENT = re.compile(r"(^|[^:])//.*$", re.M)
_WHITESPACE = re.compile(r"\s+")
_PUNCTUATION = re.compile(r"\s*([{}():;,|&<>\[\]])\s*")
_EQUALS = re.compile(r"\s*=\s*")

_GENERIC_ARG = r"[^<>]+(?:<[^<>]*>)*"
_ARRAY_GENERIC = re.compile(rf"\bArray<({_GENERIC_ARG})>")
_PARTIAL_PICK = re.compile(rf"\bPartial<Pick<([^,<>]+(?:<[^<>]*>)*),({_GENERIC_ARG})>>")

_MAX_REWRITE_PASSES = 10
_OPENERS = "([{<"
_CLOSERS = ")]}>"


def strip_comments(text: str) -> str:
    return _LINE_COMMENT.sub(r"\1", _BLOCK_COMMENT.sub("", text))


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def normalize_type_text(text: str) -> str:
    """Strip comments and layout, then rewrite equivalent idioms."""
    s = collapse_whitespace(strip_comments(text))
    s = _PUNCTUATION.sub(r"\1", s)
    s = _EQUALS.sub("=", s)
    return _apply_equivalences(s)


def _apply_equivalences(s: str) -> str:
    # Rewrites can expose new matches (Array<Array<T>>), so run to a fixpoint.
    for _ in range(_MAX_REWRITE_PASSES):
        rewritten = _ARRAY_GENERIC.sub(r"\1[]", s)
        rewritten = _PARTIAL_PICK.sub(r"Pick<Partial<\1>,\2>", rewritten)
        if rewritten == s:
            break
        s = rewritten
    return s


def split_top_level(text: str, separator: str) -> list[str]:
    """Split on ``separator`` outside brackets and string literals."""
    parts: list[str] = []
    depth = 0
    quote = ""
    current: list[str] = []
    prev = ""
    for ch in text:
        if quote:
            current.append(ch)
            if ch == quote and prev != "\\":
                quote = ""
        elif ch in "'\"`":
            quote = ch
            current.append(ch)
        elif ch in _OPENERS:
            depth += 1
            current.append(ch)
        elif ch in _CLOSERS and not (ch == ">" and prev == "="):
            depth = max(depth - 1, 0)
            current.append(ch)
        elif ch == separator and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
        prev = ch
    parts.append("".join(current))
    return parts


def _sorted_members(text: str, separator: str) -> str:
    members = [m for m in split_top_level(text, separator) if m]
    if len(members) < 2:
        return text
    return separator.join(sorted(members))


def canonical_type_text(text: str) -> str:
    """Normalized text with top-level union and intersection order folded."""
    s = normalize_type_text(text)
    if "|" in s:
        s = _sorted_members(s, "|")
    if "&" in s:
        s = "|".join(_sorted_members(m, "&") for m in split_top_level(s, "|"))
    return s


_LITERAL_TYPE = re.compile(r"""^(?:'[^']*'|"[^"]*"|`[^`]*`|-?\d+(?:\.\d+)?|true|false)$""")


def is_literal_type(text: str) -> bool:
    """True for string, number and boolean literal types (brands, discriminants)."""
    return bool(_LITERAL_TYPE.match(text.strip()))
