"""Matching and equivalence heuristics shared by the analyzers.

Every matcher is a pure fold: it takes the remaining base and head pools
and returns the pairs it could make together with what is left over, so
cascades are written as a sequence of calls threading the leftovers::

    pairs, base_rest, head_rest = pair_unique(base, head, key=lambda c: c.callee)
    more, base_rest, head_rest = pair_by(base_rest, head_rest, key=lambda c: c.normalized_callee)
"""

from __future__ import annotations

import re
from collections import Counter, defaultdict
from fnmatch import fnmatchcase
from typing import TYPE_CHECKING, Any, Callable, Hashable, Iterable, Optional, Sequence, TypeVar

from rapidfuzz.distance import Levenshtein

if TYPE_CHECKING:
    from .scanning.source_model import SourceModel

T = TypeVar("T")

Pairs = list[tuple[T, T]]
FoldResult = tuple[list[tuple[Any, Any]], list[Any], list[Any]]

_BRACKET_ACCESS = re.compile(r"""\[\s*(['"])([^'"\]]*)\1\s*\]""")


# ── pairing folds ──────────────────────────────────────────────────


def pair_unique(
    base: Sequence[T], head: Sequence[T], key: Callable[[T], Hashable]
) -> FoldResult:
    """Pair items whose key occurs exactly once on each side."""
    base_counts = Counter(key(b) for b in base)
    head_counts = Counter(key(h) for h in head)
    head_by_key = {key(h): h for h in head if head_counts[key(h)] == 1}

    pairs: list[tuple[T, T]] = []
    used: set[int] = set()
    base_rest: list[T] = []
    for b in base:
        k = key(b)
        if base_counts[k] == 1 and k in head_by_key:
            match = head_by_key[k]
            pairs.append((b, match))
            used.add(id(match))
        else:
            base_rest.append(b)
    head_rest = [h for h in head if id(h) not in used]
    return pairs, base_rest, head_rest


def pair_by(base: Sequence[T], head: Sequence[T], key: Callable[[T], Hashable]) -> FoldResult:
    """First-fit pairing: each base item takes the earliest unused head item with its key."""
    buckets = bucket_by(head, key)
    pairs: list[tuple[T, T]] = []
    base_rest: list[T] = []
    for b in base:
        match = pop_match(buckets, key(b))
        if match is None:
            base_rest.append(b)
        else:
            pairs.append((b, match))
    used = {id(h) for _, h in pairs}
    head_rest = [h for h in head if id(h) not in used]
    return pairs, base_rest, head_rest


def pair_located(base: Sequence[T], head: Sequence[T], content: Callable[[T], Hashable]) -> FoldResult:
    """Pair statement-level sites for location-keyed analyzers.

    Sites with identical content are taken out first, wherever they moved,
    so edits that only shift lines report nothing. The rest pair by start
    position; those pairs are the "modified" candidates.
    """
    _, base_rest, head_rest = pair_by(base, head, key=content)
    return pair_by(base_rest, head_rest, key=lambda site: site.span.position)


def bucket_by(items: Iterable[T], key: Callable[[T], Hashable]) -> dict[Hashable, list[T]]:
    buckets: dict[Hashable, list[T]] = defaultdict(list)
    for item in items:
        buckets[key(item)].append(item)
    return buckets


def pop_match(buckets: dict[Hashable, list[T]], k: Hashable) -> Optional[T]:
    """Remove and return the first item under ``k``, or None."""
    bucket = buckets.get(k)
    if not bucket:
        return None
    return bucket.pop(0)


def multiset_equal(a: Iterable[Hashable], b: Iterable[Hashable]) -> bool:
    return Counter(a) == Counter(b)


def ordered_equal(a: Sequence[Any], b: Sequence[Any]) -> bool:
    return len(a) == len(b) and all(x == y for x, y in zip(a, b))


# ── callee paths ───────────────────────────────────────────────────


def normalize_callee(callee: str) -> str:
    """Fold optional chaining and literal bracket access into a dotted path.

    >>> normalize_callee('obj?.["m"]?.')
    'obj.m'
    """
    path = callee.replace("?.", ".")
    path = _BRACKET_ACCESS.sub(r".\2", path)
    while ".." in path:
        path = path.replace("..", ".")
    return path.strip(".")


def suffix_path(path: str) -> str:
    """Drop the leading segment (``this.api.get`` -> ``api.get``)."""
    _, sep, rest = path.partition(".")
    return rest if sep else path


# ── text similarity ────────────────────────────────────────────────


def levenshtein(a: str, b: str) -> int:
    return Levenshtein.distance(a, b)


def similarity(a: str, b: str) -> float:
    """``1 - distance / longest``; two empty strings are identical."""
    return Levenshtein.normalized_similarity(a, b)


# ── scope resolution ───────────────────────────────────────────────


def nearest_declaration(source: SourceModel, name: str, ref: Any) -> Any:
    """Declarator that ``name`` refers to at ``ref``, or None.

    Scopes are searched innermost-out; the first scope directly holding a
    same-named declarator wins. Inside that scope the latest declarator
    before the reference is preferred, else the earliest one.
    """
    candidates = source.declarators_named(name)
    if not candidates:
        return None
    for scope in source.scope_chain(ref):
        owned = [d for d in candidates if source.same(source.enclosing_scope(d), scope)]
        if not owned:
            continue
        before = [d for d in owned if source.offset(d) <= source.offset(ref)]
        if before:
            return max(before, key=source.offset)
        return min(owned, key=source.offset)
    return None


def resolve_dependency_list(
    source: SourceModel, ref: Any, seen: Optional[frozenset[str]] = None
) -> list[str]:
    """Flatten a hook dependency argument into its entries.

    Array literals are expanded element by element, spreads and identifiers
    are followed through their nearest declaration. Unresolvable spreads are
    kept as ``...name``; anything else falls back to its normalized text.
    """
    if ref is None:
        return []
    seen = seen or frozenset()
    node = source.unwrap(ref)

    elements = source.array_elements(node)
    if elements is not None:
        out: list[str] = []
        for element in elements:
            spread = source.spread_argument(element)
            if spread is None:
                out.append(source.normalized_text(element))
                continue
            resolved = _resolve_identifier(source, spread, seen)
            if resolved is None:
                out.append(source.normalized_text(element))
            else:
                out.extend(resolved)
        return out

    resolved = _resolve_identifier(source, node, seen)
    if resolved is not None:
        return resolved
    return [source.normalized_text(node)]


def _resolve_identifier(source: SourceModel, ref: Any, seen: frozenset[str]) -> Optional[list[str]]:
    node = source.unwrap(ref)
    if source.array_elements(node) is not None:
        return resolve_dependency_list(source, node, seen)
    name = source.identifier_name(node)
    if name is None or name in seen:
        return None
    declarator = nearest_declaration(source, name, node)
    value = source.initializer(declarator)
    if value is None:
        return None
    inner = source.unwrap(value)
    if source.array_elements(inner) is None and source.identifier_name(inner) is None:
        return None
    return resolve_dependency_list(source, inner, seen | {name})


# ── globs ──────────────────────────────────────────────────────────


def glob_match(path: str, pattern: str) -> bool:
    """fnmatch with a leading ``**/`` also matching zero directories."""
    if fnmatchcase(path, pattern):
        return True
    if pattern.startswith("**/"):
        return glob_match(path, pattern[3:])
    return False


def matches_any(path: str, patterns: Iterable[str]) -> bool:
    return any(glob_match(path, p) for p in patterns)
