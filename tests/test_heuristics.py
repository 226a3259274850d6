"""Tests for the pairing folds and equivalence heuristics."""

import pytest

from conftest import extract

from semdiff.heuristics import (
    glob_match,
    levenshtein,
    matches_any,
    multiset_equal,
    nearest_declaration,
    normalize_callee,
    ordered_equal,
    pair_by,
    pair_located,
    pair_unique,
    resolve_dependency_list,
    similarity,
    suffix_path,
)
from semdiff.scanning.syntax import Span, ThrowSite


class TestPairing:
    def test_pair_unique_skips_ambiguous_keys(self):
        base = ["a1", "b1", "b2"]
        head = ["a9", "b9"]
        pairs, base_rest, head_rest = pair_unique(base, head, key=lambda s: s[0])
        assert pairs == [("a1", "a9")]
        assert base_rest == ["b1", "b2"]
        assert head_rest == ["b9"]

    def test_pair_by_is_first_fit(self):
        pairs, base_rest, head_rest = pair_by(["b1", "b2"], ["b9"], key=lambda s: s[0])
        assert pairs == [("b1", "b9")]
        assert base_rest == ["b2"]
        assert head_rest == []

    def test_folds_thread_leftovers(self):
        base = ["x1", "y1"]
        head = ["y2", "z2"]
        pairs, base_rest, head_rest = pair_unique(base, head, key=lambda s: s[0])
        assert pairs == [("y1", "y2")]
        more, base_rest, head_rest = pair_by(base_rest, head_rest, key=lambda s: s[1:])
        assert more == []
        assert base_rest == ["x1"] and head_rest == ["z2"]

    def test_pair_located_prefers_content(self):
        moved = ThrowSite("throw a", Span(10, 2, 10, 9))
        edited_base = ThrowSite("throw b", Span(3, 2, 3, 9))
        edited_head = ThrowSite("throw c", Span(3, 2, 3, 9))
        pairs, removed, added = pair_located(
            [ThrowSite("throw a", Span(5, 2, 5, 9)), edited_base],
            [moved, edited_head],
            content=lambda t: t.text,
        )
        assert pairs == [(edited_base, edited_head)]
        assert removed == [] and added == []

    def test_sequence_equality(self):
        assert multiset_equal(["a", "b", "a"], ["a", "a", "b"])
        assert not multiset_equal(["a"], ["a", "a"])
        assert ordered_equal(["a", "b"], ["a", "b"])
        assert not ordered_equal(["a", "b"], ["b", "a"])


class TestCalleePaths:
    @pytest.mark.parametrize(
        "callee, expected",
        [
            ("obj?.m", "obj.m"),
            ("obj.m?.", "obj.m"),
            ('obj["m"]', "obj.m"),
            ("obj['m']?.", "obj.m"),
            ("a?.b?.c", "a.b.c"),
        ],
    )
    def test_normalize(self, callee, expected):
        assert normalize_callee(callee) == expected

    def test_suffix_path(self):
        assert suffix_path("client.api.get") == "api.get"
        assert suffix_path("fetch") == "fetch"


class TestSimilarity:
    def test_levenshtein(self):
        assert levenshtein("kitten", "sitting") == 3
        assert levenshtein("", "abc") == 3
        assert levenshtein("same", "same") == 0

    def test_similarity(self):
        assert similarity("", "") == 1.0
        assert similarity("abcd", "abcd") == 1.0
        assert similarity("abcd", "abcx") == pytest.approx(0.75)

    def test_similarity_on_large_bodies(self):
        body = "total += item.price * item.quantity;\n" * 120
        assert levenshtein(body, body + "x") == 1
        assert similarity(body, body.replace("price", "cost")) > 0.7


class TestScopeResolution:
    SOURCE = (
        "const deps = [outer];\n"
        "function Widget() {\n"
        "  const deps = [inner, ...more];\n"
        "  const more = [extra];\n"
        "  useEffect(() => {}, deps);\n"
        "}\n"
        "useEffect(() => {}, deps);\n"
    )

    def _hook_calls(self):
        model = extract(self.SOURCE, "w.tsx")
        return model, [c for c in model.calls if c.callee == "useEffect"]

    def test_inner_declaration_wins(self):
        model, (inner_call, _) = self._hook_calls()
        deps = resolve_dependency_list(model.source, inner_call.dependency_ref)
        assert deps == ["inner", "extra"]

    def test_outer_reference_resolves_outer(self):
        model, (_, outer_call) = self._hook_calls()
        deps = resolve_dependency_list(model.source, outer_call.dependency_ref)
        assert deps == ["outer"]

    def test_nearest_declaration_none_for_unknown(self):
        model, (inner_call, _) = self._hook_calls()
        assert nearest_declaration(model.source, "missing", inner_call.dependency_ref) is None

    def test_unresolvable_spread_is_kept(self):
        model = extract("useMemo(() => 1, [a, ...rest]);\n", "m.tsx")
        [call] = [c for c in model.calls if c.callee == "useMemo"]
        assert resolve_dependency_list(model.source, call.dependency_ref) == ["a", "...rest"]

    def test_missing_list(self):
        model = extract("useMemo(() => 1, [a]);\n", "m.tsx")
        assert resolve_dependency_list(model.source, None) == []


class TestGlobs:
    def test_double_star_matches_root(self):
        assert glob_match("app.tsx", "**/*.tsx")
        assert glob_match("src/app.tsx", "**/*.tsx")
        assert not glob_match("src/app.css", "**/*.tsx")

    def test_dotted_paths(self):
        assert matches_any("console.log", ["console.*"])
        assert matches_any("client.api.get", ["*.api.*"])
        assert not matches_any("save", ["console.*", "fetch"])
