"""Declarative markup: elements, props, component references and render logic."""

from __future__ import annotations

from ..heuristics import bucket_by, pair_by, pop_match
from ..kinds import ChangeKind, Severity
from ..models import ChangeRecord, DiffParams
from ..scanning.extractor import EVENT_HANDLER_PATTERN
from ..scanning.syntax import EventHandlerSite, JsxElementSite, StructuralModel
from .base import make_record


def _props_key(element: JsxElementSite) -> tuple:
    """Props that affect rendering; event handlers are diffed separately."""
    return tuple(
        (p.name, p.kind, p.value) for p in element.props if not EVENT_HANDLER_PATTERN.match(p.name)
    )


def _props_text(element: JsxElementSite) -> str:
    return " ".join(f"{n}={v}" if v else n for n, _, v in _props_key(element)) or "(none)"


def _shape_key(element: JsxElementSite) -> tuple:
    return (tuple(sorted(p.name for p in element.props)), element.has_children)


def _label(element: JsxElementSite) -> str:
    return "JsxElement" if element.has_children else "JsxSelfClosingElement"


class JsxAnalyzer:
    name = "jsx"
    group = "jsx-rendering"

    def diff(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]:
        jsx = params.config.jsx
        if not jsx.enabled:
            return []
        records = self._elements(base, head, params)
        if not jsx.ignore_logic_changes:
            records.extend(self._conditional_renders(base, head, params))
            records.extend(self._event_handlers(base, head, params))
        return records

    def _elements(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]:
        records: list[ChangeRecord] = []
        exact, base_rest, head_rest = pair_by(
            list(base.jsx_elements),
            list(head.jsx_elements),
            key=lambda e: (e.tag, _props_key(e), e.has_children),
        )
        by_tag, removed, added = pair_by(base_rest, head_rest, key=lambda e: e.tag)

        for before, after in exact + by_tag:
            if _props_key(before) != _props_key(after):
                records.append(
                    make_record(
                        ChangeKind.JSX_PROPS_CHANGED,
                        params,
                        after.span,
                        f"Props changed on <{after.tag}>",
                        _label(after),
                        severity=Severity.LOW,
                        context=f"{_props_text(before)} -> {_props_text(after)}",
                    )
                )
            if after.is_component and before.has_children != after.has_children:
                records.append(
                    make_record(
                        ChangeKind.COMPONENT_STRUCTURE_CHANGED,
                        params,
                        after.span,
                        f"Component structure changed: <{after.tag}>",
                        _label(after),
                        severity=Severity.LOW,
                        context="children added" if after.has_children else "children removed",
                    )
                )

        swapped, removed_components, added_components = pair_by(
            [e for e in removed if e.is_component],
            [e for e in added if e.is_component],
            key=_shape_key,
        )
        for before, after in swapped:
            records.append(
                make_record(
                    ChangeKind.COMPONENT_REFERENCE_CHANGED,
                    params,
                    after.span,
                    f"Component reference changed: {before.tag} -> {after.tag}",
                    _label(after),
                    severity=Severity.MEDIUM,
                )
            )

        swapped_ids = {id(e) for pair in swapped for e in pair}
        for element in removed:
            if id(element) in swapped_ids:
                continue
            records.append(
                make_record(
                    ChangeKind.JSX_ELEMENT_REMOVED,
                    params,
                    element.span,
                    f"JSX element removed: <{element.tag}>",
                    _label(element),
                    severity=Severity.LOW,
                )
            )
        for element in added:
            if id(element) in swapped_ids:
                continue
            records.append(
                make_record(
                    ChangeKind.JSX_ELEMENT_ADDED,
                    params,
                    element.span,
                    f"JSX element added: <{element.tag}>",
                    _label(element),
                    severity=Severity.LOW,
                )
            )
        return records

    def _conditional_renders(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]:
        records: list[ChangeRecord] = []
        buckets = bucket_by(base.conditional_renders, lambda c: (c.kind, c.text))
        for render in head.conditional_renders:
            if pop_match(buckets, (render.kind, render.text)) is not None:
                continue
            records.append(
                make_record(
                    ChangeKind.JSX_LOGIC_ADDED,
                    params,
                    render.span,
                    f"Conditional rendering added ({render.kind})",
                    "JsxExpression",
                    severity=Severity.MEDIUM,
                    context=render.text,
                )
            )
        return records

    def _event_handlers(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]:
        threshold = params.config.jsx.event_handler_complexity_threshold

        def significant(handler: EventHandlerSite) -> bool:
            return not handler.is_inline or handler.complexity >= threshold

        def key(handler: EventHandlerSite) -> tuple[str, str]:
            return (handler.element, handler.event)

        records: list[ChangeRecord] = []
        pairs, removed, added = pair_by(
            [h for h in base.event_handlers if significant(h)],
            [h for h in head.event_handlers if significant(h)],
            key=key,
        )
        for before, after in pairs:
            if before.text != after.text:
                records.append(
                    make_record(
                        ChangeKind.EVENT_HANDLER_CHANGED,
                        params,
                        after.span,
                        f"Event handler changed: {after.event} on <{after.element}>",
                        "JsxAttribute",
                        severity=Severity.LOW,
                    )
                )
        for handler in added:
            records.append(
                make_record(
                    ChangeKind.EVENT_HANDLER_CHANGED,
                    params,
                    handler.span,
                    f"Event handler added: {handler.event} on <{handler.element}>",
                    "JsxAttribute",
                    severity=Severity.LOW,
                )
            )
        for handler in removed:
            records.append(
                make_record(
                    ChangeKind.EVENT_HANDLER_CHANGED,
                    params,
                    handler.span,
                    f"Event handler removed: {handler.event} on <{handler.element}>",
                    "JsxAttribute",
                    severity=Severity.LOW,
                )
            )
        return records
