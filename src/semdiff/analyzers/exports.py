"""Module export surface."""

from __future__ import annotations

from ..kinds import ChangeKind, Severity
from ..models import ChangeRecord, DiffParams
from ..scanning.syntax import ExportSite, StructuralModel
from .base import make_record

_LABEL = "ExportDeclaration"


def _variable_types(model: StructuralModel) -> dict[str, str]:
    return {v.name: v.type_text for v in model.variables}


class ExportAnalyzer:
    name = "exports"
    group = "core-structural"

    def diff(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]:
        base_exports: dict[str, ExportSite] = {}
        for site in base.exports:
            base_exports.setdefault(site.name, site)
        head_exports: dict[str, ExportSite] = {}
        for site in head.exports:
            head_exports.setdefault(site.name, site)

        base_types = _variable_types(base)
        head_types = _variable_types(head)

        records: list[ChangeRecord] = []
        for name, m in head_exports.items():
            b = base_exports.get(name)
            if b is None:
                records.append(
                    make_record(
                        ChangeKind.EXPORT_ADDED,
                        params,
                        m.span,
                        f"Export added: {name} ({m.kind})",
                        _LABEL,
                        severity=Severity.MEDIUM,
                    )
                )
            elif b.kind != m.kind or b.is_default != m.is_default:
                records.append(
                    make_record(
                        ChangeKind.EXPORT_SIGNATURE_CHANGED,
                        params,
                        m.span,
                        f"Export signature changed: {name}",
                        _LABEL,
                        severity=Severity.HIGH,
                        context=f"{'default ' if b.is_default else ''}{b.kind} -> "
                        f"{'default ' if m.is_default else ''}{m.kind}",
                    )
                )
            elif m.kind == "variable":
                before = base_types.get(name)
                after = head_types.get(name)
                if before is not None and after is not None and before != after:
                    records.append(
                        make_record(
                            ChangeKind.EXPORT_SIGNATURE_CHANGED,
                            params,
                            m.span,
                            f"Export signature changed: {name} ({before} -> {after})",
                            _LABEL,
                            severity=Severity.MEDIUM,
                        )
                    )

        for name, b in base_exports.items():
            if name not in head_exports:
                records.append(
                    make_record(
                        ChangeKind.EXPORT_REMOVED,
                        params,
                        b.span,
                        f"Export removed: {name}",
                        _LABEL,
                        severity=Severity.HIGH,
                    )
                )
        return records
