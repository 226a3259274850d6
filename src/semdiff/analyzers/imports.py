"""Import structure: modules, specifiers and side-effect import order.

Type-only imports are erased at compile time and are not reported.
Specifiers are compared as sets keyed by their local binding, so
reordering ``{ a, b }`` to ``{ b, a }`` is a no-op.
"""

from __future__ import annotations

from ..heuristics import matches_any, multiset_equal, ordered_equal
from ..kinds import ChangeKind, Severity
from ..models import ChangeRecord, DiffParams
from ..scanning.syntax import ImportSite, StructuralModel
from .base import make_record

_LABEL = "ImportDeclaration"


def _value_imports(model: StructuralModel) -> list[ImportSite]:
    return [i for i in model.imports if not i.is_type_only]


def _specifier_keys(imports: list[ImportSite]) -> set[str]:
    keys: set[str] = set()
    for site in imports:
        for spec in site.specifiers:
            if not spec.is_type_only:
                keys.add(spec.local_name if spec.name != "*" else f"* as {spec.local_name}")
    return keys


class ImportStructureAnalyzer:
    name = "imports"
    group = "imports-exports"

    def diff(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]:
        base_imports = _value_imports(base)
        head_imports = _value_imports(head)

        base_by_module: dict[str, list[ImportSite]] = {}
        for site in base_imports:
            base_by_module.setdefault(site.module, []).append(site)
        head_by_module: dict[str, list[ImportSite]] = {}
        for site in head_imports:
            head_by_module.setdefault(site.module, []).append(site)

        records: list[ChangeRecord] = []
        side_effect_modules = params.config.side_effect_modules

        for module, sites in head_by_module.items():
            first = sites[0]
            if module not in base_by_module:
                records.append(
                    make_record(
                        ChangeKind.IMPORT_ADDED,
                        params,
                        first.span,
                        f"Import added: {module}",
                        _LABEL,
                        severity=Severity.LOW,
                    )
                )
                if side_effect_modules and matches_any(module, side_effect_modules):
                    records.append(
                        make_record(
                            ChangeKind.SIDE_EFFECT_IMPORT_ADDED,
                            params,
                            first.span,
                            f"Side-effect import added: {module}",
                            _LABEL,
                            severity=Severity.MEDIUM,
                        )
                    )
                continue

            before = _specifier_keys(base_by_module[module])
            after = _specifier_keys(sites)
            for key in sorted(before - after):
                records.append(
                    make_record(
                        ChangeKind.IMPORT_STRUCTURE_CHANGED,
                        params,
                        first.span,
                        f"Import specifier '{key}' removed from {module}",
                        _LABEL,
                        severity=Severity.MEDIUM,
                    )
                )
            for key in sorted(after - before):
                records.append(
                    make_record(
                        ChangeKind.IMPORT_STRUCTURE_CHANGED,
                        params,
                        first.span,
                        f"Import specifier '{key}' added to {module}",
                        _LABEL,
                        severity=Severity.LOW,
                    )
                )

        for module, sites in base_by_module.items():
            if module not in head_by_module:
                records.append(
                    make_record(
                        ChangeKind.IMPORT_REMOVED,
                        params,
                        sites[0].span,
                        f"Import removed: {module}",
                        _LABEL,
                        severity=Severity.MEDIUM,
                    )
                )

        records.extend(self._side_effect_order(base_imports, head_imports, params))
        return records

    def _side_effect_order(
        self, base: list[ImportSite], head: list[ImportSite], params: DiffParams
    ) -> list[ChangeRecord]:
        before = [i.module for i in base if i.is_side_effect_only]
        after = [i.module for i in head if i.is_side_effect_only]
        if ordered_equal(before, after) or not multiset_equal(before, after):
            return []
        anchor = next(i for i in head if i.is_side_effect_only)
        return [
            make_record(
                ChangeKind.IMPORT_STRUCTURE_CHANGED,
                params,
                anchor.span,
                "Side-effect import order changed",
                _LABEL,
                severity=Severity.MEDIUM,
                context=f"Order changed from [{', '.join(before)}] to [{', '.join(after)}]",
            )
        ]
