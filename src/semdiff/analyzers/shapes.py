"""Declaration shapes: classes, interfaces and variables.

These analyzers only look at additions and changes. Removals of the
underlying functions and types are already reported by the function and
type analyzers.
"""

from __future__ import annotations

from ..heuristics import pair_by
from ..kinds import ChangeKind, Severity
from ..models import ChangeRecord, DiffParams
from ..scanning.syntax import StructuralModel
from .base import make_record


class ClassAnalyzer:
    name = "classes"
    group = "core-structural"

    def diff(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]:
        records: list[ChangeRecord] = []
        base_classes = {c.name: c for c in base.classes}
        for cls in head.classes:
            before = base_classes.get(cls.name)
            if before is None:
                records.append(
                    make_record(
                        ChangeKind.CLASS_STRUCTURE_CHANGED,
                        params,
                        cls.span,
                        f"Class added: {cls.name}",
                        "ClassDeclaration",
                        severity=Severity.HIGH,
                    )
                )
                continue

            if before.extends != cls.extends:
                records.append(
                    make_record(
                        ChangeKind.CLASS_STRUCTURE_CHANGED,
                        params,
                        cls.span,
                        f"Class inheritance changed: {cls.name}",
                        "ClassDeclaration",
                        severity=Severity.HIGH,
                        context=f"{before.extends or '(none)'} -> {cls.extends or '(none)'}",
                    )
                )
            for method in cls.methods:
                if method not in before.methods:
                    records.append(
                        make_record(
                            ChangeKind.CLASS_STRUCTURE_CHANGED,
                            params,
                            cls.span,
                            f"Method added to class: {cls.name}.{method}",
                            "MethodDeclaration",
                            severity=Severity.HIGH,
                        )
                    )
            for prop in cls.properties:
                if prop not in before.properties:
                    records.append(
                        make_record(
                            ChangeKind.CLASS_STRUCTURE_CHANGED,
                            params,
                            cls.span,
                            f"Property added to class: {cls.name}.{prop}",
                            "PropertyDeclaration",
                            severity=Severity.MEDIUM,
                        )
                    )
        return records


class InterfaceAnalyzer:
    name = "interfaces"
    group = "core-structural"

    def diff(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]:
        records: list[ChangeRecord] = []
        base_interfaces = {i.name: i for i in base.interfaces}
        for iface in head.interfaces:
            before = base_interfaces.get(iface.name)
            if before is None:
                records.append(
                    make_record(
                        ChangeKind.INTERFACE_MODIFIED,
                        params,
                        iface.span,
                        f"Interface added: {iface.name}",
                        "InterfaceDeclaration",
                        severity=Severity.MEDIUM,
                    )
                )
                continue

            base_props = {p.name: p for p in before.properties}
            for prop in iface.properties:
                old = base_props.get(prop.name)
                if old is None:
                    records.append(
                        make_record(
                            ChangeKind.INTERFACE_MODIFIED,
                            params,
                            iface.span,
                            f"Property added to interface: {iface.name}.{prop.name}",
                            "PropertySignature",
                            severity=Severity.MEDIUM,
                        )
                    )
                elif old.type_text != prop.type_text or old.optional != prop.optional:
                    records.append(
                        make_record(
                            ChangeKind.INTERFACE_MODIFIED,
                            params,
                            iface.span,
                            f"Property type changed in interface: {iface.name}.{prop.name}",
                            "PropertySignature",
                            severity=Severity.HIGH,
                            context=f"{old.type_text}{'?' if old.optional else ''} -> "
                            f"{prop.type_text}{'?' if prop.optional else ''}",
                        )
                    )
            for method in iface.methods:
                if method not in before.methods:
                    records.append(
                        make_record(
                            ChangeKind.INTERFACE_MODIFIED,
                            params,
                            iface.span,
                            f"Method added to interface: {iface.name}.{method}",
                            "MethodSignature",
                            severity=Severity.HIGH,
                        )
                    )
        return records


class VariableAnalyzer:
    name = "variables"
    group = "data-flow"

    def diff(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]:
        records: list[ChangeRecord] = []
        pairs, _, added = pair_by(list(base.variables), list(head.variables), key=lambda v: v.name)
        for var in added:
            records.append(
                make_record(
                    ChangeKind.VARIABLE_DECLARATION_CHANGED,
                    params,
                    var.span,
                    f"Variable added: {var.name}",
                    "VariableDeclaration",
                    severity=Severity.LOW,
                )
            )
        for before, after in pairs:
            if before.type_text != after.type_text:
                records.append(
                    make_record(
                        ChangeKind.VARIABLE_DECLARATION_CHANGED,
                        params,
                        after.span,
                        f"Variable type changed: {after.name}",
                        "VariableDeclaration",
                        severity=Severity.MEDIUM,
                        context=f"{before.type_text} -> {after.type_text}",
                    )
                )
        return records
