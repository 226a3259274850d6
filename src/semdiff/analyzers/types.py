"""Type definitions: aliases, interfaces and enums.

Definitions are compared on canonical text, so reordering union or
intersection members and respelling ``Array<T>`` as ``T[]`` are no-ops.
When a definition changed, members are compared one by one. A change is
treated as breaking (high) only on cheap, conservative evidence: a
required member present on one side only, or a literal-typed member
(brand, discriminant) taking another value. Everything else is medium.
"""

from __future__ import annotations

from ..heuristics import similarity
from ..kinds import ChangeKind, Severity
from ..models import ChangeRecord, DiffParams
from ..scanning.syntax import StructuralModel, TypeMember, TypeSite
from ..scanning.type_text import is_literal_type
from .base import make_record

RENAME_SIMILARITY = 0.7

_LABELS = {
    "type": "TypeAliasDeclaration",
    "interface": "InterfaceDeclaration",
    "enum": "EnumDeclaration",
}


def _label(site: TypeSite) -> str:
    return _LABELS.get(site.kind, "TypeAliasDeclaration")


class TypeDefinitionAnalyzer:
    name = "types"
    group = "type-system"

    def diff(
        self, base: StructuralModel, head: StructuralModel, params: DiffParams
    ) -> list[ChangeRecord]:
        base_types = {t.name: t for t in base.types}
        head_types = {t.name: t for t in head.types}

        records: list[ChangeRecord] = []
        for name, b in base_types.items():
            m = head_types.get(name)
            if m is not None and b.canonical != m.canonical:
                records.extend(self._compare(b, m, params))

        removed = [t for n, t in base_types.items() if n not in head_types]
        added = [t for n, t in head_types.items() if n not in base_types]

        if len(removed) == 1 and len(added) == 1:
            records.append(self._migration(removed[0], added[0], params))
            return records

        for t in removed:
            records.append(
                make_record(
                    ChangeKind.TYPE_DEFINITION_CHANGED,
                    params,
                    t.span,
                    f"Type '{t.name}' was removed",
                    _label(t),
                    severity=Severity.MEDIUM,
                    context=f"Removed {t.kind} '{t.name}'",
                )
            )
        for t in added:
            records.append(
                make_record(
                    ChangeKind.TYPE_DEFINITION_CHANGED,
                    params,
                    t.span,
                    f"Type '{t.name}' was added",
                    _label(t),
                    severity=Severity.LOW,
                    context=f"Added {t.kind} '{t.name}'",
                )
            )
        return records

    def _migration(self, old: TypeSite, new: TypeSite, params: DiffParams) -> ChangeRecord:
        body_old = old.definition.split("=", 1)[-1] if old.kind == "type" else old.definition
        body_new = new.definition.split("=", 1)[-1] if new.kind == "type" else new.definition
        body_old = body_old.replace(old.name, "", 1)
        body_new = body_new.replace(new.name, "", 1)
        if similarity(body_old, body_new) > RENAME_SIMILARITY:
            return make_record(
                ChangeKind.TYPE_DEFINITION_CHANGED,
                params,
                new.span,
                f"Type '{old.name}' was likely renamed to '{new.name}'",
                _label(new),
                severity=Severity.MEDIUM,
                context="Detected possible rename",
            )
        return make_record(
            ChangeKind.TYPE_DEFINITION_CHANGED,
            params,
            new.span,
            f"API type/interface changed from '{old.name}' to '{new.name}'",
            _label(new),
            severity=Severity.HIGH,
            context="Detected possible API migration",
        )

    def _compare(self, b: TypeSite, m: TypeSite, params: DiffParams) -> list[ChangeRecord]:
        records: list[ChangeRecord] = []
        name = m.name

        def member_record(detail: str, severity: Severity, context: str) -> None:
            records.append(
                make_record(
                    ChangeKind.TYPE_DEFINITION_CHANGED,
                    params,
                    m.span,
                    detail,
                    "PropertySignature",
                    severity=severity,
                    context=context,
                )
            )

        before = {mem.name: mem for mem in b.members}
        after = {mem.name: mem for mem in m.members}

        for key, prop in before.items():
            target = after.get(key)
            if target is None:
                member_record(
                    f"Property '{key}' removed from type '{name}'",
                    Severity.HIGH if prop.is_required else Severity.MEDIUM,
                    f"Removed {'required' if prop.is_required else 'optional'} property '{key}'",
                )
            elif prop.type_text != target.type_text:
                member_record(
                    f"Property '{key}' type changed in '{name}'",
                    _type_change_severity(prop, target),
                    f"From '{prop.type_text}' to '{target.type_text}'",
                )
            elif prop.optional != target.optional:
                action = "made optional" if target.optional else "made required"
                member_record(
                    f"Property '{key}' {action} in '{name}'",
                    Severity.LOW if target.optional else Severity.MEDIUM,
                    f"Property '{key}' {action}",
                )

        for key, prop in after.items():
            if key in before:
                continue
            member_record(
                f"Property '{key}' added to type '{name}'",
                Severity.HIGH if prop.is_required else Severity.MEDIUM,
                f"Added {'required' if prop.is_required else 'optional'} property '{key}'",
            )

        if not records:
            records.append(
                make_record(
                    ChangeKind.TYPE_DEFINITION_CHANGED,
                    params,
                    m.span,
                    f"Type structure changed in '{name}'",
                    _label(m),
                    severity=Severity.MEDIUM,
                    context=f"{b.canonical} -> {m.canonical}",
                )
            )
        return records


def _type_change_severity(before: TypeMember, after: TypeMember) -> Severity:
    if is_literal_type(before.type_text) or is_literal_type(after.type_text):
        return Severity.HIGH
    return Severity.MEDIUM
