"""Structural models for one parsed version of a source file.

StructuralModel is what every analyzer consumes:
    - Core sites: functions, type definitions, call sites, imports
    - Secondary sites: exports, classes, interfaces, variables, hooks,
      markup elements, mutations, control-flow and error-handling statements
    - File-level cyclomatic complexity

Models are built fresh for each diff and never mutated once built. Sites
that analyzers need to inspect further keep an opaque ``ref`` which is only
ever handed back to the model's SourceModel.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .source_model import SourceModel


@dataclass(frozen=True)
class Span:
    """Source location. Lines are 1-indexed, columns 0-indexed."""

    start_line: int
    start_column: int
    end_line: int
    end_column: int

    @property
    def position(self) -> tuple[int, int]:
        return (self.start_line, self.start_column)


FILE_START = Span(1, 0, 1, 0)


# ── Functions ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class Parameter:
    """One formal parameter.

    Attributes:
        name: Binding text (identifier or pattern)
        type_text: Canonical annotation text, "any" when absent
        optional: Declared with ``?``
        rest: Declared with ``...``
        has_default: Has a default value initializer
        destructured: Key paths of an object pattern (nested as ``a.b``)
    """

    name: str
    type_text: str = "any"
    optional: bool = False
    rest: bool = False
    has_default: bool = False
    destructured: tuple[str, ...] | None = None

    @property
    def shape(self) -> tuple[str, bool, bool]:
        """What a caller observes: names and defaults are not part of it."""
        return (self.type_text, self.optional, self.rest)


@dataclass(frozen=True)
class TypeParameter:
    name: str
    constraint: str = ""
    default: str = ""


@dataclass(frozen=True)
class FunctionSite:
    """A named function, method, constructor or function-valued binding.

    Attributes:
        name: Declared name (``Class.constructor`` for constructors)
        identity: ``name|context|S-or-I:visibility`` matching key
        context_type: global, class, namespace, interface or nested
        container: Name of the innermost enclosing container, if any
        overloads: Number of bodiless overload signatures sharing the identity
    """

    name: str
    identity: str
    context_type: str
    container: str | None
    span: Span
    parameters: tuple[Parameter, ...] = ()
    return_type: str = "any"
    type_parameters: tuple[TypeParameter, ...] = ()
    is_static: bool = False
    visibility: str | None = None
    is_async: bool = False
    is_exported: bool = False
    body_text: str = ""
    complexity: int = 1
    signature: str = ""
    overloads: int = 0
    ref: Any = field(default=None, compare=False, repr=False)

    @property
    def is_anonymous(self) -> bool:
        return self.name == ANONYMOUS


ANONYMOUS = "<anonymous>"


# ── Types ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TypeMember:
    name: str
    type_text: str = "any"
    optional: bool = False
    is_method: bool = False

    @property
    def is_required(self) -> bool:
        return not self.optional


@dataclass(frozen=True)
class TypeSite:
    """A type alias, interface or enum.

    ``definition`` is the normalized declaration text, ``canonical`` the
    same text with commutative idioms (union/intersection order) folded.
    """

    name: str
    kind: str
    definition: str
    canonical: str
    span: Span
    members: tuple[TypeMember, ...] = ()
    ref: Any = field(default=None, compare=False, repr=False)


# ── Calls and imports ──────────────────────────────────────────────


@dataclass(frozen=True)
class CallSite:
    """A call, ``new`` expression or tagged template invocation.

    Attributes:
        callee: Callee text as written (``obj?.m``, ``a["b"]``)
        normalized_callee: Dotted path with optional chaining folded
        arguments: Normalized text of each argument
        dependency_ref: Dependency-list argument of a hook-pattern call
    """

    callee: str
    normalized_callee: str
    span: Span
    arguments: tuple[str, ...] = ()
    is_new: bool = False
    is_tagged_template: bool = False
    template_text: str = ""
    ref: Any = field(default=None, compare=False, repr=False)
    dependency_ref: Any = field(default=None, compare=False, repr=False)

    @property
    def argument_count(self) -> int:
        return len(self.arguments)

    @property
    def simple_name(self) -> str:
        """Last segment of the callee path."""
        return self.normalized_callee.rsplit(".", 1)[-1]


@dataclass(frozen=True)
class ImportSpecifier:
    name: str
    alias: str | None = None
    is_type_only: bool = False

    @property
    def local_name(self) -> str:
        return self.alias or self.name


@dataclass(frozen=True)
class ImportSite:
    module: str
    span: Span
    specifiers: tuple[ImportSpecifier, ...] = ()
    is_default: bool = False
    is_namespace: bool = False
    is_type_only: bool = False
    order: int = 0

    @property
    def is_side_effect_only(self) -> bool:
        return not self.specifiers


# ── Declarations ───────────────────────────────────────────────────


@dataclass(frozen=True)
class ExportSite:
    name: str
    kind: str
    span: Span
    is_default: bool = False


@dataclass(frozen=True)
class ClassSite:
    name: str
    span: Span
    extends: str | None = None
    implements: tuple[str, ...] = ()
    methods: tuple[str, ...] = ()
    properties: tuple[str, ...] = ()


@dataclass(frozen=True)
class InterfaceSite:
    name: str
    span: Span
    extends: tuple[str, ...] = ()
    properties: tuple[TypeMember, ...] = ()
    methods: tuple[str, ...] = ()


@dataclass(frozen=True)
class VariableSite:
    name: str
    span: Span
    type_text: str = "any"
    is_const: bool = False
    has_initializer: bool = False


@dataclass(frozen=True)
class HookSite:
    """A hook-pattern call made through a bare identifier (``useEffect(...)``)."""

    name: str
    hook_type: str
    call: CallSite

    @property
    def span(self) -> Span:
        return self.call.span


# ── Markup ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class JsxProp:
    name: str
    kind: str  # literal, expression or spread
    value: str = ""


@dataclass(frozen=True)
class JsxElementSite:
    tag: str
    span: Span
    props: tuple[JsxProp, ...] = ()
    has_children: bool = False

    @property
    def is_component(self) -> bool:
        return self.tag[:1].isupper()


@dataclass(frozen=True)
class EventHandlerSite:
    element: str
    event: str
    span: Span
    text: str = ""
    is_inline: bool = False
    complexity: int = 1


@dataclass(frozen=True)
class ConditionalRenderSite:
    kind: str  # ternary or logical
    text: str
    span: Span


# ── Statements and expressions ─────────────────────────────────────


@dataclass(frozen=True)
class ArrayMutationSite:
    target: str
    method: str
    span: Span

    @property
    def key(self) -> str:
        return f"{self.target}.{self.method}"


@dataclass(frozen=True)
class ObjectMutationSite:
    target: str
    operator: str
    span: Span


@dataclass(frozen=True)
class ReturnSite:
    text: str
    returns_promise: bool
    span: Span


@dataclass(frozen=True)
class TernarySite:
    condition: str
    when_true: str
    when_false: str
    span: Span


@dataclass(frozen=True)
class ConditionalSite:
    scope: str
    condition: str
    then_text: str
    else_text: str
    span: Span

    @property
    def fingerprint(self) -> str:
        return f"{self.scope}::{self.then_text}::{self.else_text}"


@dataclass(frozen=True)
class LoopSite:
    kind: str
    text: str
    span: Span
    node_label: str = "IterationStatement"


@dataclass(frozen=True)
class TrySite:
    try_text: str
    catch_text: str
    finally_text: str
    span: Span


@dataclass(frozen=True)
class ThrowSite:
    text: str
    span: Span


@dataclass(frozen=True)
class OperatorSite:
    """A binary comparison or logical operator, located at the operator token."""

    operator: str
    category: str  # comparison or logical
    left: str
    right: str
    span: Span


@dataclass(frozen=True)
class SpreadSite:
    kind: str  # object or array
    text: str
    span: Span

    @property
    def key(self) -> str:
        return f"{self.kind}:{self.text}"


@dataclass(frozen=True)
class DestructuringSite:
    kind: str  # object or array
    pattern: str
    initializer: str
    span: Span

    @property
    def key(self) -> str:
        return f"{self.pattern}::{self.initializer}"


@dataclass(frozen=True)
class AssignmentSite:
    target: str
    value: str
    span: Span


# ── The model ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class StructuralModel:
    """Normalized extraction of one file version.

    ``parsed`` is False when the grammar could not be applied at all; the
    raw ``text`` is still available for last-resort text scans.
    """

    dialect: str
    text: str
    parsed: bool = True
    functions: tuple[FunctionSite, ...] = ()
    types: tuple[TypeSite, ...] = ()
    calls: tuple[CallSite, ...] = ()
    imports: tuple[ImportSite, ...] = ()
    exports: tuple[ExportSite, ...] = ()
    classes: tuple[ClassSite, ...] = ()
    interfaces: tuple[InterfaceSite, ...] = ()
    variables: tuple[VariableSite, ...] = ()
    hooks: tuple[HookSite, ...] = ()
    jsx_elements: tuple[JsxElementSite, ...] = ()
    event_handlers: tuple[EventHandlerSite, ...] = ()
    conditional_renders: tuple[ConditionalRenderSite, ...] = ()
    array_mutations: tuple[ArrayMutationSite, ...] = ()
    object_mutations: tuple[ObjectMutationSite, ...] = ()
    returns: tuple[ReturnSite, ...] = ()
    ternaries: tuple[TernarySite, ...] = ()
    conditionals: tuple[ConditionalSite, ...] = ()
    loops: tuple[LoopSite, ...] = ()
    try_statements: tuple[TrySite, ...] = ()
    throws: tuple[ThrowSite, ...] = ()
    operators: tuple[OperatorSite, ...] = ()
    spreads: tuple[SpreadSite, ...] = ()
    destructurings: tuple[DestructuringSite, ...] = ()
    assignments: tuple[AssignmentSite, ...] = ()
    complexity: int = 1
    source: SourceModel | None = field(default=None, compare=False, repr=False)

    def hooks_of_type(self, hook_type: str) -> list[HookSite]:
        return [h for h in self.hooks if h.hook_type == hook_type]
