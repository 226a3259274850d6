"""Structural extractor: source text -> StructuralModel.

One pre-order pass over the tree-sitter tree dispatches every node to a
handler by node type. Handlers append sites to a collector; a handler that
trips over an unexpected shape (typically inside an ERROR region of a
half-edited file) is logged at DEBUG and skipped, so the model is always
as complete as the input allows.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import replace
from typing import Any, Callable, Optional

from ..heuristics import normalize_callee
from .source_model import FUNCTION_TYPES, SourceModel
from .syntax import (
    ANONYMOUS,
    ArrayMutationSite,
    AssignmentSite,
    CallSite,
    ClassSite,
    ConditionalRenderSite,
    ConditionalSite,
    DestructuringSite,
    EventHandlerSite,
    ExportSite,
    FunctionSite,
    HookSite,
    ImportSite,
    ImportSpecifier,
    InterfaceSite,
    JsxElementSite,
    JsxProp,
    LoopSite,
    ObjectMutationSite,
    OperatorSite,
    Parameter,
    ReturnSite,
    SpreadSite,
    StructuralModel,
    TernarySite,
    ThrowSite,
    TrySite,
    TypeMember,
    TypeParameter,
    TypeSite,
    VariableSite,
)
from .treesitter_parser import TreeSitterParser, get_parser
from .type_text import canonical_type_text, normalize_type_text

logger = logging.getLogger(__name__)

HOOK_PATTERN = re.compile(r"^use[A-Z]")
EVENT_HANDLER_PATTERN = re.compile(r"^on[A-Z]")

BUILTIN_HOOKS = frozenset(
    {"useState", "useEffect", "useCallback", "useMemo", "useContext", "useReducer"}
)

ARRAY_MUTATORS = frozenset(
    {"push", "pop", "shift", "unshift", "splice", "sort", "reverse", "fill", "copyWithin"}
)

COMPARISON_OPERATORS = frozenset({"==", "===", "!=", "!==", "<", "<=", ">", ">="})
LOGICAL_OPERATORS = frozenset({"&&", "||", "??"})

_BRANCH_TYPES = frozenset(
    {
        "if_statement",
        "while_statement",
        "do_statement",
        "for_statement",
        "for_in_statement",
        "switch_case",
        "ternary_expression",
        "catch_clause",
    }
)

_CLASS_TYPES = frozenset({"class_declaration", "abstract_class_declaration", "class"})
_NAMESPACE_TYPES = frozenset({"internal_module", "module"})

_LOOP_LABELS = {
    "for_statement": ("for", "ForStatement"),
    "while_statement": ("while", "WhileStatement"),
    "do_statement": ("do...while", "DoStatement"),
}

_EXPORT_KINDS = {
    "function_declaration": "function",
    "generator_function_declaration": "function",
    "function_signature": "function",
    "class_declaration": "class",
    "abstract_class_declaration": "class",
    "interface_declaration": "interface",
    "type_alias_declaration": "type",
    "enum_declaration": "enum",
    "internal_module": "namespace",
    "module": "namespace",
}

_PROMISE_TEXT = re.compile(r"Promise\s*\.")


def _members_canonical(members: tuple[TypeMember, ...]) -> str:
    """Member-wise canonical text, independent of member order."""
    parts = sorted(f"{m.name}{'?' if m.optional else ''}:{m.type_text}" for m in members)
    return "{" + ";".join(parts) + "}"


def cyclomatic_complexity(source: SourceModel, ref: Any) -> int:
    """1 + branches (if/loops/case/ternary/catch) + short-circuit ``&&``/``||``."""
    complexity = 1
    for node in source.walk(ref):
        if node.type in _BRANCH_TYPES:
            complexity += 1
        elif node.type == "binary_expression":
            operator = node.child_by_field_name("operator")
            if operator is not None and operator.type in ("&&", "||"):
                complexity += 1
    return complexity


class StructuralExtractor:
    """Builds a StructuralModel from source text.

    Usage:
        extractor = StructuralExtractor()
        model = extractor.extract(text, "tsx")
    """

    def __init__(self, parser: Optional[TreeSitterParser] = None) -> None:
        self._parser = parser or get_parser()

    def extract(self, text: str, dialect: str) -> StructuralModel:
        """Extract the structural model; never raises."""
        tree = self._parser.parse(text.encode("utf-8"), dialect)
        if tree is None:
            return StructuralModel(dialect=dialect, text=text, parsed=False, source=SourceModel(text))

        source = SourceModel(text, tree)
        collector = _Collector(source)
        try:
            collector.run()
        except Exception as e:
            logger.debug(f"Extraction stopped early: {e}")
        return collector.build(dialect, text)


class _Collector:
    """Per-tree accumulation state for one extraction pass."""

    def __init__(self, source: SourceModel) -> None:
        self.source = source
        self.functions: list[FunctionSite] = []
        self.overloads: Counter[str] = Counter()
        self.types: list[TypeSite] = []
        self.calls: list[CallSite] = []
        self.imports: list[ImportSite] = []
        self.exports: list[ExportSite] = []
        self.classes: list[ClassSite] = []
        self.interfaces: list[InterfaceSite] = []
        self.variables: list[VariableSite] = []
        self.hooks: list[HookSite] = []
        self.jsx_elements: list[JsxElementSite] = []
        self.event_handlers: list[EventHandlerSite] = []
        self.conditional_renders: list[ConditionalRenderSite] = []
        self.array_mutations: list[ArrayMutationSite] = []
        self.object_mutations: list[ObjectMutationSite] = []
        self.returns: list[ReturnSite] = []
        self.ternaries: list[TernarySite] = []
        self.conditionals: list[ConditionalSite] = []
        self.loops: list[LoopSite] = []
        self.try_statements: list[TrySite] = []
        self.throws: list[ThrowSite] = []
        self.operators: list[OperatorSite] = []
        self.spreads: list[SpreadSite] = []
        self.destructurings: list[DestructuringSite] = []
        self.assignments: list[AssignmentSite] = []
        self.branches = 0

        self._handlers: dict[str, Callable[[Any], None]] = {
            "function_declaration": self._on_function,
            "generator_function_declaration": self._on_function,
            "function_signature": self._on_overload,
            "method_definition": self._on_function,
            "method_signature": self._on_method_overload,
            "arrow_function": self._on_function,
            "function_expression": self._on_function,
            "function": self._on_function,
            "generator_function": self._on_function,
            "type_alias_declaration": self._on_type_alias,
            "interface_declaration": self._on_interface,
            "enum_declaration": self._on_enum,
            "call_expression": self._on_call,
            "new_expression": self._on_new,
            "import_statement": self._on_import,
            "export_statement": self._on_export,
            "class_declaration": self._on_class,
            "abstract_class_declaration": self._on_class,
            "lexical_declaration": self._on_variable_declaration,
            "variable_declaration": self._on_variable_declaration,
            "jsx_element": self._on_jsx_element,
            "jsx_self_closing_element": self._on_jsx_element,
            "jsx_expression": self._on_jsx_expression,
            "assignment_expression": self._on_assignment,
            "augmented_assignment_expression": self._on_assignment,
            "return_statement": self._on_return,
            "ternary_expression": self._on_ternary,
            "if_statement": self._on_if,
            "for_statement": self._on_loop,
            "for_in_statement": self._on_loop,
            "while_statement": self._on_loop,
            "do_statement": self._on_loop,
            "try_statement": self._on_try,
            "throw_statement": self._on_throw,
            "binary_expression": self._on_binary,
            "spread_element": self._on_spread,
        }

    # ── driver ────────────────────────────────────────────────────

    def run(self) -> None:
        for node in self.source.walk():
            if node.type in _BRANCH_TYPES:
                self.branches += 1
            # keyword tokens share type names with nodes ("function")
            if not node.is_named:
                continue
            handler = self._handlers.get(node.type)
            if handler is None:
                continue
            try:
                handler(node)
            except Exception as e:
                logger.debug(f"Skipped {node.type} at {node.start_point}: {e}")

    def build(self, dialect: str, text: str) -> StructuralModel:
        functions = tuple(
            replace(f, overloads=self.overloads[f.identity]) if self.overloads[f.identity] else f
            for f in self.functions
        )
        short_circuits = sum(1 for o in self.operators if o.operator in ("&&", "||"))
        return StructuralModel(
            dialect=dialect,
            text=text,
            parsed=True,
            functions=functions,
            types=tuple(self.types),
            calls=tuple(self.calls),
            imports=tuple(self.imports),
            exports=tuple(self.exports),
            classes=tuple(self.classes),
            interfaces=tuple(self.interfaces),
            variables=tuple(self.variables),
            hooks=tuple(self.hooks),
            jsx_elements=tuple(self.jsx_elements),
            event_handlers=tuple(self.event_handlers),
            conditional_renders=tuple(self.conditional_renders),
            array_mutations=tuple(self.array_mutations),
            object_mutations=tuple(self.object_mutations),
            returns=tuple(self.returns),
            ternaries=tuple(self.ternaries),
            conditionals=tuple(self.conditionals),
            loops=tuple(self.loops),
            try_statements=tuple(self.try_statements),
            throws=tuple(self.throws),
            operators=tuple(self.operators),
            spreads=tuple(self.spreads),
            destructurings=tuple(self.destructurings),
            assignments=tuple(self.assignments),
            complexity=1 + self.branches + short_circuits,
            source=self.source,
        )

    # ── helpers ───────────────────────────────────────────────────

    def _text(self, node: Any) -> str:
        return self.source.normalized_text(node)

    def _field(self, node: Any, name: str) -> Any:
        return node.child_by_field_name(name)

    def _named(self, node: Any) -> list[Any]:
        return [c for c in node.named_children if c.type != "comment"]

    def _has_token(self, node: Any, token: str) -> bool:
        return any(c.type == token for c in node.children)

    def _annotation(self, node: Any) -> str:
        """Type text of a ``type_annotation`` (``: T``) or bare type node."""
        if node is None:
            return ""
        inner = self._named(node)
        target = inner[0] if inner and node.type.endswith("type_annotation") else node
        return self._text(target)

    def _string_value(self, node: Any) -> str:
        fragments = [c for c in node.named_children if c.type == "string_fragment"]
        if fragments:
            return "".join(self.source.text(f) for f in fragments)
        return self.source.text(node).strip("'\"`")

    def _is_exported(self, node: Any) -> bool:
        parent = node.parent
        if parent is not None and parent.type == "variable_declarator":
            parent = parent.parent.parent if parent.parent is not None else None
        return parent is not None and parent.type == "export_statement"

    # ── functions ─────────────────────────────────────────────────

    def _function_name(self, node: Any) -> str:
        if node.type == "method_definition":
            name = self.source.text(self._field(node, "name"))
            if name == "constructor":
                container = self._context(node)[1] or "constructor"
                return f"{container}.constructor"
            return name
        parent = node.parent
        if node.type in ("arrow_function", "function_expression", "function", "generator_function"):
            if parent is not None:
                if parent.type == "variable_declarator":
                    return self._text(self._field(parent, "name"))
                if parent.type == "pair":
                    return self._text(self._field(parent, "key"))
                if parent.type == "public_field_definition":
                    return self._text(self._field(parent, "name"))
                if parent.type == "assignment_expression":
                    return self._text(self._field(parent, "left"))
        name = self._field(node, "name")
        return self.source.text(name) if name is not None else ANONYMOUS

    def _frame(self, node: Any) -> Optional[tuple[str, str]]:
        if node.type in _CLASS_TYPES:
            name = self._field(node, "name")
            if name is not None:
                return ("class", self.source.text(name))
            parent = node.parent
            if parent is not None and parent.type == "variable_declarator":
                return ("class", self._text(self._field(parent, "name")))
            return ("class", ANONYMOUS)
        if node.type in _NAMESPACE_TYPES:
            return ("namespace", self._text(self._field(node, "name")))
        if node.type == "interface_declaration":
            return ("interface", self.source.text(self._field(node, "name")))
        if node.type in FUNCTION_TYPES:
            return ("nested", self._function_name(node))
        return None

    def _context(self, node: Any) -> tuple[str, Optional[str]]:
        parent = node.parent
        while parent is not None:
            frame = self._frame(parent)
            if frame is not None:
                return frame
            parent = parent.parent
        return ("global", None)

    def _modifiers(self, node: Any) -> tuple[bool, Optional[str]]:
        """(is_static, visibility) for class members; plain functions have neither."""
        holder = node
        if node.type in ("arrow_function", "function_expression"):
            if node.parent is None or node.parent.type != "public_field_definition":
                return (False, None)
            holder = node.parent
        elif node.type not in ("method_definition", "method_signature"):
            return (False, None)
        is_static = self._has_token(holder, "static")
        visibility = "public"
        for child in holder.children:
            if child.type == "accessibility_modifier":
                visibility = self.source.text(child)
        return (is_static, visibility)

    def _identity(self, name: str, node: Any) -> tuple[str, str, Optional[str], bool, Optional[str]]:
        context_type, container = self._context(node)
        is_static, visibility = self._modifiers(node)
        ctx = f"{context_type}:{container}" if container else context_type
        flags = f"{'S' if is_static else 'I'}:{visibility or 'pub'}"
        return (f"{name}|{ctx}|{flags}", context_type, container, is_static, visibility)

    def _on_function(self, node: Any) -> None:
        name = self._function_name(node)
        identity, context_type, container, is_static, visibility = self._identity(name, node)
        param_nodes = self._parameter_nodes(node)
        parameters = tuple(self._parameter(p) for p in param_nodes)
        return_type = self._field(node, "return_type")
        return_text = canonical_type_text(self._annotation(return_type)) if return_type else "any"
        body = self._field(node, "body")

        shown = "constructor" if name.endswith(".constructor") else name
        params_text = ", ".join(self._text(p) for p in param_nodes)
        signature = f"{shown}({params_text}): {return_text}"

        self.functions.append(
            FunctionSite(
                name=name,
                identity=identity,
                context_type=context_type,
                container=container,
                span=self.source.span(node),
                parameters=parameters,
                return_type=return_text,
                type_parameters=self._type_parameters(node),
                is_static=is_static,
                visibility=visibility,
                is_async=self._has_token(node, "async"),
                is_exported=self._is_exported(node),
                body_text=self._text(body),
                complexity=cyclomatic_complexity(self.source, node),
                signature=signature,
                ref=node,
            )
        )

    def _on_overload(self, node: Any) -> None:
        name = self.source.text(self._field(node, "name"))
        self.overloads[self._identity(name, node)[0]] += 1

    def _on_method_overload(self, node: Any) -> None:
        if node.parent is None or node.parent.type != "class_body":
            return
        name = self.source.text(self._field(node, "name"))
        self.overloads[self._identity(name, node)[0]] += 1

    def _parameter_nodes(self, node: Any) -> list[Any]:
        params = self._field(node, "parameters")
        if params is not None:
            return self._named(params)
        single = self._field(node, "parameter")
        return [single] if single is not None else []

    def _parameter(self, node: Any) -> Parameter:
        if node.type not in ("required_parameter", "optional_parameter"):
            return Parameter(name=self._text(node))
        pattern = self._field(node, "pattern")
        type_node = self._field(node, "type")
        rest = pattern is not None and pattern.type == "rest_pattern"
        name = self._text(pattern)
        if rest:
            name = name[3:] if name.startswith("...") else name
        destructured = None
        if pattern is not None and pattern.type == "object_pattern":
            destructured = tuple(self._pattern_keys(pattern))
        return Parameter(
            name=name,
            type_text=canonical_type_text(self._annotation(type_node)) if type_node else "any",
            optional=node.type == "optional_parameter",
            rest=rest,
            has_default=self._field(node, "value") is not None,
            destructured=destructured,
        )

    def _pattern_keys(self, pattern: Any, prefix: str = "") -> list[str]:
        keys: list[str] = []
        for child in self._named(pattern):
            if child.type == "shorthand_property_identifier_pattern":
                keys.append(prefix + self.source.text(child))
            elif child.type == "object_assignment_pattern":
                keys.append(prefix + self._text(self._field(child, "left")))
            elif child.type == "rest_pattern":
                keys.append(prefix + self._text(child))
            elif child.type == "pair_pattern":
                key = prefix + self._text(self._field(child, "key")).strip("'\"")
                keys.append(key)
                value = self._field(child, "value")
                if value is not None and value.type == "assignment_pattern":
                    value = self._field(value, "left")
                if value is not None and value.type == "object_pattern":
                    keys.extend(self._pattern_keys(value, key + "."))
        return keys

    def _type_parameters(self, node: Any) -> tuple[TypeParameter, ...]:
        params = self._field(node, "type_parameters")
        if params is None:
            return ()
        out = []
        for tp in self._named(params):
            if tp.type != "type_parameter":
                continue
            constraint = self._field(tp, "constraint")
            default = self._field(tp, "value")
            out.append(
                TypeParameter(
                    name=self._text(self._field(tp, "name")),
                    constraint=canonical_type_text(self._inner_type(constraint)),
                    default=canonical_type_text(self._inner_type(default)),
                )
            )
        return tuple(out)

    def _inner_type(self, node: Any) -> str:
        """Text after the ``extends`` / ``=`` keyword of a constraint or default."""
        if node is None:
            return ""
        inner = self._named(node)
        return self._text(inner[0]) if inner else self._text(node)

    # ── types ─────────────────────────────────────────────────────

    def _members(self, body: Any) -> tuple[TypeMember, ...]:
        if body is None or body.type not in ("object_type", "interface_body"):
            return ()
        members = []
        for child in self._named(body):
            if child.type == "property_signature":
                type_node = self._field(child, "type")
                members.append(
                    TypeMember(
                        name=self._text(self._field(child, "name")),
                        type_text=canonical_type_text(self._annotation(type_node))
                        if type_node
                        else "any",
                        optional=self._has_token(child, "?"),
                    )
                )
            elif child.type == "method_signature":
                members.append(
                    TypeMember(
                        name=self._text(self._field(child, "name")),
                        type_text=normalize_type_text(self._text(child)),
                        optional=self._has_token(child, "?"),
                        is_method=True,
                    )
                )
        return tuple(members)

    def _on_type_alias(self, node: Any) -> None:
        name = self.source.text(self._field(node, "name"))
        value = self._field(node, "value")
        type_params = self._field(node, "type_parameters")
        head = normalize_type_text(self._text(type_params)) if type_params is not None else ""
        value_text = self._text(value)
        members = self._members(value)
        body = _members_canonical(members) if members else canonical_type_text(value_text)
        self.types.append(
            TypeSite(
                name=name,
                kind="type",
                definition=f"{head}={normalize_type_text(value_text)}",
                canonical=f"{head}={body}",
                span=self.source.span(node),
                members=members,
                ref=node,
            )
        )

    def _on_interface(self, node: Any) -> None:
        name = self.source.text(self._field(node, "name"))
        body = self._field(node, "body")
        members = self._members(body)
        extends: tuple[str, ...] = ()
        for child in self._named(node):
            if child.type == "extends_type_clause":
                extends = tuple(self._text(t) for t in self._named(child))
        type_params = self._field(node, "type_parameters")
        head = normalize_type_text(self._text(type_params)) if type_params is not None else ""
        self.types.append(
            TypeSite(
                name=name,
                kind="interface",
                definition=normalize_type_text(self._text(node)),
                canonical=f"{head}:{','.join(sorted(extends))}={_members_canonical(members)}",
                span=self.source.span(node),
                members=members,
                ref=node,
            )
        )
        self.interfaces.append(
            InterfaceSite(
                name=name,
                span=self.source.span(node),
                extends=extends,
                properties=tuple(m for m in members if not m.is_method),
                methods=tuple(m.name for m in members if m.is_method),
            )
        )

    def _on_enum(self, node: Any) -> None:
        name = self.source.text(self._field(node, "name"))
        body = self._field(node, "body")
        members = []
        if body is not None:
            for child in self._named(body):
                if child.type == "enum_assignment":
                    value = self._field(child, "value")
                    members.append(
                        TypeMember(
                            name=self._text(self._field(child, "name")),
                            type_text=self._text(value) if value is not None else "",
                        )
                    )
                else:
                    members.append(TypeMember(name=self._text(child), type_text=""))
        definition = normalize_type_text(self._text(node))
        self.types.append(
            TypeSite(
                name=name,
                kind="enum",
                definition=definition,
                canonical=definition,
                span=self.source.span(node),
                members=tuple(members),
                ref=node,
            )
        )

    # ── calls ─────────────────────────────────────────────────────

    def _on_call(self, node: Any) -> None:
        fn = self._field(node, "function")
        if fn is None:
            return
        callee = self._text(fn)
        if self._has_token(node, "optional_chain") or self._has_token(node, "?."):
            callee += "?."
        args_node = self._field(node, "arguments")
        tagged = args_node is not None and args_node.type == "template_string"
        arg_nodes = self._named(args_node) if args_node is not None and not tagged else []

        normalized = normalize_callee(callee)
        simple = normalized.rsplit(".", 1)[-1]
        dependency_ref = None
        if HOOK_PATTERN.match(simple) and len(arg_nodes) >= 2:
            dependency_ref = arg_nodes[1]

        call = CallSite(
            callee=callee,
            normalized_callee=normalized,
            span=self.source.span(node),
            arguments=tuple(self._text(a) for a in arg_nodes),
            is_tagged_template=tagged,
            template_text=self.source.text(args_node) if tagged else "",
            ref=node,
            dependency_ref=dependency_ref,
        )
        self.calls.append(call)

        if fn.type == "identifier" and HOOK_PATTERN.match(callee):
            hook_type = callee if callee in BUILTIN_HOOKS else "custom"
            self.hooks.append(HookSite(name=callee, hook_type=hook_type, call=call))

        if fn.type == "member_expression":
            prop = self._field(fn, "property")
            obj = self._field(fn, "object")
            method = self.source.text(prop) if prop is not None else ""
            if method in ARRAY_MUTATORS and obj is not None:
                self.array_mutations.append(
                    ArrayMutationSite(target=self._text(obj), method=method, span=self.source.span(node))
                )

    def _on_new(self, node: Any) -> None:
        ctor = self._field(node, "constructor")
        if ctor is None:
            return
        callee = self._text(ctor)
        args_node = self._field(node, "arguments")
        arg_nodes = self._named(args_node) if args_node is not None else []
        self.calls.append(
            CallSite(
                callee=callee,
                normalized_callee=normalize_callee(callee),
                span=self.source.span(node),
                arguments=tuple(self._text(a) for a in arg_nodes),
                is_new=True,
                ref=node,
            )
        )

    # ── imports and exports ───────────────────────────────────────

    def _on_import(self, node: Any) -> None:
        source_node = self._field(node, "source")
        if source_node is None:
            return
        specifiers: list[ImportSpecifier] = []
        is_default = False
        is_namespace = False
        for clause in self._named(node):
            if clause.type != "import_clause":
                continue
            for part in self._named(clause):
                if part.type == "identifier":
                    specifiers.append(ImportSpecifier(name=self.source.text(part)))
                    is_default = True
                elif part.type == "namespace_import":
                    local = [c for c in part.named_children if c.type == "identifier"]
                    alias = self.source.text(local[0]) if local else None
                    specifiers.append(ImportSpecifier(name="*", alias=alias))
                    is_namespace = True
                elif part.type == "named_imports":
                    for spec in self._named(part):
                        if spec.type != "import_specifier":
                            continue
                        alias = self._field(spec, "alias")
                        specifiers.append(
                            ImportSpecifier(
                                name=self._text(self._field(spec, "name")),
                                alias=self._text(alias) if alias is not None else None,
                                is_type_only=self._has_token(spec, "type"),
                            )
                        )
        statement_typed = self._has_token(node, "type")
        all_typed = bool(specifiers) and all(s.is_type_only for s in specifiers)
        self.imports.append(
            ImportSite(
                module=self._string_value(source_node),
                span=self.source.span(node),
                specifiers=tuple(specifiers),
                is_default=is_default,
                is_namespace=is_namespace,
                is_type_only=statement_typed or all_typed,
                order=len(self.imports),
            )
        )

    def _on_export(self, node: Any) -> None:
        span = self.source.span(node)
        is_default = self._has_token(node, "default")
        declaration = self._field(node, "declaration")
        if declaration is not None:
            if declaration.type in ("lexical_declaration", "variable_declaration"):
                for decl in self._named(declaration):
                    name = self._field(decl, "name") if decl.type == "variable_declarator" else None
                    if name is not None and name.type == "identifier":
                        self.exports.append(
                            ExportSite(self.source.text(name), "variable", span, is_default)
                        )
                return
            kind = _EXPORT_KINDS.get(declaration.type, "variable")
            name = self._field(declaration, "name")
            label = self._text(name) if name is not None else "default"
            self.exports.append(ExportSite(label, kind, span, is_default))
            return

        value = self._field(node, "value")
        if value is not None or is_default:
            kind = "variable"
            if value is not None and value.type in ("class",):
                kind = "class"
            elif value is not None and value.type in FUNCTION_TYPES:
                kind = "function"
            self.exports.append(ExportSite("default", kind, span, True))
            return

        for child in self._named(node):
            if child.type == "export_clause":
                for spec in self._named(child):
                    if spec.type != "export_specifier":
                        continue
                    alias = self._field(spec, "alias")
                    label = self._text(alias if alias is not None else self._field(spec, "name"))
                    self.exports.append(ExportSite(label, "variable", span))
                return
            if child.type == "namespace_export":
                local = self._named(child)
                label = self._text(local[-1]) if local else "*"
                self.exports.append(ExportSite(label, "namespace", span))
                return

        source_node = self._field(node, "source")
        if source_node is not None:
            module = self._string_value(source_node)
            self.exports.append(ExportSite(f"* from {module}", "reexport", span))

    # ── declarations ──────────────────────────────────────────────

    def _on_class(self, node: Any) -> None:
        name = self._field(node, "name")
        if name is None:
            return
        extends = None
        implements: tuple[str, ...] = ()
        for child in self._named(node):
            if child.type != "class_heritage":
                continue
            for clause in self._named(child):
                if clause.type == "extends_clause":
                    extends = self._text(clause)
                    extends = extends[len("extends") :].strip() if extends.startswith("extends") else extends
                elif clause.type == "implements_clause":
                    implements = tuple(self._text(t) for t in self._named(clause))
        methods: list[str] = []
        properties: list[str] = []
        body = self._field(node, "body")
        if body is not None:
            for member in self._named(body):
                member_name = self._field(member, "name")
                if member_name is None:
                    continue
                if member.type in ("method_definition", "abstract_method_signature"):
                    label = self._text(member_name)
                    if label not in methods:
                        methods.append(label)
                elif member.type == "public_field_definition":
                    properties.append(self._text(member_name))
        self.classes.append(
            ClassSite(
                name=self.source.text(name),
                span=self.source.span(node),
                extends=extends,
                implements=implements,
                methods=tuple(methods),
                properties=tuple(properties),
            )
        )

    def _on_variable_declaration(self, node: Any) -> None:
        is_const = bool(node.children) and node.children[0].type == "const"
        for decl in self._named(node):
            if decl.type != "variable_declarator":
                continue
            name = self._field(decl, "name")
            value = self._field(decl, "value")
            if name is None:
                continue
            if name.type == "identifier":
                type_node = self._field(decl, "type")
                self.variables.append(
                    VariableSite(
                        name=self.source.text(name),
                        span=self.source.span(decl),
                        type_text=canonical_type_text(self._annotation(type_node))
                        if type_node
                        else "any",
                        is_const=is_const,
                        has_initializer=value is not None,
                    )
                )
            elif name.type in ("object_pattern", "array_pattern") and value is not None:
                self.destructurings.append(
                    DestructuringSite(
                        kind="object" if name.type == "object_pattern" else "array",
                        pattern=self._text(name),
                        initializer=self._text(value),
                        span=self.source.span(decl),
                    )
                )

    # ── markup ────────────────────────────────────────────────────

    def _on_jsx_element(self, node: Any) -> None:
        if node.type == "jsx_element":
            opening = self._field(node, "open_tag")
            if opening is None:
                opening = next((c for c in node.named_children if c.type == "jsx_opening_element"), None)
            has_children = any(
                c.type not in ("jsx_opening_element", "jsx_closing_element", "comment")
                and not (c.type == "jsx_text" and not self.source.text(c).strip())
                for c in node.named_children
            )
        else:
            opening = node
            has_children = False
        if opening is None:
            return
        name = self._field(opening, "name")
        if name is None:
            return
        tag = self._text(name)

        props: list[JsxProp] = []
        for attr in opening.children_by_field_name("attribute"):
            if attr.type == "jsx_attribute":
                parts = self._named(attr)
                if not parts:
                    continue
                prop_name = self.source.text(parts[0])
                value = parts[1] if len(parts) > 1 else None
                kind = "expression" if value is not None and value.type == "jsx_expression" else "literal"
                props.append(JsxProp(prop_name, kind, self._text(value) if value is not None else ""))
                if kind == "expression" and EVENT_HANDLER_PATTERN.match(prop_name):
                    self._event_handler(tag, prop_name, attr, value)
            elif attr.type == "jsx_expression":
                props.append(JsxProp("...", "spread", self._text(attr)))

        self.jsx_elements.append(
            JsxElementSite(
                tag=tag, span=self.source.span(node), props=tuple(props), has_children=has_children
            )
        )

    def _event_handler(self, tag: str, event: str, attr: Any, value: Any) -> None:
        inner = self._named(value)
        if not inner:
            return
        expr = self.source.unwrap(inner[0])
        is_inline = False
        complexity = 1
        if expr.type in ("arrow_function", "function_expression", "function"):
            is_inline = True
            complexity = cyclomatic_complexity(self.source, expr)
            body = self._field(expr, "body")
            if body is not None and body.type == "statement_block":
                statements = self._named(body)
                if len(statements) >= 2 or any(s.type == "if_statement" for s in statements):
                    complexity = max(complexity, 2)
        elif expr.type == "call_expression":
            fn = self._field(expr, "function")
            if fn is not None and self.source.unwrap(fn).type == "arrow_function":
                is_inline = True
                complexity = cyclomatic_complexity(self.source, expr)
        if is_inline and complexity < 2:
            return
        self.event_handlers.append(
            EventHandlerSite(
                element=tag,
                event=event,
                span=self.source.span(attr),
                text=self._text(expr),
                is_inline=is_inline,
                complexity=complexity,
            )
        )

    def _on_jsx_expression(self, node: Any) -> None:
        inner = self._named(node)
        if not inner:
            return
        expr = self.source.unwrap(inner[0])
        if expr.type == "ternary_expression":
            kind = "ternary"
        elif expr.type == "binary_expression" and self._operator(expr) == "&&":
            kind = "logical"
        else:
            return
        self.conditional_renders.append(
            ConditionalRenderSite(kind=kind, text=self._text(expr), span=self.source.span(node))
        )

    # ── statements and expressions ────────────────────────────────

    def _operator(self, node: Any) -> str:
        operator = self._field(node, "operator")
        return self.source.text(operator) if operator is not None else ""

    def _on_assignment(self, node: Any) -> None:
        left = self._field(node, "left")
        right = self._field(node, "right")
        if left is None:
            return
        if left.type in ("member_expression", "subscript_expression"):
            self.object_mutations.append(
                ObjectMutationSite(
                    target=self._text(left), operator=self._operator(node) or "=", span=self.source.span(node)
                )
            )
        elif left.type == "identifier" and node.type == "assignment_expression":
            self.assignments.append(
                AssignmentSite(
                    target=self.source.text(left), value=self._text(right), span=self.source.span(node)
                )
            )

    def _is_promise_like(self, node: Any) -> bool:
        if node is None:
            return False
        expr = self.source.unwrap(node)
        if expr.type == "call_expression":
            fn = self._field(expr, "function")
            if fn is not None and fn.type == "member_expression":
                if self.source.identifier_name(self._field(fn, "object")) == "Promise":
                    return True
        elif expr.type == "new_expression":
            if self.source.identifier_name(self._field(expr, "constructor")) == "Promise":
                return True
        elif expr.type == "member_expression":
            if self.source.identifier_name(self._field(expr, "object")) == "Promise":
                return True
        text = self._text(expr)
        return bool(_PROMISE_TEXT.search(text)) or text == "Promise"

    def _on_return(self, node: Any) -> None:
        inner = self._named(node)
        expr = inner[0] if inner else None
        self.returns.append(
            ReturnSite(
                text=self._text(expr), returns_promise=self._is_promise_like(expr), span=self.source.span(node)
            )
        )

    def _on_ternary(self, node: Any) -> None:
        self.ternaries.append(
            TernarySite(
                condition=self._text(self._field(node, "condition")),
                when_true=self._text(self._field(node, "consequence")),
                when_false=self._text(self._field(node, "alternative")),
                span=self.source.span(node),
            )
        )

    def _scope_name(self, node: Any) -> str:
        current = node.parent
        while current is not None:
            if current.type in FUNCTION_TYPES:
                name = self._function_name(current)
                if name != ANONYMOUS:
                    return name
            elif current.type in _CLASS_TYPES:
                name = self._field(current, "name")
                if name is not None:
                    return self.source.text(name)
            current = current.parent
        return "global scope"

    def _on_if(self, node: Any) -> None:
        condition = self._field(node, "condition")
        alternative = self._field(node, "alternative")
        self.conditionals.append(
            ConditionalSite(
                scope=self._scope_name(node),
                condition=self._text(self.source.unwrap(condition)) if condition is not None else "",
                then_text=self._text(self._field(node, "consequence")),
                else_text=self._text(alternative) if alternative is not None else "",
                span=self.source.span(node),
            )
        )

    def _on_loop(self, node: Any) -> None:
        if node.type == "for_in_statement":
            kind, label = ("for...of", "ForOfStatement") if self._has_token(node, "of") else ("for...in", "ForInStatement")
        else:
            kind, label = _LOOP_LABELS[node.type]
        self.loops.append(LoopSite(kind=kind, text=self._text(node), span=self.source.span(node), node_label=label))

    def _on_try(self, node: Any) -> None:
        self.try_statements.append(
            TrySite(
                try_text=self._text(self._field(node, "body")),
                catch_text=self._text(self._field(node, "handler")),
                finally_text=self._text(self._field(node, "finalizer")),
                span=self.source.span(node),
            )
        )

    def _on_throw(self, node: Any) -> None:
        self.throws.append(ThrowSite(text=self._text(node), span=self.source.span(node)))

    def _on_binary(self, node: Any) -> None:
        operator_node = self._field(node, "operator")
        if operator_node is None:
            return
        operator = self.source.text(operator_node)
        if operator in COMPARISON_OPERATORS:
            category = "comparison"
        elif operator in LOGICAL_OPERATORS:
            category = "logical"
        else:
            return
        self.operators.append(
            OperatorSite(
                operator=operator,
                category=category,
                left=self._text(self._field(node, "left")),
                right=self._text(self._field(node, "right")),
                span=self.source.span(operator_node),
            )
        )

    def _on_spread(self, node: Any) -> None:
        parent = node.parent
        kind = "object" if parent is not None and parent.type == "object" else "array"
        self.spreads.append(SpreadSite(kind=kind, text=self._text(node), span=self.source.span(node)))
