"""Namespaces, lazy top-level bindings and persistent lexical scopes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Iterator, Mapping

from .errors import DuplicateDefinitionError, UnresolvedReferenceError

if TYPE_CHECKING:
    from .algebra import ColumnReference
    from .ast import Expr
    from .values import Builtin, Value


class Scope:
    """Immutable frame of lambda parameters; ``extend`` shares the parent chain."""

    __slots__ = ("_bindings", "parent")

    def __init__(self, bindings: Mapping[str, "Value"] | None = None, parent: "Scope | None" = None) -> None:
        self._bindings: dict[str, Value] = {} if bindings is None else dict(bindings)
        self.parent = parent

    def extend(self, bindings: Mapping[str, "Value"]) -> "Scope":
        if not bindings:
            return self
        return Scope(bindings, self)

    def lookup(self, name: str) -> "Value | None":
        current: Scope | None = self
        while current is not None:
            value = current._bindings.get(name)
            if value is not None:
                return value
            current = current.parent
        return None

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.lookup(name) is not None

    def names(self) -> Iterator[str]:
        seen: set[str] = set()
        current: Scope | None = self
        while current is not None:
            for name in current._bindings:
                if name not in seen:
                    seen.add(name)
                    yield name
            current = current.parent


EMPTY_SCOPE = Scope()


class BindingKind(str, Enum):
    VALUE = "value"
    CONSTANT = "constant"
    COLUMN = "column"


class BindingState(str, Enum):
    UNRESOLVED = "unresolved"
    RESOLVING = "resolving"
    RESOLVED = "resolved"


@dataclass
class Binding:
    name: str
    namespace: str
    kind: BindingKind
    definition: "Expr | None" = None
    value: "Value | None" = None
    state: BindingState = BindingState.UNRESOLVED

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}::{self.name}"

    def resolve_to(self, value: "Value") -> "Value":
        self.value = value
        self.state = BindingState.RESOLVED
        return value


@dataclass(frozen=True)
class PublicEntry:
    name: str
    namespace: str
    reference: "ColumnReference"
    row: int


@dataclass
class NamespaceScope:
    name: str
    order: int
    degree: int | None
    bindings: dict[str, Binding] = field(default_factory=dict)
    publics: dict[str, PublicEntry] = field(default_factory=dict)


class Environment:
    """Namespace-qualified binding table, populated in declaration order."""

    def __init__(self, builtins: Mapping[str, "Builtin"] | None = None, prelude: Mapping[str, str] | None = None) -> None:
        self._namespaces: dict[str, NamespaceScope] = {}
        self._builtins: dict[str, Builtin] = {} if builtins is None else dict(builtins)
        self._prelude: dict[str, str] = {} if prelude is None else dict(prelude)

    def open_namespace(self, name: str, degree: int | None) -> NamespaceScope:
        if name in self._namespaces:
            raise DuplicateDefinitionError(f"Namespace {name!r} is declared twice")
        scope = NamespaceScope(name=name, order=len(self._namespaces), degree=degree)
        self._namespaces[name] = scope
        return scope

    def namespace(self, name: str) -> NamespaceScope:
        try:
            return self._namespaces[name]
        except KeyError:
            raise UnresolvedReferenceError(f"Unknown namespace {name!r}") from None

    def namespaces(self) -> tuple[NamespaceScope, ...]:
        return tuple(self._namespaces.values())

    def define(
        self,
        namespace: str,
        name: str,
        definition: "Expr | None" = None,
        *,
        kind: BindingKind = BindingKind.VALUE,
        value: "Value | None" = None,
    ) -> Binding:
        scope = self.namespace(namespace)
        if name in scope.bindings:
            raise DuplicateDefinitionError(f"Name {name!r} is already defined in namespace {namespace!r}")
        binding = Binding(name=name, namespace=namespace, kind=kind, definition=definition)
        if value is not None:
            binding.resolve_to(value)
        scope.bindings[name] = binding
        return binding

    def define_public(self, namespace: str, name: str, reference: "ColumnReference", row: int) -> PublicEntry:
        scope = self.namespace(namespace)
        if name in scope.publics:
            raise DuplicateDefinitionError(f"Public {name!r} is already declared in namespace {namespace!r}")
        entry = PublicEntry(name=name, namespace=namespace, reference=reference, row=row)
        scope.publics[name] = entry
        return entry

    def _visible_namespace(self, current: str, target: str) -> NamespaceScope | None:
        scope = self._namespaces.get(target)
        if scope is None:
            return None
        if scope.order > self.namespace(current).order:
            raise UnresolvedReferenceError(
                f"Namespace {target!r} is declared after {current!r} and cannot be referenced from it"
            )
        return scope

    def resolve(self, namespace: str, path: str) -> "Binding | Builtin":
        """Local namespace first, then ``ns::name`` qualification, then the library."""
        segments = path.split("::")
        if len(segments) == 1:
            binding = self.namespace(namespace).bindings.get(path)
            if binding is not None:
                return binding
            qualified = self._prelude.get(path)
            if qualified is not None:
                return self._builtins[qualified]
            raise UnresolvedReferenceError(f"Name {path!r} is not defined in namespace {namespace!r}")

        target, name = "::".join(segments[:-1]), segments[-1]
        scope = self._visible_namespace(namespace, target)
        if scope is not None:
            binding = scope.bindings.get(name)
            if binding is not None:
                return binding
            raise UnresolvedReferenceError(f"Name {name!r} is not defined in namespace {target!r}")
        builtin = self._builtins.get(path)
        if builtin is not None:
            return builtin
        raise UnresolvedReferenceError(f"Unresolved reference {path!r}")

    def resolve_public(self, namespace: str, path: str) -> PublicEntry:
        segments = path.split("::")
        target = namespace if len(segments) == 1 else "::".join(segments[:-1])
        scope = self._visible_namespace(namespace, target)
        entry = None if scope is None else scope.publics.get(segments[-1])
        if entry is None:
            raise UnresolvedReferenceError(f"Public {path!r} is not declared")
        return entry

    def publics(self) -> tuple[PublicEntry, ...]:
        return tuple(entry for scope in self._namespaces.values() for entry in scope.publics.values())
