"""
Symbol table for one parsed unit.

Tracks declared names and their types across a stack of lexical scopes:
- Unit-level fields, methods and constructors
- Method parameters and block-local variables
- Dotted field-access paths resolved against those declarations

Resolution walks the scope stack innermost-first and then falls back to
the unit scope. The first match wins, so inner declarations shadow
outer ones.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Any

from ..core.entities import ParsedMethod, ParsedUnit, Parameter


class SymbolKind(Enum):
    """What a symbol was declared as."""
    FIELD = "field"
    METHOD = "method"
    PARAMETER = "parameter"
    CONSTRUCTOR = "constructor"
    LOCAL = "local"


@dataclass
class Symbol:
    """A declared name and its type."""
    name: str
    type: Optional[str]
    kind: SymbolKind = SymbolKind.LOCAL
    modifiers: List[str] = field(default_factory=list)
    parameters: List[Parameter] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "kind": self.kind.value,
            "modifiers": self.modifiers,
            "parameters": [p.to_dict() for p in self.parameters]
        }


@dataclass
class FieldResolution:
    """
    Result of resolving a dotted field-access path.

    For 'acc.Industry' the variable is 'acc', base_type is the record
    type behind it and field is 'Industry'. For longer paths only the
    leading variable is resolved and the rest is left in nested_path.
    """
    path: str
    variable: Optional[str]
    variable_type: Optional[str]
    base_type: Optional[str]
    field: Optional[str] = None
    nested_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "variable": self.variable,
            "variable_type": self.variable_type,
            "base_type": self.base_type,
            "field": self.field,
            "nested_path": self.nested_path
        }


_GENERIC_PATTERN = re.compile(r"^([A-Za-z_][\w.]*)\s*<(.*)>$")


def _split_type_arguments(inner: str) -> Optional[List[str]]:
    """Split 'Id, List<Account>' at top-level commas; None if brackets don't balance."""
    args = []
    depth = 0
    current = []
    for char in inner:
        if char == "<":
            depth += 1
        elif char == ">":
            depth -= 1
            if depth < 0:
                return None
        if char == "," and depth == 0:
            args.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    if depth != 0:
        return None
    args.append("".join(current).strip())
    return args


def extract_base_type(type_str: Optional[str]) -> Optional[str]:
    """
    Reduce a declared type to the record type it holds.

    "List<Account>" -> "Account", "Account[]" -> "Account",
    "Map<Id, Account>" -> "Account" (the value type). Only one generic
    level is unwrapped. Non-generic input is returned as-is and
    malformed generic syntax is returned unchanged.
    """
    if not type_str:
        return None

    base = type_str.strip()
    if base.endswith("[]"):
        base = base[:-2].rstrip()

    match = _GENERIC_PATTERN.match(base)
    if not match:
        if "<" in base or ">" in base:
            return type_str
        return base

    args = _split_type_arguments(match.group(2))
    if not args or any(not arg for arg in args):
        return type_str
    return args[-1]


class SymbolTable:
    """
    Scope-chain resolver for a single unit.

    Built once per parsed unit and discarded after the graph has been
    enriched with the types it resolves.
    """

    def __init__(self, unit: Optional[ParsedUnit] = None):
        self.unit = unit
        # The bottom scope is never popped
        self.scopes: List[Dict[str, Symbol]] = [{}]
        self.unit_scope: Dict[str, Symbol] = {}
        self._resolved_fields: Dict[Tuple[str, Optional[str]], FieldResolution] = {}

    # ─── Scope management ─────────────────────────

    @property
    def depth(self) -> int:
        return len(self.scopes)

    def current_scope(self) -> Dict[str, Symbol]:
        return self.scopes[-1]

    def push_scope(self) -> None:
        """Enter a block or method."""
        self.scopes.append({})

    def pop_scope(self) -> None:
        """Leave the innermost scope; the bottom scope stays."""
        if len(self.scopes) > 1:
            self.scopes.pop()

    def add_symbol(self, name: str, type: Optional[str],
                   kind: SymbolKind = SymbolKind.LOCAL,
                   modifiers: Optional[List[str]] = None) -> Symbol:
        """Declare (or redeclare) a name in the innermost scope."""
        symbol = Symbol(name=name, type=type, kind=kind, modifiers=list(modifiers or []))
        self.current_scope()[name] = symbol
        return symbol

    def resolve_symbol(self, name: str) -> Optional[Symbol]:
        """Find the nearest declaration of a name, or None."""
        if not name:
            return None
        for scope in reversed(self.scopes):
            if name in scope:
                return scope[name]
        return self.unit_scope.get(name)

    # ─── Unit-level declarations ──────────────────

    def add_field(self, name: str, type: Optional[str],
                  modifiers: Optional[List[str]] = None) -> Symbol:
        symbol = Symbol(name=name, type=type, kind=SymbolKind.FIELD,
                        modifiers=list(modifiers or []))
        self.unit_scope[name] = symbol
        return symbol

    def add_method(self, method: ParsedMethod) -> Symbol:
        kind = SymbolKind.CONSTRUCTOR if method.is_constructor else SymbolKind.METHOD
        return_type = method.return_type
        if method.is_constructor and self.unit is not None:
            return_type = self.unit.name
        symbol = Symbol(
            name=method.name,
            type=return_type,
            kind=kind,
            modifiers=list(method.modifiers),
            parameters=list(method.parameters)
        )
        self.unit_scope[method.name] = symbol
        return symbol

    def build_from_unit(self) -> "SymbolTable":
        """Register every field, method and constructor of the unit."""
        if self.unit is None:
            return self
        for parsed_field in self.unit.fields:
            self.add_field(parsed_field.name, parsed_field.type, parsed_field.modifiers)
        for method in self.unit.methods:
            self.add_method(method)
        for ctor in self.unit.constructors:
            # Methods win on a name clash with the unit's own constructor
            if ctor.name not in self.unit_scope:
                self.add_method(ctor)
        return self

    def enter_method(self, method: ParsedMethod) -> None:
        """Push a scope holding the method's parameters."""
        self.push_scope()
        for param in method.parameters:
            self.add_symbol(param.name, param.type, kind=SymbolKind.PARAMETER)

    def exit_method(self) -> None:
        self.pop_scope()

    # ─── Field access resolution ──────────────────

    def resolve_field_access(self, path: str,
                             context: Optional[str] = None) -> Optional[FieldResolution]:
        """
        Resolve a dotted access path.

        Args:
            path: 'Industry', 'acc.Industry' or 'acc.Parent.Industry'
            context: Record type a bare field name belongs to, if known

        Returns:
            FieldResolution, or None when the leading name is unknown
        """
        if not path:
            return None

        cache_key = (path, context)
        if cache_key in self._resolved_fields:
            return self._resolved_fields[cache_key]

        parts = path.split(".")
        resolution = None

        if len(parts) == 1:
            resolution = self._infer_field(parts[0], context)
        else:
            symbol = self.resolve_symbol(parts[0])
            if symbol is not None:
                resolution = FieldResolution(
                    path=path,
                    variable=parts[0],
                    variable_type=symbol.type,
                    base_type=extract_base_type(symbol.type)
                )
                if len(parts) == 2:
                    resolution.field = parts[1]
                else:
                    resolution.nested_path = ".".join(parts[1:])

        if resolution is not None:
            self._resolved_fields[cache_key] = resolution
        return resolution

    def _infer_field(self, name: str, context: Optional[str]) -> Optional[FieldResolution]:
        """Best-effort resolution of a bare name."""
        if context:
            return FieldResolution(path=name, variable=None, variable_type=context,
                                   base_type=context, field=name)

        symbol = self.resolve_symbol(name)
        if symbol is not None and symbol.kind in (SymbolKind.FIELD, SymbolKind.PARAMETER,
                                                  SymbolKind.LOCAL):
            return FieldResolution(path=name, variable=name, variable_type=symbol.type,
                                   base_type=extract_base_type(symbol.type))
        return None

    def extract_base_type(self, type_str: Optional[str]) -> Optional[str]:
        return extract_base_type(type_str)

    # ─── Summaries ────────────────────────────────

    def get_type_summary(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            "unit_fields": [s.to_dict() for s in self.unit_scope.values()
                            if s.kind == SymbolKind.FIELD],
            "unit_methods": [s.to_dict() for s in self.unit_scope.values()
                             if s.kind in (SymbolKind.METHOD, SymbolKind.CONSTRUCTOR)],
            "resolved_field_accesses": [r.to_dict() for r in self._resolved_fields.values()],
        }
