"""
Parsed declaration records.

These dataclasses mirror what the upstream parser produces for one
source unit (class, interface, trigger): its methods, fields and the
record-type reads and mutations found inside each method. They are the
only input the graph engine consumes besides raw source text.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any


MUTATION_OPERATIONS = ("insert", "update", "delete", "upsert", "undelete", "merge")


def _first(data: Dict[str, Any], *keys, default=None):
    """Return the first present key; the parser emits camelCase, we emit snake_case."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


@dataclass
class Parameter:
    """A method or constructor parameter."""
    name: str
    type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.type}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Parameter":
        return cls(name=data["name"], type=data.get("type"))


@dataclass
class QueryOperation:
    """
    A read of an external record type.

    Attributes:
        record_type: The queried record type (e.g. 'Account')
        fields: Field names selected by the query
        line: Source line of the query
    """
    record_type: str
    fields: List[str] = field(default_factory=list)
    line: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "record_type": self.record_type,
            "fields": self.fields,
            "line": self.line
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QueryOperation":
        # Subqueries and functions come through as non-string entries; keep names only.
        raw_fields = data.get("fields") or []
        return cls(
            record_type=_first(data, "record_type", "object"),
            fields=[f for f in raw_fields if isinstance(f, str)],
            line=data.get("line")
        )


@dataclass
class MutationOperation:
    """
    A write to an external record type.

    Attributes:
        operation: insert, update, delete, upsert, undelete or merge
        target: Raw name of the variable being written (e.g. 'accounts')
        line: Source line of the statement
    """
    operation: str
    target: Optional[str] = None
    line: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "target": self.target,
            "line": self.line
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MutationOperation":
        return cls(
            operation=str(_first(data, "operation", "type", default="")).lower(),
            target=data.get("target"),
            line=data.get("line")
        )


@dataclass
class ParsedMethod:
    """
    A method or constructor declared in a unit.

    Complexity is computed by the parser and carried through unchanged.
    """
    name: str
    return_type: Optional[str] = None
    parameters: List[Parameter] = field(default_factory=list)
    modifiers: List[str] = field(default_factory=list)
    complexity: int = 1
    line: Optional[int] = None
    end_line: Optional[int] = None

    # Data access found in the body
    queries: List[QueryOperation] = field(default_factory=list)
    mutations: List[MutationOperation] = field(default_factory=list)

    is_constructor: bool = False

    @property
    def signature(self) -> str:
        """Declaration-style signature string."""
        params = ", ".join(
            f"{p.type} {p.name}" if p.type else p.name
            for p in self.parameters
        )
        if self.is_constructor:
            return f"{self.name}({params})"
        return f"{self.return_type or 'void'} {self.name}({params})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "return_type": self.return_type,
            "parameters": [p.to_dict() for p in self.parameters],
            "modifiers": self.modifiers,
            "complexity": self.complexity,
            "line": self.line,
            "end_line": self.end_line,
            "queries": [q.to_dict() for q in self.queries],
            "mutations": [m.to_dict() for m in self.mutations],
            "is_constructor": self.is_constructor,
            "signature": self.signature
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], is_constructor: bool = False) -> "ParsedMethod":
        return cls(
            name=data["name"],
            return_type=_first(data, "return_type", "returnType"),
            parameters=[Parameter.from_dict(p) for p in data.get("parameters") or []],
            modifiers=list(data.get("modifiers") or []),
            complexity=int(_first(data, "complexity", default=1)),
            line=data.get("line"),
            end_line=_first(data, "end_line", "endLine"),
            queries=[QueryOperation.from_dict(q) for q in _first(data, "queries", "soql", default=[])],
            mutations=[MutationOperation.from_dict(m) for m in _first(data, "mutations", "dml", default=[])],
            is_constructor=bool(data.get("is_constructor", is_constructor))
        )


@dataclass
class ParsedField:
    """A unit-level field declaration."""
    name: str
    type: Optional[str] = None
    modifiers: List[str] = field(default_factory=list)
    initial_value: Optional[str] = None
    line: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "modifiers": self.modifiers,
            "initial_value": self.initial_value,
            "line": self.line
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParsedField":
        return cls(
            name=data["name"],
            type=data.get("type"),
            modifiers=list(data.get("modifiers") or []),
            initial_value=_first(data, "initial_value", "initialValue"),
            line=data.get("line")
        )


@dataclass
class ParsedUnit:
    """
    Complete parsed representation of one top-level declaration.

    Attributes:
        name: Declared name of the unit
        unit_type: 'class', 'interface', 'trigger' or 'enum'
        file: File identity used to look up the raw source text
    """
    name: str
    unit_type: str = "class"
    file: Optional[str] = None
    line: Optional[int] = None

    modifiers: List[str] = field(default_factory=list)
    implements: List[str] = field(default_factory=list)
    extends: Optional[str] = None

    # Contents
    methods: List[ParsedMethod] = field(default_factory=list)
    constructors: List[ParsedMethod] = field(default_factory=list)
    fields: List[ParsedField] = field(default_factory=list)

    def qualified(self, member: str) -> str:
        """Qualified name of a member declared in this unit."""
        return f"{self.name}.{member}"

    @property
    def method_names(self) -> List[str]:
        return [m.name for m in self.methods]

    def declares_method(self, name: str) -> bool:
        return any(m.name == name for m in self.methods)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "unit_type": self.unit_type,
            "file": self.file,
            "line": self.line,
            "modifiers": self.modifiers,
            "implements": self.implements,
            "extends": self.extends,
            "methods": [m.to_dict() for m in self.methods],
            "constructors": [c.to_dict() for c in self.constructors],
            "fields": [f.to_dict() for f in self.fields]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParsedUnit":
        implements = data.get("implements") or []
        if isinstance(implements, str):
            implements = [implements]
        return cls(
            name=data["name"],
            unit_type=_first(data, "unit_type", "type", "fileType", default="class"),
            file=data.get("file"),
            line=data.get("line"),
            modifiers=list(data.get("modifiers") or []),
            implements=list(implements),
            extends=data.get("extends"),
            methods=[ParsedMethod.from_dict(m) for m in data.get("methods") or []],
            constructors=[
                ParsedMethod.from_dict(c, is_constructor=True)
                for c in data.get("constructors") or []
            ],
            fields=[ParsedField.from_dict(f) for f in data.get("fields") or []]
        )
