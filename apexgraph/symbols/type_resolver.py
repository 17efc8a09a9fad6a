"""
Type resolution layered on the symbol table.

Infers the types of expressions the parser hands us in tagged form:
- Query results (a list of the queried record type)
- Instantiations (the instantiated type)
- Indexed access into a list-typed variable (its element type)
- Well-known framework method calls (a fixed signature table)

and resolves the record type behind a mutation's target variable.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Any

from .symbol_table import SymbolTable, extract_base_type
from ..core.entities import MutationOperation, ParsedMethod, ParsedUnit, QueryOperation
from ..schema.base_registry import BaseSchemaRegistry

logger = logging.getLogger(__name__)


UNKNOWN_TYPE = "Object"

# Return types of framework methods we recognise, keyed "Receiver.method"
KNOWN_METHOD_TYPES = {
    "Database.insert": "List<Database.SaveResult>",
    "Database.update": "List<Database.SaveResult>",
    "Database.upsert": "List<Database.UpsertResult>",
    "Database.delete": "List<Database.DeleteResult>",
    "Database.undelete": "List<Database.UndeleteResult>",
    "Database.merge": "List<Database.MergeResult>",
    "Database.query": "List<SObject>",
    "Database.countQuery": "Integer",
    "Database.getQueryLocator": "Database.QueryLocator",
    "System.debug": "void",
    "System.now": "Datetime",
    "System.today": "Date",
    "UserInfo.getUserId": "Id",
    "Schema.getGlobalDescribe": "Map<String, Schema.SObjectType>",
}


def _name_forms(record_type: str) -> List[str]:
    """Lowercase singular and simple plural spellings of a type name."""
    name = record_type.lower()
    forms = [name, name + "s", name + "es"]
    if name.endswith("y"):
        forms.append(name[:-1] + "ies")
    return forms


class RhsKind(Enum):
    """Shape of an assignment's right-hand side."""
    QUERY = "query"
    METHOD_CALL = "method_call"
    INSTANTIATION = "instantiation"
    INDEX_ACCESS = "index_access"
    DECLARED = "declared"


@dataclass
class RhsDescriptor:
    """
    Tagged description of an assignment's right-hand side.

    Only the attributes relevant to ``kind`` need to be set.
    """
    kind: RhsKind
    record_type: Optional[str] = None     # QUERY
    method_name: Optional[str] = None     # METHOD_CALL
    receiver_type: Optional[str] = None   # METHOD_CALL
    type_name: Optional[str] = None       # INSTANTIATION
    variable: Optional[str] = None        # INDEX_ACCESS
    declared_type: Optional[str] = None   # any kind, used as fallback


@dataclass
class MutationAnnotation:
    """
    Type information for one mutation.

    record_type is None when the target could not be resolved; that is a
    normal outcome and the mutation is simply left out of the graph.
    """
    operation: str
    target: Optional[str]
    target_type: Optional[str] = None
    record_type: Optional[str] = None
    inferred: bool = False
    line: Optional[int] = None
    constraints: Optional[Dict[str, Any]] = None

    @property
    def resolved(self) -> bool:
        return self.record_type is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "target": self.target,
            "target_type": self.target_type,
            "record_type": self.record_type,
            "inferred": self.inferred,
            "line": self.line,
            "constraints": self.constraints
        }


class TypeResolver:
    """
    Expression and mutation-target type inference for one unit.

    Args:
        symbol_table: The unit's symbol table (already built)
        schema_registry: Optional loaded registry for constraint lookups
    """

    def __init__(self, symbol_table: SymbolTable,
                 schema_registry: Optional[BaseSchemaRegistry] = None):
        self.symbol_table = symbol_table
        self.schema_registry = schema_registry
        self.type_inferences: Dict[str, str] = {}

    # ─── Expressions ──────────────────────────────

    def resolve_method_call_type(self, method_name: str,
                                 receiver_type: Optional[str] = None) -> str:
        """Return type of a framework call, or 'Object' if unrecognised."""
        key = f"{receiver_type}.{method_name}" if receiver_type else method_name
        return KNOWN_METHOD_TYPES.get(key, UNKNOWN_TYPE)

    def infer_assignment_type(self, rhs: RhsDescriptor) -> str:
        """Infer the type an assignment produces."""
        if rhs.kind == RhsKind.QUERY:
            return f"List<{rhs.record_type or 'SObject'}>"

        if rhs.kind == RhsKind.METHOD_CALL and rhs.method_name:
            return self.resolve_method_call_type(rhs.method_name, rhs.receiver_type)

        if rhs.kind == RhsKind.INSTANTIATION and rhs.type_name:
            return rhs.type_name

        if rhs.kind == RhsKind.INDEX_ACCESS and rhs.variable:
            source_type = self._variable_type(rhs.variable)
            if source_type:
                element = extract_base_type(source_type)
                # Unchanged means it wasn't a collection we can index into
                if element and element != source_type:
                    return element
                return UNKNOWN_TYPE

        return rhs.declared_type or UNKNOWN_TYPE

    def record_assignment(self, variable: str, rhs: RhsDescriptor) -> str:
        """Infer and remember a local variable's type."""
        inferred = self.infer_assignment_type(rhs)
        self.type_inferences[variable] = inferred
        return inferred

    def clear_inferences(self) -> None:
        """Forget recorded locals when moving on to another method."""
        self.type_inferences.clear()

    def _variable_type(self, name: str) -> Optional[str]:
        if name in self.type_inferences:
            return self.type_inferences[name]
        symbol = self.symbol_table.resolve_symbol(name)
        return symbol.type if symbol else None

    # ─── Mutation targets ─────────────────────────

    def build_method_type_map(self, method: ParsedMethod) -> Dict[str, str]:
        """Parameter and recorded local types visible inside a method."""
        type_map = {p.name: p.type for p in method.parameters if p.type}
        type_map.update(self.type_inferences)
        return type_map

    def resolve_dml_target_type(self, target: Optional[str],
                                local_types: Optional[Dict[str, str]] = None) -> Optional[str]:
        """
        Declared type of a mutation target variable.

        Checks the local type map, then the symbol table. None means
        unresolved.
        """
        if not target:
            return None
        if local_types and target in local_types:
            return local_types[target]
        symbol = self.symbol_table.resolve_symbol(target)
        if symbol is not None:
            return symbol.type
        return None

    def infer_from_queries(self, target: Optional[str],
                           queries: List[QueryOperation]) -> Optional[str]:
        """
        Guess a target's record type from the method's queries by name.

        'accountsToUpdate' pairs with a query on Account, and
        'opportunitiesToSync' with one on Opportunity.
        """
        if not target:
            return None
        target_lower = target.lower()
        for query in queries:
            if not query.record_type:
                continue
            if any(name in target_lower for name in _name_forms(query.record_type)):
                return query.record_type
        return None

    def annotate_mutation(self, mutation: MutationOperation,
                          method: ParsedMethod) -> MutationAnnotation:
        """Resolve the record type a mutation writes to."""
        annotation = MutationAnnotation(
            operation=mutation.operation,
            target=mutation.target,
            line=mutation.line
        )

        target_type = self.resolve_dml_target_type(
            mutation.target, self.build_method_type_map(method)
        )
        if target_type:
            annotation.target_type = target_type
            annotation.record_type = extract_base_type(target_type)
        else:
            record_type = self.infer_from_queries(mutation.target, method.queries)
            if record_type:
                annotation.target_type = f"List<{record_type}>"
                annotation.record_type = record_type
                annotation.inferred = True

        if annotation.record_type is None:
            logger.debug("Unresolved mutation target '%s' in %s", mutation.target, method.name)
        else:
            annotation.constraints = self.get_object_constraints(annotation.record_type)

        return annotation

    # ─── Schema constraints ───────────────────────

    def _registry_ready(self) -> bool:
        return self.schema_registry is not None and self.schema_registry.is_loaded

    def get_field_constraints(self, record_type: str, field_name: str) -> Optional[Dict[str, Any]]:
        """Declared constraints of one field, or None if unknown."""
        if not self._registry_ready():
            return None
        field_schema = self.schema_registry.get_field(record_type, field_name)
        if field_schema is None:
            return None
        return {
            "name": field_name,
            "type": field_schema.type,
            "required": field_schema.required,
            "unique": field_schema.unique,
            "length": field_schema.length,
            "reference_to": field_schema.reference_to,
            "is_picklist": field_schema.type == "Picklist",
            "picklist_values": field_schema.picklist_values,
        }

    def get_object_constraints(self, record_type: str) -> Optional[Dict[str, Any]]:
        """Label, standard flag, fields and active rules of a record type."""
        if not self._registry_ready():
            return None
        schema = self.schema_registry.get_object(record_type)
        if schema is None:
            return None
        return {
            "name": record_type,
            "label": schema.label or record_type,
            "is_standard": schema.is_standard,
            "fields": list(schema.fields),
            "validation_rules": [r.to_dict() for r in schema.active_validation_rules],
        }

    # ─── Whole-unit pass ──────────────────────────

    def annotate_unit(self, unit: ParsedUnit) -> Dict[str, List[MutationAnnotation]]:
        """
        Annotate every mutation in a unit's methods and constructors.

        Keyed by qualified member name. Overloads share a key, the same
        way they share a graph node.
        """
        annotations: Dict[str, List[MutationAnnotation]] = {}
        for member in list(unit.methods) + list(unit.constructors):
            self.symbol_table.enter_method(member)
            try:
                notes = annotations.setdefault(unit.qualified(member.name), [])
                for mutation in member.mutations:
                    notes.append(self.annotate_mutation(mutation, member))
            finally:
                self.symbol_table.exit_method()
                self.clear_inferences()
        return annotations
