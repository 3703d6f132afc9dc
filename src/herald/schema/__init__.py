"""API schema document: loading and the read-only operation model."""

from herald.schema.document import Operation, OperationMatch, SchemaDocument
from herald.schema.loader import load_schema

__all__ = ["Operation", "OperationMatch", "SchemaDocument", "load_schema"]
