"""dBASE Core - Shared table model and protocol."""
from .errors import DbfWarning, FormatError, SchemaFootprintWarning
from .model import FieldDescriptor, FieldType, FileHeader, Schema

__all__ = [
    "DbfWarning",
    "FieldDescriptor",
    "FieldType",
    "FileHeader",
    "FormatError",
    "Schema",
    "SchemaFootprintWarning",
]
