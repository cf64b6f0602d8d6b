from hashref_service.app.hashref.hasher import HashReference, compute_line_hash, parse_hash_reference
from hashref_service.app.hashref.table import ReferenceTable, ReferenceTableStore, build_table

__all__ = [
    "HashReference",
    "ReferenceTable",
    "ReferenceTableStore",
    "build_table",
    "compute_line_hash",
    "parse_hash_reference",
]
