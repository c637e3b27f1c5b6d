from nsd.tables.reader import read_table, read_tables
from nsd.tables.schema import KINDS, TABLES, ForeignKey, TableSpec, table_spec

__all__ = [
    "KINDS",
    "TABLES",
    "ForeignKey",
    "TableSpec",
    "read_table",
    "read_tables",
    "table_spec",
]
