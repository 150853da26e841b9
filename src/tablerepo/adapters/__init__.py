"""
Type adapters package.

This package provides the following components:

- type_mapping: Native type name resolution to SemanticType (no conversion)
- type_conversion: Conversion of raw string input to the Python type of a column

Type conversion principles:
1. Database -> Python: Handled SOLELY by database driver adapters
2. Python -> Database: Handled by `coerce` before parameter binding, guided by
   the column's resolved SemanticType
"""
from tablerepo.adapters.type_conversion import bind_value, coerce, extract_date
from tablerepo.adapters.type_conversion import is_date_only, needs_date_cast
from tablerepo.adapters.type_mapping import normalize_type_name
from tablerepo.adapters.type_mapping import resolve_column_info, resolve_type
