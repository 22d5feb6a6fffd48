from .builtins import EngineObject, OpaqueValue, TypedArrayValue
from .gstring import GString, StringContent, read_native_string
from .gtype import GTYPE_BY_NAME, GType, VariantOperator, gtype_for_name
from .tables import VariantFunctionTables, variant_function_tables
from .variant import VARIANT_WORDS, Variant, VariantContent

__all__ = [
    'EngineObject',
    'GString',
    'GTYPE_BY_NAME',
    'GType',
    'OpaqueValue',
    'StringContent',
    'TypedArrayValue',
    'VARIANT_WORDS',
    'Variant',
    'VariantContent',
    'VariantFunctionTables',
    'VariantOperator',
    'gtype_for_name',
    'read_native_string',
    'variant_function_tables',
]
