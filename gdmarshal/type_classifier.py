import ctypes
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from gdmarshal.type_registry import (ARRAY_TYPE, OBJECT_SENTINEL, STRING_TYPE,
                                     iter_small_int_metas)


ENUM_PREFIX = "enum::"
BITFIELD_PREFIX = "bitfield::"
TYPED_ARRAY_PREFIX = "typedarray::"
RAW_POINTER_MARKER = "*"

# Every integer crosses the boundary as a 64-bit value, whatever its meta.
NATIVE_INT = ctypes.c_int64
NATIVE_FLOAT = ctypes.c_double
NATIVE_BOOL = ctypes.c_uint8

_SMALL_INT_METAS = frozenset(iter_small_int_metas())


@dataclass(frozen=True)
class Primitive:
    name: str
    meta: Optional[str] = None

    @property
    def ctype(self) -> type:
        if self.name == "bool":
            return NATIVE_BOOL
        if self.name == "float":
            return NATIVE_FLOAT
        return NATIVE_INT


@dataclass(frozen=True)
class BuiltinValue:
    name: str
    size: int


@dataclass(frozen=True)
class Enum:
    base: str
    bitfield: bool = False

    @property
    def ctype(self) -> type:
        return NATIVE_INT


@dataclass(frozen=True)
class TypedArray:
    element: str
    size: int


@dataclass(frozen=True)
class ClassHandle:
    name: str


TypeClass = Union[Primitive, BuiltinValue, Enum, TypedArray, ClassHandle]


def is_raw_pointer(type_name: Optional[str]) -> bool:
    return isinstance(type_name, str) and RAW_POINTER_MARKER in type_name


def is_small_int(meta: Optional[str]) -> bool:
    return meta in _SMALL_INT_METAS


def needs_copy(type_class: TypeClass) -> bool:
    """Whether a scratch copy must be made before the value's address is taken.

    Enums contribute their ordinal and small integers are widened, so in both
    cases the language-side value is not the value passed to the engine.
    """
    if isinstance(type_class, Enum):
        return True
    if isinstance(type_class, Primitive):
        return type_class.name == "int" and is_small_int(type_class.meta)
    return False


def default_value(type_class: Optional[TypeClass]) -> Any:
    if type_class is None:
        return None
    if isinstance(type_class, Enum):
        return 0
    if isinstance(type_class, Primitive):
        if type_class.name == "bool":
            return False
        if type_class.name == "float":
            return 0.0
        return 0
    if isinstance(type_class, BuiltinValue) and type_class.name == STRING_TYPE:
        return ""
    return None


def describe(type_class: TypeClass) -> dict:
    """Return a JSON-friendly description of a classification."""
    data = {"kind": type(type_class).__name__}
    data.update({key: value for key, value in vars(type_class).items() if value is not None})
    return data


class TypeClassifier:
    """Classify engine type names against the built-in size and class tables."""

    def __init__(self, builtin_sizes: Mapping[str, int], known_classes: frozenset[str] | set[str]):
        self.builtin_sizes = dict(builtin_sizes)
        self.known_classes = frozenset(known_classes)
        if ARRAY_TYPE not in self.builtin_sizes:
            raise ValueError(f"built-in size table is missing '{ARRAY_TYPE}'")

    def classify(self, type_name: str, meta: Optional[str] = None) -> TypeClass:
        if type_name.startswith(ENUM_PREFIX):
            return Enum(type_name[len(ENUM_PREFIX):])
        if type_name.startswith(BITFIELD_PREFIX):
            return Enum(type_name[len(BITFIELD_PREFIX):], bitfield=True)
        if type_name.startswith(TYPED_ARRAY_PREFIX):
            return TypedArray(type_name[len(TYPED_ARRAY_PREFIX):], self.builtin_sizes[ARRAY_TYPE])
        if type_name == OBJECT_SENTINEL:
            return ClassHandle(type_name)
        if type_name in self.builtin_sizes:
            return BuiltinValue(type_name, self.builtin_sizes[type_name])
        if type_name in self.known_classes:
            return ClassHandle(type_name)
        return Primitive(type_name, meta)
