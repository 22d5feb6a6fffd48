import ctypes
from dataclasses import dataclass
from typing import Optional

from gdmarshal.type_registry import ARRAY_TYPE


class OpaqueValue:
    """A built-in value type held as its engine-private byte layout.

    Equality compares the raw bytes. For plain value types (Vector2, Color,
    Transform3D) that is value equality. Reference-backed types (Array,
    Dictionary, StringName, packed arrays) store a pointer, so equal bytes mean
    the same engine object and distinct but equal containers compare unequal.
    Box both sides in a Variant to compare with the engine's own semantics.
    """

    def __init__(self, type_name: str, size: int, content: Optional[ctypes.Array] = None):
        self.type_name = type_name
        self.content = content if content is not None else (ctypes.c_uint8 * size)()
        if ctypes.sizeof(self.content) != size:
            raise ValueError(f"{type_name} content must be {size} bytes, got {ctypes.sizeof(self.content)}")

    @property
    def size(self) -> int:
        return ctypes.sizeof(self.content)

    def to_bytes(self) -> bytes:
        return bytes(self.content)

    def __eq__(self, other):
        if not isinstance(other, OpaqueValue):
            return NotImplemented
        return self.type_name == other.type_name and self.to_bytes() == other.to_bytes()

    def __repr__(self) -> str:
        return f"OpaqueValue({self.type_name}, {self.to_bytes().hex()})"


class TypedArrayValue(OpaqueValue):
    """An engine ``Array`` whose elements are declared to be ``element``."""

    def __init__(self, element: str, size: int, content: Optional[ctypes.Array] = None):
        super().__init__(ARRAY_TYPE, size, content)
        self.element = element

    def __repr__(self) -> str:
        return f"TypedArrayValue({self.element}, {self.to_bytes().hex()})"


@dataclass(frozen=True)
class EngineObject:
    class_name: str
    handle: int
