import ctypes
from typing import Any, Optional

from gdmarshal.engine import get_engine
from gdmarshal.errors import VariantLifetimeError

from .builtins import OpaqueValue, TypedArrayValue
from .gstring import GString, StringContent
from .gtype import GType, VariantOperator, gtype_for_name
from .tables import variant_function_tables

VARIANT_WORDS = 3
VariantContent = ctypes.c_ssize_t * VARIANT_WORDS


class Variant:
    """A boxed dynamic engine value.

    The payload is three opaque machine words owned by the engine. A Variant
    is built by exactly one constructor call and must be released by exactly
    one ``destroy()`` (or by leaving a ``with`` block). Copies made with
    ``Variant(other)`` or ``copy()`` are deep and independent.

    Supported sources: ``None``, ``bool``, ``int``, ``float``, ``str``,
    ``GString``, ``OpaqueValue``, ``TypedArrayValue``, another ``Variant`` and
    any object exposing an integer ``handle``.
    """

    def __init__(self, value: Any = None):
        self.content = VariantContent()
        self._alive = False
        _construct(ctypes.addressof(self.content), value)
        self._alive = True

    @classmethod
    def from_content(cls, content: ctypes.Array) -> "Variant":
        """Adopt a payload the engine has already constructed."""
        variant = cls.__new__(cls)
        variant.content = content
        variant._alive = True
        return variant

    @property
    def address(self) -> int:
        self._check_alive()
        return ctypes.addressof(self.content)

    @property
    def is_alive(self) -> bool:
        return self._alive

    @property
    def gtype(self) -> GType:
        raw = get_engine().variant_get_type(self.address)
        try:
            return GType(raw)
        except ValueError:
            return GType.NIL

    def copy(self) -> "Variant":
        return Variant(self)

    def destroy(self) -> None:
        if not self._alive:
            raise VariantLifetimeError("Variant destroyed twice")
        get_engine().variant_destroy(ctypes.addressof(self.content))
        self._alive = False

    def to_type(self, gtype: GType, dest: int) -> None:
        """Write the held value into ``dest``, which must be sized for ``gtype``."""
        variant_function_tables().to_type_constructor(gtype)(dest, self.address)

    def to_bool(self) -> Optional[bool]:
        if self.gtype != GType.BOOL:
            return None
        value = ctypes.c_uint8(0)
        self.to_type(GType.BOOL, ctypes.addressof(value))
        return value.value != 0

    def to_int(self) -> Optional[int]:
        if self.gtype != GType.INT:
            return None
        value = ctypes.c_int64(0)
        self.to_type(GType.INT, ctypes.addressof(value))
        return value.value

    def to_float(self) -> Optional[float]:
        if self.gtype != GType.FLOAT:
            return None
        value = ctypes.c_double(0.0)
        self.to_type(GType.FLOAT, ctypes.addressof(value))
        return value.value

    def to_str(self) -> Optional[str]:
        if self.gtype != GType.STRING:
            return None
        content = StringContent()
        self.to_type(GType.STRING, ctypes.addressof(content))
        with GString(content) as gstring:
            return gstring.description

    def convert(self, kind: type) -> Any:
        """Convert to ``bool``, ``int``, ``float`` or ``str``; ``None`` on a type mismatch."""
        try:
            reader = _READERS[kind]
        except KeyError:
            raise TypeError(f"cannot convert a Variant to {kind.__name__}") from None
        return reader(self)

    def _check_alive(self) -> None:
        if not self._alive:
            raise VariantLifetimeError("Variant used after destroy")

    def __eq__(self, other):
        if not isinstance(other, Variant):
            return NotImplemented
        result = VariantContent()
        valid = ctypes.c_uint8(0)
        get_engine().variant_evaluate(
            VariantOperator.EQUAL, self.address, other.address,
            ctypes.addressof(result), ctypes.addressof(valid),
        )
        with Variant.from_content(result) as outcome:
            if not valid.value:
                return False
            return outcome.to_bool() or False

    def __hash__(self) -> int:
        return get_engine().variant_hash(self.address)

    def __enter__(self) -> "Variant":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._alive:
            self.destroy()

    def __str__(self) -> str:
        content = StringContent()
        get_engine().variant_stringify(self.address, ctypes.addressof(content))
        with GString(content) as gstring:
            return gstring.description

    def __repr__(self) -> str:
        if not self._alive:
            return "Variant(<destroyed>)"
        return f"Variant({self.gtype.name}: {self})"


_READERS = {
    bool: Variant.to_bool,
    int: Variant.to_int,
    float: Variant.to_float,
    str: Variant.to_str,
}


def _construct(dest: int, value: Any) -> None:
    engine = get_engine()
    if value is None:
        engine.variant_new_nil(dest)
        return
    if isinstance(value, Variant):
        engine.variant_new_copy(dest, value.address)
        return

    tables = variant_function_tables()
    if isinstance(value, str):
        with GString.from_str(value) as gstring:
            tables.from_type_constructor(GType.STRING)(dest, gstring.address)
        return

    if isinstance(value, bool):
        gtype, source = GType.BOOL, ctypes.c_uint8(1 if value else 0)
    elif isinstance(value, int):
        gtype, source = GType.INT, ctypes.c_int64(int(value))
    elif isinstance(value, float):
        gtype, source = GType.FLOAT, ctypes.c_double(value)
    elif isinstance(value, GString):
        value._check_alive()
        gtype, source = GType.STRING, value.content
    elif isinstance(value, TypedArrayValue):
        gtype, source = GType.ARRAY, value.content
    elif isinstance(value, OpaqueValue):
        gtype, source = gtype_for_name(value.type_name), value.content
    elif isinstance(getattr(value, "handle", None), int):
        gtype, source = GType.OBJECT, ctypes.c_void_p(value.handle)
    else:
        raise TypeError(f"cannot box {type(value).__name__} into a Variant")

    tables.from_type_constructor(gtype)(dest, ctypes.addressof(source))
