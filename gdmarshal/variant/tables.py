"""Process-wide Variant constructor tables, resolved once from the engine."""

import threading
from dataclasses import dataclass
from typing import Optional

from gdmarshal import engine as gdmarshal_engine
from gdmarshal import logging as gdmarshal_logging
from gdmarshal.engine import EngineInterface, TypeConstructor
from gdmarshal.errors import InvariantViolation

from .gtype import GType

logger = gdmarshal_logging.get_logger(__name__)


@dataclass(frozen=True)
class VariantFunctionTables:
    # indexed by GType; the NIL slot has no typed constructor
    from_type: tuple[Optional[TypeConstructor], ...]
    to_type: tuple[Optional[TypeConstructor], ...]

    @classmethod
    def resolve(cls, engine: EngineInterface) -> "VariantFunctionTables":
        from_type: list[Optional[TypeConstructor]] = [None]
        to_type: list[Optional[TypeConstructor]] = [None]
        for gtype in range(GType.BOOL, GType.MAX):
            from_type.append(engine.get_variant_from_type_constructor(gtype))
            to_type.append(engine.get_variant_to_type_constructor(gtype))
        logger.debug("Resolved %d Variant constructor pairs", len(from_type) - 1)
        return cls(tuple(from_type), tuple(to_type))

    def from_type_constructor(self, gtype: GType) -> TypeConstructor:
        return _checked(self.from_type, gtype, "from-type")

    def to_type_constructor(self, gtype: GType) -> TypeConstructor:
        return _checked(self.to_type, gtype, "to-type")


def _checked(table, gtype: GType, label: str) -> TypeConstructor:
    constructor = table[gtype] if 0 <= gtype < len(table) else None
    if constructor is None:
        raise InvariantViolation(f"engine has no {label} constructor for {GType(gtype).name}")
    return constructor


_tables: Optional[VariantFunctionTables] = None
_tables_lock = threading.Lock()


def variant_function_tables() -> VariantFunctionTables:
    """Return the constructor tables, resolving them on first access."""
    global _tables
    tables = _tables
    if tables is None:
        with _tables_lock:
            if _tables is None:
                _tables = VariantFunctionTables.resolve(gdmarshal_engine.get_engine())
            tables = _tables
    return tables


def _reset() -> None:
    global _tables
    with _tables_lock:
        _tables = None


gdmarshal_engine.register_reset_hook(_reset)
