"""Contract of the native engine entry points used by gdmarshal.

Every pointer crosses this interface as a plain integer address (``0`` is the
null pointer). A concrete engine adapts its function-pointer table to these
methods; tests use an in-memory implementation.
"""

import ctypes
import threading
from abc import ABC, abstractmethod
from typing import Callable, Optional

from gdmarshal import logging as gdmarshal_logging
from gdmarshal.errors import EngineNotInitialized

logger = gdmarshal_logging.get_logger(__name__)

# (dest, src) addresses
TypeConstructor = Callable[[int, int], None]
# (result, args, arg_count) addresses
UtilityFunction = Callable[[int, int, int], None]


class CallError(ctypes.Structure):
    _fields_ = [
        ("error", ctypes.c_int32),
        ("argument", ctypes.c_int32),
        ("expected", ctypes.c_int32),
    ]


CALL_OK = 0


class EngineInterface(ABC):
    # Variant
    @abstractmethod
    def get_variant_from_type_constructor(self, gtype: int) -> TypeConstructor:
        """Return the routine writing a Variant at dest from the typed value at src."""

    @abstractmethod
    def get_variant_to_type_constructor(self, gtype: int) -> TypeConstructor:
        """Return the routine writing the typed value at dest from the Variant at src."""

    @abstractmethod
    def variant_new_nil(self, dest: int) -> None: ...

    @abstractmethod
    def variant_new_copy(self, dest: int, src: int) -> None: ...

    @abstractmethod
    def variant_destroy(self, variant: int) -> None: ...

    @abstractmethod
    def variant_get_type(self, variant: int) -> int: ...

    @abstractmethod
    def variant_evaluate(self, op: int, a: int, b: int, result: int, valid: int) -> None:
        """Evaluate ``a <op> b`` into the uninitialized Variant at result; write 0/1 into valid."""

    @abstractmethod
    def variant_hash(self, variant: int) -> int: ...

    @abstractmethod
    def variant_stringify(self, variant: int, string: int) -> None:
        """Write a new native string describing the Variant into string."""

    # Strings
    @abstractmethod
    def string_new_with_utf8_chars(self, dest: int, data: bytes) -> None: ...

    @abstractmethod
    def string_to_utf8_chars(self, string: int, buffer: int, max_length: int) -> int:
        """Copy up to max_length bytes into buffer (when non-null); return the full length."""

    @abstractmethod
    def string_destroy(self, string: int) -> None: ...

    # Calls
    @abstractmethod
    def classdb_get_method_bind(self, class_name: str, method_name: str, abi_hash: int) -> int: ...

    @abstractmethod
    def variant_get_ptr_utility_function(self, name: str, abi_hash: int) -> Optional[UtilityFunction]: ...

    @abstractmethod
    def object_method_bind_ptrcall(self, method_bind: int, instance: int, args: int, result: int) -> None: ...

    @abstractmethod
    def object_method_bind_call(
        self, method_bind: int, instance: int, args: int, arg_count: int, result: int, error: int
    ) -> None: ...


_engine: Optional[EngineInterface] = None
_engine_lock = threading.Lock()
_reset_hooks: list[Callable[[], None]] = []


def register_reset_hook(hook: Callable[[], None]) -> None:
    """Register a cache-clearing callback run whenever the engine is replaced."""
    _reset_hooks.append(hook)


def set_engine(engine: Optional[EngineInterface]) -> None:
    """Install the process-wide engine and drop every cache resolved from the previous one."""
    global _engine
    with _engine_lock:
        _engine = engine
        for hook in _reset_hooks:
            hook()
    logger.debug("Engine set to %s", type(engine).__name__ if engine is not None else None)


def get_engine() -> EngineInterface:
    engine = _engine
    if engine is None:
        raise EngineNotInitialized("call gdmarshal.engine.set_engine() before using Variants or dispatching calls")
    return engine
