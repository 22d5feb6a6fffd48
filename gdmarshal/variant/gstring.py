import ctypes
from typing import Optional

from gdmarshal.engine import get_engine
from gdmarshal.errors import VariantLifetimeError

# native strings are a single pointer-sized word
StringContent = ctypes.c_ssize_t * 1


class GString:
    """Owner of one native engine string buffer."""

    def __init__(self, content: Optional[ctypes.Array] = None):
        # An explicit content buffer is adopted as already constructed.
        self.content = content if content is not None else StringContent()
        self._alive = content is not None

    @classmethod
    def from_str(cls, text: str) -> "GString":
        gstring = cls()
        get_engine().string_new_with_utf8_chars(ctypes.addressof(gstring.content), text.encode("utf-8"))
        gstring._alive = True
        return gstring

    @property
    def address(self) -> int:
        self._check_alive()
        return ctypes.addressof(self.content)

    @property
    def description(self) -> str:
        return read_native_string(self.address)

    def destroy(self) -> None:
        self._check_alive()
        get_engine().string_destroy(ctypes.addressof(self.content))
        self._alive = False

    @property
    def is_alive(self) -> bool:
        return self._alive

    def _check_alive(self) -> None:
        if not self._alive:
            raise VariantLifetimeError("native string used after destroy")

    def __enter__(self) -> "GString":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._alive:
            self.destroy()

    def __str__(self) -> str:
        return self.description

    def __repr__(self) -> str:
        if not self._alive:
            return "GString(<destroyed>)"
        return f"GString({self.description!r})"


def read_native_string(address: int) -> str:
    """Export a native string as UTF-8: query the length, then fill a buffer."""
    engine = get_engine()
    length = engine.string_to_utf8_chars(address, 0, 0)
    if length <= 0:
        return ""
    buffer = ctypes.create_string_buffer(length + 1)
    engine.string_to_utf8_chars(address, ctypes.addressof(buffer), length)
    return buffer.raw[:length].decode("utf-8")
