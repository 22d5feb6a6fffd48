"""Built-in type size table and known-class lookups shared by the classifier."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, Iterable, Mapping, Tuple

from gdmarshal import utils

_SIZES_RESOURCE = "builtin_sizes.txt"

OBJECT_SENTINEL = "Object"
ARRAY_TYPE = "Array"
STRING_TYPE = "String"
VARIANT_TYPE = "Variant"


@lru_cache(maxsize=1)
def _load_builtin_size_pairs() -> Tuple[Tuple[str, int], ...]:
    text = utils.read_resource_text(_SIZES_RESOURCE)
    pairs: list[Tuple[str, int]] = []

    for idx, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            raise ValueError(
                f"Invalid entry in {_SIZES_RESOURCE} on line {idx}: '{raw_line}'"
            )
        lhs, rhs = line.split("=", 1)
        lhs = lhs.strip()
        rhs = rhs.strip()
        if not lhs or not rhs.isdigit():
            raise ValueError(
                f"Invalid entry in {_SIZES_RESOURCE} on line {idx}: '{raw_line}'"
            )
        pairs.append((lhs, int(rhs)))

    return tuple(pairs)


def get_builtin_size_pairs() -> Tuple[Tuple[str, int], ...]:
    """Return the ordered (name, size) pairs as defined in the resource file."""

    return _load_builtin_size_pairs()


def get_builtin_sizes(config: Mapping[str, Any] | None = None) -> Dict[str, int]:
    """Return the built-in size table with ``[types].size_overrides`` applied."""

    sizes = dict(_load_builtin_size_pairs())
    if config:
        overrides = config.get("types", {}).get("size_overrides", {})
        for name, size in overrides.items():
            if not isinstance(size, int) or size <= 0:
                raise ValueError(f"types.size_overrides.{name} must be a positive integer")
            sizes[name] = size
    return sizes


def known_classes_from_api(api: Mapping[str, Any], config: Mapping[str, Any] | None = None) -> frozenset[str]:
    """Collect class names from an API description plus configured extras."""

    names = {entry["name"] for entry in api.get("classes", []) if isinstance(entry, dict) and "name" in entry}
    if config:
        names.update(config.get("types", {}).get("extra_classes", []))
    names.add(OBJECT_SENTINEL)
    return frozenset(names)


def iter_small_int_metas() -> Iterable[str]:
    """Return the integer metadata tags narrower than the 64-bit ABI width."""

    return ("int8", "uint8", "int16", "uint16", "int32", "uint32")
