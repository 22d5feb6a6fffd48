import json
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any, Optional, Tuple

from jsonschema import Draft202012Validator  # type: ignore

from gdmarshal.errors import DescriptorValidationError

_VALIDATOR: Optional[Draft202012Validator] = None


@dataclass(frozen=True)
class Argument:
    name: str
    type_name: str
    meta: Optional[str] = None
    default_value: Optional[str] = None


@dataclass(frozen=True)
class ReturnValue:
    type_name: str
    meta: Optional[str] = None


@dataclass(frozen=True)
class MethodDescriptor:
    name: str
    arguments: tuple[Argument, ...] = field(default_factory=tuple)
    return_value: Optional[ReturnValue] = None
    is_static: bool = False
    is_virtual: bool = False
    is_vararg: bool = False
    is_const: bool = False
    abi_hash: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict) -> "MethodDescriptor":
        """Build a descriptor from an API-description method entry.

        Class methods carry ``return_value: {type, meta}`` while utility
        functions carry a bare ``return_type`` string; both are accepted.
        """
        ok, msg = validate_descriptor_dict(data)
        if not ok:
            name = data.get("name") if isinstance(data, dict) else None
            raise DescriptorValidationError(f"invalid descriptor {name!r}: {msg}")

        arguments = tuple(
            Argument(
                name=entry["name"],
                type_name=entry["type"],
                meta=entry.get("meta"),
                default_value=entry.get("default_value"),
            )
            for entry in data.get("arguments", [])
        )
        return_value = None
        if "return_value" in data:
            ret = data["return_value"]
            return_value = ReturnValue(ret["type"], ret.get("meta"))
        elif "return_type" in data:
            return_value = ReturnValue(data["return_type"])

        return cls(
            name=data["name"],
            arguments=arguments,
            return_value=return_value,
            is_static=data.get("is_static", False),
            is_virtual=data.get("is_virtual", False),
            is_vararg=data.get("is_vararg", False),
            is_const=data.get("is_const", False),
            abi_hash=data.get("hash"),
        )

    def type_names(self) -> list[str]:
        names = [arg.type_name for arg in self.arguments]
        if self.return_value is not None:
            names.append(self.return_value.type_name)
        return names


def _load_schema_text() -> str:
    try:
        schema_resource = resources.files("gdmarshal.descriptor").joinpath("schema.json")
        with schema_resource.open("r", encoding="utf-8") as f:
            return f.read()
    except (FileNotFoundError, ModuleNotFoundError):
        fallback = Path(__file__).resolve().parent / "schema.json"
        return fallback.read_text(encoding="utf-8")


def _validator() -> Draft202012Validator:
    global _VALIDATOR
    if _VALIDATOR is None:
        _VALIDATOR = Draft202012Validator(json.loads(_load_schema_text()))
    return _VALIDATOR


def validate_descriptor_dict(data: Any) -> Tuple[bool, str]:
    """Validate a raw method entry against the bundled JSON Schema.

    Returns (ok, msg); msg is the best-matching schema error on failure.
    """
    errors = sorted(_validator().iter_errors(data), key=lambda e: list(e.path))
    if errors:
        return False, f"schema:{errors[0].message}"
    return True, ""
