import keyword
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional

from gdmarshal import utils

UTILITY_POLICY_KEY = "@utility"


def escape_identifier(name: str) -> str:
    """Default public naming: engine names are already snake_case in Python."""
    if keyword.iskeyword(name) or keyword.issoftkeyword(name):
        return f"{name}_"
    return name


@dataclass(frozen=True)
class BindingPolicy:
    """External policy tables keyed by class name (``@utility`` for free functions)."""

    used_by_property: Mapping[str, frozenset[str]] = field(default_factory=dict)
    discardable_result: Mapping[str, frozenset[str]] = field(default_factory=dict)
    naming: Callable[[str], str] = escape_identifier

    @classmethod
    def from_config(cls, config: dict, class_names: Optional[list[str]] = None) -> "BindingPolicy":
        tables = config.get("policy", {}) if config else {}
        keys = set(tables.get("used_by_property", {})) | set(tables.get("discardable_result", {}))
        if class_names:
            keys.update(class_names)
        return cls(
            used_by_property={key: utils.policy_names(config, "used_by_property", _class_key(key)) for key in keys},
            discardable_result={key: utils.policy_names(config, "discardable_result", _class_key(key)) for key in keys},
        )

    def is_used_by_property(self, class_name: Optional[str], method_name: str) -> bool:
        return method_name in self.used_by_property.get(_policy_key(class_name), frozenset())

    def is_discardable(self, class_name: Optional[str], method_name: str) -> bool:
        return method_name in self.discardable_result.get(_policy_key(class_name), frozenset())


def _policy_key(class_name: Optional[str]) -> str:
    return class_name if class_name is not None else UTILITY_POLICY_KEY


def _class_key(key: str) -> Optional[str]:
    return None if key == UTILITY_POLICY_KEY else key
