from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

from gdmarshal import logging as gdmarshal_logging
from gdmarshal import utils

from .method_descriptor import MethodDescriptor

logger = gdmarshal_logging.get_logger(__name__)


@dataclass
class ClassDescription:
    name: str
    methods: list[MethodDescriptor] = field(default_factory=list)


class ApiDescription:
    """Thin view over an engine API-description JSON document.

    Only the parts needed to drive the plan compiler are read: class names,
    class methods and utility functions.
    """

    def __init__(self, data: dict[str, Any]):
        if not isinstance(data, dict):
            raise TypeError("API description must be a JSON object")
        self.data = data

    @classmethod
    def load(cls, path: str) -> "ApiDescription":
        logger.debug("Loading API description from %s", path)
        return cls(utils.read_json(path))

    def class_names(self) -> list[str]:
        return [entry["name"] for entry in self.data.get("classes", [])]

    def get_class(self, name: str) -> Optional[ClassDescription]:
        for entry in self.data.get("classes", []):
            if entry.get("name") == name:
                methods = [MethodDescriptor.from_dict(m) for m in entry.get("methods", [])]
                return ClassDescription(name=name, methods=methods)
        return None

    def iter_classes(self) -> Iterator[ClassDescription]:
        for name in self.class_names():
            description = self.get_class(name)
            if description is not None:
                yield description

    def utility_functions(self) -> list[MethodDescriptor]:
        return [MethodDescriptor.from_dict(entry) for entry in self.data.get("utility_functions", [])]
