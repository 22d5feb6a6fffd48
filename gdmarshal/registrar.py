from gdmarshal import logging as gdmarshal_logging
from gdmarshal.planner import MarshalingPlan

logger = gdmarshal_logging.get_logger(__name__)


class VirtualMethodRegistrar:
    """Collect, per owning class, the methods that need a virtual-dispatch thunk."""

    def __init__(self):
        self._by_class: dict[str, list[str]] = {}

    def register(self, class_name: str, method_name: str) -> None:
        names = self._by_class.setdefault(class_name, [])
        if method_name not in names:
            names.append(method_name)
            logger.debug("Registered virtual %s.%s", class_name, method_name)

    def register_plan(self, plan: MarshalingPlan) -> bool:
        """Register ``plan`` when it is virtual; return whether it was."""
        if not plan.is_virtual:
            return False
        if plan.class_name is None:
            raise ValueError(f"virtual method '{plan.method_name}' has no owning class")
        self.register(plan.class_name, plan.exposed_name)
        return True

    def virtual_methods(self, class_name: str) -> list[str]:
        return list(self._by_class.get(class_name, []))

    def classes(self) -> list[str]:
        return list(self._by_class)

    def to_dict(self) -> dict[str, list[str]]:
        return {name: list(methods) for name, methods in self._by_class.items()}
