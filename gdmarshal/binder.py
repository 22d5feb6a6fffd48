from dataclasses import dataclass, field
from typing import Iterable, Optional

from gdmarshal import logging as gdmarshal_logging
from gdmarshal import type_registry
from gdmarshal.data_types import MethodKind
from gdmarshal.descriptor import MethodDescriptor
from gdmarshal.errors import UnsupportedSignature
from gdmarshal.planner import BindingPolicy, MarshalingPlan, PlanCompiler
from gdmarshal.registrar import VirtualMethodRegistrar
from gdmarshal.type_classifier import TypeClassifier

logger = gdmarshal_logging.get_logger(__name__)


@dataclass
class ClassBinding:
    class_name: Optional[str]
    kind: MethodKind
    plans: dict[str, MarshalingPlan] = field(default_factory=dict)
    virtual_methods: list[str] = field(default_factory=list)
    skipped: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "class": self.class_name,
            "kind": self.kind.name,
            "plans": [plan.to_dict() for plan in self.plans.values()],
            "virtual_methods": list(self.virtual_methods),
            "skipped": dict(self.skipped),
        }


class ClassBinder:
    def __init__(self, compiler: PlanCompiler, registrar: Optional[VirtualMethodRegistrar] = None):
        self.compiler = compiler
        self.registrar = registrar if registrar is not None else VirtualMethodRegistrar()

    def bind(
        self,
        class_name: Optional[str],
        descriptors: Iterable[MethodDescriptor],
        kind: MethodKind = MethodKind.CLASS,
    ) -> ClassBinding:
        binding = ClassBinding(class_name=class_name, kind=kind)
        for descriptor in descriptors:
            try:
                plan = self.compiler.compile(descriptor, class_name=class_name, kind=kind)
            except UnsupportedSignature as e:
                logger.warning("Skipping %s", e)
                binding.skipped[descriptor.name] = str(e)
                continue
            binding.plans[descriptor.name] = plan
            if self.registrar.register_plan(plan):
                binding.virtual_methods.append(plan.exposed_name)

        logger.info(
            "Bound %s: %d plan(s), %d virtual, %d skipped",
            class_name or "utility functions",
            len(binding.plans),
            len(binding.virtual_methods),
            len(binding.skipped),
        )
        return binding

    def bind_utilities(self, descriptors: Iterable[MethodDescriptor]) -> ClassBinding:
        return self.bind(None, descriptors, kind=MethodKind.UTILITY)


def create_compiler(config: dict, known_classes: Iterable[str]) -> PlanCompiler:
    """Build a compiler from the configured size table, class set and policies."""
    classes = frozenset(known_classes) | {type_registry.OBJECT_SENTINEL}
    classifier = TypeClassifier(type_registry.get_builtin_sizes(config), classes)
    policy = BindingPolicy.from_config(config, sorted(classes))
    return PlanCompiler(classifier, policy)
