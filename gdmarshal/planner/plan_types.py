from dataclasses import dataclass, field
from typing import Any, Optional

from gdmarshal.data_types import (ArgumentStorage, BindingState, CallStrategy,
                                  MethodKind, ReturnConversion, ReturnStorage,
                                  Visibility)
from gdmarshal.type_classifier import TypeClass, describe


@dataclass(frozen=True)
class ArgumentStep:
    name: str
    type_class: TypeClass
    storage: ArgumentStorage
    take_address: bool
    # Python expression producing the value handed to the engine
    source: str
    scratch: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "type": describe(self.type_class),
            "storage": self.storage.name,
            "take_address": self.take_address,
            "source": self.source,
            "scratch": self.scratch,
        }


@dataclass(frozen=True)
class ReturnStep:
    type_class: Optional[TypeClass]
    storage: ReturnStorage
    conversion: ReturnConversion
    default: Any = None
    # the call receives the landing value's content buffer rather than the value
    pass_content: bool = False

    @property
    def has_result(self) -> bool:
        return self.storage is not ReturnStorage.NONE

    def to_dict(self) -> dict:
        return {
            "type": describe(self.type_class) if self.type_class is not None else None,
            "storage": self.storage.name,
            "conversion": self.conversion.name,
            "default": self.default,
            "pass_content": self.pass_content,
        }


NO_RETURN = ReturnStep(None, ReturnStorage.NONE, ReturnConversion.NONE)


@dataclass(frozen=True)
class MarshalingPlan:
    method_name: str
    class_name: Optional[str]
    kind: MethodKind
    binding_state: BindingState
    call_strategy: Optional[CallStrategy]
    visibility: Visibility
    exposed_name: str
    arguments: tuple[ArgumentStep, ...] = field(default_factory=tuple)
    return_step: ReturnStep = NO_RETURN
    is_static: bool = False
    is_vararg: bool = False
    abi_hash: Optional[int] = None
    discardable_result: bool = False

    @property
    def is_virtual(self) -> bool:
        return self.binding_state is BindingState.VIRTUAL

    @property
    def declared_count(self) -> int:
        return len(self.arguments)

    def pointer_count(self, extra_count: int = 0) -> int:
        """Length of the pointer array for a call with ``extra_count`` extra Variants."""
        if extra_count and not self.is_vararg:
            raise ValueError(f"'{self.method_name}' does not accept extra arguments")
        return len(self.arguments) + extra_count

    def to_dict(self) -> dict:
        return {
            "method": self.method_name,
            "class": self.class_name,
            "kind": self.kind.name,
            "binding_state": self.binding_state.name,
            "call_strategy": self.call_strategy.name if self.call_strategy else None,
            "visibility": self.visibility.name,
            "exposed_name": self.exposed_name,
            "is_static": self.is_static,
            "is_vararg": self.is_vararg,
            "hash": self.abi_hash,
            "discardable_result": self.discardable_result,
            "arguments": [step.to_dict() for step in self.arguments],
            "return": self.return_step.to_dict(),
        }
