import ctypes
from abc import ABC, abstractmethod
from typing import Any, Hashable

from gdmarshal.data_types import MethodKind
from gdmarshal.engine import CallError, EngineInterface
from gdmarshal.errors import InvariantViolation
from gdmarshal.planner import MarshalingPlan


class CallTarget(ABC):
    """Where a bound call goes: a class method bind or a utility function.

    Both targets support the two call strategies; only the callable lookup
    and the argument order of the native entry points differ.
    """

    @property
    @abstractmethod
    def key(self) -> Hashable:
        """Memoization key of the resolved callable."""

    @abstractmethod
    def resolve(self, engine: EngineInterface) -> Any:
        """Look the callable up in the engine registry."""

    @abstractmethod
    def ptrcall(self, engine: EngineInterface, resolved: Any, instance: int, args: int, arg_count: int,
                result: int) -> CallError:
        """Fixed-arity call with raw typed pointers."""

    @abstractmethod
    def call(self, engine: EngineInterface, resolved: Any, instance: int, args: int, arg_count: int,
             result: int) -> CallError:
        """Variadic call with an array of Variant pointers."""


class MethodBindTarget(CallTarget):
    def __init__(self, class_name: str, method_name: str, abi_hash: int):
        self.class_name = class_name
        self.method_name = method_name
        self.abi_hash = abi_hash

    @property
    def key(self) -> Hashable:
        return ("method", self.class_name, self.method_name, self.abi_hash)

    def resolve(self, engine: EngineInterface) -> int:
        method_bind = engine.classdb_get_method_bind(self.class_name, self.method_name, self.abi_hash)
        if not method_bind:
            raise InvariantViolation(
                f"engine has no method bind for {self.class_name}.{self.method_name} (hash {self.abi_hash})"
            )
        return method_bind

    def ptrcall(self, engine, resolved, instance, args, arg_count, result) -> CallError:
        engine.object_method_bind_ptrcall(resolved, instance, args, result)
        return CallError()

    def call(self, engine, resolved, instance, args, arg_count, result) -> CallError:
        error = CallError()
        engine.object_method_bind_call(resolved, instance, args, arg_count, result, ctypes.addressof(error))
        return error

    def __repr__(self) -> str:
        return f"MethodBindTarget({self.class_name}.{self.method_name})"


class UtilityFunctionTarget(CallTarget):
    def __init__(self, name: str, abi_hash: int):
        self.name = name
        self.abi_hash = abi_hash

    @property
    def key(self) -> Hashable:
        return ("utility", self.name, self.abi_hash)

    def resolve(self, engine: EngineInterface):
        function = engine.variant_get_ptr_utility_function(self.name, self.abi_hash)
        if function is None:
            raise InvariantViolation(f"engine has no utility function {self.name} (hash {self.abi_hash})")
        return function

    def ptrcall(self, engine, resolved, instance, args, arg_count, result) -> CallError:
        resolved(result, args, arg_count)
        return CallError()

    def call(self, engine, resolved, instance, args, arg_count, result) -> CallError:
        resolved(result, args, arg_count)
        return CallError()

    def __repr__(self) -> str:
        return f"UtilityFunctionTarget({self.name})"


def target_for_plan(plan: MarshalingPlan) -> CallTarget:
    if plan.abi_hash is None:
        raise InvariantViolation(f"'{plan.method_name}' is virtual and has no call target")
    if plan.kind is MethodKind.UTILITY:
        return UtilityFunctionTarget(plan.method_name, plan.abi_hash)
    if plan.class_name is None:
        raise InvariantViolation(f"class method '{plan.method_name}' has no owning class")
    return MethodBindTarget(plan.class_name, plan.method_name, plan.abi_hash)
