import ctypes
from contextlib import ExitStack
from functools import partial
from typing import Any, Callable, Mapping, Optional, Sequence

from gdmarshal import logging as gdmarshal_logging
from gdmarshal import type_classifier as tc
from gdmarshal.data_types import (ArgumentStorage, CallStrategy, MethodKind,
                                  ReturnConversion, ReturnStorage)
from gdmarshal.engine import CALL_OK, get_engine
from gdmarshal.planner import ArgumentStep, MarshalingPlan, ReturnStep
from gdmarshal.type_registry import VARIANT_TYPE
from gdmarshal.variant import (EngineObject, GString, GType, OpaqueValue,
                               StringContent, TypedArrayValue, Variant,
                               VariantContent)

from .binding_cache import BindingCache, binding_cache
from .call_targets import target_for_plan

logger = gdmarshal_logging.get_logger(__name__)

ObjectLookup = Callable[[int, str], Any]

_INVOKERS = {
    CallStrategy.DIRECT_POINTER_CALL: "ptrcall",
    CallStrategy.VARIANT_ARRAY_CALL: "call",
}


def _default_lookup(handle: int, class_name: str) -> EngineObject:
    return EngineObject(class_name, handle)


def _ordinal(step: ArgumentStep, value: Any) -> Any:
    """Enum arguments cross as their ordinal, whatever enum class wraps them."""
    if isinstance(step.type_class, tc.Enum) and hasattr(value, "value"):
        return value.value
    return value


class CallDispatcher:
    """Execute marshaling plans against the registered engine.

    Every scratch value made for a call (Variant copies, native strings,
    integer copies) belongs to the call's ExitStack and is released as soon as
    the call returns or fails.
    """

    def __init__(
        self,
        lookup_object: Optional[ObjectLookup] = None,
        enum_types: Optional[Mapping[str, Callable[[int], Any]]] = None,
        cache: Optional[BindingCache] = None,
    ):
        self.lookup_object = lookup_object if lookup_object is not None else _default_lookup
        self.enum_types = dict(enum_types or {})
        self.cache = cache if cache is not None else binding_cache()

    def bind(self, plan: MarshalingPlan) -> Callable[..., Any]:
        return partial(self.call, plan)

    def call(
        self,
        plan: MarshalingPlan,
        instance: Any = None,
        args: Sequence[Any] = (),
        extra_args: Sequence[Any] = (),
    ) -> Any:
        if plan.is_virtual:
            # overridable methods have no native entry point; the default is the result
            return plan.return_step.default
        if len(args) != plan.declared_count:
            raise TypeError(f"{plan.exposed_name}() takes {plan.declared_count} argument(s), got {len(args)}")
        if extra_args and not plan.is_vararg:
            raise TypeError(f"{plan.exposed_name}() does not accept extra arguments")

        engine = get_engine()
        target = target_for_plan(plan)
        resolved = self.cache.resolve(target, engine)
        instance_handle = self._instance_handle(plan, instance)

        with ExitStack() as scope:
            keepalive: list[Any] = []
            pointers = [
                self._marshal_argument(step, value, scope, keepalive)
                for step, value in zip(plan.arguments, args)
            ]
            for extra in extra_args:
                pointers.append(scope.enter_context(Variant(extra)).address)

            if pointers:
                pointer_array = (ctypes.c_void_p * len(pointers))(*pointers)
                keepalive.append(pointer_array)
                args_address = ctypes.addressof(pointer_array)
            else:
                args_address = 0

            landing = self._landing(plan.return_step)
            result_address = ctypes.addressof(landing) if landing is not None else 0
            # released with the scratch values until decoding adopts it
            owned = scope.enter_context(ExitStack())
            self._own_landing(plan.return_step, landing, owned)

            arg_count = len(pointers) if plan.is_vararg else plan.declared_count
            invoke = getattr(target, _INVOKERS[plan.call_strategy])
            error = invoke(
                engine, resolved, instance_handle, args_address, arg_count, result_address
            )
            if error.error != CALL_OK:
                logger.warning(
                    "%r reported call error %d (argument %d, expected %d)",
                    target, error.error, error.argument, error.expected,
                )
            owned.pop_all()
            return self._decode(plan, landing)

    def _instance_handle(self, plan: MarshalingPlan, instance: Any) -> int:
        if plan.is_static or plan.kind is MethodKind.UTILITY:
            return 0
        if instance is None:
            raise TypeError(f"{plan.class_name}.{plan.method_name} needs an instance")
        if isinstance(instance, int):
            return instance
        return instance.handle

    def _marshal_argument(self, step: ArgumentStep, value: Any, scope: ExitStack, keepalive: list) -> int:
        match step.storage:
            case ArgumentStorage.VARIANT_BOX:
                return scope.enter_context(Variant(_ordinal(step, value))).address
            case ArgumentStorage.NATIVE_STRING:
                text = value.description if isinstance(value, GString) else value
                return scope.enter_context(GString.from_str(text)).address
            case ArgumentStorage.SCRATCH_COPY:
                copy = tc.NATIVE_INT(int(_ordinal(step, value)))
                keepalive.append(copy)
                return ctypes.addressof(copy)
            case ArgumentStorage.HANDLE:
                return 0 if value is None else value.handle
            case ArgumentStorage.ADDRESS:
                return self._address_of(step, value, scope, keepalive)
        raise ValueError(f"unknown argument storage {step.storage}")

    def _address_of(self, step: ArgumentStep, value: Any, scope: ExitStack, keepalive: list) -> int:
        type_class = step.type_class
        if isinstance(type_class, tc.Primitive):
            native = type_class.ctype(int(bool(value)) if type_class.name == "bool" else value)
            keepalive.append(native)
            return ctypes.addressof(native)
        if isinstance(type_class, tc.BuiltinValue) and type_class.name == VARIANT_TYPE:
            if isinstance(value, Variant):
                return value.address
            return scope.enter_context(Variant(value)).address
        return ctypes.addressof(value.content)

    def _own_landing(self, step: ReturnStep, landing: Any, owned: ExitStack) -> None:
        # an unwritten landing is a zeroed payload, which the engine treats as nil
        match step.storage:
            case ReturnStorage.VARIANT:
                owned.enter_context(Variant.from_content(landing))
            case ReturnStorage.NATIVE_STRING:
                owned.enter_context(GString(landing))

    def _landing(self, step: ReturnStep) -> Optional[Any]:
        type_class = step.type_class
        match step.storage:
            case ReturnStorage.NONE:
                return None
            case ReturnStorage.VARIANT:
                return VariantContent()
            case ReturnStorage.NATIVE_STRING:
                return StringContent()
            case ReturnStorage.HANDLE:
                return ctypes.c_void_p(0)
            case ReturnStorage.INT_ENUM:
                return tc.NATIVE_INT(0)
            case ReturnStorage.TYPED_ARRAY:
                return (ctypes.c_uint8 * type_class.size)()
            case ReturnStorage.VALUE:
                if isinstance(type_class, tc.BuiltinValue):
                    return (ctypes.c_uint8 * type_class.size)()
                return type_class.ctype()
        raise ValueError(f"unknown return storage {step.storage}")

    def _decode(self, plan: MarshalingPlan, landing: Any) -> Any:
        step = plan.return_step
        type_class = step.type_class
        match step.conversion:
            case ReturnConversion.NONE:
                return None
            case ReturnConversion.FROM_VARIANT:
                return self._unbox(Variant.from_content(landing), type_class, step.default)
            case ReturnConversion.WRAP_TYPED_ARRAY:
                return TypedArrayValue(type_class.element, type_class.size, landing)
            case ReturnConversion.STRING_DESCRIPTION:
                with GString(landing) as gstring:
                    return gstring.description
            case ReturnConversion.LOOKUP_OBJECT:
                if not landing.value:
                    return None
                return self.lookup_object(landing.value, type_class.name)
            case ReturnConversion.ENUM_RAW_VALUE:
                return self._enum_value(type_class, landing.value)
            case ReturnConversion.IDENTITY:
                if step.storage is ReturnStorage.VARIANT:
                    return Variant.from_content(landing)
                if isinstance(type_class, tc.BuiltinValue):
                    return OpaqueValue(type_class.name, type_class.size, landing)
                if isinstance(type_class, tc.Primitive) and type_class.name == "bool":
                    return landing.value != 0
                return landing.value
        raise ValueError(f"unknown return conversion {step.conversion}")

    def _unbox(self, variant: Variant, type_class: tc.TypeClass, default: Any = None) -> Any:
        """Convert a Variant result to the declared type; unconvertible kinds stay boxed.

        A result the engine left nil (a failed call) decodes to ``default``.
        """
        if isinstance(type_class, tc.Primitive) and type_class.name in ("bool", "int", "float"):
            kind = {"bool": bool, "int": int, "float": float}[type_class.name]
        elif isinstance(type_class, tc.BuiltinValue) and type_class.name == "String":
            kind = str
        elif isinstance(type_class, tc.Enum):
            with variant:
                return self._enum_value(type_class, variant.to_int() or 0)
        elif isinstance(type_class, tc.ClassHandle):
            with variant:
                if variant.gtype != GType.OBJECT:
                    return None
                handle = ctypes.c_void_p(0)
                variant.to_type(GType.OBJECT, ctypes.addressof(handle))
                return self.lookup_object(handle.value, type_class.name) if handle.value else None
        else:
            return variant
        with variant:
            value = variant.convert(kind)
        return default if value is None else value

    def _enum_value(self, type_class: tc.Enum, raw: int) -> Any:
        factory = self.enum_types.get(type_class.base)
        if factory is None:
            return raw
        return factory(raw)
