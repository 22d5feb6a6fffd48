from typing import Optional

from gdmarshal import logging as gdmarshal_logging
from gdmarshal import type_classifier as tc
from gdmarshal.data_types import (ArgumentStorage, BindingState, CallStrategy,
                                  MethodKind, ReturnConversion, ReturnStorage,
                                  Visibility)
from gdmarshal.descriptor import Argument, MethodDescriptor
from gdmarshal.errors import InvariantViolation, UnsupportedSignature
from gdmarshal.type_registry import STRING_TYPE, VARIANT_TYPE

from .plan_types import NO_RETURN, ArgumentStep, MarshalingPlan, ReturnStep
from .policy import BindingPolicy, escape_identifier

logger = gdmarshal_logging.get_logger(__name__)


class PlanCompiler:
    """Turn one method descriptor into a MarshalingPlan.

    The compiler keeps no state between calls; the classifier and the policy
    tables are read-only inputs.
    """

    def __init__(self, classifier: tc.TypeClassifier, policy: Optional[BindingPolicy] = None):
        self.classifier = classifier
        self.policy = policy if policy is not None else BindingPolicy()

    def compile(
        self,
        descriptor: MethodDescriptor,
        class_name: Optional[str] = None,
        kind: MethodKind = MethodKind.CLASS,
    ) -> MarshalingPlan:
        self._reject_pointers(descriptor, class_name)
        state = self._binding_state(descriptor, class_name)

        arguments = tuple(self._argument_step(descriptor, arg) for arg in descriptor.arguments)
        return_step = self._return_step(descriptor)

        if state is BindingState.VIRTUAL:
            strategy = None
        elif descriptor.is_vararg:
            strategy = CallStrategy.VARIANT_ARRAY_CALL
        else:
            strategy = CallStrategy.DIRECT_POINTER_CALL

        visibility, exposed_name = self._visibility(descriptor, state, class_name)

        plan = MarshalingPlan(
            method_name=descriptor.name,
            class_name=class_name,
            kind=kind,
            binding_state=state,
            call_strategy=strategy,
            visibility=visibility,
            exposed_name=exposed_name,
            arguments=arguments,
            return_step=return_step,
            is_static=descriptor.is_static,
            is_vararg=descriptor.is_vararg,
            abi_hash=descriptor.abi_hash,
            discardable_result=self.policy.is_discardable(class_name, descriptor.name),
        )
        logger.debug(
            "Compiled %s: %s/%s with %d argument step(s), return %s",
            _location(descriptor, class_name),
            state.name,
            strategy.name if strategy else "-",
            len(arguments),
            return_step.storage.name,
        )
        return plan

    def _reject_pointers(self, descriptor: MethodDescriptor, class_name: Optional[str]) -> None:
        for arg in descriptor.arguments:
            if tc.is_raw_pointer(arg.type_name):
                raise UnsupportedSignature(_location(descriptor, class_name), arg.type_name, f"argument '{arg.name}'")
        ret = descriptor.return_value
        if ret is not None and tc.is_raw_pointer(ret.type_name):
            raise UnsupportedSignature(_location(descriptor, class_name), ret.type_name, "return value")

    def _binding_state(self, descriptor: MethodDescriptor, class_name: Optional[str]) -> BindingState:
        if descriptor.abi_hash is not None:
            if descriptor.is_virtual:
                raise InvariantViolation(
                    f"{_location(descriptor, class_name)} is virtual but carries ABI hash {descriptor.abi_hash}"
                )
            return BindingState.BOUND
        if not descriptor.is_virtual:
            raise InvariantViolation(f"{_location(descriptor, class_name)} is not virtual but has no ABI hash")
        return BindingState.VIRTUAL

    def _argument_step(self, descriptor: MethodDescriptor, arg: Argument) -> ArgumentStep:
        type_class = self.classifier.classify(arg.type_name, arg.meta)
        reference = escape_identifier(arg.name)

        if descriptor.is_vararg:
            step = ArgumentStep(arg.name, type_class, ArgumentStorage.VARIANT_BOX, True,
                                f"Variant({reference})", f"copy_{arg.name}")
        elif arg.type_name == STRING_TYPE:
            step = ArgumentStep(arg.name, type_class, ArgumentStorage.NATIVE_STRING, True,
                                f"GString.from_str({reference})", f"gstr_{arg.name}")
        elif tc.needs_copy(type_class):
            if isinstance(type_class, tc.Enum):
                source = f"int({reference}.value)"
            else:
                source = f"int({reference})"
            step = ArgumentStep(arg.name, type_class, ArgumentStorage.SCRATCH_COPY, True,
                                source, f"copy_{arg.name}")
        elif isinstance(type_class, tc.ClassHandle):
            # the handle already is the pointer-sized identity
            step = ArgumentStep(arg.name, type_class, ArgumentStorage.HANDLE, False,
                                f"{reference}.handle")
        elif isinstance(type_class, (tc.BuiltinValue, tc.TypedArray)):
            step = ArgumentStep(arg.name, type_class, ArgumentStorage.ADDRESS, True,
                                f"{reference}.content")
        else:
            step = ArgumentStep(arg.name, type_class, ArgumentStorage.ADDRESS, True, reference)

        gdmarshal_logging.trace_plan(
            "%s.%s -> %s", descriptor.name, arg.name, step.storage.name,
            method=descriptor.name, argument=arg.name, storage=step.storage.name,
        )
        return step

    def _return_step(self, descriptor: MethodDescriptor) -> ReturnStep:
        ret = descriptor.return_value
        if ret is None:
            return NO_RETURN

        type_class = self.classifier.classify(ret.type_name, ret.meta)
        default = tc.default_value(type_class)

        if descriptor.is_vararg:
            if ret.type_name == VARIANT_TYPE:
                conversion = ReturnConversion.IDENTITY
            else:
                conversion = ReturnConversion.FROM_VARIANT
            step = ReturnStep(type_class, ReturnStorage.VARIANT, conversion, default)
        elif ret.type_name == VARIANT_TYPE:
            step = ReturnStep(type_class, ReturnStorage.VARIANT, ReturnConversion.IDENTITY, default,
                              pass_content=True)
        elif isinstance(type_class, tc.TypedArray):
            step = ReturnStep(type_class, ReturnStorage.TYPED_ARRAY, ReturnConversion.WRAP_TYPED_ARRAY, default)
        elif ret.type_name == STRING_TYPE:
            step = ReturnStep(type_class, ReturnStorage.NATIVE_STRING, ReturnConversion.STRING_DESCRIPTION,
                              default, pass_content=True)
        elif isinstance(type_class, tc.ClassHandle):
            step = ReturnStep(type_class, ReturnStorage.HANDLE, ReturnConversion.LOOKUP_OBJECT, default)
        elif isinstance(type_class, tc.Enum):
            # plain integer landing to avoid packed enums
            step = ReturnStep(type_class, ReturnStorage.INT_ENUM, ReturnConversion.ENUM_RAW_VALUE, default)
        elif isinstance(type_class, tc.BuiltinValue):
            step = ReturnStep(type_class, ReturnStorage.VALUE, ReturnConversion.IDENTITY, default,
                              pass_content=True)
        else:
            step = ReturnStep(type_class, ReturnStorage.VALUE, ReturnConversion.IDENTITY, default)

        gdmarshal_logging.trace_plan(
            "%s -> return %s", descriptor.name, step.storage.name,
            method=descriptor.name, storage=step.storage.name,
        )
        return step

    def _visibility(
        self,
        descriptor: MethodDescriptor,
        state: BindingState,
        class_name: Optional[str],
    ) -> tuple[Visibility, str]:
        if state is BindingState.VIRTUAL:
            return Visibility.OPEN, descriptor.name
        if self.policy.is_used_by_property(class_name, descriptor.name):
            return Visibility.INTERNAL, descriptor.name
        return Visibility.PUBLIC, self.policy.naming(descriptor.name)


def _location(descriptor: MethodDescriptor, class_name: Optional[str]) -> str:
    if class_name:
        return f"{class_name}.{descriptor.name}"
    return descriptor.name
