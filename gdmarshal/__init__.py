from .binder import ClassBinder, ClassBinding, create_compiler
from .data_types import (ArgumentStorage, BindingState, CallStrategy,
                         MethodKind, ReturnConversion, ReturnStorage,
                         Visibility)
from .descriptor import Argument, MethodDescriptor, ReturnValue
from .dispatcher import CallDispatcher
from .engine import EngineInterface, get_engine, set_engine
from .errors import (DescriptorValidationError, EngineNotInitialized,
                     GdMarshalError, InvariantViolation, UnsupportedSignature,
                     VariantLifetimeError)
from .planner import MarshalingPlan, PlanCompiler
from .registrar import VirtualMethodRegistrar
from .type_classifier import TypeClassifier
from .variant import GString, GType, Variant

__all__ = [
    'Argument',
    'ArgumentStorage',
    'BindingState',
    'CallDispatcher',
    'CallStrategy',
    'ClassBinder',
    'ClassBinding',
    'DescriptorValidationError',
    'EngineInterface',
    'EngineNotInitialized',
    'GString',
    'GType',
    'GdMarshalError',
    'InvariantViolation',
    'MarshalingPlan',
    'MethodDescriptor',
    'MethodKind',
    'PlanCompiler',
    'ReturnConversion',
    'ReturnStorage',
    'ReturnValue',
    'TypeClassifier',
    'UnsupportedSignature',
    'Variant',
    'VariantLifetimeError',
    'VirtualMethodRegistrar',
    'Visibility',
    'create_compiler',
    'get_engine',
    'set_engine',
]
