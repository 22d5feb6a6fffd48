from .binding_cache import BindingCache, binding_cache
from .call_dispatcher import CallDispatcher
from .call_targets import (CallTarget, MethodBindTarget,
                           UtilityFunctionTarget, target_for_plan)

__all__ = [
    'BindingCache',
    'CallDispatcher',
    'CallTarget',
    'MethodBindTarget',
    'UtilityFunctionTarget',
    'binding_cache',
    'target_for_plan',
]
