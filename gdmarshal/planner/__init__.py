from .plan_compiler import PlanCompiler
from .plan_types import NO_RETURN, ArgumentStep, MarshalingPlan, ReturnStep
from .policy import BindingPolicy, escape_identifier

__all__ = [
    'ArgumentStep',
    'BindingPolicy',
    'MarshalingPlan',
    'NO_RETURN',
    'PlanCompiler',
    'ReturnStep',
    'escape_identifier',
]
