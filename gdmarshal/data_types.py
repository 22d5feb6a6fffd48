from enum import Enum, auto


class MethodKind(Enum):
    CLASS = auto()
    UTILITY = auto()


class BindingState(Enum):
    BOUND = auto()
    VIRTUAL = auto()


class CallStrategy(Enum):
    DIRECT_POINTER_CALL = auto()
    VARIANT_ARRAY_CALL = auto()


class Visibility(Enum):
    PUBLIC = auto()
    INTERNAL = auto()
    OPEN = auto()


class ArgumentStorage(Enum):
    VARIANT_BOX = auto()
    NATIVE_STRING = auto()
    SCRATCH_COPY = auto()
    ADDRESS = auto()
    HANDLE = auto()


class ReturnStorage(Enum):
    NONE = auto()
    VARIANT = auto()
    TYPED_ARRAY = auto()
    NATIVE_STRING = auto()
    HANDLE = auto()
    INT_ENUM = auto()
    VALUE = auto()


class ReturnConversion(Enum):
    NONE = auto()
    FROM_VARIANT = auto()
    WRAP_TYPED_ARRAY = auto()
    STRING_DESCRIPTION = auto()
    LOOKUP_OBJECT = auto()
    ENUM_RAW_VALUE = auto()
    IDENTITY = auto()
