from .api_description import ApiDescription, ClassDescription
from .method_descriptor import (Argument, MethodDescriptor, ReturnValue,
                                validate_descriptor_dict)

__all__ = [
    'ApiDescription',
    'Argument',
    'ClassDescription',
    'MethodDescriptor',
    'ReturnValue',
    'validate_descriptor_dict',
]
