from enum import IntEnum


class GType(IntEnum):
    NIL = 0
    BOOL = 1
    INT = 2
    FLOAT = 3
    STRING = 4
    VECTOR2 = 5
    VECTOR2I = 6
    RECT2 = 7
    RECT2I = 8
    VECTOR3 = 9
    VECTOR3I = 10
    TRANSFORM2D = 11
    VECTOR4 = 12
    VECTOR4I = 13
    PLANE = 14
    QUATERNION = 15
    AABB = 16
    BASIS = 17
    TRANSFORM3D = 18
    PROJECTION = 19
    COLOR = 20
    STRING_NAME = 21
    NODE_PATH = 22
    RID = 23
    OBJECT = 24
    CALLABLE = 25
    SIGNAL = 26
    DICTIONARY = 27
    ARRAY = 28
    PACKED_BYTE_ARRAY = 29
    PACKED_INT32_ARRAY = 30
    PACKED_INT64_ARRAY = 31
    PACKED_FLOAT32_ARRAY = 32
    PACKED_FLOAT64_ARRAY = 33
    PACKED_STRING_ARRAY = 34
    PACKED_VECTOR2_ARRAY = 35
    PACKED_VECTOR3_ARRAY = 36
    PACKED_COLOR_ARRAY = 37
    PACKED_VECTOR4_ARRAY = 38
    MAX = 39


class VariantOperator(IntEnum):
    EQUAL = 0
    NOT_EQUAL = 1
    LESS = 2
    LESS_EQUAL = 3
    GREATER = 4
    GREATER_EQUAL = 5


GTYPE_BY_NAME: dict[str, GType] = {
    "bool": GType.BOOL,
    "int": GType.INT,
    "float": GType.FLOAT,
    "String": GType.STRING,
    "Vector2": GType.VECTOR2,
    "Vector2i": GType.VECTOR2I,
    "Rect2": GType.RECT2,
    "Rect2i": GType.RECT2I,
    "Vector3": GType.VECTOR3,
    "Vector3i": GType.VECTOR3I,
    "Transform2D": GType.TRANSFORM2D,
    "Vector4": GType.VECTOR4,
    "Vector4i": GType.VECTOR4I,
    "Plane": GType.PLANE,
    "Quaternion": GType.QUATERNION,
    "AABB": GType.AABB,
    "Basis": GType.BASIS,
    "Transform3D": GType.TRANSFORM3D,
    "Projection": GType.PROJECTION,
    "Color": GType.COLOR,
    "StringName": GType.STRING_NAME,
    "NodePath": GType.NODE_PATH,
    "RID": GType.RID,
    "Object": GType.OBJECT,
    "Callable": GType.CALLABLE,
    "Signal": GType.SIGNAL,
    "Dictionary": GType.DICTIONARY,
    "Array": GType.ARRAY,
    "PackedByteArray": GType.PACKED_BYTE_ARRAY,
    "PackedInt32Array": GType.PACKED_INT32_ARRAY,
    "PackedInt64Array": GType.PACKED_INT64_ARRAY,
    "PackedFloat32Array": GType.PACKED_FLOAT32_ARRAY,
    "PackedFloat64Array": GType.PACKED_FLOAT64_ARRAY,
    "PackedStringArray": GType.PACKED_STRING_ARRAY,
    "PackedVector2Array": GType.PACKED_VECTOR2_ARRAY,
    "PackedVector3Array": GType.PACKED_VECTOR3_ARRAY,
    "PackedColorArray": GType.PACKED_COLOR_ARRAY,
    "PackedVector4Array": GType.PACKED_VECTOR4_ARRAY,
}


def gtype_for_name(type_name: str) -> GType:
    try:
        return GTYPE_BY_NAME[type_name]
    except KeyError:
        raise ValueError(f"'{type_name}' has no Variant type") from None
