import ctypes
from enum import Enum, IntEnum
from unittest.mock import patch

import pytest

from gdmarshal.binder import create_compiler
from gdmarshal.data_types import ArgumentStorage, MethodKind
from gdmarshal.dispatcher import CallDispatcher, binding_cache
from gdmarshal.dispatcher import call_dispatcher
from gdmarshal.errors import InvariantViolation
from gdmarshal.variant import (EngineObject, GType, OpaqueValue,
                               TypedArrayValue, Variant)

from tests.mock_engine import arg_pointer, read_arg
from tests.utils import config, descriptor, engine, make_compiler


class ProcessMode(IntEnum):
    INHERIT = 0
    PAUSABLE = 1
    ALWAYS = 3


class Channel(Enum):
    LEFT = 1
    RIGHT = 2


def compile_plan(desc, class_name="Node", kind=MethodKind.CLASS):
    return make_compiler().compile(desc, class_name=class_name, kind=kind)


def test_direct_pointer_call_passes_arguments_in_order(engine):
    seen = []

    def add(instance, args, result):
        a = read_arg(args, 0, ctypes.c_int64)
        b = read_arg(args, 1, ctypes.c_int64)
        seen.append((instance, a, b))
        ctypes.c_int64.from_address(result).value = a - b

    engine.register_method("Calculator", "add", 123, add)
    plan = compile_plan(descriptor("add", [("a", "int"), ("b", "int")], "int", hash=123), "Calculator")

    assert CallDispatcher().call(plan, instance=0x10, args=(7, 3)) == 4
    assert seen == [(0x10, 7, 3)]


def test_method_bind_is_resolved_once(engine):
    engine.register_method("Node", "get_index", 1, lambda instance, args, result: None)
    plan = compile_plan(descriptor("get_index", [], "int", hash=1))
    dispatcher = CallDispatcher()

    for _ in range(3):
        assert dispatcher.call(plan, instance=EngineObject("Node", 0x20)) == 0
    assert engine.bind_lookups[("Node", "get_index")] == 1
    assert ("method", "Node", "get_index", 1) in binding_cache()


def test_bound_callable_from_bind(engine):
    engine.register_method("Node", "is_inside_tree", 2,
                           lambda instance, args, result: setattr(ctypes.c_uint8.from_address(result), "value", 1))
    plan = compile_plan(descriptor("is_inside_tree", [], "bool", hash=2))
    is_inside_tree = CallDispatcher().bind(plan)
    assert is_inside_tree(instance=5) is True


def test_missing_method_bind_is_an_invariant_violation(engine):
    plan = compile_plan(descriptor("missing", [], hash=3))
    with pytest.raises(InvariantViolation):
        CallDispatcher().call(plan, instance=1)


def test_static_method_gets_null_instance(engine):
    seen = []
    engine.register_method("Node", "create", 4, lambda instance, args, result: seen.append(instance))
    plan = compile_plan(descriptor("create", [], hash=4, is_static=True))
    CallDispatcher().call(plan, instance=0x99)
    assert seen == [0]


def test_instance_is_required_for_methods(engine):
    engine.register_method("Node", "queue_free", 5, lambda instance, args, result: None)
    plan = compile_plan(descriptor("queue_free", [], hash=5))
    with pytest.raises(TypeError):
        CallDispatcher().call(plan)


def test_argument_count_is_checked(engine):
    plan = compile_plan(descriptor("add", [("a", "int")], hash=6))
    with pytest.raises(TypeError):
        CallDispatcher().call(plan, instance=1, args=())
    with pytest.raises(TypeError):
        CallDispatcher().call(plan, instance=1, args=(1,), extra_args=(2,))


def test_string_argument_and_return(engine):
    def greet(instance, args, result):
        engine.new_string(result, f"hello {engine.string_at(arg_pointer(args, 0))}")

    engine.register_method("Node", "greet", 7, greet)
    plan = compile_plan(descriptor("greet", [("name", "String")], "String", hash=7))

    assert CallDispatcher().call(plan, instance=1, args=("bob",)) == "hello bob"
    assert engine.live_strings == 0


def test_enum_and_small_int_arguments_are_copied(engine):
    seen = []

    def set_mode(instance, args, result):
        seen.append((read_arg(args, 0, ctypes.c_int64), read_arg(args, 1, ctypes.c_int64)))
        ctypes.c_int64.from_address(result).value = 1

    engine.register_method("Node", "set_mode", 8, set_mode)
    plan = compile_plan(descriptor(
        "set_mode", [("mode", "enum::Node.ProcessMode"), ("count", "int", "int32")],
        "enum::Node.ProcessMode", hash=8,
    ))

    raw = CallDispatcher().call(plan, instance=1, args=(ProcessMode.ALWAYS, 5))
    assert seen == [(3, 5)]
    assert raw == 1

    typed = CallDispatcher(enum_types={"Node.ProcessMode": ProcessMode}).call(
        plan, instance=1, args=(ProcessMode.ALWAYS, 5))
    assert typed is ProcessMode.PAUSABLE


def test_bool_and_float_primitives(engine):
    seen = []

    def scale(instance, args, result):
        seen.append((read_arg(args, 0, ctypes.c_uint8), read_arg(args, 1, ctypes.c_double)))
        ctypes.c_double.from_address(result).value = 1.5

    engine.register_method("Node", "scale", 9, scale)
    plan = compile_plan(descriptor("scale", [("flag", "bool"), ("factor", "float", "double")], "float", hash=9))
    assert CallDispatcher().call(plan, instance=1, args=(True, 0.25)) == 1.5
    assert seen == [(1, 0.25)]


def test_handles_are_passed_directly(engine):
    seen = []

    def add_child(instance, args, result):
        seen.append(arg_pointer(args, 0))
        ctypes.c_void_p.from_address(result).value = 0xF00D

    engine.register_method("Node", "add_child", 10, add_child)
    plan = compile_plan(descriptor("add_child", [("node", "Node")], "Node", hash=10))

    child = CallDispatcher().call(plan, instance=1, args=(EngineObject("Node", 0xCAFE),))
    assert seen == [0xCAFE]
    assert child == EngineObject("Node", 0xF00D)

    looked_up = CallDispatcher(lookup_object=lambda handle, name: (name, handle)).call(
        plan, instance=1, args=(None,))
    assert seen[-1] == 0
    assert looked_up == ("Node", 0xF00D)


def test_null_handle_return_is_none(engine):
    engine.register_method("Node", "get_parent", 11, lambda instance, args, result: None)
    plan = compile_plan(descriptor("get_parent", [], "Node", hash=11))
    assert CallDispatcher().call(plan, instance=1) is None


def test_builtin_value_argument_and_return(engine):
    seen = []

    def translate(instance, args, result):
        seen.append(ctypes.string_at(arg_pointer(args, 0), 8))
        ctypes.memmove(result, b"\x01" * 8, 8)

    engine.register_method("Node2D", "translate", 12, translate)
    plan = compile_plan(descriptor("translate", [("offset", "Vector2")], "Vector2", hash=12), "Node2D")

    offset = OpaqueValue("Vector2", 8, (ctypes.c_uint8 * 8)(*range(8)))
    moved = CallDispatcher().call(plan, instance=1, args=(offset,))
    assert seen == [bytes(range(8))]
    assert moved == OpaqueValue("Vector2", 8, (ctypes.c_uint8 * 8)(*([1] * 8)))


def test_typed_array_return(engine):
    engine.register_method("Node", "get_children", 13,
                           lambda instance, args, result: ctypes.memmove(result, b"\x02" * 8, 8))
    plan = compile_plan(descriptor("get_children", [], "typedarray::Node", hash=13))
    children = CallDispatcher().call(plan, instance=1)
    assert isinstance(children, TypedArrayValue)
    assert children.element == "Node"
    assert children.to_bytes() == b"\x02" * 8


def test_variant_argument_and_return_on_fixed_arity(engine):
    seen = []

    def echo(instance, args, result):
        seen.append(engine.load(arg_pointer(args, 0)))
        engine.store(result, GType.INT, 11)

    engine.register_method("Node", "echo", 14, echo)
    plan = compile_plan(descriptor("echo", [("value", "Variant")], "Variant", hash=14))

    result = CallDispatcher().call(plan, instance=1, args=(9,))
    assert seen == [(GType.INT, 9)]
    assert engine.live_variants == 1
    with result:
        assert result.to_int() == 11
    assert engine.live_variants == 0

    with Variant("kept") as held:
        CallDispatcher().call(plan, instance=1, args=(held,)).destroy()
        assert held.is_alive
        assert seen[-1] == (GType.STRING, "kept")


def test_vararg_pointer_array_matches_extra_arguments(engine):
    seen = []

    def call(instance, args, arg_count, result):
        values = [engine.load(arg_pointer(args, index))[1] for index in range(arg_count)]
        seen.append((arg_count, values, engine.live_variants))
        engine.store(result, GType.INT, arg_count)

    engine.register_method("Object", "call", 456, call)
    plan = compile_plan(descriptor("call", [], "Variant", hash=456, is_vararg=True), "Object")
    dispatcher = CallDispatcher()

    for extras in [(), ("one",), (1, 2.5, True, "four")]:
        with dispatcher.call(plan, instance=1, extra_args=extras) as result:
            assert result.to_int() == len(extras)
        assert engine.live_variants == 0
        assert engine.live_strings == 0

    assert [entry[0] for entry in seen] == [0, 1, 4]
    assert seen[1][1] == ["one"]
    assert seen[2][1] == [1, 2.5, True, "four"]
    # scratch Variants stay alive for the duration of the call
    assert seen[2][2] == 4


def test_vararg_declared_arguments_and_unboxed_return(engine):
    seen = []

    def emit(instance, args, arg_count, result):
        seen.append([engine.load(arg_pointer(args, index))[1] for index in range(arg_count)])
        engine.store(result, GType.INT, 3)

    engine.register_method("Object", "emit", 15, emit)
    plan = compile_plan(
        descriptor("emit", [("signal", "String")], "enum::Node.ProcessMode", hash=15, is_vararg=True),
        "Object",
    )
    mode = CallDispatcher(enum_types={"Node.ProcessMode": ProcessMode}).call(
        plan, instance=1, args=("done",), extra_args=(7,))
    assert mode is ProcessMode.ALWAYS
    assert seen == [["done", 7]]
    assert engine.live_variants == 0


@pytest.mark.parametrize(
    "return_type, gtype, value, expected",
    [
        ("int", GType.INT, 8, 8),
        ("float", GType.FLOAT, 0.5, 0.5),
        ("bool", GType.BOOL, True, True),
        ("String", GType.STRING, "text", "text"),
        ("Node", GType.OBJECT, 0xAB, EngineObject("Node", 0xAB)),
        ("Node", GType.NIL, None, None),
    ],
)
def test_vararg_returns_are_unboxed(engine, return_type, gtype, value, expected):
    engine.register_method("Object", "callv", 16,
                           lambda instance, args, arg_count, result: engine.store(result, gtype, value))
    plan = compile_plan(descriptor("callv", [], return_type, hash=16, is_vararg=True), "Object")
    assert CallDispatcher().call(plan, instance=1) == expected
    assert engine.live_variants == 0
    assert engine.live_strings == 0


def test_vararg_call_error_is_logged(engine):
    engine.register_method("Object", "call", 17, lambda instance, args, arg_count, result: 2)
    plan = compile_plan(descriptor("call", [], hash=17, is_vararg=True), "Object")

    with patch.object(call_dispatcher.logger, "warning") as warning:
        assert CallDispatcher().call(plan, instance=1, extra_args=(1,)) is None
    warning.assert_called_once()
    assert warning.call_args.args[2] == 2


def test_scratch_values_are_released_when_the_call_fails(engine):
    def explode(instance, args, arg_count, result):
        raise RuntimeError("engine failure")

    engine.register_method("Object", "call", 18, explode)
    plan = compile_plan(descriptor("call", [("name", "String")], hash=18, is_vararg=True), "Object")
    with pytest.raises(RuntimeError):
        CallDispatcher().call(plan, instance=1, args=("a",), extra_args=(1, "b"))
    assert engine.live_variants == 0
    assert engine.live_strings == 0


def test_variant_result_is_released_when_the_call_fails(engine):
    def write_then_fail(instance, args, result):
        engine.store(result, GType.INT, 1)
        raise RuntimeError("engine failure")

    engine.register_method("Node", "get_meta", 19, write_then_fail)
    plan = compile_plan(descriptor("get_meta", [("name", "String")], "Variant", hash=19))
    with pytest.raises(RuntimeError):
        CallDispatcher().call(plan, instance=1, args=("key",))
    assert engine.live_variants == 0
    assert engine.live_strings == 0


def test_string_result_is_released_when_the_call_fails(engine):
    def write_then_fail(instance, args, result):
        engine.new_string(result, "partial")
        raise RuntimeError("engine failure")

    engine.register_method("Node", "get_name", 20, write_then_fail)
    plan = compile_plan(descriptor("get_name", [], "String", hash=20))
    with pytest.raises(RuntimeError):
        CallDispatcher().call(plan, instance=1)
    assert engine.live_strings == 0


def test_unwritten_result_is_released_when_the_call_fails(engine):
    def fail(instance, args, arg_count, result):
        raise RuntimeError("engine failure")

    engine.register_method("Object", "call", 21, fail)
    plan = compile_plan(descriptor("call", [], "Variant", hash=21, is_vararg=True), "Object")
    with pytest.raises(RuntimeError):
        CallDispatcher().call(plan, instance=1, extra_args=("a",))
    assert engine.live_variants == 0
    assert engine.live_strings == 0


def test_vararg_plain_enum_argument_is_boxed_as_its_value(engine):
    seen = []

    def pan(instance, args, arg_count, result):
        seen.append([engine.load(arg_pointer(args, index)) for index in range(arg_count)])

    engine.register_method("Object", "pan", 22, pan)
    plan = compile_plan(
        descriptor("pan", [("channel", "enum::Channel")], hash=22, is_vararg=True), "Object")
    CallDispatcher().call(plan, instance=1, args=(Channel.RIGHT,), extra_args=(Channel.LEFT.value,))
    assert seen == [[(GType.INT, 2), (GType.INT, 1)]]
    assert engine.live_variants == 0


def test_plain_enum_argument_is_copied_as_its_value(engine):
    seen = []

    def set_channel(instance, args, result):
        seen.append(read_arg(args, 0, ctypes.c_int64))

    engine.register_method("Node", "set_channel", 23, set_channel)
    plan = compile_plan(descriptor("set_channel", [("channel", "enum::Channel")], hash=23))
    CallDispatcher().call(plan, instance=1, args=(Channel.LEFT,))
    assert seen == [1]


@pytest.mark.parametrize(
    "return_type, default",
    [("int", 0), ("float", 0.0), ("bool", False), ("String", "")],
)
def test_vararg_call_error_returns_the_typed_default(engine, return_type, default):
    def reject(instance, args, arg_count, result):
        engine.variant_new_nil(result)
        return 2

    engine.register_method("Object", "callv", 24, reject)
    plan = compile_plan(descriptor("callv", [], return_type, hash=24, is_vararg=True), "Object")
    with patch.object(call_dispatcher.logger, "warning"):
        result = CallDispatcher().call(plan, instance=1, extra_args=(1,))
    assert result == default
    assert type(result) is type(default)
    assert engine.live_variants == 0


def test_object_argument_is_a_handle_without_object_in_the_class_set(config, engine):
    seen = []

    def set_owner(instance, args, result):
        seen.append(arg_pointer(args, 0))

    engine.register_method("Node", "set_owner", 25, set_owner)
    compiler = create_compiler(config, ["Node"])
    plan = compiler.compile(descriptor("set_owner", [("owner", "Object")], hash=25),
                            class_name="Node", kind=MethodKind.CLASS)
    assert plan.arguments[0].storage is ArgumentStorage.HANDLE
    CallDispatcher().call(plan, instance=1, args=(EngineObject("Object", 0xBEEF),))
    assert seen == [0xBEEF]


def test_virtual_plan_returns_default_without_calling(engine):
    plan = compile_plan(descriptor("_get_count", [], "int", is_virtual=True))
    assert CallDispatcher().call(plan, instance=1) == 0
    assert engine.calls == []


def test_utility_function_call(engine):
    seen = []

    def absi(result, args, arg_count):
        seen.append(arg_count)
        ctypes.c_int64.from_address(result).value = abs(read_arg(args, 0, ctypes.c_int64))

    engine.register_utility("absi", 2157319888, absi)
    plan = compile_plan(descriptor("absi", [("x", "int")], "int", hash=2157319888),
                        class_name=None, kind=MethodKind.UTILITY)
    dispatcher = CallDispatcher()

    assert dispatcher.call(plan, args=(-4,)) == 4
    assert dispatcher.call(plan, args=(6,)) == 6
    assert seen == [1, 1]
    assert engine.utility_lookups["absi"] == 1


def test_vararg_utility_function(engine):
    printed = []

    def print_(result, args, arg_count):
        printed.append([engine.load(arg_pointer(args, index))[1] for index in range(arg_count)])

    engine.register_utility("print", 2648703342, print_)
    plan = compile_plan(descriptor("print", [("arg1", "Variant")], hash=2648703342, is_vararg=True),
                        class_name=None, kind=MethodKind.UTILITY)
    assert CallDispatcher().call(plan, args=("a",), extra_args=(1, 2)) is None
    assert printed == [["a", 1, 2]]
    assert engine.calls[-1] == ("utility", "print", 3)
    assert engine.live_variants == 0


def test_missing_utility_is_an_invariant_violation(engine):
    plan = compile_plan(descriptor("nope", [], hash=1), class_name=None, kind=MethodKind.UTILITY)
    with pytest.raises(InvariantViolation):
        CallDispatcher().call(plan)
