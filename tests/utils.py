import logging

import pytest

from gdmarshal import type_registry
from gdmarshal.descriptor import MethodDescriptor
from gdmarshal.engine import set_engine
from gdmarshal.planner import BindingPolicy, PlanCompiler
from gdmarshal.type_classifier import TypeClassifier
from gdmarshal.utils import load_default_config

from tests.mock_engine import MockEngine

KNOWN_CLASSES = frozenset({"Object", "Node", "Node2D", "Resource"})


def make_classifier(known_classes=KNOWN_CLASSES):
    return TypeClassifier(type_registry.get_builtin_sizes(), known_classes)


def make_compiler(policy=None):
    return PlanCompiler(make_classifier(), policy or BindingPolicy())


def descriptor(name, arguments=(), return_type=None, return_meta=None, **flags):
    """Shorthand for a descriptor built through the JSON entry format."""
    data = {
        "name": name,
        "arguments": [
            {"name": arg[0], "type": arg[1], **({"meta": arg[2]} if len(arg) > 2 else {})}
            for arg in arguments
        ],
    }
    if return_type is not None:
        data["return_value"] = {"type": return_type}
        if return_meta is not None:
            data["return_value"]["meta"] = return_meta
    data.update(flags)
    return MethodDescriptor.from_dict(data)


@pytest.fixture
def config():
    return load_default_config()


@pytest.fixture
def reset_logging():
    yield
    for name in ("gdmarshal", "gdmarshal.plan"):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()
        logger.setLevel(logging.NOTSET)
        logger.propagate = True


@pytest.fixture
def engine():
    mock = MockEngine()
    set_engine(mock)
    yield mock
    set_engine(None)
