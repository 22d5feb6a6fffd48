class GdMarshalError(Exception):
    """Base class for all errors raised by gdmarshal."""


class UnsupportedSignature(GdMarshalError):
    """The method uses a raw C pointer type; skip code generation for it."""

    def __init__(self, method_name: str, type_name: str, position: str):
        self.method_name = method_name
        self.type_name = type_name
        self.position = position
        super().__init__(
            f"unsupported C pointer type '{type_name}' in {position} of '{method_name}'"
        )


class InvariantViolation(GdMarshalError):
    """An upstream contract was broken; this is never a recoverable condition."""


class VariantLifetimeError(InvariantViolation):
    """A Variant payload was destroyed twice or used after destruction."""


class EngineNotInitialized(GdMarshalError):
    """No engine function table has been registered with ``set_engine``."""


class DescriptorValidationError(GdMarshalError):
    """A method descriptor does not match the bundled JSON schema."""
