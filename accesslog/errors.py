"""Error types for the token/format engine.

Registration errors are returned to the caller as values; compile errors are raised.
"""


class AccessLogError(Exception):
    """Base for every accesslog error."""


class RegistrationError(AccessLogError):
    """A simplifier or format could not be registered."""


class AlreadyRegisteredError(RegistrationError):
    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"{kind} already registered with name {name!r}")


class MissingSimplifierError(RegistrationError):
    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(f"Some simplifiers are missing: {', '.join(self.missing)}")


class MalformedTokenError(RegistrationError):
    def __init__(self, text: str):
        self.text = text
        super().__init__(f"Malformed token: {text!r}")


class CompileError(AccessLogError):
    """A format or single token could not be evaluated."""


class UnknownFormatError(CompileError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"No such format registered {name!r}")


class SimplifierNotFoundError(CompileError):
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"No such simplifier {key!r}")


class ConfigurationError(AccessLogError):
    """Middleware options could not be turned into a working logger."""
