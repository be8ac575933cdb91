"""Exception types raised by benchdesign.

Every error a caller can act on derives from BenchError, so a single
``except BenchError`` catches problems with a design or a build request.
EvaluationFailure is the exception: it is recorded per method and never
escapes a build.
"""


class BenchError(ValueError):
    """Base class for benchdesign errors."""


class ConfigurationError(BenchError):
    """A build request failed a pre-evaluation check."""


class DefinitionError(BenchError):
    """A method definition or mutation is invalid."""


class UnknownLabel(DefinitionError, KeyError):
    """The named method is not defined in the design."""

    def __str__(self):
        # KeyError would otherwise wrap the message in quotes
        return str(self.args[0]) if self.args else ""


class InvalidVariantSpec(DefinitionError):
    """Variants passed to expand_method do not match the requested shape."""


class LabelCollision(DefinitionError):
    """A method label is already taken, or given twice."""


class AssemblyInconsistency(BenchError):
    """Method outputs cannot be combined into a table."""


class EvaluationFailure(Exception):
    """A single method failed while being resolved or evaluated.

    Instances are attached to the method's outcome and logged; they are
    not raised past the task that produced them. Only text is kept so the
    failure can travel back from a worker process.
    """

    def __init__(self, label, error_type, message, details=None):
        self.label = label
        self.error_type = error_type
        self.message = message
        self.details = details
        super().__init__(label, error_type, message, details)

    @classmethod
    def from_exception(cls, label, error, details=None):
        return cls(label, type(error).__name__, str(error), details)

    def __str__(self):
        return f"method '{self.label}' failed: {self.error_type}: {self.message}"
