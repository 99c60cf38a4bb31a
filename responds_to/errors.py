"""
Error taxonomy for the conformance checker.

Findings (undefined methods, arity mismatches) are never raised; they are
collected into a Result.  Everything here aborts the operation that raised
it:

  • UnsupportedReceiverKind — receiver shape the resolver does not know
  • ProtocolFailure         — a remote knowledge-source round trip failed
  • MalformedRequest        — oracle received a request it cannot serve
  • ConfigError             — config file unreadable or invalid
  • ClassNotResolved        — reflective oracle found no class for a name
  • RubySyntaxError         — source rejected before checking
"""

from typing import Optional, Tuple


class RespondsToError(Exception):
    """Base class for every process-level failure raised by responds_to."""


class UnsupportedReceiverKind(RespondsToError):
    """A call receiver has a node kind the variable resolver does not handle."""

    def __init__(self, kind: str, text: str = "", point: Optional[Tuple[int, int]] = None):
        self.kind = kind
        self.text = text
        self.point = point
        where = f" at line {point[0]}, column {point[1]}" if point else ""
        super().__init__(f"Unexpected receiver type: {kind} ({text!r}){where}")


class ProtocolFailure(RespondsToError):
    """The oracle could not be reached, or hung up before replying."""


class MalformedRequest(RespondsToError):
    """An oracle request that cannot be dispatched."""


class UnrecognizedOperation(MalformedRequest):
    """An oracle request naming an operation the oracle does not implement."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Unrecognized operation: {operation!r}")


class ConfigError(RespondsToError):
    """Config file could not be read or does not describe a valid config."""


class RubySyntaxError(RespondsToError):
    """The Ruby source does not parse cleanly."""

    def __init__(self, path: str, line: int, column: int):
        self.path = path
        self.line = line
        self.column = column
        super().__init__(f"Syntax error in {path} at line {line}, column {column}")


class ClassNotResolved(RespondsToError, LookupError):
    """No class could be associated with a variable name."""
