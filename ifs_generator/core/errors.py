"""
Exception hierarchy for iterated function systems.

Construction errors are raised while an engine is being built and leave no
partial engine behind. Once an engine exists, iteration cannot fail.
"""


class IfsError(Exception):
    """Base class for all IFS errors."""


class SystemDefinitionError(IfsError, ValueError):
    """The system description itself is invalid."""


class EmptySystemError(SystemDefinitionError):
    """The system contains no contraction mappings."""

    def __init__(self, message: str = "Given system is of length zero."):
        super().__init__(message)


class MalformedMapError(SystemDefinitionError):
    """A row does not describe a valid affine map."""

    def __init__(self, message: str, index=None):
        self.index = index
        if index is not None:
            message = f"Map {index}: {message}"
        super().__init__(message)


class InconsistentRowLengthError(SystemDefinitionError):
    """The system mixes weighted (7 value) and unweighted (6 value) rows."""

    def __init__(self, weighted_index: int, unweighted_index: int):
        self.weighted_index = weighted_index
        self.unweighted_index = unweighted_index
        super().__init__(
            f"Malformed system: map {weighted_index} carries a weight but "
            f"map {unweighted_index} does not. Either all maps are weighted or none are."
        )


class NoIterationYetError(IfsError, RuntimeError):
    """A color was requested before any map had been chosen."""

    def __init__(self, message: str = "No map has been chosen yet; call iterate() first."):
        super().__init__(message)
