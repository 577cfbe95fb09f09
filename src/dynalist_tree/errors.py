"""Error types raised by the Dynalist tree client."""


class DynalistError(RuntimeError):
    """Base class for all errors raised by this package."""


class ApiError(DynalistError):
    """The Dynalist API answered with a non-Ok code."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(f"[Dynalist API] {code}: {message}")
        self.code = code
        self.message = message


class NotFoundError(DynalistError, LookupError):
    """A referenced node, parent, target or file is absent from the current snapshot."""


class InvalidArgumentError(DynalistError, ValueError):
    """Caller input was rejected before any request was made."""


class CountMismatchError(DynalistError):
    """The store applied fewer changes than requested; the document may be partially edited."""


class DataIntegrityError(DynalistError):
    """The children graph of a document is not a tree (a cycle was found)."""
