class PyFrameError(Exception):
    """Base exception for py-frame library."""
    pass


class StructuralError(PyFrameError, ValueError):
    """Raised when a Frame or column group violates its structural invariants."""
    pass


class PyFrameTypeError(PyFrameError, TypeError):
    """Raised for invalid types in API calls."""
    pass


class PyFrameIndexError(PyFrameError, IndexError):
    """Raised for invalid row indexing operations."""
    pass


class ResolutionError(PyFrameError, KeyError):
    """
    Raised when a selection does not resolve to exactly one column where
    exactly one was required.
    """

    def __init__(self, message, selector=None, path=None):
        super().__init__(message)
        self.message = message
        self.selector = selector
        self.path = path

    def __str__(self):
        # KeyError quotes its argument; keep the plain message
        return self.message


class ColumnNotFoundError(ResolutionError):
    """No such element: the selection resolved to zero columns."""
    pass


class AmbiguousColumnError(ResolutionError):
    """The selection resolved to more than one column."""
    pass


class TypeConflictError(PyFrameError, TypeError):
    """
    Raised by marker synthesis when a column shared with a base marker has an
    incompatible kind or type. Signals corrupt upstream schemas.
    """

    def __init__(self, column_name, target, base, marker_name=None):
        where = f" marker '{marker_name}'" if marker_name else ""
        if target is None:
            detail = f"missing from the target, base declares {base!r}"
        else:
            detail = f"{target!r} cannot override {base!r}"
        super().__init__(f"Column '{column_name}' conflicts with base{where}: {detail}")
        self.column_name = column_name
        self.target = target
        self.base = base
        self.marker_name = marker_name
