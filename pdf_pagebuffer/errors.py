"""Exceptions raised by the page buffering engine."""


class PageStateError(RuntimeError):
    """Raised when an operation is attempted in a state that cannot support it.

    Examples: resolving a y value before any page exists, drawing on a
    logical page that has already been committed, committing a page twice.
    """


class ImageEmbeddingError(RuntimeError):
    """Raised when a raster image cannot be embedded into the output document.

    The underlying exception is always available as ``__cause__``.
    """
