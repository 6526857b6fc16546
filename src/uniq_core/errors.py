"""Error kinds raised by the estimator and propagated to the caller."""

from __future__ import annotations


class CardinalityError(Exception):
    """Base class for failures that abort an estimation run."""

    stage = "internal"


class InputUnavailable(CardinalityError):
    """Raised when the input cannot be opened or sized."""

    stage = "input"


class ReadFailure(CardinalityError):
    """Raised when a worker's read fails for a reason other than end-of-input."""

    stage = "read"


class PrecisionMismatch(CardinalityError, ValueError):
    """Raised when merging sketches built with a different number of registers."""

    stage = "merge"


class HashMismatch(PrecisionMismatch):
    """Raised when merging sketches whose registers were filled by different hashes."""


class HashFailure(CardinalityError):
    """Raised when a record cannot be hashed into the 32-bit space."""

    stage = "hash"
