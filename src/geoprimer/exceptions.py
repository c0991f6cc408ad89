# src/geoprimer/exceptions.py

"""
This module defines the exception hierarchy shared by every geoprimer stage.

Every error inherits from GeoPrimerError and carries a stable machine-readable
code. Most classes also inherit from the builtin exception they specialise
(ValueError, KeyError, TypeError, IOError) so callers can catch either.
"""

from typing import Dict

__all__ = [
    "GeoPrimerError",
    "InvalidCoordinate",
    "UnknownCRS",
    "TransformUnavailable",
    "CRSMismatch",
    "UnknownAttribute",
    "TypeMismatch",
    "UnsuitableCRS",
    "EmptyIntersection",
    "RasterIOError",
    "RasterValidationError"
]

class GeoPrimerError(Exception):
    """
    Base class for all geoprimer errors.

    Attributes:
        message (str): Human-readable description.
        code (str): Machine-readable error code (e.g. "CRS_MISMATCH").
    """
    code: str = "GEOPRIMER_ERROR"

    def __init__(self, message: str = ""):
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return self.message

    def to_error_dict(self) -> Dict[str, str]:
        """Structured payload for logging or CLI reporting."""
        return {
            "error": type(self).__name__,
            "code": self.code,
            "message": self.message
        }

class InvalidCoordinate(GeoPrimerError, ValueError):
    """A coordinate is non-numeric or outside the valid lon/lat range."""
    code = "INVALID_COORDINATE"

class UnknownCRS(GeoPrimerError, ValueError):
    """A CRS identifier could not be resolved by the registry."""
    code = "UNKNOWN_CRS"

class TransformUnavailable(GeoPrimerError):
    """No transformation path exists between two CRS."""
    code = "TRANSFORM_UNAVAILABLE"

class CRSMismatch(GeoPrimerError, ValueError):
    """Two inputs of a binary spatial operation are in different CRS."""
    code = "CRS_MISMATCH"

class UnknownAttribute(GeoPrimerError, KeyError):
    """A named attribute column does not exist."""
    code = "UNKNOWN_ATTRIBUTE"

    # KeyError quotes its argument in str(); keep the plain message instead
    def __str__(self) -> str:
        return self.message

class TypeMismatch(GeoPrimerError, TypeError):
    """A comparison was requested between incompatible value types."""
    code = "TYPE_MISMATCH"

class UnsuitableCRS(GeoPrimerError, ValueError):
    """The CRS units make the requested operation meaningless (e.g. buffering in degrees)."""
    code = "UNSUITABLE_CRS"

class EmptyIntersection(GeoPrimerError, ValueError):
    """A geometry does not overlap the raster extent at all."""
    code = "EMPTY_INTERSECTION"

class RasterIOError(GeoPrimerError, IOError):
    """A raster could not be read from or written to disk."""
    code = "RASTER_IO"

class RasterValidationError(GeoPrimerError, ValueError):
    """Raster array or metadata are inconsistent."""
    code = "RASTER_VALIDATION"
