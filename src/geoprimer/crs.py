# src/geoprimer/crs.py

"""
This module wraps the pyproj CRS registry.

CRS identifiers are compared by their resolved authority code ("EPSG:4326"),
never by semantic equivalence of the projection parameters.
"""

import logging
from typing import Any, Optional

from pyproj import CRS, Transformer
from pyproj.exceptions import CRSError, ProjError

from geoprimer.exceptions import UnknownCRS, TransformUnavailable, CRSMismatch

log = logging.getLogger(__name__)

__all__ = [
    "resolve_crs",
    "crs_code",
    "same_crs",
    "ensure_same_crs",
    "is_geographic",
    "transform_path"
]

def resolve_crs(code: Any) -> CRS:
    """
    Resolve any user CRS input to a pyproj CRS.

    Args:
        code: EPSG integer, "AUTH:CODE" string, WKT/PROJ string, pyproj CRS
              or rasterio CRS.

    Returns:
        CRS: The resolved pyproj CRS.

    Raises:
        UnknownCRS: If the registry cannot resolve the input.
    """
    if code is None:
        raise UnknownCRS("CRS identifier is None")
    if isinstance(code, CRS):
        return code

    # rasterio CRS objects expose to_wkt() and are not accepted directly
    if not isinstance(code, (str, int, dict, tuple)) and hasattr(code, "to_wkt"):
        code = code.to_wkt()

    try:
        return CRS.from_user_input(code)
    except CRSError as e:
        raise UnknownCRS(f"Cannot resolve CRS '{code}': {e}") from e

def crs_code(crs: Any) -> Optional[str]:
    """
    Return the comparable identifier of a CRS: 'AUTH:CODE' when the CRS has an
    authority code, its WKT text otherwise. None stays None.
    """
    if crs is None:
        return None
    resolved = resolve_crs(crs)
    authority = resolved.to_authority()
    if authority is not None:
        return f"{authority[0]}:{authority[1]}"
    return resolved.to_wkt()

def same_crs(a: Any, b: Any) -> bool:
    return crs_code(a) == crs_code(b)

def ensure_same_crs(a: Any, b: Any, operation: str = "operation"):
    """Raise CRSMismatch unless both inputs carry the same CRS code."""
    code_a, code_b = crs_code(a), crs_code(b)
    if code_a is None or code_b is None:
        raise CRSMismatch(f"{operation} requires both inputs to have a CRS (got {code_a} and {code_b})")
    if code_a != code_b:
        raise CRSMismatch(
            f"{operation} requires inputs in the same CRS, got {code_a} and {code_b}. "
            f"Reproject one of them first."
        )

def is_geographic(crs: Any) -> bool:
    """True when the CRS coordinates are angular (degrees)."""
    return resolve_crs(crs).is_geographic

def transform_path(source: Any, target: Any) -> Transformer:
    """
    Build the transformer from source to target CRS in lon/lat (x, y) order.

    Raises:
        UnknownCRS: If either CRS cannot be resolved.
        TransformUnavailable: If pyproj finds no operation between them.
    """
    src = resolve_crs(source)
    dst = resolve_crs(target)
    try:
        transformer = Transformer.from_crs(src, dst, always_xy=True)
    except ProjError as e:
        raise TransformUnavailable(
            f"No transformation available from {crs_code(src)} to {crs_code(dst)}: {e}"
        ) from e

    log.debug(f"Resolved transform {crs_code(src)} -> {crs_code(dst)}: {transformer.description}")
    return transformer
