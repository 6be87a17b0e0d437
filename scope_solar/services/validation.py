from __future__ import annotations

from typing import List

from scope_solar.errors import InvalidInput
from scope_solar.models.geo import AreaSpec, GeoPoint

MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0
MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0
DEFAULT_MAX_AREA_M2 = 100000.0


def geo_errors(point: GeoPoint) -> List[str]:
    errors: List[str] = []
    if not MIN_LATITUDE <= point.latitude <= MAX_LATITUDE:
        errors.append("Latitude must be between -90 and 90 degrees")
    if not MIN_LONGITUDE <= point.longitude <= MAX_LONGITUDE:
        errors.append("Longitude must be between -180 and 180 degrees")
    return errors


def area_errors(spec: AreaSpec, max_area_m2: float = DEFAULT_MAX_AREA_M2) -> List[str]:
    errors: List[str] = []
    if not spec.value > 0:
        errors.append("Area must be greater than 0")
    elif not spec.square_meters <= max_area_m2:
        errors.append(f"Area is too large (maximum {max_area_m2:,.0f} m²)")
    return errors


def validate_geo(point: GeoPoint) -> None:
    errors = geo_errors(point)
    if errors:
        raise InvalidInput(errors)


def validate_area(spec: AreaSpec, max_area_m2: float = DEFAULT_MAX_AREA_M2) -> None:
    errors = area_errors(spec, max_area_m2)
    if errors:
        raise InvalidInput(errors)


def validate_request(point: GeoPoint, spec: AreaSpec, max_area_m2: float = DEFAULT_MAX_AREA_M2) -> None:
    """Raise a single InvalidInput listing every coordinate and area violation."""
    errors = geo_errors(point) + area_errors(spec, max_area_m2)
    if errors:
        raise InvalidInput(errors)
