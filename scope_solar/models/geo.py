# scope_solar/models/geo.py
from dataclasses import dataclass
from enum import Enum


class AreaUnit(str, Enum):
    SQUARE_METERS = "m2"
    SQUARE_FEET = "ft2"
    ACRES = "acre"
    HECTARES = "hectare"

    @property
    def to_square_meters(self) -> float:
        return _CONVERSION[self]

    @property
    def symbol(self) -> str:
        return _SYMBOLS[self]


_CONVERSION = {
    AreaUnit.SQUARE_METERS: 1.0,
    AreaUnit.SQUARE_FEET: 0.092903,
    AreaUnit.ACRES: 4046.86,
    AreaUnit.HECTARES: 10000.0,
}

_SYMBOLS = {
    AreaUnit.SQUARE_METERS: "m²",
    AreaUnit.SQUARE_FEET: "ft²",
    AreaUnit.ACRES: "acres",
    AreaUnit.HECTARES: "hectares",
}


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float

    @property
    def formatted(self) -> str:
        ns = "N" if self.latitude >= 0 else "S"
        ew = "E" if self.longitude >= 0 else "W"
        return f"{abs(self.latitude):.4f}°{ns}, {abs(self.longitude):.4f}°{ew}"


@dataclass(frozen=True)
class AreaSpec:
    value: float
    unit: AreaUnit = AreaUnit.SQUARE_METERS

    @property
    def square_meters(self) -> float:
        return self.value * self.unit.to_square_meters

    @classmethod
    def square_meters_of(cls, value: float) -> "AreaSpec":
        return cls(value=value, unit=AreaUnit.SQUARE_METERS)
