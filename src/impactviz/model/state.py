"""
Session State (Data Model)
==========================
This module defines the data structures shared by the running visualizer.

Why is this file needed?
------------------------
1. State Management: It describes the impacting body (SimulationParameters)
   and the transient map/session flags (ViewState) in one place.
2. Immutability: All records are frozen. The store replaces them on every
   mutation, so a reference handed to a subscriber never changes under it.
3. Decoupling: Views read these records; only the store writes new ones.

Classes:
    Material: Composition of the impacting body.
    SimulationParameters: Physical inputs describing the body.
    ViewState: Focus location, simulation flag and crater radius.
    SessionState: The (parameters, view) pair handed out by the store.
    LocationPreset: A named focus coordinate offered to selection widgets.
    MeteoroidRecord: A named parameter set from an external catalogue.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import StrEnum
from typing import Any, Dict, Optional, Tuple, Union

from impactviz.config import DEFAULT_FOCUS_LOCATION

LatLng = Tuple[float, float]


class Material(StrEnum):
    ROCK = "rock"
    IRON = "iron"
    NICKEL = "nickel"

    @classmethod
    def parse(cls, value: Any) -> Union[Material, Any]:
        """Return the matching member, or ``value`` untouched when it names none."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return value
        return value


@dataclass(frozen=True)
class SimulationParameters:
    radius: float = 0.0  # m
    velocity: float = 0.0  # m/s
    entry_angle: float = 0.0  # deg, 0-90
    material: Union[Material, str] = Material.ROCK

    @classmethod
    def field_names(cls) -> frozenset[str]:
        return frozenset(f.name for f in fields(cls))


@dataclass(frozen=True)
class ViewState:
    focus_location: Optional[LatLng] = DEFAULT_FOCUS_LOCATION
    is_simulating: bool = False
    # Supplied by the backend impact calculation, None until then
    crater_radius: Optional[float] = None

    def resolved_focus(self) -> LatLng:
        """Focus location, falling back to the default coordinate when absent."""
        loc = self.focus_location
        if loc is None or len(loc) != 2:
            return DEFAULT_FOCUS_LOCATION
        try:
            return float(loc[0]), float(loc[1])
        except (TypeError, ValueError):
            return DEFAULT_FOCUS_LOCATION


@dataclass(frozen=True)
class SessionState:
    parameters: SimulationParameters = field(default_factory=SimulationParameters)
    view: ViewState = field(default_factory=ViewState)


@dataclass(frozen=True)
class LocationPreset:
    key: str
    label: str
    location: LatLng


PRESETS: Dict[str, LocationPreset] = {
    p.key: p for p in (
        LocationPreset("france", "France", (46.2276, 2.2137)),
        LocationPreset("germany", "Germany", (51.1657, 10.4515)),
        LocationPreset("spain", "Spain", (40.4637, -3.7492)),
    )
}


@dataclass
class MeteoroidRecord:
    """
    A catalogue entry (e.g. a NASA model or a user-saved body).
    Missing numeric fields load as 0, a missing material loads as rock.
    """
    name: str
    radius: Optional[float] = None
    velocity: Optional[float] = None
    entry_angle: Optional[float] = None
    material: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None

    def parameter_update(self) -> Dict[str, Any]:
        return {
            "radius": self.radius or 0.0,
            "velocity": self.velocity or 0.0,
            "entry_angle": self.entry_angle or 0.0,
            "material": Material.parse(self.material or Material.ROCK),
        }

    def location(self) -> Optional[LatLng]:
        # 0.0 is treated as "not supplied", matching the catalogue exports
        if self.lat and self.lng:
            return self.lat, self.lng
        return None

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> MeteoroidRecord:
        return MeteoroidRecord(
            name=data.get("name", "Unnamed"),
            radius=data.get("radius", data.get("radiusMeteroid")),
            velocity=data.get("velocity"),
            entry_angle=data.get("entry_angle", data.get("angle")),
            material=data.get("material"),
            lat=data.get("lat"),
            lng=data.get("lng"),
        )
