"""
Impact Geography
================
Flat-earth helpers used by the impact animation: the debris particle batch,
projection of (angle, distance) offsets onto lat/lng, and the opacity ramps of
the shockwave rings and particles.

The projection uses a constant 111 km per degree of latitude and scales the
longitude offset by cos(lat0), floored near the poles. It is accurate enough
for a few kilometres around the anchor, which is all the animation ever
covers.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence, TYPE_CHECKING

import numpy as np

from impactviz.config import (
    DEFAULT_CRATER_RADIUS_M,
    METERS_PER_DEGREE,
    MIN_LNG_SCALE,
    PARTICLE_MAX_DISTANCE_M,
    RING_FRACTIONS,
    SHOCKWAVE_FADE_RADIUS_M,
)
from impactviz.model.state import LatLng

if TYPE_CHECKING:
    import numpy.typing as npt


@dataclass
class Particle:
    id: int
    angle_degrees: float
    distance_meters: float = 0.0


@dataclass(frozen=True)
class Ring:
    radius: float
    opacity: float


@dataclass(frozen=True)
class ParticlePosition:
    id: int
    lat: float
    lng: float
    opacity: float


@dataclass(frozen=True)
class ZoneRadii:
    epicenter: float
    severe: float
    impact: float


def create_particle_batch(count: int) -> list[Particle]:
    """Create ``count`` particles at the anchor, with evenly spaced headings."""
    if count <= 0:
        return []
    angles = np.linspace(0.0, 360.0, num=count, endpoint=False)
    return [Particle(id=i, angle_degrees=float(a)) for i, a in enumerate(angles)]


def _lng_scale(lat0: float) -> float:
    return max(MIN_LNG_SCALE, math.cos(math.radians(lat0)))


def offset_location(anchor: LatLng, angle_degrees: float, distance_meters: float) -> LatLng:
    """Move ``distance_meters`` from ``anchor`` along a compass heading (0 = north, 90 = east)."""
    lat0, lng0 = anchor
    theta = math.radians(angle_degrees)
    lat = lat0 + distance_meters * math.cos(theta) / METERS_PER_DEGREE
    lng = lng0 + distance_meters * math.sin(theta) / (METERS_PER_DEGREE * _lng_scale(lat0))
    return lat, lng


def offset_locations(
    anchor: LatLng,
    angles_degrees: npt.ArrayLike,
    distances_meters: npt.ArrayLike,
) -> npt.NDArray[np.float64]:
    """Vectorised :func:`offset_location`. Returns an (N, 2) array of (lat, lng)."""
    lat0, lng0 = anchor
    theta = np.radians(np.asarray(angles_degrees, dtype=np.float64))
    dist = np.asarray(distances_meters, dtype=np.float64)
    lat = lat0 + dist * np.cos(theta) / METERS_PER_DEGREE
    lng = lng0 + dist * np.sin(theta) / (METERS_PER_DEGREE * _lng_scale(lat0))
    return np.column_stack((lat, lng))


def ring_opacity(shockwave_radius: float) -> float:
    return max(0.0, 1.0 - shockwave_radius / SHOCKWAVE_FADE_RADIUS_M)


def shockwave_rings(shockwave_radius: float) -> list[Ring]:
    """The concentric rings drawn for a given front radius; all share one opacity."""
    opacity = ring_opacity(shockwave_radius)
    return [Ring(radius=shockwave_radius * f, opacity=opacity) for f in RING_FRACTIONS]


def particle_opacity(distance_meters: float) -> float:
    return min(1.0, max(0.0, 1.0 - distance_meters / PARTICLE_MAX_DISTANCE_M))


def particle_positions(anchor: LatLng, particles: Sequence[Particle]) -> list[ParticlePosition]:
    if not particles:
        return []
    coords = offset_locations(
        anchor,
        [p.angle_degrees for p in particles],
        [p.distance_meters for p in particles],
    )
    return [
        ParticlePosition(id=p.id, lat=float(lat), lng=float(lng), opacity=particle_opacity(p.distance_meters))
        for p, (lat, lng) in zip(particles, coords)
    ]


def zone_radii(crater_radius: Optional[float]) -> ZoneRadii:
    """Static zones around the impact point; a missing crater radius uses the default."""
    valid = isinstance(crater_radius, (int, float)) and crater_radius > 0
    r = float(crater_radius) if valid else DEFAULT_CRATER_RADIUS_M
    return ZoneRadii(epicenter=r / 2.0, severe=r, impact=r * 2.0)
