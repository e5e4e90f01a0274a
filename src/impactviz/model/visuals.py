"""
Visual Mapping
==============
Pure functions translating SimulationParameters into the scalar attributes
consumed by the 3D renderer.

Every function is total: negative, NaN, None or non-numeric input falls into
the "not positive" branch instead of raising.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Tuple

from impactviz.model.state import Material, SimulationParameters

MIN_VISUAL_RADIUS = 0.15
MAX_VISUAL_RADIUS = 2.5
LOG_SCALE = 0.4
MIN_ROTATION_SPEED = 0.1
VELOCITY_DIVISOR = 10.0

MATERIAL_COLORS: dict[Material, str] = {
    Material.ROCK: "#8B4513",  # terracotta
    Material.IRON: "#8B7355",  # oxidized brown
    Material.NICKEL: "#C0C0C0",  # silver
}


@dataclass(frozen=True)
class VisualAttributes:
    visual_radius: float
    rotation_speed: float
    color: str
    metalness: float
    roughness: float


def _coerce_float(value: Any, default: float = 0.0) -> float:
    if value is None:
        return default
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value))
    except (TypeError, ValueError):
        return default


def _resolve_material(material: Any) -> Material:
    parsed = Material.parse(material)
    return parsed if isinstance(parsed, Material) else Material.ROCK


def visual_radius(radius: Any) -> float:
    """
    Scale a physical radius (m) to a scene radius.

    Physical radii span orders of magnitude, so the mapping is logarithmic:
    1 m -> 0.27, 100 m -> 0.95, 1000 m -> 1.35, capped at 2.5.
    """
    r = _coerce_float(radius)
    if not r > 0:
        return MIN_VISUAL_RADIUS
    return min(MIN_VISUAL_RADIUS + LOG_SCALE * math.log10(r + 1.0), MAX_VISUAL_RADIUS)


def rotation_speed(velocity: Any) -> float:
    """Spin rate (rad/s) for a body moving at ``velocity`` m/s; floored at 0.1 once moving."""
    v = _coerce_float(velocity)
    if not v > 0:
        return 0.0
    return max(v / VELOCITY_DIVISOR, MIN_ROTATION_SPEED)


def material_color(material: Any) -> str:
    return MATERIAL_COLORS[_resolve_material(material)]


def material_physical_properties(material: Any) -> Tuple[float, float]:
    """Return (metalness, roughness)."""
    m = _resolve_material(material)
    metalness = 0.8 if m in (Material.IRON, Material.NICKEL) else 0.2
    roughness = 0.9 if m == Material.ROCK else 0.3
    return metalness, roughness


def rotation_angle(elapsed_s: float, speed: float) -> float:
    """Body rotation (rad) about its vertical axis after ``elapsed_s`` seconds."""
    return _coerce_float(elapsed_s) * speed


def compute_visual_attributes(parameters: SimulationParameters) -> VisualAttributes:
    metalness, roughness = material_physical_properties(parameters.material)
    return VisualAttributes(
        visual_radius=visual_radius(parameters.radius),
        rotation_speed=rotation_speed(parameters.velocity),
        color=material_color(parameters.material),
        metalness=metalness,
        roughness=roughness,
    )
