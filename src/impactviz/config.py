"""
Configuration & Constants
=========================
This module serves as the central registry for the global constants of the
impact visualizer.

Why is this file needed?
------------------------
1. Abstraction: It prevents magic numbers (timings, zoom levels, colours)
   scattered throughout the controller and the renderers.
2. Consistency: The animation phases share one time budget. Keeping the
   numbers side by side makes it obvious that they add up.

Timeline of one run (milliseconds from activation):
    0    COUNTDOWN 3
    3000 FLASH        (3 ticks of COUNTDOWN_INTERVAL_MS)
    3300 SHOCKWAVE    (FLASH_HOLD_MS)
    5220 COOLDOWN     (SHOCKWAVE_FRAME_BUDGET frames of FRAME_INTERVAL_MS)
    6000 IDLE         (TOTAL_ANIMATION_MS)
"""
from typing import Final

# --- Map defaults ---
DEFAULT_FOCUS_LOCATION: Final[tuple[float, float]] = (26.915093, -101.430703)
DEFAULT_CRATER_RADIUS_M: Final[float] = 100_000.0
DEFAULT_MAP_ZOOM: Final[int] = 13
FOCUS_ZOOM: Final[int] = 8
FOCUS_FLY_DURATION_S: Final[float] = 2.0
MAP_TILES_URL: Final[str] = "https://{s}.basemaps.cartocdn.com/dark_all/{z}/{x}/{y}{r}.png"
MAP_TILES_ATTRIBUTION: Final[str] = (
    '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> '
    '&copy; <a href="https://carto.com/attributions">CARTO</a>'
)

# --- Animation timing ---
COUNTDOWN_START: Final[int] = 3
COUNTDOWN_INTERVAL_MS: Final[int] = 1000
FLASH_HOLD_MS: Final[int] = 300
FLASH_FADE_MS: Final[int] = 400
FLASH_COLOR: Final[str] = "#FFF4D6"
FLASH_ZOOM: Final[int] = 13
FLASH_FLY_DURATION_S: Final[float] = 1.5
FRAME_INTERVAL_MS: Final[int] = 16
SHOCKWAVE_FRAME_BUDGET: Final[int] = 120
TOTAL_ANIMATION_MS: Final[int] = 6000

# --- Shockwave geometry ---
SHOCKWAVE_GROWTH_M: Final[float] = 50.0
SHOCKWAVE_FADE_RADIUS_M: Final[float] = 6000.0
RING_FRACTIONS: Final[tuple[float, ...]] = (1.0, 0.75, 0.5, 0.25)
RING_COLOR: Final[str] = "#FF6A00"

# --- Debris particles ---
PARTICLE_COUNT: Final[int] = 24
PARTICLE_GROWTH_M: Final[float] = 25.0
PARTICLE_MAX_DISTANCE_M: Final[float] = 2500.0
PARTICLE_RADIUS_M: Final[float] = 40.0
PARTICLE_COLOR: Final[str] = "#FFB347"

# --- Geography ---
METERS_PER_DEGREE: Final[float] = 111_000.0
# cos(lat) floor for the longitude scale; keeps offsets finite at the poles
MIN_LNG_SCALE: Final[float] = 1e-4
