"""
Impact Animation Controller
===========================
Finite-state machine playing the impact sequence once per simulation run.

Why is this file needed?
------------------------
1. Sequencing: COUNTDOWN -> FLASH -> SHOCKWAVE -> COOLDOWN -> IDLE, driven by
   a 1 Hz tick, two single-shot delays and a per-frame tick.
2. One-shot guard: a run starts only on a false->true edge of
   ``is_simulating``. The ``armed`` flag is consumed on activation and
   restored only when ``is_simulating`` goes back to false. An edge that
   arrives before a map surface is mounted stays pending and starts the run
   as soon as a surface is attached or the next store change finds one.
3. Cleanup: every timer handle is released on cancel/teardown, whatever the
   current phase. Each phase schedules its timer before notifying, and stops
   as soon as a slot has cancelled the run.

The controller never draws circles itself. It emits an AnimationFrame on every
step and the overlay renderer turns it into map primitives. The FLASH camera
move and colour flash are the only direct surface calls.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from PySide6.QtCore import QObject, Signal

from impactviz.app.state import ParameterStore
from impactviz.config import (
    COUNTDOWN_INTERVAL_MS,
    COUNTDOWN_START,
    FLASH_COLOR,
    FLASH_FADE_MS,
    FLASH_FLY_DURATION_S,
    FLASH_HOLD_MS,
    FLASH_ZOOM,
    PARTICLE_COUNT,
    PARTICLE_GROWTH_M,
    SHOCKWAVE_FRAME_BUDGET,
    SHOCKWAVE_GROWTH_M,
    TOTAL_ANIMATION_MS,
)
from impactviz.controller.scheduler import Scheduler, TimerHandle
from impactviz.model.geo import (
    Particle,
    ParticlePosition,
    Ring,
    create_particle_batch,
    particle_positions,
    shockwave_rings,
)
from impactviz.model.state import LatLng, SessionState
from impactviz.view.surface import MapSurface, RenderSurfaceUnavailable, surface_ready

logger = logging.getLogger(__name__)


class AnimationPhase(Enum):
    IDLE = "idle"
    COUNTDOWN = "countdown"
    FLASH = "flash"
    SHOCKWAVE = "shockwave"
    COOLDOWN = "cooldown"


@dataclass(frozen=True)
class AnimationFrame:
    phase: AnimationPhase
    anchor: Optional[LatLng] = None
    countdown: Optional[int] = None
    shockwave_radius: float = 0.0
    rings: List[Ring] = field(default_factory=list)
    particles: List[ParticlePosition] = field(default_factory=list)


class ImpactAnimationController(QObject):
    phase_changed = Signal(object)
    countdown_changed = Signal(int)
    frame_ready = Signal(object)

    def __init__(
        self,
        store: ParameterStore,
        scheduler: Scheduler,
        surface: Optional[MapSurface] = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._store = store
        self._scheduler = scheduler
        self._surface = surface

        self._phase = AnimationPhase.IDLE
        self._armed = True
        # Rising edge seen while no surface could take the run
        self._pending = False
        # Bumped by activate/cancel; entry steps bail out when a slot changed it
        self._run_id = 0
        self._countdown: Optional[int] = None
        self._anchor: Optional[LatLng] = None
        self._started_at = 0
        self._shockwave_radius = 0.0
        self._frames = 0
        self._particles: List[Particle] = []

        self._countdown_timer: Optional[TimerHandle] = None
        self._flash_timer: Optional[TimerHandle] = None
        self._frame_timer: Optional[TimerHandle] = None
        self._cooldown_timer: Optional[TimerHandle] = None

        self._was_simulating = store.get().view.is_simulating
        self._unsubscribe = store.subscribe(self._on_store_changed)

    # ------------------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------------------

    @property
    def phase(self) -> AnimationPhase:
        return self._phase

    @property
    def countdown(self) -> Optional[int]:
        return self._countdown

    @property
    def armed(self) -> bool:
        return self._armed

    @property
    def pending(self) -> bool:
        """True while a requested run waits for a mounted surface."""
        return self._pending

    @property
    def is_running(self) -> bool:
        return self._phase is not AnimationPhase.IDLE

    @property
    def shockwave_radius(self) -> float:
        return self._shockwave_radius

    @property
    def particles(self) -> List[Particle]:
        return list(self._particles)

    def attach_surface(self, surface: Optional[MapSurface]) -> None:
        self._surface = surface
        self._retry_pending()

    def activate(self) -> bool:
        """Start a run. Returns False when the guard, a running run or a missing surface blocks it."""
        if not self._armed or self.is_running:
            logger.debug("Activation ignored: a run is in progress or already consumed.")
            return False
        if not surface_ready(self._surface):
            logger.warning("Activation deferred: no map surface available.")
            self._pending = True
            return False

        self._armed = False
        self._pending = False
        self._run_id += 1
        run = self._run_id
        self._anchor = self._store.get().view.resolved_focus()
        self._started_at = self._scheduler.now_ms()
        logger.info(f"Impact animation started at {self._anchor[0]:.4f}, {self._anchor[1]:.4f}")

        self._countdown = COUNTDOWN_START
        self._countdown_timer = self._scheduler.every(COUNTDOWN_INTERVAL_MS, self._on_countdown_tick)
        if not self._set_phase(AnimationPhase.COUNTDOWN, run):
            return True
        self.countdown_changed.emit(self._countdown)
        if self._current(run):
            self._emit_frame()
        return True

    def cancel(self) -> None:
        """Stop every pending callback and return to IDLE. Safe to call repeatedly."""
        self._run_id += 1
        self._release_timers()
        self._particles = []
        self._shockwave_radius = 0.0
        self._frames = 0
        self._countdown = None
        if self._phase is not AnimationPhase.IDLE:
            logger.info(f"Impact animation cancelled during {self._phase.value}.")
            if self._set_phase(AnimationPhase.IDLE, self._run_id):
                self._emit_frame()

    def teardown(self) -> None:
        self._pending = False
        self.cancel()
        self._unsubscribe()
        self._surface = None

    # ------------------------------------------------------------------------------
    # Store
    # ------------------------------------------------------------------------------

    def _on_store_changed(self, state: SessionState) -> None:
        simulating = state.view.is_simulating
        if simulating == self._was_simulating:
            self._retry_pending()
            return
        self._was_simulating = simulating
        if simulating:
            self.activate()
        else:
            self._pending = False
            self.cancel()
            self._armed = True

    def _retry_pending(self) -> None:
        if self._pending and self._was_simulating and surface_ready(self._surface):
            logger.info("Map surface available, starting the deferred impact animation.")
            self.activate()

    # ------------------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------------------

    def _on_countdown_tick(self) -> None:
        run = self._run_id
        self._countdown = max(0, (self._countdown or 0) - 1)
        self.countdown_changed.emit(self._countdown)
        if not self._current(run):
            return
        if self._countdown > 0:
            self._emit_frame()
            return
        self._cancel_timer("_countdown_timer")
        self._enter_flash()

    def _enter_flash(self) -> None:
        run = self._run_id
        # Shockwave starts while the flash is still fading
        self._flash_timer = self._scheduler.after(FLASH_HOLD_MS, self._enter_shockwave)
        self._particles = create_particle_batch(PARTICLE_COUNT)
        if not self._set_phase(AnimationPhase.FLASH, run):
            return
        lat, lng = self._anchor
        self._call_surface("fly_to", lat, lng, FLASH_ZOOM, FLASH_FLY_DURATION_S)
        self._call_surface("flash", FLASH_COLOR, FLASH_FADE_MS)
        if self._current(run):
            self._emit_frame()

    def _enter_shockwave(self) -> None:
        run = self._run_id
        self._flash_timer = None
        self._shockwave_radius = 0.0
        self._frames = 0
        self._frame_timer = self._scheduler.each_frame(self._on_frame)
        self._set_phase(AnimationPhase.SHOCKWAVE, run)

    def _on_frame(self) -> None:
        run = self._run_id
        self._frames += 1
        self._shockwave_radius += SHOCKWAVE_GROWTH_M
        for p in self._particles:
            p.distance_meters += PARTICLE_GROWTH_M
        self._emit_frame()
        if not self._current(run):
            return

        if self._frames >= SHOCKWAVE_FRAME_BUDGET:
            self._cancel_timer("_frame_timer")
            self._enter_cooldown()

    def _enter_cooldown(self) -> None:
        run = self._run_id
        self._particles = []
        self._shockwave_radius = 0.0
        elapsed = self._scheduler.now_ms() - self._started_at
        remaining = max(0, TOTAL_ANIMATION_MS - elapsed)
        self._cooldown_timer = self._scheduler.after(remaining, self._finish)
        logger.debug(f"Shockwave finished after {elapsed} ms, cooling down for {remaining} ms.")
        if self._set_phase(AnimationPhase.COOLDOWN, run):
            self._emit_frame()

    def _finish(self) -> None:
        run = self._run_id
        self._cooldown_timer = None
        self._countdown = None
        logger.info("Impact animation finished.")
        if self._set_phase(AnimationPhase.IDLE, run):
            self._emit_frame()

    # ------------------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------------------

    def _current(self, run: int) -> bool:
        return run == self._run_id

    def _set_phase(self, phase: AnimationPhase, run: int) -> bool:
        """Enter ``phase`` and notify. Returns False when a slot cancelled or restarted the run."""
        self._phase = phase
        self.phase_changed.emit(phase)
        return self._current(run)

    def _emit_frame(self) -> None:
        animating = self._phase is AnimationPhase.SHOCKWAVE and self._frames > 0
        frame = AnimationFrame(
            phase=self._phase,
            anchor=self._anchor if self._phase is not AnimationPhase.IDLE else None,
            countdown=self._countdown if self._phase is AnimationPhase.COUNTDOWN else None,
            shockwave_radius=self._shockwave_radius,
            rings=shockwave_rings(self._shockwave_radius) if animating else [],
            particles=particle_positions(self._anchor, self._particles) if animating else [],
        )
        self.frame_ready.emit(frame)

    def _call_surface(self, method: str, *args) -> None:
        if not surface_ready(self._surface):
            logger.debug(f"Skipping '{method}': map surface not mounted.")
            return
        try:
            getattr(self._surface, method)(*args)
        except RenderSurfaceUnavailable:
            logger.debug(f"Skipping '{method}': map surface went away.")
        except Exception:
            logger.exception(f"Map surface call '{method}' failed")

    def _cancel_timer(self, attr: str) -> None:
        handle: Optional[TimerHandle] = getattr(self, attr)
        if handle is not None:
            handle.cancel()
            setattr(self, attr, None)

    def _release_timers(self) -> None:
        for attr in ("_countdown_timer", "_flash_timer", "_frame_timer", "_cooldown_timer"):
            self._cancel_timer(attr)
