from __future__ import annotations

import math
from typing import Optional

import pyvista as pv
from pyvistaqt import QtInteractor
from PySide6.QtWidgets import QVBoxLayout, QWidget

from impactviz.app.state import ParameterStore
from impactviz.controller.scheduler import Scheduler, TimerHandle
from impactviz.model.state import SessionState
from impactviz.model.visuals import VisualAttributes, rotation_angle

SPHERE_RESOLUTION = 10
# Slight axial tilt so the spin is readable
BODY_TILT_DEG = -17.0
LIGHT_COLOR = "#EBE0C1"


def build_body_mesh(visual_radius: float) -> pv.PolyData:
    """Low-poly sphere; the faceting keeps the rotation visible."""
    return pv.Sphere(
        radius=visual_radius,
        center=(0.0, 0.0, 0.0),
        theta_resolution=SPHERE_RESOLUTION,
        phi_resolution=SPHERE_RESOLUTION,
    )


def body_orientation(elapsed_s: float, speed: float) -> tuple[float, float, float]:
    """Actor orientation (deg) for the given elapsed time: spin about Y, fixed tilt about Z."""
    return 0.0, math.degrees(rotation_angle(elapsed_s, speed)) % 360.0, BODY_TILT_DEG


class MeteoroidPreview(QWidget):
    """
    PyVista/Qt preview of the impacting body.

    Radius, colour and the PBR metallic/roughness follow the store. The spin is
    recomputed every frame from the elapsed time, so a velocity edit changes
    the rate immediately without any accumulated angle.
    """
    def __init__(self, store: ParameterStore, scheduler: Scheduler, parent: QWidget | None = None) -> None:
        super().__init__(parent=parent)
        self._store = store
        self._scheduler = scheduler

        layout = QVBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)
        self.setLayout(layout)

        self.plotter = QtInteractor(self)
        self.plotter.set_background("black")
        layout.addWidget(self.plotter.interactor)

        attrs = store.visual_attributes()
        self._radius = attrs.visual_radius
        self._body = build_body_mesh(self._radius)
        self._actor = self.plotter.add_mesh(
            self._body,
            color=attrs.color,
            pbr=True,
            metallic=attrs.metalness,
            roughness=attrs.roughness,
            smooth_shading=False,
            show_scalar_bar=False,
        )
        self.plotter.add_light(pv.Light(position=(2.0, 0.0, 5.0), color=LIGHT_COLOR, intensity=1.0))
        self.plotter.camera_position = [(-0.5, 0.0, 6.0), (0.0, 0.0, 0.0), (0.0, 1.0, 0.0)]

        self._started_at = scheduler.now_ms()
        self._frame_timer: Optional[TimerHandle] = scheduler.each_frame(self._on_frame)
        self._unsubscribe = store.subscribe(self._on_store_changed)

    # ------------------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------------------

    def _on_store_changed(self, state: SessionState) -> None:
        self.apply_attributes(self._store.visual_attributes())

    def apply_attributes(self, attrs: VisualAttributes) -> None:
        if attrs.visual_radius != self._radius:
            self._radius = attrs.visual_radius
            self._body.copy_from(build_body_mesh(self._radius))
        prop = self._actor.prop
        prop.color = attrs.color
        prop.metallic = attrs.metalness
        prop.roughness = attrs.roughness
        self.plotter.render()

    def _on_frame(self) -> None:
        elapsed_s = (self._scheduler.now_ms() - self._started_at) / 1000.0
        speed = self._store.visual_attributes().rotation_speed
        self._actor.orientation = body_orientation(elapsed_s, speed)
        self.plotter.render()

    # ------------------------------------------------------------------------------
    # Qt
    # ------------------------------------------------------------------------------

    def shutdown(self) -> None:
        if self._frame_timer is not None:
            self._frame_timer.cancel()
            self._frame_timer = None
        self._unsubscribe()

    def closeEvent(self, event) -> None:
        self.shutdown()
        self.plotter.close()
        super().closeEvent(event)
