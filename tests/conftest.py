from __future__ import annotations

import pytest
from PySide6.QtCore import QCoreApplication

from impactviz.app.session import SimulationSession
from impactviz.app.state import ParameterStore
from impactviz.controller.scheduler import ManualScheduler
from impactviz.view.surface import RenderSurfaceUnavailable


class RecordingSurface:
    """MapSurface fake that records every call."""

    def __init__(self) -> None:
        self.mounted = True
        self.layers: dict = {}
        self.marker = None
        self.placed = 0
        self.moves: list = []
        self.flights: list = []
        self.views: list = []
        self.flashes: list = []
        self.draggable_calls: list = []

    def _check(self) -> None:
        if not self.mounted:
            raise RenderSurfaceUnavailable("unmounted")

    def is_mounted(self) -> bool:
        return self.mounted

    def set_layer(self, name, circles) -> None:
        self._check()
        self.layers[name] = list(circles)

    def clear_layer(self, name) -> None:
        self._check()
        self.layers.pop(name, None)

    def place_marker(self, marker) -> None:
        self._check()
        self.marker = marker
        self.placed += 1

    def move_marker(self, lat, lng) -> None:
        self._check()
        self.moves.append((lat, lng))

    def set_marker_draggable(self, draggable) -> None:
        self._check()
        self.draggable_calls.append(draggable)

    def fly_to(self, lat, lng, zoom, duration_s) -> None:
        self._check()
        self.flights.append((lat, lng, zoom, duration_s))

    def set_view(self, lat, lng, zoom) -> None:
        self._check()
        self.views.append((lat, lng, zoom))

    def flash(self, color, duration_ms) -> None:
        self._check()
        self.flashes.append((color, duration_ms))


@pytest.fixture(scope="session", autouse=True)
def qt_app():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def store() -> ParameterStore:
    return ParameterStore()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def surface() -> RecordingSurface:
    return RecordingSurface()


@pytest.fixture
def session(scheduler, surface):
    s = SimulationSession(scheduler=scheduler, surface=surface)
    yield s
    s.close()
