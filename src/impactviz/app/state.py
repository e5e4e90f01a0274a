from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable, Mapping, Optional

from PySide6.QtCore import QObject, Signal

from impactviz.model.state import (
    PRESETS,
    Material,
    MeteoroidRecord,
    SessionState,
    SimulationParameters,
    ViewState,
)
from impactviz.model.visuals import VisualAttributes, compute_visual_attributes

logger = logging.getLogger(__name__)

Subscriber = Callable[[SessionState], None]


class ParameterStore(QObject):
    """
    Central state store for one visualizer session.

    Every mutation replaces the frozen state record and emits ``changed``
    synchronously; slots run in the order they were connected. The narrower
    signals are emitted right after ``changed`` for the matching mutation.
    Values are not validated here, the mapping functions clamp them.
    """
    changed = Signal(object)
    parameters_changed = Signal(object)
    focus_changed = Signal(object)
    simulating_changed = Signal(bool)
    crater_radius_changed = Signal(object)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._state = SessionState()

    def get(self) -> SessionState:
        return self._state

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Connect ``callback`` to ``changed``. Returns an idempotent unsubscribe callable."""
        self.changed.connect(callback)
        connected = True

        def unsubscribe() -> None:
            nonlocal connected
            if connected:
                connected = False
                self.changed.disconnect(callback)

        return unsubscribe

    def visual_attributes(self) -> VisualAttributes:
        return compute_visual_attributes(self._state.parameters)

    # ------------------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------------------

    def update_parameters(self, partial: Optional[Mapping[str, Any]] = None, **fields: Any) -> None:
        """Merge the supplied fields into the parameters; other fields keep their value."""
        updates = dict(partial or {})
        updates.update(fields)

        known = SimulationParameters.field_names()
        unknown = [k for k in updates if k not in known]
        if unknown:
            logger.warning(f"Ignoring unknown simulation parameters: {', '.join(sorted(unknown))}")
            for key in unknown:
                del updates[key]

        if "material" in updates:
            updates["material"] = Material.parse(updates["material"])

        params = replace(self._state.parameters, **updates)
        self._commit(replace(self._state, parameters=params))
        self.parameters_changed.emit(params)

    def set_focus_location(self, lat: float, lng: float) -> None:
        view = replace(self._state.view, focus_location=(lat, lng))
        self._commit(replace(self._state, view=view))
        self.focus_changed.emit(view.focus_location)

    def set_simulating(self, simulating: bool) -> None:
        view = replace(self._state.view, is_simulating=bool(simulating))
        self._commit(replace(self._state, view=view))
        self.simulating_changed.emit(view.is_simulating)

    def set_crater_radius(self, radius: Optional[float]) -> None:
        view = replace(self._state.view, crater_radius=radius)
        self._commit(replace(self._state, view=view))
        self.crater_radius_changed.emit(radius)

    # ------------------------------------------------------------------------------
    # Selection helpers
    # ------------------------------------------------------------------------------

    def select_preset(self, key: str) -> None:
        preset = PRESETS[key]
        logger.info(f"Location preset selected: {preset.label}")
        self.set_focus_location(*preset.location)

    def apply_meteoroid_record(self, record: MeteoroidRecord) -> None:
        self.update_parameters(record.parameter_update())
        location = record.location()
        if location is not None:
            self.set_focus_location(*location)
        logger.info(f"Meteoroid loaded: {record.name}")

    def reset(self) -> None:
        self._commit(SessionState())
        logger.info("Session state has been reset.")

    def _commit(self, state: SessionState) -> None:
        self._state = state
        self.changed.emit(state)
