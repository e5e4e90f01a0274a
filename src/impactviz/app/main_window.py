"""
Main Application Window
=======================
The desktop container: 3D body preview on the left, impact map on the right.

Why is this file needed?
------------------------
1. Layout: It organizes the two render views side by side.
2. Routing: It connects global actions (Simulate, location presets, marker
   lock) to the session store. Parameter forms live outside this package and
   talk to ``window.session.store`` directly.
"""
import logging

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QActionGroup
from PySide6.QtWidgets import QMainWindow, QSplitter

from impactviz.app.session import SimulationSession
from impactviz.controller.animation import AnimationPhase
from impactviz.controller.scheduler import QtScheduler
from impactviz.model.state import PRESETS
from impactviz.view.body_preview import MeteoroidPreview
from impactviz.view.map_view import MapView

logger = logging.getLogger(__name__)

VISIBLE_APP_NAME = "Impact Visualizer"


class MainWindow(QMainWindow):
    def __init__(self) -> None:
        super().__init__()
        self.setWindowTitle(VISIBLE_APP_NAME)
        self.resize(1400, 900)

        self.scheduler = QtScheduler(parent=self)
        self.map_view = MapView()
        self.session = SimulationSession(scheduler=self.scheduler, surface=self.map_view.surface)
        self.body_view = MeteoroidPreview(self.session.store, self.scheduler)

        # --- SPLITTER (CONTENT AREA) ---
        splitter = QSplitter(Qt.Horizontal)
        splitter.addWidget(self.body_view)
        splitter.addWidget(self.map_view)
        splitter.setSizes([500, 900])
        self.setCentralWidget(splitter)

        # --- ACTIONS & MENUS ---
        self._create_actions()
        self._create_menus()

        # --- SIGNAL CONNECTIONS ---
        self.session.controller.phase_changed.connect(self.on_phase_changed)
        self.session.controller.countdown_changed.connect(self.on_countdown_changed)
        self.session.store.simulating_changed.connect(self.act_simulate.setChecked)

        self.statusBar().showMessage("Ready")

    def _create_actions(self) -> None:
        self.act_simulate = QAction("Simulate", self)
        self.act_simulate.setCheckable(True)
        self.act_simulate.setShortcut("Ctrl+R")
        self.act_simulate.toggled.connect(self.on_simulate_toggled)

        self.act_unlock_marker = QAction("Draggable marker", self)
        self.act_unlock_marker.setCheckable(True)
        self.act_unlock_marker.triggered.connect(self.on_toggle_marker)

        self.location_group = QActionGroup(self)
        self.location_actions: list[QAction] = []
        for preset in PRESETS.values():
            act = QAction(preset.label, self)
            act.setCheckable(True)
            act.setData(preset.key)
            act.triggered.connect(lambda _checked=False, key=preset.key: self.session.store.select_preset(key))
            self.location_group.addAction(act)
            self.location_actions.append(act)

    def _create_menus(self) -> None:
        menu_sim = self.menuBar().addMenu("Simulation")
        menu_sim.addAction(self.act_simulate)

        menu_map = self.menuBar().addMenu("Map")
        menu_loc = menu_map.addMenu("Choose a location")
        for act in self.location_actions:
            menu_loc.addAction(act)
        menu_map.addSeparator()
        menu_map.addAction(self.act_unlock_marker)

        toolbar = self.addToolBar("Main")
        toolbar.addAction(self.act_simulate)
        toolbar.addAction(self.act_unlock_marker)

    # ------------------------------------------------------------------------------
    # Slots
    # ------------------------------------------------------------------------------

    def on_simulate_toggled(self, checked: bool) -> None:
        if checked == self.session.store.get().view.is_simulating:
            return
        if checked:
            self.session.begin_simulation()
        else:
            self.session.end_simulation()

    def on_toggle_marker(self) -> None:
        draggable = self.session.overlay.toggle_marker_draggable()
        self.act_unlock_marker.setChecked(draggable)

    def on_phase_changed(self, phase: AnimationPhase) -> None:
        if phase is AnimationPhase.IDLE:
            self.statusBar().showMessage("Ready")
        elif phase is not AnimationPhase.COUNTDOWN:
            self.statusBar().showMessage(phase.value.capitalize())

    def on_countdown_changed(self, value: int) -> None:
        if value > 0:
            self.statusBar().showMessage(f"Impact in {value}...")

    def closeEvent(self, event) -> None:
        logger.info("Main window closing, tearing down session.")
        self.session.close()
        self.body_view.close()
        self.map_view.close()
        super().closeEvent(event)
