from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import QTimer
from PySide6.QtWebEngineCore import QWebEnginePage
from PySide6.QtWebEngineWidgets import QWebEngineView
from PySide6.QtWidgets import QVBoxLayout, QWidget

from impactviz.view.surface import FoliumMapSurface, parse_drag_message

logger = logging.getLogger(__name__)

REFRESH_INTERVAL_MS = 100


class _MapPage(QWebEnginePage):
    def __init__(self, surface: FoliumMapSurface, parent=None) -> None:
        super().__init__(parent)
        self._surface = surface

    def javaScriptConsoleMessage(self, level, message, line_number, source_id) -> None:
        drop = parse_drag_message(message)
        if drop is not None:
            self._surface.drag_marker(*drop)


class MapView(QWidget):
    """
    Web view showing a FoliumMapSurface.

    The base map is loaded once; after that the scene is pushed into the live
    page with ``runJavaScript``, so camera flights animate and tiles stay put.
    The surface notifies on every change (up to once per animation frame); the
    page is updated at most every REFRESH_INTERVAL_MS.
    """
    def __init__(self, surface: Optional[FoliumMapSurface] = None, parent: QWidget | None = None) -> None:
        super().__init__(parent=parent)
        self.surface = surface or FoliumMapSurface()
        self._map_name: Optional[str] = None
        self._page_ready = False

        layout = QVBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)
        self.setLayout(layout)

        self.web = QWebEngineView(self)
        self.web.setPage(_MapPage(self.surface, self.web))
        self.web.loadFinished.connect(self._on_load_finished)
        layout.addWidget(self.web)

        # init throttle timer
        self._refresh_timer = QTimer(self)
        self._refresh_timer.setSingleShot(True)
        self._refresh_timer.setInterval(REFRESH_INTERVAL_MS)
        self._refresh_timer.timeout.connect(self.refresh)

        self.surface.listeners.append(self._on_surface_changed)
        self.reload()

    def reload(self) -> None:
        """Load a fresh base map at the current camera; the scene follows once it has loaded."""
        self._page_ready = False
        fmap = self.surface.to_map(overlays=False)
        self._map_name = fmap.get_name()
        self.web.setHtml(fmap.get_root().render())

    def _on_load_finished(self, ok: bool) -> None:
        if not ok:
            logger.error("Map page failed to load.")
            return
        self._page_ready = True
        self.refresh()

    def _on_surface_changed(self, _surface: FoliumMapSurface) -> None:
        # Throttle, not debounce: a running animation must still repaint
        if not self._refresh_timer.isActive():
            self._refresh_timer.start()

    def refresh(self) -> None:
        if not self.surface.is_mounted() or not self._page_ready:
            return
        self.web.page().runJavaScript(self.surface.update_script(self._map_name))

    def closeEvent(self, event) -> None:
        self._refresh_timer.stop()
        self.surface.unmount()
        if self._on_surface_changed in self.surface.listeners:
            self.surface.listeners.remove(self._on_surface_changed)
        super().closeEvent(event)
