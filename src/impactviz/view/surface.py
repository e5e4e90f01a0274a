"""
Map Surfaces
============
Render primitives and the surface protocol the overlay renderer, the camera
adapter and the animation controller draw onto.

A surface is a retained scene: named layers of circles, one marker and a
camera. ``FoliumMapSurface`` keeps that scene in memory. It renders it to a
folium page for snapshots, and to a Leaflet update script (layers, marker,
``flyTo`` camera moves, fading flash) for a page that is already showing.
"""
from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol

import folium

from impactviz.config import (
    DEFAULT_FOCUS_LOCATION,
    DEFAULT_MAP_ZOOM,
    MAP_TILES_ATTRIBUTION,
    MAP_TILES_URL,
)
from impactviz.model.state import LatLng

logger = logging.getLogger(__name__)

DragCallback = Callable[[float, float], None]

DRAG_MESSAGE_PREFIX = "impactviz:dragend:"


class RenderSurfaceUnavailable(RuntimeError):
    """Raised by a surface that is not mounted (closed window, torn-down view)."""


@dataclass(frozen=True)
class CirclePrimitive:
    center: LatLng
    radius: float  # m
    color: str
    fill_color: Optional[str] = None
    fill_opacity: float = 0.2
    opacity: float = 1.0
    weight: float = 2.0
    label: Optional[str] = None


@dataclass
class MarkerPrimitive:
    position: LatLng
    draggable: bool = False
    on_drag_end: Optional[DragCallback] = None
    tooltip: str = ""


@dataclass(frozen=True)
class CameraView:
    center: LatLng
    zoom: float
    duration_s: float = 0.0


@dataclass(frozen=True)
class FlashOverlay:
    color: str
    duration_ms: int
    issued_at: float  # time.monotonic()

    def opacity(self, now: float) -> float:
        if self.duration_ms <= 0:
            return 0.0
        elapsed_ms = (now - self.issued_at) * 1000.0
        return max(0.0, 1.0 - elapsed_ms / self.duration_ms)


class MapSurface(Protocol):
    def is_mounted(self) -> bool: ...

    def set_layer(self, name: str, circles: List[CirclePrimitive]) -> None: ...

    def clear_layer(self, name: str) -> None: ...

    def place_marker(self, marker: MarkerPrimitive) -> None: ...

    def move_marker(self, lat: float, lng: float) -> None: ...

    def set_marker_draggable(self, draggable: bool) -> None: ...

    def fly_to(self, lat: float, lng: float, zoom: float, duration_s: float) -> None: ...

    def set_view(self, lat: float, lng: float, zoom: float) -> None: ...

    def flash(self, color: str, duration_ms: int) -> None: ...


def surface_ready(surface: Optional[MapSurface]) -> bool:
    return surface is not None and surface.is_mounted()


# -------------------------------------------------------------------------------
# Folium
# -------------------------------------------------------------------------------

@dataclass
class _Scene:
    layers: Dict[str, List[CirclePrimitive]] = field(default_factory=dict)
    marker: Optional[MarkerPrimitive] = None
    camera: CameraView = CameraView(center=DEFAULT_FOCUS_LOCATION, zoom=DEFAULT_MAP_ZOOM)
    flash: Optional[FlashOverlay] = None
    # Bumped per camera move / flash so a live page replays each one once
    camera_serial: int = 0
    flash_serial: int = 0


class FoliumMapSurface:
    """
    Retained map scene rendered with folium.

    Layers are drawn in insertion order, so callers create background layers
    first. ``listeners`` are called with the surface after every change, which
    lets a widget schedule a redraw.
    """

    def __init__(self, tiles: str = MAP_TILES_URL, attribution: str = MAP_TILES_ATTRIBUTION) -> None:
        self._tiles = tiles
        self._attribution = attribution
        self._scene = _Scene()
        self._mounted = True
        self.listeners: List[Callable[[FoliumMapSurface], None]] = []

    # ------------------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------------------

    def is_mounted(self) -> bool:
        return self._mounted

    def mount(self) -> None:
        self._mounted = True
        self._changed()

    def unmount(self) -> None:
        self._mounted = False

    def _require_mounted(self) -> None:
        if not self._mounted:
            raise RenderSurfaceUnavailable("Map surface is not mounted.")

    def _changed(self) -> None:
        for listener in list(self.listeners):
            listener(self)

    # ------------------------------------------------------------------------------
    # MapSurface
    # ------------------------------------------------------------------------------

    def set_layer(self, name: str, circles: List[CirclePrimitive]) -> None:
        self._require_mounted()
        self._scene.layers[name] = list(circles)
        self._changed()

    def clear_layer(self, name: str) -> None:
        self._require_mounted()
        if self._scene.layers.pop(name, None) is not None:
            self._changed()

    def place_marker(self, marker: MarkerPrimitive) -> None:
        self._require_mounted()
        self._scene.marker = marker
        self._changed()

    def move_marker(self, lat: float, lng: float) -> None:
        self._require_mounted()
        if self._scene.marker is None:
            return
        self._scene.marker.position = (lat, lng)
        self._changed()

    def set_marker_draggable(self, draggable: bool) -> None:
        self._require_mounted()
        if self._scene.marker is None:
            return
        self._scene.marker.draggable = draggable
        self._changed()

    def fly_to(self, lat: float, lng: float, zoom: float, duration_s: float) -> None:
        self._require_mounted()
        self._scene.camera = CameraView(center=(lat, lng), zoom=zoom, duration_s=duration_s)
        self._scene.camera_serial += 1
        self._changed()

    def set_view(self, lat: float, lng: float, zoom: float) -> None:
        self._require_mounted()
        self._scene.camera = CameraView(center=(lat, lng), zoom=zoom)
        self._scene.camera_serial += 1
        self._changed()

    def flash(self, color: str, duration_ms: int) -> None:
        self._require_mounted()
        self._scene.flash = FlashOverlay(color=color, duration_ms=duration_ms, issued_at=time.monotonic())
        self._scene.flash_serial += 1
        self._changed()

    # ------------------------------------------------------------------------------
    # Inspection & drag relay
    # ------------------------------------------------------------------------------

    @property
    def camera(self) -> CameraView:
        return self._scene.camera

    @property
    def marker(self) -> Optional[MarkerPrimitive]:
        return self._scene.marker

    def layer(self, name: str) -> List[CirclePrimitive]:
        return list(self._scene.layers.get(name, []))

    def layer_names(self) -> List[str]:
        return list(self._scene.layers)

    def drag_marker(self, lat: float, lng: float) -> None:
        """Relay a drag-end reported by the page; ignored while the marker is locked."""
        marker = self._scene.marker
        if marker is None or not marker.draggable:
            return
        marker.position = (lat, lng)
        if marker.on_drag_end is not None:
            marker.on_drag_end(lat, lng)

    # ------------------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------------------

    def to_map(self, overlays: bool = True) -> folium.Map:
        """
        Build a folium map of the scene at the current camera.

        With ``overlays=False`` only the base map is built; a live page then
        draws the scene with :meth:`update_script`.
        """
        camera = self._scene.camera
        fmap = folium.Map(
            location=list(camera.center),
            zoom_start=int(round(camera.zoom)),
            tiles=self._tiles,
            attr=self._attribution,
        )
        if not overlays:
            return fmap

        for name, circles in self._scene.layers.items():
            group = folium.FeatureGroup(name=name)
            for c in circles:
                folium.Circle(
                    location=list(c.center),
                    radius=c.radius,
                    color=c.color,
                    weight=c.weight,
                    opacity=c.opacity,
                    fill=True,
                    fill_color=c.fill_color or c.color,
                    fill_opacity=c.fill_opacity,
                    popup=folium.Popup(c.label) if c.label else None,
                ).add_to(group)
            group.add_to(fmap)

        marker = self._scene.marker
        if marker is not None:
            folium.Marker(
                location=list(marker.position),
                draggable=marker.draggable,
                tooltip=marker.tooltip or None,
                popup=folium.Popup(
                    "Marker is draggable" if marker.draggable else "Marker is locked"
                ),
            ).add_to(fmap)

        flash = self._scene.flash
        if flash is not None:
            opacity = flash.opacity(time.monotonic())
            if opacity > 0.0:
                folium.Rectangle(
                    bounds=[[-90.0, -180.0], [90.0, 180.0]],
                    stroke=False,
                    fill=True,
                    fill_color=flash.color,
                    fill_opacity=opacity,
                ).add_to(fmap)
            else:
                self._scene.flash = None

        if len(self._scene.layers) > 1:
            folium.LayerControl(position="topleft").add_to(fmap)
        return fmap

    def to_html(self) -> str:
        return self.to_map().get_root().render()

    def save(self, path: str) -> None:
        self.to_map().save(path)
        logger.info(f"Map snapshot saved to: {path}")

    def scene_payload(self) -> Dict[str, Any]:
        """JSON-ready description of the scene consumed by :meth:`update_script`."""
        scene = self._scene
        camera = scene.camera
        payload: Dict[str, Any] = {
            "layers": {
                name: [
                    {
                        "center": list(c.center),
                        "radius": c.radius,
                        "color": c.color,
                        "weight": c.weight,
                        "opacity": c.opacity,
                        "fill_color": c.fill_color or c.color,
                        "fill_opacity": c.fill_opacity,
                        "label": c.label,
                    }
                    for c in circles
                ]
                for name, circles in scene.layers.items()
            },
            "marker": None,
            "camera": {
                "serial": scene.camera_serial,
                "center": list(camera.center),
                "zoom": camera.zoom,
                "duration": camera.duration_s,
            },
            "flash": None,
        }
        if scene.marker is not None:
            payload["marker"] = {
                "position": list(scene.marker.position),
                "draggable": scene.marker.draggable,
                "tooltip": scene.marker.tooltip,
            }
        flash = scene.flash
        if flash is not None:
            now = time.monotonic()
            opacity = flash.opacity(now)
            if opacity > 0.0:
                payload["flash"] = {
                    "serial": scene.flash_serial,
                    "color": flash.color,
                    "opacity": opacity,
                    "remaining_ms": flash.duration_ms * opacity,
                }
        return payload

    def update_script(self, map_name: str) -> str:
        """Leaflet JS bringing a page built by ``to_map(overlays=False)`` up to date with the scene."""
        return _SCENE_UPDATE_JS % {
            "map": map_name,
            "scene": json.dumps(self.scene_payload()),
            "prefix": DRAG_MESSAGE_PREFIX,
        }


def parse_drag_message(message: str) -> Optional[LatLng]:
    """Decode a drag-end console message written by :meth:`FoliumMapSurface.update_script`."""
    if not message.startswith(DRAG_MESSAGE_PREFIX):
        return None
    try:
        lat_s, lng_s = message[len(DRAG_MESSAGE_PREFIX):].split(",")
        return float(lat_s), float(lng_s)
    except ValueError:
        logger.warning(f"Malformed drag message from map page: {message!r}")
        return None


# Layers are rebuilt on every update; the marker, camera and flash are kept in
# map._impactviz so a camera move or flash plays once per serial.
_SCENE_UPDATE_JS = """
(function (map, scene) {
    var state = map._impactviz || (map._impactviz = {layers: {}, marker: null, camera: -1, flash: -1});

    Object.keys(state.layers).forEach(function (name) {
        map.removeLayer(state.layers[name]);
    });
    state.layers = {};
    Object.keys(scene.layers).forEach(function (name) {
        var group = L.featureGroup();
        scene.layers[name].forEach(function (c) {
            var circle = L.circle(c.center, {
                radius: c.radius, color: c.color, weight: c.weight, opacity: c.opacity,
                fill: true, fillColor: c.fill_color, fillOpacity: c.fill_opacity
            });
            if (c.label) { circle.bindPopup(c.label); }
            group.addLayer(circle);
        });
        group.addTo(map);
        state.layers[name] = group;
    });

    if (scene.marker) {
        if (!state.marker) {
            state.marker = L.marker(scene.marker.position, {draggable: scene.marker.draggable}).addTo(map);
            if (scene.marker.tooltip) { state.marker.bindTooltip(scene.marker.tooltip); }
            state.marker.on('dragend', function (e) {
                var ll = e.target.getLatLng();
                console.log('%(prefix)s' + ll.lat + ',' + ll.lng);
            });
        } else {
            state.marker.setLatLng(scene.marker.position);
        }
        if (state.marker.dragging) {
            if (scene.marker.draggable) { state.marker.dragging.enable(); } else { state.marker.dragging.disable(); }
        }
    } else if (state.marker) {
        map.removeLayer(state.marker);
        state.marker = null;
    }

    if (scene.camera.serial !== state.camera) {
        state.camera = scene.camera.serial;
        if (scene.camera.duration > 0) {
            map.flyTo(scene.camera.center, scene.camera.zoom, {duration: scene.camera.duration});
        } else {
            map.setView(scene.camera.center, scene.camera.zoom);
        }
    }

    if (scene.flash && scene.flash.serial !== state.flash) {
        state.flash = scene.flash.serial;
        var veil = L.rectangle([[-90, -180], [90, 180]], {
            stroke: false, fillColor: scene.flash.color, fillOpacity: scene.flash.opacity, interactive: false
        }).addTo(map);
        var start = null;
        var fade = function (t) {
            if (start === null) { start = t; }
            var k = 1 - (t - start) / scene.flash.remaining_ms;
            if (k <= 0) { map.removeLayer(veil); return; }
            veil.setStyle({fillOpacity: scene.flash.opacity * k});
            window.requestAnimationFrame(fade);
        };
        window.requestAnimationFrame(fade);
    }
})(%(map)s, %(scene)s);
"""
