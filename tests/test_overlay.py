import pytest

from impactviz.app.session import SimulationSession
from impactviz.config import PARTICLE_COUNT
from impactviz.controller.scheduler import ManualScheduler
from impactviz.view.overlay import (
    PARTICLES_LAYER,
    SHOCKWAVE_LAYER,
    ZONES_LAYER,
    GeospatialOverlayRenderer,
    zone_circles,
)
from impactviz.view.surface import FoliumMapSurface


def test_marker_only_while_not_simulating(session, surface):
    assert surface.placed == 1
    assert surface.marker.position == session.store.get().view.resolved_focus()
    assert surface.marker.draggable is False
    assert ZONES_LAYER not in surface.layers


def test_zones_drawn_when_simulating(session, surface):
    session.store.set_focus_location(46.0, 2.0)
    session.begin_simulation(crater_radius=1000.0)
    zones = surface.layers[ZONES_LAYER]
    assert [c.radius for c in zones] == [2000.0, 1000.0, 500.0]
    assert [c.color for c in zones] == ["purple", "red", "black"]
    assert [c.fill_opacity for c in zones] == [0.1, 0.2, 0.3]
    assert all(c.center == (46.0, 2.0) for c in zones)
    assert zones[1].label == "Severe destruction zone: 1000 m"


def test_missing_crater_radius_uses_default(session, surface):
    session.begin_simulation()
    zones = surface.layers[ZONES_LAYER]
    assert [c.radius for c in zones] == [200000.0, 100000.0, 50000.0]


def test_focus_change_moves_marker_without_placing_again(session, surface):
    session.store.set_focus_location(10.0, 20.0)
    session.store.set_focus_location(11.0, 21.0)
    assert surface.placed == 1
    assert surface.moves == [(10.0, 20.0), (11.0, 21.0)]


def test_unrelated_change_does_not_move_marker(session, surface):
    session.store.update_parameters(radius=300)
    assert surface.moves == []


def test_drag_updates_store_without_extra_move(monkeypatch):
    surface = FoliumMapSurface()
    session = SimulationSession(scheduler=ManualScheduler(), surface=surface)
    moves = []
    monkeypatch.setattr(surface, "move_marker", lambda lat, lng: moves.append((lat, lng)))
    try:
        assert session.overlay.toggle_marker_draggable() is True
        surface.drag_marker(48.85, 2.35)
        assert session.store.get().view.focus_location == (48.85, 2.35)
        assert surface.marker.position == (48.85, 2.35)
        # The page already shows the marker at the drop point
        assert moves == []
        # The camera follows the dropped marker
        assert surface.camera.center == (48.85, 2.35)

        session.store.set_focus_location(40.0, -3.0)
        assert moves == [(40.0, -3.0)]
    finally:
        session.close()


def test_end_simulation_clears_layers(session, scheduler, surface):
    session.begin_simulation()
    scheduler.advance(4000)
    assert {ZONES_LAYER, SHOCKWAVE_LAYER, PARTICLES_LAYER} <= set(surface.layers)
    session.end_simulation()
    assert surface.layers == {}
    assert surface.placed == 1


def test_shockwave_layers_follow_frames(session, scheduler, surface):
    session.begin_simulation()
    scheduler.advance(3300)
    assert SHOCKWAVE_LAYER not in surface.layers

    scheduler.step_frames(1)
    rings = surface.layers[SHOCKWAVE_LAYER]
    particles = surface.layers[PARTICLES_LAYER]
    assert [c.radius for c in rings] == pytest.approx([50.0, 37.5, 25.0, 12.5])
    assert len(particles) == PARTICLE_COUNT

    scheduler.advance(2000)
    assert SHOCKWAVE_LAYER not in surface.layers
    assert PARTICLES_LAYER not in surface.layers
    assert ZONES_LAYER in surface.layers


def test_faded_particles_are_not_drawn(session, scheduler, surface):
    session.begin_simulation()
    # 100 frames: particles at 2500 m, fully faded
    scheduler.advance(3300 + 100 * 16)
    assert surface.layers[PARTICLES_LAYER] == []
    assert len(surface.layers[SHOCKWAVE_LAYER]) == 4


def test_unmounted_surface_is_skipped(session, surface):
    surface.mounted = False
    session.store.set_focus_location(1.0, 1.0)
    session.begin_simulation()
    assert surface.moves == []
    assert ZONES_LAYER not in surface.layers

    surface.mounted = True
    session.store.set_crater_radius(400.0)
    assert surface.moves == [(1.0, 1.0)]
    assert surface.layers[ZONES_LAYER][1].radius == 400.0


def test_toggle_marker_draggable(session, surface):
    assert session.overlay.toggle_marker_draggable() is True
    assert session.overlay.toggle_marker_draggable() is False
    assert surface.draggable_calls == [True, False]


def test_attach_surface_places_marker_on_new_surface(session, surface):
    other = type(surface)()
    session.attach_surface(other)
    assert other.placed == 1
    assert surface.placed == 1


def test_renderer_without_surface(store):
    renderer = GeospatialOverlayRenderer(store)
    store.set_simulating(True)
    renderer.teardown()


def test_zone_circles_are_nested():
    circles = zone_circles((0.0, 0.0), 300.0)
    radii = [c.radius for c in circles]
    assert radii == sorted(radii, reverse=True)
    assert circles[0].label.startswith("Calculated impact zone")
    assert circles[2].label.startswith("Epicenter")
