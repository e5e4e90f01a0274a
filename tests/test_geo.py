import pytest

from impactviz.config import DEFAULT_CRATER_RADIUS_M
from impactviz.model.geo import (
    Particle,
    create_particle_batch,
    offset_location,
    offset_locations,
    particle_opacity,
    particle_positions,
    ring_opacity,
    shockwave_rings,
    zone_radii,
)


def test_particle_batch_evenly_spaced_at_zero_distance():
    batch = create_particle_batch(8)
    assert [p.id for p in batch] == list(range(8))
    assert [p.angle_degrees for p in batch] == pytest.approx([0, 45, 90, 135, 180, 225, 270, 315])
    assert all(p.distance_meters == 0.0 for p in batch)
    assert create_particle_batch(0) == []


def test_one_degree_north_of_origin():
    lat, lng = offset_location((0.0, 0.0), 0.0, 111_000.0)
    assert lat == pytest.approx(1.0)
    assert lng == pytest.approx(0.0, abs=1e-12)


def test_east_offset_is_scaled_by_latitude():
    lat, lng = offset_location((60.0, 10.0), 90.0, 111_000.0)
    assert lat == pytest.approx(60.0, abs=1e-9)
    # cos(60 deg) = 0.5 -> one degree of latitude spans two of longitude
    assert lng == pytest.approx(12.0)


def test_vectorised_matches_scalar():
    anchor = (26.9, -101.4)
    angles = [0.0, 33.0, 190.0]
    dists = [10.0, 2500.0, 700.0]
    coords = offset_locations(anchor, angles, dists)
    assert coords.shape == (3, 2)
    for (lat, lng), a, d in zip(coords, angles, dists):
        assert (lat, lng) == pytest.approx(offset_location(anchor, a, d))


def test_ring_opacity_bounds():
    assert ring_opacity(0) == 1.0
    assert ring_opacity(3000) == pytest.approx(0.5)
    assert ring_opacity(6000) == 0.0
    assert ring_opacity(9000) == 0.0


def test_shockwave_rings_fractions_share_opacity():
    rings = shockwave_rings(1000.0)
    assert [r.radius for r in rings] == pytest.approx([1000, 750, 500, 250])
    assert len({r.opacity for r in rings}) == 1


def test_particle_opacity_ramp():
    assert particle_opacity(0) == 1.0
    assert particle_opacity(1250) == pytest.approx(0.5)
    assert particle_opacity(2500) == 0.0
    assert particle_opacity(4000) == 0.0


def test_particle_positions():
    particles = [Particle(id=0, angle_degrees=0.0, distance_meters=111_000.0), Particle(id=1, angle_degrees=180.0)]
    positions = particle_positions((0.0, 0.0), particles)
    assert positions[0].lat == pytest.approx(1.0)
    assert positions[0].opacity == 0.0
    assert (positions[1].lat, positions[1].lng) == pytest.approx((0.0, 0.0))
    assert positions[1].opacity == 1.0
    assert particle_positions((0.0, 0.0), []) == []


@pytest.mark.parametrize("crater", [None, 0, -10, float("nan"), "big"])
def test_zone_radii_fallback(crater):
    radii = zone_radii(crater)
    assert radii.severe == DEFAULT_CRATER_RADIUS_M


def test_zone_radii_nesting():
    radii = zone_radii(1200.0)
    assert (radii.epicenter, radii.severe, radii.impact) == (600.0, 1200.0, 2400.0)


@pytest.mark.parametrize("pole", [90.0, -90.0])
def test_offsets_stay_finite_at_the_poles(pole):
    lat, lng = offset_location((pole, 0.0), 90.0, 1000.0)
    assert lat == pytest.approx(pole)
    assert lng == pytest.approx(1000.0 / (111_000.0 * 1e-4))
    coords = offset_locations((pole, 0.0), [90.0, 270.0], [1000.0, 1000.0])
    assert abs(coords[:, 1]).max() < 180.0
