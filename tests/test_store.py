import pytest

from impactviz.config import DEFAULT_FOCUS_LOCATION
from impactviz.model.state import Material, MeteoroidRecord, SimulationParameters, ViewState


def test_defaults(store):
    state = store.get()
    assert state.parameters == SimulationParameters(0.0, 0.0, 0.0, Material.ROCK)
    assert state.view.focus_location == DEFAULT_FOCUS_LOCATION
    assert state.view.is_simulating is False
    assert state.view.crater_radius is None


def test_partial_update_keeps_other_fields(store):
    store.update_parameters({"radius": 120.0, "entry_angle": 45.0, "material": "iron"})
    store.update_parameters({"velocity": 20})
    params = store.get().parameters
    assert params.velocity == 20
    assert params.radius == 120.0
    assert params.entry_angle == 45.0
    assert params.material == Material.IRON


def test_keyword_update(store):
    store.update_parameters(radius=5.0)
    assert store.get().parameters.radius == 5.0


def test_each_mutation_notifies_once_in_order(store):
    seen = []
    store.subscribe(lambda s: seen.append(s))
    store.update_parameters(radius=1)
    store.update_parameters(velocity=2)
    store.update_parameters(entry_angle=3)
    store.set_focus_location(1.0, 2.0)
    store.set_crater_radius(500.0)
    store.set_simulating(True)
    assert len(seen) == 6
    assert seen[0].parameters.radius == 1 and seen[0].parameters.velocity == 0
    assert seen[2].parameters.entry_angle == 3
    assert seen[-1].view.is_simulating is True


def test_subscribers_run_in_registration_order(store):
    calls = []
    store.subscribe(lambda s: calls.append("first"))
    store.subscribe(lambda s: calls.append("second"))
    store.subscribe(lambda s: calls.append("third"))
    store.set_simulating(True)
    assert calls == ["first", "second", "third"]


def test_subscriber_sees_applied_state(store):
    observed = []
    store.subscribe(lambda s: observed.append(store.get() is s))
    store.update_parameters(radius=9)
    assert observed == [True]


def test_unsubscribe_is_idempotent(store):
    calls = []
    unsubscribe = store.subscribe(lambda s: calls.append(s))
    store.update_parameters(radius=1)
    unsubscribe()
    unsubscribe()
    store.update_parameters(radius=2)
    assert len(calls) == 1


def test_unknown_fields_are_dropped(store, caplog):
    store.update_parameters({"velocity": 3, "colour": "blue"})
    assert store.get().parameters.velocity == 3
    assert "colour" in caplog.text


def test_malformed_values_are_stored_untouched(store):
    store.update_parameters(radius=-50, material="unobtainium")
    params = store.get().parameters
    assert params.radius == -50
    assert params.material == "unobtainium"
    assert store.visual_attributes().visual_radius == 0.15
    assert store.visual_attributes().color == "#8B4513"


def test_narrow_signals(store):
    focus, simulating, crater = [], [], []
    store.focus_changed.connect(lambda v: focus.append(v))
    store.simulating_changed.connect(lambda v: simulating.append(v))
    store.crater_radius_changed.connect(lambda v: crater.append(v))
    store.set_focus_location(10.0, 20.0)
    store.set_simulating(True)
    store.set_crater_radius(None)
    assert focus == [(10.0, 20.0)]
    assert simulating == [True]
    assert crater == [None]


def test_state_records_are_immutable(store):
    state = store.get()
    with pytest.raises(AttributeError):
        state.parameters.radius = 10  # type: ignore[misc]


def test_select_preset(store):
    store.select_preset("spain")
    assert store.get().view.focus_location == (40.4637, -3.7492)
    with pytest.raises(KeyError):
        store.select_preset("atlantis")


def test_apply_meteoroid_record_with_fallbacks(store):
    store.update_parameters(radius=10, velocity=10, entry_angle=10, material="iron")
    record = MeteoroidRecord.from_dict({"name": "Test", "radiusMeteroid": 75, "lat": 46.2276, "lng": 2.2137})
    store.apply_meteoroid_record(record)
    state = store.get()
    assert state.parameters == SimulationParameters(radius=75, velocity=0.0, entry_angle=0.0, material=Material.ROCK)
    assert state.view.focus_location == (46.2276, 2.2137)


def test_apply_meteoroid_record_without_location_keeps_focus(store):
    store.set_focus_location(1.0, 1.0)
    store.apply_meteoroid_record(MeteoroidRecord(name="NoLoc", velocity=12, material="nickel"))
    assert store.get().view.focus_location == (1.0, 1.0)
    assert store.get().parameters.material == Material.NICKEL


def test_missing_focus_resolves_to_default():
    assert ViewState(focus_location=None).resolved_focus() == DEFAULT_FOCUS_LOCATION
    assert ViewState(focus_location=(None, None)).resolved_focus() == DEFAULT_FOCUS_LOCATION


def test_reset(store):
    store.update_parameters(radius=3)
    store.set_simulating(True)
    store.reset()
    assert store.get().parameters.radius == 0.0
    assert store.get().view.is_simulating is False
