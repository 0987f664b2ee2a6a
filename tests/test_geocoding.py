import json
from pathlib import Path

import pytest

from conftest import CHIANG_MAI_COMPONENTS, StubGeocoder
from photo_atlas.core.errors import GeocodingError
from photo_atlas.geo import load_city_overrides, place_from_components, reverse_geocode


def _component(name: str, *types: str) -> dict:
    return {"long_name": name, "short_name": name, "types": [*types, "political"]}


def test_thai_script_label_is_overridden() -> None:
    place = place_from_components(CHIANG_MAI_COMPONENTS)
    assert place is not None
    assert place.city == "Chang Wat Chiang Mai"
    assert place.country == "Thailand"


def test_unlisted_label_is_kept() -> None:
    place = place_from_components(
        [_component("Penang", "administrative_area_level_1"), _component("Malaysia", "country")]
    )
    assert place is not None
    assert place.city == "Penang"


def test_taiwan_uses_neighborhood_as_city() -> None:
    components = [
        _component("Daan", "neighborhood"),
        _component("Taipei City", "administrative_area_level_1"),
        _component("Taiwan", "country"),
    ]
    place = place_from_components(components)
    assert place is not None
    assert place.city == "Daan"
    assert place.country == "Taiwan"


def test_taiwan_rule_does_not_depend_on_component_order() -> None:
    components = [
        _component("Taiwan", "country"),
        _component("Taipei City", "administrative_area_level_1"),
        _component("Zhongshan", "neighborhood"),
    ]
    place = place_from_components(components)
    assert place is not None
    assert place.city == "Zhongshan"


def test_missing_country_yields_none() -> None:
    assert place_from_components([_component("Bangkok", "administrative_area_level_1")]) is None


def test_extra_overrides_extend_builtin_table(tmp_path: Path, monkeypatch) -> None:
    overrides_file = tmp_path / "overrides.json"
    overrides_file.write_text(json.dumps({"Hà Nội": "Hanoi"}), encoding="utf-8")
    monkeypatch.setenv("CITY_OVERRIDES_FILE", str(overrides_file))

    overrides = load_city_overrides()
    assert overrides["Hà Nội"] == "Hanoi"
    assert overrides["กรุงเทพมหานคร"] == "Bangkok"

    place = place_from_components(
        [_component("Hà Nội", "administrative_area_level_1"), _component("Vietnam", "country")],
        overrides=overrides,
    )
    assert place is not None
    assert place.city == "Hanoi"


def test_reverse_geocode_requires_components() -> None:
    with pytest.raises(GeocodingError, match="address components"):
        reverse_geocode(StubGeocoder(components=[]), 1.0, 2.0)


def test_reverse_geocode_requires_city_and_country() -> None:
    geocoder = StubGeocoder(components=[_component("Thailand", "country")])
    with pytest.raises(GeocodingError, match="city or country"):
        reverse_geocode(geocoder, 1.0, 2.0)
