from __future__ import annotations

import pytest

from app.models import PlaceRecord

PARIS = {
    "place_id": 88066702,
    "licence": "Data © OpenStreetMap contributors, ODbL 1.0. https://osm.org/copyright",
    "osm_type": "relation",
    "osm_id": 7444,
    "boundingbox": ["48.8155755", "48.9021560", "2.2241220", "2.4697602"],
    "lat": "48.8588897",
    "lon": "2.3200410217200766",
    "display_name": "Paris, France",
    "class": "boundary",
    "type": "administrative",
    "importance": 0.9654895765402,
    "icon": "https://nominatim.openstreetmap.org/ui/mapicons/poi_boundary_administrative.p.20.png",
}


@pytest.fixture
def paris_raw():
    return dict(PARIS)


@pytest.fixture
def paris(paris_raw):
    return PlaceRecord.model_validate(paris_raw)
