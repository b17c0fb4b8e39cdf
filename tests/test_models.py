from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from app.models import PlaceRecord, QueryResult, decode_records, encode_records


def test_encode_decode_preserves_textual_fields(paris, paris_raw):
    decoded = decode_records(encode_records([paris]))

    assert decoded == [paris]
    assert decoded[0].lat == "48.8588897"
    assert decoded[0].lon == "2.3200410217200766"
    assert decoded[0].boundingbox == paris_raw["boundingbox"]
    assert decoded[0].category == "boundary"


def test_encoded_form_uses_wire_names(paris, paris_raw):
    payload = json.loads(encode_records([paris]))
    assert payload == [paris_raw]


def test_missing_icon_becomes_empty_string(paris_raw):
    paris_raw.pop("icon")
    record = PlaceRecord.model_validate(paris_raw)
    assert record.icon == ""
    assert json.loads(encode_records([record]))[0]["icon"] == ""
    assert decode_records(encode_records([record])) == [record]


def test_null_icon_becomes_empty_string(paris_raw):
    paris_raw["icon"] = None
    assert decode_records(json.dumps([paris_raw]))[0].icon == ""


def test_decode_tolerates_missing_osm_object_and_importance(paris_raw):
    for name in ("osm_type", "osm_id", "importance", "licence"):
        paris_raw.pop(name)
    record = decode_records(json.dumps([paris_raw]))[0]

    assert (record.osm_type, record.osm_id, record.importance, record.licence) == ("", 0, 0.0, "")
    assert record.display_name == "Paris, France"
    assert decode_records(encode_records([record])) == [record]


def test_decode_rejects_numeric_coordinates(paris_raw):
    paris_raw["lat"] = 48.85
    with pytest.raises(ValidationError):
        decode_records(json.dumps([paris_raw]))


def test_decode_rejects_short_boundingbox(paris_raw):
    paris_raw["boundingbox"] = ["48.8", "48.9"]
    with pytest.raises(ValidationError):
        decode_records(json.dumps([paris_raw]))


@pytest.mark.parametrize("body", [b"", b"not json", b"{}", b'[{"place_id": 1}]'])
def test_decode_rejects_malformed(body):
    with pytest.raises(ValidationError):
        decode_records(body)


def test_query_result_to_response(paris, paris_raw):
    response = QueryResult(records=[paris], from_cache=True).to_response()
    assert response.model_dump(by_alias=True) == {"cache": True, "data": [paris_raw]}
