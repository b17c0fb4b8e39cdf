from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class PlaceRecord(BaseModel):
    """One search hit as returned by Nominatim (format=json).

    lat/lon and boundingbox stay textual so the upstream values survive a
    trip through the cache byte for byte. Fields Nominatim may leave out
    (postcode results have no OSM object, older servers send no importance)
    fall back to empty values, and a missing icon is sent as "".
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    place_id: int
    licence: str = ""
    osm_type: str = ""
    osm_id: int = 0
    boundingbox: List[str] = Field(..., min_length=4, max_length=4)
    lat: str
    lon: str
    display_name: str
    category: str = Field("", alias="class")
    type: str = ""
    importance: float = 0.0
    icon: str = ""

    @field_validator("licence", "osm_type", "category", "type", "icon", mode="before")
    @classmethod
    def _null_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class SearchResponse(BaseModel):
    cache: bool
    data: List[PlaceRecord]


@dataclass(frozen=True)
class QueryResult:
    records: List[PlaceRecord] = field(default_factory=list)
    from_cache: bool = False

    def to_response(self) -> SearchResponse:
        return SearchResponse(cache=self.from_cache, data=self.records)


_records_adapter = TypeAdapter(List[PlaceRecord])


def encode_records(records: List[PlaceRecord]) -> bytes:
    """Serialize records to the JSON array stored in the cache."""
    return _records_adapter.dump_json(records, by_alias=True)


def decode_records(raw: Union[bytes, str]) -> List[PlaceRecord]:
    """Parse a JSON array of records; raises pydantic.ValidationError on bad input."""
    return _records_adapter.validate_json(raw)
