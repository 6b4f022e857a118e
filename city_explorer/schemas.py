"""
Pydantic schemas for request parameters.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .cache import ByCoordinates, ById, ByText, LocationKey


class LocationRef(BaseModel):
    """
    The `data` parameter of the dependent routes: a Location as previously
    returned by /location (extra fields are ignored).

    At least one identity must be present. Keys are tried most specific
    first: id, then coordinates, then search text.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[int] = None
    latitude: Optional[float] = Field(None, ge=-90.0, le=90.0)
    longitude: Optional[float] = Field(None, ge=-180.0, le=180.0)
    search_query: Optional[str] = Field(None, min_length=1, max_length=255)

    @model_validator(mode="after")
    def _has_identity(self):
        if not self.to_keys():
            raise ValueError("data needs an id, a latitude/longitude pair or a search_query")
        return self

    def to_keys(self) -> List[LocationKey]:
        keys: List[LocationKey] = []
        if self.id is not None:
            keys.append(ById(self.id))
        if self.latitude is not None and self.longitude is not None:
            keys.append(ByCoordinates(self.latitude, self.longitude))
        if self.search_query:
            keys.append(ByText(self.search_query))
        return keys
