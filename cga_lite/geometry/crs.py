"""Coordinate reference system records and the CRS catalog."""

import logging
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cga_lite.core.exceptions import SchemaError

logger = logging.getLogger(__name__)


class CRS(BaseModel):
    """A named geodetic or projected frame with unit and type metadata."""

    model_config = ConfigDict(frozen=True)

    epsg: int = Field(..., gt=0, strict=True)
    name: str
    units: Literal["meters", "feet", "degrees"]
    type: Literal["projected", "geographic", "compound"]

    @property
    def is_local_frame(self) -> bool:
        """Frames where small local coordinates are expected."""
        return self.name == "Local Test CRS" or self.epsg == 3857


def format_validation_errors(exc: ValidationError) -> list[str]:
    """Flatten pydantic errors into ``loc: msg`` strings."""
    return [
        f"{'.'.join(str(x) for x in err.get('loc', []))}: {err.get('msg', '')}"
        for err in exc.errors()
    ]


def validate_crs(candidate: Any) -> CRS:
    """Validate a CRS record.

    Raises:
        SchemaError: epsg is not a positive integer or units/type are
            outside the enumerated sets.
    """
    if isinstance(candidate, CRS):
        return candidate

    try:
        return CRS.model_validate(candidate)
    except ValidationError as e:
        errors = format_validation_errors(e)
        raise SchemaError(f"Invalid CRS: {'; '.join(errors)}", errors) from e


def default_validation_crs(settings) -> CRS:
    """Permissive meter frame used when the caller supplies no CRS."""
    return CRS(
        epsg=settings.default_validation_epsg,
        name=settings.default_validation_crs_name,
        units="meters",
        type="projected",
    )


COMMON_CRS: dict[str, dict[str, Any]] = {
    "BUENOS_AIRES_UTM": {
        "epsg": 32721,
        "name": "WGS 84 / UTM zone 21S",
        "units": "meters",
        "type": "projected",
    },
    "ARGENTINA_GEO": {
        "epsg": 4326,
        "name": "WGS 84",
        "units": "degrees",
        "type": "geographic",
    },
    "POSGAR_2007": {
        "epsg": 5348,
        "name": "POSGAR 2007 / Argentina 4",
        "units": "meters",
        "type": "projected",
    },
    "CHANCAY_UTM_WGS84": {
        "epsg": 32718,
        "name": "WGS 84 / UTM zone 18S",
        "units": "meters",
        "type": "projected",
    },
    "CHANCAY_UTM_PERU96": {
        "epsg": 5387,
        "name": "Peru96 / UTM zone 18S",
        "units": "meters",
        "type": "projected",
    },
    "WGS84": {
        "epsg": 4326,
        "name": "WGS 84",
        "units": "degrees",
        "type": "geographic",
    },
    "LOCAL": {
        "epsg": 3857,
        "name": "Local Test CRS",
        "units": "meters",
        "type": "projected",
    },
}


class CRSCatalog:
    """Named CRS records, handed to validators by value."""

    def __init__(self, records: Optional[dict[str, Any]] = None):
        source = COMMON_CRS if records is None else records
        self._records: dict[str, CRS] = {
            key.upper(): validate_crs(value) for key, value in source.items()
        }
        logger.debug(f"CRSCatalog loaded {len(self._records)} records")

    def get(self, key: str) -> Optional[CRS]:
        return self._records.get(key.upper())

    def require(self, key: str) -> CRS:
        crs = self.get(key)
        if crs is None:
            raise KeyError(key)
        return crs

    def by_epsg(self, epsg: int) -> Optional[CRS]:
        for crs in self._records.values():
            if crs.epsg == epsg:
                return crs
        return None

    def recommended_chancay_crs(self) -> CRS:
        """WGS 84 / UTM zone 18S, the primary frame for Chancay lots."""
        return self.require("CHANCAY_UTM_WGS84")

    def chancay_crs_options(self) -> dict[str, CRS]:
        return {
            "primary": self.require("CHANCAY_UTM_WGS84"),
            "alternative": self.require("CHANCAY_UTM_PERU96"),
            "geographic": self.require("WGS84"),
        }

    def keys(self) -> list[str]:
        return list(self._records)

    def to_dict(self) -> dict[str, dict[str, Any]]:
        return {key: crs.model_dump() for key, crs in self._records.items()}

    def __contains__(self, key: str) -> bool:
        return key.upper() in self._records

    def __len__(self) -> int:
        return len(self._records)
