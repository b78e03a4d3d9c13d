"""CRS catalog endpoints."""

from fastapi import APIRouter, Depends

from cga_lite.api.deps import get_crs_catalog
from cga_lite.api.exceptions import CRSNotFoundError
from cga_lite.geometry.crs import CRS, CRSCatalog
from cga_lite.models.schemas.api import CRSListResponse

router = APIRouter()


@router.get("", response_model=CRSListResponse)
async def list_crs(
    catalog: CRSCatalog = Depends(get_crs_catalog),
) -> CRSListResponse:
    """List the named CRS records known to the host."""
    return CRSListResponse(crs={key: catalog.require(key) for key in catalog.keys()})


@router.get("/{key}", response_model=CRS)
async def get_crs(
    key: str,
    catalog: CRSCatalog = Depends(get_crs_catalog),
) -> CRS:
    crs = catalog.get(key)
    if crs is None:
        raise CRSNotFoundError(key)
    return crs
