"""API routes."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from sold_finder.errors import MissingInputError
from sold_finder.logging import get_logger
from sold_finder.pipeline import PropertySearch

logger = get_logger(__name__)

router = APIRouter()


def _get_search(request: Request) -> PropertySearch:
    return request.app.state.search  # type: ignore[no-any-return]


def _missing_postcode() -> JSONResponse:
    return JSONResponse({"error": "Postcode required"}, status_code=400)


@router.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse({"status": "ok"})


@router.get("/api/properties")
async def get_properties(request: Request, postcode: str | None = None) -> JSONResponse:
    """Sold properties for a postcode, enriched with EPC floor area and rating.

    Always answers 200 with a (possibly empty) list, except for a missing
    postcode which is a 400. Upstream failures degrade to fewer or no
    results rather than an error status.
    """
    if postcode is None or not postcode.strip():
        return _missing_postcode()

    try:
        outcome = await _get_search(request).search(postcode)
    except MissingInputError:
        return _missing_postcode()
    except Exception:
        logger.error("property_search_failed", postcode=postcode, exc_info=True)
        return JSONResponse([])

    return JSONResponse([p.model_dump(by_alias=True) for p in outcome.properties])
