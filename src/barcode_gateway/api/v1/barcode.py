# src/barcode_gateway/api/v1/barcode.py
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response, Security, status

from barcode_gateway.api.dependencies import get_lookup_gateway
from barcode_gateway.core.limiter import INBOUND_LIMIT, limiter
from barcode_gateway.core.security import get_client_id
from barcode_gateway.domain.models import (
    BarcodeServiceHealth,
    RateLimitStatus,
    SearchPage,
    SimplifiedProduct,
)
from barcode_gateway.domain.ports import GatewayError, InvalidInputError, RateLimitedError
from barcode_gateway.services.lookup_gateway import LookupGateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/barcode", tags=["Barcode"])

ClientDep = Annotated[str, Security(get_client_id)]
GatewayDep = Annotated[LookupGateway, Depends(get_lookup_gateway)]

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def _http_error(e: GatewayError) -> HTTPException:
    headers = None
    if isinstance(e, RateLimitedError):
        headers = {"Retry-After": str(e.retry_after_seconds)}
    return HTTPException(status_code=e.status_code, detail=str(e), headers=headers)


def _parse_int(value: str | None, default: int) -> int | None:
    if value is None:
        return default
    try:
        return int(value.strip())
    except ValueError:
        return None


def validate_search_params(
    query: str | None, page: str | None, limit: str | None
) -> tuple[str, int, int]:
    """Prüft Suchbegriff und Paginierung an der HTTP-Grenze."""
    if query is None or not query.strip():
        raise InvalidInputError("Query parameter is required")
    page_number = _parse_int(page, 1)
    if page_number is None or page_number < 1:
        raise InvalidInputError("Invalid page parameter")
    page_size = _parse_int(limit, DEFAULT_PAGE_SIZE)
    if page_size is None or page_size < 1 or page_size > MAX_PAGE_SIZE:
        raise InvalidInputError(
            f"Invalid limit parameter (must be between 1 and {MAX_PAGE_SIZE})"
        )
    return query.strip(), page_number, page_size


@router.get("/health", response_model=BarcodeServiceHealth)
async def barcode_health(service: GatewayDep) -> BarcodeServiceHealth:
    """Status des Barcode-Dienstes inkl. Upstream-Kontingente. Ohne Authentifizierung."""
    return BarcodeServiceHealth(
        service="OpenFoodFacts", rate_limits=service.get_rate_limit_status()
    )


@router.get("/rate-limits", response_model=RateLimitStatus)
@limiter.limit(INBOUND_LIMIT)
async def get_rate_limit_status(
    request: Request, client_id: ClientDep, service: GatewayDep
) -> RateLimitStatus:
    return service.get_rate_limit_status()


@router.get(
    "/product/{barcode}",
    response_model=SimplifiedProduct,
    response_model_exclude_unset=True,
)
@limiter.limit(INBOUND_LIMIT)
async def lookup_product(
    request: Request,
    client_id: ClientDep,
    service: GatewayDep,
    barcode: str,
) -> SimplifiedProduct:
    """
    Sucht ein Produkt anhand seines Barcodes (EAN-8, UPC, EAN-13, GTIN-14).
    """
    logger.info("Product lookup requested by %s for barcode: %s", client_id, barcode)
    try:
        product = await service.lookup_by_barcode(barcode)
    except GatewayError as e:
        raise _http_error(e) from e
    logger.info("Product found for barcode %s: %s", barcode, product.name or "Unknown name")
    return product


@router.get("/search", response_model=SearchPage, response_model_exclude_unset=True)
@limiter.limit(INBOUND_LIMIT)
async def search_products(
    request: Request,
    client_id: ClientDep,
    service: GatewayDep,
    q: str | None = None,
    page: str | None = None,
    limit: str | None = None,
) -> SearchPage:
    """
    Freitextsuche in der Produktdatenbank.
    """
    try:
        query, page_number, page_size = validate_search_params(q, page, limit)
        logger.info("Product search requested by %s for query: %r", client_id, query)
        result = await service.search_products(query, page_number, page_size)
    except GatewayError as e:
        raise _http_error(e) from e
    logger.info(
        "Product search completed for query %r: %d results returned",
        query,
        len(result.products),
    )
    return result


@router.delete("/cache", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(INBOUND_LIMIT)
async def clear_cache(request: Request, client_id: ClientDep, service: GatewayDep) -> Response:
    logger.info("Product cache cleared by %s", client_id)
    service.clear_cache()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
