from fastapi import APIRouter, Depends, Path, Query

from stockcheck.core.api_docs import error_responses
from stockcheck.core.deps import get_stock_record_source
from stockcheck.schemas.stock_validation import (
    AllocationLineOut,
    AvailableLocationListOut,
    ConsolidatedStockLevelsOut,
    ConsolidatedStockOut,
    LocationAvailabilityOut,
    LocationStockOut,
    OrderFeasibilityOut,
    OrderFeasibilitySummaryOut,
    ValidateConsolidatedStockIn,
    ValidateMultipleConsolidatedStockIn,
)
from stockcheck.services.stock_record_source import StockRecordSource
from stockcheck.services.stock_validation_service import (
    ConsolidatedStockResult,
    LocationStock,
    OrderLine,
    get_consolidated_stock,
    list_available_locations,
    validate_consolidated_stock,
    validate_multiple_consolidated_stock,
)

router = APIRouter(prefix="/inventory", tags=["inventory"])


def _location_out(location: LocationStock) -> LocationStockOut:
    return LocationStockOut(
        location_id=location.location_id,
        location_name=location.location_name,
        type=location.location_type,
        available=float(location.available),
        reserved=float(location.reserved),
        on_hand=float(location.on_hand),
    )


def _consolidated_out(result: ConsolidatedStockResult) -> ConsolidatedStockOut:
    allocation = None
    if result.suggested_allocation is not None:
        allocation = [
            AllocationLineOut(location_id=line.location_id, quantity=float(line.quantity))
            for line in result.suggested_allocation
        ]
    return ConsolidatedStockOut(
        product_id=result.product_id,
        total_available=float(result.total_available),
        total_reserved=float(result.total_reserved),
        total_on_hand=float(result.total_on_hand),
        requested=float(result.requested),
        is_available=result.is_available,
        locations=[_location_out(location) for location in result.locations],
        suggested_allocation=allocation,
    )


@router.post(
    "/validate-consolidated-stock",
    response_model=ConsolidatedStockOut,
    summary="Validate a quantity against stock across all locations",
    responses=error_responses(422, 500),
)
def validate_consolidated_stock_endpoint(
    payload: ValidateConsolidatedStockIn,
    source: StockRecordSource = Depends(get_stock_record_source),
):
    result = validate_consolidated_stock(
        source,
        product_id=payload.product_id,
        quantity=payload.quantity,
        organization_id=payload.organization_id,
    )
    return _consolidated_out(result)


@router.post(
    "/validate-multiple-consolidated-stock",
    response_model=OrderFeasibilityOut,
    summary="Validate every line of an order against consolidated stock",
    responses=error_responses(422, 500),
)
def validate_multiple_consolidated_stock_endpoint(
    payload: ValidateMultipleConsolidatedStockIn,
    source: StockRecordSource = Depends(get_stock_record_source),
):
    result = validate_multiple_consolidated_stock(
        source,
        items=[OrderLine(product_id=line.product_id, quantity=line.quantity) for line in payload.products],
        organization_id=payload.organization_id,
    )
    return OrderFeasibilityOut(
        order_feasible=result.order_feasible,
        products=[_consolidated_out(product) for product in result.products],
        summary=OrderFeasibilitySummaryOut(
            total_products_requested=result.summary.total_products_requested,
            total_products_available=result.summary.total_products_available,
            total_quantity_requested=float(result.summary.total_quantity_requested),
            total_quantity_available=float(result.summary.total_quantity_available),
        ),
    )


@router.get(
    "/consolidated-stock/product/{product_id}",
    response_model=ConsolidatedStockLevelsOut,
    summary="Get stock totals and per-location breakdown for a product",
    responses=error_responses(422, 500),
)
def get_consolidated_stock_endpoint(
    product_id: int = Path(gt=0),
    organization_id: int | None = Query(default=None, gt=0),
    source: StockRecordSource = Depends(get_stock_record_source),
):
    aggregate = get_consolidated_stock(source, product_id=product_id, organization_id=organization_id)
    return ConsolidatedStockLevelsOut(
        product_id=product_id,
        total_available=float(aggregate.total_available),
        total_reserved=float(aggregate.total_reserved),
        total_on_hand=float(aggregate.total_on_hand),
        locations=[_location_out(location) for location in aggregate.locations],
    )


@router.get(
    "/available-locations/product/{product_id}",
    response_model=AvailableLocationListOut,
    summary="List locations holding positive stock of a product",
    responses=error_responses(422, 500),
)
def list_available_locations_endpoint(
    product_id: int = Path(gt=0),
    organization_id: int | None = Query(default=None, gt=0),
    source: StockRecordSource = Depends(get_stock_record_source),
):
    locations = list_available_locations(source, product_id=product_id, organization_id=organization_id)
    return AvailableLocationListOut(
        product_id=product_id,
        items=[
            LocationAvailabilityOut(
                location_id=location.location_id,
                location_name=location.location_name,
                type=location.location_type,
                available=float(location.available),
            )
            for location in locations
        ],
    )
