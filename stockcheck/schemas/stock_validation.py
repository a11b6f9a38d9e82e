from decimal import Decimal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from stockcheck.core.config import settings


class ValidateConsolidatedStockIn(BaseModel):
    product_id: int = Field(gt=0, validation_alias=AliasChoices("product_id", "productId"))
    quantity: Decimal = Field(gt=0)
    organization_id: int | None = Field(
        default=None,
        gt=0,
        validation_alias=AliasChoices("organization_id", "organizationId"),
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "product_id": 1,
                "quantity": 70,
                "organization_id": 1,
            }
        },
    )


class OrderLineIn(BaseModel):
    product_id: int = Field(gt=0, validation_alias=AliasChoices("product_id", "productId"))
    quantity: Decimal = Field(gt=0)

    model_config = ConfigDict(populate_by_name=True)


class ValidateMultipleConsolidatedStockIn(BaseModel):
    products: list[OrderLineIn] = Field(min_length=1, max_length=settings.stock_validation_max_products)
    organization_id: int | None = Field(
        default=None,
        gt=0,
        validation_alias=AliasChoices("organization_id", "organizationId"),
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "products": [
                    {"product_id": 1, "quantity": 60},
                    {"product_id": 2, "quantity": 15},
                ],
                "organization_id": 1,
            }
        },
    )


class _CamelOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LocationStockOut(_CamelOut):
    location_id: int
    location_name: str
    type: str
    available: float
    reserved: float
    on_hand: float


class LocationAvailabilityOut(_CamelOut):
    location_id: int
    location_name: str
    type: str
    available: float


class AllocationLineOut(_CamelOut):
    location_id: int
    quantity: float


class ConsolidatedStockLevelsOut(_CamelOut):
    product_id: int
    total_available: float
    total_reserved: float
    total_on_hand: float
    locations: list[LocationStockOut]


class ConsolidatedStockOut(_CamelOut):
    product_id: int
    total_available: float
    total_reserved: float
    total_on_hand: float
    requested: float
    is_available: bool
    locations: list[LocationStockOut]
    suggested_allocation: list[AllocationLineOut] | None = None


class OrderFeasibilitySummaryOut(_CamelOut):
    total_products_requested: int
    total_products_available: int
    total_quantity_requested: float
    total_quantity_available: float


class OrderFeasibilityOut(_CamelOut):
    order_feasible: bool
    products: list[ConsolidatedStockOut]
    summary: OrderFeasibilitySummaryOut


class AvailableLocationListOut(_CamelOut):
    product_id: int
    items: list[LocationAvailabilityOut]
