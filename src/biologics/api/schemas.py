"""Pydantic request/response schemas for the Biologics API.

Field names on the wire match the ledger document (camelCase). Requests allow
extra keys: whatever the caller sends beyond the declared fields is stored on
the order, or on the status history entry, verbatim.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _sent_payload(model: BaseModel) -> dict[str, Any]:
    """Return only what the caller sent: declared fields by wire name, plus extra keys."""
    declared = model.model_fields_set & set(type(model).model_fields)
    payload = model.model_dump(by_alias=True, include=declared)
    payload.update(model.model_extra or {})
    return payload


def _scalar_as_text(value: Any) -> Any:
    """Numbers sent for text fields are kept as their string form, as the ledger stores them."""
    if isinstance(value, (int, float)):
        return str(value)
    return value


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class CreateOrderRequest(BaseModel):
    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "orderId": "ORD-1001",
                    "status": "draft",
                    "createdBy": "hospital-admin-7",
                    "statusTimestamp": "2024-05-01T09:30:00Z",
                    "therapyType": "CAR-T",
                    "manufacturerId": "MFR-01",
                    "hospitalId": "HSP-22",
                    "logisticsId": "LOG-05",
                    "slotId": "SLOT-2024-05-10",
                    "createdAt": "2024-05-01T09:30:00Z",
                    "ccnCode": "CCN-778",
                    "cmsCertNumber": "CMS-45-0012",
                }
            ]
        },
    )

    order_id: str = Field(alias="orderId", min_length=1)
    status: str
    created_by: str | None = Field(default=None, alias="createdBy")
    status_timestamp: str | None = Field(default=None, alias="statusTimestamp")
    therapy_type: str | None = Field(default=None, alias="therapyType")
    manufacturer_id: str | None = Field(default=None, alias="manufacturerId")
    hospital_id: str | None = Field(default=None, alias="hospitalId")
    logistics_id: str | None = Field(default=None, alias="logisticsId")
    slot_id: str | None = Field(default=None, alias="slotId")
    created_at: str | None = Field(default=None, alias="createdAt")
    ccn_code: str | None = Field(default=None, alias="ccnCode")
    cms_cert_number: str | None = Field(default=None, alias="cmsCertNumber")

    @field_validator(
        "created_by",
        "status_timestamp",
        "therapy_type",
        "manufacturer_id",
        "hospital_id",
        "logistics_id",
        "slot_id",
        "created_at",
        "ccn_code",
        "cms_cert_number",
        mode="before",
    )
    @classmethod
    def descriptive_fields_as_text(cls, value: Any) -> Any:
        return _scalar_as_text(value)

    def to_payload(self) -> dict[str, Any]:
        return _sent_payload(self)


class UpdateOrderStatusRequest(BaseModel):
    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "status": "shipped_to_manufacturer",
                    "updatedBy": "logistics-user-3",
                    "timestamp": "2024-05-03T14:00:00Z",
                    "trackingNumber": "TRK-99812",
                }
            ]
        },
    )

    status: str
    updated_by: str | None = Field(default=None, alias="updatedBy")
    timestamp: str | None = None

    @field_validator("updated_by", "timestamp", mode="before")
    @classmethod
    def core_fields_as_text(cls, value: Any) -> Any:
        return _scalar_as_text(value)

    def to_payload(self, order_id: str) -> dict[str, Any]:
        return {**_sent_payload(self), "orderId": order_id}


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderExistsResponse(BaseModel):
    order_id: str
    exists: bool


class PageMetadata(BaseModel):
    fetchedRecordsCount: int
    bookmark: str


class OrderPageRow(BaseModel):
    key: str
    record: dict[str, Any]


class OrderPageResponse(BaseModel):
    data: list[OrderPageRow]
    metadata: PageMetadata
