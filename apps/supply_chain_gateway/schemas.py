"""
Request and response schemas for the Supply Chain Gateway.

Request models are the validation boundary: a body that fails these models
never reaches the ledger. Wire names are camelCase; attributes are snake_case.
"""

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StringConstraints, field_validator

from apps.supply_chain_gateway.mapper import OrganisationRole

AssetId = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class GatewayRequest(BaseModel):
    """Base for all request bodies."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, extra="ignore")


class RegisterCompanyRequest(GatewayRequest):
    company_crn: str = Field(..., alias="companyCRN", min_length=1)
    company_name: str = Field(..., alias="companyName", min_length=1)
    location: str = Field(..., min_length=1)
    role: StrictInt = Field(..., description="Organisation role ordinal")

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: int) -> int:
        if v not in {role.value for role in OrganisationRole}:
            raise ValueError(f"role must be one of {[role.value for role in OrganisationRole]}")
        return v


class AddDrugRequest(GatewayRequest):
    drug_name: str = Field(..., alias="drugName", min_length=1)
    serial_number: str = Field(..., alias="serialNumber", min_length=1)
    maf_date: str | StrictInt = Field(..., alias="mafDate")
    exp_date: str | StrictInt = Field(..., alias="expDate")
    company_crn: str = Field(..., alias="companyCRN", min_length=1)


class CreatePORequest(GatewayRequest):
    buyer_crn: str = Field(..., alias="buyerCRN", min_length=1)
    seller_crn: str = Field(..., alias="sellerCRN", min_length=1)
    drug_name: str = Field(..., alias="drugName", min_length=1)
    quantity: StrictInt = Field(..., gt=0)


class CreateShipmentRequest(GatewayRequest):
    buyer_crn: str = Field(..., alias="buyerCRN", min_length=1)
    drug_name: str = Field(..., alias="drugName", min_length=1)
    list_of_assets: list[AssetId] = Field(..., alias="listOfAssets", min_length=1)
    transporter_crn: str = Field(..., alias="transporterCRN", min_length=1)


class UpdateShipmentRequest(GatewayRequest):
    buyer_crn: str = Field(..., alias="buyerCRN", min_length=1)
    drug_name: str = Field(..., alias="drugName", min_length=1)
    transporter_crn: str = Field(..., alias="transporterCRN", min_length=1)


class RetailDrugRequest(GatewayRequest):
    drug_name: str = Field(..., alias="drugName", min_length=1)
    serial_number: str = Field(..., alias="serialNumber", min_length=1)
    retailer_crn: str = Field(..., alias="retailerCRN", min_length=1)
    customer_aadhar: str = Field(..., alias="customerAadhar", min_length=1)


class DrugLookupRequest(GatewayRequest):
    """Body of viewHistory and viewDrugCurrentState."""

    drug_name: str = Field(..., alias="drugName", min_length=1)
    serial_number: str = Field(..., alias="serialNumber", min_length=1)


class SuccessResponse(BaseModel):
    """Success envelope."""

    message: str
    result: Any


class ErrorDetail(BaseModel):
    kind: str
    message: str
    cause: str | None = None
    outcome_unknown: bool = False
    tx_hash: str | None = None


class ErrorResponse(BaseModel):
    """Failure envelope."""

    message: str
    error: ErrorDetail


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    version: str
    ledger_connected: bool
    designated_writer: str
    timestamp: str
