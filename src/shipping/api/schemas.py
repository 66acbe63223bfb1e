"""Pydantic API schemas for the Shipping domain.

These are the external API contracts — separate from the use case input.
The API layer translates between these schemas and the use case.
"""

from pydantic import BaseModel


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class IssueLabelRequest(BaseModel):
    shipping_method: str | None = None


class ConfigureCarrierRequest(BaseModel):
    shipping_method: str
    should_succeed: bool = True
    failure_reason: str = "Carrier unavailable"


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class ErrorBody(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    error: ErrorBody


class DryRunResponse(BaseModel):
    success: bool = True
    dry_run: bool = True
    message: str


class CarrierConfigResponse(BaseModel):
    carrier: str
    should_succeed: bool
    failure_reason: str
