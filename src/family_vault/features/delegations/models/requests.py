"""Delegation request models for the REST surface."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ....config.constants import DelegationScope, PermissionType
from ..utils.validation import DelegationValidationRules


class CreateDelegationRequest(BaseModel):
    """Body of ``POST /delegations/requests``."""

    owner_id: int = Field(..., gt=0, description="Member owning the resources")
    beneficiary_id: int = Field(..., gt=0, description="Member receiving access")
    scope: DelegationScope = Field(..., description="Resource class")
    target_id: Optional[int] = Field(None, description="Resource id, omitted for FULL_SPACE")
    permission_type: PermissionType = Field(..., description="Requested access level")
    reason: str = Field(..., description="Why access is needed")
    expiration_date: Optional[datetime] = Field(None, description="When the grant should lapse")

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v: str) -> str:
        return DelegationValidationRules.validate_reason(v)

    @model_validator(mode="after")
    def validate_target(self) -> "CreateDelegationRequest":
        DelegationValidationRules.validate_target(self.scope, self.target_id)
        return self


class ApproveDelegationRequest(BaseModel):
    """Body of ``POST /delegations/requests/{id}/approve``."""

    comment: Optional[str] = Field(None, description="Optional approval comment")

    @field_validator("comment")
    @classmethod
    def validate_comment(cls, v: Optional[str]) -> Optional[str]:
        return DelegationValidationRules.validate_comment(v)


class ReasonRequest(BaseModel):
    """Body carrying a mandatory reason (reject, revoke)."""

    reason: str = Field(..., description="Reason recorded with the decision")

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v: str) -> str:
        return DelegationValidationRules.validate_reason(v)
