"""Operator roster Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class OperatorCreate(BaseModel):
    """Schema for adding an operator to the roster."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    epf_number: str = Field(..., min_length=1, max_length=20)


class OperatorResponse(BaseModel):
    """Schema for operator responses."""

    name: str
    epf_number: str
    created_at: datetime

    model_config = {"from_attributes": True}
