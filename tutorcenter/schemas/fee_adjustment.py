# -*- coding: utf-8 -*-
"""
Pydantic schemas for enrollment fee adjustments.

An adjustment is one of three variants tagged by ``kind``:

- ``discount``: ``value`` is a percentage (0-100) taken off the class fee.
- ``waiver``: the fee is fully waived, ``value`` is ignored.
- ``custom``: ``value`` replaces the class fee as an absolute amount.

Adjustments are validated once when they enter the system, so the fee
calculator only ever sees one of the typed variants below.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter


class DiscountAdjustment(BaseModel):
    kind: Literal["discount"] = "discount"
    value: float = Field(..., ge=0, le=100)
    reason: Optional[str] = Field(None, max_length=255)


class WaiverAdjustment(BaseModel):
    kind: Literal["waiver"] = "waiver"
    value: float = 0
    reason: Optional[str] = Field(None, max_length=255)


class CustomAdjustment(BaseModel):
    kind: Literal["custom"] = "custom"
    value: float = Field(..., ge=0)
    reason: Optional[str] = Field(None, max_length=255)


FeeAdjustment = Annotated[
    Union[DiscountAdjustment, WaiverAdjustment, CustomAdjustment],
    Field(discriminator="kind"),
]

_fee_adjustment_adapter = TypeAdapter(FeeAdjustment)


def parse_fee_adjustment(data):
    """Validates a raw dict into one of the adjustment variants (raises ValidationError)."""
    return _fee_adjustment_adapter.validate_python(data)
