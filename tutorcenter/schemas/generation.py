# -*- coding: utf-8 -*-
"""
Pydantic schemas for payment generation runs and the generation ledger.
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class GenerationRequest(BaseModel):
    month: Optional[int] = Field(None, ge=1, le=12)
    year: Optional[int] = Field(None, gt=0)
    force: bool = False
    prorate: Optional[bool] = None
    # When true, month/year are ignored and the current period is used
    check_current_month: bool = False


class RecoveryRequest(BaseModel):
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., gt=0)
    force: bool = False


class GenerationResult(BaseModel):
    success: bool
    message: Optional[str] = None
    new_count: int = 0
    skip_count: int = 0
    error: Optional[str] = None


class GenerationStatusRead(BaseModel):
    year: int
    month: int
    generated_at: Optional[datetime] = None
    generated_by: str
    count: int
    is_complete: bool

    class Config:
        from_attributes = True


class PeriodStatus(BaseModel):
    month: int
    year: int
    generated: bool
    complete: bool
    count: int = 0


class PeriodScan(BaseModel):
    current_date: datetime
    payment_generation_status: List[PeriodStatus]
    message: str


class RecoveryResponse(BaseModel):
    success: bool
    message: str
    result: GenerationResult
