# -*- coding: utf-8 -*-
"""
FastAPI routes for monitoring and recovering monthly payment generation.
"""
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from tutorcenter import auth
from tutorcenter.database import get_db
from tutorcenter.schemas.generation import (GenerationStatusRead, PeriodScan, RecoveryRequest,
                                            RecoveryResponse)
from tutorcenter.services import generation_ledger, payment_recovery
from tutorcenter.services.payment_scheduler import check_current_month

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["System"],
    responses={404: {"description": "Not found"}},
)

LOCAL_HOSTS = ("localhost", "127.0.0.1", "::1")


@router.get("")
def read_system_status(check_missed: bool = False, window: Optional[int] = None, db: Session = Depends(get_db)):
    """
    Health check. With ``check_missed=true`` lists the generation status of
    the last months so the dashboard can offer "generate now" for gaps.
    """
    if check_missed:
        if window is not None and window < 1:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Window must be at least 1")
        # Same local clock for the reported date and the scanned periods
        now = datetime.now()
        statuses = payment_recovery.scan_recent_periods(db, window_size=window, today=now.date())
        return PeriodScan(
            current_date=now,
            payment_generation_status=statuses,
            message="Payment generation status check complete"
        )

    return {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "message": "Payment system is operational"
    }


@router.get("/history", response_model=List[GenerationStatusRead])
def read_generation_history(limit: int = 24, db: Session = Depends(get_db)):
    return generation_ledger.list_statuses(db, limit=max(limit, 1))


@router.get("/status/{year}/{month}", response_model=GenerationStatusRead)
def read_generation_status(year: int, month: int, db: Session = Depends(get_db)):
    if not 1 <= month <= 12:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Month must be between 1 and 12")
    db_status = generation_ledger.get_status(db, month, year)
    if db_status is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No generation recorded for {month}/{year}")
    return db_status


@router.post("", response_model=RecoveryResponse)
def trigger_recovery(
    request: RecoveryRequest,
    db: Session = Depends(get_db),
    current_user: dict = Depends(auth.get_admin_or_manager)
):
    """
    Re-runs payment generation for one period (the dashboard "generate now" action).
    """
    result = payment_recovery.trigger_recovery(
        db, request.month, request.year,
        force=request.force,
        generated_by=current_user["username"]
    )
    return {
        "success": result.success,
        "message": f"Recovery process executed for {request.month}/{request.year}",
        "result": result
    }


@router.post("/check-current-month")
def check_current_month_payments(
    request: Request,
    x_system_check: Optional[str] = Header(None),
    db: Session = Depends(get_db)
):
    """
    Generates the current month if it was not generated yet. Only for the
    scheduler (x-system-check header) or local callers.
    """
    client_host = request.client.host if request.client else None
    if not x_system_check and client_host not in LOCAL_HOSTS:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    return check_current_month(db)
