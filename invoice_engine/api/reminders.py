from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from invoice_engine.calc.errors import ReminderTransitionError
from invoice_engine.calc.models import ReminderEligibility, ReminderState
from invoice_engine.core.security import api_key_auth
from invoice_engine.db.session import get_db
from invoice_engine.schemas.dto import ReminderSendRequest, ReminderStateResponse
from invoice_engine.services import reminders as reminder_service
from invoice_engine.workers.jobs import scan_due_reminders
from invoice_engine.workers.queue import REMINDER_QUEUE, get_queue

router = APIRouter(dependencies=[Depends(api_key_auth)])


def _state_response(state: ReminderState) -> ReminderStateResponse:
    return ReminderStateResponse(
        invoice_id=state.invoice_id,
        status=state.status.value,
        due_date=state.due_date,
        last_reminder_sent_at=state.last_reminder_sent_at,
        max_reminder_stage_reached=state.max_reminder_stage_reached,
    )


@router.get("/invoices/{invoice_id}/reminder-eligibility", response_model=ReminderEligibility)
def get_reminder_eligibility(
    invoice_id: int,
    today: Optional[date] = Query(default=None, description="Evaluation date, defaults to today"),
    db: Session = Depends(get_db),
) -> ReminderEligibility:
    eligibility = reminder_service.reminder_eligibility(db, invoice_id, today or reminder_service.local_today())
    if eligibility is None:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return eligibility


@router.get("/reminders/eligible", response_model=list[ReminderEligibility])
def list_eligible_reminders(
    today: Optional[date] = Query(default=None, description="Evaluation date, defaults to today"),
    only_eligible: bool = Query(default=False, description="Drop invoices that are not yet due for a reminder"),
    db: Session = Depends(get_db),
) -> list[ReminderEligibility]:
    results = reminder_service.open_invoice_eligibilities(db, today or reminder_service.local_today())
    if only_eligible:
        results = [r for r in results if r.is_eligible]
    return results


@router.post("/reminders/send/{invoice_id}", response_model=ReminderStateResponse)
def send_reminder(
    invoice_id: int, payload: ReminderSendRequest, db: Session = Depends(get_db)
) -> ReminderStateResponse:
    """Record a reminder the caller has just sent (stage 1, 2 or 3).

    409 when the stage is out of order, not due yet (unless ``force``) or was
    recorded concurrently.
    """
    try:
        state = reminder_service.send_reminder(db, invoice_id, payload.stage, force=payload.force)
    except ReminderTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except reminder_service.ReminderConflict as e:
        raise HTTPException(status_code=409, detail=str(e))
    if state is None:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return _state_response(state)


@router.post("/invoices/{invoice_id}/paid", response_model=ReminderStateResponse)
def mark_invoice_paid(invoice_id: int, db: Session = Depends(get_db)) -> ReminderStateResponse:
    state = reminder_service.mark_paid(db, invoice_id)
    if state is None:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return _state_response(state)


@router.post("/reminders/scan")
def enqueue_reminder_scan() -> dict[str, Any]:
    """Enqueue the batch reminder scan and return the job id."""
    q = get_queue(REMINDER_QUEUE)
    job = q.enqueue(scan_due_reminders)
    return {"status": "accepted", "job_id": job.get_id()}


@router.get("/reminders/history", response_model=list[ReminderStateResponse])
def list_reminder_history(
    limit: int = Query(default=100, ge=1, le=500), db: Session = Depends(get_db)
) -> list[ReminderStateResponse]:
    """Invoices that have been reminded, most recent first."""
    return [_state_response(s) for s in reminder_service.reminder_history(db, limit=limit)]
