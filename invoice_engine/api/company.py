from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from invoice_engine.calc.errors import ConfigurationError
from invoice_engine.calc.policy import validate_policy
from invoice_engine.core.security import api_key_auth
from invoice_engine.db.crud.company import get_company, update_reminder_policy
from invoice_engine.db.session import get_db
from invoice_engine.schemas.dto import ReminderPolicyResponse
from invoice_engine.services.snapshots import policy_from_company

router = APIRouter(dependencies=[Depends(api_key_auth)])


def _to_response(policy) -> ReminderPolicyResponse:
    return ReminderPolicyResponse(**policy.model_dump())


@router.get("/reminder-policy", response_model=ReminderPolicyResponse)
def get_reminder_policy(db: Session = Depends(get_db)) -> ReminderPolicyResponse:
    return _to_response(policy_from_company(get_company(db)))


@router.put("/reminder-policy", response_model=ReminderPolicyResponse)
def put_reminder_policy(payload: dict, db: Session = Depends(get_db)) -> ReminderPolicyResponse:
    """Validate and store the reminder policy.

    Body example:
      { "enabled": true, "days_after_due": 7, "days_between_stages": 14,
        "fee_stage1": 0, "fee_stage2": 5, "fee_stage3": 10 }
    """
    try:
        policy = validate_policy(payload)
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=e.errors or str(e))
    update_reminder_policy(db, policy)
    db.commit()
    return _to_response(policy)
