from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from invoice_engine.calc.errors import ValidationError
from invoice_engine.calc.models import InvoiceTotals
from invoice_engine.calc.ordering import normalize
from invoice_engine.calc.totals import compute_totals, zero_tax_clause
from invoice_engine.core.security import api_key_auth
from invoice_engine.db.session import get_db
from invoice_engine.schemas.dto import TotalsPreviewRequest, TotalsResponse
from invoice_engine.services.invoices import recompute_invoice
from invoice_engine.services.snapshots import tax_policy_from_settings

router = APIRouter(dependencies=[Depends(api_key_auth)])


def _to_response(totals: InvoiceTotals) -> TotalsResponse:
    return TotalsResponse(**totals.model_dump(), zero_tax_clause=zero_tax_clause(totals))


@router.post("/totals/preview", response_model=TotalsResponse)
def preview_totals(payload: TotalsPreviewRequest) -> TotalsResponse:
    """Live totals for an editor (invoice or quote) that has not been saved yet."""
    items = normalize(it.to_line_item(i) for i, it in enumerate(payload.items))
    try:
        totals = compute_totals(
            items,
            payload.global_discount,
            force_zero_tax=payload.force_zero_tax,
            tax_policy=tax_policy_from_settings(),
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _to_response(totals)


@router.post("/invoices/{invoice_id}/totals/recompute", response_model=TotalsResponse)
def recompute_totals(invoice_id: int, db: Session = Depends(get_db)) -> TotalsResponse:
    try:
        totals = recompute_invoice(db, invoice_id)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    if totals is None:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return _to_response(totals)
