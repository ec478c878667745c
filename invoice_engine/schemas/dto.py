from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from invoice_engine.calc.models import NO_DISCOUNT, Discount, InvoiceTotals, LineItem


class LineItemIn(BaseModel):
    id: str | None = None
    description: str = ""
    quantity: Decimal
    unit_price: Decimal
    tax_rate: Decimal | None = None
    discount: Discount = NO_DISCOUNT
    order: int | None = None

    def to_line_item(self, index: int) -> LineItem:
        return LineItem(
            id=self.id or f"line-{index + 1}",
            description=self.description,
            quantity=self.quantity,
            unit_price=self.unit_price,
            tax_rate=self.tax_rate,
            discount=self.discount,
            order=self.order,
        )


class TotalsPreviewRequest(BaseModel):
    items: list[LineItemIn]
    global_discount: Optional[Discount] = None
    force_zero_tax: bool = False


class TotalsResponse(InvoiceTotals):
    zero_tax_clause: str | None = None


class ReminderSendRequest(BaseModel):
    stage: int = Field(ge=1, le=3)
    # send by hand even though the policy says the stage is not due yet
    force: bool = False


class ReminderStateResponse(BaseModel):
    invoice_id: str
    status: str
    due_date: date
    last_reminder_sent_at: datetime | date | None = None
    max_reminder_stage_reached: int


class ReminderPolicyResponse(BaseModel):
    enabled: bool
    days_after_due: int
    days_between_stages: int
    fee_stage1: Decimal
    fee_stage2: Decimal
    fee_stage3: Decimal
