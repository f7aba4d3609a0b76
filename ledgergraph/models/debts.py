from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from .common import BasisPoints, Cents


DebtStatus = Literal["active", "paid", "overdue"]


class DebtCreate(BaseModel):
    organization_id: int
    creditor_name: str = Field(..., min_length=1)
    original_amount: Cents
    remaining_amount: Cents
    interest_rate: Optional[BasisPoints] = None
    due_date: Optional[date] = None
    status: DebtStatus = "active"
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _check_remaining(self):
        if self.remaining_amount > self.original_amount:
            raise ValueError("remaining_amount must not exceed original_amount")
        if self.status == "paid" and self.remaining_amount > 0:
            raise ValueError("a debt with a remaining balance cannot be created as paid")
        return self


class DebtUpdate(BaseModel):
    """Descriptive fields only; remaining_amount and status move through payments."""
    creditor_name: Optional[str] = Field(None, min_length=1)
    interest_rate: Optional[BasisPoints] = None
    due_date: Optional[date] = None
    status: Optional[Literal["active", "overdue"]] = None
    notes: Optional[str] = None

