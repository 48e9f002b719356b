"""
Statement of Liabilities

A liability records the amount originally borrowed and the payments made
against it. The outstanding balance is never an independent fact: it is
always ``original_amount - sum(principal_paid)``, and the per-payment
``balance_after_payment`` figures are obtained by replaying the payments
in chronological order. Editing operations therefore return a new,
replayed liability instead of patching balances in place.
"""

import logging
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator

from models._decimal_utils import amounts_match
from models.ownership import OwnershipShare, validate_ownership_shares

logger = logging.getLogger(__name__)


class PaymentFrequency(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUALLY = "annually"
    OTHER = "other"


class LiabilityPayment(BaseModel):
    """A single repayment of principal and/or interest."""
    id: str
    date: date
    tax_year: int
    principal_paid: Decimal = Field(default=Decimal("0"), ge=0)
    interest_paid: Decimal = Field(default=Decimal("0"), ge=0)
    balance_after_payment: Optional[Decimal] = None
    notes: Optional[str] = None

    @computed_field
    @property
    def total_paid(self) -> Decimal:
        return self.principal_paid + self.interest_paid


class Liability(BaseModel):
    """A loan, lease or other borrowing on the Statement of Liabilities."""
    id: str
    owner_id: str
    ownership_shares: List[OwnershipShare] = Field(default_factory=list)
    description: str = ""
    lender_name: str = ""
    original_amount: Decimal = Field(ge=0)
    current_balance: Optional[Decimal] = Field(
        default=None,
        description="Outstanding principal; derived from payments when omitted",
    )
    date_acquired: date
    interest_rate: Optional[Decimal] = Field(default=None, ge=0, description="Annual rate in percent")
    purpose: Optional[str] = None
    security_given: Optional[str] = None
    payment_frequency: Optional[PaymentFrequency] = None
    maturity_date: Optional[date] = None
    payments: List[LiabilityPayment] = Field(default_factory=list)

    @field_validator("ownership_shares")
    @classmethod
    def shares_total_one_hundred(cls, v: List[OwnershipShare]) -> List[OwnershipShare]:
        return validate_ownership_shares(v)

    @model_validator(mode="after")
    def balance_matches_payments(self) -> "Liability":
        derived = self.original_amount - self.total_principal_paid
        if derived < 0:
            raise ValueError(
                f"Liability {self.id}: principal paid exceeds the original amount by {-derived}"
            )
        if self.current_balance is None:
            self.current_balance = derived
        elif not amounts_match(self.current_balance, derived):
            raise ValueError(
                f"Liability {self.id}: current_balance {self.current_balance} does not match "
                f"original_amount - principal paid ({derived})"
            )
        return self

    @property
    def is_joint(self) -> bool:
        return bool(self.ownership_shares)

    @property
    def total_principal_paid(self) -> Decimal:
        return sum((p.principal_paid for p in self.payments), Decimal("0"))

    def chronological_payments(self) -> List[LiabilityPayment]:
        # Stable sort keeps entry order for payments made on the same day
        return sorted(self.payments, key=lambda p: (p.date, p.tax_year))

    def replay_payments(self) -> "Liability":
        """
        Return a copy with payments in date order and every
        ``balance_after_payment`` recomputed from the original amount.

        Raises:
            ValueError: if a payment would take the balance below zero.
        """
        balance = self.original_amount
        replayed = []
        for payment in self.chronological_payments():
            balance -= payment.principal_paid
            if balance < 0:
                raise ValueError(
                    f"Payment {payment.id} on liability {self.id} overpays the outstanding principal"
                )
            replayed.append(payment.model_copy(update={"balance_after_payment": balance}))

        return self.model_copy(update={"payments": replayed, "current_balance": balance})

    def with_payment(self, payment: LiabilityPayment) -> "Liability":
        """Return a new liability including ``payment``, replayed."""
        if any(p.id == payment.id for p in self.payments):
            raise ValueError(f"Payment {payment.id} already recorded on liability {self.id}")
        updated = self.model_copy(update={"payments": [*self.payments, payment]})
        return updated.replay_payments()

    def without_payment(self, payment_id: str) -> "Liability":
        """Return a new liability with ``payment_id`` removed, replayed."""
        remaining = [p for p in self.payments if p.id != payment_id]
        if len(remaining) == len(self.payments):
            logger.warning("Payment %s not found on liability %s", payment_id, self.id)
        updated = self.model_copy(update={"payments": remaining})
        return updated.replay_payments()

    def payments_in(self, tax_year: int) -> List[LiabilityPayment]:
        return [p for p in self.payments if p.tax_year == tax_year]

    def principal_paid_in(self, tax_year: int) -> Decimal:
        return sum((p.principal_paid for p in self.payments_in(tax_year)), Decimal("0"))

    def interest_paid_in(self, tax_year: int) -> Decimal:
        return sum((p.interest_paid for p in self.payments_in(tax_year)), Decimal("0"))

    def balance_at_year_end(self, tax_year: int) -> Decimal:
        """Outstanding principal after all payments up to and including ``tax_year``."""
        paid = sum(
            (p.principal_paid for p in self.payments if p.tax_year <= tax_year),
            Decimal("0"),
        )
        return self.original_amount - paid
