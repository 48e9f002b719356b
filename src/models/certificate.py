"""
APIT / WHT certificates.

Certificates issued by employers (APIT) and by banks, companies or tenants
(WHT) evidence tax already deducted at source. They are credits against
the tax on income. A certificate may point at the income record it relates
to; linked certificates are not counted a second time when the linked
income record already carries the deduction.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from models._decimal_utils import amounts_match


class CertificateType(str, Enum):
    EMPLOYMENT = "employment"
    INTEREST = "interest"
    DIVIDEND = "dividend"
    RENT = "rent"
    OTHER = "other"


class Certificate(BaseModel):
    """Tax deduction certificate."""
    id: str
    owner_id: str
    tax_year: int
    certificate_no: str = ""
    issue_date: Optional[date] = None
    certificate_type: CertificateType
    payer_name: str = ""
    payer_tin: str = ""
    gross_amount: Decimal = Field(ge=0)
    tax_deducted: Decimal = Field(default=Decimal("0"), ge=0)
    net_amount: Optional[Decimal] = Field(default=None, ge=0)
    related_income_id: Optional[str] = None
    verified: bool = False
    notes: Optional[str] = None

    @model_validator(mode="after")
    def amounts_reconcile(self) -> "Certificate":
        if self.tax_deducted > self.gross_amount:
            raise ValueError("Tax deducted cannot exceed the gross amount")
        expected_net = self.gross_amount - self.tax_deducted
        if self.net_amount is None:
            self.net_amount = expected_net
        elif not amounts_match(self.net_amount, expected_net):
            raise ValueError(
                f"Net amount {self.net_amount} should equal gross less tax deducted ({expected_net})"
            )
        return self

    @property
    def is_apit(self) -> bool:
        return self.certificate_type == CertificateType.EMPLOYMENT
