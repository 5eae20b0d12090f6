import datetime
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional

from django.core.exceptions import ValidationError
from django.utils.dateparse import parse_date

from ..models.payment import (MODE_BANK, MODE_CASH, MODE_CHEQUE,
                              MODE_PAYMENT_LINK, MODE_UPI, PAYMENT_MODES)

# Modes that settle through one of the tenant's bank accounts
BANK_SETTLED_MODES = {MODE_BANK, MODE_UPI, MODE_CHEQUE}

# The reference each mode cannot do without
REQUIRED_REFERENCE = {
    MODE_CHEQUE: ("cheque_number", "Cheque number is required for cheque payments"),
    MODE_UPI: ("upi_reference", "UPI reference is required for UPI payments"),
    MODE_PAYMENT_LINK: ("payment_link_id", "Payment link id is required for payment link payments"),
}

MAX_AMOUNT = Decimal("999999999999.99")  # fits DecimalField(14, 2)


@dataclass
class PaymentRequest:
    """A payment instruction as submitted by the client."""
    amount: Optional[Decimal]
    payment_mode: str
    payment_date: Optional[datetime.date]
    bank_account_id: Optional[int] = None
    cheque_number: str = ""
    upi_reference: str = ""
    payment_link_id: str = ""
    notes: str = ""

    @classmethod
    def from_payload(cls, payload):
        """
        Build a request from a decoded JSON body. camelCase keys (as sent by
        the web client) and snake_case keys are both accepted. Values that
        cannot be parsed raise ValidationError keyed by field.
        """
        def pick(snake, camel, default=None):
            if snake in payload:
                return payload[snake]
            return payload.get(camel, default)

        errors = {}

        raw_amount = pick("amount", "amount")
        amount = None
        if isinstance(raw_amount, float):
            errors["amount"] = "Amount must be sent as a decimal string"
        elif raw_amount is not None and raw_amount != "":
            try:
                amount = Decimal(str(raw_amount).strip())
            except InvalidOperation:
                errors["amount"] = "Amount must be a decimal number"

        raw_date = pick("payment_date", "paymentDate")
        payment_date = None
        if isinstance(raw_date, datetime.datetime):
            payment_date = raw_date.date()
        elif isinstance(raw_date, datetime.date):
            payment_date = raw_date
        elif raw_date:
            try:
                payment_date = parse_date(str(raw_date))
            except ValueError:
                payment_date = None
            if payment_date is None:
                errors["payment_date"] = "Payment date must be an ISO date (YYYY-MM-DD)"

        raw_bank = pick("bank_account_id", "bankAccountId")
        bank_account_id = None
        if raw_bank not in (None, ""):
            try:
                bank_account_id = int(raw_bank)
            except (TypeError, ValueError):
                errors["bank_account_id"] = "Bank account id must be an integer"

        if errors:
            raise ValidationError(errors)

        return cls(
            amount=amount,
            payment_mode=str(pick("payment_mode", "paymentMode") or "").strip(),
            payment_date=payment_date,
            bank_account_id=bank_account_id,
            cheque_number=str(pick("cheque_number", "chequeNumber") or "").strip(),
            upi_reference=str(pick("upi_reference", "upiReference") or "").strip(),
            payment_link_id=str(pick("payment_link_id", "paymentLinkId") or "").strip(),
            notes=pick("notes", "notes") or "",
        )


def validate_payment_request(request: PaymentRequest):
    errors = {}

    amount = request.amount
    if amount is None:
        errors["amount"] = "Amount is required"
    elif not isinstance(amount, Decimal) or not amount.is_finite():
        errors["amount"] = "Amount must be a decimal number"
    elif amount <= 0:
        errors["amount"] = "Amount must be greater than zero"
    elif amount > MAX_AMOUNT:
        errors["amount"] = "Amount is too large"
    elif amount != amount.quantize(Decimal("0.01")):
        errors["amount"] = "Amount can have at most 2 decimal places"

    valid_modes = {code for code, _label in PAYMENT_MODES}
    mode = request.payment_mode
    if mode not in valid_modes:
        errors["payment_mode"] = (
            f"Payment mode must be one of {', '.join(sorted(valid_modes))}")
    else:
        if mode in BANK_SETTLED_MODES and not request.bank_account_id:
            errors["bank_account_id"] = f"Bank account is required for {mode} payments"
        if mode == MODE_CASH and request.bank_account_id:
            errors["bank_account_id"] = "Cash payments cannot reference a bank account"
        if mode in REQUIRED_REFERENCE:
            attr, message = REQUIRED_REFERENCE[mode]
            if not getattr(request, attr):
                errors[attr] = message

    if request.payment_date is None:
        errors["payment_date"] = "Payment date is required"

    if errors:
        raise ValidationError(errors)
    return request
