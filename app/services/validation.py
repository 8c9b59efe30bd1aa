"""
Purchase request validation.

Rules run in a fixed order and the first failure wins, so the shopper
always sees a single actionable message.
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

from app.exceptions import ValidationError

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
NON_DIGITS_RE = re.compile(r"\D")

MIN_NAME_LENGTH = 3
PHONE_DIGITS = 11


@dataclass(frozen=True)
class ValidatedPurchase:
    """Purchase request after normalization."""

    customer_name: str
    phone_number: str
    cpf: str
    email: str
    amount_minor: int
    product_title: str
    product_description: str

    @property
    def amount_major(self) -> Decimal:
        """Amount in reais with two decimal places, as the gateway expects."""
        return (Decimal(self.amount_minor) / 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def only_digits(value: str) -> str:
    return NON_DIGITS_RE.sub("", value)


def normalize_phone(phone: str) -> str:
    return only_digits(phone)


def _check_digit(digits: str, weights: range) -> int:
    total = sum(int(d) * w for d, w in zip(digits, weights))
    remainder = (total * 10) % 11
    return 0 if remainder >= 10 else remainder


def is_valid_cpf(cpf: Any) -> bool:
    """
    Validate a CPF (Brazilian national id) by its two mod-11 check digits.

    Weights run 10..2 for the first check digit and 11..2 for the second.
    Sequences of one repeated digit pass the arithmetic but are never issued.
    """
    if not isinstance(cpf, str):
        return False
    digits = only_digits(cpf)
    if len(digits) != 11 or digits == digits[0] * 11:
        return False

    first = _check_digit(digits[:9], range(10, 1, -1))
    if first != int(digits[9]):
        return False

    second = _check_digit(digits[:10], range(11, 1, -1))
    return second == int(digits[10])


def is_valid_email(email: Any) -> bool:
    return isinstance(email, str) and EMAIL_RE.match(email.lower()) is not None


def is_valid_phone(phone: Any) -> bool:
    return isinstance(phone, str) and len(normalize_phone(phone)) == PHONE_DIGITS


def parse_amount(value: Any) -> Optional[Decimal]:
    """Parse a positive amount in minor units; None when not a positive number."""
    if isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount <= 0:
        return None
    return amount


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_purchase_request(
    value: Any,
    name: Any,
    phone: Any,
    cpf: Any,
    email: Any,
    product_title: Optional[str] = None,
    product_description: Optional[str] = None,
) -> ValidatedPurchase:
    """Run every purchase rule in order, raising ValidationError on the first failure."""
    if any(_is_blank(v) for v in (value, name, phone, cpf, email)):
        raise ValidationError("Todos os campos, incluindo e-mail, são obrigatórios.")

    if not is_valid_cpf(cpf):
        raise ValidationError("CPF inválido. Por favor, verifique o número digitado.")

    if not is_valid_email(email):
        raise ValidationError("E-mail inválido. Por favor, verifique o endereço digitado.")

    if not is_valid_phone(phone):
        raise ValidationError("Telefone inválido. Deve conter 11 dígitos (DDD + número).")

    amount = parse_amount(value)
    if amount is None:
        raise ValidationError("Valor do produto inválido.")

    amount_minor = int(amount.to_integral_value(rounding=ROUND_HALF_UP))
    if amount_minor <= 0:
        raise ValidationError("Valor do produto inválido.")

    if not isinstance(name, str) or len(name.strip()) < MIN_NAME_LENGTH:
        raise ValidationError("Nome deve ter no mínimo 3 caracteres.")

    return ValidatedPurchase(
        customer_name=name.strip(),
        phone_number=normalize_phone(phone),
        cpf=only_digits(cpf),
        email=email.strip(),
        amount_minor=amount_minor,
        product_title=product_title or "",
        product_description=product_description or "",
    )
