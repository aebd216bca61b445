# This project was developed with assistance from AI tools.
"""Premium calculation logic.

Pure math, no I/O. Money is Decimal quantized to cents so that the final
amount never drifts from the sum of its components.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from ..errors import WorkflowValidationError

CENT = Decimal("0.01")
RATE_PRECISION = Decimal("0.0001")
ZERO = Decimal("0.00")


def to_money(value, field_name: str = "amount") -> Decimal:
    """Coerce a user-supplied value to a cent-quantized Decimal.

    Floats go through ``str`` so 0.1 stays 0.1 rather than its binary expansion.
    """
    if isinstance(value, bool):
        raise WorkflowValidationError(f"{field_name} must be numeric")
    try:
        amount = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise WorkflowValidationError(f"{field_name} must be numeric, got {value!r}") from exc
    if not amount.is_finite():
        raise WorkflowValidationError(f"{field_name} must be a finite number")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_rate(value, field_name: str = "premiumTaxPercent") -> Decimal:
    """Coerce a percentage to a Decimal with four decimal places."""
    if isinstance(value, bool):
        raise WorkflowValidationError(f"{field_name} must be numeric")
    try:
        rate = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise WorkflowValidationError(f"{field_name} must be numeric, got {value!r}") from exc
    if not rate.is_finite() or rate < 0:
        raise WorkflowValidationError(f"{field_name} must be a non-negative number")
    return rate.quantize(RATE_PRECISION, rounding=ROUND_HALF_UP)


def _optional_money(value, field_name: str) -> Decimal | None:
    if value is None or value == "":
        return None
    amount = to_money(value, field_name)
    if amount < 0:
        raise WorkflowValidationError(f"{field_name} cannot be negative")
    return amount


def validate_carrier_quote(value) -> Decimal:
    """Carrier premium is required and strictly positive."""
    if value is None or value == "":
        raise WorkflowValidationError("Missing required field: carrierQuoteUSD")
    amount = to_money(value, "carrierQuoteUSD")
    if amount <= 0:
        raise WorkflowValidationError("carrierQuoteUSD must be greater than 0")
    return amount


def parse_broker_fee(value) -> Decimal:
    """Validate an agency broker-fee edit. Absent means zero."""
    if value is None or value == "":
        return ZERO
    amount = to_money(value, "brokerFeeAmountUSD")
    if amount < 0:
        raise WorkflowValidationError("brokerFeeAmountUSD cannot be negative")
    return amount


@dataclass(frozen=True)
class RateComponents:
    """Inputs to the final payable amount."""

    carrier_quote_usd: Decimal
    broker_fee_amount_usd: Decimal = ZERO
    premium_tax_amount_usd: Decimal | None = None
    policy_fee_usd: Decimal | None = None

    @classmethod
    def build(
        cls,
        carrier_quote_usd,
        broker_fee_amount_usd=None,
        premium_tax_amount_usd=None,
        policy_fee_usd=None,
    ) -> "RateComponents":
        """Validate raw inputs and return normalized components."""
        return cls(
            carrier_quote_usd=validate_carrier_quote(carrier_quote_usd),
            broker_fee_amount_usd=parse_broker_fee(broker_fee_amount_usd),
            premium_tax_amount_usd=_optional_money(premium_tax_amount_usd, "premiumTaxAmountUSD"),
            policy_fee_usd=_optional_money(policy_fee_usd, "policyFeeUSD"),
        )

    @classmethod
    def of(cls, quote) -> "RateComponents":
        """Read the components off a Quote row or snapshot."""
        return cls.build(
            quote.carrier_quote_usd,
            quote.broker_fee_amount_usd,
            quote.premium_tax_amount_usd,
            quote.policy_fee_usd,
        )


def calculate_final_amount(components: RateComponents) -> Decimal:
    """finalAmountUSD = carrier quote + broker fee + premium tax + policy fee.

    No wholesale or markup fee is part of the model.
    """
    total = (
        components.carrier_quote_usd
        + components.broker_fee_amount_usd
        + (components.premium_tax_amount_usd or ZERO)
        + (components.policy_fee_usd or ZERO)
    )
    return total.quantize(CENT, rounding=ROUND_HALF_UP)


def derive_tax_amount(carrier_quote_usd: Decimal, premium_tax_percent: Decimal) -> Decimal:
    """Premium tax amount for a percentage of the carrier premium."""
    return (carrier_quote_usd * premium_tax_percent / Decimal(100)).quantize(
        CENT, rounding=ROUND_HALF_UP
    )
