from decimal import ROUND_HALF_UP, Decimal
from typing import Union

CENT = Decimal("0.01")


def quantize_money(value: Union[Decimal, int, float, str]) -> Decimal:
	return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value: Union[Decimal, int, float, str]) -> str:
	"""Render an amount for user-facing messages: ``100`` or ``99.50``."""
	amount = quantize_money(value)
	if amount == amount.to_integral_value():
		return str(amount.quantize(Decimal("1")))
	return str(amount)
