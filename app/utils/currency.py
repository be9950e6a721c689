"""Перевод цен каталога (целые единицы валюты) в минимальные единицы для платёжного шлюза."""

# ISO 4217 currencies without a minor unit; everything else is treated as 2-decimal.
ZERO_DECIMAL_CURRENCIES = frozenset({"JPY", "KRW", "VND", "CLP", "PYG", "UGX", "XAF", "XOF"})


def minor_unit_factor(currency: str) -> int:
    return 1 if currency.upper() in ZERO_DECIMAL_CURRENCIES else 100


def to_minor_units(amount: int, currency: str) -> int:
    """Вернуть сумму в минимальных единицах: 500 INR -> 50000 paise."""
    return int(amount) * minor_unit_factor(currency)
