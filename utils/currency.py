"""
Currency configuration and restaurant-specific price formatting
"""
import re
from typing import Dict

CURRENCY_CONFIGS: Dict[str, Dict[str, str]] = {
    "USD": {"symbol": "$", "name": "US Dollar", "example": "$1,234.56"},
    "EUR": {"symbol": "€", "name": "Euro", "example": "1.234,56€"},
    "GBP": {"symbol": "£", "name": "British Pound", "example": "£1,234.56"},
    "JPY": {"symbol": "¥", "name": "Japanese Yen", "example": "¥1,234"},
    "CAD": {"symbol": "C$", "name": "Canadian Dollar", "example": "C$1,234.56"},
    "AUD": {"symbol": "A$", "name": "Australian Dollar", "example": "A$1,234.56"},
    "CHF": {"symbol": "CHF", "name": "Swiss Franc", "example": "CHF 1,234.56"},
    "CNY": {"symbol": "¥", "name": "Chinese Yuan", "example": "¥1,234.56"},
    "MXN": {"symbol": "$", "name": "Mexican Peso", "example": "$1,234.56"},
    "BRL": {"symbol": "R$", "name": "Brazilian Real", "example": "R$ 1.234,56"},
}

# Currencies written as 1.234,56
COMMA_DECIMAL_CURRENCIES = ("EUR", "BRL")


def format_price(amount: float, currency: str = "USD", position: str = "before") -> str:
    """
    Format a price according to a restaurant's currency configuration.

    Unknown or missing currencies fall back to plain USD formatting.
    Yen is shown without decimals.
    """
    config = CURRENCY_CONFIGS.get(currency or "")
    if config is None:
        return f"${amount:.2f}"

    if currency == "JPY":
        formatted_amount = f"{round(amount):,}"
    else:
        formatted_amount = f"{amount:,.2f}"

    if position == "after":
        return f"{formatted_amount}{config['symbol']}"
    return f"{config['symbol']}{formatted_amount}"


def format_price_range(min_amount: float, max_amount: float, currency: str = "USD", position: str = "before") -> str:
    return f"{format_price(min_amount, currency, position)} - {format_price(max_amount, currency, position)}"


def get_currency_symbol(currency_code: str) -> str:
    config = CURRENCY_CONFIGS.get(currency_code)
    return config["symbol"] if config else "$"


def get_currency_name(currency_code: str) -> str:
    config = CURRENCY_CONFIGS.get(currency_code)
    return config["name"] if config else "US Dollar"


def parse_price(formatted_price: str, currency: str = "USD") -> float:
    """Parse a formatted price back to a number. Returns 0.0 when unparseable."""
    if not formatted_price:
        return 0.0
    config = CURRENCY_CONFIGS.get(currency)
    if config is None:
        return 0.0

    clean_price = formatted_price.replace(config["symbol"], "").strip()
    # 1.234,56 only when the comma is the last separator
    if currency in COMMA_DECIMAL_CURRENCIES and clean_price.rfind(",") > clean_price.rfind("."):
        clean_price = clean_price.replace(".", "").replace(",", ".")
    else:
        clean_price = clean_price.replace(",", "")

    match = re.search(r"-?\d+(\.\d+)?", clean_price)
    return float(match.group(0)) if match else 0.0


def calculate_total_with_tax(subtotal: float, tax_rate: float, currency: str = "USD", position: str = "before") -> Dict[str, str]:
    """
    Args:
        subtotal: Subtotal amount
        tax_rate: Tax rate as a percentage (e.g. 8.5)

    Returns:
        Formatted subtotal, tax amount and total
    """
    tax_amount = (subtotal * tax_rate) / 100
    total = subtotal + tax_amount
    return {
        "subtotal": format_price(subtotal, currency, position),
        "tax_amount": format_price(tax_amount, currency, position),
        "total": format_price(total, currency, position),
    }


# Currencies the gateways count in whole units
ZERO_DECIMAL_CURRENCIES = ("JPY",)


def to_minor_units(amount: float, currency: str = "USD") -> int:
    """Amount in the smallest currency unit, as Stripe expects it (22.5 USD -> 2250)."""
    if currency.upper() in ZERO_DECIMAL_CURRENCIES:
        return int(round(amount))
    return int(round(amount * 100))
