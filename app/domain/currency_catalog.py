"""
ISO 4217 currency seed data with correct decimal precision.
Most currencies use 2 decimals; JPY/KRW use 0; KWD/BHD/OMR/JOD use 3.
"""

from .value_objects import MONEY_DECIMALS, Currency

CURRENCY_SEED_DATA: tuple[Currency, ...] = (
    Currency("USD", "US Dollar", "$", 2),
    Currency("EUR", "Euro", "€", 2),
    Currency("GBP", "British Pound", "£", 2),
    Currency("JPY", "Japanese Yen", "¥", 0),
    Currency("CHF", "Swiss Franc", "Fr", 2),
    Currency("CAD", "Canadian Dollar", "$", 2),
    Currency("AUD", "Australian Dollar", "$", 2),
    Currency("CNY", "Chinese Yuan", "¥", 2),
    Currency("AED", "UAE Dirham", "د.إ", 2),
    Currency("SAR", "Saudi Riyal", "ر.س", 2),
    Currency("QAR", "Qatari Riyal", "ر.ق", 2),
    Currency("KWD", "Kuwaiti Dinar", "د.ك", 3),
    Currency("BHD", "Bahraini Dinar", ".د.ب", 3),
    Currency("OMR", "Omani Rial", "ر.ع.", 3),
    Currency("JOD", "Jordanian Dinar", "د.ا", 3),
    Currency("EGP", "Egyptian Pound", "ج.م", 2),
    Currency("TRY", "Turkish Lira", "₺", 2),
    Currency("INR", "Indian Rupee", "₹", 2),
    Currency("KRW", "South Korean Won", "₩", 0),
    Currency("SGD", "Singapore Dollar", "$", 2),
    Currency("HKD", "Hong Kong Dollar", "$", 2),
    Currency("NZD", "New Zealand Dollar", "$", 2),
    Currency("SEK", "Swedish Krona", "kr", 2),
    Currency("NOK", "Norwegian Krone", "kr", 2),
    Currency("DKK", "Danish Krone", "kr", 2),
    Currency("PLN", "Polish Zloty", "zł", 2),
    Currency("CZK", "Czech Koruna", "Kč", 2),
    Currency("HUF", "Hungarian Forint", "Ft", 2),
    Currency("ZAR", "South African Rand", "R", 2),
    Currency("BRL", "Brazilian Real", "R$", 2),
    Currency("MXN", "Mexican Peso", "$", 2),
    Currency("VND", "Vietnamese Dong", "₫", 0),
)

_BY_CODE = {currency.code: currency for currency in CURRENCY_SEED_DATA}


def seed_currency(code: str) -> Currency | None:
    return _BY_CODE.get(code.upper())


def default_decimal_places(code: str) -> int:
    """Decimal places of a seeded currency, 2 for unknown codes."""
    currency = seed_currency(code)
    return currency.decimal_places if currency else MONEY_DECIMALS
