"""Expense categories and payment methods with their display names."""
from enum import Enum


class ExpenseCategory(str, Enum):
    FOOD = "food"
    GROCERIES = "groceries"
    TRANSPORTATION = "transportation"
    FLIGHT = "flight"
    ENTERTAINMENT = "entertainment"
    RESTAURANT = "restaurant"
    STREET_FOOD = "streetFood"
    UTILITIES = "utilities"
    SHOPPING = "shopping"
    HEALTH = "health"
    EDUCATION = "education"
    OTHER = "other"


class PaymentMethod(str, Enum):
    CASH = "cash"
    UPI = "upi"
    AMAZON_PAY = "amazonPay"
    AMEX = "amex"
    TATA_NEU_INFINITY = "tataNeuInfinity"
    SWIGGY = "swiggy"


CATEGORY_DISPLAY_NAMES = {
    "food": "Food Delivery",
    "transportation": "Transportation",
    "streetFood": "Street Food",
    "groceries": "Groceries & Vegetables",
    "entertainment": "Entertainment",
    "restaurant": "Restaurant",
    "utilities": "Bills & Utilities",
    "shopping": "Shopping",
    "health": "Health & Medicines",
    "flight": "Flight",
    "education": "Education",
    "other": "Other",
}

PAYMENT_METHOD_DISPLAY_NAMES = {
    "cash": "Cash",
    "upi": "UPI",
    "amazonPay": "Amazon Pay",
    "amex": "AMEX",
    "tataNeuInfinity": "Tata Neu Infinity",
    "swiggy": "Swiggy Card",
}

# Free-text categories are stored as "other - <label>"
CUSTOM_CATEGORY_PREFIX = "other - "


def custom_category(label: str) -> str:
    return f"{CUSTOM_CATEGORY_PREFIX}{label.strip()}"


def category_display_name(category: str) -> str:
    if category in CATEGORY_DISPLAY_NAMES:
        return CATEGORY_DISPLAY_NAMES[category]
    if category.startswith(CUSTOM_CATEGORY_PREFIX):
        return f"Other: {category[len(CUSTOM_CATEGORY_PREFIX):]}"
    return "Unknown"


def payment_method_display_name(method: str) -> str:
    return PAYMENT_METHOD_DISPLAY_NAMES.get(method, "Unknown")
