# Static promo table: code -> discount fraction in (0, 1] and label
PROMO_CODES = {
    "SAVE10": {"discount": 0.10, "label": "Save 10%"},
    "BOOKS20": {"discount": 0.20, "label": "Save 20%"},
    "FIRST25": {"discount": 0.25, "label": "Save 25%"},
}

INVALID_PROMO_MESSAGE = "Invalid promo code"
