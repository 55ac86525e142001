from __future__ import annotations
from typing import Dict, Optional

INDIA = {"currency": "INR", "amount": 1500, "provider": "Razorpay", "symbol": "₹"}
INTERNATIONAL = {"currency": "USD", "amount": 30, "provider": "PayPal", "symbol": "$"}


def payment_config(country_code: Optional[str]) -> Dict[str, object]:
    # Session fee by client country: Razorpay in India, PayPal everywhere else.
    if (country_code or "").strip().upper() == "IN":
        return dict(INDIA)
    return dict(INTERNATIONAL)
