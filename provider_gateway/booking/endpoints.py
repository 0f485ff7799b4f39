# provider_gateway/booking/endpoints.py
"""Booksy business API paths, relative to BooksySettings.base_url."""
from __future__ import annotations

from datetime import date
from typing import Optional
from urllib.parse import urlencode

GET_BUSINESS_DATA = "business_api/me/businesses/?businesses_page=1&businesses_per_page=1"


def get_appointments(
    business_id: int,
    start_date: date,
    end_date: date,
    customer_name: Optional[str] = None,
) -> str:
    query = urlencode(
        {
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
            "customer_name": customer_name or "",
            "include_unconfirmed": "true",
        }
    )
    return f"business_api/me/businesses/{business_id}/calendar?{query}"
