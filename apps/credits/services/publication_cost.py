"""Credit cost of publishing an auction with optional services."""

from typing import Dict, Iterable

from apps.credits.models import PublicationService

BASIC_SERVICE_CODE = 'publicacion_basica'
HIGHLIGHT_SERVICE_CODE = 'destacado'


def total_cost(selected_service_codes: Iterable[str], price_table: Dict[str, int]) -> int:
    """
    Price a publication.

    The basic publication is always charged exactly once. Every other
    selected code adds its price once; codes missing from the table
    cost nothing.
    """
    extras = set(selected_service_codes) - {BASIC_SERVICE_CODE}
    return price_table.get(BASIC_SERVICE_CODE, 0) + sum(
        price_table.get(code, 0) for code in extras
    )


def get_price_table() -> Dict[str, int]:
    return dict(
        PublicationService.objects
        .filter(is_active=True)
        .values_list('code', 'credit_cost')
    )


def quote_publication(selected_service_codes: Iterable[str]) -> int:
    """Price a publication against the current service catalogue."""
    return total_cost(selected_service_codes, get_price_table())
