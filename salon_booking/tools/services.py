"""Service catalog offered in the booking menu."""

from typing import Optional

SERVICE_CATALOG: dict[str, str] = {
    "1": "Haircut",
    "2": "Haircut + beard",
    "3": "Hydration",
}


def get_all_services() -> list[tuple[str, str]]:
    """Return (menu choice, label) pairs in menu order."""
    return list(SERVICE_CATALOG.items())


def match_service(choice: str) -> Optional[str]:
    """Map a menu choice to a service label. Returns None if no match."""
    return SERVICE_CATALOG.get(choice.strip())
