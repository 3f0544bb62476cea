"""API routers package."""

from turjman.api import deps, health, pages, pay, receipts, services, verify

__all__ = [
    "deps",
    "health",
    "pages",
    "pay",
    "receipts",
    "services",
    "verify",
]
