"""
Third-party integrations.
"""

from integrations.gs1_lookup import Gs1LookupClient, Gs1LookupResult

__all__ = [
    "Gs1LookupClient",
    "Gs1LookupResult",
]
