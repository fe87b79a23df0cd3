"""
GS1 registry lookup.

Fetches descriptive attributes for a trade identifier. Used only for
best-effort enrichment, so lookup() never raises: every failure mode is
reported through Gs1LookupResult.
"""

from dataclasses import dataclass
from typing import Any, Optional
import requests
import structlog

from models.product import ProductAttributes
from utils.gtin_utils import normalize_to_gtin14

logger = structlog.get_logger(__name__)


# Registry field name -> product attribute, first present wins
ATTRIBUTE_KEYS: dict[str, tuple[str, ...]] = {
    "brand": ("brandName", "brand"),
    "name": ("productName", "tradeItemDescription", "name"),
    "description": ("productDescription", "shortDescription", "description"),
    "net_content": ("netContent", "net_content"),
}


@dataclass
class Gs1LookupResult:
    """Outcome of one registry lookup."""
    found: bool
    attributes: Optional[ProductAttributes] = None
    error: Optional[str] = None


class Gs1LookupClient:
    """
    HTTP client for the registry.

    GET {base_url}/gtin/{gtin14} with an optional X-API-Key header.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 5.0,
        session: Optional[requests.Session] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def lookup(self, gtin: str) -> Gs1LookupResult:
        """
        Fetch attributes by identifier.

        Args:
            gtin: Validated identifier, any length

        Returns:
            Gs1LookupResult with found=False and an error message on
            not-found, timeout, HTTP error or malformed response
        """
        gtin14 = normalize_to_gtin14(gtin)
        if gtin14 is None:
            return Gs1LookupResult(found=False, error=f"Invalid GTIN for lookup: {gtin}")

        url = f"{self.base_url}/gtin/{gtin14}"
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["X-API-Key"] = self.api_key

        try:
            logger.debug("gs1_lookup_request", gtin=gtin14)
            response = self.session.get(url, headers=headers, timeout=self.timeout)
        except requests.exceptions.Timeout:
            logger.warning("gs1_lookup_timeout", gtin=gtin14, timeout=self.timeout)
            return Gs1LookupResult(found=False, error="GS1 lookup timed out")
        except requests.exceptions.RequestException as e:
            logger.warning("gs1_lookup_request_failed", gtin=gtin14, error=str(e))
            return Gs1LookupResult(found=False, error=f"GS1 lookup failed: {str(e)}")

        if response.status_code == 404:
            logger.debug("gs1_lookup_not_found", gtin=gtin14)
            return Gs1LookupResult(found=False, error="GTIN not found in GS1 registry")

        if not response.ok:
            logger.warning("gs1_lookup_http_error", gtin=gtin14, status_code=response.status_code)
            return Gs1LookupResult(
                found=False,
                error=f"GS1 lookup returned HTTP {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError:
            logger.warning("gs1_lookup_malformed_response", gtin=gtin14)
            return Gs1LookupResult(found=False, error="GS1 lookup returned malformed response")

        attributes = parse_attributes(payload)
        if attributes is None:
            logger.warning("gs1_lookup_malformed_response", gtin=gtin14)
            return Gs1LookupResult(found=False, error="GS1 lookup returned malformed response")

        if not attributes.non_empty():
            return Gs1LookupResult(found=False, error="GS1 record has no usable attributes")

        logger.debug("gs1_lookup_found", gtin=gtin14, fields=list(attributes.non_empty().keys()))
        return Gs1LookupResult(found=True, attributes=attributes)


def parse_attributes(payload: Any) -> Optional[ProductAttributes]:
    """
    Extract product attributes from a registry response.

    Accepts the record at the top level or wrapped in "data"/"product".
    Returns None if the payload is not a JSON object.
    """
    if not isinstance(payload, dict):
        return None

    record = payload
    for wrapper in ("data", "product"):
        if isinstance(payload.get(wrapper), dict):
            record = payload[wrapper]
            break

    values = {}
    for attribute, keys in ATTRIBUTE_KEYS.items():
        for key in keys:
            value = _text(record.get(key))
            if value:
                values[attribute] = value
                break

    return ProductAttributes(**values)


def _text(value: Any) -> Optional[str]:
    """Flatten {"value": .., "unitCode": ..} style values to a string."""
    if value is None:
        return None
    if isinstance(value, dict):
        amount = value.get("value")
        unit = value.get("unitCode") or value.get("unit")
        if amount is None:
            return None
        return f"{amount} {unit}".strip() if unit else str(amount)
    if isinstance(value, (list, tuple)):
        return _text(value[0]) if value else None
    text = str(value).strip()
    return text or None
