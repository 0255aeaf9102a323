"""
Nightfall Client
================
Async httpx client for the Nightfall v3 /scan endpoint.

Request:
    {"policy": {"detectionRules": [{"logicalOp": "ANY", "detectors": [...]}]},
     "payload": ["item 1", "item 2", ...]}

    Each configured detector is sent with its configured displayName, or its
    detector identifier when none is set. Findings come back under that
    name; it is kept for comments and mapped back to the identifier the
    policy is keyed on.

Response:
    {"findings": [[finding, ...], ...]}  — one list per payload item

Any transport error, non-2xx status or undecodable body becomes a
RemoteScanError. Retry and backoff are not handled here.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx

from diffscan.core.config import HTTP_TIMEOUT, NIGHTFALL_API_URL
from diffscan.core.errors import RemoteScanError
from diffscan.models.finding import Confidence, Finding

logger = logging.getLogger(__name__)


def build_scan_request(
    policy: Mapping[str, Confidence],
    items: List[str],
    display_names: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    display_names = display_names or {}
    detectors = [
        {
            "detectorType": "NIGHTFALL_DETECTOR",
            "nightfallDetector": name,
            "displayName": display_names.get(name) or name,
            "minConfidence": minimum.value,
            "minNumFindings": 1,
        }
        for name, minimum in policy.items()
    ]
    return {
        "policy": {"detectionRules": [{"name": "diffscan", "logicalOp": "ANY", "detectors": detectors}]},
        "payload": items,
    }


def parse_finding(raw: Dict[str, Any], detector_ids: Optional[Mapping[str, str]] = None) -> Finding:
    """Map one raw finding; ``detector_ids`` resolves display names to identifiers."""
    detector = raw.get("detector") or {}
    name = detector.get("name", "")
    byte_range = (raw.get("location") or {}).get("byteRange")
    return Finding(
        detector=(detector_ids or {}).get(name, name),
        display_name=name or None,
        fragment=raw.get("finding", ""),
        confidence=Confidence(raw.get("confidence", Confidence.POSSIBLE.value)),
        byte_range=(byte_range["start"], byte_range["end"]) if byte_range else None,
    )


class NightfallClient:
    """
    Remote scan capability backed by the Nightfall API.
    """

    def __init__(
        self,
        api_key: str,
        policy: Mapping[str, Confidence],
        display_names: Optional[Mapping[str, str]] = None,
        url: str = NIGHTFALL_API_URL,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.policy = dict(policy)
        self.display_names = {k: v for k, v in (display_names or {}).items() if v}
        self._detector_ids = {v: k for k, v in self.display_names.items()}
        self.url = url
        self.headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "User-Agent": "diffscan",
        }
        self._client = client or httpx.AsyncClient(timeout=HTTP_TIMEOUT)

    async def __aenter__(self) -> "NightfallClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def submit(self, items: List[str]) -> List[List[Finding]]:
        """Scan ``items``; returns one findings list per item, in order."""
        body = build_scan_request(self.policy, items, self.display_names)
        try:
            response = await self._client.post(self.url, json=body, headers=self.headers)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            logger.error("Nightfall API returned HTTP %d for %d items", status_code, len(items))
            raise RemoteScanError(f"Nightfall API returned HTTP {status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Error from Nightfall API, unable to scan %d items: %s", len(items), e)
            raise RemoteScanError(f"Nightfall API request failed: {e}") from e

        try:
            return [
                [parse_finding(f, self._detector_ids) for f in (per_item or [])]
                for per_item in data["findings"]
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteScanError(f"unexpected Nightfall API response: {e}") from e
