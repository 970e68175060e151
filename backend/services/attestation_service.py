"""
attestation_service.py — Best-effort proof of completion
Providers return an opaque proof handle for a finalized record or raise
AttestationError. Callers must treat failure as non-fatal.
"""

import hashlib
import json
import logging

import httpx

import config
from errors import AttestationError

logger = logging.getLogger(__name__)


class AttestationProvider:
    def attest(self, kind: str, record: dict) -> str:
        raise NotImplementedError


class MockAttestationProvider(AttestationProvider):
    """Deterministic stand-in: SHA-256 over the canonical JSON of the record."""

    def attest(self, kind: str, record: dict) -> str:
        raw = json.dumps({"kind": kind, "record": record}, sort_keys=True, default=str)
        return "0x" + hashlib.sha256(raw.encode("utf-8")).hexdigest()


class HttpAttestationProvider(AttestationProvider):
    """POSTs the record to an external ledger endpoint that answers {"proof": "..."}."""

    def __init__(self, url: str = None, api_key: str = None, client: httpx.Client = None):
        self.url = url or config.ATTESTATION_URL
        self.api_key = api_key if api_key is not None else config.ATTESTATION_API_KEY
        self.client = client

    def attest(self, kind: str, record: dict) -> str:
        if not self.url:
            raise AttestationError("ATTESTATION_URL is not configured")
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        try:
            if self.client is not None:
                resp = self.client.post(self.url, json={"kind": kind, "record": record}, headers=headers)
            else:
                with httpx.Client(timeout=10) as client:
                    resp = client.post(self.url, json={"kind": kind, "record": record}, headers=headers)
            resp.raise_for_status()
            proof = resp.json().get("proof")
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            raise AttestationError(f"Attestation request failed: {e}") from e
        if not proof:
            raise AttestationError("Attestation response carried no proof")
        return proof


def make_attestation(mode: str = None) -> AttestationProvider | None:
    mode = (mode or config.ATTESTATION_MODE).lower()
    if mode == "mock":
        return MockAttestationProvider()
    if mode == "http":
        return HttpAttestationProvider()
    return None
