"""
HTTP adapter — chain submission to a Certificate Transparency log via httpx.

Adapter layer — implements the SubmissionSink port with one POST per chain:

  AssembledChain → {"chain": [base64(der), ...]} → POST add-chain
    → 200 + {"timestamp": ...} → SubmissionOutcome

No retry: a failed submission is reported once and dropped by the caller.
  - transport exceptions (connect, read, timeout) → TRANSPORT_ERROR
  - status other than 200                         → PROTOCOL_ERROR (body text in message)
  - 200 without an integer millisecond timestamp  → PROTOCOL_ERROR

One httpx.Client is shared by all worker threads (connection pooling);
call close() when the pipeline is done.
"""

from __future__ import annotations

import base64
import json
from collections.abc import Sequence

import httpx
from pydantic import BaseModel, ConfigDict, Field, StrictInt
from railway import ErrorCode
from railway.result import Result

from ct_submitter.domain.models import AssembledChain, SubmissionOutcome

DEFAULT_LOG_URL = "https://ct.googleapis.com/rocketeer/ct/v1/add-chain"

# 9999-12-31T23:59:59.999Z, the last instant a datetime can hold
MAX_TIMESTAMP_MS = 253_402_300_799_999


class SignedCertificateTimestamp(BaseModel):
    """The add-chain response body. Only `timestamp` is required."""

    model_config = ConfigDict(extra="ignore")

    sct_version: int | None = None
    id: str | None = None
    timestamp: StrictInt = Field(ge=0, le=MAX_TIMESTAMP_MS)
    extensions: str | None = None
    signature: str | None = None


def encode_submission(certs: Sequence[bytes]) -> bytes:
    """Encode DER certificates as the compact add-chain JSON body, order preserved."""
    chain = [base64.b64encode(cert).decode("ascii") for cert in certs]
    return json.dumps({"chain": chain}, separators=(",", ":")).encode("utf-8")


class HttpLogSink:
    """
    Submit chains to a CT log's add-chain endpoint.

    Implements the SubmissionSink port.
    """

    def __init__(
        self,
        log_url: str = DEFAULT_LOG_URL,
        timeout: float = 60,
        client: httpx.Client | None = None,
    ) -> None:
        self._log_url = log_url
        self._client = client or httpx.Client(timeout=timeout)

    def submit(self, chain: AssembledChain) -> Result[SubmissionOutcome]:
        """
        POST the chain and decode the signed certificate timestamp.

        Returns Result[SubmissionOutcome] on HTTP 200 with a valid body,
        or Result.failure(TRANSPORT_ERROR | PROTOCOL_ERROR, ...) otherwise.
        """
        body = encode_submission(chain.certs)
        return (
            Result.from_computation(
                lambda: self._post(body),
                ErrorCode.TRANSPORT_ERROR,
                f"Submission of chain {chain.sequence_id} failed",
            )
            .flat_map(_require_ok)
            .flat_map(_decode_outcome)
        )

    def _post(self, body: bytes) -> httpx.Response:
        return self._client.post(
            self._log_url,
            content=body,
            headers={"Content-Type": "application/json"},
        )

    def close(self) -> None:
        self._client.close()


def _require_ok(response: httpx.Response) -> Result[httpx.Response]:
    if response.status_code != httpx.codes.OK:
        return Result.failure(
            ErrorCode.PROTOCOL_ERROR,
            f"non-200 status code {response.status_code}, body: {response.text}",
        )
    return Result.success(response)


def _decode_outcome(response: httpx.Response) -> Result[SubmissionOutcome]:
    return Result.from_computation(
        lambda: SignedCertificateTimestamp.model_validate_json(response.content),
        ErrorCode.PROTOCOL_ERROR,
        "Malformed add-chain response",
    ).map(
        lambda sct: SubmissionOutcome(
            timestamp=sct.timestamp,
            log_id=sct.id,
            signature=sct.signature,
        )
    )
