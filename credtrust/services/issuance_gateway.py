"""IssuanceGateway: the DID / verifiable-credential network behind one seam.

Three calls, all plain request/response against cheqd Studio:

    create_did()          POST /did/create
    issue_credential()    POST /credential/issue
    verify_credential()   POST /credential/verify?verifyStatus=false

Every request is form-encoded and authenticated with the `x-api-key`
header.  There are no retries and no caching: a failed call raises
ServiceError and the caller decides whether to re-invoke.

ISSUANCE IS NOT IDEMPOTENT
---------------------------
Calling issue_credential twice returns two distinct signed artifacts.  The
gateway cannot protect against that; LifecycleCoordinator.approve checks
the stored vc_payload before it ever calls here.

VERIFICATION FAILS SOFT
------------------------
verify_credential is advisory and never mutates state, so any failure
(network, status code, body shape) is logged and reported as False.

Two implementations share the IssuanceGateway protocol:
  - CheqdIssuanceGateway: the real network, via httpx.AsyncClient.
  - InMemoryIssuanceGateway: deterministic DIDs and payloads for dev/test,
    chosen at import when the network is not configured (same pattern as
    the in-memory unit of work).
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Any, Protocol

import httpx

from credtrust.core.config import SETTINGS, Settings
from credtrust.core.errors import ServiceError
from credtrust.core.metrics import ISSUANCE_CALLS, ISSUANCE_DURATION

logger = logging.getLogger(__name__)

DID_CONTEXT = ["https://www.w3.org/ns/did/v1"]
DEFAULT_DID_SERVICE = [
    {
        "idFragment": "service-1",
        "type": "LinkedDomains",
        "serviceEndpoint": ["https://example.com"],
    }
]


class IssuanceGateway(Protocol):
    async def create_did(self) -> str: ...

    async def issue_credential(
        self,
        *,
        issuer_did: str,
        subject_did: str,
        attributes: dict[str, Any],
        credential_type: str,
        status_list_name: str | None = None,
    ) -> dict[str, Any]: ...

    async def verify_credential(self, payload: dict[str, Any]) -> bool: ...


class CheqdIssuanceGateway:
    """Satisfies the IssuanceGateway Protocol against the cheqd Studio API."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str | None,
        network: str = "testnet",
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._network = network
        self._timeout = httpx.Timeout(timeout_seconds)
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> CheqdIssuanceGateway:
        return cls(
            base_url=settings.cheqd_api_url,
            api_key=settings.cheqd_api_key,
            network=settings.cheqd_network,
            timeout_seconds=settings.issuance_timeout_seconds,
        )

    async def create_did(self) -> str:
        body = await self._post(
            "create_did",
            "/did/create",
            {
                "network": self._network,
                "identifierFormatType": "uuid",
                "verificationMethodType": "Ed25519VerificationKey2018",
                "service": json.dumps(DEFAULT_DID_SERVICE),
                "@context": json.dumps(DID_CONTEXT),
            },
        )
        did = body.get("did")
        if not isinstance(did, str) or not did:
            logger.error("DID creation response carried no did")
            raise ServiceError("DID network returned no DID", code="malformed_response")
        logger.info("Minted DID %s", did)
        return did

    async def issue_credential(
        self,
        *,
        issuer_did: str,
        subject_did: str,
        attributes: dict[str, Any],
        credential_type: str,
        status_list_name: str | None = None,
    ) -> dict[str, Any]:
        form = {
            "issuerDid": issuer_did,
            "subjectDid": subject_did,
            "attributes": json.dumps(attributes),
            "format": "jwt",
            "type": credential_type,
        }
        if status_list_name:
            form["credentialStatus"] = json.dumps(
                {"statusPurpose": "revocation", "statusListName": status_list_name}
            )
        payload = await self._post("issue", "/credential/issue", form)
        logger.info("Issued %s credential for subject=%s", credential_type, subject_did)
        return payload

    async def verify_credential(self, payload: dict[str, Any]) -> bool:
        try:
            body = await self._post(
                "verify",
                "/credential/verify",
                {"credential": json.dumps(payload), "policies": json.dumps({})},
                params={"verifyStatus": "false"},
            )
        except ServiceError as e:
            logger.warning("Credential verification failed soft: %s", e.message)
            return False
        return body.get("verified") is True

    async def _post(
        self,
        operation: str,
        path: str,
        form: dict[str, str],
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        if not self._base_url or not self._api_key:
            ISSUANCE_CALLS.labels(operation=operation, result="error").inc()
            raise ServiceError(
                "DID network credentials are not configured",
                code="issuance_not_configured",
            )

        start = time.monotonic()
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    path,
                    data=form,
                    params=params,
                    headers={"x-api-key": self._api_key, "accept": "application/json"},
                )
        except httpx.TimeoutException:
            ISSUANCE_CALLS.labels(operation=operation, result="error").inc()
            logger.error("%s timed out after %.1fs", operation, self._timeout.read or 0)
            raise ServiceError(
                f"{operation} timed out", code="issuance_timeout"
            ) from None
        except httpx.HTTPError as e:
            ISSUANCE_CALLS.labels(operation=operation, result="error").inc()
            logger.error("%s transport error: %s", operation, e)
            raise ServiceError(
                f"{operation} could not reach the DID network", code="issuance_unreachable"
            ) from None
        finally:
            ISSUANCE_DURATION.labels(operation=operation).observe(
                time.monotonic() - start
            )

        if not response.is_success:
            ISSUANCE_CALLS.labels(operation=operation, result="error").inc()
            logger.error(
                "%s failed: status=%d body=%s",
                operation,
                response.status_code,
                response.text[:500],
            )
            raise ServiceError(
                f"{operation} failed with status {response.status_code}",
                code="issuance_rejected",
            )

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            ISSUANCE_CALLS.labels(operation=operation, result="error").inc()
            raise ServiceError(
                f"{operation} returned a malformed response", code="malformed_response"
            )

        ISSUANCE_CALLS.labels(operation=operation, result="ok").inc()
        return body


class InMemoryIssuanceGateway:
    """Deterministic stand-in for the DID network.

    DIDs are derived from a counter, so a fresh gateway always mints the
    same sequence.  Every issued payload is recorded, which lets tests count
    issuance calls and lets verify_credential recognise its own output.
    """

    def __init__(self, network: str = "testnet") -> None:
        self._network = network
        self._dids_minted = 0
        self.issued: list[dict[str, Any]] = []

    async def create_did(self) -> str:
        self._dids_minted += 1
        suffix = uuid.uuid5(uuid.NAMESPACE_URL, f"credtrust-did-{self._dids_minted}")
        ISSUANCE_CALLS.labels(operation="create_did", result="ok").inc()
        return f"did:cheqd:{self._network}:{suffix}"

    async def issue_credential(
        self,
        *,
        issuer_did: str,
        subject_did: str,
        attributes: dict[str, Any],
        credential_type: str,
        status_list_name: str | None = None,
    ) -> dict[str, Any]:
        serial = len(self.issued) + 1
        payload: dict[str, Any] = {
            "@context": ["https://www.w3.org/2018/credentials/v1"],
            "type": ["VerifiableCredential", credential_type],
            "issuer": {"id": issuer_did},
            "credentialSubject": {"id": subject_did, **attributes},
            "proof": {"type": "JwtProof2020", "jwt": f"in-memory.{serial}"},
        }
        if status_list_name:
            payload["credentialStatus"] = {
                "statusPurpose": "revocation",
                "statusListName": status_list_name,
            }
        self.issued.append(payload)
        ISSUANCE_CALLS.labels(operation="issue", result="ok").inc()
        return payload

    async def verify_credential(self, payload: dict[str, Any]) -> bool:
        ISSUANCE_CALLS.labels(operation="verify", result="ok").inc()
        return payload in self.issued

    def reset(self) -> None:
        self._dids_minted = 0
        self.issued.clear()


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

if SETTINGS.issuance_configured:
    issuance_gateway: IssuanceGateway = CheqdIssuanceGateway.from_settings(SETTINGS)
else:
    issuance_gateway = InMemoryIssuanceGateway(SETTINGS.cheqd_network)
