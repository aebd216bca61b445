# This project was developed with assistance from AI tools.
"""HTTP adapters for the external collaborators.

Tax rates, document rendering, e-signature, payment and agency
notification each sit behind a small ``httpx.AsyncClient`` wrapper with a
bounded timeout. Transport errors, non-2xx responses and malformed bodies
all surface as ``CollaboratorFailure``; callers decide whether that is
fatal (payment, signing) or degraded (tax, binder, notification).

The module exposes singletons initialised at app startup via
``init_collaborators()``.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from ..core.config import Settings
from ..errors import CollaboratorFailure

logger = logging.getLogger(__name__)


class HttpCollaborator:
    """Shared request/response handling for one external service."""

    name = "collaborator"

    def __init__(
        self,
        base_url: str,
        timeout: float,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._api_key = api_key
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        if self._api_key:
            return {"Authorization": f"Bearer {self._api_key}"}
        return {}

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self._headers(),
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, **kwargs)
                response.raise_for_status()
                return response
        except httpx.TimeoutException as exc:
            raise CollaboratorFailure(self.name, f"{self.name} timed out after {self.timeout}s") from exc
        except httpx.HTTPStatusError as exc:
            raise CollaboratorFailure(
                self.name, f"{self.name} returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise CollaboratorFailure(self.name, f"{self.name} unreachable: {exc}") from exc

    async def _json(self, method: str, path: str, **kwargs: Any) -> dict:
        response = await self._request(method, path, **kwargs)
        try:
            body = response.json()
        except ValueError as exc:
            raise CollaboratorFailure(self.name, f"{self.name} returned a non-JSON body") from exc
        if not isinstance(body, dict):
            raise CollaboratorFailure(self.name, f"{self.name} returned an unexpected body")
        return body


def _decimal_field(body: dict, key: str, collaborator: str) -> Decimal:
    try:
        value = Decimal(str(body[key]))
    except (KeyError, InvalidOperation, TypeError) as exc:
        raise CollaboratorFailure(collaborator, f"{collaborator} response missing numeric '{key}'") from exc
    if not value.is_finite():
        raise CollaboratorFailure(collaborator, f"{collaborator} response has non-finite '{key}'")
    return value


class TaxServiceClient(HttpCollaborator):
    """``GET /rates?state=CA&premium=1000`` -> ``{taxRate, taxAmount}``."""

    name = "tax"

    async def calculate(self, state_code: str, premium: Decimal) -> tuple[Decimal, Decimal]:
        if not self.base_url:
            raise CollaboratorFailure(self.name, "tax service not configured")
        body = await self._json("GET", "/rates", params={"state": state_code, "premium": str(premium)})
        return _decimal_field(body, "taxRate", self.name), _decimal_field(body, "taxAmount", self.name)


@dataclass(frozen=True)
class RenderedDocument:
    """Renderer output: either a URL it persisted, or PDF bytes for us to store."""

    url: str | None = None
    content: bytes | None = None


class RendererClient(HttpCollaborator):
    """``POST /render`` with ``{documentType, fields}``."""

    name = "renderer"

    async def render(self, document_type: str, fields: dict) -> RenderedDocument:
        response = await self._request(
            "POST",
            "/render",
            json={"documentType": document_type, "fields": fields},
        )
        if response.headers.get("content-type", "").startswith("application/pdf"):
            if not response.content:
                raise CollaboratorFailure(self.name, "renderer returned an empty PDF")
            return RenderedDocument(content=response.content)
        try:
            url = response.json().get("documentUrl")
        except (ValueError, AttributeError) as exc:
            raise CollaboratorFailure(self.name, "renderer returned an unexpected body") from exc
        if not url:
            raise CollaboratorFailure(self.name, "renderer response missing documentUrl")
        return RenderedDocument(url=url)


class EsignClient(HttpCollaborator):
    """``POST /envelopes`` with the document URLs and signer -> ``{signingUrl}``."""

    name = "esign"

    async def send(self, submission_id: int, document_urls: list[str], signer: dict) -> str:
        body = await self._json(
            "POST",
            "/envelopes",
            json={
                "submissionId": submission_id,
                "documentUrls": document_urls,
                "signer": signer,
            },
        )
        signing_url = body.get("signingUrl")
        if not signing_url:
            raise CollaboratorFailure(self.name, "esign response missing signingUrl")
        return signing_url


def payment_idempotency_key(submission_id: int) -> str:
    return f"submission-{submission_id}-payment"


class PaymentClient(HttpCollaborator):
    """``POST /payments`` -> ``{paymentStatus}``. Anything but PAID is a failure.

    Each charge carries an ``Idempotency-Key`` fixed per submission, so
    concurrent or retried payments collapse to one charge at the processor.
    """

    name = "payment"

    async def charge(self, submission_id: int, amount: Decimal, method: str) -> str:
        body = await self._json(
            "POST",
            "/payments",
            json={"submissionId": submission_id, "amount": str(amount), "method": method},
            headers={"Idempotency-Key": payment_idempotency_key(submission_id)},
        )
        payment_status = str(body.get("paymentStatus", "")).upper()
        if payment_status != "PAID":
            raise CollaboratorFailure(
                self.name, f"payment not completed (status={payment_status or 'missing'})"
            )
        return payment_status


class NotificationClient(HttpCollaborator):
    """Fire-and-forget agency messages. Without a URL, messages are only logged."""

    name = "notification"

    async def notify(self, recipient: str | None, subject: str, message: str) -> bool:
        if not self.base_url:
            logger.info("Notification (not sent, no endpoint) to=%s subject=%s", recipient, subject)
            return False
        if not recipient:
            logger.warning("Notification skipped, no recipient: %s", subject)
            return False
        await self._request(
            "POST",
            "/messages",
            json={"to": recipient, "subject": subject, "message": message},
        )
        return True


# ---------------------------------------------------------------------------
# Module-level singletons
# ---------------------------------------------------------------------------

_tax: TaxServiceClient | None = None
_renderer: RendererClient | None = None
_esign: EsignClient | None = None
_payment: PaymentClient | None = None
_notification: NotificationClient | None = None


def init_collaborators(cfg: Settings) -> None:
    """Initialise every collaborator singleton (called once from app lifespan)."""
    global _tax, _renderer, _esign, _payment, _notification  # noqa: PLW0603
    _tax = TaxServiceClient(cfg.TAX_SERVICE_URL or "", cfg.TAX_SERVICE_TIMEOUT)
    _renderer = RendererClient(cfg.RENDERER_URL, cfg.RENDERER_TIMEOUT)
    _esign = EsignClient(cfg.ESIGN_URL, cfg.ESIGN_TIMEOUT, api_key=cfg.ESIGN_API_KEY)
    _payment = PaymentClient(cfg.PAYMENT_URL, cfg.PAYMENT_TIMEOUT, api_key=cfg.PAYMENT_API_KEY)
    _notification = NotificationClient(cfg.NOTIFICATION_URL or "", cfg.NOTIFICATION_TIMEOUT)
    log_collaborator_status(cfg)


def log_collaborator_status(cfg: Settings) -> None:
    """Log which collaborators are configured."""
    if cfg.TAX_SERVICE_URL:
        logger.info("Tax service: %s (timeout %.1fs)", cfg.TAX_SERVICE_URL, cfg.TAX_SERVICE_TIMEOUT)
    else:
        logger.warning("Tax service not configured -- premium tax will be entered manually")
    logger.info("Renderer: %s (timeout %.1fs)", cfg.RENDERER_URL, cfg.RENDERER_TIMEOUT)
    logger.info("E-sign: %s (timeout %.1fs)", cfg.ESIGN_URL, cfg.ESIGN_TIMEOUT)
    logger.info("Payment: %s (timeout %.1fs)", cfg.PAYMENT_URL, cfg.PAYMENT_TIMEOUT)
    if not cfg.NOTIFICATION_URL:
        logger.warning("Notification service not configured -- agency messages are logged only")


def _require(client, name: str):
    if client is None:
        raise RuntimeError(f"{name} not initialised -- call init_collaborators() first")
    return client


def get_tax_client() -> TaxServiceClient:
    return _require(_tax, "TaxServiceClient")


def get_renderer() -> RendererClient:
    return _require(_renderer, "RendererClient")


def get_esign_client() -> EsignClient:
    return _require(_esign, "EsignClient")


def get_payment_client() -> PaymentClient:
    return _require(_payment, "PaymentClient")


def get_notification_client() -> NotificationClient:
    return _require(_notification, "NotificationClient")
