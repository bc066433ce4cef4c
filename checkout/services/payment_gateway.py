# checkout/services/payment_gateway.py
import hashlib
import hmac
from dataclasses import dataclass, field
from decimal import Decimal

import requests
from requests import RequestException

from checkout.domain.exceptions import PaymentGatewayError
from checkout.domain.pricing import to_minor_units
from checkout.utils.retry import gateway_retry
from checkout.utils.settings import (
    PAYMENT_CURRENCY,
    PAYMENT_GATEWAY_TIMEOUT,
    PAYSTACK_BASE_URL,
    PAYSTACK_SECRET_KEY,
    PAYSTACK_WEBHOOK_SECRET,
)
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class GatewaySession:
    """Hosted payment page handle returned by ``initialize_session``."""

    authorization_url: str
    access_code: str
    reference: str
    raw: dict = field(default_factory=dict)


@dataclass(frozen=True)
class Verification:
    success: bool
    amount_minor: int
    currency: str | None
    gateway_transaction_id: str | None
    raw: dict = field(default_factory=dict)


class PaystackClient:
    """
    Klient HTTP do Paystack.
    Kwoty wysylane w jednostkach minor (pesewas), retry tylko na bledach sieci, timeoutach i 5xx.
    """

    def __init__(
        self,
        base_url: str | None = None,
        secret_key: str | None = None,
        webhook_secret: str | None = None,
        currency: str | None = None,
        timeout: int | None = None,
    ):
        self.base_url = (base_url or PAYSTACK_BASE_URL).rstrip("/")
        self.secret_key = secret_key if secret_key is not None else PAYSTACK_SECRET_KEY
        self.webhook_secret = webhook_secret if webhook_secret is not None else PAYSTACK_WEBHOOK_SECRET
        self.currency = currency or PAYMENT_CURRENCY
        self.timeout = timeout or PAYMENT_GATEWAY_TIMEOUT

    @property
    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    @gateway_retry()
    def _post(self, path: str, payload: dict) -> requests.Response:
        url = f"{self.base_url}{path}"
        logger.info(f"PaystackClient POST {url}")
        resp = requests.post(url, json=payload, headers=self._headers, timeout=self.timeout)
        if resp.status_code >= 500:
            resp.raise_for_status()
        return resp

    @gateway_retry()
    def _get(self, path: str) -> requests.Response:
        url = f"{self.base_url}{path}"
        logger.info(f"PaystackClient GET {url}")
        resp = requests.get(url, headers=self._headers, timeout=self.timeout)
        if resp.status_code >= 500:
            resp.raise_for_status()
        return resp

    @staticmethod
    def _envelope(resp: requests.Response, reference: str) -> dict:
        try:
            body = resp.json()
        except ValueError:
            raise PaymentGatewayError(
                f"Paystack returned a non-JSON response for reference {reference}",
                reference=reference,
                response_body=resp.text,
            )

        if body.get("status") is not True:
            raise PaymentGatewayError(
                f"Paystack rejected request for reference {reference}: {body.get('message')}",
                reference=reference,
                response_body=body,
            )
        return body.get("data") or {}

    def initialize_session(
        self,
        amount: Decimal,
        email: str,
        reference: str,
        callback_url: str,
    ) -> GatewaySession:
        payload = {
            "amount": to_minor_units(amount),
            "email": email,
            "reference": reference,
            "callback_url": callback_url,
            "currency": self.currency,
            "metadata": {"order_reference": reference},
        }
        try:
            resp = self._post("/transaction/initialize", payload)
        except RequestException as e:
            logger.error(f"Paystack initialization error for reference {reference}: {e}")
            raise PaymentGatewayError(
                f"Payment gateway unreachable: {e}", reference=reference
            ) from e

        data = self._envelope(resp, reference)
        logger.info(f"Paystack payment initialization successful for reference {reference}")
        return GatewaySession(
            authorization_url=data.get("authorization_url", ""),
            access_code=data.get("access_code", ""),
            reference=data.get("reference", reference),
            raw=data,
        )

    def verify_by_reference(self, reference: str) -> Verification:
        try:
            resp = self._get(f"/transaction/verify/{reference}")
        except RequestException as e:
            logger.error(f"Paystack verification error for reference {reference}: {e}")
            raise PaymentGatewayError(
                f"Payment gateway unreachable: {e}", reference=reference
            ) from e

        data = self._envelope(resp, reference)
        gateway_id = data.get("id")
        return Verification(
            success=data.get("status") == "success",
            amount_minor=int(data.get("amount") or 0),
            currency=data.get("currency"),
            gateway_transaction_id=str(gateway_id) if gateway_id is not None else None,
            raw=data,
        )

    def is_valid_signature(self, raw_body: bytes, signature: str | None) -> bool:
        if not self.webhook_secret:
            logger.warning(
                "PAYSTACK_WEBHOOK_SECRET is not configured. Webhook signature WILL NOT be verified."
            )
            return True

        if not signature:
            return False

        expected = hmac.new(self.webhook_secret.encode(), raw_body, hashlib.sha512).hexdigest()
        return hmac.compare_digest(expected.encode(), signature.encode())
