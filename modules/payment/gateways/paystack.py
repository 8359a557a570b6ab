"""
Paystack Gateway
=================
REST/JSON with a Bearer secret key. Amounts travel in the currency subunit
(kobo for NGN), so 25.00 is sent as 2500.
"""

import json
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict

import httpx

from config.settings import (
    PAYSTACK_SECRET_KEY, PAYSTACK_BASE_URL, GATEWAY_TIMEOUT, CURRENCY,
)
from common.helpers import is_valid_reference, to_minor_units
from modules.payment.gateways import (
    BaseGateway, GatewayPaymentRequest, GatewayCreateResult,
    GatewayVerifyResult, register_gateway,
)

logger = logging.getLogger("storefront.gateway.paystack")


class PaystackGateway(BaseGateway):
    name = "paystack"
    label = "Paystack"

    def __init__(self, secret_key: str = None, base_url: str = None, timeout: float = None):
        self.secret_key = secret_key if secret_key is not None else PAYSTACK_SECRET_KEY
        self.base_url = (base_url or PAYSTACK_BASE_URL).rstrip("/")
        self.timeout = timeout or GATEWAY_TIMEOUT

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }

    def create_payment(self, req: GatewayPaymentRequest) -> GatewayCreateResult:
        try:
            resp = httpx.post(f"{self.base_url}/transaction/initialize", json={
                "email": req.email,
                "amount": to_minor_units(req.amount),
                "currency": CURRENCY,
                "reference": req.reference,
                "callback_url": req.callback_url,
                "metadata": req.metadata,
            }, headers=self._headers(), timeout=self.timeout)
            data = resp.json()
            if not isinstance(data, dict):
                logger.error(f"Paystack initialize [{req.reference}]: unexpected body, HTTP {resp.status_code}")
                return GatewayCreateResult(success=False, error_message="Unexpected response from payment gateway")
            logger.info(f"Paystack initialize [{req.reference}]: HTTP {resp.status_code} status={data.get('status')}")

            if resp.status_code == 200 and data.get("status") is True:
                body = data.get("data")
                if not isinstance(body, dict):
                    body = {}
                return GatewayCreateResult(
                    success=True,
                    redirect_url=body.get("authorization_url"),
                    reference=body.get("reference", req.reference),
                    access_code=body.get("access_code"),
                )
            msg = data.get("message") or f"HTTP {resp.status_code}"
            return GatewayCreateResult(success=False, error_message=f"Gateway error: {msg}")

        except httpx.TimeoutException:
            logger.warning(f"Paystack initialize timed out [{req.reference}]")
            return GatewayCreateResult(success=False, error_message="Payment gateway did not respond. Try again.")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Paystack initialize failed [{req.reference}]: {e}")
            return GatewayCreateResult(success=False, error_message="Could not reach payment gateway")

    def verify_payment(self, reference: str) -> GatewayVerifyResult:
        if not is_valid_reference(reference):
            return GatewayVerifyResult(success=False, reference=reference, error_message="Invalid transaction reference")
        try:
            resp = httpx.get(
                f"{self.base_url}/transaction/verify/{reference}",
                headers=self._headers(), timeout=self.timeout,
            )
            data = resp.json()
            if not isinstance(data, dict):
                logger.error(f"Paystack verify [{reference}]: unexpected body, HTTP {resp.status_code}")
                return GatewayVerifyResult(success=False, reference=reference, error_message="Unexpected response from payment gateway")
            logger.info(f"Paystack verify [{reference}]: HTTP {resp.status_code} status={data.get('status')}")

            if resp.status_code != 200 or data.get("status") is not True:
                msg = data.get("message") or f"HTTP {resp.status_code}"
                return GatewayVerifyResult(success=False, reference=reference, error_message=f"Verification failed: {msg}")

            body = data.get("data")
            if not isinstance(body, dict):
                body = {}
            gateway_status = body.get("status")
            return GatewayVerifyResult(
                success=True,
                paid=gateway_status == "success",
                amount=Decimal(body.get("amount") or 0) / 100,
                reference=body.get("reference", reference),
                metadata=_parse_metadata(body.get("metadata")),
                ref_number=str(body["id"]) if body.get("id") is not None else None,
                gateway_status=gateway_status,
            )

        except httpx.TimeoutException:
            logger.warning(f"Paystack verify timed out [{reference}]")
            return GatewayVerifyResult(success=False, reference=reference, error_message="Payment gateway did not respond. Try again.")
        except (httpx.HTTPError, ValueError, TypeError, InvalidOperation) as e:
            logger.error(f"Paystack verify failed [{reference}]: {e}")
            return GatewayVerifyResult(success=False, reference=reference, error_message="Could not reach payment gateway")


def _parse_metadata(raw: Any) -> Dict[str, Any]:
    """Paystack echoes metadata as an object, or as a JSON string for some integrations."""
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, str) and raw.strip():
        try:
            parsed = json.loads(raw)
        except ValueError:
            return {}
        return parsed if isinstance(parsed, dict) else {}
    return {}


register_gateway(PaystackGateway())
