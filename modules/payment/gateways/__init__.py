"""
Payment Gateway Abstraction
=============================
Each gateway implements create_payment() and verify_payment().
Registry pattern for gateway lookup by name.

Gateways never raise on transport or provider errors: every call returns a
result object and callers branch on `result.success`.
"""

import logging
from decimal import Decimal
from typing import Dict, Any, Optional
from dataclasses import dataclass, field

logger = logging.getLogger("storefront.gateway")

# Provider statuses of a charge that has not reached a final state
PENDING_STATUSES = frozenset({"pending", "ongoing", "processing", "queued"})


@dataclass
class GatewayPaymentRequest:
    """Input for creating a payment."""
    amount: Decimal         # major units, e.g. 25.00
    email: str
    reference: str          # server-generated transaction reference
    callback_url: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class GatewayCreateResult:
    """Result of create_payment()."""
    success: bool
    redirect_url: Optional[str] = None
    reference: Optional[str] = None
    access_code: Optional[str] = None
    error_message: Optional[str] = None


@dataclass
class GatewayVerifyResult:
    """
    Result of verify_payment().
    `success` means the gateway answered; `paid` means the charge went through.
    """
    success: bool
    paid: bool = False
    amount: Optional[Decimal] = None
    reference: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    ref_number: Optional[str] = None
    gateway_status: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def pending(self) -> bool:
        """The charge is not settled yet; a later verify may still report it paid."""
        return not self.paid and self.gateway_status in PENDING_STATUSES


class BaseGateway:
    """Abstract gateway interface."""
    name: str = ""
    label: str = ""

    def create_payment(self, req: GatewayPaymentRequest) -> GatewayCreateResult:
        raise NotImplementedError

    def verify_payment(self, reference: str) -> GatewayVerifyResult:
        raise NotImplementedError


# ── Registry ──

_GATEWAYS: Dict[str, BaseGateway] = {}


def register_gateway(gw: BaseGateway):
    _GATEWAYS[gw.name] = gw


def get_gateway(name: str) -> Optional[BaseGateway]:
    return _GATEWAYS.get(name)
