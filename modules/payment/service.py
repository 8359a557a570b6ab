"""
Payment Service
=================
Cart checkout through the active gateway (Paystack by default) and
reconciliation of gateway callbacks/webhooks into checkout records.

Reconciliation is keyed by the gateway reference. A reference with a paid
checkout record is answered from that record and never processed twice; a
failed record is verified again and settled as paid if the charge went through.
A charge the gateway still reports as pending is not recorded.
The caller commits once after a successful reconciliation.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config.settings import PAYMENT_GATEWAY, PAYSTACK_SECRET_KEY, BASE_URL, CURRENCY
from common.exceptions import AuthenticationError, PaymentError, ValidationError
from common.helpers import generate_reference, is_valid_reference, money, safe_int
from common.security import verify_signature
from modules.cart.service import cart_service
from modules.payment.models import Checkout, CheckoutItem
from modules.user.models import User

# Import gateway modules to trigger register_gateway() calls
from modules.payment.gateways import get_gateway, BaseGateway, GatewayPaymentRequest, GatewayVerifyResult
import modules.payment.gateways.paystack  # noqa: F401

logger = logging.getLogger("storefront.payment")


@dataclass
class ReconciliationResult:
    """A checkout record plus whether this call created it or replayed a stored one."""
    checkout: Checkout
    replayed: bool = False

    @property
    def paid(self) -> bool:
        return bool(self.checkout.status)


class PaymentService:

    # ==========================================
    # 🔧 Gateway Selection
    # ==========================================

    def active_gateway(self) -> BaseGateway:
        gw = get_gateway(PAYMENT_GATEWAY)
        if not gw:
            logger.error(f"Payment gateway '{PAYMENT_GATEWAY}' is not registered")
            raise PaymentError("Payment gateway unavailable")
        return gw

    def info(self, db: Session, user: User) -> Dict[str, Any]:
        gw = self.active_gateway()
        cart = cart_service.get_cart(db, user.id)
        return {
            "gateway": gw.name,
            "label": gw.label,
            "currency": CURRENCY,
            "cart_total": cart["total_amount"],
        }

    # ==========================================
    # 🏦 Initiate
    # ==========================================

    def initiate(self, db: Session, user: User) -> Dict[str, Any]:
        """Start a gateway transaction for the user's current cart."""
        cart = cart_service.get_user_cart(db, user.id)
        if not cart:
            raise ValidationError("Cart is empty")
        lines, total = cart_service.priced_lines(cart)
        if not lines:
            raise ValidationError("Cart is empty")

        gw = self.active_gateway()
        reference = generate_reference()
        result = gw.create_payment(GatewayPaymentRequest(
            amount=total,
            email=user.email,
            reference=reference,
            callback_url=f"{BASE_URL}/payment/callback",
            metadata={"user_id": user.id, "cart_id": cart.id},
        ))
        if not result.success:
            logger.warning(f"Payment initiate failed for user #{user.id}: {result.error_message}")
            raise PaymentError(result.error_message or "Payment initialization failed")

        logger.info(f"Payment {result.reference or reference} initiated for user #{user.id}: {total} {CURRENCY}")
        return {
            "authorization_url": result.redirect_url,
            "reference": result.reference or reference,
            "access_code": result.access_code,
            "amount": float(total),
        }

    # ==========================================
    # 🔄 Reconcile
    # ==========================================

    def handle_callback(self, db: Session, reference: Optional[str], trxref: Optional[str] = None) -> ReconciliationResult:
        """
        Verify `reference` with the gateway and record the outcome.
        Paid: checkout(status=True) and the cart is deleted.
        Not paid: checkout(status=False) and the cart is kept.
        Pending: nothing is recorded, so a later callback or webhook can settle it.
        """
        reference = (reference or trxref or "").strip()
        if not reference:
            raise ValidationError("Missing transaction reference")
        if not is_valid_reference(reference):
            raise ValidationError("Invalid transaction reference")

        existing = self.get_by_reference(db, reference)
        if existing and existing.status:
            logger.info(f"Checkout {reference} already recorded, replaying")
            return ReconciliationResult(checkout=existing, replayed=True)

        verification = self.active_gateway().verify_payment(reference)
        if existing:
            return self._recheck_failed(db, existing, verification)
        if not verification.success:
            raise PaymentError(verification.error_message or "Payment verification failed")
        if verification.pending:
            logger.info(f"Checkout {reference} not settled yet ({verification.gateway_status})")
            raise ValidationError("Payment is still pending")

        user_id = safe_int(verification.metadata.get("user_id"))
        user = db.query(User).filter(User.id == user_id).first() if user_id else None
        if not user:
            logger.warning(f"Checkout {reference}: no user for metadata {verification.metadata}")
            raise ValidationError("Could not resolve the user for this transaction")

        cart = cart_service.get_user_cart(db, user.id)
        lines, total = cart_service.priced_lines(cart) if cart else ([], money(0))
        if not lines:
            raise ValidationError("Cart is empty")

        if verification.paid and verification.amount is not None and money(verification.amount) != total:
            logger.warning(
                f"Checkout {reference}: gateway amount {verification.amount} differs from cart total {total}"
            )

        checkout = Checkout(
            user_id=user.id,
            reference=reference,
            trxref=trxref,
            status=verification.paid,
            total_amount=total,
            gateway_amount=money(verification.amount) if verification.amount is not None else None,
            gateway_ref=verification.ref_number,
            items=[
                CheckoutItem(
                    product_id=line["product"].id,
                    product_name=line["product"].name,
                    unit_price=line["unit_price"],
                    quantity=line["quantity"],
                )
                for line in lines
            ],
        )
        try:
            with db.begin_nested():
                db.add(checkout)
        except IntegrityError:
            # Same reference recorded concurrently
            stored = self.get_by_reference(db, reference)
            if stored is None:
                raise
            return ReconciliationResult(checkout=stored, replayed=True)

        if verification.paid:
            cart_service.delete_cart(db, user.id)
            logger.info(f"Checkout {reference} paid by user #{user.id}: {total} {CURRENCY}")
        else:
            logger.info(f"Checkout {reference} failed for user #{user.id} ({verification.gateway_status})")

        return ReconciliationResult(checkout=checkout)

    def _recheck_failed(self, db: Session, checkout: Checkout, verification: GatewayVerifyResult) -> ReconciliationResult:
        """A stored failed checkout turns paid once the gateway reports the charge as paid."""
        if not (verification.success and verification.paid):
            logger.info(f"Checkout {checkout.reference} already recorded as failed, replaying")
            return ReconciliationResult(checkout=checkout, replayed=True)

        checkout.status = True
        if verification.amount is not None:
            checkout.gateway_amount = money(verification.amount)
        checkout.gateway_ref = verification.ref_number or checkout.gateway_ref
        cart_service.delete_cart(db, checkout.user_id)
        db.flush()
        logger.info(f"Checkout {checkout.reference} settled as paid for user #{checkout.user_id}")
        return ReconciliationResult(checkout=checkout)

    def handle_webhook(self, db: Session, raw_body: bytes, signature: Optional[str]) -> Optional[ReconciliationResult]:
        """
        Process a signed gateway event. Only charge.success is acted on;
        anything else is acknowledged with None.
        """
        if not verify_signature(PAYSTACK_SECRET_KEY, raw_body, signature):
            logger.warning("Webhook rejected: bad signature")
            raise AuthenticationError("Invalid signature")

        try:
            event = json.loads(raw_body or b"{}")
        except ValueError:
            raise ValidationError("Invalid webhook payload")

        if not isinstance(event, dict) or event.get("event") != "charge.success":
            logger.info(f"Webhook event ignored: {event.get('event') if isinstance(event, dict) else None}")
            return None

        reference = (event.get("data") or {}).get("reference")
        try:
            return self.handle_callback(db, reference)
        except ValidationError as e:
            # Nothing to reconcile; a retry would not change that
            logger.warning(f"Webhook {reference} not reconciled: {e.message}")
            return None

    # ==========================================
    # Query
    # ==========================================

    def get_by_reference(self, db: Session, reference: str) -> Optional[Checkout]:
        return db.query(Checkout).filter(Checkout.reference == reference).first()


payment_service = PaymentService()
