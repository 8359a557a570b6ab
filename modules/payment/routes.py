"""
Payment Routes
================
Cart checkout redirect, gateway callback (browser) and webhook (server).
"""

from typing import Optional

from fastapi import APIRouter, Request, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from config.database import get_db
from common.templating import templates
from modules.auth.deps import require_login
from modules.payment.service import payment_service, ReconciliationResult

router = APIRouter(prefix="/payment", tags=["payment"])


def _wants_html(request: Request) -> bool:
    return "text/html" in request.headers.get("accept", "")


# ==========================================
# 🏦 Initiate
# ==========================================

@router.post("")
async def initiate_payment(db: Session = Depends(get_db), me=Depends(require_login)):
    result = payment_service.initiate(db, me)
    return {"success": True, **result}


@router.get("/info")
async def payment_info(db: Session = Depends(get_db), me=Depends(require_login)):
    return {"success": True, **payment_service.info(db, me)}


# ==========================================
# 🔄 Callback (browser redirect from the gateway)
# ==========================================

@router.get("/callback")
async def payment_callback(
    request: Request,
    reference: Optional[str] = Query(None),
    trxref: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    result: ReconciliationResult = payment_service.handle_callback(db, reference, trxref)
    db.commit()
    db.refresh(result.checkout)

    checkout = result.checkout
    message = "Payment successful" if result.paid else "Payment failed"
    status_code = 200 if result.paid else 400

    if _wants_html(request):
        return templates.TemplateResponse(request, "checkout.html", {
            "success": result.paid,
            "message": message,
            "user": checkout.user,
            "checkout": checkout,
        }, status_code=status_code)

    return JSONResponse(status_code=status_code, content={
        "success": result.paid,
        "message": message,
        "checkout": checkout.to_dict(),
    })


# ==========================================
# 📡 Webhook (server-to-server, signed)
# ==========================================

@router.post("/webhook")
async def payment_webhook(request: Request, db: Session = Depends(get_db)):
    raw_body = await request.body()
    result = payment_service.handle_webhook(db, raw_body, request.headers.get("x-paystack-signature"))
    if result is None:
        return {"success": True, "message": "Event acknowledged"}
    db.commit()
    return {"success": True, "message": "Event processed", "reference": result.checkout.reference}
