from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from payview.dependencies.services import get_webhook_reconciler
from payview.services.webhook_reconciler import WebhookReconciler

router = APIRouter()


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    reconciler: WebhookReconciler = Depends(get_webhook_reconciler),
):
    # the signature covers the raw bytes, so the body is read before any parsing
    body = await request.body()
    signature = request.headers.get("stripe-signature")
    await run_in_threadpool(reconciler.handle_event, body, signature)
    return {"received": True}
