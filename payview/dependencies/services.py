from fastapi import BackgroundTasks, Depends
from sqlmodel import Session

from payview.config import settings
from payview.database import get_session
from payview.models.transaction import Transaction
from payview.services.access_ledger import AccessLedger
from payview.services.checkout_coordinator import CheckoutCoordinator
from payview.services.notification_service import notify_purchase
from payview.services.payment_gateway import PaymentGateway, get_payment_gateway
from payview.services.signed_access import SignedAccessIssuer
from payview.services.storage import StorageClient, get_storage
from payview.services.webhook_reconciler import Notifier, WebhookReconciler


def get_ledger(session: Session = Depends(get_session)) -> AccessLedger:
    return AccessLedger(session)


def get_gateway() -> PaymentGateway:
    return get_payment_gateway()


def get_storage_client() -> StorageClient:
    return get_storage()


def get_purchase_notifier(background_tasks: BackgroundTasks) -> Notifier:
    def schedule(transaction: Transaction) -> None:
        background_tasks.add_task(notify_purchase, transaction.id)

    return schedule


def get_checkout_coordinator(
    session: Session = Depends(get_session),
    ledger: AccessLedger = Depends(get_ledger),
    gateway: PaymentGateway = Depends(get_gateway),
) -> CheckoutCoordinator:
    return CheckoutCoordinator(session, ledger, gateway)


def get_webhook_reconciler(
    session: Session = Depends(get_session),
    ledger: AccessLedger = Depends(get_ledger),
    gateway: PaymentGateway = Depends(get_gateway),
    notifier: Notifier = Depends(get_purchase_notifier),
) -> WebhookReconciler:
    return WebhookReconciler(session, ledger, gateway, notifier)


def get_signed_access_issuer(
    session: Session = Depends(get_session),
    ledger: AccessLedger = Depends(get_ledger),
    storage: StorageClient = Depends(get_storage_client),
) -> SignedAccessIssuer:
    return SignedAccessIssuer(session, ledger, storage, settings.signed_url_expires_seconds)
