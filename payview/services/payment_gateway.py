import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import stripe

from payview.config import settings
from payview.exceptions import SignatureError, UpstreamError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutSession:
    id: str
    url: str
    amount_total: Optional[int] = None


@dataclass(frozen=True)
class ProvisionedPrice:
    product_id: str
    price_id: str


class PaymentGateway:
    """
    Thin wrapper over the Stripe API. Every call is bounded by the configured
    timeout and never retried here; Stripe failures surface as UpstreamError.
    """

    def __init__(self, api_key: str, webhook_secret: str, timeout: float):
        stripe.api_key = api_key
        stripe.max_network_retries = 0
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout)
        self.webhook_secret = webhook_secret

    def _call(self, action: str, fn, *args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except stripe.StripeError as exc:
            logger.error(f"Stripe {action} failed: {exc.user_message or exc}")
            raise UpstreamError(f"Payment provider error during {action}") from exc

    # checkout -----------------------------------------------------------

    def create_checkout_session(
        self,
        *,
        price_id: str,
        destination_account: str,
        application_fee_cents: int,
        success_url: str,
        cancel_url: str,
        metadata: Dict[str, str],
        customer_email: Optional[str] = None,
    ) -> CheckoutSession:
        params: Dict[str, Any] = {
            "mode": "payment",
            "line_items": [{"price": price_id, "quantity": 1}],
            "payment_intent_data": {
                "application_fee_amount": application_fee_cents,
                "transfer_data": {"destination": destination_account},
                "metadata": metadata,
            },
            "metadata": metadata,
            "success_url": success_url,
            "cancel_url": cancel_url,
        }
        if customer_email:
            params["customer_email"] = customer_email

        session = self._call("checkout session creation", stripe.checkout.Session.create, **params)
        return CheckoutSession(id=session.id, url=session.url, amount_total=getattr(session, "amount_total", None))

    # webhooks -----------------------------------------------------------

    def verify_webhook(self, payload: str, signature_header: Optional[str]) -> None:
        if not signature_header:
            raise SignatureError("No Stripe signature found")
        try:
            stripe.WebhookSignature.verify_header(
                payload, signature_header, self.webhook_secret, tolerance=stripe.Webhook.DEFAULT_TOLERANCE
            )
        except stripe.SignatureVerificationError as exc:
            raise SignatureError("Invalid webhook signature") from exc

    # products & prices --------------------------------------------------

    def create_product_price(
        self, *, account_id: str, title: str, price_cents: int, currency: str
    ) -> ProvisionedPrice:
        product = self._call(
            "product creation",
            stripe.Product.create,
            name=title,
            stripe_account=account_id,
        )
        price = self._call(
            "price creation",
            stripe.Price.create,
            product=product.id,
            unit_amount=price_cents,
            currency=currency,
            stripe_account=account_id,
        )
        return ProvisionedPrice(product_id=product.id, price_id=price.id)

    # connect ------------------------------------------------------------

    def create_connected_account(self, *, email: Optional[str], country: str = "US") -> str:
        account = self._call(
            "connected account creation",
            stripe.Account.create,
            type="express",
            country=country,
            email=email,
            business_type="individual",
            capabilities={
                "card_payments": {"requested": True},
                "transfers": {"requested": True},
            },
        )
        return account.id

    def create_onboarding_link(self, *, account_id: str, refresh_url: str, return_url: str) -> str:
        link = self._call(
            "account link creation",
            stripe.AccountLink.create,
            account=account_id,
            refresh_url=refresh_url,
            return_url=return_url,
            type="account_onboarding",
        )
        return link.url


payment_gateway = None


def get_payment_gateway() -> PaymentGateway:
    global payment_gateway
    if payment_gateway is None:
        payment_gateway = PaymentGateway(
            api_key=settings.stripe_secret_key,
            webhook_secret=settings.stripe_webhook_secret,
            timeout=settings.external_timeout_seconds,
        )
    return payment_gateway
