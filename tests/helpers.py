import hashlib
import hmac
import itertools
import json
import time

from jose import jwt

from payview.config import settings
from payview.models import File
from payview.services.payment_gateway import CheckoutSession, PaymentGateway, ProvisionedPrice
from payview.services.storage import StorageClient
from payview.utils import clock

CREATOR_ID = "creator-1"
BUYER_ID = "buyer-1"
SELLER_ACCOUNT = "acct_seller_1"


class FakeGateway(PaymentGateway):
    """Real webhook verification, recorded (not sent) API calls."""

    def __init__(self):
        super().__init__(settings.stripe_secret_key, settings.stripe_webhook_secret, timeout=5)
        self.checkout_calls = []
        self.price_calls = []
        self.accounts_created = []
        self._ids = itertools.count(1)

    def create_checkout_session(self, **params):
        self.checkout_calls.append(params)
        session_id = f"cs_test_{next(self._ids)}"
        return CheckoutSession(id=session_id, url=f"https://checkout.stripe.test/pay/{session_id}")

    def create_product_price(self, *, account_id, title, price_cents, currency):
        self.price_calls.append(
            {"account_id": account_id, "title": title, "price_cents": price_cents, "currency": currency}
        )
        n = next(self._ids)
        return ProvisionedPrice(product_id=f"prod_test_{n}", price_id=f"price_test_{n}")

    def create_connected_account(self, *, email, country="US"):
        account_id = f"acct_test_{next(self._ids)}"
        self.accounts_created.append(account_id)
        return account_id

    def create_onboarding_link(self, *, account_id, refresh_url, return_url):
        return f"https://connect.stripe.test/setup/{account_id}"


class FakeStorage(StorageClient):
    def __init__(self):
        super().__init__(s3_client=None, bucket="uploads")
        self.signed = []
        self.uploaded = []

    def upload(self, file, key, content_type):
        self.uploaded.append((key, file.read(), content_type))
        return key

    def signed_url(self, key, expires):
        self.signed.append(key)
        issued = int(clock.utcnow().timestamp())
        return f"https://storage.test/{self.bucket}/{key}?expires={expires}&issued={issued}"


class Recorder:
    def __init__(self):
        self.calls = []

    def __call__(self, transaction):
        self.calls.append(transaction.id)


def sign_payload(payload: str, secret: str = None, timestamp: int = None) -> str:
    secret = secret or settings.stripe_webhook_secret
    timestamp = timestamp or int(time.time())
    signature = hmac.new(
        secret.encode("utf-8"), f"{timestamp}.{payload}".encode("utf-8"), hashlib.sha256
    ).hexdigest()
    return f"t={timestamp},v1={signature}"


def stripe_event(event_type: str, obj: dict, event_id: str = "evt_test_1") -> str:
    return json.dumps(
        {"id": event_id, "object": "event", "type": event_type, "data": {"object": obj}}
    )


def completed_session_event(session_id: str, file_id: int, buyer_id: str = BUYER_ID, **fields) -> str:
    obj = {
        "id": session_id,
        "object": "checkout.session",
        "payment_status": "paid",
        "payment_intent": f"pi_for_{session_id}",
        "metadata": {"fileId": str(file_id), "buyerUserId": buyer_id or "", "sellerAccountId": SELLER_ACCOUNT},
    }
    obj.update(fields)
    return stripe_event("checkout.session.completed", obj)


def post_webhook(client, payload: str, signature: str = None):
    headers = {"Content-Type": "application/json"}
    headers["stripe-signature"] = signature if signature is not None else sign_payload(payload)
    return client.post("/webhooks/stripe", content=payload.encode("utf-8"), headers=headers)


def make_token(user_id: str, email: str = None, expires_in: int = 3600, **claims) -> str:
    payload = {
        "sub": user_id,
        "email": email or f"{user_id}@example.com",
        "aud": settings.identity_audience,
        "iss": settings.identity_issuer,
        "exp": int(time.time()) + expires_in,
    }
    payload.update(claims)
    return jwt.encode(payload, settings.identity_provider_key, algorithm=settings.identity_algorithm)


def auth_header(user_id: str) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


def make_file(session, creator_id=CREATOR_ID, price_cents=1000, price_id="price_test_file", **fields):
    slug = fields.pop("slug", f"file-{next(_slugs)}")
    file = File(
        creator_id=creator_id,
        slug=slug,
        title=fields.pop("title", "Field Recording Pack"),
        file_name=fields.pop("file_name", "pack.zip"),
        storage_key=fields.pop("storage_key", f"{creator_id}/pack_1700000000.zip"),
        price_cents=price_cents,
        stripe_product_id="prod_test_file" if price_id else None,
        stripe_price_id=price_id,
        **fields,
    )
    session.add(file)
    session.commit()
    session.refresh(file)
    return file


_slugs = itertools.count(1)
