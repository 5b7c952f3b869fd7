import os

# Configure before the app modules read their settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "rzp_test_secret"
os.environ["CONSULTATION_TIMEZONE"] = "Asia/Kolkata"
os.environ["GOOGLE_CALENDAR_REFRESH_TOKEN"] = ""
os.environ["RESEND_API_KEY"] = ""
os.environ["SECURITY_HEADERS_ENABLED"] = "true"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from storefront.auth import create_access_token  # noqa: E402
from storefront.database import Base, SessionLocal, engine  # noqa: E402
from storefront.dependencies import get_dispatcher, get_payment_gateway  # noqa: E402
from storefront.domain.consultations.side_effects import SideEffectDispatcher  # noqa: E402
from storefront.main import app  # noqa: E402
from storefront.payment_security import create_payment_signature  # noqa: E402
from storefront.services.razorpay_service import RazorpayGateway  # noqa: E402

TEST_KEY_ID = "rzp_test_key"
TEST_KEY_SECRET = "rzp_test_secret"


def sign(order_id: str, payment_id: str, secret: str = TEST_KEY_SECRET) -> str:
    return create_payment_signature(order_id, payment_id, secret)


def consultation_input(**overrides) -> dict:
    data = {
        "name": "Asha",
        "age": 29,
        "gender": "female",
        "email": "asha@example.com",
        "consultationType": "skin",
        "skinType": "oily",
        "concerns": "Acne on forehead",
    }
    data.update(overrides)
    return data


def new_booking_data(payment_id: str = "pay_test001", **overrides) -> dict:
    data = consultation_input(**overrides)
    data.setdefault("razorpayOrderId", "order_test001")
    data.setdefault("razorpayPaymentId", payment_id)
    data.setdefault("amount", 29900)
    return data


class FakeGateway(RazorpayGateway):
    """Gateway with real signature checks and a canned order response"""

    def __init__(self, key_id=TEST_KEY_ID, key_secret=TEST_KEY_SECRET):
        super().__init__(key_id, key_secret)
        self.orders = []

    async def create_order(self, amount, receipt, currency="INR", notes=None):
        self.require_configured()
        self.orders.append({"amount": amount, "receipt": receipt, "currency": currency, "notes": notes})
        return {"id": f"order_test{len(self.orders):03d}", "amount": amount, "currency": currency}


class FakeCalendar:
    def __init__(self, result=None, fail=False):
        self.result = result if result is not None else {
            "eventId": "evt_123",
            "link": "https://calendar.google.com/event?eid=evt_123",
        }
        self.fail = fail
        self.created = []
        self.updated = []
        self.deleted = []

    async def create_event(self, booking):
        self.created.append(booking)
        if self.fail:
            raise RuntimeError("calendar down")
        return self.result

    async def update_event(self, booking):
        self.updated.append(booking)
        return True

    async def delete_event(self, event_id):
        self.deleted.append(event_id)
        return True


class FakeMailer:
    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    async def __call__(self, booking):
        if self.fail:
            raise RuntimeError("smtp down")
        self.sent.append(booking)
        return {"id": "email_1"}


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def calendar():
    return FakeCalendar()


@pytest.fixture()
def mailer():
    return FakeMailer()


@pytest.fixture()
def outcomes():
    return []


@pytest.fixture()
def dispatcher(calendar, mailer, outcomes):
    return SideEffectDispatcher(
        session_factory=SessionLocal,
        calendar=calendar,
        send_confirmation_email=mailer,
        on_outcome=outcomes.append,
    )


@pytest.fixture()
def client(gateway, dispatcher):
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers():
    token = create_access_token({"sub": "admin-1", "email": "admin@minimalist.com", "role": "admin"})
    return {"Authorization": f"Bearer {token}"}
