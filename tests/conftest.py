"""Pytest configuration, fixtures and in-memory stand-ins for MongoDB, Stripe and Postmark."""

import asyncio
import copy
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import DuplicateKeyError

from nursery_app.database.db_operations import DBOperations, get_db_ops
from nursery_app.main import app
from nursery_app.services.email_service import EmailMessage, SendResult, get_email_client
from nursery_app.services.payment_service import PaymentIntent, PaymentRequest, get_payment_gateway
from nursery_app.utils.helpers import local_today


def _matches(document: Dict[str, Any], query: Dict[str, Any]) -> bool:
    for key, condition in query.items():
        value = document.get(key)
        if isinstance(condition, dict) and condition and all(op.startswith("$") for op in condition):
            for op, operand in condition.items():
                if op == "$gte" and not (value is not None and value >= operand):
                    return False
                if op == "$gt" and not (value is not None and value > operand):
                    return False
                if op == "$lt" and not (value is not None and value < operand):
                    return False
                if op == "$lte" and not (value is not None and value <= operand):
                    return False
                if op == "$in" and value not in operand:
                    return False
                if op == "$ne" and value == operand:
                    return False
        elif value != condition:
            return False
    return True


class InsertResult:
    def __init__(self, inserted_id: ObjectId):
        self.inserted_id = inserted_id


class FakeCollection:
    """The subset of a Motor collection the service uses."""

    def __init__(self, name: str):
        self.name = name
        self.documents: List[Dict[str, Any]] = []
        self.unique_indexes: Dict[str, List[str]] = {}

    async def find_one(self, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        for document in self.documents:
            if _matches(document, query):
                return copy.deepcopy(document)
        return None

    async def count_documents(self, query: Dict[str, Any]) -> int:
        return sum(1 for document in self.documents if _matches(document, query))

    async def insert_one(self, document: Dict[str, Any]) -> InsertResult:
        for name, keys in self.unique_indexes.items():
            wanted = {key: document.get(key) for key in keys}
            if any(_matches(existing, wanted) for existing in self.documents):
                raise DuplicateKeyError(
                    f"E11000 duplicate key error collection: {self.name} index: {name}",
                    code=11000,
                    details={"keyPattern": {key: 1 for key in keys}, "keyValue": wanted},
                )
        document.setdefault("_id", ObjectId())
        self.documents.append(copy.deepcopy(document))
        return InsertResult(document["_id"])

    async def create_index(self, keys, name: str, unique: bool = False) -> str:
        if unique:
            self.unique_indexes[name] = [key for key, _ in keys]
        return name


class FakeDatabase:
    """A Motor-like database with dict-style collection access."""

    def __init__(self):
        self.collections: Dict[str, FakeCollection] = {}
        self.ping_result: Dict[str, Any] = {"ok": 1.0}
        self.ping_error: Optional[Exception] = None

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self.collections:
            self.collections[name] = FakeCollection(name)
        return self.collections[name]

    async def command(self, name: str) -> Dict[str, Any]:
        assert name == "ping"
        if self.ping_error is not None:
            raise self.ping_error
        return self.ping_result


class FakePaymentGateway:
    """Records PaymentIntent requests instead of calling Stripe."""

    def __init__(self):
        self.requests: List[PaymentRequest] = []
        self.error: Optional[Exception] = None

    async def create_intent(self, request: PaymentRequest) -> PaymentIntent:
        if self.error is not None:
            raise self.error
        self.requests.append(request)
        number = len(self.requests)
        return PaymentIntent(
            id=f"pi_test_{number}",
            client_secret=f"pi_test_{number}_secret_abc",
            status="requires_payment_method",
        )


class RecordingEmailClient:
    """Collects messages; addresses in ``failing`` get a provider error."""

    def __init__(self, configured: bool = True):
        self.configured = configured
        self.sent: List[EmailMessage] = []
        self.failing: Dict[str, str] = {}

    async def send(self, message: EmailMessage) -> SendResult:
        self.sent.append(message)
        if message.to in self.failing:
            return SendResult(success=False, error=self.failing[message.to])
        return SendResult(success=True, message_id=f"msg-{len(self.sent)}")

    def sent_to(self, address: str) -> List[EmailMessage]:
        return [message for message in self.sent if message.to == address]


# ─── Fixtures ──────────────────────────────────────────────────────────────

@pytest.fixture
def database() -> FakeDatabase:
    """Return an empty fake database with the unique indexes in place."""
    fake = FakeDatabase()
    asyncio.run(DBOperations(fake).ensure_indexes())
    return fake


@pytest.fixture
def db_ops(database: FakeDatabase) -> DBOperations:
    """Return operations bound to the fake database."""
    return DBOperations(database)


@pytest.fixture
def payments() -> FakePaymentGateway:
    """Return a payment gateway that never calls Stripe."""
    return FakePaymentGateway()


@pytest.fixture
def mailer() -> RecordingEmailClient:
    """Return a configured email client that records every message."""
    return RecordingEmailClient()


@pytest.fixture
def client(database: FakeDatabase, payments: FakePaymentGateway, mailer: RecordingEmailClient):
    """Return a TestClient wired to the fakes."""
    app.dependency_overrides[get_db_ops] = lambda: DBOperations(database)
    app.dependency_overrides[get_payment_gateway] = lambda: payments
    app.dependency_overrides[get_email_client] = lambda: mailer
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def future_weekday() -> date:
    """Return a Monday-Friday date two to three weeks from today."""
    day = local_today() + timedelta(days=14)
    while day.weekday() >= 5:
        day += timedelta(days=1)
    return day


@pytest.fixture
def future_saturday() -> date:
    """Return a Saturday at least a week from today."""
    day = local_today() + timedelta(days=7)
    while day.weekday() != 5:
        day += timedelta(days=1)
    return day
