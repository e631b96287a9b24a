"""
Pytest Configuration and Shared Fixtures

Provides moto AWS mocking, an in-memory Zoom API, seeded operators,
and wired-up services.
"""

from datetime import date
import os
import time
from typing import Any, Callable

import boto3
import pytest
from moto import mock_aws
from moto.core import DEFAULT_ACCOUNT_ID
from moto.ses.models import ses_backends

# Set test environment before importing application modules
os.environ["RECRUITING_TABLE_NAME"] = "TestRecruitingRecords"
os.environ["RECRUITING_SENDER_ADDRESS"] = "hr@test.example.com"
os.environ["RECRUITING_MAIL_DOMAIN"] = "test.example.com"
os.environ["RECRUITING_AWS_REGION"] = "us-west-2"
os.environ["RECRUITING_FRONTEND_URL"] = "http://frontend.test"
os.environ["AWS_DEFAULT_REGION"] = "us-west-2"
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["ZOOM_CLIENT_ID"] = "test-client-id"
os.environ["ZOOM_CLIENT_SECRET"] = "test-client-secret"

from recruiting.api.app import Services
from recruiting.conferencing.config import ZoomConfig
from recruiting.conferencing.meetings import ConferenceMeetingService
from recruiting.conferencing.oauth import OAuthTokenManager
from recruiting.conferencing.token_store import TokenStore
from recruiting.lifecycle.models import RecruitIntake
from recruiting.lifecycle.service import RecruitLifecycle
from recruiting.notifications.config import NotificationConfig
from recruiting.notifications.dispatcher import NotificationDispatcher
from recruiting.shared.config import get_settings
from recruiting.shared.models.oauth import OAuthToken
from recruiting.shared.models.operator import Operator, OperatorRole
from recruiting.shared.models.recruit import EducationalStatus, Recruit
from recruiting.shared.tools.dynamodb import create_operator
from tests.mocks.mock_zoom import CLIENT_ID, CLIENT_SECRET, FakeClock, FakeZoomAPI

TABLE_NAME = "TestRecruitingRecords"
SENDER = "hr@test.example.com"


# --- AWS Mocking Fixtures ---


@pytest.fixture
def aws_credentials():
    """Mock AWS credentials for moto."""
    return {
        "aws_access_key_id": "testing",
        "aws_secret_access_key": "testing",
        "region_name": "us-west-2",
    }


def _create_table(dynamodb) -> Any:
    table = dynamodb.create_table(
        TableName=TABLE_NAME,
        KeySchema=[
            {"AttributeName": "PK", "KeyType": "HASH"},
            {"AttributeName": "SK", "KeyType": "RANGE"},
        ],
        AttributeDefinitions=[
            {"AttributeName": "PK", "AttributeType": "S"},
            {"AttributeName": "SK", "AttributeType": "S"},
            {"AttributeName": "GSI1PK", "AttributeType": "S"},
        ],
        GlobalSecondaryIndexes=[
            {
                "IndexName": "GSI1",
                "KeySchema": [
                    {"AttributeName": "GSI1PK", "KeyType": "HASH"},
                    {"AttributeName": "SK", "KeyType": "RANGE"},
                ],
                "Projection": {"ProjectionType": "ALL"},
                "ProvisionedThroughput": {
                    "ReadCapacityUnits": 5,
                    "WriteCapacityUnits": 5,
                },
            }
        ],
        ProvisionedThroughput={
            "ReadCapacityUnits": 5,
            "WriteCapacityUnits": 5,
        },
    )
    table.meta.client.get_waiter("table_exists").wait(TableName=TABLE_NAME)
    return table


@pytest.fixture
def mock_dynamodb(aws_credentials):
    """Mocked DynamoDB with the recruiting table and GSI1."""
    with mock_aws():
        dynamodb = boto3.resource("dynamodb", **aws_credentials)
        _create_table(dynamodb)
        yield dynamodb


@pytest.fixture
def mock_ses(aws_credentials):
    """Mocked SES client with the sender identity verified."""
    with mock_aws():
        ses = boto3.client("ses", **aws_credentials)
        ses.verify_email_identity(EmailAddress=SENDER)
        yield ses


@pytest.fixture
def mock_aws_all(aws_credentials):
    """
    Mock all AWS services used by the application.

    Provides DynamoDB and SES in one moto context.
    """
    with mock_aws():
        dynamodb = boto3.resource("dynamodb", **aws_credentials)
        _create_table(dynamodb)

        ses = boto3.client("ses", **aws_credentials)
        ses.verify_email_identity(EmailAddress=SENDER)

        yield {
            "dynamodb": dynamodb,
            "ses": ses,
        }


def sent_count(ses) -> int:
    """
    Number of messages the mocked SES account has sent.

    Read from the backend: the send quota counts every recipient, and
    SendRawEmail adds the To: header on top of Destinations.
    """
    return len(ses_backends[DEFAULT_ACCOUNT_ID][ses.meta.region_name].sent_messages)


# --- Operator Fixtures ---


@pytest.fixture
def operators(mock_aws_all) -> dict[str, Operator]:
    """One operator per role, plus a second unit manager."""
    seeded = {
        "intern": Operator(operator_id="op-intern", name="Ivy Intern", email="ivy@recruiting.test", role=OperatorRole.INTERN, supervisor_id="um-1"),
        "staff": Operator(operator_id="op-staff", name="Sam Staff", email="sam@recruiting.test", role=OperatorRole.STAFF, supervisor_id="um-2"),
        "um": Operator(operator_id="um-1", name="Uma Manager", email="uma@recruiting.test", role=OperatorRole.UNIT_MANAGER),
        "um_other": Operator(operator_id="um-2", name="Otto Manager", email="otto@recruiting.test", role=OperatorRole.UNIT_MANAGER),
        "admin": Operator(operator_id="op-admin", name="Ada Admin", email="ada@recruiting.test", role=OperatorRole.ADMIN),
    }
    return {key: create_operator(op) for key, op in seeded.items()}


# --- Zoom Fixtures ---


@pytest.fixture
def clock() -> FakeClock:
    """Fixed clock at 2025-08-01T00:00:00Z."""
    return FakeClock()


@pytest.fixture
def fake_zoom() -> FakeZoomAPI:
    return FakeZoomAPI()


@pytest.fixture
def zoom_config() -> ZoomConfig:
    return ZoomConfig(
        client_id=CLIENT_ID,
        client_secret=CLIENT_SECRET,
        redirect_uri="http://api.test/zoom/auth/callback",
    )


@pytest.fixture
def token_store() -> TokenStore:
    return TokenStore()


@pytest.fixture
def token_manager(zoom_config, token_store, fake_zoom, clock) -> OAuthTokenManager:
    return OAuthTokenManager(
        config=zoom_config,
        store=token_store,
        http_client=fake_zoom.client(),
        clock=clock,
    )


@pytest.fixture
def meeting_service(token_manager, zoom_config, fake_zoom) -> ConferenceMeetingService:
    return ConferenceMeetingService(
        token_manager,
        config=zoom_config,
        http_client=fake_zoom.client(),
    )


@pytest.fixture
def connect(fake_zoom, token_store, clock) -> Callable[..., OAuthToken]:
    """Give an operator a stored Zoom token without the redirect flow."""
    def _connect(operator_id: str, expires_in: int = 3600) -> OAuthToken:
        return fake_zoom.seed_token(token_store, operator_id, now=clock(), expires_in=expires_in)
    return _connect


# --- Service Fixtures ---


@pytest.fixture
def dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher(settings=get_settings(), config=NotificationConfig())


@pytest.fixture
def lifecycle(meeting_service, dispatcher) -> RecruitLifecycle:
    return RecruitLifecycle(meetings=meeting_service, notifier=dispatcher, settings=get_settings())


@pytest.fixture
def services(zoom_config, token_manager, meeting_service, dispatcher, lifecycle) -> Services:
    """Service graph for the FastAPI app, wired to the fakes above."""
    return Services(
        settings=get_settings(),
        zoom=zoom_config,
        tokens=token_manager,
        meetings=meeting_service,
        notifier=dispatcher,
        lifecycle=lifecycle,
    )


@pytest.fixture
def server_in_new_york(monkeypatch):
    """Run the test with the process timezone set to America/New_York."""
    if not hasattr(time, "tzset"):
        pytest.skip("tzset not available on this platform")
    monkeypatch.setenv("TZ", "America/New_York")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


# --- Recruit Fixtures ---


@pytest.fixture
def intake() -> RecruitIntake:
    return RecruitIntake(
        recruit_id="rec-001",
        full_name="Juan Dela Cruz",
        email="juan.delacruz@example.com",
        contact_number="+63 917 555 0101",
        location="Quezon City",
        course="Financial Advisor",
        school="University of the Philippines",
        educational_status=EducationalStatus.GRADUATE,
        date_applied=date(2025, 7, 28),
    )


@pytest.fixture
def recruit(lifecycle, operators, intake) -> Recruit:
    """A freshly applied recruit owned by the intern."""
    return lifecycle.create_recruit(intake, operators["intern"])
