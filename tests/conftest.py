import pytest

from app import create_app
from config import Settings
from errors import MailDeliveryError
from models import db

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "s3cret-pass"


class FakeMailRelay:
    def __init__(self):
        self.sent = []
        self.fail = False

    def send_contact_message(self, name, email, message):
        if self.fail:
            raise MailDeliveryError()
        self.sent.append((name, email, message))


def make_settings(tmp_path, **overrides):
    values = dict(
        database_url="sqlite:///" + str(tmp_path / "test.db"),
        secret_key="test-secret",
        admin_email=ADMIN_EMAIL,
        admin_password=ADMIN_PASSWORD,
        recipient_email="owner@example.com",
        upload_folder=str(tmp_path / "uploads"),
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture
def mail_relay():
    return FakeMailRelay()


@pytest.fixture
def app(settings, mail_relay):
    app = create_app(settings, mail_relay=mail_relay)
    app.config["TESTING"] = True
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    return app.extensions["blog"]["store"]
