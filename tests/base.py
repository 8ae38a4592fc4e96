"""
Shared fixtures for tests that need the Flask app and a database
"""
import os
import tempfile
import unittest

from qrtrack import create_app
from qrtrack.config import TestingConfig
from qrtrack.extensions import db, background
from qrtrack.models import User, Campaign

PUBLIC_IP = "101.161.22.33"
IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_1 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.1 Mobile/15E148 Safari/604.1"
)
GOOGLEBOT_UA = "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)"


def make_config(db_path, **overrides):
    """TestingConfig on a SQLite file so background threads share the database."""
    attrs = {
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
        "SQLALCHEMY_ENGINE_OPTIONS": {"connect_args": {"timeout": 30, "check_same_thread": False}},
    }
    attrs.update(overrides)
    return type("TestConfig", (TestingConfig,), attrs)


class AppTestCase(unittest.TestCase):
    """Fresh app + SQLite file database per test."""

    config_overrides = {}

    def setUp(self):
        fd, self.db_path = tempfile.mkstemp(suffix=".db")
        os.close(fd)

        self.app = create_app(make_config(self.db_path, **self.config_overrides))
        self.client = self.app.test_client(use_cookies=False)
        self.app_context = self.app.app_context()
        self.app_context.push()

        self.user = User(email="owner@example.com", full_name="Campaign Owner")
        db.session.add(self.user)
        db.session.commit()

    def tearDown(self):
        background.drain(timeout=10)
        db.session.remove()
        db.drop_all()
        db.engine.dispose()
        self.app_context.pop()
        os.remove(self.db_path)

    def make_campaign(self, **kwargs):
        values = {
            "user_id": self.user.id,
            "name": "Bondi Poster",
            "tracking_code": "abc123",
            "destination_url": "https://example.com/landing?utm_source=qr",
            "bridge_enabled": False,
        }
        values.update(kwargs)
        campaign = Campaign(**values)
        db.session.add(campaign)
        db.session.commit()
        return campaign

    @staticmethod
    def set_cookies(response):
        return response.headers.getlist("Set-Cookie")

    @staticmethod
    def cookie_value(response, name):
        for header in response.headers.getlist("Set-Cookie"):
            key, _, rest = header.partition("=")
            if key == name:
                return rest.split(";", 1)[0]
        return None
