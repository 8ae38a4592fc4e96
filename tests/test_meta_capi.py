"""
Unit tests for the Meta Conversions API dispatcher
"""
import hashlib
import unittest
from types import SimpleNamespace
from unittest import mock

import requests

from qrtrack.helpers.crypto import TokenCipher, generate_encryption_key
from qrtrack.helpers.geo import GeoResult
from qrtrack.helpers.meta_capi import (
    MetaConversionsClient,
    PixelCredentials,
    build_user_data,
    resolve_pixel_credentials,
)


def sha(value):
    return hashlib.sha256(value.encode()).hexdigest()


def scan_context(**overrides):
    values = dict(
        campaign_id=42,
        campaign_name="Bondi Poster",
        event_id="a" * 32,
        source_url="https://qr.example.com/go/abc123",
        client_ip="101.161.22.33",
        user_agent="Mozilla/5.0 (iPhone)",
        visitor_id="LQ2X9K1A2B3C4D5E6F",
        fbc="fb.1.1700000000.click",
        fbp=None,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def meta_row(**overrides):
    values = dict(
        meta_pixel_id=None,
        meta_access_token=None,
        meta_encrypted_access_token=None,
        meta_encryption_iv=None,
        meta_encryption_version=1,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


class TestUserData(unittest.TestCase):

    def test_hashing_and_normalisation(self):
        user_data = build_user_data(
            ip="101.161.22.33",
            user_agent="UA",
            visitor_id="LQ2X9K1A2B3C4D5E6F",
            postcode=" 2026 ",
            state="New South Wales",
            country="AU",
            fbc="fb.1.1.click",
            fbp="fb.1.1.browser",
        )

        self.assertEqual(user_data["client_ip_address"], "101.161.22.33")
        self.assertEqual(user_data["client_user_agent"], "UA")
        self.assertEqual(user_data["external_id"], [sha("lq2x9k1a2b3c4d5e6f")])
        self.assertEqual(user_data["zp"], sha("2026"))
        self.assertEqual(user_data["st"], sha("newsouthwales"))
        self.assertEqual(user_data["country"], sha("au"))
        self.assertEqual(user_data["fbc"], "fb.1.1.click")
        self.assertEqual(user_data["fbp"], "fb.1.1.browser")

    def test_optional_fields_omitted(self):
        user_data = build_user_data(ip="1.1.1.1", user_agent="UA", visitor_id=None)
        self.assertEqual(set(user_data), {"client_ip_address", "client_user_agent"})


class TestPixelCredentials(unittest.TestCase):

    def test_campaign_integration_takes_priority(self):
        campaign = meta_row(meta_pixel_id="111", meta_access_token="plain")
        owner = meta_row(meta_pixel_id="999", meta_encrypted_access_token="ct", meta_encryption_iv="iv")

        creds = resolve_pixel_credentials(campaign, owner)
        self.assertEqual(creds.pixel_id, "111")
        self.assertEqual(creds.access_token, "plain")
        self.assertIsNone(creds.encrypted_token)
        self.assertEqual(creds.source, "campaign")

    def test_account_pixel_is_fallback(self):
        owner = meta_row(meta_pixel_id="999", meta_encrypted_access_token="ct", meta_encryption_iv="iv")
        creds = resolve_pixel_credentials(meta_row(), owner)
        self.assertEqual(creds.pixel_id, "999")
        self.assertEqual(creds.source, "account")
        self.assertEqual(creds.encrypted_token.ciphertext, "ct")

    def test_no_pixel_anywhere(self):
        self.assertIsNone(resolve_pixel_credentials(meta_row(), meta_row()))
        self.assertIsNone(resolve_pixel_credentials(meta_row(), None))


class TestFireScanEvent(unittest.TestCase):

    def setUp(self):
        self.session = mock.Mock()
        self.cipher = TokenCipher(generate_encryption_key())
        self.client = MetaConversionsClient(
            cipher=self.cipher, timeout=5, default_country="au", session=self.session,
        )
        self.geo = GeoResult(postcode="2026", state="New South Wales", geo_source="vercel")

    def ok_response(self):
        return mock.Mock(ok=True, status_code=200, text='{"events_received":1}')

    def test_payload_shape(self):
        self.session.post.return_value = self.ok_response()
        creds = PixelCredentials(pixel_id="123456", access_token="token")

        result = self.client.fire_scan_event(creds, scan_context(), self.geo)

        self.assertTrue(result.sent)
        args, kwargs = self.session.post.call_args
        self.assertEqual(args[0], "https://graph.facebook.com/v18.0/123456/events")
        self.assertEqual(kwargs["timeout"], 5)
        body = kwargs["json"]
        self.assertEqual(body["access_token"], "token")
        self.assertNotIn("test_event_code", body)

        event = body["data"][0]
        self.assertEqual(event["event_name"], "QRCodeScan")
        self.assertEqual(event["event_id"], "a" * 32)
        self.assertEqual(event["action_source"], "website")
        self.assertEqual(event["event_source_url"], "https://qr.example.com/go/abc123")
        self.assertEqual(event["custom_data"], {
            "campaign_id": 42, "campaign_name": "Bondi Poster", "content_type": "qr_code",
        })
        self.assertEqual(event["user_data"]["zp"], sha("2026"))
        self.assertEqual(event["user_data"]["country"], sha("au"))
        self.assertIsInstance(event["event_time"], int)
        self.assertNotIn("access_token", result.payload)

    def test_encrypted_token_and_test_event_code(self):
        self.session.post.return_value = self.ok_response()
        self.client.test_event_code = "TEST123"
        creds = PixelCredentials(pixel_id="123456", encrypted_token=self.cipher.encrypt("secret-token"))

        self.client.fire_scan_event(creds, scan_context(), self.geo)

        body = self.session.post.call_args[1]["json"]
        self.assertEqual(body["access_token"], "secret-token")
        self.assertEqual(body["test_event_code"], "TEST123")

    def test_skips_without_pixel_or_token(self):
        self.assertEqual(self.client.fire_scan_event(None, scan_context(), self.geo).skipped_reason, "no_pixel")
        result = self.client.fire_scan_event(PixelCredentials(pixel_id="1"), scan_context(), self.geo)
        self.assertEqual(result.skipped_reason, "no_token")
        self.session.post.assert_not_called()

    def test_decryption_failure_skips_event(self):
        other = TokenCipher(generate_encryption_key())
        creds = PixelCredentials(pixel_id="1", encrypted_token=other.encrypt("token"))

        result = self.client.fire_scan_event(creds, scan_context(), self.geo)

        self.assertFalse(result.sent)
        self.assertEqual(result.skipped_reason, "decrypt_failed")
        self.session.post.assert_not_called()

    def test_errors_are_dropped_not_retried(self):
        creds = PixelCredentials(pixel_id="1", access_token="token")

        self.session.post.return_value = mock.Mock(ok=False, status_code=400, text="Invalid parameter")
        result = self.client.fire_scan_event(creds, scan_context(), self.geo)
        self.assertFalse(result.sent)
        self.assertEqual(result.status_code, 400)

        self.session.post.side_effect = requests.exceptions.ConnectionError("down")
        result = self.client.fire_scan_event(creds, scan_context(), self.geo)
        self.assertFalse(result.sent)
        self.assertIn("down", result.error)

        self.assertEqual(self.session.post.call_count, 2)


if __name__ == '__main__':
    unittest.main()
