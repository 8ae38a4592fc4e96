"""
Unit tests for visitor identity and tracking cookies
"""
import re
import unittest
from datetime import datetime, timedelta, timezone

from qrtrack.helpers.cookies import (
    CAMPAIGN_COOKIE_PREFIX,
    EVENT_COOKIE,
    EVENT_COOKIE_MAX_AGE,
    VISITOR_COOKIE,
    build_tracking_cookies,
    cookie_expiry,
    extract_click_ids,
    generate_visitor_id,
    has_visited_campaign,
    parse_cookie_header,
    resolve_visitor,
)


class TestVisitorIdentity(unittest.TestCase):

    def test_visitor_id_format(self):
        visitor_id = generate_visitor_id()
        self.assertRegex(visitor_id, r"^[0-9a-z]+[0-9a-f]{12}$")
        self.assertGreaterEqual(len(visitor_id), 10)

    def test_ten_thousand_ids_are_unique(self):
        ids = {generate_visitor_id() for _ in range(10000)}
        self.assertEqual(len(ids), 10000)

    def test_existing_visitor_is_reused(self):
        visitor_id, is_new = resolve_visitor({VISITOR_COOKIE: "lq2x9k1a2b3c4d5e6f"})
        self.assertEqual(visitor_id, "lq2x9k1a2b3c4d5e6f")
        self.assertFalse(is_new)

    def test_short_or_missing_cookie_mints_new_visitor(self):
        for cookies in ({}, None, {VISITOR_COOKIE: "short"}, {VISITOR_COOKIE: ""}):
            visitor_id, is_new = resolve_visitor(cookies)
            self.assertTrue(is_new)
            self.assertGreaterEqual(len(visitor_id), 10)

    def test_campaign_visit_marker(self):
        cookies = {f"{CAMPAIGN_COOKIE_PREFIX}42": "1"}
        self.assertTrue(has_visited_campaign(cookies, 42))
        self.assertFalse(has_visited_campaign(cookies, 7))


class TestTrackingCookies(unittest.TestCase):

    def test_three_cookies_with_attributes(self):
        expires = datetime(2026, 11, 18, tzinfo=timezone.utc)
        cookies = build_tracking_cookies("visitor12345", 42, "e" * 32, expires)
        headers = {c.name: c.to_header() for c in cookies}

        self.assertEqual(set(headers), {VISITOR_COOKIE, f"{CAMPAIGN_COOKIE_PREFIX}42", EVENT_COOKIE})
        for header in headers.values():
            self.assertIn("Path=/", header)
            self.assertIn("SameSite=Lax", header)
            self.assertIn("Secure", header)

        self.assertTrue(headers[VISITOR_COOKIE].startswith(f"{VISITOR_COOKIE}=visitor12345"))
        self.assertIn("Expires=", headers[VISITOR_COOKIE])
        self.assertIn("18 Nov 2026", headers[VISITOR_COOKIE])
        self.assertIn(f"Max-Age={EVENT_COOKIE_MAX_AGE}", headers[EVENT_COOKIE])
        self.assertEqual(EVENT_COOKIE_MAX_AGE, 604800)

    def test_cookie_expiry_adds_days(self):
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        self.assertEqual(cookie_expiry(30, now=now), now + timedelta(days=30))
        self.assertEqual(cookie_expiry(90, now=now).month, 4)


class TestCookieParsing(unittest.TestCase):

    def test_parse_header(self):
        parsed = parse_cookie_header("_qrt_visitor=abcdefghijkl; _fbp=fb.1.123.456")
        self.assertEqual(parsed[VISITOR_COOKIE], "abcdefghijkl")
        self.assertEqual(parsed["_fbp"], "fb.1.123.456")

    def test_malformed_header_degrades_to_empty(self):
        self.assertEqual(parse_cookie_header(None), {})
        self.assertEqual(parse_cookie_header(""), {})
        visitor_id, is_new = resolve_visitor(parse_cookie_header(";;=;garbage"))
        self.assertTrue(is_new)
        self.assertTrue(re.match(r"^[0-9a-z]+$", visitor_id))

    def test_click_ids(self):
        fbc, fbp = extract_click_ids({"_fbc": "fb.1.1.click", "_fbp": "fb.1.1.browser"})
        self.assertEqual((fbc, fbp), ("fb.1.1.click", "fb.1.1.browser"))
        self.assertEqual(extract_click_ids({}), (None, None))


if __name__ == '__main__':
    unittest.main()
