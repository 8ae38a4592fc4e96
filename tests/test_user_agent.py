"""
Unit tests for the User-Agent classifier
"""
import unittest

from qrtrack.helpers.user_agent import parse_user_agent

UAS = {
    "iphone_safari": (
        "Mozilla/5.0 (iPhone; CPU iPhone OS 17_1 like Mac OS X) AppleWebKit/605.1.15 "
        "(KHTML, like Gecko) Version/17.1 Mobile/15E148 Safari/604.1"
    ),
    "ipad_safari": (
        "Mozilla/5.0 (iPad; CPU OS 16_6 like Mac OS X) AppleWebKit/605.1.15 "
        "(KHTML, like Gecko) Version/16.6 Mobile/15E148 Safari/604.1"
    ),
    "android_chrome": (
        "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.6099.43 Mobile Safari/537.36"
    ),
    "android_tablet": (
        "Mozilla/5.0 (Linux; Android 13; SM-X700) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36"
    ),
    "samsung": (
        "Mozilla/5.0 (Linux; Android 13; SM-S911B) AppleWebKit/537.36 (KHTML, like Gecko) "
        "SamsungBrowser/23.0 Chrome/115.0.0.0 Mobile Safari/537.36"
    ),
    "windows_edge": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36 Edg/120.0.2210.61"
    ),
    "windows7_firefox": "Mozilla/5.0 (Windows NT 6.1; Win64; x64; rv:109.0) Gecko/20100101 Firefox/115.0",
    "mac_opera": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/119.0.0.0 Safari/537.36 OPR/105.0.0.0"
    ),
    "facebook_inapp": (
        "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
        "(KHTML, like Gecko) Mobile/15E148 [FBAN/FBIOS;FBAV/440.0.0.30.109;FBBV/123]"
    ),
    "googlebot": "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)",
    "facebook_crawler": "facebookexternalhit/1.1 (+http://www.facebook.com/externalhit_uatext.php)",
}


class TestParseUserAgent(unittest.TestCase):

    def test_iphone(self):
        info = parse_user_agent(UAS["iphone_safari"])
        self.assertEqual(info.device_type, "mobile")
        self.assertEqual(info.browser, "Safari")
        self.assertEqual(info.os, "iOS")
        self.assertEqual(info.os_version, "17.1")
        self.assertFalse(info.is_bot)

    def test_tablets_checked_before_mobile(self):
        self.assertEqual(parse_user_agent(UAS["ipad_safari"]).device_type, "tablet")
        self.assertEqual(parse_user_agent(UAS["android_tablet"]).device_type, "tablet")

    def test_android_chrome(self):
        info = parse_user_agent(UAS["android_chrome"])
        self.assertEqual(info.device_type, "mobile")
        self.assertEqual(info.browser, "Chrome")
        self.assertEqual(info.browser_version, "120.0")
        self.assertEqual((info.os, info.os_version), ("Android", "14"))
        self.assertEqual(info.summary(), "Chrome 120 on Android 14")

    def test_specific_engines_before_chrome(self):
        self.assertEqual(parse_user_agent(UAS["samsung"]).browser, "Samsung Browser")
        self.assertEqual(parse_user_agent(UAS["windows_edge"]).browser, "Edge")
        self.assertEqual(parse_user_agent(UAS["mac_opera"]).browser, "Opera")

    def test_windows_marketing_names(self):
        self.assertEqual(parse_user_agent(UAS["windows_edge"]).os_version, "10/11")
        info = parse_user_agent(UAS["windows7_firefox"])
        self.assertEqual((info.os, info.os_version), ("Windows", "7"))
        self.assertEqual(info.browser, "Firefox")
        self.assertEqual(info.device_type, "desktop")

    def test_mac_os(self):
        info = parse_user_agent(UAS["mac_opera"])
        self.assertEqual((info.os, info.os_version), ("macOS", "10.15.7"))

    def test_in_app_browser(self):
        info = parse_user_agent(UAS["facebook_inapp"])
        self.assertEqual(info.browser, "Facebook")
        self.assertEqual(info.device_type, "mobile")

    def test_bots(self):
        self.assertTrue(parse_user_agent(UAS["googlebot"]).is_bot)
        self.assertTrue(parse_user_agent(UAS["facebook_crawler"]).is_bot)
        self.assertFalse(parse_user_agent(UAS["android_chrome"]).is_bot)

    def test_empty_user_agent(self):
        info = parse_user_agent("")
        self.assertEqual(info.device_type, "desktop")
        self.assertEqual(info.browser, "Unknown")
        self.assertEqual(info.os, "Unknown")
        self.assertFalse(info.is_bot)


if __name__ == '__main__':
    unittest.main()
