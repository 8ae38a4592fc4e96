"""
Lightweight User-Agent parser
Pattern matching only - this runs on the redirect hot path
"""
import re
from dataclasses import dataclass, asdict


@dataclass(frozen=True)
class DeviceInfo:
    device_type: str  # mobile, tablet, desktop
    browser: str
    browser_version: str
    os: str
    os_version: str
    is_bot: bool

    def to_dict(self):
        return asdict(self)

    def summary(self):
        """e.g. 'Chrome 120 on Android 14'"""
        browser = f"{self.browser} {self.browser_version.split('.')[0]}" if self.browser_version else self.browser
        os_name = f"{self.os} {self.os_version.split('.')[0]}" if self.os_version else self.os
        return f"{browser} on {os_name}"


UNKNOWN_DEVICE = DeviceInfo(
    device_type="desktop",
    browser="Unknown",
    browser_version="",
    os="Unknown",
    os_version="",
    is_bot=False,
)

BOT_PATTERN = re.compile(r"bot|crawl|spider|slurp|bingpreview|facebookexternalhit|mediapartners", re.I)

# Tablets first: Android tablets omit the "Mobile" token
TABLET_PATTERN = re.compile(r"ipad|tablet|playbook|silk|kindle|nexus\s*(?:7|9|10)", re.I)
ANDROID_PATTERN = re.compile(r"android", re.I)
MOBILE_TOKEN = re.compile(r"mobile", re.I)
MOBILE_PATTERN = re.compile(
    r"mobile|iphone|ipod|android.*mobile|windows\s*phone|blackberry|bb\d+|meego|webos|palm|symbian"
    r"|opera\s*mini|opera\s*mobi|iemobile",
    re.I,
)

# Ordered: specific engines before the generic ones whose tokens they also carry
BROWSER_PATTERNS = (
    ("Edge", re.compile(r"Edg(?:e|A|iOS)?/(\d+(?:\.\d+)?)", re.I), None),
    ("Opera", re.compile(r"(?:OPR|Opera)/(\d+(?:\.\d+)?)", re.I), None),
    ("Samsung Browser", re.compile(r"SamsungBrowser/(\d+(?:\.\d+)?)", re.I), None),
    ("UC Browser", re.compile(r"UCBrowser/(\d+(?:\.\d+)?)", re.I), None),
    ("Chrome", re.compile(r"(?:Chrome|CriOS)/(\d+(?:\.\d+)?)", re.I), re.compile(r"Edg|OPR|Opera|SamsungBrowser", re.I)),
    ("Firefox", re.compile(r"(?:Firefox|FxiOS)/(\d+(?:\.\d+)?)", re.I), None),
    ("Safari", re.compile(r"Version/(\d+(?:\.\d+)?).*Safari", re.I), re.compile(r"Chrome|CriOS|Edg|OPR|Opera", re.I)),
    ("Internet Explorer", re.compile(r"(?:MSIE |rv:)(\d+(?:\.\d+)?)", re.I), None),
)
FACEBOOK_APP = re.compile(r"FBAN|FBAV", re.I)
FACEBOOK_VERSION = re.compile(r"FBAV/(\d+(?:\.\d+)?)", re.I)
INSTAGRAM_APP = re.compile(r"Instagram\s*(\d+(?:\.\d+)?)?", re.I)

IOS_PATTERN = re.compile(r"(?:iPhone|iPad|iPod).*OS\s*(\d+[_\d]*)", re.I)
ANDROID_VERSION = re.compile(r"Android\s*(\d+(?:\.\d+)?)", re.I)
WINDOWS_PATTERN = re.compile(r"Windows\s*(?:NT\s*)?(\d+(?:\.\d+)?)", re.I)
MACOS_PATTERN = re.compile(r"Mac\s*OS\s*X?\s*(\d+[_.\d]*)", re.I)
LINUX_PATTERN = re.compile(r"Linux", re.I)
CHROME_OS_PATTERN = re.compile(r"CrOS", re.I)

WINDOWS_VERSIONS = {
    "10.0": "10/11",
    "6.3": "8.1",
    "6.2": "8",
    "6.1": "7",
    "6.0": "Vista",
    "5.1": "XP",
}


def is_bot(ua: str) -> bool:
    return bool(ua) and bool(BOT_PATTERN.search(ua))


def detect_device_type(ua: str) -> str:
    if TABLET_PATTERN.search(ua) or (ANDROID_PATTERN.search(ua) and not MOBILE_TOKEN.search(ua)):
        return "tablet"
    if MOBILE_PATTERN.search(ua):
        return "mobile"
    return "desktop"


def detect_browser(ua: str) -> tuple:
    for name, pattern, excluded in BROWSER_PATTERNS:
        match = pattern.search(ua)
        if match and not (excluded and excluded.search(ua)):
            return name, match.group(1)

    # In-app browsers
    if FACEBOOK_APP.search(ua):
        match = FACEBOOK_VERSION.search(ua)
        return "Facebook", match.group(1) if match else ""
    match = INSTAGRAM_APP.search(ua)
    if match:
        return "Instagram", match.group(1) or ""

    return "Unknown", ""


def detect_os(ua: str) -> tuple:
    match = IOS_PATTERN.search(ua)
    if match:
        return "iOS", match.group(1).replace("_", ".")

    match = ANDROID_VERSION.search(ua)
    if match:
        return "Android", match.group(1)

    match = WINDOWS_PATTERN.search(ua)
    if match:
        version = match.group(1)
        return "Windows", WINDOWS_VERSIONS.get(version, version)

    match = MACOS_PATTERN.search(ua)
    if match:
        return "macOS", match.group(1).replace("_", ".")

    if LINUX_PATTERN.search(ua) and not ANDROID_PATTERN.search(ua):
        return "Linux", ""

    if CHROME_OS_PATTERN.search(ua):
        return "Chrome OS", ""

    return "Unknown", ""


def parse_user_agent(ua: str) -> DeviceInfo:
    """Classify a User-Agent string. Empty input gives desktop/Unknown/non-bot."""
    if not ua:
        return UNKNOWN_DEVICE

    browser, browser_version = detect_browser(ua)
    os_name, os_version = detect_os(ua)

    return DeviceInfo(
        device_type=detect_device_type(ua),
        browser=browser,
        browser_version=browser_version,
        os=os_name,
        os_version=os_version,
        is_bot=is_bot(ua),
    )
