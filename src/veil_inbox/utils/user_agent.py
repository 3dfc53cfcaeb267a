# src/veil_inbox/utils/user_agent.py
"""User-Agent parsing for analytics and sender metadata.

Parsing is a walk over ordered lookup tables: the first pattern that matches
wins, so more specific signatures (in-app browsers, Edge, Opera) sit above
the engines they embed (Chrome, Safari). Nothing here raises; an agent we do
not recognize is reported as ``unknown``.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass

UNKNOWN_BROWSER = "Unknown Browser"
UNKNOWN_OS = "Unknown OS"

DEVICE_MOBILE = "mobile"
DEVICE_TABLET = "tablet"
DEVICE_DESKTOP = "desktop"
DEVICE_UNKNOWN = "unknown"

# (browser name, pattern capturing the version)
BROWSER_RULES: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("Instagram", re.compile(r"Instagram[ /]([\d.]+)?", re.I)),
    ("TikTok", re.compile(r"(?:TikTok|musical_ly|BytedanceWebview)[ _/]?([\d.]+)?", re.I)),
    ("Snapchat", re.compile(r"Snapchat/?([\d.]+)?", re.I)),
    ("Facebook", re.compile(r"\[?FB(?:AN|AV)/?(?:[A-Za-z]+;FBAV/)?([\d.]+)?", re.I)),
    ("Twitter", re.compile(r"Twitter(?:Android)?/?([\d.]+)?", re.I)),
    ("LinkedIn", re.compile(r"LinkedInApp/?([\d.]+)?", re.I)),
    ("Edge", re.compile(r"Edg(?:e|A|iOS)?/([\d.]+)")),
    ("Opera", re.compile(r"(?:OPR|Opera)/([\d.]+)")),
    ("Samsung Internet", re.compile(r"SamsungBrowser/([\d.]+)")),
    ("Brave", re.compile(r"Brave/([\d.]+)")),
    ("Firefox", re.compile(r"(?:Firefox|FxiOS)/([\d.]+)")),
    ("Chrome", re.compile(r"(?:Chrome|CriOS)/([\d.]+)")),
    ("Safari", re.compile(r"Version/([\d.]+).*Safari/")),
    ("Mobile Safari", re.compile(r"(?:iPhone|iPad|iPod).*AppleWebKit/([\d.]+)")),
)

# (OS name, pattern capturing the version; underscores are normalized to dots)
OS_RULES: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("iOS", re.compile(r"(?:iPhone|iPad|iPod)[^)]*? OS ([\d_]+)")),
    ("iOS", re.compile(r"(?:iPhone|iPad|iPod)()")),
    ("Android", re.compile(r"Android[ /]?([\d.]+)?")),
    ("Windows", re.compile(r"Windows NT ([\d.]+)")),
    ("Windows", re.compile(r"Windows()")),
    ("Chrome OS", re.compile(r"CrOS \S+ ([\d.]+)")),
    ("Mac OS", re.compile(r"Mac OS X ([\d_.]+)")),
    ("Linux", re.compile(r"Linux()")),
)

# Checked before the mobile rules: iPads and Android devices without
# "Mobile" in the agent are tablets.
TABLET_PATTERN = re.compile(r"iPad|Tablet|PlayBook|Silk|Kindle|Android(?!.*Mobile)", re.I)
MOBILE_PATTERN = re.compile(
    r"Mobile|iPhone|iPod|Android.*Mobile|Windows Phone|BlackBerry|Opera Mini|IEMobile",
    re.I,
)
BOT_PATTERN = re.compile(r"bot|crawler|spider|curl|wget|python-requests|httpx", re.I)

DESKTOP_OSES = frozenset({"Windows", "Mac OS", "Linux", "Chrome OS"})


@dataclass(frozen=True)
class ParsedUserAgent:
    """Structured view of a User-Agent header."""

    browser_name: str | None
    browser_version: str | None
    os_name: str | None
    os_version: str | None
    device_type: str
    raw: str

    @property
    def browser(self) -> str:
        if not self.browser_name:
            return UNKNOWN_BROWSER
        return f"{self.browser_name} {self.browser_version or ''}".strip()

    @property
    def os(self) -> str:
        if not self.os_name:
            return UNKNOWN_OS
        return f"{self.os_name} {self.os_version or ''}".strip()


def _first_match(
    rules: tuple[tuple[str, re.Pattern[str]], ...],
    user_agent: str,
) -> tuple[str | None, str | None]:
    for name, pattern in rules:
        match = pattern.search(user_agent)
        if match:
            version = match.group(1) if match.groups() else None
            return name, (version.replace("_", ".") if version else None)
    return None, None


def _device_type(user_agent: str, os_name: str | None, browser_name: str | None) -> str:
    if BOT_PATTERN.search(user_agent):
        return DEVICE_UNKNOWN
    if TABLET_PATTERN.search(user_agent):
        return DEVICE_TABLET
    if MOBILE_PATTERN.search(user_agent):
        return DEVICE_MOBILE
    if os_name in DESKTOP_OSES or (browser_name and os_name is None):
        return DEVICE_DESKTOP
    return DEVICE_UNKNOWN


def parse_user_agent(user_agent: str | None) -> ParsedUserAgent:
    """Parse a raw User-Agent string."""
    raw = (user_agent or "").strip()
    if not raw or raw.lower() == "unknown":
        return ParsedUserAgent(None, None, None, None, DEVICE_UNKNOWN, raw)

    browser_name, browser_version = _first_match(BROWSER_RULES, raw)
    os_name, os_version = _first_match(OS_RULES, raw)
    return ParsedUserAgent(
        browser_name=browser_name,
        browser_version=browser_version,
        os_name=os_name,
        os_version=os_version,
        device_type=_device_type(raw, os_name, browser_name),
        raw=raw,
    )


def get_user_agent(headers: Mapping[str, str]) -> str:
    """Return the User-Agent header or an empty string."""
    return headers.get("user-agent") or ""


def browser_family(browser_name: str | None) -> str:
    """Group browsers by engine for the analytics breakdown."""
    name = (browser_name or "").lower()
    if any(token in name for token in ("chrome", "edge", "brave", "opera", "samsung")):
        return "Chromium"
    if "safari" in name:
        return "Safari"
    if "firefox" in name:
        return "Firefox"
    return browser_name or "Other"
