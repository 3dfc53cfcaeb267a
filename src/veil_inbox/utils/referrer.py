# src/veil_inbox/utils/referrer.py
"""Traffic source classification from the Referer header."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import urlsplit

CATEGORY_SOCIAL = "social"
CATEGORY_SEARCH = "search"
CATEGORY_REFERRAL = "referral"
CATEGORY_DIRECT = "direct"

# Host pattern -> platform. A referrer matches when its hostname equals the
# pattern or is a subdomain of it; longer patterns are tried first.
SOCIAL_PLATFORMS: dict[str, str] = {
    "l.instagram.com": "instagram",
    "instagram.com": "instagram",
    "tiktok.com": "tiktok",
    "snapchat.com": "snapchat",
    "t.co": "twitter",
    "twitter.com": "twitter",
    "x.com": "twitter",
    "facebook.com": "facebook",
    "fb.com": "facebook",
    "linkedin.com": "linkedin",
    "reddit.com": "reddit",
    "youtube.com": "youtube",
    "pinterest.com": "pinterest",
    "tumblr.com": "tumblr",
    "whatsapp.com": "whatsapp",
    "telegram.org": "telegram",
    "discord.com": "discord",
    "threads.net": "threads",
    "bsky.app": "bluesky",
}

# Matched against any label of the hostname (google.com, www.google.co.uk).
SEARCH_ENGINES: dict[str, str] = {
    "google": "google",
    "bing": "bing",
    "yahoo": "yahoo",
    "duckduckgo": "duckduckgo",
    "baidu": "baidu",
    "yandex": "yandex",
}

DISPLAY_NAMES: dict[str, str] = {
    "instagram": "Instagram",
    "tiktok": "TikTok",
    "snapchat": "Snapchat",
    "twitter": "X (Twitter)",
    "facebook": "Facebook",
    "linkedin": "LinkedIn",
    "reddit": "Reddit",
    "youtube": "YouTube",
    "pinterest": "Pinterest",
    "tumblr": "Tumblr",
    "whatsapp": "WhatsApp",
    "telegram": "Telegram",
    "discord": "Discord",
    "threads": "Threads",
    "bluesky": "Bluesky",
    "google": "Google Search",
    "bing": "Bing Search",
    "yahoo": "Yahoo Search",
    "duckduckgo": "DuckDuckGo",
    "baidu": "Baidu",
    "yandex": "Yandex",
    "direct": "Direct Traffic",
    "other": "Other",
}

_SOCIAL_BY_SPECIFICITY = sorted(SOCIAL_PLATFORMS.items(), key=lambda item: -len(item[0]))


@dataclass(frozen=True)
class ReferrerInfo:
    """Classified traffic source."""

    raw: str | None
    platform: str
    category: str
    display_name: str
    is_social: bool
    domain: str | None


DIRECT = ReferrerInfo(
    raw=None,
    platform="direct",
    category=CATEGORY_DIRECT,
    display_name=DISPLAY_NAMES["direct"],
    is_social=False,
    domain=None,
)


def _hostname(url: str) -> str | None:
    try:
        parts = urlsplit(url.strip())
        hostname = parts.hostname
    except ValueError:
        return None
    if not parts.scheme or not hostname:
        return None
    return hostname.lower().rstrip(".")


def _match_social(hostname: str) -> tuple[str, str] | None:
    for pattern, platform in _SOCIAL_BY_SPECIFICITY:
        if hostname == pattern or hostname.endswith("." + pattern):
            return pattern, platform
    return None


def _match_search(hostname: str) -> str | None:
    labels = hostname.split(".")
    for label, engine in SEARCH_ENGINES.items():
        if label in labels:
            return engine
    return None


def classify_referrer(referrer: str | None) -> ReferrerInfo:
    """Classify a Referer header value.

    Empty values are direct traffic; URLs that cannot be parsed are an
    unknown referral rather than an error.
    """
    if not referrer or not referrer.strip():
        return DIRECT

    hostname = _hostname(referrer)
    if hostname is None:
        return ReferrerInfo(
            raw=referrer,
            platform="other",
            category=CATEGORY_REFERRAL,
            display_name="Unknown",
            is_social=False,
            domain=None,
        )

    social = _match_social(hostname)
    if social is not None:
        pattern, platform = social
        return ReferrerInfo(
            raw=referrer,
            platform=platform,
            category=CATEGORY_SOCIAL,
            display_name=DISPLAY_NAMES.get(platform, platform),
            is_social=True,
            domain=pattern,
        )

    engine = _match_search(hostname)
    if engine is not None:
        return ReferrerInfo(
            raw=referrer,
            platform=engine,
            category=CATEGORY_SEARCH,
            display_name=DISPLAY_NAMES.get(engine, engine),
            is_social=False,
            domain=hostname,
        )

    return ReferrerInfo(
        raw=referrer,
        platform="other",
        category=CATEGORY_REFERRAL,
        display_name=hostname,
        is_social=False,
        domain=hostname,
    )


def get_referrer(headers: Mapping[str, str]) -> str | None:
    """Return the Referer header, accepting the correctly spelled variant too."""
    return headers.get("referer") or headers.get("referrer") or None


def simplified_category(category: str | None, platform: str | None) -> str:
    """Coarse grouping used by the analytics dashboard."""
    if category == CATEGORY_SOCIAL:
        if platform in ("instagram", "tiktok", "snapchat"):
            return "Visual Social Media"
        if platform in ("twitter", "facebook", "threads"):
            return "Text Social Media"
        return "Social Media"
    if category == CATEGORY_SEARCH:
        return "Search Engine"
    if category in (CATEGORY_DIRECT, None):
        return "Direct"
    return "Other Websites"


def is_in_app_browser(info: ReferrerInfo, user_agent: str | None) -> bool:
    """Guess whether the request came from a social app's embedded webview."""
    ua = (user_agent or "").lower()
    if info.platform == "instagram":
        return "instagram" in ua or info.domain == "l.instagram.com"
    if info.platform == "tiktok":
        return "tiktok" in ua or "musical_ly" in ua
    if info.platform == "snapchat":
        return "snapchat" in ua
    if info.platform == "facebook":
        return "fban" in ua or "fbav" in ua
    return False
