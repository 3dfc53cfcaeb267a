# src/veil_inbox/services/classifier.py
"""Request context classification shared by the send and visit pipelines."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from veil_inbox.utils.referrer import (
    DIRECT,
    ReferrerInfo,
    classify_referrer,
    get_referrer,
    is_in_app_browser,
)
from veil_inbox.utils.user_agent import (
    DEVICE_UNKNOWN,
    ParsedUserAgent,
    get_user_agent,
    parse_user_agent,
)
from veil_inbox.utils.utm import UTMParams, extract_utm, sanitize_utm

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestContext:
    """Everything the pipelines learn about a request besides its address."""

    user_agent: ParsedUserAgent
    referrer: ReferrerInfo
    utm: UTMParams
    in_app_browser: bool

    @property
    def device_type(self) -> str:
        return self.user_agent.device_type

    def summary(self) -> dict[str, object]:
        """Compact view returned to clients after a tracked visit."""
        return {
            "device": self.user_agent.device_type,
            "platform": self.referrer.platform,
            "utm": self.utm.has_utm,
        }


def classify_request(
    headers: Mapping[str, str],
    query: Mapping[str, object] | str | None = None,
) -> RequestContext:
    """Classify the device, traffic source and campaign of a request.

    Never raises: a failure in any classifier degrades that part to its
    "unknown" value.
    """
    raw_agent = get_user_agent(headers)
    try:
        parsed = parse_user_agent(raw_agent)
    except Exception:  # noqa: BLE001
        logger.warning("User-Agent parsing failed; classifying as unknown", exc_info=True)
        parsed = ParsedUserAgent(None, None, None, None, DEVICE_UNKNOWN, raw_agent)

    try:
        referrer = classify_referrer(get_referrer(headers))
    except Exception:  # noqa: BLE001
        logger.warning("Referrer classification failed; treating as direct", exc_info=True)
        referrer = DIRECT

    try:
        utm = sanitize_utm(extract_utm(query)) if query else UTMParams()
    except Exception:  # noqa: BLE001
        logger.warning("UTM extraction failed; ignoring campaign parameters", exc_info=True)
        utm = UTMParams()

    return RequestContext(
        user_agent=parsed,
        referrer=referrer,
        utm=utm,
        in_app_browser=is_in_app_browser(referrer, raw_agent),
    )
