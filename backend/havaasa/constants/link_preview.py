"""Link-preview constants shared by the crawler detector and OG renderer."""

from typing import Any

# Default crawler signatures, used when no signatures file is configured
DEFAULT_CRAWLER_SIGNATURES: dict[str, Any] = {
    "version": "2024.1",
    "signatures": [
        "facebookexternalhit",
        "WhatsApp",
        "Twitterbot",
        "LinkedInBot",
        "Pinterest",
        "Slackbot",
        "TelegramBot",
    ],
}

OG_TYPE = "article"
OG_IMAGE_WIDTH = 1200
OG_IMAGE_HEIGHT = 630
FALLBACK_IMAGE_PATH = "/og-image.png"

DESCRIPTION_PREFIX_CHARS = 200
ELLIPSIS = "..."

CRAWLER_CACHE_CONTROL = "public, max-age=300"
CRAWLER_ROBOTS_TAG = "all"
HTML_CONTENT_TYPE = "text/html; charset=utf-8"
