"""Social-media crawler detection by user-agent signature."""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog

from havaasa.constants.link_preview import DEFAULT_CRAWLER_SIGNATURES

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CrawlerDetector:
    """
    Recognises link-preview bots (Facebook, WhatsApp, Twitter...).

    Matching is a case-insensitive substring test against the user-agent;
    there is no reverse-DNS verification.
    """

    signatures: tuple[str, ...]
    version: str = "builtin"

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "CrawlerDetector":
        signatures = data.get("signatures")
        if not isinstance(signatures, list) or not all(isinstance(s, str) for s in signatures):
            raise ValueError("crawler signatures must be a list of strings")
        cleaned = tuple(s.strip().lower() for s in signatures if s.strip())
        return cls(signatures=cleaned, version=str(data.get("version", "unversioned")))

    @classmethod
    def default(cls) -> "CrawlerDetector":
        return cls.from_mapping(DEFAULT_CRAWLER_SIGNATURES)

    @classmethod
    def load(cls, path: str | Path | None = None) -> "CrawlerDetector":
        """Load signatures from a JSON file, or fall back to the built-in set."""
        if path is None:
            return cls.default()
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        detector = cls.from_mapping(data)
        logger.info(
            "crawler_signatures_loaded",
            path=str(path),
            version=detector.version,
            count=len(detector.signatures),
        )
        return detector

    def classify(self, user_agent: str | None) -> bool:
        """Return True when the user-agent belongs to a known crawler."""
        if not user_agent:
            return False
        ua = user_agent.lower()
        return any(signature in ua for signature in self.signatures)
