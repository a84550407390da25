"""Trending fashion news from NewsAPI.org, with offline sample articles."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import List, Optional

import requests
from pydantic import ValidationError

from fitpick_app.logging_config import get_logger, log_event
from logic.validation import NewsApiResponse, validation_failure
from tools.observability import instrument_call

LOGGER = get_logger(__name__)
NEWS_URL = "https://newsapi.org/v2/everything"
PAGE_SIZE = 6


@dataclass
class Article:
    title: str
    source: str
    url: str

    def to_dict(self) -> dict:
        return asdict(self)


def sample_articles(location: str) -> List[Article]:
    return [
        Article(
            "Street Style Roundup: What Influencers Are Wearing This Week",
            "Vogue",
            "https://www.vogue.com",
        ),
        Article(
            "Sustainable Brands Gaining Traction in 2026",
            "Business of Fashion",
            "https://www.businessoffashion.com",
        ),
        Article(
            f"Local Designers to Watch in {location}",
            "Local Fashion",
            "https://www.example.com/local-fashion",
        ),
        Article("Ten Comfortable Shoes That Look Professional", "GQ", "https://www.gq.com"),
        Article("How Weather Is Shaping Winter 2026 Trends", "WWD", "https://www.wwd.com"),
    ]


class NewsProvider:
    """Fetch fashion headlines for a locality.

    Without an API key the provider serves a fixed set of sample articles so
    the home screen still has content in development.
    """

    def __init__(self, api_key: Optional[str] = None, timeout_seconds: float = 5.0) -> None:
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds

    @instrument_call("news_fetch_trending")
    def fetch_trending(self, locality: Optional[str] = None) -> List[Article]:
        location = (locality or "").strip()
        if not self.api_key:
            return sample_articles(location)

        params = {
            "q": f"fashion {location}".strip(),
            "sortBy": "publishedAt",
            "pageSize": PAGE_SIZE,
            "apiKey": self.api_key,
        }
        try:
            response = requests.get(NEWS_URL, params=params, timeout=self.timeout_seconds)
            response.raise_for_status()
            parsed = NewsApiResponse.model_validate(response.json())
        except requests.Timeout:
            log_event(LOGGER, logging.ERROR, "news_request_timeout")
            return []
        except ValidationError as exc:
            log_event(
                LOGGER,
                logging.ERROR,
                "news_schema_invalid",
                failure=validation_failure("news payload", exc),
            )
            return []
        except (requests.RequestException, ValueError) as exc:
            log_event(LOGGER, logging.ERROR, "news_request_failed", error=str(exc))
            return []

        articles: List[Article] = []
        for item in parsed.articles:
            if not item.title:
                continue
            source = item.source.name if item.source and item.source.name else "Unknown"
            articles.append(Article(title=item.title, source=source, url=item.url or ""))
        return articles


__all__ = ["Article", "NewsProvider", "sample_articles"]
