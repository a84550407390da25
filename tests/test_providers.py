"""Weather, calendar, news and Gemini adapters with the network stubbed out."""

from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
import requests
from google.auth.exceptions import DefaultCredentialsError

from tests.support import FakeGenerator, FakeResponse
from tools import calendar_provider, genai_client, news_provider, weather_provider
from tools.calendar_provider import (
    CalendarEvent,
    FallbackCalendarProvider,
    GoogleCalendarProvider,
    MockCalendarProvider,
    StubCalendarProvider,
)
from tools.genai_client import GeminiClient, GeminiLabelClassifier, InlineImage
from tools.news_provider import NewsProvider
from tools.weather_provider import (
    Forecast,
    MockWeatherProvider,
    OpenMeteoWeatherProvider,
    condition_description,
    weather_snippet,
)


def _patch_get(monkeypatch, module, payload=None, error=None, status_code=200):
    calls = []

    def fake_get(url, **kwargs):
        calls.append((url, kwargs))
        if error:
            raise error
        return FakeResponse(payload, status_code)

    monkeypatch.setattr(module.requests, "get", fake_get)
    return calls


# Weather


def test_current_temperature_reads_open_meteo(monkeypatch) -> None:
    calls = _patch_get(monkeypatch, weather_provider, {"current_weather": {"temperature": 18.4}})

    assert OpenMeteoWeatherProvider().current_temperature(14.6, 120.98) == 18.4
    assert calls[0][1]["params"]["current_weather"] == "true"


def test_weather_failures_return_none(monkeypatch) -> None:
    _patch_get(monkeypatch, weather_provider, {"current_weather": {}})
    assert OpenMeteoWeatherProvider().current_temperature(0, 0) is None

    _patch_get(monkeypatch, weather_provider, error=requests.ConnectionError("offline"))
    assert OpenMeteoWeatherProvider().current_temperature(0, 0) is None

    _patch_get(monkeypatch, weather_provider, {}, status_code=500)
    assert OpenMeteoWeatherProvider().forecast(0, 0, date(2026, 10, 20)) is None


def test_daily_forecast_summarizes_first_day(monkeypatch) -> None:
    payload = {
        "daily": {
            "time": ["2026-10-20"],
            "temperature_2m_max": [24.0],
            "temperature_2m_min": [16.0],
            "weathercode": [61],
        }
    }
    calls = _patch_get(monkeypatch, weather_provider, payload)

    forecast = OpenMeteoWeatherProvider().forecast(14.6, 120.98, date(2026, 10, 20))

    assert forecast == Forecast(max=24.0, min=16.0, condition="rain")
    assert forecast.average == 20
    assert weather_snippet(forecast) == "Expect 20°C, rain"
    assert calls[0][1]["params"]["start_date"] == "2026-10-20"


def test_forecast_rejects_out_of_range_coordinates() -> None:
    with pytest.raises(ValueError):
        OpenMeteoWeatherProvider().forecast(120.0, 0.0, date(2026, 10, 20))


def test_geocode(monkeypatch) -> None:
    _patch_get(
        monkeypatch,
        weather_provider,
        {"results": [{"name": "Manila", "latitude": 14.6, "longitude": 120.98, "country": "PH"}]},
    )
    assert OpenMeteoWeatherProvider().geocode("Manila") == (14.6, 120.98, "Manila")

    _patch_get(monkeypatch, weather_provider, {})
    assert OpenMeteoWeatherProvider().geocode("Nowhere") is None
    with pytest.raises(ValueError):
        OpenMeteoWeatherProvider().geocode("  ")


def test_condition_codes_and_mock_provider() -> None:
    assert condition_description(0) == "clear skies"
    assert condition_description(2) == "partly cloudy"
    assert condition_description(81) == "showers"
    assert condition_description(None) == "mixed conditions"
    assert weather_snippet(None) is None

    mock = MockWeatherProvider(places={"Cebu": (10.3, 123.9, "Cebu")})
    assert mock.forecast(1, 2, date(2026, 1, 1)).condition == "partly cloudy"
    assert mock.forecast_calls == [(1, 2, date(2026, 1, 1))]
    assert mock.geocode("Cebu") == (10.3, 123.9, "Cebu")


# Calendar


def test_google_calendar_parses_timed_and_all_day_events(monkeypatch) -> None:
    payload = {
        "items": [
            {
                "summary": "Board meeting",
                "start": {"dateTime": "2026-10-20T09:00:00Z"},
                "end": {"dateTime": "2026-10-20T10:00:00Z"},
            },
            {"summary": "Company offsite", "start": {"date": "2026-10-21"}, "end": {"date": "2026-10-22"}},
            {"summary": "Broken", "start": {}},
        ]
    }
    calls = _patch_get(monkeypatch, calendar_provider, payload)
    provider = GoogleCalendarProvider(access_token="token-123")
    start = datetime(2026, 10, 20, tzinfo=timezone.utc)

    events = provider.get_events("ana@example.com", start, start + timedelta(days=3))

    assert [event.title for event in events] == ["Board meeting", "Company offsite"]
    assert events[0].start_time == datetime(2026, 10, 20, 9, tzinfo=timezone.utc)
    assert events[1].is_all_day
    assert events[1].start_time == datetime(2026, 10, 21, tzinfo=timezone.utc)
    assert calls[0][1]["headers"]["Authorization"] == "Bearer token-123"
    assert calls[0][1]["params"]["orderBy"] == "startTime"


def test_google_calendar_rejects_inverted_window() -> None:
    start = datetime(2026, 10, 20, tzinfo=timezone.utc)
    with pytest.raises(ValueError):
        GoogleCalendarProvider(access_token="t").get_events("u", start, start - timedelta(days=2))


def test_google_calendar_without_credentials_returns_nothing(monkeypatch) -> None:
    def no_credentials(**_):
        raise DefaultCredentialsError("no adc")

    monkeypatch.setattr(calendar_provider.google.auth, "default", no_credentials)
    start = datetime(2026, 10, 20, tzinfo=timezone.utc)

    assert GoogleCalendarProvider().get_events("u", start, start + timedelta(days=1)) == []


def test_fallback_provider_uses_stub_events_when_primary_is_empty() -> None:
    now = datetime(2026, 10, 20, 8, tzinfo=timezone.utc)
    provider = FallbackCalendarProvider(MockCalendarProvider([]), StubCalendarProvider(now=now))

    events = provider.get_events("u", now, now + timedelta(days=2))

    assert [event.title for event in events] == [
        "Team meeting — Planning",
        "Dinner with friends — Casual",
        "Dinner at 8 PM — Formal",
    ]


def test_event_display_text_prefers_description() -> None:
    start = datetime(2026, 10, 20, tzinfo=timezone.utc)
    assert CalendarEvent("Party", start, description="Cocktail party").display_text == "Cocktail party"
    assert CalendarEvent("Party", start, description="  ").display_text == "Party"


# News


def test_news_without_key_serves_samples() -> None:
    articles = NewsProvider().fetch_trending("Manila")

    assert len(articles) == 5
    assert articles[2].title == "Local Designers to Watch in Manila"


def test_news_with_key_queries_newsapi(monkeypatch) -> None:
    payload = {
        "status": "ok",
        "articles": [
            {"title": "Runway recap", "url": "https://news.example/1", "source": {"name": "WWD"}},
            {"title": None, "url": "https://news.example/2"},
            {"title": "Street style", "url": "https://news.example/3", "source": {}},
        ],
    }
    calls = _patch_get(monkeypatch, news_provider, payload)

    articles = NewsProvider(api_key="key").fetch_trending(" Cebu ")

    assert [(a.title, a.source) for a in articles] == [("Runway recap", "WWD"), ("Street style", "Unknown")]
    assert calls[0][1]["params"]["q"] == "fashion Cebu"
    assert calls[0][1]["params"]["pageSize"] == 6


def test_news_errors_return_empty(monkeypatch) -> None:
    _patch_get(monkeypatch, news_provider, error=requests.Timeout("slow"))
    assert NewsProvider(api_key="key").fetch_trending() == []


# Gemini


class _FakeModel:
    def __init__(self, response) -> None:
        self.response = response
        self.calls = []

    def generate_content(self, contents, generation_config=None):
        self.calls.append((contents, generation_config))
        return self.response


def _response(*parts):
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=list(parts)))])


def _client(monkeypatch, response) -> tuple:
    model = _FakeModel(response)
    monkeypatch.setattr(genai_client.genai, "GenerativeModel", lambda model_name: model)
    return GeminiClient(model="text-model", image_model="image-model"), model


def test_gemini_image_part_wins(monkeypatch) -> None:
    inline = SimpleNamespace(data=b"png-bytes", mime_type="image/png")
    client, model = _client(
        monkeypatch, _response(SimpleNamespace(text="note", inline_data=None), SimpleNamespace(inline_data=inline))
    )

    generated = client.generate_image(["prompt", InlineImage(b"jpeg", "image/jpeg")])

    assert generated.data == b"png-bytes"
    assert generated.mime_type == "image/png"
    assert model.calls[0][0][1] == {"mime_type": "image/jpeg", "data": b"jpeg"}


def test_gemini_text_only_image_response(monkeypatch) -> None:
    client, _ = _client(monkeypatch, _response(SimpleNamespace(text="Try a lighter top.", inline_data=None)))

    generated = client.generate_image(["prompt"])

    assert generated.data is None
    assert generated.text == "Try a lighter top."


def test_gemini_text_generation(monkeypatch) -> None:
    client, model = _client(monkeypatch, _response(SimpleNamespace(text=" Carry an umbrella. ")))

    assert client.generate_text("tip please") == "Carry an umbrella."
    assert model.calls[0][1] == {"temperature": 0.4}
    assert _client(monkeypatch, SimpleNamespace(candidates=[]))[0].generate_text("x") is None


def test_label_classifier_splits_ranked_labels() -> None:
    fake = FakeGenerator(text="Shirt, Clothing , apparel")
    classify = GeminiLabelClassifier(fake, "label it")

    assert classify(b"image") == ["shirt", "clothing", "apparel"]
    assert fake.text_calls == ["label it"]
    assert GeminiLabelClassifier(FakeGenerator(text=None), "label it")(b"image") == []
