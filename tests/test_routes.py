"""HTTP surface tests — routes wired to mocked pipeline components."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from fakeredis.aioredis import FakeRedis
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api import service
from src.api.routes import router
from src.api.schemas import ExtractedAssetSet, GenerationResult, ScrapeRequest
from src.config import Settings, get_settings
from src.scraper.errors import (
    ConfigurationError,
    InvalidUrlError,
    NetworkExhaustedError,
    QuotaExceededError,
)
from src.store.redis import ProjectStore

API_KEY = "route-key"
HEADERS = {"X-API-Key": API_KEY}

STYLE = ExtractedAssetSet(
    colors=["rgb(200, 30, 30)", "rgb(30, 30, 200)"],
    fonts=["Lora"],
    images=["https://storage.test/hero.jpg"],
    logo="https://storage.test/logo.png",
    screenshot="https://storage.test/shot.png",
    palette=[(200, 30, 30), (30, 30, 200)],
)


@pytest.fixture
def orchestrator():
    orch = MagicMock()
    orch.scrape = AsyncMock(return_value=STYLE)
    return orch


@pytest.fixture
def generator():
    gen = MagicMock()
    gen.generate = AsyncMock(return_value=GenerationResult(html="<html>generated</html>"))
    gen.edit = AsyncMock(return_value=GenerationResult(html="<html>edited</html>"))
    return gen


@pytest.fixture
def client(orchestrator, generator):
    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_settings] = lambda: Settings(api_key=API_KEY)  # type: ignore[call-arg]
    app.state.orchestrator = orchestrator
    app.state.generator = generator
    app.state.store = ProjectStore(FakeRedis(decode_responses=True))
    with TestClient(app) as test_client:
        yield test_client


def _scrape(client, project_id="p1", **body):
    payload = {"url": "https://brand.example.com", "brand": "Brand", **body}
    return client.post(f"/projects/{project_id}/scrape", json=payload, headers=HEADERS)


# --- scrape ---


def test_scrape_requires_api_key(client):
    resp = client.post("/projects/p1/scrape", json={"url": "https://brand.example.com"})
    assert resp.status_code == 401


def test_scrape_stores_style_and_opens_version_chain(client, orchestrator):
    resp = _scrape(client)
    assert resp.status_code == 200
    assert resp.json()["fonts"] == ["Lora"]
    assert orchestrator.scrape.await_args.args == ("https://brand.example.com", "p1")
    assert orchestrator.scrape.await_args.kwargs["brand"] == "Brand"

    style = client.get("/projects/p1/style", headers=HEADERS).json()
    assert style["screenshot"] == "https://storage.test/shot.png"

    versions = client.get("/projects/p1/versions", headers=HEADERS).json()
    assert len(versions) == 1
    assert versions[0]["version_number"] == 1
    assert versions[0]["html_content"] == ""
    assert versions[0]["is_current"] is True


@pytest.mark.parametrize(
    "exc,status",
    [
        (InvalidUrlError("Invalid URL format. Please use http:// or https://"), 422),
        (QuotaExceededError("API calls limit reached"), 429),
        (ConfigurationError("Missing required configuration: OPENAI_API_KEY"), 503),
        (NetworkExhaustedError("Failed to scrape website. Please check the URL and try again."), 502),
    ],
)
def test_scrape_errors_map_to_status(client, orchestrator, exc, status):
    orchestrator.scrape.side_effect = exc
    resp = _scrape(client)
    assert resp.status_code == status
    assert resp.json()["detail"] == {"message": str(exc), "kind": exc.kind}
    assert client.get("/projects/p1/versions", headers=HEADERS).json() == []


def test_scrape_stream_mode_returns_event_stream(client, orchestrator):
    async def scrape(url, project_id, brand=None, on_event=None):
        await on_event("status", {"step": "validating", "message": "..."})
        return STYLE

    orchestrator.scrape.side_effect = scrape
    resp = _scrape(client, mode="stream")

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/event-stream")
    events = [line.split(":", 1)[1].strip() for line in resp.text.splitlines() if line.startswith("event:")]
    assert events == ["status", "result", "done"]


def test_style_missing_is_404(client):
    assert client.get("/projects/nope/style", headers=HEADERS).status_code == 404


def test_scrape_logs_empty(client):
    assert client.get("/projects/p1/scrape-logs", headers=HEADERS).json() == []


# --- generate ---


def test_generate_before_scrape_is_conflict(client):
    resp = client.post("/projects/p1/generate", json={"instructions": "x"}, headers=HEADERS)
    assert resp.status_code == 409


def test_generate_merges_selection_and_appends_version(client, generator):
    _scrape(client)
    resp = client.post(
        "/projects/p1/generate",
        json={"instructions": "  Focus on the espresso line.  ", "primary_font": "Lora", "created_by": "u1"},
        headers=HEADERS,
    )

    assert resp.status_code == 200
    version = resp.json()
    assert version["version_number"] == 2
    assert version["html_content"] == "<html>generated</html>"
    assert version["prompt_instructions"] == "Focus on the espresso line."
    assert version["is_current"] is True

    prompt, style, screenshot = generator.generate.await_args.args
    assert prompt == (
        "Create a landing page that uses lorem ipsum placeholder text for all marketing content.\n"
        "Additional instructions:\n"
        "Focus on the espresso line."
    )
    assert style.primary_font == "Lora"
    assert style.dominant_color == "rgb(200, 30, 30)"
    assert screenshot == "https://storage.test/shot.png"

    stored = client.get("/projects/p1/style", headers=HEADERS).json()
    assert stored["primary_font"] == "Lora"
    assert stored["dominant_color"] == "rgb(200, 30, 30)"


def test_generate_uploaded_logo_replaces_scraped(client, generator):
    _scrape(client)
    client.post(
        "/projects/p1/generate",
        json={"logo": "https://storage.test/uploaded.png", "dominant_color": "#000000"},
        headers=HEADERS,
    )
    style = generator.generate.await_args.args[1]
    assert style.logo == "https://storage.test/uploaded.png"
    assert style.dominant_color == "#000000"


def test_generate_failure_is_bad_gateway_without_version(client, generator):
    _scrape(client)
    generator.generate.return_value = GenerationResult(html="<html>fallback</html>", error="Rate limit reached")

    resp = client.post("/projects/p1/generate", json={"instructions": "x"}, headers=HEADERS)

    assert resp.status_code == 502
    assert resp.json()["detail"] == {"message": "Rate limit reached", "fallback_html": "<html>fallback</html>"}
    assert len(client.get("/projects/p1/versions", headers=HEADERS).json()) == 1


# --- edit / save ---


def test_edit_without_version_is_conflict(client):
    resp = client.post("/projects/p1/edit", json={"instructions": "x"}, headers=HEADERS)
    assert resp.status_code == 409


def test_edit_requires_instructions(client):
    _scrape(client)
    resp = client.post("/projects/p1/edit", json={"instructions": ""}, headers=HEADERS)
    assert resp.status_code == 422


def test_edit_uses_current_markup_and_screenshot(client, generator):
    _scrape(client)
    client.post("/projects/p1/generate", json={"instructions": "x"}, headers=HEADERS)

    resp = client.post(
        "/projects/p1/edit",
        json={"instructions": "Make the header sticky", "model": "gpt-4o"},
        headers=HEADERS,
    )

    assert resp.status_code == 200
    assert resp.json()["version_number"] == 3
    assert resp.json()["html_content"] == "<html>edited</html>"
    generator.edit.assert_awaited_once_with(
        "<html>generated</html>",
        "Make the header sticky",
        screenshot="https://storage.test/shot.png",
        model="gpt-4o",
    )

    versions = client.get("/projects/p1/versions", headers=HEADERS).json()
    assert [v["version_number"] for v in versions] == [3, 2, 1]
    assert [v["is_current"] for v in versions] == [True, False, False]


def test_edit_failure_keeps_chain(client, generator):
    _scrape(client)
    generator.edit.return_value = GenerationResult(html="", error="network down")
    resp = client.post("/projects/p1/edit", json={"instructions": "x"}, headers=HEADERS)
    assert resp.status_code == 502
    assert len(client.get("/projects/p1/versions", headers=HEADERS).json()) == 1


def test_manual_save_appends_current_version(client):
    _scrape(client)
    resp = client.post(
        "/projects/p1/versions",
        json={"html": "<html>hand edited</html>", "created_by": "u1"},
        headers=HEADERS,
    )
    assert resp.status_code == 200
    assert resp.json()["version_number"] == 2
    assert resp.json()["created_by"] == "u1"
    assert resp.json()["settings"]["fonts"] == ["Lora"]


# --- streaming service ---


@pytest.mark.asyncio
async def test_stream_scrape_reports_scrape_errors(orchestrator):
    orchestrator.scrape.side_effect = QuotaExceededError("API calls limit reached")
    store = ProjectStore(FakeRedis(decode_responses=True))
    body = ScrapeRequest(url="https://brand.example.com", mode="stream")

    events = [item async for item in service.stream_scrape(orchestrator, store, "p1", body)]

    assert [e["event"] for e in events] == ["error", "done"]
    assert json.loads(events[0]["data"]) == {"message": "API calls limit reached", "kind": "quota_exceeded"}


@pytest.mark.asyncio
async def test_stream_scrape_reports_unexpected_errors(orchestrator):
    orchestrator.scrape.side_effect = RuntimeError("bug")
    store = ProjectStore(FakeRedis(decode_responses=True))
    body = ScrapeRequest(url="https://brand.example.com", mode="stream")

    events = [item async for item in service.stream_scrape(orchestrator, store, "p1", body)]

    assert [e["event"] for e in events] == ["error", "done"]
    assert json.loads(events[0]["data"])["kind"] == "internal"


@pytest.mark.asyncio
async def test_stream_scrape_result_payload(orchestrator):
    store = ProjectStore(FakeRedis(decode_responses=True))
    body = ScrapeRequest(url="https://brand.example.com", mode="stream")

    events = [item async for item in service.stream_scrape(orchestrator, store, "p1", body)]

    assert [e["event"] for e in events] == ["result", "done"]
    assert json.loads(events[0]["data"])["palette"] == [[200, 30, 30], [30, 30, 200]]
    assert (await store.get_current_version("p1")).version_number == 1
