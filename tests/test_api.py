import json

import pytest
from fastapi.testclient import TestClient

from src.storyteller.api import app
from src.storyteller.processing_service import StoryProcessingService, get_processing_service
from src.storyteller.pdf_parser import PDFParser
from src.storyteller.pdf_generator import PdfGenerator
from src.storyteller.story_generator import StoryGenerator
from src.storyteller.story_cache import TTLCache
from src.storyteller.exceptions import AIServiceError, AIServiceErrorType

from conftest import FakeLLMService


@pytest.fixture
def client(service):
    app.dependency_overrides[get_processing_service] = lambda: service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def upload(client, content, filename="dragons.pdf", content_type="application/pdf", **form):
    return client.post(
        "/api/storygenerator/upload",
        files={"file": (filename, content, content_type)},
        data=form
    )


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_responses_carry_request_id(client):
    response = client.get("/api")
    assert response.status_code == 200
    assert len(response.headers["X-Request-ID"]) == 8


def test_upload_generates_story(client, fake_llm, sample_pdf_bytes):
    response = upload(client, sample_pdf_bytes, language="en", mood="adventure", keywords="gold, fog")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["storyId"] == body["story"]["id"]
    assert body["story"]["title"] == "The Winter Hoard"
    assert len(body["story"]["phases"]) == 4
    assert body["story"]["sourceFileName"] == "dragons.pdf"
    assert "createdAt" in body["story"]
    phase = body["story"]["phases"][0]
    assert phase["imageData"]
    assert phase["imagePrompt"]
    assert "image_data" not in phase

    story_prompt = fake_llm.chat_calls[1]["messages"][-1]["content"]
    assert "Write the story in English." in story_prompt
    assert "Incorporate these keywords into the story: gold, fog" in story_prompt


def test_upload_defaults_to_german(client, fake_llm, sample_pdf_bytes):
    response = upload(client, sample_pdf_bytes)
    assert response.status_code == 200
    assert "Schreibe die Geschichte auf Deutsch." in fake_llm.chat_calls[1]["messages"][-1]["content"]


def test_upload_without_file(client):
    response = client.post("/api/storygenerator/upload", data={"language": "en"})
    assert response.status_code == 400
    assert response.json()["errorCode"] == "NO_FILE"


def test_upload_empty_file(client):
    response = upload(client, b"")
    assert response.status_code == 400
    assert response.json()["errorCode"] == "NO_FILE"


def test_upload_non_pdf(client):
    response = upload(client, b"just some notes", filename="notes.txt", content_type="text/plain")
    assert response.status_code == 400
    body = response.json()
    assert body["errorCode"] == "INVALID_FILE"
    assert body["userFriendlyMessage"]
    assert body["timestamp"]


def test_upload_over_size_limit(storage, fake_llm):
    service = StoryProcessingService(
        pdf_parser=PDFParser(max_file_size=1024),
        story_generator=StoryGenerator(fake_llm),
        pdf_generator=PdfGenerator(),
        storage=storage,
        cache=TTLCache(3600)
    )
    app.dependency_overrides[get_processing_service] = lambda: service
    try:
        response = upload(TestClient(app), b"%PDF-1.7\n" + b"0" * 4096)
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 400
    assert response.json()["errorCode"] == "INVALID_FILE"
    assert fake_llm.chat_calls == []


def test_upload_invalid_language(client, sample_pdf_bytes):
    response = upload(client, sample_pdf_bytes, language="fr")
    assert response.status_code == 400
    assert response.json()["errorCode"] == "INVALID_CONFIGURATION"


def test_upload_corrupted_pdf(client):
    response = upload(client, b"this is not really a pdf")
    assert response.status_code == 400
    assert response.json()["errorCode"] == "PDF_CORRUPTED_FILE"


def test_upload_rate_limited(storage, sample_pdf_bytes):
    error = AIServiceError("slow down", AIServiceErrorType.RATE_LIMIT_EXCEEDED, "Content analysis")
    service = StoryProcessingService(
        pdf_parser=PDFParser(),
        story_generator=StoryGenerator(FakeLLMService(chat_errors={"Content analysis": error})),
        pdf_generator=PdfGenerator(),
        storage=storage,
        cache=TTLCache(3600)
    )
    app.dependency_overrides[get_processing_service] = lambda: service
    try:
        response = upload(TestClient(app), sample_pdf_bytes)
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 429
    assert response.json()["errorCode"] == "AI_RATE_LIMIT_EXCEEDED"


def test_upload_ai_unavailable(storage, sample_pdf_bytes):
    error = AIServiceError("down", AIServiceErrorType.SERVICE_UNAVAILABLE, "Story generation")
    service = StoryProcessingService(
        pdf_parser=PDFParser(),
        story_generator=StoryGenerator(FakeLLMService(chat_errors={"Story generation": error})),
        pdf_generator=PdfGenerator(),
        storage=storage,
        cache=TTLCache(3600)
    )
    app.dependency_overrides[get_processing_service] = lambda: service
    try:
        response = upload(TestClient(app), sample_pdf_bytes)
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 503
    assert response.json()["errorCode"] == "AI_SERVICE_UNAVAILABLE"


def test_get_story(client, service, sample_story):
    service.cache.set(sample_story.id, sample_story)
    response = client.get(f"/api/storygenerator/{sample_story.id}")
    assert response.status_code == 200
    assert response.json()["story"]["title"] == "The Winter Hoard"


def test_get_unknown_story(client):
    response = client.get("/api/storygenerator/unknown-id")
    assert response.status_code == 404
    assert response.json()["errorCode"] == "STORY_NOT_FOUND"


def test_get_blank_story_id(client):
    response = client.get("/api/storygenerator/%20")
    assert response.status_code == 400
    assert response.json()["errorCode"] == "INVALID_ID"


def test_export_json(client, service, sample_story):
    service.cache.set(sample_story.id, sample_story)
    response = client.get(f"/api/storygenerator/{sample_story.id}/export/json")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/json")
    assert f'filename="story-{sample_story.id}.json"' in response.headers["content-disposition"]
    assert json.loads(response.content)["id"] == sample_story.id


def test_export_pdf(client, service, sample_story):
    service.cache.set(sample_story.id, sample_story)
    response = client.get(f"/api/storygenerator/{sample_story.id}/export/pdf")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert f'filename="story-{sample_story.id}.pdf"' in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")


@pytest.mark.parametrize("fmt", ["json", "pdf"])
def test_export_unknown_story(client, fmt):
    response = client.get(f"/api/storygenerator/unknown-id/export/{fmt}")
    assert response.status_code == 404
    assert response.json()["errorCode"] == "STORY_NOT_FOUND"


def test_export_pdf_with_deleted_file(client, service, storage, sample_story):
    service.cache.set(sample_story.id, sample_story)
    client.get(f"/api/storygenerator/{sample_story.id}/export/pdf")
    (storage.root / sample_story.pdf_file_path).unlink()

    response = client.get(f"/api/storygenerator/{sample_story.id}/export/pdf")

    assert response.status_code == 404
    assert response.json()["errorCode"] == "STORAGE_FILE_NOT_FOUND"
