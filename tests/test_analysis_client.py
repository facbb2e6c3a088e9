"""
Tests for analysis_client.py — the three public entry points end to end.

Covers:
  - failover ordering: [A 429, B ok, C] → B's content, C never called
  - full exhaustion → offline fallback with error_reason, never raises
  - malformed / fenced / too-deeply-nested content from models
  - invalid input → success=False result, no network calls
  - remote_text_analysis switch
  - ask_question: model answer, canned fallback, empty question
  - build_client() wiring from config
"""
from __future__ import annotations

import base64
import json

import pytest

import config
from analysis_client import AnalysisClient, build_client
from conftest import connection_error, status_error
from fallback import DEGRADED_NOTE
from answers import ANSWER_RULES, EMPTY_QUESTION_ANSWER, GENERIC_ANSWER
from models import SEVERITIES, AnalysisRequest, AnalysisResult

PHOTO = b"\xff\xd8\xff\xe0fake-jpeg-bytes"

GOOD_JSON = json.dumps({
    "detectedArea": "Left Knee",
    "severity": "mild",
    "confidence": 90,
    "recommendations": {
        "primaryTherapy": "Cold Therapy",
        "secondaryTherapy": "Light Compression",
        "intensity": 3,
        "duration": 15,
        "temperature": "Cool (15°C)",
        "frequency": "3 times daily",
    },
    "analysis": ["Mild swelling below the patella"],
    "precautions": ["Elevate the leg", "Do not apply ice directly"],
})


def _client(provider, analysis=("A", "B", "C"), questions=("QA", "QB"), remote_text=True):
    return AnalysisClient(
        provider=provider,
        analysis_models=list(analysis),
        question_models=list(questions),
        remote_text_analysis=remote_text,
    )


def assert_well_formed(r: AnalysisResult) -> None:
    assert isinstance(r.success, bool)
    assert r.detected_area
    assert r.severity in SEVERITIES
    assert 0 <= r.confidence <= 100
    assert 1 <= r.recommendations.intensity <= 10
    assert r.recommendations.duration_minutes > 0
    assert r.recommendations.primary_therapy
    assert r.recommendations.secondary_therapy
    assert r.recommendations.temperature_label
    assert r.recommendations.frequency_label
    assert len(r.analysis_notes) >= 1
    assert len(r.precautions) >= 1


@pytest.mark.asyncio
class TestAnalyzeImage:
    async def test_failover_uses_second_model(self, fake_provider):
        p = fake_provider({"A": status_error(429), "B": GOOD_JSON, "C": GOOD_JSON})
        r = await _client(p).analyze_image(PHOTO, "knee after a run")

        assert p.calls == ["A", "B"]
        assert r.success is True
        assert r.model_id == "B"
        assert r.detected_area == "Left Knee"
        assert r.error_reason is None
        assert_well_formed(r)

    async def test_full_exhaustion_uses_fallback(self, fake_provider):
        p = fake_provider({"A": status_error(429), "B": status_error(429)})
        r = await _client(p, analysis=("A", "B")).analyze_image(PHOTO, "left shoulder, severe pain after gym")

        assert r.success is True
        assert r.error_reason
        assert DEGRADED_NOTE in r.analysis_notes
        assert r.detected_area == "Left Shoulder Joint"
        assert r.recommendations.intensity == 6
        assert_well_formed(r)

    async def test_exhaustion_without_hint(self, fake_provider):
        p = fake_provider({"A": connection_error(), "B": status_error(503), "C": "not json"})
        r = await _client(p).analyze_image(PHOTO)
        assert r.detected_area == "Body Area - Image Captured"
        assert r.analysis_notes[0] == "Image captured successfully"
        assert_well_formed(r)

    async def test_malformed_json_then_fenced_json(self, fake_provider):
        p = fake_provider({"A": "{broken", "B": f"```json\n{GOOD_JSON}\n```"})
        r = await _client(p).analyze_image(PHOTO)
        assert r.model_id == "B"
        assert r.severity == "mild"

    async def test_request_payload(self, fake_provider):
        p = fake_provider({"A": GOOD_JSON})
        await _client(p).analyze_image(PHOTO, "lower back")

        request = p.requests[0]
        assert request["max_tokens"] == 1000
        assert request["temperature"] == 0.3
        text_part, image_part = request["messages"][0]["content"]
        assert "Additional information from user: lower back" in text_part["text"]
        expected = base64.b64encode(PHOTO).decode()
        assert image_part["image_url"]["url"] == f"data:image/jpeg;base64,{expected}"

    async def test_data_url_input_accepted(self, fake_provider):
        b64 = base64.b64encode(PHOTO).decode()
        p = fake_provider({"A": GOOD_JSON})
        await _client(p).analyze_image(f"data:image/jpeg;base64,{b64}")
        url = p.requests[0]["messages"][0]["content"][1]["image_url"]["url"]
        assert url == f"data:image/jpeg;base64,{b64}"

    async def test_png_data_url_keeps_media_type(self, fake_provider):
        b64 = base64.b64encode(b"\x89PNG\r\n\x1a\nfake-png").decode()
        p = fake_provider({"A": GOOD_JSON})
        await _client(p).analyze_image(f"data:image/png;base64,{b64}")
        url = p.requests[0]["messages"][0]["content"][1]["image_url"]["url"]
        assert url == f"data:image/png;base64,{b64}"

    async def test_deeply_nested_json_falls_through(self, fake_provider):
        nested = '{"a":' * 100000 + "1" + "}" * 100000
        p = fake_provider({"A": nested, "B": '{"detectedArea": "Knee"}'})
        r = await _client(p).analyze_image(PHOTO, "knee")

        assert p.calls == ["A", "B"]
        assert r.model_id == "B"
        assert r.detected_area == "Knee"
        assert r.error_reason is None
        assert_well_formed(r)

    @pytest.mark.parametrize("image",[b"", "", "   ", None])
    async def test_missing_image_is_invalid_input(self, fake_provider, image):
        p = fake_provider({})
        r = await _client(p).analyze_image(image, "knee")
        assert r.success is False
        assert r.analysis_notes
        assert p.calls == []
        assert_well_formed(r)

    async def test_no_provider_goes_straight_to_fallback(self):
        r = await _client(None).analyze_image(PHOTO, "stiff neck")
        assert r.success is True
        assert r.detected_area == "Neck - Cervical Region"
        assert r.recommendations.secondary_therapy == "EMS Muscle Stimulation"


@pytest.mark.asyncio
class TestAnalyzeText:
    async def test_remote_success(self, fake_provider):
        p = fake_provider({"A": GOOD_JSON})
        r = await _client(p).analyze_text("my left knee is swollen")
        assert r.model_id == "A"
        assert r.detected_area == "Left Knee"
        request = p.requests[0]
        assert request["max_tokens"] == 800
        assert isinstance(request["messages"][0]["content"], str)
        assert "User description: my left knee is swollen" in request["messages"][0]["content"]

    async def test_exhaustion_uses_description(self, fake_provider):
        p = fake_provider({"A": "", "B": status_error(429), "C": status_error(500)})
        r = await _client(p).analyze_text("chronic lower back pain")
        assert r.detected_area == "Lower Back - Lumbar Region"
        assert r.recommendations.primary_therapy == "Alternating Heat & EMS"
        assert r.error_reason
        assert_well_formed(r)

    async def test_deeply_nested_json_everywhere_uses_fallback(self, fake_provider):
        nested = "[" * 100000 + "]" * 100000
        p = fake_provider({"A": nested, "B": nested, "C": nested})
        r = await _client(p).analyze_text("mild wrist pain")
        assert p.calls == ["A", "B", "C"]
        assert r.detected_area == "Wrist Joint"
        assert r.error_reason
        assert_well_formed(r)

    async def test_remote_text_analysis_disabled(self, fake_provider):
        p = fake_provider({})
        r = await _client(p, remote_text=False).analyze_text("mild wrist pain")
        assert p.calls == []
        assert r.detected_area == "Wrist Joint"
        assert r.severity == "mild"
        assert r.recommendations.intensity == 4

    @pytest.mark.parametrize("description", ["", "   ", None])
    async def test_blank_description_is_invalid_input(self, fake_provider, description):
        p = fake_provider({})
        r = await _client(p).analyze_text(description)
        assert r.success is False
        assert p.calls == []


@pytest.mark.asyncio
class TestAnalyzeRequest:
    async def test_image_request(self, fake_provider):
        p = fake_provider({"A": GOOD_JSON})
        r = await _client(p).analyze(AnalysisRequest.for_image(PHOTO, "knee"))
        assert r.model_id == "A"
        assert isinstance(p.requests[0]["messages"][0]["content"], list)

    async def test_text_request(self, fake_provider):
        p = fake_provider({"A": GOOD_JSON})
        r = await _client(p).analyze(AnalysisRequest.for_text("knee"))
        assert r.model_id == "A"
        assert isinstance(p.requests[0]["messages"][0]["content"], str)

    async def test_empty_request_is_invalid_input(self, fake_provider):
        p = fake_provider({})
        r = await _client(p).analyze(AnalysisRequest())
        assert r.success is False
        assert any("no image or description" in n for n in r.analysis_notes)
        assert r.error_reason
        assert_well_formed(r)


@pytest.mark.asyncio
class TestAskQuestion:
    async def test_model_answer_returned(self, fake_provider):
        p = fake_provider({"QA": status_error(429), "QB": "  Use ice for the first 48 hours.  "})
        answer = await _client(p).ask_question("Heat or ice?", "Area: Knee Joint")
        assert answer == "Use ice for the first 48 hours."
        assert p.calls == ["QA", "QB"]
        request = p.requests[1]
        assert request["max_tokens"] == 500
        assert request["temperature"] == 0.5
        assert "Context: Area: Knee Joint" in request["messages"][0]["content"]

    async def test_uses_question_models_not_analysis_models(self, fake_provider):
        p = fake_provider({"QA": "Rest."})
        await _client(p).ask_question("How long should I rest?")
        assert p.calls == ["QA"]

    async def test_exhaustion_gives_canned_answer(self, fake_provider):
        p = fake_provider({"QA": status_error(429), "QB": ""})
        answer = await _client(p).ask_question("Should I use heat or cold?")
        assert answer == ANSWER_RULES[4][1]

    async def test_exhaustion_generic_answer(self):
        assert await _client(None).ask_question("What colour is the strap?") == GENERIC_ANSWER

    @pytest.mark.parametrize("question", ["", "  ", None])
    async def test_empty_question(self, fake_provider, question):
        p = fake_provider({})
        assert await _client(p).ask_question(question) == EMPTY_QUESTION_ANSWER
        assert p.calls == []

    async def test_context_summary_round_trip(self, fake_provider):
        p = fake_provider({"A": GOOD_JSON, "QA": "Keep sessions short."})
        client = _client(p)
        result = await client.analyze_text("knee")
        await client.ask_question("How often?", result.context_summary())
        prompt = p.requests[1]["messages"][0]["content"]
        assert "Area: Left Knee, Severity: mild, Therapy: Cold Therapy" in prompt


class TestBuildClient:
    def test_without_api_key_has_no_provider(self, monkeypatch):
        monkeypatch.setattr(config, "OPENROUTER_API_KEY", None)
        client = build_client()
        assert client.provider is None
        assert client.analysis_models == config.ANALYSIS_MODELS

    def test_with_api_key(self, monkeypatch):
        monkeypatch.setattr(config, "OPENROUTER_API_KEY", "sk-or-test")
        monkeypatch.setattr(config, "ANALYSIS_MODELS", ["x/one", "x/two"])
        monkeypatch.setattr(config, "QUESTION_MODELS", ["x/three"])
        monkeypatch.setattr(config, "REMOTE_TEXT_ANALYSIS", False)
        client = build_client()
        assert client.provider is not None
        assert client.provider.name == "openrouter"
        assert client.analysis_models == ["x/one", "x/two"]
        assert client.question_models == ["x/three"]
        assert client.remote_text_analysis is False
