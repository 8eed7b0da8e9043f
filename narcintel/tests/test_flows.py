"""Tests for the AI flow wrappers and the OpenAI client wrapper."""

from types import SimpleNamespace

import pytest
from openai import OpenAIError

from narcintel.flows.content_analysis import analyze_social_media_content
from narcintel.flows.report_generation import generate_report_from_analysis
from narcintel.flows.risk_assessment import assess_drug_trafficking_risk
from narcintel.flows.user_identification import identify_suspected_user
from narcintel.schemas.flow_schemas import (
    ContentAnalysisInput,
    ReportInput,
    RiskAssessmentInput,
    UserIdentificationInput,
)
from narcintel.services.llm_client import FlowError, LLMClient


class TestContentAnalysisFlow:
    """Tests for analyze_social_media_content."""

    def test_returns_validated_result(self, fake_llm):
        result = analyze_social_media_content(
            fake_llm,
            ContentAnalysisInput(platform="Telegram", content="new chemicals in stock"),
        )
        assert result.platform == "Telegram"
        assert result.content == "new chemicals in stock"
        assert result.risk_level == "Medium"
        assert result.matched_keywords == ["chemicals", "researchchem"]

    def test_prompt_interpolates_platform_and_content(self, fake_llm):
        analyze_social_media_content(
            fake_llm,
            ContentAnalysisInput(platform="WhatsApp", content="fire molly this weekend"),
        )
        call = fake_llm.calls[0]
        text_part = call["user_content"][0]["text"]
        assert "WhatsApp" in text_part
        assert "fire molly this weekend" in text_part
        assert call["vision"] is False
        assert len(call["user_content"]) == 1

    def test_image_sent_as_image_part(self, fake_llm):
        image = "data:image/jpeg;base64,/9j/4AAQSkZJRg=="
        analyze_social_media_content(
            fake_llm,
            ContentAnalysisInput(platform="Instagram", content="menu attached", image=image),
        )
        call = fake_llm.calls[0]
        assert call["vision"] is True
        assert call["user_content"][1] == {"type": "image_url", "image_url": {"url": image}}

    def test_unknown_risk_level_is_flow_error(self, make_llm):
        llm = make_llm({"content_analysis": {
            "indicators": [],
            "riskLevel": "Extreme",
            "reasoning": "",
            "matchedKeywords": [],
            "matchedEmojis": [],
        }})
        with pytest.raises(FlowError):
            analyze_social_media_content(llm, ContentAnalysisInput(platform="Telegram", content="x"))

    def test_missing_field_is_flow_error(self, make_llm):
        llm = make_llm({"content_analysis": {"indicators": [], "riskLevel": "Low"}})
        with pytest.raises(FlowError) as exc_info:
            analyze_social_media_content(llm, ContentAnalysisInput(platform="Telegram", content="x"))
        assert exc_info.value.flow == "content_analysis"


class TestRiskAssessmentFlow:
    """Tests for assess_drug_trafficking_risk."""

    def test_passes_serialized_analysis(self, fake_llm):
        risk = assess_drug_trafficking_risk(fake_llm, RiskAssessmentInput(content_analysis='{"riskLevel": "High"}'))
        assert risk.risk_score == 65
        assert '{"riskLevel": "High"}' in fake_llm.calls[0]["user_content"]

    def test_score_out_of_range_is_flow_error(self, make_llm):
        llm = make_llm({"risk_assessment": {"riskScore": 140, "riskLevel": "High", "indicators": []}})
        with pytest.raises(FlowError):
            assess_drug_trafficking_risk(llm, RiskAssessmentInput(content_analysis="{}"))

    def test_low_detection_is_case_insensitive(self, make_llm):
        llm = make_llm({"risk_assessment": {"riskScore": 3, "riskLevel": "low", "indicators": []}})
        risk = assess_drug_trafficking_risk(llm, RiskAssessmentInput(content_analysis="{}"))
        assert risk.is_low


class TestReportFlow:
    """Tests for generate_report_from_analysis."""

    def test_report_includes_both_inputs(self, fake_llm):
        report = generate_report_from_analysis(
            fake_llm,
            ReportInput(content_analysis="ANALYSIS", risk_assessment="RISK"),
        )
        assert report.report.startswith("The post advertises")
        prompt = fake_llm.calls[0]["user_content"]
        assert "ANALYSIS" in prompt
        assert "RISK" in prompt


class TestUserIdentificationFlow:
    """Tests for identify_suspected_user."""

    def test_returns_profile(self, fake_llm):
        profile = identify_suspected_user(
            fake_llm,
            UserIdentificationInput(username="coke_dealer_nyc", platform="Telegram"),
        )
        assert profile.username == "coke_dealer_nyc"
        assert profile.risk_level == "Critical"
        assert "Instagram:nycsnowman" in profile.linked_profiles

    def test_blank_email_becomes_none(self, make_llm):
        llm = make_llm({"user_identification": {
            "linkedProfiles": [],
            "email": "",
            "riskLevel": "Low",
            "summary": "Nothing notable.",
        }})
        profile = identify_suspected_user(llm, UserIdentificationInput(username="gardener", platform="Instagram"))
        assert profile.email is None

    def test_email_is_optional(self, make_llm):
        llm = make_llm({"user_identification": {
            "linkedProfiles": [],
            "riskLevel": "Medium",
            "summary": "Ambiguous handle.",
        }})
        profile = identify_suspected_user(llm, UserIdentificationInput(username="rave_dave23", platform="Instagram"))
        assert profile.email is None


def _llm_returning(create):
    llm = LLMClient(api_key="test-key")
    llm.client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    return llm


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class TestLLMClient:
    """Tests for LLMClient.complete_json error handling."""

    def test_parses_json_object(self):
        llm = _llm_returning(lambda **kwargs: _completion('{"report": "ok"}'))
        assert llm.complete_json("report_generation", "sys", "user") == {"report": "ok"}

    def test_uses_vision_model_for_images(self):
        seen = {}

        def create(**kwargs):
            seen.update(kwargs)
            return _completion("{}")

        llm = _llm_returning(create)
        llm.vision_model = "vision-model"
        llm.complete_json("content_analysis", "sys", [], vision=True)
        assert seen["model"] == "vision-model"
        assert seen["response_format"] == {"type": "json_object"}

    def test_invalid_json_is_flow_error(self):
        llm = _llm_returning(lambda **kwargs: _completion("Sure! Here is the report"))
        with pytest.raises(FlowError):
            llm.complete_json("report_generation", "sys", "user")

    def test_non_object_json_is_flow_error(self):
        llm = _llm_returning(lambda **kwargs: _completion("[1, 2]"))
        with pytest.raises(FlowError):
            llm.complete_json("report_generation", "sys", "user")

    def test_openai_error_is_flow_error(self):
        def create(**kwargs):
            raise OpenAIError("connection reset")

        llm = _llm_returning(create)
        with pytest.raises(FlowError) as exc_info:
            llm.complete_json("risk_assessment", "sys", "user")
        assert isinstance(exc_info.value.__cause__, OpenAIError)

    def test_missing_key_does_not_fail_construction(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        llm = LLMClient(api_key="")
        assert llm.client is None

    def test_missing_key_is_flow_error_on_call(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        llm = LLMClient(api_key="")
        with pytest.raises(FlowError) as exc_info:
            llm.complete_json("content_analysis", "sys", "user")
        assert isinstance(exc_info.value.__cause__, OpenAIError)
