"""
Content analysis flow.

Asks the model for drug trafficking indicators, risk level, reasoning and the
matched keywords/emojis in a social-media post. Risk is not computed locally.
"""

from typing import Any, Dict, List

from narcintel.flows.prompt_runner import run_prompt
from narcintel.schemas.flow_schemas import (
    AnalysisResult,
    ContentAnalysisInput,
    ContentAnalysisOutput,
)
from narcintel.services.llm_client import LLMClient
from narcintel.utils.logging_config import track_flow

FLOW_NAME = "content_analysis"

SYSTEM_MSG = (
    "You are an AI assistant specializing in identifying drug trafficking "
    "activities on social media platforms. "
    "Identify any potential indicators of drug trafficking, including specific "
    "keywords and emojis. Assess the overall risk level (Low, Medium, or High) "
    "based on the identified indicators and explain your reasoning.\n"
    "Return ONLY valid JSON (no markdown). Schema:\n"
    "{\n"
    '  "indicators": [string, ...],\n'
    '  "riskLevel": "Low" | "Medium" | "High",\n'
    '  "reasoning": string,\n'
    '  "matchedKeywords": [string, ...],\n'
    '  "matchedEmojis": [string, ...]\n'
    "}\n"
    "Put the drug-related keywords in matchedKeywords and the drug-related "
    "emojis in matchedEmojis."
)


def build_user_content(data: ContentAnalysisInput) -> List[Dict[str, Any]]:
    parts: List[Dict[str, Any]] = [
        {
            "type": "text",
            "text": (
                f"Analyze the content from {data.platform} provided below.\n\n"
                f"Content: {data.content}"
            ),
        }
    ]
    if data.image:
        parts.append({"type": "image_url", "image_url": {"url": data.image}})
    return parts


@track_flow(FLOW_NAME)
def analyze_social_media_content(llm: LLMClient, data: ContentAnalysisInput) -> AnalysisResult:
    output = run_prompt(
        llm,
        FLOW_NAME,
        SYSTEM_MSG,
        build_user_content(data),
        ContentAnalysisOutput,
        vision=bool(data.image),
    )
    return AnalysisResult(
        platform=data.platform,
        content=data.content,
        **output.model_dump(),
    )
