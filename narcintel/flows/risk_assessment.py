from narcintel.flows.prompt_runner import run_prompt
from narcintel.schemas.flow_schemas import RiskAssessment, RiskAssessmentInput
from narcintel.services.llm_client import LLMClient
from narcintel.utils.logging_config import track_flow

FLOW_NAME = "risk_assessment"

SYSTEM_MSG = (
    "You are an expert in identifying drug trafficking activities based on "
    "analyzed content from social media platforms (Telegram, WhatsApp, Instagram). "
    "Given a content analysis, assess the likelihood of drug trafficking involvement.\n"
    "Return ONLY valid JSON (no markdown). Schema:\n"
    "{\n"
    '  "riskScore": number (0-100),\n'
    '  "riskLevel": "Low" | "Medium" | "High",\n'
    '  "indicators": [string, ...]\n'
    "}\n"
    "indicators are the specific signals from the analysis that suggest drug trafficking."
)


@track_flow(FLOW_NAME)
def assess_drug_trafficking_risk(llm: LLMClient, data: RiskAssessmentInput) -> RiskAssessment:
    return run_prompt(
        llm,
        FLOW_NAME,
        SYSTEM_MSG,
        f"Content Analysis:\n{data.content_analysis}",
        RiskAssessment,
    )
