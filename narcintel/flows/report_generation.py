from narcintel.flows.prompt_runner import run_prompt
from narcintel.schemas.flow_schemas import Report, ReportInput
from narcintel.services.llm_client import LLMClient
from narcintel.utils.logging_config import track_flow

FLOW_NAME = "report_generation"

SYSTEM_MSG = (
    "You are an expert in generating summary reports based on content and risk "
    "analysis. Write a comprehensive summary report highlighting key findings "
    "and potential risks.\n"
    "Return ONLY valid JSON (no markdown). Schema:\n"
    '{ "report": string }'
)


@track_flow(FLOW_NAME)
def generate_report_from_analysis(llm: LLMClient, data: ReportInput) -> Report:
    user_content = (
        f"Content Analysis: {data.content_analysis}\n\n"
        f"Risk Assessment: {data.risk_assessment}"
    )
    return run_prompt(llm, FLOW_NAME, SYSTEM_MSG, user_content, Report)
