from typing import Optional

from narcintel.flows.content_analysis import analyze_social_media_content
from narcintel.flows.report_generation import generate_report_from_analysis
from narcintel.flows.risk_assessment import assess_drug_trafficking_risk
from narcintel.schemas.action_schemas import ContentPipelineResponse
from narcintel.schemas.flow_schemas import ContentSubmission, ReportInput, RiskAssessmentInput
from narcintel.services.document_store import DocumentStore
from narcintel.services.llm_client import LLMClient
from narcintel.services.persistence_service import save_analysis
from narcintel.utils.logging_config import StructuredLogger

logger = StructuredLogger(__name__)


def run_content_pipeline(
    llm: LLMClient,
    store: Optional[DocumentStore],
    submission: ContentSubmission,
) -> ContentPipelineResponse:
    """
    Main pipeline for /analyze.

    1) Content analysis on the submitted post (and image).
    2) Risk assessment on the serialized analysis.
    3) Summary report from both.
    4) Save as a flagged post unless the risk is Low.

    FlowError from any step propagates; a failed save does not.
    """
    analysis = analyze_social_media_content(llm, submission.to_flow_input())
    analysis_json = analysis.to_json()

    risk = assess_drug_trafficking_risk(llm, RiskAssessmentInput(content_analysis=analysis_json))

    report = generate_report_from_analysis(
        llm,
        ReportInput(content_analysis=analysis_json, risk_assessment=risk.to_json()),
    )

    save = save_analysis(
        store,
        platform=submission.platform,
        channel=submission.channel,
        content=submission.content,
        analysis=analysis,
        risk=risk,
    )
    if not save.success:
        logger.warning("Analysis completed but was not saved", reason=save.message)

    return ContentPipelineResponse(
        channel=submission.channel,
        analysis=analysis,
        risk=risk,
        report=report,
        save=save,
    )
