from typing import Optional

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from narcintel.config import Settings, settings
from narcintel.flows.content_analysis import analyze_social_media_content
from narcintel.flows.report_generation import generate_report_from_analysis
from narcintel.flows.risk_assessment import assess_drug_trafficking_risk
from narcintel.flows.user_identification import identify_suspected_user
from narcintel.pipelines.content_pipeline import run_content_pipeline
from narcintel.pipelines.user_pipeline import run_user_investigation
from narcintel.schemas.action_schemas import (
    ActionResult,
    ContentPipelineResponse,
    DashboardData,
    StatusResponse,
    UserInvestigationResponse,
)
from narcintel.schemas.flow_schemas import (
    AnalysisResult,
    ContentAnalysisInput,
    ContentSubmission,
    Report,
    ReportInput,
    RiskAssessment,
    RiskAssessmentInput,
    UserIdentificationInput,
    UserProfile,
    UserSubmission,
)
from narcintel.services.document_store import DocumentStore, build_document_store
from narcintel.services.llm_client import FlowError, LLMClient
from narcintel.services.persistence_service import get_dashboard_data, seed_database
from narcintel.utils.logging_config import (
    StructuredLogger,
    init_logging,
    metrics,
    new_request_id,
    request_id_var,
)

VERSION = "0.1.0"

logger = StructuredLogger(__name__)


# ============== DEPENDENCIES ==============


def get_llm(request: Request) -> LLMClient:
    return request.app.state.llm


def get_store(request: Request) -> Optional[DocumentStore]:
    return request.app.state.document_store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


# ============== APP FACTORY ==============


def create_app(
    config: Optional[Settings] = None,
    llm: Optional[LLMClient] = None,
    document_store: Optional[DocumentStore] = None,
) -> FastAPI:
    """
    Build the API with its clients constructed up front.

    The LLM client and the document store are created once here (or passed
    in) and shared by every request. A store that cannot be built leaves
    persistence disabled for the process.
    """
    config = config or settings

    app = FastAPI(
        title="Narcotics Intelligence API",
        version=VERSION,
        description="AI-assisted drug trafficking detection on social media",
        docs_url="/docs" if config.debug else None,
        redoc_url="/redoc" if config.debug else None,
    )

    app.state.settings = config
    app.state.llm = llm or LLMClient(
        api_key=config.openai_api_key,
        model=config.openai_model,
        vision_model=config.openai_vision_model,
    )
    app.state.document_store = document_store if document_store is not None else build_document_store(config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or new_request_id()
        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.exception_handler(FlowError)
    async def flow_error_handler(request: Request, exc: FlowError):
        logger.error("Flow failed", flow=exc.flow, error=str(exc), path=request.url.path)
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={
                "detail": "Analysis failed. An unexpected error occurred, please try again later.",
                "flow": exc.flow,
            },
        )

    register_routes(app)
    return app


def register_routes(app: FastAPI) -> None:
    @app.get("/health")
    def health():
        """Health check endpoint."""
        return {"status": "ok"}

    @app.get("/status", response_model=StatusResponse)
    def status_info(
        config: Settings = Depends(get_settings),
        store: Optional[DocumentStore] = Depends(get_store),
    ):
        """Configuration and flow metrics, for debugging and monitoring."""
        return StatusResponse(
            status="ok",
            version=VERSION,
            environment=config.environment,
            model=config.openai_model,
            persistence_enabled=store is not None,
            metrics=metrics.get_stats(),
        )

    # ============== FLOWS ==============

    @app.post("/flows/analyze-content", response_model=AnalysisResult)
    def analyze_content_flow(data: ContentAnalysisInput, llm: LLMClient = Depends(get_llm)):
        return analyze_social_media_content(llm, data)

    @app.post("/flows/assess-risk", response_model=RiskAssessment)
    def assess_risk_flow(data: RiskAssessmentInput, llm: LLMClient = Depends(get_llm)):
        return assess_drug_trafficking_risk(llm, data)

    @app.post("/flows/generate-report", response_model=Report)
    def generate_report_flow(data: ReportInput, llm: LLMClient = Depends(get_llm)):
        return generate_report_from_analysis(llm, data)

    @app.post("/flows/identify-user", response_model=UserProfile)
    def identify_user_flow(data: UserIdentificationInput, llm: LLMClient = Depends(get_llm)):
        return identify_suspected_user(llm, data)

    # ============== ACTIONS ==============

    @app.post("/analyze", response_model=ContentPipelineResponse)
    def analyze(
        submission: ContentSubmission,
        llm: LLMClient = Depends(get_llm),
        store: Optional[DocumentStore] = Depends(get_store),
    ):
        """Analyze a post, assess its risk, write a report and flag it if needed."""
        return run_content_pipeline(llm, store, submission)

    @app.post("/investigate", response_model=UserInvestigationResponse)
    def investigate(
        submission: UserSubmission,
        llm: LLMClient = Depends(get_llm),
        store: Optional[DocumentStore] = Depends(get_store),
    ):
        """Simulated OSINT on a username; the profile is always saved."""
        return run_user_investigation(llm, store, submission)

    @app.get("/dashboard", response_model=DashboardData)
    def dashboard(
        config: Settings = Depends(get_settings),
        store: Optional[DocumentStore] = Depends(get_store),
    ):
        return get_dashboard_data(
            store,
            recent_limit=config.dashboard_recent_limit,
            top_keywords=config.dashboard_top_keywords,
        )

    @app.post("/seed", response_model=ActionResult)
    def seed(store: Optional[DocumentStore] = Depends(get_store)):
        """Write the demo posts and users."""
        return seed_database(store)


init_logging()

app = create_app()
