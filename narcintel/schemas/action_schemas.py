from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from narcintel.schemas.flow_schemas import (
    AnalysisResult,
    CamelModel,
    Report,
    RiskAssessment,
    UserProfile,
)


class ActionResult(CamelModel):
    """Outcome of a persistence action. Actions never raise; they report."""
    success: bool
    message: str
    doc_id: Optional[str] = None


class DashboardStats(CamelModel):
    risk_level_counts: Dict[str, int] = Field(default_factory=dict)
    platform_counts: Dict[str, int] = Field(default_factory=dict)
    keyword_counts: Dict[str, int] = Field(default_factory=dict)  # Top keywords, descending


class DashboardData(CamelModel):
    flagged_posts: List[Dict[str, Any]] = Field(default_factory=list)
    suspected_users: List[Dict[str, Any]] = Field(default_factory=list)
    stats: DashboardStats = Field(default_factory=DashboardStats)
    demo: bool = False  # True when served from sample data
    message: Optional[str] = None


class ContentPipelineResponse(CamelModel):
    """Everything produced by one content analysis submission."""
    channel: str
    analysis: AnalysisResult
    risk: RiskAssessment
    report: Report
    save: ActionResult


class UserInvestigationResponse(CamelModel):
    profile: UserProfile
    save: ActionResult


class StatusResponse(BaseModel):
    status: str
    version: str
    environment: str
    model: str
    persistence_enabled: bool
    metrics: Dict[str, Any]
