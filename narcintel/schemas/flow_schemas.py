"""
Request/response schemas for the AI flows.

Field names are snake_case in Python and camelCase on the wire, matching the
JSON the prompt service is asked to return.
"""

import re
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from narcintel.config import settings


DATA_URI_PATTERN = re.compile(r"^data:[\w.+-]+/[\w.+-]+;base64,[A-Za-z0-9+/=\s]+$")


def check_data_uri(value: Optional[str]) -> Optional[str]:
    """Empty images become None; anything else must be a base64 data URI."""
    if value is None or value == "":
        return None
    if not DATA_URI_PATTERN.match(value):
        raise ValueError("image must be a data URI: 'data:<mimetype>;base64,<encoded_data>'")
    return value


class Platform(str, Enum):
    TELEGRAM = "Telegram"
    WHATSAPP = "WhatsApp"
    INSTAGRAM = "Instagram"


class ContentRiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class UserRiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )

    def to_json(self) -> str:
        """Serialize the way downstream prompts expect it (camelCase, indented)."""
        return self.model_dump_json(by_alias=True, indent=2)


# ============== CONTENT ANALYSIS ==============


class ContentAnalysisInput(CamelModel):
    platform: Platform
    content: str
    image: Optional[str] = None  # data:<mimetype>;base64,<encoded_data>

    @field_validator("image")
    @classmethod
    def _check_data_uri(cls, value: Optional[str]) -> Optional[str]:
        return check_data_uri(value)


class ContentAnalysisOutput(CamelModel):
    indicators: List[str]
    risk_level: ContentRiskLevel
    reasoning: str
    matched_keywords: List[str]
    matched_emojis: List[str]


class AnalysisResult(ContentAnalysisOutput):
    """Model output together with the content it was produced for."""
    platform: Platform
    content: str


# ============== RISK ASSESSMENT ==============


class RiskAssessmentInput(CamelModel):
    content_analysis: str


class RiskAssessment(CamelModel):
    risk_score: float = Field(ge=0, le=100)
    risk_level: str
    indicators: List[str]

    @property
    def is_low(self) -> bool:
        return self.risk_level.strip().lower() == ContentRiskLevel.LOW.value.lower()


# ============== REPORT ==============


class ReportInput(CamelModel):
    content_analysis: str
    risk_assessment: str


class Report(CamelModel):
    report: str


# ============== USER IDENTIFICATION ==============


class UserIdentificationInput(CamelModel):
    username: str
    platform: Platform


class UserIdentificationOutput(CamelModel):
    linked_profiles: List[str]
    email: Optional[str] = None
    risk_level: UserRiskLevel
    summary: str

    @field_validator("email", mode="before")
    @classmethod
    def _blank_email_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class UserProfile(UserIdentificationOutput):
    username: str
    platform: Platform


# ============== FORM SUBMISSIONS ==============


class ContentSubmission(CamelModel):
    """Content analysis form; validated before any remote call."""
    platform: Platform
    channel: str = Field(min_length=settings.min_channel_length)
    content: str = Field(min_length=settings.min_content_length)
    image: Optional[str] = None

    @field_validator("channel", "content", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("image")
    @classmethod
    def _check_data_uri(cls, value: Optional[str]) -> Optional[str]:
        return check_data_uri(value)

    def to_flow_input(self) -> ContentAnalysisInput:
        return ContentAnalysisInput(platform=self.platform, content=self.content, image=self.image)


class UserSubmission(CamelModel):
    """User investigation form."""
    platform: Platform
    username: str = Field(min_length=settings.min_username_length)

    @field_validator("username", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value
