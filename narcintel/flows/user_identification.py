"""
User identification (OSINT) flow.

No lookup happens here: the model is asked to simulate an OSINT pass over the
username and suggest plausible linked profiles, an email and a risk level.
"""

from narcintel.flows.prompt_runner import run_prompt
from narcintel.schemas.flow_schemas import (
    UserIdentificationInput,
    UserIdentificationOutput,
    UserProfile,
)
from narcintel.services.llm_client import LLMClient
from narcintel.utils.logging_config import track_flow

FLOW_NAME = "user_identification"

SYSTEM_MSG = (
    "You are an expert OSINT (Open-Source Intelligence) analyst specializing in "
    "tracking illicit activities online. A user has been flagged for suspicious "
    "activity; perform a simulated OSINT analysis on the username and platform.\n"
    "Generate plausible linked profiles on other platforms in the format "
    '"Platform:username" (e.g. "Telegram:drug_dealer123_shop"). Suggest an email '
    "address only if one seems plausible from the username. Assess the risk level "
    "and summarize your findings and rationale.\n"
    "Return ONLY valid JSON (no markdown). Schema:\n"
    "{\n"
    '  "linkedProfiles": [string, ...],\n'
    '  "email": string | null,\n'
    '  "riskLevel": "Low" | "Medium" | "High" | "Critical",\n'
    '  "summary": string\n'
    "}"
)


@track_flow(FLOW_NAME)
def identify_suspected_user(llm: LLMClient, data: UserIdentificationInput) -> UserProfile:
    output = run_prompt(
        llm,
        FLOW_NAME,
        SYSTEM_MSG,
        f"Username: {data.username}\nPlatform: {data.platform}",
        UserIdentificationOutput,
    )
    return UserProfile(
        username=data.username,
        platform=data.platform,
        **output.model_dump(),
    )
