from typing import Optional

from narcintel.flows.user_identification import identify_suspected_user
from narcintel.schemas.action_schemas import UserInvestigationResponse
from narcintel.schemas.flow_schemas import UserIdentificationInput, UserSubmission
from narcintel.services.document_store import DocumentStore
from narcintel.services.llm_client import LLMClient
from narcintel.services.persistence_service import save_suspected_user


def run_user_investigation(
    llm: LLMClient,
    store: Optional[DocumentStore],
    submission: UserSubmission,
) -> UserInvestigationResponse:
    """Identify the user, then always upsert the profile regardless of risk."""
    profile = identify_suspected_user(
        llm,
        UserIdentificationInput(username=submission.username, platform=submission.platform),
    )
    save = save_suspected_user(store, profile)
    return UserInvestigationResponse(profile=profile, save=save)
