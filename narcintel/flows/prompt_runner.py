from typing import Type, TypeVar

from pydantic import BaseModel, ValidationError

from narcintel.services.llm_client import FlowError, LLMClient, UserContent
from narcintel.utils.logging_config import StructuredLogger

logger = StructuredLogger(__name__)

OutputT = TypeVar("OutputT", bound=BaseModel)


def run_prompt(
    llm: LLMClient,
    flow: str,
    system_msg: str,
    user_content: UserContent,
    output_model: Type[OutputT],
    vision: bool = False,
) -> OutputT:
    """Call the prompt service and validate its JSON against output_model."""
    raw = llm.complete_json(flow, system_msg, user_content, vision=vision)

    try:
        return output_model.model_validate(raw)
    except ValidationError as e:
        logger.warning(
            "Prompt output failed schema validation",
            flow=flow,
            errors=e.error_count(),
        )
        raise FlowError(flow, "response did not match the expected schema") from e
