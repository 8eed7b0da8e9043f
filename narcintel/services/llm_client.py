import json
import logging
from typing import Any, Dict, List, Optional, Union

from openai import OpenAI, OpenAIError

from narcintel.config import settings

logger = logging.getLogger(__name__)

UserContent = Union[str, List[Dict[str, Any]]]


class FlowError(Exception):
    """A remote prompt call failed or returned something unusable."""

    def __init__(self, flow: str, message: str):
        super().__init__(f"{flow}: {message}")
        self.flow = flow


class LLMClient:
    """
    Wrapper around the OpenAI client for structured (JSON) prompt calls.

    Errors are not swallowed: transport failures and malformed JSON surface
    as FlowError so the caller decides how to report them.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        vision_model: Optional[str] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.openai_api_key
        self.model = model or settings.openai_model
        self.vision_model = vision_model or settings.openai_vision_model
        # Built on first call; the SDK rejects a missing key at construction
        self.client: Optional[OpenAI] = None

    def _get_client(self) -> OpenAI:
        if self.client is None:
            self.client = OpenAI(api_key=self.api_key or None, timeout=settings.openai_timeout)
        return self.client

    def complete_json(
        self,
        flow: str,
        system_msg: str,
        user_content: UserContent,
        vision: bool = False,
    ) -> Dict[str, Any]:
        """Run one chat completion in JSON mode and return the parsed object."""
        try:
            response = self._get_client().chat.completions.create(
                model=self.vision_model if vision else self.model,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": system_msg},
                    {"role": "user", "content": user_content},
                ],
                max_tokens=settings.openai_max_tokens,
            )
            content = response.choices[0].message.content
        except OpenAIError as e:
            logger.warning(f"OpenAI API error in {flow}: {e}")
            raise FlowError(flow, f"prompt service error: {type(e).__name__}") from e

        try:
            parsed = json.loads(content or "")
        except json.JSONDecodeError as e:
            logger.warning(f"{flow} returned non-JSON output")
            raise FlowError(flow, "response was not valid JSON") from e

        if not isinstance(parsed, dict):
            raise FlowError(flow, "response was not a JSON object")
        return parsed
