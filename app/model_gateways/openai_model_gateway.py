import logging

from openai import OpenAI, OpenAIError

from app.config import Settings
from app.errors import UpstreamError
from app.model_gateways.model_gateway import ModelGateway

logger = logging.getLogger(__name__)


class OpenAIModelGateway(ModelGateway):
    """Chat-completions gateway; by default talks to Gemini's OpenAI-compatible endpoint"""

    def __init__(self, settings: Settings, client: OpenAI | None = None):
        self.settings = settings
        self._client = client

    @property
    def client(self) -> OpenAI:
        # Built on first use so the app can start without an API key.
        if self._client is None:
            self._client = OpenAI(
                api_key=self.settings.model_api_key,
                base_url=self.settings.model_base_url,
                timeout=self.settings.model_timeout_seconds,
                max_retries=0,
            )
        return self._client

    def generate(self, prompt: str) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.settings.model_name,
                messages=[{"role": "user", "content": prompt}],
            )
        except OpenAIError as e:
            logger.error("Model API error: %s", e)
            raise UpstreamError(str(e), detail=str(e)) from e

        if not response.choices:
            raise UpstreamError("Model returned no choices", detail="empty response")
        content = response.choices[0].message.content or ""
        logger.debug("Raw model output: %s", content)
        return content
