import asyncio

from google import genai
from google.genai import types
from loguru import logger

from app.core.config import settings


class GeminiService:
    """Thin wrapper over the Gemini client. Failures are logged and yield an empty string."""

    def __init__(self, model: str = settings.DEFAULT_GEMINI_MODEL, api_key: str | None = settings.GEMINI_API_KEY):
        self.model = model
        self.client = None
        if api_key:
            try:
                self.client = genai.Client(api_key=api_key)
            except Exception as e:
                logger.warning(f"Failed to initialize Gemini client: {e}")
        else:
            logger.warning("GEMINI_API_KEY not set. Curation will fall back to candidate order.")

    def generate_content(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
    ) -> str:
        if not self.client:
            logger.warning("Gemini client not initialized. Skipping generation.")
            return ""
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    system_instruction=system_prompt,
                    temperature=temperature,
                    max_output_tokens=max_output_tokens,
                ),
            )
            return (response.text or "").strip()
        except Exception as e:
            logger.exception(f"Error generating content with Gemini: {e}")
            return ""

    async def generate_content_async(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
    ) -> str:
        """Async wrapper to avoid blocking the event loop during network calls."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, lambda: self.generate_content(prompt, system_prompt, temperature, max_output_tokens)
        )
