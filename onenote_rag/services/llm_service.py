from abc import ABC, abstractmethod
from typing import Optional
import google.generativeai as genai
import openai
from onenote_rag.core.exceptions import BackendUnavailableError, ConfigurationError
import logging

logger = logging.getLogger(__name__)

class LLMService(ABC):
    """Service for interacting with Large Language Models."""

    provider: str = "llm"

    @abstractmethod
    def complete(self, system_prompt: str, user_prompt: str) -> str:
        """
        Generate a completion.

        Args:
            system_prompt: Instructions and retrieved context
            user_prompt: The user's turn

        Returns:
            Generated response text

        Raises:
            BackendUnavailableError: If the provider can't be reached or rejects the call
        """

    @abstractmethod
    def check_availability(self) -> bool:
        """Cheap reachability check; never raises."""

class GeminiLLMService(LLMService):
    provider = "gemini"

    def __init__(self, api_key: Optional[str], model: str, temperature: float = 0.7,
                 max_tokens: int = 1000, timeout: float = 60.0):
        """
        Initialize the Gemini client.

        Raises:
            ConfigurationError: If no API key is configured
        """
        if not api_key:
            raise ConfigurationError("LLM_API_KEY (or GOOGLE_API_KEY) is required for the Gemini provider")
        genai.configure(api_key=api_key)
        self.model_name = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        model = genai.GenerativeModel(
            model_name=self.model_name,
            system_instruction=system_prompt,
            generation_config={
                "temperature": self.temperature,
                "max_output_tokens": self.max_tokens,
                "top_p": 0.95,
                "top_k": 40,
            }
        )
        try:
            response = model.generate_content(user_prompt, request_options={"timeout": self.timeout})
            response_text = response.text
        except Exception as e:
            logger.error(f"Error generating response with Gemini: {e}")
            raise BackendUnavailableError("llm", str(e)) from e

        logger.info(f"Generated response with Gemini: {response_text[:50]}...")
        return response_text

    def check_availability(self) -> bool:
        try:
            next(iter(genai.list_models(page_size=1, request_options={"timeout": self.timeout})), None)
            return True
        except Exception as e:
            logger.error(f"Gemini API is not reachable: {e}")
            return False

class OpenAILLMService(LLMService):
    provider = "openai"

    def __init__(self, api_key: Optional[str], model: str, temperature: float = 0.7,
                 max_tokens: int = 1000, timeout: float = 60.0):
        if not api_key:
            raise ConfigurationError("LLM_API_KEY is required for the OpenAI provider")
        self.client = openai.OpenAI(api_key=api_key, timeout=timeout)
        self.model_name = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        try:
            completion = self.client.chat.completions.create(
                model=self.model_name,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except openai.OpenAIError as e:
            logger.error(f"Error generating response with OpenAI: {e}")
            raise BackendUnavailableError("llm", str(e)) from e

        response_text = completion.choices[0].message.content if completion.choices else None
        return response_text or ""

    def check_availability(self) -> bool:
        try:
            self.client.models.list()
            return True
        except openai.OpenAIError as e:
            logger.error(f"OpenAI API is not reachable: {e}")
            return False

def build_llm_service(settings) -> LLMService:
    """Creates the LLM service selected by LLM_PROVIDER."""
    provider = settings.LLM_PROVIDER.strip().lower()
    options = dict(
        api_key=settings.LLM_API_KEY,
        model=settings.LLM_MODEL,
        temperature=settings.LLM_TEMPERATURE,
        max_tokens=settings.LLM_MAX_TOKENS,
        timeout=settings.LLM_TIMEOUT,
    )
    if provider == "gemini":
        return GeminiLLMService(**options)
    if provider == "openai":
        return OpenAILLMService(**options)
    raise ConfigurationError(f"Unsupported LLM provider: {settings.LLM_PROVIDER}")
