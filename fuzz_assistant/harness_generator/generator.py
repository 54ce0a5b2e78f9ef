"""
Fuzz Harness Generator
======================
Sends the conversation history to Gemini and returns the harness text.

This module:
1. Maps the conversation history to Gemini contents
2. Sends the leading training prompts as the system instruction
3. Returns the response text exactly as received

Langfuse Integration:
- Every Gemini call is traced
- History length, prompt size and token usage are recorded
"""

import os
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

import httpx
from dotenv import load_dotenv

# Gemini SDK (google-genai)
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

# Langfuse for observability
from langfuse import observe, get_client

from fuzz_assistant.errors import ServiceError
from .conversation import Message, Role

load_dotenv()


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class GeneratorConfig:
    """Configuration for the harness generator."""
    model: str = ""  # Required: set GEMINI_MODEL in .env
    temperature: float = 0.2
    max_output_tokens: int = 16384

    def __post_init__(self):
        """Load config from environment variables."""
        if not self.model:
            self.model = os.getenv("GEMINI_MODEL")
            if not self.model:
                raise ValueError("GEMINI_MODEL environment variable is required")

        # Allow env vars to override defaults
        if temp := os.getenv("GEMINI_TEMPERATURE"):
            self.temperature = float(temp)
        if tokens := os.getenv("GEMINI_MAX_TOKENS"):
            self.max_output_tokens = int(tokens)

    @classmethod
    def from_env(cls) -> "GeneratorConfig":
        """Create config from environment variables."""
        model = os.getenv("GEMINI_MODEL")
        if not model:
            raise ValueError("GEMINI_MODEL environment variable is required")

        return cls(
            model=model,
            temperature=float(os.getenv("GEMINI_TEMPERATURE", "0.2")),
            max_output_tokens=int(os.getenv("GEMINI_MAX_TOKENS", "16384"))
        )


# =============================================================================
# CLIENT INTERFACE
# =============================================================================

class GenerativeClient(Protocol):
    """Anything that turns a conversation history into new content."""

    def request(self, messages: Sequence[Message]) -> str:
        ...


def split_system_instruction(
    messages: Sequence[Message]
) -> tuple[list[str], list[Message]]:
    """
    Split off the leading system messages.

    Returns:
        (system instruction texts, remaining conversation turns)
    """
    index = 0
    while index < len(messages) and messages[index].role == Role.SYSTEM:
        index += 1
    return [m.content for m in messages[:index]], list(messages[index:])


def to_gemini_contents(messages: Sequence[Message]) -> list[types.Content]:
    """
    Convert conversation turns to Gemini contents.

    Past responses are recorded as system messages; Gemini expects them
    under the "model" role.
    """
    contents = []
    for message in messages:
        role = "user" if message.role == Role.USER else "model"
        contents.append(
            types.Content(role=role, parts=[types.Part(text=message.content)])
        )
    return contents


# =============================================================================
# HARNESS GENERATOR
# =============================================================================

class HarnessGenerator:
    """
    Gemini-backed generative client.

    Usage:
        generator = HarnessGenerator()
        history.append(Message(Role.USER, prompt))
        harness_code = generator.request(history.snapshot())
    """

    def __init__(self, config: Optional[GeneratorConfig] = None):
        """
        Initialize the generator.

        Args:
            config: Generator configuration. If None, loads from environment.
        """
        self.config = config or GeneratorConfig.from_env()

        api_key = os.getenv("GEMINI_API_KEY")
        if not api_key:
            raise ValueError("GEMINI_API_KEY environment variable is required")

        self.client = genai.Client(api_key=api_key)

        print(f"[Generator] Initialized with model: {self.config.model}")
        print(f"[Generator] Temperature: {self.config.temperature}")

    @observe(name="fuzz_harness_request")
    def request(self, messages: Sequence[Message]) -> str:
        """
        Send the full history to Gemini and return the response text.

        Args:
            messages: Ordered conversation history, seed prompts first

        Returns:
            Response text, unmodified

        Raises:
            ServiceError: If the call fails or returns no text
        """
        system_parts, turns = split_system_instruction(messages)

        try:
            get_client().update_current_span(
                input={
                    "history_length": len(messages),
                    "prompt_length": len(turns[-1].content) if turns else 0
                }
            )
        except Exception:
            pass  # Langfuse logging is optional

        response = self._call_gemini(system_parts, to_gemini_contents(turns))
        text = response.text
        if not text:
            raise ServiceError(f"Gemini ({self.config.model}) returned an empty response")

        token_usage = self._token_usage(response)
        try:
            get_client().update_current_span(
                output={"response_length": len(text)},
                metadata={"token_usage": token_usage, "model": self.config.model}
            )
        except Exception:
            pass

        return text

    def _call_gemini(
        self,
        system_parts: list[str],
        contents: list[types.Content]
    ) -> types.GenerateContentResponse:
        """
        Make the actual Gemini API call.

        Args:
            system_parts: Texts for the system instruction
            contents: Conversation turns

        Returns:
            Gemini response object
        """
        print(f"[Generator] Calling Gemini ({self.config.model}) with {len(contents)} turn(s)...")

        generation_config = types.GenerateContentConfig(
            temperature=self.config.temperature,
            max_output_tokens=self.config.max_output_tokens,
            system_instruction="\n\n".join(system_parts) if system_parts else None
        )

        try:
            response = self.client.models.generate_content(
                model=self.config.model,
                contents=contents,
                config=generation_config
            )
        except genai_errors.APIError as e:
            raise ServiceError(f"Gemini request failed: {e}") from e
        except httpx.HTTPError as e:
            raise ServiceError(f"Could not reach Gemini: {e}") from e

        print("[Generator] Response received")

        return response

    def _token_usage(self, response: types.GenerateContentResponse) -> dict:
        token_usage = {}
        if hasattr(response, 'usage_metadata') and response.usage_metadata:
            token_usage = {
                "prompt_tokens": response.usage_metadata.prompt_token_count,
                "completion_tokens": response.usage_metadata.candidates_token_count,
                "total_tokens": response.usage_metadata.total_token_count
            }
            print(f"[Generator] Tokens - Prompt: {token_usage.get('prompt_tokens', 'N/A')}, "
                  f"Completion: {token_usage.get('completion_tokens', 'N/A')}")
        return token_usage
