"""LLM client abstraction for Gemini and Ollama."""
import copy
import json
from typing import Protocol, Optional, List, Iterator, Dict, Any

import requests
import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from google.generativeai.types import generation_types

from config import (
    LLM_PROVIDER,
    GEMINI_API_KEY,
    GEMINI_MODEL_NAME,
    OLLAMA_BASE_URL,
    OLLAMA_MODEL_NAME,
    OLLAMA_TIMEOUT_SECONDS,
)
from utils.logging_utils import get_logger

logger = get_logger(__name__)


class LLMError(RuntimeError):
    """The AI service could not be reached or rejected the request."""


class ChatBackend(Protocol):
    """A stateful conversation with a fixed system instruction."""

    def send_message_stream(self, text: str) -> Iterator[str]:
        """
        Send one user message and yield the reply in fragments.

        Raises:
            LLMError: If the call fails (possibly after some fragments)
        """
        ...


class LLMClient(Protocol):
    """Protocol for LLM clients."""

    model_name: str

    def generate_json(self, prompt: str, schema: Dict[str, Any]) -> dict:
        """
        Ask for a response constrained to a JSON schema.

        Args:
            prompt: Instruction text
            schema: JSON schema (lowercase JSON-schema types)

        Returns:
            Parsed JSON object

        Raises:
            LLMError: If the remote call fails
            ValueError: If the response is empty or not a JSON object
        """
        ...

    def start_chat(self, system_instruction: str) -> ChatBackend:
        ...


def extract_json(response_text: Optional[str]) -> dict:
    """
    Parse a JSON object out of a model response.

    Markdown code fences are tolerated; anything else that is not a JSON
    object is rejected.

    Raises:
        ValueError: If the text is empty or not a JSON object
    """
    if not response_text or not response_text.strip():
        raise ValueError("LLM returned empty response.")

    text = response_text.strip()

    # Strip markdown code blocks
    if "```json" in text:
        start = text.find("```json") + 7
        end = text.find("```", start)
        text = text[start:].strip() if end == -1 else text[start:end].strip()
    elif text.startswith("```"):
        start = 3
        end = text.find("```", start)
        text = text[start:].strip() if end == -1 else text[start:end].strip()

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        logger.debug(f"Unparseable LLM response (first 500 chars): {response_text[:500]}")
        raise ValueError(f"Failed to parse JSON response from LLM: {str(e)}") from e

    if not isinstance(parsed, dict):
        raise ValueError(f"Parsed JSON is not an object. Got type: {type(parsed).__name__}")
    return parsed


# --- Gemini ---

def _to_gemini_schema(schema: Dict[str, Any]) -> Dict[str, Any]:
    """Gemini wants string enums flagged with format=enum."""
    converted = copy.deepcopy(schema)

    def visit(node: Dict[str, Any]) -> None:
        if node.get("type") == "string" and "enum" in node:
            node["format"] = "enum"
        for child in (node.get("properties") or {}).values():
            visit(child)
        if isinstance(node.get("items"), dict):
            visit(node["items"])

    visit(converted)
    return converted


# Failures that end one chat exchange; genai raises the last three for blocked or stopped replies
_GEMINI_CHAT_ERRORS = (
    google_exceptions.GoogleAPIError,
    generation_types.BlockedPromptException,
    generation_types.StopCandidateException,
    generation_types.BrokenResponseError,
)


class GeminiChat:
    """Chat session on top of google-generativeai's ChatSession."""

    def __init__(self, model: "genai.GenerativeModel"):
        self._chat = model.start_chat(history=[])

    def send_message_stream(self, text: str) -> Iterator[str]:
        response = None
        try:
            response = self._chat.send_message(text, stream=True)
            for chunk in response:
                try:
                    fragment = chunk.text
                except ValueError:
                    # Chunk carries no text parts (e.g. finish metadata)
                    continue
                if fragment:
                    yield fragment
            # Reading history commits the exchange and raises if the reply was stopped
            logger.debug(f"Gemini chat history: {len(self._chat.history)} messages")
        except _GEMINI_CHAT_ERRORS as e:
            logger.error(f"Gemini chat error: {str(e)}")
            if response is not None:
                self._rewind()
            raise LLMError(f"Gemini chat request failed: {str(e)}") from e

    def _rewind(self) -> None:
        """Drop the broken exchange so the next message starts from clean history."""
        try:
            self._chat.rewind()
        except (IndexError, AttributeError) as e:
            logger.warning(f"Could not rewind Gemini chat history: {str(e)}")


class GeminiClient:
    """Gemini LLM client implementation."""

    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None):
        """
        Initialize Gemini client.

        Args:
            api_key: Gemini API key (defaults to GEMINI_API_KEY from config)
            model_name: Model name (defaults to GEMINI_MODEL_NAME from config)

        Raises:
            ValueError: If no API key is configured
        """
        self.api_key = api_key or GEMINI_API_KEY
        self.model_name = model_name or GEMINI_MODEL_NAME

        if not self.api_key:
            raise ValueError("GEMINI_API_KEY not set. Please set it in environment or .env file.")

        genai.configure(api_key=self.api_key)

    def generate_json(self, prompt: str, schema: Dict[str, Any]) -> dict:
        logger.debug(f"Making Gemini request: model={self.model_name}, prompt_length={len(prompt)} chars")
        model = genai.GenerativeModel(self.model_name)
        generation_config = genai.GenerationConfig(
            response_mime_type="application/json",
            response_schema=_to_gemini_schema(schema),
        )
        try:
            response = model.generate_content(prompt, generation_config=generation_config)
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"Gemini request failed: {str(e)}")
            raise LLMError(f"Gemini request failed: {str(e)}") from e

        try:
            text = response.text
        except ValueError as e:
            # Blocked or empty candidates
            raise ValueError(f"Gemini returned no text: {str(e)}") from e

        return extract_json(text)

    def start_chat(self, system_instruction: str) -> GeminiChat:
        model = genai.GenerativeModel(self.model_name, system_instruction=system_instruction)
        return GeminiChat(model)


# --- Ollama ---

def list_available_models(base_url: Optional[str] = None) -> List[str]:
    """
    List all available Ollama models.

    Args:
        base_url: Ollama base URL (defaults to OLLAMA_BASE_URL from config)

    Returns:
        List of available model names
    """
    url = (base_url or OLLAMA_BASE_URL).rstrip('/')
    try:
        response = requests.get(f"{url}/api/tags", timeout=OLLAMA_TIMEOUT_SECONDS)
        response.raise_for_status()
        data = response.json()
        return [model["name"] for model in data.get("models", [])]
    except requests.exceptions.RequestException as e:
        logger.error(f"Error listing models: {str(e)}")
        raise LLMError(f"Failed to list available models. Make sure Ollama is running at {url}. Error: {str(e)}")


class OllamaChat:
    """Chat session for Ollama; history is kept client-side."""

    def __init__(self, client: "OllamaClient", system_instruction: str):
        self.client = client
        self.system_instruction = system_instruction
        self.history: List[Dict[str, str]] = []

    def send_message_stream(self, text: str) -> Iterator[str]:
        user_message = {"role": "user", "content": text}
        messages = [{"role": "system", "content": self.system_instruction}] + self.history + [user_message]
        reply_parts = []
        for fragment in self.client._stream_chat(messages):
            reply_parts.append(fragment)
            yield fragment
        # Only completed exchanges enter the history
        self.history.append(user_message)
        self.history.append({"role": "assistant", "content": "".join(reply_parts)})


class OllamaClient:
    """Ollama LLM client implementation."""

    def __init__(self, base_url: Optional[str] = None, model_name: Optional[str] = None):
        """
        Initialize Ollama client.

        Args:
            base_url: Ollama base URL (defaults to OLLAMA_BASE_URL from config)
            model_name: Model name (defaults to OLLAMA_MODEL_NAME from config)

        Raises:
            ValueError: If base URL is not set
            LLMError: If Ollama server is not reachable
        """
        self.base_url = (base_url or OLLAMA_BASE_URL).rstrip('/')
        self.model_name = model_name or OLLAMA_MODEL_NAME

        if not self.base_url:
            raise ValueError("OLLAMA_BASE_URL not set. Please set it in environment or .env file.")

        available_models = list_available_models(self.base_url)
        if self.model_name not in available_models:
            # Don't raise here - let it fail on first use if the model really doesn't exist
            logger.warning(
                f"Model '{self.model_name}' not found in available models "
                f"({', '.join(available_models[:5]) or 'none'}). "
                f"To pull a model, run: ollama pull {self.model_name}"
            )

    def _post(self, payload: Dict[str, Any], stream: bool = False) -> requests.Response:
        url = f"{self.base_url}/api/chat"
        try:
            response = requests.post(url, json=payload, stream=stream, timeout=OLLAMA_TIMEOUT_SECONDS)
        except requests.exceptions.Timeout as e:
            logger.error(f"Ollama request timed out after {OLLAMA_TIMEOUT_SECONDS}s: {str(e)}")
            raise LLMError(
                f"Ollama request timed out after {OLLAMA_TIMEOUT_SECONDS} seconds. "
                f"Try a smaller model or increase OLLAMA_TIMEOUT_SECONDS."
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Ollama request failed: {str(e)}")
            raise LLMError(f"Ollama server not reachable at {self.base_url}. Error: {str(e)}") from e

        if response.status_code == 404:
            raise LLMError(
                f"Ollama returned 404 for model '{self.model_name}'. "
                f"Make sure it is pulled: `ollama pull {self.model_name}`"
            )
        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            logger.error(f"Ollama HTTP error: {str(e)}")
            raise LLMError(f"Ollama HTTP error: {str(e)}") from e
        return response

    def generate_json(self, prompt: str, schema: Dict[str, Any]) -> dict:
        logger.debug(f"Making Ollama request: model={self.model_name}, prompt_length={len(prompt)} chars")
        payload = {
            "model": self.model_name,
            "messages": [{"role": "user", "content": prompt}],
            "format": schema,
            "stream": False,
        }
        data = self._post(payload).json()
        if "message" not in data or "content" not in data["message"]:
            raise ValueError(f"Unexpected response format: {data}")
        return extract_json(data["message"]["content"])

    def _stream_chat(self, messages: List[Dict[str, str]]) -> Iterator[str]:
        payload = {"model": self.model_name, "messages": messages, "stream": True}
        response = self._post(payload, stream=True)
        try:
            for line in response.iter_lines():
                if not line:
                    continue
                data = json.loads(line)
                if "error" in data:
                    raise LLMError(f"Ollama stream error: {data['error']}")
                fragment = data.get("message", {}).get("content", "")
                if fragment:
                    yield fragment
                if data.get("done"):
                    break
        except (requests.exceptions.RequestException, json.JSONDecodeError) as e:
            logger.error(f"Ollama stream interrupted: {str(e)}")
            raise LLMError(f"Ollama stream interrupted: {str(e)}") from e
        finally:
            response.close()

    def start_chat(self, system_instruction: str) -> OllamaChat:
        return OllamaChat(self, system_instruction)


def create_llm_client(provider: Optional[str] = None) -> LLMClient:
    """
    Build the client for the configured provider.

    Args:
        provider: "gemini" or "ollama" (defaults to LLM_PROVIDER from config)

    Raises:
        ValueError: For an unknown provider or missing credentials
        LLMError: If the provider is unreachable
    """
    provider = (provider or LLM_PROVIDER).lower()
    if provider == "gemini":
        return GeminiClient()
    if provider == "ollama":
        return OllamaClient()
    raise ValueError(f"Unknown LLM_PROVIDER '{provider}'. Use 'gemini' or 'ollama'.")
