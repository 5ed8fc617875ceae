"""
Provider clients for the optional LLM documentation source.

Each client answers one documentation request with the raw JSON text of
the answer and the number of tokens the provider billed. Nothing in the
commenting core imports this module; only LLMDocumentationSource does,
and it falls back to template text when a call fails.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple, Type

from .logger_setup import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You write documentation comments for functions and classes. Every "
    "element gets a technical explanation for developers and a simple "
    "explanation for readers without a programming background. Reply with "
    "a single JSON object and nothing else."
)

_REGISTRY: Dict[str, Type['BaseLLMClient']] = {}


def register_provider(name: str):
    """Class decorator that makes a client available to the factory."""
    def decorator(client_class):
        client_class.provider = name
        _REGISTRY[name] = client_class
        return client_class
    return decorator


def _chat_messages(prompt: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]


class BaseLLMClient(ABC):
    """
    One configured connection to a provider.

    Subclasses build the SDK object in _connect() and send a request in
    _complete(); call() fills in the defaults and logs failures.
    """

    provider = "base"

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: float = 0.5,
        max_tokens: int = 4000
    ):
        self.model = model
        self.api_key = api_key
        self.base_url = base_url
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.sdk = self._connect()

    @abstractmethod
    def _connect(self):
        """Create the provider SDK client."""

    @abstractmethod
    def _complete(self, prompt: str, temperature: float, max_tokens: int) -> Tuple[str, int]:
        """Send one request and return (text, tokens)."""

    def call(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> Tuple[str, int]:
        """
        Send a documentation request.

        Args:
            prompt: Documentation request built from the gap reports
            temperature: Per-call temperature, defaults to the client's
            max_tokens: Per-call token limit, defaults to the client's

        Returns:
            Tuple[str, int]: Answer text and total tokens (0 if unknown)
        """
        if temperature is None:
            temperature = self.temperature
        if max_tokens is None:
            max_tokens = self.max_tokens

        logger.debug(f"{self.provider}: sending {len(prompt)} chars to {self.model}")
        try:
            return self._complete(prompt, temperature, max_tokens)
        except Exception as e:
            logger.error(f"{self.provider} request for {self.model} failed: {e}")
            raise


@register_provider("openai")
class OpenAIClient(BaseLLMClient):
    """Chat completions with JSON mode."""

    def _connect(self):
        import openai
        options = {"api_key": self.api_key}
        if self.base_url:
            options["base_url"] = self.base_url
        return openai.OpenAI(**options)

    def _complete(self, prompt, temperature, max_tokens):
        response = self.sdk.chat.completions.create(
            model=self.model,
            messages=_chat_messages(prompt),
            temperature=temperature,
            max_tokens=max_tokens,
            response_format={"type": "json_object"}
        )
        usage = response.usage.total_tokens if response.usage else 0
        return response.choices[0].message.content or "", usage


@register_provider("anthropic")
class AnthropicClient(BaseLLMClient):
    """Messages API; only text blocks make up the answer."""

    def _connect(self):
        import anthropic
        options = {"api_key": self.api_key}
        if self.base_url:
            options["base_url"] = self.base_url
        return anthropic.Anthropic(**options)

    def _complete(self, prompt, temperature, max_tokens):
        response = self.sdk.messages.create(
            model=self.model,
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
            max_tokens=max_tokens
        )
        parts = [
            block.text for block in response.content
            if getattr(block, "type", None) == "text"
        ]
        usage = response.usage.input_tokens + response.usage.output_tokens
        return "".join(parts), usage


@register_provider("ollama")
class OllamaClient(BaseLLMClient):
    """Local models through an Ollama server. No token accounting."""

    def _connect(self):
        try:
            import ollama
        except ImportError as e:
            raise ImportError(
                "The ollama provider needs the optional dependency: "
                "pip install llm-doc-commenter[ollama]"
            ) from e
        if self.base_url:
            return ollama.Client(host=self.base_url)
        return ollama.Client()

    def _complete(self, prompt, temperature, max_tokens):
        response = self.sdk.chat(
            model=self.model,
            messages=_chat_messages(prompt),
            format="json",
            options={"temperature": temperature, "num_predict": max_tokens}
        )
        return response['message']['content'], 0


class LLMClientFactory:
    """Looks up registered providers by name."""

    @staticmethod
    def supported_providers() -> list:
        return sorted(_REGISTRY)

    @staticmethod
    def create(
        provider: str,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: float = 0.5,
        max_tokens: int = 4000
    ) -> BaseLLMClient:
        """
        Build a client for a registered provider.

        Raises:
            ValueError: If no client is registered under the name
        """
        client_class = _REGISTRY.get(provider.lower())
        if client_class is None:
            raise ValueError(
                f"Unknown LLM provider '{provider}'. "
                f"Choose one of: {', '.join(LLMClientFactory.supported_providers())}"
            )

        logger.info(f"Using {client_class.provider} model {model} for documentation requests")
        return client_class(
            model=model,
            api_key=api_key,
            base_url=base_url,
            temperature=temperature,
            max_tokens=max_tokens
        )
