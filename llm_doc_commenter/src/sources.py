"""
Documentation sources.

A documentation source receives the gap reports of a batch and returns the
explanation text for as many elements as it can, keyed by element_key().
Returning None (or leaving an element out) makes the synthesizer fall back
to its template for that element. Sources never raise: every failure is
logged as a warning and turns into None.
"""

import json
from pathlib import Path
from typing import Callable, Dict, List, Optional

from pydantic import ValidationError

from .constants import SOURCE_LLM, SOURCE_RESPONSE, SOURCE_TEMPLATE
from .extractor import StructuralElement
from .gaps import FileGapReport
from ..utils.llm_client import LLMClientFactory
from ..utils.logger_setup import get_logger
from ..utils.response_schemas import (
    ElementDocumentation,
    element_key,
    parse_documentation_response,
)

logger = get_logger(__name__)

DocumentationSource = Callable[
    [List[FileGapReport]], Optional[Dict[str, ElementDocumentation]]
]

# Lines of code shown around an element in a documentation request
REQUEST_CONTEXT_BEFORE = 3
REQUEST_CONTEXT_AFTER = 12


def extract_code_context(content: str, element: StructuralElement,
                         before: int = REQUEST_CONTEXT_BEFORE,
                         after: int = REQUEST_CONTEXT_AFTER) -> str:
    """Return the lines around an element, used to show it to the assistant."""
    lines = content.split('\n')
    row = element.line_number - 1
    start = max(0, row - before)
    end = min(len(lines), row + after + 1)
    return '\n'.join(line.rstrip('\r') for line in lines[start:end])


def build_documentation_request(reports: List[FileGapReport]) -> str:
    """
    Format the documentation request for a batch of files.

    The request lists, per file, the elements missing a technical
    explanation (with their code) and the elements missing a simple
    explanation, and describes the JSON answer expected back.

    Args:
        reports: Gap reports; files without gaps are left out

    Returns:
        Request text in markdown
    """
    parts = [
        "# Documentation request\n",
        "You are a code documentation expert. The elements below need "
        "comments that both developers and non-programmers understand.\n",
    ]

    for report in reports:
        if not report.has_missing_docs:
            continue
        structure = report.structure
        parts.append(f"## 📁 {structure.file_path}\n")

        if report.missing_technical:
            parts.append("**Missing technical explanations:**\n")
            for element in report.missing_technical:
                context = extract_code_context(structure.content, element)
                parts.append(
                    f"### {element.name} ({element.category.value}) - line {element.line_number}\n"
                    f"```{structure.language or ''}\n{context}\n```\n"
                )

        if report.missing_simple:
            names = ', '.join(
                f"{e.name} (line {e.line_number})" for e in report.missing_simple
            )
            parts.append(f"**Missing simple explanations:** {names}\n")

    example = {
        "items": [{
            "file": "<file path exactly as above>",
            "name": "<element name>",
            "line": 1,
            "technical": "<what it does and how, for developers>",
            "simple": "<the same in everyday language, with an analogy>",
        }]
    }
    parts.append("## 📋 Task\n")
    parts.append(
        "For every element listed above write:\n"
        "1. a **technical explanation** for developers\n"
        "2. a **simple explanation** for people without a programming background\n"
    )
    parts.append(
        "Answer with a single JSON object and nothing else, shaped like this:\n"
        f"```json\n{json.dumps(example, indent=2)}\n```\n"
        "Do not wrap the explanations in comment delimiters and do not change any code."
    )
    return '\n'.join(parts)


def _requested_keys(reports: List[FileGapReport]) -> set:
    return {
        element_key(report.file_path, gap.element.name, gap.element.line_number)
        for report in reports
        for gap in report.gaps
    }


def _only_requested(payload: Optional[Dict[str, ElementDocumentation]],
                    reports: List[FileGapReport]) -> Optional[Dict[str, ElementDocumentation]]:
    if not payload:
        return None
    wanted = _requested_keys(reports)
    unknown = [key for key in payload if key not in wanted]
    if unknown:
        logger.warning(f"Ignoring {len(unknown)} documentation entries for elements that were not requested")
    return {key: doc for key, doc in payload.items() if key in wanted} or None


class TemplateSource:
    """Source that never supplies text; every comment uses the template."""

    def __call__(self, reports: List[FileGapReport]) -> Optional[Dict[str, ElementDocumentation]]:
        return None


class ResponseFileSource:
    """
    Source reading an answer an external assistant has already produced.

    This is the human-mediated workflow: `scan --request` writes the
    documentation request, somebody has an assistant answer it, and the
    saved answer is passed to `comment --response FILE`.
    """

    def __init__(self, response_path: str):
        self.response_path = Path(response_path)

    def __call__(self, reports: List[FileGapReport]) -> Optional[Dict[str, ElementDocumentation]]:
        try:
            text = self.response_path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Cannot read documentation response {self.response_path}: {e}")
            return None

        try:
            payload = parse_documentation_response(text)
        except (ValidationError, ValueError) as e:
            logger.warning(f"Invalid documentation response in {self.response_path}: {e}")
            return None

        return _only_requested(payload, reports)


class LLMDocumentationSource:
    """Source asking an LLM provider for the explanations."""

    def __init__(self, provider: str, model: str, api_key: Optional[str] = None,
                 base_url: Optional[str] = None, temperature: float = 0.5,
                 max_tokens: int = 4000, client=None):
        """
        Initialize LLMDocumentationSource.

        Args:
            provider: Provider name ('openai', 'anthropic', 'ollama')
            model: Model name
            api_key: API key (optional for Ollama)
            base_url: Custom base URL (optional)
            temperature: Sampling temperature
            max_tokens: Maximum response tokens
            client: Ready-made client (optional); skips the factory
        """
        self.provider = provider
        self.model = model
        self.api_key = api_key
        self.base_url = base_url
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = client

    @classmethod
    def from_config(cls, llm_config) -> 'LLMDocumentationSource':
        return cls(
            provider=llm_config.provider,
            model=llm_config.model,
            api_key=llm_config.api_key,
            base_url=llm_config.base_url,
            temperature=llm_config.temperature,
            max_tokens=llm_config.max_tokens,
        )

    def __call__(self, reports: List[FileGapReport]) -> Optional[Dict[str, ElementDocumentation]]:
        if not any(report.has_missing_docs for report in reports):
            return None

        prompt = build_documentation_request(reports)
        try:
            if self._client is None:
                self._client = LLMClientFactory.create(
                    provider=self.provider,
                    model=self.model,
                    api_key=self.api_key,
                    base_url=self.base_url,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                )
            text, tokens = self._client.call(prompt)
            logger.info(f"Documentation request answered ({tokens} tokens)")
            payload = parse_documentation_response(text)
        except Exception as e:
            logger.warning(f"LLM documentation source failed, using templates: {e}")
            return None

        return _only_requested(payload, reports)


def create_source(source: str, llm_config=None,
                  response_path: Optional[str] = None) -> DocumentationSource:
    """
    Build the documentation source selected by name.

    Args:
        source: 'template', 'response' or 'llm'
        llm_config: LLMConfig, required for 'llm'
        response_path: Answer file, required for 'response'

    Raises:
        ValueError: If the name is unknown or a required argument is missing
    """
    if source == SOURCE_TEMPLATE:
        return TemplateSource()
    if source == SOURCE_RESPONSE:
        if not response_path:
            raise ValueError("The 'response' source needs a response file (--response)")
        return ResponseFileSource(response_path)
    if source == SOURCE_LLM:
        if llm_config is None:
            raise ValueError("The 'llm' source needs an LLM configuration")
        return LLMDocumentationSource.from_config(llm_config)
    raise ValueError(f"Unknown documentation source: {source}")
