"""
Response schema definitions.

Pydantic schemas describing the answer expected back from the external
documentation assistant. The assistant receives a documentation request
listing undocumented elements and must answer with one technical and one
simple explanation per element, shaped as a DocumentationResponse.
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator

from llm_doc_commenter.utils.text_normalizer import (
    strip_comment_decoration,
    wrap_and_normalize,
)


def element_key(file_path: str, name: str, line: int) -> str:
    """Build the lookup key shared by requests, responses and the synthesizer."""
    return f"{file_path}::{name}::{line}"


class ElementDocumentation(BaseModel):
    """Technical and simple explanation for one structural element."""
    technical: str = Field(
        ...,
        description="Explanation for developers: what the element does and how"
    )
    simple: str = Field(
        ...,
        description="Plain-language explanation using an everyday analogy"
    )

    @field_validator('technical', 'simple')
    @classmethod
    def clean_and_wrap(cls, v: str) -> str:
        """Strip comment decoration and wrap at 79 characters."""
        v = strip_comment_decoration(v)
        if not v:
            raise ValueError("explanation text must not be empty")
        return wrap_and_normalize(v)


class ElementDocumentationEntry(ElementDocumentation):
    """ElementDocumentation plus the coordinates of the element it targets."""
    file: str = Field(..., description="File path exactly as given in the request")
    name: str = Field(..., description="Element name")
    line: int = Field(..., ge=1, description="1-based line number from the request")

    @property
    def key(self) -> str:
        return element_key(self.file, self.name, self.line)


class DocumentationResponse(BaseModel):
    """
    Schema for the complete answer to a documentation request.

    Example:
        {"items": [{"file": "src/math.js", "name": "add", "line": 1,
                    "technical": "...", "simple": "..."}]}
    """
    items: list[ElementDocumentationEntry] = Field(default_factory=list)

    def to_payload(self) -> Dict[str, ElementDocumentation]:
        """Index the entries by element key, later entries winning."""
        payload = {}
        for item in self.items:
            # Already validated as part of the entry
            payload[item.key] = ElementDocumentation.model_construct(
                technical=item.technical,
                simple=item.simple
            )
        return payload


def parse_documentation_response(text: str) -> Optional[Dict[str, ElementDocumentation]]:
    """
    Parse an assistant answer into a payload keyed by element_key().

    Accepts the bare JSON object or a JSON object wrapped in a markdown
    code fence.

    Args:
        text: Raw answer text

    Returns:
        Payload dictionary, or None when the answer holds no entries

    Raises:
        pydantic.ValidationError: If the JSON does not match the schema
        ValueError: If no JSON object can be found
    """
    stripped = text.strip()
    if stripped.startswith('```'):
        first_newline = stripped.find('\n')
        closing = stripped.rfind('```')
        if first_newline == -1 or closing <= first_newline:
            raise ValueError("Unterminated code fence in documentation response")
        stripped = stripped[first_newline + 1:closing].strip()

    if not stripped.startswith('{'):
        raise ValueError("Documentation response must be a JSON object")

    response = DocumentationResponse.model_validate_json(stripped)
    payload = response.to_payload()
    return payload or None
