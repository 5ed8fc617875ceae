"""Utility modules."""

from .logger_setup import get_logger, LoggerManager
from .response_schemas import (
    DocumentationResponse,
    ElementDocumentation,
    element_key,
    parse_documentation_response,
)
from .text_normalizer import strip_comment_decoration, wrap_and_normalize

__all__ = [
    # Logging utilities
    "get_logger",
    "LoggerManager",
    # Documentation payloads
    "DocumentationResponse",
    "ElementDocumentation",
    "element_key",
    "parse_documentation_response",
    # Text formatting
    "strip_comment_decoration",
    "wrap_and_normalize",
]
