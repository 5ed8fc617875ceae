"""
LLM Doc Commenter - technical and simple explanations for undocumented code.

Finds functions, classes, imports and exports in source files of many
languages, decides which functions and classes lack documentation and
inserts comment blocks above them atomically.
"""

__version__ = "0.1.0"

from .src.extractor import CodeStructure, StructuralElement, StructuralExtractor
from .src.gaps import DocumentationGap, DocumentationGapAnalyzer, FileGapReport
from .src.mutation import MutationAttempt, MutationEngine, MutationState
from .src.synthesizer import CommentInsertion, CommentSynthesizer

__all__ = [
    "__version__",
    "CodeStructure",
    "StructuralElement",
    "StructuralExtractor",
    "DocumentationGap",
    "DocumentationGapAnalyzer",
    "FileGapReport",
    "CommentInsertion",
    "CommentSynthesizer",
    "MutationAttempt",
    "MutationEngine",
    "MutationState",
]
