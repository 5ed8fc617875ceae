"""Core functionality modules."""

from .config import Config, ConfigManager, LLMConfig, ScanningConfig, AnalysisConfig, OutputConfig
from .exceptions import (
    DocCommenterError,
    ReadError,
    StaleSnapshotError,
    MutationError,
    BackupFailure,
    CommitFailure,
    RestoreFailure,
)
from .extractor import CodeStructure, StructuralElement, StructuralExtractor
from .gaps import DocumentationGap, DocumentationGapAnalyzer, FileGapReport
from .languages import ElementCategory, Language, LANGUAGES, EXTENSION_TABLE, language_for_path
from .mutation import MutationAttempt, MutationEngine, MutationState
from .pipeline import BatchResult, CommentPipeline, FileResult, FileStatus
from .scanner import Scanner, ScanResult
from .sources import (
    DocumentationSource,
    LLMDocumentationSource,
    ResponseFileSource,
    TemplateSource,
    build_documentation_request,
    create_source,
)
from .synthesizer import CommentInsertion, CommentSynthesizer
from .watcher import Watcher

__all__ = [
    # Config
    "Config",
    "ConfigManager",
    "LLMConfig",
    "ScanningConfig",
    "AnalysisConfig",
    "OutputConfig",
    # Errors
    "DocCommenterError",
    "ReadError",
    "StaleSnapshotError",
    "MutationError",
    "BackupFailure",
    "CommitFailure",
    "RestoreFailure",
    # Extraction
    "CodeStructure",
    "StructuralElement",
    "StructuralExtractor",
    "ElementCategory",
    "Language",
    "LANGUAGES",
    "EXTENSION_TABLE",
    "language_for_path",
    # Gap analysis
    "DocumentationGap",
    "DocumentationGapAnalyzer",
    "FileGapReport",
    # Synthesis
    "CommentInsertion",
    "CommentSynthesizer",
    # Mutation
    "MutationAttempt",
    "MutationEngine",
    "MutationState",
    # Pipeline
    "BatchResult",
    "CommentPipeline",
    "FileResult",
    "FileStatus",
    # Scanner
    "Scanner",
    "ScanResult",
    # Sources
    "DocumentationSource",
    "LLMDocumentationSource",
    "ResponseFileSource",
    "TemplateSource",
    "build_documentation_request",
    "create_source",
    # Watch mode
    "Watcher",
]
