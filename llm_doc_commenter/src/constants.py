"""
Shared constants for llm-doc-commenter.

Centralizes marker phrases, labels and defaults used across multiple modules.
"""

# Lines inspected above an element when looking for existing documentation
DEFAULT_WINDOW_LINES = 10

# Marker phrases recognized inside existing comments (matched case-insensitively)
TECHNICAL_MARKERS = (
    'technical explanation',
    'technical description',
    'technische erklärung',
)
SIMPLE_MARKERS = (
    'simple explanation',
    'plain explanation',
    'einfache erklärung',
)

# Section labels written by the synthesizer; each contains one marker above
TECHNICAL_LABEL = 'Technical Explanation:'
SIMPLE_LABEL = 'Simple Explanation:'

# Sibling file holding the original bytes while a file is being mutated
BACKUP_SUFFIX = '.llmdoc.backup'

# Documentation sources selectable from config and CLI
SOURCE_TEMPLATE = 'template'
SOURCE_RESPONSE = 'response'
SOURCE_LLM = 'llm'
DOCUMENTATION_SOURCES = (SOURCE_TEMPLATE, SOURCE_RESPONSE, SOURCE_LLM)

# Human-readable labels for element categories (used in CLI display)
CATEGORY_LABELS = {
    'function': '🔧 Function',
    'class': '🏛️  Class',
    'import': '📦 Import',
    'export': '📤 Export',
}
