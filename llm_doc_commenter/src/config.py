"""
Settings for llm-doc-commenter.

The settings live in `.llm-doc-commenter/config.yaml` under the project
root, one YAML mapping per section. Values of the form ${NAME} are taken
from the environment, and a `.env` file next to the project is read first.
Provider settings can also come from <PREFIX>_MODEL, <PREFIX>_API_KEY and
friends, so keys never have to be written to disk.
"""

import os
import re
import shutil
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from .constants import (
    BACKUP_SUFFIX,
    DEFAULT_WINDOW_LINES,
    DOCUMENTATION_SOURCES,
    SOURCE_LLM,
    SOURCE_TEMPLATE,
)
from ..utils.llm_client import LLMClientFactory
from ..utils.logger_setup import LoggerManager, get_logger

logger = get_logger(__name__)

# provider -> environment prefix
PROVIDER_ENV_PREFIX = {
    'openai': 'OPENAI',
    'anthropic': 'ANTHROPIC',
    'ollama': 'OLLAMA',
}
KEYLESS_PROVIDERS = {'ollama'}

# (attribute, variable suffix, conversion)
_LLM_ENV_OVERRIDES = (
    ('model', 'MODEL', str),
    ('temperature', 'TEMPERATURE', float),
    ('max_tokens', 'MAX_TOKENS', int),
)

_ENV_REFERENCE = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')


@dataclass
class LLMConfig:
    """Provider settings for the 'llm' documentation source."""
    provider: str = "openai"
    model: str = "gpt-4o-mini"
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    temperature: float = 0.5
    max_tokens: int = 4000

    def __post_init__(self):
        prefix = PROVIDER_ENV_PREFIX.get(self.provider.lower())
        if prefix is None:
            raise ValueError(
                f"Unknown LLM provider '{self.provider}'. "
                f"Choose one of: {', '.join(PROVIDER_ENV_PREFIX)}"
            )

        for attribute, suffix, convert in _LLM_ENV_OVERRIDES:
            value = os.getenv(f"{prefix}_{suffix}")
            if value:
                setattr(self, attribute, convert(value))

        # Explicit values win over the environment for credentials
        self.api_key = self.api_key or os.getenv(f"{prefix}_API_KEY")
        self.base_url = self.base_url or os.getenv(f"{prefix}_BASE_URL") or None


@dataclass
class ScanningConfig:
    """Which files are looked at."""
    paths: List[str] = field(default_factory=lambda: ["."])
    exclude: List[str] = field(default_factory=lambda: [
        "__pycache__", ".venv", "venv", ".git", "node_modules", "dist", "build",
        "*.min.js", ".llm-doc-commenter"
    ])
    max_file_size_mb: int = 5


@dataclass
class AnalysisConfig:
    window_lines: int = DEFAULT_WINDOW_LINES
    only_functions: bool = False
    source: str = SOURCE_TEMPLATE  # template, response, llm
    response_file: Optional[str] = None


@dataclass
class OutputConfig:
    dry_run: bool = False
    backup_suffix: str = BACKUP_SUFFIX


@dataclass
class WatchConfig:
    interval_minutes: float = 5.0
    apply: bool = False  # report only unless enabled


_SECTIONS = {
    'llm': LLMConfig,
    'scanning': ScanningConfig,
    'analysis': AnalysisConfig,
    'output': OutputConfig,
    'watch': WatchConfig,
}


@dataclass
class Config:
    """All settings sections plus the project root they apply to."""
    llm: LLMConfig = field(default_factory=LLMConfig)
    scanning: ScanningConfig = field(default_factory=ScanningConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)
    project_root: str = field(default_factory=os.getcwd)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """
        Build settings from a parsed YAML mapping.

        Missing sections get their defaults. Unknown keys inside a section
        raise TypeError from the section's constructor.
        """
        sections = {
            name: section_class(**(data.get(name) or {}))
            for name, section_class in _SECTIONS.items()
        }
        return cls(project_root=data.get('project_root') or os.getcwd(), **sections)

    def to_dict(self) -> Dict[str, Any]:
        data = {name: asdict(getattr(self, name)) for name in _SECTIONS}
        data['project_root'] = self.project_root
        return data


def resolve_env_references(data: Any) -> Any:
    """
    Replace ${NAME} in every string of a parsed YAML tree.

    References to unset variables are left as written.
    """
    if isinstance(data, dict):
        return {key: resolve_env_references(value) for key, value in data.items()}
    if isinstance(data, list):
        return [resolve_env_references(item) for item in data]
    if isinstance(data, str):
        return _ENV_REFERENCE.sub(
            lambda match: os.environ.get(match.group(1), match.group(0)), data
        )
    return data


class ConfigManager:
    """Reads, writes and checks the settings of one project."""

    DEFAULT_CONFIG_DIR = ".llm-doc-commenter"
    DEFAULT_CONFIG_FILE = "config.yaml"
    ENV_FILE = ".env"

    def __init__(self, project_root: Optional[str] = None):
        self.project_root = Path(project_root or os.getcwd())
        self.config_dir = self.project_root / self.DEFAULT_CONFIG_DIR
        self.config_file = self.config_dir / self.DEFAULT_CONFIG_FILE
        self.env_file = self.project_root / self.ENV_FILE

    def _defaults(self) -> Config:
        config = Config()
        config.project_root = str(self.project_root)
        return config

    def load(self) -> Config:
        """
        Return the project's settings.

        A missing or unreadable config file gives the defaults; the latter
        is logged as a warning.
        """
        if self.env_file.exists():
            load_dotenv(self.env_file)

        if not self.config_file.exists():
            return self._defaults()

        try:
            raw = yaml.safe_load(self.config_file.read_text(encoding='utf-8')) or {}
            config = Config.from_dict(resolve_env_references(raw))
        except (OSError, yaml.YAMLError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Ignoring {self.config_file}: {e}")
            return self._defaults()

        config.project_root = str(self.project_root)
        return config

    def save(self, config: Config):
        self.config_dir.mkdir(parents=True, exist_ok=True)
        text = yaml.dump(config.to_dict(), default_flow_style=False, sort_keys=False)
        self.config_file.write_text(text, encoding='utf-8')

    def init_config(self, overwrite: bool = False) -> bool:
        """
        Write the default settings file.

        Args:
            overwrite: Replace an existing file

        Returns:
            False if a file exists and overwrite is off, True otherwise
        """
        if self.config_file.exists():
            if not overwrite:
                logger.info(f"Keeping existing configuration: {self.config_file}")
                return False
            logger.info(f"Replacing configuration: {self.config_file}")

        config = self._defaults()
        # API keys stay in the environment
        config.llm.api_key = None
        self.save(config)

        logger.info(f"Wrote default configuration to {self.config_file}")
        return True

    def get_api_key(self, config: Config) -> Optional[str]:
        """The configured key, else the provider's <PREFIX>_API_KEY variable."""
        if config.llm.api_key:
            return config.llm.api_key

        provider = config.llm.provider.lower()
        if provider in KEYLESS_PROVIDERS or provider not in PROVIDER_ENV_PREFIX:
            return None
        return os.environ.get(f"{PROVIDER_ENV_PREFIX[provider]}_API_KEY")

    def validate(self, config: Config) -> List[str]:
        """Return one message per problem; an empty list means usable."""
        errors = []
        llm, analysis = config.llm, config.analysis

        if llm.provider not in LLMClientFactory.supported_providers():
            errors.append(f"Invalid LLM provider: {llm.provider}")

        if analysis.source not in DOCUMENTATION_SOURCES:
            errors.append(f"Invalid documentation source: {analysis.source}")
        elif analysis.source == SOURCE_LLM and llm.provider not in KEYLESS_PROVIDERS:
            if not self.get_api_key(config):
                errors.append(f"API key not found for provider: {llm.provider}")

        if analysis.window_lines < 1:
            errors.append(f"window_lines must be at least 1: {analysis.window_lines}")

        if config.scanning.max_file_size_mb <= 0:
            errors.append(f"max_file_size_mb must be positive: {config.scanning.max_file_size_mb}")

        if config.watch.interval_minutes <= 0:
            errors.append(f"Watch interval must be positive: {config.watch.interval_minutes}")

        suffix = config.output.backup_suffix
        if not suffix or '/' in suffix or os.sep in suffix:
            errors.append(f"Invalid backup suffix: {suffix!r}")

        return errors

    def cleanup(self) -> bool:
        """Delete the settings directory. Returns False if there was none or it could not be removed."""
        if not self.config_dir.exists():
            logger.info(f"Nothing to remove at {self.config_dir}")
            return False

        # Log files inside the directory must be closed before removal
        LoggerManager.reset()

        try:
            shutil.rmtree(self.config_dir)
        except OSError as e:
            logger.error(f"Could not remove {self.config_dir}: {e}")
            return False
        return True
