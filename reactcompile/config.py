"""
Configuration — Centralized settings management

Config hierarchy (highest to lowest priority):
  1. Environment variables
  2. Project config (.reactcompile/config.yaml)
  3. User config (~/.reactcompile/config.yaml)
  4. Defaults
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .core.externals import DEFAULT_PACKAGES
from .core.paths import DEFAULT_ALIAS, DEFAULT_EXTENSIONS

logger = logging.getLogger(__name__)


BACKEND_NAMES = ("bundle", "transpile")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class CompilerConfig:
    """Compile defaults."""
    backend: str = "bundle"
    entry_point: str = "@/entry"
    base_url: str = "/src"
    alias_prefix: str = DEFAULT_ALIAS
    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))

    def validate(self) -> Optional[str]:
        """Validate config. Returns error message or None if valid."""
        if self.backend not in BACKEND_NAMES:
            return f"Unknown backend '{self.backend}'. Valid: {', '.join(BACKEND_NAMES)}"
        if not self.base_url.startswith("/"):
            return f"base_url must be absolute (start with '/'), got '{self.base_url}'"
        if not self.alias_prefix:
            return "alias_prefix must not be empty"
        bad = [ext for ext in self.extensions if not ext.startswith(".")]
        if bad or not self.extensions:
            return f"extensions must be a non-empty list like .tsx, .ts (got {', '.join(self.extensions) or 'none'})"
        return None


@dataclass
class ExternalsConfig:
    """Allowlisted runtime packages and their import-map URLs."""
    packages: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_PACKAGES))

    def validate(self) -> Optional[str]:
        for name, url in self.packages.items():
            if not url.startswith(("https://", "http://", "/")):
                return f"Package '{name}' URL must be http(s) or absolute, got '{url}'"
        return None


@dataclass
class SandboxConfig:
    """Isolated frame styling."""
    min_height: str = "400px"
    background: str = "#000000"
    foreground: str = "#fafafa"

    def validate(self) -> Optional[str]:
        if not self.min_height:
            return "min_height must not be empty"
        return None


@dataclass
class LoggingConfig:
    level: str = "WARNING"

    def validate(self) -> Optional[str]:
        if self.level.upper() not in LOG_LEVELS:
            return f"Unknown log level '{self.level}'. Valid: {', '.join(LOG_LEVELS)}"
        return None


@dataclass
class Config:
    """Application configuration."""
    compiler: CompilerConfig = field(default_factory=CompilerConfig)
    externals: ExternalsConfig = field(default_factory=ExternalsConfig)
    sandbox: SandboxConfig = field(default_factory=SandboxConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> Optional[str]:
        for section in (self.compiler, self.externals, self.sandbox, self.logging):
            error = section.validate()
            if error:
                return error
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "compiler": {
                "backend": self.compiler.backend,
                "entry_point": self.compiler.entry_point,
                "base_url": self.compiler.base_url,
                "alias_prefix": self.compiler.alias_prefix,
                "extensions": list(self.compiler.extensions),
            },
            "externals": {
                "packages": dict(self.externals.packages),
            },
            "sandbox": {
                "min_height": self.sandbox.min_height,
                "background": self.sandbox.background,
                "foreground": self.sandbox.foreground,
            },
            "logging": {
                "level": self.logging.level,
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """Create from dictionary."""
        compiler_data = data.get("compiler", {})
        externals_data = data.get("externals", {})
        sandbox_data = data.get("sandbox", {})
        logging_data = data.get("logging", {})

        return cls(
            compiler=CompilerConfig(
                backend=compiler_data.get("backend", "bundle"),
                entry_point=compiler_data.get("entry_point", "@/entry"),
                base_url=compiler_data.get("base_url", "/src"),
                alias_prefix=compiler_data.get("alias_prefix", DEFAULT_ALIAS),
                extensions=list(compiler_data.get("extensions") or DEFAULT_EXTENSIONS),
            ),
            externals=ExternalsConfig(
                packages=dict(externals_data.get("packages") or DEFAULT_PACKAGES),
            ),
            sandbox=SandboxConfig(
                min_height=sandbox_data.get("min_height", "400px"),
                background=sandbox_data.get("background", "#000000"),
                foreground=sandbox_data.get("foreground", "#fafafa"),
            ),
            logging=LoggingConfig(
                level=logging_data.get("level", "WARNING"),
            ),
        )


class ConfigManager:
    """
    Manages configuration loading and persistence.

    Hierarchy:
      1. Environment (REACTCOMPILE_*)
      2. Project config (.reactcompile/config.yaml)
      3. User config (~/.reactcompile/config.yaml)
      4. Defaults
    """

    USER_CONFIG_DIR = Path.home() / ".reactcompile"
    USER_CONFIG_FILE = USER_CONFIG_DIR / "config.yaml"
    PROJECT_CONFIG_DIR = ".reactcompile"
    PROJECT_CONFIG_FILE = "config.yaml"

    ENV_OVERRIDES = {
        "REACTCOMPILE_BACKEND": ("compiler", "backend"),
        "REACTCOMPILE_BASE_URL": ("compiler", "base_url"),
        "REACTCOMPILE_ENTRY": ("compiler", "entry_point"),
        "REACTCOMPILE_LOG_LEVEL": ("logging", "level"),
    }

    def __init__(self, project_dir: Optional[Path] = None):
        self.project_dir = Path(project_dir) if project_dir else Path.cwd()
        self._config: Optional[Config] = None

    @property
    def project_config_path(self) -> Path:
        return self.project_dir / self.PROJECT_CONFIG_DIR / self.PROJECT_CONFIG_FILE

    @property
    def user_config_path(self) -> Path:
        return self.USER_CONFIG_FILE

    def load(self) -> Config:
        """Load configuration from all sources."""
        if self._config is not None:
            return self._config

        config_data: Dict[str, Any] = {}

        # Layer 1: User config
        config_data = self._merge(config_data, self._read(self.user_config_path))

        # Layer 2: Project config (higher priority)
        config_data = self._merge(config_data, self._read(self.project_config_path))

        # Layer 3: Environment overrides
        for variable, (section, setting) in self.ENV_OVERRIDES.items():
            if os.environ.get(variable):
                config_data.setdefault(section, {})[setting] = os.environ[variable]

        self._config = Config.from_dict(config_data)
        return self._config

    def _read(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            return {}
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Ignoring unreadable config %s: %s", path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring config %s: top level must be a mapping", path)
            return {}
        return data

    def save_project(self, config: Config):
        """Save configuration to project config file."""
        self.project_config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.project_config_path, 'w') as f:
            yaml.dump(config.to_dict(), f, default_flow_style=False)

        self._config = config

    def save_user(self, config: Config):
        """Save configuration to user config file."""
        self.USER_CONFIG_DIR.mkdir(parents=True, exist_ok=True)

        with open(self.user_config_path, 'w') as f:
            yaml.dump(config.to_dict(), f, default_flow_style=False)

        self._config = config

    def set(self, key: str, value: str, scope: str = "project") -> Optional[str]:
        """
        Set a configuration value.

        Args:
            key: Dot-separated key (e.g., "compiler.backend", "externals.react")
            value: Value to set
            scope: "project" or "user"

        Returns:
            Error message or None if successful
        """
        config = self.load()

        parts = key.split(".", 1)
        if len(parts) != 2:
            return f"Invalid key format: {key}. Use 'section.setting' (e.g., 'compiler.backend')"

        section, setting = parts

        if section == "compiler":
            if setting == "extensions":
                config.compiler.extensions = [e.strip() for e in value.split(",") if e.strip()]
            elif setting in ("backend", "entry_point", "base_url", "alias_prefix"):
                setattr(config.compiler, setting, value)
            else:
                return f"Unknown compiler setting: {setting}. Valid: backend, entry_point, base_url, alias_prefix, extensions"
            error = config.compiler.validate()

        elif section == "externals":
            config.externals.packages[setting] = value
            error = config.externals.validate()

        elif section == "sandbox":
            if setting not in ("min_height", "background", "foreground"):
                return f"Unknown sandbox setting: {setting}. Valid: min_height, background, foreground"
            setattr(config.sandbox, setting, value)
            error = config.sandbox.validate()

        elif section == "logging":
            if setting != "level":
                return f"Unknown logging setting: {setting}. Valid: level"
            config.logging.level = value.upper()
            error = config.logging.validate()
        else:
            return f"Unknown section: {section}. Valid: compiler, externals, sandbox, logging"

        if error:
            self._config = None
            return error

        if scope == "project":
            self.save_project(config)
        else:
            self.save_user(config)

        return None

    def get(self, key: str) -> Optional[str]:
        """Get a configuration value."""
        config = self.load()

        parts = key.split(".", 1)
        if len(parts) != 2:
            return None

        section, setting = parts

        if section == "compiler":
            if setting == "extensions":
                return ",".join(config.compiler.extensions)
            if setting in ("backend", "entry_point", "base_url", "alias_prefix"):
                return getattr(config.compiler, setting)
        elif section == "externals":
            return config.externals.packages.get(setting)
        elif section == "sandbox":
            if setting in ("min_height", "background", "foreground"):
                return getattr(config.sandbox, setting)
        elif section == "logging":
            if setting == "level":
                return config.logging.level

        return None

    def _merge(self, base: Dict, override: Dict) -> Dict:
        """Deep merge two dicts, override wins."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge(result[key], value)
            else:
                result[key] = value
        return result

    def display(self) -> str:
        """Format config for display."""
        config = self.load()

        lines = [
            "Configuration:",
            "",
            "Compiler:",
            f"  Backend: {config.compiler.backend}",
            f"  Entry point: {config.compiler.entry_point}",
            f"  Base URL: {config.compiler.base_url}",
            f"  Alias prefix: {config.compiler.alias_prefix}",
            f"  Extensions: {', '.join(config.compiler.extensions)}",
            "",
            "Externals:",
        ]
        for name, url in config.externals.packages.items():
            lines.append(f"  {name}: {url}")
        lines.extend([
            "",
            "Sandbox:",
            f"  Min height: {config.sandbox.min_height}",
            f"  Colors: {config.sandbox.background} / {config.sandbox.foreground}",
            "",
            "Logging:",
            f"  Level: {config.logging.level}",
            "",
            "Config files:",
            f"  User: {self.user_config_path}",
            f"  Project: {self.project_config_path}",
        ])

        return "\n".join(lines)


# Convenience function
def get_config(project_dir: Optional[Path] = None) -> Config:
    """Load configuration for a project."""
    return ConfigManager(project_dir).load()
