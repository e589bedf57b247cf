"""
Parser Registry — Routes module paths to language configurations.

Maps file extensions to LanguageConfig instances so that a CanonicalPath
alone decides which grammar parses it and which SourceKind it reports.

Usage:
    registry = ParserRegistry.default()
    config = registry.get_config("/src/components/ui/button.tsx")
    # Returns TSX_CONFIG
"""

from posixpath import splitext
from typing import Dict, List, Optional

from ..models import SourceKind
from .config import LanguageConfig


class ParserRegistry:
    """
    Registry of language configurations.

    Maps file extensions to LanguageConfig instances for routing.
    """

    def __init__(self):
        """Initialize empty registry."""
        self._configs: Dict[str, LanguageConfig] = {}  # name -> config
        self._extension_map: Dict[str, str] = {}  # ext -> config name

    @classmethod
    def default(cls) -> "ParserRegistry":
        """Registry with every built-in source kind."""
        from .languages import JAVASCRIPT_CONFIG, JSX_CONFIG, TSX_CONFIG, TYPESCRIPT_CONFIG

        registry = cls()
        for config in (TSX_CONFIG, TYPESCRIPT_CONFIG, JSX_CONFIG, JAVASCRIPT_CONFIG):
            registry.register(config)
        return registry

    def register(self, config: LanguageConfig) -> None:
        """
        Register a language configuration.

        Raises:
            ValueError: If extension already registered to different config
        """
        for ext in config.extensions:
            ext_lower = ext.lower()
            if ext_lower in self._extension_map:
                existing = self._extension_map[ext_lower]
                if existing != config.name:
                    raise ValueError(
                        f"Extension {ext} already registered to {existing}, "
                        f"cannot register to {config.name}"
                    )

        self._configs[config.name] = config
        for ext in config.extensions:
            self._extension_map[ext.lower()] = config.name

    def get_config(self, path: str) -> Optional[LanguageConfig]:
        """Get the config for a module path based on its extension."""
        _, ext = splitext(path)
        config_name = self._extension_map.get(ext.lower())
        return self._configs.get(config_name) if config_name else None

    def get_config_by_kind(self, kind: SourceKind) -> Optional[LanguageConfig]:
        """Get the config reporting a given SourceKind."""
        for config in self._configs.values():
            if config.kind == kind:
                return config
        return None

    def kind_for(self, path: str) -> SourceKind:
        """SourceKind for a path. Unknown extensions are treated as JavaScript."""
        config = self.get_config(path)
        return config.kind if config else SourceKind.JS

    def grammars(self) -> List[str]:
        """Distinct tree-sitter grammar names needed by this registry."""
        return sorted({config.tree_sitter_name for config in self._configs.values()})

    def __len__(self) -> int:
        return len(self._configs)

    def __contains__(self, name: str) -> bool:
        return name in self._configs
