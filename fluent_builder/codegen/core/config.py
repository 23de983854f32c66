"""
Configuration management for builder generation.

Handles loading and merging configuration from JSON files,
providing defaults and validation for generator settings.

The annotation vocabulary itself is fixed: only the namespace and
sub-key constants below are recognized on fields.
"""

import json
from pathlib import Path
from typing import Dict, Any, List, Optional, Union
from dataclasses import dataclass, field, fields, asdict

from .naming import is_valid_identifier

# Annotation vocabulary: field(metadata={"builder": {"each": "arg"}})
BUILDER_NAMESPACE = "builder"
ACCUMULATOR_KEY = "each"

DEFAULT_SEQUENCE_TYPES = ["list", "List", "Sequence", "MutableSequence"]
DEFAULT_OPTIONAL_TYPES = ["Optional"]


class ConfigError(Exception):
    """Exception raised for configuration-related errors."""

    pass


@dataclass
class GeneratorConfig:
    """Settings that shape the emitted builder module."""

    # Naming
    builder_suffix: str = "Builder"
    add_factory_function: bool = True

    # Imports emitted at the top of the generated module
    runtime_module: str = "fluent_builder.runtime"
    record_module: Optional[str] = None

    # Syntactic type recognition
    sequence_types: List[str] = field(
        default_factory=lambda: list(DEFAULT_SEQUENCE_TYPES)
    )
    optional_types: List[str] = field(
        default_factory=lambda: list(DEFAULT_OPTIONAL_TYPES)
    )
    recognize_none_union: bool = True

    # Output style
    add_comments: bool = True
    use_slots: bool = True

    # Unrecognized keys from config files end up here
    custom: Dict[str, Any] = field(default_factory=dict)


class ConfigManager:
    """Manages configuration loading and merging."""

    def __init__(self):
        """Initialize configuration manager."""
        self._defaults: Dict[str, Any] = asdict(GeneratorConfig())

    def get_config(
        self,
        custom_config: Optional[Dict[str, Any]] = None,
        config_file: Optional[Union[str, Path]] = None,
    ) -> GeneratorConfig:
        """
        Get the complete configuration.

        Args:
            custom_config: Custom configuration overrides
            config_file: Path to JSON configuration file

        Returns:
            Merged configuration, file values over defaults, overrides last
        """
        base_config = dict(self._defaults)

        if config_file:
            file_config = self._load_config_file(config_file)
            base_config.update(file_config)

        if custom_config:
            base_config.update(custom_config)

        return self._dict_to_config(base_config)

    def _load_config_file(self, config_path: Union[str, Path]) -> Dict[str, Any]:
        """Load configuration from JSON file."""
        path = Path(config_path)

        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        if path.suffix.lower() != ".json":
            raise ConfigError(f"Configuration file must be JSON: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in configuration file {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to load configuration file {path}: {e}") from e

        if not isinstance(config, dict):
            raise ConfigError(f"Configuration file must contain a JSON object: {path}")

        return config

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> GeneratorConfig:
        """Convert dictionary to GeneratorConfig instance."""
        known_fields = {f.name for f in fields(GeneratorConfig)}

        config_args = {}
        custom_args = {}

        for key, value in config_dict.items():
            if key in known_fields:
                config_args[key] = value
            else:
                custom_args[key] = value

        if custom_args:
            existing_custom = dict(config_args.get("custom") or {})
            existing_custom.update(custom_args)
            config_args["custom"] = existing_custom

        return GeneratorConfig(**config_args)

    def save_config(self, config: GeneratorConfig, output_path: Union[str, Path]):
        """Save configuration to JSON file."""
        path = Path(output_path)

        config_dict = asdict(config)
        custom = config_dict.pop("custom", {})
        config_dict.update(custom)

        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(config_dict, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise ConfigError(f"Failed to save configuration to {path}: {e}") from e

    def validate_config(self, config: GeneratorConfig) -> List[str]:
        """
        Validate a configuration.

        Returns:
            List of validation warnings
        """
        warnings = []

        if not config.builder_suffix or not config.builder_suffix.isidentifier():
            warnings.append(f"Invalid builder_suffix: {config.builder_suffix!r}")

        for part in config.runtime_module.split("."):
            if not is_valid_identifier(part):
                warnings.append(f"Invalid runtime_module: {config.runtime_module!r}")
                break

        if not config.sequence_types:
            warnings.append("No sequence types configured; accumulation is disabled")

        overlap = set(config.sequence_types) & set(config.optional_types)
        if overlap:
            warnings.append(
                f"Type names configured as both sequence and optional: {sorted(overlap)}"
            )

        return warnings


# Global configuration manager instance
_config_manager = None


def get_config_manager() -> ConfigManager:
    """Get the global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def load_config(
    custom_config: Optional[Dict[str, Any]] = None,
    config_file: Optional[Union[str, Path]] = None,
) -> GeneratorConfig:
    """
    Convenience function to load configuration.

    Args:
        custom_config: Custom configuration overrides
        config_file: Path to JSON configuration file

    Returns:
        Merged configuration
    """
    manager = get_config_manager()
    return manager.get_config(custom_config, config_file)
