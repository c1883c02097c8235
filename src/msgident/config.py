"""
Resolver configuration.

Provides:
- File locations for the curated names, the build index and the snapshot
- Section list and text encoding
- YAML or JSON config files, chosen by suffix
- Configuration validation
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_SECTIONS = ["Incoming", "Outgoing"]
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
INDEX_SUFFIXES = (".parquet", ".json")


class ConfigValidationError(Exception):
    """Configuration validation error."""
    pass


@dataclass
class ResolverConfig:
    """
    Configuration for one resolution run.

    Paths may be left unset and supplied on the command line instead.
    """
    curated_path: Optional[Path] = None
    build_index_path: Optional[Path] = None
    output_path: Optional[Path] = None
    sections: List[str] = field(default_factory=lambda: list(DEFAULT_SECTIONS))
    encoding: str = "utf-8"
    log_level: str = "INFO"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "curated_path": str(self.curated_path) if self.curated_path else None,
            "build_index_path": str(self.build_index_path) if self.build_index_path else None,
            "output_path": str(self.output_path) if self.output_path else None,
            "sections": self.sections,
            "encoding": self.encoding,
            "log_level": self.log_level,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResolverConfig":
        def as_path(key: str) -> Optional[Path]:
            value = data.get(key)
            return Path(value) if value else None

        return cls(
            curated_path=as_path("curated_path"),
            build_index_path=as_path("build_index_path"),
            output_path=as_path("output_path"),
            sections=list(data.get("sections", DEFAULT_SECTIONS)),
            encoding=data.get("encoding", "utf-8"),
            log_level=str(data.get("log_level", "INFO")).upper(),
        )

    def save(self, path: Path) -> None:
        """Save configuration as YAML or JSON depending on the suffix."""
        path = Path(path)
        with open(path, "w", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                json.dump(self.to_dict(), f, indent=2)
            else:
                yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    @classmethod
    def load(cls, path: Path) -> "ResolverConfig":
        """Load configuration from a YAML or JSON file."""
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigValidationError(f"{path}: expected a mapping, got {type(data).__name__}")
        logger.debug(f"Loaded configuration from {path}")
        return cls.from_dict(data)


class ConfigValidator:
    """Validates resolver configuration."""

    def validate(self, config: ResolverConfig) -> List[str]:
        """
        Validate configuration.

        Returns list of validation errors (empty if valid).
        """
        errors = []

        if not config.sections:
            errors.append("sections must not be empty")
        if len(set(config.sections)) != len(config.sections):
            errors.append("sections must be unique")
        for section in config.sections:
            if not section or "[" in section or "]" in section:
                errors.append(f"invalid section name: {section!r}")

        if config.log_level not in LOG_LEVELS:
            errors.append(f"log_level must be one of {', '.join(LOG_LEVELS)}")

        if config.build_index_path and config.build_index_path.suffix.lower() not in INDEX_SUFFIXES:
            errors.append("build_index_path must be a .parquet or .json file")

        try:
            "".encode(config.encoding)
        except LookupError:
            errors.append(f"unknown encoding: {config.encoding}")

        return errors

    def validate_or_raise(self, config: ResolverConfig) -> None:
        """Validate and raise if invalid."""
        errors = self.validate(config)
        if errors:
            raise ConfigValidationError("; ".join(errors))
