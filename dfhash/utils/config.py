# dfhash/utils/config.py
"""
Config Loader — dfhash parameters (typed YAML)

Intent
- Load + validate an optional YAML parameters file (configs/parameters.yaml).
- Return a **typed** ParametersConfig (Pydantic v2); omitted keys take model defaults.

What this module guarantees
- **Strict validation:** invalid values fail fast with Pydantic errors.
- **Unicode whitespace hardening:** NBSP/BOM/narrow NBSP are replaced before parsing.
- **No implicit file lookup:** load_parameters(None) returns defaults; an explicit
  path that does not exist raises FileNotFoundError.

Config models
- LoaderConfig:  delimiter (None = from file suffix), encoding
- SortConfig:    workers (>0), chunk_size (>0)
- RunConfig:     max_workers (>0): files loaded and sorted concurrently
- LoggingConfig: level, log_file, silence_library_logs

External dependencies
- PyYAML: yaml.safe_load
- Pydantic v2: BaseModel, field_validator, model_validate
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from dfhash.utils.logging import get_logger

PathLike = Union[str, Path]


class LoaderConfig(BaseModel):
    # None => "," for csv, "\t" for tsv, "|" for psv
    delimiter: Optional[str] = None
    encoding: str = "utf-8"

    @field_validator("delimiter")
    @classmethod
    def _validate_delimiter(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and len(v) != 1:
            raise ValueError("loader.delimiter must be a single character")
        return v


class SortConfig(BaseModel):
    workers: int = 1
    chunk_size: int = 100_000

    @field_validator("workers", "chunk_size")
    @classmethod
    def _validate_positive_int(cls, v: int, info) -> int:
        if v <= 0:
            raise ValueError(f"sort.{info.field_name} must be > 0")
        return v


class RunConfig(BaseModel):
    max_workers: int = 1

    @field_validator("max_workers")
    @classmethod
    def _validate_max_workers(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("run.max_workers must be > 0")
        return v


class LoggingConfig(BaseModel):
    level: str = "WARNING"
    log_file: Optional[str] = None
    silence_library_logs: bool = True

    @field_validator("level")
    @classmethod
    def _validate_level(cls, v: str) -> str:
        lv = str(v).strip().upper()
        if not isinstance(logging.getLevelName(lv), int):
            raise ValueError(f"logging.level is not a valid level: {v}")
        return lv


class ParametersConfig(BaseModel):
    loader: LoaderConfig = Field(default_factory=LoaderConfig)
    sort: SortConfig = Field(default_factory=SortConfig)
    run: RunConfig = Field(default_factory=RunConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _load_yaml(path: PathLike) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"YAML file not found: {path}")

    text = p.read_text(encoding="utf-8")

    # sanitize BEFORE YAML parse (NBSP / figure space / narrow NBSP / BOM)
    for ch in ["\u00A0", "\u2007", "\u202F", "\uFEFF"]:
        text = text.replace(ch, " ")

    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML root must be a mapping/object: {path}")
    return data


def load_parameters(path: Optional[PathLike] = None) -> ParametersConfig:
    """
    Load and validate a parameters YAML into ParametersConfig.
    path=None -> all defaults.
    """
    if path is None:
        return ParametersConfig()

    logger = get_logger(__name__)
    raw = _load_yaml(path)
    try:
        params = ParametersConfig.model_validate(raw)
    except ValidationError as e:
        logger.error("Invalid parameters file %s: %s", str(path), e)
        raise
    return params


__all__ = [
    "LoaderConfig",
    "SortConfig",
    "RunConfig",
    "LoggingConfig",
    "ParametersConfig",
    "load_parameters",
]
