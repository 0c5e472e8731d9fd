"""Runtime configuration for the converter.

Values come from dataclass defaults, an optional YAML file, and dotlist
overrides (``log_level=DEBUG``), merged with OmegaConf in that order.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Sequence

from omegaconf import DictConfig, OmegaConf
from omegaconf.errors import OmegaConfBaseException

from trajconvert.errors import ConfigError

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass
class ConvertConfig:
    """Converter settings with their defaults."""

    # Logging goes to stderr; stdout carries trajectory bytes only.
    log_level: str = "WARNING"
    # Output file path; None writes to stdout.
    output: str | None = None
    # Parent directory for encoder spool files; None uses the system temp dir.
    spool_dir: str | None = None
    # Fail when a header-declaring format receives fewer frames than declared.
    verify_frame_count: bool = True
    # Log progress every N frames (0 disables).
    log_every: int = 0

    def __post_init__(self) -> None:
        self.log_level = str(self.log_level).upper()
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {', '.join(_LOG_LEVELS)}, got {self.log_level!r}"
            )
        if self.log_every < 0:
            raise ValueError(f"log_every must be >= 0, got {self.log_every}")

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level)


def build_config(cfg: DictConfig, *, strict: bool = True) -> ConvertConfig:
    """Build ConvertConfig from OmegaConf."""
    known = ConvertConfig.__dataclass_fields__
    unknown = sorted(str(k) for k in cfg.keys() if k not in known)
    if unknown and strict:
        raise ValueError(f"Unknown convert config keys: {', '.join(unknown)}")

    kwargs: dict[str, Any] = {}
    for f in known:
        if f in cfg:
            kwargs[f] = cfg[f]
    return ConvertConfig(**kwargs)


def load_config(
    path: str | Path | None = None,
    overrides: Sequence[str] = (),
) -> ConvertConfig:
    """Load defaults, then the YAML file at ``path``, then dotlist overrides."""
    try:
        cfg = OmegaConf.create(asdict(ConvertConfig()))
        if path is not None:
            cfg = OmegaConf.merge(cfg, OmegaConf.load(path))
        if overrides:
            cfg = OmegaConf.merge(cfg, OmegaConf.from_dotlist(list(overrides)))
        return build_config(cfg)
    except (OmegaConfBaseException, OSError, ValueError, TypeError) as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
