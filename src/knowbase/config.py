"""knowbase configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site, not in this module)
  2. Environment variables  (KNOWBASE_EMBEDDING_MODEL, KNOWBASE_EMBEDDING_DIMENSIONS)
  3. Per-project knowbase.yaml  (working directory)
  4. Global ~/.knowbase/config.yaml  (defaults only, no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load(), never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from collections.abc import Iterator
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from knowbase.ingest.chunker import DEFAULT_MAX_UNIT_SIZE
from knowbase.ingest.embedder import DEFAULT_DIMENSIONS, DEFAULT_EMBEDDING_MODEL
from knowbase.rag.retriever import DEFAULT_LIMIT, DEFAULT_MIN_SIMILARITY, MAX_LIMIT

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".knowbase"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "knowbase.yaml"

# Key names that suggest a credential. Does NOT match max_unit_size, limit, etc.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(["embedding", "chunking", "retrieval", "ingest"])


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class EmbeddingCfg:
    """Embedding provider configuration (knowbase.yaml: embedding:)."""

    model: str = DEFAULT_EMBEDDING_MODEL
    dimensions: int = DEFAULT_DIMENSIONS


@dataclass
class ChunkingCfg:
    """Chunker configuration (knowbase.yaml: chunking:)."""

    max_unit_size: int = DEFAULT_MAX_UNIT_SIZE


@dataclass
class RetrievalCfg:
    """Retrieval configuration (knowbase.yaml: retrieval:)."""

    limit: int = DEFAULT_LIMIT
    min_similarity: float = DEFAULT_MIN_SIMILARITY


@dataclass
class IngestCfg:
    """File ingestion limits (knowbase.yaml: ingest:)."""

    max_file_mb: float = 10.0


@dataclass
class KnowbaseConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    chunking: ChunkingCfg = field(default_factory=ChunkingCfg)
    retrieval: RetrievalCfg = field(default_factory=RetrievalCfg)
    ingest: IngestCfg = field(default_factory=IngestCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _credential_paths(obj: Any, prefix: str = "") -> Iterator[tuple[str, str]]:
    """Yield ``(dotted_path, key)`` for every credential-looking key in *obj*."""
    if not isinstance(obj, dict):
        return
    for key, value in obj.items():
        dotted = f"{prefix}.{key}" if prefix else str(key)
        if _API_KEY_RE.search(str(key)):
            yield dotted, str(key)
        yield from _credential_paths(value, dotted)


def _reject_credentials(data: dict[str, Any], source: Path) -> None:
    for dotted, key in _credential_paths(data):
        env_name = key.upper().replace("-", "_")
        raise ConfigError(
            f"'{source}' has a forbidden key '{dotted}'. Credentials belong in the "
            f"environment (export {env_name}=...), not in the global config file."
        )


def _warn_unknown_sections(data: dict[str, Any], source: Path) -> None:
    for name in sorted(set(data) - _KNOWN_SECTIONS):
        warnings.warn(
            f"Unknown config key '{name}' in '{source}', ignored.",
            UserWarning,
            stacklevel=4,
        )


def _validate(cfg: KnowbaseConfig) -> None:
    """Raise ConfigError for out-of-range values."""
    if cfg.embedding.dimensions < 1:
        raise ConfigError(f"embedding.dimensions must be >= 1, got {cfg.embedding.dimensions}")
    if cfg.chunking.max_unit_size < 1:
        raise ConfigError(
            f"chunking.max_unit_size must be >= 1, got {cfg.chunking.max_unit_size}"
        )
    if not 1 <= cfg.retrieval.limit <= MAX_LIMIT:
        raise ConfigError(
            f"retrieval.limit must be between 1 and {MAX_LIMIT}, got {cfg.retrieval.limit}"
        )
    if not -1.0 <= cfg.retrieval.min_similarity <= 1.0:
        raise ConfigError(
            "retrieval.min_similarity must be between -1 and 1, "
            f"got {cfg.retrieval.min_similarity}"
        )
    if cfg.ingest.max_file_mb <= 0:
        raise ConfigError(f"ingest.max_file_mb must be > 0, got {cfg.ingest.max_file_mb}")


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _merge(lower: dict[str, Any], upper: dict[str, Any]) -> dict[str, Any]:
    """Overlay *upper* on *lower*, recursing into sections present in both."""
    merged = dict(lower)
    for key, value in upper.items():
        below = merged.get(key)
        if isinstance(below, dict) and isinstance(value, dict):
            value = _merge(below, value)
        merged[key] = value
    return merged


def _coerce(name: str, value: Any, like: Any) -> Any:
    """Convert *value* to the type of *like*; int fields refuse fractions."""
    if isinstance(like, int) and isinstance(value, float) and not value.is_integer():
        raise ValueError(f"{name} must be a whole number, got {value}")
    return type(like)(value)


def _section(name: str, cls: type, raw: Any) -> Any:
    """Build section dataclass *cls*, coercing each value to its default's type."""
    raw = raw or {}
    if not isinstance(raw, dict):
        raise TypeError(f"{name} must be a mapping, got {type(raw).__name__}")
    section = cls()
    for f in fields(cls):
        if f.name in raw:
            value = _coerce(f"{name}.{f.name}", raw[f.name], getattr(section, f.name))
            setattr(section, f.name, value)
    return section


def _cfg_from_dict(data: dict[str, Any]) -> KnowbaseConfig:
    """Build a *KnowbaseConfig* from a merged raw YAML dict."""
    cfg = KnowbaseConfig()
    try:
        for f in fields(KnowbaseConfig):
            if f.name in data:
                section_cls = type(getattr(cfg, f.name))
                setattr(cfg, f.name, _section(f.name, section_cls, data[f.name]))
    except (TypeError, ValueError, AttributeError) as exc:
        raise ConfigError(f"Invalid config value: {exc}") from exc
    return cfg


def _apply_env_overrides(cfg: KnowbaseConfig) -> KnowbaseConfig:
    """Apply KNOWBASE_* environment variable overrides."""
    if model := os.environ.get("KNOWBASE_EMBEDDING_MODEL"):
        cfg.embedding.model = model
    if dims := os.environ.get("KNOWBASE_EMBEDDING_DIMENSIONS"):
        try:
            cfg.embedding.dimensions = int(dims)
        except ValueError as exc:
            raise ConfigError(
                f"KNOWBASE_EMBEDDING_DIMENSIONS must be an integer, got '{dims}'"
            ) from exc
    return cfg


def _read_layer(path: Path, *, allow_credentials: bool) -> dict[str, Any]:
    if not path.exists():
        return {}
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"'{path}' must contain a mapping of config sections")
    if not allow_credentials:
        _reject_credentials(raw, path)
    _warn_unknown_sections(raw, path)
    return raw


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> KnowbaseConfig:
    """Load and return a merged *KnowbaseConfig*.

    The global file is read first, the project's knowbase.yaml is laid over
    it, then KNOWBASE_* environment variables win. CLI flags are the caller's
    business.

    Args:
        project_dir: Directory holding *knowbase.yaml*. Defaults to CWD.
        global_config_path: Alternative global config file (tests use this).

    Raises:
        ConfigError: If global config contains API-key-like fields, or a value
            is missing its expected type or range.
    """
    global_path = global_config_path or _GLOBAL_CONFIG_PATH
    project_path = (project_dir or Path.cwd()) / _PROJECT_CONFIG_NAME

    merged = _merge(
        _read_layer(global_path, allow_credentials=False),
        _read_layer(project_path, allow_credentials=True),
    )
    cfg = _apply_env_overrides(_cfg_from_dict(merged))
    _validate(cfg)
    return cfg


_GLOBAL_HEADER = (
    "# knowbase global configuration: defaults only.\n"
    "# Keep API keys out of this file. Export them instead, e.g.\n"
    "#   export OPENAI_API_KEY=sk-...\n\n"
)


def ensure_global_config(global_config_path: Path | None = None) -> Path:
    """Create ``~/.knowbase/config.yaml`` with defaults if it does not exist.

    The directory is created with mode 0o700 and the file with 0o600.
    """
    path = global_config_path or _GLOBAL_CONFIG_PATH
    path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    if path.exists():
        return path

    defaults = asdict(KnowbaseConfig())
    defaults.pop("ingest")
    path.write_text(
        _GLOBAL_HEADER + yaml.safe_dump(defaults, sort_keys=False),
        encoding="utf-8",
    )
    path.chmod(0o600)
    return path
