"""Descriptor run configuration.

A config file (JSON or YAML) selects descriptors and pipeline options:

    descriptors: [ALogP, TPSA]        # or "all"
    property_names:
      TPSA: [TPSA_RDKit]
    n_jobs: 4
    chunk_size: 128

Command-line options are merged on top with `PipelineConfig.merged`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import yaml

from .errors import DescriptorConfigError, ErrorCode

KNOWN_KEYS = ("descriptors", "property_names", "n_jobs", "chunk_size", "backend", "progress")


@dataclass(frozen=True)
class PipelineConfig:
    descriptors: Tuple[str, ...] = ()
    property_names: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    n_jobs: int = 1
    chunk_size: int = 64
    backend: str = "processes"
    progress: bool = False

    def merged(
        self,
        *,
        descriptors: Sequence[str] = (),
        n_jobs: Optional[int] = None,
        chunk_size: Optional[int] = None,
        progress: Optional[bool] = None,
    ) -> "PipelineConfig":
        """Add CLI-selected descriptors and override numeric options that were given."""

        keys = list(self.descriptors)
        for k in descriptors:
            if k not in keys:
                keys.append(k)
        return replace(
            self,
            descriptors=tuple(keys),
            n_jobs=self.n_jobs if n_jobs is None else int(n_jobs),
            chunk_size=self.chunk_size if chunk_size is None else int(chunk_size),
            progress=self.progress if progress is None else bool(progress),
        )

    def pipeline_options(self) -> Dict[str, Any]:
        return {
            "n_jobs": self.n_jobs,
            "chunk_size": self.chunk_size,
            "backend": self.backend,
            "progress": self.progress,
        }


def _load_json_or_yaml(path: str | Path) -> Dict[str, Any]:
    p = Path(path)
    txt = p.read_text(encoding="utf-8")

    try:
        if p.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(txt)
        else:
            data = json.loads(txt)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise DescriptorConfigError(
            f"Could not parse config {p}: {e}", code=ErrorCode.INVALID_CONFIG, details={"path": str(p)}
        ) from e

    data = data or {}
    if not isinstance(data, dict):
        raise DescriptorConfigError(
            f"Config {p} must be a mapping", code=ErrorCode.INVALID_CONFIG, details={"path": str(p)}
        )
    return data


def _as_names(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    raise DescriptorConfigError(
        f"Expected a name or list of names, got {value!r}", code=ErrorCode.INVALID_CONFIG
    )


def config_from_dict(raw: Dict[str, Any]) -> PipelineConfig:
    unknown = sorted(set(raw) - set(KNOWN_KEYS))
    if unknown:
        raise DescriptorConfigError(
            f"Unknown config keys: {', '.join(unknown)}",
            code=ErrorCode.INVALID_CONFIG,
            details={"keys": unknown},
        )

    names_in = raw.get("property_names") or {}
    if not isinstance(names_in, dict):
        raise DescriptorConfigError("Config 'property_names' must be a mapping", code=ErrorCode.INVALID_CONFIG)

    try:
        n_jobs = int(raw.get("n_jobs", 1))
        chunk_size = int(raw.get("chunk_size", 64))
    except (TypeError, ValueError) as e:
        raise DescriptorConfigError(f"Invalid numeric option: {e}", code=ErrorCode.INVALID_CONFIG) from e

    return PipelineConfig(
        descriptors=tuple(_as_names(raw.get("descriptors") or [])),
        property_names={str(k): tuple(_as_names(v)) for k, v in names_in.items()},
        n_jobs=n_jobs,
        chunk_size=chunk_size,
        backend=str(raw.get("backend", "processes")),
        progress=bool(raw.get("progress", False)),
    )


def load_descriptor_config(path: str | Path) -> PipelineConfig:
    """Load a JSON/YAML descriptor config file."""

    return config_from_dict(_load_json_or_yaml(path))
