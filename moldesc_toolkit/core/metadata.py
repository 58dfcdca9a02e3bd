"""Run metadata helpers.

Every descriptor run writes a small, machine-readable metadata JSON artifact next to its
output capturing provenance (input hash, parameters, versions) and the usage report:
molecules processed, errors, per-descriptor execution counts and the cost
(molecules processed x number of descriptors).

Convention:
- for an output path like `results.sdf`, write a sidecar file next to it named
  `results.metadata.json`.
"""

from __future__ import annotations

import hashlib
import json
import os
import sys
from datetime import datetime
from importlib import metadata as importlib_metadata
from pathlib import Path
from typing import Any, Dict, Optional

from rdkit import rdBase


def get_toolkit_version() -> str:
    """Return installed package version if available, else 'unknown'."""

    try:
        return importlib_metadata.version("moldesc-toolkit")
    except importlib_metadata.PackageNotFoundError:
        return "unknown"


def get_rdkit_version() -> str:
    return str(getattr(rdBase, "rdkitVersion", "unknown"))


def sha256_file(path: Path, *, max_bytes: int = 200 * 1024 * 1024) -> Optional[str]:
    """Compute SHA256 for a file, returning None if too large or unreadable."""

    try:
        if path.stat().st_size > max_bytes:
            return None
        h = hashlib.sha256()
        with path.open("rb") as f:
            for chunk in iter(lambda: f.read(1024 * 1024), b""):
                h.update(chunk)
        return h.hexdigest()
    except OSError:
        return None


def metadata_sidecar_path(output_path: str | Path) -> Path:
    p = Path(output_path)
    name = p.name
    for suffix in (".sdf.gz", ".sd.gz"):
        if name.lower().endswith(suffix):
            return p.with_name(f"{name[: -len(suffix)]}.metadata.json")
    return p.with_name(f"{p.stem}.metadata.json")


def _file_info(p: Path) -> Dict[str, Any]:
    return {
        "path": str(p.resolve()),
        "name": p.name,
        "size_bytes": int(p.stat().st_size) if p.exists() else None,
    }


def write_run_metadata(
    *,
    tool: str,
    output_path: str | Path,
    input_path: Optional[str | Path] = None,
    parameters: Optional[Dict[str, Any]] = None,
    usage: Optional[Dict[str, Any]] = None,
    artifacts: Optional[Dict[str, Any]] = None,
) -> Path:
    """Write the run metadata JSON sidecar and return its path.

    Called after the output has been written and closed.
    """

    out_p = Path(output_path)
    payload: Dict[str, Any] = {
        "tool": str(tool),
        "created_at": datetime.now().isoformat(timespec="seconds"),
        "cwd": os.getcwd(),
        "argv": list(sys.argv),
        "versions": {
            "moldesc_toolkit": get_toolkit_version(),
            "python": sys.version.split()[0],
            "rdkit": get_rdkit_version(),
        },
        "input": None,
        "output": _file_info(out_p),
        "parameters": parameters or {},
        "usage": usage or {},
        "artifacts": artifacts or {},
    }

    if input_path is not None:
        in_p = Path(input_path)
        payload["input"] = dict(_file_info(in_p), sha256=sha256_file(in_p))

    sidecar = metadata_sidecar_path(out_p)
    sidecar.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
    return sidecar
