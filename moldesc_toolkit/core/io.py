"""Structure and table IO helpers.

The descriptor job is "structure-first": molecules come in and go out as SD-files, and the
computed properties can additionally be exported as a table.

These helpers provide:
- an SD-file source that yields one structure at a time (plain or gzipped),
- an SD-file sink that writes annotated structures in emission order,
- CSV/TSV/Parquet table export with centralized format detection.

Parquet support requires `pyarrow` (recommended) or another pandas parquet engine.
"""

from __future__ import annotations

import gzip
import logging
from pathlib import Path
from typing import IO, Any, Iterator, Literal, Optional

import pandas as pd
from rdkit import Chem

from .errors import OutputError

logger = logging.getLogger(__name__)

TableFormat = Literal["csv", "tsv", "parquet"]

SDF_SUFFIXES = (".sdf", ".sd", ".mol", ".sdf.gz", ".sd.gz")


def looks_like_sdf(path: str | Path) -> bool:
    name = Path(path).name.lower()
    return any(name.endswith(s) for s in SDF_SUFFIXES)


class SDFSource:
    """Iterate the structures of an SD-file.

    Use as a context manager; the file handle is released on exit. Entries RDKit cannot
    parse are skipped and counted in `skipped`.
    """

    def __init__(self, path: str | Path, *, sanitize: bool = True, remove_hs: bool = False):
        self.path = Path(path)
        self.sanitize = sanitize
        self.remove_hs = remove_hs
        self.read = 0
        self.skipped = 0
        self._fh: Optional[IO[bytes]] = None

    def __enter__(self) -> "SDFSource":
        if self.path.suffix.lower() == ".gz":
            self._fh = gzip.open(self.path, "rb")
        else:
            self._fh = open(self.path, "rb")
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None

    def __iter__(self) -> Iterator[Chem.Mol]:
        if self._fh is None:
            raise RuntimeError("SDFSource must be opened (use it as a context manager)")

        supplier = Chem.ForwardSDMolSupplier(self._fh, sanitize=self.sanitize, removeHs=self.remove_hs)
        for i, mol in enumerate(supplier, 1):
            if mol is None:
                self.skipped += 1
                logger.warning("Skipping unreadable structure %s in %s", i, self.path)
                continue
            self.read += 1
            yield mol


class SDFSink:
    """Write structures to an SD-file, creating parent directories."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.written = 0
        self._writer: Optional[Chem.SDWriter] = None

    def __enter__(self) -> "SDFSink":
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._writer = Chem.SDWriter(str(self.path))
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._writer is not None:
            self._writer.close()
            self._writer = None

    def write(self, mol: Chem.Mol) -> None:
        if self._writer is None:
            raise RuntimeError("SDFSink must be opened (use it as a context manager)")
        try:
            self._writer.write(mol)
        except Exception as e:
            raise OutputError(f"Failed to write molecule: {e}", details={"error": str(e)}) from e
        self.written += 1


def detect_table_format(path: str, fmt: Optional[str] = None) -> TableFormat:
    """Detect table format.

    If fmt is provided and not 'auto', it takes precedence.
    Otherwise, detect from file extension.
    """

    if fmt and fmt.lower() != "auto":
        f = fmt.lower()
        if f in ("csv", "tsv", "parquet"):
            return f  # type: ignore[return-value]
        raise ValueError(f"Unknown table format: {fmt}")

    ext = Path(path).suffix.lower()
    if ext in (".parquet", ".pq"):
        return "parquet"
    if ext in (".tsv", ".tab"):
        return "tsv"
    return "csv"


def write_table(df: pd.DataFrame, path: str, *, fmt: Optional[str] = None, **kwargs: Any) -> None:
    """Write a table (CSV/TSV/Parquet), creating parent directories."""

    Path(path).parent.mkdir(parents=True, exist_ok=True)

    f = detect_table_format(path, fmt)

    if f == "parquet":
        try:
            return df.to_parquet(path, index=False, **kwargs)
        except ImportError as e:  # pragma: no cover
            raise RuntimeError(
                "Writing Parquet requires pyarrow (recommended). Install with: pip install pyarrow\n"
                "or install moldesc-toolkit with the parquet extra: pip install 'moldesc-toolkit[parquet]'"
            ) from e

    if f == "tsv":
        kwargs.setdefault("sep", "\t")

    return df.to_csv(path, index=False, **kwargs)
