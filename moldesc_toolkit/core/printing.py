"""Printing helpers for the CLI."""

from __future__ import annotations

from typing import Dict, Mapping


def print_section(title: str, width: int = 80, char: str = "-") -> None:
    print(char * width)
    print(title)
    print(char * width)


def print_counts(counts: Mapping[str, int], indent: int = 2) -> None:
    if not counts:
        print(" " * indent + "(none)")
        return
    w = max(len(k) for k in counts)
    for k, v in counts.items():
        print(f"{' ' * indent}{k:<{w}}  {v}")


def print_catalog(entries: Dict[str, Dict[str, object]]) -> None:
    """Print the `DescriptorCatalog.describe()` listing."""

    print(f"{'Key':<20} {'Flag':<10} {'Representation':<18} Properties")
    print("-" * 80)
    for key, e in entries.items():
        props = ", ".join(str(p) for p in e["properties"])  # type: ignore[union-attr]
        print(f"{key:<20} {e['flag']!s:<10} {e['representation']!s:<18} {props}")
