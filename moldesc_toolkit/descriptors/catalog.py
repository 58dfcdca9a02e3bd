"""Descriptor catalog.

`DescriptorCatalog` pairs the registry entries from `moldesc_toolkit.core.registry` with
the algorithm computing each one. It is an immutable value: build it once
(`DescriptorCatalog.default()`) and hand it to whatever needs to instantiate calculators.

Configuration problems (unknown key, nothing selected, wrong number of custom property
names) are raised as `DescriptorConfigError` here, before any molecule is read.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from moldesc_toolkit.core.errors import DescriptorConfigError, ErrorCode
from moldesc_toolkit.core.registry import DESCRIPTOR_SPECS, DescriptorSpec

from .algorithms import ALGORITHMS, Algorithm
from .calculators import Calculator

ALL = "all"

CustomNames = Mapping[str, Sequence[str]]


class DescriptorCatalog:
    def __init__(self, specs: Mapping[str, DescriptorSpec], algorithms: Mapping[str, Algorithm]):
        missing = [k for k in specs if k not in algorithms]
        if missing:
            raise ValueError(f"No algorithm bound for: {', '.join(missing)}")
        self._specs = MappingProxyType(dict(specs))
        self._algorithms = MappingProxyType({k: algorithms[k] for k in specs})

    @classmethod
    def default(cls) -> "DescriptorCatalog":
        return cls(DESCRIPTOR_SPECS, ALGORITHMS)

    def __contains__(self, key: object) -> bool:
        return key in self._specs

    def __len__(self) -> int:
        return len(self._specs)

    def keys(self) -> List[str]:
        return list(self._specs.keys())

    def specs(self) -> List[DescriptorSpec]:
        return list(self._specs.values())

    def spec(self, key: str) -> DescriptorSpec:
        try:
            return self._specs[key]
        except KeyError:
            raise DescriptorConfigError(
                f"Unknown descriptor: {key}. Available: {', '.join(self._specs)}",
                code=ErrorCode.UNKNOWN_DESCRIPTOR,
                details={"key": key},
            ) from None

    def algorithm(self, key: str) -> Algorithm:
        self.spec(key)
        return self._algorithms[key]

    def with_algorithm(self, key: str, algorithm: Algorithm) -> "DescriptorCatalog":
        """New catalog with `key` computed by `algorithm`."""

        self.spec(key)
        algorithms = dict(self._algorithms)
        algorithms[key] = algorithm
        return DescriptorCatalog(self._specs, algorithms)

    def with_spec(self, spec: DescriptorSpec, algorithm: Algorithm) -> "DescriptorCatalog":
        """New catalog with an added (or replaced) entry."""

        specs = dict(self._specs)
        specs[spec.key] = spec
        algorithms = dict(self._algorithms)
        algorithms[spec.key] = algorithm
        return DescriptorCatalog(specs, algorithms)

    def resolve_keys(self, keys: Iterable[str]) -> List[str]:
        """Validate and de-duplicate keys, expanding 'all' to the catalog order."""

        requested = list(keys or [])
        if not requested:
            raise DescriptorConfigError("No descriptors specified", code=ErrorCode.NO_DESCRIPTORS)

        out: List[str] = []
        for key in requested:
            expanded = self.keys() if str(key).lower() == ALL else [key]
            for k in expanded:
                self.spec(k)
                if k not in out:
                    out.append(k)
        return out

    def _property_names(self, spec: DescriptorSpec, custom_names: Optional[CustomNames]) -> Sequence[str]:
        if not custom_names or spec.key not in custom_names:
            return tuple(spec.property_names)

        names = custom_names[spec.key]
        if isinstance(names, str):
            names = [names]
        names = tuple(str(n) for n in names)
        if len(names) != spec.arity:
            raise DescriptorConfigError(
                f"{spec.key} produces {spec.arity} properties but {len(names)} names were given: {list(names)}",
                code=ErrorCode.PROPERTY_NAME_MISMATCH,
                details={"key": spec.key, "expected": spec.arity, "names": list(names)},
            )
        return names

    def _check_custom_keys(self, custom_names: Optional[CustomNames]) -> None:
        for key in custom_names or {}:
            self.spec(key)

    def instantiate(self, keys: Iterable[str], custom_names: Optional[CustomNames] = None) -> List[Calculator]:
        """Create one calculator per requested key, in request order."""

        self._check_custom_keys(custom_names)
        calculators: List[Calculator] = []
        for key in self.resolve_keys(keys):
            spec = self._specs[key]
            calculators.append(
                Calculator(spec, self._algorithms[key], self._property_names(spec, custom_names))
            )
        return calculators

    def output_property_names(self, keys: Iterable[str], custom_names: Optional[CustomNames] = None) -> List[str]:
        """Ordered property names a successful run writes for this key set."""

        self._check_custom_keys(custom_names)
        names: List[str] = []
        for key in self.resolve_keys(keys):
            names.extend(self._property_names(self._specs[key], custom_names))
        return names

    def describe(self) -> Dict[str, Dict[str, object]]:
        return {
            k: {
                "name": s.name,
                "flag": f"--{s.cli_flag}",
                "representation": s.representation.value,
                "properties": list(s.property_names),
                "kinds": [kind.value for kind in s.kinds],
            }
            for k, s in self._specs.items()
        }
