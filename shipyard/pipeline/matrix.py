from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass

from shipyard.core.config import ConfigurationError, PlatformConfig
from shipyard.core.result import Err, Ok, Result
from shipyard.pipeline.model import MatrixEntry


@dataclass(frozen=True, slots=True)
class TargetMatrix:
    """The configured platforms, in declaration order, disabled ones included."""

    entries: tuple[MatrixEntry, ...]

    @classmethod
    def from_config(cls, platforms: Iterable[PlatformConfig]) -> TargetMatrix:
        return cls(
            entries=tuple(
                MatrixEntry(
                    platform_name=p.os_name,
                    runs_on=p.runs_on,
                    target=p.target,
                    active=p.active,
                )
                for p in platforms
            )
        )

    @property
    def disabled(self) -> tuple[MatrixEntry, ...]:
        return tuple(e for e in self.entries if not e.active)

    def expand(self) -> Result[tuple[MatrixEntry, ...], ConfigurationError]:
        """Active entries in order.

        Duplicate platform names are rejected across all entries, disabled ones
        included, so toggling `active` can never introduce a clash. Active
        entries must also have distinct targets: the asset name is derived from
        the target, so two of them would publish over each other.
        """
        counts = Counter(e.platform_name for e in self.entries)
        dupes = sorted(name for name, n in counts.items() if n > 1)
        if dupes:
            return Err(
                ConfigurationError(
                    f"duplicate matrix platform: {', '.join(dupes)}",
                    hint="os-name must be unique within [[matrix.platform]]",
                )
            )

        active = tuple(e for e in self.entries if e.active)
        if not active:
            return Err(
                ConfigurationError(
                    "matrix has no active platform",
                    hint="add a [[matrix.platform]] entry or set active = true",
                )
            )

        by_target: dict[str, list[str]] = {}
        for e in active:
            by_target.setdefault(e.target, []).append(e.platform_name)
        shared = [(t, names) for t, names in by_target.items() if len(names) > 1]
        if shared:
            target, names = shared[0]
            return Err(
                ConfigurationError(
                    f"duplicate matrix target: {target} ({', '.join(names)})",
                    hint="each active platform needs its own target; disable the others",
                )
            )
        return Ok(active)

    def select(self, names: Iterable[str]) -> Result[tuple[MatrixEntry, ...], ConfigurationError]:
        """Expand, then keep only the named platforms (all of them if ``names`` is empty)."""
        expanded = self.expand()
        if isinstance(expanded, Err):
            return expanded

        wanted = [n.strip() for n in names if n.strip()]
        if not wanted:
            return expanded

        known = {e.platform_name for e in expanded.value}
        unknown = [n for n in wanted if n not in known]
        if unknown:
            return Err(
                ConfigurationError(
                    f"unknown or disabled platform: {', '.join(unknown)}",
                    hint=f"Active: {', '.join(sorted(known))}",
                )
            )
        return Ok(tuple(e for e in expanded.value if e.platform_name in wanted))
