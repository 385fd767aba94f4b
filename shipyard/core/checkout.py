"""Checkout detection and paths.

A checkout is the root of the source tree being released. It is identified by
the presence of a `shipyard.toml` file.

Detection order:
1. SHIPYARD_ROOT environment variable (set by `--root` or by CI)
2. Upward search from the current directory
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .config import CONFIG_FILENAME
from .result import Err, Ok, Result

__all__ = [
    "Checkout",
    "CheckoutError",
    "ROOT_ENV_VAR",
    "detect_checkout",
    "find_checkout_upward",
]

ROOT_ENV_VAR = "SHIPYARD_ROOT"


@dataclass(frozen=True, slots=True)
class CheckoutError:
    """Error when no checkout can be found."""

    message: str
    searched_from: Path | None = None
    hint: str | None = f"Create {CONFIG_FILENAME} at the repository root or pass --root"


@dataclass(frozen=True, slots=True)
class Checkout:
    """A source checkout prepared for release.

    The root contains:
    - shipyard.toml (required)
    - the manifest file (required for release triggers)
    - .shipyard/ build and local-release state (generated, gitignored)
    """

    root: Path

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILENAME

    @property
    def state_dir(self) -> Path:
        return self.root / ".shipyard"

    def resolve(self, rel: str) -> Path:
        """Resolve a config-relative path against the checkout root."""
        p = Path(rel).expanduser()
        if p.is_absolute():
            return p
        return self.root / p


def find_checkout_upward(start: Path) -> Path | None:
    """Walk from ``start`` to the filesystem root looking for shipyard.toml."""
    current = start.resolve()
    for parent in (current, *current.parents):
        if (parent / CONFIG_FILENAME).is_file():
            return parent
    return None


def detect_checkout(start: Path | None = None) -> Result[Checkout, CheckoutError]:
    """Detect the checkout root.

    Args:
        start: Directory to start searching from (default: cwd).

    Returns:
        Ok(Checkout) if found, Err(CheckoutError) otherwise.
    """
    env_root = os.environ.get(ROOT_ENV_VAR)
    if env_root:
        root = Path(env_root).expanduser().resolve()
        if (root / CONFIG_FILENAME).is_file():
            return Ok(Checkout(root=root))
        return Err(
            CheckoutError(
                message=f"{ROOT_ENV_VAR}={env_root} has no {CONFIG_FILENAME}",
                searched_from=root,
            )
        )

    origin = start or Path.cwd()
    found = find_checkout_upward(origin)
    if found is None:
        return Err(
            CheckoutError(
                message=f"No {CONFIG_FILENAME} found (searched upward from {origin})",
                searched_from=origin,
            )
        )
    return Ok(Checkout(root=found))
