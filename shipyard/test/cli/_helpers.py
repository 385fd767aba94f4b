from __future__ import annotations

from pathlib import Path

from shipyard.cli.context import CLIContext
from shipyard.core.checkout import Checkout
from shipyard.core.result import Ok
from shipyard.core.config import load_config
from shipyard.output.console import MockConsole

CONFIG = """
[project]
executable-name = "tool"
manifest = "tool.ron"

[release]
store = "local"
local-dir = "releases"

[[matrix.platform]]
os-name = "linux"
runs-on = "self-hosted"
target = "x86_64-unknown-linux-gnu"

[[matrix.platform]]
os-name = "macos"
runs-on = "self-hosted"
target = "aarch64-apple-darwin"

[[matrix.platform]]
os-name = "windows"
runs-on = "windows-latest"
target = "x86_64-pc-windows-msvc"
active = false
"""


def make_ctx(tmp_path: Path, *, manifest: bool = True, config: str = CONFIG) -> CLIContext:
    (tmp_path / "shipyard.toml").write_text(config, encoding="utf-8")
    if manifest:
        (tmp_path / "tool.ron").write_text("Connector()", encoding="utf-8")
    config = load_config(tmp_path / "shipyard.toml")
    assert isinstance(config, Ok)
    return CLIContext(checkout=Checkout(root=tmp_path), config=config.value, console=MockConsole())


def console_of(ctx: CLIContext) -> MockConsole:
    assert isinstance(ctx.console, MockConsole)
    return ctx.console
