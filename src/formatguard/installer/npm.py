# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Install Node-based formatters into a private npm prefix."""

from __future__ import annotations

from pathlib import Path
from typing import Final

from ..errors import InstallError
from ..models import Executable, FormatterDefinition, InstallResult, InstallStrategy
from .base import StrategyHandler, executable_file_name, is_executable_file

# Entry scripts that can be launched with ``node`` when the ``.bin`` shim is missing.
ENTRY_SCRIPTS: Final[dict[str, tuple[str, ...]]] = {
    "prettier": ("prettier", "bin", "prettier.cjs"),
}


class NpmStrategy(StrategyHandler):
    """Provision Node-based tooling with cached installations."""

    strategy = InstallStrategy.NPM

    def install(self, definition: FormatterDefinition, version: str) -> InstallResult:
        home = self.tool_home(definition, version)
        cached = self._resolve(definition, home)
        if cached is not None:
            return InstallResult.success(
                f"Using cached {definition.id} {version} from {home}",
                tool_home=str(home),
                executable=cached,
            )

        self._require_network(definition, version)
        npm = self._require_tool("npm")
        home.mkdir(parents=True, exist_ok=True)
        self._run(
            [
                npm,
                "--prefix",
                str(home),
                "install",
                f"{definition.package_name}@{version}",
                "--silent",
                "--no-progress",
                "--no-fund",
                "--no-audit",
            ],
            cwd=home,
        )
        installed = self._resolve(definition, home)
        if installed is None:
            raise InstallError(f"npm install finished but no launcher for {definition.id} was found under {home}.")
        return InstallResult.success(
            f"Installed {definition.id} {version} via npm",
            tool_home=str(home),
            executable=installed,
        )

    def _resolve(self, definition: FormatterDefinition, home: Path) -> Executable | None:
        modules = home / "node_modules"
        launcher = modules / ".bin" / executable_file_name(definition.id, suffix=".cmd")
        if is_executable_file(launcher):
            return Executable(str(launcher))
        script_parts = ENTRY_SCRIPTS.get(definition.id.lower())
        if script_parts is None:
            return None
        script = modules.joinpath(*script_parts)
        if not script.is_file():
            return None
        node = self._context.which("node")
        if node is None:
            return None
        return Executable(node, (str(script),))


__all__ = ["ENTRY_SCRIPTS", "NpmStrategy"]
