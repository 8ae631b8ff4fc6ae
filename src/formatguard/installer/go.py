# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Resolve Go toolchain formatters and ``go install`` the ones not bundled."""

from __future__ import annotations

from ..errors import InstallError
from ..models import Executable, FormatterDefinition, InstallResult, InstallStrategy
from .base import StrategyHandler, executable_file_name, is_executable_file


def go_module_version(version: str) -> str:
    """Return ``version`` in the form ``go install`` expects (``1.2.3`` -> ``v1.2.3``)."""

    return f"v{version}" if version[:1].isdigit() else version


class GoStrategy(StrategyHandler):
    """Prefer ``PATH``; fall back to ``go install`` for definitions with a module path.

    Definitions without a ``package`` are treated as bundled with the Go
    toolchain (``gofmt``) and are never fetched.
    """

    strategy = InstallStrategy.GO

    def install(self, definition: FormatterDefinition, version: str) -> InstallResult:
        on_path = self._context.which(definition.id)
        if on_path is not None:
            return InstallResult.success(
                f"Resolved {definition.id} from PATH",
                tool_home=None,
                executable=Executable(on_path),
            )
        if definition.package is None:
            raise InstallError(f"{definition.id} was not found on PATH; install the Go toolchain to provide it.")

        home = self.tool_home(definition, version)
        bin_dir = home / "bin"
        launcher = bin_dir / executable_file_name(definition.id)
        if is_executable_file(launcher):
            return InstallResult.success(
                f"Using cached {definition.id} {version} from {home}",
                tool_home=str(home),
                executable=Executable(str(launcher)),
            )

        self._require_network(definition, version)
        go = self._require_tool("go")
        bin_dir.mkdir(parents=True, exist_ok=True)
        self._run(
            [go, "install", f"{definition.package}@{go_module_version(version)}"],
            cwd=home,
            env={"GOBIN": str(bin_dir)},
        )
        if not is_executable_file(launcher):
            raise InstallError(f"go install finished but {launcher} does not exist.")
        return InstallResult.success(
            f"Installed {definition.id} {version} via go install",
            tool_home=str(home),
            executable=Executable(str(launcher)),
        )


__all__ = ["GoStrategy", "go_module_version"]
