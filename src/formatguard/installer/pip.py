# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Install Python formatters into a private virtual environment."""

from __future__ import annotations

import sys
from pathlib import Path

from ..errors import InstallError
from ..models import Executable, FormatterDefinition, InstallResult, InstallStrategy
from .base import InstallContext, StrategyHandler, executable_file_name, is_executable_file, is_windows


def _venv_bin(venv: Path) -> Path:
    return venv / ("Scripts" if is_windows() else "bin")


class PipStrategy(StrategyHandler):
    """Provision Python tooling inside ``<tool home>/venv``."""

    strategy = InstallStrategy.PIP

    def __init__(self, context: InstallContext, *, python: str | None = None) -> None:
        super().__init__(context)
        self._python = python or sys.executable

    def install(self, definition: FormatterDefinition, version: str) -> InstallResult:
        home = self.tool_home(definition, version)
        venv = home / "venv"
        launcher = _venv_bin(venv) / executable_file_name(definition.id)
        if is_executable_file(launcher):
            return InstallResult.success(
                f"Using cached {definition.id} {version} from {home}",
                tool_home=str(home),
                executable=Executable(str(launcher)),
            )

        self._require_network(definition, version)
        pip = _venv_bin(venv) / executable_file_name("pip")
        if not is_executable_file(pip):
            home.mkdir(parents=True, exist_ok=True)
            self._run([self._python, "-m", "venv", str(venv)], cwd=home)
        self._run([str(pip), "install", "--no-input", f"{definition.package_name}=={version}"], cwd=home)
        if not is_executable_file(launcher):
            raise InstallError(f"pip install finished but {launcher} does not exist.")
        return InstallResult.success(
            f"Installed {definition.id} {version} via pip",
            tool_home=str(home),
            executable=Executable(str(launcher)),
        )


__all__ = ["PipStrategy"]
