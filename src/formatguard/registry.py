# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Formatter registry providing lookup by id or file extension."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

from .errors import RegistryError
from .models import ARGS_PLACEHOLDER, EXE_PLACEHOLDER, FILE_PLACEHOLDER, FormatterDefinition, InstallStrategy


class FormatterRegistry(Mapping[str, FormatterDefinition]):
    """Immutable catalog of allow-listed formatters.

    ``FormatterRegistry`` behaves like a read-only mapping whose keys are
    formatter ids. It is built once and never mutated, so it can be shared
    between threads without locking.
    """

    def __init__(self, definitions: Iterable[FormatterDefinition]) -> None:
        """Build the registry and its extension index.

        Args:
            definitions: Formatter definitions to register.

        Raises:
            RegistryError: If ids collide or a definition is malformed.
        """

        by_id: dict[str, FormatterDefinition] = {}
        by_extension: dict[str, list[str]] = defaultdict(list)
        for definition in definitions:
            _check_definition(definition)
            key = definition.id.lower()
            if key in by_id:
                raise RegistryError(f"Formatter '{definition.id}' already registered")
            by_id[key] = definition
        for key in sorted(by_id):
            for extension in by_id[key].supported_extensions:
                by_extension[extension.lower()].append(key)
        self._by_id: Mapping[str, FormatterDefinition] = MappingProxyType(by_id)
        self._by_extension: Mapping[str, tuple[str, ...]] = MappingProxyType(
            {extension: tuple(ids) for extension, ids in by_extension.items()},
        )

    def find_by_id(self, formatter_id: str) -> FormatterDefinition | None:
        """Return the definition registered under ``formatter_id`` (case-insensitive)."""

        return self._by_id.get(formatter_id.strip().lower())

    def find_by_extension(self, extension: str) -> list[FormatterDefinition]:
        """Return definitions claiming ``extension`` ordered by id.

        Args:
            extension: File extension with or without a leading dot.

        Returns:
            list[FormatterDefinition]: Matching definitions, empty when none are registered.
        """

        key = extension.strip().lstrip(".").lower()
        return [self._by_id[formatter_id] for formatter_id in self._by_extension.get(key, ())]

    def extensions(self) -> frozenset[str]:
        """Return every extension claimed by at least one formatter."""

        return frozenset(self._by_extension)

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._by_id))

    def __getitem__(self, formatter_id: str) -> FormatterDefinition:
        return self._by_id[formatter_id.lower()]


def _check_definition(definition: FormatterDefinition) -> None:
    """Reject definitions that could never be executed safely."""

    if not definition.id.strip():
        raise RegistryError("Formatter definitions require a non-empty id")
    if not definition.supported_extensions:
        raise RegistryError(f"Formatter '{definition.id}' must support at least one extension")
    if not definition.install_strategies:
        raise RegistryError(f"Formatter '{definition.id}' must allow at least one install strategy")
    if not definition.command_template or definition.command_template[0] != EXE_PLACEHOLDER:
        raise RegistryError(f"Formatter '{definition.id}' command template must start with {EXE_PLACEHOLDER}")
    if definition.command_template.count(FILE_PLACEHOLDER) != 1:
        raise RegistryError(f"Formatter '{definition.id}' command template must reference {FILE_PLACEHOLDER} once")


def _definition(
    formatter_id: str,
    display_name: str,
    *,
    extensions: Iterable[str],
    strategies: Iterable[InstallStrategy],
    allowed_args: Iterable[str],
    template: tuple[str, ...] | None = None,
    package: str | None = None,
) -> FormatterDefinition:
    kwargs = {} if template is None else {"command_template": template}
    return FormatterDefinition(
        id=formatter_id,
        display_name=display_name,
        supported_extensions=frozenset(extensions),
        install_strategies=frozenset(strategies),
        allowed_args=frozenset(allowed_args),
        package=package,
        **kwargs,
    )


C_FAMILY_EXTENSIONS = ("c", "cc", "cpp", "cxx", "h", "hpp", "hh", "hxx")

DEFAULT_DEFINITIONS: tuple[FormatterDefinition, ...] = (
    _definition(
        "prettier",
        "Prettier",
        extensions=("js", "ts", "jsx", "tsx", "json", "css", "scss", "html", "htm", "md", "yaml", "yml"),
        strategies=(InstallStrategy.NPM,),
        allowed_args=("--write", "--log-level=warn", "--parser=html", "--parser=yaml"),
    ),
    _definition(
        "black",
        "Black",
        extensions=("py", "pyi"),
        strategies=(InstallStrategy.PIP,),
        allowed_args=("--quiet",),
    ),
    _definition(
        "ruff",
        "Ruff Format",
        extensions=("py", "pyi"),
        strategies=(InstallStrategy.PIP,),
        allowed_args=("--quiet",),
        template=(EXE_PLACEHOLDER, "format", ARGS_PLACEHOLDER, FILE_PLACEHOLDER),
    ),
    _definition(
        "gofmt",
        "gofmt",
        extensions=("go",),
        strategies=(InstallStrategy.GO,),
        allowed_args=("-w",),
    ),
    _definition(
        "yamlfmt",
        "yamlfmt",
        extensions=("yaml", "yml"),
        strategies=(InstallStrategy.GO,),
        allowed_args=("-w",),
        package="github.com/google/yamlfmt/cmd/yamlfmt",
    ),
    _definition(
        "clang-format",
        "clang-format",
        extensions=C_FAMILY_EXTENSIONS,
        strategies=(InstallStrategy.BINARY,),
        allowed_args=("-i",),
    ),
    _definition(
        "shfmt",
        "shfmt",
        extensions=("sh", "bash"),
        strategies=(InstallStrategy.BINARY,),
        allowed_args=("-w",),
    ),
    _definition(
        "stylua",
        "StyLua",
        extensions=("lua",),
        strategies=(InstallStrategy.BINARY,),
        allowed_args=("--search-parent-directories",),
    ),
)


def build_default_registry() -> FormatterRegistry:
    """Return the registry populated with the built-in formatter catalog."""

    return FormatterRegistry(DEFAULT_DEFINITIONS)


__all__ = ["C_FAMILY_EXTENSIONS", "DEFAULT_DEFINITIONS", "FormatterRegistry", "build_default_registry"]
