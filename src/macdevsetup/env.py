# env.py
from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Dict, Mapping, Optional, Tuple


@dataclass(frozen=True)
class EnvironmentContext:
    """
    The environment steps see, as a value.

    Steps never touch os.environ. An action that changes PATH or exports a
    variable returns a new context and the orchestrator hands it to the
    following steps.
    """
    variables: Mapping[str, str] = field(default_factory=dict)
    path: Tuple[str, ...] = ()

    @classmethod
    def from_os(cls, environ: Optional[Mapping[str, str]] = None) -> "EnvironmentContext":
        source = dict(os.environ if environ is None else environ)
        raw_path = source.pop("PATH", "")
        parts = tuple(p for p in raw_path.split(os.pathsep) if p)
        return cls(variables=source, path=parts)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        if key == "PATH":
            return self.path_string()
        return self.variables.get(key, default)

    def path_string(self) -> str:
        return os.pathsep.join(self.path)

    def prepend_path(self, directory: str) -> "EnvironmentContext":
        """Put *directory* first on PATH (moving it if already present)."""
        rest = tuple(p for p in self.path if p != directory)
        return replace(self, path=(directory,) + rest)

    def with_variable(self, key: str, value: str) -> "EnvironmentContext":
        if key == "PATH":
            parts = tuple(p for p in value.split(os.pathsep) if p)
            return replace(self, path=parts)
        merged: Dict[str, str] = dict(self.variables)
        merged[key] = value
        return replace(self, variables=merged)

    def with_homebrew(self, prefix: str) -> "EnvironmentContext":
        """Same effect as `eval "$(brew shellenv)"` for the given prefix."""
        ctx = self
        ctx = ctx.with_variable("HOMEBREW_PREFIX", prefix)
        ctx = ctx.with_variable("HOMEBREW_CELLAR", f"{prefix}/Cellar")
        repo = f"{prefix}/Homebrew" if prefix == "/usr/local" else prefix
        ctx = ctx.with_variable("HOMEBREW_REPOSITORY", repo)
        infopath = self.variables.get("INFOPATH", "")
        ctx = ctx.with_variable("INFOPATH", f"{prefix}/share/info:{infopath}")
        ctx = ctx.prepend_path(f"{prefix}/sbin")
        ctx = ctx.prepend_path(f"{prefix}/bin")
        return ctx

    @property
    def brew_prefix(self) -> Optional[str]:
        return self.variables.get("HOMEBREW_PREFIX")

    def as_environ(self) -> Dict[str, str]:
        """A full mapping suitable for subprocess(env=...)."""
        out = dict(self.variables)
        out["PATH"] = self.path_string()
        return out
