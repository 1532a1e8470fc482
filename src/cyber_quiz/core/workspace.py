"""Workspace directory that holds ``config/`` and ``logs/``."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

WORKSPACE_ENV = "CYBER_QUIZ_DATA_HOME"
DEFAULT_WORKSPACE = Path.home() / ".cyber-quiz-data"
SUBDIRECTORIES = ("config", "logs")


class WorkspaceError(RuntimeError):
    """Raised when the workspace layout cannot be prepared."""


@dataclass(frozen=True)
class WorkspaceLayout:
    home: Path
    directories: Mapping[str, Path]
    created: Mapping[str, bool]

    def path_for(self, key: str) -> Path:
        if key not in self.directories:
            raise KeyError(f"Unknown workspace directory '{key}'.")
        return self.directories[key]

    def items(self) -> tuple[tuple[str, Path], ...]:
        return tuple(self.directories.items())


def ensure_workspace(
    *,
    env: Optional[Mapping[str, str]] = None,
    path: Optional[Path] = None,
    create: bool = True,
) -> WorkspaceLayout:
    """Resolve the workspace root and (by default) create its directories.

    ``path`` beats ``CYBER_QUIZ_DATA_HOME``, which beats
    ``~/.cyber-quiz-data``. Only the default location is retried under the
    temp dir when it cannot be written; an explicit root fails loudly.
    """

    environ = os.environ if env is None else env
    explicit = path
    if explicit is None and (environ.get(WORKSPACE_ENV) or "").strip():
        explicit = Path(environ[WORKSPACE_ENV].strip())

    if explicit is not None:
        roots = [explicit.expanduser().absolute()]
    else:
        roots = [DEFAULT_WORKSPACE.expanduser().absolute()]
        if create and _fallback_base() != roots[0]:
            roots.append(_fallback_base())

    denied: Optional[PermissionError] = None
    for root in roots:
        try:
            return _layout_at(root, create=create)
        except PermissionError as exc:
            denied = exc
    raise WorkspaceError(f"Unable to prepare workspace at {roots[0]}") from denied


def _fallback_base() -> Path:
    return Path(tempfile.gettempdir()) / "cyber-quiz-data"


def _layout_at(root: Path, *, create: bool) -> WorkspaceLayout:
    if root.exists() and not root.is_dir():
        raise WorkspaceError(
            f"Configured workspace exists and is not a directory: {root}"
        )
    directories = {name: root / name for name in SUBDIRECTORIES}
    if create:
        created = {"home": _ensure_dir(root)}
        created.update(
            (name, _ensure_dir(target)) for name, target in directories.items()
        )
    else:
        created = dict.fromkeys(("home", *SUBDIRECTORIES), False)
    return WorkspaceLayout(
        home=root,
        directories=MappingProxyType(directories),
        created=MappingProxyType(created),
    )


def _ensure_dir(path: Path) -> bool:
    """Create ``path`` with owner-only permissions; report if it was new."""

    if path.exists():
        if not path.is_dir():
            raise WorkspaceError(f"Expected a directory at {path}")
        return False
    path.mkdir(parents=True, exist_ok=True)
    try:
        path.chmod(0o700)
    except (PermissionError, NotImplementedError):
        pass
    return True
