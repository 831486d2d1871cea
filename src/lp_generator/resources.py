"""Bundled prompt templates and example requests.

Files live inside the package under ``templates/`` and ``examples/``.
Setting LP_GENERATOR_PRIVATE_DIR to a directory with the same layout makes
its files win over the bundled ones.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

_PACKAGE_ROOT = Path(__file__).resolve().parent
PRIVATE_DIR_ENV = "LP_GENERATOR_PRIVATE_DIR"


def private_dir() -> Optional[Path]:
    configured = os.environ.get(PRIVATE_DIR_ENV, "").strip()
    if not configured:
        return None
    path = Path(configured).expanduser().resolve()
    return path if path.is_dir() else None


def resource_path(rel_path: str) -> Path:
    """Path of a resource, preferring the private override directory."""
    roots = [root for root in (private_dir(), _PACKAGE_ROOT) if root is not None]
    for root in roots:
        candidate = root / rel_path
        if candidate.exists():
            return candidate
    raise FileNotFoundError(f"Resource not found: {_PACKAGE_ROOT / rel_path}")


def read_text(rel_path: str) -> str:
    return resource_path(rel_path).read_text(encoding="utf-8")


def list_examples() -> List[str]:
    """Names of the bundled example request files."""
    return sorted(p.name for p in (_PACKAGE_ROOT / "examples").glob("*.yaml"))
