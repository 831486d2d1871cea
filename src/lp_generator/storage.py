"""Run folders for CLI generations, plus the zip bundle for markup kinds.

A run folder is named ``<utc timestamp>_<kind>[_<label slug>]`` and holds
``request.json``, ``meta.json``, ``warnings.json`` and either
``artifact.json`` or ``index.html``/``styles.css``/``bundle.zip``.
"""

from __future__ import annotations

import io
import json
import re
import zipfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

_SEPARATORS_RE = re.compile(r"[\s_/\\:;.,!?]+")
_DISALLOWED_RE = re.compile(r"[^\w-]", re.UNICODE)
_DASH_RUN_RE = re.compile(r"-{2,}")


def slugify(text: str, max_len: int = 60) -> str:
    """Lowercase *text*, turn separators into dashes and drop other punctuation.

    Japanese and other unicode letters survive, so request file names like
    ``春のキャンペーン.yaml`` still give a readable run name.
    """
    slug = _SEPARATORS_RE.sub("-", text.lower())
    slug = _DASH_RUN_RE.sub("-", _DISALLOWED_RE.sub("", slug))
    return slug.strip("-")[:max_len]


ARTIFACT_NAMES: Dict[str, str] = {
    "request": "request.json",
    "meta": "meta.json",
    "artifact": "artifact.json",
    "warnings": "warnings.json",
    "html": "index.html",
    "css": "styles.css",
}


@dataclass
class RunPaths:
    run_dir: Path

    @property
    def run_id(self) -> str:
        return self.run_dir.name

    @property
    def request_json(self) -> Path:
        return self.run_dir / ARTIFACT_NAMES["request"]

    @property
    def meta_json(self) -> Path:
        return self.run_dir / ARTIFACT_NAMES["meta"]

    @property
    def artifact_json(self) -> Path:
        return self.run_dir / ARTIFACT_NAMES["artifact"]

    @property
    def warnings_json(self) -> Path:
        return self.run_dir / ARTIFACT_NAMES["warnings"]

    @property
    def index_html(self) -> Path:
        return self.run_dir / ARTIFACT_NAMES["html"]

    @property
    def styles_css(self) -> Path:
        return self.run_dir / ARTIFACT_NAMES["css"]

    @property
    def bundle_zip(self) -> Path:
        return self.run_dir / "bundle.zip"


def create_run_dir(base_dir: str | Path, kind: str, label: str = "") -> RunPaths:
    base = Path(base_dir)
    base.mkdir(parents=True, exist_ok=True)

    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    parts = [stamp, kind]
    slug = slugify(label)
    if slug:
        parts.append(slug)
    run_dir = base / "_".join(parts)
    run_dir.mkdir(exist_ok=False)
    return RunPaths(run_dir)


def write_json(path: Path, data: Any) -> None:
    text = json.dumps(data, ensure_ascii=False, indent=2)
    path.write_text(f"{text}\n", encoding="utf-8")


def read_json(path: Path) -> Any:
    with path.open(encoding="utf-8") as fh:
        return json.load(fh)


def write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _run_dirs(base_dir: str | Path) -> List[Path]:
    """Run folders under *base_dir*, newest first (names start with a timestamp)."""
    base = Path(base_dir)
    if not base.is_dir():
        return []
    return sorted((p for p in base.iterdir() if p.is_dir()), key=lambda p: p.name, reverse=True)


def list_runs(base_dir: str | Path, limit: int = 20) -> List[str]:
    return [p.name for p in _run_dirs(base_dir)[:limit]]


def find_run_dir(base_dir: str | Path, run_id: str) -> Optional[Path]:
    """Exact run name first, then the newest run whose name starts with *run_id*."""
    candidates = _run_dirs(base_dir)
    for path in candidates:
        if path.name == run_id:
            return path
    return next((p for p in candidates if p.name.startswith(run_id)), None)


def artifact_path(run_dir: str | Path, name: str) -> Path:
    try:
        filename = ARTIFACT_NAMES[name]
    except KeyError:
        raise ValueError(f"Unknown artifact '{name}'. Choose from: {', '.join(ARTIFACT_NAMES)}") from None
    return Path(run_dir) / filename


def save_run_prompt(run_dir: Path, name: str, content: str) -> Path:
    """Store the first-attempt prompt under ``<run_dir>/prompts/<name>``."""
    path = run_dir / "prompts" / name
    write_text(path, content)
    return path


# ── Markup bundle ────────────────────────────────────────────────────────────

def build_bundle(html: str, css: str) -> bytes:
    """Package ``index.html`` and ``styles.css`` into a deflated zip."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr("index.html", html)
        archive.writestr("styles.css", css)
    return buffer.getvalue()
