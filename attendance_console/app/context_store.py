from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

DEFAULT_CONTEXT_FILE = Path.home() / ".attendance_console_view_context.json"


def _context_path() -> Path:
    configured = os.getenv("ATTENDANCE_CONTEXT_PATH", "").strip()
    return Path(configured) if configured else DEFAULT_CONTEXT_FILE


def load_context() -> dict[str, Any]:
    path = _context_path()
    if not path.exists():
        return {}
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        return payload if isinstance(payload, dict) else {}
    except (ValueError, OSError):
        return {}


def save_context(payload: dict[str, Any]) -> None:
    path = _context_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")


def clear_context() -> None:
    path = _context_path()
    if path.exists():
        path.unlink()


class FileContextPersistence:
    """Keeps one module's serialized query parameters in the shared context file."""

    def __init__(self, module: str) -> None:
        self.module = module

    def load(self) -> dict[str, str]:
        views = load_context().get("views_by_module", {})
        params = views.get(self.module) if isinstance(views, dict) else None
        if not isinstance(params, dict):
            return {}
        return {str(key): str(value) for key, value in params.items()}

    def save(self, params: dict[str, str]) -> None:
        payload = load_context()
        views = payload.get("views_by_module")
        if not isinstance(views, dict):
            views = {}
        if params:
            views[self.module] = dict(params)
        else:
            views.pop(self.module, None)
        payload["views_by_module"] = views
        save_context(payload)
