"""
excusemaster/api.py
─────────────────────────────────────────────────────────────────────────────
ExcuseMaster — Dual-mode API layer

TWO USAGE MODES:
  1. Importable module:
         from excusemaster.api import ExcuseMasterAPI
         api = ExcuseMasterAPI(config=ensure_config())
         excuses = api.generate("missed the team standup", category="Work")

  2. FastAPI HTTP server:
         python -m excusemaster.api                   # default: port 8766
         python -m excusemaster.api --port 9000
         uvicorn excusemaster.api:app --port 8766

ENDPOINTS:
  POST   /generate          — build prompt → call model → parse → save to history
  POST   /test-connection   — minimal request to validate key + reachability
  GET    /history           — saved excuses, newest first (?q= substring search)
  DELETE /history/{id}      — delete one saved excuse
  DELETE /history           — clear history
  GET    /config            — current settings (API key redacted)
  POST   /config            — update + persist settings
  GET    /health            — liveness

Generation is single-flight per API instance: a second request while one
is running gets 409 instead of queueing.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI, HTTPException, Query
from pydantic import BaseModel

from excusemaster import __version__
from excusemaster.config import ensure_config, redact_config, save_config
from excusemaster.errors import (
    ExcuseGeneratorError,
    GenerationInProgressError,
    InvalidAPIKeyError,
    InvalidURLError,
)
from excusemaster.history import HistoryStore
from excusemaster.llm.base import LLMAdapter
from excusemaster.llm.xai_adapter import XAIAdapter
from excusemaster.models.record import (
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
    Category,
    ExcuseRecord,
    GenerationRequest,
    Tone,
)

logger = logging.getLogger(__name__)

VERSION = __version__

EDITABLE_KEYS = ("api_key", "model", "temperature", "base_url", "history_path")


# ═══════════════════════════════════════════════════════════════════════════
# IMPORTABLE CLASS
# ═══════════════════════════════════════════════════════════════════════════

class ExcuseMasterAPI:
    """
    Pure-Python orchestration: settings → adapter → parser → history.
    No HTTP layer required — import and call directly.
    """

    def __init__(
        self,
        config:       Dict[str, Any],
        adapter:      Optional[LLMAdapter] = None,
        project_root: Optional[Path]       = None,
    ):
        self.config       = dict(config)
        self.project_root = project_root
        self.adapter      = adapter or self._make_adapter()
        self.history      = HistoryStore(self._history_path())
        self._busy        = threading.Lock()

    # ── INTERNAL ──────────────────────────────────────────────────────────

    def _make_adapter(self) -> XAIAdapter:
        return XAIAdapter(
            api_key  = self.config.get("api_key", ""),
            base_url = self.config.get("base_url", ""),
            model    = self.config.get("model") or DEFAULT_MODEL,
        )

    def _history_path(self) -> Path:
        path = Path(self.config.get("history_path") or "excuse_history.json")
        if self.project_root and not path.is_absolute():
            path = Path(self.project_root) / path
        return path

    # ── GENERATE ──────────────────────────────────────────────────────────

    def generate(
        self,
        situation:   str,
        category:    str             = Category.WORK.value,
        tone:        str             = Tone.PROFESSIONAL.value,
        details:     str             = "",
        model:       Optional[str]   = None,
        temperature: Optional[float] = None,
        save:        bool            = True,
    ) -> List[ExcuseRecord]:
        """
        Generate excuses and (optionally) prepend them to history.
        Raises ValueError for an unknown category/tone and
        ExcuseGeneratorError for transport failures.
        """
        request = GenerationRequest(
            situation   = situation,
            category    = Category.parse(category),
            tone        = Tone.parse(tone),
            details     = details,
            model       = model or self.config.get("model") or DEFAULT_MODEL,
            temperature = (
                temperature if temperature is not None
                else float(self.config.get("temperature", DEFAULT_TEMPERATURE))
            ),
        )

        if not self._busy.acquire(blocking=False):
            raise GenerationInProgressError()
        try:
            logger.info(
                f"Generating | category={request.category_label} "
                f"tone={request.tone_label} model={request.model}"
            )
            excuses = self.adapter.generate(request)
        finally:
            self._busy.release()

        if save:
            self.history.prepend(excuses)
        return excuses

    @property
    def generating(self) -> bool:
        return self._busy.locked()

    def test_connection(self) -> bool:
        return self.adapter.test_connection()

    # ── HISTORY ───────────────────────────────────────────────────────────

    def get_history(self, query: str = "") -> List[ExcuseRecord]:
        return self.history.search(query)

    def delete_excuse(self, excuse_id: str) -> bool:
        return self.history.delete(excuse_id)

    def clear_history(self) -> None:
        self.history.clear()

    # ── CONFIG ────────────────────────────────────────────────────────────

    def update_config(self, updates: Dict[str, Any], persist: bool = True) -> Dict[str, Any]:
        """Apply known keys, rebuild the adapter and history store."""
        unknown = set(updates) - set(EDITABLE_KEYS)
        if unknown:
            raise ValueError(f"Unknown config keys: {sorted(unknown)}")
        self.config.update(updates)
        self.adapter = self._make_adapter()
        self.history = HistoryStore(self._history_path())
        if persist:
            save_config(self.config, self.project_root)
        return self.config


# ═══════════════════════════════════════════════════════════════════════════
# FASTAPI HTTP APP
# ═══════════════════════════════════════════════════════════════════════════

class GenerateBody(BaseModel):
    situation:   str
    category:    str             = Category.WORK.value
    tone:        str             = Tone.PROFESSIONAL.value
    details:     str             = ""
    model:       Optional[str]   = None
    temperature: Optional[float] = None
    save:        bool            = True


def _status_for(exc: ExcuseGeneratorError) -> int:
    if isinstance(exc, GenerationInProgressError):
        return 409
    if isinstance(exc, (InvalidAPIKeyError, InvalidURLError)):
        return 400
    return 502


def _build_app(api: Optional[ExcuseMasterAPI] = None) -> FastAPI:
    """
    Build and return the FastAPI application instance.
    Without an explicit api, settings come from ensure_config() in cwd.
    `app` below defers this call until uvicorn asks for it.
    """
    _api = api or ExcuseMasterAPI(config=ensure_config(Path.cwd()), project_root=Path.cwd())

    _app = FastAPI(
        title       = "ExcuseMaster API",
        description = "Structured excuse generation over an OpenAI-compatible chat endpoint",
        version     = VERSION,
        docs_url    = "/docs",
        redoc_url   = None,
    )

    # ── ENDPOINTS ───────────────────────────────────────────────────────

    @_app.post("/generate", summary="Generate three excuses")
    def generate(req: GenerateBody):
        """
        Build the prompt, call the model, parse the reply.
        Always returns at least one excuse when the model answered;
        an unstructured reply comes back as one raw-text excuse.
        """
        try:
            excuses = _api.generate(
                situation   = req.situation,
                category    = req.category,
                tone        = req.tone,
                details     = req.details,
                model       = req.model,
                temperature = req.temperature,
                save        = req.save,
            )
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        except ExcuseGeneratorError as exc:
            raise HTTPException(status_code=_status_for(exc), detail=exc.message)
        return {"count": len(excuses), "excuses": [e.to_dict() for e in excuses]}

    @_app.post("/test-connection", summary="Validate API key and reachability")
    def test_connection():
        try:
            _api.test_connection()
        except ExcuseGeneratorError as exc:
            return {"ok": False, "message": exc.message}
        return {"ok": True, "message": "Connection successful."}

    @_app.get("/history", summary="List saved excuses")
    def get_history(q: str = Query("", description="Substring search over text and rationale")):
        data = _api.get_history(q)
        return {"count": len(data), "excuses": [e.to_dict() for e in data]}

    @_app.delete("/history/{excuse_id}", summary="Delete one saved excuse")
    def delete_excuse(excuse_id: str):
        if not _api.delete_excuse(excuse_id):
            raise HTTPException(status_code=404, detail=f"Excuse not found: {excuse_id}")
        return {"status": "ok"}

    @_app.delete("/history", summary="Clear history")
    def clear_history():
        _api.clear_history()
        return {"status": "ok"}

    @_app.get("/config", summary="Current settings")
    def get_config():
        return {"config": redact_config(_api.config)}

    @_app.post("/config", summary="Save settings")
    def save_config_endpoint(update: Dict[str, Any] = Body(default_factory=dict)):
        try:
            config = _api.update_config(update or {})
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        return {"status": "ok", "config": redact_config(config)}

    @_app.get("/health", summary="Health check")
    def health():
        return {
            "status":     "ok",
            "generating": _api.generating,
            "version":    VERSION,
        }

    return _app


# Module-level app for `uvicorn excusemaster.api:app`. Built on first
# attribute access so importing this module never reads config from cwd.
_default_app: Optional[FastAPI] = None


def __getattr__(name: str):
    global _default_app
    if name == "app":
        if _default_app is None:
            _default_app = _build_app()
        return _default_app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")



# ═══════════════════════════════════════════════════════════════════════════
# CLI ENTRYPOINT — python -m excusemaster.api
# ═══════════════════════════════════════════════════════════════════════════

if __name__ == "__main__":
    import argparse

    import uvicorn

    parser = argparse.ArgumentParser(
        prog        = "excusemaster.api",
        description = "ExcuseMaster API Server",
    )
    parser.add_argument("--port", type=int, default=8766,
                        help="Port to bind (default: 8766)")
    parser.add_argument("--host", type=str, default="127.0.0.1",
                        help="Host to bind (default: 127.0.0.1)")
    args = parser.parse_args()

    logging.basicConfig(
        level   = logging.INFO,
        format  = '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt = '%H:%M:%S',
    )

    print(f"""
+--------------------------------------------------+
|   ExcuseMaster API Server v{VERSION}                 |
+--------------------------------------------------+
|  Local:    http://{args.host}:{args.port}
|  Docs:     http://{args.host}:{args.port}/docs
+--------------------------------------------------+
""")

    uvicorn.run(_build_app(), host=args.host, port=args.port, log_level="info")
