"""HTTP API for authoring journeys and suites and triggering runs."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel, Field

from journeyqa.src.loader.validation import validate_journey_data, validate_suite_data
from journeyqa.src.server.run_manager import RunInProgressError, RunManager
from journeyqa.src.server.store import (
    StoreError,
    YamlStore,
    build_journey_document,
    build_suite_document,
    list_reports,
)
from journeyqa.src.utils.config import AppConfig


class SaveRequest(BaseModel):
    filename: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)


def _expand_steps(raw: Any) -> list:
    items = raw if isinstance(raw, list) else []
    return [item if isinstance(item, dict) else {"action": item} for item in items]


def _expand_refs(raw: Any) -> list:
    items = raw if isinstance(raw, list) else []
    return [item if isinstance(item, dict) else {"path": item} for item in items]


def _errors_response(errors) -> JSONResponse:
    return JSONResponse(status_code=400, content={"errors": [error.to_dict() for error in errors]})


def create_app(config: Optional[AppConfig] = None, run_manager: Optional[RunManager] = None) -> FastAPI:
    config = config or AppConfig()
    journeys = YamlStore(Path(config.journeys_dir).resolve())
    suites = YamlStore(Path(config.suites_dir).resolve())
    manager = run_manager or RunManager(config)
    reports_dir = manager.reports_dir
    journeys_prefix = Path(os.path.relpath(journeys.root, suites.root)).as_posix()

    app = FastAPI(title="journeyqa", description="Natural-language web journey tester")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.run_manager = manager

    def _existing(store: YamlStore, filename: str) -> str:
        try:
            if not store.exists(filename):
                raise HTTPException(status_code=404, detail="Not found")
            return store.path_for(filename).name
        except StoreError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    def _read(store: YamlStore, filename: str) -> Dict[str, Any]:
        name = _existing(store, filename)
        try:
            return store.read(name)
        except StoreError as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc

    @app.get("/")
    async def root():
        return {"status": "ok", "active_run": getattr(manager.active(), "id", None)}

    # Journeys

    @app.get("/api/journeys")
    async def list_journeys():
        items = []
        for filename in journeys.list_files():
            try:
                data = journeys.read(filename)
            except StoreError:
                items.append({"filename": filename, "name": filename, "url": "", "step_count": 0})
                continue
            steps = data.get("steps") if isinstance(data.get("steps"), list) else []
            items.append(
                {
                    "filename": filename,
                    "name": str(data.get("name") or filename),
                    "url": str(data.get("url") or ""),
                    "step_count": len(steps),
                }
            )
        return items

    @app.get("/api/journeys/{filename}")
    async def get_journey(filename: str):
        data = _read(journeys, filename)
        data["steps"] = _expand_steps(data.get("steps"))
        return data

    @app.post("/api/journeys")
    async def create_journey(request: SaveRequest):
        errors = validate_journey_data(request.data)
        if errors:
            return _errors_response(errors)
        try:
            filename = journeys.path_for(request.filename or request.data.get("_filename") or "").name
        except StoreError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        if journeys.exists(filename):
            raise HTTPException(status_code=409, detail="File already exists")
        return {"filename": journeys.write(filename, build_journey_document(request.data))}

    @app.put("/api/journeys/{filename}")
    async def update_journey(filename: str, request: SaveRequest):
        name = _existing(journeys, filename)
        errors = validate_journey_data(request.data)
        if errors:
            return _errors_response(errors)
        return {"filename": journeys.write(name, build_journey_document(request.data))}

    @app.delete("/api/journeys/{filename}")
    async def delete_journey(filename: str):
        journeys.delete(_existing(journeys, filename))
        return {"ok": True}

    @app.get("/api/journey-files")
    async def journey_files():
        return journeys.list_files()

    # Suites

    @app.get("/api/suites")
    async def list_suites():
        items = []
        for filename in suites.list_files():
            try:
                data = suites.read(filename)
            except StoreError:
                items.append({"filename": filename, "name": filename, "journey_count": 0})
                continue
            refs = data.get("journeys") if isinstance(data.get("journeys"), list) else []
            items.append(
                {"filename": filename, "name": str(data.get("name") or filename), "journey_count": len(refs)}
            )
        return items

    @app.get("/api/suites/{filename}")
    async def get_suite(filename: str):
        data = _read(suites, filename)
        data["journeys"] = _expand_refs(data.get("journeys"))
        return data

    @app.post("/api/suites")
    async def create_suite(request: SaveRequest):
        errors = validate_suite_data(request.data)
        if errors:
            return _errors_response(errors)
        try:
            filename = suites.path_for(request.filename or request.data.get("_filename") or "").name
        except StoreError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        if suites.exists(filename):
            raise HTTPException(status_code=409, detail="File already exists")
        return {"filename": suites.write(filename, build_suite_document(request.data, journeys_prefix))}

    @app.put("/api/suites/{filename}")
    async def update_suite(filename: str, request: SaveRequest):
        name = _existing(suites, filename)
        errors = validate_suite_data(request.data)
        if errors:
            return _errors_response(errors)
        return {"filename": suites.write(name, build_suite_document(request.data, journeys_prefix))}

    @app.delete("/api/suites/{filename}")
    async def delete_suite(filename: str):
        suites.delete(_existing(suites, filename))
        return {"ok": True}

    # Reports

    @app.get("/api/reports")
    async def reports():
        return list_reports(reports_dir)

    @app.get("/reports/{filename}")
    async def report_file(filename: str):
        if "/" in filename or "\\" in filename or ".." in filename or not filename.endswith(".html"):
            raise HTTPException(status_code=400, detail="Invalid report name")
        path = reports_dir / filename
        if not path.is_file():
            raise HTTPException(status_code=404, detail="Not found")
        return FileResponse(path, media_type="text/html")

    # Runs

    def _start(kind: str, store: YamlStore, filename: str):
        name = _existing(store, filename)
        try:
            job = manager.start(kind, store.path_for(name))
        except RunInProgressError as exc:
            return JSONResponse(
                status_code=409, content={"error": "A run is already active", "run_id": exc.active.id}
            )
        return {"run_id": job.id}

    @app.post("/api/run/journey/{filename}")
    async def run_journey(filename: str):
        return _start("journey", journeys, filename)

    @app.post("/api/run/suite/{filename}")
    async def run_suite(filename: str):
        return _start("suite", suites, filename)

    @app.get("/api/run/{run_id}")
    async def run_status(run_id: str):
        job = manager.get(run_id)
        if job is None:
            raise HTTPException(status_code=404, detail="Run not found")
        return job.to_dict()

    return app


def serve(config: Optional[AppConfig] = None, host: str = "127.0.0.1", port: int = 3000) -> None:
    import uvicorn

    print(f"\njourneyqa UI API running at http://{host}:{port}\n")
    uvicorn.run(create_app(config), host=host, port=port)
