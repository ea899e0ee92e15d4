"""FastAPI service exposing one workflow orchestrator to a browser front-end."""

from __future__ import annotations

import os
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .config import ImageResolution, get_settings
from .credentials import StaticCredentialProvider, credentials_from_settings
from .errors import CredentialRequiredError, WorkflowBusyError
from .export import docx_bytes, script_to_json
from .openai_backend import OpenAIBackend
from .orchestrator import WorkflowOrchestrator

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

app = FastAPI(title="NovaScript Workflow")


def _add_cors(app: FastAPI) -> None:
    """Allow the browser front-end to call the API during local development."""
    allow_all = os.getenv("CORS_ALLOW_ALL", "true").lower() == "true"
    origins_env = os.getenv("CORS_ALLOW_ORIGINS", "")
    origins = [o.strip() for o in origins_env.split(",") if o.strip()]
    allow_credentials = (
        os.getenv("CORS_ALLOW_CREDENTIALS", "true").lower() == "true"
    )
    if allow_all or not origins:
        origins = ["*"]
    if origins == ["*"] and allow_credentials:
        # Starlette/FastAPI disallow wildcard origins when credentials are enabled.
        allow_credentials = False
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )


_add_cors(app)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WorkflowRequest(_CamelModel):
    topic: str
    resolution: Optional[ImageResolution] = None


class CredentialRequest(_CamelModel):
    api_key: str = Field(..., min_length=1)


_CREDENTIALS: StaticCredentialProvider | None = None
_ORCHESTRATOR: WorkflowOrchestrator | None = None


def get_credentials() -> StaticCredentialProvider:
    global _CREDENTIALS
    if _CREDENTIALS is None:
        _CREDENTIALS = credentials_from_settings()
    return _CREDENTIALS


def get_orchestrator() -> WorkflowOrchestrator:
    """Lazily build the process-wide orchestrator on first use."""
    global _ORCHESTRATOR
    if _ORCHESTRATOR is None:
        credentials = get_credentials()
        backend = OpenAIBackend(credentials, settings=get_settings())
        _ORCHESTRATOR = WorkflowOrchestrator(backend, credentials)
    return _ORCHESTRATOR


def _snapshot_body() -> Dict[str, Any]:
    snapshot = get_orchestrator().snapshot()
    body = snapshot.model_dump(by_alias=True, mode="json")
    body["stageLabel"] = snapshot.stage.label
    body["isBusy"] = snapshot.is_busy
    return body


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/credential")
async def credential_status() -> Dict[str, bool]:
    return {"selected": await get_credentials().has_selected()}


@app.put("/credential", status_code=status.HTTP_204_NO_CONTENT)
async def select_credential(payload: CredentialRequest) -> Response:
    try:
        get_credentials().set_key(payload.api_key)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/workflow")
async def workflow_state() -> Dict[str, Any]:
    return _snapshot_body()


@app.post("/workflow")
async def start_workflow(payload: WorkflowRequest) -> JSONResponse:
    """
    Run the workflow for a topic and return the final snapshot.

    A failed run still answers 200: the snapshot's stage is ``idle`` and the
    activity log carries the halt line, the same view the browser renders.
    """
    if not payload.topic.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="topic must not be blank."
        )
    orchestrator = get_orchestrator()
    try:
        await orchestrator.run_workflow(payload.topic, payload.resolution)
    except WorkflowBusyError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except CredentialRequiredError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)
        ) from exc
    return JSONResponse(status_code=status.HTTP_200_OK, content=_snapshot_body())


def _current_script():
    orchestrator = get_orchestrator()
    snapshot = orchestrator.snapshot()
    if snapshot.script is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="No script has been generated yet."
        )
    return orchestrator, snapshot


@app.get("/workflow/script.json")
async def export_script_json() -> Response:
    orchestrator, snapshot = _current_script()
    body = script_to_json(snapshot.script)
    orchestrator.record_activity("CACHED.")
    return Response(content=body, media_type="application/json")


@app.get("/workflow/script.docx")
async def export_script_docx() -> Response:
    orchestrator, snapshot = _current_script()
    content = docx_bytes(snapshot.script, snapshot.topic)
    orchestrator.record_activity("EXPORTED.")
    return Response(
        content=content,
        media_type=DOCX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="novascript.docx"'},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "novascript.server:app",
        host=os.getenv("NOVASCRIPT_HOST", "0.0.0.0"),
        port=int(os.getenv("NOVASCRIPT_PORT", "8000")),
        reload=os.getenv("NOVASCRIPT_RELOAD", "false").lower() == "true",
    )
