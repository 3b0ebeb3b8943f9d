"""REST API exposing catalog tool discovery and execution."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from flowcatalog.flowise_client import FlowiseAPIError, FlowiseNotConfiguredError
from flowcatalog.schemas import HealthResponse, ToolExecuteRequest, ToolExecuteResponse
from flowcatalog.tools.catalog_tools import CatalogContext, context_from_settings
from flowcatalog.tools.registry import ToolArgumentError, UnknownToolError, tool_registry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if getattr(app.state, "context", None) is None:
        app.state.context = context_from_settings()
    yield


app = FastAPI(title="Flow Catalog API", lifespan=lifespan)


def get_context(request: Request) -> CatalogContext:
    context = getattr(request.app.state, "context", None)
    if context is None:
        raise HTTPException(status_code=503, detail="Catalog not loaded")
    return context


@app.get("/health", response_model=HealthResponse)
def health(context: CatalogContext = Depends(get_context)):
    return HealthResponse(
        status="ok",
        definitions=len(context.store),
        templates=len(context.store.templates),
        platform_configured=context.client.configured,
    )


@app.get("/tools")
def list_tools_endpoint():
    return {"tools": tool_registry.list_tools()}


@app.post("/tools/execute", response_model=ToolExecuteResponse)
def execute_tool_endpoint(payload: ToolExecuteRequest, context: CatalogContext = Depends(get_context)):
    try:
        result = tool_registry.execute(payload.tool_id, payload.args, context)
    except ToolArgumentError as exc:
        return JSONResponse(status_code=422, content={"error": str(exc)})
    except UnknownToolError as exc:
        return JSONResponse(status_code=404, content={"error": str(exc)})
    except FlowiseNotConfiguredError as exc:
        return JSONResponse(status_code=503, content={"error": str(exc)})
    except FlowiseAPIError as exc:
        return JSONResponse(status_code=502, content={"error": str(exc)})
    except Exception as exc:
        logger.exception("Tool execution failed", extra={"tool_id": payload.tool_id})
        return JSONResponse(status_code=500, content={"error": str(exc)})
    return ToolExecuteResponse(tool_id=payload.tool_id, result=result)
