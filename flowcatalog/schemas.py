"""Pydantic schemas for the tool surface and HTTP API."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class FlowValidationResult(BaseModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class ToolExecuteRequest(BaseModel):
    tool_id: str
    args: Dict[str, Any] = Field(default_factory=dict)


class ToolExecuteResponse(BaseModel):
    tool_id: str
    result: Any


class HealthResponse(BaseModel):
    status: str
    definitions: int
    templates: int
    platform_configured: bool


class ChatflowSummary(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    deployed: Optional[bool] = None
    createdDate: Optional[str] = None
    updatedDate: Optional[str] = None
