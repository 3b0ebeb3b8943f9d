"""Thin REST wrapper around a running Flowise instance's chatflow endpoints."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import requests

from flowcatalog.schemas import ChatflowSummary

logger = logging.getLogger(__name__)


class FlowiseAPIError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class FlowiseNotConfiguredError(FlowiseAPIError):
    pass


def _raise_for_status(response: requests.Response, context: str) -> None:
    if response.status_code >= 400:
        snippet = (response.text or "").strip()
        if len(snippet) > 300:
            snippet = snippet[:300] + "..."
        raise FlowiseAPIError(f"{context} failed ({response.status_code}): {snippet}", response.status_code)


class FlowiseClient:
    def __init__(self, base_url: str, api_key: str = "", timeout: float = 30.0):
        self.base_url = (base_url or "").rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.base_url)

    def _request(self, method: str, endpoint: str, body: Optional[Dict[str, Any]] = None) -> Any:
        if not self.configured:
            raise FlowiseNotConfiguredError("FLOWISE_API_URL not configured. Set it in the .env file.")
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        url = f"{self.base_url}/api/v1{endpoint}"
        logger.debug("Flowise request", extra={"method": method, "url": url})
        response = requests.request(method, url, headers=headers, json=body, timeout=self.timeout)
        _raise_for_status(response, f"Flowise {method} {endpoint}")
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise FlowiseAPIError(
                f"Flowise {method} {endpoint} returned a non-JSON body: {exc}", response.status_code
            ) from exc

    def test_connection(self) -> Dict[str, Any]:
        if not self.configured:
            return {
                "connected": False,
                "error": "FLOWISE_API_URL not configured. Create a .env file with FLOWISE_API_URL and FLOWISE_API_KEY.",
            }
        try:
            chatflows = self._request("GET", "/chatflows")
        except (FlowiseAPIError, requests.RequestException) as exc:
            return {"connected": False, "url": self.base_url, "error": str(exc)}
        return {
            "connected": True,
            "url": self.base_url,
            "chatflows_count": len(chatflows) if isinstance(chatflows, list) else 0,
        }

    def list_chatflows(self) -> List[Dict[str, Any]]:
        chatflows = self._request("GET", "/chatflows") or []
        return [ChatflowSummary.model_validate(flow).model_dump() for flow in chatflows]

    def get_chatflow(self, chatflow_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/chatflows/{chatflow_id}")

    def create_chatflow(self, name: str, nodes: List[Any], edges: List[Any], deployed: bool = False) -> Dict[str, Any]:
        payload = {"name": name, "flowData": json.dumps({"nodes": nodes, "edges": edges}), "deployed": deployed}
        result = self._request("POST", "/chatflows", payload) or {}
        return {
            "success": True,
            "id": result.get("id"),
            "name": result.get("name"),
            "message": f'Chatflow "{name}" created successfully!',
            "url": f"{self.base_url}/chatflows/{result.get('id')}",
        }

    def update_chatflow(
        self,
        chatflow_id: str,
        name: Optional[str] = None,
        nodes: Optional[List[Any]] = None,
        edges: Optional[List[Any]] = None,
        deployed: Optional[bool] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if name:
            payload["name"] = name
        if nodes is not None and edges is not None:
            payload["flowData"] = json.dumps({"nodes": nodes, "edges": edges})
        if deployed is not None:
            payload["deployed"] = deployed
        result = self._request("PUT", f"/chatflows/{chatflow_id}", payload) or {}
        return {
            "success": True,
            "id": result.get("id"),
            "name": result.get("name"),
            "message": "Chatflow updated successfully!",
        }

    def delete_chatflow(self, chatflow_id: str) -> Dict[str, Any]:
        self._request("DELETE", f"/chatflows/{chatflow_id}")
        return {"success": True, "message": f"Chatflow {chatflow_id} deleted successfully!"}
