from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

import httpx
from pydantic import TypeAdapter, ValidationError

from core.models import TOOL_NAME, ToolDescriptor, ToolResponse


# -----------------------------
# Exceptions (Business-level)
# -----------------------------
class MidiMcpClientError(Exception):
    """Base exception for SDK client."""


class NetworkError(MidiMcpClientError):
    """Connection/timeout/DNS issues."""


class HTTPError(MidiMcpClientError):
    """Non-2xx response from server."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"HTTP {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class ContractError(MidiMcpClientError):
    """Response JSON doesn't match the expected shape."""


_TOOLS_ADAPTER = TypeAdapter(List[ToolDescriptor])


def _normalize_base_url(base_url: str) -> str:
    base = (base_url or "").strip()
    if not base:
        base = "http://127.0.0.1:8000"
    return base.rstrip("/")


class MidiMcpClient:
    """
    HTTP client for the tool routes:
    - GET  /tools
    - POST /tools/call   {name, arguments}

    Tool failures come back as ToolResponse(is_error=True); only transport and
    contract problems raise.
    """

    def __init__(
        self,
        *,
        base_url: str = "http://127.0.0.1:8000",
        timeout_s: float = 30.0,
        http: Optional[httpx.Client] = None,
    ) -> None:
        self.base_url = _normalize_base_url(base_url)
        self._owns_http = http is None
        self.http = http or httpx.Client(timeout=httpx.Timeout(timeout_s))

    def close(self) -> None:
        if self._owns_http:
            self.http.close()

    def __enter__(self) -> "MidiMcpClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _request_json(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        try:
            r = self.http.request(method, url, **kwargs)
        except (httpx.TimeoutException, httpx.NetworkError, httpx.ConnectError) as e:
            raise NetworkError(str(e)) from e

        if r.status_code != 200:
            raise HTTPError(r.status_code, r.text)

        try:
            return r.json()
        except ValueError as e:
            raise ContractError(f"Invalid JSON in {method} {path} response: {e}") from e

    def list_tools(self) -> List[ToolDescriptor]:
        data = self._request_json("GET", "/tools")
        try:
            return _TOOLS_ADAPTER.validate_python(data)
        except ValidationError as e:
            raise ContractError(f"/tools response violates contract: {e}") from e

    def call_tool(self, name: str, arguments: Dict[str, Any]) -> ToolResponse:
        data = self._request_json("POST", "/tools/call", json={"name": name, "arguments": arguments})
        try:
            return ToolResponse.model_validate(data)
        except ValidationError as e:
            raise ContractError(f"/tools/call response violates contract: {e}") from e

    def create_midi(
        self,
        *,
        title: str,
        output_path: str,
        composition: Optional[Union[Dict[str, Any], str]] = None,
        composition_file: Optional[str] = None,
    ) -> ToolResponse:
        arguments: Dict[str, Any] = {"title": title, "output_path": output_path}
        if composition is not None:
            arguments["composition"] = composition
        if composition_file is not None:
            arguments["composition_file"] = composition_file
        return self.call_tool(TOOL_NAME, arguments)
