"""Wire models for the adapter service HTTP API."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from adapter_runtime.core.types import AdapterType, InvocationResult


class AdapterRequest(BaseModel):
    """Body of ``POST /run-adapter``."""

    model_config = ConfigDict(populate_by_name=True)

    adapter_id: str = Field(..., alias="adapterId")
    input: str | None = None
    context: dict[str, Any] = Field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class AdapterResponse(BaseModel):
    """Body returned by ``POST /run-adapter``."""

    status: Literal["ok", "error"]
    output: str | None = None
    data: dict[str, Any] | None = None
    error: str | None = None

    def to_result(self) -> InvocationResult:
        if self.status == "error":
            return InvocationResult.failure(self.error or "Adapter reported an error")
        return InvocationResult.ok(output=self.output, data=self.data)


class AdapterMetadata(BaseModel):
    """One entry of the discovery listing."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    type: AdapterType
    name: str
    description: str = ""
    version: str = ""
    capabilities: list[str] = Field(default_factory=list)
    input_schema: dict[str, Any] | None = Field(default=None, alias="inputSchema")
    output_schema: dict[str, Any] | None = Field(default=None, alias="outputSchema")


class AdapterDiscoveryResponse(BaseModel):
    """Body returned by ``GET /adapters``."""

    adapters: list[AdapterMetadata] = Field(default_factory=list)
    total: int = 0
    timestamp: datetime | None = None
