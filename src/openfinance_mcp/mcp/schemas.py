import json
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

JSONRPC_VERSION = "2.0"

RequestId = Union[str, int, float]


class InputSchema(BaseModel):
    """JSON Schema object describing a tool's arguments."""
    model_config = ConfigDict(frozen=True)

    type: str = "object"
    properties: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    required: List[str] = Field(default_factory=list)


class ToolDescriptor(BaseModel):
    """A tool as advertised by ``tools/list``. No outputSchema is ever declared."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., min_length=1)
    description: str
    input_schema: InputSchema = Field(..., alias="inputSchema")

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


def is_valid_id(value: Any) -> bool:
    """JSON-RPC ids are strings or numbers; JSON booleans are neither."""
    return isinstance(value, (str, int, float)) and not isinstance(value, bool)


def text_content(payload: Any) -> Dict[str, Any]:
    """Wrap a tool payload as MCP text content (JSON-encoded unless already text)."""
    if isinstance(payload, str):
        text = payload
    else:
        text = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    return {"content": [{"type": "text", "text": text}]}


def rpc_result(request_id: Optional[RequestId], result: Any) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def rpc_error(request_id: Optional[RequestId], code: int, message: str) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": {"code": code, "message": message}}
