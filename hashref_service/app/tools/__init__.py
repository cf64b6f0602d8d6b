from hashref_service.app.tools.base import BaseTool, ReadRecord, ToolResult
from hashref_service.app.tools.registry import ToolRegistry

__all__ = [
    "BaseTool",
    "ReadRecord",
    "ToolRegistry",
    "ToolResult",
]
