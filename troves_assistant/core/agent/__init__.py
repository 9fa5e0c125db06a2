from .history import ConversationStore, ConversationTurn
from .processor import AIQueryProcessor, QueryResult, extract_image_urls
from .tools import ToolExecutor, ToolOutcome, ToolRegistry, parse_tool_call

__all__ = [
    "AIQueryProcessor",
    "ConversationStore",
    "ConversationTurn",
    "QueryResult",
    "ToolExecutor",
    "ToolOutcome",
    "ToolRegistry",
    "extract_image_urls",
    "parse_tool_call",
]
