from leadwidget.assistant.citations import CITATION_PATTERN, clean_reply, strip_citations
from leadwidget.assistant.orchestrator import (
    AssistantRunOrchestrator,
    AssistantService,
    ConversationResolutionError,
    ExchangeClient,
    ExchangeError,
    InvalidExchangeError,
    MessageDeliveryError,
    RunFailedError,
    RunTimeoutError,
    ThreadCreationError,
)

__all__ = [
    "AssistantRunOrchestrator",
    "AssistantService",
    "CITATION_PATTERN",
    "ConversationResolutionError",
    "ExchangeClient",
    "ExchangeError",
    "InvalidExchangeError",
    "MessageDeliveryError",
    "RunFailedError",
    "RunTimeoutError",
    "ThreadCreationError",
    "clean_reply",
    "strip_citations",
]
