from src.core.types._common_types import (
    OPERATION_ASK,
    OPERATION_BID,
    OPERATION_UNKNOWN,
    ConnectionState,
    ExchangeName,
    Operation,
    OrderEventKind,
    connection_state_format,
)
from src.core.types._exception_types import (
    ErrorCategory,
    ErrorCode,
    ErrorDomain,
    ExceptionGroup,
    RuleKind,
)
from src.core.types._payload_type import (
    EVENT_CANCEL_ORDER,
    EVENT_ORDER,
    EVENT_ORDER_COMPLETED,
    EventCallback,
)

__all__ = [
    # _common_types
    "ExchangeName",
    "Operation",
    "OrderEventKind",
    "OPERATION_BID",
    "OPERATION_ASK",
    "OPERATION_UNKNOWN",
    "ConnectionState",
    "connection_state_format",
    # _exception_types
    "ErrorDomain",
    "ErrorCode",
    "ErrorCategory",
    "ExceptionGroup",
    "RuleKind",
    # _payload_type
    "EventCallback",
    "EVENT_ORDER",
    "EVENT_CANCEL_ORDER",
    "EVENT_ORDER_COMPLETED",
]
