from __future__ import annotations

from typing import Any, Callable

# 세션에 등록되는 이벤트 콜백: 디코딩된 JSON 페이로드(없으면 None)를 받는다
EventCallback = Callable[[Any], None]

# 업스트림 이벤트 이름
EVENT_ORDER = "order"
EVENT_CANCEL_ORDER = "cancel_order"
EVENT_ORDER_COMPLETED = "order_completed"
