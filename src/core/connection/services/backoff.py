from __future__ import annotations

from src.core.dto.internal.common import ConnectionPolicyDomain


def compute_next_backoff(policy: ConnectionPolicyDomain) -> float:
    """고정 백오프 계산 (지터/지수 증가 없음).

    연결 변동이 적은 운영 환경을 전제로 매 재시도마다 같은 간격을 기다립니다.

    Args:
        policy: 백오프 파라미터가 담긴 정책 객체

    Returns:
        다음 대기 시간(초)
    """
    return max(0.0, float(policy.retry_delay))
