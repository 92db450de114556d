"""통합 Settings 모듈 - 환경변수 기반

이 모듈의 역할:
    1. 코드에 합리적인 기본값 제공
    2. 환경변수로 오버라이드 (우선순위 높음)
    3. 타입 안전성 보장 (Pydantic 자동 검증)

설정 우선순위:
    1. 환경변수 (최우선) - export EXPORTER_NAMESPACE=...
    2. .env 파일 - config/.env
    3. 코드 기본값 (settings.py 내부)

사용 예시:
    # 개발 환경 (기본값 사용)
    python main.py
    # → :8080/metrics, namespace=crypto

    # 프로덕션 (환경변수 오버라이드)
    export EXPORTER_LISTEN_ADDRESS=0.0.0.0:9100
    export LOG_LEVEL=DEBUG
    python main.py
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# 설정 파일 경로
config_dir = Path(__file__).parent.parent.parent / "config"


def env_settings(prefix: str) -> SettingsConfigDict:
    """환경변수 + .env 통합 설정

    Args:
        prefix: 환경변수 접두사 (예: EXPORTER_, WS_)

    Returns:
        Pydantic 설정 딕셔너리
    """
    return SettingsConfigDict(
        env_prefix=prefix,
        env_file=config_dir / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


class AppSettings(BaseSettings):
    """애플리케이션 일반 설정

    환경변수 오버라이드:
        APP_ENVIRONMENT: 실행 환경 (dev, prod, test) (기본: dev)
        APP_VERSION: 빌드 시 주입되는 버전 문자열
    """

    environment: str = "dev"
    debug: bool = False
    version: str = "UNKNOWN"

    model_config = env_settings("APP_")


class ExporterSettings(BaseSettings):
    """스크레이프 엔드포인트 설정

    환경변수 오버라이드:
        EXPORTER_LISTEN_ADDRESS: HTTP 리슨 주소 (기본: :8080)
        EXPORTER_ENDPOINT: 메트릭 노출 경로 (기본: /metrics)
        EXPORTER_NAMESPACE: 메트릭 네임스페이스 (기본: crypto)
    """

    listen_address: str = ":8080"
    endpoint: str = "/metrics"
    namespace: str = "crypto"

    model_config = env_settings("EXPORTER_")


class WebsocketSettings(BaseSettings):
    """WebSocket 설정 (환경변수 기반)

    환경변수 오버라이드 (모든 타이밍 설정은 초 단위):
        WS_PING_INTERVAL: Engine.IO ping 전송 간격 (기본: 10초)
        WS_PING_TIMEOUT: pong 대기 타임아웃 (기본: 5초)
        WS_RETRY_DELAY: 재연결 고정 대기 시간 (기본: 3초)
        WS_BITCOINTRADE_URL: Bitcointrade 스트림 엔드포인트
    """

    ping_interval: float = 10.0  # 수동 확인으로 정한 값
    ping_timeout: float = 5.0
    retry_delay: float = 3.0
    bitcointrade_url: str = (
        "wss://core.bitcointrade.com.br/socket.io/?EIO=3&transport=websocket"
    )

    model_config = env_settings("WS_")


class LoggingSettings(BaseSettings):
    """로깅 설정

    환경변수 오버라이드:
        LOG_LEVEL: 로깅 레벨 (기본: INFO)
        LOG_TO_FILE: 파일 로깅 여부 (기본: false, stderr/stdout만)
        LOG_DIR: 로그 디렉토리 (기본: logs)
    """

    level: str = "INFO"
    to_file: bool = False
    dir: str = "logs"

    model_config = env_settings("LOG_")


# ========================================
# 설정 인스턴스 (싱글톤)
# ========================================

app_settings = AppSettings()
exporter_settings = ExporterSettings()
websocket_settings = WebsocketSettings()
logging_settings = LoggingSettings()
