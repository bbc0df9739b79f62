"""Configuration via environment variables with OKX_BOOK_ prefix."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "OKX_BOOK_"}

    # REST snapshot
    rest_url: str = "https://www.okx.com"
    request_timeout: float = 30.0
    user_agent: str = "okx-book/0.1"

    # WebSocket
    ws_url: str = "wss://ws.okx.com:8443/ws/v5/public"
    channel_capacity: int = 100

    # Instrument
    symbol: str = "BTC-USDT"
    update_count: int = 10  # 0 = run until the stream ends

    # Metrics (0 disables the HTTP endpoint)
    metrics_port: int = 0

    # Logging
    log_level: str = "INFO"
