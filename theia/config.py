from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # --- app ---
    app_name: str = "THEIA Host Monitor"
    debug: bool = False

    # --- polling ---
    poll_interval: float = Field(10.0, gt=0)  # seconds between poll cycles
    highlight_window: float = Field(30.0, gt=0)  # seconds a new record stays highlighted
    process_limit: int = Field(50, gt=0)
    command_timeout: float = Field(30.0, gt=0)

    # --- monitored kinds ---
    monitor_connections: bool = True
    monitor_processes: bool = True

    # --- command overrides (None = platform default) ---
    connections_command: str | None = None
    processes_command: str | None = None
    benign_stderr_markers: list[str] = ["Permission denied"]

    # --- server ---
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: list[str] = ["http://localhost:5173"]

    model_config = {"env_file": ".env", "env_prefix": "THEIA_"}


settings = Settings()
