# ========================= config.py =========================
from dataclasses import dataclass, field
from typing import Optional

@dataclass
class LayoutConfig:
    mode: str = "full"                 # "full" or "whites"
    custom_path: Optional[str] = None  # JSON note -> key, overrides mode

@dataclass
class PlaybackConfig:
    speed: float = 1.0  # 1.0 = original tempo

@dataclass
class LiveConfig:
    device_id: Optional[int] = None  # None = system default input
    poll_interval: float = 0.001     # seconds between empty polls
    read_size: int = 64

@dataclass
class LogConfig:
    level: str = "INFO"
    log_dir: Optional[str] = None  # None = ./logs
    max_bytes: int = 2 * 1024 * 1024
    backup_count: int = 3

@dataclass
class AppConfig:
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    playback: PlaybackConfig = field(default_factory=PlaybackConfig)
    live: LiveConfig = field(default_factory=LiveConfig)
    log: LogConfig = field(default_factory=LogConfig)
