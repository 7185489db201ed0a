import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class SmtpSettings:
    host: str
    port: int
    user: str
    password: str
    sender: str

    @property
    def enabled(self) -> bool:
        return bool(self.user and self.password)


@dataclass(frozen=True)
class Settings:
    host: str
    port: int
    log_level: str
    log_path: str
    constraints_path: str
    results_path: str
    static_dir: str
    heartbeat_interval: float
    smtp: SmtpSettings


def _int_env(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}.") from None


def _float_env(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}.") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}.")
    return value


def load_settings() -> Settings:
    smtp_user = os.getenv("SMTP_USER", "")

    return Settings(
        host=os.getenv("HOST", "0.0.0.0"),
        port=_int_env("PORT", "8085"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_path=os.getenv("LOG_PATH", "logs/santa_draw.log"),
        constraints_path=os.getenv("CONSTRAINTS_PATH", "constraints.txt"),
        results_path=os.getenv("RESULTS_PATH", "draw_results.txt"),
        static_dir=os.getenv("STATIC_DIR", "public"),
        heartbeat_interval=_float_env("HEARTBEAT_INTERVAL", "30"),
        smtp=SmtpSettings(
            host=os.getenv("SMTP_HOST", "smtp.gmail.com"),
            port=_int_env("SMTP_PORT", "587"),
            user=smtp_user,
            password=os.getenv("SMTP_PASSWORD", ""),
            sender=os.getenv("SMTP_SENDER", smtp_user),
        ),
    )
