from pydantic import BaseModel
import os
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# Load .env file if it exists (before reading os.getenv)
_env_path = Path(__file__).resolve().parent.parent / ".env"
if _env_path.exists():
    with open(_env_path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()
                # Only set if not already in environment (env vars take precedence)
                if key not in os.environ:
                    os.environ[key] = value


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    # Remote / network tool calls
    http_timeout_s: float = float(os.getenv("ORCH_HTTP_TIMEOUT", "15"))

    # Local process tool calls
    process_timeout_s: float = float(os.getenv("ORCH_PROCESS_TIMEOUT", "30"))

    # Tool definitions (*.tool.json), loaded once at startup when set
    tools_dir: str = os.getenv("ORCH_TOOLS_DIR", "")
    load_builtin_tools: bool = _env_flag("ORCH_LOAD_BUILTIN_TOOLS", "true")

    log_level: str = os.getenv("ORCH_LOG_LEVEL", "INFO").upper()


settings = Settings()

logger.debug(
    f"Config: http_timeout={settings.http_timeout_s}s, "
    f"process_timeout={settings.process_timeout_s}s, tools_dir={settings.tools_dir or '-'}"
)
