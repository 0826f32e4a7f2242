"""
Pulse - Prompt Logger.

Writes each LLM exchange to a markdown file so generated follow-up questions
can be inspected after a session. Off by default; enabled by
PULSE_LOG_PROMPTS=1, the `pulse_log_prompts` setting, or `--log-prompts`.

Layout: prompt_logs/<session timestamp>/<NN>_<node>.md
"""

import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any

LOG_PROMPTS = os.getenv("PULSE_LOG_PROMPTS", "0") == "1"
LOG_DIR = Path("prompt_logs")

_session_id: str | None = None
_call_counter: int = 0


def enable_prompt_logging(enabled: bool = True) -> None:
    """Enable or disable prompt logging."""
    global LOG_PROMPTS
    LOG_PROMPTS = enabled


def is_prompt_logging_enabled() -> bool:
    return LOG_PROMPTS


def _session_dir() -> Path:
    global _session_id
    if _session_id is None:
        _session_id = datetime.now().strftime("%Y%m%d_%H%M%S")
    path = LOG_DIR / _session_id
    path.mkdir(parents=True, exist_ok=True)
    return path


def _render_response(response: Any, error: str | None) -> str:
    if error:
        return f"**ERROR:** {error}\n"
    if response is None:
        return "(No response)\n"

    data = response.model_dump() if hasattr(response, "model_dump") else response
    try:
        return f"```json\n{json.dumps(data, indent=2, ensure_ascii=False, default=str)}\n```\n"
    except (TypeError, ValueError):
        return f"```\n{response!r}\n```\n"


def log_prompt(
    *,
    node: str,
    model: str,
    system_prompt: str,
    user_prompt: str,
    response_model: str,
    response: Any = None,
    error: str | None = None,
    config: dict | None = None,
) -> Path | None:
    """
    Write one LLM exchange to the session directory.

    Returns:
        Path to the log file, or None if logging is disabled
    """
    if not LOG_PROMPTS:
        return None

    global _call_counter
    _call_counter += 1
    filepath = _session_dir() / f"{_call_counter:02d}_{node}.md"

    settings_line = ", ".join(f"{k}={v}" for k, v in (config or {}).items()) or "-"

    sections = [
        f"# LLM Call: {node}",
        "",
        f"**Time:** {datetime.now().isoformat()}",
        f"**Model:** {model}",
        f"**Response Model:** {response_model}",
        f"**Config:** {settings_line}",
        "",
        "## System Prompt",
        "",
        "```",
        system_prompt,
        "```",
        "",
        "## User Prompt",
        "",
        "```",
        user_prompt,
        "```",
        "",
        "## Response",
        "",
        _render_response(response, error),
    ]
    filepath.write_text("\n".join(sections), encoding="utf-8")
    return filepath


def get_session_log_dir() -> Path | None:
    """Current session's log directory, if logging is enabled."""
    if not LOG_PROMPTS:
        return None
    return _session_dir()


def reset_session() -> None:
    """Start a new session directory and call counter."""
    global _session_id, _call_counter
    _session_id = None
    _call_counter = 0
