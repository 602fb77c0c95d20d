"""
Recipe Remix - Prompt Logger.

Logs LLM prompts and responses to files for debugging.
Enabled via REMIX_LOG_PROMPTS=1 or the --log-prompts CLI flag.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from recipe_remix.config import settings

LOG_DIR = Path("prompt_logs")

# None = follow settings.remix_log_prompts
_enabled: bool | None = None

# Run tracking
_run_id: str | None = None
_call_counter: int = 0


def enable_prompt_logging(enabled: bool = True) -> None:
    """Enable or disable prompt logging."""
    global _enabled
    _enabled = enabled
    if enabled:
        _ensure_log_dir()


def is_enabled() -> bool:
    return settings.remix_log_prompts if _enabled is None else _enabled


def _ensure_log_dir() -> None:
    LOG_DIR.mkdir(exist_ok=True)


def _get_run_id() -> str:
    global _run_id
    if _run_id is None:
        _run_id = datetime.now().strftime("%Y%m%d_%H%M%S")
    return _run_id


def _get_run_dir() -> Path:
    run_dir = LOG_DIR / _get_run_id()
    run_dir.mkdir(parents=True, exist_ok=True)
    return run_dir


def _format_messages(messages: list[dict[str, Any]]) -> str:
    parts = []
    for message in messages:
        content = message.get("content")
        if isinstance(content, list):
            # Vision content: keep the text, elide image data
            content = "\n".join(
                block.get("text", "[image]") if block.get("type") == "text" else "[image]" for block in content
            )
        parts.append(f"### {message.get('role', '?')}\n\n```\n{content}\n```")
    return "\n\n".join(parts)


def log_prompt(
    *,
    operation: str,
    model: str,
    messages: list[dict[str, Any]],
    response: Any = None,
    error: str | None = None,
    config: dict | None = None,
) -> Path | None:
    """
    Log a prompt and response to a markdown file.

    Args:
        operation: Which AI operation made this call
        model: The model used
        messages: Chat messages sent (image data is not written)
        response: Response text or tool-call arguments (optional)
        error: Any error that occurred (optional)
        config: Sampling config

    Returns:
        Path to the log file, or None if logging is disabled
    """
    if not is_enabled():
        return None

    global _call_counter
    _call_counter += 1

    _ensure_log_dir()
    filepath = _get_run_dir() / f"{_call_counter:02d}_{operation}.md"

    config_str = ""
    if config:
        config_str = "\n**Config:** " + ", ".join(f"{key}={value}" for key, value in config.items())

    content = f"""# LLM Call: {operation}

**Time:** {datetime.now().isoformat()}
**Model:** {model}{config_str}

---

## Messages

{_format_messages(messages)}

---

## Response

"""

    if error:
        content += f"**ERROR:** {error}\n"
    elif isinstance(response, (dict, list)):
        content += f"```json\n{json.dumps(response, indent=2, default=str)}\n```\n"
    elif response:
        content += f"```\n{response}\n```\n"
    else:
        content += "(No response)\n"

    filepath.write_text(content, encoding="utf-8")
    return filepath


def reset_run() -> None:
    """Reset the run counter (for testing)."""
    global _run_id, _call_counter
    _run_id = None
    _call_counter = 0
