from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from loguru import logger


def prompts_dir() -> Path:
    # Allow override via PROMPTS_DIR; else use the project's prompts/
    base_dir = os.getenv("PROMPTS_DIR")
    if base_dir:
        return Path(base_dir)
    return Path(__file__).resolve().parents[1] / "prompts"


def load_prompt(filename: str, default: str) -> str:
    path = prompts_dir() / filename
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError as e:
        logger.warning(f"Falling back to built-in prompt for {filename}: {e}")
        return default


def message_text(result: Any) -> str:
    """Plain text of a chat model result (string or list of content blocks)."""
    content = getattr(result, "content", result)
    if content is None:
        return ""
    if isinstance(content, str):
        return content.strip()
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts).strip()
