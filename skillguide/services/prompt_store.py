"""Extraction-goal templates handed to the browser agent.

The catalog lives in ``prompts/prompts.json``. Long templates are stored as a
list of lines and joined before ``string.Template`` substitution.
"""
from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from string import Template
from typing import Any

CATALOG_PATH = Path(__file__).resolve().parents[1] / "prompts" / "prompts.json"


@lru_cache(maxsize=1)
def _read_catalog(mtime_ns: int) -> dict[str, Any]:
    payload = json.loads(CATALOG_PATH.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError("Prompt catalog must be a JSON object.")
    return payload


def load_catalog() -> dict[str, Any]:
    # keyed on mtime so edits to the catalog are picked up without a restart
    return _read_catalog(CATALOG_PATH.stat().st_mtime_ns)


def _as_template_text(node: Any, key: str) -> str:
    if isinstance(node, str):
        return node
    if isinstance(node, list) and all(isinstance(line, str) for line in node):
        return "\n".join(node)
    raise TypeError(f"Prompt key must map to a string or list of lines: {key}")


def lookup(key: str) -> str:
    """Template text stored under a dotted ``key``."""
    node: Any = load_catalog()
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            raise KeyError(f"Prompt key not found: {key}")
        node = node[part]
    return _as_template_text(node, key)


def render_prompt(key: str, **values: Any) -> str:
    try:
        return Template(lookup(key)).substitute(**values)
    except KeyError as exc:
        if str(exc.args[0]).startswith("Prompt key not found"):
            raise
        raise KeyError(f"Missing template value '{exc.args[0]}' for prompt '{key}'") from exc


def render_extraction_goal(topic: str, source_type: str) -> str:
    return render_prompt(
        "extraction_goal.template",
        topic=topic,
        source_type=source_type,
        source_instructions=lookup(f"extraction_goal.source_instructions.{source_type}"),
    )
