"""Prompt loader — hot-reload prompt templates from habitcore/prompts/.

Templates are markdown files with `$placeholder` fields (string.Template
syntax, so literal JSON braces in a prompt need no escaping).
personality.md holds the system prompts, one `## Section` per role.
Edit prompt files directly — changes take effect immediately.
"""

import logging
import re
from pathlib import Path
from string import Template

log = logging.getLogger(__name__)

_PROMPTS_DIR = Path(__file__).resolve().parent / "prompts"
_cache: dict[str, str] = {}


def _extract_section(text: str, heading: str) -> str:
    """Extract content under a specific ## heading from markdown.

    Returns everything between '## <heading>' and the next '## ' or EOF.
    """
    pattern = rf"^## {re.escape(heading)}\s*\n(.*?)(?=^## |\Z)"
    match = re.search(pattern, text, re.MULTILINE | re.DOTALL)
    return match.group(1).strip() if match else ""


def get_prompt(name: str) -> str:
    """Load a prompt template by name (without .md extension).

    Always reads from disk (hot-reload). Falls back to cache if file missing.
    """
    path = _PROMPTS_DIR / f"{name}.md"
    if path.exists():
        content = path.read_text(encoding="utf-8").strip()
        _cache[name] = content
        return content

    if name in _cache:
        log.warning("Prompt file missing, using cache: %s", name)
        return _cache[name]

    log.error("Prompt not found: %s", name)
    return ""


def get_system_prompt(section: str = "Coach") -> str:
    """Load one section of personality.md ('Coach' or 'Suggest')."""
    full = get_prompt("personality")
    if not full:
        return ""
    return _extract_section(full, section)


def render_prompt(name: str, **fields) -> str:
    """Load a template and fill its $placeholders.

    Unknown placeholders are left as-is rather than raising.
    """
    return Template(get_prompt(name)).safe_substitute(**fields)


def list_prompts() -> list[str]:
    """List available prompt template names."""
    if not _PROMPTS_DIR.exists():
        return []
    return sorted(f.stem for f in _PROMPTS_DIR.glob("*.md"))
