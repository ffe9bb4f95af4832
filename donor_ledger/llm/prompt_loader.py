"""
Prompt loader with versioning and content hashing.

Prompts use a frontmatter format:
```
# PROMPT: prompt_name
# VERSION: 1.0.0
# LAST_UPDATED: 2024-07-22
# DESCRIPTION: Brief description
# ---PROMPT_START---
[actual prompt content]
```

The hash covers the content below the separator only, so a content edit
without a version bump is detectable.

Placeholders are written ``{name}`` and filled by plain string replacement,
so literal JSON braces in a prompt need no escaping.
"""

import hashlib
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

# "warn" (default), "strict" (error) or "off"
VERSION_CHECK_MODE = os.environ.get("PROMPT_VERSION_CHECK", "warn")

# {prompt_name: {version: content_hash}}
_version_hash_cache: Dict[str, Dict[str, str]] = {}

_SEPARATOR = re.compile(r"^#\s*---PROMPT_START---\s*$", re.MULTILINE)
_META_LINE = re.compile(r"^#\s*(\w+):\s*(.+)$")
_PLACEHOLDER = re.compile(r"\{(\w+)\}")


@dataclass
class PromptInfo:
    """Loaded prompt with metadata."""

    name: str
    version: str
    content: str
    content_hash: str
    last_updated: Optional[str] = None
    description: Optional[str] = None
    file_path: Optional[str] = None
    hash_mismatch: bool = False

    def render(self, **values) -> str:
        """Substitute ``{key}`` placeholders with ``str(value)`` in one pass.

        Substituted text is never scanned again, and placeholders with no
        value are left as written.
        """

        def substitute(match: re.Match) -> str:
            key = match.group(1)
            return str(values[key]) if key in values else match.group(0)

        return _PLACEHOLDER.sub(substitute, self.content)


def _compute_hash(content: str) -> str:
    return hashlib.sha256(content.strip().encode()).hexdigest()[:16]


def _parse_frontmatter(text: str) -> tuple[Dict[str, str], str]:
    """Split ``text`` into (metadata, content). No separator means no metadata."""
    match = _SEPARATOR.search(text)
    if not match:
        return {}, text.strip()

    metadata = {}
    for line in text[: match.start()].strip().splitlines():
        line_match = _META_LINE.match(line.strip())
        if line_match:
            metadata[line_match.group(1).lower()] = line_match.group(2).strip()
    return metadata, text[match.end() :].strip()


def _get_prompts_dir() -> Path:
    return Path(__file__).parent / "prompts"


def load_prompt(
    name: str,
    prompts_dir: Optional[Path] = None,
    check_version: bool = True,
) -> PromptInfo:
    """
    Load a prompt file with version and hash tracking.

    Args:
        name: Prompt name (without .txt extension)
        prompts_dir: Optional custom prompts directory
        check_version: Whether to validate version/hash consistency

    Raises:
        FileNotFoundError: If prompt file doesn't exist
        ValueError: If strict mode and hash mismatch detected
    """
    prompts_dir = prompts_dir or _get_prompts_dir()
    file_path = prompts_dir / f"{name}.txt"
    if not file_path.exists():
        raise FileNotFoundError(f"Prompt file not found: {file_path}")

    metadata, content = _parse_frontmatter(file_path.read_text(encoding="utf-8"))
    version = metadata.get("version", "0.0.0")
    content_hash = _compute_hash(content)

    hash_mismatch = False
    if check_version and VERSION_CHECK_MODE != "off":
        cached = _version_hash_cache.setdefault(name, {})
        if version in cached and cached[version] != content_hash:
            hash_mismatch = True
            msg = (
                f"Prompt '{name}' content changed but version still {version}. "
                f"Expected hash {cached[version][:8]}..., got {content_hash[:8]}... "
                f"Consider bumping the version."
            )
            if VERSION_CHECK_MODE == "strict":
                raise ValueError(msg)
            logger.warning(msg)
        cached[version] = content_hash

    return PromptInfo(
        name=name,
        version=version,
        content=content,
        content_hash=content_hash,
        last_updated=metadata.get("last_updated"),
        description=metadata.get("description"),
        file_path=str(file_path),
        hash_mismatch=hash_mismatch,
    )


def list_prompts(prompts_dir: Optional[Path] = None) -> list[PromptInfo]:
    """All prompts in the directory, sorted by name."""
    prompts_dir = prompts_dir or _get_prompts_dir()
    prompts = []
    for file_path in sorted(prompts_dir.glob("*.txt")):
        try:
            prompts.append(load_prompt(file_path.stem, prompts_dir, check_version=False))
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to load prompt {file_path.stem}: {e}")
    return prompts
