"""Frontmatter extraction from agent, skill and command markdown files."""
import logging
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

DELIMITER = "---"


class FrontmatterLoader(yaml.BaseLoader):
    """Keeps every scalar as written and the first value of a repeated key."""

    def construct_mapping(self, node, deep=False):
        if not isinstance(node, yaml.MappingNode):
            raise yaml.constructor.ConstructorError(
                None, None, f"expected a mapping node, but found {node.id}", node.start_mark,
            )
        mapping = {}
        for key_node, value_node in node.value:
            key = self.construct_object(key_node, deep=deep)
            if not isinstance(key, str) or key in mapping:
                continue
            mapping[key] = self.construct_object(value_node, deep=deep)
        return mapping


def _load(block: str):
    return yaml.load(block, Loader=FrontmatterLoader)


def frontmatter_block(text: str) -> str | None:
    """Return the text between the first two ``---`` lines, or None."""
    lines = text.splitlines()
    start = None
    for i, line in enumerate(lines):
        if line != DELIMITER:
            continue
        if start is None:
            start = i
        else:
            return "\n".join(lines[start + 1:i])
    return None


def parse_frontmatter(text: str) -> dict:
    """Parse the frontmatter block as YAML with every scalar kept as a string.

    Returns an empty dict when there is no block, the block is not valid
    YAML, or it does not hold a mapping.
    """
    block = frontmatter_block(text)
    if block is None:
        return {}
    try:
        data = _load(block)
    except yaml.YAMLError:
        return {}
    return data if isinstance(data, dict) else {}


def _scan_lines(block: str, key: str) -> str:
    prefix = f"{key}:"
    for line in block.splitlines():
        if line.startswith(prefix):
            value = line[len(prefix):].strip()
            if len(value) >= 2 and value[0] == value[-1] == '"':
                value = value[1:-1]
            return value
    return ""


def extract_frontmatter(path: Path, key: str) -> str:
    """Return the scalar value of ``key`` in the file's frontmatter.

    Missing files, missing blocks and absent keys all yield an empty string.
    Blocks that are not valid YAML are scanned line by line instead, so an
    unquoted value containing ``: `` still resolves.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Cannot read %s: %s", path, exc)
        return ""

    block = frontmatter_block(text)
    if block is None:
        return ""
    try:
        data = _load(block)
    except yaml.YAMLError:
        logger.debug("Frontmatter in %s is not valid YAML, scanning lines", path)
        return _scan_lines(block, key)
    if not isinstance(data, dict):
        return ""
    value = data.get(key)
    return value.strip() if isinstance(value, str) else ""
