"""Entity scanner — locates agent, skill and command definition files."""
import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

SKILL_FILE = "SKILL.md"


@dataclass(frozen=True)
class Category:
    """One of the fixed entity kinds and where its definitions live."""
    name: str
    kind: str
    layout: str  # "flat" (<name>.md) or "nested" (<name>/SKILL.md)


AGENTS = Category("agents", "agent", "flat")
SKILLS = Category("skills", "skill", "nested")
COMMANDS = Category("commands", "command", "flat")

CATEGORIES = (AGENTS, SKILLS, COMMANDS)


def category_for(token: str) -> Category | None:
    """Resolve a category by plural name or singular kind."""
    for category in CATEGORIES:
        if token in (category.name, category.kind):
            return category
    return None


def _visible(path: Path) -> bool:
    return not path.name.startswith(".")


def _scan_flat(root: Path) -> list[tuple[str, Path]]:
    return [
        (path.stem, path)
        for path in sorted(root.glob("*.md"))
        if _visible(path) and path.is_file()
    ]


def _scan_nested(root: Path, recursive: bool) -> list[tuple[str, Path]]:
    found = []
    if recursive:
        for skill_file in sorted(root.rglob(SKILL_FILE)):
            rel = skill_file.parent.relative_to(root)
            if rel == Path(".") or not skill_file.is_file():
                continue
            if any(part.startswith(".") for part in rel.parts):
                continue
            found.append((rel.as_posix(), skill_file))
        return found

    for skill_dir in sorted(root.iterdir()):
        if not skill_dir.is_dir() or not _visible(skill_dir):
            continue
        skill_file = skill_dir / SKILL_FILE
        if skill_file.is_file():
            found.append((skill_dir.name, skill_file))
        else:
            logger.debug("Skipping %s: no %s", skill_dir, SKILL_FILE)
    return found


def scan_category(root: Path, category: Category, recursive: bool = False) -> list[tuple[str, Path]]:
    """Return ``(name, definition file)`` pairs for one category root.

    A missing root is an empty category. ``recursive`` only affects nested
    categories: it finds ``SKILL.md`` files at any depth and names them by
    their directory path relative to ``root``.
    """
    if not root.is_dir():
        logger.info("No %s directory at %s", category.name, root)
        return []
    if category.layout == "nested":
        return _scan_nested(root, recursive)
    return _scan_flat(root)
