"""Catalog assembly — folds scanned entities into one JSON document."""
import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from opencode_catalog.frontmatter import extract_frontmatter
from opencode_catalog.scanner import CATEGORIES, scan_category

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


@dataclass(frozen=True)
class CatalogEntry:
    """One agent, skill or command."""
    name: str
    description: str = ""

    def to_dict(self) -> dict:
        return {"name": self.name, "description": self.description}


@dataclass
class Catalog:
    """In-memory catalog builder, serialized once when complete."""
    generated_at: str
    agents: list[CatalogEntry] = field(default_factory=list)
    skills: list[CatalogEntry] = field(default_factory=list)
    commands: list[CatalogEntry] = field(default_factory=list)

    def add(self, category: str, entry: CatalogEntry) -> None:
        if category not in ("agents", "skills", "commands"):
            raise ValueError(f"unknown category: {category}")
        getattr(self, category).append(entry)

    def entries(self, category: str) -> list[CatalogEntry]:
        return getattr(self, category)

    def counts(self) -> dict[str, int]:
        return {c.name: len(self.entries(c.name)) for c in CATEGORIES}

    def to_dict(self) -> dict:
        data = {c.name: [e.to_dict() for e in self.entries(c.name)] for c in CATEGORIES}
        data["generated_at"] = self.generated_at
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False) + "\n"

    @classmethod
    def from_dict(cls, data: dict) -> "Catalog":
        if not isinstance(data, dict):
            raise ValueError("catalog must be a JSON object")
        catalog = cls(generated_at=str(data.get("generated_at", "")))
        for category in CATEGORIES:
            items = data.get(category.name) or []
            if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
                raise ValueError(f"'{category.name}' must be a list of objects")
            for item in items:
                catalog.add(category.name, CatalogEntry(
                    name=str(item.get("name", "")),
                    description=str(item.get("description") or ""),
                ))
        return catalog


def format_timestamp(moment: datetime) -> str:
    """Render a datetime as an RFC3339 UTC timestamp with second precision."""
    return moment.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def build_catalog(
    opencode_dir: Path,
    recurse_skills: bool = False,
    now: datetime | None = None,
    on_category=None,
) -> Catalog:
    """Scan agents, skills and commands under ``opencode_dir``.

    Args:
        opencode_dir: Root holding the ``agents/``, ``skills/`` and ``commands/`` directories.
        recurse_skills: Catalog ``SKILL.md`` files below the first skills level too.
        now: Generation time. Defaults to the current UTC time, taken before scanning.
        on_category: Optional callback invoked with each category before it is scanned.
    """
    catalog = Catalog(generated_at=format_timestamp(now or datetime.now(timezone.utc)))
    for category in CATEGORIES:
        if on_category is not None:
            on_category(category)
        recursive = recurse_skills and category.layout == "nested"
        for name, path in scan_category(opencode_dir / category.name, category, recursive=recursive):
            catalog.add(category.name, CatalogEntry(name, extract_frontmatter(path, "description")))
        logger.info("Found %d %s", len(catalog.entries(category.name)), category.name)
    return catalog


def write_catalog(catalog: Catalog, path: Path) -> None:
    """Write the catalog to ``path``, replacing any previous file atomically."""
    content = catalog.to_json()
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logger.info("Wrote catalog to %s", path)


def load_catalog(path: Path) -> Catalog:
    """Read a catalog previously written by ``write_catalog``."""
    with open(path, encoding="utf-8") as f:
        return Catalog.from_dict(json.load(f))
