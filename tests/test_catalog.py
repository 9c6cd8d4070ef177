import json
import shutil
from datetime import datetime, timezone

import pytest

from opencode_catalog.catalog import (
    Catalog, CatalogEntry, build_catalog, format_timestamp, load_catalog, write_catalog,
)

NOW = datetime(2026, 2, 6, 22, 16, 50, 558000, tzinfo=timezone.utc)


def _names(entries):
    return [e.name for e in entries]


def test_build_catalog_collects_all_categories(opencode_dir):
    catalog = build_catalog(opencode_dir, now=NOW)
    assert _names(catalog.agents) == ["architect", "no-description", "security-expert"]
    assert _names(catalog.skills) == ["numpy", "pytest"]
    assert _names(catalog.commands) == ["create-skill"]
    assert catalog.generated_at == "2026-02-06T22:16:50Z"


def test_agent_scenario(opencode_dir):
    data = build_catalog(opencode_dir, now=NOW).to_dict()
    assert {"name": "architect", "description": "Software Architect"} in data["agents"]


def test_skill_scenario(opencode_dir):
    data = build_catalog(opencode_dir, now=NOW).to_dict()
    assert {"name": "numpy", "description": "This skill should be used when..."} in data["skills"]


def test_skill_without_skill_file_is_absent(opencode_dir):
    data = build_catalog(opencode_dir, now=NOW).to_dict()
    for category in ("agents", "skills", "commands"):
        assert "empty-skill" not in [e["name"] for e in data[category]]


def test_missing_description_is_empty_string(opencode_dir):
    data = build_catalog(opencode_dir, now=NOW).to_dict()
    entry = next(e for e in data["agents"] if e["name"] == "no-description")
    assert entry["description"] == ""


def test_no_cross_contamination(opencode_dir):
    catalog = build_catalog(opencode_dir, now=NOW)
    agents = set(_names(catalog.agents))
    skills = set(_names(catalog.skills))
    commands = set(_names(catalog.commands))
    assert not agents & skills
    assert not agents & commands
    assert not skills & commands


def test_missing_skills_directory(opencode_dir):
    shutil.rmtree(opencode_dir / "skills")
    data = build_catalog(opencode_dir, now=NOW).to_dict()
    assert data["skills"] == []
    assert len(data["agents"]) == 3
    assert len(data["commands"]) == 1


def test_empty_tree_has_all_arrays(tmp_path):
    data = build_catalog(tmp_path / "nothing", now=NOW).to_dict()
    assert data == {"agents": [], "skills": [], "commands": [], "generated_at": "2026-02-06T22:16:50Z"}


def test_key_order(opencode_dir):
    data = build_catalog(opencode_dir, now=NOW).to_dict()
    assert list(data) == ["agents", "skills", "commands", "generated_at"]


def test_categories_scanned_in_fixed_order(opencode_dir):
    seen = []
    catalog = build_catalog(opencode_dir, on_category=lambda c: seen.append(c.name))
    assert seen == ["agents", "skills", "commands"]
    assert datetime.strptime(catalog.generated_at, "%Y-%m-%dT%H:%M:%SZ")


def test_format_timestamp_converts_to_utc():
    from datetime import timedelta
    local = datetime(2026, 2, 7, 0, 0, 0, tzinfo=timezone(timedelta(hours=2)))
    assert format_timestamp(local) == "2026-02-06T22:00:00Z"


def test_add_rejects_unknown_category():
    catalog = Catalog(generated_at="x")
    with pytest.raises(ValueError):
        catalog.add("plugins", CatalogEntry("a"))


def test_counts(opencode_dir):
    assert build_catalog(opencode_dir, now=NOW).counts() == {"agents": 3, "skills": 2, "commands": 1}


def test_write_catalog_is_idempotent(opencode_dir, tmp_path):
    out = tmp_path / "opencode-catalog.json"
    write_catalog(build_catalog(opencode_dir, now=NOW), out)
    first = out.read_bytes()
    write_catalog(build_catalog(opencode_dir, now=NOW), out)
    assert out.read_bytes() == first


def test_write_catalog_format(opencode_dir, tmp_path):
    out = tmp_path / "opencode-catalog.json"
    write_catalog(build_catalog(opencode_dir, now=NOW), out)
    text = out.read_text()
    assert text.startswith('{\n  "agents": [\n')
    assert text.endswith("}\n")
    assert json.loads(text)["generated_at"] == "2026-02-06T22:16:50Z"


def test_write_catalog_keeps_unicode(tmp_path):
    catalog = Catalog(generated_at="2026-02-06T22:16:50Z")
    catalog.add("agents", CatalogEntry("docs", "Writes café menus"))
    out = tmp_path / "catalog.json"
    write_catalog(catalog, out)
    assert "café" in out.read_text(encoding="utf-8")


def test_write_catalog_replaces_previous_file(tmp_path):
    out = tmp_path / "catalog.json"
    out.write_text("stale")
    write_catalog(Catalog(generated_at="2026-02-06T22:16:50Z"), out)
    assert json.loads(out.read_text())["agents"] == []
    assert [p.name for p in tmp_path.iterdir()] == ["catalog.json"]


def test_failed_write_leaves_previous_file(tmp_path, monkeypatch):
    out = tmp_path / "catalog.json"
    out.write_text("previous")

    def boom(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("opencode_catalog.catalog.os.replace", boom)
    with pytest.raises(OSError):
        write_catalog(Catalog(generated_at="2026-02-06T22:16:50Z"), out)
    assert out.read_text() == "previous"
    assert [p.name for p in tmp_path.iterdir()] == ["catalog.json"]


def test_load_catalog_reads_written_file(opencode_dir, tmp_path):
    out = tmp_path / "catalog.json"
    original = build_catalog(opencode_dir, now=NOW)
    write_catalog(original, out)
    assert load_catalog(out) == original


def test_from_dict_defaults_missing_arrays():
    catalog = Catalog.from_dict({"agents": [{"name": "a", "description": None}], "generated_at": "t"})
    assert catalog.agents == [CatalogEntry("a", "")]
    assert catalog.skills == []
    assert catalog.commands == []


def test_timestamp_taken_before_scanning(opencode_dir, monkeypatch):
    events = []

    class RecordingDatetime(datetime):
        @classmethod
        def now(cls, tz=None):
            events.append("now")
            return NOW

    monkeypatch.setattr("opencode_catalog.catalog.datetime", RecordingDatetime)
    catalog = build_catalog(opencode_dir, on_category=lambda c: events.append(c.name))
    assert events == ["now", "agents", "skills", "commands"]
    assert catalog.generated_at == "2026-02-06T22:16:50Z"


def test_recurse_skills_includes_nested(opencode_dir):
    nested = opencode_dir / "skills" / "python" / "ruff"
    nested.mkdir(parents=True)
    (nested / "SKILL.md").write_text("---\ndescription: Ruff linting\n---\n")

    flat = build_catalog(opencode_dir, now=NOW)
    assert "python/ruff" not in _names(flat.skills)

    deep = build_catalog(opencode_dir, recurse_skills=True, now=NOW)
    assert _names(deep.skills) == ["numpy", "pytest", "python/ruff"]
    assert CatalogEntry("python/ruff", "Ruff linting") in deep.skills
    assert _names(deep.agents) == _names(flat.agents)


@pytest.mark.parametrize("content", ["[]", '{"agents": {"name": "a"}}', '{"skills": ["numpy"]}'])
def test_from_dict_rejects_wrong_shape(tmp_path, content):
    path = tmp_path / "catalog.json"
    path.write_text(content)
    with pytest.raises(ValueError):
        load_catalog(path)
