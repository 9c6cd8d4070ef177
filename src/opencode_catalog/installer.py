"""Installer — copies selected agents, skills and commands from a collection archive."""
import io
import logging
import shutil
import tarfile
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

import httpx

from opencode_catalog.scanner import CATEGORIES, Category, category_for, scan_category

logger = logging.getLogger(__name__)

OPENCODE_DIR = ".opencode"
HOOKS_DIR = ".githooks"
SETUP_HOOKS_SCRIPT = "setup-hooks.sh"
WORKFLOW_FILE = Path(".github") / "workflows" / "validate-bash.yml"


class InstallError(Exception):
    """Raised when a selection, download or archive cannot be used."""


@dataclass
class Selection:
    """Names requested per category; a category absent from ``names`` is not installed.

    ``None`` as the value for a category means every item in it.
    """
    names: dict[str, set[str] | None] = field(default_factory=dict)

    def wants(self, category: Category) -> bool:
        return category.name in self.names

    def requested(self, category: Category) -> set[str] | None:
        return self.names.get(category.name)


@dataclass
class InstallReport:
    """Items copied into the target and items that were requested but missing."""
    installed: list[tuple[str, str]] = field(default_factory=list)
    skipped: list[tuple[str, str]] = field(default_factory=list)
    extras: list[str] = field(default_factory=list)


def parse_selection(tokens: list[str]) -> Selection:
    """Parse ``category:name`` tokens such as ``agent:architect``.

    No tokens selects everything in every category.
    """
    if not tokens:
        return Selection({c.name: None for c in CATEGORIES})

    selection = Selection()
    for token in tokens:
        kind, sep, name = token.partition(":")
        category = category_for(kind.strip())
        name = name.strip()
        if not sep or category is None or not name:
            raise InstallError(
                f"invalid selection '{token}': expected agent:<name>, skill:<name> or command:<name>"
            )
        requested = selection.names.setdefault(category.name, set())
        requested.add(name)
    return selection


def archive_url(repo_url: str, branch: str) -> str:
    return f"{repo_url.rstrip('/')}/archive/refs/heads/{branch}.tar.gz"


def download_archive(url: str, timeout: float = 30.0, client: httpx.Client | None = None) -> bytes:
    """Download the collection tarball and return its bytes."""
    owns_client = client is None
    if owns_client:
        client = httpx.Client(timeout=timeout, follow_redirects=True)
    try:
        response = client.get(url)
        response.raise_for_status()
        return response.content
    except httpx.HTTPStatusError as exc:
        raise InstallError(f"Download failed: HTTP {exc.response.status_code} for {url}") from exc
    except httpx.HTTPError as exc:
        raise InstallError(f"Download failed: {exc}") from exc
    finally:
        if owns_client:
            client.close()


def extract_archive(content: bytes, destination: Path) -> Path:
    """Extract a ``.tar.gz`` payload and return its single top-level directory."""
    try:
        with tarfile.open(fileobj=io.BytesIO(content), mode="r:gz") as archive:
            archive.extractall(destination, filter="data")
    except (tarfile.TarError, OSError) as exc:
        raise InstallError(f"Cannot extract archive: {exc}") from exc

    roots = [p for p in destination.iterdir() if p.is_dir()]
    if len(roots) != 1:
        raise InstallError("Archive does not contain a single top-level directory")
    return roots[0]


def _copy_item(category: Category, source: Path, target_dir: Path, name: str) -> None:
    if category.layout == "nested":
        destination = target_dir / name
        if destination.exists():
            shutil.rmtree(destination)
        shutil.copytree(source.parent, destination)
    else:
        shutil.copy2(source, target_dir / source.name)


def install_tree(source_root: Path, target_root: Path, selection: Selection) -> InstallReport:
    """Copy the selected items from ``source_root`` into ``target_root``.

    Both roots are ``.opencode``-style directories. Skills replace any
    existing skill directory of the same name; agents and commands overwrite
    their single file.
    """
    report = InstallReport()
    for category in CATEGORIES:
        if not selection.wants(category):
            continue
        target_dir = target_root / category.name
        target_dir.mkdir(parents=True, exist_ok=True)

        available = dict(scan_category(source_root / category.name, category))
        requested = selection.requested(category)
        names = sorted(available) if requested is None else sorted(requested)
        for name in names:
            if name not in available:
                logger.warning("%s '%s' not found in archive", category.kind, name)
                report.skipped.append((category.kind, name))
                continue
            _copy_item(category, available[name], target_dir, name)
            logger.info("Installed %s %s into %s", category.kind, name, target_dir)
            report.installed.append((category.kind, name))
    return report


def _install_hooks(archive_root: Path, project_dir: Path, report: InstallReport) -> None:
    hooks_source = archive_root / HOOKS_DIR
    if hooks_source.is_dir():
        hooks_target = project_dir / HOOKS_DIR
        if hooks_target.exists():
            shutil.rmtree(hooks_target)
        shutil.copytree(hooks_source, hooks_target)
        for hook in hooks_target.rglob("*"):
            if hook.is_file():
                hook.chmod(0o755)
        report.extras.append("Git hooks directory")

    script_source = archive_root / SETUP_HOOKS_SCRIPT
    if script_source.is_file():
        script_target = project_dir / SETUP_HOOKS_SCRIPT
        shutil.copy2(script_source, script_target)
        script_target.chmod(0o755)
        report.extras.append(SETUP_HOOKS_SCRIPT)

    workflow_source = archive_root / WORKFLOW_FILE
    if workflow_source.is_file():
        workflow_target = project_dir / WORKFLOW_FILE
        workflow_target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(workflow_source, workflow_target)
        report.extras.append(f"GitHub workflow ({WORKFLOW_FILE.name})")


def install(
    project_dir: Path,
    selection: Selection,
    repo_url: str,
    branch: str = "main",
    timeout: float = 30.0,
    with_hooks: bool = False,
    client: httpx.Client | None = None,
) -> InstallReport:
    """Download the collection and install the selection into ``project_dir/.opencode``."""
    url = archive_url(repo_url, branch)
    logger.info("Downloading %s", url)
    content = download_archive(url, timeout=timeout, client=client)

    with tempfile.TemporaryDirectory(prefix="opencode-collection-") as tmpdir:
        archive_root = extract_archive(content, Path(tmpdir))
        source_root = archive_root / OPENCODE_DIR
        if not source_root.is_dir():
            raise InstallError(f"Archive has no {OPENCODE_DIR} directory")
        report = install_tree(source_root, project_dir / OPENCODE_DIR, selection)
        if with_hooks:
            _install_hooks(archive_root, project_dir, report)
    return report
