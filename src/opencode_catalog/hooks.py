"""Git hook setup and SKILL.md validation."""
import logging
import subprocess
from pathlib import Path

from opencode_catalog.frontmatter import frontmatter_block, parse_frontmatter
from opencode_catalog.scanner import SKILL_FILE

logger = logging.getLogger(__name__)

HOOKS_PATH = ".githooks"


class HookError(Exception):
    """Raised when a git command needed for hook handling fails."""


def _git(repo_dir: Path, *args: str) -> str:
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=repo_dir,
            capture_output=True,
            text=True,
            check=True,
        )
    except FileNotFoundError as exc:
        raise HookError("git is required") from exc
    except subprocess.CalledProcessError as exc:
        message = exc.stderr.strip() or f"exit status {exc.returncode}"
        raise HookError(f"git {' '.join(args)} failed: {message}") from exc
    return result.stdout


def setup_hooks(repo_dir: Path, hooks_path: str = HOOKS_PATH) -> None:
    """Point git at the repository's hooks directory."""
    _git(repo_dir, "config", "core.hooksPath", hooks_path)
    logger.info("Configured core.hooksPath=%s in %s", hooks_path, repo_dir)


def is_git_repo(path: Path) -> bool:
    return (path / ".git").exists()


def staged_files(repo_dir: Path) -> list[Path]:
    """Files added, copied or modified in the index that still exist.

    git reports staged paths relative to the top level, so they are resolved
    against it rather than against ``repo_dir``.
    """
    top = Path(_git(repo_dir, "rev-parse", "--show-toplevel").strip())
    output = _git(repo_dir, "diff", "--cached", "--name-only", "--diff-filter=ACM")
    files = []
    for line in output.splitlines():
        if not line.strip():
            continue
        path = top / line.strip()
        if path.is_file():
            files.append(path)
    return files


def staged_skill_dirs(repo_dir: Path) -> list[Path]:
    """Directories of staged ``SKILL.md`` files."""
    dirs = []
    for path in staged_files(repo_dir):
        if path.name == SKILL_FILE and path.parent not in dirs:
            dirs.append(path.parent)
    return dirs


def staged_shell_scripts(repo_dir: Path) -> list[Path]:
    return [path for path in staged_files(repo_dir) if path.suffix == ".sh"]


def check_bash_syntax(script: Path) -> str | None:
    """Run ``bash -n`` on a script; return the error output, or None when it parses."""
    try:
        result = subprocess.run(
            ["bash", "-n", str(script)],
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as exc:
        raise HookError("bash is required") from exc
    if result.returncode == 0:
        return None
    return result.stderr.strip() or f"exit status {result.returncode}"


def validate_bash_scripts(scripts: list[Path]) -> dict[Path, str]:
    """Map each script with a syntax error to the error bash reported."""
    errors = {}
    for script in scripts:
        error = check_bash_syntax(script)
        if error is not None:
            errors[script] = error
    return errors


def validate_skill(skill_dir: Path) -> list[str]:
    """Return the problems found in a skill directory; empty when valid."""
    skill_file = skill_dir / SKILL_FILE
    if not skill_file.is_file():
        return [f"missing {SKILL_FILE}"]

    text = skill_file.read_text(encoding="utf-8", errors="replace")
    if frontmatter_block(text) is None:
        return ["missing frontmatter block delimited by '---' lines"]

    meta = parse_frontmatter(text)
    if not meta:
        return ["frontmatter is not a valid YAML mapping"]

    problems = []
    name = meta.get("name")
    if not name:
        problems.append("frontmatter has no 'name'")
    elif str(name) != skill_dir.name:
        problems.append(f"name '{name}' does not match directory '{skill_dir.name}'")
    description = meta.get("description")
    if not isinstance(description, str) or not description.strip():
        problems.append("frontmatter has no 'description'")
    return problems
