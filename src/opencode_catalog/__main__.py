"""Entry point for opencode-catalog."""
import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from opencode_catalog.catalog import build_catalog, write_catalog
from opencode_catalog.config import DEFAULT_CONFIG_PATH, load_config
from opencode_catalog.hooks import (
    HookError, is_git_repo, setup_hooks, staged_shell_scripts, staged_skill_dirs, validate_bash_scripts, validate_skill,
)
from opencode_catalog.installer import InstallError, install, parse_selection
from opencode_catalog.scanner import CATEGORIES, SKILLS, scan_category

console = Console(highlight=False, soft_wrap=True)
err_console = Console(stderr=True, highlight=False, soft_wrap=True)


def _fail(message: str) -> int:
    err_console.print(f"[red]✗[/red] {escape(message)}")
    return 1


def _opencode_dir(args, config: dict) -> Path:
    return Path(getattr(args, "opencode_dir", None) or config["catalog"]["opencode_dir"])


def _output_file(args, config: dict) -> Path:
    return Path(getattr(args, "output", None) or config["catalog"]["output_file"])


def cmd_generate(args, config: dict) -> int:
    opencode_dir = _opencode_dir(args, config)
    output = _output_file(args, config)
    recurse = getattr(args, "recurse_skills", False) or config["catalog"]["recurse_skills"]

    console.print(f"Scanning {escape(str(opencode_dir))} folder for agents, skills, and commands...")
    catalog = build_catalog(
        opencode_dir,
        recurse_skills=recurse,
        on_category=lambda c: console.print(f"Processing {c.name}..."),
    )
    try:
        write_catalog(catalog, output)
    except OSError as exc:
        return _fail(f"Cannot write {output}: {exc}")

    counts = catalog.counts()
    console.print("[green]✓[/green] Catalog generated successfully!")
    console.print(f"Output file: {escape(str(output))}")
    console.print("")
    console.print("Summary:")
    for category in CATEGORIES:
        console.print(f"  {category.name.capitalize()}: {counts[category.name]}")
    return 0


def cmd_install(args, config: dict) -> int:
    settings = config["install"]
    target = Path(args.target)
    try:
        selection = parse_selection(args.items)
        console.print("[blue]ℹ[/blue] Downloading collection...")
        report = install(
            target,
            selection,
            repo_url=args.repo_url or settings["repo_url"],
            branch=args.branch or settings["branch"],
            timeout=float(settings["timeout"]),
            with_hooks=args.with_hooks,
        )
    except InstallError as exc:
        return _fail(str(exc))
    except OSError as exc:
        return _fail(f"Installation failed: {exc}")

    for kind, name in report.installed:
        console.print(f"  [green]✓[/green] Installed {kind}: {escape(name)}")
    for kind, name in report.skipped:
        err_console.print(f"  [yellow]![/yellow] Not found in collection: {kind}:{escape(name)}")
    for extra in report.extras:
        console.print(f"  [green]✓[/green] Installed: {escape(extra)}")

    console.print("")
    console.print("[blue]ℹ[/blue] Installation complete!")
    for category in CATEGORIES:
        if selection.wants(category):
            location = target / ".opencode" / category.name
            console.print(f"  [green]✓[/green] {category.name.capitalize()} installed to: {escape(str(location))}")

    if args.with_hooks and report.extras and is_git_repo(target):
        console.print("[blue]ℹ[/blue] Setting up git hooks...")
        try:
            setup_hooks(target)
        except HookError as exc:
            return _fail(str(exc))
    return 0


def cmd_setup_hooks(args, config: dict) -> int:
    try:
        setup_hooks(Path(args.repo))
    except HookError as exc:
        return _fail(str(exc))
    console.print("Git hooks configured successfully!")
    console.print("Hooks directory: .githooks/")
    return 0


def _validate_bash(args) -> int:
    try:
        if args.staged:
            scripts = staged_shell_scripts(Path("."))
        elif args.paths:
            scripts = [Path(p) for p in args.paths]
        else:
            scripts = [p for p in sorted(Path(".").rglob("*.sh")) if ".git" not in p.parts]

        if not scripts:
            console.print("No bash scripts to validate")
            return 0

        errors = validate_bash_scripts(scripts)
    except HookError as exc:
        return _fail(str(exc))

    for script in scripts:
        if script in errors:
            err_console.print(f"[red]✗[/red] Syntax error in: {escape(str(script))}")
            err_console.print(f"    {escape(errors[script])}")
        else:
            console.print(f"[green]✓[/green] {escape(str(script))}")

    if errors:
        return _fail(f"Bash script validation failed for {len(errors)} of {len(scripts)} scripts")
    console.print("All bash scripts validated successfully")
    return 0


def cmd_validate(args, config: dict) -> int:
    if args.bash:
        return _validate_bash(args)

    if args.staged:
        try:
            skill_dirs = staged_skill_dirs(Path("."))
        except HookError as exc:
            return _fail(str(exc))
    elif args.paths:
        skill_dirs = [Path(d) for d in args.paths]
    else:
        skills_root = _opencode_dir(args, config) / SKILLS.name
        recursive = config["catalog"]["recurse_skills"]
        skill_dirs = [path.parent for _, path in scan_category(skills_root, SKILLS, recursive=recursive)]

    if not skill_dirs:
        console.print("No SKILL.md files to validate")
        return 0

    failed = 0
    for skill_dir in skill_dirs:
        problems = validate_skill(skill_dir)
        if problems:
            failed += 1
            err_console.print(f"[red]✗[/red] {escape(str(skill_dir))}")
            for problem in problems:
                err_console.print(f"    {escape(problem)}")
        else:
            console.print(f"[green]✓[/green] {escape(str(skill_dir))}")

    if failed:
        return _fail(f"SKILL.md validation failed for {failed} of {len(skill_dirs)} skills")
    console.print("All SKILL.md files validated successfully")
    return 0


def cmd_browse(args, config: dict) -> int:
    from opencode_catalog.app import CatalogBrowser

    catalog_path = Path(args.catalog) if args.catalog else _output_file(args, config)
    try:
        app = CatalogBrowser(
            catalog_path=catalog_path,
            opencode_dir=_opencode_dir(args, config),
            recurse_skills=config["catalog"]["recurse_skills"],
        )
    except (ValueError, OSError) as exc:
        return _fail(f"Cannot read catalog {catalog_path}: {exc}")
    app.run()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="opencode-catalog",
        description="Catalog and install OpenCode agents, skills and commands",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity")
    parser.add_argument("--config", default=None, help=f"Config file (default: {DEFAULT_CONFIG_PATH})")
    parser.set_defaults(func=cmd_generate)
    sub = parser.add_subparsers(dest="command")

    gen = sub.add_parser("generate", help="Write the JSON catalog (default)")
    gen.add_argument("--opencode-dir", default=None, help="Directory holding agents/, skills/, commands/")
    gen.add_argument("--output", default=None, help="Catalog file to write")
    gen.add_argument("--recurse-skills", action="store_true", help="Also catalog nested SKILL.md files")
    gen.set_defaults(func=cmd_generate)

    inst = sub.add_parser("install", help="Install agents, skills and commands from the collection")
    inst.add_argument("items", nargs="*", help="Selection tokens such as agent:architect or skill:planning")
    inst.add_argument("--target", default=".", help="Project directory to install into")
    inst.add_argument("--repo-url", default=None, help="Collection repository URL")
    inst.add_argument("--branch", default=None, help="Collection branch")
    inst.add_argument("--with-hooks", action="store_true", help="Also install the git hooks")
    inst.set_defaults(func=cmd_install)

    hooks = sub.add_parser("setup-hooks", help="Configure git to use the .githooks directory")
    hooks.add_argument("--repo", default=".", help="Repository directory")
    hooks.set_defaults(func=cmd_setup_hooks)

    val = sub.add_parser("validate", help="Validate SKILL.md files or bash scripts")
    val.add_argument("paths", nargs="*", help="Skill directories, or scripts with --bash (default: all)")
    val.add_argument("--staged", action="store_true", help="Validate staged SKILL.md files, or staged scripts with --bash")
    val.add_argument("--bash", action="store_true", help="Check bash script syntax with bash -n")
    val.add_argument("--opencode-dir", default=None, help="Directory holding skills/")
    val.set_defaults(func=cmd_validate)

    browse = sub.add_parser("browse", help="Browse a catalog in the terminal")
    browse.add_argument("catalog", nargs="?", default=None, help="Catalog file (default: configured output)")
    browse.add_argument("--opencode-dir", default=None, help="Directory to scan when no catalog file exists")
    browse.set_defaults(func=cmd_browse)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    config = load_config(Path(args.config)) if args.config else load_config()
    return args.func(args, config)


if __name__ == "__main__":
    sys.exit(main())
