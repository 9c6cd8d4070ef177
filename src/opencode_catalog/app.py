"""Textual catalog browser."""
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.theme import Theme
from textual.widgets import Header, Footer, Static

from opencode_catalog.catalog import Catalog, build_catalog, load_catalog
from opencode_catalog.scanner import CATEGORIES
from opencode_catalog.widgets.entry_list import EntryListWidget


TERMINAL_THEME = Theme(
    name="terminal",
    primary="#ffffff",
    secondary="#333333",
    accent="#ffffff",
    foreground="#ffffff",
    background="#000000",
    surface="#000000",
    panel="#000000",
    dark=True,
    variables={
        "border": "#333333",
        "border-blurred": "#333333",
        "scrollbar": "#333333",
        "scrollbar-background": "#000000",
    },
)


def format_subtitle(catalog: Catalog) -> str:
    counts = catalog.counts()
    parts = [f"{counts[c.name]} {c.name}" for c in CATEGORIES]
    return f"{catalog.generated_at}  " + " / ".join(parts)


class CatalogBrowser(App):
    """Terminal browser for an OpenCode agent, skill and command catalog."""

    TITLE = "OPENCODE CATALOG"
    CSS = """
    Screen { background: #000000; }
    * { background: transparent; }
    #columns { height: 1fr; }
    .category-column { width: 1fr; }
    .category-panel { height: auto; border: tall $border; }
    .panel-title { text-style: bold; padding: 0 1; }
    Header { background: #000000; color: $foreground; }
    Footer { background: #000000; }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("r", "reload", "Reload"),
    ]

    def __init__(self, catalog_path: Path | None = None, opencode_dir: Path | None = None,
                 recurse_skills: bool = False):
        super().__init__()
        self._catalog_path = catalog_path
        self._opencode_dir = opencode_dir
        self._recurse_skills = recurse_skills
        self.catalog = self._load()

    def _load(self) -> Catalog:
        """Read the catalog file when it exists, otherwise scan the tree."""
        if self._catalog_path is not None and self._catalog_path.exists():
            return load_catalog(self._catalog_path)
        return build_catalog(self._opencode_dir or Path(".opencode"), recurse_skills=self._recurse_skills)

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="columns"):
            for category in CATEGORIES:
                with VerticalScroll(classes="category-column"):
                    with Vertical(classes="category-panel"):
                        yield Static(category.name.upper(), classes="panel-title")
                        yield EntryListWidget(id=f"{category.name}-list")
        yield Footer()

    def on_mount(self):
        self.register_theme(TERMINAL_THEME)
        self.theme = "terminal"
        self._refresh_ui()

    def _refresh_ui(self):
        for category in CATEGORIES:
            widget = self.query_one(f"#{category.name}-list", EntryListWidget)
            widget.update_entries(self.catalog.entries(category.name))
        self.sub_title = format_subtitle(self.catalog)

    def action_reload(self):
        try:
            self.catalog = self._load()
        except (ValueError, OSError) as exc:
            self.notify(f"Cannot reload catalog: {exc}", severity="error")
            return
        self._refresh_ui()
