"""Entry list widget showing one catalog category."""
from rich.text import Text
from textual.reactive import reactive
from textual.widgets import Static

from opencode_catalog.catalog import CatalogEntry

DESCRIPTION_WIDTH = 72


def shorten(description: str, width: int = DESCRIPTION_WIDTH) -> str:
    """Collapse whitespace and cut to ``width`` characters with an ellipsis."""
    text = " ".join(description.split())
    if len(text) <= width:
        return text
    return text[:width - 1].rstrip() + "…"


class EntryListWidget(Static):
    """Displays the names and descriptions of one category's entries."""
    entry_count: reactive[int] = reactive(0)

    def format_entry(self, entry: CatalogEntry) -> str:
        """Format a single entry as plain text (for testing)."""
        if entry.description:
            return f"  {entry.name}\n    {shorten(entry.description)}"
        return f"  {entry.name}"

    def format_entries(self, entries: list[CatalogEntry]) -> str:
        if not entries:
            return "  (none)"
        return "\n".join(self.format_entry(e) for e in entries)

    def update_entries(self, entries: list[CatalogEntry]) -> None:
        self.entry_count = len(entries)
        if not entries:
            self.update(Text("  (none)", style="dim"))
            return
        text = Text()
        for i, entry in enumerate(entries):
            if i > 0:
                text.append("\n")
            text.append(f"  {entry.name}", style="bold")
            if entry.description:
                text.append(f"\n    {shorten(entry.description)}", style="dim")
        self.update(text)
