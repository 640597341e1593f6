"""
Slash-command palette for the rich-text editor.

Typing "/" opens a filtered list of insert commands; arrow keys move the
selection (wrapping at both ends), Enter runs it and Escape dismisses the
palette.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from .rich_editor import RichTextEditor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlashCommand:
    """A palette entry."""
    title: str
    description: str
    icon: str
    shortcut: str
    run: Callable[[RichTextEditor], None]


DEFAULT_COMMANDS: tuple[SlashCommand, ...] = (
    SlashCommand("Heading 1", "Big section heading", "heading-1", "h1",
                 lambda editor: editor.insert_heading(1)),
    SlashCommand("Heading 2", "Medium section heading", "heading-2", "h2",
                 lambda editor: editor.insert_heading(2)),
    SlashCommand("Heading 3", "Small section heading", "heading-3", "h3",
                 lambda editor: editor.insert_heading(3)),
    SlashCommand("Bullet List", "Create a simple bullet list", "list", "ul",
                 lambda editor: editor.insert_bullet_list()),
    SlashCommand("Numbered List", "Create a list with numbering", "list-ordered", "ol",
                 lambda editor: editor.insert_ordered_list()),
    SlashCommand("Blockquote", "Capture a quote", "quote", "quote",
                 lambda editor: editor.insert_blockquote()),
    SlashCommand("Code Block", "Capture a code snippet", "code", "code",
                 lambda editor: editor.insert_code_block()),
    SlashCommand("3D Model", "Insert an interactive 3D scene", "box", "3d",
                 lambda editor: editor.insert_three_js_block()),
    SlashCommand("HTML Widget", "Embed raw HTML/CSS/JS", "file-code", "html",
                 lambda editor: editor.insert_html_block()),
)


def filter_commands(
    query: str, commands: Sequence[SlashCommand] = DEFAULT_COMMANDS
) -> list[SlashCommand]:
    """
    Filter palette entries by the text typed after "/".

    Title prefix matches come first, then title substring matches, then
    shortcut matches. Matching is case-insensitive; an empty query returns
    every command.
    """
    q = query.strip().lower()
    if not q:
        return list(commands)

    prefix, substring, shortcut = [], [], []
    for command in commands:
        title = command.title.lower()
        if title.startswith(q):
            prefix.append(command)
        elif q in title:
            substring.append(command)
        elif command.shortcut.lower().startswith(q):
            shortcut.append(command)
    return prefix + substring + shortcut


class CommandPalette:
    """Keyboard-driven palette bound to one editor."""

    def __init__(self, editor: RichTextEditor, commands: Sequence[SlashCommand] = DEFAULT_COMMANDS):
        self.editor = editor
        self.commands = tuple(commands)
        self.query = ""
        self.items: list[SlashCommand] = []
        self.selected_index = 0
        self.is_open = False

    @property
    def selected(self) -> Optional[SlashCommand]:
        if not self.items:
            return None
        return self.items[self.selected_index]

    def open(self, query: str = "") -> None:
        self.is_open = True
        self.items = []
        self.update_query(query)

    def close(self) -> None:
        self.is_open = False
        self.query = ""
        self.items = []
        self.selected_index = 0

    def update_query(self, query: str) -> None:
        """Refilter; the selection goes back to the top when the list changes."""
        self.query = query
        items = filter_commands(query, self.commands)
        if items != self.items:
            self.selected_index = 0
        self.items = items

    def on_key_down(self, key: str) -> bool:
        """
        Handle a key press while the palette is open.

        Returns:
            True if the key was consumed.
        """
        if not self.is_open:
            return False
        if key == "Escape":
            self.close()
            return True
        if key not in ("ArrowUp", "ArrowDown", "Enter"):
            return False
        if not self.items:
            return True

        count = len(self.items)
        if key == "ArrowUp":
            self.selected_index = (self.selected_index + count - 1) % count
        elif key == "ArrowDown":
            self.selected_index = (self.selected_index + 1) % count
        else:
            self.select_item(self.selected_index)
        return True

    def select_item(self, index: int) -> bool:
        """Run the command at `index` against the editor and close."""
        if not 0 <= index < len(self.items):
            return False
        command = self.items[index]
        logger.debug(f"Running slash command: {command.title}")
        command.run(self.editor)
        self.close()
        return True
