from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from textual.app import App, ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.widgets import Button, Footer, Header, Input, Label, Select, Static


@dataclass
class FieldSpec:
    """One prompt of a target form; `choices` turns it into a select."""

    name: str
    label: str
    default: str = ""
    placeholder: str = ""
    optional: bool = False
    choices: Optional[List[tuple[str, str]]] = None


def collect_values(fields: List[FieldSpec], raw: Dict[str, str]) -> tuple[Dict[str, str], Optional[str]]:
    """Strip submitted values and report the first missing required field."""
    result: Dict[str, str] = {}
    for field in fields:
        value = (raw.get(field.name) or "").strip()
        if not value and not field.optional:
            return result, f"{field.label} is required."
        result[field.name] = value
    return result, None


class TargetForm(App[Dict[str, str] | None]):
    BINDINGS = [
        ("ctrl+s", "save", "Save"),
        ("escape", "cancel", "Cancel"),
    ]

    CSS = """
    #intro {
        color: $text-muted;
        padding: 1 0;
    }

    Label {
        text-style: bold;
        padding-top: 1;
    }

    #actions {
        height: auto;
        padding-top: 1;
    }
    """

    def __init__(self, title: str, instructions: str, fields: List[FieldSpec]) -> None:
        super().__init__()
        self.title = title
        self._instructions = instructions
        self._fields = fields
        self._widgets: Dict[str, Input | Select[str]] = {}

    def _widget_for(self, field: FieldSpec) -> Input | Select[str]:
        if field.choices:
            return Select[str](
                ((label, value) for value, label in field.choices),
                allow_blank=field.optional,
                value=field.default or field.choices[0][0],
            )
        return Input(value=field.default, placeholder=field.placeholder)

    def compose(self) -> ComposeResult:
        yield Header(show_clock=False)
        with VerticalScroll():
            if self._instructions:
                yield Static(self._instructions, id="intro")
            for field in self._fields:
                widget = self._widget_for(field)
                self._widgets[field.name] = widget
                yield Label(field.label)
                yield widget
            with Horizontal(id="actions"):
                yield Button("Save", id="save", variant="success")
                yield Button("Cancel", id="cancel", variant="error")
        yield Footer()

    def on_button_pressed(self, event: Button.Pressed) -> None:  # pragma: no cover - UI
        if event.button.id == "save":
            self.action_save()
        else:
            self.action_cancel()

    def action_cancel(self) -> None:  # pragma: no cover - UI
        self.exit(None)

    def action_save(self) -> None:  # pragma: no cover - UI
        raw: Dict[str, str] = {}
        for name, widget in self._widgets.items():
            value = widget.value
            raw[name] = value if isinstance(value, str) else ""
        values, problem = collect_values(self._fields, raw)
        if problem:
            self.notify(problem, severity="warning")
            return
        self.exit(values)


def prompt_form(title: str, instructions: str, fields: List[FieldSpec]) -> Dict[str, str]:
    """Run a TargetForm and return its answers; Cancel raises KeyboardInterrupt."""
    keys = "Tab moves between fields; Ctrl+S saves; Esc cancels."
    intro = f"{instructions.strip()}\n\n{keys}" if instructions.strip() else keys
    result = TargetForm(title, intro, fields).run()
    if result is None:
        raise KeyboardInterrupt("Cancelled")
    return result
