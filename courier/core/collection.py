from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional

from .models import KeyValue
from .text_field import TextFieldEditor


class KvField(Enum):
    KEY = "key"
    VALUE = "value"

    def toggle(self) -> KvField:
        return KvField.VALUE if self is KvField.KEY else KvField.KEY


class CollectionEditor:
    """Ordered key/value entries (query params or headers) with a selection.

    While ``editing`` is set, the selected entry's key and value live in
    ``key_input`` / ``value_input``. They are flushed back into the entry
    before the selection moves away and reloaded from the entry the
    selection lands on.
    """

    def __init__(self, items: Optional[Iterable[KeyValue]] = None) -> None:
        self.items: list[KeyValue] = [item.clone() for item in items or []]
        self.selected = 0
        self.field = KvField.KEY
        self.editing = False
        self.key_input = TextFieldEditor()
        self.value_input = TextFieldEditor()

    def __len__(self) -> int:
        return len(self.items)

    @property
    def current(self) -> Optional[KeyValue]:
        if not self.items:
            return None
        return self.items[self.selected]

    def active_input(self) -> TextFieldEditor:
        return self.key_input if self.field is KvField.KEY else self.value_input

    def enabled_items(self) -> list[KeyValue]:
        return [item for item in self.items if item.enabled]

    def snapshot(self) -> list[KeyValue]:
        self.flush()
        return [item.clone() for item in self.items]

    def replace(self, items: Iterable[KeyValue]) -> None:
        self.items = [item.clone() for item in items]
        self.selected = 0
        self.field = KvField.KEY
        self.editing = False
        self.key_input.clear()
        self.value_input.clear()

    def add(self) -> None:
        self.flush()
        self.items.append(KeyValue())
        self.selected = len(self.items) - 1
        self.field = KvField.KEY
        if self.editing:
            self._load_selected()

    def delete_selected(self) -> None:
        if not self.items:
            return
        del self.items[self.selected]
        if self.selected >= len(self.items):
            self.selected = max(len(self.items) - 1, 0)
        if not self.items:
            self.editing = False
            self.key_input.clear()
            self.value_input.clear()
        elif self.editing:
            self._load_selected()

    def toggle_enabled(self) -> None:
        item = self.current
        if item is not None:
            item.enabled = not item.enabled

    def toggle_field(self) -> None:
        self.field = self.field.toggle()

    def select_next(self) -> None:
        self._step(1)

    def select_prev(self) -> None:
        self._step(-1)

    def start_editing(self) -> bool:
        if not self.items:
            return False
        self.editing = True
        self._load_selected()
        return True

    def stop_editing(self) -> None:
        self.flush()
        self.editing = False

    def flush(self) -> None:
        item = self.current
        if not self.editing or item is None:
            return
        item.key = self.key_input.content
        item.value = self.value_input.content

    def _step(self, delta: int) -> None:
        if not self.items:
            return
        self.flush()
        self.selected = (self.selected + delta) % len(self.items)
        if self.editing:
            self._load_selected()

    def _load_selected(self) -> None:
        item = self.current
        if item is None:
            return
        self.key_input.set_text(item.key)
        self.value_input.set_text(item.value)
