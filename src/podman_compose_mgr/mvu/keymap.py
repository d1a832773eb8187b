"""Translate raw key presses into navigation and action messages.

`translate` is pure: the same model and key always give the same message.
Named keys follow Textual's key names; printable keys match on `character`.
"""

from __future__ import annotations

from podman_compose_mgr.mvu import messages as msg
from podman_compose_mgr.mvu.model import (
    ExportModal,
    Model,
    Screen,
    VIEW_ORDER,
    ViewPickerModal,
    WorkQueueModal,
    output_capacity,
)


HELP_LIST = "j/k move  space check  a all  r rebuild  p pull  v view  o output  w queue  s rescan  q quit"
HELP_OUTPUT = "j/k scroll  g/G top/end  / ? search  n/N next  e export  w queue  esc back  q quit"


def _printable(character: str | None) -> str | None:
    if character and len(character) == 1 and character.isprintable():
        return character
    return None


def _text_entry(key: str, character: str | None, *, submit, backspace, cancel, insert):
    if key == "enter":
        return submit()
    if key == "backspace":
        return backspace()
    if key == "escape":
        return cancel()
    char = _printable(character)
    if char is not None:
        return insert(char)
    return None


def _view_picker(key: str, character: str | None) -> msg.Message | None:
    char = _printable(character)
    if key in ("up", "k") or char == "k":
        return msg.ViewPickerMove(-1)
    if key in ("down", "j") or char == "j":
        return msg.ViewPickerMove(1)
    if key == "enter":
        return msg.ViewPickerAccept()
    if key == "escape" or char in ("q", "v"):
        return msg.CloseModal()
    if char is not None and len(char) == 1 and char in "123456789" and int(char) <= len(VIEW_ORDER):
        return msg.SetViewMode(VIEW_ORDER[int(char) - 1])
    return None


def _work_queue(key: str, character: str | None) -> msg.Message | None:
    char = _printable(character)
    if key == "up" or char == "k":
        return msg.WorkQueueMove(-1)
    if key == "down" or char == "j":
        return msg.WorkQueueMove(1)
    if key == "enter":
        return msg.WorkQueueAccept()
    if key == "escape" or char in ("q", "w"):
        return msg.CloseModal()
    return None


def _list_screen(key: str, character: str | None) -> msg.Message | None:
    named = {
        "up": msg.MoveCursor(-1),
        "down": msg.MoveCursor(1),
        "pageup": msg.MovePage(-1),
        "pagedown": msg.MovePage(1),
        "home": msg.MoveCursor(-(10**9)),
        "end": msg.MoveCursor(10**9),
        "space": msg.ToggleCheck(),
        "right": msg.ExpandOrEnter(),
        "enter": msg.ExpandOrEnter(),
        "left": msg.CollapseOrBack(),
        "backspace": msg.CollapseOrBack(),
        "tab": msg.ShowOutput(),
    }
    if key in named:
        return named[key]
    chars = {
        "k": msg.MoveCursor(-1),
        "j": msg.MoveCursor(1),
        "x": msg.ToggleCheck(),
        " ": msg.ToggleCheck(),
        "a": msg.ToggleCheckAll(),
        "l": msg.ExpandOrEnter(),
        "h": msg.CollapseOrBack(),
        "v": msg.OpenViewPicker(),
        "r": msg.RebuildSelected(),
        "p": msg.RebuildSelected(force_pull=True),
        "o": msg.ShowOutput(),
        "w": msg.OpenWorkQueue(),
        "s": msg.StartScan(),
        "q": msg.Quit(),
    }
    return chars.get(_printable(character) or "")


def _output_screen(key: str, character: str | None, page: int) -> msg.Message | None:
    named = {
        "up": msg.ScrollOutput(-1),
        "down": msg.ScrollOutput(1),
        "pageup": msg.ScrollOutput(-page),
        "pagedown": msg.ScrollOutput(page),
        "home": msg.ScrollOutput(to_top=True),
        "end": msg.ScrollOutput(to_bottom=True),
        "escape": msg.ShowList(),
        "tab": msg.ShowList(),
        "left": msg.ShowList(),
    }
    if key in named:
        return named[key]
    chars = {
        "k": msg.ScrollOutput(-1),
        "j": msg.ScrollOutput(1),
        "g": msg.ScrollOutput(to_top=True),
        "G": msg.ScrollOutput(to_bottom=True),
        "/": msg.SearchStart(),
        "?": msg.SearchStart(backward=True),
        "n": msg.SearchStep(),
        "N": msg.SearchStep(reverse=True),
        "e": msg.OpenExport(),
        "w": msg.OpenWorkQueue(),
        "o": msg.ShowList(),
        "q": msg.Quit(),
    }
    return chars.get(_printable(character) or "")


def translate(model: Model, key: str, character: str | None = None) -> msg.Message | None:
    """Return the message bound to `key` in the current context, if any."""

    if key == "ctrl+c":
        return msg.Interrupt()
    if key == "ctrl+q":
        return msg.Quit()

    modal = model.modal
    if isinstance(modal, ViewPickerModal):
        return _view_picker(key, character)
    if isinstance(modal, WorkQueueModal):
        return _work_queue(key, character)
    if isinstance(modal, ExportModal):
        return _text_entry(
            key,
            character,
            submit=msg.ExportSubmit,
            backspace=msg.ExportBackspace,
            cancel=msg.CloseModal,
            insert=msg.ExportInput,
        )
    if model.search.editing:
        return _text_entry(
            key,
            character,
            submit=msg.SearchSubmit,
            backspace=msg.SearchBackspace,
            cancel=msg.SearchCancel,
            insert=msg.SearchInput,
        )

    page = output_capacity(model.height)
    if model.screen is Screen.OUTPUT:
        return _output_screen(key, character, page)
    return _list_screen(key, character)
