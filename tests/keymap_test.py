"""Test key translation."""

from __future__ import annotations

from dataclasses import replace

import pytest

from podman_compose_mgr.mvu import messages as msg
from podman_compose_mgr.mvu.keymap import translate
from podman_compose_mgr.mvu.model import ExportModal, ViewMode, ViewPickerModal
from podman_compose_mgr.mvu.search import SearchState
from podman_compose_mgr.mvu.update import update

from .support.builders import make_spec, ready_model, run


@pytest.mark.parametrize(
    ("key", "character", "expected"),
    [
        ("down", None, msg.MoveCursor(1)),
        ("k", "k", msg.MoveCursor(-1)),
        ("space", " ", msg.ToggleCheck()),
        ("a", "a", msg.ToggleCheckAll()),
        ("right", None, msg.ExpandOrEnter()),
        ("left", None, msg.CollapseOrBack()),
        ("v", "v", msg.OpenViewPicker()),
        ("r", "r", msg.RebuildSelected()),
        ("p", "p", msg.RebuildSelected(force_pull=True)),
        ("q", "q", msg.Quit()),
        ("ctrl+c", None, msg.Interrupt()),
        ("z", "z", None),
    ],
)
def test_list_screen_keys(key: str, character: str | None, expected: msg.Message | None) -> None:
    assert translate(ready_model(), key, character) == expected


def test_output_screen_keys() -> None:
    model = ready_model()
    model, _ = run(model, [msg.EnqueueJobs((make_spec("a"),)), msg.ShowOutput()])
    assert translate(model, "/", "/") == msg.SearchStart()
    assert translate(model, "N", "N") == msg.SearchStep(reverse=True)
    assert translate(model, "G", "G") == msg.ScrollOutput(to_bottom=True)
    assert translate(model, "escape", None) == msg.ShowList()
    assert translate(model, "e", "e") == msg.OpenExport()


def test_modal_keys_take_precedence() -> None:
    model, _ = update(ready_model(), msg.OpenViewPicker())
    assert isinstance(model.modal, ViewPickerModal)
    assert translate(model, "q", "q") == msg.CloseModal()
    assert translate(model, "3", "3") == msg.SetViewMode(ViewMode.FOLDER)
    assert translate(model, "enter", None) == msg.ViewPickerAccept()


@pytest.mark.parametrize("character", ["²", "٣", "0", "9"])
def test_view_picker_ignores_other_digits(character: str) -> None:
    model, _ = update(ready_model(), msg.OpenViewPicker())

    assert translate(model, "digit", character) is None
    after, commands = update(model, msg.UserInput("digit", character))
    assert after == model
    assert commands == ()


def test_text_entry_captures_printable_keys() -> None:
    model = ready_model()
    exporting = replace(model, modal=ExportModal("x"))
    assert translate(exporting, "q", "q") == msg.ExportInput("q")
    assert translate(exporting, "backspace", None) == msg.ExportBackspace()
    assert translate(exporting, "enter", None) == msg.ExportSubmit()

    searching = replace(model, search=SearchState(editing=True))
    assert translate(searching, "j", "j") == msg.SearchInput("j")
    assert translate(searching, "escape", None) == msg.SearchCancel()
