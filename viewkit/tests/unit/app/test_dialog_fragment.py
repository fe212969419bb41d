from __future__ import annotations

import asyncio

import pytest

tk = pytest.importorskip("tkinter")

from viewkit.adapters.fragment_loader import ImportFragmentLoader
from viewkit.app.views.dialog_fragment import DialogFragment


class _ConfirmDialog(DialogFragment):
    title_text = "Confirm"

    def build(self) -> None:
        self.register("okButton", tk.Button(self, text="OK", command=self.close))


class _Controller:
    def __init__(self, root) -> None:
        self.root = root


@pytest.fixture
def root():
    try:
        window = tk.Tk()
    except tk.TclError:
        pytest.skip("no display available")
    window.withdraw()
    yield window
    window.destroy()


def test_dialog_fragment_hidden_until_opened(root) -> None:
    loader = ImportFragmentLoader({"app.view.fragments.Confirm": _ConfirmDialog})

    dialog = asyncio.run(loader.load("Confirm", "app.view.fragments.Confirm", _Controller(root)))

    assert dialog.fragment_id == "Confirm"
    assert dialog.title() == "Confirm"
    assert not dialog.is_open()
    assert dialog.by_id("okButton") is not None
    assert dialog.by_id("missing") is None

    dialog.open()
    root.update_idletasks()
    assert dialog.is_open()

    dialog.close()
    assert not dialog.is_open()
    dialog.destroy()
