import pytest

from elote.hotkeys import Hotkey


@pytest.mark.parametrize(
    "raw, canonical, display",
    [
        ("ctrl+alt+e", "control+option+e", "⌃⌥E"),
        ("Cmd + Shift + Space", "shift+command+space", "⇧⌘Space"),
        ("option+control+A", "control+option+a", "⌃⌥A"),
        ("⌘+esc", "command+escape", "⌘Esc"),
    ],
)
def test_parse_normalises_order_and_aliases(raw, canonical, display):
    hotkey = Hotkey.parse(raw)
    assert hotkey.canonical == canonical
    assert hotkey.display == display


@pytest.mark.parametrize("raw", ["", "ctrl+alt", "e", "ctrl+e+f", "ctrl+f13"])
def test_parse_rejects_invalid_shortcuts(raw):
    with pytest.raises(ValueError):
        Hotkey.parse(raw)


def test_parse_fallback():
    fallback = Hotkey(("control", "option"), "e")
    assert Hotkey.parse("nonsense", fallback=fallback) is fallback
