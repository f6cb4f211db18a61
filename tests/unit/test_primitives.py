"""
Unit Tests - Dialog, DropdownMenu and Popover state
"""
from unittest.mock import MagicMock

import pytest

from expense_portal.ui.primitives import Dialog, DropdownMenu, MenuItem, Popover, RegionTree


class TestDialog:
    """Tests for the modal dialog"""

    @pytest.mark.unit
    def test_uncontrolled_open_close(self):
        dialog = Dialog()
        assert dialog.is_open is False
        dialog.open()
        assert dialog.is_open is True
        assert dialog.scroll_locked is True
        dialog.close()
        assert dialog.scroll_locked is False

    @pytest.mark.unit
    def test_default_open(self):
        assert Dialog(default_open=True).is_open is True

    @pytest.mark.unit
    def test_controlled_reports_without_changing_state(self):
        on_open_change = MagicMock()
        dialog = Dialog(open=True, on_open_change=on_open_change)

        dialog.click(Dialog.BACKDROP)

        on_open_change.assert_called_once_with(False)
        assert dialog.is_open is True

    @pytest.mark.unit
    def test_controlled_follows_owner(self):
        dialog = Dialog(open=False)
        dialog.set_controlled_open(True)
        assert dialog.is_open is True

    @pytest.mark.unit
    @pytest.mark.parametrize("target", [Dialog.BACKDROP, Dialog.CLOSE_BUTTON])
    def test_backdrop_and_close_button_close(self, target):
        dialog = Dialog(default_open=True)
        dialog.click(target)
        assert dialog.is_open is False

    @pytest.mark.unit
    def test_click_inside_content_keeps_open(self):
        dialog = Dialog(default_open=True)
        dialog.click(Dialog.CONTENT)
        assert dialog.is_open is True

    @pytest.mark.unit
    def test_click_on_closed_dialog_reports_nothing(self):
        on_open_change = MagicMock()
        dialog = Dialog(on_open_change=on_open_change)
        dialog.click(Dialog.BACKDROP)
        on_open_change.assert_not_called()

    @pytest.mark.unit
    def test_toggle(self):
        dialog = Dialog()
        dialog.toggle()
        assert dialog.is_open is True
        dialog.toggle()
        assert dialog.is_open is False


class TestRegionTree:
    """Tests for ancestor lookup"""

    @pytest.mark.unit
    def test_contains_descendant(self):
        tree = RegionTree({"icon": "button", "button": "menu"})
        assert tree.contains("menu", "icon") is True
        assert tree.contains("button", "menu") is False

    @pytest.mark.unit
    def test_cycle_terminates(self):
        tree = RegionTree({"a": "b", "b": "a"})
        assert tree.ancestry("a") == ["a", "b"]
        assert tree.contains("c", "a") is False

    @pytest.mark.unit
    def test_detach(self):
        tree = RegionTree()
        tree.attach("item", "menu")
        tree.detach("item")
        assert tree.contains("menu", "item") is False


class TestDropdownMenu:
    """Tests for dropdown menus"""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_select_closes_before_action(self):
        seen = []
        menu = DropdownMenu(default_open=True)
        menu.items.append(MenuItem("edit", "ערוך", action=lambda: seen.append(menu.is_open)))

        assert await menu.select("edit") is True

        assert seen == [False]
        assert menu.is_open is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_async_action_is_awaited(self):
        calls = []

        async def action():
            calls.append("deleted")

        menu = DropdownMenu(items=[MenuItem("delete", "מחק", action=action)], default_open=True)
        await menu.select("delete")
        assert calls == ["deleted"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_disabled_item_does_nothing(self):
        action = MagicMock()
        menu = DropdownMenu(items=[MenuItem("delete", "מחק", action=action, disabled=True)], default_open=True)

        assert await menu.select("delete") is False

        action.assert_not_called()
        assert menu.is_open is True

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_item(self):
        with pytest.raises(KeyError):
            await DropdownMenu().select("missing")

    @pytest.mark.unit
    def test_outside_pointer_down_closes(self):
        tree = RegionTree({"item-edit": "menu-content"})
        menu = DropdownMenu(tree=tree, regions=["menu-trigger", "menu-content"], default_open=True)

        menu.pointer_down("item-edit")
        assert menu.is_open is True

        menu.pointer_down("page")
        assert menu.is_open is False


class TestPopover:
    """Tests for the filter popover"""

    @pytest.mark.unit
    def test_outside_click_closes(self):
        popover = Popover(regions=["filters"], default_open=True)
        popover.pointer_down("filters")
        assert popover.is_open is True
        popover.pointer_down("table")
        assert popover.is_open is False

    @pytest.mark.unit
    def test_register_region_later(self):
        tree = RegionTree({"date-picker-day": "date-picker"})
        popover = Popover(tree=tree, default_open=True)
        popover.register_region("date-picker")

        popover.pointer_down("date-picker-day")

        assert popover.is_open is True
