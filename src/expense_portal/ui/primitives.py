"""
Generic UI primitives: dialog, dropdown menu and popover.

Each primitive is a small open/close state holder shared by the pieces of
UI rendered for it (trigger, content, items). Pointer events carry a target
id; a target is "inside" a primitive when the target, or one of its
ancestors, is a registered region of that primitive.
"""
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Set, Union

OpenChangeHandler = Callable[[bool], None]
ItemAction = Callable[[], Union[None, Awaitable[None]]]


class RegionTree:
    """
    Parent links between element ids.

    Stands in for the DOM: `contains(region, target)` walks up from the
    target until it finds the region or runs out of ancestors.
    """

    def __init__(self, parents: Optional[Dict[str, str]] = None):
        self._parents: Dict[str, str] = dict(parents or {})

    def attach(self, child: str, parent: str) -> None:
        self._parents[child] = parent

    def detach(self, child: str) -> None:
        self._parents.pop(child, None)

    def ancestry(self, target: str) -> List[str]:
        chain = [target]
        seen = {target}
        while chain[-1] in self._parents:
            parent = self._parents[chain[-1]]
            if parent in seen:
                break
            chain.append(parent)
            seen.add(parent)
        return chain

    def contains(self, region: str, target: str) -> bool:
        return region in self.ancestry(target)


class Disclosure:
    """
    Open/closed state, controlled or uncontrolled.

    Controlled: the owner passes `open` and `on_open_change` and keeps the
    state itself; the disclosure only reports requested changes.
    Uncontrolled: the disclosure keeps its own flag.
    """

    def __init__(
        self,
        open: Optional[bool] = None,
        on_open_change: Optional[OpenChangeHandler] = None,
        default_open: bool = False,
    ):
        self._controlled_open = open
        self._internal_open = default_open
        self._on_open_change = on_open_change

    @property
    def is_controlled(self) -> bool:
        return self._controlled_open is not None

    @property
    def is_open(self) -> bool:
        if self._controlled_open is not None:
            return self._controlled_open
        return self._internal_open

    def set_controlled_open(self, open: bool) -> None:
        """Owner-side update of a controlled disclosure."""
        self._controlled_open = open

    def set_open(self, open: bool) -> None:
        if self._on_open_change is not None:
            self._on_open_change(open)
        if not self.is_controlled:
            self._internal_open = open

    def open(self) -> None:
        self.set_open(True)

    def close(self) -> None:
        self.set_open(False)

    def toggle(self) -> None:
        self.set_open(not self.is_open)


class Dialog(Disclosure):
    """
    Modal dialog.

    Holds the page-scroll lock while open. Clicking the backdrop or the
    close button closes it; clicks inside the content do not.
    """

    BACKDROP = "backdrop"
    CLOSE_BUTTON = "close"
    CONTENT = "content"

    @property
    def scroll_locked(self) -> bool:
        return self.is_open

    def click(self, target: str) -> None:
        """Handle a click on BACKDROP, CLOSE_BUTTON or CONTENT."""
        if not self.is_open:
            return
        if target in (self.BACKDROP, self.CLOSE_BUTTON):
            self.close()


@dataclass
class MenuItem:
    """One selectable entry of a dropdown menu"""
    key: str
    label: str
    action: Optional[ItemAction] = None
    disabled: bool = False
    destructive: bool = False


class OutsideClickDisclosure(Disclosure):
    """Disclosure that closes on pointer-down outside its registered regions."""

    def __init__(self, tree: Optional[RegionTree] = None, regions: Iterable[str] = (), **kwargs):
        super().__init__(**kwargs)
        self.tree = tree or RegionTree()
        self.regions: Set[str] = set(regions)

    def register_region(self, region: str) -> None:
        self.regions.add(region)

    def is_inside(self, target: str) -> bool:
        return any(self.tree.contains(region, target) for region in self.regions)

    def pointer_down(self, target: str) -> None:
        if self.is_open and not self.is_inside(target):
            self.close()


class DropdownMenu(OutsideClickDisclosure):
    """Dropdown menu; choosing an item closes the menu first, then runs the action."""

    def __init__(self, items: Optional[List[MenuItem]] = None, **kwargs):
        super().__init__(**kwargs)
        self.items: List[MenuItem] = list(items or [])

    def item(self, key: str) -> MenuItem:
        for item in self.items:
            if item.key == key:
                return item
        raise KeyError(key)

    async def select(self, key: str) -> bool:
        """Select an item by key; returns False when it is disabled."""
        item = self.item(key)
        if item.disabled:
            return False
        self.close()
        if item.action is not None:
            result = item.action()
            if result is not None:
                await result
        return True


class Popover(OutsideClickDisclosure):
    """Floating panel anchored to a trigger"""
