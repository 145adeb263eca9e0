"""
Screen, keyboard and window control tool (Anthropic `computer`).

Uses pyautogui for the mouse, keyboard and screen capture, and pywinctl for
window management. Both backends can be injected; otherwise they are
imported when the tool is constructed, since pyautogui needs a display.

Coordinates the model sends are in a scaled "API space" (XGA, WXGA or
FWXGA, whichever matches the screen's aspect ratio) and are mapped back to
physical pixels before use.
"""

import time
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from core.constants import (
    MAX_SCALING_TARGETS,
    SCREENSHOT_DELAY_S,
    SCREENSHOT_RETRY_COUNT,
    SCREENSHOT_RETRY_DELAY_S,
    TYPING_DELAY_MS,
    TYPING_GROUP_SIZE,
)
from core.errors import ToolError
from core.tool_base import (
    BaseTool,
    ToolResult,
    ToolSpec,
    array_param,
    int_param,
    make_schema,
    string_param,
)
from tools.screenshots import ScreenshotStore, compress_screenshot

ACTIONS = [
    "mouse_move",
    "left_click",
    "right_click",
    "middle_click",
    "double_click",
    "left_click_drag",
    "mouse_toggle",
    "mouse_scroll",
    "key",
    "type",
    "key_toggle",
    "key_tap_multiple",
    "screenshot",
    "cursor_position",
    "focus_window",
    "move_window",
    "resize_window",
    "minimize_window",
    "maximize_window",
]

CLICK_BUTTONS = {
    "left_click": "left",
    "right_click": "right",
    "middle_click": "middle",
}

# xdotool-style key names the model uses -> pyautogui key names
KEY_MAPPINGS: Dict[str, str] = {
    "Return": "enter",
    "Tab": "tab",
    "space": "space",
    "BackSpace": "backspace",
    "Delete": "delete",
    "Escape": "escape",
    "Up": "up",
    "Down": "down",
    "Left": "left",
    "Right": "right",
    "Home": "home",
    "End": "end",
    "Page_Up": "pageup",
    "Page_Down": "pagedown",
    **{f"F{i}": f"f{i}" for i in range(1, 13)},
}

MODIFIER_MAPPINGS: Dict[str, str] = {
    "control": "ctrl",
    "super": "win",
    "meta": "win",
    "cmd": "command",
    "option": "alt",
}

ASPECT_RATIO_TOLERANCE = 0.02


def chunks(text: str, size: int) -> List[str]:
    return [text[i:i + size] for i in range(0, len(text), size)]


def map_key(key: str) -> str:
    return KEY_MAPPINGS.get(key, key.lower())


def map_modifier(modifier: str) -> str:
    modifier = modifier.strip().lower()
    return MODIFIER_MAPPINGS.get(modifier, modifier)


class ComputerTool(BaseTool):
    """
    Drive the local desktop for the model.

    Every action except `cursor_position` answers with a fresh screenshot
    taken after a short settle delay.

    Args:
        gui: pyautogui-compatible backend (imported if omitted)
        windows: pywinctl-compatible backend (imported if omitted)
        display_num: X display number advertised to the model
        screenshot_store: Optional archive for every capture
        screenshot_delay: Seconds to wait before capturing
        sleep: Sleep function (replaced in tests)
    """

    def __init__(
        self,
        gui: Any = None,
        windows: Any = None,
        display_num: Optional[int] = None,
        screenshot_store: Optional[ScreenshotStore] = None,
        screenshot_delay: float = SCREENSHOT_DELAY_S,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if gui is None:
            import pyautogui as gui
        if windows is None:
            import pywinctl as windows

        self.gui = gui
        self.windows = windows
        self.display_num = display_num
        self.screenshot_store = screenshot_store
        self.screenshot_delay = screenshot_delay
        self._sleep = sleep
        self.scaling_enabled = True

        width, height = gui.size()
        self.width = int(width)
        self.height = int(height)
        logger.debug("Screen size {}x{}", self.width, self.height)

    def describe(self) -> ToolSpec:
        api_width, api_height = self.scale_coordinates("computer", self.width, self.height)
        return ToolSpec(
            name="computer",
            description=(
                f"Control the mouse, keyboard and windows of a {api_width}x{api_height} screen. "
                "Every action except cursor_position returns a screenshot."
            ),
            input_schema=make_schema(
                properties={
                    "action": string_param("The action to perform", enum=ACTIONS),
                    "text": string_param("Text to type, or key / key combination such as ctrl+s"),
                    "coordinate": array_param("[x, y] screen position", item_type="integer"),
                    "scroll_amount": int_param("Scroll clicks (mouse_scroll)", minimum=1),
                    "direction": string_param("Scroll direction", enum=["up", "down", "left", "right"]),
                    "toggle_state": string_param("Press or release (mouse_toggle, key_toggle)", enum=["up", "down"]),
                    "button": string_param("Mouse button (mouse_toggle)", enum=["left", "right", "middle"]),
                    "window_title": string_param("Title or part of the title of a window"),
                    "size": {
                        "type": "object",
                        "description": "New window size (resize_window)",
                        "properties": {"width": {"type": "integer"}, "height": {"type": "integer"}},
                    },
                    "modifiers": array_param("Modifier keys held during key_tap_multiple"),
                    "repeat": int_param("Number of key taps (key_tap_multiple)", minimum=1),
                    "delay": int_param("Milliseconds between key taps (key_tap_multiple)", minimum=0),
                },
                required=["action"]
            ),
            api_type="computer_20241022",
            extra_params={
                "display_width_px": api_width,
                "display_height_px": api_height,
                "display_number": self.display_num,
            },
        )

    def execute(
        self,
        action: Optional[str] = None,
        text: Optional[str] = None,
        coordinate: Optional[Sequence[int]] = None,
        scroll_amount: int = 1,
        direction: str = "down",
        toggle_state: Optional[str] = None,
        button: str = "left",
        window_title: Optional[str] = None,
        size: Optional[Dict[str, int]] = None,
        modifiers: Optional[List[str]] = None,
        repeat: int = 1,
        delay: int = 50,
        **kwargs
    ) -> ToolResult:
        if action not in ACTIONS:
            raise ToolError(f"Invalid action: {action}")

        logger.debug("computer: {} text={!r} coordinate={}", action, text, coordinate)

        # --- MOUSE ---

        if action in ("mouse_move", "left_click_drag"):
            if coordinate is None:
                raise ToolError(f"coordinate is required for {action}")
            if text:
                raise ToolError(f"text is not accepted for {action}")
            x, y = self._to_screen(coordinate)
            if action == "mouse_move":
                self.gui.moveTo(x, y)
            else:
                self.gui.dragTo(x, y, button="left")
            return self.take_delayed_screenshot()

        if action in ("left_click", "right_click", "middle_click", "double_click"):
            if text:
                raise ToolError(f"text is not accepted for {action}")
            if coordinate is not None:
                raise ToolError(f"coordinate is not accepted for {action}")
            if action == "double_click":
                self.gui.doubleClick()
            else:
                self.gui.click(button=CLICK_BUTTONS[action])
            return self.take_delayed_screenshot()

        if action == "mouse_toggle":
            if toggle_state not in ("up", "down"):
                raise ToolError("toggle_state and button are required for mouse_toggle")
            if toggle_state == "down":
                self.gui.mouseDown(button=button)
            else:
                self.gui.mouseUp(button=button)
            return self.take_delayed_screenshot()

        if action == "mouse_scroll":
            if not scroll_amount:
                raise ToolError("scroll_amount is required for mouse_scroll")
            self._scroll(direction, scroll_amount)
            return self.take_delayed_screenshot()

        # --- KEYBOARD ---

        if action in ("key", "type"):
            if not text:
                raise ToolError(f"text is required for {action}")
            if coordinate is not None:
                raise ToolError(f"coordinate is not accepted for {action}")
            if action == "key":
                self._press_combo(text)
            else:
                self._type_text(text)
            return self.take_delayed_screenshot()

        if action == "key_toggle":
            if not text:
                raise ToolError("text (key) is required for key_toggle")
            if toggle_state not in ("up", "down"):
                raise ToolError("toggle_state is required for key_toggle")
            if toggle_state == "down":
                self.gui.keyDown(map_key(text))
            else:
                self.gui.keyUp(map_key(text))
            return self.take_delayed_screenshot()

        if action == "key_tap_multiple":
            if not text:
                raise ToolError("text (key) is required for key_tap_multiple")
            keys = [map_modifier(m) for m in modifiers or []] + [map_key(text)]
            for i in range(max(repeat, 1)):
                self.gui.hotkey(*keys)
                if i < repeat - 1:
                    self._sleep(delay / 1000)
            return self.take_delayed_screenshot()

        # --- SCREEN ---

        if action == "screenshot":
            return self.take_delayed_screenshot()

        if action == "cursor_position":
            position = self.gui.position()
            x, y = self.scale_coordinates("computer", position[0], position[1])
            return ToolResult(output=f"X={x},Y={y}")

        # --- WINDOWS ---

        if not window_title:
            raise ToolError(f"window_title is required for {action}")
        target = self._find_window(window_title)

        if action == "focus_window":
            target.activate()
        elif action == "move_window":
            if coordinate is None:
                raise ToolError("window_title and coordinate are required for move_window")
            x, y = self._to_screen(coordinate)
            target.moveTo(x, y)
        elif action == "resize_window":
            if not size or "width" not in size or "height" not in size:
                raise ToolError("window_title and size are required for resize_window")
            target.resizeTo(int(size["width"]), int(size["height"]))
        elif action == "minimize_window":
            target.minimize()
        elif action == "maximize_window":
            target.maximize()

        return self.take_delayed_screenshot()

    # --- SCALING ---

    def _scaling_target(self) -> Optional[Dict[str, int]]:
        ratio = self.width / self.height
        for dimension in MAX_SCALING_TARGETS.values():
            if abs(dimension["width"] / dimension["height"] - ratio) < ASPECT_RATIO_TOLERANCE:
                if dimension["width"] < self.width:
                    return dimension
        return None

    def scale_coordinates(self, source: str, x: int, y: int) -> Tuple[int, int]:
        """
        Map a point between API space ("api") and the physical screen ("computer").

        Raises:
            ToolError: if an API-space point lies outside the advertised screen
        """
        target = self._scaling_target() if self.scaling_enabled else None
        if target is None:
            if source == "api" and (x > self.width or y > self.height):
                raise ToolError(f"Coordinates {x}, {y} are outside screen bounds ({self.width}x{self.height})")
            return x, y

        x_factor = target["width"] / self.width
        y_factor = target["height"] / self.height

        if source == "api":
            if x > target["width"] or y > target["height"]:
                raise ToolError(
                    f"Coordinates {x}, {y} are outside screen bounds ({target['width']}x{target['height']})"
                )
            return round(x / x_factor), round(y / y_factor)

        return round(x * x_factor), round(y * y_factor)

    def _to_screen(self, coordinate: Sequence[int]) -> Tuple[int, int]:
        """Validate an API coordinate and convert it to physical pixels."""
        if (
            not isinstance(coordinate, (list, tuple))
            or len(coordinate) != 2
            or not all(isinstance(i, int) and i >= 0 for i in coordinate)
        ):
            raise ToolError(f"{coordinate} must be a tuple of non-negative ints")

        x, y = self.scale_coordinates("api", coordinate[0], coordinate[1])
        if x < 0 or x > self.width or y < 0 or y > self.height:
            raise ToolError(f"Coordinates ({x}, {y}) are outside screen bounds ({self.width}x{self.height})")
        return x, y

    # --- INPUT HELPERS ---

    def _scroll(self, direction: str, amount: int) -> None:
        # pyautogui scrolls up for positive clicks
        if direction == "up":
            self.gui.scroll(amount)
        elif direction == "down":
            self.gui.scroll(-amount)
        elif direction == "left":
            self.gui.hscroll(-amount)
        elif direction == "right":
            self.gui.hscroll(amount)
        else:
            raise ToolError(f"Invalid scroll direction: {direction}")

    def _press_combo(self, text: str) -> None:
        """Press a key or a combination like ctrl+shift+t."""
        *modifiers, key = text.split("+")
        if modifiers:
            self.gui.hotkey(*[map_modifier(m) for m in modifiers], map_key(key))
        else:
            self.gui.press(map_key(key))

    def _type_text(self, text: str) -> None:
        for chunk in chunks(text, TYPING_GROUP_SIZE):
            self.gui.write(chunk, interval=TYPING_DELAY_MS / 1000)

    def _find_window(self, query: str) -> Any:
        """Exact title match first, then the longest title containing the query."""
        all_windows = [w for w in self.windows.getAllWindows() if w.title]
        for win in all_windows:
            if win.title == query:
                return win

        query_lower = query.lower()
        matches = [w for w in all_windows if query_lower in w.title.lower()]
        if not matches:
            raise ToolError(f"Window '{query}' not found")
        matches.sort(key=lambda w: len(w.title), reverse=True)
        return matches[0]

    # --- SCREENSHOTS ---

    def take_screenshot(self) -> ToolResult:
        """Capture, compress and optionally archive the screen."""
        try:
            image = self.gui.screenshot()
        except Exception as e:
            raise ToolError(f"Failed to take screenshot: {e}") from None

        compressed = compress_screenshot(image)
        if self.screenshot_store is not None:
            self.screenshot_store.save(image, compressed)

        return ToolResult(base64_image=compressed.base64, media_type=compressed.media_type)

    def take_delayed_screenshot(self) -> ToolResult:
        """Wait for the UI to settle, then capture, retrying failed captures."""
        self._sleep(self.screenshot_delay)

        for attempt in range(1, SCREENSHOT_RETRY_COUNT + 1):
            try:
                return self.take_screenshot()
            except ToolError as e:
                if attempt == SCREENSHOT_RETRY_COUNT:
                    raise
                logger.warning("Screenshot attempt {} failed, retrying: {}", attempt, e.message)
                self._sleep(SCREENSHOT_RETRY_DELAY_S)

        raise ToolError("Failed to take screenshot after multiple attempts")
