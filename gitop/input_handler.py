"""Key dispatch for the interactive loop."""

import curses

from .view_state import ViewState

QUIT_KEYS = (ord("q"),)
UP_KEYS = (curses.KEY_UP,)
DOWN_KEYS = (curses.KEY_DOWN,)
ENTER_KEYS = (10, 13, curses.KEY_ENTER)


class InputHandler:
    """Translates key codes into view-state mutations. Unbound keys are ignored."""

    def __init__(self, view_state: ViewState):
        self.view_state = view_state
        self.should_quit = False

    def handle_key(self, key: int) -> bool:
        """Apply a key; returns True if it was bound to an action."""
        if key in QUIT_KEYS:
            self.should_quit = True
        elif key in UP_KEYS:
            self.view_state.previous()
        elif key in DOWN_KEYS:
            self.view_state.next()
        elif key in ENTER_KEYS:
            self.view_state.toggle_expand()
        else:
            return False
        return True
