"""Curses dashboard for gitop: repository table, console and key help."""

from __future__ import annotations

import curses
import locale
import time
from dataclasses import dataclass, field
from typing import Optional, Sequence

from ..config import ColorConfig
from ..flash import EmphasisTier, emphasis_tier
from ..models import EventRecord, FlashColor, RepositoryStatus
from ..view_state import flatten, row_spans, total_rows

TICK_RATE = 0.25
CONSOLE_LINES = 8

# title + column header + console frame (title) + footer
_RESERVED_SCREEN_ROWS = 4

# name, min_width, weight, align; weight 0 is fixed width
_COLUMN_SPECS = [
    ("Repository", 16, 2, "left"),
    ("Ahead", 8, 0, "left"),
    ("Behind", 11, 0, "left"),
    ("Branch", 10, 1, "left"),
    ("Checked", 7, 0, "right"),
]
_SHRINK_ORDER = ["Branch", "Repository", "Checked", "Ahead", "Behind"]
_SHRINK_FLOOR = {"Branch": 4, "Repository": 6, "Checked": 3, "Ahead": 3, "Behind": 3}
_COLUMN_SEP = "  "

_FOOTER = "↑/↓: Navigate  Enter: Expand/Collapse  q: Quit"

_COLOR_NAMES = {
    "black": curses.COLOR_BLACK,
    "red": curses.COLOR_RED,
    "green": curses.COLOR_GREEN,
    "yellow": curses.COLOR_YELLOW,
    "blue": curses.COLOR_BLUE,
    "magenta": curses.COLOR_MAGENTA,
    "cyan": curses.COLOR_CYAN,
    "white": curses.COLOR_WHITE,
    "gray": curses.COLOR_WHITE,
    "grey": curses.COLOR_WHITE,
    "darkgray": curses.COLOR_BLACK,
    "darkgrey": curses.COLOR_BLACK,
    "lightred": curses.COLOR_RED,
    "lightgreen": curses.COLOR_GREEN,
    "lightyellow": curses.COLOR_YELLOW,
    "lightblue": curses.COLOR_BLUE,
    "lightmagenta": curses.COLOR_MAGENTA,
    "lightcyan": curses.COLOR_CYAN,
}
_DEFAULT_COLOR_NAMES = ("reset", "default", "normal")


@dataclass
class TableRow:
    """A render row: a repository or one of its expanded commits."""

    kind: str  # repo, commit
    repo_index: int
    columns: dict[str, str] = field(default_factory=dict)
    ahead: int = 0
    behind: int = 0
    flash_color: Optional[FlashColor] = None
    tier: EmphasisTier = EmphasisTier.NONE


def parse_color(name: Optional[str]) -> int:
    """Map a color name or #RRGGBB to a basic curses color; -1 is the terminal default."""
    if not name:
        return -1
    lowered = name.strip().lower()
    if lowered in _DEFAULT_COLOR_NAMES:
        return -1
    if lowered in _COLOR_NAMES:
        return _COLOR_NAMES[lowered]

    hex_value = lowered.lstrip("#")
    if len(hex_value) != 6:
        return -1
    try:
        red, green, blue = (int(hex_value[i:i + 2], 16) for i in (0, 2, 4))
    except ValueError:
        return -1
    # Nearest of the eight basic colors: curses numbers them as RGB bits.
    return (1 if red >= 128 else 0) | (2 if green >= 128 else 0) | (4 if blue >= 128 else 0)


def _elapsed_label(seconds: int) -> str:
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m"
    return f"{seconds // 3600}h"


def _count_label(count: int, arrow: str) -> str:
    return f"{arrow}{count}" if count > 0 else "0"


def build_table_rows(statuses: Sequence[RepositoryStatus], now: float) -> list[TableRow]:
    """Flatten repository statuses into rows in the same order as the view state."""
    rows: list[TableRow] = []
    for repo_index, status in enumerate(statuses):
        tier = emphasis_tier(status.flash, now)
        rows.append(
            TableRow(
                kind="repo",
                repo_index=repo_index,
                columns={
                    "Repository": status.name,
                    "Ahead": _count_label(status.ahead, "↑"),
                    "Behind": _count_label(status.behind, "↓"),
                    "Branch": status.branch,
                    "Checked": _elapsed_label(max(0, int(now - status.last_update))),
                },
                ahead=status.ahead,
                behind=status.behind,
                flash_color=status.flash.color if tier != EmphasisTier.NONE else None,
                tier=tier,
            )
        )
        if not status.expanded:
            continue
        for commit in status.recent_commits:
            rows.append(
                TableRow(
                    kind="commit",
                    repo_index=repo_index,
                    columns={
                        "Repository": f"  └─ {commit.hash} - {commit.message}",
                        "Ahead": commit.author,
                        "Behind": commit.timestamp.astimezone().strftime("%m/%d %H:%M"),
                        "Branch": f"({commit.branch})",
                        "Checked": "",
                    },
                )
            )
    return rows


def console_lines(event_log_records: Sequence[EventRecord]) -> list[str]:
    return [record.format() for record in event_log_records]


def _truncate(text: str, width: int, align: str = "left") -> str:
    """Clip to `width` cells with a trailing ellipsis, then pad."""
    if width <= 0:
        return ""
    value = text or ""
    if len(value) > width:
        value = value[: width - 1] + "\u2026" if width > 1 else value[:1]
    return value.rjust(width) if align == "right" else value.ljust(width)


def _compute_column_widths(content_width: int) -> dict[str, int]:
    """Fixed count columns; Repository and Branch split whatever is left.

    Count columns are sized to hold a commit row's author and date, and are
    the last to give up space on a narrow terminal.
    """
    if content_width <= 10:
        return {name: 1 for name, _, _, _ in _COLUMN_SPECS}

    widths = {name: minimum for name, minimum, _, _ in _COLUMN_SPECS}
    sep_total = len(_COLUMN_SEP) * (len(_COLUMN_SPECS) - 1)
    spare = content_width - (sum(widths.values()) + sep_total)

    if spare >= 0:
        flexible = [(name, weight) for name, _, weight, _ in _COLUMN_SPECS if weight > 0]
        total_weight = sum(weight for _, weight in flexible)
        for name, weight in flexible:
            widths[name] += (spare * weight) // total_weight
        widths["Repository"] += content_width - (sum(widths.values()) + sep_total)
        return widths

    deficit = -spare
    for name in _SHRINK_ORDER:
        give = min(deficit, widths[name] - _SHRINK_FLOOR[name])
        widths[name] -= give
        deficit -= give
        if deficit == 0:
            break
    return widths


def _header_line(widths: dict[str, int]) -> str:
    return _COLUMN_SEP.join(
        _truncate(name, widths[name], align=align) for name, _, _, align in _COLUMN_SPECS
    )


def _row_cells(row: TableRow, widths: dict[str, int]) -> list[tuple[str, str]]:
    """(column name, padded text) pairs for one row."""
    return [
        (name, _truncate(row.columns.get(name, ""), widths[name], align=align))
        for name, _, _, align in _COLUMN_SPECS
    ]


def _scroll_offset(selected_row: Optional[int], scroll_offset: int, row_count: int, max_rows: int) -> int:
    if selected_row is None or max_rows <= 0:
        return 0
    if selected_row < scroll_offset:
        scroll_offset = selected_row
    elif selected_row >= scroll_offset + max_rows:
        scroll_offset = selected_row - max_rows + 1
    max_offset = max(0, row_count - max_rows)
    return max(0, min(scroll_offset, max_offset))


def _init_colors(colors: ColorConfig) -> dict[str, int]:
    palette = {
        "header": 0,
        "ahead": 0,
        "behind": 0,
        "flash_alert": 0,
        "flash_synced": 0,
    }

    if not curses.has_colors():
        return palette

    try:
        curses.start_color()
        curses.use_default_colors()
        curses.init_pair(1, curses.COLOR_CYAN, -1)
        curses.init_pair(2, parse_color(colors.ahead_color), -1)
        curses.init_pair(3, parse_color(colors.behind_color), -1)
        curses.init_pair(4, parse_color(colors.flash_alert_color), -1)
        curses.init_pair(5, parse_color(colors.flash_synced_color), -1)

        palette["header"] = curses.color_pair(1)
        palette["ahead"] = curses.color_pair(2)
        palette["behind"] = curses.color_pair(3)
        palette["flash_alert"] = curses.color_pair(4)
        palette["flash_synced"] = curses.color_pair(5)
    except curses.error:
        return {k: 0 for k in palette}

    return palette


def _tier_attr(tier: EmphasisTier) -> int:
    if tier == EmphasisTier.MAXIMUM:
        return curses.A_BOLD | curses.A_BLINK
    if tier == EmphasisTier.STRONG:
        return curses.A_BOLD
    if tier == EmphasisTier.SUBDUED:
        return curses.A_UNDERLINE
    if tier == EmphasisTier.MINIMAL:
        return curses.A_DIM
    return curses.A_NORMAL


def _row_attr(row: TableRow, palette: dict[str, int]) -> int:
    if row.kind == "commit":
        return curses.A_DIM
    if row.flash_color is None:
        return curses.A_NORMAL
    color = palette["flash_alert"] if row.flash_color == FlashColor.ALERT else palette["flash_synced"]
    return color | _tier_attr(row.tier)


def _cell_attr(name: str, row: TableRow, base_attr: int, palette: dict[str, int]) -> int:
    if row.kind != "repo" or row.flash_color is not None:
        return base_attr
    if name == "Ahead" and row.ahead > 0:
        return base_attr | palette["ahead"]
    if name == "Behind" and row.behind > 0:
        return base_attr | palette["behind"]
    return base_attr


def _addnstr(stdscr, y: int, x: int, text: str, width: int, attr: int):
    if width <= 0:
        return
    try:
        stdscr.addnstr(y, x, text, width, attr)
    except curses.error:
        # Writing the bottom-right cell raises after the text is drawn.
        pass


def render(
    stdscr,
    rows: list[TableRow],
    selected_row: Optional[int],
    scroll_offset: int,
    repo_count: int,
    events: Sequence[EventRecord],
    palette: dict[str, int],
):
    stdscr.erase()
    height, width = stdscr.getmaxyx()

    console_height = min(CONSOLE_LINES, max(0, height - _RESERVED_SCREEN_ROWS - 3))
    table_height = max(0, height - _RESERVED_SCREEN_ROWS - console_height)

    title = f"GitOp - {repo_count} repositories"
    _addnstr(stdscr, 0, 0, title, width - 1, curses.A_BOLD | palette["header"])

    content_width = max(1, width - 2)
    widths = _compute_column_widths(content_width)
    _addnstr(stdscr, 1, 2, _header_line(widths), width - 3, curses.A_BOLD | palette["header"])

    y = 2
    for flat_row, row in enumerate(rows[scroll_offset: scroll_offset + table_height], start=scroll_offset):
        is_selected = flat_row == selected_row
        base_attr = _row_attr(row, palette)
        if is_selected:
            base_attr |= curses.A_REVERSE | curses.A_BOLD
        _addnstr(stdscr, y, 0, ">" if is_selected else " ", 1, base_attr)
        x = 2
        for name, text in _row_cells(row, widths):
            _addnstr(stdscr, y, x, text, width - 1 - x, _cell_attr(name, row, base_attr, palette))
            x += len(text) + len(_COLUMN_SEP)
        y += 1

    console_top = 2 + table_height
    if console_top < height - 1:
        _addnstr(stdscr, console_top, 0, "Console", width - 1, curses.A_BOLD | palette["header"])
        for offset, line in enumerate(console_lines(events[:console_height]), start=1):
            if console_top + offset >= height - 1:
                break
            _addnstr(stdscr, console_top + offset, 2, line, width - 3, curses.A_NORMAL)

    _addnstr(stdscr, height - 1, 0, _FOOTER, width - 1, curses.A_DIM)
    stdscr.refresh()


def run_monitor_tui(app, tick_rate: float = TICK_RATE) -> int:
    """Run the interactive loop until 'q'; curses.wrapper restores the terminal."""

    def _loop(stdscr):
        curses.curs_set(0)
        stdscr.keypad(True)
        palette = _init_colors(app.config.colors)

        scroll_offset = 0
        last_tick = time.monotonic()

        while not app.should_quit:
            now = time.monotonic()
            statuses = app.registry.snapshot()
            spans = row_spans(statuses)
            selected_index = app.view_state.selected_repo_index()
            selected_row = None if selected_index is None else flatten(spans, selected_index)
            rows = build_table_rows(statuses, now)

            height = stdscr.getmaxyx()[0]
            console_height = min(CONSOLE_LINES, max(0, height - _RESERVED_SCREEN_ROWS - 3))
            max_rows = max(0, height - _RESERVED_SCREEN_ROWS - console_height)
            scroll_offset = _scroll_offset(selected_row, scroll_offset, total_rows(spans), max_rows)

            render(
                stdscr,
                rows=rows,
                selected_row=selected_row,
                scroll_offset=scroll_offset,
                repo_count=len(statuses),
                events=app.event_log.recent(CONSOLE_LINES),
                palette=palette,
            )

            remaining = max(0.0, tick_rate - (time.monotonic() - last_tick))
            stdscr.timeout(int(remaining * 1000))
            key = stdscr.getch()
            if key != -1:
                app.input_handler.handle_key(key)

            if time.monotonic() - last_tick >= tick_rate:
                last_tick = time.monotonic()

    locale.setlocale(locale.LC_ALL, "")
    curses.wrapper(_loop)
    return 0
