"""Interactive service console: htop-style list with stop/restart keys."""

import curses
import time
from typing import List, Optional

from .config import EXPORT_DIR, REFRESH_INTERVAL, REFRESH_MIN_INTERVAL, PORT_RANGES
from .deck import ServiceDeck
from .errors import PortDeckError
from .models import Service

STATUS_TTL = 6.0
RECENT_ACTIONS = 3


class ServiceDashboard:
    def __init__(self, deck: ServiceDeck, interval: float = REFRESH_INTERVAL) -> None:
        self.deck = deck
        self.interval = max(interval, REFRESH_MIN_INTERVAL)
        self.services: List[Service] = []
        self.selected_index = 0
        self.scroll_offset = 0
        self.last_refresh = 0.0
        self.status_message = ""
        self.status_timestamp = 0.0

    def run(self) -> None:
        curses.wrapper(self._main)

    def update_data(self) -> None:
        try:
            self.services = self.deck.list_services()
        except PortDeckError as exc:
            self.services = []
            self.set_status(f"Discovery failed: {exc}")
        self.move_selection(0)

    def stop_selected(self) -> None:
        service = self._current_selection()
        if not service:
            self.set_status("No service selected")
            return
        try:
            result = self.deck.stop_service(service.pid)
        except PortDeckError as exc:
            self.set_status(f"Stop failed for PID {service.pid}: {exc}")
            return
        suffix = " (force-killed)" if result.forced else ""
        self.set_status(f"Stopped {service.name} (PID {service.pid}) on :{service.port}{suffix}")
        self.last_refresh = 0.0

    def restart_selected(self) -> None:
        service = self._current_selection()
        if not service:
            self.set_status("No service selected")
            return
        try:
            result = self.deck.restart_service(service.pid)
        except PortDeckError as exc:
            self.set_status(f"Restart failed for PID {service.pid}: {exc}")
            return
        self.set_status(f"Restarted {service.name} on :{service.port}: {result.command}")
        self.last_refresh = 0.0

    def export_actions(self) -> None:
        if self.deck.action_log is None:
            self.set_status("Action log disabled")
            return
        try:
            path = self.deck.action_log.export(EXPORT_DIR)
        except OSError as exc:
            self.set_status(f"Export failed: {exc}")
            return
        self.set_status(f"Actions exported to {path}")

    def _current_selection(self) -> Optional[Service]:
        if not self.services:
            return None
        if self.selected_index < 0 or self.selected_index >= len(self.services):
            return None
        return self.services[self.selected_index]

    def move_selection(self, delta: int) -> None:
        if not self.services:
            self.selected_index = 0
            return
        self.selected_index = max(0, min(len(self.services) - 1, self.selected_index + delta))

    def set_status(self, message: str) -> None:
        self.status_message = message
        self.status_timestamp = time.time()

    def _main(self, stdscr: "curses._CursesWindow") -> None:
        curses.curs_set(0)
        stdscr.nodelay(True)
        stdscr.timeout(200)
        if curses.has_colors():
            curses.start_color()
            curses.use_default_colors()
            curses.init_pair(1, curses.COLOR_CYAN, -1)
            curses.init_pair(2, curses.COLOR_YELLOW, -1)
            curses.init_pair(3, curses.COLOR_BLACK, curses.COLOR_CYAN)
            curses.init_pair(4, curses.COLOR_GREEN, -1)
        while True:
            now = time.time()
            if now - self.last_refresh >= self.interval:
                self.update_data()
                self.last_refresh = now
            self.render(stdscr)
            try:
                key = stdscr.getch()
            except KeyboardInterrupt:
                break
            if key == -1:
                continue
            if key in (ord("q"), ord("Q")):
                break
            if key in (curses.KEY_UP, ord("k")):
                self.move_selection(-1)
            elif key in (curses.KEY_DOWN, ord("j")):
                self.move_selection(1)
            elif key in (curses.KEY_NPAGE,):
                self.move_selection(10)
            elif key in (curses.KEY_PPAGE,):
                self.move_selection(-10)
            elif key in (ord("g"),):
                self.selected_index = 0
            elif key in (ord("G"),):
                self.selected_index = max(0, len(self.services) - 1)
            elif key == ord(" "):
                self.last_refresh = 0.0
            elif key in (ord("s"), ord("S")):
                self._announce(stdscr, "Stopping")
                self.stop_selected()
            elif key in (ord("r"), ord("R")):
                self._announce(stdscr, "Restarting")
                self.restart_selected()
            elif key in (ord("e"), ord("E")):
                self.export_actions()

    def _announce(self, stdscr: "curses._CursesWindow", verb: str) -> None:
        # stop/restart block for several seconds; show progress first
        service = self._current_selection()
        if service:
            self.set_status(f"{verb} {service.name} (PID {service.pid})...")
            self.render(stdscr)

    def render(self, stdscr: "curses._CursesWindow") -> None:
        stdscr.erase()
        height, width = stdscr.getmaxyx()
        header_color = curses.color_pair(1) | curses.A_BOLD if curses.has_colors() else curses.A_BOLD
        ranges = ", ".join(f"{low}-{high}" for low, high in PORT_RANGES)
        header_text = f" portdeck - {len(self.services)} services on {ranges} - {time.strftime('%H:%M:%S')} "
        self._safe_addstr(stdscr, 0, 0, header_text[:width].ljust(width), header_color)
        instruction = " arrows move  PgUp/PgDn jump  space refresh  s stop  r restart  e export  q quit "
        instr_color = curses.color_pair(2) if curses.has_colors() else curses.A_BOLD
        self._safe_addstr(stdscr, 1, 0, instruction[:width].ljust(width), instr_color)

        status_line = height - 1
        action_lines = RECENT_ACTIONS if self.deck.action_log is not None else 0
        table_start = 2
        table_height = max(0, status_line - action_lines - table_start)
        if table_height > 1:
            self._render_table(stdscr, table_start, table_height, width)
        else:
            self._safe_addstr(stdscr, table_start, 0, "Window too small for table", curses.A_DIM)
        if action_lines:
            self._render_actions(stdscr, status_line - action_lines, action_lines, width)
        self._render_status(stdscr, status_line, width)
        stdscr.refresh()

    def _render_table(self, stdscr: "curses._CursesWindow", start_y: int, height: int, width: int) -> None:
        port_w = 6
        pid_w = 8
        padding = 3
        remaining = max(width - (port_w + pid_w + padding), 20)
        name_w = max(12, remaining // 3)
        addr_w = max(remaining - name_w, 8)

        header = f"{'Port':<{port_w}} {'PID':>{pid_w}} {'Process':<{name_w}} Address"
        header_attr = curses.color_pair(2) | curses.A_BOLD if curses.has_colors() else curses.A_BOLD
        self._safe_addstr(stdscr, start_y, 0, header[:width], header_attr)

        visible_rows = max(height - 1, 0)
        self._ensure_visible(visible_rows)
        if not self.services:
            self._safe_addstr(stdscr, start_y + 1, 0, "No services listening", curses.A_DIM)
            return
        rows = self.services[self.scroll_offset : self.scroll_offset + visible_rows]
        for idx, row in enumerate(rows):
            row_index = self.scroll_offset + idx
            if row_index == self.selected_index:
                highlight = curses.color_pair(3) | curses.A_BOLD if curses.has_colors() else curses.A_REVERSE
            else:
                highlight = curses.A_NORMAL
            name = self._truncate(row.name, name_w)
            address = self._truncate(row.address, addr_w)
            line = f"{row.port:<{port_w}} {row.pid:>{pid_w}} {name:<{name_w}} {address}"
            self._safe_addstr(stdscr, start_y + 1 + idx, 0, line[:width].ljust(width), highlight)

    def _render_actions(self, stdscr: "curses._CursesWindow", start_y: int, lines: int, width: int) -> None:
        records = self.deck.action_log.recent(lines)
        for idx, record in enumerate(records):
            stamp = time.strftime("%H:%M:%S", time.localtime(record.timestamp))
            text = f"{stamp} {record.outcome.upper():<5} {record.summary}"
            attr = curses.A_BOLD if record.outcome != "ok" else curses.A_NORMAL
            self._safe_addstr(stdscr, start_y + idx, 0, self._truncate(text, width).ljust(width), attr)

    def status_text(self, now: float) -> str:
        if self.status_message and now - self.status_timestamp <= STATUS_TTL:
            return self.status_message
        self.status_message = ""
        service = self._current_selection()
        if service is None:
            return "No service selected - space refresh, q quit"
        return f"{service.name} (PID {service.pid}) on {service.address} - s stop, r restart"

    def _render_status(self, stdscr: "curses._CursesWindow", y: int, width: int) -> None:
        attr = curses.color_pair(4) if curses.has_colors() else curses.A_BOLD
        self._safe_addstr(stdscr, y, 0, self.status_text(time.time()).ljust(width), attr)

    def _ensure_visible(self, visible_rows: int) -> None:
        if visible_rows <= 0:
            self.scroll_offset = 0
            return
        max_offset = max(0, len(self.services) - visible_rows)
        if self.selected_index < self.scroll_offset:
            self.scroll_offset = self.selected_index
        elif self.selected_index >= self.scroll_offset + visible_rows:
            self.scroll_offset = self.selected_index - visible_rows + 1
        self.scroll_offset = max(0, min(self.scroll_offset, max_offset))

    def _safe_addstr(self, stdscr: "curses._CursesWindow", y: int, x: int, text: str, attr: int = curses.A_NORMAL) -> None:
        height, width = stdscr.getmaxyx()
        if y < 0 or y >= height or x >= width:
            return
        if not text:
            return
        trimmed = text[: max(0, width - x)]
        try:
            stdscr.addstr(y, x, trimmed, attr)
        except curses.error:
            # writing the bottom-right cell always raises
            pass

    @staticmethod
    def _truncate(text: str, width: int) -> str:
        if width <= 0:
            return ""
        if len(text) <= width:
            return text
        if width <= 3:
            return text[:width]
        return text[: width - 3] + "..."
