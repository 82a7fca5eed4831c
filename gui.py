import logging
import os
from datetime import datetime
import tkinter as tk
from tkinter import messagebox

import config
from analytics import generate_report
from game_logic import (
    Action,
    Appearance,
    ConfigurationError,
    GameCore,
    InvalidMove,
    MinesweeperError,
    Visibility,
    check_dimensions,
    player_label,
)

logger = logging.getLogger(__name__)


class Minesweeper:
    NUMBER_COLORS = {1: "blue", 2: "green", 3: "red", 4: "purple", 5: "brown", 6: "teal", 7: "black", 8: "gray"}
    PLAYER_COLORS = {0: "#EF4444", 1: "#2563EB"}

    CELL_BG = "#E5E7EB"
    CELL_BG_HOVER = "#D1D5DB"
    REVEALED_BG = "#F3F4F6"
    MINE_BG = "#FEE2E2"
    WRONG_FLAG_BG = "#FDE68A"
    BOARD_BG = "#F8FAFC"
    PANEL_BG = "#FFFFFF"
    BOARD_MAX_WIDTH = 920
    BOARD_MAX_HEIGHT = 640

    def __init__(self, root, rows=config.DEFAULT_ROWS, cols=config.DEFAULT_COLS, mines=config.DEFAULT_MINES):
        self.root = root
        self.rows = rows
        self.cols = cols
        self.mines = mines

        self.game = GameCore(self.rows, self.cols, self.mines)
        self.buttons = {}

        self.analytics_reports_dir = config.ANALYTICS_REPORTS_DIR
        self.analytics_boards_var = tk.StringVar(value=str(config.ANALYTICS_BOARDS))
        self.analytics_rows_var = tk.StringVar(value=str(rows))
        self.analytics_cols_var = tk.StringVar(value=str(cols))
        self.analytics_mines_var = tk.StringVar(value=str(mines))
        self.analytics_config_frame = None

        self.counter_font = ("Consolas", 14, "bold")
        self.ui_font = ("Segoe UI", 11)

        self._build_ui()
        self._create_board()

    def _build_ui(self):
        self.root.configure(bg=self.BOARD_BG)
        self.root.resizable(False, False)

        self.main_frame = tk.Frame(self.root, bg=self.BOARD_BG)
        self.main_frame.pack(fill=tk.BOTH, expand=True, padx=10, pady=(10, 10))

        self.side_panel = tk.Frame(self.main_frame, bg=self.PANEL_BG, bd=1, relief=tk.SOLID, width=260)
        self.side_panel.pack(side=tk.LEFT, fill=tk.Y)
        self.side_panel.pack_propagate(False)

        tk.Label(
            self.side_panel, text="Minesweeper Duel", bg=self.PANEL_BG, fg="#111827",
            font=("Segoe UI", 14, "bold")
        ).pack(fill=tk.X, padx=10, pady=(10, 6))

        self.turn_label = tk.Label(self.side_panel, text="", font=self.counter_font, bg=self.PANEL_BG, anchor="w")
        self.turn_label.pack(fill=tk.X, padx=10, pady=(0, 10))

        self.mines_label = tk.Label(self.side_panel, text="Flags left: 000", font=self.counter_font, bg=self.PANEL_BG, fg="#111827", anchor="w")
        self.mines_label.pack(fill=tk.X, padx=10, pady=(0, 10))

        self.player_labels = {}
        for player in (0, 1):
            label = tk.Label(self.side_panel, text="", font=self.ui_font, bg=self.PANEL_BG, fg=self.PLAYER_COLORS[player], anchor="w")
            label.pack(fill=tk.X, padx=10, pady=(0, 4))
            self.player_labels[player] = label

        self.reset_btn = tk.Button(self.side_panel, text="New Game", width=10, font=("Segoe UI Emoji", 12), command=self.reset)
        self.reset_btn.pack(fill=tk.X, padx=10, pady=(10, 8))

        self.analytics_config_frame = tk.LabelFrame(
            self.side_panel,
            text="Analytics settings",
            bg=self.PANEL_BG,
            fg="#111827",
            font=self.ui_font,
            labelanchor="n",
            padx=8,
            pady=4,
        )
        self._build_analytics_inputs()
        self.analytics_config_frame.pack(fill=tk.X, padx=12, pady=(0, 8))

        tk.Button(
            self.side_panel,
            text="Run Analytics",
            command=self.run_analytics_report,
            font=self.ui_font,
        ).pack(fill=tk.X, padx=12, pady=(0, 10))

        self.board_frame = tk.Frame(self.main_frame, bg=self.PANEL_BG, bd=1, relief=tk.SOLID)
        self.board_frame.pack(side=tk.LEFT, padx=(10, 0), anchor="n")

        self.status = tk.Label(self.root, text="", bg=self.BOARD_BG, fg="#374151", font=self.ui_font, anchor="w")
        self.status.pack(fill=tk.X, padx=10, pady=(0, 6))

        self.root.bind("<r>", lambda e: self.reset())
        self.root.bind("<R>", lambda e: self.reset())

    def _build_analytics_inputs(self):
        inputs_frame = tk.Frame(self.analytics_config_frame, bg=self.PANEL_BG)
        inputs_frame.pack(fill=tk.X)

        for label, var in (
            ("Boards", self.analytics_boards_var),
            ("Rows", self.analytics_rows_var),
            ("Columns", self.analytics_cols_var),
            ("Mines", self.analytics_mines_var),
        ):
            wrapper = tk.Frame(inputs_frame, bg=self.PANEL_BG)
            tk.Label(wrapper, text=label, bg=self.PANEL_BG, font=("Segoe UI", 10)).pack(anchor="w")
            tk.Entry(wrapper, textvariable=var, width=6, justify="center").pack(anchor="w")
            wrapper.pack(side=tk.LEFT, padx=(0, 8))

    def _create_board(self):
        for w in self.board_frame.winfo_children():
            w.destroy()
        self.buttons.clear()

        width_limit = self.BOARD_MAX_WIDTH // max(1, self.cols)
        height_limit = self.BOARD_MAX_HEIGHT // max(1, self.rows)
        self.cell_px = max(18, min(48, width_limit, height_limit))

        self.board_frame.config(width=self.cell_px * self.cols, height=self.cell_px * self.rows)
        self.board_frame.grid_propagate(False)
        for r in range(self.rows):
            self.board_frame.grid_rowconfigure(r, weight=1, uniform="row", minsize=self.cell_px)
        for c in range(self.cols):
            self.board_frame.grid_columnconfigure(c, weight=1, uniform="col", minsize=self.cell_px)

        font_size = max(8, int(self.cell_px * 0.45))
        for r in range(self.rows):
            for c in range(self.cols):
                b = tk.Button(
                    self.board_frame,
                    text="",
                    bg=self.CELL_BG,
                    activebackground=self.CELL_BG_HOVER,
                    font=("Segoe UI", font_size, "bold"),
                    relief=tk.RAISED,
                    command=lambda r=r, c=c: self.on_click(r, c, Action.REVEAL),
                )
                b.bind("<Button-3>", lambda e, r=r, c=c: self.on_click(r, c, Action.TOGGLE_FLAG)) #Window
                b.bind("<Button-2>", lambda e, r=r, c=c: self.on_click(r, c, Action.TOGGLE_FLAG)) #Mac

                b.bind("<Enter>", lambda e, r=r, c=c: self._hover(r, c, True))
                b.bind("<Leave>", lambda e, r=r, c=c: self._hover(r, c, False))
                b.grid(row=r, column=c, sticky="nsew")
                self.buttons[(r, c)] = b

        self._refresh_ui()

    def on_click(self, r, c, action):
        if self.game.state.is_over:
            self.reset()
            return
        try:
            outcome = self.game.apply_action(r, c, action, self.game.active_player)
        except InvalidMove as exc:
            self._update_counters(f"Invalid move: {exc}")
            return
        except MinesweeperError as exc:
            self._update_counters(str(exc))
            return

        if outcome.state.is_over:
            self._refresh_ui()
        else:
            self._refresh_ui(outcome.changed)
        report = self.game.take_end_report()
        if report:
            messagebox.showinfo("Game Over", report)

    def _refresh_ui(self, positions=None):
        if positions is None:
            positions = self.buttons.keys()
        for r, c in positions:
            self._draw_cell(r, c)
        self._update_counters()

    def _draw_cell(self, r, c):
        view = self.game.cell_view(r, c)
        btn = self.buttons[(r, c)]
        if view.appearance is Appearance.FLAG:
            btn.config(text="\U0001F6A9", fg=self.PLAYER_COLORS[view.flagged_by], bg=self.CELL_BG)
        elif view.appearance is Appearance.WRONG_FLAG:
            btn.config(text="✖", fg=self.PLAYER_COLORS[view.flagged_by], bg=self.WRONG_FLAG_BG)
        elif view.appearance is Appearance.MINE:
            btn.config(text="\U0001F4A3", bg="#FCA5A5" if view.visibility is Visibility.REVEALED else self.MINE_BG)
        elif view.appearance is Appearance.REVEALED:
            btn.config(relief=tk.SUNKEN, bg=self.REVEALED_BG)
            if view.neighbor_mines:
                btn.config(text=str(view.neighbor_mines), fg=self.NUMBER_COLORS.get(view.neighbor_mines, "#111827"))
            else:
                btn.config(text="")
        else:
            btn.config(text="", relief=tk.RAISED, bg=self.CELL_BG)

    def _update_counters(self, message=None):
        active = self.game.active_player
        if active is None:
            self.turn_label.config(text="Game over", fg="#111827")
        else:
            self.turn_label.config(text=f"{player_label(active)}'s turn", fg=self.PLAYER_COLORS[active])
        self.mines_label.config(text=f"Flags left: {self.game.flags_remaining:03d}")
        for player, count in enumerate(self.game.flags_placed):
            self.player_labels[player].config(text=f"{player_label(player)} flags: {count}")
        self.status.config(text=message or self.game.status_text())

    def _hover(self, r, c, is_enter):
        view = self.game.cell_view(r, c)
        if view.appearance is not Appearance.COVERED:
            return
        self.buttons[(r, c)].config(bg=self.CELL_BG_HOVER if is_enter else self.CELL_BG)

    def _get_analytics_settings(self):
        try:
            boards = int(self.analytics_boards_var.get())
            rows = int(self.analytics_rows_var.get())
            cols = int(self.analytics_cols_var.get())
            mines = int(self.analytics_mines_var.get())
        except ValueError:
            messagebox.showwarning("Analytics", "Analytics settings must be integers.")
            return None
        if boards <= 0:
            messagebox.showwarning("Analytics", "Boards must be positive.")
            return None
        try:
            check_dimensions(rows, cols, mines)
        except ConfigurationError as exc:
            messagebox.showwarning("Analytics", f"Invalid analytics settings:\n{exc}")
            return None
        return boards, rows, cols, mines

    def run_analytics_report(self):
        settings = self._get_analytics_settings()
        if not settings:
            return
        boards, rows, cols, mines = settings
        os.makedirs(self.analytics_reports_dir, exist_ok=True)
        now = datetime.now()
        filename = f"board_stats_{rows}x{cols}_{mines}_{int(now.timestamp())}.pdf"
        pdf_path = os.path.join(self.analytics_reports_dir, filename)
        try:
            generate_report(rows, cols, mines, boards, pdf_path)
        except MinesweeperError as exc:
            messagebox.showwarning("Analytics", f"Invalid analytics settings:\n{exc}")
            return
        except OSError as exc:
            logger.exception("Analytics report failed")
            messagebox.showwarning("Analytics", f"Failed to build analytics report:\n{exc}")
            return
        messagebox.showinfo("Analytics", f"Report saved to {os.path.basename(pdf_path)}")

    def reset(self):
        self.game.new_game()
        self._create_board()


if __name__ == "__main__":
    logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)
    root = tk.Tk()
    root.title("Minesweeper Duel")
    Minesweeper(root)
    root.mainloop()
