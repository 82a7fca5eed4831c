"""Board engine for two-player Minesweeper."""

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional, Set, Tuple

import config

logger = logging.getLogger(__name__)

PLAYERS = (0, 1)

Position = Tuple[int, int]


class MinesweeperError(Exception):
    pass


class InvalidMove(MinesweeperError):
    pass


class WrongPlayer(MinesweeperError):
    pass


class ConfigurationError(MinesweeperError, ValueError):
    pass


class Visibility(str, Enum):
    COVERED = "covered"
    REVEALED = "revealed"
    FLAGGED = "flagged"


class Action(str, Enum):
    REVEAL = "reveal"
    TOGGLE_FLAG = "flag"


class GameStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    LOST = "lost"
    WON = "won"


class Appearance(str, Enum):
    COVERED = "covered"
    REVEALED = "revealed"
    MINE = "mine"
    FLAG = "flag"
    WRONG_FLAG = "wrong_flag"


class Cell:
    def __init__(self):
        self.is_mine: bool = False
        self.neighbor_mines: int = 0
        self.visibility: Visibility = Visibility.COVERED
        self.flagged_by: Optional[int] = None

    @property
    def is_covered(self):
        return self.visibility is Visibility.COVERED

    @property
    def is_revealed(self):
        return self.visibility is Visibility.REVEALED

    @property
    def is_flagged(self):
        return self.visibility is Visibility.FLAGGED


def check_dimensions(rows: int, cols: int, mine_count: int):
    if rows <= 0 or cols <= 0:
        raise ConfigurationError(f"board must have positive dimensions, got {rows}x{cols}")
    if mine_count < 0 or mine_count >= rows * cols:
        raise ConfigurationError(
            f"mines must be in [0, {rows * cols - 1}] for a {rows}x{cols} board, got {mine_count}"
        )


class Grid:
    def __init__(self, rows: int, cols: int, mine_count: int):
        self.rows = rows
        self.cols = cols
        self.mine_count = mine_count
        self.cells = [[Cell() for _ in range(self.cols)] for _ in range(self.rows)]

    @classmethod
    def with_mines(cls, rows: int, cols: int, mines: Iterable[Position]) -> "Grid":
        """Build a board with mines on the given positions instead of random ones."""
        positions = set(mines)
        check_dimensions(rows, cols, len(positions))
        grid = cls(rows, cols, len(positions))
        for r, c in positions:
            if not grid.is_valid(r, c):
                raise ConfigurationError(f"mine position {(r, c)} is off the board")
            grid.cells[r][c].is_mine = True
        grid.count_neighbor_mines()
        return grid

    def is_valid(self, r, c):
        return 0 <= r < self.rows and 0 <= c < self.cols

    def neighbors(self, r, c) -> List[Position]:
        neighbors_list = []
        for nr in range(max(0, r - 1), min(self.rows, r + 2)):
            for nc in range(max(0, c - 1), min(self.cols, c + 2)):
                if (nr, nc) != (r, c):
                    neighbors_list.append((nr, nc))

        return neighbors_list

    def cell(self, r, c) -> Cell:
        return self.cells[r][c]

    def positions(self):
        for r in range(self.rows):
            for c in range(self.cols):
                yield r, c

    def count_neighbor_mines(self):
        for r, c in self.positions():
            if not self.cells[r][c].is_mine:
                continue
            for nr, nc in self.neighbors(r, c):
                neighbor = self.cells[nr][nc]
                if not neighbor.is_mine:
                    neighbor.neighbor_mines += 1

    @property
    def safe_cells(self):
        return self.rows * self.cols - self.mine_count


def generate(rows: int, cols: int, mine_count: int, rng: random.Random) -> Grid:
    check_dimensions(rows, cols, mine_count)
    grid = Grid(rows, cols, mine_count)

    placed = 0
    while placed < mine_count:
        pos = rng.randrange(rows * cols)
        cell = grid.cells[pos // cols][pos % cols]
        if cell.is_mine:
            continue
        cell.is_mine = True
        placed += 1

    grid.count_neighbor_mines()
    return grid


def reveal_cascade(grid: Grid, r: int, c: int) -> Set[Position]:
    """Open every safe cell reachable from the zero cell at (r, c).

    The origin must already be revealed. Returns the positions this call
    revealed; a second call from the same origin returns an empty set.
    """
    revealed = set()
    stack = [(r, c)]
    while stack:
        cr, cc = stack.pop()
        for nr, nc in grid.neighbors(cr, cc):
            ncell = grid.cells[nr][nc]
            if not ncell.is_covered or ncell.is_mine:
                continue
            ncell.visibility = Visibility.REVEALED
            revealed.add((nr, nc))
            if ncell.neighbor_mines == 0:
                stack.append((nr, nc))
    return revealed


class FlagPools:
    def __init__(self, mine_count: int):
        self.placed = [0, 0]
        self.remaining = mine_count


def toggle_flag(grid: Grid, pools: FlagPools, r: int, c: int, player: int) -> Visibility:
    cell = grid.cells[r][c]
    if cell.is_revealed:
        raise InvalidMove(f"cell {(r, c)} is already revealed")

    if cell.is_flagged:
        if cell.flagged_by != player:
            raise InvalidMove(f"cell {(r, c)} is flagged by player {cell.flagged_by + 1}")
        cell.visibility = Visibility.COVERED
        cell.flagged_by = None
        pools.placed[player] -= 1
        pools.remaining += 1
        return cell.visibility

    if pools.remaining <= 0:
        raise InvalidMove("no flags left")
    cell.visibility = Visibility.FLAGGED
    cell.flagged_by = player
    pools.placed[player] += 1
    pools.remaining -= 1
    return cell.visibility


@dataclass(frozen=True)
class GameState:
    status: GameStatus
    active_player: Optional[int] = None
    losing_player: Optional[int] = None

    @classmethod
    def in_progress(cls, player: int) -> "GameState":
        return cls(GameStatus.IN_PROGRESS, active_player=player)

    @classmethod
    def lost(cls, player: int) -> "GameState":
        return cls(GameStatus.LOST, losing_player=player)

    @classmethod
    def won(cls) -> "GameState":
        return cls(GameStatus.WON)

    @property
    def is_over(self):
        return self.status is not GameStatus.IN_PROGRESS


def evaluate(grid: Grid, pools: FlagPools, state: GameState) -> GameState:
    """Return ``Won`` when the board is cleared, otherwise ``state`` unchanged.

    Cleared means every safe cell is revealed, every mine carries a flag and
    no flag sits on a safe cell.
    """
    flagged_mines = 0
    for row in grid.cells:
        for cell in row:
            if cell.is_mine:
                if cell.is_flagged:
                    flagged_mines += 1
            elif not cell.is_revealed:
                return state
    if flagged_mines != grid.mine_count or sum(pools.placed) != flagged_mines:
        return state
    return GameState.won()


@dataclass(frozen=True)
class MoveOutcome:
    state: GameState
    changed: FrozenSet[Position]


@dataclass(frozen=True)
class CellView:
    row: int
    col: int
    visibility: Visibility
    appearance: Appearance
    flagged_by: Optional[int] = None
    is_mine: Optional[bool] = None
    neighbor_mines: Optional[int] = None


def player_label(player):
    return f"Player {player + 1}"


class GameCore:
    def __init__(self, rows=config.DEFAULT_ROWS, cols=config.DEFAULT_COLS, mines=config.DEFAULT_MINES, seed=None):
        self.new_game(rows, cols, mines, seed)

    def new_game(self, rows=None, cols=None, mines=None, seed=None):
        rows = self.rows if rows is None else rows
        cols = self.cols if cols is None else cols
        mines = self.mines if mines is None else mines

        self.start(generate(rows, cols, mines, random.Random(seed)))

    def start(self, grid: Grid):
        """Begin a fresh game on an already generated board."""
        pools = FlagPools(grid.mine_count)

        self.rows, self.cols, self.mines = grid.rows, grid.cols, grid.mine_count
        self.grid, self.pools = grid, pools
        self.state = GameState.in_progress(PLAYERS[0])
        self.end_reported = False
        logger.info("New game %dx%d with %d mines", grid.rows, grid.cols, grid.mine_count)

    @property
    def flags_remaining(self):
        return self.pools.remaining

    @property
    def flags_placed(self):
        return tuple(self.pools.placed)

    @property
    def active_player(self):
        return self.state.active_player

    def apply_action(self, r, c, action, player) -> MoveOutcome:
        action = Action(action)
        try:
            self._check_action(r, c, player)
            if action is Action.TOGGLE_FLAG:
                changed = self._toggle_flag(r, c, player)
            else:
                changed = self._reveal(r, c, player)
        except MinesweeperError as exc:
            logger.debug("Rejected %s at %s by player %s: %s", action.value, (r, c), player, exc)
            raise

        if self.state.is_over:
            logger.info("Game over: %s", self.status_text())
        return MoveOutcome(self.state, frozenset(changed))

    def reveal(self, r, c, player):
        return self.apply_action(r, c, Action.REVEAL, player)

    def toggle_flag(self, r, c, player):
        return self.apply_action(r, c, Action.TOGGLE_FLAG, player)

    def _check_action(self, r, c, player):
        if self.state.is_over:
            raise InvalidMove("the game is over")
        if player not in PLAYERS:
            raise InvalidMove(f"unknown player {player!r}")
        if not self.grid.is_valid(r, c):
            raise InvalidMove(f"cell {(r, c)} is off the board")
        if player != self.state.active_player:
            raise WrongPlayer(f"it is {player_label(self.state.active_player)}'s turn")

    def _toggle_flag(self, r, c, player):
        toggle_flag(self.grid, self.pools, r, c, player)
        self._finish_turn(player)
        return {(r, c)}

    def _reveal(self, r, c, player):
        cell = self.grid.cells[r][c]
        if not cell.is_covered:
            raise InvalidMove(f"cell {(r, c)} is not covered")

        cell.visibility = Visibility.REVEALED
        changed = {(r, c)}
        if cell.is_mine:
            self.state = GameState.lost(player)
            return changed

        if cell.neighbor_mines == 0:
            changed |= reveal_cascade(self.grid, r, c)
        self._finish_turn(player)
        return changed

    def _finish_turn(self, player):
        self.state = evaluate(self.grid, self.pools, self.state)
        if not self.state.is_over:
            self.state = GameState.in_progress(1 - player)

    def winner(self):
        """Winning player id, or None while playing and on a draw."""
        if self.state.status is GameStatus.LOST:
            return 1 - self.state.losing_player
        if self.state.status is GameStatus.WON:
            p1, p2 = self.pools.placed
            if p1 > p2:
                return 0
            if p2 > p1:
                return 1
        return None

    def cell_view(self, r, c) -> CellView:
        if not self.grid.is_valid(r, c):
            raise InvalidMove(f"cell {(r, c)} is off the board")
        cell = self.grid.cells[r][c]
        game_over = self.state.is_over
        view = dict(row=r, col=c, visibility=cell.visibility, flagged_by=cell.flagged_by)
        if cell.is_revealed or game_over:
            view.update(is_mine=cell.is_mine, neighbor_mines=cell.neighbor_mines)

        if cell.is_flagged:
            appearance = Appearance.WRONG_FLAG if game_over and not cell.is_mine else Appearance.FLAG
        elif cell.is_mine and (cell.is_revealed or game_over):
            appearance = Appearance.MINE
        elif cell.is_revealed:
            appearance = Appearance.REVEALED
        else:
            appearance = Appearance.COVERED
        return CellView(appearance=appearance, **view)

    def _result_text(self):
        winner = self.winner()
        if winner is None:
            return "It's a draw!"
        return f"{player_label(winner)} wins!"

    def status_text(self):
        p1, p2 = self.pools.placed
        if self.state.status is GameStatus.LOST:
            return f"{player_label(self.state.losing_player)} hit a mine! {self._result_text()}"
        if self.state.status is GameStatus.WON:
            return f"Game won! P1: {p1} | P2: {p2} {self._result_text()}"
        return (
            f"{player_label(self.state.active_player)}'s turn | Mines left: {self.pools.remaining} "
            f"| Flags: P1={p1} P2={p2}"
        )

    def end_message(self):
        if self.state.status is GameStatus.LOST:
            return f"{player_label(self.state.losing_player)} hit a mine!\n{self._result_text()}"
        if self.state.status is GameStatus.WON:
            p1, p2 = self.pools.placed
            return (
                f"Game won!\n{player_label(0)} flags: {p1}\n{player_label(1)} flags: {p2}\n"
                f"{self._result_text()}"
            )
        return None

    def take_end_report(self):
        if not self.state.is_over or self.end_reported:
            return None
        self.end_reported = True
        return self.end_message()
