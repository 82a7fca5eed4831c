import logging
import random

import numpy as np
import matplotlib.pyplot as plt
import seaborn as sns

import config
from game_logic import Grid, Visibility, check_dimensions, generate, reveal_cascade

logger = logging.getLogger(__name__)


def mine_mask(grid: Grid) -> np.ndarray:
    return np.array([[cell.is_mine for cell in row] for row in grid.cells], dtype=bool)


def number_matrix(grid: Grid) -> np.ndarray:
    return np.array([[cell.neighbor_mines for cell in row] for row in grid.cells], dtype=np.int8)


def count_mine_clusters(grid: Grid) -> int:
    mask = mine_mask(grid)
    visited = np.zeros_like(mask, dtype=bool)
    clusters = 0

    for r, c in grid.positions():
        if not mask[r, c] or visited[r, c]:
            continue
        clusters += 1
        stack = [(r, c)]
        visited[r, c] = True

        while stack:
            cr, cc = stack.pop()
            for nr, nc in grid.neighbors(cr, cc):
                if mask[nr, nc] and not visited[nr, nc]:
                    visited[nr, nc] = True
                    stack.append((nr, nc))

    return clusters


def count_openings(grid: Grid) -> int:
    """Number of cascades it takes to open every zero region. Reveals cells on ``grid``."""
    openings = 0
    for r, c in grid.positions():
        cell = grid.cells[r][c]
        if cell.is_mine or cell.neighbor_mines != 0 or not cell.is_covered:
            continue
        openings += 1
        cell.visibility = Visibility.REVEALED
        reveal_cascade(grid, r, c)
    return openings


def collect_stats(rows: int, cols: int, mines: int, boards: int, seed: int | None = config.ANALYTICS_SEED):
    check_dimensions(rows, cols, mines)
    rng = random.Random(seed)
    zero_cells_per_board = []
    clusters_per_board = []
    openings_per_board = []
    value_counts = np.zeros(9, dtype=np.int64)
    mine_frequency = np.zeros((rows, cols), dtype=np.float64)

    for _ in range(boards):
        grid = generate(rows, cols, mines, rng)
        mask = mine_mask(grid)
        numbers = number_matrix(grid)

        zero_cells_per_board.append(int(((~mask) & (numbers == 0)).sum()))
        value_counts += np.bincount(numbers[~mask].ravel(), minlength=9)
        clusters_per_board.append(count_mine_clusters(grid))
        openings_per_board.append(count_openings(grid))
        mine_frequency += mask

    return {
        "zero_cells": np.array(zero_cells_per_board),
        "value_counts": value_counts,
        "clusters": np.array(clusters_per_board),
        "openings": np.array(openings_per_board),
        "mine_frequency": mine_frequency / float(boards),
    }


def generate_report(rows: int, cols: int, mines: int, boards: int, output_path: str, seed: int | None = config.ANALYTICS_SEED):
    stats = collect_stats(rows, cols, mines, boards, seed)
    logger.info("Writing analytics for %d boards (%dx%d, %d mines) to %s", boards, rows, cols, mines, output_path)

    sns.set(style="whitegrid")
    fig = plt.figure(figsize=(12, 9))
    axes = fig.subplots(2, 2)

    axes[0, 0].hist(stats["zero_cells"], bins="auto", color="#4C78A8", edgecolor="black", alpha=0.7, label="Zero cells")
    axes[0, 0].hist(stats["openings"], bins="auto", color="#E45756", edgecolor="black", alpha=0.7, label="Openings")
    axes[0, 0].set_title("Zero Cells and Openings per Board")
    axes[0, 0].set_xlabel("Cells / cascades")
    axes[0, 0].set_ylabel("Count of boards")
    axes[0, 0].legend()

    xs = np.arange(9)
    axes[0, 1].bar(xs, stats["value_counts"], color="#F58518", edgecolor="black")
    axes[0, 1].set_title("Distribution of Numbers in Cells (non-mine)")
    axes[0, 1].set_xlabel("Number shown (0-8)")
    axes[0, 1].set_xticks(xs)
    axes[0, 1].set_ylabel("Cell count")

    axes[1, 0].hist(stats["clusters"], bins="auto", color="#54A24B", edgecolor="black")
    axes[1, 0].set_title("Number of Mine Clusters per Board (8-connected)")
    axes[1, 0].set_xlabel("Clusters per board")
    axes[1, 0].set_ylabel("Count of boards")

    sns.heatmap(
        stats["mine_frequency"],
        ax=axes[1, 1],
        cmap="magma",
        square=True,
        cbar_kws={"label": "Share of boards with a mine"},
    )
    axes[1, 1].set_title("Mine Frequency per Cell (across boards)")
    axes[1, 1].set_xlabel("Column")
    axes[1, 1].set_ylabel("Row")

    fig.tight_layout()
    fig.savefig(output_path)
    plt.close(fig)
    return stats
