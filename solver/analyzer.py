from __future__ import annotations

import argparse
import heapq
import json
import time
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional

from base.Board import (
    DEFAULT_AUTO_MARGIN,
    MAX_RANK,
    Board,
    BoardFormatError,
    CorruptBoard,
    Move,
    card_suit,
    deal_seeded,
    decode_board,
    is_dragon,
)
from solver import settings_store
from solver.transitions import StateKey, iter_transitions, state_key

STATUS_SOLVED = "solved"
STATUS_EXHAUSTED = "exhausted"
STATUS_LIMITS = "limits_reached"
STATUS_CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class SearchLimits:
    """Optional ceilings on a single search; None means unbounded."""

    max_nodes: Optional[int] = None
    max_seconds: Optional[float] = None
    max_frontier: Optional[int] = None


@dataclass(frozen=True, slots=True)
class SearchPolicy:
    # Other suits must be at least `rank - margin` before a card is auto-promoted.
    auto_promote_margin: int = DEFAULT_AUTO_MARGIN
    # A dragon group may land in a free cell one of its own dragons occupies.
    reuse_dragon_cell: bool = False
    # Empty columns/free cells are interchangeable; offer only the first one.
    limit_empty_destinations: bool = True
    # Heuristic also counts ungrouped dragon suits and buried dragons.
    count_dragon_work: bool = True
    # Also require an empty tableau, not just full goals and the joker.
    require_cleared_tableau: bool = False


DEFAULT_POLICY = SearchPolicy()


@dataclass(slots=True)
class SolveResult:
    status: str
    stop_reason: str
    solution: tuple[Move, ...]
    # Settled root first, solved board last.
    solution_states: tuple[Board, ...]
    expanded_nodes: int
    generated_nodes: int
    unique_states: int
    max_frontier: int
    dead_end_nodes: int
    duplicate_states_skipped: int
    avg_branching: float
    elapsed_ms: float
    max_depth: int

    @property
    def solved(self) -> bool:
        return self.status == STATUS_SOLVED


@dataclass(slots=True)
class AnalyzeResult:
    status: str
    solvable: Optional[bool]
    metrics: dict
    seed: Optional[int] = None
    solution: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "seed": self.seed,
            "status": self.status,
            "solvable": self.solvable,
            "metrics": self.metrics,
            "solution": list(self.solution),
        }


def _buried_dragons(board: Board) -> int:
    """Dragons sitting under another dragon of the same suit in a column."""
    total = 0
    for cards in board.columns:
        per_suit = Counter(card_suit(c) for c in cards if is_dragon(c))
        total += sum(n - 1 for n in per_suit.values())
    return total


def estimate_moves_to_solve(board: Board, count_dragon_work: bool = True) -> int:
    """
    Rough count of moves left. Forced promotions are counted as moves and the
    search collapses them, so this is not a lower bound.
    """
    estimate = sum(MAX_RANK - rank for rank in board.goals)
    if count_dragon_work:
        ungrouped = sum(1 for grouped in board.dragons_grouped if not grouped)
        if ungrouped:
            estimate += ungrouped + _buried_dragons(board)
    return estimate


def _goal_test(policy: SearchPolicy) -> Callable[[Board], bool]:
    if policy.require_cleared_tableau:
        return lambda board: board.is_solved() and board.is_cleared()
    return lambda board: board.is_solved()


def _reconstruct(
    goal_key: StateKey,
    parent: dict[StateKey, tuple[Optional[StateKey], Optional[Move], Board]],
) -> tuple[tuple[Move, ...], tuple[Board, ...]]:
    moves: list[Move] = []
    states: list[Board] = []

    key: Optional[StateKey] = goal_key
    while key is not None:
        prev_key, move, board = parent[key]
        states.append(board)
        if move is not None:
            moves.append(move)
        key = prev_key

    moves.reverse()
    states.reverse()
    return tuple(moves), tuple(states)


def _limit_hit(limits: SearchLimits, expanded: int, started: float, frontier_len: int) -> Optional[str]:
    if limits.max_nodes is not None and expanded >= limits.max_nodes:
        return "node_limit"
    if limits.max_seconds is not None and (time.perf_counter() - started) >= limits.max_seconds:
        return "time_limit"
    if limits.max_frontier is not None and frontier_len > limits.max_frontier:
        return "frontier_limit"
    return None


def solve_state(
    initial_state: Board,
    limits: SearchLimits = SearchLimits(),
    policy: SearchPolicy = DEFAULT_POLICY,
    should_stop: Optional[Callable[[], bool]] = None,
) -> SolveResult:
    """
    Best-first search ordered by f = g + h, ties broken by lower g and then
    insertion order. Each generated successor costs one move however many
    forced promotions it triggered. `should_stop` is polled before every pop.
    """

    start = time.perf_counter()
    is_goal = _goal_test(policy)
    root = initial_state.do_automoves(policy.auto_promote_margin)
    root_key = state_key(root)

    parent: dict[StateKey, tuple[Optional[StateKey], Optional[Move], Board]] = {root_key: (None, None, root)}
    counter = 0
    frontier: list[tuple[int, int, int, StateKey, Board]] = []
    heapq.heappush(
        frontier,
        (estimate_moves_to_solve(root, policy.count_dragon_work), 0, counter, root_key, root),
    )

    expanded = 0
    generated = 1
    max_frontier = 1
    dead_end = 0
    duplicates = 0
    max_depth = 0
    total_branching = 0
    status = STATUS_EXHAUSTED
    stop_reason = "search_space_exhausted"

    def result(status, stop_reason, solution=(), solution_states=()) -> SolveResult:
        return SolveResult(
            status=status,
            stop_reason=stop_reason,
            solution=solution,
            solution_states=solution_states,
            expanded_nodes=expanded,
            generated_nodes=generated,
            unique_states=len(parent),
            max_frontier=max_frontier,
            dead_end_nodes=dead_end,
            duplicate_states_skipped=duplicates,
            avg_branching=(total_branching / expanded) if expanded > 0 else 0.0,
            elapsed_ms=(time.perf_counter() - start) * 1000.0,
            max_depth=max_depth,
        )

    while frontier:
        if should_stop is not None and should_stop():
            status, stop_reason = STATUS_CANCELLED, "cancelled"
            break
        hit = _limit_hit(limits, expanded, start, len(frontier))
        if hit is not None:
            status, stop_reason = STATUS_LIMITS, hit
            break

        _, depth, _, key, board = heapq.heappop(frontier)

        if is_goal(board):
            solution, solution_states = _reconstruct(key, parent)
            return result(STATUS_SOLVED, "goal_reached", solution, solution_states)

        transitions = iter_transitions(
            board,
            auto_margin=policy.auto_promote_margin,
            limit_empty_destinations=policy.limit_empty_destinations,
            reuse_dragon_cell=policy.reuse_dragon_cell,
        )
        expanded += 1
        total_branching += len(transitions)

        if not transitions:
            dead_end += 1
            continue

        next_depth = depth + 1
        for tr in transitions:
            next_key = state_key(tr.board)
            if next_key in parent:
                duplicates += 1
                continue

            parent[next_key] = (key, tr.move, tr.board)
            max_depth = max(max_depth, next_depth)

            counter += 1
            f = next_depth + estimate_moves_to_solve(tr.board, policy.count_dragon_work)
            heapq.heappush(frontier, (f, next_depth, counter, next_key, tr.board))
            generated += 1

        if len(frontier) > max_frontier:
            max_frontier = len(frontier)

    return result(status, stop_reason)


def analyze_state(
    initial_state: Board,
    seed: Optional[int] = None,
    limits: SearchLimits = SearchLimits(),
    policy: SearchPolicy = DEFAULT_POLICY,
    should_stop: Optional[Callable[[], bool]] = None,
) -> AnalyzeResult:
    """Run the solver and fold its counters into a JSON-friendly result."""

    solved = solve_state(initial_state, limits=limits, policy=policy, should_stop=should_stop)
    metrics = {
        "expanded_nodes": solved.expanded_nodes,
        "generated_nodes": solved.generated_nodes,
        "unique_states": solved.unique_states,
        "duplicate_states_skipped": solved.duplicate_states_skipped,
        "max_frontier": solved.max_frontier,
        "dead_end_nodes": solved.dead_end_nodes,
        "avg_branching": round(solved.avg_branching, 4),
        "elapsed_ms": round(solved.elapsed_ms, 3),
        "max_depth": solved.max_depth,
        "reason": solved.stop_reason,
    }

    if solved.status == STATUS_SOLVED:
        metrics["solution_len"] = len(solved.solution)
        solvable: Optional[bool] = True
    elif solved.status == STATUS_EXHAUSTED:
        # Unsolvable under this engine's auto-promotion policy.
        solvable = False
    else:
        solvable = None

    return AnalyzeResult(
        seed=seed,
        status=solved.status,
        solvable=solvable,
        metrics=metrics,
        solution=tuple(move.to_notation() for move in solved.solution),
    )


def analyze_seed(
    seed: int,
    limits: SearchLimits = SearchLimits(),
    policy: SearchPolicy = DEFAULT_POLICY,
) -> AnalyzeResult:
    return analyze_state(initial_state=deal_seeded(seed), seed=seed, limits=limits, policy=policy)


def analyze_seeds(
    seeds: Iterable[int],
    limits: SearchLimits = SearchLimits(),
    policy: SearchPolicy = DEFAULT_POLICY,
) -> list[AnalyzeResult]:
    return [analyze_seed(seed=seed, limits=limits, policy=policy) for seed in seeds]


def limits_from_settings(settings: dict) -> SearchLimits:
    return SearchLimits(
        max_nodes=settings.get("max_nodes"),
        max_seconds=settings.get("max_seconds"),
        max_frontier=settings.get("max_frontier"),
    )


def policy_from_settings(settings: dict) -> SearchPolicy:
    return SearchPolicy(
        auto_promote_margin=settings.get("auto_promote_margin", DEFAULT_AUTO_MARGIN),
        reuse_dragon_cell=settings.get("reuse_dragon_cell", False),
        limit_empty_destinations=settings.get("limit_empty_destinations", True),
        count_dragon_work=settings.get("count_dragon_work", True),
        require_cleared_tableau=settings.get("require_cleared_tableau", False),
    )


def load_board_file(path: str) -> Board:
    with open(path, "r", encoding="utf-8") as f:
        return decode_board(f.readlines())


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Solve SHENZHEN solitaire deals and report search metrics.")
    parser.add_argument("--seed", type=int, action="append", help="Seed to deal and solve; can be repeated.")
    parser.add_argument("--board", type=str, default="", help="Solve a saved board file instead of a seed.")
    parser.add_argument("--partial", action="store_true", help="Accept a board file that does not hold the full deck.")
    parser.add_argument("--config", type=str, default="", help="INI file with a [search] section.")
    parser.add_argument("--max-nodes", type=int, default=None, help="Search node limit.")
    parser.add_argument("--max-seconds", type=float, default=None, help="Search time limit in seconds.")
    parser.add_argument("--max-frontier", type=int, default=None, help="Search frontier size limit.")
    parser.add_argument("--auto-margin", type=int, default=None, help="Auto-promotion margin (1 conservative, 2 loose).")
    parser.add_argument("--require-cleared", action="store_true", help="Also require an empty tableau.")
    parser.add_argument(
        "--reuse-dragon-cell",
        action="store_true",
        help="Let a dragon group land in a free cell one of its dragons occupies.",
    )
    parser.add_argument("--pretty", action="store_true", help="Pretty-print json output.")
    return parser


def main(argv=None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.seed and not args.board:
        parser.error("one of --seed or --board is required")

    settings = settings_store.load_settings(Path(args.config) if args.config else None)
    overrides = {
        "max_nodes": args.max_nodes,
        "max_seconds": args.max_seconds,
        "max_frontier": args.max_frontier,
        "auto_promote_margin": args.auto_margin,
    }
    if args.require_cleared:
        overrides["require_cleared_tableau"] = True
    if args.reuse_dragon_cell:
        overrides["reuse_dragon_cell"] = True
    settings.update({k: v for k, v in overrides.items() if v is not None})
    limits = limits_from_settings(settings)
    policy = policy_from_settings(settings)

    results: list[AnalyzeResult] = []
    if args.board:
        try:
            board = load_board_file(args.board)
            if not args.partial:
                board.check_consistency()
        except OSError as exc:
            parser.error(f"cannot read board file: {exc}")
        except (BoardFormatError, CorruptBoard) as exc:
            parser.error(f"bad board file: {exc}")
        results.append(analyze_state(board, limits=limits, policy=policy))
    if args.seed:
        results.extend(analyze_seeds(args.seed, limits=limits, policy=policy))

    payload = [result.to_dict() for result in results]
    if len(payload) == 1:
        payload = payload[0]

    if args.pretty:
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        print(json.dumps(payload, ensure_ascii=False))


if __name__ == "__main__":
    main()
