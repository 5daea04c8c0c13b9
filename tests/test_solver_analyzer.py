import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from base.Board import (
    MOVE_GROUP,
    SUIT_LETTERS,
    Board,
    Move,
    deal_seeded,
    dragon,
    encode_board,
    locked_marker,
    numbered,
)
from solver import analyzer
from solver.analyzer import (
    STATUS_CANCELLED,
    STATUS_EXHAUSTED,
    STATUS_LIMITS,
    STATUS_SOLVED,
    SearchLimits,
    SearchPolicy,
    analyze_seed,
    analyze_state,
    estimate_moves_to_solve,
    solve_state,
)


def num(letter, rank):
    return numbered(SUIT_LETTERS.index(letter), rank)


def drg(letter, copy=0):
    return dragon(SUIT_LETTERS.index(letter), copy)


def make_one_move_board():
    """One dragon is in the way; moving it lets every remaining card go home."""
    return Board.from_columns(
        [
            [],
            [num("G", 4)],
            [num("B", 9), num("G", 8), num("B", 7), num("G", 6)],
            [num("B", 5), num("G", 3)],
            [drg("G", 1), num("G", 2), drg("G", 2)],
            [drg("G", 3)],
            [],
            [num("G", 9), num("B", 8), num("G", 7), num("B", 6), num("G", 5)],
        ],
        free_cells=[drg("G", 0), locked_marker(0), locked_marker(2)],
        joker_placed=True,
        goals=(4, 1, 9),
    )


def make_dragons_left_board():
    """Goals are complete; only green dragons remain on the table."""
    return Board.from_columns(
        [[], [], [drg("G", 1), drg("G", 2)], [], [], [drg("G", 3)]],
        free_cells=[locked_marker(0), locked_marker(2), drg("G", 0)],
        joker_placed=True,
        goals=(9, 9, 9),
    )


def make_dead_end_board():
    return Board.from_columns(
        [
            [num("R", 9), num("B", 3)],
            [num("G", 4)],
            [num("R", 6)],
            [num("B", 6)],
            [num("G", 6)],
            [num("B", 9)],
            [num("G", 9)],
            [num("B", 2)],
        ],
        free_cells=[locked_marker(0), locked_marker(1), locked_marker(2)],
    )



def make_dragon_cell_board():
    """Green dragons fill the last free cell; grouping them is the only way on."""
    return Board.from_columns(
        [
            [drg("G", 1)],
            [drg("G", 2)],
            [drg("G", 3)],
            [num("G", 9), num("G", 6)],
            [num("G", 8), num("G", 5)],
            [num("G", 7), num("G", 4)],
            [num("G", 1), num("G", 3)],
            [num("G", 2)],
        ],
        free_cells=[drg("G", 0), locked_marker(0), locked_marker(2)],
        joker_placed=True,
        goals=(9, 0, 9),
    )

class SolveStateTestCase(unittest.TestCase):
    def assertReplays(self, result, policy=SearchPolicy()):
        self.assertEqual(len(result.solution) + 1, len(result.solution_states))
        for move, before, after in zip(result.solution, result.solution_states, result.solution_states[1:]):
            replayed = before.apply(move, policy.reuse_dragon_cell)
            self.assertEqual(after, replayed.do_automoves(policy.auto_promote_margin))

    def test_solves_in_one_move(self):
        board = make_one_move_board()
        board.check_consistency()
        result = solve_state(board, limits=SearchLimits(max_nodes=1000))
        self.assertEqual(STATUS_SOLVED, result.status)
        self.assertTrue(result.solved)
        self.assertEqual((Move.stack(4, 0, 1),), result.solution)
        self.assertTrue(result.solution_states[-1].is_solved())
        self.assertEqual(board, result.solution_states[0])
        self.assertReplays(result)

    def test_already_solved_board_needs_no_moves(self):
        result = solve_state(make_dragons_left_board())
        self.assertEqual(STATUS_SOLVED, result.status)
        self.assertEqual((), result.solution)
        self.assertEqual(1, len(result.solution_states))
        self.assertEqual(0, result.expanded_nodes)

    def test_cleared_tableau_goal_groups_the_dragons(self):
        policy = SearchPolicy(require_cleared_tableau=True)
        result = solve_state(make_dragons_left_board(), limits=SearchLimits(max_nodes=1000), policy=policy)
        self.assertEqual(STATUS_SOLVED, result.status)
        self.assertEqual(3, len(result.solution))
        self.assertEqual(MOVE_GROUP, result.solution[-1].kind)
        final = result.solution_states[-1]
        self.assertTrue(final.is_cleared())
        self.assertEqual((True, True, True), final.dragons_grouped)
        self.assertReplays(result, policy)

    def test_dead_end_exhausts_the_search(self):
        result = solve_state(make_dead_end_board())
        self.assertEqual(STATUS_EXHAUSTED, result.status)
        self.assertEqual("search_space_exhausted", result.stop_reason)
        self.assertEqual(2, result.expanded_nodes)
        self.assertEqual(2, result.unique_states)
        self.assertEqual(1, result.dead_end_nodes)
        self.assertEqual((), result.solution)

    def test_grouping_into_a_dragon_cell_is_opt_in(self):
        board = make_dragon_cell_board()
        board.check_consistency()
        self.assertEqual(STATUS_EXHAUSTED, solve_state(board).status)

        policy = SearchPolicy(reuse_dragon_cell=True)
        result = solve_state(board, limits=SearchLimits(max_nodes=1000), policy=policy)
        self.assertEqual(STATUS_SOLVED, result.status)
        self.assertEqual(Move.group(1, 0), result.solution[0])
        self.assertEqual(2, len(result.solution))
        self.assertTrue(result.solution_states[-1].is_solved())
        self.assertReplays(result, policy)

    def test_search_is_deterministic(self):
        board = deal_seeded(11)
        limits = SearchLimits(max_nodes=300)
        first = solve_state(board, limits=limits)
        second = solve_state(board, limits=limits)
        self.assertEqual(first.status, second.status)
        self.assertEqual(first.solution, second.solution)
        self.assertEqual(first.expanded_nodes, second.expanded_nodes)
        self.assertEqual(first.unique_states, second.unique_states)
        self.assertEqual(first.duplicate_states_skipped, second.duplicate_states_skipped)

    def test_node_and_frontier_limits(self):
        board = deal_seeded(5)
        result = solve_state(board, limits=SearchLimits(max_nodes=1))
        self.assertEqual(STATUS_LIMITS, result.status)
        self.assertEqual("node_limit", result.stop_reason)
        self.assertEqual(1, result.expanded_nodes)

        result = solve_state(board, limits=SearchLimits(max_frontier=1))
        self.assertEqual(STATUS_LIMITS, result.status)
        self.assertEqual("frontier_limit", result.stop_reason)

    def test_cancellation_is_polled_before_each_pop(self):
        board = deal_seeded(5)
        result = solve_state(board, should_stop=lambda: True)
        self.assertEqual(STATUS_CANCELLED, result.status)
        self.assertEqual(0, result.expanded_nodes)

        polls = []

        def stop_after_three():
            polls.append(1)
            return len(polls) > 3

        result = solve_state(board, should_stop=stop_after_three)
        self.assertEqual(STATUS_CANCELLED, result.status)
        self.assertEqual(3, result.expanded_nodes)

    def test_counters_are_consistent(self):
        result = solve_state(deal_seeded(21), limits=SearchLimits(max_nodes=200))
        self.assertEqual(result.generated_nodes, result.unique_states)
        self.assertLessEqual(result.expanded_nodes, result.unique_states)
        self.assertGreaterEqual(result.max_frontier, 1)
        self.assertGreaterEqual(result.elapsed_ms, 0.0)


class HeuristicTestCase(unittest.TestCase):
    def test_estimate_counts_goal_gaps_and_dragon_work(self):
        board = make_one_move_board()
        self.assertEqual(15, estimate_moves_to_solve(board))
        self.assertEqual(13, estimate_moves_to_solve(board, count_dragon_work=False))

    def test_estimate_ignores_dragons_once_grouped(self):
        board = Board.from_columns(
            [],
            free_cells=[locked_marker(0), locked_marker(1), locked_marker(2)],
            joker_placed=True,
            goals=(9, 9, 9),
        )
        self.assertEqual(0, estimate_moves_to_solve(board))


class AnalyzeTestCase(unittest.TestCase):
    def test_analyze_state_reports_solution(self):
        result = analyze_state(make_one_move_board(), limits=SearchLimits(max_nodes=1000))
        self.assertEqual(STATUS_SOLVED, result.status)
        self.assertTrue(result.solvable)
        self.assertEqual(("STACK(C4->C0,n=1)",), result.solution)
        self.assertEqual(1, result.metrics["solution_len"])
        self.assertEqual("goal_reached", result.metrics["reason"])

    def test_analyze_state_marks_exhausted_as_unsolvable(self):
        result = analyze_state(make_dead_end_board())
        self.assertEqual(STATUS_EXHAUSTED, result.status)
        self.assertIs(False, result.solvable)
        self.assertNotIn("solution_len", result.metrics)

    def test_analyze_seed_payload(self):
        result = analyze_seed(seed=42, limits=SearchLimits(max_nodes=50))
        payload = result.to_dict()
        self.assertEqual(42, payload["seed"])
        self.assertIn(payload["status"], (STATUS_SOLVED, STATUS_EXHAUSTED, STATUS_LIMITS))
        for key in ("expanded_nodes", "generated_nodes", "unique_states", "max_frontier",
                    "dead_end_nodes", "avg_branching", "elapsed_ms", "max_depth", "reason"):
            self.assertIn(key, payload["metrics"])
        if payload["status"] == STATUS_LIMITS:
            self.assertIsNone(payload["solvable"])

    def test_main_solves_board_file(self):
        with tempfile.TemporaryDirectory() as td:
            board_path = Path(td) / "board.txt"
            board_path.write_text("\n".join(encode_board(make_one_move_board())) + "\n", encoding="utf-8")
            with patch("builtins.print") as mocked:
                analyzer.main(["--board", str(board_path), "--config", str(Path(td) / "none.ini")])
        payload = json.loads(mocked.call_args[0][0])
        self.assertEqual(STATUS_SOLVED, payload["status"])
        self.assertEqual(["STACK(C4->C0,n=1)"], payload["solution"])

    def test_main_rejects_incomplete_board_file(self):
        board = make_one_move_board()
        partial = Board.from_columns(board.columns[:7], board.free_cells, True, board.goals)
        with tempfile.TemporaryDirectory() as td:
            board_path = Path(td) / "board.txt"
            board_path.write_text("\n".join(encode_board(partial)) + "\n", encoding="utf-8")
            with patch("sys.stderr"):
                with self.assertRaises(SystemExit):
                    analyzer.main(["--board", str(board_path)])
            with patch("builtins.print") as mocked:
                analyzer.main(["--board", str(board_path), "--partial", "--max-nodes", "100"])
        payload = json.loads(mocked.call_args[0][0])
        self.assertIn("status", payload)

    def test_main_requires_a_target(self):
        with patch("sys.stderr"):
            with self.assertRaises(SystemExit):
                analyzer.main([])


if __name__ == "__main__":
    unittest.main()
