import unittest
from unittest.mock import patch

from base import CommandLine
from base.Board import SUIT_LETTERS, Board, dragon, encode_board, locked_marker, numbered
from base.Core import DUMMY_PLAYER, Core


def num(letter, rank):
    return numbered(SUIT_LETTERS.index(letter), rank)


def drg(letter, copy=0):
    return dragon(SUIT_LETTERS.index(letter), copy)


def one_move_board():
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


def printed(mocked):
    return [call[0][0] if call[0] else "" for call in mocked.call_args_list]


class CommandLineTestCase(unittest.TestCase):
    def make_core(self, board):
        core = Core()
        core.loadGameFromLines(["0", "False"] + encode_board(board))
        core.registerInterface(CommandLine.CommandLineInterface())
        core.registerPlayer(DUMMY_PLAYER)
        return core

    def test_render_board_header(self):
        lines = CommandLine.renderBoard(one_move_board())
        self.assertEqual("Free: DG XB XR    Joker: J     Goals: B4 G1 R9", lines[0])
        self.assertTrue(lines[1].startswith("---0-"))
        # Tallest column is five cards.
        self.assertEqual(2 + 5, len(lines))

    def test_move_command_wins(self):
        core = self.make_core(one_move_board())
        with patch("builtins.print") as mocked:
            self.assertTrue(CommandLine.runCommand(core, "mv 4 0"))
        self.assertTrue(core.gameEnded)
        self.assertIn("You win!", printed(mocked))

    def test_hint_reports_the_next_move(self):
        core = self.make_core(one_move_board())
        with patch("builtins.print") as mocked:
            CommandLine.runCommand(core, "hint")
        self.assertIn("Hint: STACK(C4->C0,n=1)", printed(mocked))
        self.assertEqual(0, core.moveCount)

    def test_bad_commands_are_reported(self):
        board = Board.from_columns(
            [[num("G", 5)]],
            free_cells=[locked_marker(0), locked_marker(1), locked_marker(2)],
        )
        core = self.make_core(board)
        with patch("builtins.print") as mocked:
            self.assertTrue(CommandLine.runCommand(core, "dance"))
            self.assertTrue(CommandLine.runCommand(core, "goal x"))
            self.assertTrue(CommandLine.runCommand(core, "group Q"))
            self.assertTrue(CommandLine.runCommand(core, "free 0"))
            self.assertFalse(CommandLine.runCommand(core, "quit"))
        lines = printed(mocked)
        self.assertIn("Invalid command! Type help.", lines)
        self.assertEqual(2, lines.count("Invalid index!"))
        self.assertIn("Cannot move! no empty free cell", lines)


if __name__ == "__main__":
    unittest.main()
