import argparse

from base.Board import (
    COLUMN_COUNT,
    EMPTY_CELL,
    SUIT_LETTERS,
    SUIT_COUNT,
    BoardFormatError,
    Move,
    card_str,
    is_locked,
    locked_suit,
    parse_suit,
)
from base.Core import Core, GameConfig, saveGameToFile
from base.Interface import Interface
from solver.analyzer import SearchLimits, SearchPolicy, solve_state

HINT_LIMITS = SearchLimits(max_seconds=5.0, max_frontier=2_000_000)

HELP = """Commands:
  mv <from> <to> [n]   move a run between columns (n picks the run length)
  free <col> [slot]    put the top card of a column into a free cell
  unfree <slot> <col>  move a free cell card onto a column
  goal <col> | goal f<slot>
  group <B|G|R>        group four uncovered dragons into a free cell
  hint | solve         ask the solver for the next move / the whole line
  save <path>          write the game to a file
  help | quit"""


def slotStr(slot: int) -> str:
    if slot == EMPTY_CELL:
        return "--"
    if is_locked(slot):
        return "X" + SUIT_LETTERS[locked_suit(slot)]
    return card_str(slot)


def renderBoard(board) -> list:
    lines = []
    free = " ".join(slotStr(s) for s in board.free_cells)
    joker = "J " if board.joker_placed else "--"
    goals = " ".join(f"{SUIT_LETTERS[s]}{board.goals[s]}" for s in range(SUIT_COUNT))
    lines.append(f"Free: {free}    Joker: {joker}    Goals: {goals}")
    lines.append("".join(f"---{i}-" for i in range(COLUMN_COUNT)))
    i = 0
    while True:
        has = False
        line = ""
        for cards in board.columns:
            if len(cards) <= i:
                line += "     "
                continue
            has = True
            line += f"  {card_str(cards[i]):<3}"
        if not has:
            break
        lines.append(line.rstrip())
        i += 1
    return lines


class CommandLineInterface(Interface):

    def printAll(self):
        core = self.core
        print(f"Moves: {core.moveCount}        Seed: {core.seed}")
        for line in renderBoard(core.board):
            print(line)
        print()

    def onStart(self):
        print("Game started!")

    def notifyRedraw(self):
        self.printAll()

    def onWin(self):
        print("You win!")


def _policy(core: Core) -> SearchPolicy:
    return SearchPolicy(auto_promote_margin=core.autoPromoteMargin, reuse_dragon_cell=core.reuseDragonCell)


def askSolver(core: Core):
    result = solve_state(core.board, limits=HINT_LIMITS, policy=_policy(core))
    if not result.solved:
        print(f"No solution found ({result.stop_reason}).")
        return None
    return result.solution


def runCommand(core: Core, command: str) -> bool:
    """Execute one text command. Returns False when the player quits."""
    parts = command.split()
    if not parts:
        return True
    name, args = parts[0].lower(), parts[1:]
    try:
        if name == "mv" and len(args) in (2, 3):
            count = int(args[2]) if len(args) == 3 else 0
            ok = core.askStack(int(args[0]), int(args[1]), count)
        elif name == "free" and len(args) in (1, 2):
            slot = int(args[1]) if len(args) == 2 else -1
            ok = core.askFree(int(args[0]), slot)
        elif name == "unfree" and len(args) == 2:
            ok = core.askMove(Move.from_free(int(args[0]), int(args[1])))
        elif name == "goal" and len(args) == 1:
            if args[0].lower().startswith("f"):
                ok = core.askMove(Move.free_to_goal(int(args[0][1:])))
            else:
                ok = core.askMove(Move.column_to_goal(int(args[0])))
        elif name == "group" and len(args) == 1:
            ok = core.askGroup(parse_suit(args[0]))
        elif name == "hint":
            solution = askSolver(core)
            if solution is not None:
                print("Hint: " + (solution[0].to_notation() if solution else "already solved"))
            return True
        elif name == "solve":
            solution = askSolver(core)
            if solution is not None:
                print(" ".join(move.to_notation() for move in solution))
            return True
        elif name == "save" and len(args) == 1:
            saveGameToFile(core, args[0])
            print("Saved.")
            return True
        elif name == "help":
            print(HELP)
            return True
        elif name == "quit":
            return False
        else:
            print("Invalid command! Type help.")
            return True
    except (ValueError, BoardFormatError):
        print("Invalid index!")
        return True
    except OSError as e:
        print(f"Cannot save: {e}")
        return True
    if not ok:
        print(f"Cannot move! {core.lastError}")
    return True


def main(argv=None):
    parser = argparse.ArgumentParser(description="Play SHENZHEN solitaire on the command line.")
    parser.add_argument("--seed", type=int, default=None, help="Deal this seed.")
    parser.add_argument("--board", type=str, default="", help="Start from a saved board file.")
    parser.add_argument("--auto-margin", type=int, default=None, help="Auto-promotion margin.")
    parser.add_argument("--reuse-dragon-cell", action="store_true", help="Group dragons into a cell one of them occupies.")
    args = parser.parse_args(argv)

    config = GameConfig()
    config.seed = args.seed
    config.reuseDragonCell = args.reuse_dragon_cell
    if args.auto_margin is not None:
        config.autoPromoteMargin = args.auto_margin
    if args.board:
        try:
            with open(args.board, "r", encoding="utf-8") as f:
                lines = [l for l in f.readlines() if l.strip() and not l.startswith("#")]
        except OSError as e:
            parser.error(f"cannot read board file: {e}")
        # Saved games carry a move counter and an ended flag before the board.
        if len(lines) == 5 + COLUMN_COUNT:
            lines = lines[2:]
        config.boardCode = "".join(lines)

    interface = CommandLineInterface()
    core = Core()
    core.registerInterface(interface)
    core.registerPlayer("Null")
    try:
        core.startGame(config)
    except BoardFormatError as e:
        parser.error(f"bad board file: {e}")
    print(HELP)
    while not core.gameEnded:
        try:
            command = input()
        except EOFError:
            break
        if not runCommand(core, command):
            break
    pass


if __name__ == '__main__':
    main()
