import random
import time

from base.Board import (
    COLUMN_COUNT,
    DEFAULT_AUTO_MARGIN,
    Board,
    IllegalMove,
    Move,
    deal_seeded,
    decode_board,
    encode_board,
)

DUMMY_PLAYER = "Dummy"


class GameConfig:
    def __init__(self):
        self.seed = None
        self.autoPromoteMargin = DEFAULT_AUTO_MARGIN
        self.reuseDragonCell = False
        self.boardCode = None  # encoded board lines, overrides the seed

    def initBoard(self) -> Board:
        if self.boardCode is not None:
            return decode_board(self.boardCode.splitlines())
        if self.seed is None:
            self.seed = random.randrange(2 ** 31)
        return deal_seeded(self.seed)


class Core:
    """
    ask*** : should be called by "player", rejects illegal requests.
    do*** : actual operation, raises IllegalMove.
    """

    def __init__(self):
        self.interface = None
        self.player = None

        self.board: Board = None
        self.seed = None
        self.autoPromoteMargin = DEFAULT_AUTO_MARGIN
        self.reuseDragonCell = False
        self.moveCount = 0
        self.gameEnded = None
        self.lastError = None

    def registerInterface(self, interface):
        self.interface = interface
        interface.core = self

    def registerPlayer(self, player):
        self.player = player

    def _checkReady(self):
        if self.interface is None or self.player is None:
            raise RuntimeError("interface or player is null")

    def startGame(self, gameConfig: GameConfig = None):
        self._checkReady()
        if gameConfig is None:
            gameConfig = GameConfig()
        board = gameConfig.initBoard()
        self.seed = gameConfig.seed
        self.autoPromoteMargin = gameConfig.autoPromoteMargin
        self.reuseDragonCell = gameConfig.reuseDragonCell
        self.board = board.do_automoves(self.autoPromoteMargin)
        self.moveCount = 0
        self.gameEnded = False
        self.lastError = None
        self.interface.onStart()
        self.interface.notifyRedraw()
        self.checkWin()

    def resumeGame(self):
        self._checkReady()
        self.interface.onStart()
        self.interface.notifyRedraw()

    def checkWin(self):
        if not self.board.is_solved():
            return False
        self.gameEnded = True
        self.interface.onWin()
        return True

    def askMove(self, move: Move) -> bool:
        if self.gameEnded:
            self.lastError = "the game is over"
            return False
        try:
            self.doMove(move)
        except IllegalMove as e:
            self.lastError = str(e)
            return False
        self.lastError = None
        self.checkWin()
        return True

    def askStack(self, src: int, dest: int, count: int = 0) -> bool:
        """Move a run between columns; count 0 picks the length that fits."""
        if count <= 0:
            if not (0 <= src < COLUMN_COUNT and 0 <= dest < COLUMN_COUNT):
                self.lastError = "no such column"
                return False
            count = self.board.fitting_run_length(src, dest)
            if count == 0:
                self.lastError = "no part of the run fits there"
                return False
        return self.askMove(Move.stack(src, dest, count))

    def askFree(self, src: int, slot: int = -1) -> bool:
        if slot < 0:
            slot = self.board.first_empty_free_cell()
            if slot < 0:
                self.lastError = "no empty free cell"
                return False
        return self.askMove(Move.to_free(src, slot))

    def askGroup(self, suit: int) -> bool:
        return self.askMove(Move.group(suit))

    def doMove(self, move: Move):
        self.board = self.board.apply(move, self.reuseDragonCell).do_automoves(self.autoPromoteMargin)
        self.moveCount += 1
        self.interface.onEvent(move)

    def saveGameAsLines(self):
        lines = [str(self.moveCount), str(self.gameEnded)]
        lines.extend(encode_board(self.board))
        return lines

    def loadGameFromLines(self, lines):
        def lineFilter(s: str):
            return not s.isspace() and s != "" and not s.startswith("#")

        lines = list(filter(lineFilter, lines))
        self.moveCount = int(lines[0])
        self.gameEnded = lines[1].strip() == "True"
        self.board = decode_board(lines[2:])


def saveGameToFile(core: Core, path):
    with open(path, "w+", encoding="utf-8") as f:
        dateInfo = "# date: " + time.strftime("%Y-%m-%d %H:%M:%S", time.localtime()) + "\n"
        f.write(dateInfo)
        f.writelines([x + "\n" for x in core.saveGameAsLines()])


def loadGameFromFile(path):
    with open(path, "r", encoding="utf-8") as f:
        lines = f.readlines()
        core = Core()
        core.loadGameFromLines(lines)
        return core
