from base.Board import Move
from base.Core import Core


class Interface:

    def __init__(self):
        self.core: Core = None

    def onStart(self):
        pass

    def onEvent(self, move: Move):
        """
        Invoked after a player move and its automatic follow-ups are applied.
        :param move:
        :return:
        """
        self.notifyRedraw()
        pass

    def notifyRedraw(self):
        pass

    def onWin(self):
        pass
