from __future__ import annotations

import random
from collections import Counter
from dataclasses import dataclass, replace
from typing import Iterable, Optional

SUIT_COUNT = 3
SUIT_NAMES = ("Black", "Green", "Red")
SUIT_LETTERS = "BGR"
MAX_RANK = 9
DRAGONS_PER_SUIT = 4
COLUMN_COUNT = 8
FREE_CELL_COUNT = 3

NUMBERED_COUNT = SUIT_COUNT * MAX_RANK
DRAGON_BASE = NUMBERED_COUNT
JOKER = DRAGON_BASE + SUIT_COUNT * DRAGONS_PER_SUIT
DECK_SIZE = JOKER + 1

KIND_NUMBER = "number"
KIND_DRAGON = "dragon"
KIND_JOKER = "joker"

# Free cell slot values: a card atom (>= 0), empty, or locked by a dragon group.
EMPTY_CELL = -1
_LOCK_BASE = -2

# Others must be at least `rank - margin` for a card to be promoted automatically.
DEFAULT_AUTO_MARGIN = 1

CardAtom = int
Column = tuple[CardAtom, ...]


class IllegalMove(ValueError):
    """Raised when a move breaks a rule of the game."""


class CorruptBoard(AssertionError):
    """Raised when a board no longer holds the deck exactly once."""


class BoardFormatError(ValueError):
    pass


def ceilDiv(x, y):
    return (x + y - 1) // y


def numbered(suit: int, rank: int) -> CardAtom:
    if not (0 <= suit < SUIT_COUNT and 1 <= rank <= MAX_RANK):
        raise ValueError(f"no numbered card with suit={suit} rank={rank}")
    return suit * MAX_RANK + rank - 1


def dragon(suit: int, copy: int = 0) -> CardAtom:
    if not (0 <= suit < SUIT_COUNT and 0 <= copy < DRAGONS_PER_SUIT):
        raise ValueError(f"no dragon with suit={suit} copy={copy}")
    return DRAGON_BASE + suit * DRAGONS_PER_SUIT + copy


def is_numbered(card: CardAtom) -> bool:
    return 0 <= card < NUMBERED_COUNT


def is_dragon(card: CardAtom) -> bool:
    return DRAGON_BASE <= card < JOKER


def card_kind(card: CardAtom) -> str:
    if is_numbered(card):
        return KIND_NUMBER
    if is_dragon(card):
        return KIND_DRAGON
    if card == JOKER:
        return KIND_JOKER
    raise ValueError(f"not a card: {card}")


def card_suit(card: CardAtom) -> int:
    """Suit of a numbered or dragon card, -1 for the joker."""
    if is_numbered(card):
        return card // MAX_RANK
    if is_dragon(card):
        return (card - DRAGON_BASE) // DRAGONS_PER_SUIT
    return -1


def card_rank(card: CardAtom) -> int:
    """Rank 1..9 of a numbered card, 0 for every other card."""
    if is_numbered(card):
        return card % MAX_RANK + 1
    return 0


def card_face(card: CardAtom) -> CardAtom:
    """Dragons of one suit are interchangeable; map them all to copy 0."""
    if is_dragon(card):
        return dragon(card_suit(card), 0)
    return card


CARD_FACES = tuple(card_face(c) for c in range(DECK_SIZE))


def can_hold(lower: CardAtom, upper: CardAtom) -> bool:
    """True if `upper` may rest on `lower` in a column run."""
    return (
        is_numbered(lower)
        and is_numbered(upper)
        and lower // MAX_RANK != upper // MAX_RANK
        and lower % MAX_RANK == upper % MAX_RANK + 1
    )


def card_str(card: CardAtom) -> str:
    kind = card_kind(card)
    if kind == KIND_NUMBER:
        return f"{SUIT_LETTERS[card_suit(card)]}{card_rank(card)}"
    if kind == KIND_DRAGON:
        return f"D{SUIT_LETTERS[card_suit(card)]}"
    return "J"


def parse_suit(token: str) -> int:
    idx = SUIT_LETTERS.find(token.strip().upper())
    if idx < 0 or len(token.strip()) != 1:
        raise BoardFormatError(f"unknown suit {token!r}")
    return idx


def parse_card(token: str, dragon_copy: int = 0) -> CardAtom:
    token = token.strip().upper()
    if token == "J":
        return JOKER
    if len(token) == 2 and token[0] == "D":
        return dragon(parse_suit(token[1]), dragon_copy)
    if len(token) == 2 and token[1].isdigit():
        rank = int(token[1])
        if 1 <= rank <= MAX_RANK:
            return numbered(parse_suit(token[0]), rank)
    raise BoardFormatError(f"unknown card {token!r}")


def full_deck() -> tuple[CardAtom, ...]:
    return tuple(range(DECK_SIZE))


def locked_marker(suit: int) -> int:
    return _LOCK_BASE - suit


def is_locked(slot: int) -> bool:
    return slot <= _LOCK_BASE


def locked_suit(slot: int) -> int:
    return _LOCK_BASE - slot


def _auto_promotable(card: CardAtom, goals, margin: int) -> bool:
    if not is_numbered(card):
        return False
    suit = card // MAX_RANK
    rank = card % MAX_RANK + 1
    if goals[suit] != rank - 1:
        return False
    for other in range(SUIT_COUNT):
        if other != suit and goals[other] < rank - margin:
            return False
    return True


MOVE_STACK = "STACK"
MOVE_TO_FREE = "TO_FREE"
MOVE_FROM_FREE = "FROM_FREE"
MOVE_COLUMN_TO_GOAL = "COLUMN_TO_GOAL"
MOVE_FREE_TO_GOAL = "FREE_TO_GOAL"
MOVE_GROUP = "GROUP"


@dataclass(frozen=True, slots=True)
class Move:
    """A single player move. Columns, free cells and suits are addressed by index."""

    kind: str
    src: int = -1
    dest: int = -1
    count: int = 1
    suit: int = -1

    @staticmethod
    def stack(src: int, dest: int, count: int = 1) -> "Move":
        return Move(kind=MOVE_STACK, src=src, dest=dest, count=count)

    @staticmethod
    def to_free(src: int, slot: int) -> "Move":
        return Move(kind=MOVE_TO_FREE, src=src, dest=slot)

    @staticmethod
    def from_free(slot: int, dest: int) -> "Move":
        return Move(kind=MOVE_FROM_FREE, src=slot, dest=dest)

    @staticmethod
    def column_to_goal(src: int) -> "Move":
        return Move(kind=MOVE_COLUMN_TO_GOAL, src=src)

    @staticmethod
    def free_to_goal(slot: int) -> "Move":
        return Move(kind=MOVE_FREE_TO_GOAL, src=slot)

    @staticmethod
    def group(suit: int, slot: int = -1) -> "Move":
        return Move(kind=MOVE_GROUP, dest=slot, suit=suit)

    def to_notation(self) -> str:
        if self.kind == MOVE_STACK:
            return f"STACK(C{self.src}->C{self.dest},n={self.count})"
        if self.kind == MOVE_TO_FREE:
            return f"TO_FREE(C{self.src}->F{self.dest})"
        if self.kind == MOVE_FROM_FREE:
            return f"FROM_FREE(F{self.src}->C{self.dest})"
        if self.kind == MOVE_COLUMN_TO_GOAL:
            return f"TO_GOAL(C{self.src})"
        if self.kind == MOVE_FREE_TO_GOAL:
            return f"TO_GOAL(F{self.src})"
        if self.kind == MOVE_GROUP:
            letter = SUIT_LETTERS[self.suit] if 0 <= self.suit < SUIT_COUNT else "?"
            if self.dest < 0:
                return f"GROUP({letter})"
            return f"GROUP({letter}->F{self.dest})"
        return f"{self.kind}(?)"


@dataclass(frozen=True, slots=True)
class Board:
    """Immutable snapshot of a game. Every move returns a new board."""

    columns: tuple[Column, ...]
    free_cells: tuple[int, ...] = (EMPTY_CELL,) * FREE_CELL_COUNT
    joker_placed: bool = False
    # Highest rank on each goal pile, 0 when empty.
    goals: tuple[int, ...] = (0,) * SUIT_COUNT
    dragons_grouped: tuple[bool, ...] = (False,) * SUIT_COUNT

    @classmethod
    def empty(cls) -> "Board":
        return cls(columns=((),) * COLUMN_COUNT)

    @classmethod
    def from_columns(
        cls,
        columns: Iterable[Iterable[CardAtom]],
        free_cells: Optional[Iterable[Optional[int]]] = None,
        joker_placed: bool = False,
        goals: Optional[Iterable[int]] = None,
        dragons_grouped: Optional[Iterable[bool]] = None,
    ) -> "Board":
        """
        Build a board from loose parts, padding missing columns and free cells.
        `None` in `free_cells` means an empty slot. When `dragons_grouped` is
        omitted it is derived from the locked free cells.
        """
        cols = [tuple(col) for col in columns]
        if len(cols) > COLUMN_COUNT:
            raise ValueError(f"at most {COLUMN_COUNT} columns, got {len(cols)}")
        cols.extend(() for _ in range(COLUMN_COUNT - len(cols)))

        slots = [EMPTY_CELL if s is None else int(s) for s in (free_cells or ())]
        if len(slots) > FREE_CELL_COUNT:
            raise ValueError(f"at most {FREE_CELL_COUNT} free cells, got {len(slots)}")
        slots.extend(EMPTY_CELL for _ in range(FREE_CELL_COUNT - len(slots)))

        goal_ranks = tuple(goals) if goals is not None else (0,) * SUIT_COUNT
        if dragons_grouped is None:
            grouped = tuple(locked_marker(s) in slots for s in range(SUIT_COUNT))
        else:
            grouped = tuple(bool(g) for g in dragons_grouped)
        return cls(
            columns=tuple(cols),
            free_cells=tuple(slots),
            joker_placed=joker_placed,
            goals=goal_ranks,
            dragons_grouped=grouped,
        )

    # ---- read-only projections -------------------------------------------------

    def is_solved(self) -> bool:
        return self.joker_placed and all(rank == MAX_RANK for rank in self.goals)

    def is_cleared(self) -> bool:
        """No card left in the tableau or resting in a free cell."""
        return not any(self.columns) and all(slot < 0 for slot in self.free_cells)

    def top_of(self, column: int) -> Optional[CardAtom]:
        cards = self.columns[column]
        return cards[-1] if cards else None

    def free_cell_cards(self) -> tuple[Optional[CardAtom], ...]:
        return tuple(slot if slot >= 0 else None for slot in self.free_cells)

    def goal_rank(self, suit: int) -> int:
        return self.goals[suit]

    def first_empty_free_cell(self) -> int:
        for idx, slot in enumerate(self.free_cells):
            if slot == EMPTY_CELL:
                return idx
        return -1

    def longest_movable_run(self, column: int) -> int:
        cards = self.columns[column]
        if not cards:
            return 0
        length = 1
        for i in range(len(cards) - 1, 0, -1):
            if not can_hold(cards[i - 1], cards[i]):
                break
            length += 1
        return length

    @staticmethod
    def can_place_on_column(card: CardAtom, dest_top: Optional[CardAtom]) -> bool:
        if dest_top is None:
            return True
        return can_hold(dest_top, card)

    def fitting_run_length(self, src: int, dest: int) -> int:
        """
        Number of cards a stack move from `src` onto a non-empty `dest` must
        carry, or 0 if no part of the run fits. For an empty destination every
        length up to the run is legal and the longest is returned.
        """
        run = self.longest_movable_run(src)
        dest_top = self.top_of(dest)
        if dest_top is None:
            return run
        cards = self.columns[src]
        for count in range(run, 0, -1):
            if can_hold(dest_top, cards[-count]):
                return count
        return 0

    def can_move_to_goal(self, card: CardAtom) -> bool:
        if card == JOKER:
            return not self.joker_placed
        return is_numbered(card) and self.goals[card // MAX_RANK] == card % MAX_RANK

    def can_auto_promote(self, card: CardAtom, margin: int = DEFAULT_AUTO_MARGIN) -> bool:
        return _auto_promotable(card, self.goals, margin)

    def uncovered_dragons(self, suit: int) -> list[tuple[str, int]]:
        """Locations ("column"/"free", index) of dragons of `suit` that are free to move."""
        found = []
        for idx, cards in enumerate(self.columns):
            if cards and is_dragon(cards[-1]) and card_suit(cards[-1]) == suit:
                found.append(("column", idx))
        for idx, slot in enumerate(self.free_cells):
            if slot >= 0 and is_dragon(slot) and card_suit(slot) == suit:
                found.append(("free", idx))
        return found

    def _group_slots(self, suit: int, reuse_dragon_cell: bool) -> list[int]:
        """
        Free cells that may take the group of `suit`: the empty ones, plus with
        `reuse_dragon_cell` the ones the grouped dragons themselves vacate.
        """
        slots = []
        for idx, slot in enumerate(self.free_cells):
            if slot == EMPTY_CELL:
                slots.append(idx)
            elif reuse_dragon_cell and slot >= 0 and is_dragon(slot) and card_suit(slot) == suit:
                slots.append(idx)
        return slots

    def group_target_slot(self, suit: int, reuse_dragon_cell: bool = False) -> int:
        """Slot a group of `suit` lands in when none is named, or -1."""
        slots = self._group_slots(suit, reuse_dragon_cell)
        return slots[0] if slots else -1

    def can_group_dragons(self, suit: int, slot: int = -1, reuse_dragon_cell: bool = False) -> bool:
        if self.dragons_grouped[suit]:
            return False
        if len(self.uncovered_dragons(suit)) != DRAGONS_PER_SUIT:
            return False
        slots = self._group_slots(suit, reuse_dragon_cell)
        if slot < 0:
            return bool(slots)
        return slot in slots

    # ---- transformations -------------------------------------------------------

    def apply(self, move: Move, reuse_dragon_cell: bool = False) -> "Board":
        """
        Return the board after `move`, or raise IllegalMove. No automatic moves are made.
        With `reuse_dragon_cell` a dragon group may land in a free cell that one of
        its own dragons occupied.
        """
        if move.kind == MOVE_STACK:
            return self._apply_stack(move.src, move.dest, move.count)
        if move.kind == MOVE_TO_FREE:
            return self._apply_to_free(move.src, move.dest)
        if move.kind == MOVE_FROM_FREE:
            return self._apply_from_free(move.src, move.dest)
        if move.kind == MOVE_COLUMN_TO_GOAL:
            return self._apply_column_to_goal(move.src)
        if move.kind == MOVE_FREE_TO_GOAL:
            return self._apply_free_to_goal(move.src)
        if move.kind == MOVE_GROUP:
            return self._apply_group(move.suit, move.dest, reuse_dragon_cell)
        raise IllegalMove(f"unknown move kind {move.kind!r}")

    def _check_column(self, column: int):
        if not 0 <= column < COLUMN_COUNT:
            raise IllegalMove(f"no column {column}")

    def _check_slot(self, slot: int):
        if not 0 <= slot < FREE_CELL_COUNT:
            raise IllegalMove(f"no free cell {slot}")

    def _apply_stack(self, src: int, dest: int, count: int) -> "Board":
        self._check_column(src)
        self._check_column(dest)
        if src == dest:
            raise IllegalMove("source and destination column are the same")
        cards = self.columns[src]
        if not cards:
            raise IllegalMove(f"column {src} is empty")
        run = self.longest_movable_run(src)
        if count < 1 or count > run:
            raise IllegalMove(f"column {src} has a movable run of {run}, cannot move {count}")
        moving = cards[-count:]
        if not self.can_place_on_column(moving[0], self.top_of(dest)):
            raise IllegalMove(f"{card_str(moving[0])} does not fit on {card_str(self.columns[dest][-1])}")
        columns = list(self.columns)
        columns[src] = cards[:-count]
        columns[dest] = self.columns[dest] + moving
        return replace(self, columns=tuple(columns))

    def _apply_to_free(self, src: int, slot: int) -> "Board":
        self._check_column(src)
        self._check_slot(slot)
        cards = self.columns[src]
        if not cards:
            raise IllegalMove(f"column {src} is empty")
        current = self.free_cells[slot]
        if is_locked(current):
            raise IllegalMove(f"free cell {slot} is locked")
        if current != EMPTY_CELL:
            raise IllegalMove(f"free cell {slot} is occupied")
        columns = list(self.columns)
        columns[src] = cards[:-1]
        free = list(self.free_cells)
        free[slot] = cards[-1]
        return replace(self, columns=tuple(columns), free_cells=tuple(free))

    def _apply_from_free(self, slot: int, dest: int) -> "Board":
        self._check_slot(slot)
        self._check_column(dest)
        card = self.free_cells[slot]
        if card < 0:
            raise IllegalMove(f"free cell {slot} holds no movable card")
        if not self.can_place_on_column(card, self.top_of(dest)):
            raise IllegalMove(f"{card_str(card)} does not fit on {card_str(self.columns[dest][-1])}")
        columns = list(self.columns)
        columns[dest] = self.columns[dest] + (card,)
        free = list(self.free_cells)
        free[slot] = EMPTY_CELL
        return replace(self, columns=tuple(columns), free_cells=tuple(free))

    def _to_goal(self, card: CardAtom) -> dict:
        if not self.can_move_to_goal(card):
            raise IllegalMove(f"{card_str(card)} cannot go to its goal pile")
        if card == JOKER:
            return {"joker_placed": True}
        goals = list(self.goals)
        goals[card // MAX_RANK] += 1
        return {"goals": tuple(goals)}

    def _apply_column_to_goal(self, src: int) -> "Board":
        self._check_column(src)
        card = self.top_of(src)
        if card is None:
            raise IllegalMove(f"column {src} is empty")
        changes = self._to_goal(card)
        columns = list(self.columns)
        columns[src] = self.columns[src][:-1]
        return replace(self, columns=tuple(columns), **changes)

    def _apply_free_to_goal(self, slot: int) -> "Board":
        self._check_slot(slot)
        card = self.free_cells[slot]
        if card < 0:
            raise IllegalMove(f"free cell {slot} holds no movable card")
        changes = self._to_goal(card)
        free = list(self.free_cells)
        free[slot] = EMPTY_CELL
        return replace(self, free_cells=tuple(free), **changes)

    def _apply_group(self, suit: int, slot: int, reuse_dragon_cell: bool = False) -> "Board":
        if not 0 <= suit < SUIT_COUNT:
            raise IllegalMove(f"no suit {suit}")
        if self.dragons_grouped[suit]:
            raise IllegalMove(f"{SUIT_NAMES[suit]} dragons are already grouped")
        found = self.uncovered_dragons(suit)
        if len(found) != DRAGONS_PER_SUIT:
            raise IllegalMove(f"only {len(found)} of {DRAGONS_PER_SUIT} {SUIT_NAMES[suit]} dragons are uncovered")
        if slot < 0:
            slot = self.group_target_slot(suit, reuse_dragon_cell)
            if slot < 0:
                raise IllegalMove("no empty free cell to group dragons into")
        self._check_slot(slot)
        if slot not in self._group_slots(suit, reuse_dragon_cell):
            raise IllegalMove(f"free cell {slot} is not empty")

        columns = list(self.columns)
        free = list(self.free_cells)
        for where, idx in found:
            if where == "column":
                columns[idx] = columns[idx][:-1]
            else:
                free[idx] = EMPTY_CELL
        free[slot] = locked_marker(suit)
        grouped = list(self.dragons_grouped)
        grouped[suit] = True
        return replace(
            self,
            columns=tuple(columns),
            free_cells=tuple(free),
            dragons_grouped=tuple(grouped),
        )

    def do_automoves(self, margin: int = DEFAULT_AUTO_MARGIN) -> "Board":
        """
        Forced-move closure: put the joker into its cell and promote every card
        that `can_auto_promote` allows, until a full pass changes nothing.
        Column tops are scanned left to right, then the free cells.
        """
        columns = list(self.columns)
        free = list(self.free_cells)
        goals = list(self.goals)
        joker_placed = self.joker_placed
        changed = False

        progress = True
        while progress:
            progress = False
            for idx, cards in enumerate(columns):
                if not cards:
                    continue
                card = cards[-1]
                if card == JOKER:
                    joker_placed = True
                elif _auto_promotable(card, goals, margin):
                    goals[card // MAX_RANK] += 1
                else:
                    continue
                columns[idx] = cards[:-1]
                progress = True
            for idx, card in enumerate(free):
                if card < 0:
                    continue
                if card == JOKER:
                    joker_placed = True
                elif _auto_promotable(card, goals, margin):
                    goals[card // MAX_RANK] += 1
                else:
                    continue
                free[idx] = EMPTY_CELL
                progress = True
            changed = changed or progress

        if not changed:
            return self
        return Board(
            columns=tuple(columns),
            free_cells=tuple(free),
            joker_placed=joker_placed,
            goals=tuple(goals),
            dragons_grouped=self.dragons_grouped,
        )

    # ---- bookkeeping -----------------------------------------------------------

    def card_census(self) -> Counter:
        """Every card the board accounts for, including those on goals or grouped away."""
        census = Counter()
        for cards in self.columns:
            census.update(cards)
        census.update(slot for slot in self.free_cells if slot >= 0)
        if self.joker_placed:
            census[JOKER] += 1
        for suit, rank in enumerate(self.goals):
            census.update(numbered(suit, r) for r in range(1, rank + 1))
        for suit, grouped in enumerate(self.dragons_grouped):
            if grouped:
                census.update(dragon(suit, copy) for copy in range(DRAGONS_PER_SUIT))
        return census

    def check_consistency(self):
        census = self.card_census()
        extra = [card_str(c) for c, n in sorted(census.items()) if n > 1]
        missing = [card_str(c) for c in full_deck() if census[c] == 0]
        if extra or missing:
            raise CorruptBoard(f"deck mismatch: duplicated={extra} missing={missing}")
        for suit, grouped in enumerate(self.dragons_grouped):
            if grouped != (locked_marker(suit) in self.free_cells):
                raise CorruptBoard(f"{SUIT_NAMES[suit]} dragon flag disagrees with the free cells")
        for rank in self.goals:
            if not 0 <= rank <= MAX_RANK:
                raise CorruptBoard(f"goal rank {rank} out of range")


def deal_seeded(seed: int) -> Board:
    """Shuffle the 40-card deck with its own RNG and deal it into the columns."""
    deck = list(full_deck())
    random.Random(seed).shuffle(deck)
    chunk = ceilDiv(DECK_SIZE, COLUMN_COUNT)
    return Board.from_columns(deck[i * chunk:(i + 1) * chunk] for i in range(COLUMN_COUNT))


def _encode_slot(slot: int) -> str:
    if slot == EMPTY_CELL:
        return "empty"
    if is_locked(slot):
        return "X" + SUIT_LETTERS[locked_suit(slot)]
    return card_str(slot)


def encode_board(board: Board) -> list[str]:
    """
    Line format: free cells, joker flag, goal ranks, then one line per column
    (bottom to top). Empty cells and columns are written as "empty".
    """
    lines = [
        ",".join(_encode_slot(slot) for slot in board.free_cells),
        "1" if board.joker_placed else "0",
        ",".join(str(rank) for rank in board.goals),
    ]
    for cards in board.columns:
        lines.append(",".join(card_str(c) for c in cards) if cards else "empty")
    return lines


def decode_board(lines: Iterable[str]) -> Board:
    def lineFilter(s: str):
        return s.strip() != "" and not s.lstrip().startswith("#")

    lines = [line.strip() for line in lines if lineFilter(line)]
    if len(lines) != 3 + COLUMN_COUNT:
        raise BoardFormatError(f"expected {3 + COLUMN_COUNT} lines, got {len(lines)}")

    copies = [0] * SUIT_COUNT

    def decodeCard(token: str) -> CardAtom:
        token = token.strip().upper()
        if len(token) == 2 and token[0] == "D":
            suit = parse_suit(token[1])
            if copies[suit] >= DRAGONS_PER_SUIT:
                raise BoardFormatError(f"too many {SUIT_NAMES[suit]} dragons")
            copies[suit] += 1
            return dragon(suit, copies[suit] - 1)
        return parse_card(token)

    def decodeCards(line: str) -> tuple[CardAtom, ...]:
        if line == "empty":
            return ()
        return tuple(decodeCard(token) for token in line.split(","))

    columns = [decodeCards(line) for line in lines[3:]]

    free_cells = []
    for token in lines[0].split(","):
        token = token.strip()
        if token == "empty":
            free_cells.append(EMPTY_CELL)
        elif len(token) == 2 and token[0].upper() == "X":
            free_cells.append(locked_marker(parse_suit(token[1])))
        else:
            free_cells.append(decodeCard(token))
    if len(free_cells) != FREE_CELL_COUNT:
        raise BoardFormatError(f"expected {FREE_CELL_COUNT} free cells, got {len(free_cells)}")

    if lines[1] not in ("0", "1"):
        raise BoardFormatError(f"joker flag must be 0 or 1, got {lines[1]!r}")

    try:
        goals = tuple(int(x) for x in lines[2].split(","))
    except ValueError as exc:
        raise BoardFormatError(f"bad goal ranks {lines[2]!r}") from exc
    if len(goals) != SUIT_COUNT or any(not 0 <= g <= MAX_RANK for g in goals):
        raise BoardFormatError(f"bad goal ranks {lines[2]!r}")

    return Board.from_columns(columns, free_cells=free_cells, joker_placed=lines[1] == "1", goals=goals)
