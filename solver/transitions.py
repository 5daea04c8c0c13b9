from __future__ import annotations

from dataclasses import dataclass

from base.Board import (
    CARD_FACES,
    DEFAULT_AUTO_MARGIN,
    EMPTY_CELL,
    SUIT_COUNT,
    Board,
    Move,
    can_hold,
    is_numbered,
)

StateKey = tuple[tuple[tuple[int, ...], ...], tuple[int, ...], bool, tuple[int, ...], tuple[bool, ...]]


@dataclass(frozen=True, slots=True)
class Transition:
    move: Move
    # Successor after the forced-move closure has run.
    board: Board


def state_key(board: Board) -> StateKey:
    """
    Key for duplicate detection over the full layout.
    Columns and free cells keep their positions; only interchangeable dragon
    copies are collapsed to one face.
    """
    faces = CARD_FACES
    columns = tuple(tuple(faces[c] for c in cards) for cards in board.columns)
    free = tuple(faces[s] if s >= 0 else s for s in board.free_cells)
    return columns, free, board.joker_placed, board.goals, board.dragons_grouped


def legal_moves(
    board: Board,
    limit_empty_destinations: bool = True,
    reuse_dragon_cell: bool = False,
) -> list[Move]:
    """
    Enumerate single legal moves in a fixed order:
    column->column (longest run first), column->free cell, free cell->column,
    cards to goal piles, then dragon grouping.
    With `limit_empty_destinations`, only the first empty column and the first
    empty free cell are offered as destinations. `reuse_dragon_cell` lets a
    dragon group land in a cell one of its own dragons occupies.
    """
    moves: list[Move] = []
    columns = board.columns
    free_cells = board.free_cells

    for src, cards in enumerate(columns):
        if not cards:
            continue
        run = board.longest_movable_run(src)
        used_empty = False
        for dest, dest_cards in enumerate(columns):
            if dest == src:
                continue
            if not dest_cards:
                if limit_empty_destinations:
                    if used_empty:
                        continue
                    used_empty = True
                for count in range(run, 0, -1):
                    # Relocating a whole column to an empty one only permutes columns.
                    if limit_empty_destinations and count == len(cards):
                        continue
                    moves.append(Move.stack(src, dest, count))
                continue
            top = dest_cards[-1]
            for count in range(run, 0, -1):
                if can_hold(top, cards[-count]):
                    moves.append(Move.stack(src, dest, count))
                    break

    empty_slots = [idx for idx, slot in enumerate(free_cells) if slot == EMPTY_CELL]
    if limit_empty_destinations:
        empty_slots = empty_slots[:1]
    for src, cards in enumerate(columns):
        if not cards:
            continue
        for slot in empty_slots:
            moves.append(Move.to_free(src, slot))

    for slot, card in enumerate(free_cells):
        if card < 0:
            continue
        used_empty = False
        for dest, dest_cards in enumerate(columns):
            if not dest_cards:
                if limit_empty_destinations:
                    if used_empty:
                        continue
                    used_empty = True
                moves.append(Move.from_free(slot, dest))
            elif can_hold(dest_cards[-1], card):
                moves.append(Move.from_free(slot, dest))

    for src, cards in enumerate(columns):
        if cards and is_numbered(cards[-1]) and board.can_move_to_goal(cards[-1]):
            moves.append(Move.column_to_goal(src))
    for slot, card in enumerate(free_cells):
        if card >= 0 and is_numbered(card) and board.can_move_to_goal(card):
            moves.append(Move.free_to_goal(slot))

    for suit in range(SUIT_COUNT):
        if board.can_group_dragons(suit, reuse_dragon_cell=reuse_dragon_cell):
            moves.append(Move.group(suit, board.group_target_slot(suit, reuse_dragon_cell)))

    return moves


def iter_transitions(
    board: Board,
    auto_margin: int = DEFAULT_AUTO_MARGIN,
    limit_empty_destinations: bool = True,
    reuse_dragon_cell: bool = False,
) -> list[Transition]:
    """Successors of `board`, each already settled by the forced-move closure."""
    transitions = []
    moves = legal_moves(
        board,
        limit_empty_destinations=limit_empty_destinations,
        reuse_dragon_cell=reuse_dragon_cell,
    )
    for move in moves:
        settled = board.apply(move, reuse_dragon_cell).do_automoves(auto_margin)
        transitions.append(Transition(move=move, board=settled))
    return transitions
