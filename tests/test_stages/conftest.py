"""Shared election scenarios for pipeline stage tests.

Each fixture returns (seats, registrations, counts) as accepted by
run_election / run_stages_until in tests/conftest.py. Positions are
processed in the order listed.
"""

import pytest


@pytest.fixture
def boundary_tie_one_seat():
    """One seat, a first-choice and a second-choice candidate both on 5.

    chair (1 seat):  a=5 (1st)  b=5 (2nd)
    vice  (1 seat):  c=9 (1st)  b=2 (1st)

    b loses vice, so b is a real contender for chair: {a, b} tie.
    """
    return (
        {"chair": 1, "vice": 1},
        {"a": ("chair", None), "b": ("vice", "chair"), "c": ("vice", None)},
        {"chair": {"a": 5, "b": 5}, "vice": {"c": 9, "b": 2}},
    )


@pytest.fixture
def double_win():
    """x wins board as a second choice before winning chair as a first choice.

    board (2 seats):  a=3 (1st)  x=4 (2nd)  y=2 (2nd)
    chair (1 seat):   x=5 (1st)

    Preliminary allocation seats x in both; x must keep chair and board's
    seat goes to y.
    """
    return (
        {"board": 2, "chair": 1},
        {"a": ("board", None), "x": ("chair", "board"), "y": ("treasury", "board")},
        {"board": {"a": 3, "x": 4, "y": 2}, "chair": {"x": 5}},
    )


@pytest.fixture
def chain_tie():
    """A tie in board decides whether c may take a seat in audit.

    board (2 seats):  a=10 (1st)  b=8 (1st)  c=8 (1st)
    audit (2 seats):  d=6 (1st)   c=4 (2nd)

    b and c tie for board's second seat. c is audit's second-choice backup
    and would be seated there if c loses board: audit depends on board.
    """
    return (
        {"board": 2, "audit": 2},
        {
            "a": ("board", None),
            "b": ("board", None),
            "c": ("board", "audit"),
            "d": ("audit", None),
        },
        {"board": {"a": 10, "b": 8, "c": 8}, "audit": {"d": 6, "c": 4}},
    )


@pytest.fixture
def displaced_backup():
    """Like chain_tie, but audit's seat is currently held by another backup.

    board    (2 seats):  a=10 (1st)  b=8 (1st)  c=8 (1st)
    audit    (1 seat):   c=4 (2nd)   f=3 (2nd)
    treasury (1 seat):   g=9 (1st)   f=1 (1st)

    f holds audit only because c is seated in board; if c loses the board
    tie, c (4 votes) takes audit from f (3 votes).
    """
    return (
        {"board": 2, "audit": 1, "treasury": 1},
        {
            "a": ("board", None),
            "b": ("board", None),
            "c": ("board", "audit"),
            "f": ("treasury", "audit"),
            "g": ("treasury", None),
        },
        {
            "board": {"a": 10, "b": 8, "c": 8},
            "audit": {"c": 4, "f": 3},
            "treasury": {"g": 9, "f": 1},
        },
    )


@pytest.fixture
def reciprocal_cycle():
    """Two ties, each holding the other position's second-choice backup.

    chair (1 seat):  c=5 (1st)  x=5 (1st)  d=5 (2nd)
    vice  (1 seat):  d=5 (1st)  y=5 (1st)  c=5 (2nd)

    chair waits on vice (through d) and vice waits on chair (through c).
    """
    return (
        {"chair": 1, "vice": 1},
        {
            "c": ("chair", "vice"),
            "x": ("chair", None),
            "d": ("vice", "chair"),
            "y": ("vice", None),
        },
        {"chair": {"c": 5, "x": 5, "d": 5}, "vice": {"d": 5, "y": 5, "c": 5}},
    )


@pytest.fixture
def first_choice_overflow():
    """Two first-choice candidates tie for one seat, below a second choice.

    chair (1 seat):  c=7 (2nd)  a=5 (1st)  b=5 (1st)
    vice  (1 seat):  d=9 (1st)  c=2 (1st)

    First choices are seated before c whatever c's count, so pass 1 seats
    both a and b: {a, b} contest the seat and c can't take it.
    """
    return (
        {"chair": 1, "vice": 1},
        {"a": ("chair", None), "b": ("chair", None), "c": ("vice", "chair"), "d": ("vice", None)},
        {"chair": {"a": 5, "b": 5, "c": 7}, "vice": {"d": 9, "c": 2}},
    )


@pytest.fixture
def second_choice_overflow():
    """Two second-choice candidates tie for the seat a first choice left open.

    board    (2 seats):  b=9 (2nd)  c=9 (2nd)  a=3 (1st)
    treasury (1 seat):   e=10 (1st) b=1 (1st)  c=1 (1st)

    a keeps a seat as the only first choice; b and c contest the other.
    """
    return (
        {"board": 2, "treasury": 1},
        {
            "a": ("board", None),
            "b": ("treasury", "board"),
            "c": ("treasury", "board"),
            "e": ("treasury", None),
        },
        {"board": {"a": 3, "b": 9, "c": 9}, "treasury": {"e": 10, "b": 1, "c": 1}},
    )


@pytest.fixture
def second_choices_behind_first_choice():
    """Second choices tie with each other but never reach the seat.

    chair (1 seat):  b=5 (2nd)  c=5 (2nd)  a=3 (1st)
    vice  (1 seat):  d=9 (1st)  b=1 (1st)  c=1 (1st)

    a fills chair in pass 1, so b and c's equal counts decide nothing.
    """
    return (
        {"chair": 1, "vice": 1},
        {
            "a": ("chair", None),
            "b": ("vice", "chair"),
            "c": ("vice", "chair"),
            "d": ("vice", None),
        },
        {"chair": {"a": 3, "b": 5, "c": 5}, "vice": {"d": 9, "b": 1, "c": 1}},
    )
