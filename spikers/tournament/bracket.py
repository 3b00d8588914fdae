"""
Bracket positional math.

Bracket slots are 1-indexed within each round and follow standard
single-elimination progression:

    Round N, slot s  ->  Round N+1, slot ceil(s/2)

So slots 1 and 2 feed slot 1 of the next round, slots 3 and 4 feed slot 2,
and so on. The odd feeder fills side A of the next match, the even feeder
side B.

The bracket stops at the semifinal round: its two winners meet in the
winners final and its two losers in the losers final, so a bracket of size
N has ``log2(N) - 1`` rounds.
"""

import math


def get_bracket_size(team_count: int) -> int:
    """
    Largest power of two that does not exceed the number of teams.

    Examples:
        >>> get_bracket_size(4)
        4
        >>> get_bracket_size(7)
        4
        >>> get_bracket_size(3)
        2
    """
    if team_count < 2:
        raise ValueError("A bracket needs at least two teams")
    return 2 ** int(math.log2(team_count))


def get_bracket_rounds(bracket_size: int) -> int:
    """
    Number of bracket rounds played before the finals.

    Examples:
        >>> get_bracket_rounds(2)
        0
        >>> get_bracket_rounds(4)
        1
        >>> get_bracket_rounds(8)
        2
    """
    return max(int(math.log2(bracket_size)) - 1, 0)


def get_matches_in_round(bracket_size: int, round_number: int) -> int:
    """
    Number of matches in a bracket round (1-indexed).

    Examples:
        >>> get_matches_in_round(8, 1)
        4
        >>> get_matches_in_round(8, 2)
        2
    """
    return bracket_size // (2**round_number)


def get_seeding_order(bracket_size: int) -> list[int]:
    """
    Seeds in slot order for the first round.

    Consecutive entries meet each other, and the top two seeds can only meet
    in the final.

    Examples:
        >>> get_seeding_order(4)
        [1, 4, 2, 3]
        >>> get_seeding_order(8)
        [1, 8, 4, 5, 2, 7, 3, 6]
    """
    order = [1, 2]
    while len(order) < bracket_size:
        total = len(order) * 2 + 1
        order = [seed for s in order for seed in (s, total - s)]
    return order[:bracket_size]


def get_first_round_pairings(bracket_size: int) -> list[tuple[int, int]]:
    """
    Seed pairings for each first-round slot.

    Examples:
        >>> get_first_round_pairings(4)
        [(1, 4), (2, 3)]
    """
    order = get_seeding_order(bracket_size)
    return [(order[i], order[i + 1]) for i in range(0, len(order), 2)]


def get_feeder_slots(slot: int) -> tuple[int, int]:
    """
    The two slots of the previous round that feed ``slot``.

    Examples:
        >>> get_feeder_slots(1)
        (1, 2)
        >>> get_feeder_slots(2)
        (3, 4)
    """
    return (2 * slot - 1, 2 * slot)


def get_round_name(teams_in_round: int) -> str:
    """Display name for a bracket round by the number of teams still in it."""
    if teams_in_round == 4:
        return "Semifinal"
    if teams_in_round == 8:
        return "Quarterfinal"
    return f"Round of {teams_in_round}"
