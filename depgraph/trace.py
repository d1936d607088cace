"""Helpers for building and trimming cycle trace strings."""

from typing import List, Sequence, Tuple

from .errors import InvalidArgumentError, NotFoundError

ARROW = " -> "


def format_route(units: Sequence[str]) -> str:
    """Join unit names into a route, e.g. ``"a -> b -> c"``."""
    return ARROW.join(units)


def split_route(route: str) -> List[str]:
    """Split a route back into its unit names."""
    if not route:
        return []
    return route.split(ARROW)


def trim_to_cycle(route: str, offender: str) -> str:
    """
    Trim a route so that it starts at the first occurrence of ``offender``.

    Matching is done on whole unit names, so ``"b"`` does not match inside
    ``"ab"``.

    Args:
        route: Route string, e.g. ``"x -> y -> x"``.
        offender: The unit that closed the cycle.

    Returns:
        The tail of the route starting at ``offender``.

    Raises:
        InvalidArgumentError: If either argument is empty.
        NotFoundError: If ``offender`` is not one of the route's units.
    """
    if not route or not offender:
        raise InvalidArgumentError("route or offender is empty")

    units = split_route(route)
    try:
        index = units.index(offender)
    except ValueError:
        raise NotFoundError(f"not found in route: {offender}") from None

    return format_route(units[index:])


def canonical_cycle(trace: str) -> Tuple[str, ...]:
    """
    Return a rotation-independent key for a cycle trace.

    ``"b -> c -> a -> b"`` and ``"a -> b -> c -> a"`` share the key
    ``("a", "b", "c")``.
    """
    return canonical_units(split_route(trace))


def canonical_units(cycle: Sequence[str]) -> Tuple[str, ...]:
    """Rotation-independent key for a cycle given as unit names, closed or not."""
    units = list(cycle)
    if len(units) > 1 and units[0] == units[-1]:
        units = units[:-1]
    if not units:
        return ()
    start = units.index(min(units))
    return tuple(units[start:] + units[:start])
