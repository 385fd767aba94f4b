from __future__ import annotations

from collections.abc import Callable, Hashable, Mapping
from typing import TypeVar

S = TypeVar("S")
K = TypeVar("K", bound=Hashable)

StepHandler = Callable[[S], S]


def run_state_machine(
    *,
    initial_state: S,
    get_step: Callable[[S], K],
    handlers: Mapping[K, StepHandler[S]],
    is_terminal: Callable[[K], bool],
    on_step: Callable[[S], None] | None = None,
) -> S:
    """Feed the session through handlers until it reaches a terminal step.

    ``on_step`` sees every session after a transition, terminal one included.

    Raises:
        RuntimeError: if a non-terminal step has no handler.
    """
    current = initial_state

    while not is_terminal(get_step(current)):
        step = get_step(current)
        handler = handlers.get(step)
        if handler is None:
            raise RuntimeError(f"no handler for step: {step}")

        current = handler(current)
        if on_step is not None:
            on_step(current)

    return current
