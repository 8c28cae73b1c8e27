import logging
from collections import defaultdict
from typing import Callable, Dict, Hashable, Iterable, List, Optional, Sequence, Tuple, Union

from pathviz.core.errors import IllegalTransition

logger = logging.getLogger(__name__)

# Matches any current state
WILDCARD = "*"


class StateMachine:
    """
    Table-driven finite state machine.

    Transitions are declared as (event, from_states, to_state), where
    from_states is a state, a sequence of states or WILDCARD. Explicit
    (state, event) rows win; wildcard rows are the fallback lookup.

    Hooks run in this order on a legal fire():
        leave(old state) -> state changes -> enter(new state) -> after(event)
    Hooks may fire further events; the nested transition completes before
    the outer hooks continue.
    """

    def __init__(self, initial: Hashable,
                 transitions: Iterable[Tuple[str, Union[Hashable, Sequence[Hashable]], Hashable]]):
        self.current = initial
        self.transition_count = 0
        self._table: Dict[Tuple[Hashable, str], Hashable] = {}
        self._wildcard: Dict[str, Hashable] = {}
        self._events = set()
        self._states = {initial}

        for event, sources, target in transitions:
            self._events.add(event)
            self._states.add(target)
            if sources == WILDCARD:
                self._wildcard[event] = target
                continue
            if isinstance(sources, (list, tuple, set, frozenset)):
                source_list = sources
            else:
                source_list = [sources]
            for source in source_list:
                self._states.add(source)
                self._table[(source, event)] = target

        self._on_enter: Dict[Hashable, List[Callable]] = defaultdict(list)
        self._on_leave: Dict[Hashable, List[Callable]] = defaultdict(list)
        self._on_event: Dict[str, List[Callable]] = defaultdict(list)

    @property
    def states(self) -> frozenset:
        return frozenset(self._states)

    @property
    def events(self) -> frozenset:
        return frozenset(self._events)

    def is_(self, state: Hashable) -> bool:
        return self.current == state

    def target(self, event: str) -> Optional[Hashable]:
        target = self._table.get((self.current, event))
        if target is None:
            target = self._wildcard.get(event)
        return target

    def can(self, event: str) -> bool:
        return self.target(event) is not None

    def on_enter(self, state: Hashable, callback: Callable):
        self._on_enter[state].append(callback)

    def on_leave(self, state: Hashable, callback: Callable):
        self._on_leave[state].append(callback)

    def on_event(self, event: str, callback: Callable):
        self._on_event[event].append(callback)

    def fire(self, event: str, *args) -> bool:
        """Returns False, with no side effects, when the event is illegal here."""
        target = self.target(event)
        if target is None:
            logger.debug(f"Rejected '{event}' in state {self.current}")
            return False

        source = self.current
        for callback in self._on_leave[source]:
            callback(event, source, target, *args)

        self.current = target
        self.transition_count += 1

        for callback in self._on_enter[target]:
            callback(event, source, target, *args)
        for callback in self._on_event[event]:
            callback(event, source, target, *args)
        return True

    def fire_strict(self, event: str, *args):
        """For internal events that are only ever fired from legal states."""
        if not self.fire(event, *args):
            raise IllegalTransition(event, self.current)
