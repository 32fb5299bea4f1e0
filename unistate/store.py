"""Unistate stores."""
from __future__ import annotations
import collections
import contextlib
import dataclasses
import enum
import logging
from anyio import Event
from typing import (
    Any,
    AsyncIterator,
    Callable,
    Deque,
    Dict,
    Generator,
    Generic,
    Iterable,
    Tuple,
    TypeVar,
)

StateT = TypeVar("StateT")

log = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class Transition(Generic[StateT]):
    """The output of a reducer.

    Reducers stay pure by packaging the next state together with any side
    effects an outside actor should react to. The store never inspects
    `side_effects`; it forwards the whole transition to subscribers.

    Props:
        to_state: State the store should adopt.
        side_effects: Ordered, possibly empty, side effect markers.
    """

    to_state: StateT
    side_effects: Tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "side_effects", tuple(self.side_effects))


Reducer = Callable[[Any, StateT], Transition[StateT]]
Subscriber = Callable[[Transition[StateT]], None]
Dispatch = Callable[[Any], None]


class SubscriptionStrategy(str, enum.Enum):
    """Message strategy to use for a transition stream.

    Props:
        LATEST: Receive the latest transition only. Guarantees that the
            store's state will match the transition's state, but may miss
            transitions.
        EVERY: Receive every transition. Guarantees that you will be notified
            of every transition, but the store's state may have transitioned
            again by the time the notification is handled.
    """

    LATEST = "latest"
    EVERY = "every"


class Subscription(Generic[StateT]):
    """A handle to a registered subscriber.

    Each call to `Store.subscribe` returns a distinct handle, so the same
    callback subscribed twice is two independent registrations.
    """

    def __init__(self, store: Store[StateT], on_transition: Subscriber[StateT]) -> None:
        self._store = store
        self._on_transition = on_transition

    @property
    def active(self) -> bool:
        """Whether this subscription still receives transitions."""
        return self in self._store._subscriptions

    def unsubscribe(self) -> None:
        """Stop receiving transitions. Safe to call more than once."""
        if self._store._subscriptions.pop(self, False):
            log.debug("Removed subscriber %r", self._on_transition)

    def __enter__(self) -> Subscription[StateT]:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.unsubscribe()


class TransitionStream(AsyncIterator[Transition[StateT]]):
    """An asynchronous iterator of transitions."""

    def __init__(self, strategy: SubscriptionStrategy) -> None:
        self._strategy = strategy
        self._notification_event = Event()
        self._queue: Deque[Transition[StateT]] = collections.deque(
            maxlen=1 if strategy == SubscriptionStrategy.LATEST else None
        )

    def _notify(self, transition: Transition[StateT]) -> None:
        self._queue.append(transition)
        self._notification_event.set()

    async def __anext__(self) -> Transition[StateT]:
        while len(self._queue) == 0:
            await self._notification_event.wait()
            self._notification_event = Event()

        return self._queue.popleft()

    def __aiter__(self) -> AsyncIterator[Transition[StateT]]:
        return self


class Store(Generic[StateT]):
    """The single source of truth for a piece of application state.

    Args:
        initial_state: State the store starts with.
        reducers: Reducers to run, in order, for every dispatched action.
            The sequence is copied and cannot be changed afterwards.
    """

    state: StateT

    def __init__(
        self,
        initial_state: StateT,
        reducers: Iterable[Reducer[StateT]] = (),
    ) -> None:
        self._set_state(initial_state)
        self._initial_state = initial_state
        self._reducers: Tuple[Reducer[StateT], ...] = tuple(reducers)
        self._subscriptions: Dict[Subscription[StateT], bool] = {}
        log.debug("Created store with %d reducers", len(self._reducers))

    @property
    def initial_state(self) -> StateT:
        """The state the store was created with."""
        return self._initial_state

    @property
    def reducers(self) -> Tuple[Reducer[StateT], ...]:
        """The store's reducers, in the order they run."""
        return self._reducers

    def dispatch(self, action: Any) -> None:
        """Dispatch an action into the store.

        Each reducer runs in order against the state left by the one before
        it. After each reducer the new state is committed and every subscriber
        registered at that moment is notified, so a store with three reducers
        produces three notification rounds per dispatch.

        A reducer that raises aborts the dispatch. State committed by earlier
        reducers is kept.

        Subscribers and reducers may dispatch again; the nested dispatch runs
        to completion before the outer notification round continues.
        """
        log.debug("Dispatching %r to %d reducers", action, len(self._reducers))

        for reduce in self._reducers:
            transition = reduce(action, self.state)
            self._set_state(transition.to_state)
            self._notify(transition)

    def subscribe(self, on_transition: Subscriber[StateT]) -> Subscription[StateT]:
        """Register a callback to receive every subsequent transition.

        The callback is called once immediately with the current state and no
        side effects. The callback is registered before that call, so if it
        raises, the error propagates and the callback stays subscribed with no
        handle to remove it.

        Args:
            on_transition: Callback to invoke with each transition.

        Returns:
            A subscription handle. Call `unsubscribe` on it, or use it as a
            context manager, to stop receiving transitions.
        """
        sub = Subscription(self, on_transition)
        self._subscriptions[sub] = True
        log.debug("Added subscriber %r", on_transition)
        on_transition(Transition(self.state))
        return sub

    @contextlib.contextmanager
    def stream(
        self,
        strategy: SubscriptionStrategy = SubscriptionStrategy.EVERY,
    ) -> Generator[TransitionStream[StateT], None, None]:
        """Create an asynchronous stream of transitions.

        The first item in the stream is the store's current state.

        Args:
            strategy: whether to receive every transition (default) or only
                the latest one.

        Returns:
            A context manager wrapping the stream.
        """
        events: TransitionStream[StateT] = TransitionStream(strategy=strategy)

        with self.subscribe(events._notify):
            yield events

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "state":
            raise TypeError("Cannot overwrite state attribute.")
        super().__setattr__(name, value)

    def _set_state(self, value: StateT) -> None:
        super().__setattr__("state", value)

    def _notify(self, transition: Transition[StateT]) -> None:
        # subscriptions added during this round wait for the next one
        for sub in list(self._subscriptions.keys()):
            if sub in self._subscriptions:
                sub._on_transition(transition)

