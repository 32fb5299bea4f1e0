"""Unistate - a single state cell driven by ordered reducers."""
from .store import (
    Dispatch,
    Reducer,
    Store,
    Subscriber,
    Subscription,
    SubscriptionStrategy,
    Transition,
    TransitionStream,
)

__all__ = [
    "Dispatch",
    "Reducer",
    "Store",
    "Subscriber",
    "Subscription",
    "SubscriptionStrategy",
    "Transition",
    "TransitionStream",
]
