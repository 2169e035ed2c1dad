"""Functional-option plumbing shared by the view-model builders.

An *option* is a callable that mutates a draft in place.  Builders create a
zero-valued draft, hand it to every option in call order, and only then run
any post-processing of their own.
"""

from typing import Callable, Iterable, TypeVar

T = TypeVar("T")

Option = Callable[[T], None]


def apply_options(target: T, options: Iterable[Callable[[T], None]]) -> T:
    """Apply *options* to *target* in order and return the mutated *target*."""
    for option in options:
        option(target)
    return target


def new_view_model(factory: Callable[[], T], *options: Callable[[T], None]) -> T:
    """Create a fresh instance with *factory* and apply *options* to it.

    Example::

        settings = new_view_model(dict, lambda d: d.update(debug=True))
    """
    return apply_options(factory(), options)
