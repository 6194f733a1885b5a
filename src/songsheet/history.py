"""Element history: a cursor over parsed song elements with lookback queries.

Renderers iterate an :class:`ElementHistory` instead of the bare element
sequence.  At every step they can ask what came before the current element::

    history = ElementHistory(parse(song))
    for element in history:
        if element.kind is SongElementKind.LYRICS:
            result = (
                history.query()
                .without(SongElementKind.NEW_LINE)
                .last_seen(is_(SongElementKind.CHORDS))
                .end()
            )
            if result.is_matched():
                chords = result.matched_elements[0].content

Query semantics
---------------
* ``query()`` looks at the elements handed out *before* the current one,
  ``query_including_current()`` also looks at the current one.
* ``without(*kinds)`` drops these kinds from consideration (aggregated).
* ``last_seen(*matchers)`` lists matchers from oldest to newest.  They are
  right-aligned: the newest remaining element must satisfy the last matcher,
  the one before it the second-to-last, and so on.  Calling ``last_seen``
  again adds an alternative; the first alternative that matches wins.
* ``end()`` runs the query.  Queries never change the history.
"""

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field, replace

from .models import SongElement, SongElementKind

Matcher = Callable[[SongElement | None], bool]


# ---------------------------------------------------------------------------
# Matchers
# ---------------------------------------------------------------------------


def is_(kind: SongElementKind) -> Matcher:
    """Match elements of the given kind."""
    if kind is None:
        raise ValueError("the given SongElementKind cannot be None")
    return lambda element: element is not None and element.kind is kind


def is_not(kind: SongElementKind) -> Matcher:
    """Match elements of any other than the given kind."""
    if kind is None:
        raise ValueError("the given SongElementKind cannot be None")
    return lambda element: element is not None and element.kind is not kind


def is_one_of(*kinds: SongElementKind) -> Matcher:
    """Match elements of one of the given kinds."""
    if not kinds or any(k is None for k in kinds):
        raise ValueError("the given SongElementKinds cannot be empty")
    allowed = frozenset(kinds)
    return lambda element: element is not None and element.kind in allowed


# ---------------------------------------------------------------------------
# Query result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class QueryResult:
    matched: bool
    matched_elements: tuple[SongElement, ...] = ()

    def is_matched(self) -> bool:
        return self.matched

    def __bool__(self) -> bool:
        return self.matched


NO_MATCH = QueryResult(matched=False)


# ---------------------------------------------------------------------------
# Query
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HistoryQuery:
    """An immutable lookback query bound to the elements seen so far."""

    seen: tuple[SongElement, ...]
    include_current: bool = False
    excluded: frozenset[SongElementKind] = frozenset()
    alternatives: tuple[tuple[Matcher, ...], ...] = field(default=())

    def without(self, *kinds: SongElementKind) -> "HistoryQuery":
        """Ignore elements of these kinds (aggregated when called multiple times)."""
        return replace(self, excluded=self.excluded | frozenset(kinds))

    def last_seen(self, *matchers: Matcher) -> "HistoryQuery":
        """Were these kinds seen last, oldest first? (OR-ed when called multiple times)"""
        return replace(self, alternatives=self.alternatives + (tuple(matchers),))

    def end(self) -> QueryResult:
        """Execute the query."""
        if not self.seen:
            return NO_MATCH
        scan_end = len(self.seen) if self.include_current else len(self.seen) - 1
        for matchers in self.alternatives:
            collected = self._collect_backward(scan_end, len(matchers))
            if collected is None:
                continue
            if all(matcher(element) for matcher, element in zip(matchers, collected)):
                return QueryResult(matched=True, matched_elements=collected)
        return NO_MATCH

    def _collect_backward(self, scan_end: int, count: int) -> tuple[SongElement, ...] | None:
        """Return the *count* newest non-excluded elements before *scan_end*, oldest first.

        Returns None if the history start is reached before enough were found.
        """
        collected: list[SongElement] = []
        index = scan_end - 1
        while len(collected) < count:
            if index < 0:
                return None
            element = self.seen[index]
            if element.kind not in self.excluded:
                collected.append(element)
            index -= 1
        collected.reverse()
        return tuple(collected)


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


class ElementHistory:
    """Iterator over song elements which remembers what it handed out.

    The cursor only moves forward.  Not meant to be shared between threads;
    create one history per render pass.
    """

    def __init__(self, elements: Iterable[SongElement]):
        self._elements: tuple[SongElement, ...] = tuple(elements)
        self._seen = 0

    def __iter__(self) -> "ElementHistory":
        return self

    def __next__(self) -> SongElement:
        if self._seen >= len(self._elements):
            raise StopIteration
        self._seen += 1
        return self._elements[self._seen - 1]

    def __len__(self) -> int:
        return len(self._elements)

    @property
    def elements(self) -> Sequence[SongElement]:
        return self._elements

    @property
    def position(self) -> int:
        """Number of elements handed out so far."""
        return self._seen

    @property
    def current(self) -> SongElement | None:
        return self.back(0)

    @property
    def previous(self) -> SongElement | None:
        return self.back(1)

    def back(self, steps: int) -> SongElement | None:
        """Return the element handed out *steps* before the current one, or None."""
        index = self._seen - 1 - steps
        if steps < 0 or index < 0:
            return None
        return self._elements[index]

    def query(self) -> HistoryQuery:
        """Start a query on the elements before the current one."""
        return HistoryQuery(seen=self._elements[: self._seen])

    def query_including_current(self) -> HistoryQuery:
        """Start a query on the elements up to and including the current one."""
        return HistoryQuery(seen=self._elements[: self._seen], include_current=True)
