"""
DomainSet: the deduplicated hostname collection shared by every backend.

All sources insert into a single set during the fetch phase. Once every
backend has been visited the set is finalized into a sorted tuple, which is
what makes the encoded artifact byte-identical for identical input.
"""

from typing import Iterable, Iterator, Optional, Set, Tuple


class DomainSetFrozenError(RuntimeError):
    """Raised when inserting into a DomainSet after finalize()."""
    pass


class DomainSet:
    """
    Duplicate-free, insertion-order-irrelevant collection of hostnames.

    Example:
        >>> domains = DomainSet()
        >>> domains.insert("b.example")
        >>> domains.insert("a.example")
        >>> domains.insert("b.example")
        >>> domains.finalize()
        ('a.example', 'b.example')
    """

    def __init__(self, domains: Iterable[str] = ()):
        self._domains: Set[str] = set()
        self._finalized: Optional[Tuple[str, ...]] = None
        self.update(domains)

    def insert(self, domain: str) -> None:
        """Add ``domain``; a no-op if it is already present."""
        if self._finalized is not None:
            raise DomainSetFrozenError(f"cannot insert '{domain}' into a finalized DomainSet")
        self._domains.add(domain)

    def update(self, domains: Iterable[str]) -> None:
        for domain in domains:
            self.insert(domain)

    def finalize(self) -> Tuple[str, ...]:
        """
        Freeze the set and return its members in strictly ascending order.

        Calling it again returns the same tuple.
        """
        if self._finalized is None:
            self._finalized = tuple(sorted(self._domains))
        return self._finalized

    @property
    def is_finalized(self) -> bool:
        return self._finalized is not None

    def __contains__(self, domain: object) -> bool:
        return domain in self._domains

    def __len__(self) -> int:
        return len(self._domains)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._domains))

    def __repr__(self) -> str:
        state = "finalized" if self.is_finalized else "open"
        return f"DomainSet({len(self)} domains, {state})"
