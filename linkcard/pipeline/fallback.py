"""Ordered fallback chains: try candidates in order, first success wins."""

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Candidate(Generic[T]):
    """One named strategy in a fallback chain."""

    name: str
    attempt: Callable[[], Awaitable[T]]


@dataclass
class CandidateFailure:
    """Why a candidate was rejected."""

    name: str
    error: Exception


class RejectedResult(Exception):
    """A candidate produced a value that the caller's ``accept`` check refused."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Result of {name} was not accepted")
        self.name = name


class FallbackExhausted(Exception):
    """Raised when every candidate in a chain failed."""

    def __init__(self, failures: list[CandidateFailure] | None = None) -> None:
        self.failures = failures or []
        super().__init__(str(self))

    def __str__(self) -> str:
        if not self.failures:
            return "No candidates to try"
        tried = ", ".join(f"{f.name} ({type(f.error).__name__}: {f.error})" for f in self.failures)
        return f"All candidates failed: {tried}"

    @property
    def last_error(self) -> Exception | None:
        return self.failures[-1].error if self.failures else None


async def first_success(
    candidates: Sequence[Candidate[T]],
    accept: Callable[[T], bool] | None = None,
    on_failure: Callable[[CandidateFailure], None] | None = None,
) -> T:
    """Run candidates sequentially and return the first result produced without error.

    Later candidates are never started once one succeeds. A candidate is rejected
    when it raises or when ``accept`` returns False for its result.

    Args:
        candidates: Strategies in priority order
        accept: Optional check on each result; a refused result counts as a failure
        on_failure: Called after each rejected candidate, before the next is tried

    Returns:
        The winning candidate's result

    Raises:
        FallbackExhausted: If every candidate failed
    """
    failures: list[CandidateFailure] = []

    for candidate in candidates:
        try:
            result = await candidate.attempt()
            if accept is not None and not accept(result):
                raise RejectedResult(candidate.name)
        except Exception as e:
            failure = CandidateFailure(name=candidate.name, error=e)
            failures.append(failure)
            logger.debug(f"Candidate {candidate.name} failed: {e}")
            if on_failure:
                on_failure(failure)
            continue

        logger.debug(f"Candidate {candidate.name} succeeded")
        return result

    raise FallbackExhausted(failures)
