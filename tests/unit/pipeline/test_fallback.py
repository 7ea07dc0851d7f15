"""Tests for the ordered fallback combinator."""

import pytest

from linkcard.pipeline.fallback import (
    Candidate,
    CandidateFailure,
    FallbackExhausted,
    RejectedResult,
    first_success,
)


def make_candidate(name, calls, result=None, error=None):
    async def attempt():
        calls.append(name)
        if error is not None:
            raise error
        return result

    return Candidate(name, attempt)


class DescribeFirstSuccess:
    """Tests for first_success."""

    @pytest.mark.asyncio
    async def it_returns_first_successful_result(self):
        calls = []
        candidates = [
            make_candidate("a", calls, result="A"),
            make_candidate("b", calls, result="B"),
        ]

        assert await first_success(candidates) == "A"
        assert calls == ["a"]

    @pytest.mark.asyncio
    async def it_falls_through_failures_in_order(self):
        calls = []
        candidates = [
            make_candidate("a", calls, error=ValueError("bad a")),
            make_candidate("b", calls, error=RuntimeError("bad b")),
            make_candidate("c", calls, result="C"),
        ]

        assert await first_success(candidates) == "C"
        assert calls == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def it_reports_each_failure_before_the_next_attempt(self):
        calls = []
        seen: list[tuple[str, list[str]]] = []

        def on_failure(failure: CandidateFailure) -> None:
            seen.append((failure.name, list(calls)))

        candidates = [
            make_candidate("a", calls, error=ValueError("bad")),
            make_candidate("b", calls, result="B"),
        ]

        await first_success(candidates, on_failure=on_failure)

        assert seen == [("a", ["a"])]

    @pytest.mark.asyncio
    async def it_raises_when_every_candidate_fails(self):
        calls = []
        last = RuntimeError("bad b")
        candidates = [
            make_candidate("a", calls, error=ValueError("bad a")),
            make_candidate("b", calls, error=last),
        ]

        with pytest.raises(FallbackExhausted) as exc_info:
            await first_success(candidates)

        assert [f.name for f in exc_info.value.failures] == ["a", "b"]
        assert exc_info.value.last_error is last
        assert "a (ValueError: bad a)" in str(exc_info.value)

    @pytest.mark.asyncio
    async def it_raises_for_empty_chain(self):
        with pytest.raises(FallbackExhausted) as exc_info:
            await first_success([])

        assert exc_info.value.last_error is None
        assert str(exc_info.value) == "No candidates to try"


class DescribeAcceptCheck:
    """Tests for first_success with an accept predicate."""

    @pytest.mark.asyncio
    async def it_skips_results_that_are_not_accepted(self):
        calls = []
        rejected: list[CandidateFailure] = []
        candidates = [
            make_candidate("empty", calls, result=""),
            make_candidate("full", calls, result="data:image/png;base64,AAAA"),
        ]

        result = await first_success(candidates, accept=bool, on_failure=rejected.append)

        assert result == "data:image/png;base64,AAAA"
        assert calls == ["empty", "full"]
        assert [f.name for f in rejected] == ["empty"]
        assert isinstance(rejected[0].error, RejectedResult)

    @pytest.mark.asyncio
    async def it_raises_when_no_result_is_accepted(self):
        calls = []
        candidates = [make_candidate("a", calls, result=1), make_candidate("b", calls, result=2)]

        with pytest.raises(FallbackExhausted) as exc_info:
            await first_success(candidates, accept=lambda value: value > 5)

        assert calls == ["a", "b"]
        assert isinstance(exc_info.value.last_error, RejectedResult)
        assert str(exc_info.value.last_error) == "Result of b was not accepted"
