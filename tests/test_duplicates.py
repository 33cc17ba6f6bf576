from __future__ import annotations

import asyncio
import threading

from conftest import FakeGateway

from issue_intel.duplicates.cache import InMemoryEmbeddingCache
from issue_intel.duplicates.detector import EMBED_BATCH_SIZE, DuplicateDetector
from issue_intel.duplicates.models import IssueForDuplication, MatchType, NewIssueText
from issue_intel.errors import ProviderError

LOGIN = [1.0, 0.0, 0.0]
LOGIN_NEAR = [0.95, 0.05, 0.0]  # cosine ~0.9986
LOGIN_RELATED = [0.8, 0.6, 0.0]  # cosine 0.8
BILLING = [0.0, 1.0, 0.0]


def _issue(issue_id: str, title: str, description=None) -> IssueForDuplication:
    return IssueForDuplication(id=issue_id, title=title, description=description)


def _gateway(**kwargs) -> FakeGateway:
    return FakeGateway(
        vectors={
            "Login fails on Safari": LOGIN,
            "Cannot sign in with Safari": LOGIN_NEAR,
            "Auth session expires too early": LOGIN_RELATED,
            "Invoice totals are wrong": BILLING,
        },
        **kwargs,
    )


def test_exact_title_match_is_first_with_score_one() -> None:
    detector = DuplicateDetector(_gateway())
    existing = [
        _issue("Y", "Cannot sign in with Safari"),
        _issue("X", "Login fails on Safari"),
    ]

    result = asyncio.run(detector.find_duplicates(
        NewIssueText(title="Login fails on Safari", description="Clicking sign in does nothing"),
        existing,
    ))

    first = result.candidates[0]
    assert first.issue.id == "X"
    assert first.similarity_score == 1.0
    assert first.match_type == MatchType.EXACT_TITLE
    assert first.explanation == "Exact title match"
    assert [c.issue.id for c in result.candidates].count("X") == 1


def test_exact_title_match_ignores_threshold_and_formatting() -> None:
    detector = DuplicateDetector(_gateway())
    existing = [_issue("X", "  login FAILS on safari! ")]

    result = asyncio.run(detector.find_duplicates(
        NewIssueText(title="Invoice totals are wrong"),
        [_issue("A", "Invoice totals are wrong")] + existing,
        threshold=0.999,
    ))
    assert [c.issue.id for c in result.candidates] == ["A"]

    result = asyncio.run(detector.find_duplicates(
        NewIssueText(title="Login fails on Safari"),
        existing,
        threshold=0.999,
    ))
    assert [(c.issue.id, c.match_type) for c in result.candidates] == [("X", MatchType.EXACT_TITLE)]


def test_semantic_matches_are_classified_and_sorted() -> None:
    detector = DuplicateDetector(_gateway())
    existing = [
        _issue("billing", "Invoice totals are wrong"),
        _issue("related", "Auth session expires too early"),
        _issue("near", "Cannot sign in with Safari"),
    ]

    result = asyncio.run(detector.find_duplicates(NewIssueText(title="Login fails on Safari"), existing))

    assert [c.issue.id for c in result.candidates] == ["near", "related"]
    assert result.candidates[0].match_type == MatchType.SIMILAR_CONTENT
    assert result.candidates[1].match_type == MatchType.RELATED_TOPIC
    assert result.searched_count == 3
    assert result.processing_time_ms >= 0


def test_max_candidates_truncates() -> None:
    detector = DuplicateDetector(_gateway())
    existing = [_issue(str(i), "Cannot sign in with Safari") for i in range(10)]

    result = asyncio.run(detector.find_duplicates(NewIssueText(title="Login fails on Safari"), existing, max_candidates=2))

    assert len(result.candidates) == 2


def test_empty_input_makes_no_gateway_calls() -> None:
    gateway = _gateway()
    detector = DuplicateDetector(gateway)

    result = asyncio.run(detector.find_duplicates(NewIssueText(title="Anything"), []))

    assert result.candidates == []
    assert result.searched_count == 0
    assert gateway.embed_calls == []


def test_cache_hit_avoids_reembedding() -> None:
    gateway = _gateway()
    detector = DuplicateDetector(gateway)
    existing = [_issue("near", "Cannot sign in with Safari"), _issue("billing", "Invoice totals are wrong")]

    asyncio.run(detector.find_duplicates(NewIssueText(title="Login fails on Safari"), existing))
    first_pass = len(gateway.embedded_texts)
    asyncio.run(detector.find_duplicates(NewIssueText(title="Login fails on Safari"), existing))

    # Second pass only embeds the new issue itself
    assert first_pass == 3
    assert len(gateway.embedded_texts) == first_pass + 1


def test_content_change_forces_reembedding() -> None:
    gateway = _gateway()
    cache = InMemoryEmbeddingCache()
    detector = DuplicateDetector(gateway, cache=cache)

    asyncio.run(detector.generate_and_cache_embedding(_issue("1", "Invoice totals are wrong")))
    asyncio.run(detector.generate_and_cache_embedding(_issue("1", "Invoice totals are wrong")))
    assert len(gateway.embed_calls) == 1

    asyncio.run(detector.generate_and_cache_embedding(_issue("1", "Invoice totals are wrong", "Rounding error")))
    assert len(gateway.embed_calls) == 2


def test_invalidate_and_clear_cache() -> None:
    cache = InMemoryEmbeddingCache()
    detector = DuplicateDetector(_gateway(), cache=cache)
    asyncio.run(detector.generate_and_cache_embedding(_issue("1", "Invoice totals are wrong")))
    asyncio.run(detector.generate_and_cache_embedding(_issue("2", "Login fails on Safari")))

    asyncio.run(detector.invalidate_cache("1"))
    assert "1" not in cache and "2" in cache

    asyncio.run(detector.clear_cache())
    assert len(cache) == 0


def test_batches_never_exceed_limit() -> None:
    gateway = _gateway()
    detector = DuplicateDetector(gateway)
    existing = [_issue(str(i), f"Issue number {i}") for i in range(EMBED_BATCH_SIZE * 2 + 7)]

    asyncio.run(detector.find_duplicates(NewIssueText(title="Login fails on Safari"), existing))

    assert all(len(call) <= EMBED_BATCH_SIZE for call in gateway.embed_calls)
    assert len(gateway.embedded_texts) == len(existing) + 1


def test_explanations_for_top_candidates() -> None:
    gateway = _gateway(completions=["Both describe Safari sign-in failures.", ProviderError("timeout")])
    detector = DuplicateDetector(gateway)
    existing = [
        _issue("exact", "Login fails on Safari"),
        _issue("near", "Cannot sign in with Safari"),
        _issue("related", "Auth session expires too early"),
    ]

    result = asyncio.run(detector.find_duplicates(
        NewIssueText(title="Login fails on Safari"),
        existing,
        include_explanation=True,
    ))

    explanations = {c.issue.id: c.explanation for c in result.candidates}
    assert explanations["exact"] == "Exact title match"
    assert explanations["near"] == "Both describe Safari sign-in failures."
    assert explanations["related"] == "80% similar based on content analysis"
    assert len(gateway.complete_calls) == 2


def test_is_duplicate_verdicts() -> None:
    detector = DuplicateDetector(_gateway())
    new_issue = NewIssueText(title="Login fails on Safari")

    verdict = asyncio.run(detector.is_duplicate(new_issue, [_issue("near", "Cannot sign in with Safari")]))
    assert verdict.is_duplicate is True
    assert verdict.most_similar.issue.id == "near"

    verdict = asyncio.run(detector.is_duplicate(new_issue, [_issue("related", "Auth session expires too early")]))
    assert verdict.is_duplicate is False
    assert verdict.confidence == 0.9
    assert verdict.most_similar is None


def test_find_similar_excludes_the_issue_itself() -> None:
    detector = DuplicateDetector(_gateway())
    issue = _issue("self", "Login fails on Safari")
    others = [issue, _issue("related", "Auth session expires too early"), _issue("billing", "Invoice totals are wrong")]

    similar = asyncio.run(detector.find_similar(issue, others))

    assert [c.issue.id for c in similar] == ["related"]


class ThreadRecordingCache(InMemoryEmbeddingCache):
    """Remembers which threads touched the cache."""

    def __init__(self):
        super().__init__()
        self.threads = set()

    def get(self, issue_id):
        self.threads.add(threading.get_ident())
        return super().get(issue_id)

    def get_many(self, issue_ids):
        self.threads.add(threading.get_ident())
        return super().get_many(issue_ids)

    def set(self, issue_id, entry):
        self.threads.add(threading.get_ident())
        super().set(issue_id, entry)


def test_cache_io_stays_off_the_event_loop_thread() -> None:
    cache = ThreadRecordingCache()
    detector = DuplicateDetector(_gateway(), cache=cache)
    existing = [_issue("1", "Invoice totals are wrong"), _issue("2", "Cannot sign in with Safari")]

    async def run() -> int:
        await detector.find_duplicates(NewIssueText(title="Login fails on Safari"), existing)
        await detector.generate_and_cache_embedding(_issue("3", "Auth session expires too early"))
        return threading.get_ident()

    loop_thread = asyncio.run(run())

    assert cache.threads
    assert loop_thread not in cache.threads
    assert len(cache) == 3


def test_second_search_reads_backlog_from_cache() -> None:
    gateway = _gateway()
    detector = DuplicateDetector(gateway)
    existing = [_issue("1", "Invoice totals are wrong"), _issue("2", "Cannot sign in with Safari")]

    asyncio.run(detector.find_duplicates(NewIssueText(title="Login fails on Safari"), existing))
    asyncio.run(detector.find_duplicates(NewIssueText(title="Login fails on Safari"), existing))

    assert gateway.embedded_texts.count("Invoice totals are wrong") == 1
