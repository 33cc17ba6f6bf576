"""
Duplicate issue detection.

Finds existing issues that look like the new one:
1. Exact title match on normalized text (always reported, score 1.0)
2. Semantic match by cosine similarity of embeddings

Embeddings of existing issues are cached per issue id and content hash, so
repeated searches over the same backlog only embed what changed.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple, Union

from issue_intel.duplicates.cache import EmbeddingCache, InMemoryEmbeddingCache
from issue_intel.duplicates.models import (
    DuplicateCandidate,
    DuplicateSearchResult,
    DuplicateVerdict,
    EmbeddingCacheEntry,
    IssueForDuplication,
    MatchType,
    NewIssueText,
)
from issue_intel.duplicates.similarity import (
    build_search_text,
    cosine_similarity,
    hash_content,
    normalize_text,
)
from issue_intel.errors import ProviderError
from issue_intel.gateway.base import ModelGateway
from issue_intel.gateway.models import EmbeddingRequest

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.75
DEFAULT_MAX_CANDIDATES = 5
EMBED_BATCH_SIZE = 50  # Provider batching limit
EXPLAIN_TOP_N = 3

EXPLANATION_SYSTEM_PROMPT = """You are helping identify duplicate or related issues.

Given a new issue and a potential match, explain in 1-2 sentences why they might be duplicates or related.

Focus on:
- Similar problem being described
- Overlapping scope or requirements
- Same underlying issue

Be concise and specific."""

IssueText = Union[NewIssueText, IssueForDuplication]


def _percent(score: float) -> str:
    return f"{score * 100:.0f}%"


class DuplicateDetector:
    """Semantic duplicate search over a caller-supplied issue set."""

    def __init__(
        self,
        gateway: ModelGateway,
        cache: Optional[EmbeddingCache] = None,
        dimensions: int = 1536,
        embedding_model: Optional[str] = None,
        explanation_model: Optional[str] = None,
    ):
        self.gateway = gateway
        self.cache = cache if cache is not None else InMemoryEmbeddingCache()
        self.dimensions = dimensions
        self.embedding_model = embedding_model
        self.explanation_model = explanation_model

    async def find_duplicates(
        self,
        new_issue: IssueText,
        existing_issues: Sequence[IssueForDuplication],
        threshold: float = DEFAULT_THRESHOLD,
        max_candidates: int = DEFAULT_MAX_CANDIDATES,
        include_explanation: bool = False,
    ) -> DuplicateSearchResult:
        """
        Find likely duplicates of `new_issue` among `existing_issues`.

        Args:
            new_issue: Title/description of the issue being checked
            existing_issues: Issues to search
            threshold: Minimum cosine similarity for semantic matches
            max_candidates: Maximum candidates returned
            include_explanation: Ask the model why the top 3 match

        Returns:
            DuplicateSearchResult sorted by similarity, highest first
        """
        start = time.perf_counter()

        if not existing_issues:
            return DuplicateSearchResult(
                candidates=[],
                searched_count=0,
                processing_time_ms=(time.perf_counter() - start) * 1000,
            )

        exact_matches = self._find_exact_title_matches(new_issue, existing_issues)
        exact_ids = {issue.id for issue in exact_matches}

        new_embedding = await self._embed_one(build_search_text(new_issue.title, new_issue.description))
        existing_with_embeddings = await self._embeddings_for_issues(existing_issues)

        candidates: List[DuplicateCandidate] = [
            DuplicateCandidate(
                issue=issue,
                similarity_score=1.0,
                match_type=MatchType.EXACT_TITLE,
                explanation="Exact title match",
            )
            for issue in exact_matches
        ]

        for issue, embedding in existing_with_embeddings:
            if issue.id in exact_ids:
                continue

            similarity = cosine_similarity(new_embedding, embedding)
            if similarity >= threshold:
                candidates.append(DuplicateCandidate(
                    issue=issue,
                    similarity_score=similarity,
                    match_type=MatchType.SIMILAR_CONTENT if similarity > 0.9 else MatchType.RELATED_TOPIC,
                ))

        candidates.sort(key=lambda c: c.similarity_score, reverse=True)
        top_candidates = candidates[:max_candidates]

        if include_explanation and top_candidates:
            await self._add_explanations(new_issue, top_candidates)

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"Duplicate search over {len(existing_issues)} issues found "
            f"{len(top_candidates)} candidates in {elapsed_ms:.0f}ms"
        )

        return DuplicateSearchResult(
            candidates=top_candidates,
            searched_count=len(existing_issues),
            processing_time_ms=elapsed_ms,
        )

    async def is_duplicate(
        self,
        new_issue: IssueText,
        existing_issues: Sequence[IssueForDuplication],
    ) -> DuplicateVerdict:
        """
        Yes/no duplicate check.

        Searches at threshold 0.85 for the single best match; a duplicate
        needs a score above 0.9. With no match at all the answer is "not a
        duplicate" at confidence 0.9.
        """
        result = await self.find_duplicates(new_issue, existing_issues, threshold=0.85, max_candidates=1)

        if not result.candidates:
            return DuplicateVerdict(is_duplicate=False, confidence=0.9)

        top_match = result.candidates[0]
        return DuplicateVerdict(
            is_duplicate=top_match.similarity_score > 0.9,
            confidence=top_match.similarity_score,
            most_similar=top_match,
        )

    async def find_similar(
        self,
        issue: IssueForDuplication,
        all_issues: Sequence[IssueForDuplication],
        limit: int = 5,
    ) -> List[DuplicateCandidate]:
        """Related issues for an existing issue (excluding itself)."""
        others = [other for other in all_issues if other.id != issue.id]
        result = await self.find_duplicates(
            NewIssueText(title=issue.title, description=issue.description),
            others,
            threshold=0.5,
            max_candidates=limit,
        )
        return result.candidates

    async def generate_and_cache_embedding(self, issue: IssueForDuplication) -> List[float]:
        """Embedding for `issue`, from cache when its text is unchanged."""
        text = build_search_text(issue.title, issue.description)
        content_hash = hash_content(text)

        cached = await asyncio.to_thread(self.cache.get, issue.id)
        if cached and cached.content_hash == content_hash:
            return cached.embedding

        embedding = await self._embed_one(text)
        await asyncio.to_thread(self._store_many, [(issue.id, embedding, content_hash)])
        return embedding

    async def invalidate_cache(self, issue_id: str) -> None:
        """Drop the cached embedding of one issue (call on title/description change)."""
        await asyncio.to_thread(self.cache.invalidate, issue_id)

    async def clear_cache(self) -> None:
        await asyncio.to_thread(self.cache.clear)

    # Internals

    def _find_exact_title_matches(
        self,
        new_issue: IssueText,
        existing_issues: Sequence[IssueForDuplication],
    ) -> List[IssueForDuplication]:
        normalized_title = normalize_text(new_issue.title)
        return [issue for issue in existing_issues if normalize_text(issue.title) == normalized_title]

    def _store_many(self, items: List[Tuple[str, List[float], str]]) -> None:
        """Blocking; call through asyncio.to_thread."""
        created_at = datetime.now(timezone.utc)
        for issue_id, embedding, content_hash in items:
            self.cache.set(issue_id, EmbeddingCacheEntry(
                embedding=embedding,
                content_hash=content_hash,
                created_at=created_at,
            ))

    async def _embed(self, texts: List[str]) -> List[List[float]]:
        response = await self.gateway.embed(EmbeddingRequest(
            input=texts,
            dimensions=self.dimensions,
            model=self.embedding_model,
        ))
        if len(response.embeddings) != len(texts):
            raise ProviderError(f"Expected {len(texts)} embeddings, got {len(response.embeddings)}")
        return response.embeddings

    async def _embed_one(self, text: str) -> List[float]:
        embeddings = await self._embed([text])
        return embeddings[0]

    async def _embeddings_for_issues(
        self,
        issues: Sequence[IssueForDuplication],
    ) -> List[Tuple[IssueForDuplication, List[float]]]:
        """Cache-first embeddings; misses are embedded in batches of 50."""
        results: List[Tuple[IssueForDuplication, List[float]]] = []
        misses: List[Tuple[IssueForDuplication, str, str]] = []

        cached_entries = await asyncio.to_thread(self.cache.get_many, [issue.id for issue in issues])

        for issue in issues:
            text = build_search_text(issue.title, issue.description)
            content_hash = hash_content(text)

            cached = cached_entries.get(issue.id)
            if cached and cached.content_hash == content_hash:
                results.append((issue, cached.embedding))
            else:
                misses.append((issue, text, content_hash))

        if misses:
            logger.debug(f"Embedding cache: {len(results)} hits, {len(misses)} misses")

        for offset in range(0, len(misses), EMBED_BATCH_SIZE):
            batch = misses[offset:offset + EMBED_BATCH_SIZE]
            embeddings = await self._embed([text for _, text, _ in batch])

            await asyncio.to_thread(self._store_many, [
                (issue.id, embedding, content_hash)
                for (issue, _, content_hash), embedding in zip(batch, embeddings)
            ])
            results.extend((issue, embedding) for (issue, _, _), embedding in zip(batch, embeddings))

        return results

    async def _add_explanations(self, new_issue: IssueText, candidates: List[DuplicateCandidate]) -> None:
        """Explain the top candidates in place; failures fall back to the score."""
        for candidate in candidates[:EXPLAIN_TOP_N]:
            if candidate.explanation:
                continue

            prompt = f'New issue: "{new_issue.title}"\n'
            if new_issue.description:
                prompt += f"New description: {new_issue.description[:200]}...\n"
            prompt += f'\nPotential match: "{candidate.issue.title}"\n'
            if candidate.issue.description:
                prompt += f"Match description: {candidate.issue.description[:200]}...\n"
            prompt += (
                f"\nSimilarity score: {_percent(candidate.similarity_score)}\n\n"
                "Why might these be duplicates or related?"
            )

            try:
                explanation = await self.gateway.quick_complete(
                    prompt,
                    system_prompt=EXPLANATION_SYSTEM_PROMPT,
                    model=self.explanation_model,
                    temperature=0.3,
                    max_tokens=100,
                )
                candidate.explanation = explanation.strip()
            except Exception as e:
                logger.warning(f"Explanation failed for issue {candidate.issue.id}: {e}")
                candidate.explanation = f"{_percent(candidate.similarity_score)} similar based on content analysis"
