"""
Documentation search for knowledge and hybrid questions.

Passages are ranked by embedding similarity when a model client is
available, and by query-term coverage otherwise.
"""

import asyncio
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from solana_router.clients.llm_client import ModelClient
from solana_router.services.base_service import BaseService
from solana_router.services.knowledge_base import DOCUMENTS

_WORD_PATTERN = re.compile(r"[a-z0-9]+")

STOPWORDS = frozenset({
    "a", "an", "and", "are", "as", "at", "be", "by", "can", "do", "does", "for", "from", "how",
    "i", "in", "is", "it", "me", "my", "of", "on", "or", "the", "this", "to", "what", "when",
    "where", "which", "who", "why", "with", "you", "your", "explain", "tell", "about",
})


def tokenize(text: str) -> List[str]:
    """Lowercase content words; hyphenated terms split into their parts."""
    return [word for word in _WORD_PATTERN.findall(text.lower()) if word not in STOPWORDS]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


@dataclass(frozen=True)
class KnowledgePassage:
    """A documentation passage matched to a query."""

    content: str
    source_url: Optional[str]
    source_title: Optional[str]
    similarity: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "source_url": self.source_url,
            "source_title": self.source_title,
            "similarity": self.similarity,
        }


class KnowledgeService(BaseService):
    """In-memory documentation store with embedding or lexical ranking."""

    def __init__(
        self,
        model_client: Optional[ModelClient] = None,
        documents: Sequence[Dict[str, str]] = DOCUMENTS,
        logger: Optional[logging.Logger] = None
    ):
        super().__init__(logger=logger)
        self.model_client = model_client
        self.documents = tuple(documents)
        self._vectors: Optional[List[List[float]]] = None
        self._index_lock = asyncio.Lock()

    def _passage(self, document: Dict[str, str], similarity: float) -> KnowledgePassage:
        return KnowledgePassage(
            content=document["content"],
            source_url=document.get("url"),
            source_title=document.get("title"),
            similarity=round(max(0.0, min(1.0, similarity)), 4),
        )

    @staticmethod
    def _rank(scored: List[KnowledgePassage], top_k: int, threshold: float) -> List[KnowledgePassage]:
        matches = [passage for passage in scored if passage.similarity >= threshold]
        matches.sort(key=lambda passage: passage.similarity, reverse=True)
        return matches[:top_k]

    def lexical_search(self, query: str, top_k: int = 5, threshold: float = 0.2) -> List[KnowledgePassage]:
        """Rank passages by the share of query terms they contain."""
        terms = set(tokenize(query))
        if not terms:
            return []
        scored = []
        for document in self.documents:
            words = set(tokenize(f"{document.get('title', '')} {document['content']}"))
            scored.append(self._passage(document, len(terms & words) / len(terms)))
        return self._rank(scored, top_k, threshold)

    async def _document_vectors(self) -> List[List[float]]:
        async with self._index_lock:
            if self._vectors is None:
                texts = [f"{d.get('title', '')}\n{d['content']}" for d in self.documents]
                self._vectors = await self.model_client.embed(texts)
        return self._vectors

    async def search(self, query: str, top_k: int = 5, threshold: float = 0.2) -> List[KnowledgePassage]:
        """
        Find the passages most relevant to a query.

        Args:
            query: Question text
            top_k: Maximum number of passages
            threshold: Minimum similarity

        Returns:
            Passages ordered by decreasing similarity

        Raises:
            UpstreamServiceError: If the embeddings service fails
        """
        if self.model_client is None:
            return self.lexical_search(query, top_k, threshold)

        vectors = await self._document_vectors()
        query_vector = (await self.model_client.embed([query]))[0]
        scored = [
            self._passage(document, cosine_similarity(query_vector, vector))
            for document, vector in zip(self.documents, vectors)
        ]
        return self._rank(scored, top_k, threshold)
