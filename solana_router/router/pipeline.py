"""
Query routing pipeline.

One query runs start to finish: intent classification, knowledge search
and/or live-data tool calls, synthesis, then the turn log update. Queries
in the same session are serialized by the session's lock so turns are
appended in arrival order.
"""

import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

import httpx

from solana_router.clients.failover import EndpointPool, FailoverExecutor
from solana_router.clients.llm_client import ModelClient
from solana_router.clients.market_client import MarketDataClient
from solana_router.clients.rpc_client import SolanaRpcClient
from solana_router.config import AppConfig, RouterConfig
from solana_router.models.api import DocSource, RouterResponse, Sources
from solana_router.models.conversation import Query
from solana_router.models.entities import ClassificationResult, EntityType
from solana_router.models.tools import ToolOk, ToolResult
from solana_router.router.context import ConversationContext, normalize_subject
from solana_router.router.intent import Intent, IntentClassifier
from solana_router.router.planner import plan_tool_calls
from solana_router.router.prompts import (
    GENERAL_RESPONSE,
    INVALID_ADDRESS_NOTE,
    NO_ADDRESS_RESPONSE,
    TOOL_LOOP_PROMPT,
)
from solana_router.router.synthesizer import Provenance, ResponseSynthesizer
from solana_router.services.base_service import BaseService
from solana_router.services.entity_classifier import EntityClassifier
from solana_router.services.knowledge_service import KnowledgePassage, KnowledgeService
from solana_router.services.ledger_tools import LedgerTools
from solana_router.services.security_tools import SecurityTools
from solana_router.session import SessionStore
from solana_router.tools.catalog import build_registry
from solana_router.tools.dispatcher import ToolDispatcher
from solana_router.tools.registry import ToolRegistry
from solana_router.utils.errors import InvalidInputError, UpstreamServiceError

CompletionHook = Callable[[Query, RouterResponse], Awaitable[None]]


class QueryRouter(BaseService):
    """Routes a natural-language question to documentation, live data, or both."""

    def __init__(
        self,
        intent_classifier: IntentClassifier,
        dispatcher: ToolDispatcher,
        registry: ToolRegistry,
        knowledge: KnowledgeService,
        synthesizer: ResponseSynthesizer,
        sessions: SessionStore,
        entity_classifier: Optional[EntityClassifier] = None,
        model_client: Optional[ModelClient] = None,
        config: Optional[RouterConfig] = None,
        hooks: Sequence[CompletionHook] = (),
        logger: Optional[logging.Logger] = None
    ):
        super().__init__(logger=logger)
        self.intent_classifier = intent_classifier
        self.dispatcher = dispatcher
        self.registry = registry
        self.knowledge = knowledge
        self.synthesizer = synthesizer
        self.sessions = sessions
        self.entity_classifier = entity_classifier or EntityClassifier()
        self.model_client = model_client
        self.config = config or RouterConfig()
        self.hooks: List[CompletionHook] = list(hooks)

    def add_hook(self, hook: CompletionHook) -> None:
        """Register a coroutine called with every query and its response."""
        self.hooks.append(hook)

    async def classify_address(self, address: str) -> ClassificationResult:
        return await self.entity_classifier.classify(address)

    async def route(self, query: Query) -> RouterResponse:
        """
        Answer a query.

        Args:
            query: The question plus optional address and session

        Returns:
            The answer with tools used, tool results and provenance

        A malformed explicit address is ignored and noted in the answer.

        Raises:
            InvalidInputError: If the query text is empty
        """
        text = (query.text or "").strip()
        if not text:
            raise InvalidInputError("Query must not be empty", value=query.text)
        explicit_address = None
        notice = None
        if query.address:
            try:
                explicit_address = normalize_subject(query.address)
            except InvalidInputError:
                self.logger.info(f"Ignoring malformed explicit address: {query.address!r}")
                notice = INVALID_ADDRESS_NOTE.format(address=str(query.address).strip())

        context = await self.sessions.get_or_create(query.session_id)
        async with context.lock:
            async with self.log_timing(f"route[{context.session_id}]"):
                response = await self._route_in_context(text, query, explicit_address, context, notice)

        await self._run_hooks(query, response)
        return response

    async def _route_in_context(
        self,
        text: str,
        query: Query,
        explicit_address: Optional[str],
        context: ConversationContext,
        notice: Optional[str] = None
    ) -> RouterResponse:
        if not context.turns:
            for turn in query.history:
                context.add_turn(turn)
        history = context.recent_messages()

        context.add_user_message(text)
        if explicit_address:
            context.set_active_address(explicit_address)
        subject = context.active_address

        scores = await self.intent_classifier.score(text, subject)
        intent = scores.decide()
        self.logger.info(f"Routing query as {intent.value} (subject={subject})")

        if intent == Intent.GENERAL:
            return self._finish(context, intent, GENERAL_RESPONSE, Provenance.NONE, [], [], notice)

        passages: List[KnowledgePassage] = []
        if intent in (Intent.KNOWLEDGE, Intent.HYBRID):
            passages = await self._search_knowledge(text)

        tool_results: List[ToolResult] = []
        loop_text: Optional[str] = None
        if intent in (Intent.LIVE_DATA, Intent.HYBRID):
            subject_type = self._subject_type(subject, scores.entities)
            tool_results, loop_text = await self._gather_live_data(text, context, history, subject_type)

        if not tool_results and not passages:
            if loop_text:
                answer = loop_text
            elif intent == Intent.LIVE_DATA and not subject:
                answer = NO_ADDRESS_RESPONSE
            else:
                answer = self.synthesizer.template_answer([], [])
            return self._finish(context, intent, answer, Provenance.NONE, [], [], notice)

        synthesis = await self.synthesizer.synthesize(text, tool_results, passages, history)
        return self._finish(context, intent, synthesis.text, synthesis.provenance, tool_results, passages, notice)

    @staticmethod
    def _subject_type(subject: Optional[str], entities: Sequence[ClassificationResult]) -> Optional[EntityType]:
        for entity in entities:
            if entity.address == subject:
                return entity.type
        return None

    async def _search_knowledge(self, text: str) -> List[KnowledgePassage]:
        top_k = self.config.knowledge_top_k
        threshold = self.config.knowledge_threshold
        try:
            return await self.knowledge.search(text, top_k=top_k, threshold=threshold)
        except UpstreamServiceError as e:
            self.logger.warning(f"Embedding search unavailable, using lexical ranking: {e}")
            return self.knowledge.lexical_search(text, top_k=top_k, threshold=threshold)

    async def _gather_live_data(
        self,
        text: str,
        context: ConversationContext,
        history: List[Dict[str, str]],
        subject_type: Optional[EntityType]
    ) -> Tuple[List[ToolResult], Optional[str]]:
        """Run the model tool loop, or the keyword planner without a model."""
        if self.model_client is not None:
            try:
                return await self._tool_loop(text, context, history)
            except UpstreamServiceError as e:
                self.logger.warning(f"Model tool loop unavailable, using keyword planner: {e}")

        calls = plan_tool_calls(text, context.active_address, subject_type)
        if not calls:
            return [], None
        return await self.dispatcher.dispatch_all(calls, context.active_address), None

    async def _tool_loop(
        self,
        text: str,
        context: ConversationContext,
        history: List[Dict[str, str]]
    ) -> Tuple[List[ToolResult], Optional[str]]:
        system = TOOL_LOOP_PROMPT
        preamble = context.context_preamble()
        if preamble:
            system = f"{system}\n\n{preamble}"
        messages: List[Dict[str, Any]] = [{"role": "system", "content": system}]
        messages.extend(history)
        messages.append({"role": "user", "content": text})
        schemas = self.registry.openai_schemas()

        results: List[ToolResult] = []
        for round_number in range(self.config.max_tool_rounds):
            try:
                reply = await self.model_client.complete(messages, tools=schemas, tool_choice="auto")
            except UpstreamServiceError:
                if not results:
                    raise
                self.logger.warning(f"Model failed after {round_number} tool round(s); keeping partial results")
                return results, None

            if not reply.wants_tools:
                return results, reply.text

            messages.append(reply.assistant_message())
            round_results = await self.dispatcher.dispatch_all(reply.tool_calls, context.active_address)
            for call, result in zip(reply.tool_calls, round_results):
                messages.append({
                    "role": "tool",
                    "tool_call_id": call.call_id,
                    "content": self._tool_message(result),
                })
            results.extend(round_results)

        self.logger.info(f"Tool loop stopped after {self.config.max_tool_rounds} round(s)")
        return results, None

    @staticmethod
    def _tool_message(result: ToolResult) -> str:
        if isinstance(result, ToolOk):
            return json.dumps(result.payload, default=str)
        return json.dumps({"error": result.error_text})

    def _finish(
        self,
        context: ConversationContext,
        intent: Intent,
        answer: str,
        provenance: str,
        tool_results: Sequence[ToolResult],
        passages: Sequence[KnowledgePassage],
        notice: Optional[str] = None
    ) -> RouterResponse:
        if notice:
            answer = f"{answer}\n\n{notice}"
        for result in tool_results:
            context.add_tool_result(result)
        context.add_assistant_message(answer)

        tools_used: List[str] = []
        blockchain_data: Dict[str, Any] = {}
        for result in tool_results:
            if result.tool_name not in tools_used:
                tools_used.append(result.tool_name)
            if isinstance(result, ToolOk):
                key = result.tool_name
                suffix = 2
                while key in blockchain_data:
                    key = f"{result.tool_name}_{suffix}"
                    suffix += 1
                blockchain_data[key] = result.payload

        docs = [
            DocSource(
                content=p.content,
                source_url=p.source_url,
                source_title=p.source_title,
                similarity=min(max(p.similarity, 0.0), 1.0),
            )
            for p in passages
        ]
        return RouterResponse(
            response=answer,
            tools_used=tools_used,
            tool_results=[r.to_dict() for r in tool_results] or None,
            sources=Sources(type=provenance, docs=docs or None, blockchain_data=blockchain_data or None),
            intent=intent.value,
            session_id=context.session_id,
        )

    async def _run_hooks(self, query: Query, response: RouterResponse) -> None:
        for hook in self.hooks:
            try:
                await hook(query, response)
            except Exception as e:
                self.logger.warning(f"Completion hook {getattr(hook, '__name__', hook)} failed: {e}", exc_info=True)

    async def close(self) -> None:
        if self.model_client is not None:
            await self.model_client.close()


def build_router(
    config: AppConfig,
    http_client: Optional[httpx.AsyncClient] = None,
    model_client: Optional[ModelClient] = None
) -> QueryRouter:
    """
    Wire the router from configuration.

    Args:
        config: Application configuration
        http_client: Shared HTTP client for RPC and market calls
        model_client: Model collaborator; built from config when it has an API key

    Returns:
        A ready query router
    """
    pool = EndpointPool(config.solana.rpc_endpoints)
    executor = FailoverExecutor(
        pool,
        timeout=config.solana.request_timeout,
        backoff=config.solana.failover_backoff,
    )
    rpc_client = SolanaRpcClient(executor, http_client=http_client, commitment=config.solana.commitment)
    market_client = MarketDataClient(
        http_client=http_client,
        base_url=config.market.dexscreener_url,
        timeout=config.market.timeout,
        cache_size=config.market.cache_size,
        cache_ttl=config.market.cache_ttl,
    )
    if model_client is None and config.model.enabled:
        model_client = ModelClient(config.model)

    entity_classifier = EntityClassifier(rpc_client, fanout=config.router.classification_fanout)
    ledger = LedgerTools(rpc_client, entity_classifier, market_client)
    registry = build_registry(ledger, SecurityTools(ledger))

    return QueryRouter(
        intent_classifier=IntentClassifier(
            model_client,
            entity_classifier,
            max_addresses=config.router.max_classified_addresses,
        ),
        dispatcher=ToolDispatcher(registry, entity_classifier),
        registry=registry,
        knowledge=KnowledgeService(model_client),
        synthesizer=ResponseSynthesizer(model_client),
        sessions=SessionStore(
            ttl_minutes=config.router.session_ttl_minutes,
            history_limit=config.router.history_limit,
        ),
        entity_classifier=entity_classifier,
        model_client=model_client,
        config=config.router,
    )
