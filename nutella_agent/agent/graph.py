"""
LangGraph pipelines: classify → fetch (users | domains) → generate answer.

Orchestration only; data comes from the Nutella API (cached hourly) and the answer
from the AI proxy. Exactly one fetch branch runs per query. The answer step is
shared by both branches and never fails: proxy errors become the answer text.

Also hosts the users search workflow: fetch users → substring filter.
"""

import json
import logging
from collections.abc import Callable
from typing import Any, Literal, TypedDict

from langgraph.graph import END, StateGraph

from nutella_agent.agent.intent import DOMAINS, Route, classify_query
from nutella_agent.agent.llm import AIClient, build_messages
from nutella_agent.core.config import (
    AI_COMPLETIONS,
    AI_HTTP_TIMEOUT,
    AI_PROXY_TOKEN,
    AI_PROXY_URL,
    AI_TEMPERATURE,
    CACHE_TTL_SECONDS,
    NUTELLA_API_HOST,
    NUTELLA_CACHE_DIR,
    NUTELLA_HTTP_TIMEOUT,
    OPENAI_MODEL,
)
from nutella_agent.services.normalizer import normalize_users_response
from nutella_agent.services.nutella_client import NutellaClient
from nutella_agent.services.response_cache import HourlyResponseCache

logger = logging.getLogger(__name__)

# (auth_token, cookies, hs_csrf_token) -> client
ClientFactory = Callable[[str | None, dict[str, str] | None, str | None], NutellaClient]

SYSTEM_PROMPT = (
    "You are an admin assistant for the Nutella API. Answer the user's question "
    "using ONLY the JSON context provided. The context has a dataType field "
    "('users' or 'domains') and a data field with the records fetched for this "
    "question. Be concise; when listing records, include the fields the user asked "
    "about. If the answer is not present in the data, say so."
)


class PipelineState(TypedDict):
    query: str
    auth_token: str | None
    cookies: dict[str, str] | None
    hs_csrf_token: str | None
    route: Route | None
    fetched_data: Any
    data_type: str | None
    answer: str
    results: list


_shared_cache: HourlyResponseCache | None = None


def get_response_cache() -> HourlyResponseCache:
    """Process-wide cache rooted at NUTELLA_CACHE_DIR (created on first use)."""
    global _shared_cache
    if _shared_cache is None:
        _shared_cache = HourlyResponseCache(NUTELLA_CACHE_DIR, ttl_seconds=CACHE_TTL_SECONDS)
    return _shared_cache


def default_client_factory(
    auth_token: str | None,
    cookies: dict[str, str] | None,
    hs_csrf_token: str | None = None,
) -> NutellaClient:
    return NutellaClient(
        NUTELLA_API_HOST,
        auth_token=auth_token,
        cookies=cookies,
        hs_csrf_token=hs_csrf_token,
        cache=get_response_cache(),
        timeout=NUTELLA_HTTP_TIMEOUT,
    )


def default_ai_client() -> AIClient:
    return AIClient(AI_PROXY_URL, AI_PROXY_TOKEN, timeout=AI_HTTP_TIMEOUT)


def filter_records(records: list, query: str | None) -> list:
    """Case-insensitive substring match against each record's JSON text. No query → all."""
    q = (query or "").strip().lower()
    if not q:
        return list(records)
    return [r for r in records if q in json.dumps(r, default=str).lower()]


def _initial_state(
    query: str,
    auth_token: str | None,
    cookies: dict[str, str] | None,
    hs_csrf_token: str | None,
) -> PipelineState:
    return {
        "query": query,
        "auth_token": auth_token,
        "cookies": cookies,
        "hs_csrf_token": hs_csrf_token,
        "route": None,
        "fetched_data": None,
        "data_type": None,
        "answer": "",
        "results": [],
    }


def _classify_intent(state: PipelineState) -> dict:
    """Node 1: pick the route from keywords in the query."""
    route = classify_query(state.get("query") or "")
    logger.info("[graph:classify_intent] OUT route=%s", route)
    return {"route": route}


def _route_after_classify(state: PipelineState) -> Literal["fetch_users", "fetch_domains"]:
    return "fetch_domains" if state.get("route") == DOMAINS else "fetch_users"


def _make_fetch_nodes(client_factory: ClientFactory):
    def _client(state: PipelineState) -> NutellaClient:
        return client_factory(
            state.get("auth_token"), state.get("cookies"), state.get("hs_csrf_token")
        )

    async def fetch_users(state: PipelineState) -> dict:
        """Node 2a: fetch and normalize users."""
        raw = await _client(state).get_users()
        users = normalize_users_response(raw)
        logger.info("[graph:fetch_users] OUT users=%d", len(users))
        return {"fetched_data": users, "data_type": "users"}

    async def fetch_domains(state: PipelineState) -> dict:
        """Node 2b: fetch domains; passed through as received."""
        domains = await _client(state).get_domains()
        logger.info("[graph:fetch_domains] OUT type=%s", type(domains).__name__)
        return {"fetched_data": domains, "data_type": "domains"}

    return fetch_users, fetch_domains


def build_answer_messages(query: str, data_type: str | None, data: Any) -> list[dict[str, str]]:
    """System instructions, then the fetched data as JSON context, then the question."""
    context = json.dumps({"dataType": data_type, "data": data}, indent=2, default=str)
    messages = build_messages(
        messages=[{"role": "user", "content": f"User question: {query}"}],
        json_content=context,
    )
    return [{"role": "system", "content": SYSTEM_PROMPT}, *messages]


def _make_generate_node(
    ai_client: AIClient,
    model: str | None,
    temperature: float,
    n: int,
):
    async def generate_answer(state: PipelineState) -> dict:
        """Node 3: ask the AI proxy. Any failure is returned as the answer text."""
        query = state.get("query") or ""
        data_type = state.get("data_type")
        messages = build_answer_messages(query, data_type, state.get("fetched_data"))
        logger.info("[graph:generate_answer] IN  data_type=%s messages=%d", data_type, len(messages))
        try:
            result = await ai_client.create_chat_completion(
                messages, temperature=temperature, n=n, model=model
            )
        except Exception as e:
            logger.exception("[graph:generate_answer] AI service call failed")
            return {"answer": f"Error calling AI service: {e}"}
        if result.assistant is not None:
            answer = result.assistant
        else:
            answer = json.dumps(result.raw, default=str)
        logger.info("[graph:generate_answer] OUT answer_len=%d", len(answer))
        return {"answer": answer}

    return generate_answer


def build_graph(
    client_factory: ClientFactory | None = None,
    ai_client: AIClient | None = None,
    model: str | None = OPENAI_MODEL,
    temperature: float = AI_TEMPERATURE,
    n: int = AI_COMPLETIONS,
):
    """
    Build and compile the query graph.
    classify_intent → (fetch_users | fetch_domains) → generate_answer → END.
    """
    fetch_users, fetch_domains = _make_fetch_nodes(client_factory or default_client_factory)
    generate_answer = _make_generate_node(ai_client or default_ai_client(), model, temperature, n)

    graph = StateGraph(PipelineState)

    graph.add_node("classify_intent", _classify_intent)
    graph.add_node("fetch_users", fetch_users)
    graph.add_node("fetch_domains", fetch_domains)
    graph.add_node("generate_answer", generate_answer)

    graph.set_entry_point("classify_intent")
    graph.add_conditional_edges("classify_intent", _route_after_classify)
    graph.add_edge("fetch_users", "generate_answer")
    graph.add_edge("fetch_domains", "generate_answer")
    graph.add_edge("generate_answer", END)

    return graph.compile()


def _query_users(state: PipelineState) -> dict:
    """Filter fetched users by the query text."""
    results = filter_records(state.get("fetched_data") or [], state.get("query"))
    logger.info("[graph:query_users] OUT results=%d", len(results))
    return {"results": results}


def build_users_graph(client_factory: ClientFactory | None = None):
    """fetch_users → query_users → END."""
    fetch_users, _ = _make_fetch_nodes(client_factory or default_client_factory)

    graph = StateGraph(PipelineState)
    graph.add_node("fetch_users", fetch_users)
    graph.add_node("query_users", _query_users)
    graph.set_entry_point("fetch_users")
    graph.add_edge("fetch_users", "query_users")
    graph.add_edge("query_users", END)
    return graph.compile()


async def run_pipeline(
    query: str,
    auth_token: str | None = None,
    cookies: dict[str, str] | None = None,
    hs_csrf_token: str | None = None,
    graph=None,
) -> dict:
    """
    Answer a natural-language question about users or domains.
    Returns {"answer": str}. Raises ValueError for a blank query and NetworkError
    when the fetch fails with no cached copy to fall back on.
    """
    if not query or not str(query).strip():
        raise ValueError("query is required")
    q = str(query).strip()
    logger.info("[run_pipeline] START query=%r auth=%s", q, bool(auth_token))
    graph = graph or build_graph()
    final = await graph.ainvoke(_initial_state(q, auth_token, cookies, hs_csrf_token))
    answer = final.get("answer") or ""
    logger.info("[run_pipeline] END route=%s answer_len=%d", final.get("route"), len(answer))
    return {"answer": answer}


async def run_users_workflow(
    query: str | None = None,
    auth_token: str | None = None,
    cookies: dict[str, str] | None = None,
    hs_csrf_token: str | None = None,
    graph=None,
) -> dict:
    """Fetch users and filter them by query. Returns {"results": [...]}."""
    graph = graph or build_users_graph()
    final = await graph.ainvoke(_initial_state(query or "", auth_token, cookies, hs_csrf_token))
    return {"results": final.get("results") or []}
