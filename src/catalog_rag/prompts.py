"""Prompt construction and model-output cleanup.

Everything here is a pure function of its arguments, so prompts can be
tested without a running model.
"""

import re

from catalog_rag.models import RetrievedDocument

EMPTY_RESULT_MESSAGE = (
    "Sorry, no products matching your request were found. "
    "Try rephrasing your query."
)

_QUERY_PROMPT = (
    "You are a smart search query analyzer for computer products. Your task:\n\n"
    "1. Understand the user's query (it may be in Russian) in context\n"
    "2. Identify the product category (graphics_cards, processors, laptops, etc.)\n"
    "3. Return ONLY the optimized English search term\n\n"
    "{context}"
    "Examples:\n"
    "процессор AMD для игр → AMD gaming processor\n"
    "видеокарта RTX дешевая → RTX budget graphics card\n"
    "игровая видеокарта → gaming graphics card\n"
    "MacBook для работы → MacBook laptop\n"
    "материнская плата → motherboard\n"
    "А как же AMD? → AMD graphics card (if previous context was graphics cards)\n"
    "AMD Ryzen 9 → AMD Ryzen 9 processor\n\n"
    "Current query: {query}\n"
    "Return only the English search term:"
)

_RECOMMENDATION_RULES = (
    "You are an expert sales consultant in a computer hardware store.\n\n"
    "STRICT RULES:\n"
    "1. Recommend ONLY products from the list below.\n"
    "2. NEVER mention products that are not in the list.\n"
    "3. NEVER add specifications or features that are not in the description.\n"
    "4. Choose exactly ONE best product from the list."
)

_RECOMMENDATION_TASK = (
    "TASK: Give a short professional recommendation (2-3 sentences):\n"
    "- Which product from the list fits best\n"
    "- Why this option (based on its description and category)\n"
    "- Its exact price\n\n"
    "Answer in the same language as the user's request. "
    "Be friendly and competent."
)

_LABEL_PREFIXES: list[re.Pattern[str]] = [
    re.compile(p, re.IGNORECASE)
    for p in [
        r"^(?:Search query|Answer|Result|English term):\s*",
        r"^(?:Translation|English|Translate):\s*",
        r"^Here\s+(?:is|are)\s+the\s+translations?:\s*",
        r"^The\s+English\s+translation\s+is:\s*",
    ]
]

_QUOTES = "\"'`«»"


def build_query_prompt(query: str, context: str | None = None) -> str:
    """Prompt asking the model for a short English search term."""
    context_line = (
        f"Previous context: User was looking for {context}\n\n" if context else ""
    )
    return _QUERY_PROMPT.format(context=context_line, query=query)


def extract_search_term(raw: str) -> str:
    """Strip conversational scaffolding from the model's answer.

    Keeps the first line, drops quotes and labels such as ``Answer:``,
    and cuts everything after the first sentence terminator. If nothing
    is left, the stripped raw answer is returned.
    """
    stripped = raw.strip()
    if not stripped:
        return ""

    term = stripped.splitlines()[0].strip().strip(_QUOTES)
    for pattern in _LABEL_PREFIXES:
        term = pattern.sub("", term)
    term = term.strip().strip(_QUOTES)

    match = re.match(r"^([^.!?\n]+)", term)
    if match:
        term = match.group(1).strip().strip(_QUOTES).strip()

    return term or stripped


def format_documents(documents: list[RetrievedDocument]) -> str:
    """Enumerate documents with every field the model is allowed to use."""
    blocks = []
    for i, doc in enumerate(documents, start=1):
        blocks.append(
            f"{i}. {doc.name}\n"
            f"   Brand: {doc.brand}\n"
            f"   Category: {doc.category}\n"
            f"   Price: {doc.formatted_price}\n"
            f"   Description: {doc.description}\n"
            f"   Relevance: {doc.relevance_percentage}%"
        )
    return "\n\n".join(blocks)


def build_recommendation_prompt(documents: list[RetrievedDocument], query: str) -> str:
    """Constrained prompt: recommend one of ``documents`` and nothing else."""
    return (
        f"{_RECOMMENDATION_RULES}\n\n"
        f'USER REQUEST: "{query}"\n\n'
        "FOUND PRODUCTS (only these products are in stock):\n"
        f"{format_documents(documents)}\n\n"
        f"{_RECOMMENDATION_TASK}"
    )


def fallback_response(documents: list[RetrievedDocument]) -> str:
    """Deterministic answer used when the model fails."""
    if not documents:
        return EMPTY_RESULT_MESSAGE
    return f"Found {len(documents)} item(s). Recommended: {documents[0].name}."
