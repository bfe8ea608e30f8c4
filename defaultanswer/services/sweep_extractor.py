"""
Deterministic classification of free-text language model answers.

Every function here is total: malformed or evasive output collapses to
``None``/``False``/low-confidence fields, never to an exception, so a sweep
over many prompts survives any single odd response.
"""

import re
from dataclasses import dataclass

from defaultanswer.constants import (
    CONFIDENCE_MENTIONED,
    CONFIDENCE_RANK_ONE,
    CONFIDENCE_TOP_THREE,
    CONFIDENCE_WINNER,
    MAX_ALTERNATIVES,
    MAX_CATEGORY_LABEL_CHARS,
    MAX_LEARNING_BRANDS,
    MAX_LEARNING_DOMAINS,
    MAX_LIST_ITEMS,
    MAX_NAME_CHARS,
    MAX_NAME_WORDS,
    MIN_NAME_CHARS,
)
from defaultanswer.models.sweep_models import (
    ExtractionConfidence,
    LearningExtraction,
    SweepExtraction,
)

NUMBERED_LINE_RE = re.compile(r"^\s*(\d+)[.)]\s+(.*)$")
BULLET_LINE_RE = re.compile(r"^\s*[-*•]\s+(.*)$")
WINNER_RE = re.compile(
    r"(?:best is|best:|top pick is|recommend(?:ed)?|winner is)\s+([^\n.,;]+)", re.I
)
BOLD_RE = re.compile(r"\*\*([^*]+)\*\*")
NAME_SPLIT_RE = re.compile(r"[-:()]")
DOMAIN_RE = re.compile(r"\b[a-z0-9][a-z0-9.-]+\.[a-z]{2,}\b", re.I)
PROPER_NOUN_RE = re.compile(r"\b[A-Z][A-Za-z0-9]+(?:\s+[A-Z][A-Za-z0-9]+){0,3}\b")
CATEGORY_RE = re.compile(r"category\s*:\s*([^\n.;]+)", re.I)
THIS_IS_A_RE = re.compile(r"this is (?:an|a)\s+([^\n.;]+)", re.I)

NAME_REFUSAL_TOKENS = (
    "i don't",
    "i do not",
    "can't",
    "cannot",
    "sorry",
    "unable",
    "as an ai",
    "i am",
    "i'm",
    "i cannot",
    "i don't have",
)
HEDGE_TOKENS = (
    "unknown",
    "unclear",
    "not sure",
    "unsure",
    "maybe",
    "might",
    "cannot",
    "can't",
    "hard to say",
)
RESPONSE_REFUSAL_TOKENS = (
    "i cannot",
    "i can't",
    "i do not",
    "i don't",
    "i am unable",
    "i'm unable",
    "i cannot access",
    "i can't access",
    "no access",
    "not able to access",
    "cannot browse",
    "can't browse",
    "unable to browse",
    "as an ai",
    "i don't have access",
)
PARTIAL_REFUSAL_MARKERS = ("however", "but", "still", "general guidance", "in general")
HEDGED_LANGUAGE = (
    "might",
    "may",
    "could",
    "possibly",
    "likely",
    "seems",
    "appears",
    "unclear",
    "not sure",
    "unsure",
    "unknown",
)
ASSERTIVE_LANGUAGE = ("definitely", "clearly", "will", "always", "must", "best", "top")
PROPER_NOUN_STOPWORDS = frozenset(
    {
        "I", "The", "This", "That", "These", "Those", "AI", "LLM",
        "For", "Here", "Overall", "However", "If", "You", "It", "In", "When",
        "While", "Some", "Many", "Most", "Also", "Both", "Each", "Yes", "No",
        "My", "Your", "Our", "We", "They", "Ultimately", "Finally",
        "Additionally", "Alternatively", "Otherwise",
    }
)
SENTENCE_END_CHARS = ".!?\n"


@dataclass(frozen=True)
class ListItem:
    index: int
    text: str


def normalize(text: str) -> str:
    return re.sub(r"\s+", " ", (text or "").lower()).strip()


def has_token(text: str, tokens: list[str]) -> bool:
    """Whole-word, case-insensitive match of any token; inner whitespace is flexible."""
    for token in tokens:
        token = (token or "").strip()
        if not token:
            continue
        pattern = r"\s+".join(re.escape(part) for part in token.split())
        if re.search(rf"\b{pattern}\b", text, re.I):
            return True
    return False


def _mentions(text: str, brand_names: list[str], domains: list[str]) -> bool:
    norm = normalize(text)
    return has_token(norm, brand_names) or any(
        domain and domain.lower() in norm for domain in domains
    )


def parse_list_items(text: str, expect_list: bool = True) -> list[ListItem]:
    """
    Read a ranked list out of a response.

    Numbered lines win over bullets. The stated number is authoritative,
    the first line claiming a number keeps it, and reading stops at the
    first gap in 1..5.
    """
    if not expect_list:
        return []
    numbered: dict[int, str] = {}
    bullets: list[str] = []
    for line in (text or "").splitlines():
        match = NUMBERED_LINE_RE.match(line)
        if match:
            numbered.setdefault(int(match.group(1)), match.group(2).strip())
            continue
        match = BULLET_LINE_RE.match(line)
        if match:
            bullets.append(match.group(1).strip())

    ordered = []
    for index in range(1, MAX_LIST_ITEMS + 1):
        if not numbered.get(index):
            break
        ordered.append(ListItem(index=index, text=numbered[index]))
    if ordered:
        return ordered
    return [
        ListItem(index=position, text=text)
        for position, text in enumerate(bullets[:MAX_LIST_ITEMS], start=1)
    ]


def strip_to_name(text: str) -> str:
    """Cut a list item down to the product name before any dash, colon or paren."""
    text = (text or "").replace("–", "-").replace("—", "-")
    text = text.replace("**", "")
    return NAME_SPLIT_RE.split(text, maxsplit=1)[0].strip()


def is_likely_name(value: str | None) -> bool:
    text = (value or "").strip()
    if not MIN_NAME_CHARS <= len(text) <= MAX_NAME_CHARS:
        return False
    if '"' in text or "'" in text:
        return False
    if re.search(r"[.!?]", text):
        return False
    lower = text.lower()
    if any(token in lower for token in NAME_REFUSAL_TOKENS):
        return False
    return len(text.split()) <= MAX_NAME_WORDS


def detect_winner(text: str) -> str | None:
    """Winner named in prose ("I recommend X", "best is X") or in bold."""
    match = WINNER_RE.search(text or "")
    if match:
        candidate = strip_to_name(match.group(1))
        if is_likely_name(candidate):
            return candidate
    for bold in BOLD_RE.finditer(text or ""):
        candidate = strip_to_name(bold.group(1))
        if is_likely_name(candidate):
            return candidate
    return None


def _extraction_confidence(
    text: str, list_items: list[ListItem], parse_failed: bool
) -> ExtractionConfidence:
    if parse_failed:
        return "low"
    if list_items:
        return "high"
    norm = normalize(text)
    if any(token in norm for token in HEDGE_TOKENS):
        return "low"
    return "medium"


def _is_sentence_start(text: str, position: int) -> bool:
    before = text[:position].rstrip(" \t")
    return not before or before[-1] in SENTENCE_END_CHARS


def _proper_nouns(text: str) -> list[str]:
    """
    Capitalized runs that could be product names.

    A sentence-initial word only counts when the same word also appears
    capitalized mid-sentence; leading stopwords are dropped.
    """
    text = text or ""
    runs = []
    mid_sentence: set[str] = set()
    for match in PROPER_NOUN_RE.finditer(text):
        words = match.group(0).split()
        initial = _is_sentence_start(text, match.start())
        runs.append((words, initial))
        mid_sentence.update(words[1:] if initial else words)

    nouns = []
    for words, initial in runs:
        if initial and words[0] not in mid_sentence:
            words = words[1:]
        while words and words[0] in PROPER_NOUN_STOPWORDS:
            words = words[1:]
        if words:
            nouns.append(" ".join(words))
    return nouns


def _collect_alternatives(
    candidates: list[str],
    winner: str | None,
    brand_names: list[str],
    domains: list[str],
) -> list[str]:
    seen = {winner.lower()} if winner else set()
    alternatives = []
    for candidate in candidates:
        if not is_likely_name(candidate):
            continue
        if _mentions(candidate, brand_names, domains):
            continue
        key = candidate.lower()
        if key in seen:
            continue
        seen.add(key)
        alternatives.append(candidate)
        if len(alternatives) >= MAX_ALTERNATIVES:
            break
    return alternatives


def extract_sweep_signals(
    response_text: str | None,
    brand_names: list[str],
    domains: list[str],
    expect_list: bool = True,
) -> SweepExtraction:
    """
    Classify one model answer against a brand.

    Args:
        response_text: Raw model output
        brand_names: Brand name variants to look for
        domains: Domain variants to look for
        expect_list: Whether the prompt asked for a numbered list

    Returns:
        SweepExtraction; ``parse_failed`` marks a missing list when one was
        expected, in which case rank, winner and alternatives stay unknown.
    """
    text = response_text or ""
    norm = normalize(text)
    has_brand = has_token(norm, brand_names)
    has_domain = any(domain and domain.lower() in norm for domain in domains)
    mentioned = has_brand or has_domain

    items = parse_list_items(text, expect_list)
    parse_failed = expect_list and not items

    rank = None
    winner = None
    alternatives: list[str] = []
    if items:
        rank = next(
            (item.index for item in items if _mentions(item.text, brand_names, domains)),
            None,
        )
        first = strip_to_name(items[0].text)
        winner = first if is_likely_name(first) else None
        alternatives = _collect_alternatives(
            [strip_to_name(item.text) for item in items[1:]],
            winner,
            brand_names,
            domains,
        )
    elif not parse_failed:
        winner = detect_winner(text)
        if mentioned and winner and _mentions(winner, brand_names, domains):
            rank = 1
        alternatives = _collect_alternatives(
            _proper_nouns(text), winner, brand_names, domains
        )

    confidence = 0
    if rank == 1:
        confidence += CONFIDENCE_RANK_ONE
    elif rank is not None and rank <= 3:
        confidence += CONFIDENCE_TOP_THREE
    elif mentioned:
        confidence += CONFIDENCE_MENTIONED
    if winner:
        confidence += CONFIDENCE_WINNER

    return SweepExtraction(
        has_brand_mention=has_brand,
        has_domain_mention=has_domain,
        mentioned=mentioned,
        mention_rank=rank,
        winner=winner,
        alternatives=alternatives,
        confidence=max(0, min(100, confidence)),
        parse_failed=parse_failed,
        extraction_confidence=_extraction_confidence(text, items, parse_failed),
    )


# =============================================================================
# Learning fields
# =============================================================================


def detect_refusal_type(text: str) -> str:
    norm = normalize(text)
    if not norm:
        return "full"
    if not any(token in norm for token in RESPONSE_REFUSAL_TOKENS):
        return "none"
    if len(norm) > 80 and any(marker in norm for marker in PARTIAL_REFUSAL_MARKERS):
        return "partial"
    return "full"


def extract_category_label(text: str) -> str | None:
    match = CATEGORY_RE.search(text or "") or THIS_IS_A_RE.search(text or "")
    value = match.group(1).strip() if match else ""
    if not value or len(value) > MAX_CATEGORY_LABEL_CHARS:
        return None
    return value


def detect_confidence_language(text: str) -> str:
    norm = normalize(text)
    hedged = any(token in norm for token in HEDGED_LANGUAGE)
    assertive = any(token in norm for token in ASSERTIVE_LANGUAGE)
    if hedged and assertive:
        return "mixed"
    return "hedged" if hedged else "assertive"


def _unique(values: list[str]) -> list[str]:
    return list(dict.fromkeys(value for value in values if value))


def extract_learning_fields(prompt: str | None, response: str | None) -> LearningExtraction:
    """Coarse labels (refusal, category, named entities, tone) for research exports."""
    prompt = prompt or ""
    response = response or ""
    domains = _unique(
        [
            re.sub(r"^[^a-z0-9]+|[^a-z0-9]+$", "", match.lower())
            for match in DOMAIN_RE.findall(f"{prompt}\n{response}")
        ]
    )
    brands = _unique(
        [
            noun.lower()
            for noun in _proper_nouns(response)
            if 2 <= len(noun) <= 40
        ]
    )
    return LearningExtraction(
        refusal_type=detect_refusal_type(response),
        category_label=extract_category_label(response),
        winner=detect_winner(response),
        mentioned_domains=domains[:MAX_LEARNING_DOMAINS],
        mentioned_brands=brands[:MAX_LEARNING_BRANDS],
        confidence_language=detect_confidence_language(response),
    )
