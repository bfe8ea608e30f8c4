"""Rule-based extraction of readiness signals from page HTML.

Everything here is a pure function over the HTML, the source URL and an
injected ``fetched_at`` timestamp. Malformed markup never raises: a
missing signal is ``False``/``None``/empty, not an exception.

Three forms of FAQ evidence are tracked separately so scoring can tell
strong evidence from weak:

- explicit: an FAQ-like heading, ``<section id="faq">`` or an ``faq`` class
- indirect: links to docs/help/support style pages (only when no explicit FAQ)
- direct answer blocks: definition sentences near the top of the page, or a
  "How it works" section with steps
"""

import json
import re
from typing import Any, Iterable
from urllib.parse import urlparse

from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup

from defaultanswer.constants import (
    EVIDENCE_H1_CHARS,
    EVIDENCE_H2_CHARS,
    EVIDENCE_H2_COUNT,
    EVIDENCE_META_CHARS,
    EVIDENCE_SCHEMA_SAMPLE_CHARS,
    EVIDENCE_SNIPPET_CHARS,
    EVIDENCE_TITLE_CHARS,
    MAX_INDIRECT_FAQ_LINKS,
    MIN_PHONE_DIGITS,
    SCHEMA_CONTEXT_WINDOW_CHARS,
    TOP_TEXT_WINDOW_CHARS,
)
from defaultanswer.models.signal_models import Evidence, ExtractedSignals, FaqEvidence

FAQ_HEADING_RE = re.compile(r"faq|frequently asked|questions|q\s*&\s*a", re.I)
INDIRECT_FAQ_HREF_RE = re.compile(
    r"(/docs|/help|/support|/faq|/knowledge|/academy)([\"'#?/]|$)", re.I
)
HOW_IT_WORKS_RE = re.compile(r"how\s+it\s+works?|process", re.I)
NUMBERED_STEPS_RE = re.compile(r"\b1\.\s+.{0,200}\b2\.\s+", re.S)
GENERIC_DEFINITION_RE = re.compile(r"\b(is a|helps|built for)\b", re.I)
PRICING_RE = re.compile(
    r"pricing|plans|price|\$\d|€\d|£\d|/month|/year|per month|per year"
    r"|free tier|free plan",
    re.I,
)
ABOUT_HREF_RE = re.compile(
    r"about|company|team|mission|our-story|our_story|who-we-are|who_we_are", re.I
)
ABOUT_TEXT_RE = re.compile(
    r"^\s*(about|company|team|mission|our story|who we are)\s*$", re.I
)
ABOUT_EVIDENCE_TEXT_RE = re.compile(
    r"about|company|team|mission|our story|who we are", re.I
)
CONTACT_HREF_RE = re.compile(r"contact|support|help", re.I)
CONTACT_TEXT_RE = re.compile(
    r"contact|support|help|customer support|get in touch", re.I
)
EMAIL_RE = re.compile(r"\b[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}\b", re.I)
PHONE_RE = re.compile(
    r"(\+?\d{1,3}[\s.-]?)?(\(\d{2,4}\)[\s.-]?)?\d{3}[\s.-]?\d{3,4}[\s.-]?\d{0,4}"
)
YEAR_RE = re.compile(r"^\s*20\d{2}\s*$")
BRAND_STOPWORDS_RE = re.compile(r"^(the|a|an|home|welcome)$", re.I)
TITLE_SPLIT_RE = re.compile(r"[\s\-–—|:]+")
CONTROL_CHARS_RE = re.compile(r"[\u0000-\u001f\u007f]")
WHITESPACE_RE = re.compile(r"\s+")
UI_JUNK_RE = re.compile(
    r"light mode|dark mode|auto\s*\(os\)|appearance|site settings", re.I
)
ARROW_GLYPHS = set("↗↘↙↖►◄↑↓←→")

NON_VISIBLE_TAGS = (
    "script",
    "style",
    "noscript",
    "svg",
    "canvas",
    "iframe",
    "template",
    "head",
)


# =============================================================================
# Text helpers
# =============================================================================


def collapse_whitespace(text: str) -> str:
    return WHITESPACE_RE.sub(" ", text or "").strip()


def sanitize_short(text: str | None, max_len: int) -> str:
    """Strip control characters, collapse whitespace and truncate."""
    cleaned = CONTROL_CHARS_RE.sub(" ", text or "")
    return collapse_whitespace(cleaned)[:max_len]


def extract_context(text: str, index: int, max_len: int, before: int = 60) -> str:
    """Return a whitespace-collapsed window of ``text`` around ``index``."""
    start = max(0, index - before)
    end = min(len(text), index + max_len)
    return collapse_whitespace(text[start:end])


def parse_html(html: str) -> BeautifulSoup:
    """Parse HTML; markup the parser rejects yields an empty document."""
    try:
        return BeautifulSoup(html or "", "html.parser")
    except ParserRejectedMarkup:
        return BeautifulSoup("", "html.parser")


def unique_strings(values: Iterable[str]) -> list[str]:
    """Deduplicate non-empty strings, keeping first occurrence order."""
    seen: set[str] = set()
    out: list[str] = []
    for value in values:
        key = (value or "").strip()
        if not key or key in seen:
            continue
        seen.add(key)
        out.append(key)
    return out


def _is_css_like(line: str) -> bool:
    return "{" in line or "}" in line or (line.count(";") + line.count(":")) >= 3


def extract_visible_text(html: str) -> str:
    """
    Extract the text a visitor would actually read.

    Non-rendered elements are dropped, whitespace is normalized per line and
    lines that look like leaked CSS are removed.
    """
    if not html:
        return ""
    soup = parse_html(html)
    for tag in soup(list(NON_VISIBLE_TAGS)):
        tag.decompose()
    root = soup.body or soup
    text = root.get_text("\n").replace("\u00a0", " ")

    lines = []
    for raw_line in text.split("\n"):
        line = re.sub(r"[ \t]{2,}", " ", raw_line).strip()
        if line and not _is_css_like(line):
            lines.append(line)
    return "\n".join(lines)


def clean_evidence_text(text: str) -> str:
    """Drop navigation chrome (arrow rows, theme toggles, menu runs) from text."""
    lines = []
    for raw_line in (text or "").replace("\r", "").split("\n"):
        line = raw_line.strip()
        if not line:
            continue
        if sum(1 for ch in line if ch in ARROW_GLYPHS) >= 2:
            continue
        if UI_JUNK_RE.search(line):
            continue
        tokens = line.split()
        short_tokens = sum(1 for token in tokens if len(token) <= 3)
        if len(tokens) >= 10 and short_tokens >= 5:
            continue
        lines.append(line)
    return "\n".join(lines)


# =============================================================================
# URL / identity helpers
# =============================================================================


def extract_domain(url: str) -> str:
    """Hostname with a leading ``www.`` stripped."""
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        hostname = None
    if hostname:
        return re.sub(r"^www\.", "", hostname)
    bare = re.sub(r"^https?://", "", url or "", flags=re.I)
    bare = re.sub(r"^www\.", "", bare, flags=re.I)
    return bare.split("/")[0].lower()


def guess_brand(title: str | None, domain: str) -> str:
    """First meaningful title word, else the capitalized first domain label."""
    if title:
        words = [w for w in TITLE_SPLIT_RE.split(title.strip()) if w]
        first = words[0] if words else ""
        if len(first) > 1 and not BRAND_STOPWORDS_RE.match(first):
            return first
    label = (domain or "").split(".")[0]
    return label[:1].upper() + label[1:]


# =============================================================================
# Individual detectors
# =============================================================================


def detect_definition_snippets(text: str, brand: str) -> list[str]:
    """
    Find definition-style sentences ("Acme is a ...", "What is Acme").

    Brand-anchored patterns are tried first; a generic "is a / helps /
    built for" pattern is the fallback.
    """
    if not text:
        return []
    snippets: list[str] = []
    brand_lower = (brand or "").lower()
    if len(brand_lower) >= 2:
        escaped = re.escape(brand_lower)
        anchored = re.search(
            rf"\b{escaped}\b\s+(is\s+a|helps|is\s+an|provides|builds|offers)\b",
            text,
            re.I,
        )
        if anchored:
            snippets.append(extract_context(text, anchored.start(), 140))
        what_is = re.search(rf"what\s+is\s+{escaped}", text, re.I)
        if what_is:
            snippets.append(extract_context(text, what_is.start(), 140))

    generic = GENERIC_DEFINITION_RE.search(text)
    if generic:
        snippets.append(extract_context(text, generic.start(), 140))
    return unique_strings(snippets)[:3]


def detect_phone_like(text: str) -> bool:
    """True when a phone-like run with enough digits (not a year) appears."""
    for match in PHONE_RE.finditer(text or ""):
        candidate = match.group(0)
        digits = sum(ch.isdigit() for ch in candidate)
        if digits < MIN_PHONE_DIGITS:
            continue
        if YEAR_RE.match(candidate):
            continue
        return True
    return False


def has_schema_context_window(html: str) -> bool:
    """``@context`` with ``schema.org`` nearby, for JSON-LD without a script type."""
    match = re.search(r"@context", html or "", re.I)
    if not match:
        return False
    start = max(0, match.start() - SCHEMA_CONTEXT_WINDOW_CHARS)
    end = min(len(html), match.start() + SCHEMA_CONTEXT_WINDOW_CHARS)
    return re.search(r"schema\.org", html[start:end], re.I) is not None


def _collect_types(value: Any, out: list[str]) -> None:
    if isinstance(value, list):
        for item in value:
            _collect_types(item, out)
        return
    if not isinstance(value, dict):
        return
    type_value = value.get("@type")
    if isinstance(type_value, str):
        out.append(type_value)
    elif isinstance(type_value, list):
        out.extend(t for t in type_value if isinstance(t, str))
    if "@graph" in value:
        _collect_types(value["@graph"], out)


def _json_ld_scripts(soup: BeautifulSoup) -> list[str]:
    scripts = soup.find_all(
        "script", attrs={"type": lambda t: bool(t) and "ld+json" in t.lower()}
    )
    return [script.get_text() or "" for script in scripts]


def extract_schema_types(payloads: Iterable[str]) -> list[str]:
    """Collect ``@type`` values (including ``@graph`` members) from JSON-LD."""
    types: list[str] = []
    for raw in payloads:
        raw = raw.strip()
        if not raw:
            continue
        try:
            data = json.loads(raw)
        except ValueError:
            # Unparseable JSON-LD still counts as present
            continue
        _collect_types(data, types)
    return unique_strings(types)


def _anchor_links(soup: BeautifulSoup) -> list[tuple[str, str]]:
    links = []
    for anchor in soup.find_all("a", href=True):
        href = (anchor.get("href") or "").strip()
        text = collapse_whitespace(anchor.get_text(" "))
        links.append((href, text))
    return links


def _headings(soup: BeautifulSoup, name: str) -> list[str]:
    texts = (collapse_whitespace(tag.get_text(" ")) for tag in soup.find_all(name))
    return [text for text in texts if text]


def _meta_description(soup: BeautifulSoup) -> str | None:
    tag = soup.find("meta", attrs={"name": re.compile(r"^description$", re.I)})
    if tag is None:
        return None
    content = (tag.get("content") or "").strip()
    return content or None


def _canonical_url(soup: BeautifulSoup) -> str | None:
    for link in soup.find_all("link", href=True):
        rel = link.get("rel") or []
        if isinstance(rel, str):
            rel = rel.split()
        if any(value.lower() == "canonical" for value in rel):
            return link["href"].strip() or None
    return None


def _has_explicit_faq(soup: BeautifulSoup, h2s: list[str], h3s: list[str]) -> bool:
    if any(FAQ_HEADING_RE.search(h) for h in h2s + h3s):
        return True
    if soup.find("section", id=re.compile(r"^faq$", re.I)) is not None:
        return True
    faq_div = soup.find(
        "div", class_=lambda value: bool(value) and "faq" in value.lower()
    )
    return faq_div is not None


def _about_evidence(links: list[tuple[str, str]], limit: int = 3) -> list[str]:
    out = []
    for href, text in links:
        if ABOUT_HREF_RE.search(href) or ABOUT_EVIDENCE_TEXT_RE.search(text):
            label = f" (“{sanitize_short(text, 60)}”)" if text else ""
            out.append(f"link: {href}{label}")
        if len(out) >= limit:
            break
    return unique_strings(out)[:limit]


def _contact_evidence(
    links: list[tuple[str, str]], visible_text: str
) -> list[str]:
    evidence = []
    if any(href.lower().startswith("mailto:") for href, _ in links):
        evidence.append("mailto link")
    mail_targets = " ".join(href for href, _ in links if "@" in href)
    if EMAIL_RE.search(visible_text) or EMAIL_RE.search(mail_targets):
        evidence.append("email found")
    if any(
        CONTACT_HREF_RE.search(href) or CONTACT_TEXT_RE.search(text)
        for href, text in links
    ):
        evidence.append("support/contact link")
    if detect_phone_like(visible_text):
        evidence.append("phone-like pattern")
    return evidence


def _pricing_evidence(visible_text: str) -> list[str]:
    cleaned = clean_evidence_text(visible_text)
    match = PRICING_RE.search(cleaned)
    if match:
        return [extract_context(cleaned, match.start(), EVIDENCE_SNIPPET_CHARS, 80)]
    index = visible_text.lower().find("pricing")
    if index >= 0:
        window = visible_text[max(0, index - 80) : index + EVIDENCE_SNIPPET_CHARS]
        return [collapse_whitespace(clean_evidence_text(window))]
    return ["Pricing detected"]


# =============================================================================
# Entry point
# =============================================================================


def extract_page_data(
    html: str, url: str, fetched_at: str | None = None
) -> ExtractedSignals:
    """
    Extract all readiness signals from one page.

    Args:
        html: Raw HTML (may be empty or malformed)
        url: URL the HTML was fetched from
        fetched_at: ISO timestamp supplied by the caller

    Returns:
        ExtractedSignals for the page
    """
    html = html or ""
    domain = extract_domain(url)
    soup = parse_html(html)

    title_text = collapse_whitespace(soup.title.get_text()) if soup.title else ""
    title = title_text or None
    meta_description = _meta_description(soup)
    h1s = _headings(soup, "h1")
    h2s = _headings(soup, "h2")
    h3s = _headings(soup, "h3")
    links = _anchor_links(soup)
    brand = guess_brand(title, domain)

    has_faq = _has_explicit_faq(soup, h2s, h3s)
    indirect_links: list[str] = []
    if not has_faq:
        matching = [href for href, _ in links if href and INDIRECT_FAQ_HREF_RE.search(href)]
        indirect_links = unique_strings(matching[:MAX_INDIRECT_FAQ_LINKS])

    visible_text = extract_visible_text(html)
    top_window = collapse_whitespace(visible_text)[:TOP_TEXT_WINDOW_CHARS]
    definition_snippets = detect_definition_snippets(top_window, brand)
    has_how_it_works = any(HOW_IT_WORKS_RE.search(h) for h in h2s + h3s)
    list_item_count = len(soup.find_all("li"))
    has_numbered_steps = NUMBERED_STEPS_RE.search(top_window) is not None
    has_direct_answer_block = bool(definition_snippets) or (
        has_how_it_works and (list_item_count >= 2 or has_numbered_steps)
    )
    direct_snippets = list(definition_snippets)
    if has_how_it_works:
        direct_snippets.append("How it works / process section detected")
    direct_snippets = [
        sanitize_short(s, EVIDENCE_SNIPPET_CHARS) for s in direct_snippets
    ][:3]

    json_ld_payloads = _json_ld_scripts(soup)
    has_schema_json_ld = bool(json_ld_payloads) or has_schema_context_window(html)
    schema_types = extract_schema_types(json_ld_payloads) if has_schema_json_ld else []
    schema_sample = (
        sanitize_short(json_ld_payloads[0], EVIDENCE_SCHEMA_SAMPLE_CHARS)
        if json_ld_payloads
        else None
    )

    has_pricing = PRICING_RE.search(visible_text.lower()) is not None
    pricing_evidence = _pricing_evidence(visible_text) if has_pricing else []

    has_about = any(
        ABOUT_HREF_RE.search(href) or ABOUT_TEXT_RE.match(text)
        for href, text in links
    )
    contact_evidence = _contact_evidence(links, visible_text)
    has_contact_signals = bool(contact_evidence)

    evidence = Evidence(
        title_text=sanitize_short(title, EVIDENCE_TITLE_CHARS) if title else None,
        meta_description=(
            sanitize_short(meta_description, EVIDENCE_META_CHARS)
            if meta_description
            else None
        ),
        h1_text=sanitize_short(h1s[0], EVIDENCE_H1_CHARS) if h1s else None,
        h2_texts=[sanitize_short(h, EVIDENCE_H2_CHARS) for h in h2s[:EVIDENCE_H2_COUNT]],
        schema_types=schema_types[:8],
        schema_raw_sample=schema_sample or None,
        contact_evidence=contact_evidence[:5],
        about_evidence=_about_evidence(links),
        faq_evidence=FaqEvidence(
            explicit_faq_detected=has_faq,
            indirect_faq_links=indirect_links,
            direct_answer_snippets=direct_snippets,
        ),
        pricing_evidence=pricing_evidence[:3],
    )

    return ExtractedSignals(
        title=title,
        meta_description=meta_description,
        h1s=h1s,
        h2s=h2s,
        h3s=h3s,
        has_faq=has_faq,
        has_indirect_faq=bool(indirect_links),
        has_direct_answer_block=has_direct_answer_block,
        has_schema=has_schema_json_ld,
        has_schema_json_ld=has_schema_json_ld,
        schema_types=schema_types,
        has_pricing=has_pricing,
        has_about=has_about,
        has_contact=has_contact_signals,
        has_contact_signals=has_contact_signals,
        contact_evidence=contact_evidence,
        domain=domain,
        brand_guess=brand,
        canonical_url=_canonical_url(soup),
        fetched_at=fetched_at,
        evidence=evidence,
    )


def skeleton_signals(
    url: str, fetched_at: str | None = None, **overrides: Any
) -> ExtractedSignals:
    """Empty signals for a page that could not be evaluated."""
    domain = extract_domain(url)
    values: dict[str, Any] = {
        "domain": domain,
        "brand_guess": guess_brand(None, domain),
        "evaluated_page": "Homepage HTML snapshot",
        "evaluated_url": url,
        "fetched_at": fetched_at,
    }
    values.update(overrides)
    return ExtractedSignals(**values)
