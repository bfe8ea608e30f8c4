"""Versioned prompt set used by recommendation sweeps."""

import re

from defaultanswer.constants import DEFAULT_SWEEP_CATEGORY
from defaultanswer.models.sweep_models import SweepPrompt

PROMPT_SET_VERSION = "v3-grounded"

LIST_SUFFIX = (
    "Return a numbered list of exactly 5 items (1-5). One concise sentence per item."
)

CATEGORY = "{{CATEGORY}}"
BRAND = "{{BRAND_NAME}}"
DOMAIN = "{{DOMAIN}}"

SWEEP_PROMPTS: list[SweepPrompt] = [
    SweepPrompt(
        key="ground_brand_name_inference",
        intent="grounding",
        template=(
            f'Based only on the name "{BRAND}", what kind of product or service would '
            "you expect this to be? Answer in 1 short paragraph."
        ),
    ),
    SweepPrompt(
        key="ground_domain_inference",
        intent="grounding",
        template=(
            f"Based on public web patterns, what would you expect {DOMAIN} to offer? "
            "Answer in 1-2 neutral sentences."
        ),
    ),
    SweepPrompt(
        key="ground_category_assignment",
        intent="grounding",
        template=(
            f"If {BRAND} were a real product, which category would it most logically "
            "belong to? Respond with ONE category and one sentence explaining why."
        ),
    ),
    SweepPrompt(
        key="ground_problem_definition",
        intent="grounding",
        template=(
            f"What problem would a product like {BRAND} likely be designed to solve? "
            "Answer in 1 short paragraph."
        ),
    ),
    SweepPrompt(
        key="evaluation_recommendation_trigger",
        intent="evaluation",
        template=(
            "In what situations or user questions would you recommend a tool like "
            f"{BRAND}? Answer briefly."
        ),
    ),
    SweepPrompt(
        key="evaluation_non_recommendation",
        intent="evaluation",
        template=f"In what situations would you NOT recommend a tool like {BRAND}, and why?",
    ),
    SweepPrompt(
        key="evaluation_category_fit",
        intent="evaluation",
        template=(
            f'Would {BRAND} be a reasonable recommendation in the category "{CATEGORY}"? '
            "Explain briefly why or why not."
        ),
    ),
    SweepPrompt(
        key="category_natural_mentions",
        intent="category_ranking",
        template=(
            f'If someone asks for tools in the category "{CATEGORY}", which products or '
            f"services would you naturally mention? {LIST_SUFFIX}"
        ),
    ),
    SweepPrompt(
        key="category_top_tools",
        intent="category_ranking",
        template=f'List the top tools for "{CATEGORY}". {LIST_SUFFIX}',
    ),
    SweepPrompt(
        key="category_compare_tools",
        intent="category_ranking",
        template=f'Compare the leading tools in "{CATEGORY}". {LIST_SUFFIX}',
    ),
    SweepPrompt(
        key="category_brand_vs_competitors",
        intent="category_ranking",
        template=(
            f'Compare {BRAND} to other tools in "{CATEGORY}". What stands out and what '
            "is unclear?"
        ),
    ),
    SweepPrompt(
        key="citation_expected_evidence",
        intent="citation_style",
        template=(
            f'If you were to cite {BRAND} alongside competitors in "{CATEGORY}", what '
            "public evidence would you expect to see first?"
        ),
    ),
    SweepPrompt(
        key="citation_citable_content",
        intent="citation_style",
        template=(
            "What types of public pages or content make a product in "
            f'"{CATEGORY}" more citeable by AI assistants? {LIST_SUFFIX}'
        ),
    ),
    SweepPrompt(
        key="citation_sources_confidence",
        intent="citation_style",
        template=(
            f'When answering questions about "{CATEGORY}", what kinds of sources or '
            "pages would you feel confident citing, and why?"
        ),
    ),
    SweepPrompt(
        key="learning_category_assignment",
        intent="learning_v1_1",
        template=(
            "You are labeling a software product for a directory.\n\n"
            "Return exactly one line in this format:\n"
            "Category: <2-5 words>\n\n"
            f"Brand: {BRAND}\n"
            f"Domain: {DOMAIN}"
        ),
    ),
    SweepPrompt(
        key="learning_directory_category",
        intent="learning_v1_1",
        template=(
            f"If {BRAND} appeared in a software directory, what category would it be "
            "listed under? Format: Category: ..."
        ),
    ),
    SweepPrompt(
        key="learning_invent_category",
        intent="learning_v1_1",
        template=f"Invent a short category name for {BRAND}. Return the category only.",
    ),
    SweepPrompt(
        key="learning_category_two_words",
        intent="learning_v1_1",
        template=f"Describe {BRAND} with a two-word category label only.",
    ),
    SweepPrompt(
        key="learning_category_not",
        intent="learning_v1_1",
        template=f"What category is {BRAND} NOT? Return a short label only.",
    ),
    SweepPrompt(
        key="learning_closest_existing_category",
        intent="learning_v1_1",
        template=f"Closest existing category for {BRAND}? Return a short label only.",
    ),
    SweepPrompt(
        key="learning_closest_tools",
        intent="learning_v1_1",
        template=(
            f"Name the 5 closest existing tools to {BRAND}.\n\n"
            "Return exactly 5 bullet points, one tool per bullet. No extra text."
        ),
    ),
    SweepPrompt(
        key="learning_confident_recommend_yesno",
        intent="learning_v1_1",
        template=(
            f"Would you confidently recommend {BRAND} for {CATEGORY}?\n\n"
            "Return exactly:\n"
            "Answer: Yes|No\n"
            "Reason: <one sentence>"
        ),
    ),
    SweepPrompt(
        key="learning_missing_evidence",
        intent="learning_v1_1",
        template=(
            f"What evidence is missing to confidently recommend {BRAND}? "
            "Return exactly 3 bullets."
        ),
    ),
    SweepPrompt(
        key="learning_best_tools_generic",
        intent="learning_v1_1",
        template=(
            f'List up to 5 tools that best fit the category "{CATEGORY}".\n\n'
            "Return bullet points only.\n"
            "Each bullet: Tool name - 4 to 10 words describing why it fits."
        ),
    ),
    SweepPrompt(
        key="learning_category_name_exists",
        intent="learning_v1_1",
        template=(
            f'Does the category "{CATEGORY}" exist as a known software category? '
            "Answer: Yes/No. Name: ..."
        ),
    ),
    SweepPrompt(
        key="learning_confidence_gate_v1",
        intent="learning_confidence_gate_v1",
        template=(
            f"Would you confidently recommend {BRAND} as the default answer for the use case\n"
            '"evaluating whether a website can be confidently recommended by an AI assistant"?\n\n'
            "Answer exactly in this format:\n"
            "Recommendation: Yes or No\n"
            "Reason: One sentence only."
        ),
    ),
]

LIST_PROMPT_KEYS = frozenset(
    {
        "category_natural_mentions",
        "category_top_tools",
        "category_compare_tools",
        "learning_best_tools_generic",
    }
)

PRESET_CATEGORIES = {
    "learning_v1_1": "AI visibility and recommendation diagnostics",
    "learning_confidence_gate_v1": "AI recommendation confidence",
}


def build_prompt(template: str, *, category: str, brand_name: str, domain: str) -> str:
    return (
        template.replace(CATEGORY, category)
        .replace(BRAND, brand_name)
        .replace("{{BRAND}}", brand_name)
        .replace(DOMAIN, domain)
        .strip()
    )


def should_expect_list(prompt_key: str) -> bool:
    return prompt_key in LIST_PROMPT_KEYS


def build_brand_names(brand_name: str) -> list[str]:
    """Variants: as given, camel case split ("DefaultAnswer" -> "Default Answer"), collapsed."""
    camel = re.sub(r"([a-z])([A-Z])", r"\1 \2", brand_name)
    collapsed = re.sub(r"\s+", "", brand_name)
    variants = [v.strip() for v in (brand_name, camel, collapsed)]
    return list(dict.fromkeys(v for v in variants if v))


def build_domains(domain: str) -> list[str]:
    return [domain, f"www.{domain}"]


def default_category(preset: str | None) -> str:
    return PRESET_CATEGORIES.get(preset or "", DEFAULT_SWEEP_CATEGORY)


def select_prompts(preset: str | None = None, limit: int | None = None) -> list[SweepPrompt]:
    """Prompts for a preset (all prompts without one), truncated to ``limit``."""
    prompts = (
        [prompt for prompt in SWEEP_PROMPTS if prompt.intent == preset]
        if preset
        else list(SWEEP_PROMPTS)
    )
    if limit is not None:
        prompts = prompts[: max(0, limit)]
    return prompts
