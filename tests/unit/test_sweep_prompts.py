"""Tests for the versioned sweep prompt set."""

from defaultanswer.constants import DEFAULT_SWEEP_CATEGORY
from defaultanswer.services.sweep_prompts import (
    LIST_PROMPT_KEYS,
    PROMPT_SET_VERSION,
    SWEEP_PROMPTS,
    build_brand_names,
    build_domains,
    build_prompt,
    default_category,
    select_prompts,
    should_expect_list,
)


class TestPromptSet:
    def test_keys_are_unique(self):
        keys = [prompt.key for prompt in SWEEP_PROMPTS]
        assert len(keys) == len(set(keys))

    def test_list_prompts_exist(self):
        keys = {prompt.key for prompt in SWEEP_PROMPTS}
        assert LIST_PROMPT_KEYS <= keys

    def test_version(self):
        assert PROMPT_SET_VERSION == "v3-grounded"

    def test_every_template_renders_completely(self):
        for prompt in SWEEP_PROMPTS:
            rendered = build_prompt(
                prompt.template, category="Analytics", brand_name="Acme", domain="acme.com"
            )
            assert "{{" not in rendered, prompt.key


class TestSelection:
    def test_all_prompts_without_preset(self):
        assert select_prompts() == SWEEP_PROMPTS

    def test_preset_filters_by_intent(self):
        prompts = select_prompts("learning_confidence_gate_v1")
        assert [prompt.key for prompt in prompts] == ["learning_confidence_gate_v1"]

    def test_limit(self):
        assert len(select_prompts(limit=3)) == 3
        assert select_prompts("learning_v1_1", limit=2) == select_prompts("learning_v1_1")[:2]

    def test_default_category(self):
        assert default_category(None) == DEFAULT_SWEEP_CATEGORY
        assert default_category("learning_v1_1") == "AI visibility and recommendation diagnostics"

    def test_should_expect_list(self):
        assert should_expect_list("category_top_tools")
        assert not should_expect_list("ground_domain_inference")


class TestVariants:
    def test_brand_name_variants(self):
        assert build_brand_names("DefaultAnswer") == ["DefaultAnswer", "Default Answer"]
        assert build_brand_names("Acme Labs") == ["Acme Labs", "AcmeLabs"]

    def test_domains(self):
        assert build_domains("acme.com") == ["acme.com", "www.acme.com"]

    def test_build_prompt_substitutes_placeholders(self):
        rendered = build_prompt(
            "{{BRAND_NAME}} / {{BRAND}} / {{DOMAIN}} / {{CATEGORY}}",
            category="Analytics",
            brand_name="Acme",
            domain="acme.com",
        )
        assert rendered == "Acme / Acme / acme.com / Analytics"
