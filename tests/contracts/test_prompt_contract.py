from edu_assist.agent import prompts
from edu_assist.agent.prompts import SYSTEM_PROMPT


def test_system_prompt_requires_merging_related_topics() -> None:
    assert "ONE call with all topics merged" in SYSTEM_PROMPT
    assert 'topic="A, B, and C"' in SYSTEM_PROMPT
    assert "Never issue parallel calls of the same tool" in SYSTEM_PROMPT


def test_system_prompt_requires_search_before_generation() -> None:
    assert "Always search the knowledge base before generating content" in SYSTEM_PROMPT
    assert "cite the source documents" in SYSTEM_PROMPT
    assert "Only call save_content when the user explicitly asks" in SYSTEM_PROMPT


def test_prompt_builders_are_deterministic() -> None:
    first = prompts.build_learning_path_prompt("Genetics", "DNA is a double helix.", "beginner", "advanced", "one_semester", 6)
    second = prompts.build_learning_path_prompt("Genetics", "DNA is a double helix.", "beginner", "advanced", "one_semester", 6)

    assert first == second
    assert "DNA is a double helix." in first
    assert "progress from beginner to advanced level" in first
    assert "Consider the one_semester timeframe" in first


def test_context_block_only_when_context_present() -> None:
    with_context = prompts.build_misconceptions_prompt("Fractions", "middle_school", "Students add denominators.")
    without_context = prompts.build_misconceptions_prompt("Fractions", "middle_school", "")

    assert "Use this context from the knowledge base about common errors:" in with_context
    assert "Students add denominators." in with_context
    assert "knowledge base" not in without_context
    assert "Identify 3-5 common misconceptions" in without_context


def test_objectives_prompt_names_blooms_taxonomy() -> None:
    prompt = prompts.build_objectives_prompt("Osmosis", "", 2, "high_school")

    assert prompt.startswith('You are an expert educator. Generate 2 clear, measurable learning objectives for the topic: "Osmosis"')
    assert "Bloom's Taxonomy" in prompt
    assert "Appropriate for high_school level students" in prompt
    assert prompt.endswith("Return ONLY the numbered list of objectives, nothing else.")


def test_misconception_search_query_prefixes_error_terms() -> None:
    assert prompts.misconception_search_query("photosynthesis") == (
        "common misconceptions errors mistakes misunderstandings students photosynthesis"
    )
