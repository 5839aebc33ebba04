"""Prompt construction for the external generation step."""

from __future__ import annotations

from standup.taxonomy import DEFAULT_TAXONOMY, Taxonomy

FEW_SHOT_EXAMPLES: tuple[tuple[str, str], ...] = (
    (
        "will test 117 today, done with LAA-107 and LAA-90",
        "## Completed\n"
        "- Done with LAA-107 and LAA-90\n"
        "\n"
        "## In Progress\n"
        "- Will test TASK-117 today\n"
        "\n"
        "## Support\n"
        "None",
    ),
    (
        "I fixed the login bug on JIRA 212. Got help from Priya for more than 20 min "
        "on the deploy script",
        "## Completed\n"
        "- Fixed the login bug on JIRA-212\n"
        "\n"
        "## In Progress\n"
        "None\n"
        "\n"
        "## Support\n"
        "- More than 20 minutes",
    ),
    (
        "currently investigating the cache timeouts, plan to finish #45 by end of week",
        "## Completed\n"
        "None\n"
        "\n"
        "## In Progress\n"
        "- Currently investigating the cache timeouts\n"
        "- Plan to finish TASK-45 by end of week\n"
        "\n"
        "## Support\n"
        "None",
    ),
)

DEFAULT_TEMPLATE = """You are an IT standup formatter. Turn the engineer's raw daily update into a structured report.

Raw update:
<<<
{raw_input}
>>>

Rules:
{rules}

Output format (use exactly these three headings, in this order):
## Completed
- one bullet per finished task
## In Progress
- one bullet per ongoing or planned task
## Support
- a single duration phrase

Write None under a heading that has nothing. Do not add any other headings,
commentary or explanations. Keep the user's own words; do not invent tasks.

{examples}

Now format this raw update:
<<<
{raw_input}
>>>
"""


def _quoted(words: tuple[str, ...]) -> str:
    return ", ".join(f'"{w}"' for w in words)


def render_rules(taxonomy: Taxonomy = DEFAULT_TAXONOMY) -> str:
    """State the classification taxonomy as numbered natural-language rules."""
    prefixes = ", ".join(taxonomy.ticket_prefixes)
    rules = [
        "Completed: a task is completed when the update says it is "
        f"{_quoted(taxonomy.completed)}, or describes it in the past tense.",
        "In Progress: a task is in progress when the update uses "
        f"{_quoted(taxonomy.in_progress)}, or an ongoing -ing form "
        '("I am deploying").',
        "If a task mentions both a finished action and a future or ongoing one, "
        "put it under In Progress.",
        "If you cannot tell, put it under In Progress. Never put a task under "
        "Completed without a clear sign it is finished.",
        "Support is time spent receiving help "
        f"({_quoted(taxonomy.support)}). Report only ONE duration, copied exactly "
        f"with its qualifier ({_quoted(taxonomy.duration_modifiers)}). Spell the "
        'unit out ("min" becomes "minutes", "hr" becomes "hours") and never '
        "change or round the number.",
        f"Keep every ticket reference. Write tickets as PREFIX-NUMBER ({prefixes}); "
        "a bare number or #number becomes TASK-NUMBER.",
        "Never list the same ticket twice in one section. Use at most five "
        "bullets per section.",
        "Drop leading \"I\", \"I'm\", \"I have\", \"and\", \"also\" and start each "
        "bullet with a capital letter.",
    ]
    return "\n".join(f"{i}. {rule}" for i, rule in enumerate(rules, 1))


def render_examples(examples: tuple[tuple[str, str], ...] = FEW_SHOT_EXAMPLES) -> str:
    """Render worked input/output pairs."""
    blocks = []
    for i, (given, expected) in enumerate(examples, 1):
        blocks.append(f"Example {i}\nUpdate: {given}\nReport:\n{expected}")
    return "\n\n".join(blocks)


def build_prompt(
    raw_input: str,
    taxonomy: Taxonomy = DEFAULT_TAXONOMY,
    template: str = "",
) -> str:
    """
    Build the generation prompt for one raw update.

    The raw update appears verbatim at both the start and the end of the prompt.

    Args:
        raw_input: The user's unstructured update
        taxonomy: Keyword tables the rules are rendered from
        template: Optional override; must contain ``{raw_input}`` and may use
            ``{rules}`` and ``{examples}``

    Returns:
        The prompt text
    """
    template = template or DEFAULT_TEMPLATE
    return template.format(
        raw_input=raw_input,
        rules=render_rules(taxonomy),
        examples=render_examples(),
    )
