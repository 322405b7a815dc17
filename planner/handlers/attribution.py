"""Attribution dashboard commands.

Replies steer the UI (dashboard tabs, pop-outs, model switches) through
action tags and explain attribution concepts in the chat.
"""

from __future__ import annotations

import re

from planner.handlers import Handler, Turn, reply
from planner.schemas import AgentAction, AgentMessage


MODEL_NAMES: dict[str, str] = {
    "FIRST_TOUCH": "First Touch",
    "LAST_TOUCH": "Last Touch",
    "LINEAR": "Linear",
    "TIME_DECAY": "Time Decay",
    "POSITION_BASED": "Position Based",
}


def _model_key(raw: str | None) -> str:
    """"time-decay", "Time Decay" and "timedecay" all become "TIME_DECAY"."""
    if not raw:
        return "LINEAR"
    key = re.sub(r"[- ]", "", raw.upper())
    for model in MODEL_NAMES:
        if model.replace("_", "") == key:
            return model
    return "LINEAR"


MODEL_ACTIONS: dict[str, AgentAction] = {
    "FIRST_TOUCH": AgentAction.SET_ATTRIBUTION_MODEL_FIRST_TOUCH,
    "LAST_TOUCH": AgentAction.SET_ATTRIBUTION_MODEL_LAST_TOUCH,
    "LINEAR": AgentAction.SET_ATTRIBUTION_MODEL_LINEAR,
    "TIME_DECAY": AgentAction.SET_ATTRIBUTION_MODEL_TIME_DECAY,
    "POSITION_BASED": AgentAction.SET_ATTRIBUTION_MODEL_POSITION_BASED,
}

MODEL_SUMMARIES: dict[str, str] = {
    "FIRST_TOUCH": "This model gives 100% credit to the first interaction. It's useful for understanding "
    "which channels introduce customers to your brand.",
    "LAST_TOUCH": "This model gives 100% credit to the last interaction before conversion. It highlights "
    "which channels close the deal.",
    "LINEAR": "This model distributes credit equally across all touchpoints. It values every interaction "
    "in the customer journey.",
    "TIME_DECAY": "This model gives more credit to recent interactions using a 7-day half-life. Recent "
    "touchpoints are weighted more heavily.",
    "POSITION_BASED": "This model gives 40% credit to the first touch, 40% to the last, and distributes "
    "20% among middle interactions.",
}

MODEL_EXPLANATIONS: dict[str, str] = {
    "FIRST_TOUCH": (
        "**First Touch Attribution**\n\nThis model assigns 100% of the conversion credit to the first "
        "interaction a customer has with your brand.\n\n**When to use:**\n"
        "- Measuring brand awareness effectiveness\n"
        "- Understanding which channels introduce new customers\n"
        "- Top-of-funnel optimization\n\n"
        "**Example:** If a customer sees a Display ad, then clicks a Search ad, then converts via Email, "
        "Display gets 100% credit."
    ),
    "LAST_TOUCH": (
        "**Last Touch Attribution**\n\nThis model assigns 100% of the conversion credit to the final "
        "interaction before conversion.\n\n**When to use:**\n"
        "- Performance-focused campaigns\n"
        "- When you need to optimize for immediate conversions\n"
        "- Simple ROI calculations\n\n"
        "**Example:** If a customer sees a Display ad, then clicks a Search ad, then converts via Email, "
        "Email gets 100% credit."
    ),
    "LINEAR": (
        "**Linear Attribution**\n\nThis model distributes conversion credit equally across all "
        "touchpoints in the customer journey.\n\n**When to use:**\n"
        "- When all interactions are considered equally valuable\n"
        "- For a balanced view of the full funnel\n"
        "- Understanding multi-channel journeys\n\n"
        "**Example:** If there are 4 touchpoints, each receives 25% credit."
    ),
    "TIME_DECAY": (
        "**Time Decay Attribution**\n\nThis model gives more credit to touchpoints closer to the "
        "conversion, using a half-life decay (typically 7 days).\n\n**When to use:**\n"
        "- Short sales cycles\n"
        "- When recent interactions likely have more influence\n"
        "- B2C with quick purchase decisions\n\n"
        "**Example:** A touchpoint 1 day before conversion gets more credit than one from 2 weeks ago."
    ),
    "POSITION_BASED": (
        "**Position-Based Attribution** (U-Shaped)\n\nThis model gives 40% credit to the first touch, "
        "40% to the last touch, and distributes the remaining 20% among middle interactions.\n\n"
        "**When to use:**\n"
        "- Valuing both awareness and conversion\n"
        "- When first impression and final decision are key moments\n"
        "- Balanced multi-touch analysis\n\n"
        "**Example:** In a 5-touchpoint journey, first and last each get 40%, and the 3 middle "
        "touchpoints share 20%."
    ),
}

MODEL_COMPARISON = (
    "**Attribution Model Comparison**\n\n"
    "| Model | Best For | Limitation |\n"
    "|-------|----------|------------|\n"
    "| **First Touch** | Awareness campaigns | Ignores conversion-driving channels |\n"
    "| **Last Touch** | Performance campaigns | Ignores awareness-building |\n"
    "| **Linear** | Balanced view | May overvalue minor touchpoints |\n"
    "| **Time Decay** | Short sales cycles | May undervalue early awareness |\n"
    "| **Position Based** | Balanced awareness + conversion | Arbitrary 40/40/20 split |\n\n"
    "For most campaigns, I recommend starting with **Linear** for a balanced view, then comparing with "
    "**Position Based** to see how first/last touch channels differ."
)

POPOUT_ACTIONS: dict[str, AgentAction] = {
    "overview": AgentAction.POPOUT_ATTRIBUTION_OVERVIEW,
    "incrementality": AgentAction.POPOUT_ATTRIBUTION_INCREMENTALITY,
    "time": AgentAction.POPOUT_ATTRIBUTION_TIME,
    "frequency": AgentAction.POPOUT_ATTRIBUTION_FREQUENCY,
    "model": AgentAction.POPOUT_ATTRIBUTION_MODELS,
}

_COMPARE_RE = re.compile(r"difference|compare", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Dashboard navigation
# ---------------------------------------------------------------------------


def _opener(action: AgentAction, content: str, suggestions: list[str]) -> Handler:
    def handle(turn: Turn) -> AgentMessage:
        return reply(content, suggestions, action=action)

    return handle


open_attribution = _opener(
    AgentAction.OPEN_ATTRIBUTION,
    "Opening the Attribution dashboard.",
    ["Compare models", "Show incrementality", "View time analysis"],
)
open_attribution_overview = _opener(
    AgentAction.OPEN_ATTRIBUTION_OVERVIEW,
    "Opening Attribution Overview with channel breakdown and conversion paths.",
    ["Change model", "View time analysis", "Compare models"],
)
open_incrementality = _opener(
    AgentAction.OPEN_ATTRIBUTION_INCREMENTALITY,
    "Opening Incrementality Testing. Here you can set up holdout tests to measure true channel lift.",
    ["Create new test", "Explain incrementality", "View overview"],
)
open_time_analysis = _opener(
    AgentAction.OPEN_ATTRIBUTION_TIME,
    "Opening Time Analysis. This shows how long it takes users to convert after their first touchpoint.",
    ["View frequency", "Compare models", "Show overview"],
)
open_frequency_analysis = _opener(
    AgentAction.OPEN_ATTRIBUTION_FREQUENCY,
    "Opening Touchpoint Frequency analysis. This shows how many interactions users typically have "
    "before converting.",
    ["View time analysis", "Show overview", "Compare models"],
)
open_model_comparison = _opener(
    AgentAction.OPEN_ATTRIBUTION_MODELS,
    "Opening Model Comparison. Compare how different attribution models allocate credit across your channels.",
    ["Explain models", "View overview", "Show incrementality"],
)
view_test_results = _opener(
    AgentAction.OPEN_ATTRIBUTION_INCREMENTALITY,
    "Opening the Incrementality Testing panel to view your test results.",
    ["Create new test", "Explain lift", "View overview"],
)
show_conversion_paths = _opener(
    AgentAction.OPEN_ATTRIBUTION_OVERVIEW,
    "Opening Attribution Overview to show conversion paths.\n\n"
    "The **Sankey diagram** shows how customers flow through channels, and you'll see the "
    "**top conversion paths** that lead to purchases.",
    ["View time analysis", "View frequency", "Compare models"],
)


def popout_attribution_view(turn: Turn) -> AgentMessage:
    view = (turn.group() or "overview").lower()
    return reply(
        f"Opening {view} in a new window. You can now compare this view side-by-side with other windows.",
        ["Pop out another view", "Tile windows", "Show overview"],
        action=POPOUT_ACTIONS.get(view, AgentAction.POPOUT_ATTRIBUTION_OVERVIEW),
        action_target=view,
    )


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


def change_attribution_model(turn: Turn) -> AgentMessage:
    model = _model_key(turn.group())
    return reply(
        f"Switched to **{MODEL_NAMES[model]}** attribution model.\n\n{MODEL_SUMMARIES[model]}",
        ["Compare models", "Show overview", "Explain model differences"],
        action=MODEL_ACTIONS[model],
    )


def explain_attribution_model(turn: Turn) -> AgentMessage:
    if _COMPARE_RE.search(turn.text):
        return reply(MODEL_COMPARISON, ["Compare models", "Switch to linear", "Show model comparison"])
    model = _model_key(turn.group())
    return reply(
        MODEL_EXPLANATIONS[model],
        [f"Switch to {MODEL_NAMES[model].lower()}", "Compare all models", "Show overview"],
    )


# ---------------------------------------------------------------------------
# Incrementality and analysis
# ---------------------------------------------------------------------------


def create_incrementality_test(turn: Turn) -> AgentMessage:
    channel = turn.group()
    if channel:
        return reply(
            f"I'll help you set up an incrementality test for **{channel}**.\n\n"
            f"To measure true lift, we'll create a holdout group that doesn't see {channel} ads. I recommend:\n"
            "- **Test duration:** 2-4 weeks for statistical significance\n"
            "- **Holdout size:** 10-20% of your audience\n\n"
            "Opening the test creation form...",
            ["Start test", "Explain incrementality", "View existing tests"],
            action=AgentAction.CREATE_INCREMENTALITY_TEST,
            action_target=channel,
        )
    return reply(
        "Let's set up an incrementality test to measure true channel lift.\n\n"
        "I'll open the test creation form where you can:\n"
        "1. Select the channel to test\n"
        "2. Define test and control group parameters\n"
        "3. Set the test duration\n\n"
        "What channel would you like to test?",
        ["Test Search", "Test Social", "Test Display", "Explain incrementality"],
        action=AgentAction.OPEN_INCREMENTALITY_FORM,
    )


def analyze_channel_attribution(turn: Turn) -> AgentMessage:
    target = (turn.group() or "").lower()
    if target == "opener":
        return reply(
            "To find your best **opener** channels, let's look at **First Touch** attribution. Channels "
            "that introduce customers to your brand will show highest credit.\n\nOpening the Attribution Overview...",
            ["Switch to first touch", "Switch to last touch", "Compare models"],
            action=AgentAction.OPEN_ATTRIBUTION_OVERVIEW,
        )
    if target == "closer":
        return reply(
            "To find your best **closer** channels, let's look at **Last Touch** attribution. Channels "
            "that drive final conversions will show highest credit.\n\nOpening the Attribution Overview...",
            ["Switch to first touch", "Switch to last touch", "Compare models"],
            action=AgentAction.OPEN_ATTRIBUTION_OVERVIEW,
        )
    if target and target != "performer":
        channel = turn.group()
        return reply(
            f"Analyzing **{channel}** performance across attribution models...\n\n"
            f"I'll show you how {channel} performs as both an opener (first touch) and closer (last touch), "
            "along with its overall contribution.",
            ["Compare models", "View conversion paths", "Show overview"],
            action=AgentAction.ANALYZE_CHANNEL,
            action_target=channel,
        )
    return reply(
        "Opening Attribution Overview to analyze channel performance.",
        ["Which channel is best opener", "Which channel is best closer", "Compare models"],
        action=AgentAction.OPEN_ATTRIBUTION_OVERVIEW,
    )


def attribution_insights(turn: Turn) -> AgentMessage:
    return reply(
        "Analyzing your attribution data for insights...\n\n**Key Recommendations:**\n\n"
        '1. **Compare first-touch vs last-touch** to identify if you have dedicated "opener" and "closer" channels\n'
        "2. **Check time-to-conversion** - if most conversions happen quickly, prioritize last-touch channels\n"
        "3. **Review touchpoint frequency** - high-frequency paths suggest the need for multi-channel presence\n"
        "4. **Run incrementality tests** on your top-spending channels to validate true lift\n\n"
        "Would you like me to dive deeper into any of these areas?",
        ["Compare models", "View time analysis", "Create incrementality test", "Show overview"],
        action=AgentAction.SHOW_ATTRIBUTION_INSIGHTS,
    )


def explain_incrementality(turn: Turn) -> AgentMessage:
    return reply(
        "**Incrementality Testing** (also called Lift Testing)\n\n"
        "Incrementality measures the **true causal impact** of your marketing by comparing:\n"
        "- **Test Group:** Users who see your ads\n"
        "- **Control Group:** Users who don't see your ads (holdout)\n\n"
        "**Why it matters:**\n"
        "Attribution models show correlation, but incrementality shows causation. A channel might get high "
        "attribution credit, but some of those conversions would have happened anyway.\n\n"
        "**Key metrics:**\n"
        "- **Lift:** The % increase in conversions from the test group vs control\n"
        "- **Confidence:** Statistical certainty (aim for >90%)\n"
        "- **iROAS:** Incremental Return on Ad Spend\n\n"
        "A good incrementality test typically runs 2-4 weeks with a 10-20% holdout.",
        ["Create incrementality test", "View test results", "Open incrementality panel"],
    )


def attribution_help(turn: Turn) -> AgentMessage:
    return reply(
        "**Attribution Analysis Help**\n\n"
        "Here's what you can do in the Attribution dashboard:\n\n"
        "**Overview**\n"
        "- View channel attribution breakdown\n"
        "- See conversion path visualizations (Sankey diagram)\n"
        "- Switch between 5 attribution models\n\n"
        "**Incrementality Testing**\n"
        "- Set up A/B holdout tests\n"
        "- Measure true channel lift\n"
        "- Validate attribution assumptions\n\n"
        "**Analysis Views**\n"
        "- Time Analysis: How long until conversion\n"
        "- Frequency: Touchpoints before conversion\n"
        "- Model Comparison: Compare all models side-by-side\n\n"
        "**Try saying:**\n"
        '- "Compare attribution models"\n'
        '- "Which channel is the best opener?"\n'
        '- "Set up a holdout test for Search"\n'
        '- "Switch to time decay model"',
        ["Show overview", "Compare models", "Explain incrementality", "Create test"],
    )


HANDLERS: dict[str, Handler] = {
    "open_attribution": open_attribution,
    "open_attribution_overview": open_attribution_overview,
    "open_incrementality": open_incrementality,
    "open_time_analysis": open_time_analysis,
    "open_frequency_analysis": open_frequency_analysis,
    "open_model_comparison": open_model_comparison,
    "popout_attribution_view": popout_attribution_view,
    "change_attribution_model": change_attribution_model,
    "explain_attribution_model": explain_attribution_model,
    "create_incrementality_test": create_incrementality_test,
    "view_test_results": view_test_results,
    "analyze_channel_attribution": analyze_channel_attribution,
    "show_conversion_paths": show_conversion_paths,
    "attribution_insights": attribution_insights,
    "explain_incrementality": explain_incrementality,
    "attribution_help": attribution_help,
}
