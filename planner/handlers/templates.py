"""Campaign template commands: browse, explain, recommend and apply."""

from __future__ import annotations

import logging

from planner.data.templates import (
    CAMPAIGN_TEMPLATES,
    CampaignTemplate,
    find_template,
    recommend_template,
)
from planner.errors import CommandError
from planner.handlers import Handler, Turn, reply
from planner.plan import create_media_plan, create_placement, recalculate_plan
from planner.schemas import AgentMessage, AgentState

logger = logging.getLogger(__name__)


def _k(amount: int) -> str:
    return f"${amount / 1000:.0f}k"


def show_templates(turn: Turn) -> AgentMessage:
    lines = [
        "**Campaign Templates**\n",
        f"I have {len(CAMPAIGN_TEMPLATES)} pre-configured templates to help you get started quickly:\n",
    ]
    for template in CAMPAIGN_TEMPLATES:
        lines.append(
            f"**{template.name}**\n"
            f"   {template.description}\n"
            f"   - Budget: {_k(template.optimal_budget)} (optimal)\n"
            f"   - Channels: {', '.join(template.channels)}\n"
        )
    lines.append('To use a template, say "use the [template name] template".')
    return reply(
        "\n".join(lines),
        [
            "Use the Retail Holiday template",
            "Tell me about the Retail Holiday template",
            "What's best for B2B?",
        ],
    )


def describe_template(template: CampaignTemplate) -> str:
    mix = "\n".join(f"- {m.channel} ({m.percentage}%): {m.rationale}" for m in template.channel_mix)
    goals = "\n".join(f"- {metric.title()}: {value:,}" for metric, value in template.default_goals.items())
    return (
        f"**{template.name}**\n\n{template.description}\n\n"
        f"**Recommended Budget:** {_k(template.min_budget)} - {_k(template.max_budget)} "
        f"(optimal: {_k(template.optimal_budget)})\n\n"
        f"**Channel Mix:**\n{mix}\n\n"
        f"**Default Goals:**\n{goals}"
    )


def template_details(turn: Turn) -> AgentMessage:
    template = find_template(turn.text) or recommend_template(turn.text)
    if template is None:
        return show_templates(turn)
    return reply(
        describe_template(template),
        [f"Use the {template.name} template", "Show all templates"],
    )


def template_recommendation(turn: Turn) -> AgentMessage:
    template = recommend_template(turn.text)
    if template is None:
        return reply(
            "Tell me a bit more about the campaign - is it retail, B2B, a brand launch, "
            "performance-focused, a local store or a mobile app?",
            ["What's best for B2B?", "Recommend a template for retail", "Show all templates"],
        )
    shown = ", ".join(template.channels[:3])
    return reply(
        f"Based on your requirements, I recommend the **{template.name}** template.\n\n"
        f"{template.description}\n\n"
        "This template is optimized with:\n"
        f"- {len(template.channel_mix)} channels including {shown}\n"
        f"- Recommended budget: {_k(template.optimal_budget)}\n"
        f"- Complexity: {template.complexity}",
        [f"Use the {template.name} template", f"Tell me about the {template.name} template"],
    )


def apply_template(turn: Turn) -> AgentMessage:
    template = find_template(turn.group() or turn.text)
    if template is None:
        raise CommandError(f'no template matches "{turn.group() or turn.text}"')

    session = turn.session
    advertiser = session.plan.campaign.advertiser if session.plan else template.name
    plan = create_media_plan(advertiser, float(template.optimal_budget))
    plan.campaign.goals = dict(template.default_goals)

    campaign = plan.campaign
    for share in template.channel_mix:
        campaign.placements.append(
            create_placement(
                share.channel,
                campaign.budget * share.percentage / 100,
                session.rng,
                campaign.start_date,
                campaign.end_date,
                flight_id=plan.active_flight_id,
            )
        )
    session.plan = recalculate_plan(plan)
    session.history.clear()
    session.context.update_focus(
        session.session_id, campaign_id=campaign.id, flight_id=plan.active_flight_id
    )
    session.transition(AgentState.REFINEMENT)
    logger.info("Applied template %s to session %s", template.id, session.session_id)

    return reply(
        f"I've started a new plan from the **{template.name}** template: "
        f"{len(campaign.placements)} placements across {', '.join(template.channels)} "
        f"for **${plan.total_spend:,.0f}** of a ${campaign.budget:,.0f} budget.\n\n"
        "Goals have been set from the template defaults. Want me to adjust anything?",
        ["Show goals", "Optimize my plan", "Export PDF"],
        agents_invoked=["Insights Agent", "Yield Agent"],
        updated_media_plan=plan.model_copy(deep=True),
    )


HANDLERS: dict[str, Handler] = {
    "show_templates": show_templates,
    "template_details": template_details,
    "template_recommendation": template_recommendation,
    "apply_template": apply_template,
}
