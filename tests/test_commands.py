"""Unit tests for CommandRegistry: pattern relevance plus the eligibility gate."""

import pytest

from planner.commands import (
    ALL_COMMANDS,
    CATEGORY_REQUIREMENTS,
    CategoryRequirements,
    CommandCategory,
    CommandRegistry,
    _command,
    registry,
)
from planner.schemas import WindowContext

NO_CONTEXT = WindowContext()
PLAN_CONTEXT = WindowContext(has_media_plan=True, has_campaign=True, has_flight=True)


# ---------------------------------------------------------------------------
# Table shape
# ---------------------------------------------------------------------------


def test_command_ids_are_unique():
    """No two commands share an id."""
    ids = [c.id for c in ALL_COMMANDS]
    assert len(ids) == len(set(ids))


def test_every_category_has_requirements():
    """Each category has an entry in the requirements table."""
    assert set(CATEGORY_REQUIREMENTS) == set(CommandCategory)


def test_commands_sorted_by_priority():
    """The registry keeps commands in descending priority."""
    priorities = [c.priority for c in registry.commands]
    assert priorities == sorted(priorities, reverse=True)


# ---------------------------------------------------------------------------
# find_matching_command()
# ---------------------------------------------------------------------------


def test_higher_priority_wins():
    """'pause underperformers' also matches pause_placement's catch-all."""
    match = registry.find_matching_command("pause underperformers")
    assert match.command.id == "pause_underperformers"

    ids = [m.command.id for m in registry.find_all_matching_commands("pause underperformers")]
    assert ids.index("pause_underperformers") < ids.index("pause_placement")


def test_equal_priority_keeps_declaration_order():
    """Ties go to whichever command was declared first."""
    first = _command("first", "First", CommandCategory.HELP, [r"hello"], 50)
    second = _command("second", "Second", CommandCategory.HELP, [r"hello"], 50)
    assert CommandRegistry([first, second]).find_matching_command("hello").command.id == "first"
    assert CommandRegistry([second, first]).find_matching_command("hello").command.id == "second"


def test_capture_group():
    """The first capture group comes back through match.group."""
    match = registry.find_matching_command("Create plan for Nike ($500k)")
    assert match.command.id == "create_campaign"
    assert match.group(1) == "Nike ($500k)"


def test_group_beyond_pattern_groups_is_none():
    """Asking for a group the pattern lacks returns None."""
    match = registry.find_matching_command("export pdf")
    assert match.command.id == "export_pdf"
    assert match.group(1) is None


def test_no_match():
    """Small talk matches no command, eligible or not."""
    assert registry.find_matching_command("the weather is nice") is None
    assert registry.find_eligible_command("the weather is nice", PLAN_CONTEXT) is None


@pytest.mark.parametrize(
    ("text", "command_id"),
    [
        ("switch to left", "layout_switch"),
        ("undo last 2", "undo"),
        ("set goal impressions to 5m", "set_goal"),
        ("add 5 ctv placements on espn", "add_batch_placements"),
        ("Add TV", "add_channel"),
        ("add Jimmy Kimmel Live", "add_show"),
        ("Set budget to $1M", "change_budget"),
        ("switch to time decay model", "change_attribution_model"),
        ("export ppt", "export_ppt"),
    ],
)
def test_known_phrases(text, command_id):
    """Example phrases route to their command."""
    assert registry.find_matching_command(text).command.id == command_id


# ---------------------------------------------------------------------------
# is_command_eligible()
# ---------------------------------------------------------------------------


def test_placement_requires_flight():
    """Placement commands are refused without an open flight."""
    command = registry.get("pause_placement")
    ctx = WindowContext(has_media_plan=True, has_campaign=True, has_flight=False)
    result = registry.is_command_eligible(command, ctx)
    assert result.eligible is False
    assert "flight context" in result.reason


def test_media_plan_checked_before_campaign():
    """The media plan refusal wins when several requirements fail."""
    result = registry.is_command_eligible(registry.get("optimize_plan"), NO_CONTEXT)
    assert result.reason == (
        "This command requires an active media plan. Please create or select a campaign first."
    )


def test_campaign_requirement():
    """Goal commands need a campaign context."""
    result = registry.is_command_eligible(registry.get("set_goal"), WindowContext(has_media_plan=True))
    assert result.reason == "This command requires a campaign context. Please select or create a campaign."


def test_window_commands_need_open_windows():
    """Managing windows needs one open; opening one does not."""
    result = registry.is_command_eligible(registry.get("tile_windows"), PLAN_CONTEXT)
    assert result.reason == "There are no windows open to manage."
    assert registry.is_command_eligible(registry.get("open_window"), NO_CONTEXT).eligible is True


def test_window_type_requirement():
    """A category can be limited to certain window types."""
    command = _command("report_only", "Report Only", CommandCategory.VIEW, [r"x"], 10)
    custom = CommandRegistry(
        [command],
        requirements={CommandCategory.VIEW: CategoryRequirements(required_window_types=("report",))},
    )
    refused = custom.is_command_eligible(command, WindowContext(window_type="chat"))
    assert refused.reason == "This command is only available in report windows."
    assert custom.is_command_eligible(command, WindowContext(window_type="report")).eligible is True


def test_unrestricted_categories_always_eligible():
    """Unrestricted categories pass with no context at all."""
    for command_id in ("help", "start_over", "undo", "show_templates", "inventory_query"):
        assert registry.is_command_eligible(registry.get(command_id), NO_CONTEXT).eligible is True


# ---------------------------------------------------------------------------
# find_eligible_command()
# ---------------------------------------------------------------------------


def test_eligible_skips_refused_higher_priority():
    """focus_window outranks show_templates but needs open windows."""
    assert registry.find_matching_command("show templates").command.id == "focus_window"

    found = registry.find_eligible_command("show templates", NO_CONTEXT)
    assert found.eligibility.eligible is True
    assert found.match.command.id == "show_templates"


def test_eligible_falls_back_to_first_refusal():
    """With nothing eligible the first refused match is returned."""
    found = registry.find_eligible_command("pause row 2", WindowContext(has_media_plan=True))
    assert found.match.command.id == "pause_placement"
    assert found.eligibility.eligible is False
    assert "flight" in found.eligibility.reason
