"""Command registry: priority-ordered, pattern-guarded command table.

Two-phase resolution:
1. Relevance: a command matches when any of its patterns matches, tried
   in declaration order. The table is sorted once by descending priority
   (stable, so equal priorities keep declaration order) and the first
   command to match wins.
2. Availability: each category carries fixed requirements (media plan,
   campaign, flight, window types, open windows) checked against the
   caller's WindowContext.

``find_eligible_command`` combines both. When nothing eligible matches,
it returns the best match with the reason it was refused, so the
caller can explain instead of silently falling through.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import StrEnum

from planner.schemas import WindowContext

logger = logging.getLogger(__name__)


class CommandCategory(StrEnum):
    LAYOUT = "LAYOUT"
    NAVIGATION = "NAVIGATION"
    CAMPAIGN_SETUP = "CAMPAIGN_SETUP"
    BUDGET = "BUDGET"
    CHANNEL = "CHANNEL"
    PLACEMENT = "PLACEMENT"
    OPTIMIZATION = "OPTIMIZATION"
    FORECASTING = "FORECASTING"
    GOAL = "GOAL"
    TEMPLATE = "TEMPLATE"
    CREATIVE = "CREATIVE"
    EXPORT = "EXPORT"
    VIEW = "VIEW"
    UNDO_REDO = "UNDO_REDO"
    HELP = "HELP"
    INVENTORY = "INVENTORY"
    WINDOW_MANAGEMENT = "WINDOW_MANAGEMENT"
    ATTRIBUTION = "ATTRIBUTION"
    SESSION = "SESSION"


@dataclass(frozen=True)
class CommandDefinition:
    id: str
    name: str
    category: CommandCategory
    patterns: tuple[re.Pattern[str], ...]
    priority: int
    description: str = ""
    examples: tuple[str, ...] = ()


@dataclass(frozen=True)
class CommandMatch:
    command: CommandDefinition
    match: re.Match[str]
    confidence: float = 1.0

    def group(self, index: int = 1) -> str | None:
        """Capture group ``index`` of the winning pattern, if it has one."""
        if index > (self.match.re.groups or 0):
            return None
        return self.match.group(index)


@dataclass(frozen=True)
class EligibilityResult:
    eligible: bool
    reason: str | None = None


@dataclass(frozen=True)
class CategoryRequirements:
    requires_media_plan: bool = False
    requires_campaign: bool = False
    requires_flight: bool = False
    required_window_types: tuple[str, ...] = field(default=())


@dataclass(frozen=True)
class EligibleMatch:
    match: CommandMatch
    eligibility: EligibilityResult


def _command(
    id: str,
    name: str,
    category: CommandCategory,
    patterns: list[str],
    priority: int,
    description: str = "",
    examples: tuple[str, ...] = (),
) -> CommandDefinition:
    return CommandDefinition(
        id=id,
        name=name,
        category=category,
        patterns=tuple(re.compile(p, re.IGNORECASE) for p in patterns),
        priority=priority,
        description=description,
        examples=examples,
    )


C = CommandCategory

# ---------------------------------------------------------------------------
# Command table
# ---------------------------------------------------------------------------

_MODEL = r"(first[- ]?touch|last[- ]?touch|linear|time[- ]?decay|position[- ]?based)"

LAYOUT_COMMANDS = [
    _command(
        "layout_switch", "Switch Layout", C.LAYOUT,
        [
            r"(?:sw[it]+ch|change|set|move|go)(?:\s+to)?\s+(left|right|bottom)",
            r"(?:switch to|change to|set layout to|layout)\s+(left|right|bottom)",
        ],
        100, "Move the chat panel", ("switch to left", "layout bottom"),
    ),
]

SESSION_COMMANDS = [
    _command(
        "start_over", "Start Over", C.SESSION,
        [r"^start over\b", r"^reset$", r"\bstart (?:a )?new (?:plan|campaign)\b", r"^new plan$"],
        100, "Discard the current plan and start again", ("start over", "Start New Campaign"),
    ),
    _command(
        "confirm_pending", "Confirm Pending Action", C.SESSION,
        [r"^apply pending changes?$", r"^confirm pending(?: action)?$"],
        96, "Apply the change awaiting confirmation",
    ),
    _command(
        "decline_pending", "Decline Pending Action", C.SESSION,
        [r"^discard pending changes?$", r"^cancel pending(?: action)?$"],
        96, "Drop the change awaiting confirmation",
    ),
    _command(
        "talk_to_human", "Talk To A Specialist", C.SESSION,
        [
            r"talk to (?:a )?(?:human|person|specialist)",
            r"speak (?:to|with) (?:a )?(?:human|person|someone|specialist)",
            r"^connect me\b",
        ],
        96, "Hand the conversation to a media specialist",
    ),
    _command(
        "finish_plan", "Finish Plan", C.SESSION,
        [r"^looks good\b", r"^(?:i'm |we're |all )?done\b", r"\bfinali[sz]e\b"],
        60, "Mark the plan as complete", ("Looks good",),
    ),
]

HELP_COMMANDS = [
    _command(
        "help", "Help", C.HELP,
        [r"^help$", r"what can you do", r"help me", r"suggestions?"],
        90, "Show what the assistant can do", ("help",),
    ),
]

UNDO_REDO_COMMANDS = [
    _command(
        "undo", "Undo", C.UNDO_REDO,
        [r"^undo$", r"undo last\s+(\d+)", r"undo\s+(.+)", r"revert", r"go back"],
        95, "Undo the last change", ("undo", "undo last 2"),
    ),
    _command("redo", "Redo", C.UNDO_REDO, [r"^redo$", r"redo last"], 95, "Redo the last undone change"),
    _command(
        "show_history", "Show History", C.UNDO_REDO,
        [r"show history", r"action history", r"recent actions"],
        85, "List recent changes",
    ),
]

OPTIMIZATION_COMMANDS = [
    _command(
        "pause_underperformers", "Pause Underperformers", C.OPTIMIZATION,
        [r"pause\s+(?:all\s+)?(?:the\s+)?underperform"],
        82, "Propose pausing low-ROAS placements", ("Pause underperformers",),
    ),
    _command(
        "scale_winners", "Scale Winners", C.OPTIMIZATION,
        [r"scale\s+(?:up\s+)?(?:the\s+)?(?:my\s+)?winners?"],
        82, "Propose +25% budget on high-ROAS placements", ("Scale winners",),
    ),
    _command(
        "apply_all", "Apply All Recommendations", C.OPTIMIZATION,
        [r"apply all", r"apply recommendations?"],
        82, "Apply every pause and scale recommendation",
    ),
    _command("quick_wins", "Quick Wins", C.OPTIMIZATION, [r"quick win"], 80, "Easy, high-impact actions"),
    _command("critical_issues", "Critical Issues", C.OPTIMIZATION, [r"critical issue"], 80, "High-priority problems"),
    _command(
        "growth_opportunities", "Growth Opportunities", C.OPTIMIZATION,
        [r"growth opportunit", r"scale.*winner"],
        80, "Placements worth scaling",
    ),
    _command(
        "plan_score", "Plan Score", C.OPTIMIZATION,
        [r"plan\s+score", r"plan\s+health", r"plan\s+grade"],
        75, "Plan health check",
    ),
    _command(
        "shift_budget", "Shift Budget", C.OPTIMIZATION,
        [r"shift\s+budget\s+to\s+(\w+)", r"boost\s+(\w+)", r"shift\s+budget"],
        72, "Increase a channel's placements by 20%", ("Shift budget to Search",),
    ),
    _command(
        "optimize_plan", "Optimize Plan", C.OPTIMIZATION,
        [
            r"optimi[sz]e",
            r"what.*wrong",
            r"what.*issue",
            r"improvement",
            r"opportunities",
            r"detailed report",
            r"full report",
        ],
        70, "Full optimization report", ("Optimize my plan", "Optimize for Reach"),
    ),
    _command(
        "analyze_performance", "Analyze Performance", C.OPTIMIZATION,
        [r"show\s+(?:me\s+)?(?:the\s+)?performance", r"analy[sz]e\s+performance", r"how.*performing"],
        68, "Performance summary by channel", ("Show Performance",),
    ),
]

FORECASTING_COMMANDS = [
    _command(
        "forecast", "Forecast Campaign", C.FORECASTING,
        [r"forecast", r"predict.*(?:performance|campaign)", r"will we hit"],
        75, "Percentile forecast of impressions, clicks and conversions",
    ),
    _command("seasonal_impact", "Seasonal Impact", C.FORECASTING, [r"seasonal.*(?:impact|factor)"], 75),
    _command("audience_overlap", "Audience Overlap", C.FORECASTING, [r"audience overlap", r"overlap.*reach"], 75),
]

GOAL_COMMANDS = [
    _command("show_goals", "Show Goals", C.GOAL, [r"show.*goal", r"list.*goal", r"what are.*goal"], 80),
    _command(
        "set_goal", "Set Goal", C.GOAL,
        [
            r"set\s+goal",
            r"update\s+goal",
            r"change\s+goal",
            r"increase\s+(?:reach|impression|conversion|click)",
        ],
        80, "Set a numeric campaign goal", ("set goal impressions to 5m",),
    ),
]

TEMPLATE_COMMANDS = [
    _command(
        "show_templates", "Show Templates", C.TEMPLATE,
        [r"show.*template", r"list.*template", r"browse.*template", r"what.*template", r"available.*template"],
        75,
    ),
    _command(
        "template_details", "Template Details", C.TEMPLATE,
        [r"tell me about.*template", r"what.*(?:retail|b2b|brand|performance|local|mobile).*template"],
        75,
    ),
    _command("template_recommendation", "Template Recommendation", C.TEMPLATE, [r"best for", r"recommend.*template"], 75),
    _command(
        "apply_template", "Apply Template", C.TEMPLATE,
        [r"(?:use|apply|start from)\s+(?:the\s+)?(.+?)\s+template"],
        76, "Start a plan from a template", ("use the retail holiday template",),
    ),
]

CREATIVE_COMMANDS = [
    _command("upload_creative", "Upload Creative", C.CREATIVE, [r"upload.*creative", r"upload"], 70),
    _command("assign_creative", "Assign Creative", C.CREATIVE, [r"assign.*creative", r"assign"], 70),
    _command(
        "winning_creative", "Winning Creative", C.CREATIVE,
        [r"winning.*creative", r"best performing.*creative"],
        70,
    ),
]

BUDGET_COMMANDS = [
    _command(
        "budget_allocation", "Budget Allocation", C.BUDGET,
        [r"how.*allocate", r"split.*budget", r"distribute.*budget", r"spread.*budget"],
        70, "Recommend a per-channel allocation",
    ),
    _command(
        "change_budget", "Change Budget", C.BUDGET,
        [r"budget.*\$?[\d,]+[kKmM]?", r"set budget"],
        65, "Change the campaign budget", ("Set budget to $1M",),
    ),
]

_ADD_CHANNEL_NAMES = (
    "search|social|display|tv|radio|ooh|espn|cbs|nbc|abc|fox|cnn|msnbc|hgtv|discovery|tlc|bravo|tnt"
    "|netflix|hulu|amazon|disney|hbo|apple|paramount|peacock|youtube|roku|tubi|pluto|f1|dazn|sling"
    "|nfl|nba|mlb|nhl"
)

CHANNEL_COMMANDS = [
    _command(
        "add_batch_placements", "Add Batch Placements", C.CHANNEL,
        [
            r"(?:add|create|make|generate)\s+(\d+)\s+"
            r"(social|display|tv|ctv|connected tv|linear tv|search|audio|video|native)"
        ],
        75, "Add several placements at once", ("add 5 ctv placements on espn",),
    ),
    _command(
        "add_channel", "Add Channel/Placement", C.CHANNEL,
        [rf"add\s+({_ADD_CHANNEL_NAMES})\b"],
        65, "Add a placement for a channel or network", ("Add TV", "add espn"),
    ),
    _command("add_show", "Add Show", C.CHANNEL, [r"^add\s+(.+)$"], 50, "Add a placement for a named show"),
]

PLACEMENT_COMMANDS = [
    _command(
        "pause_placement", "Pause Placement", C.PLACEMENT,
        [r"pause\s+(?:row\s+)?(\d+)", r"pause\s+(.+)"],
        70,
    ),
    _command(
        "resume_placement", "Resume Placement", C.PLACEMENT,
        [r"(?:resume|unpause)\s+(?:row\s+)?(\d+)", r"(?:resume|unpause)\s+(.+)"],
        70,
    ),
    _command(
        "modify_segment", "Modify Segment", C.PLACEMENT,
        [r"row\s+(\d+).*segment.*to\s+(.+)", r"change\s+segment.*?(\d+).*to\s+(.+)"],
        70,
    ),
]

VIEW_COMMANDS = [
    _command(
        "change_view", "Change View", C.VIEW,
        [r"group", r"summary", r"detail", r"segment", r"line item", r"placement", r"flat"],
        60,
    ),
    _command("change_dates", "Change Dates", C.VIEW, [r"date", r"run from", r"delay"], 60),
]

EXPORT_COMMANDS = [
    _command("export_ppt", "Export PowerPoint", C.EXPORT, [r"ppt", r"powerpoint"], 80),
    _command("export_pdf", "Export PDF", C.EXPORT, [r"export", r"pdf"], 75),
]

INVENTORY_COMMANDS = [
    _command("inventory_query", "Inventory Query", C.INVENTORY, [r"what.*(?:available|avail|inventory)"], 60),
    _command("dma_query", "DMA Query", C.INVENTORY, [r"(?:channel|station|broadcast|tv).*(?:in|available)"], 65),
]

NAVIGATION_COMMANDS = [
    _command(
        "create_campaign", "Create Campaign", C.NAVIGATION,
        [
            r"(?:create|new|add)\s+campaign\s+(?:for\s+)?(.+)",
            r"(?:create|start|build)\s+(?:a\s+)?(?:new\s+)?plan\s+for\s+(.+)",
        ],
        70, "Create a new campaign plan", ("Create plan for Nike ($500k)",),
    ),
    _command(
        "create_flight", "Create Flight", C.NAVIGATION,
        [r"(?:create|new|add)\s+flight\s+(?:for\s+)?(.+)"],
        70,
    ),
]

WINDOW_MANAGEMENT_COMMANDS = [
    _command(
        "close_window", "Close Window", C.WINDOW_MANAGEMENT,
        [r"^close$", r"close\s+(?:this\s+)?window", r"close\s+(?:the\s+)?(.+)\s+window"],
        85,
    ),
    _command(
        "minimize_window", "Minimize Window", C.WINDOW_MANAGEMENT,
        [r"minimize$", r"minimize\s+(?:this\s+)?window", r"minimize\s+(?:the\s+)?(.+)\s+window"],
        85,
    ),
    _command(
        "maximize_window", "Maximize Window", C.WINDOW_MANAGEMENT,
        [r"maximize$", r"maximize\s+(?:this\s+)?window", r"full\s*screen"],
        85,
    ),
    _command(
        "restore_window", "Restore Window", C.WINDOW_MANAGEMENT,
        [
            r"restore\s+(?:this\s+)?window",
            r"restore\s+(?:the\s+)?(.+)\s+window",
            r"unminimize",
            r"unmaximize",
        ],
        85,
    ),
    _command(
        "tile_windows", "Tile Windows", C.WINDOW_MANAGEMENT,
        [
            r"tile\s+(?:all\s+)?windows?",
            r"tile\s+(horizontal|vertical)(?:ly)?",
            r"arrange\s+(?:windows?\s+)?(?:as\s+)?tile",
            r"snap\s+windows",
        ],
        90,
    ),
    _command(
        "cascade_windows", "Cascade Windows", C.WINDOW_MANAGEMENT,
        [
            r"cascade\s+(?:all\s+)?windows?",
            r"cascade$",
            r"arrange\s+(?:windows?\s+)?(?:as\s+)?cascade",
            r"stack\s+windows",
        ],
        90,
    ),
    _command(
        "minimize_all", "Minimize All", C.WINDOW_MANAGEMENT,
        [r"minimize\s+all", r"show\s+desktop", r"hide\s+all\s+windows", r"clear\s+(?:the\s+)?desktop"],
        90,
    ),
    _command(
        "restore_all", "Restore All", C.WINDOW_MANAGEMENT,
        [r"restore\s+all", r"show\s+all\s+windows", r"unhide\s+(?:all\s+)?windows"],
        90,
    ),
    _command(
        "close_all", "Close All Windows", C.WINDOW_MANAGEMENT,
        [r"close\s+all(?:\s+windows)?", r"close\s+everything"],
        90,
    ),
    _command(
        "focus_window", "Focus Window", C.WINDOW_MANAGEMENT,
        [
            r"(?:switch|go)\s+to\s+(?:the\s+)?(.+?)(?:\s+window)?$",
            r"focus\s+(?:on\s+)?(?:the\s+)?(.+?)(?:\s+window)?$",
            r"bring\s+(.+)\s+to\s+(?:the\s+)?front",
            r"show\s+(?:me\s+)?(?:the\s+)?(.+?)(?:\s+window)?$",
        ],
        80,
    ),
    _command(
        "open_window", "Open Window", C.WINDOW_MANAGEMENT,
        [
            r"open\s+(?:a\s+)?(?:new\s+)?(campaign|flight|portfolio|report|settings|audience|chat)\s*(?:window)?",
            r"new\s+(campaign|flight|portfolio|report|settings|audience|chat)\s*window",
        ],
        85,
    ),
    _command(
        "gather_windows", "Gather Windows", C.WINDOW_MANAGEMENT,
        [
            r"gather\s+(?:all\s+)?windows",
            r"bring\s+(?:all\s+)?windows\s+(?:back|here)",
            r"find\s+(?:my\s+)?(?:lost\s+)?windows",
            r"where\s+(?:are\s+)?(?:my\s+)?windows",
        ],
        85,
    ),
    _command(
        "pin_window", "Pin Window", C.WINDOW_MANAGEMENT,
        [r"pin\s+(?:this\s+)?window", r"keep\s+(?:this\s+)?window", r"save\s+(?:this\s+)?window"],
        80,
    ),
    _command(
        "unpin_window", "Unpin Window", C.WINDOW_MANAGEMENT,
        [r"unpin\s+(?:this\s+)?window", r"don't\s+keep\s+(?:this\s+)?window"],
        80,
    ),
]

ATTRIBUTION_COMMANDS = [
    _command(
        "open_attribution", "Open Attribution Dashboard", C.ATTRIBUTION,
        [
            r"(?:show|open|view|display)\s+(?:me\s+)?(?:the\s+)?attribution(?:\s+dashboard)?$",
            r"(?:go\s+to|navigate\s+to)\s+attribution",
            r"attribution\s+(?:dashboard|analysis|view)$",
        ],
        90,
    ),
    _command(
        "open_attribution_overview", "Open Attribution Overview", C.ATTRIBUTION,
        [
            r"(?:show|open|view)\s+(?:me\s+)?(?:the\s+)?attribution\s+overview",
            r"(?:show|open|view)\s+(?:me\s+)?(?:the\s+)?(?:channel\s+)?attribution\s+(?:breakdown|summary|table)",
        ],
        88,
    ),
    _command(
        "open_incrementality", "Open Incrementality Testing", C.ATTRIBUTION,
        [
            r"(?:show|open|view)\s+(?:me\s+)?(?:the\s+)?incrementality(?:\s+testing)?",
            r"(?:show|open|view)\s+(?:me\s+)?(?:the\s+)?(?:lift|holdout)\s+test(?:s|ing)?",
            r"(?:go\s+to|navigate\s+to)\s+incrementality",
        ],
        88,
    ),
    _command(
        "open_time_analysis", "Open Time Analysis", C.ATTRIBUTION,
        [
            r"(?:show|open|view)\s+(?:me\s+)?(?:the\s+)?time\s+(?:analysis|to\s+conversion)",
            r"(?:show|open|view)\s+(?:me\s+)?conversion\s+(?:time|velocity)",
            r"how\s+long\s+(?:does\s+it\s+take|until)\s+(?:users?\s+)?convert",
        ],
        88,
    ),
    _command(
        "open_frequency_analysis", "Open Touchpoint Frequency", C.ATTRIBUTION,
        [
            r"(?:show|open|view)\s+(?:me\s+)?(?:the\s+)?(?:touchpoint\s+)?frequency",
            r"(?:show|open|view)\s+(?:me\s+)?touchpoint\s+(?:analysis|count)",
            r"how\s+many\s+(?:touchpoints?|interactions?)\s+(?:before|until|to)\s+convert",
        ],
        88,
    ),
    _command(
        "open_model_comparison", "Open Model Comparison", C.ATTRIBUTION,
        [
            r"(?:show|open|view)\s+(?:me\s+)?(?:the\s+)?model\s+comparison",
            r"compare\s+(?:attribution\s+)?models",
            r"(?:show|view)\s+(?:me\s+)?(?:all\s+)?(?:attribution\s+)?models",
            r"(?:which|what)\s+model\s+(?:is\s+best|should\s+I\s+use)",
        ],
        88,
    ),
    _command(
        "popout_attribution_view", "Pop Out Attribution View", C.ATTRIBUTION,
        [
            r"pop\s*out\s+(?:the\s+)?(overview|incrementality|time|frequency|model)",
            r"open\s+(overview|incrementality|time|frequency|model)\s+in\s+(?:a\s+)?new\s+window",
            r"(?:detach|separate)\s+(?:the\s+)?(overview|incrementality|time|frequency|model)",
        ],
        92,
    ),
    _command(
        "change_attribution_model", "Change Attribution Model", C.ATTRIBUTION,
        [
            rf"(?:switch|change|set)\s+(?:to\s+)?(?:the\s+)?{_MODEL}\s*(?:model|attribution)?",
            rf"use\s+(?:the\s+)?{_MODEL}\s*(?:model|attribution)?",
            rf"(?:attribution\s+)?model\s*[=:]\s*{_MODEL}",
        ],
        85,
    ),
    _command(
        "explain_attribution_model", "Explain Attribution Model", C.ATTRIBUTION,
        [
            rf"(?:explain|what\s+is|tell\s+me\s+about)\s+(?:the\s+)?{_MODEL}(?:\s+(?:model|attribution))?",
            rf"how\s+does\s+(?:the\s+)?{_MODEL}\s*(?:model)?\s*work",
            r"(?:what's|what\s+is)\s+the\s+difference\s+between\s+(?:attribution\s+)?models",
        ],
        82,
    ),
    _command(
        "create_incrementality_test", "Create Incrementality Test", C.ATTRIBUTION,
        [
            r"(?:create|set\s+up|start)\s+(?:a\s+)?(?:new\s+)?(?:incrementality|lift|holdout)\s+test\s+(?:for\s+)(\w+)",
            r"test\s+(?:the\s+)?(?:incrementality|lift)\s+(?:of|for)\s+(\w+)",
            r"(?:create|set\s+up|start|run)\s+(?:a\s+)?(?:new\s+)?(?:incrementality|lift|holdout)\s+test",
        ],
        85,
    ),
    _command(
        "view_test_results", "View Test Results", C.ATTRIBUTION,
        [
            r"(?:show|view)\s+(?:me\s+)?(?:the\s+)?(?:incrementality|lift|test)\s+results",
            r"how\s+did\s+(?:the\s+)?(\w+)\s+test\s+(?:perform|do|go)",
            r"(?:what|what's)\s+(?:the\s+)?lift\s+(?:for|on)\s+(\w+)",
        ],
        83,
    ),
    _command(
        "analyze_channel_attribution", "Analyze Channel Attribution", C.ATTRIBUTION,
        [
            r"(?:how|what)\s+(?:is|are)\s+(\w+)\s+(?:performing|doing|attributed)",
            r"(?:analyze|show)\s+(?:me\s+)?(\w+)\s+(?:attribution|performance|contribution)",
            r"(?:which|what)\s+channel\s+(?:is\s+)?(?:the\s+)?(?:best|top)\s+(opener|closer|performer)",
            r"(?:which|what)\s+channels?\s+(?:drives?|generates?)\s+(?:the\s+)?most\s+(?:conversions?|revenue)",
        ],
        80,
    ),
    _command(
        "show_conversion_paths", "Show Conversion Paths", C.ATTRIBUTION,
        [
            r"(?:show|view|display)\s+(?:me\s+)?(?:the\s+)?conversion\s+paths?",
            r"(?:show|view)\s+(?:me\s+)?(?:the\s+)?(?:customer|user)\s+journey",
            r"(?:what|what's)\s+(?:the\s+)?(?:typical|common|average)\s+(?:conversion\s+)?path",
            r"how\s+do\s+(?:users?|customers?|people)\s+(?:typically\s+)?convert",
        ],
        80,
    ),
    _command(
        "attribution_insights", "Attribution Insights", C.ATTRIBUTION,
        [
            r"(?:what|give\s+me)\s+(?:attribution\s+)?(?:insights|recommendations)",
            r"(?:what\s+should\s+I|how\s+can\s+I)\s+(?:optimize|improve)\s+(?:based\s+on\s+)?attribution",
            r"attribution\s+(?:insights|recommendations|suggestions)",
            r"(?:analyze|review)\s+(?:my\s+)?attribution\s+(?:data|results)",
        ],
        78,
    ),
    _command(
        "explain_incrementality", "Explain Incrementality", C.ATTRIBUTION,
        [
            r"(?:explain|what\s+is|tell\s+me\s+about)\s+incrementality",
            r"(?:explain|what\s+is|tell\s+me\s+about)\s+(?:lift|holdout)\s+test(?:ing)?",
            r"how\s+(?:does|do)\s+(?:incrementality|lift)\s+test(?:s|ing)?\s+work",
            r"(?:what's|what\s+is)\s+(?:a\s+)?(?:good|ideal)\s+(?:confidence|lift)\s+(?:score|level)",
        ],
        75,
    ),
    _command(
        "attribution_help", "Attribution Help", C.ATTRIBUTION,
        [
            r"(?:help\s+(?:me\s+)?with|how\s+do\s+I\s+use)\s+attribution",
            r"(?:what|how)\s+(?:can\s+I|do\s+I)\s+(?:do|use)\s+(?:in\s+)?attribution",
            r"attribution\s+help",
        ],
        70,
    ),
]

# Declaration order is the tie-break order within a priority.
ALL_COMMANDS: tuple[CommandDefinition, ...] = (
    *LAYOUT_COMMANDS,
    *SESSION_COMMANDS,
    *HELP_COMMANDS,
    *UNDO_REDO_COMMANDS,
    *OPTIMIZATION_COMMANDS,
    *FORECASTING_COMMANDS,
    *GOAL_COMMANDS,
    *TEMPLATE_COMMANDS,
    *CREATIVE_COMMANDS,
    *BUDGET_COMMANDS,
    *CHANNEL_COMMANDS,
    *PLACEMENT_COMMANDS,
    *VIEW_COMMANDS,
    *EXPORT_COMMANDS,
    *INVENTORY_COMMANDS,
    *NAVIGATION_COMMANDS,
    *WINDOW_MANAGEMENT_COMMANDS,
    *ATTRIBUTION_COMMANDS,
)

_NONE = CategoryRequirements()

CATEGORY_REQUIREMENTS: dict[CommandCategory, CategoryRequirements] = {
    C.LAYOUT: _NONE,
    C.NAVIGATION: _NONE,
    C.HELP: _NONE,
    C.SESSION: _NONE,
    C.TEMPLATE: _NONE,
    C.UNDO_REDO: _NONE,
    C.INVENTORY: _NONE,
    C.WINDOW_MANAGEMENT: _NONE,
    C.CAMPAIGN_SETUP: CategoryRequirements(requires_campaign=True),
    C.GOAL: CategoryRequirements(requires_campaign=True),
    C.ATTRIBUTION: CategoryRequirements(requires_campaign=True),
    C.BUDGET: CategoryRequirements(requires_media_plan=True),
    C.CHANNEL: CategoryRequirements(requires_media_plan=True),
    C.OPTIMIZATION: CategoryRequirements(requires_media_plan=True),
    C.FORECASTING: CategoryRequirements(requires_media_plan=True),
    C.CREATIVE: CategoryRequirements(requires_media_plan=True),
    C.EXPORT: CategoryRequirements(requires_media_plan=True),
    C.VIEW: CategoryRequirements(requires_media_plan=True),
    C.PLACEMENT: CategoryRequirements(requires_flight=True),
}

# Every window command except open_window needs something to act on.
WINDOW_COMMANDS_REQUIRING_WINDOWS = frozenset(
    c.id for c in WINDOW_MANAGEMENT_COMMANDS if c.id != "open_window"
)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class CommandRegistry:
    """Immutable, priority-sorted view over a command table."""

    def __init__(
        self,
        commands: tuple[CommandDefinition, ...] | list[CommandDefinition] = ALL_COMMANDS,
        requirements: dict[CommandCategory, CategoryRequirements] | None = None,
    ) -> None:
        # sorted() is stable: equal priorities keep declaration order.
        self._commands: tuple[CommandDefinition, ...] = tuple(
            sorted(commands, key=lambda c: -c.priority)
        )
        self._by_id = {c.id: c for c in self._commands}
        self._requirements = requirements if requirements is not None else CATEGORY_REQUIREMENTS

    @property
    def commands(self) -> tuple[CommandDefinition, ...]:
        return self._commands

    def get(self, command_id: str) -> CommandDefinition | None:
        return self._by_id.get(command_id)

    def get_commands_by_category(self, category: CommandCategory) -> list[CommandDefinition]:
        return [c for c in self._commands if c.category == category]

    @staticmethod
    def _first_match(command: CommandDefinition, text: str) -> re.Match[str] | None:
        for pattern in command.patterns:
            match = pattern.search(text)
            if match:
                return match
        return None

    def find_matching_command(self, text: str) -> CommandMatch | None:
        """First command in priority order with any matching pattern."""
        for command in self._commands:
            match = self._first_match(command, text)
            if match:
                return CommandMatch(command=command, match=match)
        return None

    def find_all_matching_commands(self, text: str) -> list[CommandMatch]:
        """One match per command (its first matching pattern), in priority order."""
        matches: list[CommandMatch] = []
        for command in self._commands:
            match = self._first_match(command, text)
            if match:
                matches.append(CommandMatch(command=command, match=match))
        return matches

    def is_command_eligible(
        self, command: CommandDefinition, context: WindowContext
    ) -> EligibilityResult:
        """Check category requirements in fixed order; report the first failure."""
        req = self._requirements.get(command.category)
        if req is None:
            return EligibilityResult(eligible=True)

        if req.requires_media_plan and not context.has_media_plan:
            return EligibilityResult(
                False,
                "This command requires an active media plan. Please create or select a campaign first.",
            )
        if req.requires_campaign and not context.has_campaign:
            return EligibilityResult(
                False,
                "This command requires a campaign context. Please select or create a campaign.",
            )
        if req.requires_flight and not context.has_flight:
            return EligibilityResult(
                False,
                "This command requires a flight context. Please open a flight to manage placements.",
            )
        if req.required_window_types and context.window_type not in req.required_window_types:
            return EligibilityResult(
                False,
                f"This command is only available in {' or '.join(req.required_window_types)} windows.",
            )
        if (
            command.category == CommandCategory.WINDOW_MANAGEMENT
            and command.id in WINDOW_COMMANDS_REQUIRING_WINDOWS
            and not context.has_windows
        ):
            return EligibilityResult(False, "There are no windows open to manage.")

        return EligibilityResult(eligible=True)

    def find_eligible_command(self, text: str, context: WindowContext) -> EligibleMatch | None:
        """First eligible match; otherwise the first match with its refusal reason."""
        matches = self.find_all_matching_commands(text)
        for candidate in matches:
            eligibility = self.is_command_eligible(candidate.command, context)
            if eligibility.eligible:
                return EligibleMatch(match=candidate, eligibility=eligibility)
            logger.debug("Command %s refused: %s", candidate.command.id, eligibility.reason)

        if matches:
            first = matches[0]
            return EligibleMatch(match=first, eligibility=self.is_command_eligible(first.command, context))
        return None


registry = CommandRegistry()
