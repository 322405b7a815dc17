"""Pre-configured campaign templates: budget range, channel mix, default goals."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ChannelShare:
    channel: str
    percentage: int
    rationale: str


@dataclass(frozen=True)
class CampaignTemplate:
    id: str
    name: str
    description: str
    category: str
    min_budget: int
    max_budget: int
    optimal_budget: int
    channel_mix: tuple[ChannelShare, ...]
    default_goals: dict[str, int]
    tags: tuple[str, ...]
    industries: tuple[str, ...]
    complexity: str

    @property
    def channels(self) -> list[str]:
        return [m.channel for m in self.channel_mix]


CAMPAIGN_TEMPLATES: tuple[CampaignTemplate, ...] = (
    CampaignTemplate(
        id="retail-holiday",
        name="Retail Holiday Campaign",
        description=(
            "High-impact campaign for Q4 holiday shopping season. Heavy emphasis on "
            "social and display for quick conversions."
        ),
        category="retail",
        min_budget=50000,
        max_budget=500000,
        optimal_budget=200000,
        channel_mix=(
            ChannelShare("Social", 35, "Target holiday shoppers with dynamic product ads and retargeting"),
            ChannelShare("Display", 25, "Build awareness with seasonal creative across premium inventory"),
            ChannelShare("Search", 25, "Capture high-intent searches for gift ideas and product categories"),
            ChannelShare("TV", 10, "Reinforce brand presence during peak shopping weeks"),
            ChannelShare("OOH", 5, "Mall and retail district placements for last-minute shoppers"),
        ),
        default_goals={"impressions": 50_000_000, "reach": 2_000_000, "conversions": 25_000},
        tags=("holiday", "ecommerce", "conversion", "seasonal"),
        industries=("retail", "ecommerce"),
        complexity="moderate",
    ),
    CampaignTemplate(
        id="b2b-lead-gen",
        name="B2B Lead Generation",
        description=(
            "Professional services lead generation with LinkedIn, search, and targeted "
            "display for decision makers."
        ),
        category="b2b",
        min_budget=25000,
        max_budget=200000,
        optimal_budget=75000,
        channel_mix=(
            ChannelShare("Social", 40, "LinkedIn targeting for C-suite and decision makers"),
            ChannelShare("Search", 35, "Capture solution-seeking searches with branded and competitor keywords"),
            ChannelShare("Display", 20, "Retargeting and account-based marketing on B2B sites"),
            ChannelShare("TV", 5, "CTV placements on business news and finance programming"),
        ),
        default_goals={"impressions": 10_000_000, "reach": 500_000, "conversions": 2_500, "clicks": 150_000},
        tags=("lead-gen", "b2b", "linkedin", "professional"),
        industries=("technology", "professional services", "saas"),
        complexity="moderate",
    ),
    CampaignTemplate(
        id="brand-launch",
        name="Brand Awareness Launch",
        description=(
            "Maximum reach campaign for new brand or product launches. Focus on TV, OOH, "
            "and video for broad awareness."
        ),
        category="brand",
        min_budget=100000,
        max_budget=1000000,
        optimal_budget=400000,
        channel_mix=(
            ChannelShare("TV", 40, "Prime time and sports programming for mass reach"),
            ChannelShare("Social", 25, "Video ads and stories for younger demographics"),
            ChannelShare("OOH", 20, "High-traffic billboards and transit for visibility"),
            ChannelShare("Display", 10, "Premium placements on major publishers"),
            ChannelShare("Radio", 5, "Drive time spots for commuters"),
        ),
        default_goals={"impressions": 100_000_000, "reach": 10_000_000, "conversions": 50_000},
        tags=("launch", "awareness", "reach", "brand-building"),
        industries=("cpg", "automotive", "entertainment", "retail"),
        complexity="complex",
    ),
    CampaignTemplate(
        id="performance-max",
        name="Performance Max Conversion",
        description=(
            "Conversion-focused campaign optimized for immediate ROI. Search and social "
            "dominate with aggressive retargeting."
        ),
        category="performance",
        min_budget=30000,
        max_budget=300000,
        optimal_budget=100000,
        channel_mix=(
            ChannelShare("Search", 45, "High-intent keywords optimized for conversion"),
            ChannelShare("Social", 40, "Performance campaigns with conversion objectives"),
            ChannelShare("Display", 15, "Retargeting campaigns for cart abandoners and site visitors"),
        ),
        default_goals={"impressions": 20_000_000, "reach": 1_000_000, "conversions": 50_000, "clicks": 400_000},
        tags=("performance", "conversion", "roi", "retargeting"),
        industries=("ecommerce", "direct-to-consumer", "lead-gen"),
        complexity="simple",
    ),
    CampaignTemplate(
        id="local-store-opening",
        name="Local Store Opening",
        description=(
            "Geo-targeted campaign for new store locations. OOH, local search, and radio "
            "drive foot traffic."
        ),
        category="retail",
        min_budget=10000,
        max_budget=75000,
        optimal_budget=30000,
        channel_mix=(
            ChannelShare("OOH", 35, "Billboards and transit ads within 5-mile radius"),
            ChannelShare("Search", 30, "Local search ads and maps targeting nearby shoppers"),
            ChannelShare("Radio", 20, "Morning and evening drive time on local stations"),
            ChannelShare("Social", 15, "Geo-fenced ads for neighborhood residents"),
        ),
        default_goals={"impressions": 5_000_000, "reach": 250_000, "conversions": 5_000},
        tags=("local", "retail", "geo-targeting", "store-opening"),
        industries=("retail", "restaurants", "services"),
        complexity="simple",
    ),
    CampaignTemplate(
        id="mobile-app-launch",
        name="Mobile App Launch",
        description=(
            "App install and engagement campaign. Social video and display optimized for "
            "mobile conversions."
        ),
        category="performance",
        min_budget=40000,
        max_budget=400000,
        optimal_budget=150000,
        channel_mix=(
            ChannelShare("Social", 50, "Instagram, TikTok, and Snapchat for app install campaigns"),
            ChannelShare("Display", 30, "Mobile web placements with app download CTA"),
            ChannelShare("Search", 15, "App category keywords on mobile search"),
            ChannelShare("TV", 5, "CTV placements with QR codes for easy downloads"),
        ),
        default_goals={"impressions": 30_000_000, "reach": 2_000_000, "conversions": 100_000, "clicks": 600_000},
        tags=("mobile", "app-install", "digital", "social-first"),
        industries=("technology", "gaming", "fintech", "health"),
        complexity="moderate",
    ),
)

# Keyword -> template id, first hit wins.
_RECOMMENDATION_KEYWORDS = (
    (("b2b", "lead"), "b2b-lead-gen"),
    (("retail", "ecommerce", "store"), "retail-holiday"),
    (("brand", "awareness", "launch"), "brand-launch"),
    (("performance", "conversion", "roi"), "performance-max"),
    (("app", "mobile"), "mobile-app-launch"),
)


def get_template(template_id: str) -> CampaignTemplate | None:
    return next((t for t in CAMPAIGN_TEMPLATES if t.id == template_id), None)


def find_template(text: str) -> CampaignTemplate | None:
    """Template whose name (or its first two words) appears in ``text``."""
    lowered = text.lower()
    for template in CAMPAIGN_TEMPLATES:
        name = template.name.lower()
        short = " ".join(name.split()[:2])
        if name in lowered or short in lowered or template.id.replace("-", " ") in lowered:
            return template
    return None


def recommend_template(text: str) -> CampaignTemplate | None:
    lowered = text.lower()
    for keywords, template_id in _RECOMMENDATION_KEYWORDS:
        if any(k in lowered for k in keywords):
            return get_template(template_id)
    return None


def search_templates(query: str) -> list[CampaignTemplate]:
    lowered = query.lower()
    return [
        t
        for t in CAMPAIGN_TEMPLATES
        if lowered in t.name.lower()
        or lowered in t.description.lower()
        or any(lowered in tag for tag in t.tags)
        or any(lowered in ind for ind in t.industries)
    ]
