"""Per-scene configuration: keywords, fallback copy, styling and prompt hints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from wanderlust.schemas import FontConfig, SceneCategory


@dataclass(frozen=True)
class SceneProfile:
    category: SceneCategory
    label: str
    keywords: Tuple[str, ...]
    summary: str
    highlights: Tuple[str, ...]
    prompt_hints: Tuple[str, ...]
    palette: str
    fonts: FontConfig
    badge: str
    time_multiplier: float


def _fonts(heading: str, body: str, url: str) -> FontConfig:
    return FontConfig(heading_font=heading, body_font=body, google_font_url=url)


# Declaration order matters: the instant classifier returns the first hit.
SCENE_PROFILES: Dict[SceneCategory, SceneProfile] = {
    SceneCategory.ROMANTIC: SceneProfile(
        category=SceneCategory.ROMANTIC,
        label="Romantic getaway",
        keywords=(
            "情侣", "蜜月", "纪念日", "求婚", "浪漫", "二人世界", "情人节",
            "honeymoon", "anniversary", "romantic", "couple", "proposal",
        ),
        summary="A romantic escape to share unforgettable moments together",
        highlights=("Romantic dining", "Sunset viewpoints", "Experiences for two"),
        prompt_hints=(
            "Recommend romantic restaurants and cafes",
            "Schedule a sunset viewpoint",
            "Include experiences for two such as a couples spa or a boat ride",
            "Prefer boutique hotels with character",
            "Keep a slower pace",
            "Avoid overcrowded sights",
        ),
        palette="rose",
        fonts=_fonts(
            "Playfair Display",
            "Lato",
            "https://fonts.googleapis.com/css2?family=Lato:wght@300;400;700&family=Playfair+Display:wght@400;700&display=swap",
        ),
        badge="💕 Romantic mode",
        time_multiplier=1.2,
    ),
    SceneCategory.FAMILY: SceneProfile(
        category=SceneCategory.FAMILY,
        label="Family trip",
        keywords=(
            "亲子", "家庭", "小孩", "孩子", "儿童", "带娃", "全家", "老人",
            "family", "kids", "children", "parents", "baby", "toddler",
        ),
        summary="A warm family trip full of shared memories",
        highlights=("Kid friendly", "Fun for all ages", "Easy going"),
        prompt_hints=(
            "Choose family-friendly sights",
            "Plan activities children enjoy",
            "Respect the stamina of kids and grandparents",
            "Include family-friendly restaurants",
            "Keep the pace relaxed and avoid rushing",
            "Leave time to rest",
        ),
        palette="amber",
        fonts=_fonts(
            "Nunito",
            "Open Sans",
            "https://fonts.googleapis.com/css2?family=Nunito:wght@400;700&family=Open+Sans:wght@300;400;600&display=swap",
        ),
        badge="👨‍👩‍👧‍👦 Family mode",
        time_multiplier=1.3,
    ),
    SceneCategory.ADVENTURE: SceneProfile(
        category=SceneCategory.ADVENTURE,
        label="Outdoor adventure",
        keywords=(
            "探险", "徒步", "登山", "露营", "户外", "极限", "越野", "攀岩",
            "adventure", "hiking", "climbing", "camping", "outdoor", "extreme",
        ),
        summary="A bold adventure that pushes your limits",
        highlights=("Thrilling experiences", "Wild scenery", "Personal challenges"),
        prompt_hints=(
            "Plan outdoor adventure activities",
            "Include hiking or climbing",
            "Pick challenging routes",
            "Recommend professional guides",
            "Call out safety precautions",
            "Suggest a gear checklist",
        ),
        palette="emerald",
        fonts=_fonts(
            "Oswald",
            "Roboto",
            "https://fonts.googleapis.com/css2?family=Oswald:wght@400;700&family=Roboto:wght@300;400;500&display=swap",
        ),
        badge="🏔️ Adventure mode",
        time_multiplier=1.5,
    ),
    SceneCategory.BUSINESS: SceneProfile(
        category=SceneCategory.BUSINESS,
        label="Business travel",
        keywords=(
            "商务", "出差", "会议", "考察", "团建", "客户", "展览",
            "business", "work", "meeting", "conference", "corporate",
        ),
        summary="An efficient business trip that still leaves room to explore",
        highlights=("Efficient schedule", "Easy transport", "Quality stays"),
        prompt_hints=(
            "Keep the schedule efficient",
            "Stay close to the conference venue",
            "Recommend restaurants suited to business meals",
            "Make sure fast internet is available",
            "Favour convenient transport",
            "Reserve time for work",
        ),
        palette="slate",
        fonts=_fonts(
            "Inter",
            "Inter",
            "https://fonts.googleapis.com/css2?family=Inter:wght@300;400;500;600;700&display=swap",
        ),
        badge="💼 Business mode",
        time_multiplier=0.8,
    ),
    SceneCategory.FOODIE: SceneProfile(
        category=SceneCategory.FOODIE,
        label="Food journey",
        keywords=(
            "美食", "吃货", "餐厅", "小吃", "美食之旅", "品鉴", "料理",
            "food", "foodie", "cuisine", "culinary", "restaurant", "gastronomy",
        ),
        summary="A journey for the taste buds through authentic local flavours",
        highlights=("Authentic dishes", "Signature restaurants", "Food discovery"),
        prompt_hints=(
            "Recommend local specialities",
            "Visit a food market",
            "Include a cooking experience",
            "Mix renowned restaurants with local favourites",
            "Explore street food",
            "Add food culture experiences",
        ),
        palette="orange",
        fonts=_fonts(
            "Merriweather",
            "Source Sans Pro",
            "https://fonts.googleapis.com/css2?family=Merriweather:wght@400;700&family=Source+Sans+Pro:wght@300;400;600&display=swap",
        ),
        badge="🍜 Foodie mode",
        time_multiplier=1.1,
    ),
    SceneCategory.CULTURE: SceneProfile(
        category=SceneCategory.CULTURE,
        label="Culture deep-dive",
        keywords=(
            "文化", "历史", "博物馆", "古迹", "艺术", "建筑", "人文",
            "culture", "history", "museum", "heritage", "art", "architecture",
        ),
        summary="An in-depth cultural journey through history and heritage",
        highlights=("Historic sites", "Cultural experiences", "Art and craft"),
        prompt_hints=(
            "Feature historic and cultural sights",
            "Include museums and galleries",
            "Add local cultural experiences",
            "Visit traditional crafts",
            "Suggest guided historical tours",
            "Recommend cultural performances",
        ),
        palette="indigo",
        fonts=_fonts(
            "Crimson Text",
            "Lora",
            "https://fonts.googleapis.com/css2?family=Crimson+Text:wght@400;700&family=Lora:wght@300;400;500&display=swap",
        ),
        badge="🏛️ Culture mode",
        time_multiplier=1.4,
    ),
    SceneCategory.RELAXATION: SceneProfile(
        category=SceneCategory.RELAXATION,
        label="Leisure escape",
        keywords=(
            "度假", "休闲", "放松", "海滩", "海岛", "温泉", "度假村", "疗养",
            "relax", "vacation", "beach", "resort", "spa", "island", "leisure",
        ),
        summary="Slow down, unwind and enjoy some easy days",
        highlights=("Unhurried pace", "Comfortable stays", "Restful experiences"),
        prompt_hints=(
            "Keep a slow rhythm",
            "Suggest resorts or hot-spring hotels",
            "Include spa or massage time",
            "Enjoy natural scenery",
            "Leave plenty of free time",
            "Favour easy, pleasant experiences",
        ),
        palette="teal",
        fonts=_fonts(
            "Cormorant Garamond",
            "Montserrat",
            "https://fonts.googleapis.com/css2?family=Cormorant+Garamond:wght@400;700&family=Montserrat:wght@300;400;500&display=swap",
        ),
        badge="🌴 Leisure mode",
        time_multiplier=0.9,
    ),
    SceneCategory.SOLO: SceneProfile(
        category=SceneCategory.SOLO,
        label="Solo travel",
        keywords=(
            "独行", "独自", "一个人", "独自旅行", "穷游", "背包客",
            "solo", "alone", "backpack", "independent",
        ),
        summary="Setting off alone to meet an unknown side of yourself",
        highlights=("Free exploration", "Deep experiences", "Independent adventure"),
        prompt_hints=(
            "Prefer routes that feel safe",
            "Suggest hostels or characterful stays",
            "Create chances to meet people",
            "Leave time for free exploration",
            "Include local experiences",
            "Point out photo spots",
        ),
        palette="blue",
        fonts=_fonts(
            "Poppins",
            "Raleway",
            "https://fonts.googleapis.com/css2?family=Poppins:wght@400;700&family=Raleway:wght@300;400;500;600&display=swap",
        ),
        badge="🎒 Solo mode",
        time_multiplier=1.0,
    ),
}

_missing = set(SceneCategory) - set(SCENE_PROFILES)
if _missing:
    raise RuntimeError(f"Scene profiles missing for: {sorted(item.value for item in _missing)}")


FONT_CATALOG: Dict[str, FontConfig] = {
    "CLASSIC": _fonts(
        "Noto Serif SC",
        "Noto Sans SC",
        "https://fonts.googleapis.com/css2?family=Noto+Sans+SC:wght@300;400;500;700&family=Noto+Serif+SC:wght@400;700&display=swap",
    ),
    "MODERN": _fonts(
        "Noto Sans SC",
        "Noto Sans SC",
        "https://fonts.googleapis.com/css2?family=Noto+Sans+SC:wght@300;400;500;700&display=swap",
    ),
    "ELEGANT": _fonts(
        "ZCOOL XiaoWei",
        "Noto Serif SC",
        "https://fonts.googleapis.com/css2?family=Noto+Serif+SC:wght@300;400&family=ZCOOL+XiaoWei&display=swap",
    ),
    "ARTISTIC": _fonts(
        "Ma Shan Zheng",
        "Noto Sans SC",
        "https://fonts.googleapis.com/css2?family=Ma+Shan+Zheng&family=Noto+Sans+SC:wght@300;400&display=swap",
    ),
    "MINIMAL": _fonts(
        "ZCOOL QingKe HuangYou",
        "Noto Sans SC",
        "https://fonts.googleapis.com/css2?family=Noto+Sans+SC:wght@300;400&family=ZCOOL+QingKe+HuangYou&display=swap",
    ),
}
FONT_CATALOG.update({profile.category.name: profile.fonts for profile in SCENE_PROFILES.values()})


def profile_for(category: SceneCategory) -> SceneProfile:
    return SCENE_PROFILES[category]


def resolve_font(raw: object, category: SceneCategory) -> FontConfig:
    """Match a model-proposed font config against the catalog.

    Accepts a catalog key or a mapping whose heading font names a catalog
    entry; anything else falls back to the scene's own pairing.
    """

    candidate: Optional[str] = None
    if isinstance(raw, str):
        candidate = raw
    elif isinstance(raw, dict):
        candidate = raw.get("key") or raw.get("headingFont") or raw.get("heading_font")

    if isinstance(candidate, str):
        cleaned = candidate.strip().strip("'\"")
        by_key = FONT_CATALOG.get(cleaned.upper())
        if by_key is not None:
            return by_key
        for fonts in FONT_CATALOG.values():
            if fonts.heading_font.lower() == cleaned.lower():
                return fonts
    return profile_for(category).fonts


def font_library_text() -> str:
    """Catalog listing embedded in the visual identity prompt."""

    lines = []
    for key, fonts in FONT_CATALOG.items():
        lines.append(f"{key}: '{fonts.heading_font}' (heading) + '{fonts.body_font}' (body)")
        lines.append(f"   URL: {fonts.google_font_url}")
    return "\n".join(lines)


__all__ = [
    "FONT_CATALOG",
    "SCENE_PROFILES",
    "SceneProfile",
    "font_library_text",
    "profile_for",
    "resolve_font",
]
