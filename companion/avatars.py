from __future__ import annotations

from typing import Optional

from .schemas import PersonaProfile, Region


AVATAR_MAP = {
    "EASTERN_MALE": "https://upload.wikimedia.org/wikipedia/commons/thumb/f/fa/Qin_Shi_Huang.jpg/800px-Qin_Shi_Huang.jpg",
    "WESTERN_MALE": "https://upload.wikimedia.org/wikipedia/commons/thumb/4/4c/Vincent_Willem_van_Gogh_127.jpg/800px-Vincent_Willem_van_Gogh_127.jpg",
    "EASTERN_FEMALE": "https://upload.wikimedia.org/wikipedia/commons/thumb/9/97/Empress_Wu_Zetian.jpg/800px-Empress_Wu_Zetian.jpg",
    "WESTERN_FEMALE": "https://upload.wikimedia.org/wikipedia/commons/thumb/e/eb/Statue-Kleopatra-VII.jpg/800px-Statue-Kleopatra-VII.jpg",
    "MIDDLE_EASTERN_MALE": "https://upload.wikimedia.org/wikipedia/commons/thumb/7/7a/Saladin2.jpg/800px-Saladin2.jpg",
    "MIDDLE_EASTERN_FEMALE": "https://upload.wikimedia.org/wikipedia/commons/thumb/a/a3/Zenobia_coin.jpg/800px-Zenobia_coin.jpg",
}

DEFAULT_KEY = "WESTERN_MALE"


def avatar_key(profile: PersonaProfile) -> str:
    key = f"{profile.region.value}_{profile.gender.value}"
    if key in AVATAR_MAP:
        return key
    # Unknown combination: the region's male portrait, else the default
    if profile.region in (Region.EASTERN, Region.WESTERN, Region.MIDDLE_EASTERN):
        return f"{profile.region.value}_MALE"
    return DEFAULT_KEY


def avatar_url(profile: Optional[PersonaProfile]) -> str:
    if profile is None:
        return ""
    return AVATAR_MAP.get(avatar_key(profile), AVATAR_MAP[DEFAULT_KEY])
