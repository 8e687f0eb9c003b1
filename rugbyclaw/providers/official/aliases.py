"""Per-league team alias tables.

Official sources and the primary upstream spell club names differently
(sponsor prefixes, "Stade Rochelais" vs "La Rochelle", accents). Each
league maps normalized raw spellings to one canonical name used only for
matching within that league. Names missing from a table match on their
normalized form.
"""

from rugbyclaw.utilities.constants import (
    CHALLENGE_CUP_LEAGUE_ID,
    CHAMPIONS_CUP_LEAGUE_ID,
    PREMIERSHIP_LEAGUE_ID,
    PRO_D2_LEAGUE_ID,
    SIX_NATIONS_LEAGUE_ID,
    SUPER_RUGBY_LEAGUE_ID,
    TOP14_LEAGUE_ID,
    URC_LEAGUE_ID,
)
from rugbyclaw.utilities.fuzzy_match import normalize_text

TOP14_TEAM_ALIASES = {
    "aviron bayonnais": "bayonne",
    "bayonne": "bayonne",
    "bordeaux": "bordeaux begles",
    "bordeaux begles": "bordeaux begles",
    "union bordeaux begles": "bordeaux begles",
    "clermont": "clermont",
    "asm clermont": "clermont",
    "lou rugby": "lyon",
    "lyon": "lyon",
    "montauban": "montauban",
    "us montauban": "montauban",
    "montpellier": "montpellier",
    "montpellier herault rugby": "montpellier",
    "pau": "pau",
    "section paloise": "pau",
    "perpignan": "perpignan",
    "usa perpignan": "perpignan",
    "racing 92": "racing 92",
    "la rochelle": "la rochelle",
    "stade rochelais": "la rochelle",
    "toulon": "toulon",
    "rc toulon": "toulon",
    "rc toulonnais": "toulon",
    "toulouse": "stade toulousain",
    "stade toulousain": "stade toulousain",
    "stade francais": "stade francais",
    "stade francais paris": "stade francais",
}

PRO_D2_TEAM_ALIASES = {
    "su agen": "agen",
    "agen": "agen",
    "aurillac": "aurillac",
    "stade aurillacois": "aurillac",
    "beziers": "beziers",
    "as beziers herault": "beziers",
    "biarritz": "biarritz",
    "biarritz olympique pb": "biarritz",
    "brive": "brive",
    "ca brive": "brive",
    "carcassonne": "carcassonne",
    "us carcassonne": "carcassonne",
    "us carcassonnaise": "carcassonne",
    "colomiers": "colomiers",
    "colomiers rugby": "colomiers",
    "dax": "dax",
    "us dax": "dax",
    "grenoble": "grenoble",
    "grenoble fc": "grenoble",
    "fc grenoble rugby": "grenoble",
    "m2m": "mont de marsan",
    "stade montois rugby": "mont de marsan",
    "nevers": "nevers",
    "uson nevers": "nevers",
    "oyonnax": "oyonnax",
    "us oyonnax": "oyonnax",
    "oyonnax rugby": "oyonnax",
    "provence": "provence rugby",
    "provence rugby": "provence rugby",
    "soyaux angouleme xv": "angouleme",
    "valence romans": "valence romans",
    "vannes": "vannes",
    "rc vannes": "vannes",
}

URC_TEAM_ALIASES = {
    "benetton": "benetton",
    "benetton rugby": "benetton",
    "bulls": "bulls",
    "vodacom bulls": "bulls",
    "cardiff": "cardiff",
    "cardiff rugby": "cardiff",
    "connacht": "connacht",
    "connacht rugby": "connacht",
    "dragons": "dragons",
    "dragons rfc": "dragons",
    "edinburgh": "edinburgh",
    "edinburgh rugby": "edinburgh",
    "glasgow": "glasgow",
    "glasgow warriors": "glasgow",
    "leinster": "leinster",
    "leinster rugby": "leinster",
    "lions": "lions",
    "munster": "munster",
    "munster rugby": "munster",
    "ospreys": "ospreys",
    "scarlets": "scarlets",
    "sharks": "sharks",
    "hollywoodbets sharks": "sharks",
    "stormers": "stormers",
    "dhl stormers": "stormers",
    "ulster": "ulster",
    "ulster rugby": "ulster",
    "zebre": "zebre",
    "zebre parma": "zebre",
}

PREMIERSHIP_TEAM_ALIASES = {
    "bath": "bath rugby",
    "bath rugby": "bath rugby",
    "bristol": "bristol bears",
    "bristol bears": "bristol bears",
    "exeter chiefs": "exeter chiefs",
    "gloucester": "gloucester rugby",
    "gloucester rugby": "gloucester rugby",
    "harlequins": "harlequins",
    "leicester tigers": "leicester tigers",
    "newcastle falcons": "newcastle red bulls",
    "newcastle red bulls": "newcastle red bulls",
    "northampton saints": "northampton saints",
    "saracens": "saracens",
    "sale sharks": "sale sharks",
}

SIX_NATIONS_TEAM_ALIASES = {
    "england": "england",
    "france": "france",
    "ireland": "ireland",
    "italy": "italy",
    "scotland": "scotland",
    "wales": "wales",
}

SUPER_RUGBY_TEAM_ALIASES = {
    "blues": "blues",
    "brumbies": "brumbies",
    "act brumbies": "brumbies",
    "chiefs": "chiefs",
    "crusaders": "crusaders",
    "drua": "fijian drua",
    "fijian drua": "fijian drua",
    "highlanders": "highlanders",
    "hurricanes": "hurricanes",
    "moana pasifika": "moana pasifika",
    "reds": "reds",
    "queensland reds": "reds",
    "waratahs": "waratahs",
    "nsw waratahs": "waratahs",
    "western force": "western force",
}

CHAMPIONS_CUP_TEAM_ALIASES = {
    "aviron bayonnais": "bayonne",
    "bayonne": "bayonne",
    "bath": "bath rugby",
    "bath rugby": "bath rugby",
    "bordeaux": "bordeaux begles",
    "bordeaux begles": "bordeaux begles",
    "union bordeaux begles": "bordeaux begles",
    "bristol": "bristol bears",
    "bristol bears": "bristol bears",
    "bulls": "bulls",
    "vodacom bulls": "bulls",
    "castres olympique": "castres olympique",
    "clermont": "clermont",
    "clermont auvergne": "clermont",
    "edinburgh": "edinburgh",
    "edinburgh rugby": "edinburgh",
    "stormers": "stormers",
    "dhl stormers": "stormers",
    "glasgow warriors": "glasgow warriors",
    "gloucester": "gloucester rugby",
    "gloucester rugby": "gloucester rugby",
    "harlequins": "harlequins",
    "sharks": "sharks",
    "hollywoodbets sharks": "sharks",
    "leinster": "leinster",
    "leinster rugby": "leinster",
    "leicester tigers": "leicester tigers",
    "la rochelle": "la rochelle",
    "stade rochelais": "la rochelle",
    "munster": "munster",
    "munster rugby": "munster",
    "pau": "pau",
    "section paloise": "pau",
    "northampton saints": "northampton saints",
    "sale": "sale sharks",
    "sale sharks": "sale sharks",
    "saracens": "saracens",
    "scarlets": "scarlets",
    "toulon": "toulon",
    "rc toulon": "toulon",
    "rc toulonnais": "toulon",
    "toulouse": "stade toulousain",
    "stade toulousain": "stade toulousain",
}

CHALLENGE_CUP_TEAM_ALIASES = {
    "black lion": "black lion",
    "benetton": "benetton",
    "benetton rugby": "benetton",
    "cardiff": "cardiff",
    "cardiff rugby": "cardiff",
    "cheetahs": "cheetahs",
    "toyota cheetahs": "cheetahs",
    "connacht": "connacht",
    "connacht rugby": "connacht",
    "dragons": "dragons",
    "dragons rfc": "dragons",
    "exeter chiefs": "exeter chiefs",
    "lions": "lions",
    "lyon": "lyon",
    "lyon o u": "lyon",
    "montauban": "montauban",
    "montpellier": "montpellier",
    "newcastle red bulls": "newcastle red bulls",
    "ospreys": "ospreys",
    "perpignan": "perpignan",
    "usa perpignan": "perpignan",
    "racing 92": "racing 92",
    "stade francais": "stade francais",
    "stade francais paris": "stade francais",
    "ulster": "ulster",
    "ulster rugby": "ulster",
    "zebre": "zebre",
    "zebre parma": "zebre",
}

TEAM_ALIASES_BY_LEAGUE: dict[str, dict[str, str]] = {
    TOP14_LEAGUE_ID: TOP14_TEAM_ALIASES,
    PRO_D2_LEAGUE_ID: PRO_D2_TEAM_ALIASES,
    PREMIERSHIP_LEAGUE_ID: PREMIERSHIP_TEAM_ALIASES,
    SIX_NATIONS_LEAGUE_ID: SIX_NATIONS_TEAM_ALIASES,
    SUPER_RUGBY_LEAGUE_ID: SUPER_RUGBY_TEAM_ALIASES,
    CHAMPIONS_CUP_LEAGUE_ID: CHAMPIONS_CUP_TEAM_ALIASES,
    CHALLENGE_CUP_LEAGUE_ID: CHALLENGE_CUP_TEAM_ALIASES,
    URC_LEAGUE_ID: URC_TEAM_ALIASES,
}


def get_team_aliases(league_id: str) -> dict[str, str]:
    return TEAM_ALIASES_BY_LEAGUE.get(league_id, {})


def canonicalize_team(name: str, league_id: str) -> str:
    """Canonical team name for matching within one league.

    canonicalize_team("Union Bordeaux-Bègles", "16") -> "bordeaux begles"
    canonicalize_team("Castres Olympique", "16") -> "castres olympique"
    """
    normalized = normalize_text(name)
    return get_team_aliases(league_id).get(normalized, normalized)


def fixture_pair_key(home: str, away: str, league_id: str) -> str:
    """Bucket key for a home/away pairing: "canonical_home|canonical_away"."""
    return f"{canonicalize_team(home, league_id)}|{canonicalize_team(away, league_id)}"
