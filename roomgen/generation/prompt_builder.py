"""Prompt construction for room redesign predictions."""

GAMING_ROOM = "Gaming Room"
GAMING_ROOM_PROMPT = "a room for gaming with gaming computers, gaming consoles, and gaming chairs"

# Fixed quality / negative directives sent with every prediction
A_PROMPT = (
    "best quality, extremely detailed, photo from Pinterest, interior, cinematic photo, "
    "ultra-detailed, ultra-realistic, award-winning"
)
N_PROMPT = (
    "longbody, lowres, bad anatomy, bad hands, missing fingers, extra digit, fewer digits, "
    "cropped, worst quality, low quality"
)


def build_prompt(theme: str, room: str) -> str:
    """Build the generation prompt for a (theme, room) pair.

    The gaming room gets a canned description regardless of theme; the match
    is exact and happens before lower-casing.
    """
    if room == GAMING_ROOM:
        return GAMING_ROOM_PROMPT
    return f"a {theme.lower()} {room.lower()}"
