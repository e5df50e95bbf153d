import json
import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file in the backend folder
BACKEND_DIR = Path(__file__).parent
load_dotenv(BACKEND_DIR / ".env")


def parse_bool(bool_str: str | bool):
    if isinstance(bool_str, str):
        return bool_str.lower() in ("true", "1")
    return bool(bool_str)


def parse_groups(raw: str | None) -> dict[str, int]:
    """Parse the group slug -> id mapping.

    >>> parse_groups("family=2, close_friends=1")
    {'family': 2, 'close_friends': 1}
    >>> parse_groups('{"family": 2}')
    {'family': 2}
    >>> parse_groups("")
    {}
    """
    if not raw or not raw.strip():
        return {}
    raw = raw.strip()
    if raw.startswith("{"):
        return {str(slug): int(group_id) for slug, group_id in json.loads(raw).items()}

    groups = {}
    for pair in raw.split(","):
        if not pair.strip():
            continue
        slug, sep, group_id = pair.partition("=")
        if not sep or not slug.strip():
            raise ValueError(f"Invalid group definition: {pair!r}")
        groups[slug.strip()] = int(group_id)
    return groups


DATABASE_PATH = BACKEND_DIR / "friendships.sqlite"
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{DATABASE_PATH}")

TESTING_MODE = parse_bool(os.getenv("TESTING_MODE", False))

# --- Storage layout ---
FRIENDSHIPS_TABLE = os.getenv("FRIENDSHIPS_TABLE", "friendships")
FRIENDSHIP_GROUPS_TABLE = os.getenv(
    "FRIENDSHIP_GROUPS_TABLE", "user_friendship_groups"
)

# --- Friendship groups (slug -> group id) ---
FRIENDSHIP_GROUPS = parse_groups(
    os.getenv("FRIENDSHIP_GROUPS", "acquaintances=0,close_friends=1,family=2")
)

# cancel/accept/deny/unblock notify even when no row was touched
NOTIFY_NOOP_TRANSITIONS = parse_bool(os.getenv("NOTIFY_NOOP_TRANSITIONS", True))
