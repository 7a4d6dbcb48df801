from datetime import datetime, timezone

IDLE = "idle"
WAITING = "waiting"
PAIRED = "paired"

ANY = "any"
GENDERS = ["male", "female", "other"]
DEFAULT_DISPLAY_NAME = "Stranger"


def default_preferences(gender=None, partner_gender=None, show_gender=False, display_name=""):
    gender = (gender or "").strip().lower() or None
    partner_gender = (partner_gender or "").strip().lower() or ANY
    return {
        "gender": gender,
        "partner_gender": partner_gender,
        "show_gender": bool(show_gender),
        "display_name": (display_name or "").strip(),
    }


def default_session(identity, connection, preferences, now):
    return {
        "identity": identity,
        "connection": connection,
        "status": IDLE,
        "room_id": None,
        "partner_id": None,
        "preferences": preferences,
        "last_active_at": now,
        "connected_at": now,
    }


def default_request(identity, connection, preferences, now):
    return {
        "identity": identity,
        "connection": connection,
        "preferences": preferences,
        "enqueued_at": now,
    }


def default_room(room_id, user1, user2, now):
    return {
        "room_id": room_id,
        "users": [user1, user2],
        "created_at": now,
    }


def default_profile(user, language="en"):
    return {
        "user_id": user.id,
        "language": language,
        "gender": "",
        "partner_gender": ANY,
        "show_gender": False,
        "display_name": "",
        "created_at": datetime.now(timezone.utc).isoformat()
    }


def partner_profile(preferences):
    """What one side of a pairing is allowed to see about the other."""
    show = preferences.get("show_gender", False)
    return {
        "gender": preferences.get("gender") if show else None,
        "display_name": preferences.get("display_name") or DEFAULT_DISPLAY_NAME,
        "show_gender": show,
    }
