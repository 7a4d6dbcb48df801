import json
import logging
import os

from telegram.error import Forbidden, TelegramError

import schemas
from connection import Connection
from errors import StaleConnectionSend

logger = logging.getLogger(__name__)

LOCALE_DIR = os.path.join(os.path.dirname(__file__), "locales")

LANGS = {
    "en": "English",
    "id": "Indonesian"
}


def load_locale(lang):
    path = os.path.join(LOCALE_DIR, f"{lang}.json")
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError):
        if lang != "en":
            return load_locale("en")
        return {}


def render(event, payload, locale):
    if event == schemas.WAITING:
        return locale.get("waiting", payload.get("message", "Searching for partner..."))
    if event == schemas.PARTNER_FOUND:
        profile = payload["partnerProfile"]
        text = locale.get("partner_found", "🎉 Match found! Say hi to {name}.").format(name=profile["displayName"])
        if profile.get("gender"):
            text += "\n" + locale.get("partner_gender", "Gender: {gender}").format(gender=profile["gender"])
        return text
    if event == schemas.PARTNER_DISCONNECTED:
        return locale.get("partner_disconnected", "Your chat partner has left the chat.")
    if event == schemas.SERVER_SHUTDOWN:
        return locale.get("server_shutdown", "The server is restarting. Please /find again in a moment.")
    if event == schemas.SESSION_EXPIRED:
        return locale.get("session_expired", "Your session ended after a period of inactivity. Use /find to start again.")
    return locale.get(event, event)


class RoomGroups:
    """Which private chats currently share a room, for relaying messages."""

    def __init__(self):
        self._members = {}
        self._room_of = {}

    def join(self, room_id, chat_id):
        previous = self._room_of.get(chat_id)
        if previous and previous != room_id:
            self.leave(previous, chat_id)
        self._members.setdefault(room_id, set()).add(chat_id)
        self._room_of[chat_id] = room_id

    def leave(self, room_id, chat_id):
        members = self._members.get(room_id)
        if members is not None:
            members.discard(chat_id)
            if not members:
                del self._members[room_id]
        if self._room_of.get(chat_id) == room_id:
            del self._room_of[chat_id]

    def room_of(self, chat_id):
        return self._room_of.get(chat_id)

    def peers(self, chat_id):
        room_id = self._room_of.get(chat_id)
        if room_id is None:
            return []
        return [c for c in self._members.get(room_id, ()) if c != chat_id]


class TelegramConnection(Connection):
    def __init__(self, bot, chat_id, groups, language="en"):
        self.bot = bot
        self.id = chat_id
        self.groups = groups
        self.language = language

    async def send(self, event, payload):
        text = render(event, payload, load_locale(self.language))
        try:
            await self.bot.send_message(chat_id=self.id, text=text)
        except Forbidden as e:
            raise StaleConnectionSend(self.id) from e
        except TelegramError as e:
            logger.warning("Failed to deliver %s to %s: %s", event, self.id, e)

    def join_group(self, room_id):
        self.groups.join(room_id, self.id)

    def leave_group(self, room_id):
        self.groups.leave(room_id, self.id)

    def __repr__(self):
        return f"TelegramConnection({self.id})"


def connection_for(context, chat_id, language="en"):
    return TelegramConnection(context.bot, chat_id, context.bot_data["groups"], language)
