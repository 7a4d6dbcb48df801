import logging
import time
from telegram import Update
from telegram.error import Forbidden, TelegramError
from db import get_user
from transport import load_locale

logger = logging.getLogger(__name__)

RATE_LIMIT_SECONDS = 1.5

user_rate_limit = {}


async def route_message(update: Update, context):
    """Copy a message to the other member of the sender's room."""
    user_id = update.effective_user.id
    message = update.effective_message
    peers = context.bot_data["groups"].peers(update.effective_chat.id)

    user = await get_user(user_id)
    locale = load_locale(user.get("language", "en") if user else "en")

    if not peers:
        await message.reply_text(locale.get("not_in_room", "You are not in a chat. Use /find to start one."))
        return

    now = time.time()
    last_time = user_rate_limit.get(user_id, 0)
    if now - last_time < RATE_LIMIT_SECONDS:
        await message.reply_text(locale.get("rate_limited", "Rate limit: Please wait before sending another message."))
        return
    user_rate_limit[user_id] = now

    for other_id in peers:
        try:
            await message.copy(chat_id=other_id)
        except Forbidden:
            await message.reply_text(locale.get("partner_unavailable", "Your chat partner is not available."))
        except TelegramError as e:
            logger.warning("Relay from %s to %s failed: %s", user_id, other_id, e)
            await message.reply_text(locale.get("delivery_failed", "Failed to deliver message to partner."))
