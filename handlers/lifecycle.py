import logging
from telegram import ChatMember, Update
from telegram.constants import ChatType
from schemas import HEARTBEAT

logger = logging.getLogger(__name__)

CLOSED_STATUSES = (ChatMember.BANNED, ChatMember.LEFT)


async def touch(update: Update, context):
    """Any update from a user counts as a liveness heartbeat."""
    user = update.effective_user
    engine = context.bot_data.get("engine")
    if user is None or engine is None or engine.closed:
        return
    await engine.dispatch(HEARTBEAT, None, {"identity": str(user.id)})


async def chat_member_update(update: Update, context):
    """A user blocking the bot is the transport close for their chat."""
    change = update.my_chat_member
    if change is None or change.chat.type != ChatType.PRIVATE:
        return
    if change.new_chat_member.status not in CLOSED_STATUSES:
        return
    logger.info("Chat %s closed (%s)", change.chat.id, change.new_chat_member.status)
    await context.bot_data["engine"].connection_closed(change.chat.id)
