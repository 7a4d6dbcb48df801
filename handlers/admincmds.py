from datetime import datetime, timezone
from telegram import Update

def _is_admin(update, context):
    ADMIN_ID = context.bot_data.get("ADMIN_ID")
    user_id = update.effective_user.id if update.effective_user else None
    return ADMIN_ID is not None and user_id == ADMIN_ID

def _when(ts):
    if ts is None:
        return "N/A"
    return datetime.fromtimestamp(ts, timezone.utc).isoformat(timespec="seconds")

async def admin_stats(update: Update, context):
    if not _is_admin(update, context):
        await update.message.reply_text("Unauthorized.")
        return
    stats = context.bot_data["engine"].stats()
    await update.message.reply_text(
        f"Policy: {stats['policy']}\n"
        f"Sessions: {stats['sessions']}\n"
        f"Waiting: {stats['waiting']}\n"
        f"Rooms: {stats['rooms']}\n"
        f"Cooldown entries: {stats['cooldowns']}"
    )

async def admin_roominfo(update: Update, context):
    if not _is_admin(update, context):
        await update.message.reply_text("Unauthorized.")
        return
    if not context.args:
        await update.message.reply_text("Usage: /roominfo <room_id>")
        return
    room = context.bot_data["engine"].room_info(context.args[0])
    if not room:
        await update.message.reply_text("Room not found.")
        return
    lines = [f"RoomID: {room['room_id']}", f"Created: {_when(room['created_at'])}"]
    for member in room["members"]:
        lines.append(f"👤 {member['identity']} | {member['status'] or 'gone'} | last active {_when(member['last_active_at'])}")
    await update.message.reply_text("\n".join(lines))
