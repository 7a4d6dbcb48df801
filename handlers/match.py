from telegram import Update
from db import get_user
from schemas import CANCEL_SEARCH, FIND_PARTNER, LEAVE_CHAT
from transport import connection_for, load_locale


def identity_of(update):
    return str(update.effective_user.id)


def find_payload(identity, profile):
    profile = profile or {}
    return {
        "identity": identity,
        "preferences": {
            "gender": profile.get("gender"),
            "partnerGender": profile.get("partner_gender"),
            "showGender": profile.get("show_gender", False),
            "displayName": profile.get("display_name", ""),
        },
    }


async def _language(user_id):
    user = await get_user(user_id)
    return user.get("language", "en") if user else "en", user


async def find_command(update: Update, context):
    engine = context.bot_data["engine"]
    lang, user = await _language(update.effective_user.id)
    conn = connection_for(context, update.effective_chat.id, lang)
    await engine.dispatch(FIND_PARTNER, conn, find_payload(identity_of(update), user))


async def cancel_command(update: Update, context):
    engine = context.bot_data["engine"]
    lang, _ = await _language(update.effective_user.id)
    locale = load_locale(lang)
    cancelled = await engine.dispatch(CANCEL_SEARCH, None, {"identity": identity_of(update)})
    if cancelled:
        await update.effective_message.reply_text(locale.get("search_cancelled", "Search cancelled."))
    else:
        await update.effective_message.reply_text(locale.get("not_searching", "You are not searching right now."))


async def end_command(update: Update, context, quiet=False):
    engine = context.bot_data["engine"]
    lang, _ = await _language(update.effective_user.id)
    locale = load_locale(lang)
    room_id = context.bot_data["groups"].room_of(update.effective_chat.id)
    left = False
    if room_id:
        left = await engine.dispatch(LEAVE_CHAT, None, {"identity": identity_of(update), "roomId": room_id})
    if left:
        await update.effective_message.reply_text(locale.get("left_chat", "You have left the chat."))
    elif not quiet:
        await update.effective_message.reply_text(locale.get("not_in_room", "You are not in a chat."))
    return left


async def next_command(update: Update, context):
    await end_command(update, context, quiet=True)
    await find_command(update, context)


# Main menu callback handler for inline menu actions
async def menu_callback_handler(update, context):
    query = update.callback_query
    await query.answer()
    data = query.data
    if data == "menu_find":
        await find_command(update, context)
    elif data == "menu_profile":
        from handlers.profile import show_profile_menu
        await show_profile_menu(update, context)
    elif data == "menu_back":
        from bot import main_menu
        await main_menu(update, context)
    else:
        await query.edit_message_text("Unknown menu option.")
