import os
import logging
from dotenv import load_dotenv
from telegram import Update, InlineKeyboardButton, InlineKeyboardMarkup
from telegram.ext import (
    Application, ChatMemberHandler, CommandHandler, MessageHandler, CallbackQueryHandler,
    ConversationHandler, TypeHandler, filters
)
from db import get_user, update_user
from engine import ChatEngine, config_from_env
from transport import LANGS, RoomGroups, load_locale
from handlers.profile import (
    start_profile, profile_menu, gender_cb, partner_gender_cb, show_gender_cb, name_msg, skip_name,
    ASK_GENDER, ASK_PARTNER_GENDER, ASK_SHOW_GENDER, ASK_NAME, PROFILE_MENU
)
from handlers.match import find_command, cancel_command, end_command, next_command, menu_callback_handler
from handlers.admincmds import admin_stats, admin_roominfo
from handlers.lifecycle import touch, chat_member_update
from handlers.message_router import route_message

load_dotenv()
BOT_TOKEN = os.getenv("BOT_TOKEN")
ADMIN_ID = int(os.getenv("ADMIN_ID")) if os.getenv("ADMIN_ID") else None

logging.basicConfig(
    format="%(asctime)s - %(levelname)s - %(message)s",
    level=os.getenv("LOG_LEVEL", "INFO").upper()
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def main_menu_keyboard(locale):
    return InlineKeyboardMarkup([
        [InlineKeyboardButton(locale.get("btn_find", "Find a partner"), callback_data="menu_find")],
        [InlineKeyboardButton(locale.get("btn_profile", "Profile"), callback_data="menu_profile")]
    ])

async def start(update: Update, context):
    kb = InlineKeyboardMarkup([
        [InlineKeyboardButton(name, callback_data=f"lang_{code}")]
        for code, name in LANGS.items()
    ])
    await update.message.reply_text(
        load_locale("en").get("welcome", "Welcome! Pick your language:"),
        reply_markup=kb
    )

async def language_select_callback(update: Update, context):
    query = update.callback_query
    await query.answer()
    lang = query.data.split("_", 1)[1]
    await update_user(query.from_user.id, {"user_id": query.from_user.id, "language": lang})
    locale = load_locale(lang)
    await query.edit_message_text(locale.get("main_menu", "Main Menu:"), reply_markup=main_menu_keyboard(locale))

async def main_menu(update: Update, context):
    user = await get_user(update.effective_user.id)
    lang = user.get("language", "en") if user else "en"
    locale = load_locale(lang)
    await update.effective_message.reply_text(locale.get("main_menu", "Main Menu:"), reply_markup=main_menu_keyboard(locale))

async def error_handler(update, context):
    logger.error("Exception while handling an update:", exc_info=context.error)


def build_application(token, engine, admin_id=None):
    async def post_init(app):
        engine.start(app.job_queue)
        logger.info("Engine started (%s sessions)", engine.config.policy)

    async def post_stop(app):
        await engine.shutdown()

    app = (
        Application.builder()
        .token(token)
        .post_init(post_init)
        .post_stop(post_stop)
        .build()
    )
    engine.on_fault = app.stop_running
    app.bot_data["engine"] = engine
    app.bot_data["groups"] = RoomGroups()
    app.bot_data["ADMIN_ID"] = admin_id

    app.add_handler(TypeHandler(Update, touch), group=-1)
    app.add_handler(ChatMemberHandler(chat_member_update, ChatMemberHandler.MY_CHAT_MEMBER))

    profile_conv = ConversationHandler(
        entry_points=[CommandHandler('profile', start_profile)],
        states={
            PROFILE_MENU: [CallbackQueryHandler(profile_menu, pattern="^(edit_profile|menu_back)$")],
            ASK_GENDER: [CallbackQueryHandler(gender_cb, pattern="^gender_")],
            ASK_PARTNER_GENDER: [CallbackQueryHandler(partner_gender_cb, pattern="^want_")],
            ASK_SHOW_GENDER: [CallbackQueryHandler(show_gender_cb, pattern="^show_")],
            ASK_NAME: [
                CommandHandler("skip", skip_name),
                MessageHandler(filters.TEXT & ~filters.COMMAND, name_msg)
            ]
        },
        fallbacks=[CommandHandler("profile", start_profile)]
    )
    app.add_handler(profile_conv)

    app.add_handler(CommandHandler("start", start))
    app.add_handler(CommandHandler("find", find_command))
    app.add_handler(CommandHandler("cancel", cancel_command))
    app.add_handler(CommandHandler("end", end_command))
    app.add_handler(CommandHandler("next", next_command))
    app.add_handler(CallbackQueryHandler(language_select_callback, pattern="^lang_"))
    app.add_handler(CallbackQueryHandler(menu_callback_handler, pattern="^menu_"))

    admin_filter = filters.User(admin_id) if admin_id else filters.User(user_id=[])
    app.add_handler(CommandHandler("stats", admin_stats, admin_filter))
    app.add_handler(CommandHandler("roominfo", admin_roominfo, admin_filter))

    app.add_handler(MessageHandler(~filters.COMMAND & filters.ChatType.PRIVATE, route_message))
    app.add_error_handler(error_handler)
    return app


def main():
    if not BOT_TOKEN:
        raise SystemExit("BOT_TOKEN is not set")
    try:
        config = config_from_env()
    except ValueError as e:
        raise SystemExit(str(e))
    app = build_application(BOT_TOKEN, ChatEngine(config), ADMIN_ID)
    logger.info("AnonChat Bot started (polling).")
    app.run_polling(allowed_updates=Update.ALL_TYPES)

if __name__ == "__main__":
    main()
