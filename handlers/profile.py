from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.ext import ConversationHandler
from db import get_user, update_user
from models import ANY, DEFAULT_DISPLAY_NAME, default_profile
from transport import load_locale

ASK_GENDER, ASK_PARTNER_GENDER, ASK_SHOW_GENDER, ASK_NAME, PROFILE_MENU = range(5)
MAX_NAME_LENGTH = 64


async def _locale_for(user_id):
    user = await get_user(user_id)
    lang = user.get("language", "en") if user else "en"
    return user, load_locale(lang)


def gender_keyboard(locale):
    return InlineKeyboardMarkup([
        [InlineKeyboardButton(locale.get('btn_male', 'Male'), callback_data='gender_male'), InlineKeyboardButton(locale.get('btn_female', 'Female'), callback_data='gender_female')],
        [InlineKeyboardButton(locale.get('btn_other', 'Other'), callback_data='gender_other'), InlineKeyboardButton(locale.get('btn_skip', 'Skip'), callback_data='gender_skip')]
    ])


def partner_gender_keyboard(locale):
    return InlineKeyboardMarkup([
        [InlineKeyboardButton(locale.get('btn_male', 'Male'), callback_data='want_male'), InlineKeyboardButton(locale.get('btn_female', 'Female'), callback_data='want_female')],
        [InlineKeyboardButton(locale.get('btn_other', 'Other'), callback_data='want_other'), InlineKeyboardButton(locale.get('btn_any', 'Anyone'), callback_data='want_any')]
    ])


def show_gender_keyboard(locale):
    return InlineKeyboardMarkup([
        [InlineKeyboardButton(locale.get('btn_yes', 'Yes'), callback_data='show_yes'), InlineKeyboardButton(locale.get('btn_no', 'No'), callback_data='show_no')]
    ])


def profile_text(user, locale):
    return (
        f"{locale.get('your_profile', 'Your Profile:')}\n"
        f"{locale.get('gender', 'Gender')}: {user.get('gender') or '-'}\n"
        f"{locale.get('partner_gender_label', 'Looking for')}: {user.get('partner_gender') or ANY}\n"
        f"{locale.get('show_gender', 'Show my gender')}: {user.get('show_gender', False)}\n"
        f"{locale.get('display_name', 'Display name')}: {user.get('display_name') or DEFAULT_DISPLAY_NAME}"
    )


async def start_profile(update: Update, context):
    user = update.effective_user
    existing, locale = await _locale_for(user.id)
    if existing:
        await show_profile_menu(update, context)
        return PROFILE_MENU
    await update_user(user.id, default_profile(user))
    await update.effective_message.reply_text(locale.get('choose_gender', 'Select your gender:'), reply_markup=gender_keyboard(locale))
    return ASK_GENDER


async def show_profile_menu(update: Update, context):
    user, locale = await _locale_for(update.effective_user.id)
    if not user:
        user = default_profile(update.effective_user)
    kb = InlineKeyboardMarkup([
        [InlineKeyboardButton(locale.get("btn_edit", "Edit"), callback_data="edit_profile")],
        [InlineKeyboardButton(locale.get("btn_back", "Back"), callback_data="menu_back")]
    ])
    if update.callback_query:
        await update.callback_query.edit_message_text(profile_text(user, locale), reply_markup=kb)
    else:
        await update.effective_message.reply_text(profile_text(user, locale), reply_markup=kb)


async def profile_menu(update: Update, context):
    query = update.callback_query
    await query.answer()
    _, locale = await _locale_for(query.from_user.id)
    if query.data == "edit_profile":
        await query.edit_message_text(locale.get('choose_gender', 'Select your gender:'), reply_markup=gender_keyboard(locale))
        return ASK_GENDER
    # Import here to avoid circular import
    from bot import main_menu
    await main_menu(update, context)
    return ConversationHandler.END


async def gender_cb(update: Update, context):
    query = update.callback_query
    await query.answer()
    _, locale = await _locale_for(query.from_user.id)
    gender = query.data.split('_', 1)[1]
    await update_user(query.from_user.id, {"gender": "" if gender == "skip" else gender})
    await query.edit_message_text(locale.get('choose_partner_gender', 'Who would you like to talk to?'), reply_markup=partner_gender_keyboard(locale))
    return ASK_PARTNER_GENDER


async def partner_gender_cb(update: Update, context):
    query = update.callback_query
    await query.answer()
    _, locale = await _locale_for(query.from_user.id)
    await update_user(query.from_user.id, {"partner_gender": query.data.split('_', 1)[1]})
    await query.edit_message_text(locale.get('choose_show_gender', 'Show your gender to your partners?'), reply_markup=show_gender_keyboard(locale))
    return ASK_SHOW_GENDER


async def show_gender_cb(update: Update, context):
    query = update.callback_query
    await query.answer()
    _, locale = await _locale_for(query.from_user.id)
    await update_user(query.from_user.id, {"show_gender": query.data == "show_yes"})
    await query.edit_message_text(locale.get('choose_name', 'Send the name your partners will see, or /skip.'))
    return ASK_NAME


async def name_msg(update: Update, context):
    _, locale = await _locale_for(update.effective_user.id)
    name = (update.message.text or "").strip()
    if len(name) > MAX_NAME_LENGTH:
        await update.message.reply_text(locale.get('name_too_long', 'That name is too long.'))
        return ASK_NAME
    await update_user(update.effective_user.id, {"display_name": name})
    await update.message.reply_text(locale.get('profile_saved', 'Profile saved!'))
    return ConversationHandler.END


async def skip_name(update: Update, context):
    _, locale = await _locale_for(update.effective_user.id)
    await update_user(update.effective_user.id, {"display_name": ""})
    await update.message.reply_text(locale.get('profile_saved', 'Profile saved!'))
    return ConversationHandler.END
