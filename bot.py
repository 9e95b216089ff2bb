"""Companion Reminder Bot - Main Bot.

Listens for reminder commands in Discord channels and delivers reminders
back to the channel they were set in.
"""

import discord
from discord.ext import commands
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from logger import logger
from config import (
    DISCORD_TOKEN,
    REMINDER_CHANNEL_IDS,
    REMINDERS_PATH,
    USER_DATA_DIR,
    FIRE_PAST_DUE_ON_STARTUP,
)
from domains.base import NotificationSink
from domains.reminders import (
    ReminderService,
    ReminderStore,
    ReminderScheduler,
    JsonProfileLookup,
    StaticProfileLookup,
    handle_reminder_intent,
)

DISCORD_MESSAGE_LIMIT = 2000


class DiscordNotificationSink(NotificationSink):
    """Sends reminder text to a Discord channel. The owner ID is the channel ID."""

    def __init__(self, client: discord.Client):
        self.client = client

    async def send(self, owner_id: str, text: str) -> bool:
        try:
            channel_id = int(owner_id)
            channel = self.client.get_channel(channel_id)
            if not channel:
                channel = await self.client.fetch_channel(channel_id)

            # Split long messages (Discord has a 2000 char limit)
            for i in range(0, len(text), DISCORD_MESSAGE_LIMIT):
                await channel.send(text[i:i + DISCORD_MESSAGE_LIMIT])
            return True

        except (ValueError, discord.HTTPException) as e:
            logger.error(f"Failed to send to channel {owner_id}: {e}")
            return False


# Initialize bot
intents = discord.Intents.default()
intents.message_content = True
bot = commands.Bot(command_prefix="!", intents=intents)

# Initialize scheduler and reminder service (one per process)
scheduler = AsyncIOScheduler()
reminders = ReminderService(
    store=ReminderStore(REMINDERS_PATH),
    scheduler=ReminderScheduler(scheduler),
    sink=DiscordNotificationSink(bot),
    profiles=JsonProfileLookup(USER_DATA_DIR) if USER_DATA_DIR else StaticProfileLookup(),
    fire_past_due=FIRE_PAST_DUE_ON_STARTUP,
)

_started = False


@bot.event
async def on_ready():
    """Called when bot is connected and ready."""
    global _started
    logger.info(f"Logged in as {bot.user}")

    # on_ready fires again after reconnects; recover only once
    if _started:
        return
    _started = True

    reminders.scheduler.start()
    logger.info("Scheduler started")

    try:
        reminder_count = await reminders.recover()
        if reminder_count > 0:
            logger.info(f"Reloaded {reminder_count} pending reminders")
    except Exception as e:
        logger.error(f"Failed to reload reminders: {e}")


@bot.event
async def on_message(message):
    """Handle incoming messages."""
    # Ignore bot messages
    if message.author.bot:
        return

    if REMINDER_CHANNEL_IDS and message.channel.id not in REMINDER_CHANNEL_IDS:
        return

    response = await handle_reminder_intent(message.content, message.channel.id, reminders)
    if response:
        await message.channel.send(response)


def main():
    if not DISCORD_TOKEN:
        logger.error("DISCORD_TOKEN not set")
        raise SystemExit(1)

    logger.info("Starting companion reminder bot...")
    bot.run(DISCORD_TOKEN, log_handler=None)


if __name__ == "__main__":
    main()
