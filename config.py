"""Global configuration for the companion reminder bot."""

import logging
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Discord
DISCORD_TOKEN = os.getenv("DISCORD_TOKEN")

# Channels the bot accepts reminder commands in (empty = every channel)
_reminder_channels = os.getenv("REMINDER_CHANNEL_IDS", "")
REMINDER_CHANNEL_IDS = {int(cid.strip()) for cid in _reminder_channels.split(",") if cid.strip()}

# Reminder persistence
REMINDERS_PATH = Path(os.getenv("REMINDERS_PATH", "config/reminders.json"))

# Owner profiles (one <owner_id>.json per owner); unset = every owner has a blank profile
USER_DATA_DIR = os.getenv("USER_DATA_DIR")

# Command token stripped from the front of reminder commands
REMINDER_COMMAND = os.getenv("REMINDER_COMMAND", "/remind")

# Past-due reminders found at startup are skipped unless this is on
FIRE_PAST_DUE_ON_STARTUP = os.getenv("FIRE_PAST_DUE_ON_STARTUP", "").lower() in ("1", "true", "yes")

# Logging
LOG_DIR = Path(os.getenv("LOG_DIR", Path(os.getenv("LOCALAPPDATA", ".")) / "companion-reminders" / "logs"))
LOG_DIR.mkdir(parents=True, exist_ok=True)
LOG_LEVEL = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
