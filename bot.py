import logging
import os

import discord
from discord.ext import commands
from dotenv import load_dotenv

from gachabot.discord_commands import setup_gacha_commands

load_dotenv()

logging.basicConfig(
    level=os.getenv("GACHABOT_LOG_LEVEL", "INFO"),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("gachabot")

DISCORD_TOKEN = os.getenv("DISCORD_TOKEN")
if not DISCORD_TOKEN:
    raise RuntimeError("Missing DISCORD_TOKEN. Set it in your environment or .env file.")

intents = discord.Intents.default()
intents.message_content = True

bot = commands.Bot(command_prefix=os.getenv("GACHABOT_COMMAND_PREFIX", "!"), intents=intents)
GACHA_COMMANDS = setup_gacha_commands(bot)


@bot.event
async def on_ready():
    logger.info("Logged in as %s (id=%s)", bot.user, bot.user.id if bot.user else "unknown")
    banners = GACHA_COMMANDS.service.list_banners()
    logger.info("Serving %d banner(s): %s", len(banners), ", ".join(label for label, _ in banners) or "(none)")
    if GACHA_COMMANDS.console_channel_id is None:
        logger.warning("GACHABOT_CONSOLE_CHANNEL_ID is not set; rewards cannot be delivered.")


def main():
    bot.run(DISCORD_TOKEN)


if __name__ == "__main__":
    main()
