import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Dict

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Explicitly load .env files at startup
# Load order (later files override earlier):
# 1. project .env (project defaults)
# 2. project .env.local (local overrides)
project_root = Path(__file__).parent.parent
env_file = project_root / ".env"
env_local = project_root / ".env.local"

if env_file.exists():
    load_dotenv(env_file, override=True)
    print(f"📁 Loaded environment from {env_file}")

if env_local.exists():
    load_dotenv(env_local, override=True)
    print(f"📁 Loaded environment from {env_local}")

from telegram import Bot

from .api.health import create_health_router, set_start_time
from .api.relay import router as relay_router
from .bot.adapters.telegram_backup_store import TelegramBackupStore
from .bot.adapters.telegram_notifier import TelegramNotifier
from .bot.bot import TelegramBot
from .core.config import Settings, get_settings, validate_settings
from .middleware.error_handler import ErrorHandlerMiddleware, register_exception_handlers
from .middleware.request_id import RequestIdMiddleware
from .services.chunked_relay import ChunkedRelay
from .services.downloaders import build_downloader
from .services.job_runner import JobRunner
from .services.two_hop_upload import TwoHopUploader
from .utils.cleanup import run_periodic_cleanup
from .utils.logging import setup_logging
from .utils.task_tracker import cancel_all_tasks, create_tracked_task, get_active_task_count
from .version import __version__

settings = get_settings()
setup_logging(log_level=settings.log_level, log_to_file=settings.log_to_file)
logger = logging.getLogger(__name__)


def create_job_runner(settings: Settings, bot: Bot) -> JobRunner:
    """Wire the relay pipeline around one Bot instance."""
    notifier = TelegramNotifier(bot)
    uploader = TwoHopUploader(TelegramBackupStore(bot, settings.backup_channel_id))
    relay = ChunkedRelay(
        uploader,
        notifier,
        temp_dir=settings.temp_path,
        max_part_size=settings.max_part_size_bytes,
    )
    return JobRunner(
        downloader=build_downloader(settings),
        relay=relay,
        notifier=notifier,
        max_part_size=settings.max_part_size_bytes,
        download_timeout=settings.download_timeout_seconds,
        max_concurrent_jobs=settings.max_concurrent_jobs,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("🚀 Media relay starting up...")
    set_start_time()
    app.state.telegram_bot = None
    app.state.job_runner = None

    missing = validate_settings(settings)
    if missing:
        logger.warning(f"⚠️ Missing or invalid configuration: {', '.join(missing)}")

    settings.temp_path.mkdir(parents=True, exist_ok=True)

    # Initialize Telegram bot
    telegram_bot = None
    try:
        telegram_bot = TelegramBot(settings.telegram_bot_token)
        await telegram_bot.initialize()
        app.state.telegram_bot = telegram_bot
        app.state.job_runner = create_job_runner(settings, telegram_bot.bot)
        logger.info("✅ Relay pipeline ready")
    except Exception as e:
        logger.error(f"❌ Bot initialization failed: {e}")
        logger.info("Continuing without relay; /process will answer 503")

    create_tracked_task(
        run_periodic_cleanup(interval_hours=settings.cleanup_interval_hours),
        name="temp-cleanup",
    )

    yield

    logger.info("🛑 Media relay shutting down...")

    active_count = get_active_task_count()
    if active_count > 0:
        logger.info(f"Cancelling {active_count} active background tasks...")
        await cancel_all_tasks(timeout=5.0)

    if telegram_bot is not None:
        await telegram_bot.shutdown()
    logger.info("✅ Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Media Relay",
    description="Downloads media from a URL and relays it to a Telegram chat",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(ErrorHandlerMiddleware)
app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)

app.include_router(create_health_router())
app.include_router(relay_router)


@app.get("/")
async def root() -> Dict[str, str]:
    """Root endpoint with API info"""
    return {"message": "Media Relay API", "version": __version__, "status": "running"}


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting server on {settings.host}:{settings.port}")
    uvicorn.run("src.main:app", host=settings.host, port=settings.port, log_level="info")
