import os
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from roundtable.llm import ChatModel, HttpChat
from roundtable.rooms import RoomRegistry
from roundtable.routes import router
from roundtable.storage import Storage

load_dotenv(Path(__file__).parent.parent / ".env")

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"


def create_app(data_dir: Path | None = None, chat: ChatModel | None = None) -> FastAPI:
    resolved = data_dir or Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR)))
    storage = Storage(resolved)
    settings = storage.get_config()
    rooms = RoomRegistry(storage, chat or HttpChat(timeout=settings.http_timeout))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await rooms.close_all()

    app = FastAPI(title="Roundtable", lifespan=lifespan)
    app.state.storage = storage
    app.state.rooms = rooms
    app.include_router(router, prefix="/api")
    return app


# Default app instance for uvicorn (uses DATA_DIR env var or default)
app = create_app()
