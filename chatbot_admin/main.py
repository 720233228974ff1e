import logging
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chatbot_admin.api.auth import router as auth_router
from chatbot_admin.api.chat import router as chat_router
from chatbot_admin.api.client import router as client_router
from chatbot_admin.api.custom_response import router as response_router
from chatbot_admin.api.support import router as support_router
from chatbot_admin.api.ws import router as ws_router
from chatbot_admin.core.config import settings
from chatbot_admin.core.db import get_engine
from chatbot_admin.services.realtime import SupportChatHub

# --- Логирование ---
logger = logging.getLogger('chatbot_admin')
logger.setLevel(logging.DEBUG)

handler = RotatingFileHandler(
    settings.log_file, maxBytes=200000, backupCount=100
)
handler.setLevel(logging.DEBUG)

formatter = logging.Formatter(
    '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
handler.setFormatter(formatter)
logger.addHandler(handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info('Chatbot admin запущен')
    try:
        yield
    finally:
        try:
            await get_engine().dispose()
        except Exception as e:
            logger.exception(f'Engine dispose error: {e}')


app = FastAPI(
    title=settings.app_title,
    description=settings.app_description,
    lifespan=lifespan,
)
# Один хаб на процесс: реестр WebSocket-подписок на чаты поддержки
app.state.hub = SupportChatHub()


@app.get("/health")
async def health():
    return {"status": 'ok'}


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=['GET', 'POST', 'PUT', 'DELETE', 'PATCH', 'OPTIONS'],
    allow_headers=['*'],
)
app.include_router(auth_router)
app.include_router(client_router)
app.include_router(response_router)
app.include_router(chat_router)
app.include_router(support_router)
app.include_router(ws_router)
