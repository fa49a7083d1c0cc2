# app/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.api.routes import (
    auth_routes,
    prompt_routes,
    root_routes,
    search_routes,
    user_routes,
)
from app.core.config import settings
from app.core.exceptions import register_exception_handlers
from app.core.security import limiter
from app.core.startup import configure_logging, startup_event

configure_logging()

app = FastAPI(title="Prompt Library API")

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(root_routes.router)
app.include_router(auth_routes.router, prefix="/auth")
app.include_router(prompt_routes.router, prefix="/prompts")
app.include_router(search_routes.router)
app.include_router(user_routes.router, prefix="/users")

@app.on_event("startup")
async def app_startup():
    await startup_event(app)
