from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from questboard.routes import account, auth, cron, explore, follow, kpis, leaderboard, like, posts, profile, quests
from dotenv import load_dotenv
import os
import logging

load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    redirect_slashes=False,
    title="QuestBoard API",
    description="API for QuestBoard: quests, KPIs, profiles and follows",
    version="1.0.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin for origin in [os.getenv("FRONTEND_URL")] if origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Errors go out as {"error": ...} bodies
@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = [{"loc": list(e["loc"]), "msg": e["msg"]} for e in exc.errors()]
    return JSONResponse(status_code=400, content={"error": "Invalid request body", "details": details})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# Include routers
app.include_router(auth.router, prefix="/api/auth")
app.include_router(account.router, prefix="/api/account")
app.include_router(profile.router, prefix="/api/profile")
app.include_router(quests.router, prefix="/api/quests")
app.include_router(kpis.router, prefix="/api/kpis")
app.include_router(follow.router, prefix="/api/follow")
app.include_router(like.router, prefix="/api/like")
app.include_router(posts.router, prefix="/api/posts")
app.include_router(explore.router, prefix="/api/explore")
app.include_router(leaderboard.router, prefix="/api/leaderboard")
app.include_router(cron.router, prefix="/api/cron")
