from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import games
from app.backend.api.ws import router as ws_router

app = FastAPI(title="Rehab Motion Games API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(games.router)
app.include_router(ws_router)


@app.get("/health")
def health():
    return {"ok": True}
