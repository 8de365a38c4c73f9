from dotenv import load_dotenv
load_dotenv()

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
from routes import design_logs

logging.basicConfig(level=config.LOG_LEVEL)

app = FastAPI(title="Design Telemetry API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(design_logs.router)


@app.get("/")
def health():
    return {"status": "ok", "service": "design-telemetry"}
