import logging
import sys

from fastapi import FastAPI

from termpal.api.routes_chats import router as chats_router
from termpal.api.routes_logs import router as logs_router, log_handler

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

logging.basicConfig(level=logging.INFO, format=LOG_FORMAT, stream=sys.stdout)
logging.getLogger().addHandler(log_handler)

VERSION = "0.1.0"

app = FastAPI(title="TermPal Backend", version=VERSION)

app.include_router(chats_router)
app.include_router(logs_router)


@app.get("/api/health")
async def health_check():
    return {"status": "ok", "version": VERSION}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8765)
