import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from avisscore.api.endpoints import router as api_router
from avisscore.api.views import router as views_router

# Configure logging
logging.basicConfig(level=logging.INFO)

app = FastAPI(title="AvisScore API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)
app.include_router(views_router)

if __name__ == '__main__':
    import uvicorn

    port = int(os.environ.get('PORT', 8080))
    uvicorn.run(app, host='0.0.0.0', port=port)
