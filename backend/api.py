from __future__ import annotations

from typing import Any, Dict
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mrp.api_mrp import router as mrp_router
from settings import MrpSettings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


app = FastAPI(title="MRP Planner")
app.include_router(mrp_router)
logger.info("MRP API loaded successfully")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -------------------------------
# Endpoints
# -------------------------------

@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/settings")
def get_settings() -> Dict[str, Any]:
    """Configuração ativa (scan de folhas/cabeçalhos, limites de upload, diretórios)."""
    return MrpSettings.to_dict()
