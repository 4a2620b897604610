"""
MRP Planner - Settings
======================

Configuração do motor MRP carregada de variáveis de ambiente.

Uso:
    from settings import MrpSettings

    scan_rows = MrpSettings.get_config().sheet_scan_rows

Configuração via variáveis de ambiente (ou ficheiro .env):
    MRP_SHEET_SCAN_ROWS=15
    MRP_HEADER_SCAN_ROWS=10
    MRP_DATA_DIR=/srv/mrp/uploads
"""

from __future__ import annotations

import os
import logging
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv()

PROJECT_ROOT = Path(__file__).resolve().parents[1]


# ═══════════════════════════════════════════════════════════════════════════════
# SETTINGS DATACLASS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class MrpSettingsConfig:
    """
    Configuração do motor MRP.

    Os defaults reproduzem o comportamento das folhas de cálculo de origem
    (15 linhas para pontuar folhas, 10 linhas para procurar o cabeçalho).
    """
    sheet_scan_rows: int = 15
    header_scan_rows: int = 10
    upload_max_bytes: int = 10 * 1024 * 1024
    preview_rows: int = 30
    load_workers: int = 5
    default_start_week: int = 1
    default_end_week: int = 20

    data_dir: Path = field(default_factory=lambda: PROJECT_ROOT / "data" / "uploads")
    cache_dir: Path = field(default_factory=lambda: PROJECT_ROOT / "data" / "document_cache")


class MrpSettings:
    """
    Singleton para a configuração MRP.

    Uso:
        config = MrpSettings.get_config()
        MrpSettings.reset()  # força releitura do ambiente (testes)
    """

    _instance: Optional[MrpSettingsConfig] = None

    @classmethod
    def _load_from_env(cls) -> MrpSettingsConfig:
        """Carrega configuração de variáveis de ambiente."""
        config = MrpSettingsConfig()

        int_mapping = {
            "MRP_SHEET_SCAN_ROWS": "sheet_scan_rows",
            "MRP_HEADER_SCAN_ROWS": "header_scan_rows",
            "MRP_UPLOAD_MAX_BYTES": "upload_max_bytes",
            "MRP_PREVIEW_ROWS": "preview_rows",
            "MRP_LOAD_WORKERS": "load_workers",
            "MRP_DEFAULT_START_WEEK": "default_start_week",
            "MRP_DEFAULT_END_WEEK": "default_end_week",
        }

        for env_var, attr_name in int_mapping.items():
            value = os.environ.get(env_var)
            if value:
                try:
                    parsed = int(value)
                except ValueError:
                    logger.warning(f"Invalid value for {env_var}: {value}")
                    continue
                if parsed <= 0:
                    logger.warning(f"Ignoring non-positive {env_var}: {value}")
                    continue
                setattr(config, attr_name, parsed)
                logger.info(f"Setting {attr_name} = {parsed}")

        path_mapping = {
            "MRP_DATA_DIR": "data_dir",
            "MRP_CACHE_DIR": "cache_dir",
        }

        for env_var, attr_name in path_mapping.items():
            value = os.environ.get(env_var)
            if value:
                setattr(config, attr_name, Path(value).expanduser())

        return config

    @classmethod
    def get_config(cls) -> MrpSettingsConfig:
        """Obtém configuração atual."""
        if cls._instance is None:
            cls._instance = cls._load_from_env()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset para recarregar config."""
        cls._instance = None

    @classmethod
    def to_dict(cls) -> Dict[str, Any]:
        """Exporta configuração como dict."""
        data = asdict(cls.get_config())
        data["data_dir"] = str(data["data_dir"])
        data["cache_dir"] = str(data["cache_dir"])
        return data
