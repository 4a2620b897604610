#!/usr/bin/env python3
"""
Backend server launcher script.

Puts the backend directory on the Python path so the flat packages
(``mrp``, ``workbook_ingestion``, ``settings``) import, then starts uvicorn.

Environment:
    MRP_HOST (default 127.0.0.1), MRP_PORT (default 8000), MRP_RELOAD (default 1)
"""

import sys
import os

# Add the backend directory to Python path
backend_dir = os.path.dirname(os.path.abspath(__file__))
if backend_dir not in sys.path:
    sys.path.insert(0, backend_dir)


def main() -> None:
    import uvicorn
    uvicorn.run(
        "api:app",
        host=os.environ.get("MRP_HOST", "127.0.0.1"),
        port=int(os.environ.get("MRP_PORT", "8000")),
        reload=os.environ.get("MRP_RELOAD", "1") == "1",
        reload_dirs=[backend_dir],
    )


if __name__ == "__main__":
    main()
