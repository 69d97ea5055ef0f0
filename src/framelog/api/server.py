"""
ASGI Entry Point for the framelog API.

Exposes the `app` object for ASGI servers. `.env` is loaded before the
factory runs so `FRAMELOG_*` settings are visible to it.

Usage
-----
    $ python -m framelog.api.server
    $ uvicorn framelog.api.server:app --reload
"""

from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from framelog.api.app import create_app
from framelog.core.settings import load_settings

load_dotenv(dotenv_path=Path(".env"))

app = create_app()


def main() -> None:
    """Run the API server locally for development."""
    cfg = load_settings()
    print(f"[Server] data dir: {cfg.data_dir}  file key: {cfg.file_key}")
    print(f"[Server] FIGMA_TOKEN: {'✅ set' if cfg.figma_token else '❌ missing (stored PAT used)'}")
    uvicorn.run(
        "framelog.api.server:app",
        host="0.0.0.0",
        port=8000,
        reload=cfg.is_dev,
        log_level=cfg.log_level.lower(),
    )


if __name__ == "__main__":
    main()
