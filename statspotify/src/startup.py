"""
Process bootstrap shared by the token service and the client library.

Imported first by every module that reads the environment: loads .env from the
working directory, then installs a plain root handler when the host (uvicorn,
pytest, a CLI) has not configured logging itself.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

ENV_FILE = os.path.join(os.getcwd(), ".env")

# Values already exported by the shell or process manager take precedence
ENV_LOADED = load_dotenv(dotenv_path=ENV_FILE, override=False)

if not logging.getLogger().handlers:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

logging.getLogger("startup").debug("Environment bootstrap done (env_file=%s, loaded=%s)", ENV_FILE, ENV_LOADED)
