import logging
import os

import uvicorn
from dotenv import load_dotenv

from email_relay.api import create_app
from email_relay.config_loader import load_config, log_config_summary

# Load .env before reading any setting
load_dotenv()

# Configure logging level from environment
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format='[%(asctime)s] [%(levelname)s] %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
    force=True  # Force reconfiguration to avoid duplicate handlers
)


if __name__ == "__main__":
    config = load_config()
    log_config_summary(config)
    app = create_app(config)
    logging.getLogger(__name__).info("Email relay listening on %s:%s", config.http_host, config.http_port)
    uvicorn.run(app, host=config.http_host, port=config.http_port)
