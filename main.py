"""
main.py
========
Central entry point for the CallScope service.

Run with:
    uvicorn main:app --reload
"""

import logging

from dotenv import load_dotenv

load_dotenv()  # Load .env before any module reads env vars

# Configure logging for the entire application
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

# Transport-level chatter stays out of the service log
for _noisy_logger_name in (
    "httpx",
    "httpcore",
    "aiohttp.access",
    "aiohttp.client",
):
    logging.getLogger(_noisy_logger_name).setLevel(logging.WARNING)

from callscope.api import create_app  # noqa: E402

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
