import logging

import uvicorn

from api.config import settings
from api.main import create_app

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

app = create_app()

if __name__ == "__main__":
    uvicorn.run("api.wsgi:app", host="0.0.0.0", port=3010, reload=settings.DEBUG)
