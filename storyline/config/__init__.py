"""Client configuration"""

import logging
from dotenv import load_dotenv

load_dotenv()

from .loader import load_raw_config
from .api import Api
from .paging import Paging
from .session import SessionCfg

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s]: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(format=LOG_FORMAT, datefmt=DATE_FORMAT, level=logging.INFO)
logging.getLogger("aiohttp.access").setLevel(logging.WARNING)

_RAW_CONFIG = load_raw_config()

api = Api(_RAW_CONFIG)
paging = Paging(_RAW_CONFIG)
session = SessionCfg(_RAW_CONFIG)


class Config:
    api = api
    paging = paging
    session = session


__all__ = ["api", "paging", "session", "Config"]
