import logging
from logging.handlers import TimedRotatingFileHandler

from cubepacker import config

logger = logging.getLogger("cubepacker")
logger.setLevel(config.LOG_LEVEL.upper())

if config.LOG_FILE:
    handler = TimedRotatingFileHandler(
        filename=config.LOG_FILE,
        when='midnight',
        interval=1,
        backupCount=7,
        encoding='utf-8'
    )
else:
    handler = logging.StreamHandler()

formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
handler.setFormatter(formatter)

logger.addHandler(handler)
