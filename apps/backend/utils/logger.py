import logging
from pythonjsonlogger import jsonlogger
import sys
from datetime import datetime, timezone

from config import settings

_LOG_FORMAT = '%(timestamp)s %(level)s %(name)s %(message)s'


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super(CustomJsonFormatter, self).add_fields(log_record, record, message_dict)
        if not log_record.get('timestamp'):
            log_record['timestamp'] = datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.%fZ')
        if log_record.get('level'):
            log_record['level'] = log_record['level'].upper()
        else:
            log_record['level'] = record.levelname


def get_logger(name):
    logger = logging.getLogger(name)

    # Avoid adding handlers multiple times
    if not logger.handlers:
        if settings.LOG_FILE:
            try:
                fh = logging.FileHandler(settings.LOG_FILE, encoding='utf-8')
                fh.setFormatter(CustomJsonFormatter(_LOG_FORMAT))
                logger.addHandler(fh)
            except OSError as e:
                print(f"Failed to initialize FileHandler: {e}")

        sh = logging.StreamHandler(sys.stdout)
        sh.setFormatter(CustomJsonFormatter(_LOG_FORMAT))
        logger.addHandler(sh)

        logger.setLevel(getattr(logging, settings.LOG_LEVEL, logging.INFO))
        logger.propagate = False

    return logger
