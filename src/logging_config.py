import logging
import sys
from pythonjsonlogger import jsonlogger

SERVICE_NAME = "nikigai-engine"

class CustomJsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super(CustomJsonFormatter, self).add_fields(log_record, record, message_dict)
        if not log_record.get('timestamp'):
            log_record['timestamp'] = record.created
        log_record['level'] = (log_record.get('level') or record.levelname).upper()
        log_record['service'] = SERVICE_NAME
        log_record['logger'] = record.name
        log_record['module'] = record.module
        log_record['lineno'] = record.lineno


def _is_json_handler(handler: logging.Handler) -> bool:
    return isinstance(handler, logging.StreamHandler) and isinstance(handler.formatter, CustomJsonFormatter)


def setup_logging(log_level_str: str = "INFO") -> logging.Logger:
    """
    Configures structured JSON logging on the root logger. Safe to call more
    than once; the level is updated and a single JSON handler is kept.
    """
    log_level = getattr(logging, log_level_str.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if not any(_is_json_handler(h) for h in root_logger.handlers):
        log_handler = logging.StreamHandler(sys.stdout)
        log_handler.setFormatter(CustomJsonFormatter('%(timestamp)s %(level)s %(name)s %(message)s'))
        root_logger.addHandler(log_handler)
        root_logger.info(f"Structured JSON logging configured with level: {logging.getLevelName(log_level)}")
    else:
        root_logger.debug(f"Structured JSON logging already configured. Level now: {logging.getLevelName(log_level)}")

    return root_logger
