import logging

from utils.logging_config import setup_logging

# Initialize centralized logging configuration
setup_logging()

from app import main

# Silence SQL loggers, statements clutter the application log
for logger_name in ['aiosqlite', 'sqlalchemy', 'sqlalchemy.engine', 'sqlalchemy.pool', 'sqlalchemy.orm']:
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.WARNING)
    logger.propagate = False
    logger.addHandler(logging.NullHandler())

if __name__ == '__main__':
    logging.info("[run.py] Starting Pakety API")
    main()
