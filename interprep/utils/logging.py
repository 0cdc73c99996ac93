"""
Logging utilities for the interview engine.
"""
import os
import logging


def setup_logging(log_file_path: str, level: str = "DEBUG") -> str:
    """
    Set up logging to file with minimal console output.

    The console only receives CRITICAL records so the interactive
    interview output stays readable; everything else goes to the file.

    Args:
        log_file_path: Full path to the log file
        level: Minimum level written to the log file

    Returns:
        Path to the log file
    """
    log_dir = os.path.dirname(log_file_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    file_handler = logging.FileHandler(log_file_path, mode='a', encoding='utf-8')
    file_handler.setLevel(getattr(logging, level.upper(), logging.DEBUG))
    file_handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s - %(message)s'))

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.CRITICAL)
    console_handler.setFormatter(logging.Formatter('%(message)s'))

    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    # Google client libraries are chatty at DEBUG
    for noisy in ("urllib3", "google", "grpc"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return log_file_path
