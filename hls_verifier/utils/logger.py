"""
日志模块
"""
import logging
import os
import sys


# 日志文件默认存放在项目根目录的 logs/ 目录下
LOGS_DIR = os.environ.get("HLS_VERIFIER_LOG_DIR") or os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))), "logs"
)
DEFAULT_LOG_FILE = os.path.join(LOGS_DIR, "hls_verifier.log")

# Log level mapping from string to logging constant
LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def get_log_level_from_env() -> int:
    """Get log level from environment variable LOG_LEVEL or HLS_VERIFIER_LOG_LEVEL."""
    level_str = os.environ.get("HLS_VERIFIER_LOG_LEVEL") or os.environ.get("LOG_LEVEL") or "INFO"
    return LOG_LEVEL_MAP.get(level_str.upper(), logging.INFO)


def set_log_level(level: int | str) -> None:
    """Change the level of the package logger and all of its handlers."""
    if isinstance(level, str):
        level = LOG_LEVEL_MAP.get(level.upper(), logging.INFO)
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)


def setup_logger(name="hls_verifier", level=None, log_file=None):
    """配置并返回日志记录器

    Args:
        name: Logger name
        level: Log level (if None, read from environment variable)
        log_file: Log file path (if None, use default in logs/ directory)

    The console handler writes to stderr: stdout carries the validation tree.
    """
    if level is None:
        level = get_log_level_from_env()

    if log_file is None:
        log_file = DEFAULT_LOG_FILE

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # 防止重复添加处理器
    if logger.hasHandlers():
        return logger

    formatter = logging.Formatter(
        "%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # 文件处理器
    try:
        os.makedirs(os.path.dirname(log_file), exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
    except OSError as e:
        # Read-only installs still get console logging.
        sys.stderr.write(f"Cannot open log file {log_file}: {e}\n")
    else:
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # 控制台处理器
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


logger = setup_logger()
