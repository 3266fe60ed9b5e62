"""
日志管理模块

功能：
- 支持控制台日志（默认输出到stderr，保持stdout给命令输出）
- 支持文件日志（按日期或按大小轮转）
- 支持结构化日志（JSON格式，record.extra_data合并到输出）
- configure_logging 一次性配置本项目所有包的logger
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import TimedRotatingFileHandler, RotatingFileHandler
from pathlib import Path
from typing import Dict, Any, Optional, Union, Sequence, List, TextIO


# 项目内各顶层包的logger名称（模块使用 logging.getLogger(__name__)）
PACKAGE_LOGGERS = ("core", "storage", "utils", "cli")


class LoggerConfigError(Exception):
    """日志配置错误"""
    pass


class JsonFormatter(logging.Formatter):
    """JSON格式日志格式化器"""

    def format(self, record: logging.LogRecord) -> str:
        """格式化日志记录为JSON"""
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage()
        }

        # 添加额外字段
        extra_data = getattr(record, "extra_data", None)
        if isinstance(extra_data, dict):
            log_data.update(extra_data)

        # 添加异常信息
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """文本格式日志格式化器"""

    def __init__(self, fmt: Optional[str] = None):
        super().__init__(
            fmt=fmt or "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )


def _make_formatter(format: str) -> logging.Formatter:
    if format == "json":
        return JsonFormatter()
    if format == "text":
        return TextFormatter()
    raise LoggerConfigError(f"无效的日志格式: {format}. 有效值: ['text', 'json']")


def build_file_handler(path: str, rotation: str = "none", format: str = "text",
                       backup_count: int = 7, max_bytes: int = 10 * 1024 * 1024) -> logging.Handler:
    """
    构建文件处理器

    Raises:
        LoggerConfigError: 无效的轮转策略或格式
    """
    if rotation not in ("none", "daily", "size"):
        raise LoggerConfigError(f"无效的轮转策略: {rotation}")
    formatter = _make_formatter(format)

    # 确保目录存在
    Path(path).parent.mkdir(parents=True, exist_ok=True)

    if rotation == "daily":
        handler = TimedRotatingFileHandler(
            path,
            when="midnight",
            interval=1,
            backupCount=backup_count,
            encoding="utf-8"
        )
    elif rotation == "size":
        handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8"
        )
    else:
        handler = logging.FileHandler(path, encoding="utf-8")

    handler.setFormatter(formatter)
    return handler


class Logger:
    """
    日志管理器

    包装标准库logger，管理其处理器和级别
    """

    # 日志级别映射
    LEVEL_MAP = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL
    }

    def __init__(self, name: str, level: str = "INFO", propagate: bool = False):
        """
        初始化日志管理器

        Args:
            name: Logger名称
            level: 日志级别 (DEBUG, INFO, WARNING, ERROR, CRITICAL)，不区分大小写
            propagate: 是否继续传递给父logger

        Raises:
            LoggerConfigError: 无效的日志级别
        """
        level = self._check_level(level)

        self.name = name
        self.level = level
        self._logger = logging.getLogger(name)
        self._logger.setLevel(self.LEVEL_MAP[level])

        # 清除已有处理器（避免重复配置时重复输出）
        for handler in list(self._logger.handlers):
            self._logger.removeHandler(handler)
            handler.close()
        self._logger.propagate = propagate

    @classmethod
    def _check_level(cls, level: str) -> str:
        normalized = str(level).upper()
        if normalized not in cls.LEVEL_MAP:
            raise LoggerConfigError(f"无效的日志级别: {level}. 有效值: {list(cls.LEVEL_MAP.keys())}")
        return normalized

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    @property
    def handlers(self) -> List[logging.Handler]:
        return list(self._logger.handlers)

    def add_console_handler(self, format: str = "text", stream: Optional[TextIO] = None) -> "Logger":
        """
        添加控制台处理器

        Args:
            format: 格式类型 ("text", "json")
            stream: 输出流，默认stderr

        Returns:
            Logger: 自身，支持链式调用
        """
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setLevel(self.LEVEL_MAP[self.level])
        handler.setFormatter(_make_formatter(format))

        self._logger.addHandler(handler)
        return self

    def add_file_handler(
        self,
        path: str,
        rotation: str = "none",
        format: str = "text",
        backup_count: int = 7,
        max_bytes: int = 10 * 1024 * 1024
    ) -> "Logger":
        """
        添加文件处理器

        Args:
            path: 日志文件路径
            rotation: 轮转策略 ("none", "daily", "size")
            format: 格式类型 ("text", "json")
            backup_count: 保留的备份文件数量
            max_bytes: 按大小轮转时的单文件上限

        Returns:
            Logger: 自身，支持链式调用
        """
        return self.add_handler(build_file_handler(path, rotation, format, backup_count, max_bytes))

    def add_handler(self, handler: logging.Handler) -> "Logger":
        """添加已构建的处理器（级别与本Logger一致）"""
        handler.setLevel(self.LEVEL_MAP[self.level])
        self._logger.addHandler(handler)
        return self

    def log(self, level: str, message: Union[str, Dict[str, Any]]) -> None:
        """
        记录日志

        Args:
            level: 日志级别
            message: 日志消息（字符串，或带 "message" 键的结构化字典）
        """
        levelno = self.LEVEL_MAP[self._check_level(level)]
        if isinstance(message, dict):
            # 结构化日志
            self._logger.log(levelno, message.get("message", ""), extra={"extra_data": message})
        else:
            self._logger.log(levelno, message)

    def set_level(self, level: str) -> None:
        """
        设置日志级别（同时更新所有处理器）

        Args:
            level: 日志级别
        """
        level = self._check_level(level)
        self.level = level
        self._logger.setLevel(self.LEVEL_MAP[level])

        for handler in self._logger.handlers:
            handler.setLevel(self.LEVEL_MAP[level])


def configure_logging(level: str = "INFO",
                      format: str = "text",
                      log_file: Optional[str] = None,
                      rotation: str = "none",
                      names: Sequence[str] = PACKAGE_LOGGERS,
                      stream: Optional[TextIO] = None) -> Dict[str, Logger]:
    """
    配置项目所有包的日志输出

    Args:
        level: 日志级别
        format: 格式类型 ("text", "json")
        log_file: 额外写入的日志文件
        rotation: 日志文件轮转策略
        names: 需要配置的logger名称
        stream: 控制台输出流，默认stderr

    Returns:
        Dict[str, Logger]: 名称 -> Logger

    Raises:
        LoggerConfigError: 级别、格式或轮转策略无效
    """
    level = Logger._check_level(level)
    # 所有包共用同一个文件处理器，轮转只发生一次
    file_handler = build_file_handler(log_file, rotation, format) if log_file else None

    loggers = {}
    for name in names:
        # 保持向根logger传递，便于宿主程序（和测试）捕获
        managed = Logger(name, level=level, propagate=True).add_console_handler(format, stream)
        if file_handler is not None:
            managed.add_handler(file_handler)
        loggers[name] = managed
    return loggers
