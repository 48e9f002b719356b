"""
Logging Configuration for the household tax ledger.

Provides structured logging with:
- JSON formatting for log files and aggregators
- Human-readable formatting for development
- Calculation-specific logging for audit trails
- Timing of calculation runs
"""

import logging
import json
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Dict, Any, Callable, Iterator
from functools import wraps
from pathlib import Path
from contextvars import ContextVar

# Context variables for calculation tracking
entity_id_var: ContextVar[Optional[str]] = ContextVar('entity_id', default=None)
tax_year_var: ContextVar[Optional[int]] = ContextVar('tax_year', default=None)


def _json_default(value: Any) -> Any:
    # Decimal money keeps its exact string form in JSON output
    return str(value)


class JsonFormatter(logging.Formatter):
    """
    JSON log formatter for structured logging.

    Outputs logs as JSON objects for easy parsing by log aggregators.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # Add context variables
        entity_id = entity_id_var.get()
        if entity_id:
            log_data["entity_id"] = entity_id

        tax_year = tax_year_var.get()
        if tax_year is not None:
            log_data["tax_year"] = tax_year

        # Add extra fields from the record
        if hasattr(record, 'extra_data'):
            log_data.update(record.extra_data)

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=_json_default)


class ReadableFormatter(logging.Formatter):
    """
    Human-readable log formatter for development.
    """

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m',
    }

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        """Format log record for human readability."""
        if self.use_colors:
            color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
            reset = self.COLORS['RESET']
        else:
            color = reset = ''

        timestamp = datetime.now().strftime('%H:%M:%S.%f')[:-3]
        level = f"{color}{record.levelname:8s}{reset}"

        message = f"{timestamp} {level} [{record.name}] {record.getMessage()}"

        # Add extra fields
        if hasattr(record, 'extra_data') and record.extra_data:
            extras = ' | '.join(f"{k}={v}" for k, v in record.extra_data.items())
            message += f" | {extras}"

        return message


class ContextLogger(logging.LoggerAdapter):
    """
    Logger adapter that includes context in all log messages.
    """

    def process(self, msg: str, kwargs: Dict) -> tuple:
        """Add context to log message."""
        extra = kwargs.get('extra', {})

        data = dict(self.extra)
        entity_id = entity_id_var.get()
        if entity_id and 'entity_id' not in data:
            data['entity_id'] = entity_id

        # Values passed with the call win over adapter context
        data.update(extra.get('extra_data', {}))
        extra['extra_data'] = data

        kwargs['extra'] = extra
        return msg, kwargs


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[Path] = None
) -> None:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, output JSON formatted logs
        log_file: Optional file path for log output
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers
    root_logger.handlers.clear()

    # Create formatter
    if json_output:
        formatter = JsonFormatter()
    else:
        formatter = ReadableFormatter(use_colors=sys.stdout.isatty())

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # File handler if specified
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JsonFormatter())  # Always JSON for files
        root_logger.addHandler(file_handler)


def configure_from_settings() -> None:
    """Configure logging from LOG_* settings."""
    from config.settings import get_settings

    log_settings = get_settings().logging
    configure_logging(
        level=log_settings.level,
        json_output=log_settings.json_output,
        log_file=log_settings.file,
    )


def get_logger(name: str, **extra) -> ContextLogger:
    """
    Get a context-aware logger.

    Args:
        name: Logger name (typically __name__)
        **extra: Additional context to include in all logs

    Returns:
        ContextLogger instance
    """
    base_logger = logging.getLogger(name)
    return ContextLogger(base_logger, extra)


@contextmanager
def calculation_context(entity_id: Optional[str], tax_year: Optional[int]) -> Iterator[None]:
    """Bind entity and tax year to every log record emitted inside the block."""
    entity_token = entity_id_var.set(entity_id)
    year_token = tax_year_var.set(tax_year)
    try:
        yield
    finally:
        entity_id_var.reset(entity_token)
        tax_year_var.reset(year_token)


class CalculationLogger:
    """
    Specialized logger for tax and reconciliation calculations.

    Provides detailed logging of:
    - Calculation inputs
    - Step-by-step computation
    - Results and their timing
    """

    def __init__(self, calculation: str, entity_id: Optional[str] = None):
        """
        Initialize calculation logger.

        Args:
            calculation: Name of the calculation ("tax", "audit_risk", ...)
            entity_id: Entity the calculation is for; None for the family
        """
        self.logger = get_logger(
            f"calculation.{calculation}",
            entity_id=entity_id or "family",
        )
        self.calculation = calculation
        self.entity_id = entity_id
        self._start_time: Optional[float] = None
        self._step_times: Dict[str, int] = {}

    def start_calculation(self, tax_year: int, **inputs) -> None:
        """Log calculation start."""
        self._start_time = time.perf_counter()
        self.logger.info(
            f"Starting {self.calculation} calculation",
            extra={'extra_data': {'tax_year': tax_year, **inputs}}
        )

    def log_step(self, step_name: str, **data) -> float:
        """
        Log a calculation step.

        Args:
            step_name: Name of the step
            **data: Step-specific data to log

        Returns:
            Start time to pass to complete_step
        """
        step_start = time.perf_counter()
        self.logger.debug(
            f"Calculation step: {step_name}",
            extra={'extra_data': {'step': step_name, **data}}
        )
        return step_start

    def complete_step(self, step_name: str, step_start: float, **result) -> None:
        """Log step completion with timing."""
        duration_ms = int((time.perf_counter() - step_start) * 1000)
        self._step_times[step_name] = duration_ms
        self.logger.debug(
            f"Completed step: {step_name}",
            extra={'extra_data': {'step': step_name, 'duration_ms': duration_ms, **result}}
        )

    def log_income(self, assessable_income: Decimal, reliefs: Decimal, taxable_income: Decimal) -> None:
        """Log income and relief calculation."""
        self.logger.info(
            "Income calculated",
            extra={'extra_data': {
                'assessable_income': assessable_income,
                'reliefs': reliefs,
                'taxable_income': taxable_income,
            }}
        )

    def log_tax(self, tax_on_income: Decimal, apit: Decimal, wht: Decimal) -> None:
        """Log slab tax and credits."""
        self.logger.info(
            "Tax computed",
            extra={'extra_data': {
                'tax_on_income': tax_on_income,
                'apit': apit,
                'wht': wht,
            }}
        )

    def log_flows(self, inflows: Decimal, outflows: Decimal, living_expenses: Decimal) -> None:
        """Log sources-and-uses totals."""
        self.logger.info(
            "Flows classified",
            extra={'extra_data': {
                'inflows': inflows,
                'outflows_excl_living': outflows,
                'derived_living_expenses': living_expenses,
            }}
        )

    def log_result(self, **result) -> None:
        """Log final calculation result."""
        duration_ms = int((time.perf_counter() - self._start_time) * 1000) if self._start_time else 0

        self.logger.info(
            f"{self.calculation} calculation complete",
            extra={'extra_data': {
                **result,
                'duration_ms': duration_ms,
                'step_times': self._step_times,
            }}
        )

    def log_warning(self, message: str, **data) -> None:
        """Log calculation warning."""
        self.logger.warning(message, extra={'extra_data': data})


def log_performance(name: Optional[str] = None) -> Callable:
    """
    Decorator to log function performance.

    Args:
        name: Optional name override for the log entry

    Returns:
        Decorator function
    """
    def decorator(func: Callable) -> Callable:
        func_name = name or func.__name__

        @wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_logger("performance")
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration_ms = int((time.perf_counter() - start) * 1000)
                logger.error(
                    f"{func_name} failed",
                    extra={'extra_data': {'duration_ms': duration_ms, 'error': str(e)}}
                )
                raise
            duration_ms = int((time.perf_counter() - start) * 1000)
            logger.debug(
                f"{func_name} completed",
                extra={'extra_data': {'duration_ms': duration_ms}}
            )
            return result

        return wrapper

    return decorator
