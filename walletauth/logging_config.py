"""
Logging configuration for walletauth.

Provides structured JSON logging for audit trails and debugging.
Signatures are never logged; session tokens only in masked form.
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Optional

from .util import mask_sensitive, short_address

# Context variable for request ID tracking
request_id_var: ContextVar[str] = ContextVar('request_id', default='')


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs logs in a consistent JSON format suitable for
    log aggregation systems like ELK, Splunk, or CloudWatch.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # Add request ID if available
        request_id = request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Add extra fields
        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        return json.dumps(log_data)


class AuditLogger:
    """
    Specialized logger for audit events.

    Provides methods for logging challenge issuance, verification
    outcomes, and security-relevant actions.
    """

    def __init__(self, name: str = "walletauth.audit"):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, event_type: str, **kwargs) -> None:
        """Internal logging method with extra fields."""
        if not self._logger.isEnabledFor(level):
            return
        extra = {
            "event_type": event_type,
            "request_id": request_id_var.get(),
            **kwargs
        }

        record = self._logger.makeRecord(
            self._logger.name,
            level,
            "",
            0,
            f"{event_type}: {kwargs.get('message', '')}",
            (),
            None
        )
        record.extra_fields = extra
        self._logger.handle(record)

    def challenge_issued(self, address: str, expires_at: int) -> None:
        """Log a new challenge."""
        self._log(
            logging.INFO,
            "CHALLENGE_ISSUED",
            address=address,
            expires_at=expires_at,
            message=f"Challenge issued for {short_address(address)}"
        )

    def challenge_rejected(self, address: Optional[str], reason: str) -> None:
        """Log a refused initiation."""
        self._log(
            logging.WARNING,
            "CHALLENGE_REJECTED",
            address=address,
            reason=reason,
            message=f"Challenge rejected: {reason}"
        )

    def verification_succeeded(self, address: str, token: str) -> None:
        """Log a successful verification."""
        self._log(
            logging.INFO,
            "VERIFICATION_SUCCEEDED",
            address=address,
            token=mask_sensitive(token),
            message=f"Wallet {short_address(address)} verified"
        )

    def verification_failed(self, address: Optional[str], reason: str) -> None:
        """Log a failed verification."""
        self._log(
            logging.WARNING,
            "VERIFICATION_FAILED",
            address=address,
            reason=reason,
            message=f"Verification failed: {reason}"
        )

    def session_revoked(self, address: str, token: str) -> None:
        self._log(
            logging.INFO,
            "SESSION_REVOKED",
            address=address,
            token=mask_sensitive(token),
            message=f"Session revoked for {short_address(address)}"
        )

    def security_event(self, event: str, address: Optional[str] = None) -> None:
        """Log an anomaly worth alerting on, such as a lost consume race."""
        self._log(
            logging.WARNING,
            "SECURITY_EVENT",
            security_event=event,
            address=address,
            message=f"Security event: {event}" + (f" for {short_address(address)}" if address else "")
        )

    def rate_limit_exceeded(
        self,
        client_id: str,
        endpoint: str
    ) -> None:
        """Log rate limit exceeded."""
        self._log(
            logging.WARNING,
            "RATE_LIMIT_EXCEEDED",
            client_id=client_id,
            endpoint=endpoint,
            message=f"Rate limit exceeded for {client_id} on {endpoint}"
        )


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatting (recommended for production)
        log_file: Optional file path for log output
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # Create formatter
    if json_format:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # File handler (if specified)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def set_request_id(request_id: Optional[str] = None) -> str:
    """
    Set the request ID for the current context.

    Args:
        request_id: Request ID to set, or None to generate one

    Returns:
        The request ID that was set
    """
    if request_id is None:
        request_id = str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


# Global audit logger instance
audit_log = AuditLogger()
