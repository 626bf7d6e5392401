"""
Test utilities for PayGuard
"""

import json
import logging
import uuid
from contextlib import contextmanager
from typing import List, Dict, Any
from io import StringIO

from payguard.config.logging import JsonFormatter


class LogCapture:
    """Utility class to capture and parse structured logs during tests"""

    def __init__(self):
        self.logs = []
        self.raw = ""
        self.handler = None
        self.stream = None

    def start_capture(self):
        """Start capturing logs"""
        self.stream = StringIO()
        self.handler = logging.StreamHandler(self.stream)
        self.handler.setLevel(logging.DEBUG)
        self.handler.setFormatter(JsonFormatter())

        # Records from the payguard loggers propagate to the root logger
        logging.getLogger().addHandler(self.handler)

    def stop_capture(self):
        """Stop capturing logs and parse captured content"""
        if self.handler:
            logging.getLogger().removeHandler(self.handler)
            self.raw = self.stream.getvalue()
            self._parse_logs(self.raw)
            self.stream.close()
            self.handler = None

    def _parse_logs(self, content: str):
        for line in content.strip().split("\n"):
            if line.strip():
                try:
                    self.logs.append(json.loads(line))
                except json.JSONDecodeError:
                    self.logs.append({"message": line, "format": "text"})

    def get_logs(self) -> List[Dict[str, Any]]:
        return self.logs

    def get_logs_by_event_type(self, event_type: str) -> List[Dict[str, Any]]:
        """Get logs filtered by event type"""
        return [log for log in self.logs if log.get("event_type") == event_type]


@contextmanager
def capture_logs():
    """
    Context manager to capture logs during test execution

    Usage:
        with capture_logs() as log_capture:
            # Your test code here
        logs = log_capture.get_logs()
    """
    log_capture = LogCapture()
    log_capture.start_capture()
    try:
        yield log_capture
    finally:
        log_capture.stop_capture()


# Shared test fixtures data
TEST_MASTER_SECRET = "test-master-secret-0123456789abcdef"
OTHER_MASTER_SECRET = "another-master-secret-fedcba9876543210"

TEST_ORG_SLUG = "tienda-demo"
TEST_ORG_ID = uuid.UUID("6f1c2b8e-3d4a-4e5f-9a0b-1c2d3e4f5a6b")

TEST_EPAYCO_CUSTOMER_ID = "12345"
TEST_EPAYCO_KEY = "test_encryption_key"
TEST_WOMPI_INTEGRITY_SECRET = "test_integrity_secret"
TEST_META_APP_SECRET = "meta_app_secret_123"
TEST_META_VERIFY_TOKEN = "verify-token-abc"
TEST_EVOLUTION_SECRET = "evolution_secret_456"
