"""
Centralized logging service for Naked Mailing List.
Provides structured logging with database storage and easy integration.

Modules log through the standard ``logging`` module; when the extension is
initialised a DatabaseLogHandler is attached to the ``naked_mailing_list``
logger so those records are also persisted to the ``app_logs`` table.
"""

import json
import logging
import sqlite3
import traceback
from datetime import datetime, timedelta

from flask import request, has_request_context


class LoggingService:
    """Centralized logging service for application-wide logging"""

    LOGS_TABLE = 'app_logs'

    def __init__(self, database):
        self.db = database
        self._table_ready = False

    @property
    def table(self):
        return self.db.table(self.LOGS_TABLE)

    def _ensure_logs_table(self):
        """Ensure the app_logs table exists"""
        if self._table_ready:
            return
        with self.db.connect() as conn:
            conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {self.table} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    level TEXT NOT NULL,
                    source TEXT NOT NULL,
                    message TEXT NOT NULL,
                    details TEXT,
                    ip_address TEXT,
                    user_agent TEXT,
                    request_path TEXT
                )
            """)

            # Create index for better performance
            conn.execute(f"""
                CREATE INDEX IF NOT EXISTS idx_{self.table}_timestamp
                ON {self.table}(timestamp DESC)
            """)
            conn.execute(f"""
                CREATE INDEX IF NOT EXISTS idx_{self.table}_level
                ON {self.table}(level)
            """)
        self._table_ready = True

    @staticmethod
    def _get_request_context():
        """Extract request context information"""
        if not has_request_context():
            return None, None, None

        ip_address = request.headers.get('X-Forwarded-For', request.remote_addr)
        if ip_address and ',' in ip_address:
            ip_address = ip_address.split(',')[0].strip()

        user_agent = request.headers.get('User-Agent', '')
        return ip_address, user_agent, request.path

    def log(self, level, source, message, details=None):
        """
        Log a message to the database

        Args:
            level (str): Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            source (str): Source component (subscribers, record_store, etc.)
            message (str): Main log message
            details (str/dict): Additional details (will be JSON-encoded if dict)
        """
        try:
            self._ensure_logs_table()

            ip_address, user_agent, request_path = self._get_request_context()

            if isinstance(details, dict):
                details = json.dumps(details, indent=2, default=str)

            timestamp = datetime.now().isoformat()

            with self.db.connect() as conn:
                conn.execute(f"""
                    INSERT INTO {self.table}
                    (timestamp, level, source, message, details, ip_address, user_agent, request_path)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    timestamp, level.upper(), source, message, details,
                    ip_address, user_agent, request_path
                ))
            return True

        except sqlite3.Error as e:
            # Fallback to console logging if database fails
            print(f"[{datetime.now().isoformat()}] [{level.upper()}] [{source}] {message}")
            if details:
                print(f"Details: {details}")
            print(f"Logging service error: {e}")
            return False

    def info(self, source, message, details=None):
        return self.log('INFO', source, message, details)

    def warning(self, source, message, details=None):
        return self.log('WARNING', source, message, details)

    def error(self, source, message, details=None):
        return self.log('ERROR', source, message, details)

    def log_error_with_traceback(self, source, error, details=None):
        """Log error with full traceback"""
        error_details = {
            'error_type': type(error).__name__,
            'error_message': str(error),
            'traceback': traceback.format_exc()
        }
        if details:
            error_details['additional_details'] = details

        return self.error(source, f"Exception occurred: {type(error).__name__}", error_details)

    def get_recent_logs(self, limit=100, level=None):
        """Most recent log entries, newest first"""
        self._ensure_logs_table()
        sql = f"SELECT * FROM {self.table}"
        params = []
        if level:
            sql += " WHERE level = ?"
            params.append(level.upper())
        sql += " ORDER BY id DESC LIMIT ?"
        params.append(limit)
        with self.db.connect() as conn:
            return [dict(row) for row in conn.execute(sql, params).fetchall()]

    def cleanup_old_logs(self, days_to_keep=30):
        """Clean up old log entries"""
        cutoff_iso = (datetime.now() - timedelta(days=days_to_keep)).isoformat()
        try:
            self._ensure_logs_table()
            with self.db.connect() as conn:
                cursor = conn.execute(f"""
                    DELETE FROM {self.table}
                    WHERE timestamp < ?
                """, (cutoff_iso,))
                deleted_count = cursor.rowcount

            self.info('system', f"Cleaned up {deleted_count} old log entries")
            return deleted_count

        except sqlite3.Error as e:
            self.error('system', f"Failed to cleanup old logs: {e}")
            return 0


class DatabaseLogHandler(logging.Handler):
    """logging.Handler that persists records through a LoggingService"""

    def __init__(self, service, level=logging.INFO):
        super().__init__(level)
        self.service = service

    def emit(self, record):
        try:
            source = record.name.rsplit('.', 1)[-1]
            details = None
            if record.exc_info:
                details = {'traceback': ''.join(traceback.format_exception(*record.exc_info))}
            self.service.log(record.levelname, source, record.getMessage(), details)
        except Exception:
            self.handleError(record)
