"""
Share Configuration

Policy values for the share workflow, read from the environment.
"""

import os
from datetime import timedelta


class ShareConfig:
    """Share policy settings. Keyword overrides win over the environment."""

    def __init__(self, **overrides):
        # Upload ceiling (100 MB default)
        self.max_file_size_bytes = int(
            os.getenv("MAX_FILE_SIZE_BYTES", 100 * 1024 * 1024)
        )
        self.retention_days = int(os.getenv("SHARE_RETENTION_DAYS", 7))
        self.signed_url_ttl_seconds = int(os.getenv("SIGNED_URL_TTL_SECONDS", 3600))
        self.code_max_attempts = int(os.getenv("SHARE_CODE_MAX_ATTEMPTS", 10))
        self.sweep_interval_seconds = int(os.getenv("SWEEP_INTERVAL_SECONDS", 300))
        self.blob_storage_dir = os.getenv("BLOB_STORAGE_DIR", "/tmp/freeshare")
        self.storage_limit_mb = float(os.getenv("STORAGE_LIMIT_MB", 1024))

        for name, value in overrides.items():
            if not hasattr(self, name):
                raise TypeError(f"Unknown ShareConfig option: {name}")
            setattr(self, name, value)

    @property
    def retention(self) -> timedelta:
        return timedelta(days=self.retention_days)
