"""Cloud sync - push/pull the SQLite file as an opaque blob."""
import base64
import logging
import os
import shutil
import tempfile
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests
from flask import Flask, current_app

logger = logging.getLogger(__name__)

PAYLOAD_VERSION = 1


class CloudSyncClient:
    """
    Client for the remote data endpoint `{base_url}/api/data/{app_name}`.

    GET returns `{"data": {"database": <base64>, "version": 1, "lastModified": ...}}`;
    PUT takes the inner object. Network and HTTP failures are logged and
    reported as False / None, never raised.
    """

    def __init__(self, base_url: str, app_name: str = 'estimator', timeout: int = 10,
                 token: Optional[str] = None):
        self.base_url = (base_url or '').rstrip('/')
        self.app_name = app_name
        self.timeout = timeout
        self.headers = {'Content-Type': 'application/json'}
        if token:
            self.headers['Authorization'] = f'Bearer {token}'

    @property
    def enabled(self) -> bool:
        return bool(self.base_url)

    @property
    def url(self) -> str:
        return f"{self.base_url}/api/data/{self.app_name}"

    def is_available(self) -> bool:
        if not self.enabled:
            return False
        try:
            response = requests.get(self.url, headers=self.headers, timeout=self.timeout)
            return response.ok
        except requests.RequestException as e:
            logger.warning(f"[SYNC] Cloud storage not available: {e}")
            return False

    def load_from_cloud(self) -> Optional[Dict[str, Any]]:
        """Remote payload, or None when unavailable or empty."""
        if not self.enabled:
            return None
        try:
            response = requests.get(self.url, headers=self.headers, timeout=self.timeout)
            if not response.ok:
                logger.warning(f"[SYNC] Cloud load failed: {response.status_code}")
                return None
            result = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"[SYNC] Cloud load error: {e}")
            return None

        data = result.get('data') if isinstance(result, dict) else None
        if data and data.get('database'):
            logger.info("[SYNC] Loaded data from cloud storage")
            return data
        return None

    def save_to_cloud(self, database_bytes: bytes) -> bool:
        if not self.enabled:
            return False
        payload = {
            'database': base64.b64encode(database_bytes).decode('ascii'),
            'version': PAYLOAD_VERSION,
            'lastModified': datetime.now(timezone.utc).isoformat(),
        }
        try:
            response = requests.put(self.url, json=payload, headers=self.headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"[SYNC] Cloud save error: {e}")
            return False

        if not response.ok:
            logger.warning(f"[SYNC] Cloud save failed: {response.status_code}")
            return False
        logger.info(f"[SYNC] Synced {len(database_bytes)} bytes to cloud")
        return True

    # ========== Database file helpers ==========

    def push_file(self, path: str) -> bool:
        """Upload the database file at path."""
        if not path or not os.path.exists(path):
            logger.warning(f"[SYNC] Nothing to push, database file not found: {path}")
            return False
        with open(path, 'rb') as f:
            return self.save_to_cloud(f.read())

    def pull_file(self, path: str) -> bool:
        """
        Replace the database file at path with the remote copy.

        The download is written to a temporary file first and moved into place
        only once decoded, so a failed pull leaves the local file untouched.
        """
        data = self.load_from_cloud()
        if not data:
            return False
        try:
            blob = base64.b64decode(data['database'], validate=True)
        except (ValueError, TypeError) as e:
            logger.error(f"[SYNC] Remote database payload is not valid base64: {e}")
            return False

        directory = os.path.dirname(os.path.abspath(path))
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix='.sync')
        with os.fdopen(fd, 'wb') as f:
            f.write(blob)
        shutil.move(tmp_path, path)
        logger.info(f"[SYNC] Pulled {len(blob)} bytes (lastModified={data.get('lastModified')})")
        return True


def init_cloud_sync(app: Flask) -> CloudSyncClient:
    client = CloudSyncClient(
        app.config.get('CLOUD_SYNC_URL', ''),
        app_name=app.config.get('CLOUD_SYNC_APP_NAME', 'estimator'),
        timeout=app.config.get('CLOUD_SYNC_TIMEOUT', 10),
        token=app.config.get('CLOUD_SYNC_TOKEN'),
    )
    app.extensions['cloud_sync'] = client
    if client.enabled:
        logger.info(f"[SYNC] Cloud sync configured: {client.url}")
    return client


def get_cloud_sync(app: Optional[Flask] = None) -> CloudSyncClient:
    app = app or current_app
    client = app.extensions.get('cloud_sync')
    if client is None:
        client = init_cloud_sync(app)
    return client
