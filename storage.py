import logging

import requests

from errors import StoreError, StoreTimeoutError

logger = logging.getLogger(__name__)


class DocumentStore:
    """Whole-document get/put against one Pastefy paste.

    There is no append primitive: every write replaces the full content.
    """

    def __init__(self, base_url, api_key, paste_id, timeout=10.0,
                 title="whitelist", visibility="UNLISTED", session=None):
        self.base_url = base_url.rstrip("/")
        self.paste_id = paste_id
        self.timeout = timeout
        self.title = title
        self.visibility = visibility
        self.session = session or requests.Session()
        self._api_key = api_key

    def _url(self):
        return f"{self.base_url}/paste/{self.paste_id}"

    def _auth_headers(self):
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }

    def _request(self, method, **kwargs):
        try:
            r = self.session.request(
                method, self._url(), headers=self._auth_headers(), timeout=self.timeout, **kwargs
            )
        except requests.Timeout:
            logger.warning("Pastefy %s timed out for paste %s", method, self.paste_id)
            raise StoreTimeoutError("Timeout while talking to the whitelist store")
        except requests.RequestException as e:
            logger.warning("Pastefy %s failed for paste %s: %s", method, self.paste_id, e)
            raise StoreError(f"Whitelist store request failed: {e}")
        if not 200 <= r.status_code < 300:
            logger.warning("Pastefy %s returned %s for paste %s", method, r.status_code, self.paste_id)
            raise StoreError(f"Whitelist store returned HTTP {r.status_code}")
        return r

    def fetch(self) -> str:
        r = self._request("GET")
        try:
            data = r.json()
        except ValueError:
            raise StoreError("Whitelist store returned an unreadable response")
        content = data.get("content") if isinstance(data, dict) else None
        return content if isinstance(content, str) else ""

    def replace(self, content: str, title=None, visibility=None):
        body = {
            "title": title or self.title,
            "content": content,
            "encrypted": False,
            "visibility": visibility or self.visibility,
            "tags": [],
        }
        self._request("PUT", json=body)
        logger.info("Replaced paste %s (%d chars)", self.paste_id, len(content))
        return True
