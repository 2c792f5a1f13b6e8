# escalations/graph.py

import logging
import time

import requests
from django.conf import settings

from escalations.exceptions import GraphError

logger = logging.getLogger(__name__)

TOKEN_URL = "https://login.microsoftonline.com/{tenant_id}/oauth2/v2.0/token"
GRAPH_SCOPE = "https://graph.microsoft.com/.default"

# Refresh the token this many seconds before it actually expires
TOKEN_EXPIRY_MARGIN = 300


class GraphClient:
    """
    App-only client for the Graph API.

    Owns its access token: acquired with the client-credentials grant on first
    use, cached on the instance, and refreshed once it is close to expiry.
    Construct one per host and pass it into the escalation check.
    """

    def __init__(self, client_id, client_secret, tenant_id,
                 base_url="https://graph.microsoft.com/v1.0", timeout=30, session=None):
        self.client_id = client_id
        self.client_secret = client_secret
        self.tenant_id = tenant_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        self._token = None
        self._token_expires_at = 0.0

    @classmethod
    def from_settings(cls):
        return cls(
            client_id=settings.AZURE_CLIENT_ID,
            client_secret=settings.AZURE_CLIENT_SECRET,
            tenant_id=settings.AZURE_TENANT_ID,
            base_url=getattr(settings, "GRAPH_BASE_URL", "https://graph.microsoft.com/v1.0"),
            timeout=getattr(settings, "GRAPH_TIMEOUT", 30),
        )

    def get_token(self):
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token

        url = TOKEN_URL.format(tenant_id=self.tenant_id)
        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "scope": GRAPH_SCOPE,
            "grant_type": "client_credentials",
        }
        try:
            r = self.session.post(url, data=data, timeout=self.timeout)
        except requests.RequestException as e:
            raise GraphError(f"Token request failed: {e}") from e

        if r.status_code != 200:
            raise GraphError(f"Token request rejected ({r.status_code})", status_code=r.status_code)

        try:
            payload = r.json()
            self._token = payload["access_token"]
        except (ValueError, KeyError, TypeError) as e:
            raise GraphError(f"Token response unreadable: {e}", status_code=r.status_code) from e
        expires_in = int(payload.get("expires_in", 3600))
        self._token_expires_at = time.monotonic() + max(expires_in - TOKEN_EXPIRY_MARGIN, 0)
        logger.debug(f"Acquired Graph token valid for {expires_in}s")
        return self._token

    def _request(self, method, path, params=None, payload=None):
        url = f"{self.base_url}/{path.lstrip('/')}"
        headers = {"Authorization": f"Bearer {self.get_token()}"}
        try:
            r = self.session.request(method, url, params=params, json=payload,
                                     headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise GraphError(f"{method} {path} failed: {e}") from e

        if r.status_code >= 400:
            raise GraphError(f"{method} {path} returned {r.status_code}: {r.text[:200]}",
                             status_code=r.status_code)

        if r.status_code == 204 or not r.content:
            return {}
        try:
            return r.json()
        except ValueError as e:
            raise GraphError(f"{method} {path} returned a non-JSON body: {e}",
                             status_code=r.status_code) from e

    def get(self, path, params=None):
        return self._request("GET", path, params=params)

    def post(self, path, payload):
        return self._request("POST", path, payload=payload)

    def patch(self, path, payload):
        return self._request("PATCH", path, payload=payload)
