"""Client for the image service, and the per-run session sharing its login token"""

import logging
import threading
from typing import Optional

import httpx

from mdblog.core.errors import NetworkError
from mdblog.core.models import ImageRef


logger = logging.getLogger(__name__)


class ImageClient:
    """Blocking client for `{base}/api/...`. An empty token means anonymous access."""

    def __init__(self, base: str, token: str = "", client: httpx.Client = None):
        self.base = base.rstrip("/")
        self.token = token
        self.http = client or httpx.Client()

    @classmethod
    def login(cls, base: str, user: str, password: str, client: httpx.Client = None) -> "ImageClient":
        """Log in and return a client carrying the session token."""
        http = client or httpx.Client()
        base = base.rstrip("/")
        logger.info("Logging in to %s as %s", base, user)
        try:
            response = _check(http.post(f"{base}/api/login", json={"user": user, "password": password}))
            token = response.json()["token"]
        except (httpx.HTTPError, KeyError, ValueError) as e:
            raise NetworkError(f"{base}/api/login", e) from e
        return cls(base, token, http)

    def _headers(self) -> dict[str, str]:
        return {"authorization": self.token} if self.token else {}

    def fetch(self, ref: str) -> ImageRef:
        """Metadata and variant urls for the image at path ref."""
        try:
            response = _check(self.http.get(
                f"{self.base}/api/image", params={"path": ref}, headers=self._headers(),
            ))
            return ImageRef.model_validate(response.json()).relative(self.base)
        except (httpx.HTTPError, ValueError) as e:
            raise NetworkError(ref, e) from e

    def make_public(self, ref: str) -> ImageRef:
        try:
            response = _check(self.http.post(
                f"{self.base}/api/image/makepublic", json={"path": ref}, headers=self._headers(),
            ))
            return ImageRef.model_validate(response.json()).relative(self.base)
        except (httpx.HTTPError, ValueError) as e:
            raise NetworkError(ref, e) from e


def _check(response: httpx.Response) -> httpx.Response:
    """Raise HTTPStatusError with the service's `{"err": ...}` message on failure."""
    if response.is_success:
        return response
    try:
        message = response.json().get("err", response.text)
    except ValueError:
        message = response.text
    raise httpx.HTTPStatusError(
        f"{response.status_code}: {message}", request=response.request, response=response,
    )


class ImageSession:
    """Image service access for one batch run.

    The login happens on first use and the resulting client is reused by every
    render of the run, including renders running in worker threads.
    """

    def __init__(self, base: str, user: str = None, password: str = None, client: httpx.Client = None):
        self.base = base
        self.user = user
        self.password = password
        self._http = client
        self._client: Optional[ImageClient] = None
        self._lock = threading.Lock()

    def client(self) -> ImageClient:
        with self._lock:
            if self._client is None:
                if self.user:
                    self._client = ImageClient.login(self.base, self.user, self.password or "", self._http)
                else:
                    self._client = ImageClient(self.base, client=self._http)
            return self._client

    def fetch(self, ref: str) -> ImageRef:
        return self.client().fetch(ref)

    def make_public(self, ref: str) -> ImageRef:
        return self.client().make_public(ref)
