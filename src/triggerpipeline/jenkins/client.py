# jenkins/client.py
from __future__ import annotations

import base64
import http.cookiejar
import json
import time
import urllib.error
import urllib.parse
import urllib.request
from typing import IO, Any, Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import ValidationError

from ..model import Build, RemoteJob
from ..ui.console import get_console
from .schemas import BuildResponse, CrumbResponse, JobResponse


class JenkinsError(Exception):
    """Raised when a Jenkins request fails."""

    def __init__(self, message: str, *, status: Optional[int] = None, url: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.url = url


class NotFoundError(JenkinsError):
    """The job, build or endpoint does not exist (HTTP 404)."""


class TransientError(JenkinsError):
    """The server could not be reached or answered with a 5xx."""


class _NoRedirect(urllib.request.HTTPRedirectHandler):
    # createItem and friends answer with a 302 to the new page; we only want the status
    def redirect_request(self, req, fp, code, msg, headers, newurl):
        return None


def job_path(segments: Sequence[str]) -> str:
    """Turn ("org", "repo") into "/job/org/job/repo"."""
    return "".join(f"/job/{urllib.parse.quote(s, safe='')}" for s in segments)


def _segments(job: RemoteJob) -> Tuple[str, ...]:
    return tuple(job.full_name.split("/"))


class JenkinsClient:
    """HTTP client for the Jenkins remote access API."""

    def __init__(
        self,
        base_url: str,
        username: str = "",
        token: str = "",
        *,
        timeout: float = 30,
        opener: Optional[urllib.request.OpenerDirector] = None,
    ):
        """
        Initialize Jenkins client.

        Args:
            base_url: Root URL of the Jenkins server (e.g., "http://jenkins:8080")
            username: User to authenticate as
            token: API token of that user
            timeout: Per request socket timeout in seconds
            opener: Optional urllib opener, mainly for tests
        """
        # lets trim trailing slashes to avoid // in the generated URLs
        self.base_url = base_url.rstrip("/")
        self.username = username
        self.token = token
        self.timeout = timeout
        self._opener = opener or urllib.request.build_opener(
            _NoRedirect(),
            urllib.request.HTTPCookieProcessor(http.cookiejar.CookieJar()),
        )
        self._crumb: Optional[Tuple[str, str]] = None
        self._crumb_checked = False

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _url(self, path: str, params: Optional[Mapping[str, Any]] = None) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            url = path
        else:
            url = self.base_url + "/" + path.lstrip("/")
        if params:
            url += "?" + urllib.parse.urlencode(params)
        return url

    def _auth_headers(self) -> Dict[str, str]:
        if not self.username and not self.token:
            return {}
        raw = f"{self.username}:{self.token}".encode("utf-8")
        return {"Authorization": "Basic " + base64.b64encode(raw).decode("ascii")}

    def _request(
        self,
        method: str,
        path: str,
        *,
        body: Optional[bytes] = None,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Tuple[int, Any, bytes]:
        """
        Make an HTTP request to Jenkins.

        Returns:
            (status, headers, body); redirects are returned, not followed

        Raises:
            NotFoundError: on 404
            TransientError: on network failures and 5xx
            JenkinsError: on any other error status
        """
        url = self._url(path, params)
        req_headers = self._auth_headers()
        if headers:
            req_headers.update(headers)
        req = urllib.request.Request(url, data=body, headers=req_headers, method=method)

        try:
            with self._opener.open(req, timeout=self.timeout) as response:
                return int(getattr(response, "status", 200) or 200), response.headers, response.read() or b""
        except urllib.error.HTTPError as e:
            if 300 <= e.code < 400:
                return e.code, e.headers, b""
            error_body = e.read().decode("utf-8", errors="replace") if e.fp else ""
            message = f"{method} {url} failed: {e.code} {e.reason}. {error_body[:2000]}".rstrip()
            if e.code == 404:
                raise NotFoundError(message, status=e.code, url=url)
            if e.code >= 500:
                raise TransientError(message, status=e.code, url=url)
            raise JenkinsError(message, status=e.code, url=url)
        except urllib.error.URLError as e:
            raise TransientError(f"Network error calling {url}: {e.reason}", url=url)

    def _get_json(self, path: str, params: Optional[Mapping[str, Any]] = None) -> dict:
        _status, _headers, data = self._request("GET", path.rstrip("/") + "/api/json", params=params)
        try:
            return json.loads((data or b"{}").decode("utf-8", errors="replace"))
        except json.JSONDecodeError as e:
            raise JenkinsError(f"Invalid JSON response from {self._url(path)}: {e}")

    def _fetch_crumb(self) -> Optional[Tuple[str, str]]:
        """
        Ask Jenkins for a CSRF crumb.

        The answer is only remembered once the crumb issuer has replied (or 404'd),
        so the next POST asks again after a failure.

        Raises:
            TransientError: the crumb issuer could not be reached
        """
        try:
            crumb = CrumbResponse.model_validate(self._get_json("/crumbIssuer"))
        except NotFoundError:
            # CSRF protection is disabled
            self._crumb_checked = True
            return None
        except TransientError:
            raise
        except (JenkinsError, ValidationError) as e:
            get_console().print_debug(f"could not fetch a CSRF crumb from {self.base_url}: {e}")
            return None
        self._crumb_checked = True
        if not crumb.crumb or not crumb.crumb_request_field:
            return None
        return crumb.crumb_request_field, crumb.crumb

    def _post(
        self,
        path: str,
        *,
        body: Optional[bytes] = None,
        content_type: Optional[str] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> None:
        if not self._crumb_checked:
            self._crumb = self._fetch_crumb()
        headers: Dict[str, str] = {}
        if self._crumb:
            headers[self._crumb[0]] = self._crumb[1]
        if content_type:
            headers["Content-Type"] = content_type
        self._request("POST", path, body=body if body is not None else b"", headers=headers, params=params)

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    def job_url(self, *segments: str) -> str:
        return self.base_url + job_path(segments)

    def get_job_by_path(self, *segments: str) -> RemoteJob:
        data = self._get_json(job_path(segments))
        try:
            return JobResponse.model_validate(data).to_job("/".join(segments))
        except ValidationError as e:
            raise JenkinsError(f"Unexpected job response for {'/'.join(segments)}: {e}")

    def get_job(self, full_name: str) -> RemoteJob:
        return self.get_job_by_path(*full_name.split("/"))

    def get_multi_branch_job(self, org: str, repo: str, branch: str) -> RemoteJob:
        return self.get_job_by_path(org, repo, branch)

    def get_jobs(self) -> List[RemoteJob]:
        data = self._get_json("/", params={"tree": "jobs[name,fullName,url]"})
        jobs = []
        for item in data.get("jobs") or []:
            resp = JobResponse.model_validate(item)
            jobs.append(resp.to_job(resp.name))
        return jobs

    def create_job(self, xml: str, name: str) -> None:
        self._post(
            "/createItem",
            body=xml.encode("utf-8"),
            content_type="application/xml",
            params={"name": name},
        )

    def create_nested_job(self, xml: str, parent_path: str, name: str) -> None:
        """
        Create a job inside a folder.

        Args:
            parent_path: parent folder segments joined with "/job/", e.g. "org/job/repo"
        """
        folders = urllib.parse.quote(parent_path, safe="/")
        self._post(
            f"/job/{folders}/createItem",
            body=xml.encode("utf-8"),
            content_type="application/xml",
            params={"name": name},
        )

    def update_job(self, xml: str, *segments: str) -> None:
        self._post(job_path(segments) + "/config.xml", body=xml.encode("utf-8"), content_type="application/xml")

    # ------------------------------------------------------------------
    # Builds
    # ------------------------------------------------------------------

    def build(self, job: RemoteJob, params: Optional[Mapping[str, Any]] = None) -> None:
        path = job_path(_segments(job))
        if params:
            body = urllib.parse.urlencode(params, doseq=True).encode("utf-8")
            self._post(path + "/buildWithParameters", body=body, content_type="application/x-www-form-urlencoded")
        else:
            self._post(path + "/build")

    def get_last_build(self, job: RemoteJob) -> Build:
        data = self._get_json(job_path(_segments(job)) + "/lastBuild")
        return self._to_build(job, data)

    def get_build(self, job: RemoteJob, number: int) -> Build:
        data = self._get_json(job_path(_segments(job)) + f"/{number}")
        return self._to_build(job, data)

    def _to_build(self, job: RemoteJob, data: dict) -> Build:
        try:
            return BuildResponse.model_validate(data).to_build()
        except ValidationError as e:
            raise JenkinsError(f"Unexpected build response for {job.full_name}: {e}")

    def stop_build(self, job: RemoteJob, number: int) -> None:
        self._post(job_path(_segments(job)) + f"/{number}/stop")

    def tail_log(
        self,
        path: str,
        sink: IO[str],
        poll_interval: float,
        max_duration: float,
        *,
        sleep=time.sleep,
    ) -> None:
        """
        Stream the progressive console text of the build at `path` into `sink`.

        Returns once Jenkins reports no more data or after `max_duration` seconds.
        """
        base = urllib.parse.urlsplit(self.base_url)
        url = urllib.parse.urlunsplit((base.scheme, base.netloc, path.rstrip("/") + "/logText/progressiveText", "", ""))
        start = 0
        deadline = time.monotonic() + max_duration
        while True:
            _status, headers, data = self._request("GET", url, params={"start": start})
            if data:
                sink.write(data.decode("utf-8", errors="replace"))
                sink.flush()
            start = int(headers.get("X-Text-Size") or start + len(data))
            if str(headers.get("X-More-Data") or "").lower() != "true":
                return
            if time.monotonic() >= deadline:
                return
            sleep(poll_interval)
