"""
Remote Store Module
Session and event persistence against the monitoring backend

The engine only talks to the RemoteStore interface; HttpRemoteStore is the
requests-based implementation used in production.
"""

import requests

from .config import API_URL, API_TOKEN, API_TIMEOUT_SECONDS, ACTIVE_SESSION_MARKER


class RemoteStoreError(Exception):
    """Transport failure or non-2xx response from the store."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class UnauthorizedError(RemoteStoreError):
    """Bearer credential missing, expired or rejected (HTTP 401)."""


class SessionConflictError(RemoteStoreError):
    """The caller already owns an active session; carries its id."""

    def __init__(self, session_id, message=ACTIVE_SESSION_MARKER, status_code=None):
        super().__init__(message, status_code)
        self.session_id = session_id


class RemoteStore:
    """Interface every store implementation provides."""

    def create_session(self):
        """Create a session and return its id. Raises SessionConflictError on conflict."""
        raise NotImplementedError

    def append_event(self, payload):
        """Store one event: {kind, timestamp, probability, sessionId}."""
        raise NotImplementedError

    def finalize_session(self, session_id, summary):
        """Store the session summary: {endedAt, durationSeconds, maxLevel, meanProbability, totalEvents}."""
        raise NotImplementedError

    def list_sessions(self):
        raise NotImplementedError

    def get_session(self, session_id):
        raise NotImplementedError


class HttpRemoteStore(RemoteStore):
    """
    JSON-over-HTTP store.

    Endpoints:
        POST  /sessions                -> {id} | conflict {error, id}
        POST  /events
        PATCH /sessions/<id>/finalize
        GET   /sessions
        GET   /sessions/<id>
    """

    def __init__(self, base_url=API_URL, token=API_TOKEN, timeout=API_TIMEOUT_SECONDS,
                 conflict_marker=ACTIVE_SESSION_MARKER):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.conflict_marker = conflict_marker

    def _headers(self):
        if not self.token:
            raise UnauthorizedError("Bearer token not configured")
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.token}",
        }

    def _request(self, method, path, payload=None):
        url = f"{self.base_url}{path}"
        headers = self._headers()

        try:
            response = requests.request(method, url, json=payload, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise RemoteStoreError(f"{method} {path} failed: {e}") from e

        return self._handle_response(response)

    def _handle_response(self, response):
        if response.status_code == 401:
            raise UnauthorizedError("Session expired or token rejected", status_code=401)

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not response.ok:
            message = data.get("error") if isinstance(data, dict) else None
            session_id = data.get("id") if isinstance(data, dict) else None

            if message == self.conflict_marker and session_id is not None:
                raise SessionConflictError(session_id, message, status_code=response.status_code)

            raise RemoteStoreError(message or "Unknown error", status_code=response.status_code)

        return data

    def create_session(self):
        data = self._request("POST", "/sessions", {})
        if not isinstance(data, dict) or data.get("id") is None:
            raise RemoteStoreError("Incomplete response from server: missing session id")
        return data["id"]

    def append_event(self, payload):
        self._request("POST", "/events", payload)

    def finalize_session(self, session_id, summary):
        self._request("PATCH", f"/sessions/{session_id}/finalize", summary)

    def list_sessions(self):
        data = self._request("GET", "/sessions")
        return data if isinstance(data, list) else []

    def get_session(self, session_id):
        return self._request("GET", f"/sessions/{session_id}")


class InMemoryStore(RemoteStore):
    """
    Store kept in process memory: offline runs and tests.

    Ids are assigned by the store, as with the HTTP backend. Set
    `active_session_id` to make the next create_session() report a conflict.
    """

    def __init__(self):
        self.sessions = {}
        self.events = []
        self.active_session_id = None
        self._next_id = 1

    def create_session(self):
        if self.active_session_id is not None:
            raise SessionConflictError(self.active_session_id, status_code=409)

        session_id = str(self._next_id)
        self._next_id += 1
        self.sessions[session_id] = {"id": session_id}
        self.active_session_id = session_id
        return session_id

    def append_event(self, payload):
        self.events.append(dict(payload))

    def finalize_session(self, session_id, summary):
        if session_id not in self.sessions:
            raise RemoteStoreError(f"Session {session_id} not found", status_code=404)
        self.sessions[session_id].update(summary)
        if self.active_session_id == session_id:
            self.active_session_id = None

    def list_sessions(self):
        return list(self.sessions.values())

    def get_session(self, session_id):
        if session_id not in self.sessions:
            raise RemoteStoreError(f"Session {session_id} not found", status_code=404)
        return self.sessions[session_id]
