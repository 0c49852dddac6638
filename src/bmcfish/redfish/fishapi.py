import logging
import threading
from collections import namedtuple
from typing import Optional

import requests

from bmcfish.redfish.constants import BENIGN_SUCCESS_MESSAGE_IDS, SERVICE_ROOT
from bmcfish.redfish.errors import (
    AuthError,
    ConfigurationError,
    RedfishError,
    RedfishProtocolError,
    StateError,
    TransportError,
    extended_info_messages,
)

logger = logging.getLogger(__name__)

RedfishResponse = namedtuple('RedfishResponse', ['status_code', 'headers', 'data'])


class RedfishAPI:
    """
    Redfish API client for interacting with the Redfish service.

    Owns the HTTP session and the Redfish login session (token and id) of one
    client. The token is acquired lazily on the first authenticated request.
    """
    def __init__(self, ip: str, user: str, password: str, verify_ssl: bool = False, timeout: int = 30):
        self.ip = ip
        self.user = user
        self.password = password
        self.base_url = f"https://{ip}"
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'Content-Type': 'application/json',
            'Accept': 'application/json',
            'OData-Version': '4.0'
        })
        self.verify_ssl = verify_ssl

        if not self.verify_ssl:
            self.disable_ssl_verification()

        self.service_root = None
        self.session_uri = None
        self.token = None
        self.session_id = None
        self._session_lock = threading.Lock()


    def disable_ssl_verification(self):
        self.verify_ssl = False
        requests.packages.urllib3.disable_warnings(requests.packages.urllib3.exceptions.InsecureRequestWarning)


    def url(self, endpoint: str) -> str:
        """Build a full URL from an @odata.id path; full URLs (e.g. Location headers) pass through."""
        if endpoint.startswith('http://') or endpoint.startswith('https://'):
            return endpoint
        return self.base_url + endpoint


    def get(self, endpoint, headers=None, auth=True):
        return self.request('GET', endpoint, headers=headers, auth=auth)


    def post(self, endpoint, data=None, headers=None, auth=True):
        return self.request('POST', endpoint, data=data, headers=headers, auth=auth)


    def patch(self, endpoint, data=None, headers=None, auth=True):
        return self.request('PATCH', endpoint, data=data, headers=headers, auth=auth)


    def delete(self, endpoint, headers=None, auth=True):
        return self.request('DELETE', endpoint, headers=headers, auth=auth)


    def request(self, method: str, endpoint: str, data: Optional[dict] = None,
                headers: Optional[dict] = None, auth: bool = True) -> RedfishResponse:
        """Perform one Redfish request and decode its body.

        Args:
            method: HTTP method
            endpoint: @odata.id path or full URL
            data: JSON payload for POST/PATCH
            headers: Extra request headers (e.g. If-Match)
            auth: Send the session token, acquiring one if needed

        Returns:
            RedfishResponse with status code, response headers and decoded body

        Raises:
            TransportError: On network failure or non-2xx status
            RedfishProtocolError: On an undecodable body or a Redfish error payload
        """
        url = self.url(endpoint)
        request_headers = dict(headers or {})
        if auth:
            request_headers['X-Auth-Token'] = self.acquire_token()

        logger.debug('%s %s', method, url)
        try:
            response = self.session.request(
                method,
                url,
                json=data,
                headers=request_headers,
                verify=self.verify_ssl,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise TransportError(f'Request failed: {e}', uri=endpoint, operation=method) from e

        return self._handle_response(method, endpoint, response)


    def _handle_response(self, method, endpoint, response) -> RedfishResponse:
        status = response.status_code
        if not response.ok:
            messages = []
            try:
                messages = extended_info_messages(response.json())
            except ValueError:
                pass
            detail = '; '.join(messages) if messages else response.reason or ''
            raise TransportError(f'HTTP {status}: {detail}'.rstrip(': '), uri=endpoint,
                                 operation=method, status_code=status)

        if status == 204 or not response.content:
            if status != 204:
                logger.warning('Empty response body for %s %s (status %s)', method, endpoint, status)
            return RedfishResponse(status, response.headers, {})

        try:
            data = response.json()
        except ValueError as e:
            raise RedfishProtocolError(f'Could not decode JSON response: {e}', uri=endpoint,
                                       operation=method, status_code=status) from e

        if isinstance(data, dict) and isinstance(data.get('error'), dict):
            extended_info = data['error'].get('@Message.ExtendedInfo')
            if extended_info:
                if len(extended_info) == 1 and extended_info[0].get('MessageId') in BENIGN_SUCCESS_MESSAGE_IDS:
                    return RedfishResponse(status, response.headers, {})
                messages = extended_info_messages(data)
                raise RedfishProtocolError(f'Redfish error: {", ".join(messages)}', messages=messages,
                                           uri=endpoint, operation=method, status_code=status)

        return RedfishResponse(status, response.headers, data)


    def get_service_root(self, refresh: bool = False) -> dict:
        """Fetch the unauthenticated service root (cached after the first call)."""
        if self.service_root is None or refresh:
            self.service_root = self.get(SERVICE_ROOT, auth=False).data
        return self.service_root


    def resolve_session_endpoint(self) -> str:
        """Find the session collection URI advertised by the service root.

        Raises:
            ConfigurationError: If the service root has no Links.Sessions reference
        """
        root = self.get_service_root()
        session_uri = ((root.get('Links') or {}).get('Sessions') or {}).get('@odata.id')
        if not session_uri:
            raise ConfigurationError('Service root does not advertise a session collection',
                                     uri=SERVICE_ROOT, operation='resolve_session_endpoint')
        self.session_uri = session_uri
        return session_uri


    def acquire_token(self) -> str:
        """Return the session token, logging in on first use.

        Concurrent first callers wait on the session lock, so only one login
        request is in flight; the others reuse its token.

        Raises:
            AuthError: If credentials are unset or the login response lacks the token or session id
        """
        if self.token:
            return self.token

        with self._session_lock:
            if self.token:
                return self.token

            if not self.user or not self.password:
                raise AuthError('BMC username or password is not set', operation='acquire_token')

            session_uri = self.session_uri or self.resolve_session_endpoint()
            payload = {
                'UserName': self.user,
                'Password': self.password
            }
            response = self.post(session_uri, data=payload, auth=False)

            token = response.headers.get('X-Auth-Token')
            session_id = response.data.get('Id')
            if not token or not session_id:
                raise AuthError('Login response is missing the session token or session id',
                                uri=session_uri, operation='acquire_token')

            self.session_id = session_id
            self.token = token
            logger.info('Created Redfish session %s on %s', session_id, self.ip)
            return token


    def release(self) -> None:
        """Delete the Redfish session.

        The cached token and session id are cleared even when the DELETE fails;
        the failure is still raised.

        Raises:
            StateError: If there is no active session
        """
        if not self.token or not self.session_id:
            raise StateError('No active Redfish session to release', operation='release')

        session_uri = f'{self.session_uri}/{self.session_id}'
        try:
            self.delete(session_uri)
            logger.info('Released Redfish session %s on %s', self.session_id, self.ip)
        finally:
            self.token = None
            self.session_id = None


    def is_reachable(self) -> bool:
        """Return True if a session can be established."""
        try:
            self.acquire_token()
            return True
        except RedfishError as e:
            logger.warning('Redfish service on %s is not reachable: %s', self.ip, e)
            return False
