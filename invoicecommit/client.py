"""
invoicecommit Submission Client

Thin requests-based client for the authority's HTTP API. The client owns
the shape of the wire request (SubmissionBundle.to_request) but does no
verification; callers verify the returned censorship record.
"""

import logging
from typing import Any, Dict, Optional, Union

import requests
from pydantic import ValidationError

from .errors import ServerError, TransportError
from .models import ErrorReplyModel, NewInvoiceReplyModel, VersionReplyModel
from .records import CensorshipRecord, NewInvoiceReply, SubmissionBundle, VersionReply


logger = logging.getLogger(__name__)

VERSION_ROUTE = "/api/"
NEW_INVOICE_ROUTE = "/api/v1/invoices/new"
CSRF_HEADER = "X-Csrf-Token"


class InvoiceClient:
    """
    Client for one authority.

    A client holds a requests.Session (cookies, CSRF token) and must not be
    shared between threads.
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        verify: Union[bool, str] = True,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.verify = verify
        self._csrf_token: Optional[str] = None

    def version(self) -> VersionReply:
        """
        Fetch the authority's version, public key and CSRF token.

        Raises:
            TransportError: connectivity failure or 5xx
            ServerError: rejected or malformed reply
        """
        response = self._request("GET", VERSION_ROUTE)
        token = response.headers.get(CSRF_HEADER)
        if token:
            self._csrf_token = token

        body = self._decode(response, VersionReplyModel)
        return VersionReply(
            version=body.version,
            route=body.route,
            pubkey=body.pubkey,
            testnet=body.testnet,
        )

    def new_invoice(self, bundle: SubmissionBundle) -> NewInvoiceReply:
        """
        Submit a signed invoice bundle.

        Returns:
            NewInvoiceReply holding the unverified censorship record

        Raises:
            TransportError: connectivity failure or 5xx
            ServerError: the authority rejected the invoice
        """
        response = self._request("POST", NEW_INVOICE_ROUTE, json=bundle.to_request())
        body = self._decode(response, NewInvoiceReplyModel)
        record = body.censorshiprecord
        extra = body.model_dump(exclude={"censorshiprecord"})
        return NewInvoiceReply(
            censorship_record=CensorshipRecord(
                token=record.token,
                signature=record.signature,
                merkle=record.merkle,
            ),
            extra=extra,
        )

    def _request(self, method: str, route: str, json: Optional[Dict[str, Any]] = None) -> requests.Response:
        url = self.base_url + route
        headers = {}
        if method != "GET" and self._csrf_token:
            headers[CSRF_HEADER] = self._csrf_token

        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(
                method,
                url,
                json=json,
                headers=headers,
                timeout=self.timeout,
                verify=self.verify,
            )
        except requests.exceptions.RequestException as e:
            raise TransportError(f"{method} {url}: {e}") from e

        if response.status_code >= 500:
            raise TransportError(f"{method} {url}: server returned {response.status_code}")
        if response.status_code != 200:
            raise self._server_error(response)
        return response

    def _server_error(self, response: requests.Response) -> ServerError:
        error = ErrorReplyModel()
        try:
            error = ErrorReplyModel.model_validate(response.json())
        except (ValueError, ValidationError):
            pass

        message = f"authority rejected request: {response.status_code}"
        if error.errorcode is not None:
            message += f" (error code {error.errorcode})"
        if error.errorcontext:
            message += ": " + ", ".join(error.errorcontext)
        return ServerError(
            message,
            status_code=response.status_code,
            error_code=error.errorcode,
            error_context=error.errorcontext,
        )

    def _decode(self, response: requests.Response, model):
        try:
            return model.model_validate(response.json())
        except ValueError as e:
            raise ServerError(f"malformed reply from authority: {e}", status_code=response.status_code)
