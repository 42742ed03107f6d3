from http import HTTPStatus

_STATUS_NAMES: dict[str, int] = {
    "StatusContinue": 100,
    "StatusSwitchingProtocols": 101,
    "StatusProcessing": 102,
    "StatusEarlyHints": 103,
    "StatusOK": 200,
    "StatusCreated": 201,
    "StatusAccepted": 202,
    "StatusNonAuthoritativeInfo": 203,
    "StatusNoContent": 204,
    "StatusResetContent": 205,
    "StatusPartialContent": 206,
    "StatusMultiStatus": 207,
    "StatusAlreadyReported": 208,
    "StatusIMUsed": 226,
    "StatusMultipleChoices": 300,
    "StatusMovedPermanently": 301,
    "StatusFound": 302,
    "StatusSeeOther": 303,
    "StatusNotModified": 304,
    "StatusUseProxy": 305,
    "StatusTemporaryRedirect": 307,
    "StatusPermanentRedirect": 308,
    "StatusBadRequest": 400,
    "StatusUnauthorized": 401,
    "StatusPaymentRequired": 402,
    "StatusForbidden": 403,
    "StatusNotFound": 404,
    "StatusMethodNotAllowed": 405,
    "StatusNotAcceptable": 406,
    "StatusProxyAuthRequired": 407,
    "StatusRequestTimeout": 408,
    "StatusConflict": 409,
    "StatusGone": 410,
    "StatusLengthRequired": 411,
    "StatusPreconditionFailed": 412,
    "StatusRequestEntityTooLarge": 413,
    "StatusRequestURITooLong": 414,
    "StatusUnsupportedMediaType": 415,
    "StatusRequestedRangeNotSatisfiable": 416,
    "StatusExpectationFailed": 417,
    "StatusTeapot": 418,
    "StatusMisdirectedRequest": 421,
    "StatusUnprocessableEntity": 422,
    "StatusLocked": 423,
    "StatusFailedDependency": 424,
    "StatusTooEarly": 425,
    "StatusUpgradeRequired": 426,
    "StatusPreconditionRequired": 428,
    "StatusTooManyRequests": 429,
    "StatusRequestHeaderFieldsTooLarge": 431,
    "StatusUnavailableForLegalReasons": 451,
    "StatusInternalServerError": 500,
    "StatusNotImplemented": 501,
    "StatusBadGateway": 502,
    "StatusServiceUnavailable": 503,
    "StatusGatewayTimeout": 504,
    "StatusHTTPVersionNotSupported": 505,
    "StatusVariantAlsoNegotiates": 506,
    "StatusInsufficientStorage": 507,
    "StatusLoopDetected": 508,
    "StatusNotExtended": 510,
    "StatusNetworkAuthenticationRequired": 511,
}

# Reason phrases Go spells differently from the stdlib table.
_REASON_OVERRIDES = {
    418: "I'm a teapot",
    413: "Request Entity Too Large",
    414: "Request URI Too Long",
    416: "Requested Range Not Satisfiable",
    422: "Unprocessable Entity",
}


def status_code_for_name(name: str) -> int | None:
    return _STATUS_NAMES.get(name)


def status_text(code: str | int) -> str:
    """Canonical reason phrase for ``code``, or ``""`` when unknown."""
    try:
        number = int(code)
    except (TypeError, ValueError):
        return ""
    if number in _REASON_OVERRIDES:
        return _REASON_OVERRIDES[number]
    try:
        return HTTPStatus(number).phrase
    except ValueError:
        return ""
