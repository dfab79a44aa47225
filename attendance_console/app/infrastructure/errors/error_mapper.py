from attendance_console.clients.listing_sdk.errors import APIError, ValidationError

# map_error uses this when the response body carries no message
PLACEHOLDER_MESSAGE = "Request failed"


class ErrorMapper:
    _KNOWN_CODES = {
        "NOT_FOUND": ("The record no longer exists.", "Refresh the list to see current data."),
        "VALIDATION_ERROR": ("The request has invalid fields.", "Review the highlighted fields and try again."),
        "TIMEOUT_ERROR": ("The server took too long to respond.", "Press 'Retry' to run the same request."),
        "NETWORK_ERROR": ("The listing service is unreachable.", "Check the network and try again."),
        "INTERNAL_ERROR": ("Internal or transient error.", "Retry in a few seconds."),
    }

    _STATUS_HINTS = {
        401: ("SESSION_EXPIRED", "Your session has expired.", "Sign in again."),
        403: ("PERMISSION_DENIED", "You are not allowed to perform this operation.", "Sign in with an authorized account."),
        404: ("NOT_FOUND", "The record no longer exists.", "Refresh the list to see current data."),
        409: ("CONFLICT", "The record was changed by someone else.", "Refresh and retry."),
        422: ("VALIDATION_ERROR", "The request has invalid fields.", "Review the highlighted fields and try again."),
        500: ("INTERNAL_ERROR", "The service failed to process the request.", "Retry and share the trace_id if it persists."),
    }

    @classmethod
    def to_payload(cls, error: Exception) -> dict:
        if isinstance(error, APIError):
            status_code = error.status_code or -1
            mapped = cls._STATUS_HINTS.get(status_code)
            if mapped is None and status_code >= 500:
                mapped = cls._STATUS_HINTS[500]
            if mapped is None and status_code == 400:
                mapped = cls._STATUS_HINTS[422]
            if mapped is not None:
                code, message, suggestion = mapped
            else:
                message, suggestion = cls._KNOWN_CODES.get(
                    error.code,
                    (error.message, "Contact support with the trace_id."),
                )
                code = error.code
            if error.message and error.message != PLACEHOLDER_MESSAGE:
                message = error.message
            return {
                "code": code,
                "category": cls.category(error),
                "message": message,
                "details": error.details,
                "field_errors": error.field_errors if isinstance(error, ValidationError) else {},
                "trace_id": error.trace_id,
                "suggestion": suggestion,
            }
        return {
            "code": "INTERNAL_ERROR",
            "category": "internal",
            "message": str(error),
            "details": None,
            "field_errors": {},
            "trace_id": None,
            "suggestion": "Retry and report the incident if it persists.",
        }

    @staticmethod
    def category(error: Exception) -> str:
        if not isinstance(error, APIError):
            return "internal"
        if error.code in {"NETWORK_ERROR", "TIMEOUT_ERROR"}:
            return "network"
        if error.status_code in {401, 403}:
            return "auth"
        if error.status_code in {400, 422}:
            return "validation"
        if error.status_code == 404:
            return "not_found"
        if error.status_code == 409:
            return "conflict"
        if error.status_code and error.status_code >= 500:
            return "server"
        return "api"

    @classmethod
    def to_display_message(cls, error: Exception) -> str:
        payload = cls.to_payload(error)
        trace = f" (trace_id={payload['trace_id']})" if payload["trace_id"] else ""
        return f"[{payload['code']}] {payload['message']}{trace}"
