"""
Error taxonomy shared by the API, the import pipeline and the services.
Every expected failure carries the HTTP status it maps to; anything that is
not a RimappaError is treated as an internal error.
"""


class RimappaError(Exception):
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {'error': self.message}


class AuthenticationRequired(RimappaError):
    status_code = 401

    def __init__(self, message='Authentication required'):
        super().__init__(message)


class PermissionDenied(RimappaError):
    status_code = 403

    def __init__(self, message='You are not allowed to perform this action'):
        super().__init__(message)


class NotFoundError(RimappaError):
    status_code = 404


class ConflictError(RimappaError):
    """Duplicate participation, full or closed competition, email in use."""
    status_code = 400


class RecordValidationError(RimappaError):
    """A single invalid field, tagged with why it failed."""
    status_code = 400

    MISSING = 'missing'
    WRONG_TYPE = 'wrong_type'
    OUT_OF_RANGE = 'out_of_range'

    def __init__(self, field, kind, message):
        super().__init__(f'{field}: {message}')
        self.field = field
        self.kind = kind
        self.reason = message

    def to_dict(self):
        return {
            'error': 'Invalid data',
            'field': self.field,
            'kind': self.kind,
            'details': self.reason,
        }
