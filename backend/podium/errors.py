"""Error taxonomy shared by the services and the HTTP layer.

Only ValidationError, NotFoundError and AlreadyCompletedError ever reach a
client. AIProviderError and StatsUpdateError are raised and caught inside
the services and end up in the log.
"""


class PodiumError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {'error': self.message}


class ValidationError(PodiumError):
    status_code = 400


class NotFoundError(PodiumError):
    status_code = 404


class AlreadyCompletedError(PodiumError):
    status_code = 409


class AIProviderError(PodiumError):
    status_code = 502


class StatsUpdateError(PodiumError):
    status_code = 500
