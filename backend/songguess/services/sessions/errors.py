"""Errors raised by session operations.

Each carries the HTTP status the API layer should answer with, so routes
can translate them without a lookup table.
"""


class SessionError(Exception):
    status_code = 500
    message = 'Session error'

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self):
        return {'error': self.message}


class ValidationError(SessionError):
    status_code = 400
    message = 'Invalid request'


class NicknameInvalid(ValidationError):
    message = 'Invalid nickname'


class NotFound(SessionError):
    status_code = 404
    message = 'Not found'


class SessionNotFound(NotFound):
    message = 'Game session not found'


class PlayerNotFound(NotFound):
    message = 'Player not found'


class SongNotFound(NotFound):
    message = 'Song is not part of this playlist'


class PlaylistNotFound(NotFound):
    message = 'Playlist not found'


class Conflict(SessionError):
    status_code = 409
    message = 'Conflict'


class SessionNotJoinable(Conflict):
    message = 'Game session is not accepting new players'


class NicknameTaken(Conflict):
    message = 'Nickname is already taken'


class SessionFull(Conflict):
    message = 'Game session is full'


class SessionNotActive(Conflict):
    message = 'Game session has not started'


class InvalidTransition(Conflict):
    message = 'Game session cannot change to that status'


class SongAlreadySolved(Conflict):
    message = 'Song has already been guessed correctly'


class PlayerNotYetDone(Conflict):
    message = 'Player has not completed all songs'


class CodeGenerationExhausted(SessionError):
    status_code = 503
    message = 'Failed to generate a unique game code after multiple attempts'
