import functools
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from chalice.app import Request

from chalicelib.config import Config, get_config
from chalicelib.utils.exceptions import Unauthorized
from chalicelib.utils.logger import log_request, logger

BEARER = 'bearer'


class TokenVerifier:
    """
    Stateless bearer tokens, the owner's username is the userId claim
    """

    def __init__(self, config: Config):
        self.secret = config.jwt_secret
        self.algorithm = config.jwt_algorithm
        self.ttl_seconds = config.token_ttl_seconds

    def issue(self, username: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            'userId': username,
            'iat': now,
            'exp': now + timedelta(seconds=self.ttl_seconds)
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, authorization_header) -> str:
        if not self.secret:
            raise Unauthorized('Token verification is not configured')
        if not authorization_header:
            raise Unauthorized('Authorization header missing')

        scheme, _, token = authorization_header.partition(' ')
        token = token.strip()
        if scheme.lower() != BEARER or not token:
            raise Unauthorized('Authorization header should be "Bearer <token>"')

        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise Unauthorized('Token has expired')
        except jwt.InvalidTokenError as error:
            raise Unauthorized(f'Invalid token: {error}')

        username = payload.get('userId')
        if not isinstance(username, str) or not username:
            raise Unauthorized('Invalid token: userId not found')
        return username


def get_verifier() -> TokenVerifier:
    return TokenVerifier(get_config())


def authenticate(func):
    """
    Wrapper for endpoint functions which require owner's authentication.
    The request is the first argument, the token is checked before the function touches the table
    """

    @functools.wraps(func)
    def result_auth(request: Request, *args, **kwargs):
        log_request(request)
        username = get_verifier().verify(request.headers.get('authorization'))
        setattr(request, 'auth_result', {'user_id': username})
        logger.info(f'authenticate ::: SUCCESS, func.__name__ {func.__name__}, {username=}')
        return func(request, *args, **kwargs)

    return result_auth


def get_username(request: Request) -> str:
    return request.auth_result['user_id']


def hash_password(password: str, rounds: int) -> str:
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds)).decode('utf-8')


def check_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        logger.warning('check_password ::: stored password hash is malformed')
        return False
