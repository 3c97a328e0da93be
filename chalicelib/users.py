from typing import Tuple, Dict

from chalice import Response
from chalice.app import Request

from chalicelib import cascade
from chalicelib.base_class_entity import EntityBase, is_str, is_non_empty_str, is_list
from chalicelib.config import get_config
from chalicelib.constants.constants import RECORD_TYPE_PROFILE
from chalicelib.constants.keys_structure import KEY_SEPARATOR, user_key, profile_sort_key
from chalicelib.constants.status_codes import http200, http201
from chalicelib.constants.substitute_keys import public_profile
from chalicelib.utils import auth as utils_auth, app as utils_app, data as utils_data, db as utils_db, exceptions
from chalicelib.utils.data import now_iso, substitute_keys
from chalicelib.utils.logger import logger, log_request


class User(EntityBase):
    record_type = RECORD_TYPE_PROFILE

    required_immutable_fields_validation = {
        'password': is_non_empty_str,  # bcrypt hash
        'createdAt': is_str
    }

    required_mutable_fields_validation = {
        'localName': is_non_empty_str,
        'phoneNumber': is_non_empty_str
    }

    optional_fields_validation = {
        'description': is_str,
        'socialMedia': is_list
    }

    def __init__(self, username, table=None, **kwargs):
        EntityBase.__init__(self, username, username, table)

        self.password: str = kwargs.get('password')
        self.local_name: str = kwargs.get('localName')
        self.description: str = kwargs.get('description', '')
        self.phone_number: str = kwargs.get('phoneNumber')
        self.image_url: str = kwargs.get('imageUrl')
        self.social_media: list = kwargs.get('socialMedia', [])
        self.created_at: str = kwargs.get('createdAt') or now_iso()
        self.updated_at: str = kwargs.get('updatedAt') or self.created_at

    @classmethod
    def init_by_username(cls, username, table=None):
        logger.info("init_by_username ::: started")
        c = cls(username, table=table)
        c.__init__(username, table=c.table, **c._get_db_item())
        return c

    def _get_pk_sk(self) -> Tuple[str, str]:
        return user_key(self.username), profile_sort_key()

    def _to_dict(self) -> Dict:
        return {
            'password': self.password,
            'localName': self.local_name,
            'description': self.description,
            'phoneNumber': self.phone_number,
            'imageUrl': self.image_url,
            'socialMedia': self.social_media,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at
        }

    def signup(self, password: str) -> None:
        """
        Creates the profile with a hashed password.
        Signing up with an existing username overwrites the profile
        """
        if not is_non_empty_str(password):
            self.raise_validation_error('password')
        self.password = utils_auth.hash_password(password, get_config().bcrypt_rounds)
        self._create_db_record()

    def check_password(self, password: str) -> bool:
        return isinstance(password, str) and isinstance(self.password, str) and \
            utils_auth.check_password(password, self.password)

    def update_profile(self, update_body: Dict) -> Dict:
        self._get_db_item()
        return self._update_db_record(update_body)

    def set_image_url(self, image_url: str) -> None:
        pk, sk = self._get_pk_sk()
        self.table.update_fields(pk, sk, {'imageUrl': image_url, 'updatedAt': now_iso()})
        self.image_url = image_url

    def to_public(self) -> Dict:
        return {'username': self.username, **substitute_keys(dict_to_process=self._to_dict(), base_keys=public_profile)}


@utils_app.request_exception_handler
@utils_app.log_start_finish
def endpoint_signup(request: Request) -> Response:
    log_request(request)
    body = utils_data.parse_raw_body(request)
    utils_data.require_fields(body, 'username', 'password', 'localName', 'phoneNumber')
    if not is_non_empty_str(body['username']) or KEY_SEPARATOR in body['username']:
        User.raise_validation_error('username')

    user = User(body['username'], table=utils_db.get_gen_table(), **{
        key: body.get(key) for key in ('localName', 'description', 'phoneNumber', 'socialMedia')
        if body.get(key) is not None
    })
    user.signup(body['password'])
    return Response(status_code=http201, body={'message': 'User created successfully', 'username': user.username})


@utils_app.request_exception_handler
@utils_app.log_start_finish
def endpoint_login(request: Request) -> Response:
    log_request(request)
    body = utils_data.parse_raw_body(request)
    utils_data.require_fields(body, 'username', 'password')
    try:
        user = User.init_by_username(body['username'])
    except exceptions.NotFound:
        raise exceptions.Unauthorized('Invalid credentials')
    if not user.check_password(body['password']):
        raise exceptions.Unauthorized('Invalid credentials')
    token = utils_auth.get_verifier().issue(user.username)
    return Response(status_code=http200, body={'token': token})


@utils_app.request_exception_handler
@utils_app.log_start_finish
def endpoint_get_profile(request: Request, username: str) -> Response:
    """
    Public profile, no authentication
    """
    log_request(request)
    return Response(status_code=http200, body=User.init_by_username(username).to_public())


@utils_app.request_exception_handler
@utils_auth.authenticate
@utils_app.log_start_finish
def endpoint_update_profile(request: Request) -> Response:
    body = utils_data.parse_raw_body(request)
    user = User(utils_auth.get_username(request))
    updated = user.update_profile(body)
    return Response(status_code=http200, body={'message': 'Profile updated successfully', 'updated': updated})


@utils_app.request_exception_handler
@utils_auth.authenticate
@utils_app.log_start_finish
def endpoint_delete_account(request: Request) -> Response:
    username = utils_auth.get_username(request)
    result = cascade.delete_owner_cascade(utils_db.get_gen_table(), username)
    return Response(status_code=http200, body={'message': 'Account deleted successfully', **result})
