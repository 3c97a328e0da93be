import jwt

from chalicelib.constants.keys_structure import user_key, profile_sort_key
from chalicelib.constants.status_codes import http200, http201, http400, http401, http404
from test.utils.fixtures import token_for, test_config
from test.utils.request_utils import make_request

signup_body = {
    'username': 'alice',
    'password': 's3cret-pass',
    'localName': 'Alice Cafe',
    'phoneNumber': '+37060000000',
    'description': 'Coffee and cakes',
    'socialMedia': ['https://instagram.com/alicecafe']
}


def create_test_user(chalice_gateway, **overrides):
    response = make_request(chalice_gateway, endpoint='/signup', method='POST',
                            json_body={**signup_body, **overrides})
    assert response.status_code == http201
    return response.json_body


def login(chalice_gateway, username='alice', password='s3cret-pass'):
    return make_request(chalice_gateway, endpoint='/login', method='POST',
                        json_body={'username': username, 'password': password})


def test_signup_stores_password_hash(chalice_gateway, fake_table):
    assert create_test_user(chalice_gateway)['username'] == 'alice'

    stored = fake_table.items[(user_key('alice'), profile_sort_key())]
    assert stored['password'] != 's3cret-pass'
    assert stored['password'].startswith('$2')
    assert stored['localName'] == 'Alice Cafe'
    assert stored['record_type'] == 'profile'


def test_signup_defaults(chalice_gateway, fake_table):
    create_test_user(chalice_gateway, description=None, socialMedia=None)
    stored = fake_table.items[(user_key('alice'), profile_sort_key())]
    assert stored['description'] == ''
    assert stored['socialMedia'] == []


def test_signup_requires_fields(chalice_gateway, fake_table):
    for missing in ('username', 'password', 'localName', 'phoneNumber'):
        body = {key: value for key, value in signup_body.items() if key != missing}
        response = make_request(chalice_gateway, endpoint='/signup', method='POST', json_body=body)
        assert response.status_code == http400
    assert fake_table.calls == []


def test_signup_with_existing_username_overwrites(chalice_gateway, fake_table):
    create_test_user(chalice_gateway)
    create_test_user(chalice_gateway, password='another-pass', localName='New Cafe')

    assert fake_table.items[(user_key('alice'), profile_sort_key())]['localName'] == 'New Cafe'
    assert login(chalice_gateway).status_code == http401
    assert login(chalice_gateway, password='another-pass').status_code == http200


def test_login(chalice_gateway):
    create_test_user(chalice_gateway)
    response = login(chalice_gateway)

    assert response.status_code == http200
    payload = jwt.decode(response.json_body['token'], test_config.jwt_secret, algorithms=['HS256'])
    assert payload['userId'] == 'alice'
    assert payload['exp'] - payload['iat'] == test_config.token_ttl_seconds


def test_login_with_bad_credentials(chalice_gateway):
    create_test_user(chalice_gateway)
    for username, password in (('alice', 'wrong'), ('nobody', 's3cret-pass')):
        response = login(chalice_gateway, username, password)
        assert response.status_code == http401
        assert response.json_body['error'] == 'Invalid credentials'


def test_token_from_login_gives_access(chalice_gateway):
    create_test_user(chalice_gateway)
    token = login(chalice_gateway).json_body['token']
    response = make_request(chalice_gateway, endpoint='/categories', token=f'Bearer {token}')
    assert response.status_code == http200
    assert response.json_body == {'categories': []}


def test_expired_token(chalice_gateway):
    token = jwt.encode({'userId': 'alice', 'iat': 1, 'exp': 2}, test_config.jwt_secret, algorithm='HS256')
    response = make_request(chalice_gateway, endpoint='/categories', token=f'Bearer {token}')
    assert response.status_code == http401


def test_get_public_profile(chalice_gateway):
    create_test_user(chalice_gateway)
    response = make_request(chalice_gateway, endpoint='/users/alice')

    assert response.status_code == http200
    assert response.json_body['username'] == 'alice'
    assert response.json_body['localName'] == 'Alice Cafe'
    assert response.json_body['socialMedia'] == ['https://instagram.com/alicecafe']
    assert 'password' not in response.json_body
    assert 'PK' not in response.json_body


def test_get_unknown_profile(chalice_gateway):
    assert make_request(chalice_gateway, endpoint='/users/nobody').status_code == http404


def test_update_profile(chalice_gateway):
    create_test_user(chalice_gateway)
    response = make_request(chalice_gateway, endpoint='/users', method='PUT', json_body={
        'localName': 'Alice Bistro',
        'socialMedia': [],
        'password': 'hijack',
        'unexpected_field': 'unexpected_value'
    }, token=token_for('alice'))
    assert response.status_code == http200

    profile = make_request(chalice_gateway, endpoint='/users/alice').json_body
    assert profile['localName'] == 'Alice Bistro'
    assert profile['socialMedia'] == []
    assert 'unexpected_field' not in profile
    assert login(chalice_gateway).status_code == http200


def test_update_profile_with_bad_type(chalice_gateway):
    create_test_user(chalice_gateway)
    response = make_request(chalice_gateway, endpoint='/users', method='PUT', json_body={'socialMedia': 'insta'},
                            token=token_for('alice'))
    assert response.status_code == http400


def test_update_profile_without_allowed_fields(chalice_gateway):
    create_test_user(chalice_gateway)
    response = make_request(chalice_gateway, endpoint='/users', method='PUT', json_body={'password': 'x'},
                            token=token_for('alice'))
    assert response.status_code == http400


def test_delete_account(chalice_gateway, fake_table):
    create_test_user(chalice_gateway)
    create_test_user(chalice_gateway, username='bob')
    token = token_for('alice')
    category = make_request(chalice_gateway, endpoint='/categories', method='POST',
                            json_body={'categoryName': 'Drinks'}, token=token).json_body
    make_request(chalice_gateway, endpoint=f"/categories/{category['categoryId']}/products", method='POST',
                 json_body={'productName': 'Cola', 'price': 1, 'description': 'Cold'}, token=token)

    response = make_request(chalice_gateway, endpoint='/users', method='DELETE', token=token)
    assert response.status_code == http200
    assert response.json_body['deletedItems'] == 2
    assert [key for key in fake_table.items if key[0] == user_key('alice')] == []
    assert (user_key('bob'), profile_sort_key()) in fake_table.items
    assert make_request(chalice_gateway, endpoint='/users/alice').status_code == http404
