import json
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from chalicelib.utils.exceptions import ValidationError


def replace_dict_key(item, orig_key, new_key):
    if orig_key in item:
        if new_key not in item:
            item[new_key] = item[orig_key]
        del item[orig_key]


def substitute_keys(dict_to_process: dict, base_keys: dict, opt_dict=None):
    if opt_dict is None:
        opt_dict = {}
    all_keys = {**base_keys, **opt_dict}
    for key, val in all_keys.items():
        if val:
            replace_dict_key(dict_to_process, key, val)
        elif key in dict_to_process.keys():
            dict_to_process.pop(key, None)
    return dict_to_process


def parse_raw_body(chalice_request) -> dict:
    request_raw_body = chalice_request.raw_body
    if not request_raw_body:
        return {}
    try:
        body = json.loads(request_raw_body, parse_float=Decimal)
    except ValueError as error:
        raise ValidationError(f'Request body is not a valid json: {error}')
    if not isinstance(body, dict):
        raise ValidationError('Request body should be a json object')
    return fix_values_from_ui(body)


def fix_values_from_ui(item: dict) -> dict:
    """
    Remove keys with None values,
    floats are already parsed to Decimal because DynamoDB does not accept float
    """
    if item.get('_values_from_ui_strategy') == 'delete_empty':
        list_to_cleanup = ['', None]
    else:
        list_to_cleanup = [None]
    item = cleanup_dict(item, list_to_cleanup)
    item.pop('_values_from_ui_strategy', None)
    return item


def cleanup_dict(item: dict, list_of_values: list):
    """ Remove None fields in dict with. Supports one nesting.  """

    def sub_clean(sub_item):
        return {
            key: value
            for key, value in sub_item.items()
            if value not in list_of_values
        }

    clean = {}
    for k, v in item.items():
        if isinstance(v, dict):
            nested = sub_clean(v)
            if len(nested.keys()) > 0:
                clean[k] = nested
        elif v not in list_of_values:
            clean[k] = v
    return clean


def require_fields(body: dict, *fields: str) -> None:
    missing = [field for field in fields if body.get(field) in (None, '')]
    if missing:
        raise ValidationError(f'Missing required fields: {", ".join(missing)}')


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='seconds')


def to_price(value) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, Decimal)):
        raise ValidationError(f'Price should be a number, got {value!r}')
    try:
        price = Decimal(value).quantize(Decimal('1.00'))
    except InvalidOperation:
        raise ValidationError(f'Price {value!r} is out of range')
    if price < 0:
        raise ValidationError('Price should not be negative')
    return price


def to_order(value):
    """
    DynamoDB returns numbers as Decimal
    """
    if value is None or isinstance(value, bool):
        return None
    return int(value)
