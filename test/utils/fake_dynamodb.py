"""
In-memory stand-in for a boto3 DynamoDB Table resource, enough for MenuTable:
get/put/update/delete item, query on the table or the category index, batch deletes.
Numbers are returned as Decimal and floats are rejected, the way boto3 does it.
"""
import copy
from decimal import Decimal
from types import SimpleNamespace
from typing import Any, Dict, List, Optional, Tuple

from boto3.dynamodb.conditions import And, BeginsWith, Equals
from botocore.exceptions import ClientError

from chalicelib.constants.constants import BATCH_WRITE_LIMIT


def client_error(operation: str, code: str = 'InternalServerError') -> ClientError:
    return ClientError({'Error': {'Code': code, 'Message': f'{operation} failed in test'}}, operation)


def _to_stored(value):
    if isinstance(value, float):
        raise TypeError('Float types are not supported. Use Decimal types instead.')
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, dict):
        return {key: _to_stored(val) for key, val in value.items()}
    if isinstance(value, list):
        return [_to_stored(val) for val in value]
    return value


def _matches(condition, item: Dict) -> bool:
    if isinstance(condition, And):
        return all(_matches(sub_condition, item) for sub_condition in condition.get_expression()['values'])
    key, value = condition.get_expression()['values']
    actual = item.get(key.name)
    if isinstance(condition, Equals):
        return actual == value
    if isinstance(condition, BeginsWith):
        return isinstance(actual, str) and actual.startswith(value)
    raise NotImplementedError(f'Condition {condition.__class__.__name__} is not supported')


class FakeDynamoTable:

    def __init__(self, name: str = 'MenuQrUsersTable-test', index_name: str = 'categoryId-index',
                 index_key: str = 'categoryId', page_size: Optional[int] = None):
        self.name = name
        self.index_name = index_name
        self.index_key = index_key
        self.page_size = page_size
        self.items: Dict[Tuple[str, str], Dict] = {}
        self.calls: List[Tuple[str, Any]] = []
        self._call_numbers: Dict[str, int] = {}
        self._failures: Dict[Tuple[str, int], str] = {}
        self.meta = SimpleNamespace(client=SimpleNamespace(batch_write_item=self.batch_write_item))

    # failure injection
    def fail(self, operation: str, on_call: int = 1, mode: str = 'error') -> None:
        """
        :param mode: error - raise before applying, after_apply - apply then raise,
        unprocessed - batch_write_item returns every request as unprocessed
        """
        self._failures[(operation, on_call)] = mode

    def _register_call(self, operation: str, detail: Any = None) -> Optional[str]:
        self.calls.append((operation, detail))
        number = self._call_numbers.get(operation, 0) + 1
        self._call_numbers[operation] = number
        mode = self._failures.get((operation, number))
        if mode == 'error':
            raise client_error(operation)
        return mode

    def calls_of(self, operation: str) -> List[Any]:
        return [detail for name, detail in self.calls if name == operation]

    def seed(self, *items: Dict) -> None:
        """ puts items without registering calls """
        for item in items:
            stored = _to_stored(item)
            self.items[(stored['PK'], stored['SK'])] = stored

    # boto3 Table interface
    def get_item(self, Key: Dict[str, str]) -> Dict:
        self._register_call('get_item', Key)
        item = self.items.get((Key['PK'], Key['SK']))
        return {'Item': copy.deepcopy(item)} if item is not None else {}

    def put_item(self, Item: Dict) -> Dict:
        stored = _to_stored(Item)
        mode = self._register_call('put_item', Item)
        self.items[(stored['PK'], stored['SK'])] = stored
        if mode == 'after_apply':
            raise client_error('put_item')
        return {}

    def update_item(self, Key: Dict[str, str], UpdateExpression: str, ExpressionAttributeNames: Dict[str, str],
                    ExpressionAttributeValues: Dict[str, Any], ReturnValues: str = 'NONE') -> Dict:
        values = _to_stored(ExpressionAttributeValues)
        mode = self._register_call('update_item', {'Key': Key, 'UpdateExpression': UpdateExpression,
                                                   'ExpressionAttributeNames': ExpressionAttributeNames})
        assert UpdateExpression.startswith('SET ')
        updated = {}
        for assignment in UpdateExpression[len('SET '):].split(', '):
            name_placeholder, value_placeholder = assignment.split(' = ')
            updated[ExpressionAttributeNames[name_placeholder]] = values[value_placeholder]

        item = self.items.setdefault((Key['PK'], Key['SK']), {'PK': Key['PK'], 'SK': Key['SK']})
        item.update(updated)
        if mode == 'after_apply':
            raise client_error('update_item')
        return {'Attributes': copy.deepcopy(updated)} if ReturnValues == 'UPDATED_NEW' else {}

    def delete_item(self, Key: Dict[str, str], ReturnValues: str = 'NONE') -> Dict:
        mode = self._register_call('delete_item', Key)
        old = self.items.pop((Key['PK'], Key['SK']), None)
        if mode == 'after_apply':
            raise client_error('delete_item')
        return {'Attributes': old} if old is not None and ReturnValues == 'ALL_OLD' else {}

    def query(self, KeyConditionExpression, IndexName: Optional[str] = None,
              ExclusiveStartKey: Optional[Dict] = None, FilterExpression=None, ConsistentRead: bool = False) -> Dict:
        self._register_call('query', {'IndexName': IndexName, 'ExclusiveStartKey': ExclusiveStartKey,
                                      'ConsistentRead': ConsistentRead})
        if IndexName is not None and ConsistentRead:
            raise client_error('query', code='ValidationException')
        if IndexName is not None:
            assert IndexName == self.index_name, f'Unknown index {IndexName}'
            candidates = [item for item in self.items.values() if self.index_key in item]
        else:
            candidates = sorted(self.items.values(), key=lambda item: (item['PK'], item['SK']))
        matched = [item for item in candidates if _matches(KeyConditionExpression, item)]

        if ExclusiveStartKey is not None:
            keys = [(item['PK'], item['SK']) for item in matched]
            start = keys.index((ExclusiveStartKey['PK'], ExclusiveStartKey['SK'])) + 1
            matched = matched[start:]

        # the filter is applied to the page read by the key condition
        page = matched
        resp = {}
        if self.page_size is not None and len(matched) > self.page_size:
            page = matched[:self.page_size]
            last = page[-1]
            resp['LastEvaluatedKey'] = {'PK': last['PK'], 'SK': last['SK']}
        if FilterExpression is not None:
            page = [item for item in page if _matches(FilterExpression, item)]
        resp['Items'] = copy.deepcopy(page)
        return resp

    def batch_write_item(self, RequestItems: Dict[str, List[Dict]]) -> Dict:
        requests = RequestItems[self.name]
        mode = self._register_call('batch_write_item', len(requests))
        if len(requests) > BATCH_WRITE_LIMIT:
            raise client_error('batch_write_item', code='ValidationException')
        if mode == 'unprocessed':
            return {'UnprocessedItems': {self.name: requests}}
        for request in requests:
            key = request['DeleteRequest']['Key']
            self.items.pop((key['PK'], key['SK']), None)
        if mode == 'after_apply':
            raise client_error('batch_write_item')
        return {'UnprocessedItems': {}}
