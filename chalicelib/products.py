from decimal import Decimal
from typing import Tuple, Dict
from uuid import uuid4

from chalice import Response
from chalice.app import Request

from chalicelib import ordering
from chalicelib.base_class_entity import EntityBase, is_str, is_non_empty_str, is_bool, is_price, is_order
from chalicelib.categories import Category
from chalicelib.constants.constants import RECORD_TYPE_PRODUCT
from chalicelib.constants.keys_structure import CATEGORY_INDEX_KEY, user_key, product_sort_key, \
    category_index_value, id_from_key
from chalicelib.constants.status_codes import http200, http201
from chalicelib.utils import auth as utils_auth, app as utils_app, data as utils_data, db as utils_db, exceptions
from chalicelib.utils.data import now_iso, to_order, to_price
from chalicelib.utils.logger import logger


class Product(EntityBase):
    record_type = RECORD_TYPE_PRODUCT

    required_immutable_fields_validation = {
        'createdAt': is_str,
        CATEGORY_INDEX_KEY: is_non_empty_str,
        'order': is_order
    }

    required_mutable_fields_validation = {
        'productName': is_non_empty_str,
        'price': is_price,
        'description': is_str,
        'isActive': is_bool
    }

    fields_coercion = {
        'price': to_price
    }

    def __init__(self, username, id_, table=None, **kwargs):
        EntityBase.__init__(self, username, id_, table)

        self.product_name: str = kwargs.get('productName')
        self.price: Decimal = kwargs.get('price')
        self.description: str = kwargs.get('description')
        self.is_active: bool = kwargs.get('isActive', True)
        self.order = to_order(kwargs.get('order'))
        # plain id in memory, CATEGORY#<id> in the table
        self.category_id: str = kwargs.get('category_id') or \
            (id_from_key(kwargs[CATEGORY_INDEX_KEY]) if kwargs.get(CATEGORY_INDEX_KEY) else None)
        self.created_at: str = kwargs.get('createdAt') or now_iso()
        self.updated_at: str = kwargs.get('updatedAt') or self.created_at

    def _get_pk_sk(self) -> Tuple[str, str]:
        return user_key(self.username), product_sort_key(self.id_)

    def _to_dict(self) -> Dict:
        return {
            'productName': self.product_name,
            'price': self.price,
            'description': self.description,
            'isActive': self.is_active,
            'order': self.order,
            CATEGORY_INDEX_KEY: category_index_value(self.category_id) if self.category_id else None,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at
        }

    def create(self) -> Dict:
        """
        Category should exist, new product goes to the end of the category
        """
        self.price = to_price(self.price)
        for key, value in (('productName', self.product_name), ('description', self.description)):
            if not is_non_empty_str(value):
                self.raise_validation_error(key)
        if not is_bool(self.is_active):
            self.raise_validation_error('isActive')

        Category.init_by_id(self.username, self.category_id, table=self.table)
        self.order = ordering.next_product_order(self.table, self.username, self.category_id)
        self._create_db_record()
        return self._to_ui()

    def update(self, update_body: Dict) -> Dict:
        self._get_db_item()
        return self._update_db_record(update_body)

    def set_active(self, update_body: Dict) -> bool:
        """
        Sets isActive from the body, flips the stored value when the body has none
        """
        item = self._get_db_item()
        is_active = update_body.get('isActive')
        if is_active is None:
            is_active = not item.get('isActive', True)
        self._update_db_record({'isActive': is_active})
        return is_active

    def delete(self) -> None:
        if self.table.delete_item(*self._get_pk_sk()) is None:
            raise exceptions.NotFound(f'Product {self.id_} not found')
        logger.info(f'delete ::: product {self.id_} deleted')

    def _to_ui(self) -> Dict:
        return {
            'productId': self.id_,
            'productName': self.product_name,
            'price': self.price,
            'description': self.description,
            'isActive': self.is_active,
            'order': self.order,
            'categoryId': self.category_id
        }


@utils_app.request_exception_handler
@utils_auth.authenticate
@utils_app.log_start_finish
def endpoint_create_product(request: Request, category_id: str) -> Response:
    body = utils_data.parse_raw_body(request)
    utils_data.require_fields(body, 'productName', 'price', 'description')
    product = Product(utils_auth.get_username(request), str(uuid4()), category_id=category_id, **{
        key: body[key] for key in ('productName', 'price', 'description', 'isActive') if key in body
    })
    created = product.create()
    return Response(status_code=http201, body={'message': 'Product created successfully', **created})


@utils_app.request_exception_handler
@utils_auth.authenticate
@utils_app.log_start_finish
def endpoint_update_product(request: Request, product_id: str) -> Response:
    body = utils_data.parse_raw_body(request)
    updated = Product(utils_auth.get_username(request), product_id).update(body)
    return Response(status_code=http200, body={
        'message': 'Product updated successfully', 'productId': product_id, 'updated': updated
    })


@utils_app.request_exception_handler
@utils_auth.authenticate
@utils_app.log_start_finish
def endpoint_set_product_active(request: Request, product_id: str) -> Response:
    body = utils_data.parse_raw_body(request)
    is_active = Product(utils_auth.get_username(request), product_id).set_active(body)
    return Response(status_code=http200, body={
        'message': 'Product status updated successfully', 'productId': product_id, 'isActive': is_active
    })


@utils_app.request_exception_handler
@utils_auth.authenticate
@utils_app.log_start_finish
def endpoint_delete_product(request: Request, product_id: str) -> Response:
    Product(utils_auth.get_username(request), product_id).delete()
    return Response(status_code=http200, body={'message': 'Product deleted successfully', 'productId': product_id})


@utils_app.request_exception_handler
@utils_auth.authenticate
@utils_app.log_start_finish
def endpoint_reorder_products(request: Request) -> Response:
    body = utils_data.parse_raw_body(request)
    applied = ordering.reorder_products(utils_db.get_gen_table(), utils_auth.get_username(request),
                                        body.get('products'))
    return Response(status_code=http200, body={'message': 'Products reordered successfully', 'updated': applied})
