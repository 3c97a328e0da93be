from typing import Tuple, Dict
from uuid import uuid4

from chalice import Response
from chalice.app import Request

from chalicelib import cascade, menu, ordering
from chalicelib.base_class_entity import EntityBase, is_str, is_non_empty_str, is_order
from chalicelib.constants.constants import RECORD_TYPE_CATEGORY
from chalicelib.constants.keys_structure import user_key, category_sort_key
from chalicelib.constants.status_codes import http200, http201
from chalicelib.utils import auth as utils_auth, app as utils_app, data as utils_data, db as utils_db
from chalicelib.utils.data import now_iso, to_order
from chalicelib.utils.logger import logger


class Category(EntityBase):
    record_type = RECORD_TYPE_CATEGORY

    required_immutable_fields_validation = {
        'createdAt': is_str,
        'order': is_order  # changed only by reorder
    }

    required_mutable_fields_validation = {
        'categoryName': is_non_empty_str
    }

    def __init__(self, username, id_, table=None, **kwargs):
        EntityBase.__init__(self, username, id_, table)

        self.category_name: str = kwargs.get('categoryName')
        self.order = to_order(kwargs.get('order'))
        self.created_at: str = kwargs.get('createdAt') or now_iso()
        self.updated_at: str = kwargs.get('updatedAt') or self.created_at

    @classmethod
    def init_by_id(cls, username, category_id, table=None):
        logger.info("init_by_id ::: started")
        c = cls(username, category_id, table=table)
        c.__init__(username, category_id, table=c.table, **c._get_db_item())
        return c

    def _get_pk_sk(self) -> Tuple[str, str]:
        return user_key(self.username), category_sort_key(self.id_)

    def _to_dict(self) -> Dict:
        return {
            'categoryName': self.category_name,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
            'order': self.order
        }

    def create(self) -> Dict:
        """
        New category goes to the end of the owner's list
        """
        if not is_non_empty_str(self.category_name):
            self.raise_validation_error('categoryName')
        self.order = ordering.next_category_order(self.table, self.username)
        self._create_db_record()
        return self._to_ui()

    def rename(self, update_body: Dict) -> Dict:
        self._get_db_item()
        return self._update_db_record(update_body)

    def delete(self) -> Dict:
        return cascade.delete_category_cascade(self.table, self.username, self.id_)

    def _to_ui(self) -> Dict:
        return {
            'categoryId': self.id_,
            'categoryName': self.category_name,
            'order': self.order
        }


@utils_app.request_exception_handler
@utils_auth.authenticate
@utils_app.log_start_finish
def endpoint_get_categories(request: Request) -> Response:
    username = utils_auth.get_username(request)
    return Response(status_code=http200, body=menu.owner_menu(utils_db.get_gen_table(), username))


@utils_app.request_exception_handler
@utils_auth.authenticate
@utils_app.log_start_finish
def endpoint_create_category(request: Request) -> Response:
    body = utils_data.parse_raw_body(request)
    utils_data.require_fields(body, 'categoryName')
    category = Category(utils_auth.get_username(request), str(uuid4()), categoryName=body['categoryName'])
    created = category.create()
    return Response(status_code=http201, body={'message': 'Category created successfully', **created})


@utils_app.request_exception_handler
@utils_auth.authenticate
@utils_app.log_start_finish
def endpoint_update_category(request: Request, category_id: str) -> Response:
    body = utils_data.parse_raw_body(request)
    category = Category(utils_auth.get_username(request), category_id)
    updated = category.rename(body)
    return Response(status_code=http200, body={
        'message': 'Category updated successfully', 'categoryId': category_id, 'updated': updated
    })


@utils_app.request_exception_handler
@utils_auth.authenticate
@utils_app.log_start_finish
def endpoint_delete_category(request: Request, category_id: str) -> Response:
    result = Category(utils_auth.get_username(request), category_id).delete()
    return Response(status_code=http200, body={'message': 'Category deleted successfully', **result})


@utils_app.request_exception_handler
@utils_auth.authenticate
@utils_app.log_start_finish
def endpoint_reorder_categories(request: Request) -> Response:
    body = utils_data.parse_raw_body(request)
    applied = ordering.reorder_categories(utils_db.get_gen_table(), utils_auth.get_username(request),
                                          body.get('categories'))
    return Response(status_code=http200, body={'message': 'Categories reordered successfully', 'updated': applied})
