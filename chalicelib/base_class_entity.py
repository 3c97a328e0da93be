from decimal import Decimal
from typing import Tuple, Dict, List, Optional

from chalicelib.constants.keys_structure import PARTITION_KEY, SORT_KEY
from chalicelib.constants.substitute_keys import from_db
from chalicelib.utils import db as utils_db, exceptions
from chalicelib.utils.data import substitute_keys, cleanup_dict, now_iso
from chalicelib.utils.logger import logger


def is_str(value) -> bool:
    return isinstance(value, str)


def is_non_empty_str(value) -> bool:
    return isinstance(value, str) and value.strip() != ''


def is_bool(value) -> bool:
    return isinstance(value, bool)


def is_list(value) -> bool:
    return isinstance(value, list)


def is_price(value) -> bool:
    return isinstance(value, Decimal) and value >= 0


def is_order(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1


class EntityBase:
    record_type: str = ''

    required_immutable_fields_validation = {}
    required_mutable_fields_validation = {}
    optional_fields_validation = {}
    # applied to an update value before its validation
    fields_coercion = {}

    def __init__(self, username: str, id_: Optional[str] = None, table: utils_db.MenuTable = None):
        self.username: str = username
        self.id_: Optional[str] = id_
        self.table: utils_db.MenuTable = table if table is not None else utils_db.get_gen_table()
        self.db_record: Dict = {}

    def _get_pk_sk(self) -> Tuple[str, str]:
        """
        Should be re-implemented in each child class
        :return:
        partkey, sortkey of db item for child
        """
        raise NotImplementedError

    def _get_db_item(self) -> Dict:
        item = self.table.get_item(*self._get_pk_sk())
        if item is None:
            raise exceptions.NotFound(f'{self.record_type.capitalize()} {self.id_} not found')
        return item

    def _to_dict(self) -> Dict:
        """
        Should be re-implemented in each child class
        :return:
        dict of item's attributes
        """
        return {}

    def _init_db_record(self) -> None:
        """
        New DB record initialization, attributes without value are not stored
        """
        pk, sk = self._get_pk_sk()
        self.db_record = cleanup_dict({
            PARTITION_KEY: pk,
            SORT_KEY: sk,
            'record_type': self.record_type,
            **self._to_dict()
        }, [None])

    @staticmethod
    def raise_validation_error(key):
        message = f'Validation error occurred while validating field={key}'
        logger.error(f"raise_validation_error ::: {message}")
        raise exceptions.ValidationError(message)

    def _validate_mandatory_fields(self):
        for key, validator_func in {
            **self.required_immutable_fields_validation,
            **self.required_mutable_fields_validation
        }.items():
            if validator_func(self.db_record.get(key)) is False:
                self.raise_validation_error(key)

    def _validate_optional_fields(self):
        for key, validator_func in self.optional_fields_validation.items():
            if self.db_record.get(key) is not None and validator_func(self.db_record.get(key)) is False:
                self.raise_validation_error(key)

    def _update_fields_whitelist(self) -> List:
        return [*self.required_mutable_fields_validation.keys(), *self.optional_fields_validation.keys()]

    def _get_validated_update_dict(self, update_body: Dict) -> Dict:
        """
        Validates fields for update.
        Fields outside of the whitelist are dropped, a whitelisted field with a wrong value
        raises ValidationError
        :return:
        Clean dict for update
        """
        whitelist = self._update_fields_whitelist()
        validation_dict = {**self.required_mutable_fields_validation, **self.optional_fields_validation}
        clean_dict = {}
        for key, value in update_body.items():
            if key not in whitelist:
                logger.warning(f'_get_validated_update_dict ::: {key=} is not allowed to update, '
                               f'removing from update dict..')
                continue
            if key in self.fields_coercion:
                value = self.fields_coercion[key](value)
            if validation_dict[key](value) is not True:
                self.raise_validation_error(key)
            clean_dict[key] = value

        if not clean_dict:
            raise exceptions.ValidationError(
                f'No fields to update, allowed fields are: {", ".join(whitelist)}'
            )
        return clean_dict

    def _create_db_record(self) -> None:
        """
        Creates entity db record, an existing record with the same key is overwritten
        """
        self._init_db_record()
        self._validate_mandatory_fields()
        self._validate_optional_fields()
        self.table.put_item(self.db_record)
        logger.info(f"_create_db_record ::: {self.record_type=} {self.id_=} {self.db_record.get(PARTITION_KEY)=} "
                    f"{self.db_record.get(SORT_KEY)=} successfully created")

    def _update_db_record(self, update_body: Dict) -> Dict:
        """
        Updates whitelisted fields of entity db record and its updatedAt
        :return:
        updated attributes
        """
        update_dict = self._get_validated_update_dict(update_body)
        update_dict['updatedAt'] = now_iso()
        pk, sk = self._get_pk_sk()
        attributes = self.table.update_fields(pk, sk, update_dict)
        logger.info(f"_update_db_record ::: {self.record_type=} "
                    f"{self.id_=} {pk=} {sk=} successfully updated, fields={list(update_dict.keys())}")
        return attributes

    def _to_ui(self) -> Dict:
        item = self._to_dict()
        return substitute_keys(dict_to_process=item, base_keys=from_db)
