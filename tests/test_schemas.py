"""Response schema tests."""

import importlib.util
import warnings
from pathlib import Path

from pydantic.warnings import PydanticDeprecatedSince20

import schemas


def test_schemas_import_without_deprecation_warnings():
    source = Path(schemas.__file__)
    module_spec = importlib.util.spec_from_file_location('schemas_fresh_copy', source)
    module = importlib.util.module_from_spec(module_spec)

    with warnings.catch_warnings():
        warnings.simplefilter('error', PydanticDeprecatedSince20)
        module_spec.loader.exec_module(module)

    assert module.ProductResponse.model_config['from_attributes'] is True


def test_aliased_fields_accept_both_names():
    by_alias = schemas.ProductRef.model_validate({'productId': 3})
    by_name = schemas.ProductRef(product_id=3)

    assert by_alias.product_id == by_name.product_id == 3
    assert schemas.RegisterResponse(message='ok', user_id=1).model_dump(by_alias=True) == {
        'message': 'ok',
        'userId': 1,
    }
