import pytest

from datamapper.core import (
    BooleanField,
    Collection,
    CollectionField,
    FloatField,
    IntegerField,
    Model,
    ModelField,
    StringField,
)


class Gadget(Model):
    name = StringField()
    weight = FloatField()
    stock = IntegerField(column="stock_count")
    enabled = BooleanField()
    maker = ModelField()
    parts = CollectionField()


def loaded(data=None):
    gadget = Gadget()
    gadget.set_data(data or {})
    return gadget


def test_fields_are_collected_in_declaration_order():
    assert list(Gadget._meta.fields) == ["name", "weight", "stock", "enabled", "maker", "parts"]


def test_field_for_column_uses_column_name():
    assert Gadget._meta.field_for_column("stock_count") is Gadget._meta.get_field("stock")
    assert Gadget._meta.field_for_column("missing") is None


def test_get_field_raises_for_unknown_name():
    with pytest.raises(KeyError):
        Gadget._meta.get_field("colour")


def test_subclasses_inherit_fields():
    class SmartGadget(Gadget):
        firmware = StringField()

    assert list(SmartGadget._meta.fields)[-1] == "firmware"
    assert "name" in SmartGadget._meta.fields


def test_scalar_fields_convert_row_values():
    gadget = loaded({"name": None, "weight": "1.5", "stock_count": "12", "enabled": "0"})
    assert gadget.name == ""
    assert gadget.weight == 1.5
    assert gadget.stock == 12
    assert gadget.enabled is False


def test_scalar_fields_store_converted_values():
    gadget = loaded()
    gadget.stock = "4"
    gadget.enabled = 1
    assert gadget.get_data() == {"stock_count": 4, "enabled": True}


def test_model_field_accepts_models_and_none():
    maker = loaded()
    gadget = loaded()
    gadget.maker = maker
    assert gadget.maker is maker
    gadget.maker = None
    assert gadget.maker is None


def test_model_field_rejects_other_values():
    gadget = loaded()
    with pytest.raises(TypeError):
        gadget.maker = 5


def test_model_field_raises_for_non_model_data():
    gadget = loaded({"maker": 5})
    with pytest.raises(TypeError):
        gadget.maker


def test_collection_field_requires_collection():
    gadget = loaded({"parts": "1,2"})
    with pytest.raises(TypeError):
        gadget.parts
    with pytest.raises(TypeError):
        gadget.parts = [loaded()]

    parts = Collection()
    gadget.parts = parts
    assert gadget.parts is parts
